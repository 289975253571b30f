"""
dsevents Event Module

Event kinds, the event variants the server sends, and the wire decoder.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, List, Optional, Type

from .exceptions import EventDecodeError

# Subscription filter meaning "every kind"; never sent as an event type.
ALL_EVENTS = -1

UNKNOWN_KIND_DESCRIPTION = "Event description not found."


class EventKind(IntEnum):
    """Server-side event kinds."""
    OBJECT_CREATED = 1
    OBJECT_DELETED = 2
    OBJECT_MODIFIED = 3
    OBJECT_MOVED = 4
    OBJECT_COPIED = 5
    CONTENT_CHANGED = 6
    VERSION_CHANGED = 7
    ACCESS_CHANGED = 8
    LINK_CHANGED = 9
    LOGIN = 10
    LOGOUT = 11
    LOGIN_FAILED = 12
    CLASS_LABEL_CHANGED = 13
    CONFIG_CHANGED = 14


OBJECT_KINDS = frozenset({
    EventKind.OBJECT_CREATED,
    EventKind.OBJECT_DELETED,
    EventKind.OBJECT_MODIFIED,
    EventKind.OBJECT_MOVED,
    EventKind.OBJECT_COPIED,
    EventKind.CONTENT_CHANGED,
    EventKind.VERSION_CHANGED,
    EventKind.ACCESS_CHANGED,
})


def describe_kind(kind: Any) -> str:
    """
    Return the name of an event kind.

    Unknown values (including ALL_EVENTS and non-integers) give
    UNKNOWN_KIND_DESCRIPTION instead of raising.
    """
    try:
        return EventKind(kind).name
    except (ValueError, TypeError):
        return UNKNOWN_KIND_DESCRIPTION


@dataclass(frozen=True)
class Handle:
    """Opaque reference to a server object, e.g. ``Document-12``."""
    value: str

    def __str__(self) -> str:
        return self.value


def _handle(value: Any) -> Optional[Handle]:
    if value is None:
        return None
    return Handle(str(value))


def _list_field(data: Dict[str, Any], key: str) -> list:
    """A list-valued payload field; missing or null means empty."""
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise EventDecodeError(f"Event field {key!r} must be a list, got {type(value).__name__}")
    return list(value)


@dataclass(frozen=True)
class DSEvent:
    """An event with no kind-specific payload."""
    kind: int
    principal: str = ""

    @property
    def kind_name(self) -> str:
        return describe_kind(self.kind)

    @classmethod
    def from_dict(cls, kind: int, principal: str, data: Dict[str, Any]) -> "DSEvent":
        return cls(kind=kind, principal=principal)


@dataclass(frozen=True)
class LinkEvent(DSEvent):
    """Links between objects were added or removed."""
    link_types: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, kind, principal, data):
        return cls(kind=kind, principal=principal,
                   link_types=_list_field(data, 'link_types'))


@dataclass(frozen=True)
class LoginEvent(DSEvent):
    """Someone tried to log in; username/domain are what they typed."""
    username: str = ""
    domain: str = ""

    @classmethod
    def from_dict(cls, kind, principal, data):
        return cls(kind=kind, principal=principal,
                   username=data.get('username', ''),
                   domain=data.get('domain', ''))


@dataclass(frozen=True)
class ObjectEvent(DSEvent):
    """
    An object was created, changed, moved or removed.

    Attributes:
        object_handle: The object the event is about
        property_names: Properties that changed on it
        object_handles: Other objects modified as a side effect
    """
    object_handle: Optional[Handle] = None
    property_names: List[str] = field(default_factory=list)
    object_handles: List[Handle] = field(default_factory=list)

    @classmethod
    def from_dict(cls, kind, principal, data):
        return cls(kind=kind, principal=principal,
                   object_handle=_handle(data.get('object')),
                   property_names=_list_field(data, 'properties'),
                   object_handles=[Handle(str(h)) for h in _list_field(data, 'objects')])


@dataclass(frozen=True)
class ClassEvent(DSEvent):
    """Class labels or the schema changed."""
    classes_changed: bool = False
    data_changed: bool = False
    strings_changed: bool = False

    @classmethod
    def from_dict(cls, kind, principal, data):
        return cls(kind=kind, principal=principal,
                   classes_changed=bool(data.get('classes_changed')),
                   data_changed=bool(data.get('data_changed')),
                   strings_changed=bool(data.get('strings_changed')))


@dataclass(frozen=True)
class ConfigEvent(DSEvent):
    """Server configuration changed."""
    description: str = ""

    @classmethod
    def from_dict(cls, kind, principal, data):
        return cls(kind=kind, principal=principal,
                   description=data.get('description', ''))


_EVENT_CLASSES: Dict[int, Type[DSEvent]] = {
    EventKind.LINK_CHANGED: LinkEvent,
    EventKind.LOGIN_FAILED: LoginEvent,
    EventKind.CLASS_LABEL_CHANGED: ClassEvent,
    EventKind.CONFIG_CHANGED: ConfigEvent,
}
_EVENT_CLASSES.update({kind: ObjectEvent for kind in OBJECT_KINDS})


def event_class_for(kind: int) -> Type[DSEvent]:
    """Event variant used for a kind; plain DSEvent for kinds without a payload."""
    return _EVENT_CLASSES.get(kind, DSEvent)


def event_from_dict(data: Dict[str, Any]) -> DSEvent:
    """
    Decode an event payload received from the server.

    Raises:
        EventDecodeError: if the payload is not a dict or has no integer "type"
    """
    if not isinstance(data, dict):
        raise EventDecodeError(f"Event payload must be an object, got {type(data).__name__}")

    kind = data.get('type')
    if isinstance(kind, bool) or not isinstance(kind, int):
        raise EventDecodeError(f"Event payload has no integer type: {kind!r}")

    principal = data.get('principal') or ""
    try:
        return event_class_for(kind).from_dict(kind, str(principal), data)
    except (TypeError, ValueError, AttributeError) as e:
        raise EventDecodeError(f"Malformed {describe_kind(kind)} payload: {e}")

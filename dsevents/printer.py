"""
dsevents Event Printer

Renders each event of a subscription as text. Rendering is best effort:
an event that cannot be printed is reported and skipped, never raised.
"""

import logging
import sys
from enum import Enum, auto
from typing import Callable, Dict, Iterable, Optional, TextIO, Type

from .client import DSSession, Subscription
from .events import (
    ALL_EVENTS,
    ClassEvent,
    ConfigEvent,
    DSEvent,
    EventKind,
    LinkEvent,
    LoginEvent,
    ObjectEvent,
    describe_kind,
)
from .exceptions import DSError

logger = logging.getLogger("dsevents")

SEPARATOR = "---------------------oo0oo---------------------"


class PrinterState(Enum):
    UNSUBSCRIBED = auto()
    SUBSCRIBED = auto()


def _flag(value: bool) -> str:
    return "true" if value else "false"


class EventPrinter:
    """
    Prints a summary of every event to a text stream (stdout by default).

    The printer subscribes once; after that it only consumes events.
    """

    def __init__(self, out: Optional[TextIO] = None):
        self.out = out if out is not None else sys.stdout
        self.state = PrinterState.UNSUBSCRIBED
        self._formatters: Dict[Type[DSEvent], Callable[[DSEvent], None]] = {
            LinkEvent: self._print_link,
            LoginEvent: self._print_login,
            ObjectEvent: self._print_object,
            ClassEvent: self._print_class,
            ConfigEvent: self._print_config,
        }

    def _write(self, text: str = "", end: str = "\n"):
        self.out.write(text + end)

    def subscribe(self, session: DSSession, kinds=ALL_EVENTS) -> Subscription:
        """Subscribe the session to events. Only allowed once per printer."""
        if self.state is PrinterState.SUBSCRIBED:
            raise DSError("Event printer is already subscribed")
        subscription = session.subscribe(kinds)
        self.state = PrinterState.SUBSCRIBED
        logger.debug(f"Printer subscribed to kinds {subscription.kinds}")
        return subscription

    def run(self, events: Iterable[DSEvent]):
        """Print events until the stream ends."""
        for event in events:
            self.handle(event)

    def handle(self, event: DSEvent) -> bool:
        """
        Print one event. Always returns True; formatting errors are
        reported and logged, never raised.
        """
        try:
            self._print_event(event)
        except Exception:
            self._write("Encountered another error")
            logger.exception(f"Could not print {type(event).__name__} event")
        finally:
            self.out.flush()
        return True

    def _print_event(self, event: DSEvent):
        self._write()
        self._write(SEPARATOR)
        self._write()
        self._write(f"Event fired: {int(event.kind)} ({describe_kind(event.kind)})")

        if event.kind != EventKind.LOGIN_FAILED:
            self._write(f" {event.principal}")

        formatter = self._formatter_for(event)
        if formatter is not None:
            formatter(event)

    def _formatter_for(self, event: DSEvent):
        for cls in type(event).__mro__:
            if cls in self._formatters:
                return self._formatters[cls]
        return None

    def _print_link(self, event: LinkEvent):
        self._write("     Link Types: ", end="")
        for link_type in event.link_types:
            self._write(f"{link_type}  ", end="")
        self._write()
        self._write(f"     toString(): {event!r}")

    def _print_login(self, event: LoginEvent):
        if event.kind == EventKind.LOGIN_FAILED:
            self._write(f" {event.username} -> {event.domain}")

    def _print_object(self, event: ObjectEvent):
        self._write(f"Modified object: {event.object_handle}")
        for name in event.property_names:
            self._write(f"Chg prop: {name}  ")
        for handle in event.object_handles:
            self._write(f"Other modified object: {handle}  ")

    def _print_class(self, event: ClassEvent):
        self._write(f"classes changed?: {_flag(event.classes_changed)}")
        self._write(f"data changed?: {_flag(event.data_changed)}")
        self._write(f"string changed?: {_flag(event.strings_changed)}")

    def _print_config(self, event: ConfigEvent):
        self._write(f"Description: {event.description}")
        self._write(f"toString: {event!r}")

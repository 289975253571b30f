"""
dsevents - DocuShare event listener

Connects to a DocuShare server, logs in, subscribes to every server-side
event and prints a description of each one as it arrives.

Quick Start:
    >>> from dsevents import ConnectionConfig, EventPrinter, bootstrap
    >>>
    >>> config = ConnectionConfig(username="admin", password="admin", host="ds.example.com")
    >>> session = bootstrap(config)
    >>> printer = EventPrinter()
    >>> with printer.subscribe(session) as events:
    ...     printer.run(events)

Command line:
    $ dslistevents -u admin -p admin -h ds.example.com -port 1099 -d DocuShare
"""

__version__ = "1.0.0"
__author__ = "dsevents"

from .bootstrap import bootstrap
from .client import ConnectionState, DSServer, DSSession, Subscription
from .config import ConnectionConfig
from .events import (
    ALL_EVENTS,
    ClassEvent,
    ConfigEvent,
    DSEvent,
    EventKind,
    Handle,
    LinkEvent,
    LoginEvent,
    ObjectEvent,
    describe_kind,
    event_from_dict,
)
from .exceptions import (
    AuthenticationError,
    DSError,
    EventDecodeError,
    InvalidLicenseError,
    NotAuthenticatedError,
    ServerUnreachableError,
    SSLVerificationError,
    TransportError,
)
from .printer import EventPrinter, PrinterState

__all__ = [
    # Bootstrap
    "bootstrap",
    "ConnectionConfig",
    "DSServer",
    "DSSession",
    "Subscription",
    "ConnectionState",
    # Events
    "ALL_EVENTS",
    "EventKind",
    "Handle",
    "DSEvent",
    "LinkEvent",
    "LoginEvent",
    "ObjectEvent",
    "ClassEvent",
    "ConfigEvent",
    "describe_kind",
    "event_from_dict",
    # Printer
    "EventPrinter",
    "PrinterState",
    # Exceptions
    "DSError",
    "ServerUnreachableError",
    "InvalidLicenseError",
    "AuthenticationError",
    "SSLVerificationError",
    "TransportError",
    "NotAuthenticatedError",
    "EventDecodeError",
]

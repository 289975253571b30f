"""
dsevents Client

HTTP for server discovery and sessions, Socket.IO for the event feed.

Example:
    >>> config = ConnectionConfig(username="admin", password="admin")
    >>> server = DSServer(config).connect()
    >>> with server.create_session("DocuShare", "admin", "admin") as session:
    ...     with session.subscribe() as events:
    ...         for event in events:
    ...             print(event.kind_name, event.principal)
"""

import logging
import queue
import threading
from enum import Enum, auto
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple, Union

import requests
import socketio
from socketio import exceptions as socketio_exceptions

from .config import ConnectionConfig
from .crypto import encrypt_password, extract_cert_sha256, load_public_key_b64, verify_cert_sha256
from .events import ALL_EVENTS, DSEvent, event_from_dict
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

logger = logging.getLogger("dsevents")

API_PREFIX = "/api/1.0"

# Socket.IO event names
EVENT_MESSAGE = "ds_event"
SUBSCRIBE_MESSAGE = "subscribe"

_AUTH_WORDS = ('password', 'credential', 'username', 'user', 'denied', 'authenticat')


class ConnectionState(Enum):
    """Event channel states."""
    DISCONNECTED = auto()  # Not yet opened
    CONNECTING = auto()    # Socket connecting / subscribe sent
    SUBSCRIBED = auto()    # Events are flowing
    CLOSED = auto()        # Cancelled or lost; never reopened


def _response_message(data: Optional[Dict[str, Any]], default: str) -> str:
    if not isinstance(data, dict):
        return default
    return data.get('message') or data.get('error') or default


def _classify_login_failure(message: str) -> DSError:
    """Map a rejected login message to the matching exception."""
    lower = message.lower()
    if 'license' in lower:
        return InvalidLicenseError(message)
    if any(word in lower for word in _AUTH_WORDS):
        return AuthenticationError(message)
    return TransportError(message)


class DSServer:
    """
    A DocuShare server reachable at the configured host and port.

    Call connect() to check the server is there and licensed, then
    create_session() to log in.
    """

    def __init__(self, config: ConnectionConfig, http: Optional[requests.Session] = None,
                 sio_factory: Optional[Callable[[], "socketio.Client"]] = None):
        self.config = config
        self.server_url = config.server_url
        self.name: Optional[str] = None
        self.version: Optional[str] = None
        self._http = http or requests.Session()
        self._sio_factory = sio_factory or (lambda: socketio.Client(reconnection=False))
        self._public_key = None

    @property
    def connected(self) -> bool:
        return self._public_key is not None

    def _request(
        self,
        method: str,
        endpoint: str,
        json: Optional[Dict[str, Any]] = None,
        session_id: Optional[str] = None,
    ) -> Tuple[int, Optional[Dict[str, Any]]]:
        """
        Send one API request and return (status_code, decoded JSON or None).

        requests exceptions are translated to dsevents exceptions here.
        """
        url = f'{self.server_url}{API_PREFIX}/{endpoint}'
        headers = {'Session-ID': session_id} if session_id else {}
        pinned = self.config.ssl_sha256

        logger.debug(f"{method} {url}")
        try:
            response = self._http.request(
                method,
                url,
                json=json,
                headers=headers,
                timeout=self.config.timeout,
                stream=bool(pinned),
            )
        except requests.exceptions.SSLError as e:
            raise SSLVerificationError(f"SSL error connecting to {self.server_url}: {e}")
        except requests.exceptions.ConnectionError:
            raise ServerUnreachableError(
                f"Cannot connect to {self.server_url}: server may be offline or unreachable"
            )
        except requests.exceptions.Timeout:
            raise ServerUnreachableError(
                f"Server at {self.server_url} did not respond within {self.config.timeout:g} seconds"
            )
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Request failed: {e}")

        try:
            if pinned:
                verify_cert_sha256(extract_cert_sha256(response), pinned)
            try:
                data = response.json()
            except ValueError:
                data = None
        finally:
            response.close()

        logger.debug(f"{method} {url} -> HTTP {response.status_code}")
        return response.status_code, data if isinstance(data, dict) else None

    def connect(self) -> "DSServer":
        """
        Discover the server: check it answers, is licensed, and fetch its key.

        Raises:
            ServerUnreachableError: nothing usable answers at host:port
            InvalidLicenseError: the server is not licensed for client sessions
            TransportError: the server answered with something unexpected
        """
        status, data = self._request('GET', 'server')

        if data is None or status == 404:
            raise ServerUnreachableError(
                f"No DocuShare server at {self.config.endpoint} (HTTP {status})"
            )
        if status != 200:
            raise TransportError(_response_message(data, f"Server discovery failed: HTTP {status}"))

        license_info = data.get('license') or {}
        if not license_info.get('valid', False):
            raise InvalidLicenseError(license_info.get('message') or InvalidLicenseError().message)

        encoded_key = data.get('public_key')
        if not encoded_key:
            raise TransportError("Server did not send its public key")
        try:
            self._public_key = load_public_key_b64(encoded_key)
        except (ValueError, TypeError) as e:
            raise TransportError(f"Invalid server public key: {e}")

        self.name = data.get('name')
        self.version = data.get('version')
        logger.info(f"Connected to {self.name or 'DocuShare'} {self.version or ''} at {self.server_url}")
        return self

    def create_session(self, domain: str, username: str, password: str) -> "DSSession":
        """
        Log in and return an authenticated session.

        The password is encrypted with the server's public key before it is sent.

        Raises:
            AuthenticationError: the server rejected the credentials
            InvalidLicenseError: the server refused the session for licensing reasons
            TransportError: any other failure
        """
        if not self.connected:
            self.connect()

        payload = {
            'domain': domain,
            'username': username,
            'password': encrypt_password(password, self._public_key),
        }
        status, data = self._request('POST', 'session', json=payload)

        if status in (401, 403):
            raise AuthenticationError(_response_message(data, AuthenticationError().message))
        if data is None:
            raise TransportError(f"Invalid login response: HTTP {status}")
        if not data.get('success'):
            raise _classify_login_failure(_response_message(data, "Login failed"))

        session_id = data.get('session_id')
        if not session_id:
            raise TransportError("Login response did not include a session id")

        logger.debug(f"Session created for {username}@{domain}")
        return DSSession(self, session_id, domain, username)

    def new_socket(self) -> "socketio.Client":
        return self._sio_factory()


class DSSession:
    """
    An authenticated session on a DocuShare server.

    Valid from login until close() or until the transport reports the
    session lost.
    """

    def __init__(self, server: DSServer, session_id: str, domain: str, username: str):
        self.server = server
        self.session_id = session_id
        self.domain = domain
        self.username = username
        self._valid = True
        self._logged_out = False
        self._lock = threading.Lock()

    @property
    def valid(self) -> bool:
        with self._lock:
            return self._valid

    def invalidate(self, reason: str = ""):
        with self._lock:
            if not self._valid:
                return
            self._valid = False
        logger.debug(f"Session invalidated ({reason})")

    def subscribe(self, kinds: Union[int, Iterable[int]] = ALL_EVENTS) -> "Subscription":
        """
        Subscribe to server events and return the event stream.

        Raises:
            NotAuthenticatedError: the session is closed or lost
            ServerUnreachableError: the event channel could not be opened
            TransportError: the server refused the subscription
        """
        if not self.valid:
            raise NotAuthenticatedError()

        subscription = Subscription(self, kinds, self.server.new_socket())
        subscription.open()
        return subscription

    def close(self):
        """
        Log out. Failures are logged; the session is invalid afterwards.

        Logout is attempted once, even after the event channel was lost.
        """
        with self._lock:
            if self._logged_out:
                return
            self._logged_out = True
        try:
            self.server._request('DELETE', 'session', session_id=self.session_id)
        except DSError as e:
            logger.warning(f"Logout failed: {e}")
        finally:
            self.invalidate("close")

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
        return False


# Queue marker for "no more events"
_CLOSED = object()


class Subscription:
    """
    A lazy, potentially infinite stream of events from one session.

    Socket.IO delivers payloads on its own thread; they are queued and
    decoded when the consumer iterates. Iteration ends when the channel is
    cancelled or lost.
    """

    def __init__(self, session: DSSession, kinds: Union[int, Iterable[int]],
                 sio: "socketio.Client", poll_interval: float = 1.0):
        self.session = session
        self.kinds: List[int] = [kinds] if isinstance(kinds, int) else list(kinds)
        self.poll_interval = poll_interval
        self._sio = sio
        self._queue: queue.Queue = queue.Queue()
        self._state = ConnectionState.DISCONNECTED
        self._state_lock = threading.Lock()

        self._sio.on(EVENT_MESSAGE, self._on_event)
        self._sio.on('disconnect', self._on_disconnect)

    @property
    def state(self) -> ConnectionState:
        with self._state_lock:
            return self._state

    @property
    def closed(self) -> bool:
        return self.state == ConnectionState.CLOSED

    def _set_state(self, new_state: ConnectionState, reason: str = "") -> ConnectionState:
        with self._state_lock:
            old_state = self._state
            self._state = new_state
        logger.debug(f"Subscription: {old_state.name} -> {new_state.name} ({reason})")
        return old_state

    def open(self):
        """Connect the event channel and send the subscribe request."""
        if self.state != ConnectionState.DISCONNECTED:
            raise DSError(f"Subscription cannot be opened from state {self.state.name}")

        self._set_state(ConnectionState.CONNECTING, "open")
        config = self.session.server.config

        try:
            self._sio.connect(
                self.session.server.server_url,
                auth={'session_id': self.session.session_id},
                transports=['websocket'],
                wait_timeout=config.timeout,
            )
        except socketio_exceptions.ConnectionError as e:
            self._set_state(ConnectionState.CLOSED, f"connect_error: {e}")
            raise ServerUnreachableError(f"Event channel connection failed: {e}")

        try:
            ack = self._sio.call(SUBSCRIBE_MESSAGE, {'kinds': self.kinds}, timeout=config.timeout)
        except socketio_exceptions.TimeoutError:
            self.cancel()
            raise TransportError("Subscription request timed out")
        except socketio_exceptions.SocketIOError as e:
            self.cancel()
            raise TransportError(f"Subscription request failed: {e}")

        if not isinstance(ack, dict) or not ack.get('success'):
            message = _response_message(ack, "Subscription refused")
            self.cancel()
            if 'session' in message.lower():
                self.session.invalidate(message)
                raise NotAuthenticatedError(message)
            raise TransportError(message)

        with self._state_lock:
            lost = self._state != ConnectionState.CONNECTING
            if not lost:
                self._state = ConnectionState.SUBSCRIBED
        if lost:
            raise TransportError("Event channel closed while subscribing")
        logger.debug(f"Subscription: CONNECTING -> SUBSCRIBED (kinds={self.kinds})")

    def _on_event(self, data):
        if self.closed:
            return
        logger.debug(f"Queued event payload: {data!r}")
        self._queue.put(data)

    def _on_disconnect(self, *args):
        old_state = self._set_state(ConnectionState.CLOSED, "socket_disconnected")
        if old_state == ConnectionState.CLOSED:
            return
        logger.warning("Event channel disconnected by the server")
        self.session.invalidate("event channel lost")
        self._queue.put(_CLOSED)

    def cancel(self):
        """Stop the stream and disconnect. Safe to call more than once."""
        old_state = self._set_state(ConnectionState.CLOSED, "cancel")
        if old_state == ConnectionState.CLOSED:
            return
        self._queue.put(_CLOSED)
        if self._sio.connected:
            self._sio.disconnect()

    def events(self) -> Iterator[DSEvent]:
        """Yield decoded events until the stream is closed; skip undecodable payloads."""
        while True:
            try:
                item = self._queue.get(timeout=self.poll_interval)
            except queue.Empty:
                continue

            if item is _CLOSED:
                # Leave the marker for any later iteration
                self._queue.put(_CLOSED)
                return

            try:
                event = event_from_dict(item)
            except EventDecodeError as e:
                logger.warning(f"Skipping event: {e}")
                continue
            yield event

    def __iter__(self) -> Iterator[DSEvent]:
        return self.events()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.cancel()
        return False

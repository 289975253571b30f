import base64
from unittest.mock import Mock

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from dsevents.client import DSServer
from dsevents.config import ConnectionConfig


def make_response(status=200, data=None):
    response = Mock()
    response.status_code = status
    if data is None:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        response.json.return_value = data
    return response


class FakeHTTP:
    """Stands in for requests.Session; routes are keyed by (method, endpoint)."""

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.requests = []

    def request(self, method, url, **kwargs):
        endpoint = url.rsplit('/api/1.0/', 1)[1]
        self.requests.append((method, endpoint, kwargs))
        result = self.routes[(method, endpoint)]
        if isinstance(result, Exception):
            raise result
        return result


class FakeSocket:
    """Stands in for socketio.Client."""

    def __init__(self, ack=None, connect_error=None):
        self.ack = {'success': True} if ack is None else ack
        self.connect_error = connect_error
        self.handlers = {}
        self.connected = False
        self.connect_kwargs = None
        self.calls = []

    def on(self, event, handler=None):
        self.handlers[event] = handler

    def connect(self, url, **kwargs):
        if self.connect_error is not None:
            raise self.connect_error
        self.url = url
        self.connect_kwargs = kwargs
        self.connected = True

    def call(self, event, data=None, timeout=None):
        self.calls.append((event, data))
        if isinstance(self.ack, Exception):
            raise self.ack
        return self.ack

    def disconnect(self):
        was_connected = self.connected
        self.connected = False
        if was_connected and 'disconnect' in self.handlers:
            self.handlers['disconnect']()

    # Server side
    def push(self, payload):
        self.handlers['ds_event'](payload)

    def drop(self):
        self.connected = False
        self.handlers['disconnect']('transport close')


@pytest.fixture(scope="session")
def private_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def public_key_b64(private_key):
    pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return base64.urlsafe_b64encode(pem).decode()


@pytest.fixture
def config():
    return ConnectionConfig(username="alice", password="s3cret", host="ds.example.com",
                            port=1099, domain="Acme", timeout=5.0)


@pytest.fixture
def server_info(public_key_b64):
    return {
        'name': 'DocuShare',
        'version': '7.5',
        'license': {'valid': True},
        'public_key': public_key_b64,
    }


@pytest.fixture
def socket():
    return FakeSocket()


@pytest.fixture
def http(server_info):
    return FakeHTTP({
        ('GET', 'server'): make_response(200, server_info),
        ('POST', 'session'): make_response(200, {'success': True, 'session_id': 'sess-1'}),
        ('DELETE', 'session'): make_response(200, {'success': True}),
    })


@pytest.fixture
def server(config, http, socket):
    return DSServer(config, http=http, sio_factory=lambda: socket)


@pytest.fixture
def session(server):
    return server.create_session("Acme", "alice", "s3cret")

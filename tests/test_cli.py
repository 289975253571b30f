import importlib
from unittest.mock import MagicMock

import pytest
import requests

from dsevents import cli
from dsevents.client import DSServer
from dsevents.events import EventKind, LinkEvent
from dsevents.exceptions import AuthenticationError, ServerUnreachableError, TransportError

from .conftest import make_response


@pytest.fixture(autouse=True)
def no_logging_setup(monkeypatch):
    # Keep main() from attaching handlers to pytest's captured streams
    monkeypatch.setattr(cli.logging, "basicConfig", lambda **kwargs: None)


@pytest.fixture
def fake_server(monkeypatch, http, socket):
    """Make the command line talk to the fake HTTP and socket backends."""
    created = []

    def factory(config):
        server = DSServer(config, http=http, sio_factory=lambda: socket)
        created.append(server)
        return server

    # dsevents.bootstrap the attribute is the function; patch the submodule itself
    monkeypatch.setattr(importlib.import_module("dsevents.bootstrap"), "DSServer", factory)
    return created


@pytest.fixture
def no_connect(monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("no connection should be attempted")
    monkeypatch.setattr(cli, "bootstrap", fail)


def test_parse_config():
    config, verbose = cli.parse_config(
        ["-u", "alice", "-p", "s3cret", "-h", "ds.example.com", "-port", "2099", "-d", "Acme"],
        environ={},
    )
    assert (config.username, config.password) == ("alice", "s3cret")
    assert (config.host, config.port, config.domain) == ("ds.example.com", 2099, "Acme")
    assert not config.use_tls
    assert verbose is False


def test_parse_config_defaults():
    config, _ = cli.parse_config(["-u", "alice", "-p", "s3cret"], environ={})
    assert (config.host, config.port, config.domain) == ("localhost", 1099, "DocuShare")


def test_parse_config_from_environment():
    environ = {'DS_USERNAME': 'env-user', 'DS_PASSWORD': 'env-pass', 'DS_HOST': 'env-host'}
    config, _ = cli.parse_config(["-h", "cli-host", "--tls", "-v"], environ=environ)
    assert (config.username, config.host, config.use_tls) == ("env-user", "cli-host", True)


@pytest.mark.parametrize("argv", [
    [],
    ["-u", "alice"],
    ["-p", "s3cret"],
    ["-u", "", "-p", "s3cret"],
])
def test_missing_credentials(argv, capsys, no_connect):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(argv, environ={})
    assert excinfo.value.code == 2
    err = capsys.readouterr().err
    assert "usage: dslistevents" in err
    assert "-u" in err and "-p" in err


def test_malformed_port(capsys, no_connect):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["-u", "alice", "-p", "s3cret", "-port", "rmi"], environ={})
    assert excinfo.value.code == 2
    err = capsys.readouterr().err
    assert "usage: dslistevents" in err
    assert cli.PORT_ERROR in err


def test_malformed_port_in_environment(capsys, no_connect):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["-u", "alice", "-p", "s3cret"], environ={'DS_PORT': 'rmi'})
    assert excinfo.value.code == 2
    assert cli.PORT_ERROR in capsys.readouterr().err


def test_help(capsys):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--help"], environ={})
    assert excinfo.value.code == 0
    out = capsys.readouterr().out
    assert "-port rmiport" in out
    assert "-h host" in out


def test_unreachable_host(http, socket, fake_server, capsys):
    http.routes[('GET', 'server')] = requests.exceptions.ConnectionError("No route to host")

    assert cli.main(["-u", "alice", "-p", "s3cret", "-h", "nowhere"], environ={}) == 1

    out = capsys.readouterr().out
    assert "Connecting to nowhere:1099" in out
    assert "Unable to reach the DocuShare server at nowhere:1099." in out
    assert "Logging in" not in out
    assert socket.calls == []


def test_login_rejected(http, socket, fake_server, capsys):
    http.routes[('POST', 'session')] = make_response(401, {'message': 'Invalid password'})

    assert cli.main(["-u", "alice", "-p", "wrong"], environ={}) == 1

    out = capsys.readouterr().out
    assert "Logging in to DocuShare as user alice.... Failed!" in out
    assert "Invalid password" in out
    assert socket.calls == []


def test_unlicensed(http, server_info, fake_server, capsys):
    http.routes[('GET', 'server')] = make_response(200, dict(server_info, license={'valid': False}))

    assert cli.main(["-u", "alice", "-p", "s3cret"], environ={}) == 1
    assert "does not have the required license" in capsys.readouterr().out


def test_bootstrap_error_messages_are_distinct(monkeypatch, capsys):
    messages = []
    for error in (ServerUnreachableError("x"), AuthenticationError("x"), TransportError("x")):
        def fail(config, error=error):
            raise error
        monkeypatch.setattr(cli, "bootstrap", fail)
        assert cli.main(["-u", "alice", "-p", "s3cret"], environ={}) == 1
        messages.append(capsys.readouterr().out)
    assert len(set(messages)) == 3


def _feed(*events, interrupt=True):
    for event in events:
        yield event
    if interrupt:
        raise KeyboardInterrupt


def _session_with(subscription):
    session = MagicMock()
    session.subscribe.return_value = subscription
    return session


def test_prints_events_until_interrupted(monkeypatch, capsys):
    subscription = MagicMock()
    subscription.__iter__.return_value = _feed(
        LinkEvent(kind=EventKind.LINK_CHANGED, principal="User-2", link_types=["Version", "Rendition"]),
    )
    session = _session_with(subscription)
    monkeypatch.setattr(cli, "bootstrap", lambda config: session)

    assert cli.main(["-u", "alice", "-p", "s3cret"], environ={}) == 0

    out = capsys.readouterr().out
    assert "Press CTRL C to exit...." in out
    assert "Link Types: Version  Rendition" in out
    session.subscribe.assert_called_once_with(-1)
    subscription.cancel.assert_called_once_with()
    session.close.assert_called_once_with()


def test_stream_closed_by_server(monkeypatch, capsys):
    subscription = MagicMock()
    subscription.__iter__.return_value = _feed(interrupt=False)
    session = _session_with(subscription)
    monkeypatch.setattr(cli, "bootstrap", lambda config: session)

    assert cli.main(["-u", "alice", "-p", "s3cret"], environ={}) == 1
    assert "Event channel closed by the server." in capsys.readouterr().out
    session.close.assert_called_once_with()


def test_subscribe_failure(monkeypatch, capsys):
    session = MagicMock()
    session.subscribe.side_effect = TransportError("Subscription refused")
    monkeypatch.setattr(cli, "bootstrap", lambda config: session)

    assert cli.main(["-u", "alice", "-p", "s3cret"], environ={}) == 1
    assert "Could not subscribe to events: Subscription refused" in capsys.readouterr().out
    session.close.assert_called_once_with()


def test_end_to_end(http, socket, fake_server, monkeypatch, capsys):
    real_call = socket.call

    def call_and_deliver(event, data=None, timeout=None):
        ack = real_call(event, data, timeout)
        # Server pushes one event right after acknowledging, then goes away
        socket.push({'type': 12, 'principal': '', 'username': 'mallory', 'domain': 'Acme'})
        return ack

    socket.call = call_and_deliver

    def drop_after_first(self, event, _handle=cli.EventPrinter.handle):
        result = _handle(self, event)
        socket.drop()
        return result

    monkeypatch.setattr(cli.EventPrinter, "handle", drop_after_first)

    assert cli.main(["-u", "alice", "-p", "s3cret"], environ={}) == 1

    out = capsys.readouterr().out
    assert "Logged in!" in out
    assert "Event fired: 12 (LOGIN_FAILED)" in out
    assert " mallory -> Acme" in out
    assert "Event channel closed by the server." in out

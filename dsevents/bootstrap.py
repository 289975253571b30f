"""
dsevents Session Bootstrap

Connects to the server and logs in, printing progress as it goes.
"""

import sys
from typing import Optional, TextIO

from .client import DSServer, DSSession
from .config import ConnectionConfig
from .exceptions import DSError


def bootstrap(config: ConnectionConfig, out: Optional[TextIO] = None,
              server: Optional[DSServer] = None) -> DSSession:
    """
    Connect to the server described by config and return a logged-in session.

    Progress lines are written to out (stdout by default) before the outcome
    is known. Failures propagate as DSError subclasses: ServerUnreachableError,
    InvalidLicenseError, AuthenticationError, SSLVerificationError or
    TransportError.
    """
    out = out if out is not None else sys.stdout
    server = server if server is not None else DSServer(config)

    out.write(f"Connecting to {config.endpoint}\n")
    out.flush()
    server.connect()

    out.write(f"Logging in to {config.domain} as user {config.username}.... ")
    out.flush()
    try:
        session = server.create_session(config.domain, config.username, config.password)
    except DSError:
        out.write("Failed!\n")
        out.flush()
        raise

    out.write("Logged in!\n\n")
    out.flush()
    return session

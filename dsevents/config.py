"""
dsevents Connection Configuration

Connection parameters are parsed once and never change afterwards.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 1099
DEFAULT_DOMAIN = "DocuShare"
DEFAULT_TIMEOUT = 30.0

ENV_HOST = "DS_HOST"
ENV_PORT = "DS_PORT"
ENV_DOMAIN = "DS_DOMAIN"
ENV_USERNAME = "DS_USERNAME"
ENV_PASSWORD = "DS_PASSWORD"


@dataclass(frozen=True)
class ConnectionConfig:
    """
    Immutable description of where and how to log in.

    Attributes:
        host: DocuShare host name
        port: DocuShare RMI/API port
        domain: User domain to log in to
        username: User to log in as
        password: User password
        use_tls: Talk https/wss instead of http/ws
        ssl_sha256: Optional SHA256 fingerprint of the server certificate
        timeout: Seconds to wait for any single server response
    """
    username: str
    password: str
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    domain: str = DEFAULT_DOMAIN
    use_tls: bool = False
    ssl_sha256: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT

    @property
    def server_url(self) -> str:
        scheme = "https" if self.use_tls else "http"
        return f"{scheme}://{self.host}:{self.port}"

    @property
    def endpoint(self) -> str:
        """host:port, as shown to the operator."""
        return f"{self.host}:{self.port}"

    def __repr__(self) -> str:
        # Keep the password out of logs and tracebacks
        return (
            f"ConnectionConfig(host={self.host!r}, port={self.port!r}, "
            f"domain={self.domain!r}, username={self.username!r}, use_tls={self.use_tls!r})"
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "ConnectionConfig":
        """
        Build a config from DS_* environment variables.

        Keyword overrides that are not None win over the environment.
        Raises ValueError if DS_PORT is not an integer.
        """
        env = os.environ if environ is None else environ
        values = {
            'host': env.get(ENV_HOST, DEFAULT_HOST),
            'port': env.get(ENV_PORT, DEFAULT_PORT),
            'domain': env.get(ENV_DOMAIN, DEFAULT_DOMAIN),
            'username': env.get(ENV_USERNAME),
            'password': env.get(ENV_PASSWORD),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        values['port'] = int(values['port'])
        return cls(**values)

"""
dsevents Custom Exceptions

Every failure the client can report is a DSError. The bootstrap failures
are distinct classes so the command line can tell the operator exactly
what went wrong.
"""


class DSError(Exception):
    """Base exception for all dsevents errors."""

    def __init__(self, message: str = "A DocuShare error occurred"):
        self.message = message
        super().__init__(self.message)


class ServerUnreachableError(DSError):
    """Raised when the server cannot be reached at the configured host and port."""

    def __init__(self, message: str = "Unable to reach the DocuShare server."):
        super().__init__(message)


class InvalidLicenseError(DSError):
    """Raised when the server lacks the license required for client sessions."""

    def __init__(self, message: str = "The DocuShare server does not have the required license."):
        super().__init__(message)


class AuthenticationError(DSError):
    """Raised when the server rejects the domain, username or password."""

    def __init__(self, message: str = "Authentication failed."):
        super().__init__(message)


class SSLVerificationError(DSError):
    """Raised when the TLS handshake or certificate pinning fails."""

    def __init__(self, message: str = "SSL certificate verification failed."):
        super().__init__(message)


class TransportError(DSError):
    """Raised for any other failure talking to the server."""

    def __init__(self, message: str = "Communication with the DocuShare server failed."):
        super().__init__(message)


class NotAuthenticatedError(DSError):
    """Raised when a closed or invalidated session is used."""

    def __init__(self, message: str = "Session is not authenticated. Log in first."):
        super().__init__(message)


class EventDecodeError(DSError):
    """Raised when an event payload from the server cannot be decoded."""

    def __init__(self, message: str = "Malformed event payload."):
        super().__init__(message)

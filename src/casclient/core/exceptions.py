"""
casclient Exception Types

Custom exceptions for CAS client errors.

Network and protocol failures during ticket validation are NOT raised to
callers; they surface as a False return. These exceptions cover
configuration mistakes and storage failures.
"""

from typing import Optional


class CASClientError(Exception):
    """Base exception for all casclient errors."""

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class ConfigurationError(CASClientError):
    """
    Invalid client configuration.

    Raised when a settings mapping is missing required URLs or carries
    keys the client does not understand.
    """

    pass


class ProtocolError(CASClientError):
    """
    CAS protocol-level error.

    This indicates the CAS server answered with a response that could not
    be interpreted, or explicitly rejected the ticket. The code carries the
    CAS failure code (e.g. INVALID_TICKET) when one was sent.
    """

    # Failure codes defined by the CAS 2.0 protocol
    INVALID_REQUEST = "INVALID_REQUEST"
    INVALID_TICKET = "INVALID_TICKET"
    INVALID_SERVICE = "INVALID_SERVICE"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # Local failure codes
    MALFORMED_RESPONSE = "MALFORMED_RESPONSE"
    MISSING_USER = "MISSING_USER"
    TRANSPORT_ERROR = "TRANSPORT_ERROR"


class CacheError(CASClientError):
    """
    Ticket cache storage failed.

    Raised when a cache entry cannot be written to its backend.
    """

    pass


class SessionError(CASClientError):
    """Session state storage failed."""

    pass


class SessionNamespaceError(SessionError):
    """
    A session namespace could not be started.

    Typically the underlying session was already started by another
    component. Callers of open_session_store() never see this; it
    triggers the fallback to the mapping backend.
    """

    pass


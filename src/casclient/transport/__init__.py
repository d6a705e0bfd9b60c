"""
casclient Transport Layer

Outbound HTTP used for CAS ticket validation and directory lookups.
"""

from casclient.transport.http import DEFAULT_TIMEOUT, HttpTransport, HttpxTransport

__all__ = [
    "DEFAULT_TIMEOUT",
    "HttpTransport",
    "HttpxTransport",
]

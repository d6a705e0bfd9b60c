"""
casclient Protocol Module

Implementation of the CAS 2.0 service-provider protocol.

Components:
- response: serviceValidate response parsing
- client: CASClient, CASConfig
- logout: single-logout notification handling
"""

from casclient.protocol.response import parse_validation_response
from casclient.protocol.logout import (
    LogoutOutcome,
    SingleLogoutHandler,
    extract_session_index,
    is_logout_request,
)
from casclient.protocol.client import (
    CASClient,
    CASConfig,
    ticket_from_query,
)

__all__ = [
    # Parsing
    "parse_validation_response",
    # Logout
    "LogoutOutcome",
    "SingleLogoutHandler",
    "extract_session_index",
    "is_logout_request",
    # Client
    "CASClient",
    "CASConfig",
    "ticket_from_query",
]

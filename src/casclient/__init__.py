"""
casclient - Central Authentication Service client

This package implements the service-provider side of the CAS 2.0
single-sign-on protocol.

Features:
- Login/logout redirect URLs (default, gateway and renew login)
- serviceValidate ticket validation over HTTP with an explicit timeout
- Per-session username/ticket storage with a namespace-or-mapping backend
- SHA-512-keyed ticket replay cache (file-backed or in-memory)
- Single-logout notification handling
- Directory person records for the authenticated user

Example Usage:
    from casclient import CASClient, open_session_store, ticket_from_query

    client = CASClient(
        service_url="https://app.example.edu/",
        cas_url="https://login.example.edu/cas",
        ticket=ticket_from_query(request.query),
        session=open_session_store(session=request.session),
    )
    if client.ticket and client.validate_ticket():
        print(f"Logged in as {client.get_username()}")
    elif client.is_ticket_expired():
        redirect(client.get_login_url())
"""

from casclient.core.types import LoginMode, ValidationResult
from casclient.cache import FileTicketCache, MemoryTicketCache, TicketCache
from casclient.session import SessionStore, open_session_store
from casclient.protocol import (
    CASClient,
    CASConfig,
    LogoutOutcome,
    SingleLogoutHandler,
    ticket_from_query,
)
from casclient.directory import PersonDataQuery, PersonRecord

__version__ = "0.1.0"

__all__ = [
    # Main API
    "CASClient",
    "CASConfig",
    "LoginMode",
    "ValidationResult",
    "ticket_from_query",
    # Logout
    "LogoutOutcome",
    "SingleLogoutHandler",
    # Storage
    "FileTicketCache",
    "MemoryTicketCache",
    "TicketCache",
    "SessionStore",
    "open_session_store",
    # Directory
    "PersonDataQuery",
    "PersonRecord",
    # Metadata
    "__version__",
]

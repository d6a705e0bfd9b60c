"""
casclient Session Module

Per-user storage of the authenticated username and accepted ticket.
"""

from casclient.session.store import (
    DEFAULT_NAMESPACE,
    KeyedSessionManager,
    MappingSessionStore,
    NamespaceSessionStore,
    SessionNamespaceManager,
    SessionStore,
    open_session_store,
)

__all__ = [
    "DEFAULT_NAMESPACE",
    "KeyedSessionManager",
    "MappingSessionStore",
    "NamespaceSessionStore",
    "SessionNamespaceManager",
    "SessionStore",
    "open_session_store",
]

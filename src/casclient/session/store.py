"""
casclient Session State Store

Per-user session storage for the authenticated username and the ticket
the user was accepted with.

Two backends with identical semantics:
- NamespaceSessionStore: a namespace handed out by a session manager
- MappingSessionStore: a dict kept under a fixed key of the ambient
  request session (e.g. a framework's session mapping)

open_session_store() tries the namespace manager first and silently falls
back to the mapping backend when the namespace cannot be started. Callers
only ever see get()/set()/clear().
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, MutableMapping, Optional

import attrs
import structlog

from casclient.core.exceptions import SessionNamespaceError
from casclient.core.types import SessionField

logger = structlog.get_logger()

DEFAULT_NAMESPACE = "casclient.CASClient"


# =============================================================================
# STORE INTERFACE
# =============================================================================


class SessionStore(ABC):
    """Key/value view of one user's CAS session state."""

    @abstractmethod
    def get(self, key: str) -> Any:
        """Return the value for key, or None if unset."""
        ...

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Store a value. A None value reads back as unset."""
        ...

    def clear(self) -> None:
        """Reset every CAS session field to None."""
        for key in SessionField.ALL:
            self.set(key, None)


# =============================================================================
# NAMESPACE MANAGERS
# =============================================================================


class SessionNamespaceManager(ABC):
    """Hands out isolated per-component namespaces of a user session."""

    @abstractmethod
    def namespace(self, name: str) -> MutableMapping[str, Any]:
        """
        Start (or reopen) the namespace called name.

        Raises:
            SessionNamespaceError: If the namespace cannot be started
        """
        ...


@attrs.define
class KeyedSessionManager(SessionNamespaceManager):
    """
    Namespace manager over a mapping of per-namespace dicts.

    Once lock()ed, for instance because another component already started
    and committed the underlying session, new namespaces are refused.
    Namespaces opened before the lock keep working.
    """

    storage: MutableMapping[str, Dict[str, Any]] = attrs.Factory(dict)
    _locked: bool = False

    def lock(self) -> None:
        self._locked = True

    @property
    def locked(self) -> bool:
        return self._locked

    def namespace(self, name: str) -> MutableMapping[str, Any]:
        if name in self.storage:
            return self.storage[name]
        if self._locked:
            raise SessionNamespaceError(
                f"Session already started; cannot open namespace {name!r}"
            )
        self.storage[name] = {}
        return self.storage[name]


# =============================================================================
# BACKENDS
# =============================================================================


@attrs.define
class NamespaceSessionStore(SessionStore):
    """Session store backed by a managed namespace."""

    namespace: MutableMapping[str, Any]

    def get(self, key: str) -> Any:
        return self.namespace.get(key)

    def set(self, key: str, value: Any) -> None:
        self.namespace[key] = value


@attrs.define
class MappingSessionStore(SessionStore):
    """
    Session store kept under one key of a raw session mapping.

    The bucket is re-assigned on every write so that framework sessions
    which track modification by assignment persist the change.
    """

    session: MutableMapping[str, Any]
    namespace_key: str = DEFAULT_NAMESPACE

    def __attrs_post_init__(self) -> None:
        if not isinstance(self.session.get(self.namespace_key), dict):
            self.session[self.namespace_key] = {}

    def _bucket(self) -> Dict[str, Any]:
        bucket = self.session.get(self.namespace_key)
        return bucket if isinstance(bucket, dict) else {}

    def get(self, key: str) -> Any:
        return self._bucket().get(key)

    def set(self, key: str, value: Any) -> None:
        bucket = dict(self._bucket())
        bucket[key] = value
        self.session[self.namespace_key] = bucket


def open_session_store(
    manager: Optional[SessionNamespaceManager] = None,
    session: Optional[MutableMapping[str, Any]] = None,
    namespace: str = DEFAULT_NAMESPACE,
) -> SessionStore:
    """
    Attach to the user's session.

    Tries the namespace manager first; if it refuses, falls back to a
    bucket under namespace in the raw session mapping. With neither, a
    private dict backs the store; state then lasts for this object only,
    so the login is forgotten on the next request. This is logged at
    warning level as session_store_ephemeral.

    Args:
        manager: Session namespace manager, if the host provides one
        session: Raw session mapping of the current request
        namespace: Namespace name / bucket key

    Returns:
        SessionStore for the CAS fields
    """
    if manager is not None:
        try:
            return NamespaceSessionStore(manager.namespace(namespace))
        except SessionNamespaceError as e:
            logger.debug(
                "session_namespace_fallback",
                namespace=namespace,
                reason=str(e),
            )

    if session is None:
        logger.warning(
            "session_store_ephemeral",
            namespace=namespace,
            reason="no session mapping to store CAS state in",
        )
        session = {}
    return MappingSessionStore(session, namespace)

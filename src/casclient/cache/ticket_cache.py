"""
CAS Service Ticket Cache

Replay prevention and validity tracking for CAS service tickets.

A ticket is recorded once the CAS server has validated it. Later requests
ask the cache whether the ticket held in the session is still valid,
without contacting the CAS server again. A single-logout notification
removes the ticket, which ends the session on the next check.

Entries are keyed by the SHA-512 digest of the ticket, never the ticket
itself, so a leaked cache does not leak replayable tickets.

Lifetime changes are not retroactive: every entry keeps the lifetime it
was recorded with.
"""

from __future__ import annotations

import hashlib
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional, Tuple

import attrs
import structlog

logger = structlog.get_logger()

DEFAULT_TICKET_LIFETIME = 60 * 60


def hash_ticket(ticket: str) -> str:
    """Return the SHA-512 hex digest used as the cache key for a ticket."""
    return hashlib.sha512(ticket.encode("utf-8")).hexdigest()


def _check_lifetime(seconds: int) -> int:
    if seconds <= 0:
        raise ValueError(f"Ticket lifetime must be positive, got {seconds}")
    return seconds


# =============================================================================
# CACHE INTERFACE
# =============================================================================


class TicketCache(ABC):
    """
    Keyed, time-bounded store of validated tickets.

    Implementations must give read-your-writes consistency for a single
    ticket, and writers of different tickets must not interfere.
    """

    @property
    @abstractmethod
    def lifetime(self) -> int:
        """Lifetime in seconds applied to newly recorded tickets."""
        ...

    @abstractmethod
    def set_lifetime(self, seconds: int) -> None:
        """Change the lifetime for tickets recorded from now on."""
        ...

    @abstractmethod
    def record(self, ticket: str) -> None:
        """Record a ticket as valid as of now, replacing any prior entry."""
        ...

    @abstractmethod
    def remove(self, ticket: str) -> None:
        """Forget a ticket. No-op if it is not cached."""
        ...

    @abstractmethod
    def is_valid(self, ticket: Optional[str]) -> bool:
        """True iff an unexpired entry exists for the ticket."""
        ...


# =============================================================================
# IN-MEMORY CACHE
# =============================================================================


@attrs.define
class MemoryTicketCache(TicketCache):
    """
    Process-local ticket cache.

    Thread-safe for concurrent requests within one process. Validity does
    not survive a restart; use FileTicketCache for that.

    Example:
        cache = MemoryTicketCache(ticket_lifetime=600)
        cache.record("ST-1-abc")
        cache.is_valid("ST-1-abc")   # True
        cache.remove("ST-1-abc")
        cache.is_valid("ST-1-abc")   # False
    """

    ticket_lifetime: int = attrs.field(
        default=DEFAULT_TICKET_LIFETIME, converter=_check_lifetime
    )

    # Hard bound; beyond it expired entries are purged, then the oldest evicted
    max_entries: int = 10000

    clock: Callable[[], float] = time.time

    # digest -> (recorded_at, lifetime)
    _entries: Dict[str, Tuple[float, int]] = attrs.Factory(dict)
    _lock: threading.RLock = attrs.Factory(threading.RLock)
    _logger: structlog.BoundLogger = attrs.Factory(lambda: structlog.get_logger())

    @property
    def lifetime(self) -> int:
        return self.ticket_lifetime

    def set_lifetime(self, seconds: int) -> None:
        self.ticket_lifetime = _check_lifetime(seconds)

    def record(self, ticket: str) -> None:
        key = hash_ticket(ticket)
        now = self.clock()

        with self._lock:
            # Re-insert so dict order stays oldest-first
            self._entries.pop(key, None)
            self._entries[key] = (now, self.ticket_lifetime)

            if len(self._entries) > self.max_entries:
                self._purge_expired_locked(now)
                self._evict_oldest_locked()

            self._logger.debug(
                "ticket_cached",
                ticket_hash=key[:12],
                lifetime=self.ticket_lifetime,
                cache_size=len(self._entries),
            )

    def remove(self, ticket: str) -> None:
        if not ticket:
            return
        key = hash_ticket(ticket)
        with self._lock:
            self._entries.pop(key, None)

    def is_valid(self, ticket: Optional[str]) -> bool:
        if not ticket:
            return False
        key = hash_ticket(ticket)
        now = self.clock()

        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False
            recorded_at, lifetime = entry
            if now >= recorded_at + lifetime:
                del self._entries[key]
                return False
            return True

    def purge_expired(self) -> int:
        """
        Remove expired entries from cache.

        Returns:
            Number of entries removed
        """
        now = self.clock()
        with self._lock:
            return self._purge_expired_locked(now)

    def _purge_expired_locked(self, now: float) -> int:
        """Internal cleanup (must hold lock)."""
        expired_keys = [
            key for key, (recorded_at, lifetime) in self._entries.items()
            if now >= recorded_at + lifetime
        ]

        for key in expired_keys:
            del self._entries[key]

        if expired_keys:
            self._logger.debug(
                "cache_cleanup",
                removed=len(expired_keys),
                remaining=len(self._entries),
            )

        return len(expired_keys)

    def _evict_oldest_locked(self) -> int:
        """Drop the oldest recorded entries down to max_entries (must hold lock)."""
        evicted = 0
        while len(self._entries) > self.max_entries:
            del self._entries[next(iter(self._entries))]
            evicted += 1

        if evicted:
            self._logger.warning(
                "cache_evicted",
                evicted=evicted,
                max_entries=self.max_entries,
            )
        return evicted

    def clear(self) -> int:
        """
        Clear all entries from cache.

        Returns:
            Number of entries cleared
        """
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            return count

    @property
    def size(self) -> int:
        """Current number of cached tickets, expired ones included."""
        with self._lock:
            return len(self._entries)

    def get_stats(self) -> Dict[str, int]:
        """Get cache statistics."""
        with self._lock:
            return {
                "size": len(self._entries),
                "max_entries": self.max_entries,
                "lifetime": self.ticket_lifetime,
            }

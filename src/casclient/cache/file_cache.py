"""
File-backed CAS Ticket Cache

Default ticket cache. Each validated ticket is one small JSON file named
after the ticket digest, so validity survives process restarts and is
shared by every worker process on the host.

Entry layout (cas_ticket_<sha512 hex>.json):
    {"recorded_at": <unix time>, "lifetime": <seconds>}

Writes go to a temporary file in the same directory and are moved into
place with os.replace(), which is atomic on POSIX and Windows. Readers
therefore see either the old entry or the new one, and writers of
different tickets never touch the same file.
"""

from __future__ import annotations

import json
import os
import tempfile
import time
from typing import Any, Callable, Dict, Iterator, Optional, Tuple

import attrs
import structlog

from casclient.cache.ticket_cache import (
    DEFAULT_TICKET_LIFETIME,
    TicketCache,
    _check_lifetime,
    hash_ticket,
)
from casclient.core.exceptions import CacheError

logger = structlog.get_logger()

ENTRY_PREFIX = "cas_ticket_"
ENTRY_SUFFIX = ".json"


def default_cache_dir(session_dir: Optional[str] = None) -> str:
    """
    Directory for the default file cache.

    The session-storage directory when one is given and exists, otherwise
    the platform temp directory.
    """
    if session_dir and os.path.isdir(session_dir):
        return session_dir
    return tempfile.gettempdir()


@attrs.define
class FileTicketCache(TicketCache):
    """
    Ticket cache stored as one file per ticket digest.

    Example:
        cache = FileTicketCache("/var/lib/php/sessions")
        cache.record(ticket)
        if not cache.is_valid(ticket):
            ...
    """

    cache_dir: str = attrs.field(factory=default_cache_dir)
    ticket_lifetime: int = attrs.field(
        default=DEFAULT_TICKET_LIFETIME, converter=_check_lifetime
    )
    clock: Callable[[], float] = time.time
    _logger: Any = attrs.Factory(lambda: structlog.get_logger())

    def __attrs_post_init__(self) -> None:
        try:
            os.makedirs(self.cache_dir, exist_ok=True)
        except OSError as e:
            raise CacheError(
                f"Cannot create ticket cache directory {self.cache_dir}: {e}"
            ) from e

    @property
    def lifetime(self) -> int:
        return self.ticket_lifetime

    def set_lifetime(self, seconds: int) -> None:
        self.ticket_lifetime = _check_lifetime(seconds)

    def entry_path(self, ticket: str) -> str:
        """Path of the cache file for a ticket."""
        return self._path_for_digest(hash_ticket(ticket))

    def _path_for_digest(self, digest: str) -> str:
        return os.path.join(self.cache_dir, f"{ENTRY_PREFIX}{digest}{ENTRY_SUFFIX}")

    def record(self, ticket: str) -> None:
        digest = hash_ticket(ticket)
        entry = {"recorded_at": self.clock(), "lifetime": self.ticket_lifetime}

        try:
            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{ENTRY_PREFIX}", suffix=".tmp", dir=self.cache_dir
            )
        except OSError as e:
            raise CacheError(f"Cannot write ticket cache entry: {e}") from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(entry, f)
            os.replace(tmp_path, self._path_for_digest(digest))
        except OSError as e:
            _unlink_quietly(tmp_path)
            raise CacheError(f"Cannot write ticket cache entry: {e}") from e

        self._logger.debug(
            "ticket_cached",
            ticket_hash=digest[:12],
            lifetime=self.ticket_lifetime,
        )

    def remove(self, ticket: str) -> None:
        if not ticket:
            return
        try:
            _unlink_quietly(self.entry_path(ticket))
        except OSError as e:
            raise CacheError(f"Cannot remove ticket cache entry: {e}") from e

    def is_valid(self, ticket: Optional[str]) -> bool:
        if not ticket:
            return False
        path = self.entry_path(ticket)
        entry = self._load(path)
        if entry is None:
            return False

        recorded_at, lifetime = entry
        if self.clock() >= recorded_at + lifetime:
            self._discard(path)
            return False
        return True

    def _discard(self, path: str) -> bool:
        """Delete an expired or corrupt entry; failures are logged, not raised."""
        try:
            _unlink_quietly(path)
        except OSError as e:
            self._logger.warning(
                "ticket_cache_cleanup_failed",
                path=path,
                error=str(e),
            )
            return False
        return True

    def _load(self, path: str) -> Optional[Tuple[float, int]]:
        """Read an entry; missing, unreadable or corrupt entries are None."""
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            return float(data["recorded_at"]), int(data["lifetime"])
        except FileNotFoundError:
            return None
        except (OSError, ValueError, KeyError, TypeError) as e:
            self._logger.warning(
                "ticket_cache_entry_unreadable",
                path=path,
                error=str(e),
            )
            return None

    def _entry_paths(self) -> Iterator[str]:
        for name in os.listdir(self.cache_dir):
            if name.startswith(ENTRY_PREFIX) and name.endswith(ENTRY_SUFFIX):
                yield os.path.join(self.cache_dir, name)

    def purge_expired(self) -> int:
        """
        Remove expired and corrupt entries from the cache directory.

        Returns:
            Number of entries removed
        """
        now = self.clock()
        removed = 0
        for path in self._entry_paths():
            entry = self._load(path)
            if entry is None or now >= entry[0] + entry[1]:
                if self._discard(path):
                    removed += 1

        if removed:
            self._logger.debug("cache_cleanup", removed=removed)
        return removed

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        return {
            "size": sum(1 for _ in self._entry_paths()),
            "cache_dir": self.cache_dir,
            "lifetime": self.ticket_lifetime,
        }


def _unlink_quietly(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass

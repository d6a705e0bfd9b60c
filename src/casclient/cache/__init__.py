"""
casclient Ticket Cache Module

Replay prevention and validity tracking for validated service tickets.

Components:
- ticket_cache: TicketCache interface, SHA-512 keying, in-memory backend
- file_cache: file-backed default backend shared across processes
"""

from casclient.cache.ticket_cache import (
    DEFAULT_TICKET_LIFETIME,
    MemoryTicketCache,
    TicketCache,
    hash_ticket,
)
from casclient.cache.file_cache import FileTicketCache, default_cache_dir

__all__ = [
    "DEFAULT_TICKET_LIFETIME",
    "FileTicketCache",
    "MemoryTicketCache",
    "TicketCache",
    "default_cache_dir",
    "hash_ticket",
]

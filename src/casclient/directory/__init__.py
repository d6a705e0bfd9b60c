"""
casclient Directory Module

Person records for authenticated users, from LDAP or a directory service.

Components:
- person: PersonRecord and record normalization
- query: PersonDataQuery with LDAP-then-directory fallback
"""

from casclient.directory.person import (
    SOURCE_DIRECTORY,
    SOURCE_LDAP,
    DirectorySchema,
    PersonRecord,
    sanitize_user_record,
)
from casclient.directory.query import PersonDataQuery

__all__ = [
    "SOURCE_DIRECTORY",
    "SOURCE_LDAP",
    "DirectorySchema",
    "PersonDataQuery",
    "PersonRecord",
    "sanitize_user_record",
]

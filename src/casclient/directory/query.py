"""
Directory Lookup

Resolves an authenticated CAS username into a PersonRecord. An LDAP
source is tried first; if it is absent, fails or finds nothing, the
HTTP directory service is queried for a JSON record.

The LDAP search itself is supplied by the host application as a callable
returning the entry's attribute map (or None).
"""

from __future__ import annotations

import json
from typing import Any, Callable, Mapping, Optional
from urllib.parse import urlencode

import attrs
import structlog
from returns.result import Failure

from casclient.directory.person import (
    SOURCE_DIRECTORY,
    SOURCE_LDAP,
    DirectorySchema,
    PersonRecord,
    sanitize_user_record,
)
from casclient.transport.http import HttpTransport, HttpxTransport

logger = structlog.get_logger()

LdapSource = Callable[[str], Optional[Mapping[str, Any]]]


@attrs.define
class PersonDataQuery:
    """
    Person lookup with LDAP-then-directory fallback.

    Example:
        query = PersonDataQuery(
            mail_domain="example.edu",
            directory_url="https://directory.example.edu/service.php",
            ldap_source=my_ldap_search,
        )
        person = query.get_user_data(client.get_username())
    """

    mail_domain: str
    directory_url: Optional[str] = None
    ldap_source: Optional[LdapSource] = None
    schema: DirectorySchema = attrs.Factory(DirectorySchema)
    _transport: Optional[HttpTransport] = attrs.field(default=None, alias="transport")
    _logger: Any = attrs.Factory(lambda: structlog.get_logger())

    @property
    def transport(self) -> HttpTransport:
        if self._transport is None:
            self._transport = HttpxTransport()
        return self._transport

    def get_user_data(self, username: str) -> Optional[PersonRecord]:
        """
        Look up a user.

        Returns:
            PersonRecord, or None if no source knows the user
        """
        if not username:
            return None

        data = self._query_ldap(username)
        if data:
            return sanitize_user_record(data, SOURCE_LDAP, self.mail_domain, self.schema)

        data = self._query_directory(username)
        if data:
            return sanitize_user_record(data, SOURCE_DIRECTORY, self.mail_domain, self.schema)

        self._logger.info("person_not_found", username=username)
        return None

    def _query_ldap(self, username: str) -> Optional[Mapping[str, Any]]:
        if self.ldap_source is None:
            return None
        try:
            return self.ldap_source(username)
        except Exception as e:
            self._logger.warning(
                "ldap_lookup_failed",
                username=username,
                error_type=type(e).__name__,
                error=str(e),
            )
            return None

    def directory_query_url(self, username: str) -> str:
        separator = "&" if "?" in (self.directory_url or "") else "?"
        return f"{self.directory_url}{separator}{urlencode({'format': 'json', 'uid': username})}"

    def _query_directory(self, username: str) -> Optional[Mapping[str, Any]]:
        if not self.directory_url:
            return None

        result = self.transport.get(self.directory_query_url(username))
        if isinstance(result, Failure):
            self._logger.warning(
                "directory_lookup_failed",
                username=username,
                reason=result.failure(),
            )
            return None

        try:
            data = json.loads(result.unwrap())
        except ValueError as e:
            self._logger.warning(
                "directory_response_invalid",
                username=username,
                error=str(e),
            )
            return None

        if not isinstance(data, dict):
            return None
        return data

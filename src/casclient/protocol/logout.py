"""
CAS Single Logout (SLO)

The CAS server POSTs a SAML LogoutRequest to the service when a user logs
out centrally:

    <samlp:LogoutRequest xmlns:samlp="urn:oasis:names:tc:SAML:2.0:protocol"
                         ID="..." Version="2.0" IssueInstant="...">
        <saml:NameID xmlns:saml="urn:oasis:names:tc:SAML:2.0:assertion">@NOT_USED@</saml:NameID>
        <samlp:SessionIndex>ST-1-abc</samlp:SessionIndex>
    </samlp:LogoutRequest>

The SessionIndex is the service ticket the user logged in with. Removing
it from the ticket cache ends that session on its next expiry check.

The channel is best-effort and reachable by anyone, so malformed or
incomplete payloads are ignored and never raise.
"""

from __future__ import annotations

from enum import Enum, auto
from typing import Any, Mapping, Optional

import attrs
import structlog

from casclient.cache.ticket_cache import TicketCache, hash_ticket
from casclient.core.exceptions import CacheError
from casclient.protocol.response import find_local, parse_xml, text_content

logger = structlog.get_logger()

LOGOUT_REQUEST_FIELD = "logoutRequest"


class LogoutOutcome(Enum):
    """
    Result of handling a logout notification.

    - IGNORED: not a usable notification; continue normal request handling
    - HANDLED: the request was a logout notification for a ticket, so the
      host pipeline should stop processing it. The ticket has been purged
      unless the cache failed, which is logged as logout_request_failed.
    """

    IGNORED = auto()
    HANDLED = auto()

    @property
    def short_circuit(self) -> bool:
        return self is LogoutOutcome.HANDLED


def extract_session_index(payload: Optional[str]) -> Optional[str]:
    """Text of the first SessionIndex element, or None."""
    if not payload:
        return None
    root = parse_xml(payload)
    if root is None:
        return None
    index = find_local(root, "SessionIndex")
    if index is None:
        return None
    return text_content(index) or None


def is_logout_request(form: Mapping[str, Any]) -> bool:
    """True when a POSTed form carries a CAS logoutRequest field."""
    return bool(form.get(LOGOUT_REQUEST_FIELD))


@attrs.define
class SingleLogoutHandler:
    """
    Purges tickets named in CAS logout notifications.

    Example:
        handler = SingleLogoutHandler(cache)
        if is_logout_request(form):
            outcome = handler.handle_logout_request(form["logoutRequest"])
            if outcome.short_circuit:
                return empty_response()
    """

    cache: TicketCache
    _logger: Any = attrs.Factory(lambda: structlog.get_logger())

    def handle_logout_request(self, payload: Optional[str]) -> LogoutOutcome:
        """
        Handle a LogoutRequest payload.

        Args:
            payload: Raw XML posted by the CAS server

        Returns:
            LogoutOutcome.HANDLED if the payload named a ticket, else IGNORED.
            A cache failure while purging is logged and still HANDLED.
        """
        ticket = extract_session_index(payload)
        if ticket is None:
            self._logger.info("logout_request_ignored")
            return LogoutOutcome.IGNORED

        ticket_hash = hash_ticket(ticket)[:12]
        try:
            self.cache.remove(ticket)
        except CacheError as e:
            self._logger.warning(
                "logout_request_failed",
                ticket_hash=ticket_hash,
                error=str(e),
            )
            return LogoutOutcome.HANDLED

        self._logger.info("logout_request_handled", ticket_hash=ticket_hash)
        return LogoutOutcome.HANDLED

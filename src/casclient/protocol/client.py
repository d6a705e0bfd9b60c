"""
casclient CAS Protocol Client

Service-provider side of the CAS 2.0 protocol.

This module provides a CAS client that:
1. Builds login/logout redirect URLs (default, gateway or renew login)
2. Validates service tickets with a server-to-server serviceValidate call
3. Stores the authenticated username and ticket in the user's session
4. Records validated tickets in a replay-prevention cache
5. Handles single-logout notifications pushed by the CAS server

Typical request flow:

    client = CASClient.from_config(config, ticket=ticket_from_query(query),
                                   session_store=open_session_store(session=session))
    if client.ticket and client.validate_ticket():
        redirect(config.service_url)
    elif client.is_ticket_expired():
        redirect(client.get_login_url())
    else:
        user = client.get_username()

The CAS server is treated as an untrusted network peer: transport and
protocol failures make validate_ticket() return False and leave all state
untouched. Nothing is retried.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional
from urllib.parse import quote, quote_plus

import attrs
import structlog
from attrs import validators
from returns.result import Failure

from casclient.cache.file_cache import FileTicketCache, default_cache_dir
from casclient.cache.ticket_cache import DEFAULT_TICKET_LIFETIME, TicketCache, hash_ticket
from casclient.core.exceptions import ConfigurationError, ProtocolError
from casclient.core.types import LoginMode, SessionField, ValidationResult
from casclient.protocol.logout import LogoutOutcome, SingleLogoutHandler
from casclient.protocol.response import parse_validation_response
from casclient.session.store import DEFAULT_NAMESPACE, SessionStore, open_session_store
from casclient.transport.http import DEFAULT_TIMEOUT, HttpTransport, HttpxTransport

logger = structlog.get_logger()

TICKET_PARAMETER = "ticket"


def _strip_trailing_slash(url: Any) -> Any:
    if isinstance(url, str):
        return url.rstrip("/")
    return url


def _to_login_mode(value: Any) -> LoginMode:
    if isinstance(value, LoginMode):
        return value
    if isinstance(value, str):
        return LoginMode.from_name(value)
    raise ValueError(f"Invalid login mode: {value!r}")


def ticket_from_query(query: Mapping[str, Any]) -> Optional[str]:
    """
    Extract the CAS ticket from a parsed query string.

    Accepts plain mappings and multi-value mappings whose values are
    lists (as returned by urllib.parse.parse_qs).
    """
    value = query.get(TICKET_PARAMETER)
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if not value:
        return None
    return str(value)


# =============================================================================
# CONFIGURATION
# =============================================================================


@attrs.define
class CASConfig:
    """
    CAS client configuration.

    Attributes:
        service_url: URL of this service, as registered with the CAS server
        cas_url: Base URL of the CAS server (e.g. https://login.example.edu/cas)
        mode: Login request behavior
        timeout: Seconds to wait for the serviceValidate response
        verify_tls: Verify the CAS server certificate
        ticket_lifetime: Seconds a validated ticket stays valid locally
        cache_dir: Directory for the file ticket cache (None: default)
        session_namespace: Session namespace / bucket key for CAS fields
    """

    service_url: str = attrs.field(validator=[validators.instance_of(str), validators.min_len(1)])
    cas_url: str = attrs.field(
        converter=_strip_trailing_slash,
        validator=[validators.instance_of(str), validators.min_len(1)],
    )
    mode: LoginMode = attrs.field(default=LoginMode.DEFAULT, converter=_to_login_mode)
    timeout: float = attrs.field(default=DEFAULT_TIMEOUT, validator=validators.gt(0))
    verify_tls: bool = True
    ticket_lifetime: int = attrs.field(default=DEFAULT_TICKET_LIFETIME, validator=validators.gt(0))
    cache_dir: Optional[str] = None
    session_namespace: str = DEFAULT_NAMESPACE

    @classmethod
    def from_mapping(cls, settings: Mapping[str, Any]) -> CASConfig:
        """
        Create config from a plain settings mapping.

        Raises:
            ConfigurationError: On missing URLs, unknown keys or bad values
        """
        known = {a.name for a in attrs.fields(cls)}
        unknown = sorted(set(settings) - known)
        if unknown:
            raise ConfigurationError(f"Unknown CAS settings: {', '.join(unknown)}")

        missing = [name for name in ("service_url", "cas_url") if not settings.get(name)]
        if missing:
            raise ConfigurationError(f"Missing CAS settings: {', '.join(missing)}")

        try:
            return cls(**settings)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid CAS settings: {e}") from e


# =============================================================================
# CAS CLIENT
# =============================================================================


@attrs.define
class CASClient:
    """
    CAS 2.0 service-provider client.

    Provides:
    - Login/logout URL construction
    - serviceValidate ticket validation
    - Session username/ticket persistence
    - Ticket replay cache and expiry checks
    - Single-logout handling

    Example:
        client = CASClient(
            service_url="https://app.example.edu/",
            cas_url="https://login.example.edu/cas",
            ticket="ST-1-abc",
            session=open_session_store(session=request_session),
        )
        if client.validate_ticket():
            print(f"Logged in as {client.get_username()}")
        else:
            redirect(client.get_login_url())

    The ticket cache and transport default to a FileTicketCache in the
    platform temp directory and an HttpxTransport, created on first use.
    """

    service_url: str
    cas_url: str = attrs.field(converter=_strip_trailing_slash)
    ticket: Optional[str] = None
    mode: LoginMode = attrs.field(
        default=LoginMode.DEFAULT, validator=validators.instance_of(LoginMode)
    )
    session: SessionStore = attrs.Factory(open_session_store)
    timeout: float = DEFAULT_TIMEOUT

    _cache: Optional[TicketCache] = attrs.field(default=None, alias="cache")
    _transport: Optional[HttpTransport] = attrs.field(default=None, alias="transport")

    last_result: Optional[ValidationResult] = attrs.field(default=None, init=False)
    _logger: Any = attrs.Factory(lambda: structlog.get_logger())

    @classmethod
    def from_config(
        cls,
        config: CASConfig,
        ticket: Optional[str] = None,
        session_store: Optional[SessionStore] = None,
        cache: Optional[TicketCache] = None,
        transport: Optional[HttpTransport] = None,
    ) -> CASClient:
        """
        Create a client from a CASConfig.

        Missing collaborators are built from the config: a FileTicketCache
        in config.cache_dir, an HttpxTransport with config.timeout, and a
        session store in config.session_namespace.
        """
        if cache is None:
            cache = FileTicketCache(
                cache_dir=config.cache_dir or default_cache_dir(),
                ticket_lifetime=config.ticket_lifetime,
            )
        if transport is None:
            transport = HttpxTransport(timeout=config.timeout, verify=config.verify_tls)
        if session_store is None:
            session_store = open_session_store(namespace=config.session_namespace)

        return cls(
            service_url=config.service_url,
            cas_url=config.cas_url,
            ticket=ticket,
            mode=config.mode,
            session=session_store,
            timeout=config.timeout,
            cache=cache,
            transport=transport,
        )

    # -------------------------------------------------------------------------
    # Collaborators
    # -------------------------------------------------------------------------

    @property
    def ticket_cache(self) -> TicketCache:
        """Get or create the ticket cache."""
        if self._cache is None:
            self._cache = FileTicketCache()
        return self._cache

    def set_ticket_cache(self, cache: TicketCache) -> None:
        self._cache = cache

    def set_ticket_lifetime(self, seconds: int) -> None:
        """Lifetime for tickets validated from now on (not retroactive)."""
        self.ticket_cache.set_lifetime(seconds)

    @property
    def transport(self) -> HttpTransport:
        """Get or create the HTTP transport."""
        if self._transport is None:
            self._transport = HttpxTransport(timeout=self.timeout)
        return self._transport

    # -------------------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------------------

    def set_service_url(self, service_url: str) -> None:
        self.service_url = service_url

    def set_cas_url(self, cas_url: str) -> None:
        self.cas_url = cas_url

    def set_ticket(self, ticket: Optional[str]) -> None:
        self.ticket = ticket

    def set_gateway(self, gateway: bool = True) -> None:
        """
        Never ask the user to authenticate.

        set_gateway(False) returns to the default mode.
        """
        self.mode = LoginMode.GATEWAY if gateway else LoginMode.DEFAULT

    def set_renew(self, renew: bool = True) -> None:
        """
        Always ask the user to authenticate.

        set_renew(False) returns to the default mode.
        """
        self.mode = LoginMode.RENEW if renew else LoginMode.DEFAULT

    @property
    def gateway(self) -> bool:
        return self.mode is LoginMode.GATEWAY

    @property
    def renew(self) -> bool:
        return self.mode is LoginMode.RENEW

    # -------------------------------------------------------------------------
    # URLs
    # -------------------------------------------------------------------------

    def get_login_url(self) -> str:
        """
        URL of the CAS login page.

        Intended usage: return redirect(client.get_login_url())
        """
        return (
            f"{self.cas_url}/login?service={quote_plus(self.service_url)}"
            f"{self.mode.login_parameter}"
        )

    def get_logout_url(self, return_url: str = "") -> str:
        """
        URL of the CAS logout page.

        Args:
            return_url: Where CAS should send the user afterwards
        """
        url = f"{self.cas_url}/logout"
        if return_url:
            url += f"?url={quote_plus(return_url)}"
        return url

    def get_validation_url(self, ticket: str) -> str:
        """URL of the serviceValidate request for a ticket."""
        return (
            f"{self.cas_url}/serviceValidate?service={quote_plus(self.service_url)}"
            f"&ticket={quote(ticket, safe='')}"
        )

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate_ticket(self, ticket: Optional[str] = None) -> bool:
        """
        Validate a service ticket with the CAS server.

        Args:
            ticket: Ticket to validate (default: the client's ticket)

        Returns:
            True if the CAS server accepted the ticket. The username and
            ticket are then stored in the session and the ticket recorded
            in the cache. False on any failure, with no state changed.
        """
        ticket = ticket or self.ticket
        if not ticket:
            self._logger.debug("validation_skipped", reason="no_ticket")
            return False

        ticket_hash = hash_ticket(ticket)[:12]
        response = self.transport.get(self.get_validation_url(ticket))
        if isinstance(response, Failure):
            result = ValidationResult.failure_result(
                response.failure(), ProtocolError.TRANSPORT_ERROR
            )
        else:
            result = parse_validation_response(response.unwrap())
        self.last_result = result

        if not result.success:
            self._logger.info(
                "validation_failed",
                ticket_hash=ticket_hash,
                failure_code=result.failure_code,
                reason=result.failure_message,
            )
            return False

        self.ticket_cache.record(ticket)
        self.session.set(SessionField.USERNAME, result.username)
        self.session.set(SessionField.TICKET, ticket)

        self._logger.info(
            "ticket_validated",
            ticket_hash=ticket_hash,
            username=result.username,
        )
        return True

    def is_ticket_expired(self) -> bool:
        """True unless the session's ticket is present and unexpired in the cache."""
        return not self.ticket_cache.is_valid(self.session.get(SessionField.TICKET))

    def get_username(self) -> Optional[str]:
        """Username from the session, if authenticated."""
        return self.session.get(SessionField.USERNAME)

    # -------------------------------------------------------------------------
    # Logout
    # -------------------------------------------------------------------------

    def destroy_session(self) -> None:
        """Forget the session's ticket and clear username and ticket. Idempotent."""
        ticket = self.session.get(SessionField.TICKET)
        if ticket:
            self.ticket_cache.remove(ticket)
        self.session.clear()
        self._logger.info("session_destroyed")

    def handle_logout_request(self, payload: Optional[str]) -> LogoutOutcome:
        """
        Handle a single-logout notification from the CAS server.

        Returns:
            LogoutOutcome.HANDLED when the request was a logout notification
            and should not be processed further, IGNORED otherwise
        """
        return SingleLogoutHandler(self.ticket_cache).handle_logout_request(payload)

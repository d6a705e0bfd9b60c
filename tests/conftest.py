"""
Pytest configuration and shared fixtures for casclient tests.
"""

from typing import List, Optional

import pytest
from returns.result import Failure, Result, Success

from casclient.cache.ticket_cache import MemoryTicketCache
from casclient.protocol.client import CASClient
from casclient.session.store import MappingSessionStore, SessionStore
from casclient.transport.http import HttpTransport


SERVICE_URL = "https://app.example.edu/"
CAS_URL = "https://login.example.edu/cas"

SUCCESS_BODY = """<cas:serviceResponse xmlns:cas="http://www.yale.edu/tp/cas">
    <cas:authenticationSuccess>
        <cas:user>alice</cas:user>
        <cas:attributes>
            <cas:mail>alice@example.edu</cas:mail>
            <cas:memberOf>staff</cas:memberOf>
            <cas:memberOf>faculty</cas:memberOf>
        </cas:attributes>
    </cas:authenticationSuccess>
</cas:serviceResponse>"""

FAILURE_BODY = """<cas:serviceResponse xmlns:cas="http://www.yale.edu/tp/cas">
    <cas:authenticationFailure code="INVALID_TICKET">
        Ticket ST-1 not recognized
    </cas:authenticationFailure>
</cas:serviceResponse>"""

LOGOUT_BODY = """<samlp:LogoutRequest xmlns:samlp="urn:oasis:names:tc:SAML:2.0:protocol"
    ID="LR-1" Version="2.0" IssueInstant="2024-01-01T00:00:00Z">
    <saml:NameID xmlns:saml="urn:oasis:names:tc:SAML:2.0:assertion">@NOT_USED@</saml:NameID>
    <samlp:SessionIndex>{ticket}</samlp:SessionIndex>
</samlp:LogoutRequest>"""


# =============================================================================
# TEST DOUBLES
# =============================================================================


class FakeClock:
    """Manually advanced clock for cache expiry tests."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StubTransport(HttpTransport):
    """Call-counting transport returning a canned body or failure."""

    def __init__(self, body: str = SUCCESS_BODY, failure: Optional[str] = None) -> None:
        self.body = body
        self.failure = failure
        self.calls: List[str] = []

    def get(self, url: str) -> Result[str, str]:
        self.calls.append(url)
        if self.failure is not None:
            return Failure(self.failure)
        return Success(self.body)


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def clock() -> FakeClock:
    """Controllable clock."""
    return FakeClock()


@pytest.fixture
def memory_cache(clock: FakeClock) -> MemoryTicketCache:
    """In-memory ticket cache on the fake clock."""
    return MemoryTicketCache(clock=clock)


@pytest.fixture
def raw_session() -> dict:
    """Ambient request session mapping."""
    return {}


@pytest.fixture
def session_store(raw_session: dict) -> SessionStore:
    """Mapping-backed session store."""
    return MappingSessionStore(raw_session)


@pytest.fixture
def stub_transport() -> StubTransport:
    """Transport answering with a successful validation response."""
    return StubTransport()


@pytest.fixture
def cas_client(
    memory_cache: MemoryTicketCache,
    session_store: SessionStore,
    stub_transport: StubTransport,
) -> CASClient:
    """CAS client wired to in-memory collaborators."""
    return CASClient(
        service_url=SERVICE_URL,
        cas_url=CAS_URL,
        session=session_store,
        cache=memory_cache,
        transport=stub_transport,
    )


def make_client(
    transport: HttpTransport,
    cache: Optional[MemoryTicketCache] = None,
    session: Optional[SessionStore] = None,
    ticket: Optional[str] = None,
) -> CASClient:
    """Helper to create a client with in-memory collaborators."""
    return CASClient(
        service_url=SERVICE_URL,
        cas_url=CAS_URL,
        ticket=ticket,
        session=session if session is not None else MappingSessionStore({}),
        cache=cache if cache is not None else MemoryTicketCache(),
        transport=transport,
    )


# =============================================================================
# PYTEST MARKERS
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )

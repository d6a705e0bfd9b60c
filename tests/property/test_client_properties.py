"""
Property-based tests for the CAS client, ticket cache and session store.

Uses Hypothesis to test invariants across many random inputs.
"""

from urllib.parse import parse_qs, urlsplit

from hypothesis import given, settings, strategies as st

from casclient.cache.ticket_cache import MemoryTicketCache, hash_ticket
from casclient.core.types import LoginMode
from casclient.protocol.client import CASClient
from casclient.protocol.logout import LogoutOutcome
from casclient.session.store import MappingSessionStore
from tests.conftest import CAS_URL, SERVICE_URL, FakeClock, StubTransport


# =============================================================================
# STRATEGIES
# =============================================================================

ticket_strategy = st.text(min_size=1, max_size=64)

mode_call_strategy = st.lists(
    st.tuples(st.sampled_from(["gateway", "renew"]), st.booleans()),
    max_size=20,
)

xml_fragment_strategy = st.sampled_from(
    [
        "<",
        ">",
        "</",
        "LogoutRequest",
        "SessionIndex",
        "samlp:",
        "<SessionIndex>",
        "</SessionIndex>",
        "<LogoutRequest>",
        "</LogoutRequest>",
        "&amp;",
        "&bogus;",
        "<![CDATA[",
        "]]>",
        " ",
        "T1",
    ]
)

garbage_payload_strategy = st.one_of(
    st.text(max_size=200),
    st.lists(xml_fragment_strategy, max_size=30).map("".join),
)


def fresh_client(**kwargs) -> CASClient:
    return CASClient(
        service_url=SERVICE_URL,
        cas_url=CAS_URL,
        session=MappingSessionStore({}),
        cache=kwargs.pop("cache", MemoryTicketCache()),
        transport=kwargs.pop("transport", StubTransport()),
        **kwargs,
    )


# =============================================================================
# LOGIN MODE PROPERTIES
# =============================================================================


class TestLoginModeProperties:
    """Property-based tests for login mode exclusivity."""

    @given(calls=mode_call_strategy)
    def test_at_most_one_mode(self, calls):
        """Property: gateway and renew are never both active."""
        client = fresh_client()
        for name, flag in calls:
            getattr(client, f"set_{name}")(flag)
            assert not (client.gateway and client.renew)

    @given(calls=mode_call_strategy)
    def test_last_call_wins(self, calls):
        """Property: the mode reflects the last setter call."""
        client = fresh_client()
        expected = LoginMode.DEFAULT
        for name, flag in calls:
            getattr(client, f"set_{name}")(flag)
            if flag:
                expected = LoginMode[name.upper()]
            else:
                expected = LoginMode.DEFAULT
        assert client.mode is expected

    @given(calls=mode_call_strategy)
    def test_login_url_has_one_suffix(self, calls):
        """Property: the login URL carries at most one mode parameter."""
        client = fresh_client()
        for name, flag in calls:
            getattr(client, f"set_{name}")(flag)
        query = parse_qs(urlsplit(client.get_login_url()).query)
        assert query["service"] == [SERVICE_URL]
        assert len(set(query) & {"gateway", "renew"}) <= 1


# =============================================================================
# VALIDATION PROPERTIES
# =============================================================================


class TestValidationProperties:
    """Property-based tests for ticket validation."""

    @given(ticket=ticket_strategy)
    @settings(max_examples=50)
    def test_validation_url_round_trips_ticket(self, ticket):
        """Property: any ticket survives encoding into the validation URL."""
        url = fresh_client().get_validation_url(ticket)
        query = parse_qs(urlsplit(url).query, keep_blank_values=True)
        assert query["ticket"] == [ticket]

    @given(ticket=ticket_strategy)
    @settings(max_examples=50)
    def test_rejected_ticket_changes_nothing(self, ticket):
        """Property: a refused ticket never becomes valid or logged in."""
        cache = MemoryTicketCache()
        client = fresh_client(cache=cache, transport=StubTransport(failure="HTTP 500"))

        assert not client.validate_ticket(ticket)
        assert client.get_username() is None
        assert cache.size == 0

    @given(lifetime=st.integers(min_value=1, max_value=10**6), elapsed=st.integers(0, 2 * 10**6))
    def test_expiry_matches_lifetime(self, lifetime, elapsed):
        """Property: a validated ticket is valid exactly while elapsed < lifetime."""
        clock = FakeClock()
        client = fresh_client(cache=MemoryTicketCache(ticket_lifetime=lifetime, clock=clock))
        client.validate_ticket("T1")
        clock.advance(elapsed)
        assert client.is_ticket_expired() == (elapsed >= lifetime)


# =============================================================================
# LOGOUT PROPERTIES
# =============================================================================


class TestLogoutProperties:
    """Property-based tests for logout handling."""

    @given(payload=garbage_payload_strategy)
    @settings(max_examples=200)
    def test_logout_never_raises(self, payload):
        """Property: arbitrary payloads are handled without raising."""
        cache = MemoryTicketCache()
        cache.record("other")
        client = fresh_client(cache=cache)

        outcome = client.handle_logout_request(payload)

        assert outcome in (LogoutOutcome.HANDLED, LogoutOutcome.IGNORED)
        if outcome is LogoutOutcome.IGNORED:
            assert cache.is_valid("other")

    @given(ticket=ticket_strategy)
    @settings(max_examples=50)
    def test_destroy_session_idempotent(self, ticket):
        """Property: destroying twice leaves the same state as once."""
        session = {}
        client = CASClient(
            service_url=SERVICE_URL,
            cas_url=CAS_URL,
            session=MappingSessionStore(session),
            cache=MemoryTicketCache(),
            transport=StubTransport(),
        )
        client.validate_ticket(ticket)

        client.destroy_session()
        once = {k: dict(v) for k, v in session.items()}
        client.destroy_session()

        assert session == once
        assert client.is_ticket_expired()


# =============================================================================
# CACHE KEY PROPERTIES
# =============================================================================


class TestHashProperties:
    """Property-based tests for ticket digests."""

    @given(ticket=ticket_strategy)
    def test_hash_deterministic(self, ticket):
        """Property: the same ticket always maps to the same key."""
        assert hash_ticket(ticket) == hash_ticket(ticket)

    @given(ticket=ticket_strategy)
    def test_hash_shape(self, ticket):
        """Property: keys are 128 lower-case hex characters."""
        digest = hash_ticket(ticket)
        assert len(digest) == 128
        assert digest == digest.lower()
        int(digest, 16)

    @given(a=ticket_strategy, b=ticket_strategy)
    def test_distinct_tickets_distinct_keys(self, a, b):
        """Property: distinct tickets do not collide."""
        if a != b:
            assert hash_ticket(a) != hash_ticket(b)

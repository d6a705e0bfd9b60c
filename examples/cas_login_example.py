#!/usr/bin/env python3
"""
CAS Login Flow Example

Walks one user through the service-provider side of a CAS login against
a simulated CAS server (httpx.MockTransport), so it runs without network
access.

Features:
1. Login URL construction (default, gateway, renew)
2. serviceValidate ticket validation
3. Session state and replay-cache expiry
4. Single-logout notification handling
"""

import tempfile
from urllib.parse import parse_qs, urlsplit

import httpx

from casclient import (
    CASClient,
    CASConfig,
    LogoutOutcome,
    open_session_store,
    ticket_from_query,
)
from casclient.transport.http import HttpxTransport

VALID_TICKET = "ST-1-example"

SUCCESS_BODY = """<cas:serviceResponse xmlns:cas="http://www.yale.edu/tp/cas">
    <cas:authenticationSuccess>
        <cas:user>jdoe</cas:user>
    </cas:authenticationSuccess>
</cas:serviceResponse>"""

FAILURE_BODY = """<cas:serviceResponse xmlns:cas="http://www.yale.edu/tp/cas">
    <cas:authenticationFailure code="INVALID_TICKET">
        Ticket not recognized
    </cas:authenticationFailure>
</cas:serviceResponse>"""

LOGOUT_BODY = """<samlp:LogoutRequest xmlns:samlp="urn:oasis:names:tc:SAML:2.0:protocol"
    ID="LR-1" Version="2.0" IssueInstant="2024-01-01T00:00:00Z">
    <samlp:SessionIndex>{ticket}</samlp:SessionIndex>
</samlp:LogoutRequest>"""


def fake_cas_server(request: httpx.Request) -> httpx.Response:
    """Answer serviceValidate the way a CAS server would."""
    ticket = parse_qs(request.url.query.decode()).get("ticket", [""])[0]
    body = SUCCESS_BODY if ticket == VALID_TICKET else FAILURE_BODY
    return httpx.Response(200, text=body)


def main():
    """Demonstrate a CAS login, expiry check and single logout."""

    print("=" * 70)
    print("casclient - CAS Login Flow")
    print("=" * 70)
    print()

    config = CASConfig.from_mapping(
        {
            "service_url": "https://app.example.edu/",
            "cas_url": "https://login.example.edu/cas",
            "ticket_lifetime": 600,
            "cache_dir": tempfile.mkdtemp(prefix="casclient-example-"),
        }
    )
    transport = HttpxTransport(
        client=httpx.Client(transport=httpx.MockTransport(fake_cas_server))
    )
    session = {}

    # ==========================================================================
    # EXAMPLE 1: Login URLs
    # ==========================================================================
    print("1. Login URLs")
    print("-" * 40)

    client = CASClient.from_config(
        config,
        session_store=open_session_store(session=session),
        transport=transport,
    )
    print(f"   Default: {client.get_login_url()}")
    client.set_gateway()
    print(f"   Gateway: {client.get_login_url()}")
    client.set_renew()
    print(f"   Renew:   {client.get_login_url()}")
    client.set_renew(False)
    print(f"   Logout:  {client.get_logout_url('https://app.example.edu/bye')}")
    print()

    # ==========================================================================
    # EXAMPLE 2: Rejected ticket
    # ==========================================================================
    print("2. Rejected Ticket")
    print("-" * 40)

    if not client.validate_ticket("ST-forged"):
        print("   Validation: FAILED")
        print(f"   Code: {client.last_result.failure_code}")
        print(f"   Username: {client.get_username()}")
    print()

    # ==========================================================================
    # EXAMPLE 3: Redirect back with a valid ticket
    # ==========================================================================
    print("3. Ticket Validation")
    print("-" * 40)

    callback = f"https://app.example.edu/?ticket={VALID_TICKET}"
    ticket = ticket_from_query(parse_qs(urlsplit(callback).query))
    client = CASClient.from_config(
        config,
        ticket=ticket,
        session_store=open_session_store(session=session),
        transport=transport,
    )

    if client.validate_ticket():
        print("   Validation: SUCCESS")
        print(f"   Username: {client.get_username()}")
    print()

    # ==========================================================================
    # EXAMPLE 4: Later request
    # ==========================================================================
    print("4. Later Request (no ticket)")
    print("-" * 40)

    client = CASClient.from_config(
        config,
        session_store=open_session_store(session=session),
        transport=transport,
    )
    print(f"   Username: {client.get_username()}")
    print(f"   Ticket Expired: {client.is_ticket_expired()}")
    print()

    # ==========================================================================
    # EXAMPLE 5: Single logout
    # ==========================================================================
    print("5. Single Logout")
    print("-" * 40)

    outcome = client.handle_logout_request(LOGOUT_BODY.format(ticket=VALID_TICKET))
    print(f"   Outcome: {outcome.name}")
    if outcome is LogoutOutcome.HANDLED:
        print("   (Stop processing the request here)")
    print(f"   Ticket Expired: {client.is_ticket_expired()}")

    client.destroy_session()
    print(f"   Username after destroy: {client.get_username()}")
    print()

    transport.close()


if __name__ == "__main__":
    main()

"""
casclient Core Types

Fundamental type definitions shared by the protocol client, the ticket
cache and the session store.

Design Principles:
- Immutable: result types use frozen attrs
- Validated: constraints enforced at construction
"""

from __future__ import annotations

from enum import Enum, auto
from typing import Dict, List, Optional

import attrs
from attrs import field


# =============================================================================
# ENUMS
# =============================================================================


class LoginMode(Enum):
    """
    Login request behavior.

    Exactly one mode is active on a client at any time.

    - DEFAULT: normal login, CAS prompts only if no SSO session exists
    - GATEWAY: never prompt; CAS returns without a ticket if not logged in
    - RENEW: always prompt, even with an existing SSO session
    """

    DEFAULT = auto()
    GATEWAY = auto()
    RENEW = auto()

    @property
    def login_parameter(self) -> str:
        """Query suffix appended to the login URL for this mode."""
        suffixes = {
            LoginMode.DEFAULT: "",
            LoginMode.GATEWAY: "&gateway=true",
            LoginMode.RENEW: "&renew=true",
        }
        return suffixes[self]

    @classmethod
    def from_name(cls, name: str) -> LoginMode:
        """Parse a mode from its case-insensitive name."""
        try:
            return cls[name.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown login mode: {name!r}") from None


# =============================================================================
# SESSION KEYS
# =============================================================================


class SessionField:
    """Keys persisted in the session store."""

    USERNAME = "username"
    TICKET = "ticket"

    ALL = (USERNAME, TICKET)


# =============================================================================
# RESULT TYPES
# =============================================================================


@attrs.define(frozen=True, slots=True)
class ValidationResult:
    """
    Result of parsing a CAS serviceValidate response.

    Attributes:
        success: Whether the server accepted the ticket
        username: Authenticated username (iff success)
        attributes: Released user attributes, local name -> values
        failure_code: CAS or local failure code (if failure)
        failure_message: Human-readable failure reason (if failure)

    INVARIANT: username is non-empty iff success
    """

    success: bool
    username: Optional[str] = None
    attributes: Dict[str, List[str]] = field(factory=dict)
    failure_code: Optional[str] = None
    failure_message: str = ""

    def __attrs_post_init__(self) -> None:
        if self.success:
            if not self.username:
                raise ValueError("Successful validation must have username")
        elif self.username is not None:
            raise ValueError("Failed validation must not have username")

    @classmethod
    def success_result(
        cls,
        username: str,
        attributes: Optional[Dict[str, List[str]]] = None,
    ) -> ValidationResult:
        """Create a successful validation result."""
        return cls(success=True, username=username, attributes=attributes or {})

    @classmethod
    def failure_result(
        cls, failure_message: str, failure_code: Optional[str] = None
    ) -> ValidationResult:
        """Create a failed validation result."""
        return cls(
            success=False,
            failure_code=failure_code,
            failure_message=failure_message,
        )

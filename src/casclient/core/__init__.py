"""
casclient Core Module

Provides foundational types and abstractions used across the package.

Components:
- types: Core type definitions (LoginMode, ValidationResult, SessionField)
- exceptions: Custom exception types
"""

from casclient.core.types import (
    LoginMode,
    SessionField,
    ValidationResult,
)
from casclient.core.exceptions import (
    CASClientError,
    CacheError,
    ConfigurationError,
    ProtocolError,
    SessionError,
    SessionNamespaceError,
)

__all__ = [
    # Types
    "LoginMode",
    "SessionField",
    "ValidationResult",
    # Exceptions
    "CASClientError",
    "CacheError",
    "ConfigurationError",
    "ProtocolError",
    "SessionError",
    "SessionNamespaceError",
]

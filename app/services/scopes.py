"""Scope configuration and rate key construction.

A scope is the unit a limit is configured for: the single default scope
applied to client addresses, or a named scope registered for an access token.
"""

from __future__ import annotations

from dataclasses import dataclass

from app.core.errors import ValidationAppError

IP_KEY_PREFIX = "ip:"
TOKEN_KEY_PREFIX = "token:"


@dataclass(frozen=True)
class ScopeConfig:
    """Limits for one scope.

    Attributes:
        requests: Maximum requests allowed per window (>= 1).
        window_seconds: Length of the fixed counting window (> 0).
        block_seconds: How long a subject stays blocked after exceeding the
            limit (>= 0). Independent of the window.
    """

    requests: int
    window_seconds: float
    block_seconds: float

    def __post_init__(self) -> None:
        if isinstance(self.requests, bool) or not isinstance(self.requests, int) or self.requests < 1:
            raise _invalid("requests", self.requests, "requests must be an integer >= 1")
        if self.window_seconds <= 0:
            raise _invalid("window_seconds", self.window_seconds, "window_seconds must be > 0")
        if self.block_seconds < 0:
            raise _invalid("block_seconds", self.block_seconds, "block_seconds must be >= 0")


def ip_key(address: str) -> str:
    """Rate key for an address-scoped subject."""
    return f"{IP_KEY_PREFIX}{address}"


def token_key(token: str) -> str:
    """Rate key for a token-scoped subject."""
    return f"{TOKEN_KEY_PREFIX}{token}"


def _invalid(field: str, value: object, message: str) -> ValidationAppError:
    return ValidationAppError(
        code="invalid_scope_config",
        message=message,
        details={"field": field, "value": str(value)},
    )

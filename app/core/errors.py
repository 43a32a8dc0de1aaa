"""Application-level exception types.

This module defines domain errors used across the limiter engine, the counter
store adapters and the HTTP layer, enabling consistent error handling, logging,
and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional; each error fills in what is relevant to it.
    """

    code: str
    message: str
    hint: str
    field: str
    value: str
    operation: str
    backend: str
    limit: int
    retry_after: int
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class StoreUnavailableAppError(AppError):
    """Raised when a counter store operation fails (connectivity, timeout, backend error).

    Kept distinct from a denied decision so callers can tell a rate-limited
    client apart from a broken limiter.
    """


@dataclass
class RateLimitExceededAppError(AppError):
    """Raised by the request gate when a client is over its limit.

    Attributes:
        headers: Optional response headers (Retry-After, X-RateLimit-*).
    """

    headers: dict[str, str] | None = None

"""Rate limiting dependency for FastAPI routes.

This module wires client identity extraction and the limiter engine into the
HTTP layer.

Design goals:
- Minimal coupling: API routes depend on a dependency function only.
- Swap-friendly: the counter store (Redis or in-memory) sits behind an
  abstract interface chosen from settings.
- Thread-per-request: the dependency is synchronous, so FastAPI runs it in
  its threadpool and blocking store calls stay off the event loop.

Rate limiting strategy:
- A token sent in the token header with a registered scope is limited by
  that scope.
- Anything else (no token, unknown token) is limited by client address.
"""

from __future__ import annotations

import logging
import math
import threading

from fastapi import Request

from app.adapters.rate_limit.base import AbstractCounterStore
from app.adapters.rate_limit.factory import create_counter_store
from app.core.config import load_token_scopes, settings
from app.core.durations import format_duration
from app.core.errors import RateLimitExceededAppError, StoreUnavailableAppError
from app.core.identity import extract_token, resolve_client_address
from app.services.rate_limiter import RateLimiter, hash_rate_key
from app.services.scopes import TOKEN_KEY_PREFIX, ScopeConfig

logger = logging.getLogger(__name__)

RATE_LIMIT_EXCEEDED_MESSAGE = (
    "you have reached the maximum number of requests or actions allowed within a certain time frame"
)

_limiter: RateLimiter | None = None
_limiter_lock = threading.Lock()


def build_rate_limiter(store: AbstractCounterStore | None = None) -> RateLimiter:
    """Build a limiter from settings, registering every configured token scope.

    Args:
        store: Counter store to use; created from settings when omitted.

    Returns:
        RateLimiter: Fully configured limiter.
    """
    cfg = settings.rate_limit
    default_config = ScopeConfig(
        requests=cfg.ip_requests,
        window_seconds=cfg.ip_window,
        block_seconds=cfg.ip_block_time,
    )
    token_scopes = load_token_scopes()

    limiter = RateLimiter(store or create_counter_store(), default_config)
    for token, scope in token_scopes.items():
        limiter.register_scope(
            token,
            ScopeConfig(
                requests=scope.requests,
                window_seconds=scope.window,
                block_seconds=scope.block_time,
            ),
        )

    logger.info(
        "rate_limit.configured",
        extra={
            "limit": default_config.requests,
            "window": format_duration(default_config.window_seconds),
            "block": format_duration(default_config.block_seconds),
            "token_scopes": len(token_scopes),
        },
    )
    return limiter


def get_rate_limiter() -> RateLimiter:
    """Return the process-wide limiter, building it on first use.

    The instance is cached in-module so scope configuration is built once and
    counter state lives in a single store client.

    Returns:
        RateLimiter: Configured limiter instance.
    """

    global _limiter

    if _limiter is None:
        with _limiter_lock:
            if _limiter is None:
                _limiter = build_rate_limiter()
    return _limiter


def close_rate_limiter() -> None:
    """Close the cached limiter's store and drop the instance."""

    global _limiter

    with _limiter_lock:
        if _limiter is not None:
            _limiter.close()
            _limiter = None


def _retry_after_seconds(scope: ScopeConfig) -> int:
    wait = scope.block_seconds if scope.block_seconds > 0 else scope.window_seconds
    return max(1, int(math.ceil(wait)))


def enforce_rate_limit(request: Request) -> None:
    """FastAPI dependency enforcing rate limits.

    Consumes one request from the caller's budget. Raises when the caller is
    over its limit or currently blocked.

    Args:
        request: FastAPI request.

    Raises:
        RateLimitExceededAppError: 429 Too Many Requests when denied.
        StoreUnavailableAppError: When the counter store fails and
            ``RATE_LIMIT_FAIL_OPEN`` is off.
    """

    cfg = settings.rate_limit
    if not cfg.enabled:
        return

    limiter = get_rate_limiter()
    address = resolve_client_address(request, trust_forwarded_headers=cfg.trust_forwarded_headers)
    token = extract_token(request, cfg.token_header)

    key, scope = limiter.resolve_scope(address, token)
    key_type = "token" if key.startswith(TOKEN_KEY_PREFIX) else "ip"
    key_hash = hash_rate_key(key)

    try:
        allowed = limiter.check_and_consume(key, scope)
    except StoreUnavailableAppError as exc:
        logger.error(
            "rate_limit.store_failed",
            extra={
                "key_type": key_type,
                "key_hash": key_hash,
                "error_code": exc.code,
                "fail_open": cfg.fail_open,
            },
        )
        if cfg.fail_open:
            return
        raise StoreUnavailableAppError(
            code="rate_limiter_unavailable",
            message="Rate limiter is temporarily unavailable. Try again later.",
        ) from exc

    if allowed:
        logger.info(
            "rate_limit.allowed",
            extra={
                "key_type": key_type,
                "key_hash": key_hash,
                "limit": scope.requests,
                "window": format_duration(scope.window_seconds),
            },
        )
        return

    retry_after = _retry_after_seconds(scope)
    logger.warning(
        "rate_limit.exceeded",
        extra={
            "key_type": key_type,
            "key_hash": key_hash,
            "limit": scope.requests,
            "window": format_duration(scope.window_seconds),
            "retry_after_s": retry_after,
        },
    )

    headers: dict[str, str] = {}
    if cfg.include_headers:
        headers["Retry-After"] = str(retry_after)
        headers["X-RateLimit-Limit"] = str(scope.requests)

    raise RateLimitExceededAppError(
        code="rate_limit_exceeded",
        message=RATE_LIMIT_EXCEEDED_MESSAGE,
        headers=headers or None,
    )

"""Rate limit decision engine.

Holds the default (address) scope and the named token scopes, resolves which
one applies to a request, and runs the fixed-window check against the counter
store:

1. A subject with an active block is denied without touching its counter.
2. Otherwise the counter is incremented (the store starts a fresh window on
   the first increment).
3. The request that pushes the count past the limit is denied and blocks the
   subject for the scope's block duration.

The engine keeps no per-subject state of its own; every decision re-reads the
store, and store failures propagate as StoreUnavailableAppError.
"""

from __future__ import annotations

import hashlib
import logging
import threading
from types import MappingProxyType
from typing import Mapping

from app.adapters.rate_limit.base import AbstractCounterStore
from app.core.durations import format_duration
from app.core.errors import ValidationAppError
from app.services.scopes import ScopeConfig, ip_key, token_key

logger = logging.getLogger(__name__)


def hash_rate_key(key: str) -> str:
    """Hash a rate key for logging without exposing tokens."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


class RateLimiter:
    """Per-identity fixed-window rate limiter with block cool-down."""

    def __init__(self, store: AbstractCounterStore, default_config: ScopeConfig) -> None:
        """Initialize the limiter.

        Args:
            store: Counter store holding counters and blocks.
            default_config: Scope applied to client addresses and to tokens
                without a registered scope.
        """
        self._store = store
        self._default_config = default_config
        self._token_scopes: Mapping[str, ScopeConfig] = MappingProxyType({})
        self._registry_lock = threading.Lock()

    @property
    def default_config(self) -> ScopeConfig:
        return self._default_config

    def register_scope(self, token: str, config: ScopeConfig) -> None:
        """Add or replace the scope for a token (last registration wins).

        The mapping is swapped as a whole, so concurrent readers see either
        the old or the new registry, never a partial update.

        Raises:
            ValidationAppError: If the token is empty.
        """
        if not token:
            raise ValidationAppError(
                code="invalid_scope_token",
                message="token must be a non-empty string",
            )
        with self._registry_lock:
            updated = dict(self._token_scopes)
            updated[token] = config
            self._token_scopes = MappingProxyType(updated)

        logger.info(
            "rate_limit.scope_registered",
            extra={
                "key_hash": hash_rate_key(token_key(token)),
                "limit": config.requests,
                "window": format_duration(config.window_seconds),
                "block": format_duration(config.block_seconds),
            },
        )

    def has_scope(self, token: str | None) -> bool:
        return bool(token) and token in self._token_scopes

    def scopes(self) -> Mapping[str, ScopeConfig]:
        """Read-only view of the registered token scopes."""
        return self._token_scopes

    def resolve_scope(self, address: str, token: str | None = None) -> tuple[str, ScopeConfig]:
        """Pick the rate key and scope for a request.

        A token with a registered scope wins; an unknown or empty token falls
        back to the address scope, exactly as if no token had been sent.

        Returns:
            Tuple of (rate_key, scope_config).
        """
        if token:
            config = self._token_scopes.get(token)
            if config is not None:
                return token_key(token), config
        return ip_key(address), self._default_config

    def check(self, address: str, token: str | None = None) -> bool:
        """Decide a request from its address and optional token."""
        key, config = self.resolve_scope(address, token)
        return self.check_and_consume(key, config)

    def check_by_address(self, address: str) -> bool:
        return self.check_and_consume(ip_key(address), self._default_config)

    def check_by_token(self, token: str) -> bool:
        """Decide a request by token only.

        Returns True without touching the store when the token has no
        registered scope; the caller is then responsible for running the
        address check.
        """
        config = self._token_scopes.get(token)
        if config is None:
            return True
        return self.check_and_consume(token_key(token), config)

    def check_and_consume(self, key: str, config: ScopeConfig) -> bool:
        """Run the block check, increment and limit comparison for one request.

        Args:
            key: Namespaced rate key.
            config: Scope to enforce.

        Returns:
            True when the request is allowed.

        Raises:
            StoreUnavailableAppError: If any store operation fails.
        """
        if self._store.is_blocked(key):
            return False

        count = self._store.increment(key, config.window_seconds)
        if count <= config.requests:
            return True

        self._store.block(key, config.block_seconds)
        logger.warning(
            "rate_limit.blocked",
            extra={
                "key_hash": hash_rate_key(key),
                "limit": config.requests,
                "count": count,
                "block": format_duration(config.block_seconds),
            },
        )
        return False

    def close(self) -> None:
        self._store.close()

"""Redis-backed counter store.

Counters live under the rate key itself (``ip:...``, ``token:...``) and blocks
under ``blocked:<rate key>``. Both rely on Redis key expiry, so no cleanup job
is needed and every API worker shares the same state.

The increment runs as a Lua script: ``INCR`` and the first-write ``PEXPIRE``
execute as one atomic unit on the server, so a counter can never be left
without an expiry.
"""

from __future__ import annotations

import logging
import math

import redis

from app.adapters.rate_limit.base import AbstractCounterStore, block_key
from app.core.config import RedisSettings
from app.core.errors import StoreUnavailableAppError

logger = logging.getLogger(__name__)

INCREMENT_SCRIPT = """
local count = redis.call('INCR', KEYS[1])
if count == 1 then
    redis.call('PEXPIRE', KEYS[1], ARGV[1])
end
return count
"""


def _to_milliseconds(seconds: float) -> int:
    return max(1, int(math.ceil(seconds * 1000)))


class RedisCounterStore(AbstractCounterStore):
    """Counter store on top of a synchronous ``redis.Redis`` client."""

    def __init__(self, client: redis.Redis) -> None:
        self._client = client
        self._increment_script = client.register_script(INCREMENT_SCRIPT)
        self._closed = False

    @classmethod
    def from_settings(cls, redis_settings: RedisSettings) -> "RedisCounterStore":
        """Build a store with a client configured from settings."""
        client = redis.Redis(
            host=redis_settings.host,
            port=redis_settings.port,
            password=redis_settings.password or None,
            db=redis_settings.db,
            socket_timeout=redis_settings.socket_timeout_seconds,
            socket_connect_timeout=redis_settings.socket_timeout_seconds,
            decode_responses=True,
        )
        return cls(client)

    def increment(self, key: str, window_seconds: float) -> int:
        try:
            count = self._increment_script(keys=[key], args=[_to_milliseconds(window_seconds)])
        except redis.RedisError as exc:
            raise self._store_error("increment", exc) from exc
        return int(count)

    def is_blocked(self, key: str) -> bool:
        try:
            return self._client.exists(block_key(key)) > 0
        except redis.RedisError as exc:
            raise self._store_error("is_blocked", exc) from exc

    def block(self, key: str, block_seconds: float) -> None:
        if block_seconds <= 0:
            # A zero-length block would expire immediately; Redis rejects PX 0.
            return
        try:
            self._client.set(block_key(key), "1", px=_to_milliseconds(block_seconds))
        except redis.RedisError as exc:
            raise self._store_error("block", exc) from exc

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._client.close()

    def _store_error(self, operation: str, exc: redis.RedisError) -> StoreUnavailableAppError:
        logger.error(
            "counter_store.error",
            extra={
                "backend": "redis",
                "operation": operation,
                "error_type": type(exc).__name__,
            },
        )
        return StoreUnavailableAppError(
            code="store_unavailable",
            message=f"Counter store operation '{operation}' failed",
            details={"backend": "redis", "operation": operation},
        )

"""In-memory counter store.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: a single lock serializes every read-modify-write, which is what
  gives ``increment`` its atomic increment-and-expire semantics.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable

from app.adapters.rate_limit.base import AbstractCounterStore

logger = logging.getLogger(__name__)

DEFAULT_PURGE_INTERVAL_SECONDS = 60.0


@dataclass
class _CounterRecord:
    count: int
    expires_at: float


class InMemoryCounterStore(AbstractCounterStore):
    """Counter store keeping counters and blocks in process memory.

    Expired counters and blocks are discarded lazily when their key is touched,
    and the whole table is swept at most once per ``purge_interval_seconds`` so
    memory stays proportional to the subjects seen recently.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.time,
        purge_interval_seconds: float = DEFAULT_PURGE_INTERVAL_SECONDS,
    ) -> None:
        """Initialize the in-memory store.

        Args:
            clock: Time source function returning UNIX time in seconds.
            purge_interval_seconds: Minimum delay between full sweeps of
                expired entries.
        """
        self._clock = clock
        self._purge_interval = purge_interval_seconds
        self._lock = threading.RLock()
        self._counters: dict[str, _CounterRecord] = {}
        self._blocked_until: dict[str, float] = {}
        self._last_purge = clock()
        self._closed = False

    def increment(self, key: str, window_seconds: float) -> int:
        now = self._clock()
        with self._lock:
            self._maybe_purge(now)
            record = self._counters.get(key)
            if record is None or now >= record.expires_at:
                record = _CounterRecord(count=0, expires_at=now + window_seconds)
                self._counters[key] = record
            record.count += 1
            return record.count

    def is_blocked(self, key: str) -> bool:
        now = self._clock()
        with self._lock:
            blocked_until = self._blocked_until.get(key)
            if blocked_until is None:
                return False
            if now >= blocked_until:
                del self._blocked_until[key]
                return False
            return True

    def block(self, key: str, block_seconds: float) -> None:
        now = self._clock()
        with self._lock:
            if block_seconds <= 0:
                self._blocked_until.pop(key, None)
                return
            self._blocked_until[key] = now + block_seconds

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._counters.clear()
            self._blocked_until.clear()
            self._closed = True

    def get_count(self, key: str) -> int:
        """Return the live counter value for a key (0 when absent or expired)."""
        now = self._clock()
        with self._lock:
            record = self._counters.get(key)
            if record is None or now >= record.expires_at:
                return 0
            return record.count

    def purge_expired(self) -> int:
        """Drop every expired counter and block.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            return self._purge(self._clock())

    def _maybe_purge(self, now: float) -> None:
        if now - self._last_purge >= self._purge_interval:
            self._purge(now)

    def _purge(self, now: float) -> int:
        stale_counters = [k for k, r in self._counters.items() if now >= r.expires_at]
        stale_blocks = [k for k, until in self._blocked_until.items() if now >= until]
        for key in stale_counters:
            del self._counters[key]
        for key in stale_blocks:
            del self._blocked_until[key]
        self._last_purge = now

        removed = len(stale_counters) + len(stale_blocks)
        if removed:
            logger.debug(
                "counter_store.purged",
                extra={"backend": "memory", "removed": removed},
            )
        return removed

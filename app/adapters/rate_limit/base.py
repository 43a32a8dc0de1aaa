"""Counter store interface.

The limiter engine depends on this abstraction (not a concrete backend) so the
same decision logic runs against Redis in production and an in-memory store
in tests or single-process deployments.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

BLOCK_KEY_PREFIX = "blocked:"


def block_key(key: str) -> str:
    """Storage key holding the block record for a rate key."""
    return f"{BLOCK_KEY_PREFIX}{key}"


class AbstractCounterStore(ABC):
    """Interface for counter stores.

    Implementations own all mutable per-subject state. Every method may raise
    StoreUnavailableAppError when the backend fails.
    """

    @abstractmethod
    def increment(self, key: str, window_seconds: float) -> int:
        """Atomically increment the counter for a key.

        The first increment of a window also sets the counter to expire after
        ``window_seconds``, as part of the same atomic step. Concurrent calls
        for the same key must observe distinct, consecutive counts.

        Args:
            key: Rate key (e.g. ``ip:10.0.0.1``, ``token:abc123``).
            window_seconds: Window length applied when the counter is created.

        Returns:
            The counter value after this increment.
        """
        raise NotImplementedError

    @abstractmethod
    def is_blocked(self, key: str) -> bool:
        """Return True if an unexpired block exists for the key."""
        raise NotImplementedError

    @abstractmethod
    def block(self, key: str, block_seconds: float) -> None:
        """Create or overwrite a block for the key that expires after ``block_seconds``."""
        raise NotImplementedError

    @abstractmethod
    def close(self) -> None:
        """Release backend resources. Safe to call more than once."""
        raise NotImplementedError

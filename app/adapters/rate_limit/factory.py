"""Factory for creating counter store instances."""

import logging

from app.adapters.rate_limit.base import AbstractCounterStore
from app.adapters.rate_limit.in_memory import InMemoryCounterStore
from app.adapters.rate_limit.redis_store import RedisCounterStore
from app.core.config import settings
from app.core.errors import ValidationAppError

logger = logging.getLogger(__name__)


def create_counter_store() -> AbstractCounterStore:
    """Instantiate the counter store selected by ``RATE_LIMIT_STORAGE``.

    Returns:
        AbstractCounterStore: Configured store instance.

    Raises:
        ValidationAppError: If the storage backend is unknown.
    """
    storage = settings.rate_limit.storage.lower()

    if storage == "redis":
        logger.info(
            "counter_store.initialized",
            extra={"backend": "redis", "addr": settings.redis.addr, "db": settings.redis.db},
        )
        return RedisCounterStore.from_settings(settings.redis)

    if storage == "memory":
        logger.warning(
            "counter_store.initialized",
            extra={"backend": "memory", "note": "limits are enforced per process"},
        )
        return InMemoryCounterStore()

    raise ValidationAppError(
        code="rate_limit_unknown_storage",
        message=f"Unknown counter store: '{storage}'. Supported stores: redis, memory",
        details={"field": "RATE_LIMIT_STORAGE", "value": storage},
    )

"""Counter store adapters for the rate limiter.

This package provides a small abstraction layer so the limiter engine can run
against Redis in production and an in-memory store in tests or single-process
deployments without changing the engine or the API layer.
"""

from app.adapters.rate_limit.base import AbstractCounterStore
from app.adapters.rate_limit.factory import create_counter_store
from app.adapters.rate_limit.in_memory import InMemoryCounterStore
from app.adapters.rate_limit.redis_store import RedisCounterStore

__all__ = [
    "AbstractCounterStore",
    "InMemoryCounterStore",
    "RedisCounterStore",
    "create_counter_store",
]

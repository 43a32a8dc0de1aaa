"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It sets the environment the settings module reads at import time, so the
.env file is skipped and the in-memory counter store is used.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["TESTING"] = "true"
os.environ["APP_ENV"] = "testing"

os.environ.setdefault("RATE_LIMIT_STORAGE", "memory")
os.environ.setdefault("RATE_LIMIT_IP_REQUESTS", "10")
os.environ.setdefault("RATE_LIMIT_IP_WINDOW", "1s")
os.environ.setdefault("RATE_LIMIT_IP_BLOCK_TIME", "5m")

import pytest


class FakeTime:
    """Deterministic clock used to test expiration logic."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


@pytest.fixture
def fake_time() -> FakeTime:
    return FakeTime()


@pytest.fixture(autouse=True)
def _reset_cached_limiter():
    """Drop the process-wide limiter so each test builds its own."""
    yield
    from app.core.rate_limit import close_rate_limiter

    close_rate_limiter()

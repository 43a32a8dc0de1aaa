from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.adapters.rate_limit.in_memory import InMemoryCounterStore
from app.core import rate_limit as rate_limit_module
from app.main import app
from app.services.rate_limiter import RateLimiter
from app.services.scopes import ScopeConfig

client = TestClient(app)


def test_preserves_incoming_request_id_header():
    incoming_id = "test-request-id-123"
    resp = client.get("/health", headers={"X-Request-ID": incoming_id})

    assert resp.status_code == 200
    assert resp.headers.get("X-Request-ID") == incoming_id


def test_generates_request_id_when_missing():
    resp = client.get("/health")

    assert resp.status_code == 200
    generated = resp.headers.get("X-Request-ID")
    assert generated
    assert resp.headers.get("X-Request-Duration-ms") is not None


def test_rate_limited_response_carries_request_id(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(rate_limit_module.settings.rate_limit, "enabled", True)
    limiter = RateLimiter(
        InMemoryCounterStore(clock=lambda: 1000.0),
        ScopeConfig(requests=1, window_seconds=1.0, block_seconds=10.0),
    )
    monkeypatch.setattr(rate_limit_module, "get_rate_limiter", lambda: limiter)

    client.get("/")
    resp = client.get("/", headers={"X-Request-ID": "req-429"})

    assert resp.status_code == 429
    assert resp.headers.get("X-Request-ID") == "req-429"
    assert resp.json()["error"]["request_id"] == "req-429"

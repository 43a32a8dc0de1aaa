"""Tests for global exception handlers.

Validates that all exception types are handled consistently with
proper HTTP status codes, error format, and no information leakage.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.errors import (
    RateLimitExceededAppError,
    StoreUnavailableAppError,
    ValidationAppError,
)
from app.core.exception_handlers import general_exception_handler, setup_exception_handlers


@pytest.fixture
def app_with_handlers() -> FastAPI:
    """Create FastAPI app with exception handlers registered."""
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    return TestClient(app_with_handlers)


class TestAppErrorHandler:
    """Test handler for AppError and subclasses."""

    def test_validation_error_returns_400(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-validation")
        async def endpoint():
            raise ValidationAppError(
                code="invalid_scope_config",
                message="requests must be an integer >= 1",
                details={"field": "requests", "value": "0"},
            )

        response = client.get("/test-validation")

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "invalid_scope_config"
        assert error["details"] == {"field": "requests", "value": "0"}
        assert "request_id" in error

    def test_rate_limit_error_returns_429_with_headers(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-limited")
        async def endpoint():
            raise RateLimitExceededAppError(
                code="rate_limit_exceeded",
                message="slow down",
                headers={"Retry-After": "30"},
            )

        response = client.get("/test-limited")

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "30"
        assert response.json()["error"]["code"] == "rate_limit_exceeded"
        assert "details" not in response.json()["error"]

    def test_store_error_returns_500(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-store")
        async def endpoint():
            raise StoreUnavailableAppError(
                code="rate_limiter_unavailable",
                message="Rate limiter is temporarily unavailable. Try again later.",
            )

        response = client.get("/test-store")

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "rate_limiter_unavailable"


class TestGeneralExceptionHandler:
    """Test fallback handler for unexpected exceptions."""

    def test_unexpected_exception_handler_registered(self, app_with_handlers: FastAPI):
        assert Exception in app_with_handlers.exception_handlers

    def test_general_exception_handler_hides_details(self):
        request = AsyncMock()
        request.url.path = "/"
        request.method = "GET"

        exc = RuntimeError("redis at 10.0.0.5:6379 refused connection")
        response = asyncio.run(general_exception_handler(request, exc))

        data = json.loads(bytes(response.body).decode())
        assert response.status_code == 500
        assert data["error"]["code"] == "internal_server_error"
        assert "10.0.0.5" not in data["error"]["message"]
        assert "RuntimeError" not in bytes(response.body).decode()

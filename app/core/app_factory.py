"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) and the
limiter lifecycle: the limiter is built at startup, before traffic, and its
counter store is closed on shutdown.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api.routes import health_router, root_router
from app.core.config import settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.openapi import apply_openapi_customizations
from app.core.rate_limit import close_rate_limiter, get_rate_limiter

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    if settings.rate_limit.enabled:
        get_rate_limiter()
    logger.info("app.started", extra={"app_env": settings.app_env})
    try:
        yield
    finally:
        close_rate_limiter()
        logger.info("app.stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Rate Limiter API",
        description=(
            "HTTP endpoint guarded by a fixed-window rate limiter. Requests are "
            "counted per client address, or per access token when the token has "
            "its own configured limit. Clients exceeding their limit are blocked "
            "for a configurable cool-down and receive HTTP 429."
        ),
        version="0.1.0",
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
        lifespan=lifespan,
    )

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(root_router)
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app

from __future__ import annotations

from fastapi import APIRouter

from app.schemas.responses import HealthResponse

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Liveness check, exempt from rate limiting.

    Used by load balancers and monitoring systems; it does not touch the
    counter store.
    """

    return HealthResponse(status="ok")

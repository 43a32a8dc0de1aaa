from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from app.core.rate_limit import enforce_rate_limit
from app.schemas.responses import ErrorResponse, MessageResponse

router = APIRouter(
    tags=["Rate Limited"],
    dependencies=[Depends(enforce_rate_limit)],
    responses={
        429: {"model": ErrorResponse, "description": "Rate limit exceeded or client blocked"},
        500: {"model": ErrorResponse, "description": "Rate limiter unavailable"},
    },
)


@router.get("/", response_model=MessageResponse)
def root() -> MessageResponse:
    """Rate-limited endpoint.

    Counts against the caller's token scope when the token header carries a
    registered token, otherwise against the caller's address.
    """

    return MessageResponse(
        message="Request successful!",
        timestamp=datetime.now(timezone.utc),
    )

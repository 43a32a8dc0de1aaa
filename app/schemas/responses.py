"""Pydantic schemas for API responses."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    """Response of the rate-limited root endpoint."""

    message: str = Field(..., description="Confirmation that the request went through.")
    timestamp: datetime = Field(..., description="Server time (UTC) when the request was served.")


class HealthResponse(BaseModel):
    status: str = Field("ok", description="Always 'ok' while the process is serving.")


class ErrorBody(BaseModel):
    """Error envelope content produced by the global exception handlers."""

    code: str = Field(..., description="Stable, machine-readable error code.")
    message: str = Field(..., description="Human-readable error message.")
    request_id: str | None = Field(None, description="Correlation id of the failed request.")
    details: Dict[str, Any] | None = Field(None, description="Optional structured context.")


class ErrorResponse(BaseModel):
    error: ErrorBody

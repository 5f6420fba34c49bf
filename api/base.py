"""Unified API response format and error codes."""

from typing import Any
from datetime import datetime
from uuid import uuid4

from fastapi import Request
from pydantic import BaseModel, Field

from utils.timezone import now_utc


class APIError(BaseModel):
    """Error details in API response."""

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: list[str] | None = Field(None, description="Remote or field-level messages")


class APIMeta(BaseModel):
    """Metadata included in every API response."""

    timestamp: datetime = Field(..., description="Response timestamp (UTC)")
    request_id: str = Field(..., description="Unique request identifier for tracing")


class APIResponse(BaseModel):
    """
    Unified response format for all API endpoints.

    Every endpoint returns this structure, making client parsing predictable.
    """

    success: bool
    data: Any | None = None
    error: APIError | None = None
    meta: APIMeta


def request_id_of(request: Request | None) -> str:
    """Request id assigned by RequestIDMiddleware, or a fresh one."""
    if request is not None:
        request_id = getattr(request.state, "request_id", None)
        if request_id:
            return request_id
    return str(uuid4())


def success_response(data: Any, request: Request | None = None) -> APIResponse:
    """Create a success response."""
    return APIResponse(
        success=True,
        data=data,
        error=None,
        meta=APIMeta(timestamp=now_utc(), request_id=request_id_of(request)),
    )


def error_response(
    code: str,
    message: str,
    request: Request | None = None,
    details: list[str] | None = None,
) -> APIResponse:
    """Create an error response."""
    return APIResponse(
        success=False,
        data=None,
        error=APIError(code=code, message=message, details=details),
        meta=APIMeta(timestamp=now_utc(), request_id=request_id_of(request)),
    )


class ErrorCodes:
    """Standard error codes for consistent error handling."""

    # Resource Errors
    NOT_FOUND = "NOT_FOUND"

    # Validation Errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_FIELD = "INVALID_FIELD"

    # Job & Template Invariants
    INVARIANT_VIOLATION = "INVARIANT_VIOLATION"

    # Billing
    NO_BILLABLE_ITEMS = "NO_BILLABLE_ITEMS"
    LEDGER_RECORD_NOT_FOUND = "LEDGER_RECORD_NOT_FOUND"
    LEDGER_REJECTED = "LEDGER_REJECTED"

    # Infrastructure
    INTERNAL_ERROR = "INTERNAL_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"

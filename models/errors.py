"""Standard error body for every API failure.

{
    "error": "ExternalServiceError",
    "message": "The language model request failed",
    "details": {"model": "llama-3.1-8b-instant"},
    "request_id": "abc-123-def-456",
    "timestamp": "2026-10-19T12:00:00+00:00",
    "path": "/api/chat"
}
"""

from datetime import UTC, datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response schema for all API endpoints."""

    error: str = Field(
        ...,
        description="Error type/code",
        examples=["ValidationError", "BadRequest", "ExternalServiceError"],
    )
    message: str = Field(..., description="Human-readable error message")
    details: Optional[dict[str, Any]] = Field(
        default=None, description="Additional error context"
    )
    request_id: Optional[str] = Field(
        default=None, description="Request correlation ID for tracing"
    )
    timestamp: str = Field(
        default_factory=lambda: datetime.now(UTC).isoformat(),
        description="When the error occurred (ISO 8601)",
    )
    path: Optional[str] = Field(default=None, description="Request path")


class ValidationErrorDetail(BaseModel):
    """Detail for a single validation error."""

    field: str
    message: str
    type: str


class ValidationErrorResponse(ErrorResponse):
    """Error response for validation errors with field details."""

    error: str = "ValidationError"
    validation_errors: list[ValidationErrorDetail] = Field(default_factory=list)


class ErrorType:
    """Standard error type codes."""

    VALIDATION_ERROR = "ValidationError"
    BAD_REQUEST = "BadRequest"
    NOT_FOUND = "NotFound"
    PAYLOAD_TOO_LARGE = "PayloadTooLarge"
    SERVICE_UNAVAILABLE = "ServiceUnavailable"
    EXTERNAL_SERVICE_ERROR = "ExternalServiceError"
    INTERNAL_ERROR = "InternalError"


def create_error_response(
    error: str,
    message: str,
    details: Optional[dict[str, Any]] = None,
    request_id: Optional[str] = None,
    path: Optional[str] = None,
) -> dict[str, Any]:
    """Create a standardized error response dictionary for JSONResponse content."""
    response = ErrorResponse(
        error=error,
        message=message,
        details=details,
        request_id=request_id,
        path=path,
    )
    return response.model_dump(exclude_none=True)


def create_validation_error_response(
    message: str,
    errors: list[dict[str, str]],
    request_id: Optional[str] = None,
    path: Optional[str] = None,
) -> dict[str, Any]:
    """Create a validation error response with field-level details.

    Args:
        message: Overall error message
        errors: List of {"field": str, "message": str, "type": str} dicts
        request_id: Optional request correlation ID
        path: Optional request path
    """
    validation_errors = [
        ValidationErrorDetail(
            field=e.get("field", "unknown"),
            message=e.get("message", "Validation failed"),
            type=e.get("type", "value_error"),
        )
        for e in errors
    ]

    response = ValidationErrorResponse(
        message=message,
        validation_errors=validation_errors,
        request_id=request_id,
        path=path,
    )
    return response.model_dump(exclude_none=True)

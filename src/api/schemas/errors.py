"""Error envelope returned by every failing request.

``ErrorResponse`` carries a machine-readable code, a human-readable
message, optional details (field-level validation messages live under
``details.validation_errors``), correlation and request ids, and debug
information in development.
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field


class ServiceInfo(BaseModel):
    """Identifies the service instance that produced an error."""

    name: str = Field(..., description="Name of the service", examples=["Postbox"])
    version: str = Field(..., description="Version of the service", examples=["0.1.0"])
    environment: str = Field(
        ...,
        description="Environment where the service is running",
        examples=["development", "staging", "production"],
    )


class ErrorResponse(BaseModel):
    """Standardized error response model for API errors."""

    error_code: str = Field(
        ...,
        description="Unique error code identifying the error type",
        examples=["VALIDATION_ERROR", "NOT_FOUND", "FORBIDDEN"],
    )

    message: str = Field(
        ...,
        description="Human-readable error message",
        examples=["The message with id 1b4e28ba-2fa1-11d2-883f-0016d3cca427 doesn't exist"],
    )

    details: dict[str, Any] | None = Field(
        default=None,
        description="Additional error details, e.g. per-field validation messages",
        examples=[{"validation_errors": {"subject": ["Field required"]}}],
    )

    correlation_id: str | None = Field(
        default=None,
        description="Request correlation ID for tracing and debugging",
    )

    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="Timestamp when the error occurred (with timezone)",
    )

    severity: str | None = Field(
        default=None,
        description="Error severity level (LOW, MEDIUM, HIGH, CRITICAL)",
        examples=["LOW"],
    )

    service_info: ServiceInfo | None = Field(
        default=None,
        description="Information about the service that generated the error",
    )

    request_id: str | None = Field(
        default=None,
        description=(
            "Unique request identifier (different from correlation_id "
            "which can span multiple services)"
        ),
        examples=["req-550e8400-e29b-41d4-a716-446655440000"],
    )

    debug_info: dict[str, Any] | None = Field(
        default=None,
        description="Debug information (only populated in development environments)",
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "error_code": "VALIDATION_ERROR",
                    "message": "Request validation failed",
                    "details": {
                        "validation_errors": {
                            "userId": ["The selected user id is invalid."]
                        }
                    },
                    "correlation_id": "550e8400-e29b-41d4-a716-446655440000",
                    "request_id": "req-660e8400-e29b-41d4-a716-446655440000",
                    "timestamp": "2024-06-14T12:00:00+00:00",
                    "severity": "LOW",
                    "service_info": {
                        "name": "Postbox",
                        "version": "0.1.0",
                        "environment": "production",
                    },
                },
                {
                    "error_code": "FORBIDDEN",
                    "message": "This action is unauthorized.",
                    "timestamp": "2024-06-14T12:00:01+00:00",
                    "severity": "MEDIUM",
                },
            ]
        }
    }

"""Exception handlers that render every failure as an ``ErrorResponse``.

Domain exceptions carry their own error code and severity; the HTTP status
is chosen here from the exception type. Framework exceptions (request
validation, ``HTTPException``) and unexpected errors are converted into the
same envelope.
"""

import traceback
from collections.abc import Mapping, Sequence
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import Response
from loguru import logger
from starlette.exceptions import HTTPException

from src.api.constants import HTTP_500_INTERNAL_SERVER_ERROR
from src.api.schemas.errors import ErrorResponse, ServiceInfo
from src.api.utils.responses import ORJSONResponse
from src.core.config import Settings, get_settings
from src.core.context import RequestContext, generate_request_id
from src.core.error_context import sanitize_error_context
from src.core.exceptions import (
    ErrorCode,
    ForbiddenError,
    NotFoundError,
    PersistenceError,
    PostboxError,
    Severity,
    UnauthorizedError,
    ValidationError,
)

# Checked in order; the first matching type wins
_STATUS_BY_EXCEPTION: tuple[tuple[type[PostboxError], int], ...] = (
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (UnauthorizedError, status.HTTP_401_UNAUTHORIZED),
    (ForbiddenError, status.HTTP_403_FORBIDDEN),
    (PersistenceError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)

_HTTP_ERROR_CODES: dict[int, tuple[ErrorCode, Severity]] = {
    status.HTTP_400_BAD_REQUEST: (ErrorCode.VALIDATION_ERROR, Severity.LOW),
    status.HTTP_401_UNAUTHORIZED: (ErrorCode.UNAUTHORIZED, Severity.HIGH),
    status.HTTP_403_FORBIDDEN: (ErrorCode.FORBIDDEN, Severity.MEDIUM),
    status.HTTP_404_NOT_FOUND: (ErrorCode.NOT_FOUND, Severity.LOW),
    status.HTTP_405_METHOD_NOT_ALLOWED: (ErrorCode.VALIDATION_ERROR, Severity.LOW),
    status.HTTP_422_UNPROCESSABLE_ENTITY: (ErrorCode.VALIDATION_ERROR, Severity.LOW),
}


def get_service_info(settings: Settings) -> ServiceInfo:
    """Create ServiceInfo from application settings."""
    return ServiceInfo(
        name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )


def status_code_for(exc: PostboxError) -> int:
    """Pick the HTTP status for a domain exception.

    Args:
        exc: The raised exception.

    Returns:
        int: Mapped status, 500 for unmapped subclasses.
    """
    for exc_type, status_code in _STATUS_BY_EXCEPTION:
        if isinstance(exc, exc_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _error_response(
    status_code: int,
    error_response: ErrorResponse,
    headers: dict[str, str] | None = None,
) -> Response:
    return ORJSONResponse(
        status_code=status_code,
        content=error_response.model_dump(mode="json"),
        headers=headers,
    )


async def postbox_error_handler(request: Request, exc: Exception) -> Response:
    """Handle PostboxError exceptions.

    Args:
        request: The request that caused the exception
        exc: The PostboxError exception to handle

    Returns:
        Response: ORJSONResponse with error details

    Raises:
        TypeError: If exc is not a PostboxError instance
    """
    if not isinstance(exc, PostboxError):
        raise TypeError(f"Expected PostboxError, got {type(exc).__name__}")

    settings = get_settings()
    correlation_id = RequestContext.get_correlation_id()
    status_code = status_code_for(exc)

    error_context = sanitize_error_context(
        exc,
        {
            "request_method": request.method,
            "request_path": str(request.url.path),
            "error_code": exc.error_code,
        },
    )

    log = logger.error if exc.should_alert else logger.warning
    log(
        "Handling {exception_type}: {message}",
        exception_type=type(exc).__name__,
        message=exc.message,
        correlation_id=correlation_id,
        status_code=status_code,
        **error_context,
    )

    # Create failures keep a fixed client message even in development.
    debug_info = None
    if settings.environment == "development" and not isinstance(
        exc, PersistenceError
    ):
        debug_info = {
            "stack_trace": exc.stack_trace,
            "error_context": exc.context,
            "exception_type": type(exc).__name__,
        }
        if exc.cause:
            debug_info["cause"] = {
                "type": type(exc.cause).__name__,
                "message": str(exc.cause),
            }

    error_response = ErrorResponse(
        error_code=exc.error_code,
        message=exc.message,
        details=exc.context or None,
        correlation_id=correlation_id,
        request_id=generate_request_id(),
        severity=exc.severity.value,
        service_info=get_service_info(settings),
        debug_info=debug_info,
    )

    headers = None
    if status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}

    return _error_response(status_code, error_response, headers)


def group_field_errors(
    errors: Sequence[Mapping[str, Any]], *, loc_offset: int = 0
) -> dict[str, list[str]]:
    """Group pydantic error dicts by dotted field name.

    Args:
        errors: Output of ``errors()`` on a pydantic or FastAPI error.
        loc_offset: Number of leading location parts to drop.
    """
    field_errors: dict[str, list[str]] = {}
    for error in errors:
        field_path = tuple(error.get("loc", ()))[loc_offset:]
        field_name = ".".join(str(loc) for loc in field_path if loc != "__root__")
        field_errors.setdefault(field_name or "root", []).append(
            error.get("msg", "Invalid value")
        )
    return field_errors


def collect_field_errors(exc: RequestValidationError) -> dict[str, list[str]]:
    """Group request validation messages by field name.

    The location prefix (``body``, ``query``, ``path``) is dropped, so body
    fields appear under their public alias, e.g. ``userId``.
    """
    return group_field_errors(exc.errors(), loc_offset=1)


async def validation_error_handler(request: Request, exc: Exception) -> Response:
    """Handle FastAPI RequestValidationError exceptions.

    Raises:
        TypeError: If exc is not a RequestValidationError instance
    """
    if not isinstance(exc, RequestValidationError):
        raise TypeError(f"Expected RequestValidationError, got {type(exc).__name__}")

    settings = get_settings()
    correlation_id = RequestContext.get_correlation_id()
    field_errors = collect_field_errors(exc)

    error_context = sanitize_error_context(
        exc,
        {
            "path": str(request.url.path),
            "method": request.method,
            "validation_errors": field_errors,
        },
    )

    logger.warning(
        "Request validation failed",
        correlation_id=correlation_id,
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        **error_context,
    )

    error_response = ErrorResponse(
        error_code=ErrorCode.VALIDATION_ERROR.value,
        message="Request validation failed",
        details={"validation_errors": field_errors},
        correlation_id=correlation_id,
        request_id=generate_request_id(),
        severity=Severity.LOW.value,
        service_info=get_service_info(settings),
    )

    return _error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, error_response)


async def http_exception_handler(request: Request, exc: Exception) -> Response:
    """Handle Starlette HTTPException, keeping its status code.

    Raises:
        TypeError: If exc is not an HTTPException instance
    """
    if not isinstance(exc, HTTPException):
        raise TypeError(f"Expected HTTPException, got {type(exc).__name__}")

    settings = get_settings()
    correlation_id = RequestContext.get_correlation_id()

    error_code, severity = _HTTP_ERROR_CODES.get(
        exc.status_code,
        (
            ErrorCode.INTERNAL_ERROR,
            Severity.HIGH
            if exc.status_code >= HTTP_500_INTERNAL_SERVER_ERROR
            else Severity.MEDIUM,
        ),
    )

    error_context = sanitize_error_context(
        exc,
        {
            "status": exc.status_code,
            "method": request.method,
            "path": str(request.url.path),
            "detail": exc.detail,
        },
    )

    logger.warning(
        "HTTP exception",
        correlation_id=correlation_id,
        **error_context,
    )

    error_response = ErrorResponse(
        error_code=error_code.value,
        message=str(exc.detail),
        correlation_id=correlation_id,
        request_id=generate_request_id(),
        severity=severity.value,
        service_info=get_service_info(settings),
    )

    return _error_response(exc.status_code, error_response, exc.headers)


async def generic_exception_handler(request: Request, exc: Exception) -> Response:
    """Handle anything else as a 500, hiding details in production."""
    settings = get_settings()
    correlation_id = RequestContext.get_correlation_id()

    error_context = sanitize_error_context(
        exc,
        {
            "request_method": request.method,
            "request_path": str(request.url.path),
        },
    )

    logger.exception(
        "Unhandled exception: {exception_type}",
        exception_type=type(exc).__name__,
        correlation_id=correlation_id,
        **error_context,
    )

    if settings.environment == "production":
        message = "An internal server error occurred"
        details = None
        debug_info = None
    else:
        message = f"Internal server error: {type(exc).__name__}"
        details = {"error": str(exc), "type": type(exc).__name__}
        debug_info = {
            "stack_trace": traceback.format_tb(exc.__traceback__),
            "error_context": {
                "error_message": str(exc),
                "error_args": list(exc.args),
            },
            "exception_type": type(exc).__name__,
        }

    error_response = ErrorResponse(
        error_code=ErrorCode.INTERNAL_ERROR.value,
        message=message,
        details=details,
        correlation_id=correlation_id,
        request_id=generate_request_id(),
        severity=Severity.CRITICAL.value,
        service_info=get_service_info(settings),
        debug_info=debug_info,
    )

    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, error_response)


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(PostboxError, postbox_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    logger.info("Exception handlers registered")

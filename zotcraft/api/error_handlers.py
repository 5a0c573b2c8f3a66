"""Global exception handlers for the sync API.

Provides consistent error responses across all endpoints with correlation ID tracking.
"""

import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError as PydanticValidationError

from zotcraft.api.dependencies import get_config
from zotcraft.api.exceptions import APIException, ErrorCode, ErrorType, ExternalServiceError
from zotcraft.api.models.responses import error_response, make_error
from zotcraft.domain.exceptions import UpstreamUnavailableError

logger = logging.getLogger(__name__)


async def api_exception_handler(request: Request, exc: Exception) -> Response:
    """Handle custom API exceptions."""
    if not isinstance(exc, APIException):
        raise exc

    correlation_id = getattr(request.state, "correlation_id", None)

    logger.error(
        "api_error",
        extra={
            "correlation_id": correlation_id,
            "error_code": exc.error_code.value,
            "error_type": exc.error_type.value,
            "status_code": exc.status_code,
            "retryable": exc.retryable,
            "path": request.url.path,
            "error": exc.message,
        },
    )

    detail = make_error(
        code=exc.error_code.value,
        message=exc.message,
        error_type=exc.error_type.value,
        retryable=exc.retryable,
        details=exc.details or None,
    )
    detail.correlation_id = correlation_id or ""

    return JSONResponse(
        status_code=exc.status_code, content=error_response(detail, correlation_id=correlation_id)
    )


async def upstream_exception_handler(request: Request, exc: Exception) -> Response:
    """Report unreadable Zotero/Craft endpoints as 502 with the upstream message."""
    if not isinstance(exc, UpstreamUnavailableError):
        raise exc
    return await api_exception_handler(
        request, ExternalServiceError(exc.message, exc.service, exc.status_code)
    )


async def validation_exception_handler(request: Request, exc: Exception) -> Response:
    """Handle Pydantic and request-body validation errors."""
    if not isinstance(exc, PydanticValidationError | RequestValidationError):
        raise exc

    correlation_id = getattr(request.state, "correlation_id", None)

    formatted_errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]

    logger.warning(
        "request_validation_failed",
        extra={
            "correlation_id": correlation_id,
            "errors": formatted_errors,
            "path": request.url.path,
        },
    )

    detail = make_error(
        code=ErrorCode.VALIDATION_ERROR.value,
        message="Request validation failed",
        error_type=ErrorType.VALIDATION,
        retryable=False,
        details={"fields": formatted_errors},
    )
    detail.correlation_id = correlation_id or ""

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_response(detail, correlation_id=correlation_id),
    )


async def global_exception_handler(request: Request, exc: Exception) -> Response:
    """Catch-all handler for unexpected exceptions."""
    correlation_id = getattr(request.state, "correlation_id", None)

    logger.error(
        "unhandled_exception",
        exc_info=True,
        extra={"correlation_id": correlation_id, "path": request.url.path},
    )

    # Don't leak error details outside debug mode
    debug_mode = get_config().runtime.log_level == "DEBUG"
    message = str(exc) if debug_mode else "An internal server error occurred"

    detail = make_error(
        code=ErrorCode.INTERNAL_ERROR.value,
        message=message,
        error_type=ErrorType.INTERNAL,
        retryable=False,
    )
    detail.correlation_id = correlation_id or ""

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response(detail, correlation_id=correlation_id),
    )

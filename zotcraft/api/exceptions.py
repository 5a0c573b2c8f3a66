"""Custom exceptions and error codes for the sync API."""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standard error codes for API responses."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    EXTERNAL_API_ERROR = "EXTERNAL_API_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorType(str, Enum):
    """Categories of errors for client handling."""

    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    EXTERNAL_SERVICE = "external_service"
    INTERNAL = "internal"


_ERROR_TYPE_MAP: dict[ErrorCode, ErrorType] = {
    ErrorCode.VALIDATION_ERROR: ErrorType.VALIDATION,
    ErrorCode.CONFIGURATION_ERROR: ErrorType.CONFIGURATION,
    ErrorCode.EXTERNAL_API_ERROR: ErrorType.EXTERNAL_SERVICE,
    ErrorCode.INTERNAL_ERROR: ErrorType.INTERNAL,
}

_RETRYABLE_CODES: set[ErrorCode] = {ErrorCode.EXTERNAL_API_ERROR}


class APIException(Exception):
    """Base exception for all API errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
        error_type: ErrorType | None = None,
        retryable: bool | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        self.error_type = error_type or _ERROR_TYPE_MAP.get(error_code, ErrorType.INTERNAL)
        self.retryable = retryable if retryable is not None else (error_code in _RETRYABLE_CODES)


class MissingCredentialsError(APIException):
    """Raised when a request needs credentials that were neither sent nor configured."""

    def __init__(self, service: str, fields: list[str]):
        super().__init__(
            message=f"Missing {service} credentials: {', '.join(fields)}",
            error_code=ErrorCode.CONFIGURATION_ERROR,
            status_code=400,
            details={"service": service, "fields": fields},
        )


class ExternalServiceError(APIException):
    """Raised when Zotero or Craft cannot be read."""

    def __init__(self, message: str, service: str, upstream_status: int | None = None):
        super().__init__(
            message=message,
            error_code=ErrorCode.EXTERNAL_API_ERROR,
            status_code=502,
            details={"service": service, "upstream_status": upstream_status},
        )

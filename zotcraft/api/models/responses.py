"""
Pydantic models for API responses.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field

from zotcraft import __version__
from zotcraft.api.context import correlation_id_ctx
from zotcraft.api.exceptions import ErrorCode, ErrorType


class MetaInfo(BaseModel):
    """Metadata for all API responses."""

    correlation_id: str = ""
    timestamp: str = Field(
        default_factory=lambda: datetime.now(UTC).isoformat().replace("+00:00", "Z")
    )
    version: str = __version__


class ErrorDetail(BaseModel):
    """Error details aligned to API error envelope."""

    code: str
    error_type: str = Field(default=ErrorType.INTERNAL.value, serialization_alias="errorType")
    message: str
    retryable: bool = False
    details: dict[str, Any] | None = None
    correlation_id: str = ""


class SuccessResponse(BaseModel):
    """Standard success response wrapper."""

    success: bool = True
    data: dict[str, Any]
    meta: MetaInfo = Field(default_factory=MetaInfo)


class ErrorResponse(BaseModel):
    """Standard error response wrapper."""

    success: bool = False
    error: ErrorDetail
    meta: MetaInfo = Field(default_factory=MetaInfo)


class ConnectionStatus(BaseModel):
    zotero: bool
    craft: bool


class FolderListResponse(BaseModel):
    folders: list[dict[str, Any]]


class GroupListResponse(BaseModel):
    groups: list[dict[str, Any]]


class CraftCollectionListResponse(BaseModel):
    collections: list[dict[str, Any]]


def build_meta(correlation_id: str | None = None) -> MetaInfo:
    return MetaInfo(correlation_id=correlation_id or correlation_id_ctx.get() or "")


def success_response(
    data: BaseModel | dict[str, Any],
    *,
    correlation_id: str | None = None,
) -> dict[str, Any]:
    """Helper to build a standardized success response."""
    payload = data.model_dump() if isinstance(data, BaseModel) else data
    return SuccessResponse(data=payload, meta=build_meta(correlation_id)).model_dump()


def make_error(
    code: str | ErrorCode,
    message: str,
    *,
    error_type: str | ErrorType | None = None,
    retryable: bool | None = None,
    details: dict[str, Any] | None = None,
) -> ErrorDetail:
    """
    Create an ErrorDetail with proper typing and defaults.

    Args:
        code: Error code (use ErrorCode enum for standard codes)
        message: Human-readable error message
        error_type: Error category (defaults to internal)
        retryable: Whether client should retry (external service errors by default)
        details: Additional error context

    Returns:
        Properly typed ErrorDetail
    """
    code_str = code.value if isinstance(code, ErrorCode) else code
    if error_type is None:
        error_type = ErrorType.INTERNAL
    error_type_str = error_type.value if isinstance(error_type, ErrorType) else error_type

    if retryable is None:
        retryable = error_type_str == ErrorType.EXTERNAL_SERVICE.value

    return ErrorDetail(
        code=code_str,
        error_type=error_type_str,
        message=message,
        retryable=retryable,
        details=details,
    )


def error_response(detail: ErrorDetail, *, correlation_id: str | None = None) -> dict[str, Any]:
    """Helper to build a standardized error response."""
    corr = correlation_id or correlation_id_ctx.get() or ""
    if not detail.correlation_id:
        detail = detail.model_copy(update={"correlation_id": corr})
    return ErrorResponse(error=detail, meta=build_meta(corr)).model_dump(by_alias=True)

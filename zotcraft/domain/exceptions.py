"""Sync error taxonomy.

Clients raise these instead of raw transport errors; the orchestrator decides
per error whether it ends the pass, fails a single record, or only degrades.
"""

from __future__ import annotations

from typing import Any


class DomainException(Exception):
    """Base exception for all sync errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize domain exception.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class UpstreamUnavailableError(DomainException):
    """Raised when a read from Zotero or Craft fails (network error or non-2xx)."""

    def __init__(
        self,
        message: str,
        *,
        service: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.service = service
        self.status_code = status_code


class CreateFailedError(DomainException):
    """Raised when Craft rejects the creation of an item or subpage."""

    def __init__(self, message: str, *, status_code: int | None = None, body: str = "") -> None:
        super().__init__(message, {"status_code": status_code, "body": body})
        self.status_code = status_code
        self.body = body


class ContentAttachFailedError(DomainException):
    """Raised when the note body cannot be attached to an already-created item."""

    def __init__(self, message: str, *, item_id: str, status_code: int | None = None) -> None:
        super().__init__(message, {"item_id": item_id, "status_code": status_code})
        self.item_id = item_id
        self.status_code = status_code


class InvalidOptionError(DomainException):
    """Raised when a value has no match in a closed choice vocabulary."""

    def __init__(self, field_name: str, value: Any, options: tuple[str, ...]) -> None:
        super().__init__(
            f"Invalid option {value!r} for field {field_name!r}",
            {"field": field_name, "value": value, "options": list(options)},
        )
        self.field_name = field_name
        self.value = value
        self.options = options

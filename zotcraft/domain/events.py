"""Progress events emitted by a sync pass."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class SyncStatus(StrEnum):
    INFO = "info"
    SUCCESS = "success"
    CREATED = "created"
    SKIPPED = "skipped"
    WARNING = "warning"
    ERROR = "error"


class SyncProgressEvent(BaseModel):
    """One line of the progress stream: a titled outcome with optional detail."""

    model_config = ConfigDict(frozen=True)

    title: str
    status: SyncStatus
    details: str | None = None

    def to_ndjson(self) -> str:
        """Serialize as one newline-terminated JSON object."""
        return self.model_dump_json(exclude_none=True) + "\n"

    @classmethod
    def info(cls, title: str, details: str | None = None) -> SyncProgressEvent:
        return cls(title=title, status=SyncStatus.INFO, details=details)

    @classmethod
    def success(cls, title: str, details: str | None = None) -> SyncProgressEvent:
        return cls(title=title, status=SyncStatus.SUCCESS, details=details)

    @classmethod
    def created(cls, title: str, details: str | None = None) -> SyncProgressEvent:
        return cls(title=title, status=SyncStatus.CREATED, details=details)

    @classmethod
    def skipped(cls, title: str, details: str | None = None) -> SyncProgressEvent:
        return cls(title=title, status=SyncStatus.SKIPPED, details=details)

    @classmethod
    def warning(cls, title: str, details: str | None = None) -> SyncProgressEvent:
        return cls(title=title, status=SyncStatus.WARNING, details=details)

    @classmethod
    def error(cls, title: str, details: str | None = None) -> SyncProgressEvent:
        return cls(title=title, status=SyncStatus.ERROR, details=details)

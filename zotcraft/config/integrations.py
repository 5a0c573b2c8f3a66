from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ._validators import _optional_identifier, _parse_bounded_int, _validate_api_key

logger = logging.getLogger(__name__)

DEFAULT_ZOTERO_API_URL = "https://api.zotero.org"
DEFAULT_CRAFT_API_URL = "https://connect.craft.do/api/v1"


class ZoteroConfig(BaseModel):
    """Zotero Web API credentials and the folder to read records from."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    api_url: str = Field(default=DEFAULT_ZOTERO_API_URL, validation_alias="ZOTERO_API_URL")
    api_key: str = Field(default="", validation_alias="ZOTERO_API_KEY")
    user_id: str = Field(default="", validation_alias="ZOTERO_USER_ID")
    collection_id: str = Field(
        default="",
        validation_alias="ZOTERO_COLLECTION_ID",
        description="Folder selector: a collection key, 'group:<id>' or 'group:<id>:<key>'",
    )
    timeout_sec: int = Field(default=30, validation_alias="ZOTERO_TIMEOUT_SEC")

    @field_validator("api_url", mode="before")
    @classmethod
    def _validate_api_url(cls, value: Any) -> str:
        url = str(value or DEFAULT_ZOTERO_API_URL).strip()
        return url.rstrip("/") or DEFAULT_ZOTERO_API_URL

    @field_validator("api_key", mode="before")
    @classmethod
    def _validate_api_key(cls, value: Any) -> str:
        return _validate_api_key(value, name="Zotero")

    @field_validator("user_id", mode="before")
    @classmethod
    def _validate_user_id(cls, value: Any) -> str:
        if value in (None, ""):
            return ""
        user_id = str(value).strip()
        if not user_id.isdigit():
            msg = "Zotero user ID must be numeric"
            raise ValueError(msg)
        return user_id

    @field_validator("collection_id", mode="before")
    @classmethod
    def _validate_collection_id(cls, value: Any) -> str:
        return str(value or "").strip()

    @field_validator("timeout_sec", mode="before")
    @classmethod
    def _validate_timeout(cls, value: Any) -> int:
        return _parse_bounded_int(value, default=30, low=1, high=120, label="Zotero timeout")

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.user_id)


class CraftConfig(BaseModel):
    """Craft Connect API credentials and the destination for created notes."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    api_url: str = Field(default=DEFAULT_CRAFT_API_URL, validation_alias="CRAFT_API_URL")
    api_key: str = Field(default="", validation_alias="CRAFT_API_KEY")
    parent_document_id: str | None = Field(
        default=None, validation_alias="CRAFT_PARENT_DOCUMENT_ID"
    )
    target_collection_id: str | None = Field(
        default=None, validation_alias="CRAFT_TARGET_COLLECTION_ID"
    )
    timeout_sec: int = Field(default=30, validation_alias="CRAFT_TIMEOUT_SEC")

    @field_validator("api_url", mode="before")
    @classmethod
    def _validate_api_url(cls, value: Any) -> str:
        url = str(value or DEFAULT_CRAFT_API_URL).strip()
        return url.rstrip("/") or DEFAULT_CRAFT_API_URL

    @field_validator("api_key", mode="before")
    @classmethod
    def _validate_api_key(cls, value: Any) -> str:
        return _validate_api_key(value, name="Craft")

    @field_validator("parent_document_id", "target_collection_id", mode="before")
    @classmethod
    def _validate_identifiers(cls, value: Any) -> str | None:
        return _optional_identifier(value)

    @field_validator("timeout_sec", mode="before")
    @classmethod
    def _validate_timeout(cls, value: Any) -> int:
        return _parse_bounded_int(value, default=30, low=1, high=120, label="Craft timeout")

    @property
    def configured(self) -> bool:
        return bool(self.api_key)


class SyncConfig(BaseModel):
    """Batch size and auto-sync timer settings."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    max_items: int = Field(default=50, validation_alias="SYNC_MAX_ITEMS")
    auto_sync_enabled: bool = Field(default=False, validation_alias="AUTO_SYNC_ENABLED")
    interval_minutes: int = Field(default=60, validation_alias="AUTO_SYNC_INTERVAL_MINUTES")

    @field_validator("max_items", mode="before")
    @classmethod
    def _validate_max_items(cls, value: Any) -> int:
        parsed = _parse_bounded_int(value, default=50, low=1, high=100, label="Sync max items")
        if parsed > 50:
            logger.warning(
                "sync_max_items_above_recommended",
                extra={"max_items": parsed, "recommended": 50},
            )
        return parsed

    @field_validator("interval_minutes", mode="before")
    @classmethod
    def _validate_interval(cls, value: Any) -> int:
        return _parse_bounded_int(
            value, default=60, low=1, high=1440, label="Auto-sync interval (minutes)"
        )

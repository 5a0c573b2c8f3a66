"""
Pydantic models for API request validation.

Credentials in a request body override the ones configured in the environment;
omitted fields fall back to the environment.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from zotcraft.config import AppConfig, CraftConfig, ZoteroConfig
from zotcraft.domain.models import SyncSettings


def _overrides(model: BaseModel) -> dict[str, Any]:
    return {key: value for key, value in model.model_dump().items() if value is not None}


class ZoteroCredentials(BaseModel):
    """Zotero credentials and folder selection supplied by the caller."""

    model_config = ConfigDict(populate_by_name=True)

    api_key: str | None = Field(default=None, alias="apiKey")
    user_id: str | None = Field(default=None, alias="userId")
    collection_id: str | None = Field(default=None, alias="collectionId")

    def merged_with(self, base: ZoteroConfig) -> ZoteroConfig:
        return ZoteroConfig.model_validate({**base.model_dump(), **_overrides(self)})


class CraftCredentials(BaseModel):
    """Craft credentials and destination supplied by the caller."""

    model_config = ConfigDict(populate_by_name=True)

    api_url: str | None = Field(default=None, alias="apiUrl")
    api_key: str | None = Field(default=None, alias="apiKey")
    parent_document_id: str | None = Field(default=None, alias="parentDocumentId")
    target_collection_id: str | None = Field(default=None, alias="targetCollectionId")

    def merged_with(self, base: CraftConfig) -> CraftConfig:
        return CraftConfig.model_validate({**base.model_dump(), **_overrides(self)})


class ConnectionTestRequest(BaseModel):
    """Request body for checking both services."""

    zotero: ZoteroCredentials = Field(default_factory=ZoteroCredentials)
    craft: CraftCredentials = Field(default_factory=CraftCredentials)


class SyncNowRequest(BaseModel):
    """Request body for running one sync pass."""

    model_config = ConfigDict(populate_by_name=True)

    zotero: ZoteroCredentials = Field(default_factory=ZoteroCredentials)
    craft: CraftCredentials = Field(default_factory=CraftCredentials)
    max_items: int | None = Field(default=None, ge=1, le=100, alias="maxItems")

    def to_sync_settings(self, cfg: AppConfig) -> SyncSettings:
        return SyncSettings(
            zotero=self.zotero.merged_with(cfg.zotero),
            craft=self.craft.merged_with(cfg.craft),
            max_items=self.max_items if self.max_items is not None else cfg.sync.max_items,
        )

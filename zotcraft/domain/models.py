"""Caller-owned pass configuration and the per-pass outcome summary."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from zotcraft.config.integrations import CraftConfig, ZoteroConfig

if TYPE_CHECKING:
    from zotcraft.config import AppConfig


class SyncSettings(BaseModel):
    """Everything one sync pass needs; never mutated by the orchestrator."""

    model_config = ConfigDict(frozen=True)

    zotero: ZoteroConfig
    craft: CraftConfig
    max_items: int = Field(default=50, ge=1, le=100)

    @classmethod
    def from_app_config(cls, cfg: AppConfig, *, max_items: int | None = None) -> SyncSettings:
        return cls(
            zotero=cfg.zotero,
            craft=cfg.craft,
            max_items=max_items if max_items is not None else cfg.sync.max_items,
        )


class SyncPassSummary(BaseModel):
    """Counts collected while a pass runs; logged once the pass ends."""

    created: int = 0
    skipped: int = 0
    failed: int = 0
    records_found: int = 0
    aborted: bool = False
    fatal: bool = False
    duration_seconds: float = 0.0

    @property
    def processed(self) -> int:
        return self.created + self.skipped + self.failed

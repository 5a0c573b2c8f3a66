"""Shared FastAPI dependencies."""

from __future__ import annotations

from zotcraft.config import AppConfig, load_config
from zotcraft.services.sync_orchestrator import SyncOrchestrator

_cfg: AppConfig | None = None


def get_config() -> AppConfig:
    global _cfg
    if _cfg is None:
        _cfg = load_config()
    return _cfg


def get_orchestrator() -> SyncOrchestrator:
    return SyncOrchestrator()

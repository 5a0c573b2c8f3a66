from __future__ import annotations

from .integrations import CraftConfig, SyncConfig, ZoteroConfig
from .settings import AppConfig, RuntimeConfig, Settings, load_config

__all__ = [
    "AppConfig",
    "CraftConfig",
    "RuntimeConfig",
    "Settings",
    "SyncConfig",
    "ZoteroConfig",
    "load_config",
]

"""Pytest configuration and shared fixtures.

This module provides common fixtures for all tests.
"""

from __future__ import annotations

from typing import Any

import pytest

from zotcraft.adapters.zotero.models import ZoteroItem
from zotcraft.config import CraftConfig, ZoteroConfig
from zotcraft.domain.models import SyncSettings

_CONFIG_ENV_VARS = (
    "ZOTERO_API_URL",
    "ZOTERO_API_KEY",
    "ZOTERO_USER_ID",
    "ZOTERO_COLLECTION_ID",
    "ZOTERO_TIMEOUT_SEC",
    "CRAFT_API_URL",
    "CRAFT_API_KEY",
    "CRAFT_PARENT_DOCUMENT_ID",
    "CRAFT_TARGET_COLLECTION_ID",
    "CRAFT_TIMEOUT_SEC",
    "SYNC_MAX_ITEMS",
    "AUTO_SYNC_ENABLED",
    "AUTO_SYNC_INTERVAL_MINUTES",
    "LOG_LEVEL",
    "LOG_FILE",
    "ALLOWED_ORIGINS",
)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's environment out of config-dependent tests."""
    for name in _CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def make_item(
    key: str = "ITEM0001",
    title: str = "Deep Learning",
    **data: Any,
) -> ZoteroItem:
    """Build a Zotero item the way the API returns it."""
    payload: dict[str, Any] = {
        "key": key,
        "itemType": "journalArticle",
        "title": title,
        "creators": [],
        "tags": [],
    }
    payload.update(data)
    return ZoteroItem.model_validate({"key": key, "version": 1, "data": payload})


@pytest.fixture
def zotero_config() -> ZoteroConfig:
    return ZoteroConfig(api_key="zotero-key", user_id="12345", collection_id="ABCD1234")


@pytest.fixture
def craft_collection_config() -> CraftConfig:
    return CraftConfig(
        api_url="https://craft.test/api/v1",
        api_key="craft-key",
        target_collection_id="col-1",
    )


@pytest.fixture
def craft_document_config() -> CraftConfig:
    return CraftConfig(
        api_url="https://craft.test/api/v1",
        api_key="craft-key",
        parent_document_id="doc-1",
    )


@pytest.fixture
def collection_settings(
    zotero_config: ZoteroConfig, craft_collection_config: CraftConfig
) -> SyncSettings:
    return SyncSettings(zotero=zotero_config, craft=craft_collection_config, max_items=10)


@pytest.fixture
def document_settings(
    zotero_config: ZoteroConfig, craft_document_config: CraftConfig
) -> SyncSettings:
    return SyncSettings(zotero=zotero_config, craft=craft_document_config, max_items=10)


@pytest.fixture
def item_factory():
    return make_item

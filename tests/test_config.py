"""Tests for environment-driven configuration."""

from __future__ import annotations

import pytest

from zotcraft.config import load_config
from zotcraft.config.integrations import DEFAULT_CRAFT_API_URL, CraftConfig, ZoteroConfig
from zotcraft.domain.models import SyncSettings


def test_defaults_without_environment():
    cfg = load_config()

    assert cfg.zotero.api_url == "https://api.zotero.org"
    assert cfg.zotero.configured is False
    assert cfg.craft.api_url == DEFAULT_CRAFT_API_URL
    assert cfg.craft.target_collection_id is None
    assert cfg.sync.max_items == 50
    assert cfg.sync.auto_sync_enabled is False
    assert cfg.sync.interval_minutes == 60
    assert cfg.runtime.log_level == "INFO"


def test_values_read_from_environment(monkeypatch):
    monkeypatch.setenv("ZOTERO_API_KEY", "zk")
    monkeypatch.setenv("ZOTERO_USER_ID", " 12345 ")
    monkeypatch.setenv("ZOTERO_COLLECTION_ID", "group:777:WXYZ9876")
    monkeypatch.setenv("CRAFT_API_URL", "https://craft.test/api/v1/")
    monkeypatch.setenv("CRAFT_API_KEY", "ck")
    monkeypatch.setenv("CRAFT_TARGET_COLLECTION_ID", "col-1")
    monkeypatch.setenv("CRAFT_PARENT_DOCUMENT_ID", "   ")
    monkeypatch.setenv("SYNC_MAX_ITEMS", "20")
    monkeypatch.setenv("AUTO_SYNC_ENABLED", "true")
    monkeypatch.setenv("AUTO_SYNC_INTERVAL_MINUTES", "30")
    monkeypatch.setenv("ALLOWED_ORIGINS", "http://a.test, http://b.test")

    cfg = load_config()

    assert cfg.zotero.configured
    assert cfg.zotero.user_id == "12345"
    assert cfg.zotero.collection_id == "group:777:WXYZ9876"
    assert cfg.craft.api_url == "https://craft.test/api/v1"
    assert cfg.craft.target_collection_id == "col-1"
    assert cfg.craft.parent_document_id is None
    assert cfg.sync.max_items == 20
    assert cfg.sync.auto_sync_enabled is True
    assert cfg.sync.interval_minutes == 30
    assert cfg.runtime.allowed_origins == ("http://a.test", "http://b.test")


def test_overrides_take_precedence(monkeypatch):
    monkeypatch.setenv("SYNC_MAX_ITEMS", "20")
    cfg = load_config(sync={"max_items": 5})
    assert cfg.sync.max_items == 5


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("SYNC_MAX_ITEMS", "0"),
        ("SYNC_MAX_ITEMS", "101"),
        ("SYNC_MAX_ITEMS", "many"),
        ("AUTO_SYNC_INTERVAL_MINUTES", "0"),
        ("ZOTERO_USER_ID", "alice"),
        ("CRAFT_API_KEY", "has space"),
        ("LOG_LEVEL", "VERBOSE"),
    ],
)
def test_invalid_values_fail_fast(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(RuntimeError, match="Configuration validation failed"):
        load_config()


def test_configured_flags():
    assert ZoteroConfig(api_key="k").configured is False
    assert ZoteroConfig(api_key="k", user_id="1").configured is True
    assert CraftConfig().configured is False
    assert CraftConfig(api_key="k").configured is True


def test_sync_settings_from_app_config(monkeypatch):
    monkeypatch.setenv("SYNC_MAX_ITEMS", "12")
    cfg = load_config()

    assert SyncSettings.from_app_config(cfg).max_items == 12
    assert SyncSettings.from_app_config(cfg, max_items=3).max_items == 3

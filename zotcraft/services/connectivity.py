"""Independent reachability checks for both services."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from zotcraft.adapters.craft.client import CraftClient
from zotcraft.adapters.zotero.client import ZoteroClient

if TYPE_CHECKING:
    from zotcraft.config import CraftConfig, ZoteroConfig

logger = logging.getLogger(__name__)


async def check_zotero(config: ZoteroConfig) -> bool:
    if not config.configured:
        return False
    async with ZoteroClient.from_config(config) as client:
        return await client.health_check()


async def check_craft(config: CraftConfig) -> bool:
    if not config.configured:
        return False
    async with CraftClient.from_config(config) as client:
        return await client.health_check()


async def check_connections(zotero: ZoteroConfig, craft: CraftConfig) -> dict[str, bool]:
    """Check both services concurrently; returns ``{"zotero": bool, "craft": bool}``."""
    zotero_ok, craft_ok = await asyncio.gather(check_zotero(zotero), check_craft(craft))
    logger.info("connection_test_complete", extra={"zotero": zotero_ok, "craft": craft_ok})
    return {"zotero": zotero_ok, "craft": craft_ok}

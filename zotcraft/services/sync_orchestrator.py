"""One-way sync pass from Zotero into Craft, reported as a stream of progress events."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any, Protocol

from zotcraft.adapters.craft.client import CraftClient
from zotcraft.adapters.craft.models import CollectionSchema
from zotcraft.adapters.zotero.client import ZoteroClient
from zotcraft.core.logging_utils import generate_correlation_id
from zotcraft.domain.events import SyncProgressEvent, SyncStatus
from zotcraft.domain.exceptions import UpstreamUnavailableError
from zotcraft.domain.models import SyncPassSummary
from zotcraft.services.field_mapper import map_properties
from zotcraft.services.note_text_builder import derive_note_fields, record_title, render_note_body

if TYPE_CHECKING:
    import asyncio
    from collections.abc import AsyncIterator, Sequence
    from contextlib import AbstractAsyncContextManager

    from zotcraft.adapters.craft.models import CreatedItem
    from zotcraft.adapters.zotero.models import FolderSelector, ZoteroItem
    from zotcraft.config import CraftConfig, ZoteroConfig
    from zotcraft.domain.models import SyncSettings

logger = logging.getLogger(__name__)

ALREADY_EXISTS = "Already exists"
BODY_NOT_ATTACHED = "Note body could not be attached"


class ZoteroClientProtocol(Protocol):
    async def list_target_records(
        self, selector: FolderSelector | str | None, limit: int = 50
    ) -> list[ZoteroItem]: ...


class CraftClientProtocol(Protocol):
    async def get_collection_schema(self, collection_id: str) -> CollectionSchema | None: ...

    async def item_exists_by_title(
        self,
        title: str,
        *,
        collection_id: str | None = None,
        parent_document_id: str | None = None,
    ) -> bool: ...

    async def create_collection_item(
        self,
        collection_id: str,
        title: str,
        body: str,
        properties: dict[str, Any] | None = None,
    ) -> CreatedItem: ...

    async def create_subpage(
        self, title: str, body: str, tags: Sequence[str] = ()
    ) -> CreatedItem: ...


class ZoteroClientFactory(Protocol):
    def __call__(
        self, config: ZoteroConfig
    ) -> AbstractAsyncContextManager[ZoteroClientProtocol]: ...


class CraftClientFactory(Protocol):
    def __call__(self, config: CraftConfig) -> AbstractAsyncContextManager[CraftClientProtocol]: ...


class SyncOrchestrator:
    """Runs sync passes: fetch records, skip known titles, create the rest as notes."""

    def __init__(
        self,
        *,
        zotero_factory: ZoteroClientFactory | None = None,
        craft_factory: CraftClientFactory | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            zotero_factory: Builds a Zotero client (async context manager) from its config
            craft_factory: Builds a Craft client (async context manager) from its config
        """
        self._zotero_factory = zotero_factory or ZoteroClient.from_config
        self._craft_factory = craft_factory or CraftClient.from_config

    @staticmethod
    def _missing_configuration(settings: SyncSettings) -> str | None:
        missing = []
        if not settings.zotero.configured:
            missing.append("Zotero API key and user ID")
        if not settings.craft.configured:
            missing.append("Craft API key")
        elif not (settings.craft.target_collection_id or settings.craft.parent_document_id):
            missing.append("Craft target collection or parent document")
        return ", ".join(missing) or None

    async def run(
        self,
        settings: SyncSettings,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> AsyncIterator[SyncProgressEvent]:
        """Run one pass, yielding progress events as they happen.

        Records are processed strictly one at a time. ``cancel_event`` is
        checked before each record; a set event ends the pass with a single
        ``warning`` event. A failure on one record yields an ``error`` event
        for that record and the pass moves on.
        """
        correlation_id = generate_correlation_id()
        summary = SyncPassSummary()
        start_time = time.time()
        collection_id = settings.craft.target_collection_id
        logger.info(
            "sync_pass_start",
            extra={
                "correlation_id": correlation_id,
                "max_items": settings.max_items,
                "folder": settings.zotero.collection_id or None,
                "collection_id": collection_id,
            },
        )

        try:
            missing = self._missing_configuration(settings)
            if missing:
                summary.fatal = True
                yield SyncProgressEvent.error("Missing configuration", f"Required: {missing}")
                return

            async with (
                self._zotero_factory(settings.zotero) as zotero,
                self._craft_factory(settings.craft) as craft,
            ):
                yield SyncProgressEvent.info("Connecting...")

                schema = CollectionSchema.empty()
                if collection_id:
                    try:
                        schema = (
                            await craft.get_collection_schema(collection_id)
                            or CollectionSchema.empty()
                        )
                    except (UpstreamUnavailableError, ValueError) as e:
                        logger.warning(
                            "craft_schema_fetch_failed",
                            extra={
                                "correlation_id": correlation_id,
                                "collection_id": collection_id,
                                "error": str(e),
                            },
                        )
                        yield SyncProgressEvent.warning(
                            "Could not load collection schema",
                            f"{e}. Properties will be skipped.",
                        )

                yield SyncProgressEvent.info(f"Fetching up to {settings.max_items} items...")
                try:
                    records = await zotero.list_target_records(
                        settings.zotero.collection_id, limit=settings.max_items
                    )
                except (UpstreamUnavailableError, ValueError) as e:
                    summary.fatal = True
                    logger.error(
                        "zotero_records_fetch_failed",
                        extra={"correlation_id": correlation_id, "error": str(e)},
                    )
                    yield SyncProgressEvent.error("Failed to fetch Zotero items", str(e))
                    return

                summary.records_found = len(records)
                yield SyncProgressEvent.success(f"Found {len(records)} items")

                for item in records:
                    if cancel_event is not None and cancel_event.is_set():
                        summary.aborted = True
                        logger.info(
                            "sync_pass_aborted",
                            extra={
                                "correlation_id": correlation_id,
                                "processed": summary.processed,
                            },
                        )
                        yield SyncProgressEvent.warning(
                            "Sync aborted",
                            f"Stopped after {summary.processed} of {len(records)} items",
                        )
                        return

                    title = record_title(item)
                    try:
                        event = await self._sync_record(
                            craft,
                            item,
                            title,
                            schema=schema,
                            settings=settings,
                        )
                    except Exception as e:
                        summary.failed += 1
                        logger.warning(
                            "sync_item_failed",
                            extra={
                                "correlation_id": correlation_id,
                                "item_key": item.key,
                                "error": str(e),
                            },
                        )
                        yield SyncProgressEvent.error(title, str(e))
                        continue

                    if event.status is SyncStatus.SKIPPED:
                        summary.skipped += 1
                    else:
                        summary.created += 1
                    yield event

        except Exception as e:
            summary.fatal = True
            logger.exception("sync_pass_unexpected_error", extra={"correlation_id": correlation_id})
            yield SyncProgressEvent.error("Sync failed", str(e))

        finally:
            summary.duration_seconds = time.time() - start_time
            logger.info(
                "sync_pass_complete",
                extra={
                    "correlation_id": correlation_id,
                    "records_found": summary.records_found,
                    "items_created": summary.created,
                    "items_skipped": summary.skipped,
                    "items_failed": summary.failed,
                    "aborted": summary.aborted,
                    "fatal": summary.fatal,
                    "duration": summary.duration_seconds,
                },
            )

    async def _sync_record(
        self,
        craft: CraftClientProtocol,
        item: ZoteroItem,
        title: str,
        *,
        schema: CollectionSchema,
        settings: SyncSettings,
    ) -> SyncProgressEvent:
        collection_id = settings.craft.target_collection_id

        if await craft.item_exists_by_title(
            title,
            collection_id=collection_id,
            parent_document_id=settings.craft.parent_document_id,
        ):
            return SyncProgressEvent.skipped(title, ALREADY_EXISTS)

        fields = derive_note_fields(item)
        properties = map_properties(fields, schema)
        body = render_note_body(fields)

        if collection_id:
            created = await craft.create_collection_item(collection_id, title, body, properties)
        else:
            created = await craft.create_subpage(title, body, fields.tags)

        logger.debug("sync_item_created", extra={"item_key": item.key, "craft_id": created.id})
        if not created.content_attached:
            return SyncProgressEvent.created(title, BODY_NOT_ATTACHED)
        return SyncProgressEvent.created(title)

"""Sync endpoint: runs one pass and streams its progress as NDJSON."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, Request
from starlette.responses import StreamingResponse

from zotcraft.api.dependencies import get_config, get_orchestrator
from zotcraft.api.exceptions import MissingCredentialsError
from zotcraft.api.models.requests import SyncNowRequest
from zotcraft.config import AppConfig
from zotcraft.domain.events import SyncProgressEvent
from zotcraft.domain.models import SyncSettings
from zotcraft.services.sync_orchestrator import SyncOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter()

NDJSON_MEDIA_TYPE = "application/x-ndjson"
DISCONNECT_POLL_SECONDS = 0.5


def _require_credentials(settings: SyncSettings) -> None:
    if not settings.zotero.configured:
        raise MissingCredentialsError("Zotero", ["apiKey", "userId"])
    if not settings.craft.configured:
        raise MissingCredentialsError("Craft", ["apiKey"])
    if not (settings.craft.target_collection_id or settings.craft.parent_document_id):
        raise MissingCredentialsError("Craft", ["targetCollectionId or parentDocumentId"])


async def _watch_disconnect(request: Request, cancel_event: asyncio.Event) -> None:
    while not cancel_event.is_set():
        if await request.is_disconnected():
            logger.info("sync_client_disconnected")
            cancel_event.set()
            return
        await asyncio.sleep(DISCONNECT_POLL_SECONDS)


# Detached pass tasks, kept referenced until they finish.
_background_passes: set[asyncio.Task[None]] = set()


async def stream_pass(
    orchestrator: SyncOrchestrator,
    settings: SyncSettings,
    cancel_event: asyncio.Event,
) -> AsyncIterator[SyncProgressEvent]:
    """Yield the events of one pass that runs in its own task.

    Closing or cancelling this generator only sets ``cancel_event``; the pass
    task finishes its current record and stops at the next cancellation check.
    """
    queue: asyncio.Queue[SyncProgressEvent | None] = asyncio.Queue()

    async def _run_pass() -> None:
        try:
            async for event in orchestrator.run(settings, cancel_event=cancel_event):
                queue.put_nowait(event)
        finally:
            queue.put_nowait(None)

    producer = asyncio.create_task(_run_pass())
    _background_passes.add(producer)
    producer.add_done_callback(_background_passes.discard)
    try:
        while (event := await queue.get()) is not None:
            yield event
    finally:
        if not producer.done():
            logger.info("sync_stream_closed_early")
            cancel_event.set()


@router.post("/now")
async def sync_now(
    body: SyncNowRequest,
    request: Request,
    cfg: AppConfig = Depends(get_config),
    orchestrator: SyncOrchestrator = Depends(get_orchestrator),
) -> StreamingResponse:
    """Run a sync pass; each progress event is one JSON line of the response."""
    settings = body.to_sync_settings(cfg)
    _require_credentials(settings)

    async def _stream() -> AsyncIterator[str]:
        cancel_event = asyncio.Event()
        watcher = asyncio.create_task(_watch_disconnect(request, cancel_event))
        try:
            async for event in stream_pass(orchestrator, settings, cancel_event):
                yield event.to_ndjson()
        finally:
            watcher.cancel()

    return StreamingResponse(_stream(), media_type=NDJSON_MEDIA_TYPE)

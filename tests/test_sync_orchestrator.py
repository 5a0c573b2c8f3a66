"""Tests for the sync pass: event order, per-record isolation, idempotence and cancellation.

The Zotero and Craft clients are replaced with in-memory fakes handed to the
orchestrator through its client factories. Schema parsing runs through a real
Craft client over ``httpx.MockTransport``.
"""

from __future__ import annotations

import asyncio
import json
from contextlib import asynccontextmanager
from typing import Any

import httpx
import pytest

from zotcraft.adapters.craft.client import CraftClient
from zotcraft.adapters.craft.models import CollectionSchema, CreatedItem
from zotcraft.adapters.zotero.models import ZoteroItem
from zotcraft.config import CraftConfig, ZoteroConfig
from zotcraft.domain.events import SyncProgressEvent, SyncStatus
from zotcraft.domain.exceptions import CreateFailedError, UpstreamUnavailableError
from zotcraft.domain.models import SyncSettings
from zotcraft.services.sync_orchestrator import BODY_NOT_ATTACHED, SyncOrchestrator


def _item(key: str = "ITEM0001", title: str = "Deep Learning", **data: Any) -> ZoteroItem:
    payload = {"key": key, "itemType": "journalArticle", "title": title, **data}
    return ZoteroItem.model_validate({"key": key, "version": 1, "data": payload})


class FakeZotero:
    def __init__(self, records=None, error: Exception | None = None) -> None:
        self.records = list(records or [])
        self.error = error
        self.calls: list[tuple[Any, int]] = []

    async def list_target_records(self, selector, limit: int = 50):
        self.calls.append((selector, limit))
        if self.error is not None:
            raise self.error
        return self.records[:limit]


class FakeCraft:
    """Destination that remembers created titles so a second pass sees them."""

    def __init__(
        self,
        schema: CollectionSchema | None = None,
        *,
        schema_error: Exception | None = None,
        fail_titles: tuple[str, ...] = (),
        attach_ok: bool = True,
    ) -> None:
        self.schema = schema
        self.schema_error = schema_error
        self.fail_titles = fail_titles
        self.attach_ok = attach_ok
        self.titles: set[str] = set()
        self.collection_items: list[dict[str, Any]] = []
        self.subpages: list[dict[str, Any]] = []
        self.on_create = None

    async def get_collection_schema(self, collection_id: str):
        if self.schema_error is not None:
            raise self.schema_error
        return self.schema

    async def item_exists_by_title(self, title, *, collection_id=None, parent_document_id=None):
        return title.strip() in self.titles

    async def create_collection_item(self, collection_id, title, body, properties=None):
        if title in self.fail_titles:
            raise CreateFailedError(
                "Failed to create Craft collection item: 400 bad", status_code=400, body="bad"
            )
        self.titles.add(title.strip())
        self.collection_items.append(
            {"collection_id": collection_id, "title": title, "body": body, "properties": properties}
        )
        if self.on_create is not None:
            self.on_create()
        return CreatedItem(id=f"item-{len(self.collection_items)}", content_attached=self.attach_ok)

    async def create_subpage(self, title, body, tags=()):
        self.titles.add(title.strip())
        self.subpages.append({"title": title, "body": body, "tags": tuple(tags)})
        return CreatedItem(id=f"page-{len(self.subpages)}")


def _orchestrator(zotero: FakeZotero, craft: FakeCraft) -> SyncOrchestrator:
    @asynccontextmanager
    async def zotero_factory(config):
        yield zotero

    @asynccontextmanager
    async def craft_factory(config):
        yield craft

    return SyncOrchestrator(zotero_factory=zotero_factory, craft_factory=craft_factory)


async def _collect(orchestrator, settings, cancel_event=None) -> list[SyncProgressEvent]:
    return [event async for event in orchestrator.run(settings, cancel_event=cancel_event)]


def _statuses(events: list[SyncProgressEvent]) -> list[SyncStatus]:
    return [event.status for event in events]


def _item_events(events: list[SyncProgressEvent]) -> list[SyncProgressEvent]:
    per_item = {SyncStatus.CREATED, SyncStatus.SKIPPED, SyncStatus.ERROR}
    return [event for event in events if event.status in per_item]


# ---------------------------------------------------------------------------
# Happy path and idempotence
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_pass_event_sequence(collection_settings):
    zotero = FakeZotero([_item("K1", "Alpha"), _item("K2", "Beta")])
    craft = FakeCraft(CollectionSchema.empty())

    events = await _collect(_orchestrator(zotero, craft), collection_settings)

    assert [(e.status, e.title) for e in events] == [
        (SyncStatus.INFO, "Connecting..."),
        (SyncStatus.INFO, "Fetching up to 10 items..."),
        (SyncStatus.SUCCESS, "Found 2 items"),
        (SyncStatus.CREATED, "Alpha"),
        (SyncStatus.CREATED, "Beta"),
    ]
    assert zotero.calls == [("ABCD1234", 10)]


@pytest.mark.asyncio
async def test_second_pass_skips_everything(collection_settings):
    zotero = FakeZotero([_item("K1", "Alpha"), _item("K2", "Beta")])
    craft = FakeCraft(CollectionSchema.empty())
    orchestrator = _orchestrator(zotero, craft)

    await _collect(orchestrator, collection_settings)
    second = await _collect(orchestrator, collection_settings)

    items = _item_events(second)
    assert _statuses(items) == [SyncStatus.SKIPPED, SyncStatus.SKIPPED]
    assert all(event.details == "Already exists" for event in items)
    assert len(craft.collection_items) == 2


@pytest.mark.asyncio
async def test_padded_title_is_skipped(collection_settings):
    craft = FakeCraft(CollectionSchema.empty())
    craft.titles.add("Foo")
    zotero = FakeZotero([_item("K1", "Foo ")])

    events = await _collect(_orchestrator(zotero, craft), collection_settings)

    assert _statuses(_item_events(events)) == [SyncStatus.SKIPPED]
    assert craft.collection_items == []


@pytest.mark.asyncio
async def test_properties_follow_schema(collection_settings):
    schema = CollectionSchema.from_properties(
        [
            {"key": "p_year", "name": "Year", "type": "number"},
            {"key": "p_tags", "name": "Tags", "type": "multiSelect", "options": ["Physics"]},
        ]
    )
    item = _item("K1", "Quantum", date="2019", tags=[{"tag": "physics"}, {"tag": "qc"}])
    craft = FakeCraft(schema)

    await _collect(_orchestrator(FakeZotero([item]), craft), collection_settings)

    assert craft.collection_items[0]["properties"] == {"p_year": 2019, "p_tags": ["Physics"]}


# ---------------------------------------------------------------------------
# Failure isolation
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_failed_record_does_not_stop_pass(collection_settings):
    zotero = FakeZotero([_item("K1", "One"), _item("K2", "Two"), _item("K3", "Three")])
    craft = FakeCraft(CollectionSchema.empty(), fail_titles=("Two",))

    events = await _collect(_orchestrator(zotero, craft), collection_settings)

    items = _item_events(events)
    assert [(e.status, e.title) for e in items] == [
        (SyncStatus.CREATED, "One"),
        (SyncStatus.ERROR, "Two"),
        (SyncStatus.CREATED, "Three"),
    ]
    assert "400" in (items[1].details or "")


@pytest.mark.asyncio
async def test_fetch_failure_ends_pass(collection_settings):
    zotero = FakeZotero(
        error=UpstreamUnavailableError(
            "Failed to fetch Zotero items: Forbidden", service="zotero", status_code=403
        )
    )
    craft = FakeCraft(CollectionSchema.empty())

    events = await _collect(_orchestrator(zotero, craft), collection_settings)

    assert events[-1].status is SyncStatus.ERROR
    assert events[-1].title == "Failed to fetch Zotero items"
    assert events[-1].details == "Failed to fetch Zotero items: Forbidden"
    assert _statuses(events).count(SyncStatus.ERROR) == 1
    assert SyncStatus.SUCCESS not in _statuses(events)


@pytest.mark.asyncio
async def test_schema_failure_degrades_to_no_properties(collection_settings):
    schema_error = UpstreamUnavailableError(
        "Failed to load Craft collection schema: Not Found", service="craft", status_code=404
    )
    craft = FakeCraft(schema_error=schema_error)
    item = _item("K1", "Alpha", date="2020")

    events = await _collect(_orchestrator(FakeZotero([item]), craft), collection_settings)

    warning = events[1]
    assert warning.status is SyncStatus.WARNING
    assert warning.title == "Could not load collection schema"
    assert warning.details == (
        "Failed to load Craft collection schema: Not Found. Properties will be skipped."
    )
    assert _statuses(_item_events(events)) == [SyncStatus.CREATED]
    assert craft.collection_items[0]["properties"] == {}


def _real_craft_orchestrator(zotero: FakeZotero, schema_response: httpx.Response, log: list):
    """Orchestrator over a real CraftClient whose HTTP traffic is served in memory."""

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/api/v1")
        if request.method == "POST":
            log.append((path, request.content))
        if path == "/collections/col-1/schema":
            return httpx.Response(
                schema_response.status_code,
                headers=schema_response.headers,
                content=schema_response.content,
            )
        if request.method == "GET" and path == "/collections/col-1/items":
            return httpx.Response(200, json={"items": []})
        if path == "/collections/col-1/items":
            return httpx.Response(200, json={"items": [{"id": "new-1"}]})
        if path == "/blocks":
            return httpx.Response(200, json={"items": [{"id": "blk-1"}]})
        return httpx.Response(404)

    @asynccontextmanager
    async def zotero_factory(config):
        yield zotero

    def craft_factory(config):
        return CraftClient.from_config(config, transport=httpx.MockTransport(handler))

    return SyncOrchestrator(zotero_factory=zotero_factory, craft_factory=craft_factory)


@pytest.mark.asyncio
async def test_unparseable_schema_body_degrades(collection_settings):
    log: list = []
    schema_response = httpx.Response(200, text="<html>oops</html>")
    zotero = FakeZotero([_item("K1", "Alpha")])
    orchestrator = _real_craft_orchestrator(zotero, schema_response, log)

    events = await _collect(orchestrator, collection_settings)

    assert [(e.status, e.title) for e in events] == [
        (SyncStatus.INFO, "Connecting..."),
        (SyncStatus.WARNING, "Could not load collection schema"),
        (SyncStatus.INFO, "Fetching up to 10 items..."),
        (SyncStatus.SUCCESS, "Found 1 items"),
        (SyncStatus.CREATED, "Alpha"),
    ]
    assert "not valid JSON" in (events[1].details or "")
    assert json.loads(log[0][1])["items"][0]["properties"] == {}


@pytest.mark.asyncio
async def test_malformed_schema_field_is_skipped(collection_settings):
    log: list = []
    schema_response = httpx.Response(
        200,
        json={
            "properties": [
                {"name": "Year", "type": "number"},
                {"key": "p_journal", "name": "Journal", "type": "text"},
            ]
        },
    )
    item = _item("K1", "Alpha", date="2020", publicationTitle="Nature")
    orchestrator = _real_craft_orchestrator(FakeZotero([item]), schema_response, log)

    events = await _collect(orchestrator, collection_settings)

    assert SyncStatus.WARNING not in _statuses(events)
    assert _statuses(_item_events(events)) == [SyncStatus.CREATED]
    assert json.loads(log[0][1])["items"][0]["properties"] == {"p_journal": "Nature"}


@pytest.mark.asyncio
async def test_attach_failure_reported_on_created_event(collection_settings):
    craft = FakeCraft(CollectionSchema.empty(), attach_ok=False)

    events = await _collect(
        _orchestrator(FakeZotero([_item("K1", "Alpha")]), craft), collection_settings
    )

    created = _item_events(events)[0]
    assert created.status is SyncStatus.CREATED
    assert created.details == BODY_NOT_ATTACHED


@pytest.mark.asyncio
async def test_missing_configuration_yields_single_error():
    settings = SyncSettings(zotero=ZoteroConfig(), craft=CraftConfig(api_key="k"), max_items=5)

    events = await _collect(_orchestrator(FakeZotero(), FakeCraft()), settings)

    assert len(events) == 1
    assert events[0].status is SyncStatus.ERROR
    assert events[0].title == "Missing configuration"
    assert "Zotero API key and user ID" in (events[0].details or "")
    assert "Craft target collection or parent document" in (events[0].details or "")


# ---------------------------------------------------------------------------
# Cancellation
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_cancel_after_first_record(collection_settings):
    zotero = FakeZotero([_item(f"K{i}", f"Paper {i}") for i in range(1, 6)])
    craft = FakeCraft(CollectionSchema.empty())
    cancel_event = asyncio.Event()
    craft.on_create = cancel_event.set

    events = await _collect(_orchestrator(zotero, craft), collection_settings, cancel_event)

    assert _statuses(_item_events(events)) == [SyncStatus.CREATED]
    assert events[-1].status is SyncStatus.WARNING
    assert events[-1].title == "Sync aborted"
    assert events[-1].details == "Stopped after 1 of 5 items"
    assert len(craft.collection_items) == 1


@pytest.mark.asyncio
async def test_cancel_before_start_processes_nothing(collection_settings):
    cancel_event = asyncio.Event()
    cancel_event.set()
    craft = FakeCraft(CollectionSchema.empty())

    events = await _collect(
        _orchestrator(FakeZotero([_item()]), craft), collection_settings, cancel_event
    )

    assert _item_events(events) == []
    assert events[-1].details == "Stopped after 0 of 1 items"


# ---------------------------------------------------------------------------
# Document subpage mode
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_subpage_mode_end_to_end(document_settings):
    item = _item(
        "DL000001",
        "Deep Learning",
        creators=[{"creatorType": "author", "name": "A. Ng"}],
        date="2015-03",
        tags=[{"tag": "machine learning"}],
        abstractNote="",
    )
    craft = FakeCraft()

    events = await _collect(_orchestrator(FakeZotero([item]), craft), document_settings)

    assert events[-1] == SyncProgressEvent.created("Deep Learning")
    assert craft.collection_items == []

    subpage = craft.subpages[0]
    assert subpage["title"] == "Deep Learning"
    assert subpage["tags"] == ("#machine_learning",)
    body = subpage["body"]
    assert body.startswith("**Authors:** A. Ng\n**Year:** 2015\n")
    assert "**Tags:** #machine_learning\n" in body
    assert "No abstract available." in body
    assert body.index("## Key Ideas") < body.index("## Quotes") < body.index("## Critique")
    assert body.index("## Critique") < body.index("## Related Work")


@pytest.mark.asyncio
async def test_collection_takes_precedence_over_document(zotero_config):
    craft_config = CraftConfig(api_key="k", target_collection_id="col-1", parent_document_id="d")
    settings = SyncSettings(zotero=zotero_config, craft=craft_config, max_items=3)
    craft = FakeCraft(CollectionSchema.empty())

    await _collect(_orchestrator(FakeZotero([_item()]), craft), settings)

    assert len(craft.collection_items) == 1
    assert craft.subpages == []

"""Tests for the auto-sync scheduler."""

from __future__ import annotations

import pytest

from zotcraft.config import AppConfig, CraftConfig, RuntimeConfig, SyncConfig, ZoteroConfig
from zotcraft.domain.events import SyncProgressEvent
from zotcraft.services.scheduler import AUTO_SYNC_JOB_ID, SchedulerService


class FakeOrchestrator:
    def __init__(self, events, error: Exception | None = None):
        self.events = events
        self.error = error
        self.runs = 0

    async def run(self, settings, *, cancel_event=None):
        self.runs += 1
        for event in self.events:
            yield event
        if self.error is not None:
            raise self.error


def _config(*, auto_sync_enabled: bool = False) -> AppConfig:
    return AppConfig(
        zotero=ZoteroConfig(api_key="zk", user_id="1"),
        craft=CraftConfig(api_key="ck", target_collection_id="col-1"),
        sync=SyncConfig(auto_sync_enabled=auto_sync_enabled, interval_minutes=15),
        runtime=RuntimeConfig(),
    )


@pytest.mark.asyncio
async def test_job_added_when_auto_sync_enabled():
    service = SchedulerService(_config(auto_sync_enabled=True), FakeOrchestrator([]))
    await service.start()
    try:
        job = service._scheduler.get_job(AUTO_SYNC_JOB_ID)
        assert job is not None
        assert job.max_instances == 1
        assert job.trigger.interval.total_seconds() == 15 * 60
        assert service.get_next_run_time() is not None
        assert service.is_running
    finally:
        await service.stop()
    assert not service.is_running
    assert service.get_next_run_time() is None


@pytest.mark.asyncio
async def test_job_skipped_when_auto_sync_disabled():
    service = SchedulerService(_config(), FakeOrchestrator([]))
    await service.start()
    try:
        assert service._scheduler.get_job(AUTO_SYNC_JOB_ID) is None
    finally:
        await service.stop()


@pytest.mark.asyncio
async def test_force_adds_job_regardless_of_setting():
    service = SchedulerService(_config(), FakeOrchestrator([]))
    await service.start(force=True)
    try:
        assert service._scheduler.get_job(AUTO_SYNC_JOB_ID) is not None
    finally:
        await service.stop()


@pytest.mark.asyncio
async def test_run_scheduled_sync_counts_statuses():
    orchestrator = FakeOrchestrator(
        [
            SyncProgressEvent.info("Connecting..."),
            SyncProgressEvent.created("A"),
            SyncProgressEvent.created("B"),
            SyncProgressEvent.skipped("C", "Already exists"),
        ]
    )
    service = SchedulerService(_config(), orchestrator)

    counts = await service.run_scheduled_sync()

    assert counts == {"info": 1, "created": 2, "skipped": 1}


@pytest.mark.asyncio
async def test_run_scheduled_sync_survives_unexpected_error():
    orchestrator = FakeOrchestrator([SyncProgressEvent.created("A")], error=RuntimeError("boom"))
    service = SchedulerService(_config(), orchestrator)

    counts = await service.run_scheduled_sync()

    assert counts["created"] == 1
    assert orchestrator.runs == 1

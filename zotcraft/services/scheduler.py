"""Background scheduler for periodic sync passes."""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime
from typing import TYPE_CHECKING

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from zotcraft.domain.models import SyncSettings
from zotcraft.services.sync_orchestrator import SyncOrchestrator

if TYPE_CHECKING:
    from zotcraft.config import AppConfig

logger = logging.getLogger(__name__)

AUTO_SYNC_JOB_ID = "zotero_craft_sync"


class SchedulerService:
    """Runs a sync pass on a fixed interval when auto-sync is enabled."""

    def __init__(self, cfg: AppConfig, orchestrator: SyncOrchestrator | None = None) -> None:
        """Initialize scheduler service.

        Args:
            cfg: Application configuration
            orchestrator: Sync orchestrator; a default one is built when omitted
        """
        self.cfg = cfg
        self.orchestrator = orchestrator or SyncOrchestrator()
        self._scheduler: AsyncIOScheduler | None = None
        self._started = False

    async def start(self, *, force: bool = False) -> None:
        """Start the scheduler; ``force`` adds the sync job even if auto-sync is off."""
        if self._started:
            logger.warning("scheduler_already_started")
            return

        self._scheduler = AsyncIOScheduler()

        if force or self.cfg.sync.auto_sync_enabled:
            self._scheduler.add_job(
                self.run_scheduled_sync,
                trigger=IntervalTrigger(minutes=self.cfg.sync.interval_minutes),
                id=AUTO_SYNC_JOB_ID,
                name="Zotero to Craft Sync",
                replace_existing=True,
                max_instances=1,  # passes never overlap
                next_run_time=datetime.now(),
            )
            logger.info(
                "scheduler_sync_job_added",
                extra={
                    "job_id": AUTO_SYNC_JOB_ID,
                    "interval_minutes": self.cfg.sync.interval_minutes,
                },
            )
        else:
            logger.info(
                "scheduler_sync_job_skipped",
                extra={"auto_sync_enabled": self.cfg.sync.auto_sync_enabled},
            )

        self._scheduler.start()
        self._started = True
        logger.info("scheduler_started")

    async def stop(self) -> None:
        """Stop the scheduler gracefully."""
        if self._scheduler and self._started:
            self._scheduler.shutdown(wait=True)
            self._scheduler = None
            self._started = False
            logger.info("scheduler_stopped")

    async def run_scheduled_sync(self) -> Counter[str]:
        """Execute one pass to completion and return event counts by status."""
        settings = SyncSettings.from_app_config(self.cfg)
        counts: Counter[str] = Counter()
        logger.info("scheduled_sync_starting", extra={"max_items": settings.max_items})

        try:
            async for event in self.orchestrator.run(settings):
                counts[event.status.value] += 1
        except Exception as e:
            logger.exception("scheduled_sync_failed", extra={"error": str(e)})
            return counts

        logger.info("scheduled_sync_complete", extra={"counts": dict(counts)})
        return counts

    def get_next_run_time(self, job_id: str = AUTO_SYNC_JOB_ID) -> datetime | None:
        if not self._scheduler or not self._started:
            return None
        job = self._scheduler.get_job(job_id)
        return job.next_run_time if job else None

    @property
    def is_running(self) -> bool:
        """Check if scheduler is running."""
        return self._started and self._scheduler is not None

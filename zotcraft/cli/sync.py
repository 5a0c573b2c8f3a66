"""Command-line sync runner.

Runs one pass (default) or keeps running passes on a timer, reading
credentials from the environment / ``.env``.

Usage:
    zotcraft-sync [--limit N] [--once | --interval-minutes M] [--log-level LEVEL]
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import signal
import sys
from typing import TYPE_CHECKING, Any, TextIO

from zotcraft.config import load_config
from zotcraft.core.logging_utils import setup_json_logging
from zotcraft.domain.events import SyncStatus
from zotcraft.domain.models import SyncSettings
from zotcraft.services.scheduler import SchedulerService
from zotcraft.services.sync_orchestrator import SyncOrchestrator

if TYPE_CHECKING:
    from zotcraft.config import AppConfig

logger = logging.getLogger("zotcraft.cli")

_STATUS_MARKERS = {
    SyncStatus.INFO: "..",
    SyncStatus.SUCCESS: "ok",
    SyncStatus.CREATED: "+",
    SyncStatus.SKIPPED: "=",
    SyncStatus.WARNING: "!",
    SyncStatus.ERROR: "x",
}


async def run_once(
    cfg: AppConfig,
    *,
    limit: int | None = None,
    orchestrator: SyncOrchestrator | None = None,
    out: TextIO = sys.stdout,
) -> int:
    """Run one sync pass, printing each event as it arrives.

    Returns:
        Exit code (0 when no ``error`` event occurred, else 1)
    """
    orchestrator = orchestrator or SyncOrchestrator()
    settings = SyncSettings.from_app_config(cfg, max_items=limit)
    cancel_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    with contextlib.suppress(NotImplementedError):
        loop.add_signal_handler(signal.SIGINT, cancel_event.set)

    counts = dict.fromkeys(SyncStatus, 0)
    try:
        async for event in orchestrator.run(settings, cancel_event=cancel_event):
            counts[event.status] += 1
            line = f"[{_STATUS_MARKERS[event.status]}] {event.title}"
            if event.details:
                line += f" - {event.details}"
            print(line, file=out)
    finally:
        with contextlib.suppress(NotImplementedError):
            loop.remove_signal_handler(signal.SIGINT)

    print(
        f"\nCreated: {counts[SyncStatus.CREATED]}, "
        f"skipped: {counts[SyncStatus.SKIPPED]}, "
        f"errors: {counts[SyncStatus.ERROR]}",
        file=out,
    )
    return 1 if counts[SyncStatus.ERROR] else 0


async def run_forever(cfg: AppConfig) -> int:
    """Run passes every ``cfg.sync.interval_minutes`` until interrupted."""
    scheduler = SchedulerService(cfg)
    await scheduler.start(force=True)
    try:
        await asyncio.Event().wait()
    finally:
        await scheduler.stop()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Sync Zotero records into Craft notes")
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Maximum records per pass (1-100, defaults to SYNC_MAX_ITEMS)",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--once", action="store_true", help="Run a single pass (default)")
    mode.add_argument(
        "--interval-minutes",
        type=int,
        default=None,
        help="Keep running, one pass every M minutes",
    )
    parser.add_argument("--log-level", default=None, help="Overrides LOG_LEVEL")
    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    overrides: dict[str, Any] = {}
    sync_overrides: dict[str, Any] = {}
    if args.limit is not None:
        sync_overrides["max_items"] = args.limit
    if args.interval_minutes is not None:
        sync_overrides["interval_minutes"] = args.interval_minutes
    if sync_overrides:
        overrides["sync"] = sync_overrides
    if args.log_level:
        overrides["runtime"] = {"log_level": args.log_level}

    try:
        cfg = load_config(**overrides)
    except RuntimeError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(2)

    setup_json_logging(cfg.runtime.log_level, log_file=cfg.runtime.log_file)

    try:
        if args.interval_minutes is not None:
            exit_code = asyncio.run(run_forever(cfg))
        else:
            exit_code = asyncio.run(run_once(cfg))
    except KeyboardInterrupt:
        logger.info("sync_cli_interrupted")
        exit_code = 0
    sys.exit(exit_code)


if __name__ == "__main__":
    main()

"""Scheduler module for the background sync workers."""

import asyncio
from typing import List, Optional

import structlog
from apscheduler.executors.asyncio import AsyncIOExecutor
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from app.core.config import Settings, get_global_settings
from .base import BaseWorker
from .implementations import OsuPlayerDataWorker, OsuTrackWorker

logger = structlog.get_logger(__name__)

# Global scheduler state
_scheduler: Optional[AsyncIOScheduler] = None
_workers: List[BaseWorker] = []
_shutdown_event: Optional[asyncio.Event] = None


def get_scheduler() -> Optional[AsyncIOScheduler]:
    """Get the global scheduler instance.

    Returns:
        The scheduler instance if started, None otherwise.
    """
    return _scheduler


def get_workers() -> List[BaseWorker]:
    """Get the workers registered with the running scheduler."""
    return list(_workers)


def build_workers(
    settings: Settings, shutdown_event: asyncio.Event
) -> List[tuple[BaseWorker, int, int]]:
    """Create the sync workers with their interval and instance limit.

    The osu!track worker serializes overlapping ticks on its own lock, so it
    may have several pending instances; the player worker drains its queue
    within one tick and never overlaps.

    :returns: ``(worker, interval_seconds, max_instances)`` triples
    """
    return [
        (
            OsuPlayerDataWorker(settings=settings, shutdown_event=shutdown_event),
            settings.player_refresh_interval_seconds,
            1,
        ),
        (
            OsuTrackWorker(settings=settings, shutdown_event=shutdown_event),
            settings.osu_track_interval_seconds,
            3,
        ),
    ]


async def start_workers(
    settings: Optional[Settings] = None,
) -> Optional[AsyncIOScheduler]:
    """Start the sync workers when ``auto_update_users`` is enabled.

    Returns:
        The started scheduler, or None when the workers are disabled.
    """
    global _scheduler, _workers, _shutdown_event

    settings = settings or get_global_settings()

    if not settings.auto_update_users:
        logger.info("Sync workers are disabled via configuration")
        return None

    if _scheduler is not None:
        logger.warning("Scheduler already initialized")
        return _scheduler

    _shutdown_event = asyncio.Event()
    _scheduler = AsyncIOScheduler(
        executors={"default": AsyncIOExecutor()},
        job_defaults={
            "coalesce": True,  # Combine multiple missed runs into one
            "misfire_grace_time": 60,
        },
        timezone="UTC",
    )

    _workers = []
    for worker, interval_seconds, max_instances in build_workers(
        settings, _shutdown_event
    ):
        _scheduler.add_job(
            worker.run,
            trigger="interval",
            seconds=interval_seconds,
            id=worker.name,
            name=worker.name,
            max_instances=max_instances,
            replace_existing=True,
        )
        _workers.append(worker)
        logger.info(
            "Scheduled worker",
            worker=worker.name,
            interval_seconds=interval_seconds,
            max_instances=max_instances,
        )

    _scheduler.start()
    logger.info("Sync workers started", count=len(_workers))
    return _scheduler


async def shutdown_workers() -> None:
    """Signal the workers to stop, then shut the scheduler down."""
    global _scheduler, _workers, _shutdown_event

    if _scheduler is None:
        logger.info("Scheduler is not running, nothing to shutdown")
        return

    logger.info("Shutting down sync workers")
    if _shutdown_event is not None:
        _shutdown_event.set()

    _scheduler.shutdown(wait=False)
    for worker in _workers:
        try:
            await worker.close()
        except Exception as e:
            logger.error(
                "Failed to close worker resources",
                worker=worker.name,
                error=str(e),
                error_type=type(e).__name__,
            )

    _scheduler = None
    _workers = []
    _shutdown_event = None
    logger.info("Sync workers shut down")

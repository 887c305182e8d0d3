"""
Background jobs: periodic calendar sync and periodic status sweep.

Uses APScheduler's BackgroundScheduler so jobs run in worker threads next to
the FastAPI app. Each job allows a single running instance and coalesces
missed runs.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import structlog
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from stay_sync.config import (
    CALENDAR_FEED_URL,
    CALENDAR_SYNC_INTERVAL_MINUTES,
    STATUS_SWEEP_INTERVAL_MINUTES,
)

logger = structlog.get_logger(__name__)

_scheduler: Optional[BackgroundScheduler] = None

CALENDAR_SYNC_JOB_ID = "calendar_sync"
STATUS_SWEEP_JOB_ID = "status_sweep"


def calendar_sync_job() -> None:
    from stay_sync.services.calendar_sync import run_calendar_sync

    run_calendar_sync()


def status_sweep_job() -> None:
    """Sweep statuses; errors are logged and retried on the next tick."""
    from stay_sync.db.engine import engine
    from stay_sync.services.status import run_status_sweep

    try:
        run_status_sweep(engine)
    except Exception as e:
        logger.exception("status_sweep_job_failed", error=str(e))


def build_scheduler() -> BackgroundScheduler:
    """
    Create a scheduler with both jobs registered (not started).

    Returns:
        BackgroundScheduler: Configured scheduler
    """
    scheduler = BackgroundScheduler(
        timezone=timezone.utc,
        job_defaults={"max_instances": 1, "coalesce": True},
    )
    now = datetime.now(timezone.utc)

    if CALENDAR_FEED_URL:
        scheduler.add_job(
            calendar_sync_job,
            IntervalTrigger(minutes=CALENDAR_SYNC_INTERVAL_MINUTES),
            id=CALENDAR_SYNC_JOB_ID,
            name="External calendar sync",
            next_run_time=now,
            replace_existing=True,
        )
    else:
        logger.info("calendar_sync_job_disabled", reason="no feed url configured")

    scheduler.add_job(
        status_sweep_job,
        IntervalTrigger(minutes=STATUS_SWEEP_INTERVAL_MINUTES),
        id=STATUS_SWEEP_JOB_ID,
        name="Reservation status sweep",
        next_run_time=now,
        replace_existing=True,
    )
    return scheduler


def start_scheduler() -> BackgroundScheduler:
    global _scheduler

    if _scheduler is not None and _scheduler.running:
        logger.warning("scheduler_already_running")
        return _scheduler

    _scheduler = build_scheduler()
    _scheduler.start()
    logger.info(
        "scheduler_started",
        jobs=[job.id for job in _scheduler.get_jobs()],
        sync_interval_minutes=CALENDAR_SYNC_INTERVAL_MINUTES,
        sweep_interval_minutes=STATUS_SWEEP_INTERVAL_MINUTES,
    )
    return _scheduler


def stop_scheduler() -> None:
    """Shut down without waiting; an in-flight sync is abandoned before it commits."""
    global _scheduler

    if _scheduler is None:
        return
    if _scheduler.running:
        _scheduler.shutdown(wait=False)
        logger.info("scheduler_stopped")
    _scheduler = None

"""Feed-level sync orchestrator for the external calendar."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import structlog
from sqlalchemy.engine import Engine

from stay_sync.config import CALENDAR_FEED_NAME, CALENDAR_FEED_URL
from stay_sync.db.readers.calendar import count_feed_events
from stay_sync.db.writers.calendar import record_sync_failure, replace_feed_events
from stay_sync.errors import SyncFailure
from stay_sync.metrics import events_skipped, events_synced, sync_failures
from stay_sync.network.client import redact_url
from stay_sync.normalizers.ical import dedupe_events
from stay_sync.pollers.calendar import poll_calendar
from stay_sync.utils.datetime import utc_now

logger = structlog.get_logger(__name__)

_sync_lock = threading.Lock()


@dataclass(frozen=True)
class SyncResult:
    succeeded: bool
    event_count: int = 0
    skipped: int = 0
    reason: Optional[str] = None


def sync_calendar(
    engine: Engine,
    feed_name: str,
    url: str,
    now: datetime,
    dry_run: bool = False,
) -> SyncResult:
    """
    Fetch, parse and store one feed.

    On success the feed's events are replaced wholesale. On failure the
    stored events and ``last_sync_at`` stay as they were and only the error
    bookkeeping is updated. Nothing is raised for a failed sync.

    Args:
        engine (Engine): SQLAlchemy Engine
        feed_name (str): Configured feed name
        url (str): Feed URL
        now (datetime): Timestamp for the attempt
        dry_run (bool): If True, skip DB writes

    Returns:
        SyncResult: Outcome of the attempt
    """
    logger.info("calendar_sync_started", feed=feed_name, url=redact_url(url))

    try:
        results = poll_calendar(feed_name, url)
        events, errors = dedupe_events(results)

        if errors and not events:
            raise SyncFailure(
                f"none of the {len(errors)} feed events could be parsed", kind="unparseable"
            )
        if not events:
            with engine.connect() as conn:
                previous = count_feed_events(conn, feed_name)
            if previous:
                raise SyncFailure(
                    f"feed returned no usable events (previous snapshot had {previous})",
                    kind="empty",
                )
    except SyncFailure as failure:
        _record_failure(engine, feed_name, url, failure, now, dry_run)
        return SyncResult(succeeded=False, reason=failure.reason)

    replace_feed_events(
        engine,
        feed_name=feed_name,
        feed_url=redact_url(url),
        events=[event.to_row() for event in events],
        skipped=len(errors),
        now=now,
        dry_run=dry_run,
    )

    events_synced.labels(feed=feed_name).set(len(events))
    if errors:
        events_skipped.labels(feed=feed_name).inc(len(errors))

    logger.info(
        "calendar_sync_completed",
        feed=feed_name,
        events=len(events),
        skipped=len(errors),
    )
    return SyncResult(succeeded=True, event_count=len(events), skipped=len(errors))


def _record_failure(
    engine: Engine,
    feed_name: str,
    url: str,
    failure: SyncFailure,
    now: datetime,
    dry_run: bool,
) -> None:
    sync_failures.labels(feed=feed_name, reason=failure.kind).inc()
    logger.warning(
        "calendar_sync_failed",
        feed=feed_name,
        kind=failure.kind,
        reason=failure.reason,
    )
    if dry_run:
        return

    with engine.begin() as conn:
        record_sync_failure(conn, feed_name, redact_url(url), failure.reason, now)


def is_sync_running() -> bool:
    return _sync_lock.locked()


def run_calendar_sync(
    engine: Optional[Engine] = None,
    now: Optional[datetime] = None,
    feed_url: Optional[str] = None,
    feed_name: str = CALENDAR_FEED_NAME,
) -> Optional[SyncResult]:
    """
    Scheduled and manual entry point.

    A trigger that arrives while a sync is already running is coalesced into
    it and returns None. Unexpected errors are logged and swallowed so the
    scheduler job never dies.

    Args:
        engine (Optional[Engine]): Defaults to the application engine
        now (Optional[datetime]): Defaults to the real clock
        feed_url (Optional[str]): Defaults to CALENDAR_FEED_URL
        feed_name (str): Defaults to CALENDAR_FEED_NAME

    Returns:
        Optional[SyncResult]: Outcome, or None when skipped/coalesced
    """
    url = feed_url or CALENDAR_FEED_URL
    if not url:
        logger.info("calendar_sync_skipped", reason="no feed url configured")
        return None

    if not _sync_lock.acquire(blocking=False):
        logger.info("calendar_sync_coalesced", feed=feed_name)
        return None

    now = now or utc_now()
    try:
        if engine is None:
            from stay_sync.db.engine import engine as default_engine

            engine = default_engine

        return sync_calendar(engine, feed_name, url, now)
    except Exception as e:
        logger.exception("calendar_sync_crashed", feed=feed_name, error=str(e))
        failure = SyncFailure(f"internal error: {type(e).__name__}", kind="internal")
        try:
            _record_failure(engine, feed_name, url, failure, now, dry_run=False)
        except Exception as record_error:
            # Database unreachable; the next attempt records its own outcome
            logger.error(
                "calendar_sync_failure_not_recorded", feed=feed_name, error=str(record_error)
            )
        return SyncResult(succeeded=False, reason=failure.reason)
    finally:
        _sync_lock.release()

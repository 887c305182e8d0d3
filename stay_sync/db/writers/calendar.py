import json
from datetime import datetime
from typing import Any, Optional

import structlog
from sqlalchemy import delete, insert
from sqlalchemy.engine import Connection, Engine

from stay_sync.config import DEBUG
from stay_sync.db.writers._upsert import upsert_rows
from stay_sync.models.calendar import CalendarSyncState, ExternalCalendarEvent

logger = structlog.get_logger(__name__)


def replace_feed_events(
    engine: Engine,
    feed_name: str,
    feed_url: Optional[str],
    events: list[dict[str, Any]],
    skipped: int,
    now: datetime,
    dry_run: bool = False,
) -> None:
    """
    Swap the stored snapshot of a feed for a freshly parsed one.

    Deleting the old rows, inserting the new ones and marking the sync as
    successful happen in one transaction, so readers see either the previous
    snapshot or the new one in full.

    Args:
        engine: SQLAlchemy Engine
        feed_name: Configured feed name
        feed_url: Feed URL recorded in the sync state
        events: Normalized event dicts (uid, start, end, summary, status, reservation_code)
        skipped: Malformed blocks dropped while parsing
        now: Commit timestamp
        dry_run: If True, skip DB writes
    """
    rows = [{**event, "feed_name": feed_name, "synced_at": now} for event in events]

    if DEBUG and rows:
        logger.debug("Sample event:\n%s", json.dumps(rows[0], indent=2, default=str))

    if dry_run:
        logger.info("[DRY RUN] Would replace %d events for feed %s", len(rows), feed_name)
        return

    with engine.begin() as conn:
        conn.execute(delete(ExternalCalendarEvent).where(ExternalCalendarEvent.feed_name == feed_name))
        if rows:
            conn.execute(insert(ExternalCalendarEvent), rows)

        upsert_rows(
            conn=conn,
            table=CalendarSyncState,
            rows=[
                {
                    "feed_name": feed_name,
                    "feed_url": feed_url,
                    "last_sync_at": now,
                    "last_attempt_at": now,
                    "last_event_count": len(rows),
                    "skipped_events": skipped,
                    "last_error": None,
                    "last_error_at": None,
                }
            ],
            conflict_columns=["feed_name"],
        )

    logger.info("feed_snapshot_replaced", feed=feed_name, events=len(rows), skipped=skipped)


def record_sync_failure(
    conn: Connection,
    feed_name: str,
    feed_url: Optional[str],
    reason: str,
    now: datetime,
) -> None:
    """
    Record a failed attempt without touching events or last_sync_at.

    Args:
        conn: Active database connection (within transaction)
        feed_name: Configured feed name
        feed_url: Feed URL
        reason: Failure reason shown to readers
        now: Attempt timestamp
    """
    upsert_rows(
        conn=conn,
        table=CalendarSyncState,
        rows=[
            {
                "feed_name": feed_name,
                "feed_url": feed_url,
                "last_attempt_at": now,
                "last_error": reason,
                "last_error_at": now,
            }
        ],
        conflict_columns=["feed_name"],
    )

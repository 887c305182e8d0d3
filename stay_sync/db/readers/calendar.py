from datetime import date
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.engine import Connection

from stay_sync.models.calendar import CalendarSyncState, ExternalCalendarEvent


def get_sync_state(conn: Connection, feed_name: str) -> Optional[dict[str, Any]]:
    """
    Fetch the sync bookkeeping row for a feed.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        feed_name (str): Configured feed name.

    Returns:
        Optional[dict[str, Any]]: State mapping, or None if the feed never synced.
    """
    row = (
        conn.execute(select(CalendarSyncState).where(CalendarSyncState.feed_name == feed_name))
        .mappings()
        .fetchone()
    )
    return dict(row) if row else None


def count_feed_events(conn: Connection, feed_name: str) -> int:
    result = conn.execute(
        select(func.count())
        .select_from(ExternalCalendarEvent)
        .where(ExternalCalendarEvent.feed_name == feed_name)
    )
    return int(result.scalar_one())


def list_feed_events(
    conn: Connection,
    feed_name: Optional[str] = None,
    ending_after: Optional[date] = None,
) -> list[dict[str, Any]]:
    """
    List stored external events ordered by start date.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        feed_name (Optional[str]): Restrict to one feed.
        ending_after (Optional[date]): Only events whose end is on or after this day.

    Returns:
        list[dict[str, Any]]: Event rows.
    """
    stmt = select(ExternalCalendarEvent)
    if feed_name:
        stmt = stmt.where(ExternalCalendarEvent.feed_name == feed_name)
    if ending_after is not None:
        stmt = stmt.where(ExternalCalendarEvent.end >= ending_after)
    stmt = stmt.order_by(ExternalCalendarEvent.start, ExternalCalendarEvent.uid)

    return [dict(row) for row in conn.execute(stmt).mappings()]


def find_overlapping_events(conn: Connection, start: date, end: date) -> list[dict[str, Any]]:
    """
    External events whose [start, end) overlaps the given half-open range.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        start (date): Range start, inclusive.
        end (date): Range end, exclusive.

    Returns:
        list[dict[str, Any]]: Overlapping event rows ordered by start.
    """
    stmt = (
        select(
            ExternalCalendarEvent.feed_name,
            ExternalCalendarEvent.uid,
            ExternalCalendarEvent.start,
            ExternalCalendarEvent.end,
            ExternalCalendarEvent.summary,
            ExternalCalendarEvent.reservation_code,
        )
        .where(ExternalCalendarEvent.start < end)
        .where(ExternalCalendarEvent.end > start)
        .order_by(ExternalCalendarEvent.start)
    )
    return [dict(row) for row in conn.execute(stmt).mappings()]

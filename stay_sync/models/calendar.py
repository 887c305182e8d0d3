from sqlalchemy import Column, Date, DateTime, Integer, String, Text

from stay_sync.config import SCHEMA
from stay_sync.models.base import Base


class ExternalCalendarEvent(Base):
    """
    ORM model for blocked intervals imported from an external calendar feed.

    Rows are derived data: each successful sync replaces the whole set for its
    feed in one transaction. ``start``/``end`` form a half-open date interval,
    matching the iCalendar convention that DTEND is exclusive.
    """

    __tablename__ = "external_calendar_events"
    __table_args__ = {"schema": SCHEMA}

    feed_name = Column(String, primary_key=True)
    uid = Column(String, primary_key=True)  # Stable UID from the feed
    start = Column(Date, nullable=False, index=True)
    end = Column(Date, nullable=False, index=True)
    summary = Column(Text, nullable=False, default="Reserved")
    status = Column(String(16), nullable=False, default="blocked")
    reservation_code = Column(String, nullable=True)
    synced_at = Column(DateTime(timezone=True), nullable=False)


class CalendarSyncState(Base):
    """
    ORM model tracking the outcome of sync runs, one row per feed.

    ``last_sync_at`` only moves when a snapshot is committed; failures update
    ``last_attempt_at`` and ``last_error*`` so readers can tell how stale the
    snapshot is without losing it.
    """

    __tablename__ = "calendar_sync_state"
    __table_args__ = {"schema": SCHEMA}

    feed_name = Column(String, primary_key=True)
    feed_url = Column(Text, nullable=True)
    last_sync_at = Column(DateTime(timezone=True), nullable=True)
    last_attempt_at = Column(DateTime(timezone=True), nullable=True)
    last_event_count = Column(Integer, nullable=False, default=0)
    skipped_events = Column(Integer, nullable=False, default=0)
    last_error = Column(Text, nullable=True)
    last_error_at = Column(DateTime(timezone=True), nullable=True)

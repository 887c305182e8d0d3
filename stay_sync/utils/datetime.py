"""Clock helpers: UTC timestamps and property-local calendar dates."""

from datetime import date, datetime, timedelta, timezone
from typing import Iterator
from zoneinfo import ZoneInfo

from stay_sync.config import PROPERTY_TIMEZONE

PROPERTY_TZ = ZoneInfo(PROPERTY_TIMEZONE)


def utc_now() -> datetime:
    """
    Return current UTC time as timezone-aware datetime.

    Only entry points (routes, scheduled jobs, CLI) should call this. Everything
    below them takes ``now`` as a parameter so tests can pin the clock.

    Returns:
        Timezone-aware datetime in UTC

    Example:
        >>> now = utc_now()
        >>> now.tzinfo is not None
        True
    """
    return datetime.now(timezone.utc)


def to_local(moment: datetime) -> datetime:
    """
    Convert a datetime to the property's time zone.

    Naive datetimes are assumed to already be property-local.
    """
    if moment.tzinfo is None:
        return moment.replace(tzinfo=PROPERTY_TZ)
    return moment.astimezone(PROPERTY_TZ)


def local_today(now: datetime) -> date:
    """
    Day-granularity "today" at the property for the given instant.

    Args:
        now: Current instant (aware or property-local naive)

    Returns:
        The calendar date at the property
    """
    return to_local(now).date()


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every day d with start <= d < end."""
    day = start
    while day < end:
        yield day
        day += timedelta(days=1)

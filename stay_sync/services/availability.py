"""
Merged availability view over local stays and imported feed events.

Read-only: it sees whatever the last committed sweep and sync left behind.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from sqlalchemy.engine import Connection

from stay_sync.intervals import BlockedInterval
from stay_sync.services.conflicts import load_external_intervals, load_reservation_intervals


@dataclass
class Availability:
    start: date
    end: date
    dates: set[date] = field(default_factory=set)
    intervals: list[BlockedInterval] = field(default_factory=list)

    def is_available(self, day: date) -> bool:
        return day not in self.dates


def collect_intervals(conn: Connection, range_start: date, range_end: date) -> list[BlockedInterval]:
    """
    Every blocking interval touching ``[range_start, range_end)``, both sources.

    Intervals are returned unclipped and ordered by start date.
    """
    intervals = load_reservation_intervals(conn, range_start, range_end)
    intervals.extend(load_external_intervals(conn, range_start, range_end))
    return sorted(intervals, key=lambda i: (i.start, i.end, i.kind, i.ref))


def blocked_dates(conn: Connection, range_start: date, range_end: date) -> Availability:
    """
    Expand the blocking intervals into individual days.

    An interval ``[start, end)`` blocks every day d with start <= d < end;
    days outside ``[range_start, range_end)`` are left out.

    Args:
        conn: Active connection
        range_start: First day of the window
        range_end: Day after the last day of the window

    Returns:
        Availability: Blocked day set plus the raw intervals

    Example:
        >>> # stay [06-10, 06-13) and feed event [06-20, 06-22)
        >>> sorted(d.day for d in blocked_dates(conn, date(2024, 6, 1), date(2024, 6, 30)).dates)
        [10, 11, 12, 20, 21]
    """
    availability = Availability(start=range_start, end=range_end)
    if range_end <= range_start:
        return availability

    availability.intervals = collect_intervals(conn, range_start, range_end)
    for interval in availability.intervals:
        availability.dates.update(
            day for day in interval.days() if range_start <= day < range_end
        )
    return availability

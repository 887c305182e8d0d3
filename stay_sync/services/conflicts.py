"""
Overlap check for proposed stays.

Active reservations and imported feed events are both loaded as
``BlockedInterval`` and tested with the same half-open predicate. Callers that
are about to write must run this inside ``property_write_transaction`` so the
check and the write commit together.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from sqlalchemy.engine import Connection

from stay_sync.db.readers.calendar import find_overlapping_events
from stay_sync.db.readers.reservations import find_overlapping_reservations
from stay_sync.intervals import BlockedInterval, first_overlap


def load_reservation_intervals(
    conn: Connection,
    start: date,
    end: date,
    exclude_id: Optional[str] = None,
) -> list[BlockedInterval]:
    return [
        BlockedInterval(
            start=row["check_in_date"],
            end=row["check_out_date"],
            kind="reservation",
            ref=row["id"],
            label=row["guest_name"],
            reservation_code=row["reservation_code"],
        )
        for row in find_overlapping_reservations(conn, start, end, exclude_id=exclude_id)
    ]


def load_external_intervals(conn: Connection, start: date, end: date) -> list[BlockedInterval]:
    return [
        BlockedInterval(
            start=row["start"],
            end=row["end"],
            kind="external",
            ref=row["uid"],
            label=row["summary"],
            reservation_code=row["reservation_code"],
        )
        for row in find_overlapping_events(conn, start, end)
    ]


def find_conflict(
    conn: Connection,
    start: date,
    end: date,
    exclude_id: Optional[str] = None,
    reservation_code: Optional[str] = None,
) -> Optional[BlockedInterval]:
    """
    Return the interval that a proposed ``[start, end)`` stay would overlap.

    Args:
        conn: Active connection
        start: Proposed check-in
        end: Proposed checkout (exclusive)
        exclude_id: Reservation being edited, never a conflict with itself
        reservation_code: Channel code of the proposed stay; a feed event with
            the same code is that very booking and does not compete with it

    Returns:
        Optional[BlockedInterval]: The offending interval, or None when free

    Example:
        >>> # stored stay [2024-01-05, 2024-01-10)
        >>> find_conflict(conn, date(2024, 1, 10), date(2024, 1, 15)) is None
        True
    """
    candidates = load_reservation_intervals(conn, start, end, exclude_id=exclude_id)
    candidates.extend(
        interval
        for interval in load_external_intervals(conn, start, end)
        if not (reservation_code and interval.reservation_code == reservation_code)
    )
    return first_overlap(candidates, start, end)


def has_conflict(
    conn: Connection,
    start: date,
    end: date,
    exclude_id: Optional[str] = None,
    reservation_code: Optional[str] = None,
) -> bool:
    return (
        find_conflict(conn, start, end, exclude_id=exclude_id, reservation_code=reservation_code)
        is not None
    )

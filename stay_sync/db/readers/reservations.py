from datetime import date
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.engine import Connection

from stay_sync.models.reservations import Reservation


def get_reservation_row(conn: Connection, reservation_id: str) -> Optional[dict[str, Any]]:
    """
    Fetch a single reservation by id.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        reservation_id (str): Reservation id.

    Returns:
        Optional[dict[str, Any]]: Column mapping, or None if not found.
    """
    row = (
        conn.execute(select(Reservation).where(Reservation.id == reservation_id))
        .mappings()
        .fetchone()
    )
    return dict(row) if row else None


def list_reservation_rows(
    conn: Connection,
    status: Optional[str] = None,
    guest_ref: Optional[str] = None,
    limit: Optional[int] = None,
) -> list[dict[str, Any]]:
    """
    List reservations, most recent check-in first.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        status (Optional[str]): Only this status.
        guest_ref (Optional[str]): Only this guest.
        limit (Optional[int]): Max rows.

    Returns:
        list[dict[str, Any]]: Reservation rows.
    """
    stmt = select(Reservation)
    if status:
        stmt = stmt.where(Reservation.status == status)
    if guest_ref:
        stmt = stmt.where(Reservation.guest_ref == guest_ref)
    stmt = stmt.order_by(Reservation.check_in_date.desc(), Reservation.id)
    if limit:
        stmt = stmt.limit(limit)

    return [dict(row) for row in conn.execute(stmt).mappings()]


def find_overlapping_reservations(
    conn: Connection,
    start: date,
    end: date,
    exclude_id: Optional[str] = None,
) -> list[dict[str, Any]]:
    """
    Non-cancelled reservations whose [check_in, check_out) overlaps [start, end).

    Args:
        conn (Connection): SQLAlchemy DB connection.
        start (date): Range start, inclusive.
        end (date): Range end, exclusive.
        exclude_id (Optional[str]): Reservation to leave out (the one being edited).

    Returns:
        list[dict[str, Any]]: Overlapping rows ordered by check-in.
    """
    stmt = (
        select(
            Reservation.id,
            Reservation.check_in_date,
            Reservation.check_out_date,
            Reservation.guest_name,
            Reservation.reservation_code,
        )
        .where(Reservation.status != "cancelled")
        .where(Reservation.check_in_date < end)
        .where(Reservation.check_out_date > start)
        .order_by(Reservation.check_in_date)
    )
    if exclude_id is not None:
        stmt = stmt.where(Reservation.id != exclude_id)

    return [dict(row) for row in conn.execute(stmt).mappings()]


def find_invalid_range_ids(conn: Connection, statuses: tuple[str, ...]) -> list[str]:
    """
    Ids of reservations in the given statuses whose check-out is not after check-in.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        statuses (tuple[str, ...]): Statuses to inspect.

    Returns:
        list[str]: Offending reservation ids.
    """
    result = conn.execute(
        select(Reservation.id)
        .where(Reservation.status.in_(statuses))
        .where(Reservation.check_out_date <= Reservation.check_in_date)
    )
    return list(result.scalars().all())


def get_current_reservation_row(conn: Connection) -> Optional[dict[str, Any]]:
    row = (
        conn.execute(
            select(Reservation)
            .where(Reservation.status == "current")
            .order_by(Reservation.check_in_date)
            .limit(1)
        )
        .mappings()
        .fetchone()
    )
    return dict(row) if row else None


def get_next_upcoming_row(conn: Connection, on_or_after: date) -> Optional[dict[str, Any]]:
    """
    Earliest upcoming reservation checking in on or after the given day.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        on_or_after (date): Lower bound for check-in.

    Returns:
        Optional[dict[str, Any]]: Reservation row or None.
    """
    row = (
        conn.execute(
            select(Reservation)
            .where(Reservation.status == "upcoming")
            .where(Reservation.check_in_date >= on_or_after)
            .order_by(Reservation.check_in_date)
            .limit(1)
        )
        .mappings()
        .fetchone()
    )
    return dict(row) if row else None

import json
from datetime import date
from typing import Any, Optional

import structlog
from sqlalchemy import delete, insert, update
from sqlalchemy.engine import Connection

from stay_sync.config import DEBUG
from stay_sync.models.reservations import Reservation

logger = structlog.get_logger(__name__)


def insert_reservation(conn: Connection, row: dict[str, Any]) -> None:
    """
    Insert one reservation row.

    The caller owns the transaction and must already hold the property
    write lock, since the conflict check and this insert form one unit.

    Args:
        conn: Active connection inside a transaction
        row: Full column mapping including id and timestamps
    """
    if DEBUG:
        logger.debug("Reservation to insert:\n%s", json.dumps(row, indent=2, default=str))

    conn.execute(insert(Reservation).values(**row))


def update_reservation_fields(conn: Connection, reservation_id: str, values: dict[str, Any]) -> int:
    """
    Update the given columns of one reservation.

    Args:
        conn: Active connection inside a transaction
        reservation_id: Reservation id
        values: Columns to set (updated_at included by the caller)

    Returns:
        int: Number of rows updated (0 when the id is unknown)
    """
    result = conn.execute(
        update(Reservation).where(Reservation.id == reservation_id).values(**values)
    )
    return result.rowcount


def delete_reservation_row(conn: Connection, reservation_id: str) -> int:
    """
    Permanently delete a reservation.

    Returns:
        int: Number of rows deleted
    """
    result = conn.execute(delete(Reservation).where(Reservation.id == reservation_id))
    return result.rowcount


def transition_statuses(
    conn: Connection,
    from_statuses: tuple[str, ...],
    to_status: str,
    today: date,
    exclude_ids: Optional[list[str]] = None,
    require_started: bool = False,
    require_finished: bool = False,
) -> list[str]:
    """
    Move matching reservations to ``to_status`` in a single guarded UPDATE.

    The WHERE clause re-checks the current status, so each row changes
    atomically and rows already in the target state are not written at all.
    Only ``status`` is set.

    Args:
        conn: Active connection
        from_statuses: Statuses eligible for the transition
        to_status: Target status
        today: Property-local day the rule is evaluated against
        exclude_ids: Reservations to leave untouched (flagged anomalies)
        require_started: check_in_date <= today and check_out_date > today
        require_finished: check_out_date <= today

    Returns:
        list[str]: Ids that were transitioned
    """
    stmt = update(Reservation).where(Reservation.status.in_(from_statuses))

    if require_started:
        stmt = stmt.where(Reservation.check_in_date <= today).where(
            Reservation.check_out_date > today
        )
    if require_finished:
        stmt = stmt.where(Reservation.check_out_date <= today)
    if exclude_ids:
        stmt = stmt.where(Reservation.id.not_in(exclude_ids))

    stmt = stmt.values(status=to_status).returning(Reservation.id)
    return list(conn.execute(stmt).scalars().all())


def set_status_if(conn: Connection, reservation_id: str, to_status: str, expected: str) -> bool:
    """
    Set one reservation's status only if it still has ``expected``.

    Returns:
        bool: True when the row was changed
    """
    result = conn.execute(
        update(Reservation)
        .where(Reservation.id == reservation_id)
        .where(Reservation.status == expected)
        .values(status=to_status)
    )
    return result.rowcount == 1

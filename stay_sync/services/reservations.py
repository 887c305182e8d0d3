"""Reservation store: validated create/update/cancel/delete and swept reads."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any, Optional

import structlog
from sqlalchemy.engine import Connection, Engine

from stay_sync.db.locks import property_write_transaction
from stay_sync.db.readers.reservations import (
    get_current_reservation_row,
    get_next_upcoming_row,
    get_reservation_row,
    list_reservation_rows,
)
from stay_sync.db.writers.reservations import (
    delete_reservation_row,
    insert_reservation,
    set_status_if,
    update_reservation_fields,
)
from stay_sync.errors import ConflictError, NotFoundError, ValidationError
from stay_sync.metrics import conflicts_rejected, status_transitions
from stay_sync.models.reservations import (
    MANUAL_STATUSES,
    RESERVATION_SOURCES,
    RESERVATION_STATUSES,
)
from stay_sync.services.conflicts import find_conflict
from stay_sync.services.status import SWEPT_STATUSES, derive_status, sweep_statuses
from stay_sync.utils.datetime import local_today

logger = structlog.get_logger(__name__)

REQUIRED_FIELDS = ("guest_ref", "check_in_date", "check_out_date")
NOT_NULL_FIELDS = ("check_in_time", "check_out_time", "source", "is_paid", "status")

EDITABLE_FIELDS = (
    "guest_ref",
    "guest_name",
    "guest_phone",
    "check_in_date",
    "check_out_date",
    "check_in_time",
    "check_out_time",
    "number_of_guests",
    "notes",
    "source",
    "total_amount",
    "is_paid",
    "reservation_code",
)

DEFAULTS: dict[str, Any] = {
    "check_in_time": "15:00",
    "check_out_time": "11:00",
    "source": "direct",
    "is_paid": False,
}

# period filter -> status, as shown in the admin listing
PERIOD_STATUSES: dict[str, Optional[str]] = {
    "past": "completed",
    "current": "current",
    "upcoming": "upcoming",
    "all": None,
}


def _as_date(value: Any, field_name: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            pass
    raise ValidationError(f"{field_name} must be a date (YYYY-MM-DD)", field=field_name)


def _validate_range(check_in: date, check_out: date) -> None:
    if check_out <= check_in:
        raise ValidationError(
            "check_out_date must be after check_in_date", field="check_out_date"
        )


def _validate_choices(data: dict[str, Any]) -> None:
    status = data.get("status")
    if status is not None and status not in RESERVATION_STATUSES:
        raise ValidationError(f"Unknown status: {status}", field="status")
    source = data.get("source")
    if source is not None and source not in RESERVATION_SOURCES:
        raise ValidationError(f"Unknown source: {source}", field="source")
    guests = data.get("number_of_guests")
    if guests is not None and guests < 1:
        raise ValidationError("number_of_guests must be at least 1", field="number_of_guests")


def _reject_conflicts(
    conn: Connection,
    check_in: date,
    check_out: date,
    exclude_id: Optional[str],
    reservation_code: Optional[str],
) -> None:
    conflict = find_conflict(
        conn, check_in, check_out, exclude_id=exclude_id, reservation_code=reservation_code
    )
    if conflict is None:
        return

    conflicts_rejected.labels(kind=conflict.kind).inc()
    logger.info(
        "reservation_conflict",
        check_in=check_in.isoformat(),
        check_out=check_out.isoformat(),
        conflict_kind=conflict.kind,
        conflict_ref=conflict.ref,
    )
    raise ConflictError(conflict)


def create_reservation(
    engine: Engine,
    data: dict[str, Any],
    now: datetime,
    actor: str = "admin",
) -> dict[str, Any]:
    """
    Validate and persist a new stay.

    The overlap check and the insert run in one transaction under the
    property write lock, so two overlapping creates cannot both succeed.

    Args:
        engine: SQLAlchemy Engine
        data: Snake-case fields (see EDITABLE_FIELDS, plus optional status)
        now: Current instant
        actor: Audit value stored in created_by

    Returns:
        dict[str, Any]: The stored row

    Raises:
        ValidationError: Missing field, bad value or inverted range
        ConflictError: Overlaps an active reservation or external booking
    """
    for field_name in REQUIRED_FIELDS:
        if data.get(field_name) in (None, ""):
            raise ValidationError(f"{field_name} is required", field=field_name)

    check_in = _as_date(data["check_in_date"], "check_in_date")
    check_out = _as_date(data["check_out_date"], "check_out_date")
    _validate_range(check_in, check_out)
    _validate_choices(data)

    row: dict[str, Any] = dict(DEFAULTS)
    row.update(
        {key: data[key] for key in EDITABLE_FIELDS if key in data and data[key] is not None}
    )
    row.update(
        {
            "id": str(uuid.uuid4()),
            "check_in_date": check_in,
            "check_out_date": check_out,
            "status": data.get("status") or derive_status(check_in, check_out, local_today(now)),
            "created_by": actor,
            "created_at": now,
            "updated_at": now,
        }
    )

    with property_write_transaction(engine) as conn:
        if row["status"] != "cancelled":
            _reject_conflicts(conn, check_in, check_out, None, row.get("reservation_code"))
        insert_reservation(conn, row)
        created = get_reservation_row(conn, row["id"])

    logger.info(
        "reservation_created",
        reservation_id=row["id"],
        check_in=check_in.isoformat(),
        check_out=check_out.isoformat(),
        status=row["status"],
        actor=actor,
    )
    return created or row


def update_reservation(
    engine: Engine,
    reservation_id: str,
    patch: dict[str, Any],
    now: datetime,
) -> dict[str, Any]:
    """
    Apply a partial update.

    The merged (stored + patch) dates are validated. A change of dates or
    channel code, or reactivating a cancelled stay, re-runs the overlap check
    against every other active interval inside the locked transaction. When
    the dates move and no explicit status is given, any status other than
    pending or cancelled is re-derived for the new dates, so a completed stay
    moved into the future becomes upcoming again.

    Args:
        engine: SQLAlchemy Engine
        reservation_id: Reservation id
        patch: Snake-case fields to change; ``status`` allowed for manual assignment
        now: Current instant

    Returns:
        dict[str, Any]: The updated row

    Raises:
        ValidationError, ConflictError, NotFoundError
    """
    values = {
        key: patch[key] for key in (*EDITABLE_FIELDS, "status") if key in patch
    }
    for field_name in (*REQUIRED_FIELDS, *NOT_NULL_FIELDS):
        if field_name in values and values[field_name] in (None, ""):
            raise ValidationError(f"{field_name} cannot be empty", field=field_name)
    for field_name in ("check_in_date", "check_out_date"):
        if field_name in values:
            values[field_name] = _as_date(values[field_name], field_name)
    if "check_in_date" in values and "check_out_date" in values:
        _validate_range(values["check_in_date"], values["check_out_date"])
    _validate_choices(values)

    with property_write_transaction(engine) as conn:
        existing = get_reservation_row(conn, reservation_id)
        if existing is None:
            raise NotFoundError(reservation_id)

        check_in = values.get("check_in_date", existing["check_in_date"])
        check_out = values.get("check_out_date", existing["check_out_date"])
        _validate_range(check_in, check_out)

        new_status = values.get("status", existing["status"])
        code = values.get("reservation_code", existing["reservation_code"])

        dates_changed = (check_in, check_out) != (
            existing["check_in_date"],
            existing["check_out_date"],
        )
        reactivated = existing["status"] == "cancelled" and new_status != "cancelled"
        code_changed = code != existing["reservation_code"]

        if new_status != "cancelled" and (dates_changed or reactivated or code_changed):
            _reject_conflicts(conn, check_in, check_out, reservation_id, code)

        if "status" not in values and dates_changed and new_status not in MANUAL_STATUSES:
            values["status"] = derive_status(check_in, check_out, local_today(now))

        values["updated_at"] = now
        update_reservation_fields(conn, reservation_id, values)
        updated = get_reservation_row(conn, reservation_id)

    logger.info(
        "reservation_updated",
        reservation_id=reservation_id,
        fields=sorted(k for k in values if k != "updated_at"),
    )
    return updated or {**existing, **values}


def cancel_reservation(engine: Engine, reservation_id: str, now: datetime) -> dict[str, Any]:
    """
    Soft-remove a stay: status becomes cancelled, the record is kept.

    Cancelling an already cancelled stay is a no-op.

    Raises:
        NotFoundError: Unknown id
    """
    with engine.begin() as conn:
        existing = get_reservation_row(conn, reservation_id)
        if existing is None:
            raise NotFoundError(reservation_id)

        if existing["status"] != "cancelled":
            update_reservation_fields(
                conn, reservation_id, {"status": "cancelled", "updated_at": now}
            )
            logger.info(
                "reservation_cancelled",
                reservation_id=reservation_id,
                previous_status=existing["status"],
            )
        cancelled = get_reservation_row(conn, reservation_id)

    return cancelled or existing


def delete_reservation(engine: Engine, reservation_id: str) -> None:
    """
    Permanently remove a stay.

    Raises:
        NotFoundError: Unknown id
    """
    with engine.begin() as conn:
        if delete_reservation_row(conn, reservation_id) == 0:
            raise NotFoundError(reservation_id)

    logger.info("reservation_deleted", reservation_id=reservation_id)


def refresh_status(conn: Connection, row: dict[str, Any], now: datetime) -> dict[str, Any]:
    """
    Single-record sweep: bring one loaded row's status up to date.

    Same rules as the batch sweep, including skipping impossible ranges.
    """
    if row["status"] not in SWEPT_STATUSES or row["check_out_date"] <= row["check_in_date"]:
        return row

    derived = derive_status(row["check_in_date"], row["check_out_date"], local_today(now))
    if derived == row["status"] or (row["status"] == "current" and derived == "upcoming"):
        return row

    if set_status_if(conn, row["id"], derived, expected=row["status"]):
        status_transitions.labels(to_status=derived).inc()
        logger.info(
            "reservation_status_refreshed",
            reservation_id=row["id"],
            from_status=row["status"],
            to_status=derived,
        )
        return {**row, "status": derived}

    # Changed concurrently; return what is stored now
    return get_reservation_row(conn, row["id"]) or row


def get_reservation(engine: Engine, reservation_id: str, now: datetime) -> dict[str, Any]:
    """
    Fetch one stay with its status brought up to date.

    Raises:
        NotFoundError: Unknown id
    """
    with engine.begin() as conn:
        row = get_reservation_row(conn, reservation_id)
        if row is None:
            raise NotFoundError(reservation_id)
        return refresh_status(conn, row, now)


def list_reservations(
    engine: Engine,
    now: datetime,
    status: Optional[str] = None,
    period: Optional[str] = None,
    guest_ref: Optional[str] = None,
    limit: Optional[int] = None,
) -> list[dict[str, Any]]:
    """
    List stays after sweeping statuses, newest check-in first.

    Args:
        engine: SQLAlchemy Engine
        now: Current instant
        status: Only this status
        period: past, current, upcoming or all; takes precedence over status
        guest_ref: Only this guest
        limit: Max number of rows

    Returns:
        list[dict[str, Any]]: Reservation rows

    Raises:
        ValidationError: Unknown status/period or non-positive limit
    """
    if status is not None and status not in RESERVATION_STATUSES:
        raise ValidationError(f"Unknown status: {status}", field="status")
    if period is not None:
        if period not in PERIOD_STATUSES:
            raise ValidationError(f"Unknown period: {period}", field="period")
        status = PERIOD_STATUSES[period]
    if limit is not None and limit < 1:
        raise ValidationError("limit must be positive", field="limit")

    with engine.begin() as conn:
        sweep_statuses(conn, now)
        return list_reservation_rows(conn, status=status, guest_ref=guest_ref, limit=limit)


def get_current_and_next(engine: Engine, now: datetime) -> dict[str, Optional[dict[str, Any]]]:
    """
    The stay in progress (if any) and the next upcoming one.

    Returns:
        dict: {"current": row | None, "next": row | None}
    """
    with engine.begin() as conn:
        sweep_statuses(conn, now)
        current = get_current_reservation_row(conn)
        upcoming = get_next_upcoming_row(conn, local_today(now))

    return {"current": current, "next": upcoming}

"""
Reservation status derivation and the batch status sweep.

Status follows the dates: ``upcoming`` before check-in, ``current`` while the
stay is in progress and ``completed`` from the checkout day on. ``pending``
and ``cancelled`` are only ever set explicitly and the sweep leaves them (and
``completed``) alone.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

import structlog
from sqlalchemy.engine import Connection, Engine

from stay_sync.db.readers.reservations import find_invalid_range_ids
from stay_sync.db.writers.reservations import transition_statuses
from stay_sync.metrics import status_transitions, sweep_skipped
from stay_sync.utils.datetime import local_today, utc_now

logger = structlog.get_logger(__name__)

SWEPT_STATUSES = ("upcoming", "current")


def derive_status(check_in: date, check_out: date, today: date) -> str:
    """
    Status a stay should have on the given property-local day.

    Args:
        check_in: First night
        check_out: Checkout day (exclusive end)
        today: Property-local day

    Returns:
        str: "completed", "current" or "upcoming"

    Example:
        >>> derive_status(date(2024, 3, 1), date(2024, 3, 5), date(2024, 3, 5))
        'completed'
    """
    if check_out <= today:
        return "completed"
    if check_in <= today:
        return "current"
    return "upcoming"


@dataclass
class SweepResult:
    """Ids touched by one sweep, by outcome."""

    today: date
    promoted: list[str] = field(default_factory=list)
    completed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def changed(self) -> int:
        return len(self.promoted) + len(self.completed)


def sweep_statuses(conn: Connection, now: datetime) -> SweepResult:
    """
    Bring every upcoming/current reservation in line with its dates.

    Each transition is a guarded UPDATE that re-checks the current status, so
    concurrent sweeps and store writes cannot lose an update, and rows already
    in the right state are not written. Records whose checkout is not after
    their check-in are flagged and skipped rather than failing the caller.

    Args:
        conn: Active connection; the caller decides the transaction scope
        now: Current instant

    Returns:
        SweepResult: What changed
    """
    today = local_today(now)
    result = SweepResult(today=today)

    result.skipped = find_invalid_range_ids(conn, SWEPT_STATUSES)
    for reservation_id in result.skipped:
        logger.warning("sweep_skipped_invalid_range", reservation_id=reservation_id)
        sweep_skipped.inc()

    result.completed = transition_statuses(
        conn,
        from_statuses=SWEPT_STATUSES,
        to_status="completed",
        today=today,
        exclude_ids=result.skipped,
        require_finished=True,
    )
    result.promoted = transition_statuses(
        conn,
        from_statuses=("upcoming",),
        to_status="current",
        today=today,
        exclude_ids=result.skipped,
        require_started=True,
    )

    if result.completed:
        status_transitions.labels(to_status="completed").inc(len(result.completed))
    if result.promoted:
        status_transitions.labels(to_status="current").inc(len(result.promoted))

    if result.changed or result.skipped:
        logger.info(
            "status_sweep_applied",
            today=today.isoformat(),
            promoted=len(result.promoted),
            completed=len(result.completed),
            skipped=len(result.skipped),
        )

    return result


def run_status_sweep(engine: Engine, now: Optional[datetime] = None) -> SweepResult:
    """
    Scheduled entry point: sweep in a transaction of its own.

    Args:
        engine: SQLAlchemy Engine
        now: Current instant (defaults to the real clock)

    Returns:
        SweepResult: What changed
    """
    now = now or utc_now()
    with engine.begin() as conn:
        return sweep_statuses(conn, now)

"""Domain errors raised by the reservation store and the calendar sync."""

from __future__ import annotations

from typing import Any, Literal, Optional

from stay_sync.intervals import BlockedInterval

SyncFailureKind = Literal["network", "timeout", "http", "empty", "unparseable", "internal"]


class StayError(Exception):
    """Base class for errors surfaced to API callers."""

    error = "error"

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.error, "message": str(self)}


class ValidationError(StayError):
    """Bad input: missing field or inverted/empty date range."""

    error = "validation_error"

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        self.field = field
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        if self.field:
            data["field"] = self.field
        return data


class ConflictError(StayError):
    """The proposed stay overlaps an active reservation or an external booking."""

    error = "conflict"

    def __init__(self, interval: BlockedInterval) -> None:
        self.interval = interval
        super().__init__(
            f"Dates overlap an existing {interval.kind} "
            f"({interval.start.isoformat()} to {interval.end.isoformat()})"
        )

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["conflict"] = self.interval.to_dict()
        return data


class NotFoundError(StayError):
    error = "not_found"

    def __init__(self, reservation_id: str) -> None:
        self.reservation_id = reservation_id
        super().__init__(f"Reservation {reservation_id} not found")


class SyncFailure(Exception):
    """
    A calendar sync attempt that must not replace the stored snapshot.

    Raised inside the sync pipeline and caught by the sync service, which
    records it; it never reaches availability readers.
    """

    def __init__(self, reason: str, kind: SyncFailureKind) -> None:
        self.reason = reason
        self.kind = kind
        super().__init__(reason)

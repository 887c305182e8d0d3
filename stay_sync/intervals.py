"""
Half-open date intervals shared by local stays and external feed events.

Both sources block the property over ``[start, end)``: the start day is
occupied, the end day is free again (checkout morning / check-in afternoon).
The conflict check and the availability view work on ``BlockedInterval`` only
and never branch on where an interval came from.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, Iterator, Literal, Optional

from stay_sync.utils.datetime import iter_days

IntervalKind = Literal["reservation", "external"]


def overlaps(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """
    Half-open overlap test. Touching boundaries do not overlap.

    Example:
        >>> overlaps(date(2024, 1, 10), date(2024, 1, 15), date(2024, 1, 5), date(2024, 1, 10))
        False
    """
    return a_start < b_end and a_end > b_start


@dataclass(frozen=True)
class BlockedInterval:
    """A ``[start, end)`` span during which the property is not available."""

    start: date
    end: date
    kind: IntervalKind
    ref: str
    label: Optional[str] = None
    reservation_code: Optional[str] = None

    def overlaps(self, start: date, end: date) -> bool:
        return overlaps(start, end, self.start, self.end)

    def blocks(self, day: date) -> bool:
        return self.start <= day < self.end

    def days(self) -> Iterator[date]:
        return iter_days(self.start, self.end)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "ref": self.ref,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "label": self.label,
            "reservationCode": self.reservation_code,
        }


def first_overlap(
    intervals: Iterable[BlockedInterval], start: date, end: date
) -> Optional[BlockedInterval]:
    """
    Return the earliest-starting interval overlapping ``[start, end)``, if any.

    Args:
        intervals: Candidate intervals from any source
        start: Proposed start (inclusive)
        end: Proposed end (exclusive)

    Returns:
        Optional[BlockedInterval]: The offending interval, or None
    """
    hits = [interval for interval in intervals if interval.overlaps(start, end)]
    if not hits:
        return None
    return min(hits, key=lambda i: (i.start, i.end, i.ref))

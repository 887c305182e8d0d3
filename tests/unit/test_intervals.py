"""
Unit tests for the half-open interval primitives.
"""

from __future__ import annotations

from datetime import date

import pytest

from stay_sync.intervals import BlockedInterval, first_overlap, overlaps


def stay(start: date, end: date, ref: str = "r1") -> BlockedInterval:
    return BlockedInterval(start=start, end=end, kind="reservation", ref=ref)


@pytest.mark.unit
def test_touching_boundary_is_not_an_overlap() -> None:
    existing = stay(date(2024, 1, 5), date(2024, 1, 10))

    assert not existing.overlaps(date(2024, 1, 10), date(2024, 1, 15))
    assert not existing.overlaps(date(2024, 1, 1), date(2024, 1, 5))


@pytest.mark.unit
def test_partial_overlap_is_detected() -> None:
    existing = stay(date(2024, 1, 12), date(2024, 1, 20))

    assert existing.overlaps(date(2024, 1, 10), date(2024, 1, 15))


@pytest.mark.unit
@pytest.mark.parametrize(
    "proposed",
    [
        (date(2024, 1, 1), date(2024, 1, 31)),  # contains
        (date(2024, 1, 11), date(2024, 1, 12)),  # contained
        (date(2024, 1, 10), date(2024, 1, 15)),  # identical
    ],
)
def test_containment_either_way_overlaps(proposed: tuple[date, date]) -> None:
    assert overlaps(*proposed, date(2024, 1, 10), date(2024, 1, 15))


@pytest.mark.unit
def test_blocks_and_days_exclude_end() -> None:
    interval = stay(date(2024, 6, 10), date(2024, 6, 13))

    assert [d.day for d in interval.days()] == [10, 11, 12]
    assert interval.blocks(date(2024, 6, 10))
    assert not interval.blocks(date(2024, 6, 13))


@pytest.mark.unit
def test_first_overlap_returns_earliest_and_mixes_sources() -> None:
    candidates = [
        BlockedInterval(date(2024, 6, 20), date(2024, 6, 22), "external", "uid-1"),
        stay(date(2024, 6, 15), date(2024, 6, 18), ref="r2"),
        stay(date(2024, 6, 1), date(2024, 6, 5), ref="r3"),
    ]

    hit = first_overlap(candidates, date(2024, 6, 16), date(2024, 6, 21))

    assert hit is not None
    assert hit.ref == "r2"
    assert first_overlap(candidates, date(2024, 6, 5), date(2024, 6, 15)) is None


@pytest.mark.unit
def test_to_dict_uses_iso_dates_and_camel_case() -> None:
    interval = BlockedInterval(
        date(2024, 6, 20), date(2024, 6, 22), "external", "uid-1", "Reserved", "HMABC"
    )

    assert interval.to_dict() == {
        "kind": "external",
        "ref": "uid-1",
        "start": "2024-06-20",
        "end": "2024-06-22",
        "label": "Reserved",
        "reservationCode": "HMABC",
    }

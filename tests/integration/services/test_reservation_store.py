"""
Integration tests for the reservation store against SQLite.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, timedelta, timezone

import pytest

from stay_sync.errors import ConflictError, NotFoundError, ValidationError
from stay_sync.services.reservations import (
    cancel_reservation,
    create_reservation,
    delete_reservation,
    get_current_and_next,
    get_reservation,
    list_reservations,
    update_reservation,
)

NOW = datetime(2024, 2, 1, 15, 0, tzinfo=timezone.utc)


def stay_data(check_in: str, check_out: str, **extra) -> dict:
    return {"guest_ref": "guest-1", "check_in_date": check_in, "check_out_date": check_out, **extra}


@pytest.mark.integration
def test_adjacent_stays_succeed_and_overlapping_third_is_rejected(db_engine):
    first = create_reservation(db_engine, stay_data("2024-03-01", "2024-03-05"), NOW)
    second = create_reservation(db_engine, stay_data("2024-03-05", "2024-03-10"), NOW)

    with pytest.raises(ConflictError) as exc_info:
        create_reservation(db_engine, stay_data("2024-03-04", "2024-03-06"), NOW)

    conflict = exc_info.value.interval
    assert conflict.kind == "reservation"
    assert conflict.ref == first["id"]
    assert (conflict.start, conflict.end) == (date(2024, 3, 1), date(2024, 3, 5))
    assert second["check_in_date"] == date(2024, 3, 5)
    assert len(list_reservations(db_engine, NOW)) == 2


@pytest.mark.integration
def test_create_applies_defaults_and_derives_status(db_engine):
    created = create_reservation(
        db_engine,
        stay_data("2024-03-01", "2024-03-05", guest_name="Ana", number_of_guests=2),
        NOW,
        actor="host@example.com",
    )

    assert created["status"] == "upcoming"
    assert created["check_in_time"] == "15:00"
    assert created["check_out_time"] == "11:00"
    assert created["source"] == "direct"
    assert created["is_paid"] is False
    assert created["created_by"] == "host@example.com"
    assert created["guest_name"] == "Ana"


@pytest.mark.integration
@pytest.mark.parametrize(
    "check_in, check_out, expected",
    [
        ("2024-01-30", "2024-02-03", "current"),
        ("2024-01-25", "2024-02-01", "completed"),
        ("2024-02-02", "2024-02-03", "upcoming"),
    ],
)
def test_initial_status_follows_dates(db_engine, check_in, check_out, expected):
    created = create_reservation(db_engine, stay_data(check_in, check_out), NOW)

    assert created["status"] == expected


@pytest.mark.integration
def test_pending_can_be_set_explicitly(db_engine):
    created = create_reservation(
        db_engine, stay_data("2024-03-01", "2024-03-05", status="pending"), NOW
    )

    assert created["status"] == "pending"


@pytest.mark.integration
@pytest.mark.parametrize(
    "check_in, check_out",
    [("2024-03-05", "2024-03-01"), ("2024-03-05", "2024-03-05")],
)
def test_inverted_or_empty_range_is_validation_error_not_conflict(db_engine, check_in, check_out):
    create_reservation(db_engine, stay_data("2024-03-01", "2024-03-10"), NOW)

    with pytest.raises(ValidationError) as exc_info:
        create_reservation(db_engine, stay_data(check_in, check_out), NOW)

    assert exc_info.value.field == "check_out_date"


@pytest.mark.integration
@pytest.mark.parametrize("missing", ["guest_ref", "check_in_date", "check_out_date"])
def test_missing_required_field(db_engine, missing):
    data = stay_data("2024-03-01", "2024-03-05")
    del data[missing]

    with pytest.raises(ValidationError) as exc_info:
        create_reservation(db_engine, data, NOW)

    assert exc_info.value.field == missing


@pytest.mark.integration
def test_bad_date_string_is_validation_error(db_engine):
    with pytest.raises(ValidationError):
        create_reservation(db_engine, stay_data("March 1st", "2024-03-05"), NOW)


@pytest.mark.integration
def test_external_event_blocks_create(db_engine, insert_event):
    insert_event(date(2024, 3, 10), date(2024, 3, 12), uid="ext-1@airbnb.com")

    with pytest.raises(ConflictError) as exc_info:
        create_reservation(db_engine, stay_data("2024-03-11", "2024-03-15"), NOW)

    assert exc_info.value.interval.kind == "external"
    assert exc_info.value.interval.ref == "ext-1@airbnb.com"
    assert exc_info.value.to_dict()["conflict"]["start"] == "2024-03-10"


@pytest.mark.integration
def test_feed_event_for_same_booking_is_not_a_conflict(db_engine, insert_event):
    insert_event(date(2024, 3, 10), date(2024, 3, 12), reservation_code="HMABC123")

    created = create_reservation(
        db_engine,
        stay_data("2024-03-10", "2024-03-12", source="airbnb", reservation_code="HMABC123"),
        NOW,
    )

    assert created["reservation_code"] == "HMABC123"


@pytest.mark.integration
def test_cancelled_stays_do_not_block(db_engine):
    first = create_reservation(db_engine, stay_data("2024-03-01", "2024-03-05"), NOW)
    cancel_reservation(db_engine, first["id"], NOW)

    second = create_reservation(db_engine, stay_data("2024-03-02", "2024-03-04"), NOW)

    assert second["status"] == "upcoming"


@pytest.mark.integration
def test_concurrent_overlapping_creates_only_one_wins(db_engine):
    def attempt(i: int) -> str:
        try:
            create_reservation(
                db_engine, stay_data("2024-07-01", "2024-07-05", guest_ref=f"guest-{i}"), NOW
            )
            return "created"
        except ConflictError:
            return "conflict"

    with ThreadPoolExecutor(max_workers=6) as pool:
        outcomes = list(pool.map(attempt, range(6)))

    assert outcomes.count("created") == 1
    assert outcomes.count("conflict") == 5
    assert len(list_reservations(db_engine, NOW, status="upcoming")) == 1


@pytest.mark.integration
def test_update_dates_excludes_itself_from_conflict_check(db_engine):
    created = create_reservation(db_engine, stay_data("2024-03-01", "2024-03-05"), NOW)

    updated = update_reservation(
        db_engine, created["id"], {"check_out_date": "2024-03-07"}, NOW + timedelta(hours=1)
    )

    assert updated["check_out_date"] == date(2024, 3, 7)
    assert updated["updated_at"] != created["updated_at"]


@pytest.mark.integration
def test_update_into_another_stay_is_conflict(db_engine):
    create_reservation(db_engine, stay_data("2024-03-01", "2024-03-05"), NOW)
    second = create_reservation(db_engine, stay_data("2024-03-05", "2024-03-10"), NOW)

    with pytest.raises(ConflictError):
        update_reservation(db_engine, second["id"], {"check_in_date": "2024-03-04"}, NOW)

    unchanged = get_reservation(db_engine, second["id"], NOW)
    assert unchanged["check_in_date"] == date(2024, 3, 5)


@pytest.mark.integration
def test_update_validates_merged_dates(db_engine):
    created = create_reservation(db_engine, stay_data("2024-03-01", "2024-03-05"), NOW)

    with pytest.raises(ValidationError):
        update_reservation(db_engine, created["id"], {"check_in_date": "2024-03-06"}, NOW)


@pytest.mark.integration
def test_update_unknown_id(db_engine):
    with pytest.raises(NotFoundError):
        update_reservation(db_engine, "missing", {"notes": "x"}, NOW)


@pytest.mark.integration
def test_update_non_date_fields_skips_conflict_check(db_engine, insert_stay):
    # Two overlapping rows that predate the lock; editing notes must still work
    insert_stay(date(2024, 3, 1), date(2024, 3, 5))
    other = insert_stay(date(2024, 3, 3), date(2024, 3, 6))

    updated = update_reservation(db_engine, other, {"notes": "late arrival", "is_paid": True}, NOW)

    assert updated["notes"] == "late arrival"
    assert updated["is_paid"] is True


@pytest.mark.integration
def test_reactivating_cancelled_stay_rechecks_conflicts(db_engine):
    first = create_reservation(db_engine, stay_data("2024-03-01", "2024-03-05"), NOW)
    cancel_reservation(db_engine, first["id"], NOW)
    create_reservation(db_engine, stay_data("2024-03-02", "2024-03-04"), NOW)

    with pytest.raises(ConflictError):
        update_reservation(db_engine, first["id"], {"status": "upcoming"}, NOW)


@pytest.mark.integration
def test_manual_status_assignment(db_engine):
    created = create_reservation(db_engine, stay_data("2024-03-01", "2024-03-05"), NOW)

    updated = update_reservation(db_engine, created["id"], {"status": "pending"}, NOW)

    assert updated["status"] == "pending"


@pytest.mark.integration
def test_moving_dates_rederives_status(db_engine):
    created = create_reservation(db_engine, stay_data("2024-03-01", "2024-03-05"), NOW)

    updated = update_reservation(
        db_engine,
        created["id"],
        {"check_in_date": "2024-01-31", "check_out_date": "2024-02-03"},
        NOW,
    )

    assert updated["status"] == "current"


@pytest.mark.integration
def test_cancel_keeps_record_and_is_idempotent(db_engine):
    created = create_reservation(db_engine, stay_data("2024-03-01", "2024-03-05"), NOW)

    cancelled = cancel_reservation(db_engine, created["id"], NOW)
    again = cancel_reservation(db_engine, created["id"], NOW)

    assert cancelled["status"] == "cancelled"
    assert again["status"] == "cancelled"
    assert get_reservation(db_engine, created["id"], NOW)["status"] == "cancelled"


@pytest.mark.integration
def test_delete_removes_record(db_engine):
    created = create_reservation(db_engine, stay_data("2024-03-01", "2024-03-05"), NOW)

    delete_reservation(db_engine, created["id"])

    with pytest.raises(NotFoundError):
        get_reservation(db_engine, created["id"], NOW)
    with pytest.raises(NotFoundError):
        delete_reservation(db_engine, created["id"])
    with pytest.raises(NotFoundError):
        cancel_reservation(db_engine, created["id"], NOW)


@pytest.mark.integration
def test_get_refreshes_stale_status(db_engine, insert_stay):
    reservation_id = insert_stay(date(2024, 1, 20), date(2024, 1, 25), status="upcoming")

    fetched = get_reservation(db_engine, reservation_id, NOW)

    assert fetched["status"] == "completed"


@pytest.mark.integration
def test_list_filters_sweep_first_and_orders_by_check_in_desc(db_engine, insert_stay):
    insert_stay(date(2024, 1, 10), date(2024, 1, 12), status="upcoming")  # stale
    insert_stay(date(2024, 1, 31), date(2024, 2, 4), status="upcoming")  # stale
    insert_stay(date(2024, 3, 1), date(2024, 3, 5), guest_ref="guest-2")
    insert_stay(date(2024, 4, 1), date(2024, 4, 5), guest_ref="guest-2")

    everything = list_reservations(db_engine, NOW, period="all")
    past = list_reservations(db_engine, NOW, period="past")
    current = list_reservations(db_engine, NOW, period="current", status="upcoming")
    guest_two = list_reservations(db_engine, NOW, guest_ref="guest-2", limit=1)

    assert [r["check_in_date"].month for r in everything] == [4, 3, 1, 1]
    assert [r["check_in_date"] for r in past] == [date(2024, 1, 10)]
    assert [r["check_in_date"] for r in current] == [date(2024, 1, 31)]
    assert [r["check_in_date"] for r in guest_two] == [date(2024, 4, 1)]


@pytest.mark.integration
@pytest.mark.parametrize(
    "kwargs",
    [{"status": "confirmed"}, {"period": "yesterday"}, {"limit": 0}],
)
def test_list_rejects_bad_filters(db_engine, kwargs):
    with pytest.raises(ValidationError):
        list_reservations(db_engine, NOW, **kwargs)


@pytest.mark.integration
def test_current_and_next(db_engine, insert_stay):
    current_id = insert_stay(date(2024, 1, 30), date(2024, 2, 2))
    next_id = insert_stay(date(2024, 2, 10), date(2024, 2, 12))
    insert_stay(date(2024, 3, 10), date(2024, 3, 12))

    result = get_current_and_next(db_engine, NOW)

    assert result["current"]["id"] == current_id
    assert result["current"]["status"] == "current"
    assert result["next"]["id"] == next_id


@pytest.mark.integration
def test_moving_completed_stay_into_the_future_makes_it_upcoming(db_engine):
    created = create_reservation(db_engine, stay_data("2024-01-20", "2024-01-23"), NOW)
    assert created["status"] == "completed"

    moved = update_reservation(
        db_engine,
        created["id"],
        {"check_in_date": "2024-03-01", "check_out_date": "2024-03-03"},
        NOW,
    )

    assert moved["status"] == "upcoming"
    assert get_reservation(db_engine, created["id"], NOW)["status"] == "upcoming"


@pytest.mark.integration
@pytest.mark.parametrize("status", ["pending", "cancelled"])
def test_moving_dates_keeps_manual_status(db_engine, status):
    created = create_reservation(
        db_engine, stay_data("2024-03-01", "2024-03-05", status=status), NOW
    )

    moved = update_reservation(
        db_engine,
        created["id"],
        {"check_in_date": "2024-01-31", "check_out_date": "2024-02-03"},
        NOW,
    )

    assert moved["status"] == status

"""
Shared fixtures.

Configuration is read at import time, so the environment is pinned here before
any ``stay_sync`` module is imported. Integration tests run against an
in-memory SQLite engine built per test.
"""

from __future__ import annotations

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ALLOWED_ORIGINS"] = "*"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["PROPERTY_TIMEZONE"] = "America/Sao_Paulo"
os.environ["CALENDAR_FEED_NAME"] = "airbnb"
os.environ["CALENDAR_FEED_URL"] = "https://calendar.example.com/ical/123.ics?s=secret-token"

import uuid  # noqa: E402
from datetime import date, datetime, timezone  # noqa: E402
from typing import Any, Callable, Generator  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import insert  # noqa: E402
from sqlalchemy.engine import Engine  # noqa: E402

from stay_sync.db.engine import build_engine  # noqa: E402
from stay_sync.models.base import Base  # noqa: E402
from stay_sync.models.calendar import ExternalCalendarEvent  # noqa: E402
from stay_sync.models.reservations import Reservation  # noqa: E402

# 12:00 on 2024-06-01 at the property (UTC-3)
NOW = datetime(2024, 6, 1, 15, 0, tzinfo=timezone.utc)


@pytest.fixture
def db_engine() -> Generator[Engine, None, None]:
    """Fresh in-memory database with all tables created."""
    test_engine = build_engine("sqlite://")
    Base.metadata.create_all(test_engine)
    yield test_engine
    Base.metadata.drop_all(test_engine)


@pytest.fixture
def insert_stay(db_engine: Engine) -> Callable[..., str]:
    """
    Insert a reservation row directly, bypassing the store's validation.

    Returns a function taking check_in, check_out and any column overrides,
    returning the new id.
    """

    def _insert(check_in: date, check_out: date, **overrides: Any) -> str:
        row: dict[str, Any] = {
            "id": str(uuid.uuid4()),
            "guest_ref": "guest-1",
            "guest_name": "Test Guest",
            "check_in_date": check_in,
            "check_out_date": check_out,
            "status": "upcoming",
            "source": "direct",
            "is_paid": False,
            "created_by": "tests",
            "created_at": NOW,
            "updated_at": NOW,
        }
        row.update(overrides)
        with db_engine.begin() as conn:
            conn.execute(insert(Reservation).values(**row))
        return row["id"]

    return _insert


@pytest.fixture
def insert_event(db_engine: Engine) -> Callable[..., str]:
    """Insert an external calendar event row for the configured feed."""

    def _insert(start: date, end: date, uid: str | None = None, **overrides: Any) -> str:
        row: dict[str, Any] = {
            "feed_name": "airbnb",
            "uid": uid or f"{uuid.uuid4()}@airbnb.com",
            "start": start,
            "end": end,
            "summary": "Reserved",
            "status": "blocked",
            "reservation_code": None,
            "synced_at": NOW,
        }
        row.update(overrides)
        with db_engine.begin() as conn:
            conn.execute(insert(ExternalCalendarEvent).values(**row))
        return row["uid"]

    return _insert


@pytest.fixture
def client(db_engine: Engine) -> Generator[TestClient, None, None]:
    """FastAPI test client wired to the test database."""
    from stay_sync.dependencies import get_db_engine
    from stay_sync.main import app

    app.dependency_overrides[get_db_engine] = lambda: db_engine
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def now() -> datetime:
    return NOW

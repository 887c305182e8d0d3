"""
Integration tests for health and readiness endpoints.
"""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from stay_sync.db.writers.calendar import replace_feed_events
from stay_sync.dependencies import get_db_engine
from stay_sync.main import app


@pytest.mark.integration
def test_health_endpoint_returns_ok(client):
    """Test that /health endpoint returns 200 with status ok."""
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.integration
def test_readiness_endpoint_returns_ready_when_db_accessible(client):
    """Test that /ready endpoint returns 200 when database is accessible."""
    response = client.get("/ready")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ready"
    assert data["checks"]["database"] == "ok"
    assert data["checks"]["calendar_last_sync"] is None


@pytest.mark.integration
def test_readiness_reports_calendar_freshness(client, db_engine):
    synced_at = datetime(2024, 6, 1, 15, 0, tzinfo=timezone.utc)
    replace_feed_events(db_engine, "airbnb", None, [], skipped=0, now=synced_at)

    data = client.get("/ready").json()

    assert data["checks"]["calendar_last_sync"].startswith("2024-06-01T15:00")


@pytest.mark.integration
def test_readiness_endpoint_returns_503_when_db_not_accessible():
    """Test that /ready endpoint returns 503 when database is not accessible."""
    broken_engine = Mock()
    broken_engine.connect.side_effect = ConnectionError("database is down")
    app.dependency_overrides[get_db_engine] = lambda: broken_engine

    try:
        response = TestClient(app).get("/ready")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 503
    data = response.json()
    assert data["status"] == "not ready"
    assert data["checks"]["database"] == "failed"


@pytest.mark.integration
def test_health_endpoint_always_returns_ok_even_if_db_down():
    """Test that /health endpoint returns 200 even if database is down.

    Health endpoint should only check if the application process is running,
    not if dependencies are available. That's what /ready is for.
    """
    broken_engine = Mock()
    broken_engine.connect.side_effect = ConnectionError("database is down")
    app.dependency_overrides[get_db_engine] = lambda: broken_engine

    try:
        response = TestClient(app).get("/health")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}

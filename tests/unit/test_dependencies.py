"""
Unit tests for FastAPI dependency injection.
"""

from __future__ import annotations

from unittest.mock import Mock

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from stay_sync.dependencies import get_db_engine


@pytest.mark.unit
def test_get_db_engine_yields_application_engine() -> None:
    from stay_sync.db.engine import engine as app_engine

    engine = next(get_db_engine())

    assert isinstance(engine, Engine)
    assert engine is app_engine


@pytest.mark.unit
def test_dependency_can_be_overridden() -> None:
    app = FastAPI()

    @app.get("/dialect")
    def dialect(engine: Engine = Depends(get_db_engine)) -> dict[str, str]:
        return {"engine_name": engine.name}

    mock_engine = Mock(spec=Engine)
    mock_engine.name = "mock_engine"
    app.dependency_overrides[get_db_engine] = lambda: mock_engine

    response = TestClient(app).get("/dialect")

    assert response.status_code == 200
    assert response.json() == {"engine_name": "mock_engine"}

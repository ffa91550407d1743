"""Shared fixtures for host bridge API tests.

This module provides a TestClient wired to an engine created by the test,
using FastAPI's dependency override system in place of the engine the app
lifespan would create.
"""

import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_engine
from main import create_app
from tests.fixtures.engine import create_engine, create_ready_engine


@pytest.fixture
def bridge_app():
    """Provide a bridge app that does not drive its clock from wall time."""
    app = create_app(drive_clock_from_wall_time=False)
    yield app
    app.dependency_overrides.clear()


def _client_for(app, engine):
    app.dependency_overrides[get_engine] = lambda: engine
    return TestClient(app)


@pytest.fixture
def client_with_engine(bridge_app):
    """Provide a TestClient with a fresh, empty SyncEngine injected.

    Yields:
        A tuple of (TestClient, SyncEngine) for testing.

    Example:
        def test_something(client_with_engine):
            client, engine = client_with_engine
            response = client.get("/state")
            assert response.status_code == 200
    """
    engine = create_engine()
    yield _client_for(bridge_app, engine), engine
    engine.close()


@pytest.fixture
def client_with_ready_engine(bridge_app):
    """Provide a TestClient whose engine knows user U1, team T1 and C1, C2."""
    engine = create_ready_engine()
    yield _client_for(bridge_app, engine), engine
    engine.close()

import pytest
from fastapi.testclient import TestClient

import app.api as api_module


@pytest.fixture
def client():
    # No `with` block: the lifespan (init_db + seeding) stays out of unit tests.
    return TestClient(api_module.app)


@pytest.fixture
def no_database(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)

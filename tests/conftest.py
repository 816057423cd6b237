from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from quarry_erp.db.engine import build_engine, get_engine
from quarry_erp.db.schema import metadata
from quarry_erp.main import app


@pytest.fixture(scope="function")
def engine(tmp_path) -> Generator[Engine, None, None]:
    """A fresh file-backed SQLite store per test (threads get their own connections)."""
    engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}", timeout=5)
    metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def client(engine: Engine) -> Generator[TestClient, None, None]:
    """Test client wired to the per-test store."""
    app.dependency_overrides[get_engine] = lambda: engine
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def broken_client(tmp_path) -> Generator[TestClient, None, None]:
    """Test client whose store has no tables, so every query fails."""
    engine = build_engine(f"sqlite:///{tmp_path / 'empty.db'}", timeout=5)
    app.dependency_overrides[get_engine] = lambda: engine
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    engine.dispose()

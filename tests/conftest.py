"""
Shared fixtures: an in-memory database, the app wired to it, and helpers to
register and log in users.
"""

from __future__ import annotations

from typing import Callable, Dict, Iterator

import pytest
from fastapi.testclient import TestClient

from music_library.config import Settings
from music_library.db import Database
from music_library.main import create_app

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url="sqlite+pysqlite:///:memory:",
        jwt_secret="test-secret",
        cors_origins=(),
    )


@pytest.fixture
def database(settings: Settings) -> Iterator[Database]:
    """Create an in-memory database for testing."""
    db = Database(settings.database_url)
    db.open()
    yield db
    db.close()


@pytest.fixture
def client(settings: Settings, database: Database) -> Iterator[TestClient]:
    app = create_app(settings=settings, database=database)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def login(client: TestClient) -> Callable[..., Dict[str, object]]:
    """
    Register a user and log in.

    Returns a dict with the created `user` and the `headers` to authenticate as it.
    """

    def _login(name: str, role: str = "listener", password: str = "secret-pw") -> Dict[str, object]:
        email = f"{name.lower()}@example.com"
        resp = client.post(
            "/auth/register",
            json={"name": name, "email": email, "password": password, "role": role},
        )
        assert resp.status_code == 201, resp.text
        user = resp.json()

        resp = client.post("/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.text
        token = resp.json()["token"]
        return {"user": user, "headers": {"Authorization": f"Bearer {token}"}}

    return _login


@pytest.fixture
def artist(login) -> Dict[str, object]:
    return login("Alice", role="artist")


@pytest.fixture
def other_artist(login) -> Dict[str, object]:
    return login("Bob", role="artist")


@pytest.fixture
def listener(login) -> Dict[str, object]:
    return login("Lena", role="listener")

"""Tests for application-wide behaviour: health check, unexpected errors, request logging."""

from __future__ import annotations

import logging

import pytest
from fastapi.testclient import TestClient

from music_library.albums import AlbumService
from music_library.main import create_app


@pytest.fixture
def lenient_client(settings, database):
    """A client that returns server errors as responses instead of re-raising them."""
    app = create_app(settings=settings, database=database)
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


def _headers(client, name="Iris", role="artist"):
    email = f"{name.lower()}@example.com"
    client.post("/auth/register", json={"name": name, "email": email, "password": "secret-pw", "role": role})
    token = client.post("/auth/login", json={"email": email, "password": "secret-pw"}).json()["token"]
    return {"Authorization": f"Bearer {token}"}


def test_health_check(client) -> None:
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_unexpected_error_is_rendered_as_json(lenient_client, monkeypatch) -> None:
    headers = _headers(lenient_client)

    def explode(self, identity):
        raise RuntimeError("boom")

    monkeypatch.setattr(AlbumService, "list_all", explode)

    resp = lenient_client.get("/albums", headers=headers)
    assert resp.status_code == 500
    assert resp.json() == {"detail": {"error": "internal_error", "message": "Internal server error."}}


def test_each_request_is_logged(client, caplog) -> None:
    caplog.set_level(logging.INFO, logger="music_library.main")
    client.get("/")
    lines = [r.getMessage() for r in caplog.records if r.name == "music_library.main"]
    assert any("method=GET path=/ status=200" in line for line in lines)

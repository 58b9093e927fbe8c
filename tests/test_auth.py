"""
Tests for registration, login, token handling and the access guard.

Guard states:
- no token -> 401
- invalid / expired token -> 401
- valid token whose user is gone -> 404
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt
from sqlalchemy import delete, select

from music_library.auth import InvalidTokenError, create_access_token, decode_access_token
from music_library.config import Settings
from music_library.models import User
from music_library.users import verify_password


class TestTokens:
    def test_claims_survive_issue_and_verify(self, settings: Settings) -> None:
        token = create_access_token(settings, user_id=7, role="artist")
        claims = decode_access_token(settings, token)
        assert claims.user_id == 7
        assert claims.role == "artist"

    def test_expired_token_is_invalid(self, settings: Settings) -> None:
        issued = datetime.now(timezone.utc) - timedelta(hours=25)
        token = create_access_token(settings, user_id=7, role="artist", now=issued)
        with pytest.raises(InvalidTokenError) as excinfo:
            decode_access_token(settings, token)
        assert excinfo.value.reason == "expired"

    def test_token_signed_with_other_secret_is_invalid(self, settings: Settings) -> None:
        other = Settings(database_url=settings.database_url, jwt_secret="someone-else")
        token = create_access_token(other, user_id=7, role="artist")
        with pytest.raises(InvalidTokenError) as excinfo:
            decode_access_token(settings, token)
        assert excinfo.value.reason == "bad_signature_or_format"

    def test_default_expiry_is_24_hours(self, settings: Settings) -> None:
        token = create_access_token(settings, user_id=1, role="listener")
        payload = jwt.get_unverified_claims(token)
        assert payload["exp"] - payload["iat"] == 24 * 60 * 60


class TestRegisterAndLogin:
    def test_register_never_returns_password(self, client, database) -> None:
        resp = client.post(
            "/auth/register",
            json={"name": "Ann", "email": "Ann@Example.com", "password": "hunter22", "role": "artist"},
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["email"] == "ann@example.com"
        assert body["role"] == "artist"
        assert "password" not in body
        assert "password_hash" not in body

        with database.session() as db:
            user = db.execute(select(User).where(User.id == body["id"])).scalar_one()
            assert user.password_hash != "hunter22"
            assert verify_password("hunter22", user.password_hash)

    def test_role_defaults_to_listener(self, client) -> None:
        resp = client.post(
            "/auth/register", json={"name": "Lou", "email": "lou@example.com", "password": "secret-pw"}
        )
        assert resp.status_code == 201
        assert resp.json()["role"] == "listener"

    def test_duplicate_email_rejected(self, client, login) -> None:
        login("Dana")
        resp = client.post(
            "/auth/register",
            json={"name": "Dana 2", "email": "dana@example.com", "password": "secret-pw"},
        )
        assert resp.status_code == 400
        assert resp.json()["detail"]["field"] == "email"

    def test_wrong_password_and_unknown_email_look_the_same(self, client, login) -> None:
        login("Eve")
        wrong = client.post("/auth/login", json={"email": "eve@example.com", "password": "nope-nope"})
        unknown = client.post("/auth/login", json={"email": "nobody@example.com", "password": "nope-nope"})
        assert wrong.status_code == unknown.status_code == 401
        assert wrong.json() == unknown.json()

    def test_me_returns_caller(self, client, artist) -> None:
        resp = client.get("/auth/me", headers=artist["headers"])
        assert resp.status_code == 200
        assert resp.json()["id"] == artist["user"]["id"]


class TestAccessGuard:
    def test_missing_token_is_401(self, client) -> None:
        resp = client.get("/albums")
        assert resp.status_code == 401
        assert resp.json()["detail"]["error"] == "not_authenticated"

    def test_garbage_token_is_401(self, client) -> None:
        resp = client.get("/songs", headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401

    def test_expired_token_is_401(self, client, settings, artist) -> None:
        issued = datetime.now(timezone.utc) - timedelta(days=2)
        token = create_access_token(settings, user_id=artist["user"]["id"], role="artist", now=issued)
        resp = client.get("/playlists", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    def test_deleted_user_is_denied_with_valid_token(self, client, database, listener) -> None:
        with database.session() as db:
            db.execute(delete(User).where(User.id == listener["user"]["id"]))

        resp = client.get("/songs", headers=listener["headers"])
        assert resp.status_code == 404
        assert resp.json()["detail"]["message"] == "User not found."

"""
Authentication utilities: JWT handling and the access guard.

Clients send:
- Authorization: Bearer <token>

The guard verifies the token, re-reads the user from the store on every request
and attaches the resulting `Identity` to `request.state.identity`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy.orm import Session

from music_library.config import Settings
from music_library.db import db_session_dep
from music_library.errors import AuthenticationError, NotFoundError
from music_library.permissions import Identity
from music_library.users import UserStore

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    role: str


class InvalidTokenError(Exception):
    """Token rejected; `reason` is for logs only."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


# PUBLIC_INTERFACE
def create_access_token(settings: Settings, *, user_id: int, role: str, now: Optional[datetime] = None) -> str:
    """
    Create a signed JWT access token.

    Token contains:
      - sub: user id (string)
      - role
      - iat, exp (expiry `settings.jwt_expires_minutes` after issuance)
    """
    issued = now or datetime.now(timezone.utc)
    exp = issued + timedelta(minutes=settings.jwt_expires_minutes)
    payload: Dict[str, Any] = {
        "sub": str(user_id),
        "role": role,
        "iat": int(issued.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


# PUBLIC_INTERFACE
def decode_access_token(settings: Settings, token: str) -> TokenClaims:
    """
    Verify a token and return its claims.

    Raises:
        InvalidTokenError: expired, badly signed or malformed token.
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError:
        raise InvalidTokenError("expired")
    except JWTError:
        raise InvalidTokenError("bad_signature_or_format")

    sub = payload.get("sub")
    role = payload.get("role")
    try:
        user_id = int(str(sub))
    except ValueError:
        raise InvalidTokenError("bad_subject")
    if user_id <= 0 or not isinstance(role, str):
        raise InvalidTokenError("bad_claims")

    return TokenClaims(user_id=user_id, role=role)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


# PUBLIC_INTERFACE
def require_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    db: Session = Depends(db_session_dep),
    settings: Settings = Depends(get_settings),
) -> Identity:
    """
    Access guard dependency.

    - no bearer token -> 401
    - invalid or expired token -> 401
    - token valid but the user no longer exists -> 404
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        logger.warning("auth_rejected: reason=no_token path=%s", request.url.path)
        raise AuthenticationError("Authorization header missing.")

    try:
        claims = decode_access_token(settings, credentials.credentials)
    except InvalidTokenError as exc:
        logger.warning("auth_rejected: reason=%s path=%s", exc.reason, request.url.path)
        raise AuthenticationError("Invalid or expired token.")

    user = UserStore(db).find_by_id(claims.user_id)
    if user is None:
        logger.warning("auth_rejected: reason=user_missing user_id=%s", claims.user_id)
        raise NotFoundError("User not found.")

    identity = Identity(user_id=user.id, role=claims.role)
    request.state.identity = identity
    return identity


# PUBLIC_INTERFACE
def current_identity(request: Request) -> Identity:
    """Read the identity attached by `require_identity` earlier in the request."""
    identity = getattr(request.state, "identity", None)
    if identity is None:
        raise AuthenticationError("Not authenticated.")
    return identity

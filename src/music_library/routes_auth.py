"""
Auth endpoints:
- POST /auth/register
- POST /auth/login
- GET /auth/me
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from music_library.auth import create_access_token, current_identity, get_settings, require_identity
from music_library.config import Settings
from music_library.db import db_session_dep
from music_library.errors import AuthenticationError, NotFoundError, ValidationError
from music_library.permissions import Identity
from music_library.schemas import AuthLoginRequest, AuthRegisterRequest, AuthTokenResponse, UserResponse
from music_library.users import UserStore, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
    description="Creates a new user. The password is hashed and never returned.",
    operation_id="register_user",
)
def register(req: AuthRegisterRequest, db: Session = Depends(db_session_dep)) -> UserResponse:
    """Register a new user with name/email/password/role."""
    store = UserStore(db)
    if store.find_by_email(req.email) is not None:
        raise ValidationError("Email is already registered.", field="email")

    user = store.create(name=req.name, email=req.email, password=req.password, role=req.role)
    return UserResponse.model_validate(user)


@router.post(
    "/login",
    response_model=AuthTokenResponse,
    summary="Login",
    description="Validates credentials and returns a JWT token valid for 24 hours by default.",
    operation_id="login_user",
)
def login(
    req: AuthLoginRequest,
    db: Session = Depends(db_session_dep),
    settings: Settings = Depends(get_settings),
) -> AuthTokenResponse:
    """Login an existing user."""
    user = UserStore(db).find_by_email(req.email)
    if not user or not verify_password(req.password, user.password_hash):
        logger.info("login_failed: email_known=%s", user is not None)
        raise AuthenticationError("Invalid email or password.")

    token = create_access_token(settings, user_id=user.id, role=user.role)
    return AuthTokenResponse(token=token, token_type="bearer")


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Current user",
    description="Returns the authenticated caller.",
    operation_id="current_user",
    dependencies=[Depends(require_identity)],
)
def me(identity: Identity = Depends(current_identity), db: Session = Depends(db_session_dep)) -> UserResponse:
    user = UserStore(db).find_by_id(identity.user_id)
    if user is None:
        raise NotFoundError("User not found.")
    return UserResponse.model_validate(user)

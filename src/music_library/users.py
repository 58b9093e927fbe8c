"""
Identity & credential store.

Passwords are hashed before the row is built; a hashing failure aborts the
registration with nothing written. Plain-text passwords are never stored or
returned.
"""

from __future__ import annotations

import logging
from typing import Optional

from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.orm import Session

from music_library.db import unit_of_work
from music_library.models import User
from music_library.permissions import normalize_role

logger = logging.getLogger(__name__)

_pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


# PUBLIC_INTERFACE
def hash_password(password: str) -> str:
    """Hash a plain-text password."""
    return _pwd_context.hash(password)


# PUBLIC_INTERFACE
def verify_password(password: str, password_hash: str) -> bool:
    """Verify a plain-text password against a hash."""
    return _pwd_context.verify(password, password_hash)


def normalize_email(email: str) -> str:
    return email.lower().strip()


class UserStore:
    def __init__(self, session: Session) -> None:
        self.session = session

    def find_by_id(self, user_id: int) -> Optional[User]:
        return self.session.execute(select(User).where(User.id == user_id)).scalar_one_or_none()

    def find_by_email(self, email: str) -> Optional[User]:
        return self.session.execute(
            select(User).where(User.email == normalize_email(email))
        ).scalar_one_or_none()

    def create(self, *, name: str, email: str, password: str, role: str) -> User:
        """
        Persist a new user.

        Raises:
            ValidationError: the email is already registered.
            PersistenceError: the insert failed for another reason.
        """
        password_hash = hash_password(password)

        user = User(
            name=name.strip(),
            email=normalize_email(email),
            password_hash=password_hash,
            role=normalize_role(role),
        )
        with unit_of_work(self.session) as uow:
            with uow.step("create user", unique_field="email"):
                self.session.add(user)

        logger.info("user_registered: user_id=%s role=%s", user.id, user.role)
        return user

"""
Database handle, per-request sessions and the unit-of-work helper.

Uses SQLAlchemy 2.0 style engine/sessions. The `Database` handle is constructed
explicitly by the process entry point (or a test) and owned by the application
lifespan; nothing in this module holds a global engine.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Generator, Optional

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from music_library.config import redact_database_url
from music_library.errors import DatabaseUnavailableError, PersistenceError, ValidationError
from music_library.models import Base

logger = logging.getLogger(__name__)


def _is_memory_sqlite(url: str) -> bool:
    return url.startswith("sqlite") and (":memory:" in url or url.rstrip("/").endswith("sqlite:"))


class Database:
    """Owns the SQLAlchemy engine and session factory for one process."""

    def __init__(self, url: str) -> None:
        self.url = url
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database is not open.")
        return self._engine

    # PUBLIC_INTERFACE
    def open(self) -> None:
        """Create the engine and make sure the schema exists. Safe to call twice."""
        if self._engine is not None:
            return

        logger.info("DB: using database url=%s", redact_database_url(self.url))

        if _is_memory_sqlite(self.url):
            # One shared connection, otherwise every pooled connection sees its own empty database.
            engine = create_engine(
                self.url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            engine = create_engine(self.url, pool_pre_ping=True)

        Base.metadata.create_all(engine)
        self._engine = engine
        self._session_factory = sessionmaker(bind=engine, autoflush=False, autocommit=False)

    # PUBLIC_INTERFACE
    def close(self) -> None:
        """Dispose of the engine and its connection pool."""
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        self._session_factory = None
        logger.info("DB: closed")

    # PUBLIC_INTERFACE
    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """
        Yield a SQLAlchemy Session, handling commit/rollback.

        Usage:
            with database.session() as db:
                ...
        """
        if self._session_factory is None:
            raise RuntimeError("Database is not open.")
        db = self._session_factory()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()


# PUBLIC_INTERFACE
def db_session_dep(request: Request) -> Generator[Session, None, None]:
    """
    FastAPI dependency that yields the request-scoped DB session.

    Connection/query failures that nothing else classified are reported as
    HTTP 503 instead of a bare 500.
    """
    database: Database = request.app.state.database
    try:
        with database.session() as db:
            yield db
    except SQLAlchemyError as exc:
        logger.warning("db_session_failed: exception=%s", exc.__class__.__name__)
        raise DatabaseUnavailableError("Database connection/query failed.") from exc


class UnitOfWork:
    """A group of writes that commit together or not at all."""

    def __init__(self, session: Session) -> None:
        self.session = session

    @contextmanager
    def step(self, name: str, *, unique_field: Optional[str] = None) -> Generator[None, None, None]:
        """
        Run one named write phase and flush it.

        A storage failure is re-raised as `PersistenceError` naming the step. When
        `unique_field` is given, an integrity violation is reported as a
        `ValidationError` on that field instead.
        """
        try:
            yield
            self.session.flush()
        except IntegrityError as exc:
            if unique_field is None:
                logger.warning("unit_of_work_step_failed: step=%s exception=%s", name, exc.__class__.__name__)
                raise PersistenceError(f"Failed to {name}.", step=name) from exc
            raise ValidationError(f"{unique_field} already exists.", field=unique_field) from exc
        except SQLAlchemyError as exc:
            logger.warning("unit_of_work_step_failed: step=%s exception=%s", name, exc.__class__.__name__)
            raise PersistenceError(f"Failed to {name}.", step=name) from exc


# PUBLIC_INTERFACE
@contextmanager
def unit_of_work(session: Session) -> Generator[UnitOfWork, None, None]:
    """
    Scope an atomic unit on `session`.

    Commits when the block exits normally; rolls back every write made inside it
    when the block raises, then re-raises.
    """
    uow = UnitOfWork(session)
    try:
        yield uow
    except Exception:
        session.rollback()
        raise
    try:
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.warning("unit_of_work_commit_failed: exception=%s", exc.__class__.__name__)
        raise PersistenceError("Failed to commit transaction.", step="commit") from exc

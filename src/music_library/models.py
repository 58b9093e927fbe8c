"""
SQLAlchemy models for users, albums, songs and playlists.

Albums, songs and playlists are soft-deletable: a non-null `deleted_at` marks a
tombstoned row. Reads must go through `SoftDeleteMixin.live()` (or one of the
relationships below, which carry the same filter) so tombstones stay invisible.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Select,
    Table,
    Text,
    and_,
    select,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all ORM models."""


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class SoftDeleteMixin:
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True, index=True)

    @classmethod
    def live(cls) -> Select:
        """Return a SELECT over rows that have not been soft-deleted."""
        return select(cls).where(cls.deleted_at.is_(None))

    def mark_deleted(self, when: Optional[datetime] = None) -> None:
        self.deleted_at = when or utcnow()


# Pure relation: no ownership of its own, rows are cleared but never tombstoned.
playlist_songs = Table(
    "playlist_songs",
    Base.metadata,
    Column("playlist_id", Integer, ForeignKey("playlists.id", ondelete="CASCADE"), primary_key=True),
    Column("song_id", Integer, ForeignKey("songs.id", ondelete="CASCADE"), primary_key=True, index=True),
)


class User(TimestampMixin, Base):
    """User account row. `password_hash` is written once at registration."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(Text, nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)
    role: Mapped[str] = mapped_column(Text, nullable=False, default="listener")


class Album(TimestampMixin, SoftDeleteMixin, Base):
    """Album row. Titles are unique across every user, tombstones included."""

    __tablename__ = "albums"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    artist: Mapped[str] = mapped_column(Text, nullable=False, default="")
    year: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Only the album owner's live songs.
    songs: Mapped[List["Song"]] = relationship(
        "Song",
        primaryjoin=lambda: and_(
            Song.album_id == Album.id,
            Song.user_id == Album.user_id,
            Song.deleted_at.is_(None),
        ),
        foreign_keys=lambda: [Song.album_id],
        order_by=lambda: Song.id,
        viewonly=True,
    )


class Song(TimestampMixin, SoftDeleteMixin, Base):
    """Song row. `duration` is in milliseconds; `album_id` is optional."""

    __tablename__ = "songs"
    __table_args__ = (CheckConstraint("duration >= 0", name="ck_songs_duration_unsigned"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    album_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("albums.id"), nullable=True, index=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    album: Mapped[Optional[Album]] = relationship(
        "Album",
        primaryjoin=lambda: and_(Song.album_id == Album.id, Album.deleted_at.is_(None)),
        foreign_keys=lambda: [Song.album_id],
        viewonly=True,
    )


class Playlist(TimestampMixin, SoftDeleteMixin, Base):
    """Playlist row. Member songs are referenced through `playlist_songs`."""

    __tablename__ = "playlists"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Read side of the join relation; writes go through `playlist_songs` directly.
    songs: Mapped[List[Song]] = relationship(
        Song,
        secondary=playlist_songs,
        primaryjoin=lambda: Playlist.id == playlist_songs.c.playlist_id,
        secondaryjoin=lambda: and_(Song.id == playlist_songs.c.song_id, Song.deleted_at.is_(None)),
        order_by=lambda: Song.id,
        viewonly=True,
    )

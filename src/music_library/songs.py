"""
Song access: owner-scoped CRUD and search.

A song may reference one of its owner's albums. Deleting a song first removes
it from every playlist, whoever owns the playlist, then soft-deletes it.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import String, cast, delete, or_, select
from sqlalchemy.orm import selectinload

from music_library.db import unit_of_work
from music_library.errors import ForbiddenError, ValidationError
from music_library.models import Album, Song, playlist_songs, utcnow
from music_library.pagination import PageInfo, paginate, parse_int, resolve_page
from music_library.permissions import Identity
from music_library.resources import OwnedResourceService

logger = logging.getLogger(__name__)

_WITH_ALBUM = (selectinload(Song.album),)


class SongService(OwnedResourceService[Song]):
    model = Song
    label = "Song"

    def _check_album(self, identity: Identity, album_id: int) -> None:
        """
        Make sure the caller may file a song under `album_id`.

        Raises:
            ValidationError: no live album with that id.
            ForbiddenError: the album belongs to another user.
        """
        album = self.session.execute(Album.live().where(Album.id == album_id)).scalar_one_or_none()
        if album is None:
            raise ValidationError(f"Invalid album_id: album {album_id} does not exist.", field="album_id")
        if album.user_id != identity.user_id:
            raise ForbiddenError(f"You don't own album {album_id}.")

    def create(self, identity: Identity, *, title: str, duration: int, album_id: Optional[int] = None) -> Song:
        if album_id is not None:
            self._check_album(identity, album_id)

        song = Song(title=title, duration=duration, album_id=album_id, user_id=identity.user_id)
        with unit_of_work(self.session) as uow:
            with uow.step("create song"):
                self.session.add(song)

        logger.info("song_created: song_id=%s user_id=%s album_id=%s", song.id, identity.user_id, album_id)
        return self.get(identity, song.id)

    def list_all(self, identity: Identity) -> List[Song]:
        return self._list_owned(identity, options=_WITH_ALBUM)

    def get(self, identity: Identity, song_id: int) -> Song:
        return self._get_owned(identity, song_id, options=_WITH_ALBUM)

    def update(self, identity: Identity, song_id: int, changes: Dict[str, Any]) -> Song:
        """
        Apply a partial update of title, duration and/or album_id.

        `album_id` is re-validated only when it is present in `changes`; an
        explicit None detaches the song from its album.
        """
        song = self._get_owned(identity, song_id)

        if "album_id" in changes and changes["album_id"] is not None:
            self._check_album(identity, changes["album_id"])

        with unit_of_work(self.session) as uow:
            with uow.step("update song"):
                for key in ("title", "duration"):
                    if changes.get(key) is not None:
                        setattr(song, key, changes[key])
                if "album_id" in changes:
                    song.album_id = changes["album_id"]

        return self.get(identity, song_id)

    def delete(self, identity: Identity, song_id: int) -> List[int]:
        """Detach the song from all playlists and soft-delete it; returns the playlist ids it left."""
        song = self._get_owned(identity, song_id)

        with unit_of_work(self.session) as uow:
            with uow.step("find associated playlists"):
                playlist_ids = list(
                    self.session.execute(
                        select(playlist_songs.c.playlist_id).where(playlist_songs.c.song_id == song.id)
                    ).scalars()
                )
            with uow.step("remove song from playlists"):
                if playlist_ids:
                    self.session.execute(delete(playlist_songs).where(playlist_songs.c.song_id == song.id))
            with uow.step("delete song"):
                song.mark_deleted()

        logger.info("song_deleted: song_id=%s user_id=%s playlists=%s", song_id, identity.user_id, len(playlist_ids))
        return playlist_ids

    def search(
        self,
        identity: Identity,
        *,
        q: Optional[str] = None,
        title: Optional[str] = None,
        album_id: Optional[str] = None,
        min_duration: Optional[str] = None,
        max_duration: Optional[str] = None,
        limit: Any = None,
        offset: Any = None,
    ) -> Tuple[List[Song], PageInfo]:
        """
        Search the caller's songs.

        A non-empty `q` matches the title or the duration's digits and overrides
        the field filters; otherwise title, album_id and the duration range are ANDed.
        """
        stmt = self.owned(identity)

        if q:
            stmt = stmt.where(
                or_(
                    Song.title.icontains(q, autoescape=True),
                    cast(Song.duration, String).contains(q, autoescape=True),
                )
            )
        else:
            if title:
                stmt = stmt.where(Song.title.icontains(title, autoescape=True))
            exact_album = parse_int(album_id)
            if exact_album is not None:
                stmt = stmt.where(Song.album_id == exact_album)
            lower = parse_int(min_duration)
            if lower is not None:
                stmt = stmt.where(Song.duration >= lower)
            upper = parse_int(max_duration)
            if upper is not None:
                stmt = stmt.where(Song.duration <= upper)

        return paginate(self.session, stmt, resolve_page(limit, offset), order_by=Song.id, options=_WITH_ALBUM)

"""
Playlist access: owner-scoped CRUD, search and song-set management.

Playlists reference songs through `playlist_songs` and never own them: clearing
or deleting a playlist only removes join rows.

Song references are checked differently on the two write paths: creation only
requires the songs to exist, an update requires the caller to own every song.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence, Tuple

from sqlalchemy import delete, insert, select
from sqlalchemy.orm import selectinload

from music_library.db import unit_of_work
from music_library.errors import ValidationError
from music_library.models import Playlist, Song, playlist_songs
from music_library.pagination import PageInfo, paginate, resolve_page
from music_library.permissions import Identity
from music_library.resources import OwnedResourceService, unique_ids

logger = logging.getLogger(__name__)

_WITH_SONGS = (selectinload(Playlist.songs),)


class PlaylistService(OwnedResourceService[Playlist]):
    model = Playlist
    label = "Playlist"

    def _resolve_songs(self, song_ids: Sequence[int], *, owner_id: Optional[int] = None) -> List[int]:
        """Return the requested live song ids, raising if any of them cannot be used."""
        wanted = unique_ids(song_ids)
        if not wanted:
            return []

        stmt = select(Song.id).where(Song.id.in_(wanted), Song.deleted_at.is_(None))
        if owner_id is not None:
            stmt = stmt.where(Song.user_id == owner_id)
        found = set(self.session.execute(stmt).scalars())

        missing = [song_id for song_id in wanted if song_id not in found]
        if missing:
            reason = "do not exist" if owner_id is None else "do not exist or are not yours"
            raise ValidationError(
                f"Invalid song_ids: {', '.join(str(i) for i in missing)} {reason}.",
                field="song_ids",
            )
        return wanted

    def _attach(self, playlist_id: int, song_ids: Sequence[int]) -> None:
        if song_ids:
            self.session.execute(
                insert(playlist_songs),
                [{"playlist_id": playlist_id, "song_id": song_id} for song_id in song_ids],
            )

    def _clear(self, playlist_id: int) -> None:
        self.session.execute(delete(playlist_songs).where(playlist_songs.c.playlist_id == playlist_id))

    def create(self, identity: Identity, *, name: str, song_ids: Sequence[int] = ()) -> Playlist:
        songs = self._resolve_songs(song_ids)

        playlist = Playlist(name=name, user_id=identity.user_id)
        with unit_of_work(self.session) as uow:
            with uow.step("create playlist"):
                self.session.add(playlist)
            with uow.step("add songs to playlist"):
                self._attach(playlist.id, songs)

        logger.info("playlist_created: playlist_id=%s user_id=%s songs=%s", playlist.id, identity.user_id, len(songs))
        return self.get(identity, playlist.id)

    def list_all(self, identity: Identity) -> List[Playlist]:
        return self._list_owned(identity, options=_WITH_SONGS)

    def get(self, identity: Identity, playlist_id: int) -> Playlist:
        return self._get_owned(identity, playlist_id, options=_WITH_SONGS)

    def update(
        self,
        identity: Identity,
        playlist_id: int,
        *,
        name: Optional[str] = None,
        song_ids: Optional[Sequence[int]] = None,
    ) -> Playlist:
        """
        Rename the playlist and/or replace its song set.

        A non-empty `song_ids` replaces the whole set (never a union); when it is
        None or empty the existing songs are left untouched.
        """
        playlist = self._get_owned(identity, playlist_id)

        with unit_of_work(self.session) as uow:
            if name is not None:
                with uow.step("update playlist"):
                    playlist.name = name
            if song_ids:
                songs = self._resolve_songs(song_ids, owner_id=identity.user_id)
                with uow.step("clear existing songs"):
                    self._clear(playlist.id)
                with uow.step("add songs to playlist"):
                    self._attach(playlist.id, songs)

        return self.get(identity, playlist_id)

    def delete(self, identity: Identity, playlist_id: int) -> None:
        playlist = self._get_owned(identity, playlist_id)

        with unit_of_work(self.session) as uow:
            with uow.step("clear song associations"):
                self._clear(playlist.id)
            with uow.step("delete playlist"):
                playlist.mark_deleted()

        logger.info("playlist_deleted: playlist_id=%s user_id=%s", playlist_id, identity.user_id)

    def search(
        self,
        identity: Identity,
        *,
        q: Optional[str] = None,
        name: Optional[str] = None,
        limit: Any = None,
        offset: Any = None,
    ) -> Tuple[List[Playlist], PageInfo]:
        """Case-insensitive substring match on the name; `q` wins over `name`."""
        stmt = self.owned(identity)

        needle = q or name
        if needle:
            stmt = stmt.where(Playlist.name.icontains(needle, autoescape=True))

        return paginate(self.session, stmt, resolve_page(limit, offset), order_by=Playlist.id, options=_WITH_SONGS)

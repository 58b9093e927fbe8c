"""
Album access: owner-scoped CRUD, search, and the album -> songs cascade.

Mutations require the MANAGE_ALBUMS capability. Deleting an album soft-deletes
the owner's songs on it (and detaches them from every playlist) in the same
unit of work as the album itself.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import String, cast, delete, or_, select, update
from sqlalchemy.orm import selectinload

from music_library.db import unit_of_work
from music_library.models import Album, Song, playlist_songs, utcnow
from music_library.pagination import PageInfo, paginate, parse_int, resolve_page
from music_library.permissions import Capability, Identity, require_capability
from music_library.resources import OwnedResourceService

logger = logging.getLogger(__name__)

_WITH_SONGS = (selectinload(Album.songs),)


class AlbumService(OwnedResourceService[Album]):
    model = Album
    label = "Album"

    def create(self, identity: Identity, *, title: str, artist: str, year: int) -> Album:
        require_capability(identity, Capability.MANAGE_ALBUMS, "create albums")

        album = Album(title=title, artist=artist, year=year, user_id=identity.user_id)
        with unit_of_work(self.session) as uow:
            with uow.step("create album", unique_field="title"):
                self.session.add(album)

        logger.info("album_created: album_id=%s user_id=%s", album.id, identity.user_id)
        return self.get(identity, album.id)

    def list_all(self, identity: Identity) -> List[Album]:
        return self._list_owned(identity, options=_WITH_SONGS)

    def get(self, identity: Identity, album_id: int) -> Album:
        return self._get_owned(identity, album_id, options=_WITH_SONGS)

    def update(self, identity: Identity, album_id: int, changes: Dict[str, Any]) -> Album:
        """Apply a partial update of title, artist and/or year."""
        require_capability(identity, Capability.MANAGE_ALBUMS, "update albums")

        album = self._get_owned(identity, album_id)
        with unit_of_work(self.session) as uow:
            with uow.step("update album", unique_field="title"):
                for key in ("title", "artist", "year"):
                    if changes.get(key) is not None:
                        setattr(album, key, changes[key])

        return self.get(identity, album_id)

    def delete(self, identity: Identity, album_id: int) -> int:
        """
        Soft-delete an album and the caller's songs on it.

        Returns the number of songs removed with it. Songs on the album owned by
        anyone else are left alone.
        """
        require_capability(identity, Capability.MANAGE_ALBUMS, "delete albums")

        album = self._get_owned(identity, album_id)
        now = utcnow()

        with unit_of_work(self.session) as uow:
            with uow.step("delete songs"):
                song_ids = list(
                    self.session.execute(
                        select(Song.id).where(
                            Song.album_id == album.id,
                            Song.user_id == identity.user_id,
                            Song.deleted_at.is_(None),
                        )
                    ).scalars()
                )
                if song_ids:
                    self.session.execute(delete(playlist_songs).where(playlist_songs.c.song_id.in_(song_ids)))
                    self.session.execute(
                        update(Song)
                        .where(Song.id.in_(song_ids))
                        .values(deleted_at=now)
                        .execution_options(synchronize_session=False)
                    )
            with uow.step("delete album"):
                album.mark_deleted(now)

        logger.info("album_deleted: album_id=%s user_id=%s songs=%s", album_id, identity.user_id, len(song_ids))
        return len(song_ids)

    def search(
        self,
        identity: Identity,
        *,
        q: Optional[str] = None,
        title: Optional[str] = None,
        artist: Optional[str] = None,
        year: Optional[str] = None,
        limit: Any = None,
        offset: Any = None,
    ) -> Tuple[List[Album], PageInfo]:
        """
        Search the caller's albums.

        A non-empty `q` matches title, artist or the year's digits and overrides
        every field filter. Otherwise title/artist (substring) and year (exact) are ANDed.
        """
        stmt = self.owned(identity)

        if q:
            stmt = stmt.where(
                or_(
                    Album.title.icontains(q, autoescape=True),
                    Album.artist.icontains(q, autoescape=True),
                    cast(Album.year, String).contains(q, autoescape=True),
                )
            )
        else:
            if title:
                stmt = stmt.where(Album.title.icontains(title, autoescape=True))
            if artist:
                stmt = stmt.where(Album.artist.icontains(artist, autoescape=True))
            exact_year = parse_int(year)
            if exact_year is not None:
                stmt = stmt.where(Album.year == exact_year)

        return paginate(self.session, stmt, resolve_page(limit, offset), order_by=Album.id, options=_WITH_SONGS)

"""
Song endpoints (authenticated, owner-scoped):
- GET /songs, POST /songs
- GET /songs/search
- GET|PUT|DELETE /songs/{song_id}
"""

from __future__ import annotations

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.orm import Session

from music_library.auth import current_identity, require_identity
from music_library.db import db_session_dep
from music_library.permissions import Identity
from music_library.schemas import (
    INT32_MAX,
    INT32_MIN,
    ItemPage,
    MessageResponse,
    SongCreateRequest,
    SongUpdateRequest,
    SongWithAlbumResponse,
)
from music_library.songs import SongService

router = APIRouter(prefix="/songs", tags=["Songs"], dependencies=[Depends(require_identity)])

SongIdPath = Annotated[int, Path(ge=INT32_MIN, le=INT32_MAX, description="Song id.")]


def song_service(db: Session = Depends(db_session_dep)) -> SongService:
    return SongService(db)


@router.get(
    "",
    response_model=ItemPage[SongWithAlbumResponse],
    summary="List songs",
    operation_id="list_songs",
)
def list_songs(
    identity: Identity = Depends(current_identity),
    service: SongService = Depends(song_service),
) -> ItemPage[SongWithAlbumResponse]:
    songs = service.list_all(identity)
    return ItemPage[SongWithAlbumResponse].unpaged([SongWithAlbumResponse.model_validate(s) for s in songs])


@router.post(
    "",
    response_model=SongWithAlbumResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a song",
    description=(
        "Creates a song owned by the caller. An `album_id` must name an existing album "
        "(400 otherwise) that the caller owns (403 otherwise)."
    ),
    operation_id="create_song",
)
def create_song(
    req: SongCreateRequest,
    identity: Identity = Depends(current_identity),
    service: SongService = Depends(song_service),
) -> SongWithAlbumResponse:
    song = service.create(identity, title=req.title, duration=req.duration, album_id=req.album_id)
    return SongWithAlbumResponse.model_validate(song)


@router.get(
    "/search",
    response_model=ItemPage[SongWithAlbumResponse],
    summary="Search songs",
    description=(
        "`q` matches title or duration and, when given, ignores the field filters. "
        "Otherwise title (substring), album_id and the duration range are combined."
    ),
    operation_id="search_songs",
)
def search_songs(
    q: Optional[str] = Query(None, description="Search title and duration."),
    title: Optional[str] = Query(None, description="Title substring."),
    album_id: Optional[str] = Query(None, description="Exact album id."),
    min_duration: Optional[str] = Query(None, description="Minimum duration (ms)."),
    max_duration: Optional[str] = Query(None, description="Maximum duration (ms)."),
    limit: Optional[str] = Query(None, description="Page size (default 20, max 100)."),
    offset: Optional[str] = Query(None, description="Offset (default 0)."),
    identity: Identity = Depends(current_identity),
    service: SongService = Depends(song_service),
) -> ItemPage[SongWithAlbumResponse]:
    songs, info = service.search(
        identity,
        q=q,
        title=title,
        album_id=album_id,
        min_duration=min_duration,
        max_duration=max_duration,
        limit=limit,
        offset=offset,
    )
    return ItemPage[SongWithAlbumResponse].build([SongWithAlbumResponse.model_validate(s) for s in songs], info)


@router.get(
    "/{song_id}",
    response_model=SongWithAlbumResponse,
    summary="Get a song",
    operation_id="get_song",
)
def get_song(
    song_id: SongIdPath,
    identity: Identity = Depends(current_identity),
    service: SongService = Depends(song_service),
) -> SongWithAlbumResponse:
    return SongWithAlbumResponse.model_validate(service.get(identity, song_id))


@router.put(
    "/{song_id}",
    response_model=SongWithAlbumResponse,
    summary="Update a song",
    description="Partial update of title, duration and album_id; album ownership is re-checked when album_id is sent.",
    operation_id="update_song",
)
def update_song(
    song_id: SongIdPath,
    req: SongUpdateRequest,
    identity: Identity = Depends(current_identity),
    service: SongService = Depends(song_service),
) -> SongWithAlbumResponse:
    song = service.update(identity, song_id, req.model_dump(exclude_unset=True))
    return SongWithAlbumResponse.model_validate(song)


@router.delete(
    "/{song_id}",
    response_model=MessageResponse,
    summary="Delete a song",
    description="Removes the song from every playlist, then deletes it, in one transaction.",
    operation_id="delete_song",
)
def delete_song(
    song_id: SongIdPath,
    identity: Identity = Depends(current_identity),
    service: SongService = Depends(song_service),
) -> MessageResponse:
    service.delete(identity, song_id)
    return MessageResponse(message="Song deleted successfully.")

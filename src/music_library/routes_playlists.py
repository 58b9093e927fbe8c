"""
Playlist endpoints (authenticated, owner-scoped):
- GET /playlists, POST /playlists
- GET /playlists/search
- GET|PUT|DELETE /playlists/{playlist_id}
"""

from __future__ import annotations

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.orm import Session

from music_library.auth import current_identity, require_identity
from music_library.db import db_session_dep
from music_library.permissions import Identity
from music_library.playlists import PlaylistService
from music_library.schemas import (
    INT32_MAX,
    INT32_MIN,
    ItemPage,
    MessageResponse,
    PlaylistCreateRequest,
    PlaylistResponse,
    PlaylistUpdateRequest,
)

router = APIRouter(prefix="/playlists", tags=["Playlists"], dependencies=[Depends(require_identity)])

PlaylistIdPath = Annotated[int, Path(ge=INT32_MIN, le=INT32_MAX, description="Playlist id.")]


def playlist_service(db: Session = Depends(db_session_dep)) -> PlaylistService:
    return PlaylistService(db)


@router.get(
    "",
    response_model=ItemPage[PlaylistResponse],
    summary="List playlists",
    operation_id="list_playlists",
)
def list_playlists(
    identity: Identity = Depends(current_identity),
    service: PlaylistService = Depends(playlist_service),
) -> ItemPage[PlaylistResponse]:
    playlists = service.list_all(identity)
    return ItemPage[PlaylistResponse].unpaged([PlaylistResponse.model_validate(p) for p in playlists])


@router.post(
    "",
    response_model=PlaylistResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a playlist",
    description="Creates a playlist owned by the caller with the given songs.",
    operation_id="create_playlist",
)
def create_playlist(
    req: PlaylistCreateRequest,
    identity: Identity = Depends(current_identity),
    service: PlaylistService = Depends(playlist_service),
) -> PlaylistResponse:
    playlist = service.create(identity, name=req.name, song_ids=req.song_ids)
    return PlaylistResponse.model_validate(playlist)


@router.get(
    "/search",
    response_model=ItemPage[PlaylistResponse],
    summary="Search playlists",
    operation_id="search_playlists",
)
def search_playlists(
    q: Optional[str] = Query(None, description="Name substring; takes precedence over `name`."),
    name: Optional[str] = Query(None, description="Name substring."),
    limit: Optional[str] = Query(None, description="Page size (default 20, max 100)."),
    offset: Optional[str] = Query(None, description="Offset (default 0)."),
    identity: Identity = Depends(current_identity),
    service: PlaylistService = Depends(playlist_service),
) -> ItemPage[PlaylistResponse]:
    playlists, info = service.search(identity, q=q, name=name, limit=limit, offset=offset)
    return ItemPage[PlaylistResponse].build([PlaylistResponse.model_validate(p) for p in playlists], info)


@router.get(
    "/{playlist_id}",
    response_model=PlaylistResponse,
    summary="Get a playlist",
    operation_id="get_playlist",
)
def get_playlist(
    playlist_id: PlaylistIdPath,
    identity: Identity = Depends(current_identity),
    service: PlaylistService = Depends(playlist_service),
) -> PlaylistResponse:
    return PlaylistResponse.model_validate(service.get(identity, playlist_id))


@router.put(
    "/{playlist_id}",
    response_model=PlaylistResponse,
    summary="Update a playlist",
    description="Renames the playlist and, when `song_ids` is non-empty, replaces its songs with the caller's songs given.",
    operation_id="update_playlist",
)
def update_playlist(
    playlist_id: PlaylistIdPath,
    req: PlaylistUpdateRequest,
    identity: Identity = Depends(current_identity),
    service: PlaylistService = Depends(playlist_service),
) -> PlaylistResponse:
    playlist = service.update(identity, playlist_id, name=req.name, song_ids=req.song_ids)
    return PlaylistResponse.model_validate(playlist)


@router.delete(
    "/{playlist_id}",
    response_model=MessageResponse,
    summary="Delete a playlist",
    description="Deletes the playlist; its songs are not affected.",
    operation_id="delete_playlist",
)
def delete_playlist(
    playlist_id: PlaylistIdPath,
    identity: Identity = Depends(current_identity),
    service: PlaylistService = Depends(playlist_service),
) -> MessageResponse:
    service.delete(identity, playlist_id)
    return MessageResponse(message="Playlist deleted successfully (songs remain unaffected).")

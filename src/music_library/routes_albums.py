"""
Album endpoints (authenticated, owner-scoped):
- GET /albums, POST /albums
- GET /albums/search
- GET|PUT|DELETE /albums/{album_id}

Create, update and delete are limited to artist accounts.
"""

from __future__ import annotations

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.orm import Session

from music_library.albums import AlbumService
from music_library.auth import current_identity, require_identity
from music_library.db import db_session_dep
from music_library.permissions import Identity
from music_library.schemas import (
    INT32_MAX,
    INT32_MIN,
    AlbumCreateRequest,
    AlbumResponse,
    AlbumUpdateRequest,
    ItemPage,
    MessageResponse,
)

router = APIRouter(prefix="/albums", tags=["Albums"], dependencies=[Depends(require_identity)])

AlbumIdPath = Annotated[int, Path(ge=INT32_MIN, le=INT32_MAX, description="Album id.")]


def album_service(db: Session = Depends(db_session_dep)) -> AlbumService:
    return AlbumService(db)


@router.get(
    "",
    response_model=ItemPage[AlbumResponse],
    summary="List albums",
    description="All of the caller's albums, each with the caller's songs on it.",
    operation_id="list_albums",
)
def list_albums(
    identity: Identity = Depends(current_identity),
    service: AlbumService = Depends(album_service),
) -> ItemPage[AlbumResponse]:
    albums = service.list_all(identity)
    return ItemPage[AlbumResponse].unpaged([AlbumResponse.model_validate(a) for a in albums])


@router.post(
    "",
    response_model=AlbumResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an album",
    description="Artists only. The album is owned by the caller; titles are unique across all users.",
    operation_id="create_album",
)
def create_album(
    req: AlbumCreateRequest,
    identity: Identity = Depends(current_identity),
    service: AlbumService = Depends(album_service),
) -> AlbumResponse:
    album = service.create(identity, title=req.title, artist=req.artist, year=req.year)
    return AlbumResponse.model_validate(album)


@router.get(
    "/search",
    response_model=ItemPage[AlbumResponse],
    summary="Search albums",
    description=(
        "`q` matches title, artist or year and, when given, ignores the field filters. "
        "Otherwise title/artist (substring) and year (exact) are combined."
    ),
    operation_id="search_albums",
)
def search_albums(
    q: Optional[str] = Query(None, description="Search title, artist and year."),
    title: Optional[str] = Query(None, description="Title substring."),
    artist: Optional[str] = Query(None, description="Artist substring."),
    year: Optional[str] = Query(None, description="Exact year."),
    limit: Optional[str] = Query(None, description="Page size (default 20, max 100)."),
    offset: Optional[str] = Query(None, description="Offset (default 0)."),
    identity: Identity = Depends(current_identity),
    service: AlbumService = Depends(album_service),
) -> ItemPage[AlbumResponse]:
    albums, info = service.search(
        identity, q=q, title=title, artist=artist, year=year, limit=limit, offset=offset
    )
    return ItemPage[AlbumResponse].build([AlbumResponse.model_validate(a) for a in albums], info)


@router.get(
    "/{album_id}",
    response_model=AlbumResponse,
    summary="Get an album",
    operation_id="get_album",
)
def get_album(
    album_id: AlbumIdPath,
    identity: Identity = Depends(current_identity),
    service: AlbumService = Depends(album_service),
) -> AlbumResponse:
    return AlbumResponse.model_validate(service.get(identity, album_id))


@router.put(
    "/{album_id}",
    response_model=AlbumResponse,
    summary="Update an album",
    description="Artists only. Partial update of title, artist and year.",
    operation_id="update_album",
)
def update_album(
    album_id: AlbumIdPath,
    req: AlbumUpdateRequest,
    identity: Identity = Depends(current_identity),
    service: AlbumService = Depends(album_service),
) -> AlbumResponse:
    album = service.update(identity, album_id, req.model_dump(exclude_unset=True))
    return AlbumResponse.model_validate(album)


@router.delete(
    "/{album_id}",
    response_model=MessageResponse,
    summary="Delete an album",
    description="Artists only. Deletes the album and all of the caller's songs on it in one transaction.",
    operation_id="delete_album",
)
def delete_album(
    album_id: AlbumIdPath,
    identity: Identity = Depends(current_identity),
    service: AlbumService = Depends(album_service),
) -> MessageResponse:
    removed = service.delete(identity, album_id)
    return MessageResponse(message=f"Album and its {removed} song(s) deleted successfully.")

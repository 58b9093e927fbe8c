"""
Pydantic models (request/response shapes) for API endpoints.

Request bodies never carry ownership: any `user_id` a client sends is ignored
and the owner is always the authenticated caller.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from music_library.pagination import PageInfo

ItemT = TypeVar("ItemT")

# Range of the integer columns (ids, year, duration).
INT32_MIN = -2_147_483_648
INT32_MAX = 2_147_483_647

SongId = Annotated[int, Field(ge=INT32_MIN, le=INT32_MAX)]


class AuthRegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, description="Display name.")
    email: EmailStr = Field(..., description="User email address (unique).")
    password: str = Field(..., min_length=6, description="User password (min 6 chars).")
    role: str = Field("listener", description='Account role; "artist" may manage albums.')


class AuthLoginRequest(BaseModel):
    email: EmailStr = Field(..., description="User email address.")
    password: str = Field(..., description="User password.")


class AuthTokenResponse(BaseModel):
    token: str = Field(..., description="JWT access token.")
    token_type: str = Field("bearer", description="Token type for Authorization header.")


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="User id.")
    name: str = Field(..., description="Display name.")
    email: str = Field(..., description="Email address.")
    role: str = Field(..., description="Account role.")
    created_at: datetime = Field(..., description="Creation timestamp.")


class AlbumCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, description="Album title (unique across all users).")
    artist: str = Field("", description="Artist name (free text).")
    year: int = Field(0, ge=0, le=INT32_MAX, description="Release year.")


class AlbumUpdateRequest(BaseModel):
    title: Optional[str] = Field(None, min_length=1, description="New title.")
    artist: Optional[str] = Field(None, description="New artist.")
    year: Optional[int] = Field(None, ge=0, le=INT32_MAX, description="New release year.")


class SongCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, description="Song title.")
    duration: int = Field(0, ge=0, le=INT32_MAX, description="Duration in milliseconds.")
    album_id: Optional[int] = Field(
        None, ge=INT32_MIN, le=INT32_MAX, description="Album to file the song under; must be yours."
    )


class SongUpdateRequest(BaseModel):
    title: Optional[str] = Field(None, min_length=1, description="New title.")
    duration: Optional[int] = Field(None, ge=0, le=INT32_MAX, description="New duration in milliseconds.")
    album_id: Optional[int] = Field(None, ge=INT32_MIN, le=INT32_MAX, description="New album id; send null to detach.")


class PlaylistCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, description="Playlist name.")
    song_ids: List[SongId] = Field(default_factory=list, description="Songs to add.")


class PlaylistUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, description="New name.")
    song_ids: Optional[List[SongId]] = Field(None, description="Replacement song set; omit to keep the current songs.")


class SongResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="Song id.")
    title: str = Field(..., description="Song title.")
    duration: int = Field(..., description="Duration in milliseconds.")
    album_id: Optional[int] = Field(None, description="Album id, if any.")
    user_id: int = Field(..., description="Owner id.")
    created_at: datetime = Field(..., description="Creation timestamp.")
    updated_at: datetime = Field(..., description="Last update timestamp.")


class AlbumSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    artist: str
    year: int


class SongWithAlbumResponse(SongResponse):
    album: Optional[AlbumSummary] = Field(None, description="Album the song is filed under.")


class AlbumResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="Album id.")
    title: str = Field(..., description="Album title.")
    artist: str = Field(..., description="Artist name.")
    year: int = Field(..., description="Release year.")
    user_id: int = Field(..., description="Owner id.")
    created_at: datetime = Field(..., description="Creation timestamp.")
    updated_at: datetime = Field(..., description="Last update timestamp.")
    songs: List[SongResponse] = Field(default_factory=list, description="The owner's songs on this album.")


class PlaylistResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="Playlist id.")
    name: str = Field(..., description="Playlist name.")
    user_id: int = Field(..., description="Owner id.")
    created_at: datetime = Field(..., description="Creation timestamp.")
    updated_at: datetime = Field(..., description="Last update timestamp.")
    songs: List[SongResponse] = Field(default_factory=list, description="Member songs.")


class PaginationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total: int = Field(..., description="Number of matches.")
    limit: int = Field(..., description="Effective page size.")
    offset: int = Field(..., description="Effective offset.")
    has_more: bool = Field(..., description="True when offset + limit < total.")


class ItemPage(BaseModel, Generic[ItemT]):
    items: List[ItemT]
    pagination: PaginationResponse

    @classmethod
    def build(cls, items: List[object], info: PageInfo) -> "ItemPage[ItemT]":
        return cls(
            items=items,
            pagination=PaginationResponse(
                total=info.total, limit=info.limit, offset=info.offset, has_more=info.has_more
            ),
        )

    @classmethod
    def unpaged(cls, items: List[object]) -> "ItemPage[ItemT]":
        """Envelope for list-all responses: one page holding every item."""
        return cls.build(items, PageInfo(total=len(items), limit=len(items), offset=0))


class MessageResponse(BaseModel):
    message: str = Field(..., description="Human readable outcome.")

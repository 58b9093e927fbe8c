"""
Shared owner-scoped access pattern for albums, songs and playlists.

Every read, update and delete starts from `owned()`: live rows whose owner is the
caller. A miss is a NotFoundError whether the row is absent or belongs to someone
else, so callers cannot probe for other users' resources.
"""

from __future__ import annotations

from typing import Any, Generic, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import Select
from sqlalchemy.orm import Session

from music_library.errors import NotFoundError
from music_library.models import SoftDeleteMixin
from music_library.permissions import Identity

ModelT = TypeVar("ModelT", bound=SoftDeleteMixin)


def unique_ids(ids: Sequence[int]) -> List[int]:
    """De-duplicate ids, keeping first-seen order."""
    seen = set()
    ordered = []
    for value in ids:
        if value not in seen:
            seen.add(value)
            ordered.append(value)
    return ordered


class OwnedResourceService(Generic[ModelT]):
    model: Type[ModelT]
    label: str = "Resource"

    def __init__(self, session: Session) -> None:
        self.session = session

    def owned(self, identity: Identity) -> Select:
        return self.model.live().where(self.model.user_id == identity.user_id)

    def _get_owned(self, identity: Identity, resource_id: int, *, options: Sequence[Any] = ()) -> ModelT:
        obj: Optional[ModelT] = self.session.execute(
            self.owned(identity).where(self.model.id == resource_id).options(*options)
        ).scalar_one_or_none()
        if obj is None:
            raise NotFoundError(f"{self.label} not found.")
        return obj

    def _list_owned(self, identity: Identity, *, options: Sequence[Any] = ()) -> List[ModelT]:
        stmt = self.owned(identity).options(*options).order_by(self.model.id)
        return list(self.session.execute(stmt).scalars().all())

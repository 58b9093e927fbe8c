"""
Bounded pagination for search endpoints.

`resolve_page` never fails: anything missing, unparsable or out of range falls
back to a usable (limit, offset) pair.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

DEFAULT_LIMIT = 20
MAX_LIMIT = 100

# Signed 64-bit range accepted by the storage drivers for bound parameters.
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1
MAX_OFFSET = INT64_MAX - MAX_LIMIT


@dataclass(frozen=True)
class PageRequest:
    limit: int = DEFAULT_LIMIT
    offset: int = 0


@dataclass(frozen=True)
class PageInfo:
    total: int
    limit: int
    offset: int

    @property
    def has_more(self) -> bool:
        return self.offset + self.limit < self.total


def parse_int(raw: Any) -> Optional[int]:
    """Parse an int from a query value; None when absent, unparsable or outside 64 bits."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        value = raw
    else:
        try:
            value = int(str(raw).strip())
        except ValueError:
            return None
    if not INT64_MIN <= value <= INT64_MAX:
        return None
    return value


# PUBLIC_INTERFACE
def resolve_page(raw_limit: Any = None, raw_offset: Any = None) -> PageRequest:
    """
    Turn raw limit/offset values into an effective page.

    - limit: defaults to 20; non-positive or unparsable -> 20; above 100 -> 100
    - offset: defaults to 0; negative or unparsable -> 0; above `MAX_OFFSET` -> `MAX_OFFSET`
    """
    limit = parse_int(raw_limit)
    if limit is None or limit <= 0:
        limit = DEFAULT_LIMIT
    limit = min(limit, MAX_LIMIT)

    offset = parse_int(raw_offset)
    if offset is None or offset < 0:
        offset = 0
    offset = min(offset, MAX_OFFSET)

    return PageRequest(limit=limit, offset=offset)


# PUBLIC_INTERFACE
def paginate(
    session: Session,
    stmt: Select,
    page: PageRequest,
    *,
    order_by: Any,
    options: Sequence[Any] = (),
) -> Tuple[List[Any], PageInfo]:
    """Run `stmt` for one page and count the full match set."""
    total = session.execute(select(func.count()).select_from(stmt.order_by(None).subquery())).scalar_one()
    items = (
        session.execute(stmt.options(*options).order_by(order_by).limit(page.limit).offset(page.offset))
        .scalars()
        .all()
    )
    return list(items), PageInfo(total=int(total), limit=page.limit, offset=page.offset)

"""Opaque cursor pagination for repository list queries."""

from __future__ import annotations

import base64
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel
from sqlalchemy.orm import Query

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200


class CursorPage(BaseModel, Generic[T]):
    items: List[T]
    next_cursor: Optional[str] = None
    has_more: bool = False


def encode_cursor(offset: int) -> str:
    return base64.urlsafe_b64encode(str(offset).encode()).decode()


def decode_cursor(cursor: Optional[str]) -> int:
    """Return the offset encoded in ``cursor``; malformed cursors restart at 0."""
    if not cursor:
        return 0
    try:
        offset = int(base64.urlsafe_b64decode(cursor.encode()).decode())
    except (ValueError, UnicodeDecodeError):
        return 0
    return max(offset, 0)


def paginate_query(
    query: Query, cursor: Optional[str] = None, limit: int = DEFAULT_PAGE_SIZE
) -> CursorPage:
    limit = max(1, min(limit, MAX_PAGE_SIZE))
    offset = decode_cursor(cursor)
    rows = query.offset(offset).limit(limit + 1).all()
    has_more = len(rows) > limit
    items = rows[:limit]
    return CursorPage(
        items=items,
        next_cursor=encode_cursor(offset + limit) if has_more else None,
        has_more=has_more,
    )

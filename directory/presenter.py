"""Listing presenter -- picks exactly one view for a FetchState."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .errors import StoreErrorKind
from .loader import FetchState, FetchStatus

DEFAULT_EMPTY_MESSAGE = "No results found"


class ViewKind(str, Enum):
    LOADING = "loading"
    ERROR = "error"
    EMPTY = "empty"
    ROWS = "rows"


@dataclass(frozen=True)
class ListingView:
    kind: ViewKind
    items: tuple[dict, ...] = ()
    message: Optional[str] = None
    error_kind: Optional[StoreErrorKind] = None
    count: int = 0
    offset: int = 0
    limit: int = 0

    @property
    def page(self) -> int:
        return self.offset // self.limit + 1 if self.limit else 1

    @property
    def total_pages(self) -> int:
        return math.ceil(self.count / self.limit) if self.limit else 0

    @property
    def has_next(self) -> bool:
        return self.offset + len(self.items) < self.count

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "items": list(self.items),
            "message": self.message,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "count": self.count,
            "offset": self.offset,
            "limit": self.limit,
            "page": self.page,
            "total_pages": self.total_pages,
            "has_next": self.has_next,
        }


def present(state: FetchState, empty_message: str = DEFAULT_EMPTY_MESSAGE) -> ListingView:
    offset = state.filter.offset if state.filter else 0
    limit = state.filter.limit if state.filter else 0

    if state.status == FetchStatus.FAILED and state.error is not None:
        return ListingView(
            ViewKind.ERROR,
            message=state.error.message,
            error_kind=state.error.kind,
            offset=offset,
            limit=limit,
        )
    if state.status != FetchStatus.READY:
        return ListingView(ViewKind.LOADING, offset=offset, limit=limit)
    if not state.rows:
        return ListingView(ViewKind.EMPTY, message=empty_message, count=state.count, offset=offset, limit=limit)
    return ListingView(
        ViewKind.ROWS,
        items=tuple(row.to_dict() for row in state.rows),
        count=state.count,
        offset=offset,
        limit=limit,
    )

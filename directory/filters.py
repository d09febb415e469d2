"""
Filter state for a listing view.

``ListingFilter`` is an immutable snapshot of the user's selections;
``FilterState`` owns the current snapshot, bumps a generation counter on every
mutation and synchronously notifies subscribers so they can refetch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable, Optional

from config_env import DEFAULT_PAGE_SIZE, DirectorySettings, get_settings

logger = logging.getLogger(__name__)

ALL = "all"

SORT_NEWEST = "newest"
SORT_OLDEST = "oldest"
SORT_NAME = "name"
SORT_NAME_DESC = "name_desc"
SORT_OPTIONS = (SORT_NEWEST, SORT_OLDEST, SORT_NAME, SORT_NAME_DESC)


def normalize_identifier(value) -> Optional[str]:
    """None, "" and "all" mean no predicate; anything else becomes a str id."""
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    if not text or text.lower() == ALL:
        return None
    return text


def normalize_text(value) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class ListingFilter:
    category_id: Optional[str] = None
    market_id: Optional[str] = None
    search_text: Optional[str] = None
    status: Optional[str] = None
    sort: str = SORT_NEWEST
    offset: int = 0
    limit: int = DEFAULT_PAGE_SIZE

    def __post_init__(self):
        if self.offset < 0:
            raise ValueError("offset must be non-negative")
        if self.limit <= 0:
            raise ValueError("limit must be positive")
        if self.sort not in SORT_OPTIONS:
            raise ValueError(f"unknown sort {self.sort!r}")

    @classmethod
    def create(
        cls,
        category_id=None,
        market_id=None,
        search_text=None,
        status=None,
        sort: Optional[str] = None,
        offset: int = 0,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> "ListingFilter":
        """Build a filter from loose inputs (query params, UI selects)."""
        return cls(
            category_id=normalize_identifier(category_id),
            market_id=normalize_identifier(market_id),
            search_text=normalize_text(search_text),
            status=normalize_identifier(status),
            sort=sort if sort in SORT_OPTIONS else SORT_NEWEST,
            offset=max(0, int(offset)),
            limit=int(limit),
        )

    @property
    def page(self) -> int:
        return self.offset // self.limit + 1

    @property
    def range(self) -> tuple[int, int]:
        return self.offset, self.offset + self.limit - 1


@dataclass(frozen=True)
class FilterSnapshot:
    generation: int
    filter: ListingFilter


Listener = Callable[[FilterSnapshot], None]


class FilterState:
    """Current ListingFilter plus setters for each filterable dimension."""

    def __init__(self, initial: Optional[ListingFilter] = None, settings: Optional[DirectorySettings] = None):
        self._settings = settings or get_settings()
        self._initial = initial or ListingFilter(limit=self._settings.default_page_size)
        self._current = self._initial
        self._generation = 0
        self._listeners: list[Listener] = []

    @property
    def current(self) -> ListingFilter:
        return self._current

    @property
    def generation(self) -> int:
        return self._generation

    def snapshot(self) -> FilterSnapshot:
        return FilterSnapshot(self._generation, self._current)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def _apply(self, new: ListingFilter, force: bool = False) -> bool:
        if new == self._current and not force:
            return False
        self._current = new
        self._generation += 1
        logger.debug("Filter generation %d: %s", self._generation, new)
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)
        return True

    def _set_dimension(self, **changes) -> bool:
        # any dimension change returns to the first page
        return self._apply(replace(self._current, offset=0, **changes))

    def set_category(self, category_id) -> bool:
        return self._set_dimension(category_id=normalize_identifier(category_id))

    def set_market(self, market_id) -> bool:
        return self._set_dimension(market_id=normalize_identifier(market_id))

    def set_search(self, text) -> bool:
        return self._set_dimension(search_text=normalize_text(text))

    def set_status(self, status) -> bool:
        return self._set_dimension(status=normalize_identifier(status))

    def set_sort(self, sort: str) -> bool:
        if sort not in SORT_OPTIONS:
            raise ValueError(f"unknown sort {sort!r}")
        return self._set_dimension(sort=sort)

    def set_limit(self, limit: int) -> bool:
        if limit <= 0:
            raise ValueError("limit must be positive")
        return self._set_dimension(limit=min(limit, self._settings.max_page_size))

    def set_offset(self, offset: int) -> bool:
        return self._apply(replace(self._current, offset=max(0, offset)))

    def set_page(self, page: int) -> bool:
        return self.set_offset((max(1, page) - 1) * self._current.limit)

    def next_page(self) -> bool:
        return self.set_offset(self._current.offset + self._current.limit)

    def previous_page(self) -> bool:
        return self.set_offset(self._current.offset - self._current.limit)

    def reset(self) -> bool:
        return self._apply(self._initial)

    def touch(self) -> bool:
        """Start a new cycle with the same filter (user-initiated retry)."""
        return self._apply(self._current, force=True)

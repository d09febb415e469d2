"""
Fetch lifecycle for one listing view.

Each filter mutation moves the view to Loading and starts a fetch cycle:
the primary listing read and every reference-table read run concurrently,
enrichment waits until all of them have settled. Every cycle takes a ticket
from a monotonically increasing generation counter; a result whose ticket is
no longer the latest is discarded (last request wins, nothing is cancelled).
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from config_env import DirectorySettings

from .enrichment import (
    BUSINESS_FOREIGN_KEYS,
    PRODUCT_FOREIGN_KEYS,
    ForeignKey,
    ListingRow,
    ReferenceTable,
    enrich_rows,
)
from .errors import DirectoryError, StoreErrorKind, classify_store_error, user_message
from .filters import FilterSnapshot, FilterState, ListingFilter
from .query_builder import (
    BUSINESSES,
    PRODUCTS,
    ListingSource,
    build_listing_request,
    build_reference_request,
)
from .records import Business, DirectoryRecord, Product, validate_rows
from .store import DirectoryStore

logger = logging.getLogger(__name__)


class FetchStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class FetchState:
    status: FetchStatus = FetchStatus.IDLE
    generation: int = 0
    filter: Optional[ListingFilter] = None
    rows: tuple[ListingRow, ...] = ()
    count: int = 0
    error: Optional[DirectoryError] = None


@dataclass(frozen=True)
class ListingDefinition:
    """What a listing view shows: the source table, its record type and joins."""

    source: ListingSource
    record_type: type[DirectoryRecord]
    foreign_keys: tuple[ForeignKey, ...]

    @property
    def reference_tables(self) -> tuple[str, ...]:
        return tuple(dict.fromkeys(fk.reference for fk in self.foreign_keys))


BUSINESS_LISTING = ListingDefinition(BUSINESSES, Business, BUSINESS_FOREIGN_KEYS)
PRODUCT_LISTING = ListingDefinition(PRODUCTS, Product, PRODUCT_FOREIGN_KEYS)


StateListener = Callable[[FetchState], None]


class ListingLoader:
    def __init__(
        self,
        store: DirectoryStore,
        definition: ListingDefinition,
        filter_state: Optional[FilterState] = None,
        tenant_id: Optional[str] = None,
        auto_fetch: bool = True,
        settings: Optional[DirectorySettings] = None,
    ):
        self._store = store
        self._definition = definition
        self._filter_state = filter_state or FilterState(settings=settings)
        self._tenant_id = tenant_id
        self._auto_fetch = auto_fetch
        self._state = FetchState()
        self._generation = 0
        self._tasks: set[asyncio.Task] = set()
        self._listeners: list[StateListener] = []
        self._unsubscribe = self._filter_state.subscribe(self._on_filter_change)

    @property
    def state(self) -> FetchState:
        return self._state

    @property
    def filter_state(self) -> FilterState:
        return self._filter_state

    @property
    def generation(self) -> int:
        return self._generation

    def subscribe(self, listener: StateListener):
        self._listeners.append(listener)

    def _set_state(self, state: FetchState):
        self._state = state
        for listener in list(self._listeners):
            listener(state)

    def _begin(self, listing_filter: ListingFilter) -> int:
        self._generation += 1
        self._set_state(FetchState(FetchStatus.LOADING, self._generation, listing_filter))
        return self._generation

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    def _on_filter_change(self, snapshot: FilterSnapshot):
        ticket = self._begin(snapshot.filter)
        if not self._auto_fetch:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; fetch for generation %d deferred", ticket)
            return
        task = loop.create_task(self._run(ticket, snapshot.filter))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def refresh(self) -> FetchState:
        """Run a fetch cycle for the current filter and return the resulting state."""
        listing_filter = self._filter_state.current
        ticket = self._begin(listing_filter)
        return await self._run(ticket, listing_filter)

    async def retry(self) -> FetchState:
        if self._auto_fetch:
            self._filter_state.touch()
            await self.wait_idle()
            return self._state
        return await self.refresh()

    async def wait_idle(self):
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self):
        self._unsubscribe()
        for task in list(self._tasks):
            task.cancel()
        await self.wait_idle()

    # ------------------------------------------------------------------
    # Fetch cycle
    # ------------------------------------------------------------------

    async def _run(self, ticket: int, listing_filter: ListingFilter) -> FetchState:
        request = build_listing_request(self._definition.source, listing_filter, self._tenant_id)
        references = [build_reference_request(t) for t in self._definition.reference_tables]

        results = await asyncio.gather(
            self._store.read(request),
            *(self._store.read_reference(r) for r in references),
            return_exceptions=True,
        )

        if ticket != self._generation:
            logger.debug(
                "Discarding stale %s response (generation %d, current %d)",
                request.table, ticket, self._generation,
            )
            return self._state

        tables = [request.table] + [r.table for r in references]
        for table, result in zip(tables, results):
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, BaseException):
                error = classify_store_error(result, table)
                state = FetchState(FetchStatus.FAILED, ticket, listing_filter, error=error)
                self._set_state(state)
                return state

        primary, *reference_rows = results
        try:
            records = validate_rows(self._definition.record_type, getattr(primary, "rows", None), request.table)
            lookup = {}
            for ref, rows in zip(references, reference_rows):
                if not isinstance(rows, (list, tuple)):
                    raise DirectoryError(
                        StoreErrorKind.MALFORMED,
                        user_message(StoreErrorKind.MALFORMED, ref.table),
                        ref.table,
                    )
                lookup[ref.table] = ReferenceTable.from_rows(ref.table, rows, ref.key_field, ref.label_field)
        except DirectoryError as e:
            state = FetchState(FetchStatus.FAILED, ticket, listing_filter, error=e)
            self._set_state(state)
            return state

        rows = enrich_rows(records, lookup, self._definition.foreign_keys)
        state = FetchState(
            FetchStatus.READY,
            ticket,
            listing_filter,
            rows=tuple(rows),
            count=getattr(primary, "count", len(rows)),
        )
        self._set_state(state)
        return state

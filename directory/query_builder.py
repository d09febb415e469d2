"""
Query builder -- ListingFilter -> parameterized read request.

Pure transformation: building a request never touches the store. Equal
filters always produce equal requests (and equal ``to_dict()`` payloads).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .filters import SORT_NAME, SORT_NAME_DESC, SORT_OLDEST, ListingFilter

ACTIVE_STATUS = "active"


@dataclass(frozen=True)
class OrderClause:
    field: str
    descending: bool = False

    def to_dict(self) -> dict:
        return {"field": self.field, "direction": "desc" if self.descending else "asc"}


@dataclass(frozen=True)
class SearchClause:
    text: str
    fields: tuple[str, ...]

    def to_dict(self) -> dict:
        return {"text": self.text, "fields": list(self.fields)}


@dataclass(frozen=True)
class ListingSource:
    """Static description of a primary listing table."""

    table: str
    search_fields: tuple[str, ...] = ("name",)
    tenant_field: str = "owner_id"
    # ListingFilter attribute -> column
    filter_columns: tuple[tuple[str, str], ...] = (
        ("category_id", "category_id"),
        ("market_id", "market_id"),
    )


BUSINESSES = ListingSource(table="businesses", search_fields=("name", "description"))
PRODUCTS = ListingSource(table="products", search_fields=("name",))

LISTING_SOURCES = {s.table: s for s in (BUSINESSES, PRODUCTS)}


@dataclass(frozen=True)
class ReadRequest:
    table: str
    order: OrderClause
    range: tuple[int, int]
    predicates: tuple[tuple[str, str], ...] = ()
    base_predicates: tuple[tuple[str, str], ...] = ()
    tenant_scope: Optional[tuple[str, str]] = None
    search: Optional[SearchClause] = None

    @property
    def offset(self) -> int:
        return self.range[0]

    @property
    def limit(self) -> int:
        return self.range[1] - self.range[0] + 1

    @property
    def predicate_map(self) -> dict[str, str]:
        return dict(self.predicates)

    def all_predicates(self) -> tuple[tuple[str, str], ...]:
        """Tenant scope, base and filter predicates combined."""
        combined = list(self.base_predicates) + list(self.predicates)
        if self.tenant_scope:
            combined.insert(0, self.tenant_scope)
        return tuple(combined)

    def to_dict(self) -> dict:
        return {
            "table": self.table,
            "tenant_scope": list(self.tenant_scope) if self.tenant_scope else None,
            "base_predicates": dict(self.base_predicates),
            "predicates": dict(self.predicates),
            "search": self.search.to_dict() if self.search else None,
            "order": self.order.to_dict(),
            "range": list(self.range),
        }


# ---------------------------------------------------------------------------
# Reference tables
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ReferenceSource:
    table: str
    key_field: str = "id"
    label_field: str = "name"
    active_field: Optional[str] = None
    search_fields: tuple[str, ...] = ()


REFERENCE_SOURCES = {
    "business_categories": ReferenceSource("business_categories", label_field="title"),
    "categories": ReferenceSource("categories", label_field="name"),
    "markets": ReferenceSource(
        "markets",
        label_field="name",
        active_field="is_active",
        search_fields=("name", "description", "location"),
    ),
    "users": ReferenceSource("users", label_field="full_name"),
}


@dataclass(frozen=True)
class ReferenceRequest:
    table: str
    key_field: str
    label_field: str
    order: OrderClause
    active_field: Optional[str] = None
    search: Optional[SearchClause] = None

    def to_dict(self) -> dict:
        return {
            "table": self.table,
            "key_field": self.key_field,
            "label_field": self.label_field,
            "order": self.order.to_dict(),
            "active_field": self.active_field,
            "search": self.search.to_dict() if self.search else None,
        }


def _order_for(sort: str) -> OrderClause:
    if sort == SORT_NAME:
        return OrderClause("name")
    if sort == SORT_NAME_DESC:
        return OrderClause("name", descending=True)
    if sort == SORT_OLDEST:
        return OrderClause("created_at")
    return OrderClause("created_at", descending=True)


def build_listing_request(
    source: ListingSource,
    listing_filter: ListingFilter,
    tenant_id: Optional[str] = None,
) -> ReadRequest:
    """
    Translate a filter into a read request for ``source``.

    Public listings only show active rows. A tenant-scoped request (an owner
    looking at their own rows) drops that base predicate, and an explicit
    status filter replaces it.
    """
    predicates = []
    for attr, column in source.filter_columns:
        value = getattr(listing_filter, attr)
        if value is not None:
            predicates.append((column, value))
    if listing_filter.status is not None:
        predicates.append(("status", listing_filter.status))

    base_predicates: tuple[tuple[str, str], ...] = ()
    if tenant_id is None and listing_filter.status is None:
        base_predicates = (("status", ACTIVE_STATUS),)

    search = None
    if listing_filter.search_text:
        search = SearchClause(listing_filter.search_text, source.search_fields)

    return ReadRequest(
        table=source.table,
        order=_order_for(listing_filter.sort),
        range=listing_filter.range,
        predicates=tuple(sorted(predicates)),
        base_predicates=base_predicates,
        tenant_scope=(source.tenant_field, str(tenant_id)) if tenant_id is not None else None,
        search=search,
    )


def build_reference_request(
    table: str,
    active_only: bool = False,
    search_text: Optional[str] = None,
) -> ReferenceRequest:
    """Reference data is always ordered alphabetically by its label."""
    try:
        source = REFERENCE_SOURCES[table]
    except KeyError:
        raise ValueError(f"unknown reference table {table!r}")

    search = None
    if search_text:
        search = SearchClause(search_text, source.search_fields or (source.label_field,))

    return ReferenceRequest(
        table=source.table,
        key_field=source.key_field,
        label_field=source.label_field,
        order=OrderClause(source.label_field),
        active_field=source.active_field if active_only else None,
        search=search,
    )

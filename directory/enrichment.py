"""
Join/enrichment resolver.

Attaches display names (category title, market name) to listing rows by key
lookup in side-loaded reference tables. Enrichment is total: every row gets a
value for every declared foreign key, falling back to a fixed label when the
key is missing.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)

UNCATEGORIZED = "Uncategorized"
NO_MARKET = "No Market"
UNKNOWN_OWNER = "Unknown Owner"


@dataclass(frozen=True)
class ForeignKey:
    field: str
    reference: str
    target: str
    fallback: str


BUSINESS_FOREIGN_KEYS = (
    ForeignKey("category_id", "business_categories", "category_name", UNCATEGORIZED),
    ForeignKey("market_id", "markets", "market_name", NO_MARKET),
    ForeignKey("owner_id", "users", "owner_name", UNKNOWN_OWNER),
)

PRODUCT_FOREIGN_KEYS = (
    ForeignKey("category_id", "categories", "category_name", UNCATEGORIZED),
    ForeignKey("market_id", "markets", "market_name", NO_MARKET),
)


class ReferenceTable:
    """Immutable key -> label lookup; keys are normalised to str."""

    def __init__(self, name: str, entries: Optional[Mapping[Any, Any]] = None):
        self.name = name
        self._entries: dict[str, str] = {}
        for key, label in (entries or {}).items():
            if key is None:
                continue
            self._entries[str(key)] = "" if label is None else str(label)

    @classmethod
    def from_rows(cls, name: str, rows: Iterable[Mapping], key_field: str = "id",
                  label_field: str = "name") -> "ReferenceTable":
        entries = {}
        for row in rows:
            if not isinstance(row, Mapping) or row.get(key_field) is None:
                continue
            entries[row[key_field]] = row.get(label_field)
        return cls(name, entries)

    def get(self, key, default: Optional[str] = None) -> Optional[str]:
        if key is None:
            return default
        label = self._entries.get(str(key))
        return label if label else default

    def __contains__(self, key) -> bool:
        return key is not None and str(key) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"ReferenceTable({self.name!r}, {len(self)} entries)"


@dataclass
class ListingRow:
    record: BaseModel
    names: dict[str, str] = field(default_factory=dict)

    def __getitem__(self, key: str):
        if key in self.names:
            return self.names[key]
        return getattr(self.record, key)

    def to_dict(self) -> dict:
        data = self.record.model_dump(mode="json")
        data.update(self.names)
        return data


def _resolve(record, fk: ForeignKey, tables: Mapping[str, ReferenceTable]) -> str:
    table = tables.get(fk.reference)
    if table is None:
        return fk.fallback
    return table.get(getattr(record, fk.field, None), fk.fallback)


def enrich_rows(
    records: Iterable[BaseModel],
    tables: Mapping[str, ReferenceTable],
    foreign_keys: Iterable[ForeignKey],
) -> list[ListingRow]:
    """Attach a display name for each foreign key to every record, in order."""
    foreign_keys = tuple(foreign_keys)
    rows = []
    for record in records:
        names = {}
        for fk in foreign_keys:
            try:
                names[fk.target] = _resolve(record, fk, tables)
            except Exception as e:
                # one bad value never aborts enrichment of the other rows
                logger.warning("Enrichment of %s failed for %r: %s", fk.target, getattr(record, "id", "?"), e)
                names[fk.target] = fk.fallback
        rows.append(ListingRow(record=record, names=names))
    return rows

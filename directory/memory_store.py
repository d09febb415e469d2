from __future__ import annotations

from typing import Iterable, Optional

from .errors import DirectoryError, StoreErrorKind, not_provisioned, user_message
from .query_builder import OrderClause, ReadRequest, ReferenceRequest, SearchClause
from .store import DirectoryStore, ReadResult


def _matches_search(row: dict, search: Optional[SearchClause]) -> bool:
    if search is None:
        return True
    needle = search.text.casefold()
    return any(needle in str(row.get(f) or "").casefold() for f in search.fields)


def _sorted(rows: list, order: OrderClause) -> list:
    present = [r for r in rows if r.get(order.field) is not None]
    missing = [r for r in rows if r.get(order.field) is None]
    present.sort(key=lambda r: r[order.field], reverse=order.descending)
    return present + missing


class InMemoryDirectoryStore(DirectoryStore):
    """
    Dict-backed store with the same query semantics as the SQL store.

    ``missing_tables`` simulate an unprovisioned database and
    ``denied_tables`` a row-level-security rejection.
    """

    def __init__(
        self,
        tables: Optional[dict] = None,
        missing_tables: Iterable[str] = (),
        denied_tables: Iterable[str] = (),
    ):
        self.tables: dict[str, list] = {name: list(rows) for name, rows in (tables or {}).items()}
        self.missing_tables = set(missing_tables)
        self.denied_tables = set(denied_tables)
        self.requests: list = []

    def add_rows(self, table: str, rows: Iterable[dict]):
        self.tables.setdefault(table, []).extend(rows)

    def _rows(self, table: str) -> list:
        if table in self.missing_tables or table not in self.tables:
            raise not_provisioned(table)
        if table in self.denied_tables:
            kind = StoreErrorKind.PERMISSION_DENIED
            raise DirectoryError(kind, user_message(kind, table), table)
        return self.tables[table]

    async def read(self, request: ReadRequest) -> ReadResult:
        self.requests.append(request)
        rows = self._rows(request.table)

        matched = [
            r for r in rows
            if all(str(r.get(col)) == value for col, value in request.all_predicates())
            and _matches_search(r, request.search)
        ]
        ordered = _sorted(matched, request.order)
        start, end = request.range
        return ReadResult(rows=[dict(r) for r in ordered[start:end + 1]], count=len(matched))

    async def read_reference(self, request: ReferenceRequest) -> list:
        self.requests.append(request)
        rows = self._rows(request.table)
        matched = [
            r for r in rows
            if (request.active_field is None or r.get(request.active_field))
            and _matches_search(r, request.search)
        ]
        return [dict(r) for r in _sorted(matched, request.order)]

    async def check_table(self, table: str) -> Optional[DirectoryError]:
        try:
            self._rows(table)
        except DirectoryError as e:
            return e
        return None

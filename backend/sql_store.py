"""DirectoryStore on top of SQLAlchemy async sessions (PostgreSQL / SQLite)."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import MetaData, Table, and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backend import models  # noqa: F401 -- registers directory tables
from backend.database import Base, async_session
from directory.errors import DirectoryError, StoreErrorKind, classify_store_error, not_provisioned
from directory.query_builder import OrderClause, ReadRequest, ReferenceRequest, SearchClause
from directory.store import DirectoryStore, ReadResult

logger = logging.getLogger(__name__)


class SqlAlchemyDirectoryStore(DirectoryStore):
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] = async_session,
        metadata: MetaData = Base.metadata,
    ):
        self._session_factory = session_factory
        self._metadata = metadata

    # ------------------------------------------------------------------
    # Statement helpers
    # ------------------------------------------------------------------

    def _table(self, name: str) -> Table:
        table = self._metadata.tables.get(name)
        if table is None:
            raise not_provisioned(name)
        return table

    @staticmethod
    def _column(table: Table, name: str):
        try:
            return table.c[name]
        except KeyError:
            raise DirectoryError(StoreErrorKind.MALFORMED, f"Unknown column {name!r} on {table.name}", table.name)

    def _search(self, table: Table, search: Optional[SearchClause]):
        # literal substring match: % and _ in user text are not wildcards
        return or_(*[self._column(table, f).icontains(search.text, autoescape=True) for f in search.fields])

    def _order(self, table: Table, order: OrderClause):
        column = self._column(table, order.field)
        return column.desc() if order.descending else column.asc()

    # ------------------------------------------------------------------
    # DirectoryStore
    # ------------------------------------------------------------------

    async def read(self, request: ReadRequest) -> ReadResult:
        table = self._table(request.table)
        conditions = [self._column(table, col) == value for col, value in request.all_predicates()]
        if request.search:
            conditions.append(self._search(table, request.search))
        where = and_(*conditions) if conditions else None

        count_stmt = select(func.count()).select_from(table)
        page_stmt = select(table)
        if where is not None:
            count_stmt = count_stmt.where(where)
            page_stmt = page_stmt.where(where)
        # id as tie-breaker keeps pages stable
        page_stmt = (
            page_stmt.order_by(self._order(table, request.order), table.c.id.asc())
            .offset(request.offset)
            .limit(request.limit)
        )

        try:
            async with self._session_factory() as session:
                total = (await session.execute(count_stmt)).scalar() or 0
                rows = [dict(r) for r in (await session.execute(page_stmt)).mappings().all()]
        except Exception as e:
            raise classify_store_error(e, request.table) from e

        logger.debug("Read %d/%d rows from %s", len(rows), total, request.table)
        return ReadResult(rows=rows, count=int(total))

    async def read_reference(self, request: ReferenceRequest) -> list:
        table = self._table(request.table)
        stmt = select(table)
        if request.active_field:
            stmt = stmt.where(self._column(table, request.active_field).is_(True))
        if request.search:
            stmt = stmt.where(self._search(table, request.search))
        stmt = stmt.order_by(self._order(table, request.order))

        try:
            async with self._session_factory() as session:
                return [dict(r) for r in (await session.execute(stmt)).mappings().all()]
        except Exception as e:
            raise classify_store_error(e, request.table) from e

    async def check_table(self, table: str) -> Optional[DirectoryError]:
        try:
            t = self._table(table)
            async with self._session_factory() as session:
                await session.execute(select(t).limit(1))
        except DirectoryError as e:
            return e
        except Exception as e:
            return classify_store_error(e, table)
        return None

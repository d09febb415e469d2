"""
Database connection for PostgreSQL (hosted) or SQLite (local dev).

Env vars (set in the hosting dashboard or .env):
    DATABASE_URL          -- full postgres:// connection string
    DATABASE_URL_FALLBACK -- optional sqlite+aiosqlite:///./local.db for local dev
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from config_env import get_settings

DATABASE_URL = get_settings().database_url


def make_engine(url: str) -> AsyncEngine:
    """In-memory SQLite needs a single shared connection to keep its tables."""
    if url.startswith("sqlite") and (url.endswith("://") or ":memory:" in url):
        return create_async_engine(url, echo=False, poolclass=StaticPool)
    return create_async_engine(url, echo=False)


engine = make_engine(DATABASE_URL)
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


async def init_db(bind: AsyncEngine | None = None):
    """Create all tables (safe to call multiple times)."""
    from backend import models  # noqa: F401 -- registers tables on Base.metadata

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_session() -> AsyncSession:
    async with async_session() as session:
        yield session

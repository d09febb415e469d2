import datetime as dt
import os

# keep the module-level engine off disk during tests
os.environ.setdefault("DATABASE_URL_FALLBACK", "sqlite+aiosqlite://")

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backend.database import Base, init_db, make_engine
from backend.sql_store import SqlAlchemyDirectoryStore
from directory.memory_store import InMemoryDirectoryStore

BASE_TIME = dt.datetime(2024, 1, 1)

MARKETS = [
    {"id": "1", "name": "Borough Market", "location": "London", "description": "Food hall", "is_active": True},
    {"id": "2", "name": "Old Corn Exchange", "location": "Leeds", "description": "Closed for works", "is_active": False},
    {"id": "3", "name": "Bullring Market", "location": "Birmingham", "description": "Open-air stalls", "is_active": True},
]

BUSINESS_CATEGORIES = [
    {"id": "1", "title": "Food & Drink", "icon_type": "food"},
    {"id": "2", "title": "Technology", "icon_type": "tech"},
]

PRODUCT_CATEGORIES = [
    {"id": "1", "name": "Groceries"},
    {"id": "2", "name": "Electronics"},
]

USERS = [
    {"id": "owner-a", "full_name": "Alice Trader", "email": "alice@example.com"},
    {"id": "owner-b", "full_name": "", "email": "bob@example.com"},
]


def _business(id, name, category_id, market_id, status, day, description="", owner_id="owner-a"):
    return {
        "id": id,
        "name": name,
        "description": description,
        "category_id": category_id,
        "market_id": market_id,
        "owner_id": owner_id,
        "status": status,
        "created_at": BASE_TIME + dt.timedelta(days=day),
    }


BUSINESSES = [
    _business("b1", "London Coffee Shop", "1", "1", "active", 1, "Premium coffee and pastries"),
    _business("b2", "Manchester Tech Hub", "2", None, "active", 2, "Technology consulting, 100% remote"),
    _business("b3", "Closed Bakery", "1", "1", "inactive", 3, "Fresh bread"),
    _business("b4", "Mystery Shop", "42", "77", "active", 4, "Nobody knows", owner_id="ghost"),
]


def _product(id, name, category_id, market_id, owner_id, status, created_at, price=None):
    return {
        "id": id,
        "name": name,
        "category_id": category_id,
        "market_id": market_id,
        "owner_id": owner_id,
        "status": status,
        "price": price,
        "created_at": created_at,
    }


def build_products():
    rows = []
    # 25 active products in market "3", newest last
    for i in range(25):
        rows.append(_product(
            f"m3-{i:02d}", f"Stall item {i:02d}", "1" if i % 2 == 0 else "2", "3",
            "owner-a", "active", BASE_TIME + dt.timedelta(hours=i), price=10.0 + i,
        ))
    # 5 products in market "1" with an unknown category
    for i in range(5):
        rows.append(_product(
            f"m1-{i}", f"Borough item {i}", "99", "1",
            "owner-b", "active", BASE_TIME + dt.timedelta(days=2, hours=i),
        ))
    rows.append(_product("draft-1", "Draft lamp", "2", None, "owner-a", "draft", BASE_TIME + dt.timedelta(days=3)))
    return rows


def build_tables():
    return {
        "markets": [dict(m) for m in MARKETS],
        "business_categories": [dict(c) for c in BUSINESS_CATEGORIES],
        "categories": [dict(c) for c in PRODUCT_CATEGORIES],
        "users": [dict(u) for u in USERS],
        "businesses": [dict(b) for b in BUSINESSES],
        "products": build_products(),
    }


@pytest.fixture
def directory_tables():
    return build_tables()


@pytest.fixture
def memory_store(directory_tables):
    return InMemoryDirectoryStore(directory_tables)


async def populate(session_factory, tables):
    async with session_factory() as session:
        for name, rows in tables.items():
            if rows:
                await session.execute(Base.metadata.tables[name].insert(), rows)
        await session.commit()


@pytest_asyncio.fixture
async def sql_engine():
    engine = make_engine("sqlite+aiosqlite://")
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(sql_engine):
    await init_db(sql_engine)
    factory = async_sessionmaker(sql_engine, class_=AsyncSession, expire_on_commit=False)
    await populate(factory, build_tables())
    return factory


@pytest.fixture
def sql_store(session_factory):
    return SqlAlchemyDirectoryStore(session_factory)

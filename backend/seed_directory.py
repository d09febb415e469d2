"""
Setup script: create the directory schema and load sample data, or verify
that every directory table is provisioned.

Usage:
    python -m backend.seed_directory            # create tables + sample rows
    python -m backend.seed_directory --verify   # report missing tables only
"""

from __future__ import annotations

import argparse
import asyncio
import datetime as dt
import logging

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from backend.database import async_session, engine, init_db
from backend.models import (
    DIRECTORY_TABLES,
    Business,
    BusinessCategory,
    Market,
    Product,
    ProductCategory,
    User,
)
from backend.sql_store import SqlAlchemyDirectoryStore
from config_env import get_settings
from directory.store import DirectoryStore

logger = logging.getLogger(__name__)

SAMPLE_MARKETS = [
    {"id": "1", "name": "Borough Market", "location": "London", "description": "Food and produce market"},
    {"id": "2", "name": "Arndale Market", "location": "Manchester", "description": "Indoor market hall"},
    {"id": "3", "name": "Bullring Market", "location": "Birmingham", "description": "Open-air and indoor stalls"},
]

SAMPLE_BUSINESS_CATEGORIES = [
    {"id": "1", "title": "Food & Drink", "icon_type": "food"},
    {"id": "2", "title": "Technology", "icon_type": "tech"},
    {"id": "3", "title": "Retail", "icon_type": "shop"},
]

SAMPLE_PRODUCT_CATEGORIES = [
    {"id": "1", "name": "Groceries"},
    {"id": "2", "name": "Electronics"},
    {"id": "3", "name": "Books"},
]

SAMPLE_OWNER = {"id": "seed-owner", "full_name": "Sample Owner", "email": "owner@example.com"}

SAMPLE_BUSINESSES = [
    {
        "id": "b1", "name": "London Coffee Shop", "category_id": "1", "market_id": "1",
        "description": "Premium coffee and pastries in central London",
        "address": "123 Oxford Street, London", "contact_phone": "+44 20 7123 4567",
        "contact_email": "info@londoncoffee.com", "latitude": 51.5074, "longitude": -0.1278,
    },
    {
        "id": "b2", "name": "Manchester Tech Hub", "category_id": "2", "market_id": "2",
        "description": "Innovative technology solutions and consulting",
        "address": "456 Deansgate, Manchester", "contact_phone": "+44 161 123 4567",
        "contact_email": "hello@manchestertech.com", "latitude": 53.4808, "longitude": -2.2426,
    },
    {
        "id": "b3", "name": "Edinburgh Bookshop", "category_id": "3", "market_id": None,
        "description": "Independent bookstore with rare and new titles",
        "address": "654 Royal Mile, Edinburgh", "contact_phone": "+44 131 123 4567",
        "contact_email": "books@edinburghshop.com", "latitude": 55.9533, "longitude": -3.1883,
    },
]

SAMPLE_PRODUCTS = [
    {"id": "p1", "name": "House Blend Coffee Beans", "category_id": "1", "market_id": "1",
     "business_id": "b1", "price": 12.5, "condition": "new"},
    {"id": "p2", "name": "Refurbished Laptop", "category_id": "2", "market_id": "2",
     "business_id": "b2", "price": 420.0, "condition": "refurbished"},
    {"id": "p3", "name": "First Edition Novel", "category_id": "3", "market_id": None,
     "business_id": "b3", "price": 85.0, "condition": "used"},
]


async def seed(session_factory: async_sessionmaker[AsyncSession] = async_session,
               bind: AsyncEngine | None = None) -> int:
    """Create the schema and merge sample rows; safe to run repeatedly."""
    await init_db(bind or engine)

    base_time = dt.datetime(2024, 1, 1)
    objects = [Market(**m) for m in SAMPLE_MARKETS]
    objects += [BusinessCategory(**c) for c in SAMPLE_BUSINESS_CATEGORIES]
    objects += [ProductCategory(**c) for c in SAMPLE_PRODUCT_CATEGORIES]
    objects.append(User(**SAMPLE_OWNER))
    objects += [
        Business(owner_id=SAMPLE_OWNER["id"], created_at=base_time + dt.timedelta(days=i), **b)
        for i, b in enumerate(SAMPLE_BUSINESSES)
    ]
    objects += [
        Product(owner_id=SAMPLE_OWNER["id"], created_at=base_time + dt.timedelta(days=i), **p)
        for i, p in enumerate(SAMPLE_PRODUCTS)
    ]

    async with session_factory() as session:
        for obj in objects:
            await session.merge(obj)
        await session.commit()

    logger.info("Seeded %d directory rows", len(objects))
    return len(objects)


async def verify(store: DirectoryStore) -> dict[str, str]:
    """Map each directory table to "ok" or its error kind."""
    report = {}
    for table in DIRECTORY_TABLES:
        error = await store.check_table(table)
        report[table] = "ok" if error is None else error.kind.value
    return report


async def _main(verify_only: bool):
    if verify_only:
        report = await verify(SqlAlchemyDirectoryStore())
        for table, status in report.items():
            print(f"  {table:<22} {status}")
        missing = [t for t, s in report.items() if s != "ok"]
        if missing:
            print("Some tables are not available. Run: python -m backend.seed_directory")
        return 1 if missing else 0

    count = await seed()
    print(f"Seed complete: {count} rows.")
    return 0


def main():
    parser = argparse.ArgumentParser(description="Create and seed the directory database")
    parser.add_argument("--verify", action="store_true", help="only check that tables exist")
    args = parser.parse_args()
    logging.basicConfig(level=get_settings().log_level)
    raise SystemExit(asyncio.run(_main(args.verify)))


if __name__ == "__main__":
    main()

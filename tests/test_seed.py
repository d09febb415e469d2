import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backend.models import DIRECTORY_TABLES
from backend.seed_directory import SAMPLE_MARKETS, seed, verify
from backend.sql_store import SqlAlchemyDirectoryStore
from directory.filters import FilterState, ListingFilter
from directory.loader import BUSINESS_LISTING, FetchStatus, ListingLoader
from directory.query_builder import build_reference_request


@pytest.fixture
def factory(sql_engine):
    return async_sessionmaker(sql_engine, class_=AsyncSession, expire_on_commit=False)


class TestSeed:
    @pytest.mark.asyncio
    async def test_verify_before_setup(self, factory):
        report = await verify(SqlAlchemyDirectoryStore(factory))
        assert set(report) == set(DIRECTORY_TABLES)
        assert set(report.values()) == {"not_provisioned"}

    @pytest.mark.asyncio
    async def test_seed_then_verify(self, sql_engine, factory):
        count = await seed(factory, bind=sql_engine)
        assert count == 16
        report = await verify(SqlAlchemyDirectoryStore(factory))
        assert set(report.values()) == {"ok"}

    @pytest.mark.asyncio
    async def test_seed_is_idempotent(self, sql_engine, factory):
        await seed(factory, bind=sql_engine)
        await seed(factory, bind=sql_engine)
        store = SqlAlchemyDirectoryStore(factory)
        markets = await store.read_reference(build_reference_request("markets"))
        assert len(markets) == len(SAMPLE_MARKETS)

    @pytest.mark.asyncio
    async def test_seeded_listing_is_enriched(self, sql_engine, factory):
        await seed(factory, bind=sql_engine)
        loader = ListingLoader(
            SqlAlchemyDirectoryStore(factory), BUSINESS_LISTING, FilterState(ListingFilter(sort="name")),
            auto_fetch=False,
        )
        state = await loader.refresh()
        assert state.status == FetchStatus.READY
        by_name = {row["name"]: row for row in state.rows}
        assert by_name["London Coffee Shop"]["market_name"] == "Borough Market"
        assert by_name["Edinburgh Bookshop"]["market_name"] == "No Market"
        assert by_name["Manchester Tech Hub"]["category_name"] == "Technology"
        assert by_name["London Coffee Shop"]["owner_name"] == "Sample Owner"

import pytest

from backend.database import Base
from backend.sql_store import SqlAlchemyDirectoryStore
from directory.errors import DirectoryError, StoreErrorKind
from directory.filters import ListingFilter
from directory.query_builder import BUSINESSES, PRODUCTS, build_listing_request, build_reference_request


@pytest.fixture(params=["memory", "sql"])
def store(request, memory_store, sql_store):
    return memory_store if request.param == "memory" else sql_store


class TestRead:
    @pytest.mark.asyncio
    async def test_count_ignores_range(self, store):
        request = build_listing_request(PRODUCTS, ListingFilter.create(market_id="3", limit=20, offset=20))
        result = await store.read(request)
        assert result.count == 25
        assert len(result.rows) == 5

    @pytest.mark.asyncio
    async def test_category_and_market(self, store):
        request = build_listing_request(PRODUCTS, ListingFilter.create(category_id="1", market_id="3"))
        result = await store.read(request)
        assert result.count == 13
        assert all(r["category_id"] == "1" and r["market_id"] == "3" for r in result.rows)

    @pytest.mark.asyncio
    async def test_search_is_case_insensitive(self, store):
        request = build_listing_request(BUSINESSES, ListingFilter.create(search_text="COFFEE"))
        result = await store.read(request)
        assert [r["id"] for r in result.rows] == ["b1"]

    @pytest.mark.asyncio
    async def test_search_matches_description(self, store):
        request = build_listing_request(BUSINESSES, ListingFilter.create(search_text="consulting"))
        result = await store.read(request)
        assert [r["id"] for r in result.rows] == ["b2"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text,expected", [
        ("_", []),
        ("%", ["b2"]),
        ("0%r", []),
        ("100% remote", ["b2"]),
    ])
    async def test_search_treats_wildcards_literally(self, store, text, expected):
        request = build_listing_request(BUSINESSES, ListingFilter.create(search_text=text, limit=100))
        result = await store.read(request)
        assert [r["id"] for r in result.rows] == expected
        assert result.count == len(expected)

    @pytest.mark.asyncio
    async def test_sort_by_name(self, store):
        request = build_listing_request(BUSINESSES, ListingFilter.create(sort="name"))
        result = await store.read(request)
        assert [r["name"] for r in result.rows] == ["London Coffee Shop", "Manchester Tech Hub", "Mystery Shop"]

    @pytest.mark.asyncio
    async def test_sort_by_name_descending(self, store):
        request = build_listing_request(BUSINESSES, ListingFilter.create(sort="name_desc"))
        result = await store.read(request)
        assert [r["name"] for r in result.rows] == ["Mystery Shop", "Manchester Tech Hub", "London Coffee Shop"]

    @pytest.mark.asyncio
    async def test_tenant_scope(self, store):
        request = build_listing_request(PRODUCTS, ListingFilter.create(status="draft"), tenant_id="owner-a")
        result = await store.read(request)
        assert [r["id"] for r in result.rows] == ["draft-1"]


class TestReference:
    @pytest.mark.asyncio
    async def test_markets_alphabetical(self, store):
        rows = await store.read_reference(build_reference_request("markets"))
        assert [r["name"] for r in rows] == ["Borough Market", "Bullring Market", "Old Corn Exchange"]

    @pytest.mark.asyncio
    async def test_active_only(self, store):
        rows = await store.read_reference(build_reference_request("markets", active_only=True))
        assert [r["id"] for r in rows] == ["1", "3"]

    @pytest.mark.asyncio
    async def test_search_location(self, store):
        rows = await store.read_reference(build_reference_request("markets", search_text="birmingham"))
        assert [r["id"] for r in rows] == ["3"]

    @pytest.mark.asyncio
    async def test_check_table(self, store):
        assert await store.check_table("markets") is None


class TestSqlFailures:
    @pytest.mark.asyncio
    async def test_dropped_table_is_not_provisioned(self, sql_engine, session_factory):
        async with sql_engine.begin() as conn:
            await conn.run_sync(lambda c: Base.metadata.tables["markets"].drop(c))
        store = SqlAlchemyDirectoryStore(session_factory)

        with pytest.raises(DirectoryError) as exc:
            await store.read_reference(build_reference_request("markets"))
        assert exc.value.kind == StoreErrorKind.NOT_PROVISIONED
        assert exc.value.table == "markets"

        error = await store.check_table("markets")
        assert error.kind == StoreErrorKind.NOT_PROVISIONED

    @pytest.mark.asyncio
    async def test_unregistered_table(self, sql_store):
        error = await sql_store.check_table("owners")
        assert error.kind == StoreErrorKind.NOT_PROVISIONED


class TestMemoryFailures:
    @pytest.mark.asyncio
    async def test_denied_table(self, memory_store):
        memory_store.denied_tables.add("products")
        with pytest.raises(DirectoryError) as exc:
            await memory_store.read(build_listing_request(PRODUCTS, ListingFilter()))
        assert exc.value.kind == StoreErrorKind.PERMISSION_DENIED

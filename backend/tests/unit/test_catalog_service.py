"""Unit tests for the catalog cache layer."""

import asyncio
import json

import pytest
from redis.exceptions import ResponseError

from app.core import AppError, ErrorKind
from app.schemas.product import ProductCreate, ProductUpdate
from app.services.auth import Principal
from app.services.catalog import (
    CATALOG_CACHE_KEY,
    CatalogService,
    normalize_pagination,
    page_field,
)
from app.services.product import ProductFilters
from tests.fakes import FakeKeyValueStore, InMemoryProductStore, make_product

SELLER = Principal(subject_id=1, role="seller")
OTHER_SELLER = Principal(subject_id=2, role="seller")
ADMIN = Principal(subject_id=3, role="admin")


@pytest.fixture
def cache() -> FakeKeyValueStore:
    return FakeKeyValueStore()


@pytest.fixture
def store() -> InMemoryProductStore:
    return InMemoryProductStore([make_product(i) for i in range(1, 26)])


@pytest.fixture
def service(store, cache) -> CatalogService:
    return CatalogService(store, cache, ttl_seconds=300)


class TestNormalizePagination:
    def test_defaults(self):
        assert normalize_pagination() == (1, 20)

    @pytest.mark.parametrize("limit", [0, 101, -5, "abc", "", None, 2.5, True])
    def test_invalid_limit_falls_back_to_20(self, limit):
        assert normalize_pagination(1, limit) == (1, 20)

    @pytest.mark.parametrize("page", [0, -1, "abc", None])
    def test_invalid_page_falls_back_to_1(self, page):
        assert normalize_pagination(page, 10) == (1, 10)

    @pytest.mark.parametrize("limit", [1, 20, 100, "100", " 50 "])
    def test_valid_limit_kept(self, limit):
        assert normalize_pagination(2, limit) == (2, int(str(limit).strip()))

    def test_numeric_strings_accepted(self):
        assert normalize_pagination("3", "15") == (3, 15)


class TestListAll:
    async def test_cold_cache_reports_true_total(self, service, store):
        items, total = await service.list_all(1, 20)

        assert len(items) == 20
        assert total == 25
        assert store.list_calls == 1

    async def test_second_read_is_served_from_cache(self, service, store):
        first = await service.list_all(1, 20)
        second = await service.list_all(1, 20)

        assert first == second
        assert store.list_calls == 1

    async def test_cache_hit_keeps_true_total(self, service):
        await service.list_all(2, 20)

        items, total = await service.list_all(2, 20)

        assert len(items) == 5
        assert total == 25

    async def test_pages_are_cached_separately(self, service, store, cache):
        page_one, _ = await service.list_all(1, 10)
        page_two, _ = await service.list_all(2, 10)

        assert [p.id for p in page_one] != [p.id for p in page_two]
        assert set(cache.data[CATALOG_CACHE_KEY]) == {page_field(1, 10), page_field(2, 10)}
        assert store.list_calls == 2

    async def test_listing_order_is_by_name(self, service):
        items, _ = await service.list_all(1, 5)

        assert [p.name for p in items] == sorted(p.name for p in items)

    async def test_cached_value_is_json_with_items_and_total(self, service, cache):
        await service.list_all(1, 20)

        doc = json.loads(cache.data[CATALOG_CACHE_KEY][page_field(1, 20)])
        assert doc["total"] == 25
        assert len(doc["items"]) == 20

    async def test_ttl_set_once_on_first_fill(self, service, cache):
        await service.list_all(1, 20)
        first_deadline = cache.expiry[CATALOG_CACHE_KEY]

        await service.list_all(2, 20)

        assert cache.expiry[CATALOG_CACHE_KEY] == first_deadline
        assert 0 < cache.ttl(CATALOG_CACHE_KEY) <= 300

    async def test_page_and_ttl_written_in_one_transaction(self, service, cache):
        await service.list_all(1, 20)

        assert cache.calls[-3:] == ["execute", "hset", "expire"]

    async def test_page_not_stored_when_ttl_cannot_be_set(self, service, store, cache):
        cache.fail_on["expire"] = ResponseError("ERR NX and XX, GT or LT options are not supported")

        items, total = await service.list_all(1, 20)

        assert len(items) == 20
        assert total == 25
        assert CATALOG_CACHE_KEY not in cache.data

        cache.fail_on.clear()
        await service.list_all(1, 20)

        assert store.list_calls == 2
        assert cache.ttl(CATALOG_CACHE_KEY) is not None

    async def test_cancelled_write_leaves_no_page_without_ttl(self, service, cache):
        cache.fail_on["expire"] = asyncio.CancelledError()

        with pytest.raises(asyncio.CancelledError):
            await service.list_all(1, 20)

        assert CATALOG_CACHE_KEY not in cache.data
        assert cache.ttl(CATALOG_CACHE_KEY) is None

    async def test_invalid_pagination_is_normalized(self, service):
        items, total = await service.list_all("abc", 0)

        assert len(items) == 20
        assert total == 25

    async def test_empty_catalog(self, cache):
        service = CatalogService(InMemoryProductStore(), cache)

        items, total = await service.list_all(1, 20)

        assert items == []
        assert total == 0

    async def test_cache_read_failure_falls_through_to_store(self, service, store, cache):
        cache.fail = True

        items, total = await service.list_all(1, 20)

        assert len(items) == 20
        assert total == 25
        assert store.list_calls == 1

    async def test_unreadable_cache_entry_treated_as_miss(self, service, store, cache):
        cache.data[CATALOG_CACHE_KEY] = {page_field(1, 20): "{not json"}

        items, total = await service.list_all(1, 20)

        assert total == 25
        assert store.list_calls == 1


class TestInvalidation:
    async def test_create_invalidates(self, service, cache):
        await service.list_all(1, 100)

        created = await service.create(
            SELLER, ProductCreate(category_id=1, name="Brand new", price=9.5, stock=1)
        )

        assert CATALOG_CACHE_KEY not in cache.data
        items, total = await service.list_all(1, 100)
        assert total == 26
        assert created.id in {p.id for p in items}

    async def test_update_invalidates_and_new_price_is_listed(self, service, store):
        await service.list_all(1, 100)

        await service.update(SELLER, 1, ProductUpdate(price=99.99))

        items, _ = await service.list_all(1, 100)
        assert next(p for p in items if p.id == 1).price == 99.99

    async def test_delete_invalidates(self, service):
        await service.list_all(1, 100)

        await service.delete(SELLER, 1)

        items, total = await service.list_all(1, 100)
        assert total == 24
        assert 1 not in {p.id for p in items}

    async def test_approve_invalidates(self, service):
        await service.list_all(1, 100)

        await service.approve(1)

        items, _ = await service.list_all(1, 100)
        assert next(p for p in items if p.id == 1).is_approved is True

    async def test_one_eviction_drops_every_page(self, service, cache):
        await service.list_all(1, 10)
        await service.list_all(2, 10)
        await service.list_all(1, 50)

        await service.update(SELLER, 1, ProductUpdate(stock=0))

        assert CATALOG_CACHE_KEY not in cache.data

    async def test_write_is_committed_before_eviction(self, service, store):
        await service.update(SELLER, 1, ProductUpdate(stock=0))

        assert store.commits == 1

    async def test_eviction_failure_is_not_surfaced(self, service, cache):
        await service.list_all(1, 20)
        cache.fail = True

        updated = await service.update(SELLER, 1, ProductUpdate(name="Renamed"))

        assert updated.name == "Renamed"

    async def test_scenario_create_then_update_price(self, cache):
        service = CatalogService(InMemoryProductStore(), cache)

        p1 = await service.create(
            SELLER, ProductCreate(category_id=1, name="P1", price=10, stock=3)
        )
        items, total = await service.list_all(1, 20)
        assert [p.id for p in items] == [p1.id]
        assert total == 1

        await service.update(SELLER, p1.id, ProductUpdate(price=12.5))

        items, _ = await service.list_all(1, 20)
        assert items[0].price == 12.5


class TestOwnership:
    async def test_other_seller_cannot_update(self, service, cache):
        await service.list_all(1, 20)

        with pytest.raises(AppError) as exc_info:
            await service.update(OTHER_SELLER, 1, ProductUpdate(price=1))

        assert exc_info.value.kind is ErrorKind.FORBIDDEN
        assert CATALOG_CACHE_KEY in cache.data

    async def test_admin_can_delete_any_product(self, service):
        await service.delete(ADMIN, 1)

        with pytest.raises(AppError) as exc_info:
            await service.get(1)
        assert exc_info.value.kind is ErrorKind.NOT_FOUND

    async def test_update_missing_product_is_not_found(self, service):
        with pytest.raises(AppError) as exc_info:
            await service.update(ADMIN, 999, ProductUpdate(price=1))

        assert exc_info.value.kind is ErrorKind.NOT_FOUND

    async def test_approve_missing_product_is_not_found(self, service):
        with pytest.raises(AppError) as exc_info:
            await service.approve(999)

        assert exc_info.value.kind is ErrorKind.NOT_FOUND


class TestSearch:
    async def test_search_is_never_cached(self, service, cache):
        await service.search(ProductFilters(text="Product"), 1, 20)
        await service.search(ProductFilters(text="Product"), 1, 20)

        assert CATALOG_CACHE_KEY not in cache.data
        assert "hget" not in cache.calls

    async def test_search_filters_and_total(self, store, cache):
        store.products[1].price = store.products[1].price * 10
        service = CatalogService(store, cache)

        items, total = await service.search(ProductFilters(min_price=50), 1, 20)

        assert [p.id for p in items] == [1]
        assert total == 1

    async def test_search_pagination_normalized(self, service):
        items, total = await service.search(ProductFilters(), "0", "500")

        assert len(items) == 20
        assert total == 25

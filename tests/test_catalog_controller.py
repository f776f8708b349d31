"""Tests for the catalog controller."""

import asyncio
import time

import pytest
from unittest.mock import AsyncMock

from catalog.data.seed_products import load_seed_products
from catalog.models.product import ProductFilters
from catalog.services.catalog_controller import CatalogController, build_controller
from catalog.services.data_source import DataSourceResolver
from catalog.storage.backends import MemoryBackend
from catalog.storage.product_store import ProductStore
from catalog.utils.config import AppConfig
from catalog.utils.exceptions import InvalidQueryError, ProductNotFoundError, SourceUnavailableError


class SlowWriteBackend(MemoryBackend):
    """Memory backend whose catalog writes take a while to land."""

    def write(self, key, value):
        if key.endswith("_products"):
            time.sleep(0.2)
        super().write(key, value)


@pytest.fixture
def new_draft():
    return {
        "name": "Desk Organizer",
        "description": "Bamboo desk organizer with five compartments.",
        "price": 34.5,
        "category": "home",
        "image_url": "https://images.unsplash.com/photo-desk",
        "in_stock": True,
        "tags": ["office", "bamboo"],
    }


@pytest.mark.asyncio
class TestLoading:
    """Tests for load and refetch."""

    async def test_load_returns_baseline(self, controller, sample_products):
        """Test that load resolves the stored collection."""
        products = await controller.load()

        assert products == sample_products
        assert controller.loaded is True
        assert controller.loading is False
        assert controller.error is None

    async def test_load_is_single_flight(self, store, catalog_config, sample_products):
        """Test that concurrent loads share one resolution."""
        fetch = AsyncMock(return_value=sample_products)
        controller = CatalogController(
            DataSourceResolver(store, fetch, load_seed_products), store, config=catalog_config
        )

        results = await asyncio.gather(controller.load(), controller.load(), controller.load())

        assert fetch.await_count == 1
        assert all(result == sample_products for result in results)

        await controller.load()
        assert fetch.await_count == 1

    async def test_refetch_resolves_again(self, controller):
        """Test that refetch runs the resolver even after a load."""
        await controller.load()
        controller.resolver.load_baseline = AsyncMock(return_value=[])

        await controller.refetch()

        controller.resolver.load_baseline.assert_awaited_once()
        assert controller.products == []

    async def test_refetch_failure_keeps_collection(self, controller, sample_products):
        """Test that a failed refetch sets error and keeps the loaded collection."""
        await controller.load()
        controller.resolver.load_baseline = AsyncMock(side_effect=SourceUnavailableError("No product source is available"))

        await controller.refetch()

        assert controller.error == "No product source is available"
        assert controller.products == sample_products

    async def test_refetch_waits_for_pending_mutation(
        self, sample_products, catalog_config, sequential_ids, new_draft
    ):
        """Test that a refetch issued while an add is persisting keeps the add."""
        store = ProductStore(SlowWriteBackend(), namespace="test")
        store.save_products(sample_products)
        controller = CatalogController(
            DataSourceResolver(store, AsyncMock(return_value=[]), load_seed_products),
            store,
            config=catalog_config,
            id_factory=sequential_ids,
        )
        await controller.load()

        adding = asyncio.create_task(controller.add(new_draft))
        await asyncio.sleep(0.05)
        await controller.refetch()
        added = await adding

        assert controller.get_by_id(added.id) is not None
        assert controller.get_by_id(added.id).name == "Desk Organizer"
        assert len(controller.products) == len(sample_products) + 1


@pytest.mark.asyncio
class TestMutations:
    """Tests for add, update and remove."""

    async def test_add_then_get_by_id(self, controller, new_draft):
        """Test that an added product is immediately retrievable with assigned fields."""
        product = await controller.add(new_draft)

        fetched = controller.get_by_id(product.id)
        assert fetched == product
        assert product.id == "product_1"
        assert product.created_at == product.updated_at == "2024-06-01T12:00:00.000Z"
        for key, value in new_draft.items():
            assert getattr(product, key) == value

    async def test_add_prepends_and_persists(self, controller, store, new_draft):
        """Test that new products come first and reach the store."""
        product = await controller.add(new_draft)

        assert controller.products[0] == product
        assert store.get_products()[0] == product
        assert controller.persistence_status == "ok"

    async def test_add_ignores_supplied_identity(self, controller, new_draft):
        """Test that id and timestamps in the draft are replaced."""
        product = await controller.add({**new_draft, "id": "p1", "createdAt": "1999-01-01T00:00:00.000Z"})

        assert product.id == "product_1"
        assert product.created_at == "2024-06-01T12:00:00.000Z"

    async def test_ids_stay_unique(self, store, sample_products, catalog_config, new_draft):
        """Test that repeated adds never produce duplicate ids, even on collision."""
        store.save_products(sample_products)
        ids = iter(["p1", "x1", "x1", "x2", "p2", "x3"])
        controller = CatalogController(
            DataSourceResolver(store, AsyncMock(), load_seed_products),
            store,
            config=catalog_config,
            id_factory=lambda: next(ids)
        )

        added = [await controller.add(new_draft) for _ in range(3)]

        assert [p.id for p in added] == ["x1", "x2", "x3"]
        all_ids = [p.id for p in controller.products]
        assert len(all_ids) == len(set(all_ids))

    async def test_update_merges(self, controller):
        """Test that update merges fields and refreshes updatedAt only."""
        updated = await controller.update("p1", {"name": "Alpha Lamp v2", "id": "hijack"})

        assert updated.id == "p1"
        assert updated.name == "Alpha Lamp v2"
        assert updated.created_at == "2024-01-01T00:00:00.000Z"
        assert updated.updated_at == "2024-06-01T12:00:00.000Z"
        assert controller.get_by_id("p1") == updated

    async def test_update_missing_product(self, controller):
        """Test that updating an unknown id raises and changes nothing."""
        await controller.load()
        before = len(controller.products)

        with pytest.raises(ProductNotFoundError) as exc_info:
            await controller.update("missing-id", {"name": "x"})

        assert exc_info.value.product_id == "missing-id"
        assert len(controller.products) == before

    async def test_remove(self, controller, store):
        """Test that remove drops the product from memory and the store."""
        await controller.remove("p3")

        assert controller.get_by_id("p3") is None
        assert store.product_exists("p3") is False

    async def test_remove_missing_product(self, controller):
        """Test that removing an unknown id raises."""
        with pytest.raises(ProductNotFoundError):
            await controller.remove("missing-id")

    async def test_persistence_failure_keeps_mutation(self, controller, memory_backend, new_draft):
        """Test that a failed write does not undo the in-memory change."""
        await controller.load()
        memory_backend.fail_writes = True

        product = await controller.add(new_draft)

        assert controller.get_by_id(product.id) == product
        assert controller.persistence_status == "failed"

    async def test_mutations_apply_in_call_order(self, controller, new_draft):
        """Test that concurrent mutations are serialized."""
        await controller.load()

        first, second = await asyncio.gather(
            controller.add({**new_draft, "name": "First"}),
            controller.add({**new_draft, "name": "Second"}),
        )

        assert [p.name for p in controller.products[:2]] == ["Second", "First"]
        assert first.id != second.id


@pytest.mark.asyncio
class TestSubmitForm:
    """Tests for submit_form."""

    async def test_invalid_form_does_not_touch_collection(self, controller):
        """Test that an invalid form only returns the validation result."""
        await controller.load()
        before = controller.products

        result = await controller.submit_form({"name": "", "price": "-5"})

        assert result.success is False
        assert result.product is None
        assert "name" in result.validation.fields
        assert controller.products == before

    async def test_valid_form_creates_product(self, controller, valid_form):
        """Test that a valid form is converted and added."""
        result = await controller.submit_form(valid_form)

        assert result.success is True
        assert result.product.price == 34.5
        assert result.product.tags == ["office", "bamboo"]
        assert controller.products[0] == result.product

    async def test_valid_form_updates_product(self, controller, valid_form):
        """Test that a product id turns the submission into an update."""
        result = await controller.submit_form(valid_form, product_id="p2")

        assert result.product.id == "p2"
        assert result.product.name == "Desk Organizer"
        assert result.to_dict()["success"] is True


@pytest.mark.asyncio
class TestQueryState:
    """Tests for the controller's derived view."""

    async def test_default_view_is_newest_first(self, controller):
        """Test the default createdAt descending view."""
        await controller.load()

        assert [p.id for p in controller.view] == ["p5", "p4", "p3", "p2", "p1"]
        assert controller.total_pages == 1
        assert controller.stats.total == 5

    async def test_set_filters_resets_page(self, controller):
        """Test that changing filters returns to page one."""
        await controller.load()
        controller.set_page(2, limit=2)

        controller.set_filters(minPrice=25, maxPrice=50)

        assert controller.page == 1
        assert {p.id for p in controller.view} == {"p5", "p3"}
        assert controller.query_result.total == 3

    async def test_clear_filters_keeps_sort(self, controller):
        """Test that clear_filters drops filters but not the sort."""
        await controller.load()
        controller.set_filters(ProductFilters(category="home", sort_by="price", sort_order="asc"))

        controller.clear_filters()

        assert controller.filters.category is None
        assert controller.filters.sort_by == "price"
        assert controller.filters.sort_order == "asc"

    async def test_reset_filters_restores_defaults(self, controller):
        """Test that reset_filters restores the default sort and paging."""
        await controller.load()
        controller.set_filters(ProductFilters(category="home", sort_by="price", sort_order="asc"))
        controller.set_page(2, limit=1)

        controller.reset_filters()

        assert controller.filters.sort_by == "createdAt"
        assert controller.filters.sort_order == "desc"
        assert controller.page == 1
        assert controller.limit == 12

    async def test_set_page_validation(self, controller):
        """Test paging bounds."""
        with pytest.raises(InvalidQueryError):
            controller.set_page(0)

        controller.set_page(9)
        assert controller.view == []

        controller.set_page(1, limit=1000)
        assert controller.limit == 50

    async def test_search_applies_after_debounce(self, store, sample_products, catalog_config):
        """Test that only the last search text within the quiet period is applied."""
        store.save_products(sample_products)
        config = catalog_config.model_copy(update={"search_debounce_ms": 20})
        controller = CatalogController(
            DataSourceResolver(store, AsyncMock(), load_seed_products), store, config=config
        )
        await controller.load()

        controller.search("lamp")
        controller.search("mug")
        assert controller.filters.search_query is None

        await asyncio.sleep(0.05)

        assert controller.filters.search_query == "mug"
        assert [p.id for p in controller.view] == ["p2"]

    async def test_flush_search(self, store, sample_products, catalog_config):
        """Test that flush_search applies pending text at once."""
        store.save_products(sample_products)
        config = catalog_config.model_copy(update={"search_debounce_ms": 10000})
        controller = CatalogController(
            DataSourceResolver(store, AsyncMock(), load_seed_products), store, config=config
        )

        controller.search("phone")
        controller.flush_search()

        assert controller.filters.search_query == "phone"


@pytest.mark.asyncio
class TestBuildController:
    """Tests for build_controller."""

    async def test_wires_store_and_fallback(self, tmp_path, failing_fetch):
        """Test the default graph with an injected backend and failing API."""
        backend = MemoryBackend()
        controller = build_controller(
            config=AppConfig(config_path=tmp_path / "missing.yml"),
            backend=backend,
            fetch_remote=failing_fetch
        )

        products = await controller.load()

        assert products == load_seed_products()
        assert controller.resolver.last_source == "static"
        assert "ecommerce_products" in backend.data

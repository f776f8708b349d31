"""Pytest configuration and fixtures."""

import itertools

import pytest
from unittest.mock import AsyncMock

from catalog.data.seed_products import load_seed_products
from catalog.models.product import Product, ProductForm
from catalog.services.catalog_controller import CatalogController
from catalog.services.data_source import DataSourceResolver
from catalog.storage.backends import MemoryBackend
from catalog.storage.product_store import ProductStore
from catalog.utils.config import CatalogConfig
from catalog.utils.exceptions import RemoteFetchError


def make_product(product_id: str, **overrides) -> Product:
    """Build a valid product, overriding any field by attribute name."""
    data = {
        "id": product_id,
        "name": f"Product {product_id}",
        "description": "A perfectly ordinary test product.",
        "price": 10.0,
        "category": "electronics",
        "image_url": "https://images.unsplash.com/photo-test",
        "in_stock": True,
        "tags": ["test"],
        "created_at": "2024-01-01T00:00:00.000Z",
        "updated_at": "2024-01-01T00:00:00.000Z",
    }
    data.update(overrides)
    return Product(**data)


@pytest.fixture
def product_factory():
    """Expose make_product to tests."""
    return make_product


@pytest.fixture
def sample_product():
    """Create a sample Product for testing."""
    return make_product(
        "test-001",
        name="Trail Running Shoes",
        description="Lightweight trail shoes with a grippy outsole.",
        price=89.99,
        category="sports",
        tags=["running", "outdoor"],
        sku="SPT-TR-001",
        brand="Stride",
        rating=4.5,
        review_count=12,
    )


@pytest.fixture
def sample_products():
    """Create a mixed-price collection for testing."""
    return [
        make_product("p1", name="Alpha Lamp", price=25.0, category="home",
                     created_at="2024-01-01T00:00:00.000Z"),
        make_product("p2", name="beta Mug", price=12.5, category="home", in_stock=False,
                     tags=["kitchen", "ceramic"], created_at="2024-01-02T00:00:00.000Z"),
        make_product("p3", name="Gamma Phone", price=50.0, brand="Acme",
                     created_at="2024-01-03T00:00:00.000Z"),
        make_product("p4", name="Delta Novel", price=50.01, category="books",
                     created_at="2024-01-04T00:00:00.000Z"),
        make_product("p5", name="Epsilon Ball", price=30.0, category="sports",
                     created_at="2024-01-05T00:00:00.000Z"),
    ]


@pytest.fixture
def valid_form():
    """Create a ProductForm that passes every validation rule."""
    return ProductForm(
        name="Desk Organizer",
        description="Bamboo desk organizer with five compartments.",
        price="34.5",
        category="home",
        image_url="https://images.unsplash.com/photo-desk",
        in_stock=True,
        tags="office, bamboo",
        sku="HOME-DO-01",
        brand="Tidy",
    )


@pytest.fixture
def memory_backend():
    """Create an empty in-memory backend."""
    return MemoryBackend()


@pytest.fixture
def store(memory_backend):
    """Create a ProductStore over the in-memory backend."""
    return ProductStore(memory_backend, namespace="test")


@pytest.fixture
def failing_fetch():
    """Remote fetch spy that always fails."""
    return AsyncMock(side_effect=RemoteFetchError("API request failed: 503"))


@pytest.fixture
def catalog_config():
    """Catalog settings with debounce disabled."""
    return CatalogConfig(default_limit=12, max_limit=50, search_debounce_ms=0)


@pytest.fixture
def sequential_ids():
    """Deterministic id factory."""
    counter = itertools.count(1)
    return lambda: f"product_{next(counter)}"


@pytest.fixture
def controller(store, sample_products, catalog_config, sequential_ids):
    """Create a CatalogController whose store already holds sample_products."""
    store.save_products(sample_products)
    fetch = AsyncMock(return_value=[])
    resolver = DataSourceResolver(store, fetch, load_seed_products)
    return CatalogController(
        resolver,
        store,
        config=catalog_config,
        id_factory=sequential_ids,
        clock=lambda: "2024-06-01T12:00:00.000Z",
    )

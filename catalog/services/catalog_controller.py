"""Session-level catalog state: the baseline collection, its query view and mutations."""

import asyncio
from dataclasses import dataclass, replace
from functools import partial
from typing import Any, Callable, Dict, List, Optional, Union

from .data_source import DataSourceResolver, fetch_from_api
from .debounce import SearchDebouncer
from .query_engine import run_query
from .validation import ProductValidator
from ..data.seed_products import load_seed_products
from ..models.product import (
    IMMUTABLE_FIELDS,
    Product,
    ProductFilters,
    ProductForm,
    ProductQuery,
    ProductStats,
    QueryResult,
    to_attr_key,
    to_filter_key,
)
from ..models.validation_result import ValidationResult
from ..storage.backends import KeyValueBackend, create_backend
from ..storage.product_store import ProductStore
from ..utils.config import AppConfig, CatalogConfig, get_config
from ..utils.exceptions import (
    InvalidQueryError,
    PersistenceError,
    ProductNotFoundError,
    SourceUnavailableError,
)
from ..utils.identifiers import generate_product_id, utc_now_iso
from ..utils.logger import get_catalog_logger, get_error_logger

PERSISTENCE_IDLE = "idle"
PERSISTENCE_PENDING = "pending"
PERSISTENCE_OK = "ok"
PERSISTENCE_FAILED = "failed"

DEFAULT_SORT_BY = "createdAt"
DEFAULT_SORT_ORDER = "desc"


def default_filters() -> ProductFilters:
    return ProductFilters(sort_by=DEFAULT_SORT_BY, sort_order=DEFAULT_SORT_ORDER)


@dataclass
class SubmissionResult:
    """Outcome of a form submission: the validation report and, if valid, the saved product."""

    validation: ValidationResult
    product: Optional[Product] = None

    @property
    def success(self) -> bool:
        return self.validation.is_valid and self.product is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "validation": self.validation.to_dict(),
            "product": self.product.to_dict() if self.product else None,
        }


class CatalogController:
    """
    Owns the baseline collection for one session.

    Loads are single-flight: concurrent callers share one resolution task.
    Mutations are serialized and two-phase: the in-memory collection changes
    before any persistence I/O, and a failed write only flips
    ``persistence_status`` to ``failed``.
    """

    def __init__(
        self,
        resolver: DataSourceResolver,
        store: ProductStore,
        validator: type = ProductValidator,
        config: Optional[CatalogConfig] = None,
        id_factory: Callable[[], str] = generate_product_id,
        clock: Callable[[], str] = utc_now_iso
    ):
        """
        Initialize the controller.

        Args:
            resolver: Resolves the baseline collection on load
            store: Durable store written after every mutation
            validator: Validation engine used by ``submit_form``
            config: Paging and debounce settings (defaults to app config)
            id_factory: Generates ids for new products
            clock: Returns the current ISO-8601 timestamp
        """
        self.resolver = resolver
        self.store = store
        self.validator = validator
        self.config = config or get_config().catalog
        self.id_factory = id_factory
        self.clock = clock
        self.logger = get_catalog_logger()
        self.error_logger = get_error_logger()

        self._products: List[Product] = []
        self._loaded = False
        self._load_task: Optional[asyncio.Task] = None
        self._mutation_lock = asyncio.Lock()
        self._error: Optional[str] = None
        self._persistence_status = PERSISTENCE_IDLE

        self._filters = default_filters()
        self._page = self.config.default_page
        self._limit = self.config.default_limit
        self._search = SearchDebouncer(
            self.config.search_debounce_ms / 1000, self._apply_search
        )

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load(self) -> List[Product]:
        """Resolve the baseline once per session and return it."""
        if self._loaded:
            return list(self._products)
        return await self._resolve()

    async def refetch(self) -> List[Product]:
        """Resolve the baseline again, joining any resolution already in flight."""
        return await self._resolve()

    async def _resolve(self) -> List[Product]:
        if self._load_task is None or self._load_task.done():
            self._load_task = asyncio.get_running_loop().create_task(self._run_resolver())
        # Shielded so one cancelled caller does not cancel the shared load.
        return await asyncio.shield(self._load_task)

    async def _run_resolver(self) -> List[Product]:
        # Waits for in-flight mutations so their persisted state is what gets read back.
        async with self._mutation_lock:
            self._error = None
            try:
                products = await self.resolver.load_baseline()
            except SourceUnavailableError as e:
                self._error = e.message
                self.error_logger.error(f"Catalog load failed: {e.message}")
                return list(self._products)

            self._products = list(products)
            self._loaded = True
        self.logger.info(
            f"Catalog ready with {len(self._products)} products (source: {self.resolver.last_source})"
        )
        return list(self._products)

    @property
    def loading(self) -> bool:
        return self._load_task is not None and not self._load_task.done()

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def persistence_status(self) -> str:
        return self._persistence_status

    @property
    def products(self) -> List[Product]:
        """Copy of the full baseline collection."""
        return list(self._products)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def add(self, draft: Dict[str, Any]) -> Product:
        """
        Create a product from *draft* and prepend it to the collection.

        The id and both timestamps are assigned here; any supplied in the
        draft are ignored.

        Returns:
            The created product
        """
        await self._ensure_loaded()
        async with self._mutation_lock:
            now = self.clock()
            fields = {
                key: value for key, value in draft.items()
                if to_attr_key(key) not in IMMUTABLE_FIELDS + ("updated_at",)
            }
            product = Product.from_dict(
                {**fields, "id": self._unique_id(), "created_at": now, "updated_at": now}
            )
            self._products = [product] + self._products
            self.logger.info(f"Added product {product.id}: {product.name}")

            await self._persist()
            return product

    async def update(self, product_id: str, updates: Dict[str, Any]) -> Product:
        """
        Merge *updates* into an existing product.

        Raises:
            ProductNotFoundError: If no product has *product_id*
        """
        await self._ensure_loaded()
        async with self._mutation_lock:
            index = self._index_of(product_id)
            if index is None:
                raise ProductNotFoundError(product_id)

            updated = self._products[index].merged(updates, self.clock())
            products = list(self._products)
            products[index] = updated
            self._products = products
            self.logger.info(f"Updated product {product_id}")

            await self._persist()
            return updated

    async def remove(self, product_id: str) -> None:
        """
        Delete a product.

        Raises:
            ProductNotFoundError: If no product has *product_id*
        """
        await self._ensure_loaded()
        async with self._mutation_lock:
            remaining = [p for p in self._products if p.id != product_id]
            if len(remaining) == len(self._products):
                raise ProductNotFoundError(product_id)

            self._products = remaining
            self.logger.info(f"Deleted product {product_id}")

            await self._persist()

    def get_by_id(self, product_id: str) -> Optional[Product]:
        index = self._index_of(product_id)
        return self._products[index] if index is not None else None

    async def submit_form(
        self,
        form: Union[ProductForm, Dict[str, Any]],
        product_id: Optional[str] = None
    ) -> SubmissionResult:
        """
        Validate a form and, when valid, create or update the product.

        Invalid forms never touch the collection.

        Raises:
            ProductNotFoundError: If *product_id* is given but unknown
        """
        if isinstance(form, dict):
            form = ProductForm.from_dict(form)

        validation = self.validator.validate(form)
        if not validation.is_valid:
            self.logger.info(f"Form rejected: {validation.get_summary()}")
            return SubmissionResult(validation=validation)

        draft = self.validator.form_to_entity(form)
        if product_id is None:
            product = await self.add(draft)
        else:
            product = await self.update(product_id, draft)
        return SubmissionResult(validation=validation, product=product)

    async def _ensure_loaded(self):
        if not self._loaded:
            await self.load()

    def _index_of(self, product_id: str) -> Optional[int]:
        for index, product in enumerate(self._products):
            if product.id == product_id:
                return index
        return None

    def _unique_id(self) -> str:
        existing = {p.id for p in self._products}
        product_id = self.id_factory()
        while product_id in existing:
            product_id = self.id_factory()
        return product_id

    async def _persist(self):
        """Write the current collection off the event loop; never raises."""
        snapshot = list(self._products)
        self._persistence_status = PERSISTENCE_PENDING
        try:
            await asyncio.to_thread(self._write_snapshot, snapshot)
        except PersistenceError as e:
            self._persistence_status = PERSISTENCE_FAILED
            self.error_logger.error(f"{e.message}; in-memory catalog kept")
            return
        self._persistence_status = PERSISTENCE_OK

    def _write_snapshot(self, snapshot: List[Product]):
        if not self.store.save_products(snapshot):
            raise PersistenceError(
                "Failed to persist catalog", details={"count": len(snapshot)}
            )

    # ------------------------------------------------------------------
    # Query state
    # ------------------------------------------------------------------

    @property
    def filters(self) -> ProductFilters:
        return self._filters

    @property
    def page(self) -> int:
        return self._page

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def query(self) -> ProductQuery:
        return ProductQuery(filters=self._filters, page=self._page, limit=self._limit)

    @property
    def query_result(self) -> QueryResult:
        return run_query(self._products, self.query, self.config.max_limit)

    @property
    def view(self) -> List[Product]:
        """Current page of the filtered, sorted collection."""
        return self.query_result.items

    @property
    def stats(self) -> ProductStats:
        return self.query_result.stats

    @property
    def total_pages(self) -> int:
        return self.query_result.total_pages

    def set_filters(self, filters: Union[ProductFilters, Dict[str, Any], None] = None, **changes) -> ProductFilters:
        """
        Replace or update the active filters and return to the first page.

        Accepts a full ``ProductFilters``, or field changes (either key style)
        applied on top of the current filters.
        """
        if isinstance(filters, ProductFilters):
            updated = filters
        else:
            merged = {**(filters or {}), **changes}
            updated = replace(
                self._filters, **{to_filter_key(key): value for key, value in merged.items()}
            )
        self._filters = updated
        self._page = 1
        return updated

    def set_page(self, page: int, limit: Optional[int] = None):
        """Move to *page*; a page past the end yields an empty view, not an error."""
        if page < 1 or (limit is not None and limit < 1):
            raise InvalidQueryError(
                "Page and limit must be at least 1", details={"page": page, "limit": limit}
            )
        self._page = page
        if limit is not None:
            self._limit = min(limit, self.config.max_limit)

    def clear_filters(self):
        """Drop every filter and the search text but keep the current sort."""
        self._search.cancel()
        self._filters = replace(
            default_filters(),
            sort_by=self._filters.sort_by,
            sort_order=self._filters.sort_order
        )
        self._page = 1

    def reset_filters(self):
        """Restore default filters, sort and paging."""
        self._search.cancel()
        self._filters = default_filters()
        self._page = self.config.default_page
        self._limit = self.config.default_limit

    def search(self, text: str):
        """Debounced update of the search text."""
        self._search.submit(text)

    def flush_search(self):
        """Apply any pending search text immediately."""
        self._search.flush()

    def _apply_search(self, text: str):
        self._filters = replace(self._filters, search_query=text.strip() or None)
        self._page = 1
        self.logger.debug(f"Search applied: {text!r}")


def build_controller(
    config: Optional[AppConfig] = None,
    backend: Optional[KeyValueBackend] = None,
    fetch_remote=None
) -> CatalogController:
    """
    Wire the default object graph from configuration.

    Args:
        config: Application config (defaults to ``get_config()``)
        backend: Backend override; otherwise built from the environment
        fetch_remote: Remote fetcher override; otherwise the products API
    """
    config = config or get_config()

    if backend is None:
        backend = create_backend(
            config.env.catalog_storage_backend,
            path=config.env.catalog_storage_path,
            redis_url=config.env.catalog_redis_url
        )

    store = ProductStore(backend, namespace=config.storage.namespace)
    resolver = DataSourceResolver(
        store,
        fetch_remote or partial(fetch_from_api, config.env.catalog_api_base_url),
        load_seed_products,
        respect_empty_catalog=config.storage.respect_empty_catalog
    )
    return CatalogController(resolver, store, config=config.catalog)

"""Baseline catalog resolution: durable store → remote API → bundled seed data.

Local edits always win over remote or seed data, so a stored non-empty
collection is returned without touching the network. An empty stored
collection counts as absent; a cleared catalog therefore repopulates from the
best available source on the next load. With ``respect_empty_catalog`` the
store's initialized marker decides instead, and a catalog emptied through
deletes stays empty.
"""

import asyncio
from typing import Awaitable, Callable, List, Optional

import httpx

from ..api.catalog_client import CatalogClient
from ..models.product import Product
from ..storage.product_store import ProductStore
from ..utils.exceptions import (
    RemoteFetchError,
    SourceUnavailableError,
    StorageUnavailableError,
)
from ..utils.logger import get_catalog_logger, get_error_logger

SOURCE_STORE = "store"
SOURCE_REMOTE = "remote"
SOURCE_STATIC = "static"

RemoteFetcher = Callable[[], Awaitable[List[Product]]]
FallbackProvider = Callable[[], List[Product]]


class DataSourceResolver:
    """Resolves the session's baseline collection through the fallback chain."""

    def __init__(
        self,
        store: ProductStore,
        fetch_remote: RemoteFetcher,
        load_fallback: FallbackProvider,
        respect_empty_catalog: bool = False
    ):
        """
        Initialize the resolver.

        Args:
            store: Durable store, read first and written back on fallback
            fetch_remote: Coroutine function returning the remote collection;
                raises ``RemoteFetchError`` on failure
            load_fallback: Returns the bundled static collection
            respect_empty_catalog: Trust the store's initialized marker
                instead of treating an empty collection as absent
        """
        self.store = store
        self.fetch_remote = fetch_remote
        self.load_fallback = load_fallback
        self.respect_empty_catalog = respect_empty_catalog
        self.logger = get_catalog_logger()
        self.error_logger = get_error_logger()
        self.last_source: Optional[str] = None

    async def load_baseline(self) -> List[Product]:
        """
        Run the fallback chain and return the baseline collection.

        Raises:
            SourceUnavailableError: If the static fallback itself fails
        """
        stored = await asyncio.to_thread(self._from_store)
        if stored is not None:
            self.last_source = SOURCE_STORE
            self.logger.info(f"Loaded {len(stored)} products from durable store")
            return stored

        try:
            products = await self.fetch_remote()
            self.last_source = SOURCE_REMOTE
            self.logger.info(f"Loaded {len(products)} products from remote API")
        except RemoteFetchError as e:
            self.logger.warning(f"Remote fetch failed, using bundled catalog: {e.message}")
            products = self._from_fallback()
            self.last_source = SOURCE_STATIC

        if not await asyncio.to_thread(self.store.save_products, products):
            self.logger.warning("Baseline catalog could not be persisted; continuing in memory")

        return products

    def _from_store(self) -> Optional[List[Product]]:
        """Stored collection when it is usable, otherwise None. Runs off the event loop."""
        if not self.store.exists():
            self.logger.info("Durable store unavailable, skipping it")
            return None

        try:
            products = self.store.read_products()
        except StorageUnavailableError as e:
            self.error_logger.error(f"Durable store read failed: {e.message}")
            return None

        if products:
            return products

        if self.respect_empty_catalog and self.store.is_initialized():
            self.logger.info("Stored catalog is intentionally empty")
            return products

        return None

    def _from_fallback(self) -> List[Product]:
        try:
            return self.load_fallback()
        except Exception as e:
            self.error_logger.error(f"Bundled catalog failed to load: {str(e)}", exc_info=True)
            raise SourceUnavailableError(
                "No product source is available",
                details={"error": str(e), "type": type(e).__name__}
            )


async def fetch_from_api(
    base_url: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> List[Product]:
    """Fetch the remote collection with a short-lived ``CatalogClient``."""
    async with CatalogClient(base_url=base_url, transport=transport) as client:
        return await client.fetch_products()

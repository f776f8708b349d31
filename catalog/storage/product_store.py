"""Durable product store over a synchronous key-value backend.

The whole collection lives under one namespaced key as a JSON array and is
rewritten wholesale on every save. Writes never raise: they log and return
``False`` so the in-memory catalog stays authoritative when persistence fails.
"""

import json
from typing import Any, Callable, Dict, List, Optional

from .backends import KeyValueBackend
from ..models.product import Product, decode_product_list
from ..utils.exceptions import StorageBackendError, StorageUnavailableError
from ..utils.identifiers import generate_product_id, utc_now_iso
from ..utils.logger import get_store_logger, get_error_logger

PROBE_KEY = "__storage_test__"


class ProductStore:
    """Single writer of record for the durable product collection."""

    def __init__(
        self,
        backend: KeyValueBackend,
        namespace: str = "ecommerce",
        id_factory: Callable[[], str] = generate_product_id,
        clock: Callable[[], str] = utc_now_iso,
    ):
        """
        Initialize the store.

        Args:
            backend: Key-value backend holding the raw JSON
            namespace: Prefix for every key this store writes
            id_factory: Generates ids for ``add_product``
            clock: Returns the current ISO-8601 timestamp
        """
        self.backend = backend
        self.namespace = namespace
        self.products_key = f"{namespace}_products"
        self.initialized_key = f"{namespace}_products_initialized"
        self.id_factory = id_factory
        self.clock = clock
        self.logger = get_store_logger()
        self.error_logger = get_error_logger()

    # ------------------------------------------------------------------
    # Generic key access
    # ------------------------------------------------------------------

    def exists(self) -> bool:
        """Probe the backend with a throwaway write before trusting it."""
        try:
            self.backend.write(PROBE_KEY, PROBE_KEY)
            self.backend.remove(PROBE_KEY)
            return True
        except StorageBackendError as e:
            self.logger.debug(f"Durable store unavailable: {e.message}")
            return False

    def get(self, key: str, default: Any = None) -> Any:
        """Read and decode *key*, returning *default* when absent or unreadable."""
        if not self.exists():
            return default

        try:
            raw = self.backend.read(key)
        except StorageBackendError as e:
            self.logger.error(f"Error reading '{key}' from store: {e.message}")
            return default

        if raw is None:
            return default

        try:
            return json.loads(raw)
        except ValueError as e:
            self.logger.error(f"Corrupt JSON under '{key}': {str(e)}")
            return default

    def set(self, key: str, value: Any) -> bool:
        """Encode and write *value*; returns False instead of raising."""
        if not self.exists():
            self.logger.warning(f"Skipping write of '{key}': store unavailable")
            return False

        try:
            self.backend.write(key, json.dumps(value))
            return True
        except (StorageBackendError, TypeError, ValueError) as e:
            self.error_logger.error(f"Error writing '{key}' to store: {str(e)}")
            return False

    def remove(self, key: str) -> bool:
        try:
            self.backend.remove(key)
            return True
        except StorageBackendError as e:
            self.error_logger.error(f"Error removing '{key}' from store: {e.message}")
            return False

    # ------------------------------------------------------------------
    # Collection access
    # ------------------------------------------------------------------

    def read_products(self) -> List[Product]:
        """
        Load the stored collection, propagating backend failures.

        Unlike ``get_products`` this raises ``StorageUnavailableError`` so a
        caller can tell a broken store apart from an empty one.

        Raises:
            StorageUnavailableError: If the backend cannot be read
        """
        try:
            raw = self.backend.read(self.products_key)
        except StorageBackendError as e:
            raise StorageUnavailableError(
                f"Durable store read failed: {e.message}", details=e.details
            )

        if raw is None:
            return []

        try:
            payload = json.loads(raw)
        except ValueError as e:
            self.logger.warning(f"Stored catalog is not valid JSON, ignoring it: {str(e)}")
            return []

        decoded = decode_product_list(payload)
        if not decoded.ok:
            self.logger.warning(f"Stored catalog rejected: {decoded.reason}")
            return []
        if decoded.skipped:
            self.logger.warning(f"Skipped {decoded.skipped} undecodable stored product(s)")
        return decoded.products

    def get_products(self) -> List[Product]:
        if not self.exists():
            return []
        try:
            return self.read_products()
        except StorageUnavailableError as e:
            self.logger.error(e.message)
            return []

    def save_products(self, products: List[Product]) -> bool:
        """Write the full collection and mark the catalog as initialized."""
        saved = self.set(self.products_key, [product.to_dict() for product in products])
        if saved:
            saved = self.set(self.initialized_key, True)
        if saved:
            self.logger.debug(f"Saved {len(products)} products")
        return saved

    def is_initialized(self) -> bool:
        """True once a collection has been saved and not cleared since."""
        return bool(self.get(self.initialized_key, False))

    def get_product(self, product_id: str) -> Optional[Product]:
        return next((p for p in self.get_products() if p.id == product_id), None)

    def product_exists(self, product_id: str) -> bool:
        return any(p.id == product_id for p in self.get_products())

    def get_products_count(self) -> int:
        return len(self.get_products())

    def add_product(self, draft: Dict[str, Any]) -> Product:
        """Create a product from *draft*, assigning id and timestamps."""
        products = self.get_products()
        now = self.clock()
        existing_ids = {p.id for p in products}

        product_id = self.id_factory()
        while product_id in existing_ids:
            product_id = self.id_factory()

        product = Product.from_dict(
            {**draft, "id": product_id, "created_at": now, "updated_at": now}
        )

        products.append(product)
        self.save_products(products)
        return product

    def update_product(self, product_id: str, updates: Dict[str, Any]) -> Optional[Product]:
        """Merge *updates* into a stored product; None when the id is unknown."""
        products = self.get_products()
        for index, product in enumerate(products):
            if product.id == product_id:
                updated = product.merged(updates, self.clock())
                products[index] = updated
                self.save_products(products)
                return updated
        return None

    def delete_product(self, product_id: str) -> bool:
        products = self.get_products()
        remaining = [p for p in products if p.id != product_id]
        if len(remaining) == len(products):
            return False
        return self.save_products(remaining)

    def clear_products(self) -> bool:
        """
        Empty the stored collection and drop the initialized marker.

        A cleared catalog counts as uninitialized, so the next session
        repopulates it from the remote or static source.
        """
        cleared = self.set(self.products_key, [])
        return self.remove(self.initialized_key) and cleared

    def import_products(self, products: List[Product]) -> bool:
        """Append products whose ids are not stored yet; stored records win."""
        existing = self.get_products()
        seen = {p.id for p in existing}
        merged = list(existing)
        for product in products:
            if product.id not in seen:
                merged.append(product)
                seen.add(product.id)
        added = len(merged) - len(existing)
        self.logger.info(f"Importing {added} new product(s), {len(products) - added} duplicate(s) skipped")
        return self.save_products(merged)

    def export_products(self) -> List[Product]:
        return self.get_products()

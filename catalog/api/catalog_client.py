"""Client for the remote products endpoint."""

from typing import List, Optional

import httpx

from .base_client import BaseClient
from ..models.product import Product, decode_product_list
from ..utils.config import get_config
from ..utils.exceptions import RemoteFetchError


class CatalogClient(BaseClient):
    """Fetches the full product collection; filtering happens locally."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        endpoint: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """Initialize the client from configuration unless overridden."""
        config = get_config()
        super().__init__(
            base_url=base_url or config.env.catalog_api_base_url,
            transport=transport
        )
        self.endpoint = endpoint or config.api.products_endpoint

    async def fetch_products(self) -> List[Product]:
        """
        GET the products endpoint and decode its ``data`` array.

        Returns:
            Decoded products (records that fail to decode are skipped)

        Raises:
            RemoteFetchError: On transport failure, non-2xx status, invalid
                JSON, or a ``data`` member that is not an array
        """
        try:
            response = await self.get(self.endpoint)
        except httpx.HTTPError as e:
            raise RemoteFetchError(f"HTTP error: {str(e)}", details={"error": str(e)})

        if not response.is_success:
            raise RemoteFetchError(
                f"Products request failed (HTTP {response.status_code})",
                details={"status_code": response.status_code, "response": response.text}
            )

        try:
            body = response.json()
        except ValueError as e:
            raise RemoteFetchError(f"Products response is not JSON: {str(e)}")

        payload = body.get("data") if isinstance(body, dict) else None
        decoded = decode_product_list(payload)
        if not decoded.ok:
            raise RemoteFetchError(
                "Products response has no data array",
                details={"reason": decoded.reason}
            )

        if decoded.skipped:
            self.logger.warning(f"Skipped {decoded.skipped} undecodable remote product(s)")

        self.logger.info(f"Fetched {len(decoded.products)} products from {self.endpoint}")
        return decoded.products

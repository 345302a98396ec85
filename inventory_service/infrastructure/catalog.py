from typing import Iterable, Optional
import httpx

from shared.core import get_logger

logger = get_logger(__name__)

PRODUCT_FIELDS = ("id", "name", "sku", "price")

class ProductCatalogClient:
    """Read-only lookups against the products service, used for display enrichment."""

    def __init__(self, base_url: str, timeout: float = 5.0, transport: Optional[httpx.BaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        # One pooled client for the life of the app; closed on shutdown
        self.client = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    def close(self) -> None:
        self.client.close()

    def _lookup(self, product_id: str) -> Optional[dict]:
        response = self.client.get(f"/products/{product_id}")
        if response.status_code != 200:
            return None
        data = response.json()
        return {field: data.get(field) for field in PRODUCT_FIELDS}

    def _log_failure(self, product_id: str, exc: httpx.HTTPError) -> None:
        logger.warning(
            "Product catalog lookup failed",
            extra={'extra_fields': {'product_id': product_id, 'error': type(exc).__name__}},
        )

    def fetch_product(self, product_id: str) -> Optional[dict]:
        """Product summary, or None when the catalog is unreachable or has no such product."""
        try:
            return self._lookup(product_id)
        except httpx.HTTPError as exc:
            self._log_failure(product_id, exc)
            return None

    def fetch_products(self, product_ids: Iterable[str]) -> dict:
        """
        Summaries keyed by product id for the products the catalog knows.

        The first transport failure ends the batch, so one page of records
        waits on at most one timeout.
        """
        found = {}
        for product_id in product_ids:
            try:
                product = self._lookup(product_id)
            except httpx.HTTPError as exc:
                self._log_failure(product_id, exc)
                break
            if product is not None:
                found[product_id] = product
        return found

# storefront/services/product_client.py
import requests
from requests import RequestException

from storefront.domain.errors import CatalogUnavailable, VariantNotFound
from storefront.domain.schemas import CatalogVariant
from storefront.utils.retry import http_retry
from storefront.utils.settings import PRODUCT_SERVICE_URL
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class ProductClient:
    """
    Klient katalogu (product-service): cena, stan i nazwy wariantu.
    Odczyty sa ponawiane, zmiany stanu nie (nie sa idempotentne).
    """

    def __init__(self, base_url: str | None = None, timeout: int = 2):
        self.base_url = (base_url or PRODUCT_SERVICE_URL).rstrip("/")
        self.timeout = timeout

    @http_retry()
    def _fetch_variant(self, variant_id: str) -> dict | None:
        url = f"{self.base_url}/variants/{variant_id}"
        logger.info(f"ProductClient GET {url}")

        resp = requests.get(url, timeout=self.timeout)
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return resp.json()

    def get_variant(self, variant_id: str) -> CatalogVariant | None:
        try:
            data = self._fetch_variant(variant_id)
        except RequestException as e:
            logger.error(f"Catalog unavailable while fetching variant {variant_id}: {e}")
            raise CatalogUnavailable(f"Catalog unavailable: {e}") from e

        if data is None:
            return None
        return CatalogVariant.model_validate(data)

    def decrement_stock(self, variant_id: str, quantity: int) -> bool:
        """Warunkowe zmniejszenie stanu; False gdy stan jest za maly."""
        resp = self._post_stock(variant_id, "decrement", quantity)
        if resp.status_code == 409:
            return False
        resp.raise_for_status()
        return True

    def increment_stock(self, variant_id: str, quantity: int) -> None:
        resp = self._post_stock(variant_id, "increment", quantity)
        resp.raise_for_status()

    def _post_stock(self, variant_id: str, action: str, quantity: int) -> requests.Response:
        url = f"{self.base_url}/variants/{variant_id}/stock/{action}"
        logger.info(f"ProductClient POST {url} quantity={quantity}")

        try:
            resp = requests.post(url, json={"quantity": quantity}, timeout=self.timeout)
        except RequestException as e:
            raise CatalogUnavailable(f"Catalog unavailable: {e}") from e

        if resp.status_code == 404:
            raise VariantNotFound(variant_id)
        return resp

"""Product catalog provider: cache, remote feed, hardcoded fallback."""

import logging
from typing import Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from .cache import CacheStore
from .config import USER_AGENT, Settings
from .exceptions import ParseError, StorefrontError, UpstreamFetchError, UpstreamTimeoutError
from .models import Catalog

logger = logging.getLogger(__name__)

CACHE_KEY = "products"

FALLBACK_CATALOG_DATA = {
    "product": [
        {
            "title": "Masker 3D Bordir",
            "slug": "masker-3d-bordir",
            "id": "product-masker-3d-bodir-3lapis-tasikmalaya",
            "category": "",
            "url": "/product/masker-3d-bodir-3lapis-tasikmalaya/",
            "sku": "masker3D",
            "price": "30.000",
            "discount": "24.000",
            "stok": "Tersedia",
            "description": "Masker 3D Bordir, 3 Lapisan kain, nyaman digunakan sehari-hari dengan desain yang trendy",
            "narrative": "",
            "image": "https://cf.shopee.co.id/file/86e632480a9b475919f2d3cf08caa4ef",
            "styles": [
                {"name": "hitam", "color": "#000000", "image_path": "https://cf.shopee.co.id/file/5194cfd90af282168d7351d1350c924c"},
                {"name": "navi", "color": "#4a5265", "image_path": "https://cf.shopee.co.id/file/6761d66ebb1f34b00a07583091ff62c6"},
                {"name": "marun", "color": "#ba2342", "image_path": "https://cf.shopee.co.id/file/d78fe06d94f7f92cfae0505266a78186"},
                {"name": "mustard", "color": "#efa22c", "image_path": "https://cf.shopee.co.id/file/24200fe4753c8a5cb75d1ef3e1458f08"},
            ],
        }
    ]
}


def fallback_catalog() -> Catalog:
    """Return a fresh copy of the built-in catalog."""
    return Catalog.model_validate(FALLBACK_CATALOG_DATA)


class CatalogProvider:
    """Resolves the current catalog. ``get_catalog`` never raises."""

    def __init__(self, cache: CacheStore, client: httpx.AsyncClient, settings: Settings) -> None:
        """
        Initialize the catalog provider.

        Args:
            cache: Durable key/value store; only this provider writes the catalog key
            client: Shared HTTP client used for the remote feed
            settings: Feed URL, TTL and timeout
        """
        self.cache = cache
        self.client = client
        self.settings = settings

    async def get_catalog(self) -> Catalog:
        """Return the cached catalog, else the remote feed, else the fallback."""
        cached = self._read_cache()
        if cached is not None:
            logger.debug("Catalog cache hit")
            return cached

        try:
            catalog = await self.fetch_remote()
        except StorefrontError as e:
            logger.warning(f"Failed to fetch products, using fallback: {e}")
            return fallback_catalog()

        try:
            self.cache.put(CACHE_KEY, catalog.to_payload(), self.settings.catalog_ttl)
        except OSError as e:
            logger.error(f"Failed to write catalog cache: {e}")
        return catalog

    def _read_cache(self) -> Optional[Catalog]:
        try:
            data = self.cache.get(CACHE_KEY)
        except OSError as e:
            logger.warning(f"Catalog cache unavailable: {e}")
            return None
        if data is None:
            return None
        try:
            return Catalog.model_validate(data)
        except PydanticValidationError:
            logger.warning("Cached catalog is invalid, refetching")
            return None

    async def fetch_remote(self) -> Catalog:
        """
        Fetch the catalog from the remote feed.

        Raises:
            UpstreamTimeoutError: The feed did not answer in time
            UpstreamFetchError: Network error or non-success status
            ParseError: The body is not a valid, non-empty catalog
        """
        url = self.settings.catalog_url
        logger.info(f"Fetching products from {url}")
        try:
            response = await self.client.get(
                url,
                headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
                timeout=self.settings.catalog_timeout,
            )
        except httpx.TimeoutException as e:
            raise UpstreamTimeoutError(f"Timed out fetching {url}") from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise UpstreamFetchError(f"Error fetching {url}: {e}") from e

        if not response.is_success:
            raise UpstreamFetchError(
                f"Catalog feed returned {response.status_code}", status_code=response.status_code
            )

        try:
            return Catalog.model_validate(response.json())
        except (ValueError, PydanticValidationError) as e:
            raise ParseError(f"Invalid catalog document from {url}: {e}") from e

"""Async client for the Google Books catalog API."""
import httpx
from typing import Optional, Dict, Any
import logging

from bookshelf.errors import CatalogError
from bookshelf.models import CatalogVolume
from bookshelf.parse import top_volume

logger = logging.getLogger(__name__)


class GoogleBooksCatalog:
    """Looks up book metadata by free-text query."""

    BASE_URL = "https://www.googleapis.com/books/v1/volumes"

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: int = 10,
        client: Optional[httpx.AsyncClient] = None
    ):
        """
        Initialize async client.

        Args:
            api_key: Optional API key
            timeout: Request timeout
            client: Pre-built HTTP client (shared with other collaborators)
        """
        self.api_key = api_key
        self.timeout = timeout
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def search(self, query: str) -> Dict[str, Any]:
        """
        Search the catalog.

        Args:
            query: Search query, URL-encoded by httpx

        Returns:
            Decoded JSON response

        Raises:
            CatalogError: on transport failure or non-200 status
        """
        params = {"q": query}
        if self.api_key:
            params["key"] = self.api_key

        try:
            logger.info(f"Catalog request: {query}")
            response = await self.client.get(self.BASE_URL, params=params)
        except httpx.HTTPError as e:
            raise CatalogError(f"Catalog request failed: {e}") from e

        if response.status_code != 200:
            logger.warning(f"Status {response.status_code} for query: {query}")
            raise CatalogError(
                f"Response returned {response.status_code}",
                status_code=response.status_code
            )

        try:
            body = response.json()
        except ValueError as e:
            raise CatalogError(f"Invalid JSON from catalog: {e}") from e

        if not isinstance(body, dict):
            raise CatalogError(f"Unexpected catalog response: {type(body).__name__}")
        return body

    async def find_volume(self, query: str) -> CatalogVolume:
        """Return the top result for ``query`` or raise CatalogNotFound."""
        response = await self.search(query)
        return top_volume(response, query)

    async def close(self):
        """Close the HTTP client if this catalog created it."""
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

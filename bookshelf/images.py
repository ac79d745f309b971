"""Cover image storage."""
import asyncio
import logging
import mimetypes
from pathlib import Path
from typing import Optional

import httpx

from bookshelf.errors import ImageError

logger = logging.getLogger(__name__)


class ImageStore:
    """Stores images in a bucket directory served under a public base URL."""

    def __init__(
        self,
        bucket_dir: str,
        public_base_url: str,
        timeout: int = 10,
        client: Optional[httpx.AsyncClient] = None
    ):
        """
        Args:
            bucket_dir: Directory that holds stored objects
            public_base_url: URL prefix the bucket directory is served from
            timeout: Download timeout in seconds
            client: Pre-built HTTP client (shared with other collaborators)
        """
        self.bucket_dir = Path(bucket_dir)
        self.public_base_url = public_base_url.rstrip("/")
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    def public_url(self, name: str) -> str:
        return f"{self.public_base_url}/{name}"

    def _object_path(self, name: str) -> Path:
        """Resolve ``name`` inside the bucket, rejecting names that escape it."""
        root = self.bucket_dir.resolve()
        path = (root / name).resolve()
        if path == root or root not in path.parents:
            raise ImageError(f"Object name {name!r} is outside the bucket")
        return path

    def _write(self, path: Path, data: bytes):
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            raise ImageError(f"Failed to store {path.name}: {e}") from e

    async def upload_image(self, data: bytes, name: str, content_type: Optional[str] = None) -> str:
        """
        Store image bytes under ``name`` and return their public URL.

        Raises:
            ImageError: if the name leaves the bucket or the object could not be written
        """
        if content_type and not content_type.startswith("image/"):
            raise ImageError(f"Refusing to store {content_type} as {name}")

        path = self._object_path(name)
        await asyncio.to_thread(self._write, path, data)

        logger.info(f"Stored image {name} ({len(data)} bytes)")
        return self.public_url(name)

    async def _fetch(self, source_url: str):
        try:
            response = await self.client.get(source_url)
        except httpx.HTTPError as e:
            raise ImageError(f"Failed to fetch {source_url}: {e}") from e

        if response.status_code != 200:
            raise ImageError(f"Fetching {source_url} returned {response.status_code}")

        content_type = response.headers.get("content-type")
        if not content_type:
            content_type = mimetypes.guess_type(source_url)[0]
        return response.content, content_type

    async def download_and_upload_image(self, source_url: str, destination_name: str) -> Optional[str]:
        """
        Copy a remote image into the bucket.

        Args:
            source_url: Remote image URL
            destination_name: Object name in the bucket

        Returns:
            Public URL of the stored copy, or None if any part failed
        """
        try:
            data, content_type = await self._fetch(source_url)
            return await self.upload_image(data, destination_name, content_type)
        except ImageError as e:
            logger.warning(f"Image copy failed for {destination_name}: {e}")
            return None

    async def close(self):
        if self._owns_client:
            await self.client.aclose()

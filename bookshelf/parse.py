"""Parse Google Books API responses and merge them into book records."""
import logging
from typing import Dict, Any, List, Optional

from bookshelf.errors import CatalogNotFound
from bookshelf.models import Book, CatalogVolume

logger = logging.getLogger(__name__)


def parse_volume(item: Any) -> Optional[CatalogVolume]:
    """
    Parse a single volume item from Google Books API.

    Args:
        item: Single item from Google Books API response

    Returns:
        CatalogVolume or None if the item is not an object with volumeInfo
    """
    if not isinstance(item, dict):
        logger.warning(f"Skipping malformed catalog item: {item!r}")
        return None

    volume_info = item.get("volumeInfo")
    if not isinstance(volume_info, dict):
        logger.warning(f"Skipping catalog item without volumeInfo: {item.get('id')}")
        return None

    authors = volume_info.get("authors")
    if not isinstance(authors, list):
        authors = []

    image_links = volume_info.get("imageLinks")
    if not isinstance(image_links, dict):
        image_links = {}

    return CatalogVolume(
        title=volume_info.get("title") or "",
        authors=[str(a) for a in authors],
        published_date=volume_info.get("publishedDate"),
        description=volume_info.get("description"),
        image_links={k: v for k, v in image_links.items() if isinstance(v, str)},
    )


def parse_volumes_response(response_json: Any) -> List[CatalogVolume]:
    """
    Parse full Google Books API response.

    Args:
        response_json: Complete API response JSON

    Returns:
        List of volumes (empty if no usable items found)
    """
    if not isinstance(response_json, dict):
        logger.warning(f"Ignoring non-object catalog response: {type(response_json).__name__}")
        return []

    items = response_json.get("items")
    if not isinstance(items, list):
        return []

    volumes = []

    for item in items:
        volume = parse_volume(item)
        if volume:
            volumes.append(volume)

    return volumes


def top_volume(response_json: Dict[str, Any], query: str) -> CatalogVolume:
    """Return the first result, raising CatalogNotFound when there is none."""
    volumes = parse_volumes_response(response_json)
    if not volumes:
        raise CatalogNotFound(query)
    return volumes[0]


def merge_volume(book: Book, volume: CatalogVolume) -> Book:
    """
    Copy catalog metadata onto a book in place.

    Title, author and published date always come from the catalog. The
    description is only taken from the catalog when the book has none.

    Args:
        book: Book loaded from the store
        volume: Top catalog result for the book's title

    Returns:
        The same book object
    """
    book.title = volume.title
    book.author = volume.authors_str
    book.published_date = volume.published_date
    book.description = book.description or volume.description
    return book

"""Book enrichment pipeline.

Each queued ``processBook`` message runs ``run_pipeline`` once:

    load -> search catalog -> merge -> cover image (optional) -> persist

Steps run strictly in order. Any failure before persisting aborts the run.
The cover image step never fails the run; the book is saved without an
image instead.
"""
import asyncio
import logging
from typing import Optional

from bookshelf.errors import BookshelfError
from bookshelf.models import Book, CatalogVolume, WorkerState
from bookshelf.parse import merge_volume

logger = logging.getLogger(__name__)

IMAGE_EXTENSION = ".jpg"


async def attach_cover_image(book: Book, volume: CatalogVolume, images) -> Optional[str]:
    """
    Copy the catalog thumbnail into image storage when the book lacks one.

    Args:
        book: Merged book record
        volume: Catalog result the book was merged from
        images: ImageStore-like collaborator

    Returns:
        The public URL set on the book, or None if nothing was stored
    """
    if book.image_url or not volume.thumbnail:
        return None

    public_url = await images.download_and_upload_image(
        volume.thumbnail, f"{book.id}{IMAGE_EXTENSION}"
    )
    if public_url:
        book.image_url = public_url
    return public_url


def _log_persist_result(book_id: str, task: asyncio.Task):
    if task.cancelled():
        logger.warning(f"Saving book {book_id} was cancelled")
        return
    exc = task.exception()
    if exc is not None:
        logger.error(f"Failed to save book {book_id}: {exc}")


async def process_book(book_id: str, *, model, catalog, images, state: WorkerState) -> Book:
    """
    Enrich one stored book with catalog metadata.

    The final write is a partial update and is not awaited; the counter on
    ``state`` is bumped as soon as the write is issued.

    Raises:
        BookNotFound, BackendError: loading the book failed
        CatalogError, CatalogNotFound: the catalog search failed
    """
    book = await model.read(book_id)

    volume = await catalog.find_volume(book.title)
    merge_volume(book, volume)

    await attach_cover_image(book, volume, images)

    task = asyncio.create_task(model.update(book.id, book, partial=True))
    task.add_done_callback(lambda t: _log_persist_result(book.id, t))
    state.track(task)
    state.record_processed()

    return book


async def run_pipeline(book_id: str, *, model, catalog, images, state: WorkerState) -> Optional[Book]:
    """Run ``process_book`` and log the outcome. Returns None on failure."""
    try:
        book = await process_book(
            book_id, model=model, catalog=catalog, images=images, state=state
        )
    except BookshelfError as e:
        logger.error(f"Error occurred processing book {book_id}: {e}")
        return None

    logger.info(f"Updated book {book_id}")
    return book

"""Worker process: queue subscription plus health server."""
import asyncio
import logging
from functools import partial

import httpx
import uvicorn

from bookshelf.background import dispatch, get_queue
from bookshelf.catalog import GoogleBooksCatalog
from bookshelf.config import Config
from bookshelf.health import create_app
from bookshelf.images import ImageStore
from bookshelf.model import get_model
from bookshelf.models import WorkerState
from bookshelf.pipeline import run_pipeline

logger = logging.getLogger(__name__)


def _log_unexpected(book_id: str, task: asyncio.Task):
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(f"Unexpected error processing book {book_id}", exc_info=exc)


class Worker:
    """Consumes work messages and runs one enrichment pipeline per book."""

    def __init__(self, queue, model, catalog, images, state: WorkerState = None):
        self.queue = queue
        self.model = model
        self.catalog = catalog
        self.images = images
        self.state = state or WorkerState()
        self._in_flight = set()

    def process(self, book_id: str):
        return run_pipeline(
            book_id,
            model=self.model,
            catalog=self.catalog,
            images=self.images,
            state=self.state,
        )

    def handle(self, message):
        """Start a pipeline task for ``message``; returns the task or None."""
        pending = dispatch(message, self.process)
        if pending is None:
            return None
        task = asyncio.create_task(pending)
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        task.add_done_callback(partial(_log_unexpected, message.book_id))
        return task

    async def subscribe_forever(self):
        """Handle messages until the subscription ends or is cancelled."""
        async for message in self.queue.subscribe():
            self.handle(message)

    async def drain(self):
        """Wait for running pipelines and their pending writes."""
        while self._in_flight or self.state.pending_writes:
            await asyncio.gather(
                *self._in_flight, *self.state.pending_writes, return_exceptions=True
            )


async def serve(config: Config):
    """Run the worker until interrupted."""
    state = WorkerState()
    queue = get_queue(config)
    model = get_model(config)

    async with httpx.AsyncClient(timeout=config.DEFAULT_TIMEOUT, follow_redirects=True) as client:
        catalog = GoogleBooksCatalog(
            api_key=config.GOOGLE_BOOKS_API_KEY, timeout=config.DEFAULT_TIMEOUT, client=client
        )
        images = ImageStore(config.IMAGE_BUCKET_DIR, config.IMAGE_PUBLIC_URL, client=client)
        worker = Worker(queue, model, catalog, images, state)

        server = uvicorn.Server(uvicorn.Config(
            create_app(state, image_dir=config.IMAGE_BUCKET_DIR),
            host=config.HOST,
            port=config.PORT,
            log_level=config.LOG_LEVEL.lower(),
        ))
        logger.info(f"Worker server listening at http://{config.HOST}:{config.PORT}")

        subscription = asyncio.create_task(worker.subscribe_forever())
        try:
            await server.serve()
        finally:
            subscription.cancel()
            await asyncio.gather(subscription, return_exceptions=True)
            await worker.drain()
            await queue.close()
            await model.close()


def main(config: Config = None):
    config = config or Config()
    asyncio.run(serve(config))

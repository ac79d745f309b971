"""Work queue used to hand books from producers to the worker."""
import asyncio
import json
import logging
from typing import AsyncIterator, Awaitable, Callable, Optional

from redis.asyncio import Redis

from bookshelf.models import PROCESS_BOOK, WorkMessage

logger = logging.getLogger(__name__)


def decode_message(raw) -> Optional[WorkMessage]:
    """Decode a JSON payload; returns None for anything malformed."""
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        logger.warning(f"Discarding malformed message {raw!r}: {e}")
        return None
    if not isinstance(data, dict):
        logger.warning(f"Discarding non-object message {raw!r}")
        return None
    return WorkMessage.from_dict(data)


class RedisWorkQueue:
    """Queue backed by a Redis list (RPUSH to publish, BLPOP to consume)."""

    def __init__(self, redis_url: str, key: str, poll_timeout: int = 5):
        self.key = key
        self.poll_timeout = poll_timeout
        self.redis = Redis.from_url(redis_url, decode_responses=True, encoding="utf-8")

    async def publish(self, message: WorkMessage):
        await self.redis.rpush(self.key, json.dumps(message.to_dict()))
        logger.info(f"Published {message.action} for book {message.book_id}")

    async def subscribe(self) -> AsyncIterator[WorkMessage]:
        logger.info(f"Subscribed to {self.key}")
        while True:
            item = await self.redis.blpop([self.key], timeout=self.poll_timeout)
            if item is None:
                continue
            _, raw = item
            message = decode_message(raw)
            if message is not None:
                yield message

    async def close(self):
        await self.redis.aclose()


class MemoryWorkQueue:
    """In-process queue for development and tests."""

    def __init__(self):
        self._queue: asyncio.Queue = asyncio.Queue()

    async def publish(self, message: WorkMessage):
        await self._queue.put(json.dumps(message.to_dict()))

    async def subscribe(self) -> AsyncIterator[WorkMessage]:
        while True:
            raw = await self._queue.get()
            message = decode_message(raw)
            if message is not None:
                yield message

    def qsize(self) -> int:
        return self._queue.qsize()

    async def close(self):
        pass


def get_queue(config):
    """Build the queue named by ``config.QUEUE_BACKEND``."""
    if config.QUEUE_BACKEND == "redis":
        return RedisWorkQueue(config.REDIS_URL, config.QUEUE_KEY)
    if config.QUEUE_BACKEND == "memory":
        return MemoryWorkQueue()
    raise ValueError(f"Unknown queue backend: {config.QUEUE_BACKEND}")


async def queue_book(queue, book_id: str):
    """Ask the worker to process ``book_id``."""
    await queue.publish(WorkMessage(action=PROCESS_BOOK, book_id=book_id))


def dispatch(message: WorkMessage, handler: Callable[[str], Awaitable]) -> Optional[Awaitable]:
    """
    Route a message to ``handler``.

    Args:
        message: Decoded work message
        handler: Coroutine function taking a book id

    Returns:
        The handler's awaitable, or None if the message was discarded
    """
    if message.action == PROCESS_BOOK and message.book_id:
        logger.info(f"Received request to process book {message.book_id}")
        return handler(message.book_id)

    logger.warning(f"Unknown request {message.to_dict()}")
    return None

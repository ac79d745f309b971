"""Persistence backends for book records."""
import asyncio
import copy
import logging
import uuid
from dataclasses import fields
from typing import Optional, List, Dict, Tuple

import psycopg2
from psycopg2 import pool

from bookshelf.errors import BackendError, BookNotFound
from bookshelf.models import Book

logger = logging.getLogger(__name__)

# Book attribute -> column name
COLUMNS = {
    "title": "title",
    "author": "author",
    "published_date": "published_date",
    "description": "description",
    "image_url": "image_url",
    "created_by": "created_by",
    "created_by_id": "created_by_id",
}


def changed_fields(book: Book) -> Dict[str, object]:
    """Non-identifier fields of ``book`` that carry a value."""
    return {
        f.name: getattr(book, f.name)
        for f in fields(book)
        if f.name != "id" and getattr(book, f.name) is not None
    }


def _parse_cursor(cursor: Optional[str]) -> int:
    try:
        return max(int(cursor), 0) if cursor else 0
    except ValueError:
        return 0


class MemoryModel:
    """Dict-backed store for development and tests."""

    def __init__(self):
        self._books: Dict[str, Book] = {}

    async def read(self, book_id: str) -> Book:
        book = self._books.get(book_id)
        if book is None:
            raise BookNotFound(book_id)
        return copy.copy(book)

    async def create(self, book: Book) -> Book:
        stored = copy.copy(book)
        stored.id = stored.id or uuid.uuid4().hex
        self._books[stored.id] = stored
        return copy.copy(stored)

    async def update(self, book_id: str, book: Book, partial: bool = False) -> Book:
        if book_id not in self._books:
            raise BookNotFound(book_id)

        if partial:
            stored = self._books[book_id]
            for name, value in changed_fields(book).items():
                setattr(stored, name, value)
        else:
            stored = copy.copy(book)
            stored.id = book_id
            self._books[book_id] = stored

        return copy.copy(stored)

    async def delete(self, book_id: str) -> None:
        self._books.pop(book_id, None)

    async def list(self, limit: int = 10, cursor: Optional[str] = None) -> Tuple[List[Book], Optional[str]]:
        offset = _parse_cursor(cursor)
        ordered = sorted(self._books.values(), key=lambda b: b.title)
        page = [copy.copy(b) for b in ordered[offset:offset + limit]]
        next_cursor = str(offset + limit) if offset + limit < len(ordered) else None
        return page, next_cursor

    async def close(self):
        pass


class PostgresModel:
    """PostgreSQL store with connection pooling.

    psycopg2 is blocking, so every public coroutine hands its work to a
    thread with ``asyncio.to_thread``.
    """

    SELECT = """
        SELECT id, title, author, published_date, description,
               image_url, created_by, created_by_id
        FROM books
    """

    def __init__(self, connection_string: str, min_conn: int = 1, max_conn: int = 10):
        """
        Initialize database connection pool.

        Args:
            connection_string: PostgreSQL connection string
            min_conn: Minimum connections in pool
            max_conn: Maximum connections in pool
        """
        try:
            self.connection_pool = psycopg2.pool.SimpleConnectionPool(
                min_conn,
                max_conn,
                connection_string
            )
        except psycopg2.Error as e:
            raise BackendError(f"Failed to create connection pool: {e}") from e

        logger.info("Database connection pool created successfully")

    def _run(self, statement: str, params: tuple = (), fetch: str = None):
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute(statement, params)
                if fetch == "one":
                    result = cur.fetchone()
                elif fetch == "all":
                    result = cur.fetchall()
                else:
                    result = cur.rowcount
            conn.commit()
            return result
        except psycopg2.Error as e:
            conn.rollback()
            logger.error(f"Database error: {e}")
            raise BackendError(str(e)) from e
        finally:
            self.connection_pool.putconn(conn)

    def init_schema(self):
        """Create the books table if it doesn't exist."""
        self._run("""
            CREATE TABLE IF NOT EXISTS books (
                id VARCHAR(255) PRIMARY KEY,
                title TEXT NOT NULL DEFAULT '',
                author TEXT NOT NULL DEFAULT '',
                published_date VARCHAR(50),
                description TEXT,
                image_url TEXT,
                created_by TEXT,
                created_by_id VARCHAR(255),
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)
        self._run("CREATE INDEX IF NOT EXISTS idx_books_title ON books (title)")
        logger.info("Database schema initialized successfully")

    def _read(self, book_id: str) -> Book:
        row = self._run(self.SELECT + " WHERE id = %s", (book_id,), fetch="one")
        if not row:
            raise BookNotFound(book_id)
        return Book(*row)

    def _create(self, book: Book) -> Book:
        book = copy.copy(book)
        book.id = book.id or uuid.uuid4().hex
        self._run("""
            INSERT INTO books (
                id, title, author, published_date, description,
                image_url, created_by, created_by_id
            ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
        """, (
            book.id, book.title, book.author, book.published_date,
            book.description, book.image_url, book.created_by, book.created_by_id
        ))
        return book

    def _update(self, book_id: str, book: Book, partial: bool) -> Book:
        if partial:
            values = changed_fields(book)
        else:
            values = {name: getattr(book, name) for name in COLUMNS}

        if values:
            assignments = ", ".join(f"{COLUMNS[name]} = %s" for name in values)
            updated = self._run(
                f"UPDATE books SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE id = %s",
                tuple(values.values()) + (book_id,)
            )
            if updated == 0:
                raise BookNotFound(book_id)

        return self._read(book_id)

    def _list(self, limit: int, cursor: Optional[str]):
        offset = _parse_cursor(cursor)
        rows = self._run(
            self.SELECT + " ORDER BY title LIMIT %s OFFSET %s",
            (limit + 1, offset),
            fetch="all"
        )
        books = [Book(*row) for row in rows[:limit]]
        next_cursor = str(offset + limit) if len(rows) > limit else None
        return books, next_cursor

    async def read(self, book_id: str) -> Book:
        return await asyncio.to_thread(self._read, book_id)

    async def create(self, book: Book) -> Book:
        return await asyncio.to_thread(self._create, book)

    async def update(self, book_id: str, book: Book, partial: bool = False) -> Book:
        return await asyncio.to_thread(self._update, book_id, book, partial)

    async def delete(self, book_id: str) -> None:
        await asyncio.to_thread(self._run, "DELETE FROM books WHERE id = %s", (book_id,))

    async def list(self, limit: int = 10, cursor: Optional[str] = None):
        return await asyncio.to_thread(self._list, limit, cursor)

    async def close(self):
        """Close all connections in the pool."""
        if self.connection_pool:
            self.connection_pool.closeall()
            logger.info("Database connection pool closed")


def get_model(config):
    """Build the backend named by ``config.DATA_BACKEND``."""
    backend = config.DATA_BACKEND
    if backend == "memory":
        return MemoryModel()
    if backend == "postgres":
        return PostgresModel(config.DATABASE_URL)
    raise ValueError(f"Unknown data backend: {backend}")

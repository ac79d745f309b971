"""Error types raised by the enrichment worker."""


class BookshelfError(Exception):
    """Base class for worker errors."""


class BookNotFound(BookshelfError):
    """The requested book does not exist in the store."""

    def __init__(self, book_id: str):
        super().__init__(f"Book {book_id} not found")
        self.book_id = book_id


class BackendError(BookshelfError):
    """The persistence backend could not be reached or failed."""


class CatalogError(BookshelfError):
    """The catalog search call failed or returned a non-200 status."""

    def __init__(self, message: str, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class CatalogNotFound(CatalogError):
    """The catalog returned no results for the query."""

    def __init__(self, query: str):
        super().__init__(f"Not found: {query!r}")
        self.query = query


class ImageError(BookshelfError):
    """Fetching or storing a cover image failed."""

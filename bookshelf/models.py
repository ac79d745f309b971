"""Data models for books, work messages and worker state."""
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any, Set

PROCESS_BOOK = "processBook"


@dataclass
class Book:
    """Book record as kept by the persistence backend."""
    id: Optional[str]
    title: str = ""
    author: str = ""
    published_date: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    created_by: Optional[str] = None
    created_by_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the store's field names."""
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "publishedDate": self.published_date,
            "description": self.description,
            "imageUrl": self.image_url,
            "createdBy": self.created_by,
            "createdById": self.created_by_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Book":
        """Build a book from a stored record, ignoring unknown keys."""
        return cls(
            id=data.get("id"),
            title=data.get("title") or "",
            author=data.get("author") or "",
            published_date=data.get("publishedDate"),
            description=data.get("description"),
            image_url=data.get("imageUrl"),
            created_by=data.get("createdBy"),
            created_by_id=data.get("createdById"),
        )


@dataclass
class WorkMessage:
    """A queued request for the worker."""
    action: str
    book_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkMessage":
        return cls(action=data.get("action", ""), book_id=data.get("bookId"))

    def to_dict(self) -> Dict[str, Any]:
        return {"action": self.action, "bookId": self.book_id}


@dataclass
class CatalogVolume:
    """Normalized catalog search result."""
    title: str
    authors: List[str] = field(default_factory=list)
    published_date: Optional[str] = None
    description: Optional[str] = None
    image_links: Dict[str, str] = field(default_factory=dict)

    @property
    def authors_str(self) -> str:
        """Format authors as comma-separated string."""
        return ", ".join(self.authors)

    @property
    def thumbnail(self) -> Optional[str]:
        """Best available cover image (prefer higher quality)."""
        return self.image_links.get("thumbnail") or self.image_links.get("smallThumbnail")


@dataclass
class WorkerState:
    """Mutable state owned by one worker process."""
    books_processed: int = 0
    pending_writes: Set[Any] = field(default_factory=set)

    def record_processed(self) -> int:
        self.books_processed += 1
        return self.books_processed

    def track(self, task) -> None:
        """Hold a reference to an unawaited task until it finishes."""
        self.pending_writes.add(task)
        task.add_done_callback(self.pending_writes.discard)

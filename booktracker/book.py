from __future__ import annotations

import uuid
from enum import Enum
from typing import Dict, List, Optional, Type

from booktracker.genre import Genre


class BookStatus(Enum):
    """Reading status of a book. The member name is what gets persisted."""

    TO_READ = "To read"
    READING = "Reading"
    READ = "Read"

    @property
    def label(self) -> str:
        return self.value

    @classmethod
    def parse(cls, raw: "BookStatus | str | None") -> "BookStatus":
        """Map a stored status name to a member, falling back to TO_READ."""
        if isinstance(raw, cls):
            return raw
        if raw is None:
            return cls.TO_READ
        try:
            return cls[raw.strip()]
        except KeyError:
            return cls.TO_READ


class BookKind(Enum):
    """Discriminator between the physical and digital variants."""

    PHYSICAL = "PHYSICAL"
    EBOOK = "EBOOK"

    @classmethod
    def parse(cls, raw: str | None) -> "BookKind":
        # Anything other than an explicit EBOOK marker is a physical book
        if raw is not None and raw.strip() == cls.EBOOK.value:
            return cls.EBOOK
        return cls.PHYSICAL


class Book:
    """A book on the reading list. Use PhysicalBook or Ebook, not this class directly."""

    KIND: BookKind = BookKind.PHYSICAL

    def __init__(self, title: str, author: str, total_pages: int, publisher: str = "",
                 description: str = "", genre: Optional[Genre] = None,
                 # Stored state, only passed when rebuilding a saved book
                 id: str | None = None, status: BookStatus | str | None = None, rating: int = 0,
                 current_page: int = 0, notes: list | None = None, quotes: list | None = None) -> None:
        self.id = id if id is not None else str(uuid.uuid4())
        self.title = title
        self.author = author
        self.total_pages = total_pages
        self.publisher = publisher
        self.description = description if description is not None else ""
        self.genre = genre

        # Reading state
        self.status = BookStatus.parse(status)
        self.rating = rating
        self.current_page = current_page
        self.notes: List[str] = list(notes) if notes is not None else []
        self.quotes: List[str] = list(quotes) if quotes is not None else []

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.title} / {self.author} / {self.total_pages} pages"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, title={self.title!r})"

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, Book):
            return NotImplemented
        return type(self) is type(other) and self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def kind(self) -> BookKind:
        return self.KIND

    @property
    def progress(self) -> float:
        """Fraction of the book already read, between 0.0 and 1.0."""
        if not self.total_pages or self.total_pages <= 0:
            return 0.0
        return max(0.0, min(1.0, self.current_page / self.total_pages))

    def add_quote(self, quote: str) -> None:
        self.quotes.append(quote)

    def add_note(self, note: str) -> None:
        self.notes.append(note)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "publisher": self.publisher,
            "description": self.description,
            "total_pages": self.total_pages,
            "current_page": self.current_page,
            "rating": self.rating,
            "status": self.status.name,
            # Genre is stored by reference
            "genre_id": self.genre.id if self.genre is not None else None,
            "genre_name": self.genre.name if self.genre is not None else None,
            "notes": list(self.notes),
            "quotes": list(self.quotes),
        }

    @staticmethod
    def create(kind: BookKind | str, **fields) -> "Book":
        """Build the concrete book class matching ``kind``."""
        if not isinstance(kind, BookKind):
            kind = BookKind.parse(kind)
        book_cls = BOOK_TYPES[kind]
        if book_cls is not Ebook:
            fields.pop("location", None)
        return book_cls(**fields)


class PhysicalBook(Book):
    """A printed copy."""

    KIND = BookKind.PHYSICAL


class Ebook(Book):
    """A digital copy, with where to find it (file path, URL or platform)."""

    KIND = BookKind.EBOOK

    def __init__(self, title: str, author: str, total_pages: int, publisher: str = "",
                 description: str = "", genre: Optional[Genre] = None, location: str = "",
                 **stored) -> None:
        super().__init__(title, author, total_pages, publisher, description, genre, **stored)
        self.location = location if location is not None else ""

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["location"] = self.location
        return data


BOOK_TYPES: Dict[BookKind, Type[Book]] = {
    BookKind.PHYSICAL: PhysicalBook,
    BookKind.EBOOK: Ebook,
}

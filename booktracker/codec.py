"""Tagged plain-text record format for books and genres.

Genres are stored one per line::

    GENRE: <id> ; <name>

Books are stored as blocks of tagged lines, one block per book, separated by a
blank line. Free text (description, quotes, notes) lives between ``*_START``
and ``*_END`` marker lines and may span any number of lines. Everything in
here works on strings; reading and writing files is done by ``storage``.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional

from booktracker.book import Book, BookKind, BookStatus, Ebook
from booktracker.genre import Genre

logger = logging.getLogger(__name__)

SEPARATOR = " ; "
NULL_GENRE_ID = "NULL_GENRE_ID"

TAG_GENRE = "GENRE: "

TAG_BOOK_START = "BOOK_START: "
TAG_BOOK_END = "BOOK_END"

# Single-line fields
TAG_ID = "ID: "
TAG_TITLE = "TITLE: "
TAG_AUTHOR = "AUTHOR: "
TAG_PUBLISHER = "PUBLISHER: "
TAG_TOTAL_PAGES = "TOTAL_PAGES: "
TAG_CURRENT_PAGE = "CURRENT_PAGE: "
TAG_RATING = "RATING: "
TAG_STATUS = "STATUS: "
TAG_GENRE_ID = "GENRE_ID: "
TAG_LOCAL = "LOCAL: "

# Multi-line text blocks
TAG_DESCRIPTION_START = "DESCRIPTION_START"
TAG_DESCRIPTION_END = "DESCRIPTION_END"
TAG_QUOTE_START = "QUOTE_START"
TAG_QUOTE_END = "QUOTE_END"
TAG_NOTE_START = "NOTE_START"
TAG_NOTE_END = "NOTE_END"

_TEXT_FIELDS = (
    (TAG_ID, "id"),
    (TAG_TITLE, "title"),
    (TAG_AUTHOR, "author"),
    (TAG_PUBLISHER, "publisher"),
    (TAG_LOCAL, "location"),
)

_INTEGER = re.compile(r"[+-]?[0-9]+")

_INT_FIELDS = (
    (TAG_TOTAL_PAGES, "total_pages"),
    (TAG_CURRENT_PAGE, "current_page"),
    (TAG_RATING, "rating"),
)


class ParseError(ValueError):
    """A book record could not be decoded. The whole load is aborted."""

    def __init__(self, message: str, line_number: int, line: str) -> None:
        super().__init__(f"line {line_number}: {message} ({line!r})")
        self.line_number = line_number
        self.line = line


class ReadState(Enum):
    OUTSIDE_BLOCK = "outside"
    IN_DESCRIPTION = "description"
    IN_QUOTE = "quote"
    IN_NOTE = "note"


_BLOCK_STARTS = {
    TAG_DESCRIPTION_START: ReadState.IN_DESCRIPTION,
    TAG_QUOTE_START: ReadState.IN_QUOTE,
    TAG_NOTE_START: ReadState.IN_NOTE,
}

_BLOCK_ENDS = {
    ReadState.IN_DESCRIPTION: TAG_DESCRIPTION_END,
    ReadState.IN_QUOTE: TAG_QUOTE_END,
    ReadState.IN_NOTE: TAG_NOTE_END,
}


@dataclass
class BookRecordBuilder:
    """Collects the fields of one book record as they are read, in any order."""

    kind: BookKind = BookKind.PHYSICAL
    id: Optional[str] = None
    title: str = ""
    author: str = ""
    publisher: str = ""
    location: str = ""
    total_pages: int = 0
    current_page: int = 0
    rating: int = 0
    status: BookStatus = BookStatus.TO_READ
    genre: Optional[Genre] = None
    description: str = ""
    notes: List[str] = field(default_factory=list)
    quotes: List[str] = field(default_factory=list)

    def commit_block(self, state: ReadState, text: str) -> None:
        if state is ReadState.IN_DESCRIPTION:
            self.description = text
        elif state is ReadState.IN_QUOTE:
            self.quotes.append(text)
        elif state is ReadState.IN_NOTE:
            self.notes.append(text)

    def build(self) -> Book:
        return Book.create(
            self.kind,
            id=self.id,
            title=self.title,
            author=self.author,
            total_pages=self.total_pages,
            publisher=self.publisher,
            description=self.description,
            genre=self.genre,
            status=self.status,
            rating=self.rating,
            current_page=self.current_page,
            notes=self.notes,
            quotes=self.quotes,
            location=self.location,
        )


def _split_lines(text: str) -> List[str]:
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def _text(value) -> str:
    return "" if value is None else str(value)


# ------------------------- Genres ------------------------- #
def encode_genres(genres: Iterable[Genre]) -> str:
    return "".join(f"{TAG_GENRE}{genre.id}{SEPARATOR}{_text(genre.name)}\n" for genre in genres)


def decode_genres(text: str) -> List[Genre]:
    """Parse genre lines, silently skipping anything that is not a well-formed record."""
    genres: List[Genre] = []
    for line in _split_lines(text):
        if not line.startswith(TAG_GENRE):
            continue
        parts = line[len(TAG_GENRE):].split(SEPARATOR)
        if len(parts) != 2:
            continue
        genres.append(Genre(name=parts[1], id=parts[0]))
    return genres


# ------------------------- Books ------------------------- #
def encode_books(books: Iterable[Book]) -> str:
    lines: List[str] = []
    for book in books:
        lines.append(f"{TAG_BOOK_START}{book.kind.value}")
        lines.append(f"{TAG_ID}{book.id}")
        lines.append(f"{TAG_TITLE}{_text(book.title)}")
        lines.append(f"{TAG_AUTHOR}{_text(book.author)}")
        lines.append(f"{TAG_PUBLISHER}{_text(book.publisher)}")
        lines.append(f"{TAG_TOTAL_PAGES}{book.total_pages}")
        lines.append(f"{TAG_CURRENT_PAGE}{book.current_page}")
        lines.append(f"{TAG_RATING}{book.rating}")
        lines.append(f"{TAG_STATUS}{book.status.name}")
        lines.append(f"{TAG_GENRE_ID}{book.genre.id if book.genre is not None else NULL_GENRE_ID}")
        if isinstance(book, Ebook):
            lines.append(f"{TAG_LOCAL}{_text(book.location)}")

        lines += [TAG_DESCRIPTION_START, _text(book.description), TAG_DESCRIPTION_END]
        for quote in book.quotes:
            lines += [TAG_QUOTE_START, quote, TAG_QUOTE_END]
        for note in book.notes:
            lines += [TAG_NOTE_START, note, TAG_NOTE_END]

        lines.append(TAG_BOOK_END)
        lines.append("")
    return "".join(f"{line}\n" for line in lines)


def decode_books(text: str, genres: Iterable[Genre]) -> List[Book]:
    """Parse book records, resolving each GENRE_ID against ``genres``.

    Raises ParseError when a numeric field is malformed; nothing decoded up to
    that point is returned. A record still open at the end of the input is
    dropped.
    """
    genres_by_id: Dict[str, Genre] = {}
    for genre in genres:
        genres_by_id.setdefault(genre.id, genre)

    books: List[Book] = []
    builder: Optional[BookRecordBuilder] = None
    state = ReadState.OUTSIDE_BLOCK
    block: List[str] = []

    for line_number, line in enumerate(_split_lines(text), start=1):
        if state is not ReadState.OUTSIDE_BLOCK:
            if line == _BLOCK_ENDS[state]:
                if builder is not None:
                    builder.commit_block(state, "\n".join(block))
                state = ReadState.OUTSIDE_BLOCK
            else:
                block.append(line)
            continue

        if line.startswith(TAG_BOOK_START):
            if builder is not None:
                logger.warning(f"Book record {builder.id!r} has no {TAG_BOOK_END}, dropping it (line {line_number})")
            builder = BookRecordBuilder(kind=BookKind.parse(line[len(TAG_BOOK_START):]))
        elif line in _BLOCK_STARTS:
            state = _BLOCK_STARTS[line]
            block = []
        elif line == TAG_BOOK_END:
            if builder is not None:
                books.append(builder.build())
                builder = None
        elif builder is not None:
            _read_field(builder, line, line_number, genres_by_id)

    if builder is not None:
        logger.warning(f"Input ended inside book record {builder.id!r}, dropping it")
    return books


def _read_field(builder: BookRecordBuilder, line: str, line_number: int, genres_by_id: Dict[str, Genre]) -> None:
    for tag, attr in _TEXT_FIELDS:
        if line.startswith(tag):
            setattr(builder, attr, line[len(tag):])
            return

    for tag, attr in _INT_FIELDS:
        if line.startswith(tag):
            raw = line[len(tag):]
            if not _INTEGER.fullmatch(raw):
                raise ParseError(f"{tag.strip()} is not an integer", line_number, line)
            setattr(builder, attr, int(raw))
            return

    if line.startswith(TAG_STATUS):
        builder.status = BookStatus.parse(line[len(TAG_STATUS):])
    elif line.startswith(TAG_GENRE_ID):
        builder.genre = genres_by_id.get(line[len(TAG_GENRE_ID):])

from __future__ import annotations

import logging
import os
import stat
import tempfile
from contextlib import contextmanager
from typing import IO, Iterator, List

from booktracker.book import Book
from booktracker.codec import decode_books, decode_genres, encode_books, encode_genres
from booktracker.config import settings
from booktracker.genre import Genre

logger = logging.getLogger(__name__)


class StorageError(OSError):
    """A data file could not be read or written."""


@contextmanager
def atomic_write(path: str, encoding: str = "utf-8") -> Iterator[IO[str]]:
    """Write to a temporary file next to ``path`` and move it into place on success.

    If the block raises, the temporary file is removed and ``path`` keeps its
    previous content.
    """
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(prefix=f".{os.path.basename(path)}.", suffix=".tmp", dir=directory)
    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="\n") as f:
            yield f
            f.flush()
            os.fsync(f.fileno())
        if os.path.exists(path):
            # Keep the permissions the data file already had
            os.chmod(tmp_path, stat.S_IMODE(os.stat(path).st_mode))
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.remove(tmp_path)
        except FileNotFoundError:
            pass
        raise


class TextFileStore:
    """Reads and writes the genre and book collections as two text files."""

    def __init__(self, books_file: str, genres_file: str, encoding: str | None = None) -> None:
        self.books_file = books_file
        self.genres_file = genres_file
        self.encoding = encoding or settings.encoding

    # ------------------------- Reading ------------------------- #
    def _read_text(self, path: str) -> str | None:
        """Return the file content, or None when the file does not exist yet."""
        if not os.path.exists(path):
            logger.info(f"{path} does not exist yet, starting empty")
            return None
        try:
            with open(path, "r", encoding=self.encoding) as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Failed to read {path}: {e}")
            raise StorageError(f"Could not read {path}: {e}") from e

    def load_genres(self) -> List[Genre]:
        text = self._read_text(self.genres_file)
        if text is None:
            return []
        genres = decode_genres(text)
        logger.info(f"Loaded {len(genres)} genres from {self.genres_file}")
        return genres

    def load_books(self, genres: List[Genre]) -> List[Book]:
        """Load books, linking each one to its genre in ``genres``. ParseError propagates."""
        text = self._read_text(self.books_file)
        if text is None:
            return []
        books = decode_books(text, genres)
        logger.info(f"Loaded {len(books)} books from {self.books_file}")
        return books

    # ------------------------- Writing ------------------------- #
    def _write_text(self, path: str, text: str) -> None:
        try:
            with atomic_write(path, self.encoding) as f:
                f.write(text)
        except (OSError, UnicodeEncodeError) as e:
            logger.error(f"Failed to save {path}: {e}")
            raise StorageError(f"Could not save {path}: {e}") from e

    def save_genres(self, genres: List[Genre]) -> None:
        self._write_text(self.genres_file, encode_genres(genres))
        logger.debug(f"Saved {len(genres)} genres to {self.genres_file}")

    def save_books(self, books: List[Book]) -> None:
        self._write_text(self.books_file, encode_books(books))
        logger.debug(f"Saved {len(books)} books to {self.books_file}")

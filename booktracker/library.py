import copy
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from booktracker.book import Book, BookStatus
from booktracker.codec import TAG_QUOTE_END, ParseError
from booktracker.config import settings
from booktracker.genre import Genre
from booktracker.storage import StorageError, TextFileStore
from booktracker.validators import BookValidator, GenreValidator, TextValidator, ValidationError

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


class Library:
    """Holds the reading list in memory and rewrites both data files after every change."""

    def __init__(self, books_file: Optional[str] = None, genres_file: Optional[str] = None,
                 store: Optional[TextFileStore] = None, autoload: bool = True) -> None:
        self.store = store or TextFileStore(
            books_file or settings.books_path,
            genres_file or settings.genres_path,
        )
        self.books: List[Book] = []
        self.genres: List[Genre] = []
        self.load_errors: Dict[str, str] = {}
        self.loaded = False
        if autoload:
            self.initialize()

    def initialize(self) -> None:
        """Load genres, then books. A file that fails to load is replaced by an empty list."""
        self.load_errors = {}
        try:
            self.genres = self.store.load_genres()
        except StorageError as e:
            logger.error(f"Could not load genres, starting with none: {e}")
            self.load_errors["genres"] = str(e)
            self.genres = []

        try:
            self.books = self.store.load_books(self.genres)
        except (StorageError, ParseError) as e:
            logger.error(f"Fatal error loading books, starting with none: {e}")
            self.load_errors["books"] = str(e)
            self.books = []

        self.loaded = True

    # ------------------------- Core operations ------------------------- #
    def add_book(self, book: Book) -> None:
        """Validate and store a new book. Raises ValidationError on bad input."""
        self._ensure_loaded()
        stored = self._prepare(book)
        self.books.append(stored)
        self._persist(rollback=self.books.pop)
        logger.info(f"Book added: {stored.title} ({stored.id})")

    def add_genre(self, genre: Genre) -> None:
        """Register a genre. Names must be non-empty and unique ignoring case."""
        self._ensure_loaded()
        GenreValidator.validate(genre, self.genres)
        self.genres.append(copy.copy(genre))
        self._persist(rollback=self.genres.pop)
        logger.info(f"Genre added: {genre.name} ({genre.id})")

    def update_book(self, book: Book) -> bool:
        """Replace the stored book with the same id. Returns False if there is none."""
        self._ensure_loaded()
        if book is None or book.id is None:
            logger.warning("Tried to update a book without an id")
            return False

        index = self._index_of(book.id)
        if index is None:
            logger.warning(f"Tried to update a book that is not on the list (ID: {book.id})")
            return False

        stored = self._prepare(book)
        previous = self.books[index]
        self.books[index] = stored

        def rollback() -> None:
            self.books[index] = previous

        self._persist(rollback=rollback)
        logger.info(f"Book updated: {stored.title} ({stored.id})")
        return True

    def delete_book(self, book: Book) -> bool:
        """Remove the stored book with the same id. Returns False if there is none."""
        self._ensure_loaded()
        if book is None:
            logger.warning("Tried to delete a missing book")
            return False

        previous = self.books
        # Every entry carrying the id goes
        remaining = [b for b in previous if b.id != book.id]
        if len(remaining) == len(previous):
            logger.warning(f"Tried to delete a book that was not found (ID: {book.id})")
            return False

        self.books = remaining

        def rollback() -> None:
            self.books = previous

        self._persist(rollback=rollback)
        logger.info(f"Book removed: {book.title} ({book.id})")
        return True

    def list_books(self) -> List[Book]:
        return copy.deepcopy(self.books)

    def list_genres(self) -> List[Genre]:
        return copy.deepcopy(self.genres)

    def filter_books_by_genre(self, genre: Optional[Genre]) -> List[Book]:
        if genre is None:
            return self.list_books()
        return copy.deepcopy([b for b in self.books if b.genre is not None and b.genre == genre])

    # ------------------------- Lookups and filters ------------------------- #
    def find_book(self, book_id: str) -> Optional[Book]:
        index = self._index_of(book_id)
        return copy.deepcopy(self.books[index]) if index is not None else None

    def find_genre(self, genre_id: str) -> Optional[Genre]:
        for genre in self.genres:
            if genre.id == genre_id:
                return copy.copy(genre)
        return None

    def search_books(self, query: str) -> List[Book]:
        """Case-insensitive match on title or author. An empty query matches everything."""
        return self.filter_books(query=query)

    def filter_books(self, genre: Optional[Genre] = None, status: Optional[BookStatus] = None,
                     query: str = "") -> List[Book]:
        """Combined filter: status, then genre, then the search term. None means no filter."""
        term = (query or "").strip().lower()
        matches = []
        for book in self.books:
            if status is not None and book.status is not status:
                continue
            if genre is not None and (book.genre is None or book.genre != genre):
                continue
            if term and not (term in (book.title or "").lower() or term in (book.author or "").lower()):
                continue
            matches.append(book)
        return copy.deepcopy(matches)

    # ------------------------- Reading progress ------------------------- #
    def update_progress(self, book_id: str, current_page: int, status: Optional[BookStatus] = None) -> bool:
        """Move a book to ``current_page`` and optionally change its status."""
        self._ensure_loaded()
        index = self._index_of(book_id)
        if index is None:
            logger.warning(f"Tried to update progress of a book that is not on the list (ID: {book_id})")
            return False

        book = self.books[index]
        BookValidator.validate_pages(book.total_pages, current_page)
        previous = (book.current_page, book.status)
        book.current_page = current_page
        if status is not None:
            book.status = status

        def rollback() -> None:
            book.current_page, book.status = previous

        self._persist(rollback=rollback)
        logger.info(f"Progress of {book.title}: page {book.current_page}/{book.total_pages}, {book.status.label}")
        return True

    def add_quote(self, book_id: str, quote: str) -> bool:
        self._ensure_loaded()
        if TextValidator.is_blank(quote):
            raise ValidationError("Quote cannot be empty.")
        TextValidator.require_no_marker_line("Quote", quote, TAG_QUOTE_END)
        index = self._index_of(book_id)
        if index is None:
            logger.warning(f"Tried to add a quote to a book that is not on the list (ID: {book_id})")
            return False

        book = self.books[index]
        book.add_quote(quote)
        self._persist(rollback=book.quotes.pop)
        logger.info(f"Quote added to {book.title}")
        return True

    def list_quotes(self, book: Optional[Book] = None) -> List[Tuple[str, str]]:
        """(title, quote) pairs for one book, or for every book when ``book`` is None."""
        if book is None:
            sources = self.books
        else:
            index = self._index_of(book.id)
            sources = [self.books[index]] if index is not None else []
        return [(b.title, quote) for b in sources for quote in b.quotes]

    def get_statistics(self) -> Dict[str, Any]:
        by_status = {status.name: 0 for status in BookStatus}
        for book in self.books:
            by_status[book.status.name] += 1
        return {
            "total_books": len(self.books),
            "total_genres": len(self.genres),
            "by_status": by_status,
            "pages_read": sum(book.current_page or 0 for book in self.books),
        }

    # ------------------------- Persistence ------------------------- #
    def save(self) -> None:
        """Rewrite both data files from memory."""
        self.store.save_genres(self.genres)
        self.store.save_books(self.books)

    def _persist(self, rollback: Callable[[], Any]) -> None:
        try:
            self.save()
        except StorageError:
            # Undo the in-memory change, then put back on disk whatever file was already written
            rollback()
            try:
                self.save()
            except StorageError as e:
                logger.error(f"Could not restore data files after a failed save: {e}")
            raise

    # ------------------------- Utilities ------------------------- #
    def _ensure_loaded(self) -> None:
        if not self.loaded:
            self.initialize()

    def _index_of(self, book_id: str) -> Optional[int]:
        for i, book in enumerate(self.books):
            if book.id == book_id:
                return i
        return None

    def _prepare(self, book: Book) -> Book:
        """Validate ``book`` and return a private copy linked to the registered genre."""
        BookValidator.validate(book)
        genre = None
        if book.genre is not None:
            genre = next((g for g in self.genres if g == book.genre), None)
            if genre is None:
                raise ValidationError(f"Genre '{book.genre.name}' is not registered.")
        stored = copy.deepcopy(book)
        stored.genre = genre
        return stored

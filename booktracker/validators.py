from typing import Iterable, Optional

from booktracker.book import Book
from booktracker.codec import SEPARATOR, TAG_DESCRIPTION_END, TAG_NOTE_END, TAG_QUOTE_END
from booktracker.genre import Genre

MAX_RATING = 5


class ValidationError(ValueError):
    """User input was rejected. Nothing has been changed."""


class TextValidator:
    """Basic checks on free text fields."""

    @staticmethod
    def is_blank(text: Optional[str]) -> bool:
        if text is None:
            return True
        return not text.strip()

    @staticmethod
    def is_single_line(text: Optional[str]) -> bool:
        if text is None:
            return True
        return "\n" not in text and "\r" not in text

    @staticmethod
    def require_single_line(label: str, text: Optional[str]) -> None:
        # Single-line fields are stored one per tagged line
        if not TextValidator.is_single_line(text):
            raise ValidationError(f"{label} cannot contain line breaks.")

    @staticmethod
    def require_no_marker_line(label: str, text: Optional[str], marker: str) -> None:
        # A line equal to the closing marker would end the text block early
        if text is not None and marker in text.splitlines():
            raise ValidationError(f"{label} cannot contain a line reading {marker}.")


class BookValidator:
    """Checks applied before a book is stored or updated."""

    @staticmethod
    def validate_pages(total_pages: int, current_page: int) -> None:
        if total_pages is None or total_pages <= 0:
            raise ValidationError("Total pages must be greater than zero.")
        if current_page is None or current_page < 0 or current_page > total_pages:
            raise ValidationError(f"Current page must be between 0 and {total_pages}.")

    @staticmethod
    def validate_rating(rating: int) -> None:
        if rating is None or rating < 0 or rating > MAX_RATING:
            raise ValidationError(f"Rating must be between 0 and {MAX_RATING}.")

    @staticmethod
    def validate(book: Book) -> None:
        if book is None:
            raise ValidationError("No book given.")
        if TextValidator.is_blank(book.title):
            raise ValidationError("Book title cannot be empty.")
        TextValidator.require_single_line("Book id", book.id)
        TextValidator.require_single_line("Title", book.title)
        TextValidator.require_single_line("Author", book.author)
        TextValidator.require_single_line("Publisher", book.publisher)
        TextValidator.require_single_line("Location", getattr(book, "location", None))
        TextValidator.require_no_marker_line("Description", book.description, TAG_DESCRIPTION_END)
        for quote in book.quotes:
            TextValidator.require_no_marker_line("Quote", quote, TAG_QUOTE_END)
        for note in book.notes:
            TextValidator.require_no_marker_line("Note", note, TAG_NOTE_END)
        BookValidator.validate_pages(book.total_pages, book.current_page)
        BookValidator.validate_rating(book.rating)


class GenreValidator:
    """Checks applied before a genre is registered."""

    @staticmethod
    def validate(genre: Genre, existing: Iterable[Genre]) -> None:
        if genre is None or TextValidator.is_blank(genre.name):
            raise ValidationError("Genre name cannot be empty.")
        TextValidator.require_single_line("Genre name", genre.name)
        TextValidator.require_single_line("Genre id", genre.id)
        if SEPARATOR in genre.name:
            raise ValidationError(f"Genre name cannot contain '{SEPARATOR}'.")
        if ";" in genre.id:
            raise ValidationError("Genre id cannot contain ';'.")
        wanted = genre.name.strip().casefold()
        # Names are compared case-insensitively
        if any(g.name is not None and g.name.strip().casefold() == wanted for g in existing):
            raise ValidationError(f"Genre '{genre.name}' already exists.")

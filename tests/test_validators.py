import pytest

from booktracker.book import Ebook, PhysicalBook
from booktracker.genre import Genre
from booktracker.validators import BookValidator, GenreValidator, TextValidator, ValidationError


def test_is_blank():
    assert TextValidator.is_blank(None)
    assert TextValidator.is_blank(" \n\t")
    assert not TextValidator.is_blank(" x ")


def test_valid_book_passes():
    BookValidator.validate(PhysicalBook("Title", "", 100, current_page=50, rating=5))


@pytest.mark.parametrize("total, current", [(100, 150), (100, -1), (0, 0), (-5, 0)])
def test_page_invariant(total, current):
    with pytest.raises(ValidationError):
        BookValidator.validate_pages(total, current)


def test_rating_range():
    BookValidator.validate_rating(0)
    with pytest.raises(ValidationError):
        BookValidator.validate_rating(-1)


def test_validation_error_is_a_value_error():
    with pytest.raises(ValueError):
        BookValidator.validate(PhysicalBook(None, "A", 10))


def test_genre_duplicates():
    existing = [Genre("Fiction"), Genre("Poetry")]

    with pytest.raises(ValidationError):
        GenreValidator.validate(Genre("FICTION"), existing)
    with pytest.raises(ValidationError):
        GenreValidator.validate(Genre("poetry "), existing)
    GenreValidator.validate(Genre("Mystery"), existing)


@pytest.mark.parametrize("field", ["title", "author", "publisher"])
def test_single_line_fields_reject_line_breaks(field):
    book = PhysicalBook("Title", "Author", 10, "Publisher")
    setattr(book, field, "Line one\nBOOK_END")
    with pytest.raises(ValidationError, match="line breaks"):
        BookValidator.validate(book)


def test_ebook_location_rejects_line_breaks():
    with pytest.raises(ValidationError, match="Location"):
        BookValidator.validate(Ebook("T", "A", 10, location="/books\r/t.epub"))


def test_text_blocks_reject_their_closing_marker():
    book = PhysicalBook("T", "A", 10, description="ok\nDESCRIPTION_END\nmore")
    with pytest.raises(ValidationError, match="DESCRIPTION_END"):
        BookValidator.validate(book)

    book = PhysicalBook("T", "A", 10, quotes=["QUOTE_END"])
    with pytest.raises(ValidationError, match="QUOTE_END"):
        BookValidator.validate(book)

    # Other markers are plain text inside a block
    BookValidator.validate(PhysicalBook("T", "A", 10, description="QUOTE_END", notes=["DESCRIPTION_END"]))


def test_genre_name_rejects_separator_and_line_breaks():
    with pytest.raises(ValidationError):
        GenreValidator.validate(Genre("Rock ; Roll"), [])
    with pytest.raises(ValidationError):
        GenreValidator.validate(Genre("Rock\nRoll"), [])
    with pytest.raises(ValidationError):
        GenreValidator.validate(Genre("Rock", id="a;b"), [])
    GenreValidator.validate(Genre("Rock;Roll"), [])

import pytest

from booktracker.book import Ebook, PhysicalBook
from booktracker.genre import Genre
from booktracker.library import Library


@pytest.fixture
def data_files(tmp_path):
    # Each test gets its own pair of data files
    return str(tmp_path / "books.txt"), str(tmp_path / "genres.txt")


@pytest.fixture
def lib(data_files):
    books_file, genres_file = data_files
    return Library(books_file=books_file, genres_file=genres_file)


@pytest.fixture
def reopen(data_files):
    """Build a fresh Library over the same files, as a restarted app would."""
    books_file, genres_file = data_files
    return lambda: Library(books_file=books_file, genres_file=genres_file)


@pytest.fixture
def scifi():
    return Genre("Sci-Fi")


@pytest.fixture
def sample_books(scifi):
    dune = PhysicalBook("Dune", "Frank Herbert", 412, "Ace", "Desert planet.\nSpice.", scifi)
    dune.add_quote("Fear is the mind-killer.")
    neuromancer = Ebook("Neuromancer", "William Gibson", 271, "Ace", "", None, location="kindle")
    neuromancer.add_quote("The sky above the port\nwas the color of television.")
    neuromancer.add_quote("Second quote")
    neuromancer.add_note("Reread chapter 3")
    return [dune, neuromancer]

import os
import stat

import pytest

from booktracker.book import PhysicalBook
from booktracker.codec import ParseError
from booktracker.genre import Genre
from booktracker.storage import StorageError, TextFileStore, atomic_write


@pytest.fixture
def store(data_files):
    books_file, genres_file = data_files
    return TextFileStore(books_file, genres_file)


def test_missing_files_load_empty(store):
    assert store.load_genres() == []
    assert store.load_books([]) == []


def test_save_and_load(store, sample_books, scifi):
    store.save_genres([scifi])
    store.save_books(sample_books)

    genres = store.load_genres()
    books = store.load_books(genres)

    assert genres == [scifi]
    assert [b.to_dict() for b in books] == [b.to_dict() for b in sample_books]
    # Books point at the loaded genre objects
    assert books[0].genre is genres[0]


def test_files_are_utf8(store):
    store.save_genres([Genre("Ficção Científica", id="g-1")])
    with open(store.genres_file, "rb") as f:
        assert f.read() == "GENRE: g-1 ; Ficção Científica\n".encode("utf-8")


def test_save_overwrites(store):
    store.save_genres([Genre("A", id="1"), Genre("B", id="2")])
    store.save_genres([Genre("C", id="3")])
    assert [g.name for g in store.load_genres()] == ["C"]


def test_save_creates_missing_directory(tmp_path):
    store = TextFileStore(str(tmp_path / "data" / "books.txt"), str(tmp_path / "data" / "genres.txt"))
    store.save_books([PhysicalBook("T", "A", 1)])
    assert os.path.exists(store.books_file)


def test_parse_error_propagates(store):
    with open(store.books_file, "w", encoding="utf-8") as f:
        f.write("BOOK_START: PHYSICAL\nID: x\nRATING: five\nBOOK_END\n")

    with pytest.raises(ParseError):
        store.load_books([])


def test_unreadable_file_raises_storage_error(store):
    os.makedirs(store.genres_file)  # a directory cannot be opened as a file
    with pytest.raises(StorageError):
        store.load_genres()


def test_atomic_write_keeps_old_content_on_error(tmp_path):
    target = tmp_path / "genres.txt"
    target.write_text("old\n", encoding="utf-8")

    with pytest.raises(RuntimeError):
        with atomic_write(str(target)) as f:
            f.write("half written")
            raise RuntimeError("boom")

    assert target.read_text(encoding="utf-8") == "old\n"
    assert os.listdir(tmp_path) == ["genres.txt"]


def test_write_failure_raises_storage_error(store, monkeypatch):
    store.save_genres([Genre("Kept", id="1")])

    def fail_replace(src, dst):
        raise PermissionError("read-only")

    monkeypatch.setattr("booktracker.storage.os.replace", fail_replace)
    with pytest.raises(StorageError):
        store.save_genres([Genre("Lost", id="2")])

    assert [g.name for g in store.load_genres()] == ["Kept"]


def test_save_keeps_file_permissions(store):
    store.save_genres([Genre("A", id="1")])
    os.chmod(store.genres_file, 0o644)

    store.save_genres([Genre("B", id="2")])

    assert stat.S_IMODE(os.stat(store.genres_file).st_mode) == 0o644

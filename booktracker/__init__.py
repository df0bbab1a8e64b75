"""Book Tracker - Core Package

This package contains the persistence core of the reading list including:
- Data models (book.py, genre.py)
- Text record format (codec.py)
- File storage layer (storage.py)
- Reading list management logic (library.py)
- Input validation (validators.py)
"""

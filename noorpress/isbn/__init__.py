"""ISBN validation, conversion and assignment."""

from .codes import (
    clean_isbn,
    derive_isbn10,
    format_isbn,
    isbn10_to_isbn13,
    isbn13_to_isbn10,
    normalize_isbn,
    validate_isbn10,
    validate_isbn13,
)
from .manager import ISBN_FORMATS, ISBNBlockAllocator, ISBNManager
from .store import InMemoryISBNStore, ISBNStore, SqliteISBNStore

__all__ = [
    "ISBNBlockAllocator",
    "ISBNManager",
    "ISBNStore",
    "ISBN_FORMATS",
    "InMemoryISBNStore",
    "SqliteISBNStore",
    "clean_isbn",
    "derive_isbn10",
    "format_isbn",
    "isbn10_to_isbn13",
    "isbn13_to_isbn10",
    "normalize_isbn",
    "validate_isbn10",
    "validate_isbn13",
]

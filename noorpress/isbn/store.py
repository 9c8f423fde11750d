"""ISBN record persistence with atomic assign-if-absent.

Responsibilities:
- Define the store protocol the ISBN manager depends on.
- Provide in-memory and SQLite stores whose `get_or_create` runs the lookup,
  the allocation and the write as one atomic step.
- Reject a second record that reuses an ISBN-13 already held by another pair.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
import sqlite3
import threading
from typing import Protocol

from ..errors import InvalidISBNError
from ..models import ISBNRecord

ISBNKey = tuple[str, str]


class ISBNStore(Protocol):
    """Persistence contract for ISBN records keyed by `(book_id, format)`."""

    def get_or_create(self, key: ISBNKey, factory: Callable[[], ISBNRecord]) -> ISBNRecord:
        """Return the record for `key`, creating it with `factory` when absent."""

    def list_records(self, book_id: str) -> list[ISBNRecord]:
        """Return every record owned by `book_id`."""

    def has_isbn(self, isbn13: str) -> bool:
        """Return whether any record already holds `isbn13`."""


def _ensure_unique(records: dict[ISBNKey, ISBNRecord], key: ISBNKey, record: ISBNRecord) -> None:
    for existing_key, existing in records.items():
        if existing.isbn13 == record.isbn13 and existing_key != key:
            raise InvalidISBNError(
                f"ISBN {record.isbn13} is already assigned to book `{existing.book_id}` "
                f"({existing.format}).",
                hint="Each book format needs its own ISBN.",
            )


class InMemoryISBNStore:
    """Process-local ISBN store guarded by a re-entrant lock."""

    def __init__(self, records: list[ISBNRecord] | None = None) -> None:
        self._lock = threading.RLock()
        self._records: dict[ISBNKey, ISBNRecord] = {
            (record.book_id, record.format): record for record in records or []
        }

    def get_or_create(self, key: ISBNKey, factory: Callable[[], ISBNRecord]) -> ISBNRecord:
        """Return the existing record or store the factory's new one atomically."""

        with self._lock:
            existing = self._records.get(key)
            if existing is not None:
                return existing
            record = factory()
            _ensure_unique(self._records, key, record)
            self._records[key] = record
            return record

    def list_records(self, book_id: str) -> list[ISBNRecord]:
        """Return records for one book ordered by format."""

        with self._lock:
            return sorted(
                (record for record in self._records.values() if record.book_id == book_id),
                key=lambda record: record.format,
            )

    def has_isbn(self, isbn13: str) -> bool:
        """Return whether any stored record holds `isbn13`."""

        with self._lock:
            return any(record.isbn13 == isbn13 for record in self._records.values())

_SCHEMA = """
CREATE TABLE IF NOT EXISTS isbn_records (
    book_id TEXT NOT NULL,
    format TEXT NOT NULL,
    isbn13 TEXT NOT NULL UNIQUE,
    isbn10 TEXT,
    assigned_at TEXT NOT NULL,
    PRIMARY KEY (book_id, format)
)
"""


class SqliteISBNStore:
    """ISBN store persisted in one SQLite database file.

    `get_or_create` runs inside an immediate transaction, so the lookup, the
    allocation and the insert are serialized across threads, store instances
    and processes that share the file. UNIQUE constraints back both keys.
    """

    def __init__(self, path: Path, timeout_seconds: float = 30.0) -> None:
        self.path = path
        self._timeout_seconds = timeout_seconds
        self._local = threading.local()
        path.parent.mkdir(parents=True, exist_ok=True)
        with self._connection() as conn:
            try:
                conn.execute(_SCHEMA)
            except sqlite3.DatabaseError as exc:
                raise ValueError(f"ISBN store `{path}` is not a readable database.") from exc

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """Open an autocommit connection; transactions are begun explicitly."""

        conn = sqlite3.connect(str(self.path), timeout=self._timeout_seconds, isolation_level=None)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def get_or_create(self, key: ISBNKey, factory: Callable[[], ISBNRecord]) -> ISBNRecord:
        """Return the persisted record or insert the factory's new one atomically."""

        with self._connection() as conn:
            conn.execute("BEGIN IMMEDIATE")
            self._local.conn = conn
            try:
                existing = self._select(conn, key)
                if existing is None:
                    existing = factory()
                    self._insert(conn, key, existing)
                conn.execute("COMMIT")
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            finally:
                self._local.conn = None
            return existing

    def list_records(self, book_id: str) -> list[ISBNRecord]:
        """Return persisted records for one book ordered by format."""

        with self._connection() as conn:
            rows = conn.execute(
                "SELECT * FROM isbn_records WHERE book_id = ? ORDER BY format", (book_id,)
            ).fetchall()
        return [_row_to_record(row) for row in rows]

    def has_isbn(self, isbn13: str) -> bool:
        """Return whether any persisted record holds `isbn13`."""

        active = getattr(self._local, "conn", None)
        if active is not None:
            return self._holder(active, isbn13) is not None
        with self._connection() as conn:
            return self._holder(conn, isbn13) is not None

    @staticmethod
    def _select(conn: sqlite3.Connection, key: ISBNKey) -> ISBNRecord | None:
        row = conn.execute(
            "SELECT * FROM isbn_records WHERE book_id = ? AND format = ?", key
        ).fetchone()
        return _row_to_record(row) if row is not None else None

    @staticmethod
    def _holder(conn: sqlite3.Connection, isbn13: str) -> sqlite3.Row | None:
        return conn.execute(
            "SELECT book_id, format FROM isbn_records WHERE isbn13 = ?", (isbn13,)
        ).fetchone()

    def _insert(self, conn: sqlite3.Connection, key: ISBNKey, record: ISBNRecord) -> None:
        """Insert one record, rejecting an ISBN-13 already held by another pair."""

        holder = self._holder(conn, record.isbn13)
        if holder is not None:
            raise InvalidISBNError(
                f"ISBN {record.isbn13} is already assigned to book `{holder['book_id']}` "
                f"({holder['format']}).",
                hint="Each book format needs its own ISBN.",
            )
        try:
            conn.execute(
                """
                INSERT INTO isbn_records (book_id, format, isbn13, isbn10, assigned_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(book_id, format) DO NOTHING
                """,
                (key[0], key[1], record.isbn13, record.isbn10, record.assigned_at),
            )
        except sqlite3.IntegrityError as exc:
            raise InvalidISBNError(
                f"ISBN {record.isbn13} is already assigned.",
                hint="Each book format needs its own ISBN.",
            ) from exc


def _row_to_record(row: sqlite3.Row) -> ISBNRecord:
    return ISBNRecord(
        isbn13=row["isbn13"],
        isbn10=row["isbn10"],
        format=row["format"],
        assigned_at=row["assigned_at"],
        book_id=row["book_id"],
    )

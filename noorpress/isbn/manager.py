"""ISBN assignment lifecycle.

Responsibilities:
- Assign one ISBN per `(book_id, format)` idempotently through an injected store.
- Allocate fresh ISBN-13 codes from a purchased publisher block.
- Validate externally supplied ISBNs without correcting them.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
import threading

from ..errors import InvalidInputError
from ..models import ISBNRecord
from .codes import clean_isbn, derive_isbn10, isbn13_check_digit, normalize_isbn
from .store import ISBNStore

ISBN_FORMATS = frozenset({"epub", "print"})


class ISBNBlockAllocator:
    """Hand out sequential ISBN-13 codes from one publisher block.

    `registrant_prefix` holds the prefix element, registration group and
    registrant digits (for example `978-1-7390`); the remaining digits of the
    first twelve are the title number.
    """

    def __init__(self, registrant_prefix: str, next_title_number: int = 0) -> None:
        prefix = clean_isbn(registrant_prefix)
        if not prefix.isdigit() or not 4 <= len(prefix) <= 11:
            raise InvalidInputError(
                f"Registrant prefix `{registrant_prefix}` must hold 4 to 11 digits."
            )
        if prefix[:3] not in {"978", "979"}:
            raise InvalidInputError(
                f"Registrant prefix `{registrant_prefix}` must start with 978 or 979."
            )
        if next_title_number < 0:
            raise InvalidInputError("`next_title_number` must not be negative.")
        self._prefix = prefix
        self._title_digits = 12 - len(prefix)
        self._next = next_title_number
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return 10**self._title_digits

    def allocate(self, is_taken: Callable[[str], bool] | None = None) -> str:
        """Return the next unused ISBN-13 in the block.

        Raises:
            InvalidInputError: When every title number in the block is used.
        """

        with self._lock:
            while self._next < self.capacity:
                first_twelve = self._prefix + str(self._next).zfill(self._title_digits)
                self._next += 1
                candidate = first_twelve + isbn13_check_digit(first_twelve)
                if is_taken is None or not is_taken(candidate):
                    return candidate
        raise InvalidInputError(
            f"ISBN block `{self._prefix}` is exhausted.",
            stage="isbn",
            hint="Purchase a new ISBN block and configure its registrant prefix.",
        )


class ISBNManager:
    """Assign and list ISBN records per book and format."""

    def __init__(
        self,
        store: ISBNStore,
        allocator: ISBNBlockAllocator | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._allocator = allocator
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def assign(self, book_id: str, format: str, isbn: str | None = None) -> ISBNRecord:
        """Return the record for `(book_id, format)`, creating it on first request.

        Args:
            book_id: Owning book identifier.
            format: `epub` or `print`.
            isbn: Optional externally purchased ISBN-10/13 to record.

        Raises:
            InvalidISBNError: If `isbn` is malformed.
            InvalidInputError: For unknown formats, missing allocator, or a
                supplied ISBN that conflicts with an existing record.
        """

        if not book_id or not book_id.strip():
            raise InvalidInputError("`book_id` must be a non-empty string.", stage="isbn")
        if format not in ISBN_FORMATS:
            supported = ", ".join(sorted(ISBN_FORMATS))
            raise InvalidInputError(
                f"Unsupported ISBN format `{format}`; supported: {supported}.", stage="isbn"
            )
        supplied = normalize_isbn(isbn) if isbn is not None else None

        def create() -> ISBNRecord:
            if supplied is not None:
                isbn13 = supplied
            elif self._allocator is not None:
                isbn13 = self._allocator.allocate(self._store.has_isbn)
            else:
                raise InvalidInputError(
                    f"No ISBN recorded for `{book_id}` ({format}) and no ISBN block configured.",
                    stage="isbn",
                    hint="Pass an ISBN explicitly or configure `isbn_registrant_prefix`.",
                )
            return ISBNRecord(
                isbn13=isbn13,
                isbn10=derive_isbn10(isbn13),
                format=format,
                assigned_at=self._clock().isoformat(),
                book_id=book_id,
            )

        record = self._store.get_or_create((book_id, format), create)
        if supplied is not None and record.isbn13 != supplied:
            raise InvalidInputError(
                f"`{book_id}` ({format}) already holds ISBN {record.isbn13}.",
                stage="isbn",
                hint="Assigned ISBNs are never replaced; use a new book id to supersede.",
            )
        return record

    def list(self, book_id: str) -> list[ISBNRecord]:
        """Return every record assigned to `book_id`."""

        return self._store.list_records(book_id)

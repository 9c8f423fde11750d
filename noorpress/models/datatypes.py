"""Derived records and results exchanged between export stages.

Responsibilities:
- Represent immutable ISBN, spine, cover-geometry and export records.
- Provide JSON-ready report serialization for one export run.

Key types:
- `ISBNRecord`, `SpineCalculationResult`, `KDPCoverSpecs`, `ExportFile`,
  `GenerationResult`, `FormatOutcome`, `ExportProgress`, and
  `PublishingExportResult`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
import hashlib
from typing import Mapping


@dataclass(frozen=True, slots=True)
class ISBNRecord:
    """One assigned identifier for a `(book_id, format)` pair.

    Attributes:
        isbn13: Canonical 13-digit ISBN without separators.
        isbn10: Derived ISBN-10, or `None` when no equivalent exists (979 prefix).
        format: `epub` or `print`.
        assigned_at: ISO-8601 UTC timestamp of the first assignment.
        book_id: Owning book identifier.
    """

    isbn13: str
    isbn10: str | None
    format: str
    assigned_at: str
    book_id: str

    def to_dict(self) -> dict[str, str | None]:
        """Return a JSON-serializable mapping."""

        return {
            "isbn13": self.isbn13,
            "isbn10": self.isbn10,
            "format": self.format,
            "assigned_at": self.assigned_at,
            "book_id": self.book_id,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, object]) -> ISBNRecord:
        """Build a record from a stored mapping."""

        isbn10 = payload.get("isbn10")
        return cls(
            isbn13=str(payload["isbn13"]),
            isbn10=str(isbn10) if isbn10 else None,
            format=str(payload["format"]),
            assigned_at=str(payload["assigned_at"]),
            book_id=str(payload["book_id"]),
        )


@dataclass(frozen=True, slots=True)
class SpineCalculationResult:
    """Physical spine and bleed-adjusted trim dimensions in inches."""

    spine_width_inches: float
    total_trim_width_inches: float
    total_trim_height_inches: float
    bleed_inches: float
    pages_per_inch: float
    notes: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class KDPCoverSpecs:
    """Wrap-cover canvas geometry in inches.

    Horizontal layout, left to right: bleed, back panel, spine, front panel, bleed.
    `back_width` covers the left bleed plus the back trim width, so the front
    panel starts at `back_width + spine_width`.
    """

    trim_width: float
    trim_height: float
    page_count: int
    paper_type: str
    spine_width: float
    bleed: float
    total_width: float
    total_height: float
    back_width: float
    back_cover_x: float
    spine_x: float
    front_cover_x: float
    safe_zone_inches: float
    spine_text_allowed: bool

    def to_pixels(self, dpi: int = 300) -> dict[str, int]:
        """Return the canvas geometry rounded to whole pixels at `dpi`."""

        names = (
            "trim_width",
            "trim_height",
            "spine_width",
            "bleed",
            "total_width",
            "total_height",
            "back_width",
            "back_cover_x",
            "spine_x",
            "front_cover_x",
            "safe_zone_inches",
        )
        return {name: int(round(getattr(self, name) * dpi)) for name in names}


@dataclass(frozen=True, slots=True)
class ExportFile:
    """One produced binary blob."""

    filename: str
    media_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    def sha256(self) -> str:
        """Return the hex digest of the file bytes."""

        return hashlib.sha256(self.data).hexdigest()


@dataclass(frozen=True, slots=True)
class GenerationResult:
    """Files and warnings returned by one format generator."""

    files: tuple[ExportFile, ...]
    warnings: tuple[str, ...] = field(default_factory=tuple)
    page_count: int | None = None
    details: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class FormatOutcome:
    """Terminal outcome of one requested format.

    Attributes:
        format: Requested format key (`epub`, `kdp_pdf`, `lulu_pdf`).
        success: Whether generation produced every file for this format.
        files: Produced files; empty on failure.
        error: Human-readable failure detail.
        error_type: Exception class name of the failure.
        warnings: Non-fatal degradations recorded during generation.
        page_count: Rendered page count for PDF formats.
        details: Additional string metadata (spine width, ISBN, ...).
    """

    format: str
    success: bool
    files: tuple[ExportFile, ...] = field(default_factory=tuple)
    error: str | None = None
    error_type: str | None = None
    warnings: tuple[str, ...] = field(default_factory=tuple)
    page_count: int | None = None
    details: Mapping[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-serializable mapping without raw file bytes."""

        return {
            "format": self.format,
            "success": self.success,
            "files": [
                {
                    "filename": item.filename,
                    "media_type": item.media_type,
                    "size_bytes": item.size,
                    "sha256": item.sha256(),
                }
                for item in self.files
            ],
            "error": self.error,
            "error_type": self.error_type,
            "warnings": list(self.warnings),
            "page_count": self.page_count,
            "details": dict(self.details),
        }


@dataclass(frozen=True, slots=True)
class ExportProgress:
    """Progress event delivered to UI callbacks."""

    format: str
    phase: str
    percent: int


@dataclass(frozen=True, slots=True)
class PublishingExportResult:
    """Aggregated outcome of one export run."""

    book_id: str
    state: str
    outcomes: tuple[FormatOutcome, ...]
    isbn_records: tuple[ISBNRecord, ...] = field(default_factory=tuple)
    started_at: datetime | None = None
    finished_at: datetime | None = None

    @property
    def success(self) -> bool:
        return self.state == "done"

    def outcome(self, format_key: str) -> FormatOutcome:
        """Return the outcome for one format key."""

        for item in self.outcomes:
            if item.format == format_key:
                return item
        raise KeyError(format_key)

    def to_report(self) -> dict[str, object]:
        """Return the JSON-serializable export report."""

        return {
            "book_id": self.book_id,
            "state": self.state,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "isbn_records": [record.to_dict() for record in self.isbn_records],
            "outcomes": [item.to_dict() for item in self.outcomes],
        }

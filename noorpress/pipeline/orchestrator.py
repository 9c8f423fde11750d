"""Publish orchestration for NoorPress.

Responsibilities:
- Drive one export run through its states, from ISBN assignment to the
  aggregated per-format report.
- Load every referenced image once, then fan format generation out to
  worker threads so one format's failure never aborts another.
- Honor cooperative cancellation between format generations.

Key types:
- `PublishingPipeline`: orchestration facade.
- `CancelToken`: thread-safe cancellation flag checked before each format.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timezone
import threading

from ..config import PublishingConfig
from ..epub import EpubGenerator
from ..errors import PublishingError
from ..io.images import ImageLoader, ImageSet
from ..isbn import InMemoryISBNStore, ISBNBlockAllocator, ISBNManager
from ..kdp import KdpPdfGenerator
from ..lulu import LuluPdfGenerator
from ..models import (
    BookBundle,
    ExportProgress,
    FormatOutcome,
    GenerationResult,
    ISBNRecord,
    PublishingExportResult,
)
from ..render.surface import ReportLabSurface, SurfaceFactory
from ..telemetry.logger import RunLogger
from .telemetry import PipelineTelemetryMixin

_ISBN_FORMAT_BY_EXPORT = {"epub": "epub", "kdp_pdf": "print", "lulu_pdf": "print"}
_FILE_SIGNATURES = {
    "application/epub+zip": b"PK\x03\x04",
    "application/pdf": b"%PDF-",
}


class CancelToken:
    """Cooperative cancellation flag shared with the caller."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class PublishingPipeline(PipelineTelemetryMixin):
    """Coordinate ISBN assignment and format generation for one book."""

    def __init__(
        self,
        isbn_manager: ISBNManager | None = None,
        image_loader: ImageLoader | None = None,
        run_logger: RunLogger | None = None,
        progress_callback: Callable[[ExportProgress], None] | None = None,
        surface_factory: SurfaceFactory = ReportLabSurface,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize collaborators and optional logging/progress hooks."""

        self._isbn_manager = isbn_manager
        self._image_loader = image_loader
        self._run_logger = run_logger
        self._progress_callback = progress_callback
        self._surface_factory = surface_factory
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._state = "pending"

    @property
    def state(self) -> str:
        """Most recent state of the current or last run."""

        return self._state

    def publish_sync(
        self,
        bundle: BookBundle,
        config: PublishingConfig,
        cancel_token: CancelToken | None = None,
    ) -> PublishingExportResult:
        """Run `publish` on a fresh event loop."""

        return asyncio.run(self.publish(bundle, config, cancel_token))

    async def publish(
        self,
        bundle: BookBundle,
        config: PublishingConfig,
        cancel_token: CancelToken | None = None,
    ) -> PublishingExportResult:
        """Produce every requested format and report one outcome per format.

        Raises:
            ValueError: If `config` is invalid. Generation failures never raise;
                they are reported as failed outcomes.
        """

        config.validate()
        token = cancel_token or CancelToken()
        started_at = self._clock()
        book_id = bundle.metadata.book_id
        self._set_state("pending", book_id=book_id, formats=",".join(config.formats))
        if config.trim_size is not None:
            bundle = replace(bundle, cover=replace(bundle.cover, trim_size=config.trim_size))
        for format_key in config.formats:
            self._report_progress(format_key, "queued", 0)

        isbn_records: tuple[ISBNRecord, ...] = ()
        isbn_error: Exception | None = None
        if config.assign_isbns:
            self._set_state("assigning_isbns")
            try:
                isbn_records = self._run_stage(
                    "isbn", lambda: self._assign_isbns(book_id, config)
                )
            except Exception as exc:
                isbn_error = exc

        self._set_state("generating_formats")
        if isbn_error is not None:
            outcomes = [self._failed(key, isbn_error) for key in config.formats]
        elif token.cancelled:
            outcomes = [self._cancelled(key) for key in config.formats]
        else:
            outcomes = await self._generate_formats(bundle, config, isbn_records, token)

        self._set_state("aggregating")
        all_succeeded = all(outcome.success for outcome in outcomes)
        final_state = "done" if all_succeeded else "partial_failure"
        self._set_state(
            final_state,
            succeeded=sum(1 for outcome in outcomes if outcome.success),
            failed=sum(1 for outcome in outcomes if not outcome.success),
        )
        return PublishingExportResult(
            book_id=book_id,
            state=final_state,
            outcomes=tuple(outcomes),
            isbn_records=isbn_records,
            started_at=started_at,
            finished_at=self._clock(),
        )

    async def _generate_formats(
        self,
        bundle: BookBundle,
        config: PublishingConfig,
        isbn_records: tuple[ISBNRecord, ...],
        token: CancelToken,
    ) -> list[FormatOutcome]:
        """Load images once, then generate every requested format."""

        for format_key in config.formats:
            self._report_progress(format_key, "loading_images", 10)
        loader = self._image_loader or ImageLoader(
            max_concurrency=config.max_image_concurrency,
            timeout_seconds=config.image_timeout_seconds,
        )
        try:
            images = await loader.load_all(bundle.image_refs())
        except Exception as exc:
            if self._run_logger is not None:
                self._run_logger.log_stage_failure("images", type(exc).__name__)
            return [self._failed(key, exc) for key in config.formats]
        if images.failures() and self._run_logger is not None:
            self._run_logger.log_warning("images", len(images.failures()))

        isbn_by_format = {record.format: record.isbn13 for record in isbn_records}
        if config.parallel:
            return list(
                await asyncio.gather(
                    *(
                        self._generate_format(key, bundle, config, images, isbn_by_format, token)
                        for key in config.formats
                    )
                )
            )
        outcomes = []
        for format_key in config.formats:
            outcomes.append(
                await self._generate_format(
                    format_key, bundle, config, images, isbn_by_format, token
                )
            )
        return outcomes

    def _assign_isbns(self, book_id: str, config: PublishingConfig) -> tuple[ISBNRecord, ...]:
        """Assign one ISBN per needed ISBN format, in first-requested order."""

        manager = self._isbn_manager or self._default_isbn_manager(config)
        needed: list[str] = []
        for format_key in config.formats:
            isbn_format = _ISBN_FORMAT_BY_EXPORT[format_key]
            if isbn_format not in needed:
                needed.append(isbn_format)
        return tuple(manager.assign(book_id, isbn_format) for isbn_format in needed)

    @staticmethod
    def _default_isbn_manager(config: PublishingConfig) -> ISBNManager:
        allocator = (
            ISBNBlockAllocator(config.isbn_registrant_prefix, config.isbn_first_title_number)
            if config.isbn_registrant_prefix
            else None
        )
        return ISBNManager(InMemoryISBNStore(), allocator)

    async def _generate_format(
        self,
        format_key: str,
        bundle: BookBundle,
        config: PublishingConfig,
        images: ImageSet,
        isbn_by_format: dict[str, str],
        token: CancelToken,
    ) -> FormatOutcome:
        """Generate one format in a worker thread and capture its outcome."""

        if token.cancelled:
            return self._cancelled(format_key)

        isbn = isbn_by_format.get(_ISBN_FORMAT_BY_EXPORT[format_key])
        self._report_progress(format_key, "rendering", 30)
        try:
            result = await asyncio.to_thread(
                self._run_stage,
                format_key,
                lambda: self._render_format(format_key, bundle, config, images, isbn),
            )
            self._report_progress(format_key, "preflight", 90)
            _verify_files(format_key, result)
        except Exception as exc:
            return self._failed(format_key, exc)

        details = dict(result.details)
        if isbn is not None:
            details["isbn13"] = isbn
        self._report_progress(format_key, "done", 100)
        return FormatOutcome(
            format=format_key,
            success=True,
            files=result.files,
            warnings=result.warnings,
            page_count=result.page_count,
            details=details,
        )

    def _render_format(
        self,
        format_key: str,
        bundle: BookBundle,
        config: PublishingConfig,
        images: ImageSet,
        isbn: str | None,
    ) -> GenerationResult:
        if format_key == "epub":
            generator = EpubGenerator(image_policy=config.image_policy, clock=self._clock)
            return generator.generate(bundle, isbn=isbn, images=images)
        if format_key == "kdp_pdf":
            return KdpPdfGenerator(
                surface_factory=self._surface_factory,
                paper_type=config.paper_type,
                image_policy=config.image_policy,
                dpi=config.dpi,
                binding=config.binding,
            ).generate(bundle, images=images)
        if format_key == "lulu_pdf":
            return LuluPdfGenerator(
                surface_factory=self._surface_factory,
                header_footer=config.header_footer,
                include_bleed=config.include_bleed,
                image_policy=config.image_policy,
            ).generate(bundle, images=images)
        raise PublishingError(f"Unsupported export format `{format_key}`.", stage="publish")

    def _failed(self, format_key: str, exc: Exception) -> FormatOutcome:
        self._report_progress(format_key, "failed", 100)
        detail = exc.detail if isinstance(exc, PublishingError) else str(exc)
        return FormatOutcome(
            format=format_key,
            success=False,
            error=detail or type(exc).__name__,
            error_type=type(exc).__name__,
        )

    def _cancelled(self, format_key: str) -> FormatOutcome:
        self._report_progress(format_key, "cancelled", 0)
        if self._run_logger is not None:
            self._run_logger.log_stage_failure(format_key, "CancelledError")
        return FormatOutcome(
            format=format_key,
            success=False,
            error="Export cancelled before this format started.",
            error_type="CancelledError",
        )


def _verify_files(format_key: str, result: GenerationResult) -> None:
    """Check every produced file is non-empty and carries its media signature."""

    if not result.files:
        raise PublishingError(f"{format_key} produced no files.", stage="preflight")
    for item in result.files:
        signature = _FILE_SIGNATURES.get(item.media_type, b"")
        if not item.data or not item.data.startswith(signature):
            raise PublishingError(
                f"{item.filename} is empty or not a valid {item.media_type} file.",
                stage="preflight",
            )

"""Domain exceptions for export stages and CLI diagnostics."""

from __future__ import annotations


class PublishingError(RuntimeError):
    """Raised when a specific export stage fails."""

    default_stage = "publish"

    def __init__(
        self,
        detail: str,
        *,
        stage: str | None = None,
        hint: str | None = None,
    ) -> None:
        """Initialize a stage-scoped publishing error."""

        super().__init__(detail)
        self.stage = stage or self.default_stage
        self.detail = detail
        self.hint = hint


class InvalidInputError(PublishingError):
    """Raised for caller-supplied values outside the supported range."""

    default_stage = "validate"


class InvalidISBNError(PublishingError):
    """Raised for malformed ISBN identifiers. Never auto-corrected."""

    default_stage = "isbn"


class UnsupportedTrimSizeError(PublishingError):
    """Raised when a print vendor does not offer the requested trim size."""

    default_stage = "validate"


class EmptyBookError(PublishingError):
    """Raised when there is no chapter content to serialize."""

    default_stage = "validate"


class ImageLoadError(PublishingError):
    """Raised when a referenced image cannot be fetched or decoded."""

    default_stage = "images"

    def __init__(
        self,
        detail: str,
        *,
        ref: str | None = None,
        stage: str | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(detail, stage=stage, hint=hint)
        self.ref = ref

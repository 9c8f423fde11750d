"""Post-render PDF checks.

Responsibilities:
- Re-read rendered PDF bytes with `pypdf`.
- Report page-count and page-box mismatches against the render plan.
"""

from __future__ import annotations

from io import BytesIO

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from ..errors import PublishingError

_SIZE_TOLERANCE_INCHES = 0.01


def preflight_pdf(
    data: bytes,
    expected_pages: int,
    expected_size: tuple[float, float] | None = None,
    label: str = "PDF",
) -> list[str]:
    """Return warnings for every deviation between a rendered PDF and its plan.

    Raises:
        PublishingError: If the bytes cannot be parsed as a PDF.
    """

    try:
        reader = PdfReader(BytesIO(data))
        pages = list(reader.pages)
    except PdfReadError as exc:
        raise PublishingError(
            f"{label} could not be re-read after rendering: {exc}", stage="preflight"
        ) from exc

    warnings: list[str] = []
    if len(pages) != expected_pages:
        warnings.append(f"{label}: expected {expected_pages} page(s), found {len(pages)}")
    if expected_size is None:
        return warnings

    expected_width, expected_height = expected_size
    for index, page in enumerate(pages, start=1):
        width = float(page.mediabox.width) / 72.0
        height = float(page.mediabox.height) / 72.0
        if (
            abs(width - expected_width) > _SIZE_TOLERANCE_INCHES
            or abs(height - expected_height) > _SIZE_TOLERANCE_INCHES
        ):
            warnings.append(
                f"{label}: page {index} is {width:.3f}x{height:.3f}in, "
                f"expected {expected_width:.3f}x{expected_height:.3f}in"
            )
            break
    return warnings

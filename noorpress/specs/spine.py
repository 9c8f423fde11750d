"""Spine-width and wrap-cover dimension math.

Responsibilities:
- Compute spine width as a linear function of page count per paper stock.
- Validate page counts and trim sizes against vendor rule tables.
- Produce KDP wrap-cover canvas geometry and pixel conversions.

All functions are pure: no I/O and no module state beyond the constant
vendor tables, so they are safe to call from concurrent tasks.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import InvalidInputError, UnsupportedTrimSizeError
from ..models import KDPCoverSpecs, SpineCalculationResult
from .vendors import KDP, PrintVendor, TrimSize

_COVER_SAFE_ZONE_INCHES = 0.125


@dataclass(frozen=True, slots=True)
class PageCountValidation:
    """Page-count check outcome; `reason` explains a rejection."""

    valid: bool
    reason: str | None = None


def _require_page_count(page_count: object) -> int:
    if isinstance(page_count, bool) or not isinstance(page_count, int):
        raise InvalidInputError(f"Page count must be an integer, got `{page_count!r}`.")
    return page_count


def _stock_ppi(vendor: PrintVendor, paper_type: str, color: bool) -> float:
    """Return pages-per-inch for a paper stock, switching white stock to color."""

    key = paper_type.strip().lower()
    if color and key == "cream":
        raise InvalidInputError(
            f"Cream paper does not support color interiors on {vendor.name}.",
            hint="Use white paper for color interiors.",
        )
    return vendor.ppi_for("color" if color and key == "white" else key)


def calculate_spine_width(
    page_count: int,
    paper_type: str,
    vendor: PrintVendor = KDP,
    binding: str = "perfect",
    color: bool = False,
) -> float:
    """Return spine width in inches, rounded to four decimals.

    Width is `page_count / pages_per_inch + binding allowance`. A color
    interior on white stock uses the color pages-per-inch.

    Raises:
        InvalidInputError: Below the vendor's minimum printable page count, for
            unknown paper stocks or bindings, and for color on cream paper.
    """

    pages = _require_page_count(page_count)
    if pages < vendor.minimum_pages:
        raise InvalidInputError(
            f"{vendor.name} requires at least {vendor.minimum_pages} pages; got {pages}.",
            hint="Add content or blank end pages to reach the vendor minimum.",
        )
    ppi = _stock_ppi(vendor, paper_type, color)
    return round(pages / ppi + vendor.allowance_for(binding), 4)


def calculate_spine(
    page_count: int,
    paper_type: str,
    trim_size: str | TrimSize,
    vendor: PrintVendor = KDP,
    binding: str = "perfect",
    color: bool = False,
) -> SpineCalculationResult:
    """Return spine width plus the bleed-adjusted wrap canvas dimensions.

    `total_trim_width_inches` spans bleed, back panel, spine, front panel and bleed.

    Raises:
        UnsupportedTrimSizeError: If the vendor does not offer `trim_size`.
        InvalidInputError: For page counts below the vendor minimum, unknown
            bindings and color on cream paper.
    """

    trim = _supported_trim(trim_size, vendor)
    spine_width = calculate_spine_width(page_count, paper_type, vendor, binding, color)
    notes: list[str] = []
    if spine_width < vendor.min_spine_text_width:
        notes.append(
            f"Spine width {spine_width:.4f}in is below {vendor.min_spine_text_width}in; "
            "no spine text will be printed."
        )
    validation = validate_page_count(page_count, trim, vendor)
    if not validation.valid and validation.reason:
        notes.append(validation.reason)
    return SpineCalculationResult(
        spine_width_inches=spine_width,
        total_trim_width_inches=round(2 * vendor.bleed + 2 * trim.width + spine_width, 4),
        total_trim_height_inches=round(2 * vendor.bleed + trim.height, 4),
        bleed_inches=vendor.bleed,
        pages_per_inch=_stock_ppi(vendor, paper_type, color),
        notes=tuple(notes),
    )


def validate_page_count(
    page_count: int, trim_size: str | TrimSize, vendor: PrintVendor = KDP
) -> PageCountValidation:
    """Check a page count against the vendor limits for the trim's size category."""

    if isinstance(page_count, bool) or not isinstance(page_count, int) or page_count <= 0:
        return PageCountValidation(
            False, f"Page count must be a positive integer, got {page_count!r}."
        )
    try:
        trim = TrimSize.parse(trim_size)
    except InvalidInputError as exc:
        return PageCountValidation(False, exc.detail)
    category = vendor.trim_category(trim)
    minimum, maximum = vendor.page_limits[category]
    if page_count < minimum:
        return PageCountValidation(
            False,
            f"{vendor.name} requires at least {minimum} pages for {category} trims "
            f"({trim.key}); got {page_count}.",
        )
    if page_count > maximum:
        return PageCountValidation(
            False,
            f"{vendor.name} allows at most {maximum} pages for {category} trims "
            f"({trim.key}); got {page_count}.",
        )
    return PageCountValidation(True)


def validate_trim_size(trim_size: str | TrimSize, vendor: PrintVendor = KDP) -> bool:
    """Return whether the trim size is in the vendor's enumerated set."""

    try:
        trim = TrimSize.parse(trim_size)
    except InvalidInputError:
        return False
    return vendor.supports(trim)


def generate_kdp_cover_specs(
    page_count: int,
    trim_size: str | TrimSize,
    paper_type: str = "white",
    binding: str = "perfect",
    color: bool = False,
) -> KDPCoverSpecs:
    """Return the KDP wrap-cover canvas geometry for one book.

    Raises:
        UnsupportedTrimSizeError: If KDP does not offer `trim_size`.
        InvalidInputError: For out-of-range page counts, unknown paper stocks or
            bindings, and color on cream paper.
    """

    trim = _supported_trim(trim_size, KDP)
    validation = validate_page_count(page_count, trim, KDP)
    if not validation.valid:
        raise InvalidInputError(validation.reason or "Invalid page count.")
    spine_width = calculate_spine_width(page_count, paper_type, KDP, binding, color)
    bleed = KDP.bleed
    back_width = bleed + trim.width
    front_cover_x = back_width + spine_width
    return KDPCoverSpecs(
        trim_width=trim.width,
        trim_height=trim.height,
        page_count=page_count,
        paper_type=paper_type.strip().lower(),
        spine_width=spine_width,
        bleed=bleed,
        total_width=front_cover_x + trim.width + bleed,
        total_height=trim.height + 2 * bleed,
        back_width=back_width,
        back_cover_x=bleed,
        spine_x=back_width,
        front_cover_x=front_cover_x,
        safe_zone_inches=_COVER_SAFE_ZONE_INCHES,
        spine_text_allowed=spine_width >= KDP.min_spine_text_width,
    )


def inches_to_pixels(inches: float, dpi: int = 300) -> int:
    """Convert inches to whole pixels at `dpi`."""

    if dpi <= 0:
        raise InvalidInputError(f"DPI must be positive, got {dpi}.")
    return int(round(inches * dpi))


def _supported_trim(trim_size: str | TrimSize, vendor: PrintVendor) -> TrimSize:
    """Parse a trim size and require vendor support."""

    trim = TrimSize.parse(trim_size)
    if not vendor.supports(trim):
        supported = ", ".join(candidate.key for candidate in vendor.trim_sizes)
        raise UnsupportedTrimSizeError(
            f"Trim size {trim.key} is not offered by {vendor.name}.",
            hint=f"Supported trim sizes: {supported}.",
        )
    return trim

"""Print-vendor specifications and physical dimension math."""

from .spine import (
    PageCountValidation,
    calculate_spine,
    calculate_spine_width,
    generate_kdp_cover_specs,
    inches_to_pixels,
    validate_page_count,
    validate_trim_size,
)
from .vendors import KDP, LULU, Margins, PrintVendor, TrimSize, vendor_by_name

__all__ = [
    "KDP",
    "LULU",
    "Margins",
    "PageCountValidation",
    "PrintVendor",
    "TrimSize",
    "calculate_spine",
    "calculate_spine_width",
    "generate_kdp_cover_specs",
    "inches_to_pixels",
    "validate_page_count",
    "validate_trim_size",
    "vendor_by_name",
]

"""Rendering capability and helpers shared by the PDF generators."""

from .images import IMAGE_POLICIES, Box, fit_image, image_size, place_image, require_image_policy
from .layout import (
    BODY_STYLE,
    TextStyle,
    chapter_heading,
    compose_layout_from_chapters,
    resolve_print_pages,
)
from .page import render_page_body
from .preflight import preflight_pdf
from .surface import RenderSurface, ReportLabSurface, SurfaceFactory
from .text import (
    first_chapter_page_number,
    folio_label,
    roman_numeral,
    split_paragraphs,
    wrap_text,
)

__all__ = [
    "BODY_STYLE",
    "Box",
    "IMAGE_POLICIES",
    "RenderSurface",
    "ReportLabSurface",
    "SurfaceFactory",
    "TextStyle",
    "chapter_heading",
    "compose_layout_from_chapters",
    "first_chapter_page_number",
    "fit_image",
    "folio_label",
    "image_size",
    "place_image",
    "preflight_pdf",
    "render_page_body",
    "require_image_policy",
    "resolve_print_pages",
    "roman_numeral",
    "split_paragraphs",
    "wrap_text",
]

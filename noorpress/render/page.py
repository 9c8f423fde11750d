"""Page-body drawing shared by the print renderers.

Responsibilities:
- Draw one layout page's blocks inside a vendor-computed safe box.
- Truncate overflowing text with a warning instead of spilling past margins.

Vendor geometry (page size, bleed, margins, folios, running heads) stays in
each vendor's generator.
"""

from __future__ import annotations

from ..io.images import ImageSet
from ..models import Page
from .images import Box, place_image
from .layout import BODY_STYLE, TextStyle
from .surface import RenderSurface
from .text import wrap_text

_TITLE_SIZE = 24.0
_SUBTITLE_SIZE = 14.0
_COPYRIGHT_SIZE = 9.0
_IMAGE_GAP = 0.15
_MIXED_IMAGE_SHARE = 0.5
_FIT_EPSILON = 1e-6


def render_page_body(
    surface: RenderSurface,
    page: Page,
    box: Box,
    images: ImageSet,
    image_policy: str,
    warnings: list[str],
    style: TextStyle = BODY_STYLE,
) -> None:
    """Draw the content blocks of `page` inside `box`."""

    if page.page_type == "blank":
        return
    if page.page_type == "title":
        _render_title(surface, page, box)
        return
    if page.page_type == "copyright":
        _render_copyright(surface, page, box, style)
        return

    text_blocks = [block.text or "" for block in page.text_blocks()]
    image_refs = [block.image_ref for block in page.image_blocks() if block.image_ref]
    text_box = box
    if image_refs:
        share = _MIXED_IMAGE_SHARE if text_blocks else 1.0
        image_area = Box(box.x, box.y, box.width, box.height * share)
        _render_images(surface, page, image_area, image_refs, images, image_policy, warnings)
        text_top = box.y + image_area.height + _IMAGE_GAP
        text_box = Box(box.x, text_top, box.width, box.y + box.height - text_top)
    if text_blocks:
        _render_text_flow(surface, page, text_box, text_blocks, warnings, style)


def _render_images(
    surface: RenderSurface,
    page: Page,
    area: Box,
    refs: list[str],
    images: ImageSet,
    image_policy: str,
    warnings: list[str],
) -> None:
    slot_height = (area.height - _IMAGE_GAP * (len(refs) - 1)) / len(refs)
    for index, ref in enumerate(refs):
        slot = Box(area.x, area.y + index * (slot_height + _IMAGE_GAP), area.width, slot_height)
        place_image(surface, images, ref, slot, image_policy, warnings, f"Page {page.number}")


def _render_text_flow(
    surface: RenderSurface,
    page: Page,
    box: Box,
    paragraphs: list[str],
    warnings: list[str],
    style: TextStyle,
) -> None:
    bottom = box.y + box.height + _FIT_EPSILON
    y = box.y
    dropped = 0
    for paragraph in paragraphs:
        lines = wrap_text(paragraph, surface.measure_text, style.font, style.size, box.width)
        for line in lines:
            if dropped or y + style.line_height > bottom:
                dropped += 1
                continue
            surface.draw_text(box.x, y + style.line_height * 0.75, line, style.font, style.size)
            y += style.line_height
        y += style.paragraph_gap
    if dropped:
        warnings.append(f"Page {page.number}: text overflow, {dropped} line(s) truncated")


def _render_title(surface: RenderSurface, page: Page, box: Box) -> None:
    blocks = [block.text or "" for block in page.text_blocks()]
    if not blocks:
        return
    center_x = box.x + box.width / 2
    y = box.y + box.height / 3
    title_height = _TITLE_SIZE * 1.2 / 72.0
    title_lines = wrap_text(
        blocks[0], surface.measure_text, "Helvetica-Bold", _TITLE_SIZE, box.width
    )
    for line in title_lines:
        surface.draw_text(center_x, y, line, "Helvetica-Bold", _TITLE_SIZE, align="center")
        y += title_height
    y += title_height / 2
    subtitle_height = _SUBTITLE_SIZE * 1.3 / 72.0
    for text in blocks[1:]:
        for line in wrap_text(text, surface.measure_text, "Helvetica", _SUBTITLE_SIZE, box.width):
            surface.draw_text(center_x, y, line, "Helvetica", _SUBTITLE_SIZE, align="center")
            y += subtitle_height
        y += subtitle_height / 2


def _render_copyright(surface: RenderSurface, page: Page, box: Box, style: TextStyle) -> None:
    line_height = _COPYRIGHT_SIZE * style.leading / 72.0
    lines: list[str] = []
    for block in page.text_blocks():
        lines.extend(
            wrap_text(
                block.text or "", surface.measure_text, style.font, _COPYRIGHT_SIZE, box.width
            )
        )
    y = box.y + box.height - line_height * len(lines)
    for line in lines:
        surface.draw_text(box.x, y + line_height * 0.75, line, style.font, _COPYRIGHT_SIZE)
        y += line_height

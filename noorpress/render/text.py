"""Text helpers shared by the print renderers.

Responsibilities:
- Split chapter bodies into paragraphs and wrap them to a measured width.
- Produce folio labels following front-matter numbering conventions.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
import re

from ..models import Page
from ..models.artifacts import FRONT_MATTER_PAGE_TYPES

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n+")
# Measured widths within this many inches of the limit still fit.
_FIT_TOLERANCE = 1e-9
_ROMAN_VALUES = (
    (1000, "m"),
    (900, "cm"),
    (500, "d"),
    (400, "cd"),
    (100, "c"),
    (90, "xc"),
    (50, "l"),
    (40, "xl"),
    (10, "x"),
    (9, "ix"),
    (5, "v"),
    (4, "iv"),
    (1, "i"),
)

MeasureText = Callable[[str, str, float], float]


def split_paragraphs(body: str) -> list[str]:
    """Split text on blank lines, collapsing inner whitespace and dropping empties."""

    paragraphs: list[str] = []
    for raw in _PARAGRAPH_BREAK.split(body.replace("\r\n", "\n")):
        collapsed = " ".join(raw.split())
        if collapsed:
            paragraphs.append(collapsed)
    return paragraphs


def wrap_text(
    text: str, measure: MeasureText, font: str, size: float, max_width: float
) -> list[str]:
    """Greedily wrap `text` into lines no wider than `max_width` inches.

    Words wider than the line are broken between characters.
    """

    lines: list[str] = []
    current = ""
    for word in text.split():
        candidate = f"{current} {word}" if current else word
        if measure(candidate, font, size) <= max_width + _FIT_TOLERANCE:
            current = candidate
            continue
        if current:
            lines.append(current)
            current = ""
        if measure(word, font, size) <= max_width + _FIT_TOLERANCE:
            current = word
            continue
        for piece in _break_word(word, measure, font, size, max_width):
            if current:
                lines.append(current)
            current = piece
    if current:
        lines.append(current)
    return lines


def _break_word(
    word: str, measure: MeasureText, font: str, size: float, max_width: float
) -> list[str]:
    pieces: list[str] = []
    current = ""
    for character in word:
        if current and measure(current + character, font, size) > max_width + _FIT_TOLERANCE:
            pieces.append(current)
            current = character
        else:
            current += character
    if current:
        pieces.append(current)
    return pieces


def roman_numeral(value: int) -> str:
    """Return the lowercase roman numeral for a positive integer."""

    if value <= 0:
        raise ValueError("Roman numerals need a positive integer.")
    remaining = value
    parts: list[str] = []
    for amount, symbol in _ROMAN_VALUES:
        while remaining >= amount:
            parts.append(symbol)
            remaining -= amount
    return "".join(parts)


def first_chapter_page_number(pages: Sequence[Page]) -> int | None:
    """Return the physical number of the first page that belongs to a chapter."""

    for page in pages:
        if page.chapter_number is not None and page.page_type not in FRONT_MATTER_PAGE_TYPES:
            return page.number
    return None


def folio_label(page: Page, first_chapter_page: int | None) -> str | None:
    """Return the printed page number for `page`, or `None` when unnumbered.

    Title, copyright and blank pages are never numbered. Pages before the
    first chapter page use lowercase roman numerals; the rest use their
    physical page number in arabic digits. Without any chapter page every
    numbered page is arabic.
    """

    if page.page_type in FRONT_MATTER_PAGE_TYPES:
        return None
    if first_chapter_page is not None and page.number < first_chapter_page:
        return roman_numeral(page.number)
    return str(page.number)

"""Page composition when the layout stage supplied no spreads.

Responsibilities:
- Build title, copyright, illustration and reflowed text pages from chapters.
- Pad the book to the vendor minimum and to an even page count.
- Share the text metrics used by both composition and rendering so composed
  pages never overflow when drawn.
"""

from __future__ import annotations

from dataclasses import dataclass
import math

from ..errors import EmptyBookError, InvalidInputError
from ..models import Block, BookBundle, LayoutArtifact, Page, validate_layout
from .text import MeasureText, split_paragraphs, wrap_text

_FIT_EPSILON = 1e-6


@dataclass(frozen=True, slots=True)
class TextStyle:
    """Body text metrics; `leading` is a multiple of the font size."""

    font: str = "Helvetica"
    bold_font: str = "Helvetica-Bold"
    size: float = 11.0
    leading: float = 1.4
    paragraph_gap_lines: float = 0.5

    @property
    def line_height(self) -> float:
        return self.size * self.leading / 72.0

    @property
    def paragraph_gap(self) -> float:
        return self.line_height * self.paragraph_gap_lines


BODY_STYLE = TextStyle()


def chapter_heading(number: int, title: str) -> str:
    """Return the heading line that opens a chapter's text."""

    cleaned = title.strip()
    return f"Chapter {number}: {cleaned}" if cleaned else f"Chapter {number}"


def compose_layout_from_chapters(
    bundle: BookBundle,
    measure: MeasureText,
    content_width: float,
    content_height: float,
    minimum_pages: int,
    style: TextStyle = BODY_STYLE,
) -> LayoutArtifact:
    """Compose a print layout from chapters and illustrations.

    Args:
        bundle: Book inputs; only metadata, cover subtitle, chapters and
            illustrations are read.
        measure: Text measuring function of the target surface.
        content_width: Width of the text area in inches.
        content_height: Height of the text area in inches.
        minimum_pages: Pad with blank pages up to this count.
        style: Body text metrics.
    """

    meta = bundle.metadata
    title_blocks = [Block(kind="text", text=meta.title)]
    subtitle = meta.subtitle or bundle.cover.subtitle
    if subtitle:
        title_blocks.append(Block(kind="text", text=subtitle))
    title_blocks.append(Block(kind="text", text=meta.author))

    drafts: list[tuple[str, tuple[Block, ...], int | None, str | None]] = [
        ("title", tuple(title_blocks), None, None),
        (
            "copyright",
            (
                Block(kind="text", text=f"Copyright © {meta.author}. All rights reserved."),
                Block(kind="text", text=f"Published by {meta.publisher}."),
            ),
            None,
            None,
        ),
    ]

    for chapter in bundle.sorted_chapters():
        for illustration in bundle.illustrations_for(chapter.number):
            drafts.append(
                (
                    "image",
                    (Block(kind="image", image_ref=illustration.image_ref),),
                    chapter.number,
                    chapter.title,
                )
            )
        paragraphs = [chapter_heading(chapter.number, chapter.title)]
        paragraphs.extend(split_paragraphs(chapter.body))
        for blocks in _reflow(paragraphs, measure, content_width, content_height, style):
            drafts.append(("text", blocks, chapter.number, chapter.title))

    while len(drafts) < minimum_pages or len(drafts) % 2:
        drafts.append(("blank", tuple(), None, None))

    pages = [
        Page(
            number=index,
            position="right" if index % 2 else "left",
            page_type=page_type,
            blocks=blocks,
            chapter_number=chapter_number,
            chapter_title=chapter_title,
        )
        for index, (page_type, blocks, chapter_number, chapter_title) in enumerate(drafts, start=1)
    ]
    return LayoutArtifact.from_pages(pages)


def resolve_print_pages(
    bundle: BookBundle,
    measure: MeasureText,
    content_width: float,
    content_height: float,
    minimum_pages: int,
    style: TextStyle = BODY_STYLE,
) -> tuple[Page, ...]:
    """Return validated layout pages, composing them when no spreads were supplied."""

    if bundle.layout.spreads:
        validate_layout(bundle.layout)
        return bundle.layout.pages()
    if not bundle.chapters:
        raise EmptyBookError("Book has neither layout spreads nor chapters to print.")
    composed = compose_layout_from_chapters(
        bundle, measure, content_width, content_height, minimum_pages, style
    )
    return composed.pages()


def _reflow(
    paragraphs: list[str],
    measure: MeasureText,
    width: float,
    height: float,
    style: TextStyle,
) -> list[tuple[Block, ...]]:
    """Pack wrapped paragraphs into page-sized groups of text blocks."""

    pages: list[tuple[Block, ...]] = []
    current: list[Block] = []
    used = 0.0
    for paragraph in paragraphs:
        lines = wrap_text(paragraph, measure, style.font, style.size, width)
        while lines:
            fit = math.floor((height - used + _FIT_EPSILON) / style.line_height)
            if fit <= 0:
                if not current:
                    raise InvalidInputError("Text area is smaller than one line of body text.")
                pages.append(tuple(current))
                current, used = [], 0.0
                continue
            taken, lines = lines[:fit], lines[fit:]
            current.append(Block(kind="text", text=" ".join(taken)))
            used += len(taken) * style.line_height + style.paragraph_gap
            if lines:
                pages.append(tuple(current))
                current, used = [], 0.0
    if current:
        pages.append(tuple(current))
    return pages

"""Unit tests for text wrapping, folio numbering and chapter page composition."""

from __future__ import annotations

import pytest

from noorpress.errors import EmptyBookError
from noorpress.models import BookBundle, BookMetadata, Chapter, CoverArtifact, LayoutArtifact, Page
from noorpress.render import (
    Box,
    chapter_heading,
    compose_layout_from_chapters,
    fit_image,
    first_chapter_page_number,
    folio_label,
    resolve_print_pages,
    roman_numeral,
    split_paragraphs,
    wrap_text,
)


def _measure(text: str, font: str, size: float) -> float:
    """Monospace stand-in: every character is a tenth of an inch wide."""

    return len(text) * 0.1


def _bundle(chapters: tuple[Chapter, ...]) -> BookBundle:
    return BookBundle(
        metadata=BookMetadata(book_id="book-1", title="Little Acts", author="A. Writer"),
        layout=LayoutArtifact(),
        cover=CoverArtifact(front_image=None, subtitle="Stories of kindness"),
        chapters=chapters,
    )


def test_split_paragraphs_collapses_whitespace() -> None:
    """Blank lines separate paragraphs; inner line breaks become spaces."""

    body = "First line\ncontinues here.\r\n\r\n\n  Second   paragraph. \n\n   \n"

    assert split_paragraphs(body) == ["First line continues here.", "Second paragraph."]


def test_wrap_text_respects_width_and_breaks_long_words() -> None:
    """No line may exceed the width; oversize words split between characters."""

    lines = wrap_text("a bb ccc dddddddddddd e", _measure, "Helvetica", 11, 0.6)

    assert lines == ["a bb", "ccc", "dddddd", "dddddd", "e"]
    assert max(len(line) for line in lines) == 6
    assert wrap_text("", _measure, "Helvetica", 11, 0.6) == []


def test_roman_numeral_and_invalid_values() -> None:
    """Lowercase roman numerals for front-matter folios."""

    assert [roman_numeral(value) for value in (1, 4, 9, 14, 40, 90, 400, 1994)] == [
        "i",
        "iv",
        "ix",
        "xiv",
        "xl",
        "xc",
        "cd",
        "mcmxciv",
    ]
    with pytest.raises(ValueError):
        roman_numeral(0)


def test_folio_label_numbers_front_matter_roman_and_body_arabic() -> None:
    """Title, copyright and blank pages are unnumbered; the body uses arabic digits."""

    pages = [
        Page(1, "right", "title"),
        Page(2, "left", "copyright"),
        Page(3, "right", "text"),
        Page(4, "left", "blank"),
        Page(5, "right", "text", chapter_number=1),
        Page(6, "left", "image", chapter_number=1),
    ]

    first = first_chapter_page_number(pages)

    assert first == 5
    assert [folio_label(page, first) for page in pages] == [None, None, "iii", None, "5", "6"]
    assert folio_label(Page(3, "right", "text"), None) == "3"


def test_compose_layout_pads_to_minimum_and_even_count() -> None:
    """Composed books open with title and copyright pages and alternate positions."""

    bundle = _bundle(
        (
            Chapter(2, "Second", "Short body."),
            Chapter(1, "First", "Para one.\n\nPara two."),
        )
    )

    layout = compose_layout_from_chapters(bundle, _measure, 4.0, 7.0, minimum_pages=24)
    pages = layout.pages()

    assert len(pages) == 24
    assert [page.page_type for page in pages[:4]] == ["title", "copyright", "text", "text"]
    assert pages[0].blocks[1].text == "Stories of kindness"
    assert pages[2].blocks[0].text == chapter_heading(1, "First") == "Chapter 1: First"
    assert pages[3].chapter_number == 2
    assert all(page.page_type == "blank" for page in pages[4:])
    assert all(page.position == ("right" if page.number % 2 else "left") for page in pages)


def test_compose_layout_flows_long_chapters_across_pages() -> None:
    """Text that does not fit one page continues on the next text page."""

    body = " ".join(["word"] * 400)
    bundle = _bundle((Chapter(1, "", body),))

    pages = compose_layout_from_chapters(bundle, _measure, 2.0, 1.0, minimum_pages=2).pages()
    text_pages = [page for page in pages if page.page_type == "text"]

    assert len(text_pages) > 1
    assert text_pages[0].blocks[0].text == "Chapter 1"
    assert len(pages) % 2 == 0


def test_resolve_print_pages_requires_content() -> None:
    """A bundle with neither spreads nor chapters cannot be printed."""

    with pytest.raises(EmptyBookError):
        resolve_print_pages(_bundle(tuple()), _measure, 4.0, 7.0, minimum_pages=24)


def test_fit_image_preserves_aspect_ratio(png_data: bytes) -> None:
    """A 60x40 image fills the width of a square box and is centered vertically."""

    fitted = fit_image(png_data, Box(x=1.0, y=1.0, width=3.0, height=3.0))

    assert fitted.width == pytest.approx(3.0)
    assert fitted.height == pytest.approx(2.0)
    assert fitted.x == pytest.approx(1.0)
    assert fitted.y == pytest.approx(1.5)

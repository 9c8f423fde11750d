"""Integration tests for the Lulu interior PDF and its running heads."""

from __future__ import annotations

from dataclasses import replace
from io import BytesIO

import pytest
from pypdf import PdfReader

from noorpress.errors import InvalidInputError, UnsupportedTrimSizeError
from noorpress.lulu import LuluHeaderFooterConfig, LuluPdfGenerator
from noorpress.render import ReportLabSurface


class RecordingSurface(ReportLabSurface):
    """ReportLab surface that remembers every text draw per page."""

    instances: list[RecordingSurface] = []

    def __init__(self) -> None:
        super().__init__()
        self.texts: list[tuple[int, str, float, str]] = []
        RecordingSurface.instances.append(self)

    def draw_text(self, x, y, text, font, size, align="left", angle=0) -> None:
        self.texts.append((self.page_count, text, size, align))
        super().draw_text(x, y, text, font, size, align=align, angle=angle)

    def heads(self, page_number: int) -> list[str]:
        """Return centered 9pt strings drawn on one page (running heads)."""

        return [
            text
            for page, text, size, align in self.texts
            if page == page_number and size == 9.0 and align == "center"
        ]

    def slots(self, page_number: int) -> list[tuple[str, str]]:
        """Return `(text, align)` for side-aligned 9pt strings drawn on one page."""

        return [
            (text, align)
            for page, text, size, align in self.texts
            if page == page_number and size == 9.0 and align != "center"
        ]


@pytest.fixture
def recording_factory():
    RecordingSurface.instances = []
    return RecordingSurface


def test_lulu_running_heads_alternate_book_and_chapter_titles(
    make_book, recording_factory
) -> None:
    """Even pages carry the book title, odd pages the chapter, footers the folio."""

    bundle = make_book(chapter_count=3)

    result = LuluPdfGenerator(surface_factory=recording_factory).generate(bundle)
    surface = recording_factory.instances[0]

    assert result.warnings == ()
    assert result.page_count == 32
    assert surface.heads(1) == []
    assert surface.heads(2) == []
    assert surface.heads(3) == ["Part 1", "3"]
    assert surface.heads(4) == ["The Kind Neighbor", "4"]
    assert surface.heads(5) == ["Part 2", "5"]
    assert surface.heads(9) == []

    [pdf] = result.files
    assert pdf.filename == "The-Kind-Neighbor-Lulu.pdf"
    reader = PdfReader(BytesIO(pdf.data))
    assert len(reader.pages) == 32
    assert float(reader.pages[0].mediabox.width) == pytest.approx(6.0 * 72)
    assert float(reader.pages[0].mediabox.height) == pytest.approx(9.0 * 72)
    assert result.details["bleed"] == "false"


def test_lulu_custom_templates_and_disabled_heads(make_book, recording_factory) -> None:
    """Blank templates suppress a head; placeholders may repeat and mix."""

    bundle = make_book(chapter_count=2)
    settings = LuluHeaderFooterConfig(
        even_header="{book} / {author}", odd_header="", footer="- {page} -"
    )

    LuluPdfGenerator(surface_factory=recording_factory, header_footer=settings).generate(bundle)
    surface = recording_factory.instances[0]

    assert surface.heads(3) == ["- 3 -"]
    assert surface.heads(4) == ["The Kind Neighbor / Fatima Author", "- 4 -"]

    recording_factory.instances.clear()
    LuluPdfGenerator(
        surface_factory=recording_factory,
        header_footer=LuluHeaderFooterConfig(headers=False, footers=False),
    ).generate(bundle)
    assert recording_factory.instances[0].heads(4) == []


def test_lulu_bleed_adds_an_eighth_inch_on_every_edge(make_book) -> None:
    """With bleed enabled each page grows by twice the bleed in both directions."""

    result = LuluPdfGenerator(include_bleed=True).generate(make_book(chapter_count=1))

    reader = PdfReader(BytesIO(result.files[0].data))
    assert float(reader.pages[0].mediabox.width) == pytest.approx(6.25 * 72)
    assert float(reader.pages[0].mediabox.height) == pytest.approx(9.25 * 72)
    assert result.details["page_size_inches"] == "6.2500x9.2500"


def test_lulu_rejects_unsupported_trim_and_short_books(make_book) -> None:
    """Lulu trims and its 32-page minimum are enforced before drawing."""

    with pytest.raises(UnsupportedTrimSizeError, match="8.25x11"):
        LuluPdfGenerator().generate(make_book(trim_size="8.25x11"))
    with pytest.raises(InvalidInputError, match="at least 32"):
        LuluPdfGenerator().generate(make_book(chapter_count=1, page_count=24))


def test_lulu_left_and_right_slots_mirror_on_odd_pages(make_book, recording_factory) -> None:
    """A left slot sits left on even pages and moves right on odd pages."""

    bundle = make_book(chapter_count=2)
    settings = LuluHeaderFooterConfig(
        even_header="", odd_header="", footer="", header_left="{page}", footer_right="{book}"
    )

    LuluPdfGenerator(surface_factory=recording_factory, header_footer=settings).generate(bundle)
    surface = recording_factory.instances[0]

    assert surface.slots(4) == [("4", "left"), ("The Kind Neighbor", "right")]
    assert surface.slots(5) == [("5", "right"), ("The Kind Neighbor", "left")]

    recording_factory.instances.clear()
    fixed = replace(settings, alternate_left_right=False)
    LuluPdfGenerator(surface_factory=recording_factory, header_footer=fixed).generate(bundle)
    assert recording_factory.instances[0].slots(5) == [
        ("5", "left"),
        ("The Kind Neighbor", "right"),
    ]

"""Integration tests for KDP interior and wrap-cover PDF rendering."""

from __future__ import annotations

from dataclasses import replace
from io import BytesIO

from PIL import Image
import pytest
from pypdf import PdfReader

from noorpress.errors import ImageLoadError, InvalidInputError, UnsupportedTrimSizeError
from noorpress.kdp import KdpPdfGenerator
from noorpress.render import ReportLabSurface
from noorpress.specs import generate_kdp_cover_specs


def _page_sizes(data: bytes) -> list[tuple[float, float]]:
    reader = PdfReader(BytesIO(data))
    return [
        (round(float(page.mediabox.width) / 72.0, 3), round(float(page.mediabox.height) / 72.0, 3))
        for page in reader.pages
    ]


def test_kdp_three_chapter_book_with_one_missing_illustration(make_book) -> None:
    """A single unavailable illustration degrades to exactly one placeholder warning."""

    bundle = make_book(chapter_count=3, missing_illustration=2)

    result = KdpPdfGenerator().generate(bundle)

    assert len(result.warnings) == 1
    assert "image unavailable, placeholder drawn" in result.warnings[0]
    assert result.page_count == 32

    interior, cover = result.files
    assert interior.filename == "The-Kind-Neighbor-KDP-Interior.pdf"
    assert cover.filename == "The-Kind-Neighbor-KDP-Cover.pdf"
    assert interior.data.startswith(b"%PDF-")

    interior_sizes = _page_sizes(interior.data)
    assert len(interior_sizes) == 32
    assert set(interior_sizes) == {(6.125, 9.25)}

    specs = generate_kdp_cover_specs(32, "6x9", "white")
    assert _page_sizes(cover.data) == [
        (round(specs.total_width, 3), round(specs.total_height, 3))
    ]
    assert result.details["spine_width_inches"] == "0.0749"
    assert result.details["cover_size_pixels"] == "3697x2775"
    assert result.details["trim_size"] == "6x9"


def test_kdp_pads_odd_page_counts_and_reports_missing_cover_parts(make_book) -> None:
    """Odd layouts gain one blank page; missing blurb and back art are warnings."""

    bundle = make_book(chapter_count=1, page_count=31, back_image=False, back_blurb=None)

    result = KdpPdfGenerator(dpi=150).generate(bundle)

    assert result.page_count == 32
    assert "Interior page count was odd; one blank page appended." in result.warnings
    assert "Back cover art missing; back panel left plain." in result.warnings
    assert "Back cover blurb missing." in result.warnings
    assert result.details["dpi"] == "150"
    assert len(_page_sizes(result.files[0].data)) == 32


def test_kdp_thin_spine_omits_spine_text(make_book) -> None:
    """A 24-page book is below the spine-text width and says so."""

    bundle = make_book(chapter_count=1, page_count=24)

    result = KdpPdfGenerator().generate(bundle)

    assert any("spine text omitted" in warning for warning in result.warnings)


def test_kdp_fail_policy_raises_for_missing_illustration(make_book) -> None:
    """With the fail policy an unavailable image aborts the render."""

    bundle = make_book(chapter_count=3, missing_illustration=1)

    with pytest.raises(ImageLoadError):
        KdpPdfGenerator(image_policy="fail").generate(bundle)


def test_kdp_rejects_unsupported_trim_and_page_counts(make_book) -> None:
    """Unsupported trims and too-short books fail before any drawing."""

    with pytest.raises(UnsupportedTrimSizeError, match="8.5x8.5"):
        KdpPdfGenerator().generate(make_book(trim_size="8.5x8.5"))
    with pytest.raises(InvalidInputError, match="at least 24"):
        KdpPdfGenerator().generate(make_book(chapter_count=1, page_count=10))
    with pytest.raises(InvalidInputError, match="paper type"):
        KdpPdfGenerator(paper_type="glossy").generate(make_book())


class RecordingSurface(ReportLabSurface):
    """ReportLab surface that remembers every image box it draws."""

    instances: list[RecordingSurface] = []

    def __init__(self) -> None:
        super().__init__()
        self.images: list[tuple[bytes, float, float, float, float]] = []
        RecordingSurface.instances.append(self)

    def draw_image(self, data, x, y, width, height) -> None:
        self.images.append((data, x, y, width, height))
        super().draw_image(data, x, y, width, height)


def test_kdp_cover_art_covers_each_panel_through_the_bleed(make_book, write_png) -> None:
    """Square art is cropped so back and front panels are covered edge to edge."""

    bundle = make_book(chapter_count=1)
    square = str(write_png("square.png", (120, 120), "green"))
    bundle = replace(bundle, cover=replace(bundle.cover, front_image=square, back_image=square))
    RecordingSurface.instances = []

    result = KdpPdfGenerator(surface_factory=RecordingSurface).generate(bundle)

    specs = generate_kdp_cover_specs(result.page_count, "6x9", "white")
    cover = RecordingSurface.instances[1]
    (back_data, *back_box), (front_data, *front_box) = cover.images
    assert back_box == pytest.approx([0.0, 0.0, specs.back_width, specs.total_height])
    assert front_box == pytest.approx(
        [specs.front_cover_x, 0.0, specs.total_width - specs.front_cover_x, specs.total_height]
    )
    for data, box in ((back_data, back_box), (front_data, front_box)):
        with Image.open(BytesIO(data)) as image:
            width, height = image.size
        assert width / height == pytest.approx(box[2] / box[3], rel=0.01)


def test_kdp_warns_when_the_back_blurb_overflows(make_book) -> None:
    """A blurb taller than the back panel is truncated with a warning."""

    bundle = make_book(chapter_count=1, back_blurb="Patience is beautiful. " * 400)

    result = KdpPdfGenerator().generate(bundle)

    assert any(
        warning.startswith("Back cover blurb overflows the back panel;")
        for warning in result.warnings
    )

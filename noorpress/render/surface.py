"""Drawing capability used by the PDF generators.

Responsibilities:
- Define the immediate-mode drawing contract generators render against.
- Implement it over a ReportLab canvas.

Coordinates are inches with the origin at the top-left corner of the current
page; `y` in `draw_text` is the text baseline.
"""

from __future__ import annotations

from collections.abc import Callable
from io import BytesIO
from typing import Protocol

from reportlab.lib.units import inch
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas


class RenderSurface(Protocol):
    """Minimal page-drawing contract shared by every PDF generator."""

    def new_page(self, width: float, height: float) -> None:
        """Start a new page of `width` x `height` inches."""

    def measure_text(self, text: str, font: str, size: float) -> float:
        """Return the advance width of `text` in inches."""

    def draw_text(
        self,
        x: float,
        y: float,
        text: str,
        font: str,
        size: float,
        align: str = "left",
        angle: float = 0,
    ) -> None:
        """Draw one line of text anchored at `(x, y)`."""

    def draw_image(self, data: bytes, x: float, y: float, width: float, height: float) -> None:
        """Draw encoded image bytes into the box with top-left corner `(x, y)`."""

    def draw_rect(
        self, x: float, y: float, width: float, height: float, fill_gray: float = 0.85
    ) -> None:
        """Fill a rectangle with a gray level (0 black, 1 white)."""

    def finish(self) -> bytes:
        """Close the document and return its bytes."""


SurfaceFactory = Callable[[], RenderSurface]


class ReportLabSurface:
    """`RenderSurface` backed by `reportlab.pdfgen.canvas.Canvas`."""

    def __init__(self, title: str | None = None, author: str | None = None) -> None:
        self._buffer = BytesIO()
        self._canvas = canvas.Canvas(self._buffer, invariant=1, pageCompression=1)
        if title:
            self._canvas.setTitle(title)
        if author:
            self._canvas.setAuthor(author)
        self._page_open = False
        self._page_height = 0.0
        self.page_count = 0

    def new_page(self, width: float, height: float) -> None:
        if self._page_open:
            self._canvas.showPage()
        self._canvas.setPageSize((width * inch, height * inch))
        self._page_height = height
        self._page_open = True
        self.page_count += 1

    def measure_text(self, text: str, font: str, size: float) -> float:
        return stringWidth(text, font, size) / inch

    def draw_text(
        self,
        x: float,
        y: float,
        text: str,
        font: str,
        size: float,
        align: str = "left",
        angle: float = 0,
    ) -> None:
        self._require_page()
        c = self._canvas
        c.saveState()
        c.setFillGray(0)
        c.setFont(font, size)
        c.translate(x * inch, (self._page_height - y) * inch)
        if angle:
            c.rotate(angle)
        if align == "center":
            c.drawCentredString(0, 0, text)
        elif align == "right":
            c.drawRightString(0, 0, text)
        else:
            c.drawString(0, 0, text)
        c.restoreState()

    def draw_image(self, data: bytes, x: float, y: float, width: float, height: float) -> None:
        self._require_page()
        self._canvas.drawImage(
            ImageReader(BytesIO(data)),
            x * inch,
            (self._page_height - y - height) * inch,
            width=width * inch,
            height=height * inch,
            mask="auto",
        )

    def draw_rect(
        self, x: float, y: float, width: float, height: float, fill_gray: float = 0.85
    ) -> None:
        self._require_page()
        c = self._canvas
        c.saveState()
        c.setFillGray(fill_gray)
        c.rect(
            x * inch,
            (self._page_height - y - height) * inch,
            width * inch,
            height * inch,
            fill=1,
            stroke=0,
        )
        c.restoreState()

    def finish(self) -> bytes:
        if not self._page_open:
            raise RuntimeError("Cannot finish a PDF without pages.")
        self._canvas.showPage()
        self._canvas.save()
        self._page_open = False
        return self._buffer.getvalue()

    def _require_page(self) -> None:
        if not self._page_open:
            raise RuntimeError("Call `new_page` before drawing.")

"""Lulu print interior PDF generation.

Responsibilities:
- Render the interior PDF with Lulu margins and optional four-edge bleed.
- Stamp running headers (book title on even pages, chapter title on odd pages),
  page-number footers and mirrored left/right slots from placeholder templates.

Key types:
- `LuluHeaderFooterConfig`: running head/foot templates and switches.
- `LuluPdfGenerator`: produces `<title>-Lulu.pdf`.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import InvalidInputError, UnsupportedTrimSizeError
from ..io.images import ImageLoader, ImageSet
from ..models import BookBundle, ExportFile, GenerationResult, Page
from ..models.artifacts import FRONT_MATTER_PAGE_TYPES
from ..parsing import sanitize_filename
from ..render.images import Box, require_image_policy
from ..render.layout import BODY_STYLE, resolve_print_pages
from ..render.page import render_page_body
from ..render.preflight import preflight_pdf
from ..render.surface import RenderSurface, ReportLabSurface, SurfaceFactory
from ..render.text import first_chapter_page_number, folio_label
from ..specs.spine import validate_page_count
from ..specs.vendors import LULU, TrimSize

PDF_MEDIA_TYPE = "application/pdf"
_HEADER_RISE = 0.3
_FOOTER_DROP = 0.4


@dataclass(frozen=True, slots=True)
class LuluHeaderFooterConfig:
    """Running header/footer settings.

    Templates accept `{book}`, `{chapter}`, `{page}` and `{author}` placeholders.
    Centered headers come from `even_header`/`odd_header`; the centered footer
    from `footer`. Left and right slots are laid out as configured on even
    (verso) pages; with `alternate_left_right` they swap sides on odd (recto)
    pages so they stay on the outer or inner edge of the spread.
    """

    headers: bool = True
    footers: bool = True
    font: str = "Helvetica"
    font_size: float = 9.0
    even_header: str = "{book}"
    odd_header: str = "{chapter}"
    footer: str = "{page}"
    header_left: str = ""
    header_right: str = ""
    footer_left: str = ""
    footer_right: str = ""
    alternate_left_right: bool = True

    def render(self, template: str, *, book: str, chapter: str, page: str, author: str) -> str:
        """Substitute every placeholder occurrence in `template`."""

        return (
            template.replace("{book}", book)
            .replace("{chapter}", chapter)
            .replace("{page}", page)
            .replace("{author}", author)
        ).strip()

    def slots(self, page_number: int, header: bool) -> tuple[str, str, str]:
        """Return `(left, center, right)` templates for one page's header or footer."""

        if header:
            center = self.even_header if page_number % 2 == 0 else self.odd_header
            left, right = self.header_left, self.header_right
        else:
            center = self.footer
            left, right = self.footer_left, self.footer_right
        if self.alternate_left_right and page_number % 2 == 1:
            left, right = right, left
        return left, center, right


class LuluPdfGenerator:
    """Render the Lulu interior PDF for one book."""

    def __init__(
        self,
        image_loader: ImageLoader | None = None,
        surface_factory: SurfaceFactory = ReportLabSurface,
        header_footer: LuluHeaderFooterConfig | None = None,
        include_bleed: bool = False,
        image_policy: str = "placeholder",
    ) -> None:
        self._image_loader = image_loader or ImageLoader()
        self._surface_factory = surface_factory
        self.header_footer = header_footer or LuluHeaderFooterConfig()
        self.include_bleed = include_bleed
        self.image_policy = require_image_policy(image_policy)

    def generate(self, bundle: BookBundle, images: ImageSet | None = None) -> GenerationResult:
        """Render the Lulu interior.

        Raises:
            UnsupportedTrimSizeError: If Lulu does not offer the cover trim size.
            InvalidInputError: For bad layouts or page counts.
            ImageLoadError: For unavailable images when the policy is `fail`.
        """

        trim = TrimSize.parse(bundle.cover.trim_size)
        if not LULU.supports(trim):
            raise UnsupportedTrimSizeError(
                f"Trim size {trim.key} is not offered by Lulu.",
                hint="Choose one of: " + ", ".join(size.key for size in LULU.trim_sizes),
            )

        warnings: list[str] = []
        surface = self._surface_factory()
        margins = LULU.margins
        pages = list(
            resolve_print_pages(
                bundle,
                surface.measure_text,
                trim.width - margins.inside - margins.outside,
                trim.height - margins.top - margins.bottom,
                LULU.minimum_pages,
            )
        )
        if len(pages) % LULU.page_multiple:
            next_number = pages[-1].number + 1
            position = "left" if next_number % 2 == 0 else "right"
            pages.append(Page(number=next_number, position=position, page_type="blank"))
            warnings.append("Interior page count was odd; one blank page appended.")
        validation = validate_page_count(len(pages), trim, LULU)
        if not validation.valid:
            raise InvalidInputError(
                validation.reason or "Invalid Lulu page count.",
                hint="Pad the layout with blank pages or trim content to the Lulu limits.",
            )

        if images is None:
            images = self._image_loader.load_all_sync(bundle.image_refs())

        bleed = LULU.bleed if self.include_bleed else 0.0
        page_size = (trim.width + 2 * bleed, trim.height + 2 * bleed)
        self._render_interior(surface, bundle, pages, trim, bleed, images, warnings)
        data = surface.finish()
        warnings.extend(preflight_pdf(data, len(pages), page_size, "Lulu interior"))

        return GenerationResult(
            files=(
                ExportFile(
                    f"{sanitize_filename(bundle.metadata.title)}-Lulu.pdf", PDF_MEDIA_TYPE, data
                ),
            ),
            warnings=tuple(warnings),
            page_count=len(pages),
            details={
                "trim_size": trim.key,
                "bleed": "true" if self.include_bleed else "false",
                "page_size_inches": f"{page_size[0]:.4f}x{page_size[1]:.4f}",
                "headers": "true" if self.header_footer.headers else "false",
                "footers": "true" if self.header_footer.footers else "false",
            },
        )

    def _render_interior(
        self,
        surface: RenderSurface,
        bundle: BookBundle,
        pages: list[Page],
        trim: TrimSize,
        bleed: float,
        images: ImageSet,
        warnings: list[str],
    ) -> None:
        """Draw every page with Lulu margins and running heads."""

        margins = LULU.margins
        first_chapter_page = first_chapter_page_number(pages)
        running_chapter = ""
        for page in pages:
            surface.new_page(trim.width + 2 * bleed, trim.height + 2 * bleed)
            is_left = page.position == "left"
            box = Box(
                x=bleed + (margins.outside if is_left else margins.inside),
                y=bleed + margins.top,
                width=trim.width - margins.inside - margins.outside,
                height=trim.height - margins.top - margins.bottom,
            )
            render_page_body(surface, page, box, images, self.image_policy, warnings, BODY_STYLE)

            if page.chapter_title:
                running_chapter = page.chapter_title
            if page.page_type in FRONT_MATTER_PAGE_TYPES:
                continue
            self._draw_running_heads(
                surface,
                page,
                box,
                bleed + trim.height,
                bundle,
                running_chapter,
                folio_label(page, first_chapter_page) or "",
            )

    def _draw_running_heads(
        self,
        surface: RenderSurface,
        page: Page,
        box: Box,
        trim_bottom: float,
        bundle: BookBundle,
        chapter_title: str,
        folio: str,
    ) -> None:
        config = self.header_footer
        values = {
            "book": bundle.metadata.title,
            "chapter": chapter_title,
            "page": folio,
            "author": bundle.metadata.author,
        }
        footer_y = trim_bottom - LULU.margins.bottom + _FOOTER_DROP
        rows: list[tuple[float, tuple[str, str, str]]] = []
        if config.headers:
            rows.append((box.y - _HEADER_RISE, config.slots(page.number, header=True)))
        if config.footers:
            rows.append((footer_y, config.slots(page.number, header=False)))
        anchors = (
            (box.x, "left"),
            (box.x + box.width / 2, "center"),
            (box.x + box.width, "right"),
        )
        for y, templates in rows:
            for (x, align), template in zip(anchors, templates):
                text = config.render(template, **values)
                if text:
                    surface.draw_text(x, y, text, config.font, config.font_size, align=align)

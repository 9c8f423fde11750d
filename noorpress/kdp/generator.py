"""Amazon KDP print PDF generation.

Responsibilities:
- Render the interior PDF with KDP bleed, gutter-aware margins and folios.
- Render the single-canvas wrap cover (back, spine, front) from cover specs.
- Fail fast on unsupported trims and page counts before any drawing.

Key types:
- `KdpPdfGenerator`: produces `<title>-KDP-Interior.pdf` and `<title>-KDP-Cover.pdf`.
"""

from __future__ import annotations

from ..errors import InvalidInputError, UnsupportedTrimSizeError
from ..io.images import ImageLoader, ImageSet
from ..models import BookBundle, ExportFile, GenerationResult, KDPCoverSpecs, Page
from ..parsing import sanitize_filename
from ..render.images import Box, place_image, require_image_policy
from ..render.layout import BODY_STYLE, resolve_print_pages
from ..render.page import render_page_body
from ..render.preflight import preflight_pdf
from ..render.surface import RenderSurface, ReportLabSurface, SurfaceFactory
from ..render.text import first_chapter_page_number, folio_label, wrap_text
from ..specs.spine import generate_kdp_cover_specs, validate_page_count
from ..specs.vendors import KDP, TrimSize

PDF_MEDIA_TYPE = "application/pdf"
_FOLIO_FONT = "Helvetica"
_FOLIO_SIZE = 9.0
_FOLIO_OFFSET = 0.4
_BLURB_SIZE = 11.0
_SPINE_FONT = "Helvetica-Bold"
_SPINE_MAX_SIZE = 12.0


class KdpPdfGenerator:
    """Render KDP interior and wrap-cover PDFs for one book."""

    def __init__(
        self,
        image_loader: ImageLoader | None = None,
        surface_factory: SurfaceFactory = ReportLabSurface,
        paper_type: str = "white",
        image_policy: str = "placeholder",
        dpi: int = 300,
        binding: str = "perfect",
    ) -> None:
        self._image_loader = image_loader or ImageLoader()
        self._surface_factory = surface_factory
        self.paper_type = paper_type.strip().lower()
        self.binding = binding.strip().lower()
        self.dpi = dpi
        self.image_policy = require_image_policy(image_policy)

    def generate(self, bundle: BookBundle, images: ImageSet | None = None) -> GenerationResult:
        """Render both KDP files.

        Raises:
            UnsupportedTrimSizeError: If KDP does not offer the cover trim size.
            InvalidInputError: For bad layouts, paper types, bindings or page counts.
            ImageLoadError: For unavailable images when the policy is `fail`.
        """

        trim = TrimSize.parse(bundle.cover.trim_size)
        if not KDP.supports(trim):
            raise UnsupportedTrimSizeError(
                f"Trim size {trim.key} is not offered by KDP.",
                hint="Choose one of: " + ", ".join(size.key for size in KDP.trim_sizes),
            )
        KDP.ppi_for(self.paper_type)
        KDP.allowance_for(self.binding)

        warnings: list[str] = []
        interior = self._surface_factory()
        margins = KDP.margins
        content_width = trim.width - margins.inside - margins.outside
        content_height = trim.height - margins.top - margins.bottom
        pages = list(
            resolve_print_pages(
                bundle, interior.measure_text, content_width, content_height, KDP.minimum_pages
            )
        )
        if len(pages) % KDP.page_multiple:
            next_number = pages[-1].number + 1
            position = "left" if next_number % 2 == 0 else "right"
            pages.append(Page(number=next_number, position=position, page_type="blank"))
            warnings.append("Interior page count was odd; one blank page appended.")
        validation = validate_page_count(len(pages), trim, KDP)
        if not validation.valid:
            raise InvalidInputError(
                validation.reason or "Invalid KDP page count.",
                hint="Pad the layout with blank pages or trim content to the KDP limits.",
            )

        if images is None:
            images = self._image_loader.load_all_sync(bundle.image_refs())

        page_size = (trim.width + KDP.bleed, trim.height + 2 * KDP.bleed)
        self._render_interior(interior, pages, trim, images, warnings)
        interior_bytes = interior.finish()
        warnings.extend(preflight_pdf(interior_bytes, len(pages), page_size, "KDP interior"))

        specs = generate_kdp_cover_specs(len(pages), trim, self.paper_type, self.binding)
        cover = self._surface_factory()
        self._render_cover(cover, bundle, specs, images, warnings)
        cover_bytes = cover.finish()
        warnings.extend(
            preflight_pdf(cover_bytes, 1, (specs.total_width, specs.total_height), "KDP cover")
        )

        pixels = specs.to_pixels(self.dpi)
        base = sanitize_filename(bundle.metadata.title)
        return GenerationResult(
            files=(
                ExportFile(f"{base}-KDP-Interior.pdf", PDF_MEDIA_TYPE, interior_bytes),
                ExportFile(f"{base}-KDP-Cover.pdf", PDF_MEDIA_TYPE, cover_bytes),
            ),
            warnings=tuple(warnings),
            page_count=len(pages),
            details={
                "trim_size": trim.key,
                "paper_type": self.paper_type,
                "binding": self.binding,
                "spine_width_inches": f"{specs.spine_width:.4f}",
                "cover_size_inches": f"{specs.total_width:.4f}x{specs.total_height:.4f}",
                "cover_size_pixels": f"{pixels['total_width']}x{pixels['total_height']}",
                "dpi": str(self.dpi),
                "interior_page_size_inches": f"{page_size[0]:.4f}x{page_size[1]:.4f}",
            },
        )

    def _render_interior(
        self,
        surface: RenderSurface,
        pages: list[Page],
        trim: TrimSize,
        images: ImageSet,
        warnings: list[str],
    ) -> None:
        """Draw every interior page; bleed sits on the outer edge only."""

        margins = KDP.margins
        bleed = KDP.bleed
        first_chapter_page = first_chapter_page_number(pages)
        for page in pages:
            surface.new_page(trim.width + bleed, trim.height + 2 * bleed)
            is_left = page.position == "left"
            trim_x = bleed if is_left else 0.0
            inner_left = margins.outside if is_left else margins.inside
            box = Box(
                x=trim_x + inner_left,
                y=bleed + margins.top,
                width=trim.width - margins.inside - margins.outside,
                height=trim.height - margins.top - margins.bottom,
            )
            render_page_body(surface, page, box, images, self.image_policy, warnings, BODY_STYLE)

            label = folio_label(page, first_chapter_page)
            if label is None:
                continue
            folio_y = bleed + trim.height - _FOLIO_OFFSET
            if is_left:
                surface.draw_text(box.x, folio_y, label, _FOLIO_FONT, _FOLIO_SIZE)
            else:
                surface.draw_text(
                    box.x + box.width, folio_y, label, _FOLIO_FONT, _FOLIO_SIZE, align="right"
                )

    def _render_cover(
        self,
        surface: RenderSurface,
        bundle: BookBundle,
        specs: KDPCoverSpecs,
        images: ImageSet,
        warnings: list[str],
    ) -> None:
        """Draw back art and blurb, spine text, and front art on one canvas.

        Panel art is cropped to cover its panel through the outer bleed.
        """

        cover = bundle.cover
        surface.new_page(specs.total_width, specs.total_height)

        back_panel = Box(0.0, 0.0, specs.back_width, specs.total_height)
        if cover.back_image:
            place_image(
                surface, images, cover.back_image, back_panel, self.image_policy, warnings,
                "Back cover", fill=True,
            )
        else:
            warnings.append("Back cover art missing; back panel left plain.")

        if cover.back_blurb:
            self._draw_blurb(surface, cover.back_blurb, specs, warnings)
        else:
            warnings.append("Back cover blurb missing.")

        if specs.spine_text_allowed:
            self._draw_spine_text(surface, cover.spine_text or bundle.metadata.title, specs)
        else:
            warnings.append(
                f"Spine width {specs.spine_width:.4f}in is below "
                f"{KDP.min_spine_text_width}in; spine text omitted."
            )

        front_panel = Box(
            specs.front_cover_x, 0.0, specs.trim_width + specs.bleed, specs.total_height
        )
        if cover.front_image:
            place_image(
                surface, images, cover.front_image, front_panel, self.image_policy, warnings,
                "Front cover", fill=True,
            )
        else:
            surface.draw_rect(
                front_panel.x, front_panel.y, front_panel.width, front_panel.height
            )
            warnings.append("Front cover art missing; placeholder drawn.")

    @staticmethod
    def _draw_blurb(
        surface: RenderSurface, blurb: str, specs: KDPCoverSpecs, warnings: list[str]
    ) -> None:
        inset = specs.bleed + specs.safe_zone_inches + 0.25
        width = specs.trim_width - 2 * (specs.safe_zone_inches + 0.25)
        line_height = _BLURB_SIZE * BODY_STYLE.leading / 72.0
        y = inset + line_height
        lines = wrap_text(blurb, surface.measure_text, BODY_STYLE.font, _BLURB_SIZE, width)
        for index, line in enumerate(lines):
            if y > specs.total_height - inset:
                warnings.append(
                    "Back cover blurb overflows the back panel; "
                    f"{len(lines) - index} line(s) truncated."
                )
                break
            surface.draw_text(inset, y, line, BODY_STYLE.font, _BLURB_SIZE)
            y += line_height

    @staticmethod
    def _draw_spine_text(surface: RenderSurface, text: str, specs: KDPCoverSpecs) -> None:
        size = min(_SPINE_MAX_SIZE, specs.spine_width * 72.0 * 0.6)
        available = specs.trim_height - 2 * specs.safe_zone_inches
        measured = surface.measure_text(text, _SPINE_FONT, size)
        if measured > available:
            size = size * available / measured
        center_x = specs.spine_x + specs.spine_width / 2
        # Rotated -90 degrees so the title reads top to bottom; glyphs extend toward +x.
        surface.draw_text(
            center_x - size * 0.35 / 72.0,
            specs.total_height / 2,
            text,
            _SPINE_FONT,
            size,
            align="center",
            angle=-90,
        )

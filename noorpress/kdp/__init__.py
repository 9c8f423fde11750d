"""Amazon KDP interior and wrap-cover PDF generation."""

from .generator import PDF_MEDIA_TYPE, KdpPdfGenerator

__all__ = ["KdpPdfGenerator", "PDF_MEDIA_TYPE"]

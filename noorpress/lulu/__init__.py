"""Lulu print interior generation."""

from .generator import PDF_MEDIA_TYPE, LuluHeaderFooterConfig, LuluPdfGenerator

__all__ = ["LuluHeaderFooterConfig", "LuluPdfGenerator", "PDF_MEDIA_TYPE"]

"""EPUB 3.3 package generation."""

from .generator import EPUB_MEDIA_TYPE, EpubGenerator

__all__ = ["EPUB_MEDIA_TYPE", "EpubGenerator"]

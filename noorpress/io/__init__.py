"""Input/output components for noorpress.

This package contains bundle loading, image fetching, and artifact storage
interfaces used by the export pipeline.
"""

from .bundle import load_bundle, parse_bundle
from .images import ImageLoader, ImageSet
from .storage import ArtifactStore

__all__ = ["ArtifactStore", "ImageLoader", "ImageSet", "load_bundle", "parse_bundle"]

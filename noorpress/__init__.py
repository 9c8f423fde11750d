"""Top-level package for NoorPress.

This package turns finished children's-book artifacts (layout, cover,
chapters, illustrations) into store-ready EPUB, Amazon KDP and Lulu files.
The main orchestration entry point is `PublishingPipeline`.
"""

from .config import ConfigLoader, PublishingConfig
from .pipeline import CancelToken, PublishingPipeline

__all__ = [
    "CancelToken",
    "ConfigLoader",
    "PublishingConfig",
    "PublishingPipeline",
    "__version__",
]

__version__ = "0.1.0"

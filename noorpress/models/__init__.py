"""Shared typed data models for noorpress.

This package contains dataclasses used across export modules to avoid
cross-module coupling and circular imports.
"""

from .artifacts import (
    BookBundle,
    BookMetadata,
    Block,
    Chapter,
    CoverArtifact,
    Illustration,
    LayoutArtifact,
    Page,
    Spread,
    validate_layout,
)
from .datatypes import (
    ExportFile,
    ExportProgress,
    FormatOutcome,
    GenerationResult,
    ISBNRecord,
    KDPCoverSpecs,
    PublishingExportResult,
    SpineCalculationResult,
)

ChaptersArtifact = tuple[Chapter, ...]
IllustrationArtifact = tuple[Illustration, ...]

__all__ = [
    "Block",
    "BookBundle",
    "BookMetadata",
    "Chapter",
    "ChaptersArtifact",
    "CoverArtifact",
    "ExportFile",
    "ExportProgress",
    "FormatOutcome",
    "GenerationResult",
    "ISBNRecord",
    "Illustration",
    "IllustrationArtifact",
    "KDPCoverSpecs",
    "LayoutArtifact",
    "Page",
    "PublishingExportResult",
    "SpineCalculationResult",
    "Spread",
    "validate_layout",
]

"""Publish orchestration package."""

from .orchestrator import CancelToken, PublishingPipeline
from .telemetry import PROGRESS_PHASES

__all__ = ["CancelToken", "PROGRESS_PHASES", "PublishingPipeline"]

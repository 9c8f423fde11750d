"""Stage telemetry helper methods for the publish pipeline.

Responsibilities:
- Emit state transitions, stage start/complete/failure and warning counts.
- Forward per-format progress to the caller's callback.
- Wrap stage actions with consistent telemetry hooks.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeVar

from ..models import ExportProgress

_StageResult = TypeVar("_StageResult")

PROGRESS_PHASES = (
    "queued",
    "loading_images",
    "rendering",
    "preflight",
    "done",
    "failed",
    "cancelled",
)


class PipelineTelemetryMixin:
    """Provide stage-telemetry helper methods."""

    def _set_state(self, state: str, **context: object) -> None:
        """Record the current export state and log the transition."""

        self._state = state
        if self._run_logger is not None:
            self._run_logger.log_state(state, **context)

    def _report_progress(self, format_key: str, phase: str, percent: int) -> None:
        """Send one progress event to the callback, if any."""

        if self._progress_callback is not None:
            self._progress_callback(ExportProgress(format=format_key, phase=phase, percent=percent))

    def _on_stage_start(self, stage_name: str) -> None:
        if self._run_logger is not None:
            self._run_logger.log_stage_start(stage_name)

    def _on_stage_complete(self, stage_name: str, warning_count: int = 0) -> None:
        """Emit stage-complete and warning-count events to the structured logger."""

        if self._run_logger is None:
            return
        self._run_logger.log_stage_complete(stage_name)
        if warning_count:
            self._run_logger.log_warning(stage_name, warning_count)

    def _on_stage_failure(self, stage_name: str, exc: BaseException) -> None:
        """Emit stage-failure event with sanitized exception metadata."""

        if self._run_logger is not None:
            self._run_logger.log_stage_failure(stage_name, type(exc).__name__)

    def _run_stage(
        self,
        stage_name: str,
        action: Callable[[], _StageResult],
    ) -> _StageResult:
        """Run one named stage and emit start/complete/failure telemetry events."""

        self._on_stage_start(stage_name)
        try:
            result = action()
        except Exception as exc:
            self._on_stage_failure(stage_name, exc)
            raise
        self._on_stage_complete(stage_name, len(getattr(result, "warnings", ()) or ()))
        return result

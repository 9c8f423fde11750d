"""Unit tests for CLI output and error rendering helpers."""

from __future__ import annotations

import pytest
import typer

from noorpress.cli_rendering import echo_export_summary, echo_progress, exit_with_command_error
from noorpress.errors import ImageLoadError, PublishingError
from noorpress.models import (
    ExportFile,
    ExportProgress,
    FormatOutcome,
    ISBNRecord,
    PublishingExportResult,
)


def test_exit_with_command_error_renders_stage_error_with_hint(
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Renderer should print stage diagnostics and hint before exiting with code 1."""

    error = PublishingError(
        "YAML config `missing.yml` was not found.",
        stage="config",
        hint="Pass an existing file to `--config` or omit the option.",
    )

    with pytest.raises(typer.Exit) as exc_info:
        exit_with_command_error("publish", error)

    captured = capsys.readouterr()
    assert exc_info.value.exit_code == 1
    assert "publish failed at stage `config`" in captured.err
    assert "Hint: Pass an existing file to `--config` or omit the option." in captured.err


def test_exit_with_command_error_uses_subclass_stage(
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Subclasses carry their own default stage name."""

    error = ImageLoadError("Image `cover.png` could not be read.", ref="cover.png")

    with pytest.raises(typer.Exit):
        exit_with_command_error("publish", error)

    captured = capsys.readouterr()
    assert f"publish failed at stage `{error.stage}`" in captured.err
    assert "cover.png" in captured.err


def test_exit_with_command_error_renders_non_stage_fallback(
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Renderer should print fallback exception text for non-stage failures."""

    with pytest.raises(typer.Exit) as exc_info:
        exit_with_command_error("spine", RuntimeError("unexpected report error"))

    captured = capsys.readouterr()
    assert exc_info.value.exit_code == 1
    assert "spine failed: unexpected report error" in captured.err


def test_echo_export_summary_lists_every_format(capsys: pytest.CaptureFixture[str]) -> None:
    """Summary should show successes, failures, warnings and assigned ISBNs."""

    result = PublishingExportResult(
        book_id="book-1",
        state="partial_failure",
        outcomes=(
            FormatOutcome(
                format="epub",
                success=True,
                files=(ExportFile("Book.epub", "application/epub+zip", b"PK\x03\x04"),),
                warnings=("Illustration `ill-2` unavailable; omitted from the EPUB.",),
            ),
            FormatOutcome(
                format="lulu_pdf",
                success=False,
                error="Trim size 9x12 is not supported by Lulu.",
                error_type="UnsupportedTrimSizeError",
            ),
        ),
        isbn_records=(
            ISBNRecord(
                "9781739000004", "1739000005", "epub", "2026-10-18T09:30:00+00:00", "book-1"
            ),
        ),
    )

    echo_export_summary(result)
    echo_progress(ExportProgress(format="epub", phase="rendering", percent=30))

    output = capsys.readouterr().out
    assert "Export state: partial_failure" in output
    assert "ISBN (epub): 9781739000004" in output
    assert "[ok] epub: Book.epub" in output
    assert "warning: Illustration `ill-2` unavailable" in output
    assert "[failed] lulu_pdf: UnsupportedTrimSizeError: Trim size 9x12" in output
    assert "[progress] format=epub phase=rendering percent=30" in output

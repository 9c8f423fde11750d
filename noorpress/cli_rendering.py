"""CLI output and error rendering helpers.

This module centralizes user-facing CLI presentation for command diagnostics,
export progress, per-format outcomes, spine dimensions and ISBN checks.
"""

from __future__ import annotations

from typing import NoReturn

import typer

from .errors import PublishingError
from .models import ExportProgress, PublishingExportResult, SpineCalculationResult


def exit_with_command_error(command_name: str, exc: Exception) -> NoReturn:
    """Print concise diagnostics for command failures and exit with code 1."""

    if isinstance(exc, PublishingError):
        typer.secho(
            f"{command_name} failed at stage `{exc.stage}`: {exc.detail}",
            fg=typer.colors.RED,
            err=True,
        )
        if exc.hint:
            typer.secho(f"Hint: {exc.hint}", fg=typer.colors.YELLOW, err=True)
    else:
        typer.secho(f"{command_name} failed: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1) from exc


def echo_progress(progress: ExportProgress) -> None:
    """Print one deterministic progress line."""

    typer.echo(
        f"[progress] format={progress.format} phase={progress.phase} percent={progress.percent}"
    )


def echo_export_summary(result: PublishingExportResult) -> None:
    """Print the run state, assigned ISBNs and one block per format outcome."""

    typer.echo(f"Export state: {result.state}")
    for record in result.isbn_records:
        typer.echo(f"ISBN ({record.format}): {record.isbn13}")
    for outcome in result.outcomes:
        if outcome.success:
            names = ", ".join(item.filename for item in outcome.files)
            typer.echo(f"[ok] {outcome.format}: {names}")
        else:
            typer.secho(
                f"[failed] {outcome.format}: {outcome.error_type}: {outcome.error}",
                fg=typer.colors.RED,
            )
        for warning in outcome.warnings:
            typer.secho(f"  warning: {warning}", fg=typer.colors.YELLOW)


def echo_spine(vendor_name: str, result: SpineCalculationResult) -> None:
    """Print spine width and wrap-cover canvas dimensions."""

    typer.echo(f"Vendor: {vendor_name}")
    typer.echo(f"Pages per inch: {result.pages_per_inch:g}")
    typer.echo(f"Spine width (in): {result.spine_width_inches:.4f}")
    typer.echo(
        f"Cover canvas (in): {result.total_trim_width_inches:.4f} x "
        f"{result.total_trim_height_inches:.4f}"
    )
    typer.echo(f"Bleed (in): {result.bleed_inches:g}")
    for note in result.notes:
        typer.secho(f"Note: {note}", fg=typer.colors.YELLOW)

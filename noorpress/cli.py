"""Command-line interface for NoorPress.

Responsibilities:
- Expose user-facing commands for publishing and print-spec lookups.
- Convert CLI arguments into `PublishingConfig` and run the publish pipeline.

Key public functions:
- `app`: Typer application instance.
- `main`: invoke the Typer application.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Annotated

import typer

from .cli_rendering import (
    echo_export_summary,
    echo_progress,
    echo_spine,
    exit_with_command_error,
)
from .config import ConfigLoader, PublishingConfig
from .errors import PublishingError
from .io.bundle import load_bundle
from .io.images import ImageLoader
from .io.storage import ArtifactStore
from .isbn import (
    ISBNBlockAllocator,
    ISBNManager,
    SqliteISBNStore,
    derive_isbn10,
    format_isbn,
    normalize_isbn,
)
from .parsing import parse_token_list
from .pipeline import PublishingPipeline
from .specs import calculate_spine, vendor_by_name
from .telemetry.logger import RunLogger

app = typer.Typer(
    name="noorpress",
    no_args_is_help=True,
    help="NoorPress publishing export CLI.",
)

REPORT_FILENAME = "export_report.json"


def _load_yaml_config(config_path: Path | None) -> PublishingConfig | None:
    """Load a YAML config file when requested and map failures to stage errors."""

    if config_path is None:
        return None

    try:
        return ConfigLoader.from_yaml(config_path)
    except FileNotFoundError as exc:
        raise PublishingError(
            f"Config file not found: `{config_path}`.",
            stage="config",
            hint="Provide an existing path via `--config <path.yaml>`.",
        ) from exc
    except ValueError as exc:
        raise PublishingError(
            f"Invalid config file `{config_path}`: {exc}",
            stage="config",
            hint="Fix config schema/values and rerun.",
        ) from exc


def _resolve_publish_config(
    config_file: Path | None,
    formats: str | None,
    trim_size: str | None,
    paper_type: str | None,
    assign_isbns: bool | None,
) -> PublishingConfig:
    """Resolve effective config from YAML defaults and explicit CLI overrides."""

    config = _load_yaml_config(config_file) or PublishingConfig()
    overrides: dict[str, object] = {}
    if formats is not None:
        overrides["formats"] = parse_token_list(formats)
    if trim_size is not None:
        overrides["trim_size"] = trim_size
    if paper_type is not None:
        overrides["paper_type"] = paper_type.strip().lower()
    if assign_isbns is not None:
        overrides["assign_isbns"] = assign_isbns
    resolved = replace(config, **overrides)
    try:
        resolved.validate()
    except ValueError as exc:
        raise PublishingError(
            str(exc),
            stage="config",
            hint="Check `--formats`, `--trim-size` and `--paper-type` values.",
        ) from exc
    return resolved


def _isbn_manager(isbn_store: Path | None, config: PublishingConfig) -> ISBNManager | None:
    """Build a file-backed ISBN manager when a store path is given."""

    if isbn_store is None:
        return None
    allocator = (
        ISBNBlockAllocator(config.isbn_registrant_prefix, config.isbn_first_title_number)
        if config.isbn_registrant_prefix
        else None
    )
    return ISBNManager(SqliteISBNStore(isbn_store), allocator)


@app.command("publish")
def publish_command(
    book_json: Annotated[Path, typer.Argument(help="Path to the book bundle JSON document.")],
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to YAML config file with export defaults."),
    ] = None,
    formats: Annotated[
        str | None,
        typer.Option("--formats", help="Comma-separated formats: `epub,kdp_pdf,lulu_pdf`."),
    ] = None,
    out: Annotated[Path, typer.Option("--out", help="Output directory.")] = Path("out"),
    trim_size: Annotated[
        str | None, typer.Option("--trim-size", help="Trim size override, e.g. `6x9`.")
    ] = None,
    paper_type: Annotated[
        str | None, typer.Option("--paper-type", help="Paper stock: white, cream or color.")
    ] = None,
    assign_isbns: Annotated[
        bool | None,
        typer.Option(
            "--assign-isbns/--no-assign-isbns",
            help="Assign ISBNs before generating (overrides config file value).",
        ),
    ] = None,
    isbn_store: Annotated[
        Path | None,
        typer.Option("--isbn-store", help="SQLite database holding assigned ISBN records."),
    ] = None,
) -> None:
    """Export a book bundle to the requested formats."""

    try:
        config = _resolve_publish_config(
            config_file, formats, trim_size, paper_type, assign_isbns
        )
        bundle = load_bundle(book_json)
        pipeline = PublishingPipeline(
            isbn_manager=_isbn_manager(isbn_store, config),
            image_loader=ImageLoader(
                max_concurrency=config.max_image_concurrency,
                timeout_seconds=config.image_timeout_seconds,
                base_dir=book_json.parent,
            ),
            run_logger=RunLogger(),
            progress_callback=echo_progress,
        )
        result = pipeline.publish_sync(bundle, config)

        store = ArtifactStore(out)
        for outcome in result.outcomes:
            for item in outcome.files:
                store.save_bytes(Path(item.filename), item.data)
        report = result.to_report()
        if config.extra:
            report["extra"] = dict(config.extra)
        report_path = store.save_json(Path(REPORT_FILENAME), report)
    except Exception as exc:
        exit_with_command_error("publish", exc)

    echo_export_summary(result)
    typer.echo(f"Report: {report_path}")
    if not result.success:
        raise typer.Exit(code=1)


@app.command("spine")
def spine_command(
    page_count: Annotated[int, typer.Argument(help="Interior page count.")],
    paper_type: Annotated[
        str, typer.Option("--paper-type", help="Paper stock: white, cream or color.")
    ] = "white",
    trim_size: Annotated[str, typer.Option("--trim-size", help="Trim size, e.g. `6x9`.")] = "6x9",
    vendor: Annotated[str, typer.Option("--vendor", help="Print vendor: kdp or lulu.")] = "kdp",
    binding: Annotated[
        str, typer.Option("--binding", help="Binding type: perfect or casewrap.")
    ] = "perfect",
    color: Annotated[
        bool, typer.Option("--color/--no-color", help="Color interior printing.")
    ] = False,
) -> None:
    """Print spine width and wrap-cover dimensions."""

    try:
        print_vendor = vendor_by_name(vendor)
        result = calculate_spine(
            page_count, paper_type, trim_size, print_vendor, binding=binding, color=color
        )
    except Exception as exc:
        exit_with_command_error("spine", exc)

    echo_spine(print_vendor.name, result)


@app.command("isbn-check")
def isbn_check_command(
    code: Annotated[str, typer.Argument(help="ISBN-10 or ISBN-13, hyphens allowed.")],
) -> None:
    """Validate an ISBN and print its canonical forms."""

    try:
        isbn13 = normalize_isbn(code)
    except Exception as exc:
        exit_with_command_error("isbn-check", exc)

    typer.echo("Valid: yes")
    typer.echo(f"ISBN-13: {isbn13}")
    typer.echo(f"Formatted: {format_isbn(isbn13)}")
    isbn10 = derive_isbn10(isbn13)
    if isbn10 is not None:
        typer.echo(f"ISBN-10: {isbn10}")


def main() -> None:
    """CLI entrypoint for console scripts."""
    app()


if __name__ == "__main__":
    main()

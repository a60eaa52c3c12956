"""CLI entry point for unused-js."""

from __future__ import annotations

import asyncio
import logging

import click
from rich.logging import RichHandler

from . import __version__
from .config import (
    DEFAULT_MAX_CONCURRENCY,
    UNUSED_BYTES_IGNORE_BUNDLE_SOURCE_THRESHOLD,
    UNUSED_BYTES_IGNORE_THRESHOLD,
    ReportOptions,
)
from .errors import UnusedJsError
from .orchestrator import run


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
        force=True,
    )


@click.command()
@click.argument("artifacts", type=click.Path(dir_okay=False))
@click.option(
    "--unused-threshold",
    type=float,
    default=UNUSED_BYTES_IGNORE_THRESHOLD,
    show_default=True,
    envvar="UNUSED_JS_THRESHOLD",
    help="Report scripts wasting more than this many transfer bytes.",
)
@click.option(
    "--source-threshold",
    type=float,
    default=UNUSED_BYTES_IGNORE_BUNDLE_SOURCE_THRESHOLD,
    show_default=True,
    envvar="UNUSED_JS_SOURCE_THRESHOLD",
    help="List bundle sources wasting more than this many transfer bytes.",
)
@click.option(
    "--max-concurrency",
    type=click.IntRange(min=1),
    default=DEFAULT_MAX_CONCURRENCY,
    show_default=True,
    help="Maximum summary requests in flight.",
)
@click.option(
    "--format", "output_format",
    type=click.Choice(["table", "json", "csv"]),
    default="table",
    show_default=True,
    help="Output format.",
)
@click.option(
    "--output", "-o", "output_file",
    default=None,
    help="Save output to a file instead of printing to stdout.",
)
@click.option("--verbose", "-v", is_flag=True, help="Log skipped scripts and progress.")
@click.version_option(version=__version__)
def main(
    artifacts: str,
    unused_threshold: float,
    source_threshold: float,
    max_concurrency: int,
    output_format: str,
    output_file: str | None,
    verbose: bool,
) -> None:
    """Report unused JavaScript bytes from the collected ARTIFACTS file."""
    _configure_logging(verbose)
    options = ReportOptions(
        unused_threshold=unused_threshold,
        bundle_source_unused_threshold=source_threshold,
        max_concurrency=max_concurrency,
    )
    try:
        asyncio.run(run(
            artifacts_path=artifacts,
            output_format=output_format,
            options=options,
            output_file=output_file,
        ))
    except UnusedJsError as e:
        raise click.ClickException(str(e)) from e

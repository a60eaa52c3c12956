"""Orchestrates artifact loading, report aggregation, and rendering."""

from __future__ import annotations

from .aggregator import aggregate_unused_js_report
from .artifacts.provider import JsonArtifactProvider
from .config import ReportOptions
from .renderer import render_csv, render_json, render_report


async def run(
    artifacts_path: str,
    output_format: str = "table",
    options: ReportOptions | None = None,
    output_file: str | None = None,
) -> None:
    """Load artifacts, build the unused JavaScript report, and render it."""
    provider = JsonArtifactProvider.from_file(artifacts_path)
    report = await aggregate_unused_js_report(provider, options=options or ReportOptions())

    if output_format == "json":
        render_json(report, output_file=output_file)
    elif output_format == "csv":
        render_csv(report, output_file=output_file)
    else:
        render_report(report, output_file=output_file)

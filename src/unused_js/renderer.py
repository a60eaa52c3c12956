"""Rich-based terminal report renderer with JSON/CSV support."""

from __future__ import annotations

import csv
import io
import json

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import WasteReport


def _format_bytes(n: int) -> str:
    if abs(n) >= 1024:
        return f"{n / 1024:,.1f} KiB"
    return f"{n:,} B"


def _make_bar(percentage: float, width: int = 20) -> str:
    filled = max(0, min(width, round(percentage / 100 * width)))
    return "█" * filled + "░" * (width - filled)


def _write_to_file(content: str, output_file: str) -> None:
    """Write content to a file and print confirmation."""
    with open(output_file, "w", encoding="utf-8") as f:
        f.write(content)
    Console().print(f"Saved to {output_file}")


def render_report(
    report: WasteReport,
    title: str = "Reduce unused JavaScript",
    output_file: str | None = None,
) -> None:
    """Render a WasteReport to the terminal using rich."""
    if output_file:
        string_io = io.StringIO()
        console = Console(file=string_io, force_terminal=False, width=120)
    else:
        console = Console()

    console.print(Panel(
        Text(f"unused-js: {title}", justify="center"),
        style="bold cyan",
    ))
    console.print()

    if not report.items:
        console.print("No scripts exceed the unused bytes threshold.")
        console.print()
    else:
        console.print("[bold]Summary[/bold]")
        summary = Table(show_header=False, box=None, padding=(0, 2))
        summary.add_column("label", style="dim")
        summary.add_column("value", style="bold")
        summary.add_row("Scripts", f"{len(report.items):,}")
        summary.add_row("Potential Savings", _format_bytes(report.total_wasted_bytes))
        console.print(summary)
        console.print()

        # Column labels come from the report headings; sub-item rows sit under their script.
        script_table = Table(show_header=True, header_style="bold")
        for heading in report.headings:
            justify = "right" if heading.value_type == "bytes" else "left"
            script_table.add_column(heading.label, justify=justify, overflow="fold")
        script_table.add_column("Unused", justify="right")

        for item in report.items:
            script_table.add_row(
                item.url,
                _format_bytes(item.total_bytes),
                _format_bytes(item.wasted_bytes),
                f"{item.wasted_percent:.1f}%",
            )
            for sub in item.sub_items or []:
                script_table.add_row(
                    Text(f"  {sub.source}", style="dim"),
                    Text(_format_bytes(sub.source_bytes), style="dim"),
                    Text(_format_bytes(sub.source_wasted_bytes), style="dim"),
                    "",
                )
        console.print(script_table)
        console.print()

    if report.groups:
        console.print("[bold]By Entity[/bold]")
        entity_table = Table(show_header=True, header_style="bold")
        entity_table.add_column("Entity")
        entity_table.add_column("Bar")
        entity_table.add_column("Unused", justify="right")
        entity_table.add_column("Transfer Size", justify="right")
        entity_table.add_column("Potential Savings", justify="right")

        for group in report.groups:
            entity_table.add_row(
                group.text or "Unattributed",
                _make_bar(group.wasted_percent, width=10),
                f"{group.wasted_percent:.1f}%",
                _format_bytes(group.total_bytes),
                _format_bytes(group.wasted_bytes),
            )
        console.print(entity_table)
        console.print()

    if output_file:
        _write_to_file(string_io.getvalue(), output_file)


def render_json(report: WasteReport, output_file: str | None = None) -> None:
    """Render a WasteReport as JSON."""
    content = json.dumps(report.to_dict(), indent=2, ensure_ascii=False)
    if output_file:
        _write_to_file(content, output_file)
    else:
        print(content)


def render_csv(report: WasteReport, output_file: str | None = None) -> None:
    """Render script-level items as CSV."""
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(["url", "entity", "total_bytes", "wasted_bytes", "wasted_percent"])
    for item in report.items:
        writer.writerow([
            item.url,
            item.entity or "",
            item.total_bytes,
            item.wasted_bytes,
            round(item.wasted_percent, 2),
        ])
    content = output.getvalue()
    if output_file:
        _write_to_file(content, output_file)
    else:
        print(content, end="")

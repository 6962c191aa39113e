"""Renderers for CLI output.

Turns import reports, series lists and single-file match results into Rich
tables.
"""

from typing import Iterable

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from sonarrimport.models.core import (
    ImportReport,
    ImportStatus,
    ReleaseInfo,
    SeriesResolution,
)
from sonarrimport.sonarr.models import Series

STATUS_STYLES = {
    ImportStatus.SUBMITTED: "green",
    ImportStatus.DRY_RUN: "cyan",
    ImportStatus.FAILED: "red bold",
}


def _target(resolution: SeriesResolution) -> str:
    if not resolution.resolved:
        return "-"
    label = resolution.series_title or f"series {resolution.series_id}"
    if resolution.score is not None:
        return escape(f"{label} ({resolution.source.value} {resolution.score:.2f})")
    return escape(f"{label} ({resolution.source.value})")


def render_report(report: ImportReport, console: Console | None = None) -> None:
    """Render an import report as a table followed by a summary line."""
    console = console or Console()

    if not report.items:
        console.print("[yellow]No videos found. Nothing to do![/yellow]")
        return

    title = "Import Plan (dry run)" if report.dry_run else "Import Results"
    table = Table(title=title)
    table.add_column("Status", style="bold")
    table.add_column("File", style="cyan")
    table.add_column("Remote Path", style="green")
    table.add_column("Command")
    table.add_column("Series")
    table.add_column("Episode")
    table.add_column("Message", style="yellow")

    for item in report.items:
        name = item.path.name
        if item.renamed:
            name = f"{item.original_name} -> {item.path.name}"
        episode = item.release.episode if item.release else None
        table.add_row(
            item.status.value,
            escape(name),
            escape(item.remote_path),
            item.command,
            _target(item.resolution),
            str(episode) if episode else "-",
            escape(item.message),
            style=STATUS_STYLES.get(item.status, "white"),
        )
    console.print(table)

    failed = len(report.failed)
    console.print(
        f"Total: {len(report.items)} | Failed: {failed} | "
        f"New mappings: {report.new_mappings}"
    )
    if report.dry_run:
        console.print("[cyan]Dry run: nothing was renamed or sent to Sonarr.[/cyan]")
    elif report.success:
        console.print("[green]All processing completed successfully.[/green]")
    else:
        console.print("[red bold]Processing completed with errors.[/red bold]")


def render_series(series: Iterable[Series], console: Console | None = None) -> None:
    """Render the Sonarr library as an id/title/year table."""
    console = console or Console()
    table = Table(title="Sonarr Series")
    table.add_column("Id", justify="right", style="bold")
    table.add_column("Title", style="cyan")
    table.add_column("Year")
    table.add_column("Alternate Titles", style="dim")
    for entry in sorted(series, key=lambda s: s.title.lower()):
        table.add_row(
            str(entry.id),
            escape(entry.title),
            str(entry.year or ""),
            escape(", ".join(alt.title for alt in entry.alternate_titles)),
        )
    console.print(table)


def render_match(
    original: str,
    transformed: str,
    release: ReleaseInfo,
    resolution: SeriesResolution,
    console: Console | None = None,
) -> None:
    """Render how a single filename is transformed, parsed and resolved."""
    console = console or Console()
    table = Table(title="Match", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value", style="cyan")
    table.add_row("Filename", escape(original))
    table.add_row("Transformed", escape(transformed))
    table.add_row("Series title", escape(release.series_title) or "-")
    table.add_row("Episode", str(release.episode) if release.episode else "-")
    table.add_row("Quality", release.quality)
    table.add_row("Language", release.language)
    table.add_row("Target", _target(resolution))
    if resolution.pattern:
        table.add_row("Pattern", escape(resolution.pattern))
    console.print(table)

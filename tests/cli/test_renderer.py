"""Tests for the Rich renderers."""

from pathlib import Path

from rich.console import Console

from sonarrimport.cli.renderer import render_match, render_report, render_series
from sonarrimport.core.episode_parser import parse_release
from sonarrimport.models.core import (
    ImportItem,
    ImportReport,
    ImportStatus,
    ResolutionSource,
    SeriesResolution,
)
from sonarrimport.sonarr.models import Series


def _console() -> Console:
    return Console(record=True, width=200, color_system=None)


def _item(name: str, status: ImportStatus, **kwargs) -> ImportItem:
    return ImportItem(
        path=Path("/dl") / name,
        remote_path=f"/downloads/{name}",
        release=parse_release(name),
        status=status,
        **kwargs,
    )


def test_report_success() -> None:
    console = _console()
    report = ImportReport(
        downloads_folder=Path("/dl"),
        items=[
            _item(
                "Show.S01E01.mkv",
                ImportStatus.SUBMITTED,
                original_name="[Grp] Show.S01E01.mkv",
                command="ManualImport",
                resolution=SeriesResolution(
                    source=ResolutionSource.MAPPING, series_id=1, series_title="Show"
                ),
            )
        ],
    )
    render_report(report, console=console)
    text = console.export_text()
    assert "[Grp] Show.S01E01.mkv -> Show.S01E01.mkv" in text
    assert "Show (mapping)" in text
    assert "S01E01" in text
    assert "Total: 1 | Failed: 0 | New mappings: 0" in text
    assert "All processing completed successfully." in text


def test_report_failure() -> None:
    console = _console()
    report = ImportReport(
        downloads_folder=Path("/dl"),
        items=[
            _item(
                "A.S01E01.mkv",
                ImportStatus.FAILED,
                original_name="A.S01E01.mkv",
                message="status 400",
            )
        ],
        new_mappings=2,
    )
    render_report(report, console=console)
    text = console.export_text()
    assert "failed" in text
    assert "Total: 1 | Failed: 1 | New mappings: 2" in text
    assert "Processing completed with errors." in text


def test_report_empty() -> None:
    console = _console()
    render_report(ImportReport(downloads_folder=Path("/dl")), console=console)
    assert "No videos found. Nothing to do!" in console.export_text()


def test_render_series_sorted() -> None:
    console = _console()
    render_series(
        [
            Series(id=2, title="Zorro"),
            Series.model_validate(
                {
                    "id": 1,
                    "title": "Attack",
                    "year": 2013,
                    "alternateTitles": [{"title": "AoT"}],
                }
            ),
        ],
        console=console,
    )
    text = console.export_text()
    assert text.index("Attack") < text.index("Zorro")
    assert "AoT" in text


def test_render_match_unresolved() -> None:
    console = _console()
    release = parse_release("Unknown.Show.S02E03.1080p.WEB-DL.mkv")
    render_match(
        "unknown.show.s02e03.1080p.web-dl.mkv",
        "Unknown.Show.S02E03.1080p.WEB-DL.mkv",
        release,
        SeriesResolution(),
        console=console,
    )
    text = console.export_text()
    assert "S02E03" in text
    assert "WEBDL-1080p" in text
    assert "Unknown Show" in text

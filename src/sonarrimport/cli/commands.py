"""CLI commands for sonarrimport.

This module implements all user-facing commands:
- ``run``: scan the downloads folder and submit every video to Sonarr.
- ``series``: list the Sonarr library, for writing mapping rules.
- ``match``: show how a single filename is transformed, parsed and resolved.
- ``install`` / ``uninstall``: manage the systemd path/service units.
- ``version``.

Design:
- The Typer app is instantiated at module level and shared by all commands.
- Annotated is used for option definitions that several commands share.
- Exit codes are defined as an Enum; per-file failures map to
  ``PARTIAL_FAILURE`` so the systemd journal shows a failed service run.
"""

import asyncio
import os
import subprocess
from enum import Enum
from pathlib import Path
from typing import Annotated, List, Optional

import typer
from rich.console import Console
from rich.markup import escape

from sonarrimport.cli.console import ENV_DISABLE_RICH, ConsoleManager
from sonarrimport.cli.renderer import render_match, render_report, render_series
from sonarrimport.core.episode_parser import parse_release
from sonarrimport.core.importer import ImportOptions, run_import
from sonarrimport.core.resolver import SeriesResolver
from sonarrimport.core.scanner import DownloadsFolderNotFoundError
from sonarrimport.core.transforms import apply_transforms
from sonarrimport.fs.systemd import (
    DEFAULT_INSTALL_DIR,
    DEFAULT_UNIT_DIR,
    InstallError,
    install_units,
    systemctl,
    uninstall_units,
)
from sonarrimport.models.config import SonarrSettings
from sonarrimport.sonarr.client import SonarrClient, SonarrError
from sonarrimport.sonarr.models import Series
from sonarrimport.utils.config import (
    ConfigError,
    SettingsStore,
    load_settings,
    resolve_config_path,
)
from sonarrimport.utils.debug import setup_logger

app = typer.Typer(
    name="sonarrimport",
    help="Rename downloaded episodes and import them into Sonarr.",
    add_completion=False,
)


class ExitCode(int, Enum):
    """Exit codes for CLI commands."""

    SUCCESS = 0
    ERROR = 1
    PARTIAL_FAILURE = 2


CONFIG = Annotated[
    Optional[Path],
    typer.Option(
        "--config",
        "-c",
        dir_okay=False,
        help="Settings file (JSON or TOML). Defaults to $SONARRIMPORT_CONFIG "
        "or ./settings.json.",
    ),
]

VERBOSE = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Enable debug logging."),
]

DRY_RUN = Annotated[
    bool,
    typer.Option(
        "--dry-run",
        "-d",
        help="Show what would be done without renaming files or calling Sonarr.",
    ),
]

INSTALL_DIR = Annotated[
    Path,
    typer.Option("--install-dir", help="Directory holding the installed settings."),
]

UNIT_DIR = Annotated[
    Optional[Path],
    typer.Option(
        "--unit-dir",
        help=f"Where unit files are written (default {DEFAULT_UNIT_DIR}). "
        "Root is not required when set.",
    ),
]

NO_SYSTEMCTL = Annotated[
    bool,
    typer.Option("--no-systemctl", help="Write the unit files without calling systemctl."),
]


@app.callback()
def callback(
    no_rich: bool = typer.Option(
        False,
        "--no-rich",
        help=(
            "Disable Rich coloured output. Can also be set with the "
            "SONARRIMPORT_NO_RICH environment variable."
        ),
    ),
) -> None:
    """Rename downloaded episodes and import them into Sonarr."""
    if no_rich:
        os.environ[ENV_DISABLE_RICH] = "1"


def _error(console: Console, message: object) -> None:
    console.print(f"[red]Error: {escape(str(message))}[/red]")


def _load(console: Console, config: Optional[Path]) -> tuple[Path, SonarrSettings]:
    path = resolve_config_path(config)
    try:
        return path, load_settings(path)
    except ConfigError as exc:
        _error(console, exc)
        raise typer.Exit(ExitCode.ERROR)


def _require_root(console: Console, unit_dir: Optional[Path]) -> None:
    # A custom unit dir (tests, user units) does not need root.
    if unit_dir is None and hasattr(os, "geteuid") and os.geteuid() != 0:
        _error(console, "This command must be run as root (try sudo)")
        raise typer.Exit(ExitCode.ERROR)


async def _fetch_series(settings: SonarrSettings) -> List[Series]:
    async with SonarrClient(
        settings.url, settings.api_key, retries=settings.retries
    ) as client:
        return await client.get_series()


@app.command()
def run(
    config: CONFIG = None,
    verbose: VERBOSE = False,
    dry_run: DRY_RUN = False,
) -> None:
    """Scan the downloads folder and import every video into Sonarr."""
    setup_logger(verbose)
    with ConsoleManager() as console:
        path, settings = _load(console, config)
        options = ImportOptions(dry_run=dry_run, verbose=verbose)
        try:
            report = asyncio.run(
                run_import(settings, options, store=SettingsStore(path))
            )
        except DownloadsFolderNotFoundError as exc:
            _error(console, exc)
            raise typer.Exit(ExitCode.ERROR)

        render_report(report, console=console)
        if not report.success:
            raise typer.Exit(ExitCode.PARTIAL_FAILURE)


@app.command()
def series(config: CONFIG = None, verbose: VERBOSE = False) -> None:
    """List the series known to Sonarr with their ids."""
    setup_logger(verbose)
    with ConsoleManager() as console:
        _, settings = _load(console, config)
        try:
            library = asyncio.run(_fetch_series(settings))
        except SonarrError as exc:
            _error(console, exc)
            raise typer.Exit(ExitCode.ERROR)
        render_series(library, console=console)


@app.command()
def match(
    filename: Annotated[str, typer.Argument(help="Video filename to analyse.")],
    config: CONFIG = None,
    online: Annotated[
        bool,
        typer.Option(
            "--online",
            help="Fetch the series list from Sonarr and try auto-match.",
        ),
    ] = False,
    verbose: VERBOSE = False,
) -> None:
    """Show how FILENAME would be transformed, parsed and resolved.

    Nothing is renamed and no mapping is written back.
    """
    setup_logger(verbose)
    with ConsoleManager() as console:
        _, settings = _load(console, config)
        transformed = apply_transforms(Path(filename).name, settings.transforms)
        release = parse_release(transformed)

        library = None
        if online:
            try:
                library = asyncio.run(_fetch_series(settings))
            except SonarrError as exc:
                _error(console, exc)
                raise typer.Exit(ExitCode.ERROR)

        resolver = SeriesResolver(
            list(settings.series_mappings),
            auto_match=online,
            threshold=settings.auto_match_threshold,
            library=library,
        )
        resolution = resolver.resolve(transformed, release)
        render_match(filename, transformed, release, resolution, console=console)


@app.command()
def install(
    config: CONFIG = None,
    install_dir: INSTALL_DIR = DEFAULT_INSTALL_DIR,
    unit_dir: UNIT_DIR = None,
    no_systemctl: NO_SYSTEMCTL = False,
    verbose: VERBOSE = False,
) -> None:
    """Install systemd units that run the importer when downloads change."""
    setup_logger(verbose)
    with ConsoleManager() as console:
        _require_root(console, unit_dir)
        settings_file = resolve_config_path(config)
        try:
            written = install_units(
                settings_file,
                install_dir=install_dir,
                unit_dir=unit_dir or DEFAULT_UNIT_DIR,
                runner=None if no_systemctl else systemctl,
            )
        except (
            ConfigError,
            InstallError,
            OSError,
            subprocess.CalledProcessError,
        ) as exc:
            _error(console, exc)
            raise typer.Exit(ExitCode.ERROR)

        for unit in written:
            console.print(f"Installed [cyan]{escape(str(unit))}[/cyan]")
        console.print("[green]Installation complete.[/green]")
        console.print(
            "Check status: systemctl status sonarr-import.path\n"
            "View logs:    journalctl -u sonarr-import.service -f"
        )


@app.command()
def uninstall(
    install_dir: INSTALL_DIR = DEFAULT_INSTALL_DIR,
    unit_dir: UNIT_DIR = None,
    no_systemctl: NO_SYSTEMCTL = False,
    verbose: VERBOSE = False,
) -> None:
    """Stop and remove the systemd units and the install directory."""
    setup_logger(verbose)
    with ConsoleManager() as console:
        _require_root(console, unit_dir)
        try:
            removed = uninstall_units(
                install_dir=install_dir,
                unit_dir=unit_dir or DEFAULT_UNIT_DIR,
                runner=None if no_systemctl else systemctl,
            )
        except (OSError, subprocess.CalledProcessError) as exc:
            _error(console, exc)
            raise typer.Exit(ExitCode.ERROR)

        for entry in removed:
            console.print(f"Removed [cyan]{escape(str(entry))}[/cyan]")
        console.print("[green]Uninstallation complete.[/green]")


@app.command()
def version() -> None:
    """Show the version of sonarrimport."""
    from sonarrimport.__about__ import __version__

    with ConsoleManager() as console:
        console.print(f"sonarrimport version: [bold]{__version__}[/bold]")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()

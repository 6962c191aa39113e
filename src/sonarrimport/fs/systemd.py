"""systemd integration: watch the downloads folder and run the importer.

Installs a ``.path`` unit that triggers a oneshot ``.service`` whenever the
downloads folder changes. The service runs ``sonarrimport run`` against a copy
of the settings file kept in the install directory.
"""

import logging
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Sequence

from sonarrimport.utils.config import load_settings

logger = logging.getLogger(__name__)

DEFAULT_INSTALL_DIR = Path("/opt/sonarr-manual-import")
DEFAULT_UNIT_DIR = Path("/etc/systemd/system")
PATH_UNIT = "sonarr-import.path"
SERVICE_UNIT = "sonarr-import.service"
PLACEHOLDER_DOWNLOADS = "/path/to/downloads"
DOCS_URL = "https://github.com/thomasevano/sonarr-manual-import"

Runner = Callable[[Sequence[str]], None]


class InstallError(Exception):
    """Raised when the systemd units cannot be installed."""


@dataclass
class UnitFiles:
    """Rendered contents of the two unit files."""

    path_unit: str
    service_unit: str


def render_units(
    install_dir: Path, settings_path: Path, downloads_folder: Path, executable: str
) -> UnitFiles:
    """Render the path and service units for *downloads_folder*."""
    path_unit = f"""[Unit]
Description=Watch downloads folder for new TV show episodes
Documentation={DOCS_URL}

[Path]
PathChanged={downloads_folder}
# Debounce: wait for file writes to settle
TriggerLimitIntervalSec=10
TriggerLimitBurst=1

[Install]
WantedBy=multi-user.target
"""
    service_unit = f"""[Unit]
Description=Import TV show episodes to Sonarr
Documentation={DOCS_URL}

[Service]
Type=oneshot
WorkingDirectory={install_dir}
ExecStart={executable} run -c {settings_path}
# Wait for files to finish copying
ExecStartPre=/bin/sleep 5
StandardOutput=journal
StandardError=journal
SyslogIdentifier=sonarr-import

[Install]
WantedBy=multi-user.target
"""
    return UnitFiles(path_unit=path_unit, service_unit=service_unit)


def systemctl(args: Sequence[str]) -> None:
    """Run ``systemctl`` with *args*, raising on failure."""
    subprocess.run(["systemctl", *args], check=True)


def find_executable() -> str:
    """Absolute path of the installed ``sonarrimport`` console script."""
    return shutil.which("sonarrimport") or "sonarrimport"


def install_units(
    settings_file: Path,
    *,
    install_dir: Path = DEFAULT_INSTALL_DIR,
    unit_dir: Path = DEFAULT_UNIT_DIR,
    executable: str | None = None,
    runner: Runner | None = systemctl,
) -> List[Path]:
    """Copy the settings file and install/enable the systemd units.

    Args:
        settings_file: Settings to copy into *install_dir*.
        install_dir: Directory holding the settings used by the service.
        unit_dir: Where unit files are written.
        executable: Command line for the importer (defaults to the
            ``sonarrimport`` script on PATH).
        runner: Callable used to invoke systemctl; None skips enabling.

    Returns:
        Paths of the written unit files.

    Raises:
        InstallError: If the downloads folder is not configured.
        ConfigError: If the settings file is invalid.
    """
    settings = load_settings(settings_file, apply_env=False)
    downloads = str(settings.downloads_folder)
    if not downloads or downloads in {".", PLACEHOLDER_DOWNLOADS}:
        raise InstallError(
            "Invalid or unconfigured downloadsFolder in settings; "
            "set the correct path before installing"
        )
    if not settings.downloads_folder.is_dir():
        logger.warning("Downloads folder does not exist: %s", downloads)
        logger.warning("Make sure it exists before the service starts")

    install_dir.mkdir(parents=True, exist_ok=True)
    installed_settings = install_dir / settings_file.name
    if settings_file.resolve() != installed_settings.resolve():
        shutil.copy2(settings_file, installed_settings)

    units = render_units(
        install_dir,
        installed_settings,
        settings.downloads_folder,
        executable or find_executable(),
    )
    unit_dir.mkdir(parents=True, exist_ok=True)
    path_unit = unit_dir / PATH_UNIT
    service_unit = unit_dir / SERVICE_UNIT
    path_unit.write_text(units.path_unit, encoding="utf-8")
    service_unit.write_text(units.service_unit, encoding="utf-8")
    logger.info("Wrote %s and %s", path_unit, service_unit)

    if runner is not None:
        runner(["daemon-reload"])
        runner(["enable", PATH_UNIT])
        runner(["start", PATH_UNIT])
    return [path_unit, service_unit]


def uninstall_units(
    *,
    install_dir: Path = DEFAULT_INSTALL_DIR,
    unit_dir: Path = DEFAULT_UNIT_DIR,
    runner: Runner | None = systemctl,
) -> List[Path]:
    """Stop and remove the units and the install directory.

    Stopping/disabling is best effort: units that are not loaded are ignored.

    Returns:
        The paths that were removed.
    """
    if runner is not None:
        for args in (
            ["stop", PATH_UNIT],
            ["stop", SERVICE_UNIT],
            ["disable", PATH_UNIT],
        ):
            try:
                runner(args)
            except (subprocess.CalledProcessError, FileNotFoundError) as exc:
                logger.debug("systemctl %s failed: %s", " ".join(args), exc)

    removed: List[Path] = []
    for unit in (unit_dir / PATH_UNIT, unit_dir / SERVICE_UNIT):
        if unit.exists():
            unit.unlink()
            removed.append(unit)
    if runner is not None:
        runner(["daemon-reload"])
    if install_dir.is_dir():
        shutil.rmtree(install_dir)
        removed.append(install_dir)
        logger.info("Removed %s", install_dir)
    return removed

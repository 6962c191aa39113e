"""Settings file loading and write-back for sonarrimport.

Reads the ``sonarr`` section of a JSON (``settings.json``) or TOML settings
file into :class:`~sonarrimport.models.config.SonarrSettings`. Uses the
standard json module for JSON and tomli/tomli-w for TOML.

Resolution order for the settings file: ``--config`` > ``SONARRIMPORT_CONFIG``
env var > ``./settings.json``. ``SONARR_URL`` and ``SONARR_API_KEY`` (from the
environment or a ``.env`` file) override the file's url and apiKey.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

import tomli
import tomli_w
from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from sonarrimport.models.config import SeriesMapping, SonarrSettings

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = Path("settings.json")
CONFIG_ENV_VAR = "SONARRIMPORT_CONFIG"
SECTION = "sonarr"


class ConfigError(Exception):
    """Raised when the settings file is missing, unreadable or invalid."""


class EnvOverrides(BaseSettings):
    """Connection settings that may be supplied by the environment."""

    url: Optional[str] = None
    api_key: Optional[str] = None

    model_config = SettingsConfigDict(
        env_prefix="SONARR_", env_file=".env", extra="ignore"
    )


def resolve_config_path(cli_value: Optional[Path] = None) -> Path:
    """Return the settings file to use (CLI > env > default)."""
    if cli_value is not None:
        return cli_value
    env_value = os.environ.get(CONFIG_ENV_VAR)
    if env_value:
        return Path(env_value)
    return DEFAULT_CONFIG_FILE


def _is_toml(path: Path) -> bool:
    return path.suffix.lower() == ".toml"


def read_document(path: Path) -> dict[str, Any]:
    """Read the whole settings document as a dict.

    Raises:
        ConfigError: If the file is missing or cannot be parsed.
    """
    if not path.is_file():
        raise ConfigError(f"Configuration file not found: {path}")
    try:
        if _is_toml(path):
            with path.open("rb") as f:
                return tomli.load(f)
        with path.open(encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, tomli.TOMLDecodeError) as exc:
        raise ConfigError(f"Invalid configuration file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid configuration file {path}: expected an object")
    return data


def write_document(path: Path, data: dict[str, Any]) -> None:
    """Atomically replace *path* with *data* in the file's own format."""
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    tmp_path = Path(tmp_name)
    try:
        if _is_toml(path):
            with os.fdopen(fd, "wb") as f:
                tomli_w.dump(data, f)
        else:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
                f.write("\n")
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


def load_settings(path: Path, *, apply_env: bool = True) -> SonarrSettings:
    """Load and validate the ``sonarr`` section of *path*.

    Args:
        path: JSON or TOML settings file.
        apply_env: Apply SONARR_URL / SONARR_API_KEY overrides.

    Returns:
        The validated settings.

    Raises:
        ConfigError: If the file, section or any value is invalid.
    """
    document = read_document(path)
    section = document.get(SECTION)
    if not isinstance(section, dict):
        raise ConfigError(f"No Sonarr configuration found in {path}")

    section = dict(section)
    if apply_env:
        overrides = EnvOverrides()
        if overrides.url:
            section["url"] = overrides.url
        if overrides.api_key:
            section["apiKey"] = overrides.api_key

    try:
        return SonarrSettings.model_validate(section)
    except ValidationError as exc:
        raise ConfigError(f"Invalid Sonarr configuration in {path}:\n{exc}") from exc


class SettingsStore:
    """Persists auto-matched series mappings back to the settings file."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def append_mapping(self, mapping: SeriesMapping) -> None:
        """Append *mapping* to ``sonarr.seriesMappings``.

        The document is re-read so that every other key, including values
        overridden from the environment, is written back untouched.
        """
        document = read_document(self.path)
        section = document.setdefault(SECTION, {})
        mappings = section.setdefault("seriesMappings", [])
        mappings.append(mapping.model_dump(by_alias=True))
        write_document(self.path, document)
        logger.info(
            "Saved new series mapping '%s' -> %s to %s",
            mapping.pattern,
            mapping.series_id,
            self.path,
        )

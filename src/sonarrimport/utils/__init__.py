"""Utility modules for sonarrimport."""

from sonarrimport.utils.config import (
    ConfigError,
    SettingsStore,
    load_settings,
    resolve_config_path,
)
from sonarrimport.utils.debug import setup_logger

__all__ = [
    "ConfigError",
    "SettingsStore",
    "load_settings",
    "resolve_config_path",
    "setup_logger",
]

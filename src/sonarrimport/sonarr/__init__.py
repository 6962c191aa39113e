"""Sonarr API access for sonarrimport."""

from sonarrimport.sonarr.client import (
    SonarrClient,
    SonarrError,
    SonarrUnavailableError,
    manual_import_file,
)
from sonarrimport.sonarr.models import Episode, Language, QualityDefinition, Series

__all__ = [
    "Episode",
    "Language",
    "QualityDefinition",
    "Series",
    "SonarrClient",
    "SonarrError",
    "SonarrUnavailableError",
    "manual_import_file",
]

"""Domain models for the sonarrimport application."""

from sonarrimport.models.config import SeriesMapping, SonarrSettings, TransformRule
from sonarrimport.models.core import (
    EpisodeReference,
    ImportItem,
    ImportMode,
    ImportReport,
    ImportStatus,
    ReleaseInfo,
    ResolutionSource,
    SeriesResolution,
)

__all__ = [
    "EpisodeReference",
    "ImportItem",
    "ImportMode",
    "ImportReport",
    "ImportStatus",
    "ReleaseInfo",
    "ResolutionSource",
    "SeriesMapping",
    "SeriesResolution",
    "SonarrSettings",
    "TransformRule",
]

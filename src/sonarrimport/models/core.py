"""Core domain models for sonarrimport.

This module defines the data passed between pipeline stages: what was parsed
from a filename, which series a file resolved to, and what happened when it
was submitted to Sonarr.
- EpisodeReference is the (season, episodes) pair parsed from a filename.
- ReleaseInfo bundles everything the parser extracts from one filename.
- ImportItem and ImportReport record the outcome of a run for rendering and
  exit codes.
"""

from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator


class ImportMode(str, Enum):
    """Whether Sonarr should copy or move a file into its library."""

    COPY = "Copy"
    MOVE = "Move"


class ResolutionSource(str, Enum):
    """How a file's target series was decided."""

    MAPPING = "mapping"
    AUTO = "auto"
    NONE = "none"


class ImportStatus(str, Enum):
    """Outcome of processing a single file."""

    SUBMITTED = "submitted"
    FAILED = "failed"
    DRY_RUN = "dry_run"


class EpisodeReference(BaseModel):
    """Season number and ordered episode numbers parsed from a filename."""

    season: int = Field(ge=0)
    episodes: Tuple[int, ...]

    @field_validator("episodes")
    @classmethod
    def _normalise_episodes(cls, value: Tuple[int, ...]) -> Tuple[int, ...]:
        # Ordered set semantics: sorted, unique, never empty.
        episodes = tuple(sorted(set(value)))
        if not episodes:
            raise ValueError("at least one episode number is required")
        return episodes

    def __str__(self) -> str:
        return f"S{self.season:02d}" + "".join(f"E{ep:02d}" for ep in self.episodes)


class ReleaseInfo(BaseModel):
    """Everything parsed out of one video filename."""

    filename: str
    series_title: str = ""
    episode: Optional[EpisodeReference] = None
    quality: str = "Unknown"
    language: str = "English"
    revision: int = 1
    """2 for PROPER/REPACK releases, 1 otherwise."""

    release_group: Optional[str] = None


class SeriesResolution(BaseModel):
    """The Sonarr series a file resolved to, if any."""

    source: ResolutionSource = ResolutionSource.NONE
    series_id: Optional[int] = None
    series_title: Optional[str] = None
    score: Optional[float] = None
    pattern: Optional[str] = None
    """The mapping pattern that matched (or was created by auto-match)."""

    @property
    def resolved(self: "SeriesResolution") -> bool:
        return self.series_id is not None


class ImportItem(BaseModel):
    """Result of pushing one video file through the pipeline."""

    path: Path
    """Local path after any rename/trim."""

    original_name: str
    remote_path: str
    command: str = "DownloadedEpisodesScan"
    release: Optional[ReleaseInfo] = None
    resolution: SeriesResolution = Field(default_factory=SeriesResolution)
    status: ImportStatus = ImportStatus.SUBMITTED
    message: str = ""

    @property
    def renamed(self: "ImportItem") -> bool:
        return self.path.name != self.original_name


class ImportReport(BaseModel):
    """Aggregate result of a run."""

    downloads_folder: Path
    dry_run: bool = False
    items: List[ImportItem] = Field(default_factory=list)
    new_mappings: int = 0
    """Number of mappings appended to the settings file by auto-match."""

    @property
    def failed(self: "ImportReport") -> List[ImportItem]:
        return [item for item in self.items if item.status == ImportStatus.FAILED]

    @property
    def success(self: "ImportReport") -> bool:
        return not self.failed

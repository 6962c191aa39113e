"""Data models for the parts of the Sonarr v3 API used by sonarrimport.

Only the fields the importer reads are modelled; everything else in the API
payloads is ignored.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )


class AlternateTitle(_ApiModel):
    title: str
    season_number: Optional[int] = None


class Series(_ApiModel):
    """A series in the Sonarr library."""

    id: int
    title: str
    year: Optional[int] = None
    tvdb_id: Optional[int] = None
    alternate_titles: List[AlternateTitle] = Field(default_factory=list)

    @property
    def names(self: "Series") -> List[str]:
        """Every name this series may appear under in a filename."""
        names = [self.title]
        names.extend(alt.title for alt in self.alternate_titles)
        return names


class Episode(_ApiModel):
    """A single episode of a series."""

    id: int
    series_id: int
    season_number: int
    episode_number: int
    title: Optional[str] = None
    has_file: bool = False


class Quality(_ApiModel):
    id: int
    name: str
    source: Optional[str] = None
    resolution: Optional[int] = None


class QualityDefinition(_ApiModel):
    quality: Quality
    title: Optional[str] = None


class Language(_ApiModel):
    id: int
    name: str


class Command(_ApiModel):
    """A queued Sonarr command as returned by ``POST /api/v3/command``."""

    id: Optional[int] = None
    name: str
    status: Optional[str] = None
    body: dict[str, Any] = Field(default_factory=dict)

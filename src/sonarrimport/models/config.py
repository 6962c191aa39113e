"""Configuration models for sonarrimport.

This module defines the validated shape of the ``sonarr`` section of the
settings file.
- Field names are snake_case in Python and camelCase in the file (``apiKey``,
  ``downloadsFolder``...), matching the settings format used by the earlier
  Bash importer so existing ``settings.json`` files keep working.
- Loaded once per run. The only mutation during a run is appending a
  ``SeriesMapping`` after a successful auto-match.

Design:
- TransformRule and SeriesMapping are ordered rule records; order in the file
  is the evaluation order.
- An invalid importMode is not fatal: it is logged and replaced by Move.
- A null value behaves like a missing key: the field default applies.
"""

import logging
import re
from pathlib import Path
from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from sonarrimport.models.core import ImportMode

logger = logging.getLogger(__name__)


class _CamelModel(BaseModel):
    """Base model reading and writing camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class TransformRule(_CamelModel):
    """A (search, replace) regex pair applied to filenames."""

    search: str
    """Regular expression, matched case-insensitively and globally."""

    replace: str = ""
    """Replacement template; supports back-references such as ``\\1``."""


class SeriesMapping(_CamelModel):
    """Maps filenames matching *pattern* to a Sonarr series id."""

    pattern: str
    """Regular expression searched (case-insensitively) in the filename."""

    series_id: int
    """Sonarr series id to import matching files into."""

    comment: str = ""
    """Free text, usually the series title the id belongs to."""

    def matches(self: "SeriesMapping", filename: str) -> bool:
        """Return True if *filename* matches this rule.

        Raises:
            re.error: If the pattern is not a valid regular expression.
        """
        return re.search(self.pattern, filename, re.IGNORECASE) is not None


class SonarrSettings(_CamelModel):
    """The ``sonarr`` section of the settings file."""

    url: str
    api_key: str
    mapping_path: str = "/"
    downloads_folder: Path
    import_mode: ImportMode = ImportMode.MOVE
    timeout_secs: int = Field(default=5, ge=0)
    trim_folders: bool = False
    transforms: List[TransformRule] = Field(default_factory=list)
    series_mappings: List[SeriesMapping] = Field(default_factory=list)
    auto_match: bool = False
    auto_match_threshold: float = Field(default=0.8, ge=0.0, le=1.0)
    retries: int = Field(default=3, ge=1)

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # An explicit null falls back to the field default.
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data

    @field_validator("url")
    @classmethod
    def _strip_url(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if not value:
            raise ValueError("url must not be empty")
        return value

    @field_validator("import_mode", mode="before")
    @classmethod
    def _coerce_import_mode(cls, value: object) -> ImportMode:
        if isinstance(value, ImportMode):
            return value
        for mode in ImportMode:
            if isinstance(value, str) and value.strip().lower() == mode.value.lower():
                return mode
        logger.error(
            "Invalid importMode '%s' in settings. Defaulting to 'Move'", value
        )
        return ImportMode.MOVE

    @property
    def masked_api_key(self: "SonarrSettings") -> str:
        """API key safe for logs (first 8 characters only)."""
        return f"{self.api_key[:8]}..."

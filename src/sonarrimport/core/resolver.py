"""Series resolution: decide which Sonarr series a file belongs to.

Explicit mapping rules are tried first, in declared order; the first rule
whose pattern matches the filename wins. When no rule matches and auto-match
is enabled, the parsed series title is fuzzy-matched against the library. A
successful auto-match becomes a new mapping rule, so the decision is reused
for the rest of the run and, once persisted, for future runs.
"""

import logging
import re
from datetime import date
from typing import Iterable, List, Optional, Protocol

from sonarrimport.core.fuzzy_matcher import best_series_match
from sonarrimport.models.config import SeriesMapping
from sonarrimport.models.core import ReleaseInfo, ResolutionSource, SeriesResolution
from sonarrimport.sonarr.models import Series
from sonarrimport.utils.config import ConfigError

logger = logging.getLogger(__name__)

_GROUP_TAG = r"^(?:\[[^\]]*\][\W_]*)?"
# Only an optional year may sit between the title and the episode marker.
_TITLE_END = (
    r"(?=[\W_]*(?:\(?(?:19|20)\d{2}\)?[\W_]*)?"
    r"(?:s\d{1,2}[\s._-]?e\d|\d{1,2}x\d{2}|season(?![^\W_])))"
)


class MappingStore(Protocol):
    """Anything able to persist a new mapping (see SettingsStore)."""

    def append_mapping(self, mapping: SeriesMapping) -> None: ...


def match_mapping(
    filename: str, mappings: Iterable[SeriesMapping]
) -> Optional[SeriesMapping]:
    """Return the first mapping whose pattern matches *filename*.

    Invalid patterns are logged and skipped.
    """
    for mapping in mappings:
        try:
            if mapping.matches(filename):
                return mapping
        except re.error as exc:
            logger.error("Invalid series mapping pattern '%s': %s", mapping.pattern, exc)
    return None


def mapping_pattern(title: str) -> str:
    """Build an anchored, separator-tolerant pattern for *title*.

    Words may be separated by any run of punctuation, so "The Office US"
    matches ``The.Office.US.S01E01.mkv`` as well as ``The Office US - 1x01.avi``.
    A leading ``[Group]`` tag is allowed before the title. The title must be
    followed by the episode marker, optionally after a year, so a longer
    series title that starts with the same words ("Star Trek Discovery" for
    "Star Trek") does not match.
    """
    words = re.findall(r"[^\W_]+", title)
    body = r"[\W_]+".join(re.escape(word) for word in words)
    return _GROUP_TAG + body + _TITLE_END


class SeriesResolver:
    """Resolves filenames to series ids for one run."""

    def __init__(
        self,
        mappings: List[SeriesMapping],
        *,
        auto_match: bool = False,
        threshold: float = 0.8,
        library: Optional[List[Series]] = None,
        store: Optional[MappingStore] = None,
    ) -> None:
        """Initialise the resolver.

        Args:
            mappings: Mapping rules, evaluated in order. Auto-matched rules are
                appended to this list.
            auto_match: Whether to fall back to fuzzy matching.
            threshold: Minimum fuzzy confidence (0..1).
            library: Series known to Sonarr; auto-match is skipped when None.
            store: Where new mappings are persisted; None keeps them in memory.
        """
        self.mappings = mappings
        self.auto_match = auto_match
        self.threshold = threshold
        self.library = library
        self.store = store
        self.new_mappings: List[SeriesMapping] = []

    def _series_title(self, series_id: int) -> Optional[str]:
        for series in self.library or []:
            if series.id == series_id:
                return series.title
        return None

    def resolve(self, filename: str, release: ReleaseInfo) -> SeriesResolution:
        """Resolve *filename* (already transformed) to a series."""
        mapping = match_mapping(filename, self.mappings)
        if mapping is not None:
            logger.debug(
                "Mapping '%s' matched %s -> series %s",
                mapping.pattern,
                filename,
                mapping.series_id,
            )
            return SeriesResolution(
                source=ResolutionSource.MAPPING,
                series_id=mapping.series_id,
                series_title=self._series_title(mapping.series_id) or mapping.comment or None,
                pattern=mapping.pattern,
            )

        if not self.auto_match:
            return SeriesResolution()
        if self.library is None:
            logger.debug("Auto-match skipped for %s: no series list", filename)
            return SeriesResolution()

        if not re.search(r"[^\W_]", release.series_title):
            logger.info("No series title in %s; auto-match skipped", filename)
            return SeriesResolution()

        match = best_series_match(release.series_title, self.library, self.threshold)
        if match is None:
            logger.info("No auto-match for '%s' (%s)", release.series_title, filename)
            return SeriesResolution()

        series, score = match
        if release.episode is None:
            # A generated pattern needs an episode marker to anchor on.
            logger.info(
                "Auto-matched '%s' to '%s' without an episode marker; "
                "no mapping saved",
                release.series_title,
                series.title,
            )
            return SeriesResolution(
                source=ResolutionSource.AUTO,
                series_id=series.id,
                series_title=series.title,
                score=score,
            )

        pattern = mapping_pattern(release.series_title)
        new_mapping = SeriesMapping(
            pattern=pattern,
            series_id=series.id,
            comment=(
                f"Auto-matched to '{series.title}' "
                f"(score {score:.2f}) on {date.today().isoformat()}"
            ),
        )
        logger.info(
            "Auto-matched '%s' to '%s' (id %s, score %.2f)",
            release.series_title,
            series.title,
            series.id,
            score,
        )
        self.mappings.append(new_mapping)
        self.new_mappings.append(new_mapping)
        if self.store is not None:
            try:
                self.store.append_mapping(new_mapping)
            except (OSError, ConfigError) as exc:
                logger.error("Could not save series mapping %s: %s", pattern, exc)
        return SeriesResolution(
            source=ResolutionSource.AUTO,
            series_id=series.id,
            series_title=series.title,
            score=score,
            pattern=pattern,
        )

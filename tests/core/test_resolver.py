"""Tests for mapping rules and auto-match resolution."""

import re
from typing import List

import pytest

from sonarrimport.core.episode_parser import parse_release
from sonarrimport.core.resolver import SeriesResolver, mapping_pattern, match_mapping
from sonarrimport.models.config import SeriesMapping
from sonarrimport.models.core import ResolutionSource
from sonarrimport.sonarr.models import Series


class FakeStore:
    def __init__(self, error: Exception | None = None) -> None:
        self.saved: List[SeriesMapping] = []
        self.error = error

    def append_mapping(self, mapping: SeriesMapping) -> None:
        if self.error is not None:
            raise self.error
        self.saved.append(mapping)


@pytest.fixture
def library() -> List[Series]:
    return [
        Series(id=7, title="The Office (US)", year=2005),
        Series(id=8, title="Breaking Bad", year=2008),
    ]


def _resolve(resolver: SeriesResolver, filename: str):
    return resolver.resolve(filename, parse_release(filename))


class TestMatchMapping:
    def test_first_match_wins(self) -> None:
        mappings = [
            SeriesMapping(pattern="^Show", series_id=1),
            SeriesMapping(pattern=r"^Show\.Name", series_id=2),
        ]
        assert match_mapping("Show.Name.S01E01.mkv", mappings).series_id == 1

    def test_no_match(self) -> None:
        mappings = [SeriesMapping(pattern="^Show", series_id=1)]
        assert match_mapping("Other.S01E01.mkv", mappings) is None

    def test_invalid_pattern_is_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        mappings = [
            SeriesMapping(pattern="([", series_id=1),
            SeriesMapping(pattern="show", series_id=2),
        ]
        assert match_mapping("Show.S01E01.mkv", mappings).series_id == 2
        assert "Invalid series mapping pattern" in caplog.text


@pytest.mark.parametrize(
    "filename",
    [
        "The.Office.US.S01E01.mkv",
        "The Office US - 1x01.avi",
        "[Grp] The_Office_US_S01E01.mkv",
        "the.office.us.s01e01.mkv",
    ],
)
def test_mapping_pattern_matches_variants(filename: str) -> None:
    assert re.search(mapping_pattern("The Office US"), filename, re.IGNORECASE)


def test_mapping_pattern_is_anchored() -> None:
    pattern = mapping_pattern("Office")
    assert not re.search(pattern, "The.Office.S01E01.mkv", re.IGNORECASE)
    assert not re.search(pattern, "Officer.S01E01.mkv", re.IGNORECASE)


class TestSeriesResolver:
    def test_mapping_resolution(self) -> None:
        resolver = SeriesResolver(
            [SeriesMapping(pattern="^Show", series_id=3, comment="Show")]
        )
        resolution = _resolve(resolver, "Show.S01E01.mkv")
        assert resolution.source is ResolutionSource.MAPPING
        assert resolution.series_id == 3
        assert resolution.series_title == "Show"
        assert resolution.pattern == "^Show"

    def test_no_auto_match_when_disabled(self, library: List[Series]) -> None:
        resolver = SeriesResolver([], auto_match=False, library=library)
        assert not _resolve(resolver, "Breaking.Bad.S01E01.mkv").resolved

    def test_no_auto_match_without_library(self) -> None:
        resolver = SeriesResolver([], auto_match=True, library=None)
        assert not _resolve(resolver, "Breaking.Bad.S01E01.mkv").resolved

    def test_auto_match_creates_and_reuses_mapping(
        self, library: List[Series]
    ) -> None:
        store = FakeStore()
        resolver = SeriesResolver(
            [], auto_match=True, threshold=0.8, library=library, store=store
        )

        first = _resolve(resolver, "The.Office.US.S01E01.720p.mkv")
        assert first.source is ResolutionSource.AUTO
        assert first.series_id == 7
        assert first.series_title == "The Office (US)"
        assert first.score == 1.0

        assert len(store.saved) == 1
        saved = store.saved[0]
        assert saved.series_id == 7
        assert "Auto-matched to 'The Office (US)'" in saved.comment
        assert resolver.new_mappings == [saved]

        second = _resolve(resolver, "The.Office.US.S01E02.720p.mkv")
        assert second.source is ResolutionSource.MAPPING
        assert second.series_id == 7
        assert second.series_title == "The Office (US)"
        assert len(store.saved) == 1

    def test_auto_match_below_threshold(self, library: List[Series]) -> None:
        store = FakeStore()
        resolver = SeriesResolver(
            [], auto_match=True, threshold=0.8, library=library, store=store
        )
        assert not _resolve(resolver, "Completely.Different.S01E01.mkv").resolved
        assert store.saved == []

    def test_store_failure_is_logged(
        self, library: List[Series], caplog: pytest.LogCaptureFixture
    ) -> None:
        resolver = SeriesResolver(
            [],
            auto_match=True,
            library=library,
            store=FakeStore(PermissionError("read-only")),
        )
        resolution = _resolve(resolver, "Breaking.Bad.S01E01.mkv")
        assert resolution.series_id == 8
        assert "Could not save series mapping" in caplog.text
        assert len(resolver.mappings) == 1

    def test_auto_match_without_episode_marker_saves_nothing(
        self, library: List[Series]
    ) -> None:
        store = FakeStore()
        resolver = SeriesResolver([], auto_match=True, library=library, store=store)
        resolution = _resolve(resolver, "Breaking.Bad.720p.HDTV.mkv")
        assert resolution.source is ResolutionSource.AUTO
        assert resolution.series_id == 8
        assert resolution.pattern is None
        assert store.saved == []
        assert resolver.mappings == []


class TestGeneratedMappingScope:
    @pytest.fixture
    def star_trek(self) -> List[Series]:
        return [
            Series(id=1, title="Star Trek", year=1966),
            Series(id=2, title="Star Trek: Discovery", year=2017),
        ]

    def test_longer_title_is_not_captured(self, star_trek: List[Series]) -> None:
        store = FakeStore()
        resolver = SeriesResolver([], auto_match=True, library=star_trek, store=store)

        first = _resolve(resolver, "Star.Trek.S01E01.mkv")
        second = _resolve(resolver, "Star.Trek.Discovery.S01E01.mkv")
        third = _resolve(resolver, "Star.Trek.S01E02.mkv")

        assert first.series_id == 1
        assert second.series_id == 2
        assert second.source is ResolutionSource.AUTO
        assert third.series_id == 1
        assert third.source is ResolutionSource.MAPPING
        assert [m.series_id for m in store.saved] == [1, 2]

    @pytest.mark.parametrize(
        "filename",
        [
            "Star.Trek.Discovery.S01E01.mkv",
            "Star Trek Beyond 2016 1080p.mkv",
            "Star.Trek.Picard.1x01.mkv",
        ],
    )
    def test_pattern_rejects_longer_titles(self, filename: str) -> None:
        assert not re.search(mapping_pattern("Star Trek"), filename, re.IGNORECASE)

    @pytest.mark.parametrize(
        "filename",
        [
            "Star.Trek.S01E01.mkv",
            "Star.Trek.1966.S01E01.mkv",
            "Star Trek (1966) - 1x01.avi",
            "Star_Trek_Season_1_Episode_1.mkv",
        ],
    )
    def test_pattern_allows_year_before_marker(self, filename: str) -> None:
        assert re.search(mapping_pattern("Star Trek"), filename, re.IGNORECASE)

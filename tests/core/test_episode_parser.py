"""Tests for filename parsing: episodes, title, quality, language, release."""

import pytest

from sonarrimport.core.episode_parser import (
    parse_episode,
    parse_language,
    parse_quality,
    parse_release,
    parse_series_title,
    strip_year,
)


@pytest.mark.parametrize(
    "filename, season, episodes",
    [
        ("Show.Name.S01E02.720p.HDTV.x264-GRP.mkv", 1, (2,)),
        ("show.name.s10e100.mkv", 10, (100,)),
        ("Show.S01E02E03.mkv", 1, (2, 3)),
        ("Show.S01E02-E04.mkv", 1, (2, 3, 4)),
        ("Show.S01E02-04.1080p.mkv", 1, (2, 3, 4)),
        ("Show.S02.E05.mkv", 2, (5,)),
        ("Show - 1x02 - Title.avi", 1, (2,)),
        ("Show 3x04-06.mkv", 3, (4, 5, 6)),
        ("Show 1x01x02.mkv", 1, (1, 2)),
        ("Show Season 2 Episode 7.mp4", 2, (7,)),
    ],
)
def test_parse_episode(filename: str, season: int, episodes: tuple) -> None:
    ref = parse_episode(filename)
    assert ref is not None
    assert ref.season == season
    assert ref.episodes == episodes


def test_range_does_not_swallow_resolution() -> None:
    ref = parse_episode("Show.S01E01-720p.mkv")
    assert ref is not None
    assert ref.episodes == (1,)


@pytest.mark.parametrize("filename", ["Some.Movie.2019.1080p.mkv", "random.mkv"])
def test_parse_episode_none(filename: str) -> None:
    assert parse_episode(filename) is None


@pytest.mark.parametrize(
    "filename, expected",
    [
        ("The.Office.US.S01E01.720p.mkv", "The Office US"),
        ("Doctor_Who_2005_S01E01.mkv", "Doctor Who 2005"),
        ("[Group] Show Name - 1x02.mkv", "Show Name"),
        ("Show.Name.720p.WEB.mkv", "Show Name"),
    ],
)
def test_parse_series_title(filename: str, expected: str) -> None:
    assert parse_series_title(filename) == expected


@pytest.mark.parametrize(
    "filename, expected",
    [
        ("Show.S01E01.720p.HDTV.x264.mkv", "HDTV-720p"),
        ("Show.S01E01.1080p.WEB-DL.DD5.1.mkv", "WEBDL-1080p"),
        ("Show.S01E01.1080p.AMZN.WEB.mkv", "WEBDL-1080p"),
        ("Show.S01E01.720p.WEBRip.mkv", "WEBRip-720p"),
        ("Show.S01E01.2160p.BluRay.REMUX.mkv", "Bluray-2160p Remux"),
        ("Show.S01E01.1080p.BluRay.x264.mkv", "Bluray-1080p"),
        ("Show.S01E01.DVDRip.avi", "DVD"),
        ("Show.S01E01.HDTV.avi", "SDTV"),
        ("Show.S01E01.480p.WEB-DL.mkv", "WEBDL-480p"),
        ("Show.S01E01.1080p.mkv", "HDTV-1080p"),
        ("Show.S01E01.mkv", "Unknown"),
    ],
)
def test_parse_quality(filename: str, expected: str) -> None:
    assert parse_quality(filename) == expected


@pytest.mark.parametrize(
    "filename, expected",
    [
        ("Show.S01E01.720p.mkv", "English"),
        ("Show.S01E01.FRENCH.720p.mkv", "French"),
        ("Show.S01E01.TRUEFRENCH.mkv", "French"),
        ("Show.S01E01.MULTI.VFF.1080p.mkv", "French"),
        ("Show.S01E01.MULTI.1080p.mkv", "English"),
        ("Show.S01E01.German.DL.mkv", "German"),
        ("The.French.Chef.S01E01.mkv", "English"),
        ("Show.S01E01.VOSTFR.720p.mkv", "English"),
        ("Show.S01E01.JAPANESE.VOSTFR.mkv", "Japanese"),
    ],
)
def test_parse_language(filename: str, expected: str) -> None:
    assert parse_language(filename) == expected


def test_parse_release() -> None:
    release = parse_release("Show.Name.S02E03.PROPER.1080p.WEB-DL.GERMAN-GRP.mkv")
    assert release.filename == "Show.Name.S02E03.PROPER.1080p.WEB-DL.GERMAN-GRP.mkv"
    assert release.series_title == "Show Name"
    assert str(release.episode) == "S02E03"
    assert release.quality == "WEBDL-1080p"
    assert release.language == "German"
    assert release.revision == 2
    assert release.release_group == "GRP"


def test_parse_release_defaults() -> None:
    release = parse_release("Show.S01E01.mkv")
    assert release.revision == 1
    assert release.release_group is None


def test_strip_year() -> None:
    assert strip_year("Doctor Who (2005)") == "Doctor Who"
    assert strip_year("Show 1999 Name") == "Show Name"


def test_source_tag_is_not_a_release_group() -> None:
    assert parse_release("Show.S01E02.720p.WEB-DL.mkv").release_group is None

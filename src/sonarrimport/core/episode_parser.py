"""Parser module for extracting episode, quality and language from filenames.

The heuristics here only need to be good enough to build a Sonarr
ManualImport request for files that were resolved to a series; anything not
recognised falls back to a DownloadedEpisodesScan, where Sonarr's own parser
takes over.
"""

import re
from pathlib import PurePath
from typing import List, Optional, Tuple

from sonarrimport.core.scanner import VIDEO_EXTENSIONS
from sonarrimport.models.core import EpisodeReference, ReleaseInfo

# Markers must not touch other letters or digits; "_" counts as a separator.
_START = r"(?<![a-z0-9])"
_END = r"(?![a-z0-9])"

# Ordered from most to least specific; the first pattern that matches wins.
# Each pattern exposes "season", "first" and optionally "rest"/"last".
_EPISODE_PATTERNS = [
    # S01E01-E03 / S01E01-03 (range)
    re.compile(
        _START + r"S(?P<season>\d{1,2})[ ._-]?E(?P<first>\d{1,3})"
        r"-E?(?P<last>\d{1,3})(?!\d|p\b)",
        re.IGNORECASE,
    ),
    # S01E01, S01E01E02E03, S01.E01, S01 E01
    re.compile(
        _START + r"S(?P<season>\d{1,2})[ ._-]?E(?P<first>\d{1,3})"
        r"(?P<rest>(?:[ ._-]?E\d{1,3})*)(?!\d)",
        re.IGNORECASE,
    ),
    # 1x01-03 / 1x01-1x03 (range)
    re.compile(
        _START + r"(?P<season>\d{1,2})x(?P<first>\d{2,3})"
        r"-(?:\d{1,2}x)?(?P<last>\d{2,3})" + _END,
        re.IGNORECASE,
    ),
    # 1x01, 1x01x02
    re.compile(
        _START + r"(?P<season>\d{1,2})x(?P<first>\d{2,3})(?P<rest>(?:x\d{2,3})*)" + _END,
        re.IGNORECASE,
    ),
    # Season 1 Episode 2
    re.compile(
        _START + r"Season[ ._-]*(?P<season>\d{1,2})[ ._-]*Episode[ ._-]*"
        r"(?P<first>\d{1,3})(?!\d)",
        re.IGNORECASE,
    ),
]

# Ranges longer than this are almost certainly a mis-parse (e.g. a year).
_MAX_RANGE = 30

_RESOLUTIONS = [
    (re.compile(r"\b(?:2160p|4k|uhd)\b", re.IGNORECASE), "2160p"),
    (re.compile(r"\b1080[pi]\b", re.IGNORECASE), "1080p"),
    (re.compile(r"\b720p\b", re.IGNORECASE), "720p"),
    (re.compile(r"\b(?:480p|576p|480i|576i)\b", re.IGNORECASE), "480p"),
]

_SOURCES = [
    (re.compile(r"\bremux\b", re.IGNORECASE), "remux"),
    (re.compile(r"\b(?:blu-?ray|bdrip|brrip|bd(?:25|50)?)\b", re.IGNORECASE), "bluray"),
    (re.compile(r"\bweb-?rip\b", re.IGNORECASE), "webrip"),
    (
        re.compile(r"\b(?:web-?dl|web|amzn|nf|dsnp|hmax|atvp)\b", re.IGNORECASE),
        "webdl",
    ),
    (re.compile(r"\b(?:hdtv|pdtv|dsr|tvrip)\b", re.IGNORECASE), "hdtv"),
    (re.compile(r"\b(?:dvd-?rip|dvd|dvdr)\b", re.IGNORECASE), "dvd"),
]

# Language tokens -> Sonarr language names. Tokens are matched as whole words.
# Subtitle tags such as VOSTFR say nothing about the audio and are not listed.
LANGUAGE_TOKENS = {
    "french": "French",
    "truefrench": "French",
    "vff": "French",
    "vfq": "French",
    "vf": "French",
    "vf2": "French",
    "german": "German",
    "ger": "German",
    "deutsch": "German",
    "spanish": "Spanish",
    "esp": "Spanish",
    "castellano": "Spanish",
    "italian": "Italian",
    "ita": "Italian",
    "japanese": "Japanese",
    "jap": "Japanese",
    "dutch": "Dutch",
    "nl": "Dutch",
    "russian": "Russian",
    "rus": "Russian",
    "portuguese": "Portuguese",
    "polish": "Polish",
    "pl": "Polish",
    "swedish": "Swedish",
    "norwegian": "Norwegian",
    "danish": "Danish",
    "finnish": "Finnish",
    "korean": "Korean",
    "chinese": "Chinese",
    "hindi": "Hindi",
    "english": "English",
    "eng": "English",
}

DEFAULT_LANGUAGE = "English"

_PROPER = re.compile(r"\b(?:proper|repack|rerip)\b", re.IGNORECASE)
_RELEASE_GROUP = re.compile(
    r"(?<!web)(?<!blu)(?<!dvd)-(?P<group>[A-Za-z0-9]+)$", re.IGNORECASE
)
_YEAR = re.compile(r"\b(?:19|20)\d{2}\b")
_GROUP_PREFIX = re.compile(r"^\s*\[[^\]]*\][\s._-]*")


def _strip_extension(filename: str) -> str:
    suffix = PurePath(filename).suffix
    # Only real video extensions: "Show.S01E01.720p" keeps its last token.
    if suffix.lower() in VIDEO_EXTENSIONS:
        return filename[: -len(suffix)]
    return filename


def _normalise(filename: str) -> str:
    return re.sub(r"[._]+", " ", _strip_extension(filename))


def _find_episode(filename: str) -> Tuple[Optional[EpisodeReference], int]:
    """Return the parsed reference and the index where the marker starts."""
    name = _strip_extension(filename)
    for pattern in _EPISODE_PATTERNS:
        match = pattern.search(name)
        if not match:
            continue
        season = int(match.group("season"))
        first = int(match.group("first"))
        episodes: List[int] = [first]
        groups = match.groupdict()
        if groups.get("last"):
            last = int(groups["last"])
            if first < last <= first + _MAX_RANGE:
                episodes = list(range(first, last + 1))
            elif last != first:
                continue
        if groups.get("rest"):
            episodes.extend(int(num) for num in re.findall(r"\d+", groups["rest"]))
        return EpisodeReference(season=season, episodes=tuple(episodes)), match.start()
    return None, -1


def parse_episode(filename: str) -> Optional[EpisodeReference]:
    """Extract the season and episode numbers from *filename*.

    Supports ``S01E02``, ``S01E02E03``, ``S01E02-E04``, ``1x02``, ``1x02-03``
    and ``Season 1 Episode 2``.

    Returns:
        The episode reference, or None if no marker was found.
    """
    episode, _ = _find_episode(filename)
    return episode


def parse_series_title(filename: str) -> str:
    """Return the series title: the text before the episode marker.

    Separators become spaces and a leading release-group tag such as
    ``[Group]`` is dropped. Without an episode marker the whole name (minus
    quality tags) is used.
    """
    name = _strip_extension(filename)
    _, start = _find_episode(filename)
    if start >= 0:
        name = name[:start]
    else:
        tags = re.search(
            r"[ ._-](?:2160p|1080[pi]|720p|480p|web|webrip|web-dl|hdtv|bluray)\b",
            name,
            re.IGNORECASE,
        )
        if tags:
            name = name[: tags.start()]
    name = _GROUP_PREFIX.sub("", name)
    title = re.sub(r"[._]+", " ", name)
    title = re.sub(r"\s+", " ", title)
    return title.strip(" -[](")


def parse_quality(filename: str) -> str:
    """Map resolution and source tokens to a Sonarr quality name.

    Returns:
        A Sonarr quality name such as ``WEBDL-1080p``, ``HDTV-720p``,
        ``Bluray-2160p Remux``, ``SDTV`` or ``DVD``; ``Unknown`` if neither
        source nor resolution was recognised.
    """
    name = _normalise(filename)
    resolution = next((res for rx, res in _RESOLUTIONS if rx.search(name)), None)
    source = next((src for rx, src in _SOURCES if rx.search(name)), None)

    if source is None and resolution is None:
        return "Unknown"
    if source == "remux":
        return f"Bluray-{resolution or '1080p'} Remux"
    if source == "dvd" and resolution in (None, "480p"):
        return "DVD"
    if resolution in (None, "480p"):
        if source in ("webdl", "webrip", "bluray"):
            prefix = {"webdl": "WEBDL", "webrip": "WEBRip", "bluray": "Bluray"}[source]
            return f"{prefix}-480p"
        return "SDTV"
    prefix = {
        "webdl": "WEBDL",
        "webrip": "WEBRip",
        "bluray": "Bluray",
        "hdtv": "HDTV",
        "dvd": "Bluray",
        None: "HDTV",
    }[source]
    return f"{prefix}-{resolution}"


def parse_language(filename: str) -> str:
    """Return the Sonarr language name for *filename* (default English).

    ``MULTI`` releases resolve to the first explicit language token, or
    English when there is none.
    """
    tokens = re.findall(r"[a-z0-9]+", _normalise(filename).lower())
    _, start = _find_episode(filename)
    if start >= 0:
        # Words in the series title ("The French Connection") are not tags.
        title_tokens = len(re.findall(r"[a-z0-9]+", _normalise(filename[:start]).lower()))
        tokens = tokens[title_tokens:]
    for token in tokens:
        if token in LANGUAGE_TOKENS:
            return LANGUAGE_TOKENS[token]
    return DEFAULT_LANGUAGE


def parse_release(filename: str) -> ReleaseInfo:
    """Parse everything the importer needs from *filename*."""
    name = _strip_extension(filename)
    group_match = _RELEASE_GROUP.search(name)
    return ReleaseInfo(
        filename=filename,
        series_title=parse_series_title(filename),
        episode=parse_episode(filename),
        quality=parse_quality(filename),
        language=parse_language(filename),
        revision=2 if _PROPER.search(_normalise(filename)) else 1,
        release_group=group_match.group("group") if group_match else None,
    )


def strip_year(title: str) -> str:
    """Remove a standalone year and bracket noise from *title*."""
    stripped = _YEAR.sub(" ", title)
    stripped = re.sub(r"[()\[\]]", " ", stripped)
    return re.sub(r"\s+", " ", stripped).strip()

"""Fuzzy series matcher for sonarrimport.

Uses rapidfuzz to score a series title parsed from a filename against the
titles of the series in the Sonarr library.
"""

import logging
import re
from typing import Iterable, List, Optional, Tuple

from rapidfuzz import fuzz

from sonarrimport.core.episode_parser import strip_year
from sonarrimport.sonarr.models import Series

logger = logging.getLogger(__name__)

_ARTICLE = re.compile(r"^the\s+")


def normalize_title(title: str) -> str:
    """Lowercase *title* and collapse punctuation/separators to single spaces."""
    normalized = re.sub(r"[^\w\s]|_", " ", title.lower())
    return " ".join(normalized.split())


def calculate_show_confidence(input_name: str, canonical_name: str) -> float:
    """Calculate confidence that *input_name* refers to *canonical_name*.

    Scoring is based on:
    - Exact (normalised) matching
    - Handling of a leading "The"
    - Token-based rapidfuzz similarity, penalised for subset matches
    - Tolerance for a trailing year ("Doctor Who 2005" vs "Doctor Who")

    Args:
        input_name: Series title extracted from a filename.
        canonical_name: Series title from Sonarr.

    Returns:
        Confidence score between 0.0 and 1.0.
    """
    input_norm = normalize_title(input_name)
    canonical_norm = normalize_title(canonical_name)
    if not input_norm or not canonical_norm:
        return 0.0

    if input_norm == canonical_norm:
        return 1.0

    input_no_the = _ARTICLE.sub("", input_norm)
    canonical_no_the = _ARTICLE.sub("", canonical_norm)
    if input_no_the == canonical_no_the:
        return 0.95

    input_words = set(input_norm.split())
    canonical_words = set(canonical_norm.split())

    token_set_score = fuzz.token_set_ratio(input_norm, canonical_norm) / 100.0
    token_sort_score = fuzz.token_sort_ratio(input_norm, canonical_norm) / 100.0
    partial_score = fuzz.partial_ratio(input_norm, canonical_norm) / 100.0

    # token_set scores subsets highly ("office" vs "the office us").
    if len(input_words) < len(canonical_words):
        word_ratio = len(input_words) / len(canonical_words)
        token_set_score = token_set_score * word_ratio * 0.8

    best_fuzzy_score = max(token_sort_score, token_set_score)

    # Short inputs get a partial_ratio discount proportional to their length.
    if len(input_norm) >= len(canonical_norm) * 0.6:
        best_fuzzy_score = max(best_fuzzy_score, partial_score)
    else:
        penalized_partial = partial_score * (len(input_norm) / len(canonical_norm))
        best_fuzzy_score = max(best_fuzzy_score, penalized_partial)

    word_overlap = len(input_words & canonical_words) / len(canonical_words)
    if len(input_words) > 1 and word_overlap > 0.5:
        best_fuzzy_score = max(best_fuzzy_score, word_overlap * 0.85)
    elif len(input_words) == 1 and len(canonical_words) > 1 and word_overlap == 1.0:
        best_fuzzy_score = max(best_fuzzy_score, 0.4)
    elif word_overlap == 0.0:
        best_fuzzy_score *= 0.3

    # Same words in a different order.
    if input_words == canonical_words and input_norm != canonical_norm:
        best_fuzzy_score = min(best_fuzzy_score, 0.6)

    length_ratio = min(len(input_norm), len(canonical_norm)) / max(
        len(input_norm), len(canonical_norm)
    )
    if best_fuzzy_score < 0.5 and length_ratio < 0.6:
        best_fuzzy_score *= 0.5

    best_fuzzy_score = max(0.0, min(1.0, best_fuzzy_score))

    input_no_year = normalize_title(strip_year(input_norm))
    canonical_no_year = normalize_title(strip_year(canonical_norm))
    if (
        input_no_year
        and input_no_year == canonical_no_year
        and abs(len(input_norm) - len(canonical_norm)) <= 6
    ):
        return max(best_fuzzy_score, 0.85)

    return best_fuzzy_score


def score_series(title: str, series: Series) -> float:
    """Best confidence of *title* against any name of *series*."""
    names = list(series.names)
    if series.year:
        names.append(f"{series.title} {series.year}")
    return max(calculate_show_confidence(title, name) for name in names)


def rank_series(title: str, library: Iterable[Series]) -> List[Tuple[Series, float]]:
    """Return ``(series, score)`` pairs sorted by descending score."""
    scored = [(series, score_series(title, series)) for series in library]
    scored.sort(key=lambda pair: pair[1], reverse=True)
    return scored


def best_series_match(
    title: str, library: Iterable[Series], threshold: float
) -> Optional[Tuple[Series, float]]:
    """Pick the library series that best matches *title*.

    Args:
        title: Series title parsed from a filename.
        library: Series known to Sonarr.
        threshold: Minimum confidence (0..1) to accept.

    Returns:
        ``(series, score)`` for the winner, or None when nothing reaches the
        threshold or two different series tie for the best score.
    """
    if not title.strip():
        return None
    ranked = rank_series(title, library)
    if not ranked:
        return None

    best, best_score = ranked[0]
    if best_score < threshold:
        logger.debug(
            "No series above threshold %.2f for '%s' (best: %s %.2f)",
            threshold,
            title,
            best.title,
            best_score,
        )
        return None
    if len(ranked) > 1 and ranked[1][1] == best_score and ranked[1][0].id != best.id:
        logger.warning(
            "Ambiguous auto-match for '%s': '%s' and '%s' both scored %.2f",
            title,
            best.title,
            ranked[1][0].title,
            best_score,
        )
        return None
    return best, best_score

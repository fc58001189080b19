"""Keyword-set similarity and greedy directory matching across snapshots."""
from __future__ import annotations

import logging
from typing import Iterable

from gsc_compare.models import DirectoryComparison, DirectoryProfile

LOGGER = logging.getLogger(__name__)

DEFAULT_MIN_SIMILARITY = 0.3


def jaccard_similarity(profile_a: DirectoryProfile, profile_b: DirectoryProfile) -> float:
    """Return the Jaccard coefficient of the lower-cased top keyword sets.

    The score is ``0.0`` whenever either directory has no keywords.
    """

    keywords_a = profile_a.keyword_set()
    keywords_b = profile_b.keyword_set()
    if not keywords_a or not keywords_b:
        return 0.0
    return len(keywords_a & keywords_b) / len(keywords_a | keywords_b)


def common_keywords(profile_a: DirectoryProfile, profile_b: DirectoryProfile) -> list[str]:
    """Keywords of ``profile_a`` also present in ``profile_b``, in A's casing and order."""

    keywords_b = profile_b.keyword_set()
    return [item.keyword for item in profile_a.top_keywords if item.keyword.lower() in keywords_b]


def build_directory_comparison(
    profile_a: DirectoryProfile,
    profile_b: DirectoryProfile,
    similarity: float | None = None,
) -> DirectoryComparison:
    """Pair two profiles and compute their signed deltas (A minus B)."""

    if similarity is None:
        similarity = jaccard_similarity(profile_a, profile_b)
    return DirectoryComparison(
        path_a=profile_a.path,
        path_b=profile_b.path,
        similarity_score=similarity,
        common_keywords=common_keywords(profile_a, profile_b),
        profile_a=profile_a,
        profile_b=profile_b,
        clicks_diff=profile_a.clicks - profile_b.clicks,
        impressions_diff=profile_a.impressions - profile_b.impressions,
        position_diff=profile_a.position - profile_b.position,
        page_count_diff=profile_a.page_count - profile_b.page_count,
    )


def match_directories(
    profiles_a: Iterable[DirectoryProfile],
    profiles_b: Iterable[DirectoryProfile],
    min_similarity: float = DEFAULT_MIN_SIMILARITY,
) -> list[DirectoryComparison]:
    """Assign each snapshot-A directory its most similar snapshot-B directory.

    Every A directory scans all B directories and keeps the strictly highest
    score, so ties resolve to the first B directory in iteration order. The
    assignment is many-to-one: several A directories may select the same B
    directory. A directories whose best score is zero or below
    ``min_similarity`` are left out of the result.
    """

    candidates = list(profiles_b)
    comparisons: list[DirectoryComparison] = []
    unmatched = 0
    for profile_a in profiles_a:
        best_match: DirectoryProfile | None = None
        best_score = 0.0
        for profile_b in candidates:
            score = jaccard_similarity(profile_a, profile_b)
            if score > best_score:
                best_match = profile_b
                best_score = score
        if best_match is None or best_score < min_similarity:
            unmatched += 1
            continue
        comparisons.append(build_directory_comparison(profile_a, best_match, best_score))

    LOGGER.debug(
        "gsc_compare.similarity.matched",
        extra={"matched": len(comparisons), "unmatched": unmatched, "min_similarity": min_similarity},
    )
    return comparisons


__all__ = [
    "DEFAULT_MIN_SIMILARITY",
    "build_directory_comparison",
    "common_keywords",
    "jaccard_similarity",
    "match_directories",
]

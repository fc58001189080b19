"""Directory level comparison of two snapshots via keyword-set matching."""

from __future__ import annotations

import logging
from typing import Iterable

from gsc_compare.etl.assembler import sort_directory_comparisons
from gsc_compare.features.directory import (
    DEFAULT_DIRECTORY_DEPTH,
    DEFAULT_TOP_KEYWORDS,
    build_directory_profiles,
)
from gsc_compare.features.similarity import DEFAULT_MIN_SIMILARITY, match_directories
from gsc_compare.models import DirectoryComparison, SnapshotRow

LOGGER = logging.getLogger(__name__)


def compare_directories(
    rows_a: Iterable[SnapshotRow],
    rows_b: Iterable[SnapshotRow],
    *,
    depth: int = DEFAULT_DIRECTORY_DEPTH,
    min_similarity: float = DEFAULT_MIN_SIMILARITY,
    top_keywords_count: int = DEFAULT_TOP_KEYWORDS,
    sort_by: str = "similarity",
) -> list[DirectoryComparison]:
    """Profile both snapshots, match directories and sort the pairs."""

    profiles_a = build_directory_profiles(rows_a, depth, top_keywords_count)
    profiles_b = build_directory_profiles(rows_b, depth, top_keywords_count)
    comparisons = match_directories(profiles_a.values(), profiles_b.values(), min_similarity)
    LOGGER.debug(
        "gsc_compare.directories.compared",
        extra={
            "directories_a": len(profiles_a),
            "directories_b": len(profiles_b),
            "matched": len(comparisons),
        },
    )
    return sort_directory_comparisons(comparisons, sort_by)


__all__ = ["compare_directories"]

"""Keyword level alignment of two snapshots."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from gsc_compare.etl.assembler import filter_keyword_comparisons, sort_keyword_comparisons
from gsc_compare.features.aggregate import aggregate_by_key
from gsc_compare.models import (
    DIMENSION_QUERY,
    STATUS_COMMON,
    STATUS_MISSING_IN_A,
    STATUS_MISSING_IN_B,
    AggregatedStats,
    KeywordComparison,
    SnapshotRow,
)

LOGGER = logging.getLogger(__name__)

# Metrics where a lower value is an improvement.
LOWER_IS_BETTER = frozenset({"position"})

DEFAULT_TREND_LABELS = {"better": "Besser", "worse": "Schlechter", "equal": "Gleich"}


def classify_trend(metric: str, diff: float | None, labels: Mapping[str, str] | None = None) -> str:
    """Label a signed ``A - B`` delta as better, worse or equal for snapshot A.

    Position is inverted: a negative delta means A ranks better.
    """

    labels = labels or DEFAULT_TREND_LABELS
    if diff is None or diff == 0:
        return labels.get("equal", DEFAULT_TREND_LABELS["equal"])
    improved = diff < 0 if metric in LOWER_IS_BETTER else diff > 0
    if improved:
        return labels.get("better", DEFAULT_TREND_LABELS["better"])
    return labels.get("worse", DEFAULT_TREND_LABELS["worse"])


def _classify_status(stats_a: AggregatedStats | None, stats_b: AggregatedStats | None) -> str:
    if stats_a is not None and stats_b is not None:
        return STATUS_COMMON
    if stats_a is not None:
        return STATUS_MISSING_IN_B
    return STATUS_MISSING_IN_A


def diff_keywords(rows_a: Iterable[SnapshotRow], rows_b: Iterable[SnapshotRow]) -> list[KeywordComparison]:
    """Align ``query`` rows of both snapshots by exact key.

    Every keyword present in either snapshot yields exactly one comparison.
    Deltas are ``A - B``; an absent side counts as zero.
    """

    keywords_a = aggregate_by_key(rows_a, DIMENSION_QUERY)
    keywords_b = aggregate_by_key(rows_b, DIMENSION_QUERY)
    all_keywords = list(keywords_a)
    all_keywords.extend(key for key in keywords_b if key not in keywords_a)

    comparisons: list[KeywordComparison] = []
    empty = AggregatedStats()
    for keyword in all_keywords:
        stats_a = keywords_a.get(keyword)
        stats_b = keywords_b.get(keyword)
        left = stats_a or empty
        right = stats_b or empty
        comparisons.append(
            KeywordComparison(
                keyword=keyword,
                status=_classify_status(stats_a, stats_b),
                stats_a=stats_a,
                stats_b=stats_b,
                clicks_diff=left.clicks - right.clicks,
                impressions_diff=left.impressions - right.impressions,
                position_diff=left.position - right.position,
            )
        )
    LOGGER.debug(
        "gsc_compare.keywords.diffed",
        extra={"keywords": len(comparisons), "keywords_a": len(keywords_a), "keywords_b": len(keywords_b)},
    )
    return comparisons


def compare_keywords(
    rows_a: Iterable[SnapshotRow],
    rows_b: Iterable[SnapshotRow],
    *,
    sort_by: str = "clicks",
    status_filter: str = "all",
) -> list[KeywordComparison]:
    """Diff, sort and filter keywords in one call."""

    comparisons = diff_keywords(rows_a, rows_b)
    return filter_keyword_comparisons(sort_keyword_comparisons(comparisons, sort_by), status_filter)


def label_keyword_comparison(
    comparison: KeywordComparison,
    labels: Mapping[str, str] | None = None,
    status_labels: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Return the flat record of ``comparison`` with status and trend labels."""

    record = comparison.to_record()
    record["status_label"] = (status_labels or {}).get(comparison.status, comparison.status)
    record["clicks_trend"] = classify_trend("clicks", comparison.clicks_diff, labels)
    record["impressions_trend"] = classify_trend("impressions", comparison.impressions_diff, labels)
    record["position_trend"] = classify_trend("position", comparison.position_diff, labels)
    return record


__all__ = [
    "DEFAULT_TREND_LABELS",
    "LOWER_IS_BETTER",
    "classify_trend",
    "compare_keywords",
    "diff_keywords",
    "label_keyword_comparison",
]

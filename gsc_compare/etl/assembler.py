"""Sorting, filtering and tabular output for comparison results."""

from __future__ import annotations

from typing import Any, Iterable, Sequence

import pandas as pd

from gsc_compare.models import KEYWORD_STATUSES, DirectoryComparison, KeywordComparison

KEYWORD_COMPARISON_COLUMNS = [
    "keyword",
    "status",
    "clicks_a",
    "impressions_a",
    "ctr_a",
    "position_a",
    "clicks_b",
    "impressions_b",
    "ctr_b",
    "position_b",
    "clicks_diff",
    "impressions_diff",
    "position_diff",
]

DIRECTORY_COMPARISON_COLUMNS = [
    "path_a",
    "path_b",
    "similarity_score",
    "common_keywords",
    "common_keyword_count",
    "clicks_a",
    "clicks_b",
    "impressions_a",
    "impressions_b",
    "ctr_a",
    "ctr_b",
    "position_a",
    "position_b",
    "page_count_a",
    "page_count_b",
    "clicks_diff",
    "impressions_diff",
    "position_diff",
    "page_count_diff",
]

_DIFF_FIELDS = {
    "clicks": "clicks_diff",
    "impressions": "impressions_diff",
    "position": "position_diff",
}


def _text_key(value: str) -> tuple[str, str]:
    return (value.casefold(), value)


def sort_keyword_comparisons(
    comparisons: Iterable[KeywordComparison],
    sort_by: str = "clicks",
) -> list[KeywordComparison]:
    """Order keyword comparisons by ``|diff|`` descending or by keyword ascending.

    The sort is stable; unknown keys keep the input order.
    """

    items = list(comparisons)
    if sort_by == "keyword":
        return sorted(items, key=lambda item: _text_key(item.keyword))
    field = _DIFF_FIELDS.get(sort_by)
    if field is None:
        return items
    return sorted(items, key=lambda item: abs(getattr(item, field)), reverse=True)


def sort_directory_comparisons(
    comparisons: Iterable[DirectoryComparison],
    sort_by: str = "similarity",
) -> list[DirectoryComparison]:
    """Order directory comparisons by similarity, ``|diff|`` or path."""

    items = list(comparisons)
    if sort_by == "similarity":
        return sorted(items, key=lambda item: item.similarity_score, reverse=True)
    if sort_by in ("path", "keyword"):
        return sorted(items, key=lambda item: _text_key(item.path_a))
    field = _DIFF_FIELDS.get(sort_by)
    if field is None:
        return items
    return sorted(items, key=lambda item: abs(getattr(item, field)), reverse=True)


def filter_keyword_comparisons(
    comparisons: Iterable[KeywordComparison],
    status_filter: str = "all",
) -> list[KeywordComparison]:
    """Keep only comparisons of ``status_filter`` (``"all"`` keeps everything)."""

    items = list(comparisons)
    if status_filter == "all" or status_filter not in KEYWORD_STATUSES:
        return items
    return [item for item in items if item.status == status_filter]


def filter_directory_comparisons(
    comparisons: Iterable[DirectoryComparison],
    min_similarity: float = 0.0,
) -> list[DirectoryComparison]:
    """Drop directory pairs scoring below ``min_similarity``."""

    return [item for item in comparisons if item.similarity_score >= min_similarity]


def summarise_keywords(comparisons: Sequence[KeywordComparison]) -> dict[str, int]:
    """Count comparisons per status plus the overall total."""

    summary = {status: 0 for status in KEYWORD_STATUSES}
    for item in comparisons:
        summary[item.status] = summary.get(item.status, 0) + 1
    summary["total"] = len(comparisons)
    return summary


def summarise_directories(comparisons: Sequence[DirectoryComparison]) -> dict[str, Any]:
    """Return the matched directory count and their average similarity."""

    matched = len(comparisons)
    average = sum(item.similarity_score for item in comparisons) / matched if matched else 0.0
    return {"matched": matched, "avg_similarity": average}


def keyword_comparisons_to_frame(comparisons: Iterable[KeywordComparison]) -> pd.DataFrame:
    """Materialise keyword comparisons as a flat DataFrame."""

    records = [item.to_record() for item in comparisons]
    if not records:
        return pd.DataFrame(columns=KEYWORD_COMPARISON_COLUMNS)
    return pd.DataFrame(records, columns=KEYWORD_COMPARISON_COLUMNS)


def directory_comparisons_to_frame(comparisons: Iterable[DirectoryComparison]) -> pd.DataFrame:
    """Materialise directory comparisons as a flat DataFrame."""

    records = [item.to_record() for item in comparisons]
    if not records:
        return pd.DataFrame(columns=DIRECTORY_COMPARISON_COLUMNS)
    return pd.DataFrame(records, columns=DIRECTORY_COMPARISON_COLUMNS)


__all__ = [
    "DIRECTORY_COMPARISON_COLUMNS",
    "KEYWORD_COMPARISON_COLUMNS",
    "directory_comparisons_to_frame",
    "filter_directory_comparisons",
    "filter_keyword_comparisons",
    "keyword_comparisons_to_frame",
    "sort_directory_comparisons",
    "sort_keyword_comparisons",
    "summarise_directories",
    "summarise_keywords",
]

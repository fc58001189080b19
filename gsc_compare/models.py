"""Snapshot rows and the derived comparison records."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, Mapping

import pandas as pd

DIMENSION_QUERY = "query"
DIMENSION_PAGE = "page"
DIMENSION_COUNTRY = "country"
DIMENSION_DEVICE = "device"
DIMENSION_DATE = "date"
DIMENSION_QUERY_PAGE = "query_page"

DIMENSIONS = (
    DIMENSION_QUERY,
    DIMENSION_PAGE,
    DIMENSION_COUNTRY,
    DIMENSION_DEVICE,
    DIMENSION_DATE,
    DIMENSION_QUERY_PAGE,
)

STATUS_COMMON = "common"
STATUS_MISSING_IN_A = "missing_in_A"
STATUS_MISSING_IN_B = "missing_in_B"

KEYWORD_STATUSES = (STATUS_COMMON, STATUS_MISSING_IN_A, STATUS_MISSING_IN_B)


def safe_ratio(numerator: float, denominator: float) -> float:
    """Return ``numerator / denominator`` or ``0.0`` when the denominator is zero."""

    if not denominator:
        return 0.0
    return numerator / denominator


@dataclass(slots=True)
class SnapshotRow:
    """One aggregated search-analytics observation inside a snapshot."""

    dimension: str
    key: str
    clicks: int
    impressions: int
    ctr: float
    position: float
    page_url: str | None = None

    @classmethod
    def build(
        cls,
        dimension: str,
        key: str,
        clicks: int = 0,
        impressions: int = 0,
        position: float = 0.0,
        page_url: str | None = None,
    ) -> "SnapshotRow":
        """Create a row deriving ``ctr`` from clicks and impressions."""

        if dimension not in DIMENSIONS:
            raise ValueError(f"Unknown dimension: {dimension!r}")
        clicks = int(clicks)
        impressions = int(impressions)
        return cls(
            dimension=dimension,
            key=str(key),
            clicks=clicks,
            impressions=impressions,
            ctr=safe_ratio(clicks, impressions),
            position=float(position),
            page_url=page_url,
        )


@dataclass(slots=True)
class AggregatedStats:
    """Totals and averages for a group of rows."""

    clicks: int = 0
    impressions: int = 0
    ctr: float = 0.0
    position: float = 0.0


@dataclass(frozen=True)
class Snapshot:
    """Immutable capture of search metrics for one property."""

    id: str
    rows: tuple[SnapshotRow, ...] = ()
    name: str = ""
    start_date: date | None = None
    end_date: date | None = None
    totals: AggregatedStats | None = None

    def rows_for(self, dimension: str) -> list[SnapshotRow]:
        return [row for row in self.rows if row.dimension == dimension]


@dataclass(slots=True)
class KeywordStat:
    """Click/impression tally of one query inside a directory."""

    keyword: str
    clicks: int = 0
    impressions: int = 0


@dataclass(slots=True)
class DirectoryProfile:
    """Aggregated metrics and keyword footprint of one truncated URL path."""

    path: str
    clicks: int = 0
    impressions: int = 0
    ctr: float = 0.0
    position: float = 0.0
    page_count: int = 0
    top_keywords: list[KeywordStat] = field(default_factory=list)
    pages: set[str] = field(default_factory=set)

    def keyword_set(self) -> set[str]:
        """Return the lower-cased top keyword set used for matching."""

        return {item.keyword.lower() for item in self.top_keywords}


@dataclass(slots=True)
class KeywordComparison:
    """Alignment of one query across snapshots A and B."""

    keyword: str
    status: str
    stats_a: AggregatedStats | None
    stats_b: AggregatedStats | None
    clicks_diff: int
    impressions_diff: int
    position_diff: float

    def to_record(self) -> dict[str, Any]:
        """Flatten into a serialisable mapping."""

        return {
            "keyword": self.keyword,
            "status": self.status,
            **_stats_columns("a", self.stats_a),
            **_stats_columns("b", self.stats_b),
            "clicks_diff": self.clicks_diff,
            "impressions_diff": self.impressions_diff,
            "position_diff": self.position_diff,
        }


@dataclass(slots=True)
class DirectoryComparison:
    """A snapshot-A directory paired with its best matching snapshot-B directory."""

    path_a: str
    path_b: str
    similarity_score: float
    common_keywords: list[str]
    profile_a: DirectoryProfile
    profile_b: DirectoryProfile
    clicks_diff: int
    impressions_diff: int
    position_diff: float
    page_count_diff: int

    def to_record(self) -> dict[str, Any]:
        """Flatten into a serialisable mapping."""

        return {
            "path_a": self.path_a,
            "path_b": self.path_b,
            "similarity_score": self.similarity_score,
            "common_keywords": list(self.common_keywords),
            "common_keyword_count": len(self.common_keywords),
            "clicks_a": self.profile_a.clicks,
            "clicks_b": self.profile_b.clicks,
            "impressions_a": self.profile_a.impressions,
            "impressions_b": self.profile_b.impressions,
            "ctr_a": self.profile_a.ctr,
            "ctr_b": self.profile_b.ctr,
            "position_a": self.profile_a.position,
            "position_b": self.profile_b.position,
            "page_count_a": self.profile_a.page_count,
            "page_count_b": self.profile_b.page_count,
            "clicks_diff": self.clicks_diff,
            "impressions_diff": self.impressions_diff,
            "position_diff": self.position_diff,
            "page_count_diff": self.page_count_diff,
        }


def _stats_columns(suffix: str, stats: AggregatedStats | None) -> dict[str, Any]:
    if stats is None:
        return {
            f"clicks_{suffix}": None,
            f"impressions_{suffix}": None,
            f"ctr_{suffix}": None,
            f"position_{suffix}": None,
        }
    return {
        f"clicks_{suffix}": stats.clicks,
        f"impressions_{suffix}": stats.impressions,
        f"ctr_{suffix}": stats.ctr,
        f"position_{suffix}": stats.position,
    }


def _normalise_scalar(value: Any) -> Any:
    if value is None:
        return None
    try:
        if pd.isna(value):  # type: ignore[arg-type]
            return None
    except TypeError:
        pass
    return value


def rows_from_records(records: Iterable[Mapping[str, Any]]) -> list[SnapshotRow]:
    """Build rows from mappings using either ``pageUrl`` or ``page_url`` keys."""

    rows: list[SnapshotRow] = []
    for record in records:
        page_url = _normalise_scalar(record.get("pageUrl", record.get("page_url")))
        rows.append(
            SnapshotRow.build(
                dimension=str(record.get("dimension")),
                key=str(_normalise_scalar(record.get("key")) or ""),
                clicks=int(_normalise_scalar(record.get("clicks")) or 0),
                impressions=int(_normalise_scalar(record.get("impressions")) or 0),
                position=float(_normalise_scalar(record.get("position")) or 0.0),
                page_url=None if page_url is None else str(page_url),
            )
        )
    return rows


def rows_from_frame(frame: pd.DataFrame) -> list[SnapshotRow]:
    """Convert a snapshot data frame into :class:`SnapshotRow` objects."""

    if frame.empty:
        return []
    return rows_from_records(frame.to_dict(orient="records"))


__all__ = [
    "AggregatedStats",
    "DIMENSIONS",
    "DIMENSION_COUNTRY",
    "DIMENSION_DATE",
    "DIMENSION_DEVICE",
    "DIMENSION_PAGE",
    "DIMENSION_QUERY",
    "DIMENSION_QUERY_PAGE",
    "DirectoryComparison",
    "DirectoryProfile",
    "KEYWORD_STATUSES",
    "KeywordComparison",
    "KeywordStat",
    "STATUS_COMMON",
    "STATUS_MISSING_IN_A",
    "STATUS_MISSING_IN_B",
    "Snapshot",
    "SnapshotRow",
    "rows_from_frame",
    "rows_from_records",
    "safe_ratio",
]

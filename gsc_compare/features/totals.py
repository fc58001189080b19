"""Snapshot-wide totals comparison."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from gsc_compare.etl.keyword_diff import classify_trend
from gsc_compare.features.aggregate import snapshot_totals
from gsc_compare.models import AggregatedStats, Snapshot

TOTAL_METRICS = ("clicks", "impressions", "ctr", "position")


@dataclass(slots=True)
class MetricDelta:
    """Value of one metric in both snapshots and its change."""

    metric: str
    value_a: float
    value_b: float
    diff: float
    pct_change: float
    trend: str


@dataclass(slots=True)
class TotalsComparison:
    """Per-metric deltas between the totals of two snapshots."""

    snapshot_a: str
    snapshot_b: str
    metrics: dict[str, MetricDelta]

    def to_records(self) -> list[dict[str, Any]]:
        return [
            {
                "snapshot_a": self.snapshot_a,
                "snapshot_b": self.snapshot_b,
                "metric": delta.metric,
                "value_a": delta.value_a,
                "value_b": delta.value_b,
                "diff": delta.diff,
                "pct_change": delta.pct_change,
                "trend": delta.trend,
            }
            for delta in self.metrics.values()
        ]


def _pct_change(diff: float, base: float) -> float:
    """Percent change relative to snapshot B, 0 when B is 0."""

    if base <= 0:
        return 0.0
    return diff / base * 100


def compare_stats(
    stats_a: AggregatedStats,
    stats_b: AggregatedStats,
    labels: Mapping[str, str] | None = None,
) -> dict[str, MetricDelta]:
    metrics: dict[str, MetricDelta] = {}
    for metric in TOTAL_METRICS:
        value_a = getattr(stats_a, metric)
        value_b = getattr(stats_b, metric)
        diff = value_a - value_b
        metrics[metric] = MetricDelta(
            metric=metric,
            value_a=value_a,
            value_b=value_b,
            diff=diff,
            pct_change=_pct_change(diff, value_b),
            trend=classify_trend(metric, diff, labels),
        )
    return metrics


def compare_totals(
    snapshot_a: Snapshot,
    snapshot_b: Snapshot,
    labels: Mapping[str, str] | None = None,
) -> TotalsComparison:
    """Compare the totals of ``snapshot_a`` against ``snapshot_b``."""

    return TotalsComparison(
        snapshot_a=snapshot_a.id,
        snapshot_b=snapshot_b.id,
        metrics=compare_stats(snapshot_totals(snapshot_a), snapshot_totals(snapshot_b), labels),
    )


__all__ = ["MetricDelta", "TOTAL_METRICS", "TotalsComparison", "compare_stats", "compare_totals"]

"""Row level aggregation of clicks, impressions, CTR and position."""
from __future__ import annotations

from typing import Callable, Iterable

from gsc_compare.models import DIMENSION_DATE, AggregatedStats, Snapshot, SnapshotRow, safe_ratio


def aggregate_rows(rows: Iterable[SnapshotRow], dimension: str | None = None) -> AggregatedStats:
    """Reduce ``rows`` into summed clicks/impressions and averaged position.

    ``position`` is the plain arithmetic mean of the row positions; it is not
    weighted by clicks or impressions so values stay comparable across
    snapshots. An empty input yields all-zero stats.
    """

    clicks = 0
    impressions = 0
    position_sum = 0.0
    count = 0
    for row in rows:
        if dimension is not None and row.dimension != dimension:
            continue
        clicks += row.clicks
        impressions += row.impressions
        position_sum += row.position
        count += 1
    return AggregatedStats(
        clicks=clicks,
        impressions=impressions,
        ctr=safe_ratio(clicks, impressions),
        position=safe_ratio(position_sum, count),
    )


def aggregate_by_key(
    rows: Iterable[SnapshotRow],
    dimension: str,
    key_func: Callable[[SnapshotRow], str] | None = None,
) -> dict[str, AggregatedStats]:
    """Group rows of ``dimension`` by key and aggregate each group.

    Groups are returned in first-seen order.
    """

    key_func = key_func or (lambda row: row.key)
    groups: dict[str, list[SnapshotRow]] = {}
    for row in rows:
        if row.dimension != dimension:
            continue
        groups.setdefault(key_func(row), []).append(row)
    return {key: aggregate_rows(members) for key, members in groups.items()}


def compute_totals(rows: Iterable[SnapshotRow]) -> AggregatedStats:
    """Return snapshot totals built from the ``date`` dimension."""

    return aggregate_rows(rows, dimension=DIMENSION_DATE)


def snapshot_totals(snapshot: Snapshot) -> AggregatedStats:
    """Return the stored totals of ``snapshot`` or derive them from its rows."""

    if snapshot.totals is not None:
        return snapshot.totals
    return aggregate_rows(snapshot.rows_for(DIMENSION_DATE))


__all__ = ["aggregate_by_key", "aggregate_rows", "compute_totals", "snapshot_totals"]

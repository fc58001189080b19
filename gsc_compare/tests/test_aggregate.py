"""Unit tests for row aggregation."""
from __future__ import annotations

import math

from gsc_compare.features.aggregate import aggregate_by_key, aggregate_rows, compute_totals, snapshot_totals
from gsc_compare.models import AggregatedStats, SnapshotRow
from gsc_compare.tests.data import build_snapshot_a, build_snapshot_b, query_row


def test_aggregate_rows_empty_input_yields_zero_stats() -> None:
    assert aggregate_rows([]) == AggregatedStats(clicks=0, impressions=0, ctr=0.0, position=0.0)


def test_aggregate_rows_uses_unweighted_position_mean() -> None:
    rows = [
        query_row("a", clicks=100, impressions=1000, position=2.0),
        query_row("b", clicks=1, impressions=10, position=4.0),
        query_row("c", clicks=0, impressions=0, position=9.0),
    ]
    stats = aggregate_rows(rows)
    assert stats.clicks == 101
    assert stats.impressions == 1010
    assert math.isclose(stats.ctr, 101 / 1010)
    assert math.isclose(stats.position, 5.0)


def test_aggregate_rows_filters_dimension() -> None:
    rows = [
        query_row("a", clicks=10, impressions=100, position=2.0),
        SnapshotRow.build("device", "MOBILE", 7, 70, 3.0),
    ]
    stats = aggregate_rows(rows, dimension="device")
    assert stats.clicks == 7
    assert stats.position == 3.0


def test_aggregate_by_key_merges_duplicate_keys_in_first_seen_order() -> None:
    rows = [
        query_row("zinsen", clicks=4, impressions=40, position=3.0),
        query_row("hypothek", clicks=10, impressions=100, position=2.0),
        query_row("zinsen", clicks=6, impressions=60, position=5.0),
    ]
    grouped = aggregate_by_key(rows, "query")
    assert list(grouped) == ["zinsen", "hypothek"]
    assert grouped["zinsen"].clicks == 10
    assert grouped["zinsen"].position == 4.0


def test_aggregate_by_key_supports_custom_key_function() -> None:
    rows = [
        query_row("Hypothek", clicks=4),
        query_row("hypothek", clicks=6),
    ]
    grouped = aggregate_by_key(rows, "query", key_func=lambda row: row.key.lower())
    assert grouped == {"hypothek": aggregate_rows(rows)}


def test_compute_totals_uses_date_dimension_only() -> None:
    totals = compute_totals(build_snapshot_a().rows)
    assert totals.clicks == 250
    assert totals.impressions == 4500
    assert math.isclose(totals.ctr, 250 / 4500)
    assert totals.position == 6.0


def test_snapshot_totals_prefers_stored_totals() -> None:
    snapshot = build_snapshot_b()
    assert snapshot_totals(snapshot) is snapshot.totals


def test_snapshot_totals_derived_from_date_rows() -> None:
    snapshot = build_snapshot_a()
    totals = snapshot_totals(snapshot)

    assert snapshot.totals is None
    assert totals == compute_totals(snapshot.rows)
    assert totals.clicks == 250

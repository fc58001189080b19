from __future__ import annotations

import math

from gsc_compare.features.totals import compare_totals
from gsc_compare.models import Snapshot
from gsc_compare.tests.data import build_snapshot_a, build_snapshot_b


def test_compare_totals_reports_diff_percentage_and_trend() -> None:
    result = compare_totals(build_snapshot_a(), build_snapshot_b())
    clicks = result.metrics["clicks"]
    impressions = result.metrics["impressions"]
    position = result.metrics["position"]
    ctr = result.metrics["ctr"]

    assert clicks.diff == 50
    assert math.isclose(clicks.pct_change, 25.0)
    assert clicks.trend == "Besser"
    assert math.isclose(impressions.pct_change, 12.5)
    assert position.diff == 0.0
    assert position.trend == "Gleich"
    assert ctr.trend == "Besser"


def test_compare_totals_against_empty_snapshot_has_zero_percentages() -> None:
    result = compare_totals(build_snapshot_a(), Snapshot(id="empty"))

    assert result.metrics["clicks"].value_b == 0
    assert result.metrics["clicks"].pct_change == 0.0
    # a position of 6 against 0 is numerically higher, so it reads as worse
    assert result.metrics["position"].trend == "Schlechter"
    records = result.to_records()
    assert [record["metric"] for record in records] == ["clicks", "impressions", "ctr", "position"]
    assert all(record["snapshot_b"] == "empty" for record in records)

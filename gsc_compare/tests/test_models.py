from __future__ import annotations

import math

import pytest

from gsc_compare.models import SnapshotRow, rows_from_frame, rows_from_records
from gsc_compare.tests.data import SITE, build_snapshot_frame


def test_snapshot_row_derives_ctr_from_clicks_and_impressions() -> None:
    row = SnapshotRow.build("query", "hypothek", clicks=25, impressions=500, position=3.5)
    assert math.isclose(row.ctr, 0.05)

    empty = SnapshotRow.build("query", "hypothek", clicks=0, impressions=0, position=1.0)
    assert empty.ctr == 0.0


def test_snapshot_row_rejects_unknown_dimension() -> None:
    with pytest.raises(ValueError):
        SnapshotRow.build("keyword", "hypothek")


def test_rows_from_frame_normalises_missing_values() -> None:
    rows = rows_from_frame(build_snapshot_frame())

    assert [row.dimension for row in rows] == ["query", "query_page", "page"]
    assert rows[0].page_url is None
    assert rows[1].page_url == f"{SITE}/de/mortgages/fixed"
    assert rows[2].page_url is None
    # stored ctr is ignored in favour of the derived value
    assert math.isclose(rows[1].ctr, 40 / 600)
    assert rows[2].ctr == 0.0


def test_rows_from_records_accepts_snake_case_page_url() -> None:
    rows = rows_from_records(
        [{"dimension": "query_page", "key": "zinsen", "page_url": f"{SITE}/x", "clicks": 3, "impressions": 30, "position": 2}]
    )
    assert rows[0].page_url == f"{SITE}/x"
    assert rows[0].position == 2.0

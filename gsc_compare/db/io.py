"""Read helpers that load stored snapshots using SQLAlchemy."""
from __future__ import annotations

import json
import logging
from datetime import date, datetime
from typing import Any, Mapping

import pandas as pd
from sqlalchemy import text
from sqlalchemy.engine import Engine

from gsc_compare.models import AggregatedStats, Snapshot, rows_from_frame, safe_ratio

LOGGER = logging.getLogger(__name__)

SNAPSHOT_SQL = """
SELECT id, name, startDate AS start_date, endDate AS end_date, totals
FROM Snapshot
WHERE id = :snapshot_id
"""

SNAPSHOT_DATA_SQL = """
SELECT dimension, `key`, pageUrl, clicks, impressions, ctr, position
FROM SnapshotData
WHERE snapshotId = :snapshot_id
ORDER BY clicks DESC
"""


class SnapshotFetchError(RuntimeError):
    """Raised when a snapshot cannot be loaded from the store."""


def fetch_dataframe(engine: Engine, sql: str, params: Mapping[str, object] | None = None) -> pd.DataFrame:
    """Execute ``sql`` and return the result as a DataFrame."""

    stmt = text(sql)
    with engine.connect() as conn:
        result = conn.execute(stmt, params or {})
        rows = result.fetchall()
        if not rows:
            return pd.DataFrame(columns=list(result.keys()))
        df = pd.DataFrame(rows, columns=list(result.keys()))
    return df


def _coerce_date(value: Any) -> date | None:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    parsed = pd.to_datetime(value, errors="coerce")
    if pd.isna(parsed):
        return None
    return parsed.to_pydatetime().date()


def _parse_totals(raw: Any) -> AggregatedStats | None:
    """Decode the stored JSON totals column, ``None`` when absent or invalid."""

    if raw is None:
        return None
    if isinstance(raw, (bytes, str)):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            LOGGER.warning("gsc_compare.db.invalid_totals", extra={"error": "totals column is not valid JSON"})
            return None
    if not isinstance(raw, Mapping):
        return None
    clicks = int(raw.get("clicks", 0) or 0)
    impressions = int(raw.get("impressions", 0) or 0)
    return AggregatedStats(
        clicks=clicks,
        impressions=impressions,
        ctr=safe_ratio(clicks, impressions),
        position=float(raw.get("position", 0.0) or 0.0),
    )


def load_snapshot(engine: Engine, snapshot_id: str) -> Snapshot:
    """Load one snapshot and all of its rows."""

    try:
        meta = fetch_dataframe(engine, SNAPSHOT_SQL, {"snapshot_id": snapshot_id})
        data = fetch_dataframe(engine, SNAPSHOT_DATA_SQL, {"snapshot_id": snapshot_id})
    except Exception as exc:
        raise SnapshotFetchError(f"Unable to load snapshot {snapshot_id}: {exc}") from exc
    if meta.empty:
        raise SnapshotFetchError(f"Snapshot {snapshot_id} not found")

    record = meta.iloc[0].to_dict()
    rows = tuple(rows_from_frame(data))
    LOGGER.info("gsc_compare.db.snapshot_loaded", extra={"snapshot_id": snapshot_id, "rows": len(rows)})
    return Snapshot(
        id=str(record.get("id", snapshot_id)),
        name=str(record.get("name") or ""),
        start_date=_coerce_date(record.get("start_date")),
        end_date=_coerce_date(record.get("end_date")),
        rows=rows,
        totals=_parse_totals(record.get("totals")),
    )


__all__ = ["SnapshotFetchError", "fetch_dataframe", "load_snapshot"]

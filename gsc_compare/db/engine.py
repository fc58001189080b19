"""SQLAlchemy engine factory for the snapshot store."""
from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from gsc_compare.settings import SnapshotDbSettings, get_snapshot_db_settings

LOGGER = logging.getLogger(__name__)

DEFAULT_POOL_KWARGS: dict[str, Any] = {
    "pool_pre_ping": True,
    "pool_recycle": 1800,
}


def create_snapshot_engine(settings: SnapshotDbSettings | None = None, **overrides: Any) -> Engine:
    """Create a read engine for stored snapshots.

    Connection details come from ``settings`` or, when omitted, from
    ``DB_URI`` / ``GSC_DB_*`` in the environment or a local ``.env``.
    """

    settings = settings or get_snapshot_db_settings()
    engine = create_engine(settings.sqlalchemy_url(), **{**DEFAULT_POOL_KWARGS, **overrides})
    LOGGER.info(
        "gsc_compare.db.engine_created",
        extra={"driver": engine.url.drivername, "database": engine.url.database},
    )
    return engine


__all__ = ["DEFAULT_POOL_KWARGS", "create_snapshot_engine"]

"""Synthetic fixtures for the comparison tests."""
from __future__ import annotations

__all__ = [
    "SITE",
    "build_directory_rows",
    "build_snapshot_a",
    "build_snapshot_b",
    "build_snapshot_frame",
    "page_row",
    "query_page_row",
    "query_row",
]

from .snapshot_samples import (
    SITE,
    build_directory_rows,
    build_snapshot_a,
    build_snapshot_b,
    build_snapshot_frame,
    page_row,
    query_page_row,
    query_row,
)

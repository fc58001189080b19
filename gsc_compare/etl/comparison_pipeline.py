"""Load two snapshots in parallel and run the comparison engine on them."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Mapping, TypeVar

from sqlalchemy.engine import Engine

from gsc_compare.cache import GLOBAL_CACHE, ComparisonCache, ComparisonCacheKey
from gsc_compare.db.engine import create_snapshot_engine
from gsc_compare.db.io import load_snapshot
from gsc_compare.etl.directory_diff import compare_directories
from gsc_compare.etl.keyword_diff import compare_keywords
from gsc_compare.features.totals import TotalsComparison, compare_totals
from gsc_compare.models import DirectoryComparison, KeywordComparison, Snapshot
from gsc_compare.settings import DEFAULT_RULES, ComparisonParams

LOGGER = logging.getLogger(__name__)

SnapshotLoader = Callable[[str], Snapshot]
T = TypeVar("T")


class ComparisonPipeline:
    """Fetches a snapshot pair and memoises comparison results.

    A snapshot that fails to load, or is not selected, is treated as an
    empty snapshot so the comparison still runs on whatever data exists.
    Such degraded results are never cached.
    """

    def __init__(
        self,
        loader: SnapshotLoader | None = None,
        *,
        engine: Engine | None = None,
        cache: ComparisonCache | None = None,
        rules: Mapping[str, Any] | None = None,
    ) -> None:
        self._engine = engine
        self._loader = loader or self._load_from_database
        self.cache = cache if cache is not None else GLOBAL_CACHE
        self.rules = rules or DEFAULT_RULES

    def _load_from_database(self, snapshot_id: str) -> Snapshot:
        if self._engine is None:
            self._engine = create_snapshot_engine()
        return load_snapshot(self._engine, snapshot_id)

    def _fetch(self, snapshot_id: str | None) -> tuple[Snapshot, bool]:
        """Load one snapshot; the flag is ``False`` when it had to be replaced by an empty one."""

        if not snapshot_id:
            return Snapshot(id=""), False
        try:
            snapshot = self._loader(snapshot_id)
        except Exception:
            LOGGER.warning(
                "gsc_compare.pipeline.fetch_failed",
                extra={"snapshot_id": snapshot_id},
                exc_info=True,
            )
            return Snapshot(id=snapshot_id), False
        if not snapshot.rows:
            LOGGER.warning("gsc_compare.pipeline.empty_snapshot", extra={"snapshot_id": snapshot_id})
        return snapshot, True

    def _fetch_pair(self, snapshot_a: str | None, snapshot_b: str | None) -> tuple[Snapshot, Snapshot, bool]:
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="snapshot-fetch") as pool:
            future_a = pool.submit(self._fetch, snapshot_a)
            future_b = pool.submit(self._fetch, snapshot_b)
            first, loaded_a = future_a.result()
            second, loaded_b = future_b.result()
        LOGGER.info(
            "gsc_compare.pipeline.loaded",
            extra={
                "snapshot_a": snapshot_a,
                "snapshot_b": snapshot_b,
                "rows_a": len(first.rows),
                "rows_b": len(second.rows),
            },
        )
        return first, second, loaded_a and loaded_b

    def load_pair(self, snapshot_a: str | None, snapshot_b: str | None) -> tuple[Snapshot, Snapshot]:
        """Fetch both snapshots concurrently."""

        first, second, _ = self._fetch_pair(snapshot_a, snapshot_b)
        return first, second

    def _memoised(self, key: ComparisonCacheKey, compute: Callable[[Snapshot, Snapshot], T]) -> T:
        if self.cache.has(key):
            return self.cache.get(key, lambda: compute(*self.load_pair(key.snapshot_a, key.snapshot_b)))
        first, second, complete = self._fetch_pair(key.snapshot_a, key.snapshot_b)
        result = compute(first, second)
        if not complete:
            LOGGER.info(
                "gsc_compare.pipeline.cache_skipped",
                extra={"snapshot_a": key.snapshot_a, "snapshot_b": key.snapshot_b},
            )
            return result
        return self.cache.put(key, result)

    @staticmethod
    def _selected(snapshot_a: str | None, snapshot_b: str | None) -> bool:
        if not snapshot_a or not snapshot_b:
            LOGGER.info(
                "gsc_compare.pipeline.incomplete_selection",
                extra={"snapshot_a": snapshot_a, "snapshot_b": snapshot_b},
            )
            return False
        return True

    def keywords(
        self,
        snapshot_a: str | None,
        snapshot_b: str | None,
        params: ComparisonParams | None = None,
    ) -> list[KeywordComparison]:
        """Return the sorted and filtered keyword comparison."""

        params = (params or ComparisonParams()).validate()
        if not self._selected(snapshot_a, snapshot_b):
            return []

        def run(first: Snapshot, second: Snapshot) -> list[KeywordComparison]:
            return compare_keywords(
                first.rows,
                second.rows,
                sort_by=params.keyword_sort_by,
                status_filter=params.status_filter,
            )

        key = ComparisonCacheKey.build(str(snapshot_a), str(snapshot_b), "keywords", params)
        return self._memoised(key, run)

    def directories(
        self,
        snapshot_a: str | None,
        snapshot_b: str | None,
        params: ComparisonParams | None = None,
    ) -> list[DirectoryComparison]:
        """Return matched directory pairs for the snapshot pair."""

        params = (params or ComparisonParams()).validate()
        if not self._selected(snapshot_a, snapshot_b):
            return []

        def run(first: Snapshot, second: Snapshot) -> list[DirectoryComparison]:
            return compare_directories(
                first.rows,
                second.rows,
                depth=params.directory_depth,
                min_similarity=params.min_similarity,
                top_keywords_count=params.top_keywords_count,
                sort_by=params.directory_sort_by,
            )

        key = ComparisonCacheKey.build(str(snapshot_a), str(snapshot_b), "directories", params)
        return self._memoised(key, run)

    def totals(self, snapshot_a: str | None, snapshot_b: str | None) -> TotalsComparison | None:
        """Compare snapshot totals; ``None`` when fewer than two snapshots are selected."""

        if not self._selected(snapshot_a, snapshot_b):
            return None
        first, second = self.load_pair(snapshot_a, snapshot_b)
        return compare_totals(first, second, self.rules.get("trend_labels"))


__all__ = ["ComparisonPipeline", "SnapshotLoader"]

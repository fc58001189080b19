"""In-memory memoisation of comparison results."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, TypeVar, cast

from gsc_compare.settings import ComparisonParams

T = TypeVar("T")


@dataclass(frozen=True)
class ComparisonCacheKey:
    """Uniquely identifies one comparison run."""

    snapshot_a: str
    snapshot_b: str
    mode: str
    directory_depth: int
    min_similarity: float
    top_keywords_count: int
    sort_by: str
    status_filter: str

    @classmethod
    def build(cls, snapshot_a: str, snapshot_b: str, mode: str, params: ComparisonParams) -> "ComparisonCacheKey":
        sort_by = params.directory_sort_by if mode == "directories" else params.keyword_sort_by
        return cls(
            snapshot_a=snapshot_a,
            snapshot_b=snapshot_b,
            mode=mode,
            directory_depth=params.directory_depth,
            min_similarity=params.min_similarity,
            top_keywords_count=params.top_keywords_count,
            sort_by=sort_by,
            status_filter=params.status_filter,
        )


@dataclass(slots=True)
class ComparisonCache:
    """Process-local cache so re-invoking with identical parameters is free.

    Correctness never depends on the cache; it only avoids recomputation
    when interactive parameters are toggled back and forth.
    """

    _entries: Dict[ComparisonCacheKey, object] = field(default_factory=dict)

    def get(self, key: ComparisonCacheKey, loader: Callable[[], T]) -> T:
        """Return the cached value for ``key`` computing it if absent."""

        if key not in self._entries:
            self._entries[key] = loader()
        return cast(T, self._entries[key])

    def has(self, key: ComparisonCacheKey) -> bool:
        return key in self._entries

    def put(self, key: ComparisonCacheKey, value: T) -> T:
        """Store ``value`` under ``key`` replacing any previous entry."""

        self._entries[key] = value
        return value

    def invalidate_snapshot(self, snapshot_id: str) -> None:
        """Drop every entry involving ``snapshot_id``."""

        stale = [key for key in self._entries if snapshot_id in (key.snapshot_a, key.snapshot_b)]
        for key in stale:
            del self._entries[key]

    def clear(self) -> None:
        self._entries.clear()


GLOBAL_CACHE = ComparisonCache()


__all__ = ["ComparisonCache", "ComparisonCacheKey", "GLOBAL_CACHE"]

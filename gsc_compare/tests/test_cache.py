"""Tests for the in-process comparison cache."""
from __future__ import annotations

from gsc_compare.cache import ComparisonCache, ComparisonCacheKey
from gsc_compare.settings import ComparisonParams


def test_cache_loader_invoked_once() -> None:
    cache = ComparisonCache()
    key = ComparisonCacheKey.build("a", "b", "keywords", ComparisonParams())
    calls: list[int] = []

    def loader() -> list[str]:
        calls.append(1)
        return ["result"]

    first = cache.get(key, loader)
    second = cache.get(key, loader)
    assert first is second
    assert len(calls) == 1
    assert cache.has(key)


def test_cache_key_includes_interactive_parameters() -> None:
    base = ComparisonParams()
    key_a = ComparisonCacheKey.build("a", "b", "directories", base)
    key_b = ComparisonCacheKey.build("a", "b", "directories", base.with_overrides(directory_depth=2))
    key_c = ComparisonCacheKey.build("a", "b", "directories", base.with_overrides(directory_sort_by="clicks"))

    assert len({key_a, key_b, key_c}) == 3
    assert key_a.sort_by == "similarity"
    assert ComparisonCacheKey.build("a", "b", "keywords", base).sort_by == "clicks"


def test_invalidate_snapshot_drops_related_entries() -> None:
    cache = ComparisonCache()
    params = ComparisonParams()
    kept = ComparisonCacheKey.build("x", "y", "keywords", params)
    dropped = ComparisonCacheKey.build("a", "y", "keywords", params)
    cache.get(kept, lambda: 1)
    cache.get(dropped, lambda: 2)

    cache.invalidate_snapshot("a")

    assert cache.has(kept)
    assert not cache.has(dropped)
    cache.clear()
    assert not cache.has(kept)


def test_put_replaces_entry() -> None:
    cache = ComparisonCache()
    key = ComparisonCacheKey.build("a", "b", "keywords", ComparisonParams())
    cache.get(key, lambda: "stale")

    assert cache.put(key, "fresh") == "fresh"
    assert cache.get(key, lambda: "unused") == "fresh"

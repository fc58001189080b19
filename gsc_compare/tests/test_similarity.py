"""Tests for Jaccard similarity and greedy directory matching."""
from __future__ import annotations

import itertools
import math

from gsc_compare.etl.directory_diff import compare_directories
from gsc_compare.features.similarity import common_keywords, jaccard_similarity, match_directories
from gsc_compare.models import DirectoryProfile, KeywordStat
from gsc_compare.tests.data import build_snapshot_a, build_snapshot_b


def _profile(path: str, keywords: dict[str, int], **stats: float) -> DirectoryProfile:
    return DirectoryProfile(
        path=path,
        top_keywords=[KeywordStat(keyword=keyword, clicks=clicks) for keyword, clicks in keywords.items()],
        **stats,
    )


def test_jaccard_similarity_matches_worked_example() -> None:
    mortgages = _profile("/mortgages", {"a": 10, "b": 5, "c": 5})
    hypotheken = _profile("/hypotheken", {"b": 8, "c": 4, "d": 4})

    assert jaccard_similarity(mortgages, hypotheken) == 0.5
    assert len(match_directories([mortgages], [hypotheken], min_similarity=0.3)) == 1
    assert match_directories([mortgages], [hypotheken], min_similarity=0.6) == []


def test_jaccard_similarity_bounds_and_symmetry() -> None:
    profiles = [
        _profile("/a", {"x": 1, "y": 1}),
        _profile("/b", {"X": 1, "Y": 1}),
        _profile("/c", {"y": 1, "z": 1, "w": 1}),
        _profile("/d", {"q": 1}),
        _profile("/e", {}),
    ]
    for left, right in itertools.product(profiles, repeat=2):
        score = jaccard_similarity(left, right)
        assert 0.0 <= score <= 1.0
        assert score == jaccard_similarity(right, left)

    assert jaccard_similarity(profiles[0], profiles[1]) == 1.0
    assert jaccard_similarity(profiles[0], profiles[3]) == 0.0
    assert jaccard_similarity(profiles[4], profiles[4]) == 0.0
    assert jaccard_similarity(profiles[0], profiles[4]) == 0.0


def test_match_directories_ties_keep_first_candidate() -> None:
    source = _profile("/a", {"x": 2, "y": 1})
    first = _profile("/first", {"x": 1})
    second = _profile("/second", {"y": 1})

    result = match_directories([source], [first, second], min_similarity=0.3)
    assert [item.path_b for item in result] == ["/first"]


def test_match_directories_allows_many_to_one() -> None:
    a1 = _profile("/a1", {"x": 1, "y": 1})
    a2 = _profile("/a2", {"x": 1, "y": 1, "z": 1})
    target = _profile("/target", {"x": 1, "y": 1})
    other = _profile("/other", {"q": 1})

    result = match_directories([a1, a2], [other, target], min_similarity=0.3)
    assert [(item.path_a, item.path_b) for item in result] == [("/a1", "/target"), ("/a2", "/target")]
    assert math.isclose(result[1].similarity_score, 2 / 3)


def test_match_directories_never_matches_without_overlap() -> None:
    empty = _profile("/empty", {})
    disjoint = _profile("/disjoint", {"q": 1})
    candidate = _profile("/b", {"x": 1})

    assert match_directories([empty, disjoint], [candidate], min_similarity=0.0) == []


def test_match_directories_computes_signed_deltas() -> None:
    a = _profile("/a", {"x": 1}, clicks=30, impressions=300, position=4.0, page_count=3)
    b = _profile("/b", {"x": 1}, clicks=50, impressions=200, position=6.5, page_count=1)

    comparison = match_directories([a], [b])[0]
    assert comparison.clicks_diff == -20
    assert comparison.impressions_diff == 100
    assert comparison.position_diff == -2.5
    assert comparison.page_count_diff == 2


def test_common_keywords_preserve_source_casing_and_order() -> None:
    a = _profile("/a", {"Hypothek": 60, "Zinsen": 20, "festgeld": 10})
    b = _profile("/b", {"zinsen": 5, "HYPOTHEK": 3})

    assert common_keywords(a, b) == ["Hypothek", "Zinsen"]
    common = {keyword.lower() for keyword in common_keywords(a, b)}
    assert common <= a.keyword_set()
    assert common <= b.keyword_set()


def test_compare_directories_matches_restructured_paths() -> None:
    result = compare_directories(
        build_snapshot_a().rows,
        build_snapshot_b().rows,
        depth=2,
        min_similarity=0.3,
        top_keywords_count=20,
    )

    assert [(item.path_a, item.path_b) for item in result] == [
        ("/de/savings", "/de/savings"),
        ("/de/mortgages", "/de/hypotheken"),
    ]
    savings, mortgages = result
    assert savings.similarity_score == 1.0
    assert mortgages.similarity_score == 0.75
    assert mortgages.common_keywords == ["Hypothek", "festhypothek", "saron hypothek"]
    assert mortgages.clicks_diff == 100
    assert mortgages.impressions_diff == 2000
    assert mortgages.position_diff == 0.0
    assert mortgages.page_count_diff == 1


def test_compare_directories_with_empty_snapshot_returns_nothing() -> None:
    assert compare_directories(build_snapshot_a().rows, [], depth=2) == []
    assert compare_directories([], [], depth=4) == []

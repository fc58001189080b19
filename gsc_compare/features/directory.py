"""Directory path extraction and per-directory keyword profiles."""
from __future__ import annotations

import logging
from typing import Iterable
from urllib.parse import urlsplit

from gsc_compare.models import (
    DIMENSION_PAGE,
    DIMENSION_QUERY_PAGE,
    DirectoryProfile,
    KeywordStat,
    SnapshotRow,
    safe_ratio,
)

LOGGER = logging.getLogger(__name__)

DEFAULT_DIRECTORY_DEPTH = 4
DEFAULT_TOP_KEYWORDS = 20


def try_extract_directory_path(url: str, depth: int) -> str | None:
    """Return the truncated directory path of ``url`` or ``None`` if it cannot be parsed.

    Only absolute URLs (scheme and host) are considered parseable.
    """

    try:
        parts = urlsplit(url)
    except (TypeError, ValueError):
        return None
    if not parts.scheme or not parts.netloc:
        return None
    segments = [segment for segment in parts.path.split("/") if segment]
    return "/" + "/".join(segments[: max(depth, 0)])


def extract_directory_path(url: str, depth: int) -> str:
    """Map a page URL onto its first ``depth`` path segments.

    ``https://x.ch/a/b/c?x=1`` with ``depth=2`` becomes ``/a/b``. URLs that
    fail to parse map to ``/``.
    """

    path = try_extract_directory_path(url, depth)
    return "/" if path is None else path


def _top_keywords(tally: dict[str, KeywordStat], limit: int) -> list[KeywordStat]:
    # sorted() is stable: equal click counts keep first-seen order
    ranked = sorted(tally.values(), key=lambda item: item.clicks, reverse=True)
    return ranked[:limit]


def build_directory_profiles(
    rows: Iterable[SnapshotRow],
    depth: int = DEFAULT_DIRECTORY_DEPTH,
    top_keywords_count: int = DEFAULT_TOP_KEYWORDS,
) -> dict[str, DirectoryProfile]:
    """Build one :class:`DirectoryProfile` per truncated path.

    Parameters
    ----------
    rows:
        All rows of a snapshot. ``page`` rows define directories and their
        metrics; ``query_page`` rows supply the keyword footprint.
    depth:
        Number of path segments kept per directory.
    top_keywords_count:
        Maximum number of keywords retained per directory, ordered by clicks.

    Returns
    -------
    dict
        Profiles keyed by path, in the order their first page was seen.
    """

    materialised = list(rows)
    profiles: dict[str, DirectoryProfile] = {}
    position_sums: dict[str, float] = {}
    page_to_path: dict[str, str] = {}

    for row in materialised:
        if row.dimension != DIMENSION_PAGE:
            continue
        path = try_extract_directory_path(row.key, depth)
        if path is None:
            LOGGER.debug("gsc_compare.directory.unparseable_url", extra={"url": row.key})
            continue
        profile = profiles.get(path)
        if profile is None:
            profile = DirectoryProfile(path=path)
            profiles[path] = profile
            position_sums[path] = 0.0
        profile.clicks += row.clicks
        profile.impressions += row.impressions
        profile.page_count += 1
        profile.pages.add(row.key)
        position_sums[path] += row.position
        page_to_path[row.key] = path

    for path, profile in profiles.items():
        profile.ctr = safe_ratio(profile.clicks, profile.impressions)
        profile.position = safe_ratio(position_sums[path], profile.page_count)

    tallies: dict[str, dict[str, KeywordStat]] = {path: {} for path in profiles}
    for row in materialised:
        if row.dimension != DIMENSION_QUERY_PAGE or row.page_url is None:
            continue
        path = page_to_path.get(row.page_url)
        if path is None:
            continue
        tally = tallies[path]
        stat = tally.get(row.key)
        if stat is None:
            stat = KeywordStat(keyword=row.key)
            tally[row.key] = stat
        stat.clicks += row.clicks
        stat.impressions += row.impressions

    for path, profile in profiles.items():
        profile.top_keywords = _top_keywords(tallies[path], top_keywords_count)

    LOGGER.debug(
        "gsc_compare.directory.profiles_built",
        extra={"directories": len(profiles), "depth": depth, "top_keywords": top_keywords_count},
    )
    return profiles


__all__ = [
    "DEFAULT_DIRECTORY_DEPTH",
    "DEFAULT_TOP_KEYWORDS",
    "build_directory_profiles",
    "extract_directory_path",
    "try_extract_directory_path",
]

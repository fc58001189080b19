"""CLI entry point for comparing two stored snapshots."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Sequence

from gsc_compare.etl.assembler import summarise_directories, summarise_keywords
from gsc_compare.etl.comparison_pipeline import ComparisonPipeline
from gsc_compare.etl.keyword_diff import label_keyword_comparison
from gsc_compare.settings import (
    CONFIG_PATH,
    DIRECTORY_SORT_OPTIONS,
    KEYWORD_SORT_OPTIONS,
    STATUS_FILTERS,
    ComparisonConfigError,
    get_comparison_params,
    load_comparison_rules,
)

LOGGER = logging.getLogger(__name__)
MODES = ("keywords", "directories", "totals")


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Compare two GSC snapshots")
    parser.add_argument("--snapshot-a", required=True, help="Base snapshot id")
    parser.add_argument("--snapshot-b", required=True, help="Snapshot id to compare against")
    parser.add_argument("--mode", choices=MODES, default="keywords")
    parser.add_argument("--depth", type=int, help="Directory depth (1-5)")
    parser.add_argument("--min-similarity", type=float, help="Minimum Jaccard score, step 0.05")
    parser.add_argument("--top-keywords", type=int, help="Top keywords per directory (10/20/30/50)")
    parser.add_argument(
        "--sort-by",
        choices=sorted(set(KEYWORD_SORT_OPTIONS) | set(DIRECTORY_SORT_OPTIONS)),
        help="Sort order of the result rows",
    )
    parser.add_argument("--status", choices=STATUS_FILTERS, help="Keyword status filter")
    parser.add_argument(
        "--config",
        default=str(CONFIG_PATH),
        help="Path to the YAML file with default parameters and labels",
    )
    parser.add_argument("--output", help="Write JSON here instead of stdout")
    return parser.parse_args(argv)


def build_payload(pipeline: ComparisonPipeline, args: argparse.Namespace) -> dict[str, Any]:
    """Run the requested comparison and return a JSON-ready payload."""

    params = get_comparison_params(rules=pipeline.rules)
    overrides: dict[str, Any] = {
        "directory_depth": args.depth,
        "min_similarity": args.min_similarity,
        "top_keywords_count": args.top_keywords,
        "status_filter": args.status,
    }
    if args.sort_by:
        key = "directory_sort_by" if args.mode == "directories" else "keyword_sort_by"
        overrides[key] = args.sort_by
    params = params.with_overrides(**overrides)

    payload: dict[str, Any] = {
        "snapshot_a": args.snapshot_a,
        "snapshot_b": args.snapshot_b,
        "mode": args.mode,
    }
    if args.mode == "keywords":
        comparisons = pipeline.keywords(args.snapshot_a, args.snapshot_b, params)
        labels = pipeline.rules.get("trend_labels")
        status_labels = pipeline.rules.get("status_labels")
        payload["summary"] = summarise_keywords(comparisons)
        payload["rows"] = [label_keyword_comparison(item, labels, status_labels) for item in comparisons]
    elif args.mode == "directories":
        comparisons = pipeline.directories(args.snapshot_a, args.snapshot_b, params)
        payload["summary"] = summarise_directories(comparisons)
        payload["rows"] = [item.to_record() for item in comparisons]
    else:
        totals = pipeline.totals(args.snapshot_a, args.snapshot_b)
        payload["rows"] = totals.to_records() if totals is not None else []
    return payload


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    rules = load_comparison_rules(Path(args.config))
    pipeline = ComparisonPipeline(rules=rules)
    try:
        payload = build_payload(pipeline, args)
    except ComparisonConfigError as exc:
        LOGGER.error("Invalid comparison parameters", extra={"error": str(exc)})
        return 1
    except Exception:  # pragma: no cover - unexpected failure
        LOGGER.exception(
            "Unexpected failure during snapshot comparison",
            extra={"snapshot_a": args.snapshot_a, "snapshot_b": args.snapshot_b},
        )
        return 1

    text = json.dumps(payload, ensure_ascii=False, indent=2)
    if args.output:
        Path(args.output).write_text(text, encoding="utf-8")
        LOGGER.info("Comparison written", extra={"path": args.output, "rows": len(payload["rows"])})
    else:
        sys.stdout.write(text + "\n")
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI guard
    logging.basicConfig(level=logging.INFO)
    raise SystemExit(main())

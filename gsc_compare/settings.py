"""Runtime configuration helpers for comparison parameters and labels."""
from __future__ import annotations

import logging
import math
import os
from copy import deepcopy
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Iterable, Mapping

import yaml

from gsc_compare.models import KEYWORD_STATUSES

LOGGER = logging.getLogger(__name__)

CONFIG_PATH = Path(__file__).resolve().parents[1] / "configs" / "comparison_rules.yml"

DIRECTORY_DEPTHS = (1, 2, 3, 4, 5)
TOP_KEYWORD_COUNTS = (10, 20, 30, 50)
SIMILARITY_STEP = 0.05
KEYWORD_SORT_OPTIONS = ("clicks", "impressions", "position", "keyword")
DIRECTORY_SORT_OPTIONS = ("similarity", "clicks", "impressions", "position", "keyword", "path")
STATUS_FILTERS = ("all",) + KEYWORD_STATUSES

DEFAULT_RULES: dict[str, Any] = {
    "parameters": {
        "directory_depth": 4,
        "min_similarity": 0.3,
        "top_keywords_count": 20,
        "keyword_sort_by": "clicks",
        "directory_sort_by": "similarity",
        "status_filter": "all",
    },
    "trend_labels": {
        "better": "Besser",
        "worse": "Schlechter",
        "equal": "Gleich",
    },
    "status_labels": {
        "common": "Gemeinsam",
        "missing_in_A": "Nur Snapshot B",
        "missing_in_B": "Nur Snapshot A",
    },
}


class ComparisonConfigError(RuntimeError):
    """Raised when comparison parameters fall outside their legal ranges."""


def load_dotenv(path: str | os.PathLike[str] = ".env", *, override: bool = False) -> None:
    """Load key-value pairs from a ``.env`` file into ``os.environ``.

    Parameters
    ----------
    path:
        Location of the ``.env`` file.
    override:
        When ``True`` existing environment variables are overwritten;
        otherwise only missing keys are populated.
    """

    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        if override or key not in os.environ:
            os.environ[key] = value.strip()


@dataclass(frozen=True)
class ComparisonParams:
    """Interactive parameters of a snapshot comparison."""

    directory_depth: int = 4
    min_similarity: float = 0.3
    top_keywords_count: int = 20
    keyword_sort_by: str = "clicks"
    directory_sort_by: str = "similarity"
    status_filter: str = "all"

    def validate(self) -> "ComparisonParams":
        """Return ``self`` or raise :class:`ComparisonConfigError`."""

        if self.directory_depth not in DIRECTORY_DEPTHS:
            raise ComparisonConfigError(
                f"directory_depth must be one of {DIRECTORY_DEPTHS}, got {self.directory_depth!r}"
            )
        if not 0.0 <= self.min_similarity <= 1.0:
            raise ComparisonConfigError(f"min_similarity must lie in [0, 1], got {self.min_similarity!r}")
        steps = self.min_similarity / SIMILARITY_STEP
        if not math.isclose(steps, round(steps), abs_tol=1e-6):
            raise ComparisonConfigError(
                f"min_similarity must be a multiple of {SIMILARITY_STEP}, got {self.min_similarity!r}"
            )
        if self.top_keywords_count not in TOP_KEYWORD_COUNTS:
            raise ComparisonConfigError(
                f"top_keywords_count must be one of {TOP_KEYWORD_COUNTS}, got {self.top_keywords_count!r}"
            )
        if self.keyword_sort_by not in KEYWORD_SORT_OPTIONS:
            raise ComparisonConfigError(f"Unsupported keyword sort: {self.keyword_sort_by!r}")
        if self.directory_sort_by not in DIRECTORY_SORT_OPTIONS:
            raise ComparisonConfigError(f"Unsupported directory sort: {self.directory_sort_by!r}")
        if self.status_filter not in STATUS_FILTERS:
            raise ComparisonConfigError(f"Unsupported status filter: {self.status_filter!r}")
        return self

    def with_overrides(self, **overrides: Any) -> "ComparisonParams":
        """Return a validated copy with non-``None`` overrides applied."""

        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes).validate()


def _deep_update(target: dict[str, Any], source: Mapping[str, Any]) -> dict[str, Any]:
    for key, value in source.items():
        if isinstance(value, Mapping) and isinstance(target.get(key), dict):
            _deep_update(target[key], value)
        else:
            target[key] = value
    return target


def _detect_missing_fields(source: Mapping[str, Any], template: Mapping[str, Any], prefix: str = "") -> list[str]:
    missing: list[str] = []
    for key, expected in template.items():
        dotted = f"{prefix}{key}"
        if key not in source:
            missing.append(dotted)
            continue
        candidate = source[key]
        if isinstance(expected, Mapping):
            if not isinstance(candidate, Mapping):
                missing.append(dotted)
            else:
                missing.extend(_detect_missing_fields(candidate, expected, prefix=f"{dotted}."))
    return missing


def load_comparison_rules(config_path: str | Path = CONFIG_PATH) -> dict[str, Any]:
    """Return default parameters and labels merged with the YAML overrides."""

    path = Path(config_path)
    merged = deepcopy(DEFAULT_RULES)
    if not path.exists():
        LOGGER.warning("Comparison rule file missing, using defaults", extra={"path": str(path)})
        return merged

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError:
        LOGGER.error("Failed to parse comparison rules", extra={"path": str(path)}, exc_info=True)
        return merged
    except OSError:  # pragma: no cover - IO error
        LOGGER.error("Unable to read comparison rules", extra={"path": str(path)}, exc_info=True)
        return merged

    if not isinstance(data, Mapping):
        LOGGER.error("Comparison rules must be a mapping", extra={"path": str(path)})
        return merged

    _deep_update(merged, data)
    missing_fields = _detect_missing_fields(data, DEFAULT_RULES)
    if missing_fields:
        LOGGER.warning(
            "Comparison rules missing fields",
            extra={"path": str(path), "missing": ", ".join(missing_fields)},
        )
    return merged


def _env_number(name: str, caster: type, default: Any) -> Any:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return caster(raw)
    except ValueError as exc:
        raise ComparisonConfigError(f"{name} must be numeric, got {raw!r}") from exc


def get_comparison_params(
    *,
    rules: Mapping[str, Any] | None = None,
    env_paths: Iterable[str | os.PathLike[str]] = (".env",),
) -> ComparisonParams:
    """Resolve comparison parameters from rules defaults and environment overrides.

    ``GSC_COMPARE_DIRECTORY_DEPTH``, ``GSC_COMPARE_MIN_SIMILARITY`` and
    ``GSC_COMPARE_TOP_KEYWORDS`` take precedence over the rule file.
    """

    for candidate in env_paths:
        load_dotenv(candidate)
    defaults = (rules or DEFAULT_RULES).get("parameters", {})
    params = ComparisonParams(
        directory_depth=_env_number(
            "GSC_COMPARE_DIRECTORY_DEPTH", int, int(defaults.get("directory_depth", 4))
        ),
        min_similarity=_env_number(
            "GSC_COMPARE_MIN_SIMILARITY", float, float(defaults.get("min_similarity", 0.3))
        ),
        top_keywords_count=_env_number(
            "GSC_COMPARE_TOP_KEYWORDS", int, int(defaults.get("top_keywords_count", 20))
        ),
        keyword_sort_by=str(defaults.get("keyword_sort_by", "clicks")),
        directory_sort_by=str(defaults.get("directory_sort_by", "similarity")),
        status_filter=str(defaults.get("status_filter", "all")),
    )
    return params.validate()


@dataclass(frozen=True)
class SnapshotDbSettings:
    """Connection details of the snapshot store.

    An explicit ``uri`` wins over the individual host and credential fields.
    """

    host: str = ""
    port: int = 3306
    database: str = ""
    user: str = ""
    password: str = ""
    driver: str = "mysql+pymysql"
    uri: str | None = None

    def sqlalchemy_url(self) -> str:
        """Render a SQLAlchemy connection URL."""

        if self.uri:
            return self.uri
        credentials = self.user if not self.password else f"{self.user}:{self.password}"
        return f"{self.driver}://{credentials}:{self.port}/{self.database}"


def get_snapshot_db_settings(
    *, env_paths: Iterable[str | os.PathLike[str]] = (".env",)
) -> SnapshotDbSettings:
    """Return snapshot store settings from ``DB_URI`` or the ``GSC_DB_*`` variables."""

    for candidate in env_paths:
        load_dotenv(candidate)
    uri = os.getenv("DB_URI", "").strip()
    if uri:
        return SnapshotDbSettings(uri=uri)

    host = os.getenv("GSC_DB_HOST", "").strip()
    database = os.getenv("GSC_DB_DATABASE", "").strip()
    user = os.getenv("GSC_DB_USER", "").strip()
    missing = [
        name
        for name, value in (
            ("GSC_DB_HOST", host),
            ("GSC_DB_USER", user),
            ("GSC_DB_DATABASE", database),
        )
        if not value
    ]
    if missing:
        raise ComparisonConfigError(
            "Configure DB_URI or GSC_DB_HOST/GSC_DB_USER/GSC_DB_DATABASE (missing: " + ", ".join(missing) + ")"
        )
    port = _env_number("GSC_DB_PORT", int, 3306)
    return SnapshotDbSettings(
        host=host,
        port=port,
        database=database,
        user=user,
        password=os.getenv("GSC_DB_PASSWORD", "").strip(),
        driver=os.getenv("GSC_DB_DRIVER", "").strip() or "mysql+pymysql",
    )


__all__ = [
    "CONFIG_PATH",
    "ComparisonConfigError",
    "ComparisonParams",
    "DEFAULT_RULES",
    "DIRECTORY_DEPTHS",
    "DIRECTORY_SORT_OPTIONS",
    "KEYWORD_SORT_OPTIONS",
    "STATUS_FILTERS",
    "SnapshotDbSettings",
    "TOP_KEYWORD_COUNTS",
    "get_comparison_params",
    "get_snapshot_db_settings",
    "load_comparison_rules",
    "load_dotenv",
]

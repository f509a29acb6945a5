from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "SCORE_ANALYTICS_CONFIG"

# Identifier, rank, class-name and person-name markers (Chinese and English exports).
DEFAULT_EXCLUDED_MARKERS = ["号", "id", "次", "rank", "班级", "姓名", "name"]

# Substring markers and exact (case-insensitive) names for the class column.
DEFAULT_CLASS_MARKERS = ["班"]
DEFAULT_CLASS_NAMES = ["class"]

# Ordered (regex, full mark) rules; first match wins. Total columns never reach
# these rules: they always get a full mark of 0.
DEFAULT_FULL_MARK_RULES = [
    (r"语数英", 450.0),
    (r"语文|数学|英语|English|Chinese|Math", 150.0),
]

# (cutoff, label, colour token), high to low.
DEFAULT_GRADE_CUTOFFS = [
    (0.95, "A+", "emerald"),
    (0.85, "A", "green"),
    (0.70, "A-", "lime"),
    (0.50, "B+", "blue"),
    (0.30, "B", "sky"),
    (0.15, "B-", "cyan"),
    (0.05, "C", "yellow"),
]
DEFAULT_LOWEST_GRADE = ("D", "red")

# (label, lower ratio); the last band catches everything below.
DEFAULT_SCORE_BANDS = [
    ("90%~", 0.90),
    ("85%~90%", 0.85),
    ("80%~85%", 0.80),
    ("70%~80%", 0.70),
    ("60%~70%", 0.60),
    ("<60%", None),
]

# First-cell values that open a new table in a stacked history export.
DEFAULT_HEADER_MARKERS = ["班级", "Class"]

# (sheet name suffix, header fragments); first table whose headers contain a fragment wins.
DEFAULT_TABLE_NAME_RULES = [
    ("总分概览", ["12月总分", "期中总分"]),
    ("语数英", ["12月语数英", "语文"]),
    ("理化生", ["12月物理", "物理"]),
    ("政史地", ["12月政治", "政治"]),
]

# Headers of the sheet's main rank column and suffixes marking secondary ones.
DEFAULT_MAIN_RANK_COLUMNS = ["校次", "Rank", "总分校次"]
DEFAULT_RANK_SUFFIXES = ["校次", "Rank"]


@dataclass
class AnalyticsConfig:
    """Heuristics and constants used across the analytics engine."""

    excluded_markers: List[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDED_MARKERS))
    class_markers: List[str] = field(default_factory=lambda: list(DEFAULT_CLASS_MARKERS))
    class_names: List[str] = field(default_factory=lambda: list(DEFAULT_CLASS_NAMES))
    full_mark_rules: List[Tuple[str, float]] = field(default_factory=lambda: list(DEFAULT_FULL_MARK_RULES))
    full_mark_overrides: Dict[str, float] = field(default_factory=dict)
    default_full_mark: float = 100.0
    grade_cutoffs: List[Tuple[float, str, str]] = field(default_factory=lambda: list(DEFAULT_GRADE_CUTOFFS))
    lowest_grade: Tuple[str, str] = DEFAULT_LOWEST_GRADE
    score_bands: List[Tuple[str, Optional[float]]] = field(default_factory=lambda: list(DEFAULT_SCORE_BANDS))
    excellent_ratio: float = 0.85
    pass_ratio: float = 0.60
    iqr_multiplier: float = 1.5
    histogram_bins: int = 10
    downsample_limit: int = 500
    numeric_row_ratio: float = 0.5
    total_column_pattern: str = r"总分|Total"
    rank_column_pattern: str = r"校次|Rank"
    name_column_pattern: str = r"姓名|Name"
    composite_markers: List[str] = field(default_factory=lambda: ["总分", "Total", "Sum", "+"])
    grade_sheet_markers: List[str] = field(default_factory=lambda: ["成绩"])
    summary_row_threshold: int = 15
    unclassified_label: str = "Unclassified"
    header_markers: List[str] = field(default_factory=lambda: list(DEFAULT_HEADER_MARKERS))
    table_name_rules: List[Tuple[str, List[str]]] = field(
        default_factory=lambda: [(suffix, list(fragments)) for suffix, fragments in DEFAULT_TABLE_NAME_RULES]
    )
    history_prefix: str = "历次"
    main_rank_columns: List[str] = field(default_factory=lambda: list(DEFAULT_MAIN_RANK_COLUMNS))
    rank_suffixes: List[str] = field(default_factory=lambda: list(DEFAULT_RANK_SUFFIXES))

    @classmethod
    def from_dict(cls, mapping: Dict[str, Any]) -> "AnalyticsConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(mapping) - known)
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(unknown)}")

        values: Dict[str, Any] = {}
        for key in (
            "excluded_markers",
            "class_markers",
            "class_names",
            "composite_markers",
            "grade_sheet_markers",
            "header_markers",
            "main_rank_columns",
            "rank_suffixes",
        ):
            if key in mapping:
                raw = mapping[key]
                if not isinstance(raw, list) or not all(isinstance(item, str) for item in raw):
                    raise ValueError(f"'{key}' must be a list of strings")
                values[key] = list(raw)

        if "full_mark_rules" in mapping:
            rules = []
            for entry in mapping["full_mark_rules"]:
                pattern, mark = _pair(entry, "full_mark_rules")
                rules.append((str(pattern), _number(mark, "full_mark_rules")))
            values["full_mark_rules"] = rules

        if "full_mark_overrides" in mapping:
            raw = mapping["full_mark_overrides"]
            if not isinstance(raw, dict):
                raise ValueError("'full_mark_overrides' must be an object of column -> full mark")
            values["full_mark_overrides"] = {str(k): _number(v, "full_mark_overrides") for k, v in raw.items()}

        if "grade_cutoffs" in mapping:
            cutoffs = []
            for entry in mapping["grade_cutoffs"]:
                if not isinstance(entry, (list, tuple)) or len(entry) != 3:
                    raise ValueError("'grade_cutoffs' entries must be [cutoff, label, colour]")
                cutoffs.append((_number(entry[0], "grade_cutoffs"), str(entry[1]), str(entry[2])))
            thresholds = [c[0] for c in cutoffs]
            if thresholds != sorted(thresholds, reverse=True):
                raise ValueError("'grade_cutoffs' must be ordered from highest to lowest")
            values["grade_cutoffs"] = cutoffs

        if "lowest_grade" in mapping:
            label, colour = _pair(mapping["lowest_grade"], "lowest_grade")
            values["lowest_grade"] = (str(label), str(colour))

        if "score_bands" in mapping:
            bands = []
            for entry in mapping["score_bands"]:
                label, lower = _pair(entry, "score_bands")
                bands.append((str(label), None if lower is None else _number(lower, "score_bands")))
            values["score_bands"] = bands

        if "table_name_rules" in mapping:
            rules_by_name = []
            for entry in mapping["table_name_rules"]:
                suffix, fragments = _pair(entry, "table_name_rules")
                if not isinstance(fragments, list) or not all(isinstance(item, str) for item in fragments):
                    raise ValueError("'table_name_rules' fragments must be a list of strings")
                rules_by_name.append((str(suffix), list(fragments)))
            values["table_name_rules"] = rules_by_name

        for key in ("default_full_mark", "excellent_ratio", "pass_ratio", "iqr_multiplier", "numeric_row_ratio"):
            if key in mapping:
                values[key] = _number(mapping[key], key)

        for key in ("histogram_bins", "downsample_limit", "summary_row_threshold"):
            if key in mapping:
                number = _number(mapping[key], key)
                if number < 1 or number != int(number):
                    raise ValueError(f"'{key}' must be a positive integer")
                values[key] = int(number)

        for key in ("total_column_pattern", "rank_column_pattern", "name_column_pattern", "unclassified_label", "history_prefix"):
            if key in mapping:
                values[key] = str(mapping[key])

        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "excluded_markers": list(self.excluded_markers),
            "class_markers": list(self.class_markers),
            "class_names": list(self.class_names),
            "full_mark_rules": [[pattern, mark] for pattern, mark in self.full_mark_rules],
            "full_mark_overrides": dict(self.full_mark_overrides),
            "default_full_mark": self.default_full_mark,
            "grade_cutoffs": [[cutoff, label, colour] for cutoff, label, colour in self.grade_cutoffs],
            "lowest_grade": list(self.lowest_grade),
            "score_bands": [[label, lower] for label, lower in self.score_bands],
            "excellent_ratio": self.excellent_ratio,
            "pass_ratio": self.pass_ratio,
            "iqr_multiplier": self.iqr_multiplier,
            "histogram_bins": self.histogram_bins,
            "downsample_limit": self.downsample_limit,
            "numeric_row_ratio": self.numeric_row_ratio,
            "total_column_pattern": self.total_column_pattern,
            "rank_column_pattern": self.rank_column_pattern,
            "name_column_pattern": self.name_column_pattern,
            "composite_markers": list(self.composite_markers),
            "grade_sheet_markers": list(self.grade_sheet_markers),
            "summary_row_threshold": self.summary_row_threshold,
            "unclassified_label": self.unclassified_label,
            "header_markers": list(self.header_markers),
            "table_name_rules": [[suffix, list(fragments)] for suffix, fragments in self.table_name_rules],
            "history_prefix": self.history_prefix,
            "main_rank_columns": list(self.main_rank_columns),
            "rank_suffixes": list(self.rank_suffixes),
        }


def _pair(entry: Any, key: str) -> Tuple[Any, Any]:
    if not isinstance(entry, (list, tuple)) or len(entry) != 2:
        raise ValueError(f"'{key}' entries must be pairs")
    return entry[0], entry[1]


def _number(value: Any, key: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"'{key}' expects numeric values, got {value!r}")
    return float(value)


def resolve(config: Optional[AnalyticsConfig]) -> AnalyticsConfig:
    # A fresh instance per call; defaults are never shared between callers.
    return AnalyticsConfig() if config is None else config


def default_config_path() -> Optional[Path]:
    raw = os.environ.get(CONFIG_ENV_VAR, "").strip()
    return Path(raw) if raw else None


def load_config(path: Optional[Path] = None) -> AnalyticsConfig:
    """Load a config from JSON; a missing file (or no path at all) yields defaults."""

    path = path or default_config_path()
    if path is None or not path.exists():
        return AnalyticsConfig()

    logger.info("Loading analytics config: %s", path)
    raw = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError("Analytics config JSON must be an object")
    return AnalyticsConfig.from_dict(raw)


def save_config(config: AnalyticsConfig, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(config.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
    return path

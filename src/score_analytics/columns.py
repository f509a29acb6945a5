from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .config import AnalyticsConfig, resolve
from .sheet import Sheet, to_number

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NumericColumn:
    name: str
    index: int
    values: List[float]
    average: float
    max: float
    min: float

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "index": self.index,
            "values": list(self.values),
            "average": self.average,
            "max": self.max,
            "min": self.min,
        }


def is_excluded_column(name: str, config: Optional[AnalyticsConfig] = None) -> bool:
    """True for identifier, rank, class-name or person-name headers."""

    cfg = resolve(config)
    lower = str(name).lower()
    return any(marker.lower() in lower for marker in cfg.excluded_markers)


def classify(sheet: Sheet, config: Optional[AnalyticsConfig] = None) -> List[NumericColumn]:
    """Return the score-bearing columns of ``sheet`` in column order.

    A column qualifies when it is not excluded by name and strictly more than
    ``numeric_row_ratio`` of its rows hold a numeric value. Non-numeric cells
    are skipped, never replaced.
    """

    cfg = resolve(config)
    row_count = len(sheet.rows)
    result: List[NumericColumn] = []

    for idx, name in enumerate(sheet.columns):
        if is_excluded_column(name, cfg):
            logger.debug("Column %r excluded by name", name)
            continue

        values = []
        for cell in sheet.column_cells(idx):
            number = to_number(cell)
            if number is not None:
                values.append(number)

        if len(values) > row_count * cfg.numeric_row_ratio and values:
            result.append(
                NumericColumn(
                    name=name,
                    index=idx,
                    values=values,
                    average=sum(values) / len(values),
                    max=max(values),
                    min=min(values),
                )
            )
        else:
            logger.debug("Column %r has %d/%d numeric cells; skipped", name, len(values), row_count)

    return result


def _find(columns: Sequence[str], pattern: str) -> Optional[str]:
    regex = re.compile(pattern, re.IGNORECASE)
    for col in columns:
        if regex.search(str(col)):
            return col
    return None


def is_total_column(name: str, config: Optional[AnalyticsConfig] = None) -> bool:
    """True when ``name`` matches the total-score pattern (case-insensitive).

    Every total check goes through here so ranking, grading and grouping
    agree on which columns are totals.
    """

    return re.search(resolve(config).total_column_pattern, str(name), re.IGNORECASE) is not None


def find_total_column(columns: Sequence[str], config: Optional[AnalyticsConfig] = None) -> Optional[str]:
    return next((col for col in columns if is_total_column(col, config)), None)


def find_rank_column(columns: Sequence[str], config: Optional[AnalyticsConfig] = None) -> Optional[str]:
    return _find(columns, resolve(config).rank_column_pattern)


def find_name_column(columns: Sequence[str], config: Optional[AnalyticsConfig] = None) -> Optional[str]:
    return _find(columns, resolve(config).name_column_pattern)


def is_composite_column(name: str, config: Optional[AnalyticsConfig] = None) -> bool:
    # Totals and "+" combinations (e.g. "物+化") skew per-subject comparisons.
    cfg = resolve(config)
    if is_total_column(name, cfg):
        return True
    lower = str(name).lower()
    return any(marker.lower() in lower for marker in cfg.composite_markers)


def subject_columns(columns: Sequence[NumericColumn], config: Optional[AnalyticsConfig] = None) -> List[NumericColumn]:
    return [col for col in columns if not is_composite_column(col.name, config)]

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Sequence

from .columns import is_total_column
from .config import AnalyticsConfig, resolve


@dataclass(frozen=True)
class RankStats:
    rank: int
    total: int
    percentile: float

    def to_dict(self) -> dict:
        return {"rank": self.rank, "total": self.total, "percentile": self.percentile}


@dataclass(frozen=True)
class GradeAttributes:
    label: str
    color_token: str

    def to_dict(self) -> dict:
        return {"label": self.label, "colorToken": self.color_token}


def rank_of(score: float, population: Sequence[float]) -> RankStats:
    """Rank ``score`` against a population already sorted descending.

    Ties share the best rank. Percentile is 1.0 for the top rank and 0.0 for
    the bottom one, scaled linearly by rank position.
    """

    total = len(population)
    if total == 0:
        return RankStats(rank=0, total=0, percentile=0.0)

    rank = total
    for idx, value in enumerate(population):
        if score >= value:
            rank = idx + 1
            break

    percentile = (total - rank) / (total - 1) if total > 1 else 1.0
    return RankStats(rank=rank, total=total, percentile=percentile)


def grade_from_percentile(percentile: float, config: Optional[AnalyticsConfig] = None) -> GradeAttributes:
    cfg = resolve(config)
    for cutoff, label, colour in cfg.grade_cutoffs:
        if percentile >= cutoff:
            return GradeAttributes(label=label, color_token=colour)
    label, colour = cfg.lowest_grade
    return GradeAttributes(label=label, color_token=colour)


def grade_from_raw_score(score: float, full_mark: float, config: Optional[AnalyticsConfig] = None) -> Optional[GradeAttributes]:
    """Grade by ``score / full_mark`` when no ranked population is available.

    Returns None when ``full_mark`` is not positive.
    """

    if full_mark <= 0:
        return None
    return grade_from_percentile(score / full_mark, config)


def guess_full_mark(column_name: str, config: Optional[AnalyticsConfig] = None) -> float:
    """Best-effort maximum attainable score for a column.

    Exact overrides win. Total columns then get 0, meaning percentage-of-max
    grading does not apply. Otherwise the ordered name rules, then the default.
    """

    cfg = resolve(config)
    if column_name in cfg.full_mark_overrides:
        return cfg.full_mark_overrides[column_name]
    if is_total_column(column_name, cfg):
        return 0.0
    for pattern, mark in cfg.full_mark_rules:
        if re.search(pattern, column_name):
            return mark
    return cfg.default_full_mark

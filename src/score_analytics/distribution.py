from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from .config import AnalyticsConfig, resolve


@dataclass(frozen=True)
class PassStats:
    excellent: int
    pass_: int
    fail: int
    total: int

    def to_dict(self) -> dict:
        return {"excellent": self.excellent, "pass": self.pass_, "fail": self.fail, "total": self.total}


@dataclass(frozen=True)
class HistogramBin:
    label: str
    start: float
    end: float
    count: int

    def to_dict(self) -> dict:
        return {"range": self.label, "min": self.start, "max": self.end, "count": self.count}


@dataclass(frozen=True)
class BoxPlotStats:
    min: float
    q1: float
    median: float
    q3: float
    max: float
    outliers: List[float] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "min": self.min,
            "q1": self.q1,
            "median": self.median,
            "q3": self.q3,
            "max": self.max,
            "outliers": list(self.outliers),
        }


def pass_stats(values: Sequence[float], full_mark: float, config: Optional[AnalyticsConfig] = None) -> Optional[PassStats]:
    """Tally excellent / pass / fail against ratios of ``full_mark``.

    Returns None when ``full_mark`` is not positive: the thresholds would
    collapse to 0 and every score would count as excellent.
    """

    if full_mark <= 0:
        return None

    cfg = resolve(config)
    excellent_threshold = full_mark * cfg.excellent_ratio
    pass_threshold = full_mark * cfg.pass_ratio

    excellent = passed = failed = 0
    for value in values:
        if value >= excellent_threshold:
            excellent += 1
        elif value >= pass_threshold:
            passed += 1
        else:
            failed += 1
    return PassStats(excellent=excellent, pass_=passed, fail=failed, total=len(values))


def score_buckets(values: Sequence[float], full_mark: float, config: Optional[AnalyticsConfig] = None) -> Optional[Dict[str, int]]:
    """Count values per score band (ratio of ``full_mark``), bands in order.

    Returns None when ``full_mark`` is not positive.
    """

    if full_mark <= 0:
        return None

    bands = resolve(config).score_bands
    buckets = {label: 0 for label, _ in bands}
    for value in values:
        ratio = value / full_mark
        for label, lower in bands:
            if lower is None or ratio >= lower:
                buckets[label] += 1
                break
    return buckets


def histogram(values: Sequence[float], bin_count: Optional[int] = None, config: Optional[AnalyticsConfig] = None) -> List[HistogramBin]:
    if len(values) == 0:
        return []

    bins = max(int(bin_count if bin_count is not None else resolve(config).histogram_bins), 1)
    low = math.floor(min(values))
    high = math.ceil(max(values))
    bin_size = max((high - low) / bins, 1)

    counts = [0] * bins
    for value in values:
        idx = min(math.floor((value - low) / bin_size), bins - 1)
        if idx >= 0:
            counts[idx] += 1

    result = []
    for i, count in enumerate(counts):
        start = low + i * bin_size
        end = low + (i + 1) * bin_size
        result.append(HistogramBin(label=f"{math.floor(start)}-{math.floor(end)}", start=start, end=end, count=count))
    return result


def box_plot(values: Sequence[float], config: Optional[AnalyticsConfig] = None) -> Optional[BoxPlotStats]:
    """Quartiles by ``floor(n * q)`` indexing and the IQR outlier rule.

    ``min``/``max`` are the extremes of the in-bound values. Returns None for
    an empty input.
    """

    if len(values) == 0:
        return None

    multiplier = resolve(config).iqr_multiplier
    ordered = sorted(values)
    n = len(ordered)
    q1 = ordered[math.floor(n * 0.25)]
    median = ordered[math.floor(n * 0.5)]
    q3 = ordered[math.floor(n * 0.75)]

    iqr = q3 - q1
    lower = q1 - multiplier * iqr
    upper = q3 + multiplier * iqr

    inside = [v for v in ordered if lower <= v <= upper]
    outliers = [v for v in ordered if v < lower or v > upper]

    return BoxPlotStats(
        min=inside[0] if inside else q1,
        q1=q1,
        median=median,
        q3=q3,
        max=inside[-1] if inside else q3,
        outliers=outliers,
    )

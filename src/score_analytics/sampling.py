from __future__ import annotations

import math
from typing import Optional, Sequence, TypeVar

from .config import AnalyticsConfig, resolve

T = TypeVar("T")


def downsample(series: Sequence[T], limit: Optional[int] = None, config: Optional[AnalyticsConfig] = None) -> Sequence[T]:
    """Keep every ``ceil(n / limit)``-th element for display.

    Series already within ``limit`` come back unchanged. Only use this on
    values headed for a chart; statistics run on the full series.
    """

    limit = max(int(limit if limit is not None else resolve(config).downsample_limit), 1)
    if len(series) <= limit:
        return series

    step = math.ceil(len(series) / limit)
    return [item for idx, item in enumerate(series) if idx % step == 0]

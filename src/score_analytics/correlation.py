from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .columns import NumericColumn
from .sheet import Sheet, to_number


@dataclass(frozen=True)
class RegressionResult:
    slope: float
    intercept: float
    # None when every y is identical: R² is 0/0 there.
    r_squared: Optional[float]

    def predict(self, x: float) -> float:
        return self.slope * x + self.intercept

    def to_dict(self) -> dict:
        return {"slope": self.slope, "intercept": self.intercept, "rSquared": self.r_squared}


@dataclass(frozen=True)
class CorrelationMatrix:
    names: List[str]
    values: List[List[float]]

    def to_dict(self) -> dict:
        return {"names": list(self.names), "values": [list(row) for row in self.values]}


def _aligned(x: Sequence[float], y: Sequence[float]) -> Tuple[np.ndarray, np.ndarray]:
    n = min(len(x), len(y))
    return np.asarray(x[:n], dtype=float), np.asarray(y[:n], dtype=float)


def correlate(x: Sequence[float], y: Sequence[float]) -> float:
    """Pearson correlation over the first ``min(len(x), len(y))`` points.

    Empty input or a zero-variance series yields 0.
    """

    xs, ys = _aligned(x, y)
    n = len(xs)
    if n == 0:
        return 0.0

    sum_x = xs.sum()
    sum_y = ys.sum()
    sum_xy = (xs * ys).sum()
    sum_x2 = (xs * xs).sum()
    sum_y2 = (ys * ys).sum()

    numerator = n * sum_xy - sum_x * sum_y
    variance_product = (n * sum_x2 - sum_x * sum_x) * (n * sum_y2 - sum_y * sum_y)
    if variance_product <= 0:
        return 0.0
    return float(numerator / np.sqrt(variance_product))


def regress(x: Sequence[float], y: Sequence[float]) -> Optional[RegressionResult]:
    """Least-squares line ``y = slope * x + intercept`` with R².

    Needs at least two points and some spread in x; otherwise None.
    """

    xs, ys = _aligned(x, y)
    n = len(xs)
    if n < 2:
        return None

    sum_x = xs.sum()
    sum_y = ys.sum()
    sum_xy = (xs * ys).sum()
    sum_x2 = (xs * xs).sum()

    denominator = n * sum_x2 - sum_x * sum_x
    if denominator == 0:
        return None

    slope = (n * sum_xy - sum_x * sum_y) / denominator
    intercept = (sum_y - slope * sum_x) / n

    y_mean = sum_y / n
    predicted = slope * xs + intercept
    total_ss = ((ys - y_mean) ** 2).sum()
    residual_ss = ((ys - predicted) ** 2).sum()
    r_squared = float(1 - residual_ss / total_ss) if total_ss != 0 else None

    return RegressionResult(slope=float(slope), intercept=float(intercept), r_squared=r_squared)


def regression_line(x: Sequence[float], result: RegressionResult) -> List[Tuple[float, float]]:
    """End points of the fitted line over the span of ``x``."""

    if len(x) == 0:
        return []
    low, high = float(min(x)), float(max(x))
    return [(low, result.predict(low)), (high, result.predict(high))]


def paired_values(sheet: Sheet, x_index: int, y_index: int) -> Tuple[List[float], List[float]]:
    xs: List[float] = []
    ys: List[float] = []
    for row in sheet.rows:
        x = to_number(sheet.cell(row, x_index))
        y = to_number(sheet.cell(row, y_index))
        if x is not None and y is not None:
            xs.append(x)
            ys.append(y)
    return xs, ys


def correlation_matrix(sheet: Sheet, columns: Sequence[NumericColumn]) -> CorrelationMatrix:
    """Pairwise correlation of ``columns`` over rows where both cells are numeric."""

    size = len(columns)
    values = [[0.0] * size for _ in range(size)]
    for i, col_x in enumerate(columns):
        values[i][i] = 1.0
        for j in range(i + 1, size):
            col_y = columns[j]
            if col_x.name == col_y.name:
                coefficient = 1.0
            else:
                xs, ys = paired_values(sheet, col_x.index, col_y.index)
                coefficient = correlate(xs, ys)
            values[i][j] = coefficient
            values[j][i] = coefficient
    return CorrelationMatrix(names=[col.name for col in columns], values=values)

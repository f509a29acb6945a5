from __future__ import annotations

import math
from dataclasses import dataclass
from numbers import Integral, Real
from typing import Any, List, Optional, Sequence, Union

import pandas as pd

Cell = Union[str, float, int, None]


@dataclass(frozen=True)
class Sheet:
    """One table of column headers and rows of mixed string/number/null cells.

    Rows are expected to be as long as ``columns``; the producer guarantees it
    and readers go through :meth:`cell` so ragged rows never raise.
    """

    columns: Sequence[str]
    rows: Sequence[Sequence[Cell]]
    name: str = ""

    def cell(self, row: Sequence[Cell], index: int) -> Cell:
        if 0 <= index < len(row):
            return row[index]
        return None

    def column_index(self, name: str) -> int:
        for idx, col in enumerate(self.columns):
            if col == name:
                return idx
        return -1

    def column_cells(self, index: int) -> List[Cell]:
        return [self.cell(row, index) for row in self.rows]

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame([list(row) for row in self.rows], columns=list(self.columns))

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame, name: str = "") -> "Sheet":
        rows = []
        for record in df.itertuples(index=False, name=None):
            rows.append(tuple(_native(value) for value in record))
        return cls(columns=tuple(str(col) for col in df.columns), rows=tuple(rows), name=name)


def _native(value: Any) -> Cell:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, Integral):
        return int(value)
    if isinstance(value, Real):
        number = float(value)
        return None if math.isnan(number) else number
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    return str(value)


def to_number(cell: Any) -> Optional[float]:
    """Return the cell as a finite float, or None when it is not numeric.

    Numbers count as-is (booleans do not); strings count when their stripped
    text parses as a finite float.
    """

    if cell is None or isinstance(cell, bool):
        return None
    if isinstance(cell, Real):
        number = float(cell)
    elif isinstance(cell, str):
        text = cell.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None

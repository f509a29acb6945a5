from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import IO, Any, Dict, List, Mapping, Optional, Sequence

import pandas as pd

from .config import AnalyticsConfig, resolve
from .sheet import Cell, Sheet, to_number

logger = logging.getLogger(__name__)

HISTORY_KEY = "历次成绩"


def clean_cell(cell: Any, decimals: Optional[int] = 1) -> Cell:
    """Normalize one raw cell: blanks become None, numeric text becomes a number.

    Numbers written with a decimal point are rounded to ``decimals`` places
    (skip rounding with ``decimals=None``); other strings are trimmed.
    """

    if cell is None or isinstance(cell, bool):
        return None if cell is None else str(cell)
    if isinstance(cell, str) and not cell.strip():
        return None

    number = to_number(cell)
    if number is not None:
        if "." in str(cell):
            return round(number, decimals) if decimals is not None else number
        return int(number) if number.is_integer() else number

    if isinstance(cell, str):
        return cell.strip()
    return str(cell)


def _fit_row(row: Sequence[Any], width: int, decimals: Optional[int]) -> List[Cell]:
    cleaned = [clean_cell(cell, decimals) for cell in row[:width]]
    cleaned.extend([None] * (width - len(cleaned)))
    return cleaned


def _is_blank(row: Optional[Sequence[Any]]) -> bool:
    if not row:
        return True
    return all(cell is None or (isinstance(cell, str) and not cell.strip()) for cell in row)


def read_csv(source: str | Path | IO[str] | IO[bytes], name: str = "") -> Sheet:
    # Read everything as text so numeric coercion happens in one place.
    df = pd.read_csv(source, dtype=str, keep_default_na=False)
    columns = [str(col).strip() for col in df.columns]
    if not columns:
        raise ValueError("CSV has no header row")
    rows = [_fit_row(list(record), len(columns), None) for record in df.itertuples(index=False, name=None)]
    logger.info("Read %d rows x %d columns from CSV", len(rows), len(columns))
    return Sheet(columns=tuple(columns), rows=tuple(tuple(row) for row in rows), name=name)


def _table_name(columns: Sequence[str], position: int, cfg: AnalyticsConfig) -> str:
    for suffix, fragments in cfg.table_name_rules:
        if any(fragment in col for col in columns for fragment in fragments):
            return f"{cfg.history_prefix}-{suffix}"
    return f"{cfg.history_prefix}-{position}"


def _unique_name(name: str, taken: Mapping[str, Any]) -> str:
    candidate = name
    counter = 2
    while candidate in taken:
        candidate = f"{name}-{counter}"
        counter += 1
    return candidate


def split_stacked_tables(
    rows: Sequence[Sequence[Any]],
    header_markers: Optional[Sequence[str]] = None,
    existing: Optional[Mapping[str, Sheet]] = None,
    config: Optional[AnalyticsConfig] = None,
) -> Dict[str, Sheet]:
    """Split a block of stacked tables into named sheets.

    A table starts at every row whose first cell is a header marker
    (``config.header_markers`` unless given). With no marker at all, row 0 is
    taken as the only header.
    """

    cfg = resolve(config)
    markers = cfg.header_markers if header_markers is None else header_markers
    taken: Dict[str, Any] = dict(existing or {})
    header_rows = [
        idx for idx, row in enumerate(rows) if row and str(row[0] if row[0] is not None else "").strip() in markers
    ]
    if not header_rows and rows:
        header_rows = [0]

    sheets: Dict[str, Sheet] = {}
    for position, start in enumerate(header_rows, start=1):
        end = header_rows[position] if position < len(header_rows) else len(rows)
        columns = [str(cell if cell is not None else "").strip() for cell in rows[start]]
        body = [row for row in rows[start + 1 : end] if not _is_blank(row)]

        ragged = sum(1 for row in body if len(row) != len(columns))
        if ragged:
            logger.warning("Table %d: %d rows padded or truncated to %d columns", position, ragged, len(columns))

        name = _unique_name(_table_name(columns, position, cfg), taken)
        sheet = Sheet(
            columns=tuple(columns),
            rows=tuple(tuple(_fit_row(row, len(columns), 1)) for row in body),
            name=name,
        )
        sheets[name] = sheet
        taken[name] = sheet

    logger.info("Split %d rows into %d tables", len(rows), len(sheets))
    return sheets


def load_history(
    source: str | Path | IO[str] | IO[bytes],
    existing: Optional[Mapping[str, Sheet]] = None,
    config: Optional[AnalyticsConfig] = None,
) -> Dict[str, Sheet]:
    """Load a history JSON export and split its stacked tables into sheets.

    The JSON root is either a sheet (``columns`` + ``rows``) or an object with
    the sheet under ``历次成绩``.
    """

    if hasattr(source, "read"):
        raw = json.load(source)  # type: ignore[arg-type]
    else:
        raw = json.loads(Path(source).read_text(encoding="utf-8"))

    sheet_obj = None
    if isinstance(raw, dict):
        if isinstance(raw.get("rows"), list) and isinstance(raw.get("columns"), list):
            sheet_obj = raw
        elif isinstance(raw.get(HISTORY_KEY), dict):
            sheet_obj = raw[HISTORY_KEY]
    if sheet_obj is None or not isinstance(sheet_obj.get("rows"), list):
        raise ValueError("History JSON must be a sheet object or contain one under '历次成绩'")

    rows = [row for row in sheet_obj["rows"] if isinstance(row, list)]
    return split_stacked_tables(rows, existing=existing, config=config)


def export_dataframe(df: pd.DataFrame, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
    return path

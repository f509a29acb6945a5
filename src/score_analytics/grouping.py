from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from .columns import NumericColumn, is_total_column, subject_columns
from .config import AnalyticsConfig, resolve
from .distribution import box_plot, score_buckets
from .ranking import guess_full_mark
from .sheet import Cell, Sheet, to_number

ClassGroups = Dict[str, Dict[str, List[float]]]


def find_class_column(columns: Sequence[str], config: Optional[AnalyticsConfig] = None) -> int:
    """Index of the first class column, or -1."""

    cfg = resolve(config)
    exact = {name.lower() for name in cfg.class_names}
    for idx, col in enumerate(columns):
        text = str(col)
        if any(marker in text for marker in cfg.class_markers) or text.lower() in exact:
            return idx
    return -1


def class_label(cell: Cell, config: Optional[AnalyticsConfig] = None) -> str:
    if cell is None:
        return resolve(config).unclassified_label
    if isinstance(cell, float) and cell.is_integer():
        return str(int(cell))
    return str(cell)


def group_by_class(
    sheet: Sheet,
    numeric_columns: Sequence[NumericColumn],
    config: Optional[AnalyticsConfig] = None,
) -> Optional[ClassGroups]:
    """Partition each numeric column's values by class label.

    Returns None when the sheet has no class column. Every row's class gets an
    entry, even when none of its cells are numeric.
    """

    cfg = resolve(config)
    class_idx = find_class_column(sheet.columns, cfg)
    if class_idx == -1:
        return None

    groups: ClassGroups = {}
    for row in sheet.rows:
        label = class_label(sheet.cell(row, class_idx), cfg)
        bucket = groups.setdefault(label, {})
        for col in numeric_columns:
            value = to_number(sheet.cell(row, col.index))
            if value is not None:
                bucket.setdefault(col.name, []).append(value)
    return groups


def class_box_plots(
    sheet: Sheet,
    column: NumericColumn,
    config: Optional[AnalyticsConfig] = None,
) -> List[Dict[str, Any]]:
    """Box plot of ``column`` per class, highest median first."""

    groups = group_by_class(sheet, [column], config)
    if not groups:
        return []

    records = []
    for label, by_column in groups.items():
        stats = box_plot(by_column.get(column.name, []), config)
        if stats is None:
            continue
        records.append({"class": label, **stats.to_dict()})
    return sorted(records, key=lambda rec: rec["median"], reverse=True)


def class_balance(
    sheet: Sheet,
    columns: Sequence[NumericColumn],
    config: Optional[AnalyticsConfig] = None,
) -> Dict[str, List[Dict[str, Any]]]:
    """Per class, each subject's average and its share of the full mark (0-100)."""

    cfg = resolve(config)
    subjects = subject_columns(columns, cfg)
    groups = group_by_class(sheet, subjects, cfg)
    if not groups:
        return {}

    result: Dict[str, List[Dict[str, Any]]] = {}
    for label in sorted(groups):
        entries = []
        for col in subjects:
            scores = groups[label].get(col.name)
            if not scores:
                continue
            average = sum(scores) / len(scores)
            full_mark = guess_full_mark(col.name, cfg)
            entries.append(
                {
                    "subject": col.name,
                    "average": average,
                    "normalized": average / full_mark * 100 if full_mark > 0 else 0.0,
                }
            )
        result[label] = entries
    return result


def class_score_buckets(
    sheet: Sheet,
    column: NumericColumn,
    config: Optional[AnalyticsConfig] = None,
) -> Optional[List[Dict[str, Any]]]:
    """Score-band counts of ``column`` per class (sorted by label).

    Total columns are banded against the column maximum. Returns None when
    there is no class column or no positive full mark.
    """

    cfg = resolve(config)
    groups = group_by_class(sheet, [column], cfg)
    if groups is None:
        return None

    if is_total_column(column.name, cfg):
        full_mark = column.max
    else:
        full_mark = guess_full_mark(column.name, cfg)
    if full_mark <= 0:
        return None

    rows = []
    for label in sorted(groups):
        scores = groups[label].get(column.name, [])
        buckets = score_buckets(scores, full_mark, cfg) or {}
        rows.append(
            {
                "class": label,
                "total": len(scores),
                "average": sum(scores) / len(scores) if scores else 0.0,
                "full_mark": full_mark,
                **buckets,
            }
        )
    return rows

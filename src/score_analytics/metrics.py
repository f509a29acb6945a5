from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from .columns import NumericColumn, classify, find_rank_column, find_total_column, is_composite_column, is_excluded_column, subject_columns
from .config import AnalyticsConfig, resolve
from .correlation import correlation_matrix
from .distribution import pass_stats
from .grouping import find_class_column
from .ranking import grade_from_percentile, guess_full_mark, rank_of
from .sampling import downsample
from .sheet import Sheet, to_number


def is_summary_sheet(sheet: Sheet, config: Optional[AnalyticsConfig] = None) -> bool:
    """Small sheets are usually pre-aggregated summaries, not per-student grades."""

    cfg = resolve(config)
    if any(marker in sheet.name for marker in cfg.grade_sheet_markers):
        return False
    return len(sheet.rows) < cfg.summary_row_threshold


def key_metrics(sheet: Sheet, columns: Optional[Sequence[NumericColumn]] = None, config: Optional[AnalyticsConfig] = None) -> Dict[str, Any]:
    columns = classify(sheet, config) if columns is None else columns
    total_name = find_total_column(sheet.columns, config)
    total = next((col for col in columns if col.name == total_name), None)
    return {
        "students": len(sheet.rows),
        "total_column": total_name,
        "avg_total": total.average if total else None,
        "max_total": total.max if total else None,
    }


def column_summary(columns: Sequence[NumericColumn]) -> pd.DataFrame:
    rows = [
        {
            "column": col.name,
            "count": len(col.values),
            "average": col.average,
            "min": col.min,
            "max": col.max,
        }
        for col in columns
    ]
    if not rows:
        return pd.DataFrame(columns=["column", "count", "average", "min", "max"])
    return pd.DataFrame(rows)


def subject_averages(columns: Sequence[NumericColumn], config: Optional[AnalyticsConfig] = None) -> pd.DataFrame:
    rows = [{"subject": col.name, "average": col.average, "max": col.max} for col in subject_columns(columns, config)]
    if not rows:
        return pd.DataFrame(columns=["subject", "average", "max"])
    return pd.DataFrame(rows).sort_values(by="average", ascending=False).reset_index(drop=True)


def pass_rate_table(columns: Sequence[NumericColumn], config: Optional[AnalyticsConfig] = None) -> pd.DataFrame:
    """Excellent / pass / fail tallies for every column with a positive full mark."""

    rows = []
    for col in columns:
        if is_composite_column(col.name, config):
            continue
        full_mark = guess_full_mark(col.name, config)
        stats = pass_stats(col.values, full_mark, config)
        if stats is None:
            continue
        rows.append(
            {
                "column": col.name,
                "full_mark": full_mark,
                **stats.to_dict(),
                "pass_rate": (stats.excellent + stats.pass_) / stats.total if stats.total else 0.0,
                "excellent_rate": stats.excellent / stats.total if stats.total else 0.0,
            }
        )

    result_cols = ["column", "full_mark", "excellent", "pass", "fail", "total", "pass_rate", "excellent_rate"]
    if not rows:
        return pd.DataFrame(columns=result_cols)
    return pd.DataFrame(rows)[result_cols]


def _sorted_populations(columns: Sequence[NumericColumn]) -> Dict[int, List[float]]:
    return {col.index: sorted(col.values, reverse=True) for col in columns}


def student_profile(sheet: Sheet, row_index: int, config: Optional[AnalyticsConfig] = None) -> pd.DataFrame:
    """Per-subject score, rank, percentile and grade for one student row."""

    result_cols = ["subject", "score", "rank", "total", "percentile", "grade", "color_token", "is_composite"]
    if not 0 <= row_index < len(sheet.rows):
        return pd.DataFrame(columns=result_cols)

    cfg = resolve(config)
    columns = classify(sheet, cfg)
    populations = _sorted_populations(columns)
    class_idx = find_class_column(sheet.columns, cfg)
    row = sheet.rows[row_index]

    rows = []
    for idx, name in enumerate(sheet.columns):
        if idx == class_idx or is_excluded_column(name, cfg):
            continue
        score = to_number(sheet.cell(row, idx))
        if score is None:
            continue
        population = populations.get(idx, [])
        stats = rank_of(score, population)
        grade = grade_from_percentile(stats.percentile, cfg) if population else None
        rows.append(
            {
                "subject": name,
                "score": score,
                "rank": stats.rank,
                "total": stats.total,
                "percentile": stats.percentile,
                "grade": grade.label if grade else None,
                "color_token": grade.color_token if grade else None,
                "is_composite": is_composite_column(name, cfg),
            }
        )

    if not rows:
        return pd.DataFrame(columns=result_cols)
    return pd.DataFrame(rows)[result_cols]


def combination_ranks(sheet: Sheet, row_index: int, config: Optional[AnalyticsConfig] = None) -> List[Dict[str, Any]]:
    """Secondary rank columns (``...校次`` / ``...Rank``) for one student row.

    Whole-number ranks come back as ints; fractional cells keep their value.
    """

    if not 0 <= row_index < len(sheet.rows):
        return []

    cfg = resolve(config)
    suffixes = tuple(cfg.rank_suffixes)
    main_idx = next((idx for idx, col in enumerate(sheet.columns) if col in cfg.main_rank_columns), -1)
    row = sheet.rows[row_index]
    ranks = []
    for idx, col in enumerate(sheet.columns):
        if idx == main_idx or not suffixes or not col.endswith(suffixes):
            continue
        value = to_number(sheet.cell(row, idx))
        if value is None:
            continue
        base = col
        for suffix in suffixes:
            base = base.replace(suffix, "")
        ranks.append({"name": base.strip() or col, "rank": int(value) if value.is_integer() else value})
    return ranks


def grade_table(sheet: Sheet, config: Optional[AnalyticsConfig] = None) -> pd.DataFrame:
    """Percentile grade label for every numeric cell; other cells stay empty."""

    columns = classify(sheet, config)
    populations = _sorted_populations(columns)
    data: Dict[str, List[Optional[str]]] = {}
    for col in columns:
        population = populations[col.index]
        labels: List[Optional[str]] = []
        for row in sheet.rows:
            score = to_number(sheet.cell(row, col.index))
            if score is None:
                labels.append(None)
            else:
                labels.append(grade_from_percentile(rank_of(score, population).percentile, config).label)
        data[col.name] = labels
    return pd.DataFrame(data, index=range(len(sheet.rows)))


def score_vs_rank(sheet: Sheet, limit: int = 1000, config: Optional[AnalyticsConfig] = None) -> List[Dict[str, float]]:
    """(rank, score) points ordered by rank for the total column, downsampled."""

    total_name = find_total_column(sheet.columns, config)
    rank_name = find_rank_column(sheet.columns, config)
    if total_name is None or rank_name is None:
        return []

    total_idx = sheet.column_index(total_name)
    rank_idx = sheet.column_index(rank_name)
    points = []
    for row in sheet.rows:
        score = to_number(sheet.cell(row, total_idx))
        rank = to_number(sheet.cell(row, rank_idx))
        if score is not None and rank is not None:
            points.append({"rank": rank, "score": score})
    points.sort(key=lambda point: point["rank"])
    return list(downsample(points, limit))


def correlation_table(sheet: Sheet, columns: Sequence[NumericColumn]) -> pd.DataFrame:
    matrix = correlation_matrix(sheet, columns)
    return pd.DataFrame(matrix.values, index=matrix.names, columns=matrix.names)

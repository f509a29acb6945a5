from typing import Any, Dict, List, Optional, Sequence

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from .config import AnalyticsConfig, resolve
from .correlation import RegressionResult, regression_line
from .distribution import HistogramBin, PassStats
from .sampling import downsample

PASS_COLORS = {"Excellent": "#10b981", "Pass": "#3b82f6", "Fail": "#ef4444"}

# Colour tokens carried by grades, as cell background colours.
GRADE_TOKEN_COLORS = {
    "emerald": "#a7f3d0",
    "green": "#bbf7d0",
    "lime": "#d9f99d",
    "blue": "#bfdbfe",
    "sky": "#bae6fd",
    "cyan": "#a5f3fc",
    "yellow": "#fef08a",
    "red": "#fecaca",
}


def histogram_chart(bins: Sequence[HistogramBin], title: str = "Score distribution") -> go.Figure:
    if not bins:
        return go.Figure()
    df = pd.DataFrame([b.to_dict() for b in bins])
    fig = px.bar(df, x="range", y="count", title=title, labels={"range": "Score range", "count": "Students"})
    fig.update_layout(bargap=0.05)
    return fig


def pass_rate_pie(stats: Optional[PassStats], title: str = "Rate analysis") -> go.Figure:
    if stats is None or stats.total == 0:
        return go.Figure()
    df = pd.DataFrame(
        [
            {"band": "Excellent", "count": stats.excellent},
            {"band": "Pass", "count": stats.pass_},
            {"band": "Fail", "count": stats.fail},
        ]
    )
    df = df[df["count"] > 0]
    return px.pie(df, names="band", values="count", color="band", color_discrete_map=PASS_COLORS, title=title)


def class_box_chart(records: Sequence[Dict[str, Any]], title: str = "Class distribution") -> go.Figure:
    if not records:
        return go.Figure()
    fig = go.Figure()
    for rec in records:
        fig.add_trace(
            go.Box(
                name=str(rec["class"]),
                lowerfence=[rec["min"]],
                q1=[rec["q1"]],
                median=[rec["median"]],
                q3=[rec["q3"]],
                upperfence=[rec["max"]],
                boxpoints=False,
            )
        )
    fig.update_layout(title=title, showlegend=False)
    return fig


def correlation_heatmap(matrix: pd.DataFrame, title: str = "Correlation matrix") -> go.Figure:
    if matrix.empty:
        return go.Figure()
    fig = px.imshow(matrix, text_auto=".2f", zmin=-1, zmax=1, color_continuous_scale="Blues", title=title)
    return fig


def regression_chart(
    x: Sequence[float],
    y: Sequence[float],
    result: Optional[RegressionResult],
    x_label: str = "x",
    y_label: str = "y",
    limit: int = 400,
) -> go.Figure:
    """Scatter of (x, y) with the fitted line; points are downsampled, the fit is not."""

    if len(x) == 0:
        return go.Figure()

    points: List[Dict[str, float]] = list(downsample([{"x": a, "y": b} for a, b in zip(x, y)], limit))
    df = pd.DataFrame(points)
    fig = px.scatter(df, x="x", y="y", labels={"x": x_label, "y": y_label}, opacity=0.6)

    if result is not None:
        line = regression_line(x, result)
        fig.add_trace(
            go.Scatter(
                x=[p[0] for p in line],
                y=[p[1] for p in line],
                mode="lines",
                name="Fit",
            )
        )
        if result.r_squared is not None:
            fig.update_layout(title=f"{y_label} vs {x_label} (R² = {result.r_squared:.3f})")
    return fig


def subject_average_bar(averages: pd.DataFrame, title: str = "Average comparison") -> go.Figure:
    if averages.empty:
        return go.Figure()
    fig = px.bar(averages, x="subject", y="average", title=title)
    fig.update_layout(xaxis_title="Subject", yaxis_title="Average")
    return fig


def score_bucket_heatmap(rows: Optional[Sequence[Dict[str, Any]]], bands: Sequence[str], title: str = "Score heatmap") -> go.Figure:
    if not rows:
        return go.Figure()
    df = pd.DataFrame(rows).set_index("class")
    shares = df[list(bands)].div(df["total"].where(df["total"] > 0), axis=0).fillna(0)
    fig = px.imshow(shares, text_auto=".0%", color_continuous_scale="Blues", zmin=0, zmax=1, title=title)
    fig.update_layout(xaxis_title="Band", yaxis_title="Class")
    return fig


def pass_rate_bar(table: pd.DataFrame, title: str = "Pass rates by subject") -> go.Figure:
    """Stacked excellent / pass / fail shares per column of a pass-rate table."""

    if table.empty:
        return go.Figure()
    long_df = pd.DataFrame(
        [
            {"column": row["column"], "band": band, "share": row[key] / row["total"] if row["total"] else 0.0}
            for _, row in table.iterrows()
            for band, key in (("Excellent", "excellent"), ("Pass", "pass"), ("Fail", "fail"))
        ]
    )
    fig = px.bar(
        long_df,
        x="column",
        y="share",
        color="band",
        color_discrete_map=PASS_COLORS,
        title=title,
        labels={"column": "Subject", "share": "Share of students"},
    )
    fig.update_layout(barmode="stack", yaxis_tickformat=".0%")
    return fig


def score_rank_chart(points: Sequence[Dict[str, float]], title: str = "Score vs rank") -> go.Figure:
    if not points:
        return go.Figure()
    df = pd.DataFrame(points)
    fig = px.scatter(df, x="rank", y="score", title=title, labels={"rank": "Rank", "score": "Score"})
    fig.update_traces(mode="lines+markers", marker={"size": 4})
    return fig


def grade_styles(grades: pd.DataFrame, config: Optional[AnalyticsConfig] = None) -> pd.DataFrame:
    """CSS background per cell of a grade-label table; empty cells get no style."""

    cfg = resolve(config)
    tokens = {label: colour for _, label, colour in cfg.grade_cutoffs}
    lowest_label, lowest_colour = cfg.lowest_grade
    tokens[lowest_label] = lowest_colour

    def _style(label: Any) -> str:
        colour = GRADE_TOKEN_COLORS.get(tokens.get(label, ""), "")
        return f"background-color: {colour}" if colour else ""

    return grades.apply(lambda column: column.map(_style))

"""Streamlit dashboard over the score analytics engine.

All statistics come from ``src/score_analytics``; this module only wires
uploads, selections and charts together.
"""

import logging
from typing import Dict, Optional

import pandas as pd
import streamlit as st

from score_analytics import plots
from score_analytics.columns import classify, find_total_column
from score_analytics.config import load_config
from score_analytics.correlation import paired_values, regress
from score_analytics.distribution import histogram, pass_stats
from score_analytics.grouping import class_balance, class_box_plots, class_score_buckets
from score_analytics.invariants import run_invariants
from score_analytics.io import load_history, read_csv
from score_analytics.metrics import (
    column_summary,
    combination_ranks,
    correlation_table,
    grade_table,
    is_summary_sheet,
    key_metrics,
    pass_rate_table,
    score_vs_rank,
    student_profile,
    subject_averages,
)
from score_analytics.ranking import guess_full_mark
from score_analytics.sheet import Sheet
from tools.generate_synthetic import generate_synthetic_sheet

logging.basicConfig(level=logging.INFO)

st.set_page_config(
    page_title="Score Analytics",
    layout="wide",
    page_icon="📊",
)

CONFIG = load_config()


def _render_header():
    st.title("Score Analytics")
    st.caption("Upload a score sheet or history export and explore distributions, ranks and correlations.")


def _load_sheets() -> Optional[Dict[str, Sheet]]:
    st.sidebar.subheader("1) Load data")
    uploaded = st.sidebar.file_uploader("Upload a CSV sheet or history JSON", type=["csv", "json"])

    if st.sidebar.button("Load sample data"):
        st.session_state["sheets"] = {"sample": generate_synthetic_sheet(seed=7)}

    if uploaded:
        try:
            if uploaded.name.lower().endswith(".json"):
                st.session_state["sheets"] = load_history(uploaded, config=CONFIG)
            else:
                st.session_state["sheets"] = {uploaded.name: read_csv(uploaded, name=uploaded.name)}
        except ValueError as exc:
            st.error(str(exc))
            return None
    return st.session_state.get("sheets")


def _show_metrics(sheet: Sheet, columns):
    metrics = key_metrics(sheet, columns, CONFIG)
    m1, m2, m3 = st.columns(3)
    m1.metric("Students", metrics["students"])
    m2.metric("Average total", f"{metrics['avg_total']:.1f}" if metrics["avg_total"] is not None else "-")
    m3.metric("Highest total", f"{metrics['max_total']:g}" if metrics["max_total"] is not None else "-")


def _render_distribution(columns):
    names = [col.name for col in columns]
    total_name = find_total_column(names, CONFIG)
    default = names.index(total_name) if total_name in names else 0
    choice = st.selectbox("Column", names, index=default, key="hist_col")
    col = columns[names.index(choice)]

    left, right = st.columns([2, 1])
    with left:
        st.plotly_chart(plots.histogram_chart(histogram(col.values, 15, CONFIG), f"{col.name} distribution"), use_container_width=True)
    with right:
        full_mark = guess_full_mark(col.name, CONFIG)
        stats = pass_stats(col.values, full_mark, CONFIG)
        if stats is None:
            st.info("Pass rates do not apply to total columns.")
        else:
            st.plotly_chart(plots.pass_rate_pie(stats, f"{col.name} (full mark {full_mark:g})"), use_container_width=True)


def _render_classes(sheet: Sheet, columns):
    names = [col.name for col in columns]
    choice = st.selectbox("Class comparison column", names, key="class_col")
    col = columns[names.index(choice)]

    boxes = class_box_plots(sheet, col, CONFIG)
    if not boxes:
        st.info("Add a class column to compare classes.")
        return
    st.plotly_chart(plots.class_box_chart(boxes, f"{col.name} by class"), use_container_width=True)

    buckets = class_score_buckets(sheet, col, CONFIG)
    bands = [label for label, _ in CONFIG.score_bands]
    st.plotly_chart(plots.score_bucket_heatmap(buckets, bands), use_container_width=True)

    balance = class_balance(sheet, columns, CONFIG)
    if balance:
        st.write("Subject balance (average as % of full mark)")
        table = pd.DataFrame(
            {label: {entry["subject"]: entry["normalized"] for entry in entries} for label, entries in balance.items()}
        ).T
        st.dataframe(table.round(1), use_container_width=True)


def _render_relationships(sheet: Sheet, columns):
    st.plotly_chart(plots.correlation_heatmap(correlation_table(sheet, columns)), use_container_width=True)

    names = [col.name for col in columns]
    if len(names) < 2:
        return
    total_name = find_total_column(names, CONFIG)
    left, right = st.columns(2)
    x_name = left.selectbox("X", names, index=0, key="reg_x")
    y_name = right.selectbox("Y", names, index=names.index(total_name) if total_name in names else 1, key="reg_y")

    x_col = columns[names.index(x_name)]
    y_col = columns[names.index(y_name)]
    xs, ys = paired_values(sheet, x_col.index, y_col.index)
    result = regress(xs, ys)
    st.plotly_chart(plots.regression_chart(xs, ys, result, x_name, y_name), use_container_width=True)
    if result is None:
        st.caption("Not enough varied data for a regression line.")


def _render_student(sheet: Sheet):
    if not sheet.rows:
        return
    idx = st.number_input("Student row", min_value=0, max_value=len(sheet.rows) - 1, value=0, step=1)
    st.dataframe(student_profile(sheet, int(idx), CONFIG), use_container_width=True)
    ranks = combination_ranks(sheet, int(idx), CONFIG)
    if ranks:
        st.write("Combination ranks")
        st.dataframe(pd.DataFrame(ranks), use_container_width=True)


def _render_graded_table(sheet: Sheet):
    df = sheet.to_dataframe()
    if not df.columns.is_unique:
        st.dataframe(df, use_container_width=True, height=320)
        return
    styles = plots.grade_styles(grade_table(sheet, CONFIG), CONFIG).reindex(index=df.index, columns=df.columns, fill_value="")
    st.caption("Cells are coloured by percentile grade within each column.")
    st.dataframe(df.style.apply(lambda _: styles, axis=None), use_container_width=True, height=320)


def main():
    _render_header()
    sheets = _load_sheets()

    if not sheets:
        st.info("Upload a file or use the sample data to get started.")
        return

    sheet_name = st.sidebar.selectbox("2) Sheet", list(sheets))
    sheet = sheets[sheet_name]

    with st.sidebar.expander("Checks"):
        st.dataframe(pd.DataFrame(run_invariants(sheet, CONFIG)), use_container_width=True)

    if is_summary_sheet(sheet, CONFIG):
        st.info("This looks like a summary table; showing it as-is.")
        st.dataframe(sheet.to_dataframe(), use_container_width=True)
        return

    columns = classify(sheet, CONFIG)
    if not columns:
        st.warning("No score columns detected.")
        return

    _show_metrics(sheet, columns)

    tab_dist, tab_class, tab_rel, tab_student, tab_data = st.tabs(["Distribution", "Classes", "Relationships", "Student", "Data"])
    with tab_dist:
        _render_distribution(columns)
        st.plotly_chart(plots.subject_average_bar(subject_averages(columns, CONFIG)), use_container_width=True)
        st.plotly_chart(plots.pass_rate_bar(pass_rate_table(columns, CONFIG)), use_container_width=True)
        st.plotly_chart(plots.score_rank_chart(score_vs_rank(sheet, config=CONFIG)), use_container_width=True)
    with tab_class:
        _render_classes(sheet, columns)
    with tab_rel:
        _render_relationships(sheet, columns)
    with tab_student:
        _render_student(sheet)
    with tab_data:
        st.dataframe(column_summary(columns), use_container_width=True)
        _render_graded_table(sheet)


if __name__ == "__main__":
    main()

import pytest

from score_analytics.columns import classify
from score_analytics.config import AnalyticsConfig
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
from score_analytics.sheet import Sheet


def test_is_summary_sheet(sample_sheet, synthetic_sheet):
    assert not is_summary_sheet(sample_sheet)
    assert not is_summary_sheet(synthetic_sheet)
    summary = Sheet(columns=sample_sheet.columns, rows=sample_sheet.rows, name="overview")
    assert is_summary_sheet(summary)


def test_key_metrics(sample_sheet):
    metrics = key_metrics(sample_sheet)
    assert metrics["students"] == 6
    assert metrics["total_column"] == "总分"
    assert metrics["avg_total"] == pytest.approx(281)
    assert metrics["max_total"] == 375


def test_key_metrics_without_total_column():
    sheet = Sheet(columns=("语文",), rows=((100,), (90,)))
    metrics = key_metrics(sheet)
    assert metrics["total_column"] is None
    assert metrics["avg_total"] is None


def test_column_summary(sample_sheet):
    df = column_summary(classify(sample_sheet))
    assert df["column"].tolist() == ["语文", "数学", "物理", "总分"]
    assert df["count"].tolist() == [5, 6, 5, 6]
    assert column_summary([]).empty


def test_subject_averages_sorted_and_skip_totals(sample_sheet):
    df = subject_averages(classify(sample_sheet))
    assert df["subject"].tolist() == ["数学", "语文", "物理"]
    assert df.loc[0, "average"] == pytest.approx(730 / 6)


def test_pass_rate_table(sample_sheet):
    df = pass_rate_table(classify(sample_sheet)).set_index("column")
    assert "总分" not in df.index
    assert df.loc["语文", ["excellent", "pass", "fail", "total"]].tolist() == [1, 4, 0, 5]
    assert df.loc["数学", ["excellent", "pass", "fail"]].tolist() == [3, 3, 0]
    assert df.loc["物理", "full_mark"] == 100
    assert df.loc["物理", "excellent"] == 2
    assert df.loc["语文", "excellent_rate"] == pytest.approx(0.2)
    assert df.loc["语文", "pass_rate"] == pytest.approx(1.0)


def test_student_profile(sample_sheet):
    df = student_profile(sample_sheet, 0).set_index("subject")
    assert list(df.index) == ["语文", "数学", "物理", "总分"]
    assert df["rank"].tolist() == [2, 2, 2, 2]
    assert df.loc["语文", "total"] == 5
    assert df.loc["语文", "percentile"] == pytest.approx(0.75)
    assert df.loc["数学", "percentile"] == pytest.approx(0.8)
    assert df.loc["语文", "grade"] == "A-"
    assert df.loc["语文", "color_token"] == "lime"
    assert bool(df.loc["总分", "is_composite"])
    assert not bool(df.loc["数学", "is_composite"])


def test_student_profile_skips_missing_scores(sample_sheet):
    df = student_profile(sample_sheet, 4)
    # physics is "缺考" for this student
    assert df["subject"].tolist() == ["语文", "数学", "总分"]


def test_student_profile_out_of_range(sample_sheet):
    assert student_profile(sample_sheet, 99).empty


def test_combination_ranks():
    sheet = Sheet(
        columns=("姓名", "总分", "校次", "语数英校次", "物理Rank"),
        rows=(("A", 300, 5, 3, "7"), ("B", 280, 6, None, 9)),
    )
    assert combination_ranks(sheet, 0) == [{"name": "语数英", "rank": 3}, {"name": "物理", "rank": 7}]
    assert combination_ranks(sheet, 1) == [{"name": "物理", "rank": 9}]
    assert combination_ranks(sheet, 5) == []


def test_grade_table(sample_sheet):
    df = grade_table(sample_sheet)
    assert df.shape == (6, 4)
    assert df.loc[3, "语文"] is None
    assert df.loc[4, "物理"] is None
    assert df.loc[2, "语文"] == "A+"
    assert df.loc[3, "总分"] == "D"


def test_score_vs_rank(sample_sheet):
    points = score_vs_rank(sample_sheet)
    assert [p["rank"] for p in points] == [1, 2, 3, 4, 5, 6]
    assert [p["score"] for p in points] == [375, 343, 321, 257, 220, 170]
    assert len(score_vs_rank(sample_sheet, limit=3)) == 3


def test_score_vs_rank_requires_both_columns():
    sheet = Sheet(columns=("语文", "总分"), rows=((100, 300),))
    assert score_vs_rank(sheet) == []


def test_correlation_table(sample_sheet):
    columns = classify(sample_sheet)
    df = correlation_table(sample_sheet, columns)
    names = [col.name for col in columns]
    assert list(df.index) == names
    for name in names:
        assert df.loc[name, name] == pytest.approx(1.0)
    assert df.loc["语文", "数学"] == pytest.approx(df.loc["数学", "语文"])
    assert df.loc["语文", "数学"] > 0.5


def _lowercase_total_sheet():
    rows = tuple((f"{1 + i % 2}班", 80 + i % 15, 400 + i) for i in range(20))
    return Sheet(columns=("Class", "Math", "total score"), rows=rows, name="成绩")


def test_lowercase_total_column_is_not_graded():
    sheet = _lowercase_total_sheet()
    columns = classify(sheet)
    assert key_metrics(sheet, columns)["total_column"] == "total score"

    df = pass_rate_table(columns)
    assert df["column"].tolist() == ["Math"]
    assert subject_averages(columns)["subject"].tolist() == ["Math"]


def test_combination_ranks_keep_fractional_values():
    sheet = Sheet(columns=("姓名", "校次", "物理Rank"), rows=(("A", 2, "3.5"), ("B", 1, "4.0")))
    assert combination_ranks(sheet, 0) == [{"name": "物理", "rank": 3.5}]
    assert combination_ranks(sheet, 1) == [{"name": "物理", "rank": 4}]
    assert isinstance(combination_ranks(sheet, 1)[0]["rank"], int)


def test_combination_ranks_use_configured_suffixes():
    sheet = Sheet(columns=("Name", "Position", "Science Position", "Math Rank"), rows=(("A", 4, 2, 7),))
    config = AnalyticsConfig(main_rank_columns=["Position"], rank_suffixes=["Position"])
    assert combination_ranks(sheet, 0, config) == [{"name": "Science", "rank": 2}]

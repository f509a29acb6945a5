import pandas as pd

from score_analytics import plots
from score_analytics.columns import classify
from score_analytics.correlation import paired_values, regress
from score_analytics.distribution import PassStats, histogram
from score_analytics.grouping import class_box_plots, class_score_buckets
from score_analytics.metrics import correlation_table, grade_table, pass_rate_table, score_vs_rank, subject_averages


def _column(sheet, name):
    return next(col for col in classify(sheet) if col.name == name)


def test_empty_inputs_give_empty_figures():
    assert len(plots.histogram_chart([]).data) == 0
    assert len(plots.pass_rate_pie(None).data) == 0
    assert len(plots.pass_rate_pie(PassStats(0, 0, 0, 0)).data) == 0
    assert len(plots.class_box_chart([]).data) == 0
    assert len(plots.correlation_heatmap(pd.DataFrame()).data) == 0
    assert len(plots.regression_chart([], [], None).data) == 0
    assert len(plots.subject_average_bar(pd.DataFrame()).data) == 0
    assert len(plots.score_bucket_heatmap(None, ["90%~"]).data) == 0


def test_distribution_figures(sample_sheet):
    chinese = _column(sample_sheet, "语文")
    assert len(plots.histogram_chart(histogram(chinese.values, 5)).data) == 1
    assert len(plots.pass_rate_pie(PassStats(1, 4, 0, 5)).data) == 1
    assert len(plots.subject_average_bar(subject_averages(classify(sample_sheet))).data) == 1


def test_class_figures(sample_sheet):
    total = _column(sample_sheet, "总分")
    fig = plots.class_box_chart(class_box_plots(sample_sheet, total))
    assert [trace.name for trace in fig.data] == ["2班", "1班", "3班", "Unclassified"]

    chinese = _column(sample_sheet, "语文")
    bands = ["90%~", "85%~90%", "80%~85%", "70%~80%", "60%~70%", "<60%"]
    assert len(plots.score_bucket_heatmap(class_score_buckets(sample_sheet, chinese), bands).data) == 1


def test_relationship_figures(sample_sheet):
    columns = classify(sample_sheet)
    assert len(plots.correlation_heatmap(correlation_table(sample_sheet, columns)).data) == 1

    xs, ys = paired_values(sample_sheet, 3, 6)
    fig = plots.regression_chart(xs, ys, regress(xs, ys), "语文", "总分")
    assert len(fig.data) == 2
    assert "R²" in fig.layout.title.text

    no_fit = plots.regression_chart([1, 1], [2, 3], None)
    assert len(no_fit.data) == 1


def test_pass_rate_and_rank_figures(sample_sheet):
    fig = plots.pass_rate_bar(pass_rate_table(classify(sample_sheet)))
    assert {trace.name for trace in fig.data} == {"Excellent", "Pass", "Fail"}
    assert list(fig.data[0].x) == ["语文", "数学", "物理"]
    assert len(plots.pass_rate_bar(pd.DataFrame()).data) == 0

    rank_fig = plots.score_rank_chart(score_vs_rank(sample_sheet))
    assert len(rank_fig.data) == 1
    assert list(rank_fig.data[0].x) == [1, 2, 3, 4, 5, 6]
    assert len(plots.score_rank_chart([]).data) == 0


def test_grade_styles_follow_grade_colours(sample_sheet):
    styles = plots.grade_styles(grade_table(sample_sheet))
    assert styles.shape == (6, 4)
    # top 语文 score is A+ (emerald); missing score has no style
    assert styles.loc[2, "语文"] == f"background-color: {plots.GRADE_TOKEN_COLORS['emerald']}"
    assert styles.loc[3, "语文"] == ""
    assert styles.loc[3, "总分"] == f"background-color: {plots.GRADE_TOKEN_COLORS['red']}"

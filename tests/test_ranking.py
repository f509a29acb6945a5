import pytest

from score_analytics.config import AnalyticsConfig
from score_analytics.ranking import grade_from_percentile, grade_from_raw_score, guess_full_mark, rank_of

POPULATION = [100, 90, 90, 70]


def test_rank_of_tied_score_takes_best_rank():
    stats = rank_of(90, POPULATION)
    assert stats.rank == 2
    assert stats.total == 4
    assert pytest.approx(stats.percentile, rel=1e-9) == 2 / 3


def test_rank_of_extremes():
    top = rank_of(100, POPULATION)
    assert (top.rank, top.percentile) == (1, 1.0)

    below = rank_of(60, POPULATION)
    assert (below.rank, below.percentile) == (4, 0.0)

    between = rank_of(95, POPULATION)
    assert between.rank == 2


def test_rank_of_empty_population():
    stats = rank_of(88, [])
    assert stats.to_dict() == {"rank": 0, "total": 0, "percentile": 0}


def test_rank_of_single_member_population_is_top():
    assert rank_of(80, [80]).percentile == 1
    assert rank_of(10, [80]).rank == 1


def test_rank_of_does_not_sort_or_mutate_population():
    population = [70, 90, 100]
    rank_of(90, population)
    assert population == [70, 90, 100]


@pytest.mark.parametrize(
    "percentile,label",
    [
        (1.0, "A+"),
        (0.95, "A+"),
        (0.9499, "A"),
        (0.85, "A"),
        (0.70, "A-"),
        (0.50, "B+"),
        (0.30, "B"),
        (0.15, "B-"),
        (0.05, "C"),
        (0.049, "D"),
        (0.0, "D"),
    ],
)
def test_grade_from_percentile_cutoffs(percentile, label):
    assert grade_from_percentile(percentile).label == label


def test_grade_attributes_carry_colour_tokens():
    assert grade_from_percentile(0.99).to_dict() == {"label": "A+", "colorToken": "emerald"}
    assert grade_from_percentile(0.0).color_token == "red"


def test_grade_from_raw_score():
    assert grade_from_raw_score(142.5, 150).label == "A+"
    assert grade_from_raw_score(60, 100).label == "B+"
    assert grade_from_raw_score(90, 0) is None
    assert grade_from_raw_score(90, -10) is None


def test_custom_grade_cutoffs():
    config = AnalyticsConfig(grade_cutoffs=[(0.5, "Pass", "green")], lowest_grade=("Fail", "red"))
    assert grade_from_percentile(0.6, config).label == "Pass"
    assert grade_from_percentile(0.4, config).label == "Fail"


@pytest.mark.parametrize(
    "name,mark",
    [
        ("总分", 0),
        ("Total", 0),
        ("12月语数英", 450),
        ("语文", 150),
        ("Math", 150),
        ("English Reading", 150),
        ("物理", 100),
        ("History", 100),
    ],
)
def test_guess_full_mark_defaults(name, mark):
    assert guess_full_mark(name) == mark


def test_guess_full_mark_is_overridable():
    config = AnalyticsConfig(
        full_mark_rules=[(r"Physics", 120.0)],
        full_mark_overrides={"Math": 200.0},
        default_full_mark=50.0,
    )
    assert guess_full_mark("Physics", config) == 120
    assert guess_full_mark("Math", config) == 200
    assert guess_full_mark("Art", config) == 50


def test_guess_full_mark_treats_any_total_case_as_total():
    assert guess_full_mark("total score") == 0
    assert guess_full_mark("TOTAL") == 0
    assert guess_full_mark("total score", AnalyticsConfig(full_mark_overrides={"total score": 600.0})) == 600

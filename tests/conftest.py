import pytest

from score_analytics.sheet import Sheet
from tools.generate_synthetic import generate_synthetic_sheet

SAMPLE_COLUMNS = ("班级", "姓名", "考号", "语文", "数学", "物理", "总分", "校次")

SAMPLE_ROWS = (
    ("1班", "Alex Kim", "001", 120, 135, 88, 343, 2),
    ("1班", "Riley Chen", "002", 90, "95", 72, 257, 4),
    ("2班", "Jordan Patel", "003", 138, 142, 95, 375, 1),
    ("2班", "Sam Lee", "004", None, 110, 60, 170, 6),
    (None, "Casey Wu", "005", 100, 120, "缺考", 220, 5),
    ("3班", "Drew Park", "006", 112, 128, 81, 321, 3),
)


@pytest.fixture()
def sample_sheet():
    return Sheet(columns=SAMPLE_COLUMNS, rows=SAMPLE_ROWS, name="成绩")


@pytest.fixture()
def synthetic_sheet():
    return generate_synthetic_sheet(n_students=120, n_classes=4, seed=11)

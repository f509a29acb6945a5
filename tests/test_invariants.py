from score_analytics.invariants import check_duplicate_headers, check_header, check_row_lengths, run_invariants
from score_analytics.sheet import Sheet


def _by_name(results):
    return {item["name"]: item for item in results}


def test_sample_sheet_passes_all_checks(sample_sheet):
    results = _by_name(run_invariants(sample_sheet))
    assert set(results) == {"header_present", "row_lengths", "numeric_columns", "class_column", "duplicate_headers"}
    assert all(item["ok"] for item in results.values())
    assert results["class_column"]["detail"] == "班级"
    assert results["numeric_columns"]["detail"] == "语文, 数学, 物理, 总分"


def test_ragged_rows_and_duplicates_are_flagged():
    sheet = Sheet(columns=("语文", "语文", "姓名"), rows=((90, 80, "A"), (70,), (60, 50, "B", "extra")))
    assert check_row_lengths(sheet) == 2
    assert check_duplicate_headers(sheet) == ["语文"]

    results = _by_name(run_invariants(sheet))
    assert not results["row_lengths"]["ok"]
    assert not results["duplicate_headers"]["ok"]
    assert not results["class_column"]["ok"]


def test_blank_header_fails():
    assert not check_header(Sheet(columns=(), rows=()))
    assert not check_header(Sheet(columns=("语文", " "), rows=()))
    empty = _by_name(run_invariants(Sheet(columns=(), rows=())))
    assert not empty["header_present"]["ok"]
    assert not empty["numeric_columns"]["ok"]

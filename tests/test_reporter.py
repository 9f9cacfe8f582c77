import pytest

from logics.reconciliation import classify_row
from logics.reporter import SlotDiff, kpi_lines, summarize


def _rows(value_rows, active_slots):
    return [classify_row(f"f{i}", values, active_slots) for i, values in enumerate(value_rows)]


def test_missing_cells_and_diff_percentages():
    rows = _rows([["1", "1", "1"], ["2", "3", ""]], 3)
    stats = summarize(rows, 3)

    assert stats.total_features == 2
    assert stats.same_count == 1
    assert stats.different_count == 1
    assert stats.partial_count == 0
    assert stats.missing_cell_count == 1

    file2 = stats.diff_for(2)
    assert (file2.diff_count, file2.compare_count) == (1, 2)
    assert file2.percent == 50.0
    assert file2.label == "50.0%"

    file3 = stats.diff_for(3)
    assert (file3.diff_count, file3.compare_count) == (0, 1)
    assert file3.label == "0.0%"


def test_zero_comparisons_is_zero_percent():
    sd = SlotDiff(slot=2, diff_count=0, compare_count=0)
    assert sd.percent == 0.0
    assert sd.label == "0%"


def test_blank_primary_cell_is_never_compared():
    stats = summarize(_rows([["", "a", "b"]], 3), 3)
    assert all(sd.compare_count == 0 for sd in stats.slot_diffs)


def test_four_slots_report_three_diffs():
    stats = summarize(_rows([["a", "a", "b", "c"], ["x", "y", "x", "x"]], 4), 4)
    assert [sd.slot for sd in stats.slot_diffs] == [2, 3, 4]
    assert stats.diff_for(2).label == "50.0%"
    assert stats.diff_for(4).label == "50.0%"
    with pytest.raises(KeyError):
        stats.diff_for(5)


def test_one_decimal_rounding():
    # 1 of 3 rows differ -> 33.3%
    stats = summarize(_rows([["a", "b", "a"], ["a", "a", "a"], ["c", "c", "c"]], 3), 3)
    assert stats.diff_for(2).label == "33.3%"
    assert stats.diff_for(2).percent == 33.3


def test_empty_run():
    stats = summarize([], 3)
    assert stats.total_features == 0
    assert stats.missing_cell_count == 0
    assert [sd.label for sd in stats.slot_diffs] == ["0%", "0%"]


def test_kpi_lines():
    stats = summarize(_rows([["1", "1", "1"], ["2", "3", ""]], 3), 3)
    assert kpi_lines(stats) == [
        "Total Features: 2",
        "Same (Green): 1",
        "Partial (Yellow): 0",
        "Different (Red): 1",
        "Missing Cells: 1",
        "File2 Diff: 50.0%",
        "File3 Diff: 0.0%",
    ]


@pytest.mark.parametrize("diffs, compares, label, percent", [
    (1, 16, "6.3%", 6.3),
    (5, 16, "31.3%", 31.3),
    (1, 8, "12.5%", 12.5),
    (3, 3, "100.0%", 100.0),
])
def test_ties_round_half_up(diffs, compares, label, percent):
    sd = SlotDiff(slot=2, diff_count=diffs, compare_count=compares)
    assert sd.label == label
    assert sd.percent == percent

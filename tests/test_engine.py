import threading
import zipfile
from datetime import datetime, timezone

import pytest

from logics.engine import ReconciliationEngine
from logics.errors import InsufficientSources, NoRunLoaded, UnknownFeature
from logics.reconciliation import AgreementClass


RUN_A = ["h\nA,1\nB,2", "h\nA,1\nB,2", "h\nA,1\nB,9"]
RUN_B = ["h\nX,1", "h\nX,1", "h\nX,1"]


def _write(tmp_path, name, text):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


def test_fewer_than_three_sources_rejected():
    engine = ReconciliationEngine()
    with pytest.raises(InsufficientSources):
        engine.load_sources(RUN_A[:2])
    with pytest.raises(InsufficientSources):
        engine.load_sources([RUN_A[0], None, RUN_A[2]])
    assert engine.state is None


def test_more_than_four_sources_rejected():
    with pytest.raises(InsufficientSources):
        ReconciliationEngine().load_sources(RUN_A + RUN_A)


def test_failed_run_keeps_previous_state():
    engine = ReconciliationEngine()
    first = engine.load_sources(RUN_A)
    with pytest.raises(InsufficientSources):
        engine.load_sources(RUN_B[:1])
    assert engine.state is first


def test_new_run_replaces_keys_and_overrides():
    engine = ReconciliationEngine()
    engine.load_sources(RUN_A)
    engine.set_final_value("B", "2")
    assert engine.overrides == {"B": "2"}

    state = engine.load_sources(RUN_B)
    assert engine.is_current(state)
    assert state.features == ["X"]
    assert dict(engine.overrides) == {}
    assert state.generation == 2


def test_fourth_slot_decision():
    engine = ReconciliationEngine()
    assert engine.load_sources(RUN_A + ["h"]).active_slots == 4
    assert engine.load_sources(RUN_A + [""]).active_slots == 4
    assert engine.load_sources(RUN_A + ["h\nA,1"], file4_supplied=False).active_slots == 3
    assert engine.load_sources(RUN_A + [None]).active_slots == 3
    with pytest.raises(InsufficientSources):
        engine.load_sources(RUN_A, file4_supplied=True)


def test_default_and_custom_source_names():
    engine = ReconciliationEngine()
    assert engine.load_sources(RUN_A).column_names == ["Data 1", "Data 2", "Data 3"]
    state = engine.load_sources(RUN_A, names=["a.csv", "", "c.csv"])
    assert state.column_names == ["a.csv", "Data 2", "c.csv"]


def test_overrides_do_not_reclassify():
    engine = ReconciliationEngine()
    state = engine.load_sources(RUN_A)
    engine.set_final_value("A", "edited")
    assert engine.state is state
    assert state.row_for("A").final_value == "1"
    assert '"A","edited"' in engine.export_csv()

    engine.clear_final_value("A")
    assert '"A","1"' in engine.export_csv()


def test_override_errors():
    engine = ReconciliationEngine()
    with pytest.raises(NoRunLoaded):
        engine.set_final_value("A", "x")
    with pytest.raises(NoRunLoaded):
        engine.export_csv()

    engine.load_sources(RUN_A)
    with pytest.raises(UnknownFeature):
        engine.set_final_value("missing", "x")
    with pytest.raises(KeyError):
        engine.set_final_value("missing", "x")


def test_separate_all_missing_engine_option():
    texts = ["h\nA,1\nE,"] * 4
    default = ReconciliationEngine().load_sources(texts)
    assert default.row_for("E").agreement is AgreementClass.DIFFERENT

    variant = ReconciliationEngine(separate_all_missing=True).load_sources(texts)
    assert variant.row_for("E").agreement is AgreementClass.ALL_MISSING
    assert variant.stats.all_missing_count == 1


def test_filter_features():
    engine = ReconciliationEngine()
    assert engine.filter_features("a") == []
    engine.load_sources(["h\nAlpha,1\nbeta,2", "h\ngamma,1", "h"])
    assert engine.filter_features("A") == ["Alpha", "beta", "gamma"]
    assert engine.filter_features("BET") == ["beta"]


def test_load_files(tmp_path):
    paths = {
        1: _write(tmp_path, "one.csv", "Feature,Data\nA,1\nB,2"),
        2: _write(tmp_path, "two.csv", "Feature,Data\nA,1\nB,3"),
        3: _write(tmp_path, "three.csv", "Feature,Data\nA,1"),
        4: _write(tmp_path, "four.csv", "Feature,Data\nA,2"),
    }
    progress = []
    state = ReconciliationEngine().load_files(paths, progress_callback=lambda *a: progress.append(a))

    assert state.active_slots == 4
    assert state.column_names == ["one.csv", "two.csv", "three.csv", "four.csv"]
    assert state.row_for("A").values == ("1", "1", "1", "2")
    assert state.row_for("B").values == ("2", "3", "", "")
    assert sorted(p[0] for p in progress) == [1, 2, 3, 4]
    assert all(p[1] == 4 for p in progress)


def test_unreadable_fourth_file_is_dropped(tmp_path):
    paths = {
        1: _write(tmp_path, "one.csv", "h\nA,1"),
        2: _write(tmp_path, "two.csv", "h\nA,1"),
        3: _write(tmp_path, "three.csv", "h\nA,1"),
        4: tmp_path / "missing.csv",
    }
    state = ReconciliationEngine().load_files(paths)
    assert state.active_slots == 3
    assert list(state.failures) == [4]
    assert state.row_for("A").agreement is AgreementClass.SAME


def test_unreadable_required_file_aborts_run(tmp_path):
    engine = ReconciliationEngine()
    previous = engine.load_sources(RUN_A)
    paths = {
        1: _write(tmp_path, "one.csv", "h\nA,1"),
        2: tmp_path / "missing.csv",
        3: _write(tmp_path, "three.csv", "h\nA,1"),
    }
    with pytest.raises(InsufficientSources) as excinfo:
        engine.load_files(paths)
    assert list(excinfo.value.failures) == [2]
    assert engine.state is previous


def test_unselected_required_slot(tmp_path):
    paths = {1: _write(tmp_path, "one.csv", "h\nA,1"), 2: None, 3: None}
    with pytest.raises(InsufficientSources):
        ReconciliationEngine().load_files(paths)


def test_last_run_wins_when_runs_overlap(tmp_path):
    engine = ReconciliationEngine()
    paths = {
        slot: _write(tmp_path, f"{slot}.csv", "h\nSlow,1")
        for slot in (1, 2, 3)
    }
    blocked = threading.Event()
    release = threading.Event()
    results = []

    def slow_progress(current, total, name):
        if current == 1:
            blocked.set()
            release.wait(timeout=5)

    worker = threading.Thread(
        target=lambda: results.append(engine.load_files(paths, progress_callback=slow_progress))
    )
    worker.start()
    assert blocked.wait(timeout=5)

    newer = engine.load_sources(RUN_B)
    release.set()
    worker.join(timeout=5)

    assert len(results) == 1
    stale = results[0]
    assert stale.generation < newer.generation
    assert not engine.is_current(stale)
    assert engine.state is newer


def test_export_to_csv_file(tmp_path):
    engine = ReconciliationEngine()
    engine.load_sources(RUN_A)
    engine.set_final_value("B", "2")
    now = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    path = engine.export_to_file(tmp_path, now=now)

    assert path.name == "final_data_2024-01-02_03-04-05.csv"
    assert path.read_text(encoding="utf-8") == 'Feature,Final Data\n"A","1"\n"B","2"\n'


def test_export_to_excel_file(tmp_path):
    pytest.importorskip("xlsxwriter")
    engine = ReconciliationEngine()
    engine.load_sources(RUN_A)
    now = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    path = engine.export_to_file(tmp_path, fmt="xlsx", now=now)

    assert path.name == "final_data_2024-01-02_03-04-05.xlsx"
    assert path.stat().st_size > 0


def test_export_unknown_format(tmp_path):
    engine = ReconciliationEngine()
    engine.load_sources(RUN_A)
    with pytest.raises(ValueError):
        engine.export_to_file(tmp_path, fmt="json")


def test_excel_export_keeps_values_as_text(tmp_path):
    pytest.importorskip("xlsxwriter")
    engine = ReconciliationEngine()
    engine.load_sources(["h\nA,=1+1\nB,http://example.com"] * 3)
    engine.set_final_value("A", "=SUM(1,2)")

    path = engine.export_to_file(tmp_path, fmt="xlsx")

    with zipfile.ZipFile(path) as book:
        sheet = book.read("xl/worksheets/sheet1.xml").decode("utf-8")
        strings = book.read("xl/sharedStrings.xml").decode("utf-8")
    assert "<f>" not in sheet
    assert "<hyperlink" not in sheet
    assert "=1+1" in strings
    assert "=SUM(1,2)" in strings
    assert "http://example.com" in strings

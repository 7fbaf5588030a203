from __future__ import annotations

import csv

from qse_architect.artifacts.comparison_writer import write_comparison_csv
from qse_architect.artifacts.counterfactual_writer import write_counterfactual
from qse_architect.artifacts.writers import write_baseline, write_model_logic
from qse_architect.workflow.merge import merge


def test_baseline_view_reads_parameters_defensively(tmp_path, result, location):
    value = result([location("1", name="Port", population=99.6)], parameters={})
    del value["totalWelfare"]
    path = tmp_path / "baseline.md"
    write_baseline(path, value)
    text = path.read_text(encoding="utf-8")
    assert "Total welfare: N/A" in text
    assert "Housing share (alpha): N/A" in text
    assert "| Port | 1.00 | 1.00 | 100 | $10.00 | $5.00 |" in text


def test_model_logic_view_keeps_math(tmp_path):
    path = tmp_path / "model.md"
    write_model_logic(path, "Why cities?", "$$Y_n = A_n L_n$$")
    assert "$$Y_n = A_n L_n$$" in path.read_text(encoding="utf-8")


def test_counterfactual_view_marks_unmatched_locations(tmp_path, result, location):
    baseline = result([location("1"), location("2")])
    counterfactual = result([location("1", population=110.0)], totalWelfare=1020.0)
    path = tmp_path / "cf.md"
    write_counterfactual(path, "City 1 +10%", baseline, counterfactual, merge(baseline["locations"], counterfactual["locations"]))
    text = path.read_text(encoding="utf-8")
    assert "Welfare change: +20.00" in text
    assert "| City 1 | 100 | 110 (+10.0%)" in text
    assert "| City 2 | 100 | N/A (n/a)" in text


def test_comparison_csv_quotes_names(tmp_path, location):
    path = tmp_path / "cmp.csv"
    write_comparison_csv(path, merge([location("1", name="Paris, FR")]))
    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines[1].startswith('1,"Paris, FR",100.00,,')


def test_comparison_csv_keeps_multiline_names_in_one_row(tmp_path, location):
    path = tmp_path / "cmp.csv"
    write_comparison_csv(path, merge([location("1", name="Port\nNorth"), location("2", name="Bay\rSide")]))
    with path.open(encoding="utf-8", newline="") as handle:
        rows = list(csv.reader(handle))
    assert len(rows) == 3
    assert rows[1][:3] == ["1", "Port\nNorth", "100.00"]
    assert rows[2][:3] == ["2", "Bay\rSide", "100.00"]
    assert all(len(row) == len(rows[0]) for row in rows)

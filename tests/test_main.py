from __future__ import annotations

import json

import pytest

from qse_architect.adapters.mock_adapter import MockAdapter
from qse_architect.main import build_adapter, main, parse_brief


def _run_dir(runs_dir):
    (run_dir,) = list(runs_dir.iterdir())
    return run_dir


def test_parse_brief_reads_front_matter():
    meta, body = parse_brief("---\ntitle: Test\nshocks:\n  - A +10%\n---\nWhy cities?\n")
    assert meta == {"title": "Test", "shocks": ["A +10%"]}
    assert body == "Why cities?"


def test_parse_brief_without_front_matter():
    assert parse_brief("Why cities?\n") == ({}, "Why cities?")
    assert parse_brief("---\ntitle: [unclosed\n---\nWhy cities?") == ({}, "Why cities?")


def test_build_adapter_mock_mode():
    assert isinstance(build_adapter("mock", "gemini"), MockAdapter)


def test_mock_run_writes_all_views(tmp_path):
    brief = tmp_path / "brief.md"
    brief.write_text(
        "---\ntitle: Largest city shock\nshocks:\n  - Increase productivity in City A by 20%\n"
        "  - Reduce amenity in Town D by 10%\n---\nAnalyze a productivity shock.\n",
        encoding="utf-8",
    )
    runs_dir = tmp_path / "runs"
    assert main(["--mode", "mock", "--brief", str(brief), "--runs-dir", str(runs_dir)]) == 0

    artifacts = _run_dir(runs_dir) / "artifacts"
    for name in [
        "model_logic.md",
        "baseline.json",
        "baseline.md",
        "analysis.md",
        "counterfactual_1.json",
        "counterfactual_2.json",
        "comparison_1.csv",
        "counterfactual_2.md",
        "run_summary.md",
    ]:
        assert (artifacts / name).exists(), name

    baseline = json.loads((artifacts / "baseline.json").read_text(encoding="utf-8"))
    assert len(baseline["locations"]) == 5
    assert "Housing share (alpha): 0.30" in (artifacts / "baseline.md").read_text(encoding="utf-8")

    csv_lines = (artifacts / "comparison_1.csv").read_text(encoding="utf-8").splitlines()
    assert csv_lines[0].startswith("id,name,population,population_cf,population_change_pct")
    assert len(csv_lines) == 6
    assert csv_lines[1].startswith("1,City A,320.00,416.00,30.00")

    summary = (artifacts / "run_summary.md").read_text(encoding="utf-8")
    assert "final_stage: COUNTERFACTUAL" in summary
    assert "counterfactuals: 2" in summary


def test_cli_shocks_override_brief(tmp_path):
    brief = tmp_path / "brief.md"
    brief.write_text("---\nshocks:\n  - Increase productivity in City A by 20%\n---\nWhy cities?\n", encoding="utf-8")
    runs_dir = tmp_path / "runs"
    args = ["--mode", "mock", "--brief", str(brief), "--runs-dir", str(runs_dir), "--shock", "Cut rents in City C by 5%"]
    assert main(args) == 0
    session = json.loads((_run_dir(runs_dir) / "inputs" / "session.json").read_text(encoding="utf-8"))
    assert session["shocks"] == ["Cut rents in City C by 5%"]


def test_missing_brief_is_created_from_template(tmp_path):
    brief = tmp_path / "new_brief.md"
    assert main(["--mode", "mock", "--brief", str(brief), "--runs-dir", str(tmp_path / "runs")]) == 0
    assert brief.read_text(encoding="utf-8").startswith("---\ntitle:")


def test_empty_problem_stops_with_failure(tmp_path, capsys):
    brief = tmp_path / "brief.md"
    brief.write_text("---\ntitle: Empty\n---\n\n", encoding="utf-8")
    assert main(["--mode", "mock", "--brief", str(brief), "--runs-dir", str(tmp_path / "runs")]) == 1
    assert "submit_problem failed: input is empty" in capsys.readouterr().out


def test_live_mode_requires_provider_key(tmp_path, monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.setattr("qse_architect.main.load_dotenv", lambda *args, **kwargs: False)
    brief = tmp_path / "brief.md"
    brief.write_text("Why cities?\n", encoding="utf-8")
    with pytest.raises(RuntimeError, match="OPENAI_API_KEY"):
        main(["--mode", "live", "--provider", "openai", "--brief", str(brief), "--runs-dir", str(tmp_path / "runs")])

from __future__ import annotations

from pathlib import Path
from typing import Dict, List

from qse_architect.utils.io import write_text
from qse_architect.workflow.merge import comparison_rows, welfare_change


def _num(value: float | None, pattern: str = "{:,.2f}") -> str:
    return "N/A" if value is None else pattern.format(value)


def _pct(value: float | None) -> str:
    return "n/a" if value is None else f"{value:+.1f}%"


def write_counterfactual(
    path: Path, shock: str, baseline: Dict, counterfactual: Dict, merged: List[Dict]
) -> None:
    before, after, delta = welfare_change(baseline, counterfactual)
    lines: List[str] = [
        "# Comparative Statics: Baseline vs Counterfactual",
        "",
        f"Shock: {shock.strip()}",
        "",
    ]
    if counterfactual.get("description"):
        lines.extend([f"**Analysis:** {counterfactual['description']}", ""])
    lines.extend(
        [
            f"- Baseline welfare: {_num(before)}",
            f"- Counterfactual welfare: {_num(after)}",
            f"- Welfare change: {_num(delta, '{:+,.2f}')}",
            "",
            "| Location | Population | Pop (CF) | Wages | Wages (CF) | Rents | Rents (CF) |",
            "| --- | --- | --- | --- | --- | --- | --- |",
        ]
    )
    for row in comparison_rows(merged):
        lines.append(
            f"| {row['name']} "
            f"| {_num(row['population'], '{:.0f}')} | {_num(row['population_cf'], '{:.0f}')} ({_pct(row['population_change_pct'])}) "
            f"| {_num(row['wages'])} | {_num(row['wages_cf'])} ({_pct(row['wages_change_pct'])}) "
            f"| {_num(row['rents'])} | {_num(row['rents_cf'])} ({_pct(row['rents_change_pct'])}) |"
        )
    write_text(path, "\n".join(lines) + "\n")

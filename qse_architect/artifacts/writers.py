from __future__ import annotations

from pathlib import Path
from typing import Dict, List

from qse_architect.gates.validator import get_parameter, get_welfare
from qse_architect.utils.io import write_text


def _fmt(value: float | None, pattern: str = "{:.2f}", missing: str = "N/A") -> str:
    if value is None:
        return missing
    return pattern.format(value)


def locations_table(locations: List[Dict]) -> List[str]:
    lines = [
        "| Location | Productivity (A) | Amenity (u) | Population | Wages | Rents |",
        "| --- | --- | --- | --- | --- | --- |",
    ]
    for row in locations:
        lines.append(
            f"| {row['name']} | {row['productivity']:.2f} | {row['amenity']:.2f} "
            f"| {round(row['population'])} | ${row['wages']:.2f} | ${row['rents']:.2f} |"
        )
    return lines


def write_model_logic(path: Path, problem: str, model_logic: str) -> None:
    lines = ["# Model Specification", "", f"> {problem.strip()}", "", model_logic.strip()]
    write_text(path, "\n".join(lines) + "\n")


def write_baseline(path: Path, result: Dict) -> None:
    lines: List[str] = ["# Baseline Equilibrium", ""]
    if result.get("description"):
        lines.extend([result["description"], ""])
    lines.extend(
        [
            f"- Total welfare: {_fmt(get_welfare(result), '{:,.2f}')}",
            f"- Housing share (alpha): {_fmt(get_parameter(result, 'alpha'))}",
            f"- Elasticity (sigma): {_fmt(get_parameter(result, 'sigma'))}",
            "",
            "## Spatial Distribution of Economic Activity",
            "",
        ]
    )
    lines.extend(locations_table(result.get("locations", [])))
    write_text(path, "\n".join(lines) + "\n")


def write_analysis(path: Path, report: str) -> None:
    write_text(path, "# Structural Analysis & Model Fit\n\n" + report.strip() + "\n")

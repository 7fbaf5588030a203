from __future__ import annotations

import csv
import io
from pathlib import Path
from typing import Dict, List

from qse_architect.utils.io import write_text
from qse_architect.workflow.merge import COMPARED_FIELDS, comparison_rows


def _cell(value: object) -> object:
    if value is None:
        return ""
    if isinstance(value, float):
        return f"{value:.2f}"
    return value


def write_comparison_csv(path: Path, merged: List[Dict]) -> None:
    header = ["id", "name"]
    for field in COMPARED_FIELDS:
        header.extend([field, f"{field}_cf", f"{field}_change_pct"])
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(header)
    for row in comparison_rows(merged):
        writer.writerow([_cell(row.get(column)) for column in header])
    write_text(path, buffer.getvalue())

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple

from qse_architect.gates.validator import get_welfare

COUNTERFACTUAL_KEY = "counterfactual"
COMPARED_FIELDS = ("population", "wages", "rents")


def merge(
    baseline: Iterable[Dict],
    counterfactual: Optional[Iterable[Dict]] = None,
) -> List[Dict]:
    """Attach counterfactual records to baseline records sharing their ``id``.

    Baseline order is kept. Counterfactual records without a baseline match
    are dropped; on duplicate counterfactual ids the last one wins.
    """
    lookup: Dict[str, Dict] = {}
    for record in counterfactual or []:
        lookup[record.get("id")] = record

    merged: List[Dict] = []
    for record in baseline:
        row = dict(record)
        row.pop(COUNTERFACTUAL_KEY, None)
        match = lookup.get(record.get("id"))
        if match is not None:
            row[COUNTERFACTUAL_KEY] = dict(match)
        merged.append(row)
    return merged


def _pct_change(before: object, after: object) -> float | None:
    if not isinstance(before, (int, float)) or not isinstance(after, (int, float)):
        return None
    if before == 0:
        return None
    return (after - before) / before * 100.0


def comparison_rows(merged: Iterable[Dict]) -> List[Dict]:
    rows: List[Dict] = []
    for record in merged:
        other = record.get(COUNTERFACTUAL_KEY) or {}
        row = {"id": record.get("id"), "name": record.get("name")}
        for field in COMPARED_FIELDS:
            row[field] = record.get(field)
            row[f"{field}_cf"] = other.get(field)
            row[f"{field}_change_pct"] = _pct_change(record.get(field), other.get(field))
        rows.append(row)
    return rows


def welfare_change(
    baseline: Dict | None, counterfactual: Dict | None
) -> Tuple[float | None, float | None, float | None]:
    before = get_welfare(baseline)
    after = get_welfare(counterfactual)
    delta = after - before if before is not None and after is not None else None
    return before, after, delta

from __future__ import annotations

import json
from functools import lru_cache
from importlib import resources
from typing import Any, Dict

from jsonschema import ValidationError, validate

from qse_architect.errors import SchemaError

SCHEMAS_DIR = resources.files("qse_architect") / "schemas"
RESULT_SCHEMA = "simulation_result.schema.json"


@lru_cache(maxsize=None)
def load_schema(name: str) -> Dict:
    return json.loads((SCHEMAS_DIR / name).read_text(encoding="utf-8"))


def validate_result(value: Any, step: str = "validate") -> Any:
    """Gate a parsed collaborator response against the simulation result schema.

    Returns ``value`` untouched. Optional fields are not defaulted.
    """
    try:
        validate(instance=value, schema=load_schema(RESULT_SCHEMA))
    except ValidationError as exc:
        location = "/".join(str(part) for part in exc.absolute_path) or "<root>"
        raise SchemaError(f"{location}: {exc.message}", step=step) from exc
    return value


def get_parameter(result: Dict, name: str) -> float | None:
    parameters = result.get("parameters") or {}
    value = parameters.get(name) if isinstance(parameters, dict) else None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def get_welfare(result: Dict | None) -> float | None:
    if not result:
        return None
    value = result.get("totalWelfare")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)

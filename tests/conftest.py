from __future__ import annotations

import copy
import threading
from typing import Dict, List, Optional

import pytest


def make_location(loc_id: str = "1", **overrides) -> Dict:
    record = {
        "id": loc_id,
        "name": f"City {loc_id}",
        "population": 100.0,
        "wages": 10.0,
        "rents": 5.0,
        "amenity": 1.0,
        "productivity": 1.0,
    }
    record.update(overrides)
    return record


def make_result(locations: Optional[List[Dict]] = None, **overrides) -> Dict:
    result = {
        "description": "Synthetic equilibrium",
        "locations": locations if locations is not None else [make_location("1"), make_location("2")],
        "parameters": {"alpha": 0.3, "sigma": 4.0},
        "totalWelfare": 1000.0,
    }
    result.update(overrides)
    return result


class FakeService:
    """Stands in for the generation service and counts every call."""

    def __init__(self) -> None:
        self.calls: List[str] = []
        self.model_logic = "$$U = B w r^{-\\alpha}$$"
        self.baseline = make_result()
        self.report = "Population follows productivity."
        self.counterfactual = make_result(
            [make_location("1", population=120.0, wages=12.0), make_location("2", population=80.0)],
            totalWelfare=1050.0,
        )
        self.fail_with: Optional[Exception] = None
        self.gate: Optional[threading.Event] = None
        self.entered = threading.Event()

    def _enter(self, name: str) -> None:
        self.calls.append(name)
        self.entered.set()
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.fail_with is not None:
            raise self.fail_with

    def generate_model_logic(self, problem: str) -> str:
        self._enter("model_logic")
        return self.model_logic

    def generate_synthetic_data(self, model_logic: str):
        self._enter("synthetic_data")
        return copy.deepcopy(self.baseline)

    def analyze_equilibrium(self, model_logic: str, data: Dict) -> str:
        self._enter("analysis")
        return self.report

    def run_counterfactual(self, data: Dict, shock: str):
        self._enter("counterfactual")
        return copy.deepcopy(self.counterfactual)


@pytest.fixture
def fake_service() -> FakeService:
    return FakeService()


@pytest.fixture
def location():
    return make_location


@pytest.fixture
def result():
    return make_result

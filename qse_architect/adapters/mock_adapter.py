from __future__ import annotations

import copy
import json
import re
from dataclasses import dataclass
from typing import Dict, List, Optional

from .llm_base import LLMAdapter, LLMResponse

BASELINE_LOCATIONS: List[Dict] = [
    {"id": "1", "name": "City A", "population": 320.0, "wages": 24.0, "rents": 14.5, "amenity": 1.10, "productivity": 1.45},
    {"id": "2", "name": "City B", "population": 210.0, "wages": 19.5, "rents": 10.2, "amenity": 1.25, "productivity": 1.20},
    {"id": "3", "name": "City C", "population": 150.0, "wages": 16.8, "rents": 8.1, "amenity": 0.95, "productivity": 1.05},
    {"id": "4", "name": "Town D", "population": 95.0, "wages": 14.2, "rents": 6.0, "amenity": 1.30, "productivity": 0.90},
    {"id": "5", "name": "Town E", "population": 60.0, "wages": 12.5, "rents": 4.7, "amenity": 1.05, "productivity": 0.80},
]

MODEL_LOGIC = """## Agents

Workers are freely mobile across $N$ locations and supply one unit of labor.
Firms produce a freely traded good under constant returns.

## Preferences

$$U_n = B_n \\left(\\frac{c_n}{1-\\alpha}\\right)^{1-\\alpha} \\left(\\frac{h_n}{\\alpha}\\right)^{\\alpha}$$

## Technology

$$Y_n = A_n L_n$$ so that $w_n = A_n$ in equilibrium.

## Equilibrium

1. Labor market clearing: $\\sum_n L_n = \\bar{L}$.
2. Housing market clearing: $r_n H_n = \\alpha w_n L_n$.
3. Spatial indifference: $B_n w_n r_n^{-\\alpha} = \\bar{U}$ for every populated $n$.
"""

ANALYSIS = """**Spatial indifference.** Real wages $w_n / r_n^{{\\alpha}}$ are close across the {count} locations.

**Drivers of density.** Population follows productivity more than amenities: the most productive location ({largest}) is also the largest.

**Wage-rent gradient.** Wages and rents rise together, consistent with housing absorbing part of the productivity premium.
"""

DECREASE_WORDS = ("decrease", "reduce", "cut", "fall", "drop", "lower")


@dataclass
class MockAdapter(LLMAdapter):
    scenario: str = "default"

    def complete(
        self,
        prompt: str,
        *,
        expect_json: bool = False,
        thinking_budget: Optional[int] = None,
    ) -> LLMResponse:
        task = self._task(prompt)
        if task == "model_logic":
            return LLMResponse(raw_text=MODEL_LOGIC)
        if task == "synthetic_data":
            return LLMResponse(raw_text=json.dumps(self._baseline_payload()))
        if task == "equilibrium_analysis":
            data = self._input(prompt).get("data") or {}
            locations = data.get("locations") or []
            largest = max(locations, key=lambda item: item.get("population", 0), default={})
            text = ANALYSIS.format(count=len(locations), largest=largest.get("name", "n/a"))
            return LLMResponse(raw_text=text)
        if task == "counterfactual_equilibrium":
            payload = self._input(prompt)
            return LLMResponse(
                raw_text=json.dumps(self._counterfactual(payload.get("data") or {}, payload.get("shock", "")))
            )
        raise RuntimeError(f"Mock adapter has no response for task: {task or 'unknown'}")

    def _task(self, prompt: str) -> str:
        first_line = prompt.strip().splitlines()[0] if prompt.strip() else ""
        if first_line.startswith("TASK:"):
            return first_line[len("TASK:"):].strip()
        return ""

    def _input(self, prompt: str) -> Dict:
        _, _, body = prompt.partition("\nINPUT:\n")
        try:
            parsed = json.loads(body)
        except json.JSONDecodeError:
            return {}
        return parsed if isinstance(parsed, dict) else {}

    def _baseline_payload(self) -> Dict:
        return {
            "description": "Five-location spatial equilibrium calibrated with a housing share of 0.3.",
            "parameters": {"alpha": 0.3, "sigma": 4.0},
            "locations": copy.deepcopy(BASELINE_LOCATIONS),
            "totalWelfare": 1000.0,
        }

    def _counterfactual(self, data: Dict, shock: str) -> Dict:
        locations = copy.deepcopy(data.get("locations") or [])
        if not locations:
            return {"description": "No locations to shock.", "parameters": {}, "locations": []}

        match = re.search(r"(\d+(?:\.\d+)?)\s*%", shock)
        share = float(match.group(1)) / 100.0 if match else 0.10
        if any(word in shock.lower() for word in DECREASE_WORDS):
            share = -share

        target = next(
            (item for item in locations if str(item.get("name", "")).lower() in shock.lower()),
            locations[0],
        )
        total_before = sum(item["population"] for item in locations)
        target["productivity"] = round(target["productivity"] * (1 + share), 4)
        target["wages"] = round(target["wages"] * (1 + share), 2)
        target["rents"] = round(target["rents"] * (1 + 1.2 * share), 2)
        target["population"] = target["population"] * (1 + 1.5 * share)

        others = [item for item in locations if item is not target]
        remaining = total_before - target["population"]
        others_total = sum(item["population"] for item in others)
        for item in others:
            if others_total:
                item["population"] = item["population"] * remaining / others_total
        for item in locations:
            item["population"] = round(item["population"], 2)

        welfare = data.get("totalWelfare")
        result = {
            "description": f"Counterfactual equilibrium after shock to {target['name']} ({share * 100:+.0f}%).",
            "parameters": dict(data.get("parameters") or {}),
            "locations": locations,
        }
        if isinstance(welfare, (int, float)):
            result["totalWelfare"] = round(welfare * (1 + 0.25 * share), 2)
        return result

from __future__ import annotations

import json
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Optional

from qse_architect.adapters.llm_base import LLMAdapter, LLMResponse
from qse_architect.errors import SchemaError
from qse_architect.gates.parsers import extract_json
from qse_architect.utils.io import write_json, write_text

PROMPTS_DIR = resources.files("qse_architect") / "prompts"

THINKING_BUDGETS = {
    "model_logic": 8192,
    "synthetic_data": 4096,
    "equilibrium_analysis": 2048,
    "counterfactual_equilibrium": 4096,
}


class GenerationService:
    """The four requests the workflow makes to the generation model.

    Text requests return the raw response text. Data requests return the
    parsed JSON value, unvalidated; gating it is the caller's job.
    """

    def __init__(
        self,
        adapter: LLMAdapter,
        prompts_dir=PROMPTS_DIR,
        raw_dir: Optional[Path] = None,
    ) -> None:
        self.adapter = adapter
        self.prompts_dir = prompts_dir
        self.templates = {
            task: (prompts_dir / f"{task}.md").read_text(encoding="utf-8") for task in THINKING_BUDGETS
        }
        self.raw_dir = raw_dir
        self._turns = 0

    def generate_model_logic(self, problem: str) -> str:
        response = self._run_turn("model_logic", {"problem": problem})
        return response.raw_text

    def generate_synthetic_data(self, model_logic: str) -> Any:
        response = self._run_turn("synthetic_data", {"model_logic": model_logic}, expect_json=True)
        return self._parse(response, "generate_data")

    def analyze_equilibrium(self, model_logic: str, data: Dict) -> str:
        response = self._run_turn("equilibrium_analysis", {"model_logic": model_logic, "data": data})
        return response.raw_text

    def run_counterfactual(self, data: Dict, shock: str) -> Any:
        response = self._run_turn(
            "counterfactual_equilibrium", {"data": data, "shock": shock}, expect_json=True
        )
        return self._parse(response, "run_counterfactual")

    def _run_turn(self, task: str, payload: Dict, expect_json: bool = False) -> LLMResponse:
        full_prompt = f"{self.templates[task]}\n\nINPUT:\n{json.dumps(payload)}\n"
        self._turns += 1
        prefix = f"turn{self._turns}_{task}"
        if self.raw_dir is not None:
            write_text(self.raw_dir / f"{prefix}_prompt.txt", full_prompt)
        print(f"[service] task={task} prompt_chars={len(full_prompt)}")
        response = self.adapter.complete(
            full_prompt,
            expect_json=expect_json,
            thinking_budget=THINKING_BUDGETS.get(task),
        )
        if not response.raw_text or not response.raw_text.strip():
            raise RuntimeError(f"Generation service returned no content for {task}.")
        if self.raw_dir is not None:
            write_text(self.raw_dir / f"{prefix}_raw.txt", response.raw_text)
            if response.usage:
                write_json(self.raw_dir / f"{prefix}_usage.json", response.usage)
        return response

    def _parse(self, response: LLMResponse, step: str) -> Any:
        try:
            return extract_json(response.raw_text)
        except ValueError as exc:
            raise SchemaError(str(exc), step=step) from exc

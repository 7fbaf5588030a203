from __future__ import annotations

import argparse
import json
import os
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import yaml
from dotenv import load_dotenv

from qse_architect.adapters.gemini_adapter import GeminiAdapter
from qse_architect.adapters.llm_base import LLMAdapter
from qse_architect.adapters.mock_adapter import MockAdapter
from qse_architect.adapters.openai_adapter import OpenAIAdapter
from qse_architect.artifacts.comparison_writer import write_comparison_csv
from qse_architect.artifacts.counterfactual_writer import write_counterfactual
from qse_architect.artifacts.writers import write_analysis, write_baseline, write_model_logic
from qse_architect.errors import WorkflowError
from qse_architect.service import GenerationService
from qse_architect.utils.io import read_text, utc_timestamp, write_json, write_text
from qse_architect.workflow.controller import WorkflowController
from qse_architect.workflow.stages import Stage, progress_line

DEFAULT_BRIEF_TEMPLATE = """---
title: Productivity shock in the largest city
shocks:
  - Increase productivity in City A by 20%
---
Analyze the impact of a productivity shock in the largest city on population distribution.
"""

PROVIDER_KEYS = {"gemini": "GEMINI_API_KEY", "openai": "OPENAI_API_KEY"}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="QSE Architect: guided spatial equilibrium workflow")
    parser.add_argument("--mode", choices=["mock", "live"], required=True)
    parser.add_argument("--brief", required=True, help="Markdown research brief with optional YAML front matter")
    parser.add_argument("--provider", choices=sorted(PROVIDER_KEYS), default=None)
    parser.add_argument("--shock", action="append", default=[], help="Counterfactual scenario (repeatable)")
    parser.add_argument("--runs-dir", default=None, help="Where run folders are created")
    parser.add_argument("--max-output-tokens", type=int, default=4096)
    parser.add_argument("--temperature", type=float, default=0.2)
    return parser


def parse_brief(content: str) -> Tuple[Dict, str]:
    if not content.startswith("---"):
        return {}, content.strip()
    parts = content.split("---", 2)
    if len(parts) < 3:
        return {}, content.strip()
    try:
        meta = yaml.safe_load(parts[1]) or {}
    except yaml.YAMLError:
        meta = {}
    if not isinstance(meta, dict):
        meta = {}
    return meta, parts[2].strip()


def _ensure_env(base_dir: Path, provider: str) -> None:
    load_dotenv(base_dir / ".env")
    key = PROVIDER_KEYS[provider]
    if not os.getenv(key):
        raise RuntimeError(
            f"Missing required API key: {key}. Create a .env file from .env.example and set the key."
        )


def build_adapter(mode: str, provider: str) -> LLMAdapter:
    if mode == "mock":
        return MockAdapter()
    if provider == "openai":
        return OpenAIAdapter()
    return GeminiAdapter()


def run_session(
    controller: WorkflowController,
    problem: str,
    shocks: Sequence[str],
    artifacts_dir: Path,
) -> List[Dict]:
    """Walk the controller through every stage and render each view."""
    state = controller.submit_problem(problem)
    print(f"[run] {progress_line(state.stage)}")
    write_model_logic(artifacts_dir / "model_logic.md", state.problem_statement, state.model_logic)

    state = controller.generate_data()
    print(f"[run] {progress_line(state.stage)}")
    write_json(artifacts_dir / "baseline.json", state.baseline)
    write_baseline(artifacts_dir / "baseline.md", state.baseline)

    state = controller.proceed_to_analysis()
    print(f"[run] {progress_line(state.stage)}")
    write_analysis(artifacts_dir / "analysis.md", state.analysis_report)

    state = controller.proceed_to_counterfactual()
    print(f"[run] {progress_line(state.stage)}")

    scenarios: List[Dict] = []
    for index, shock in enumerate(shocks, start=1):
        state = controller.run_counterfactual(shock)
        merged = controller.comparison()
        write_json(artifacts_dir / f"counterfactual_{index}.json", state.counterfactual)
        write_comparison_csv(artifacts_dir / f"comparison_{index}.csv", merged)
        write_counterfactual(
            artifacts_dir / f"counterfactual_{index}.md",
            shock,
            state.baseline,
            state.counterfactual,
            merged,
        )
        scenarios.append({"shock": shock, "welfare": state.counterfactual.get("totalWelfare")})
        print(f"[run] counterfactual {index}/{len(shocks)} done: {shock}")
    return scenarios


def _write_run_summary(path: Path, title: str, mode: str, provider: str, stage: Stage, scenarios: List[Dict]) -> None:
    lines = [
        "# Run Summary",
        "",
        f"- title: {title}",
        f"- mode: {mode}",
        f"- provider: {provider}",
        f"- final_stage: {stage.value}",
        f"- counterfactuals: {len(scenarios)}",
    ]
    for index, scenario in enumerate(scenarios, start=1):
        lines.append(f"  - {index}. {scenario['shock']} (welfare={scenario['welfare']})")
    write_text(path, "\n".join(lines) + "\n")


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    base_dir = Path(__file__).resolve().parents[1]
    runs_dir = Path(args.runs_dir) if args.runs_dir else base_dir / "runs"
    run_dir = runs_dir / utc_timestamp()
    inputs_dir = run_dir / "inputs"
    raw_dir = run_dir / "raw"
    artifacts_dir = run_dir / "artifacts"

    for path in [inputs_dir, raw_dir, artifacts_dir]:
        path.mkdir(parents=True, exist_ok=True)

    os.environ["QSE_MAX_OUTPUT_TOKENS"] = str(args.max_output_tokens)
    os.environ["QSE_TEMPERATURE"] = str(args.temperature)

    provider = args.provider or os.getenv("QSE_PROVIDER", "gemini")
    if provider not in PROVIDER_KEYS:
        raise RuntimeError(f"Unsupported provider: {provider}")
    if args.mode == "live":
        _ensure_env(base_dir, provider)

    brief_path = Path(args.brief)
    if not brief_path.exists():
        write_text(brief_path, DEFAULT_BRIEF_TEMPLATE)
        print(f"Brief template created at {brief_path}. Please edit it with your research question.")

    content = read_text(brief_path)
    write_text(inputs_dir / "brief.md", content)
    meta, problem = parse_brief(content)
    shocks = list(args.shock) or [str(item) for item in meta.get("shocks") or []]
    write_json(inputs_dir / "session.json", {"mode": args.mode, "provider": provider, "shocks": shocks})

    service = GenerationService(build_adapter(args.mode, provider), raw_dir=raw_dir)
    controller = WorkflowController(service)
    try:
        scenarios = run_session(controller, problem, shocks, artifacts_dir)
    except WorkflowError as exc:
        print(f"[run] {exc.user_message()}")
        print(f"[run] stopped at {progress_line(controller.stage)}; partial artifacts in {run_dir}")
        return 1

    _write_run_summary(
        artifacts_dir / "run_summary.md",
        str(meta.get("title") or brief_path.stem),
        args.mode,
        provider,
        controller.stage,
        scenarios,
    )
    print(f"[run] artifacts written to {artifacts_dir}")
    print(json.dumps({"run_dir": str(run_dir), "stage": controller.stage.value}))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

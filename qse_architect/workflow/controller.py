from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import replace
from typing import Any, Callable, Dict, Iterator, List

from qse_architect.errors import (
    BusyError,
    CollaboratorError,
    EmptyInputError,
    IllegalTransitionError,
    MissingPayloadError,
    WorkflowError,
)
from qse_architect.gates.validator import validate_result
from qse_architect.service import GenerationService
from qse_architect.workflow.merge import merge
from qse_architect.workflow.stages import Stage, StageMachine, WorkflowState


class WorkflowController:
    """Drives one research session through the five workflow stages.

    Each operation makes at most one generation call and either commits a
    complete new state or leaves the state exactly as it was. Only one
    operation may run at a time; a concurrent attempt raises ``BusyError``.
    """

    def __init__(self, service: GenerationService, machine: StageMachine | None = None) -> None:
        self.service = service
        self._machine = machine or StageMachine()
        self._lock = threading.Lock()
        self._in_flight = False

    @property
    def stage(self) -> Stage:
        return self._machine.stage

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def snapshot(self) -> WorkflowState:
        return replace(self._machine.state, in_flight=self._in_flight)

    def comparison(self) -> List[Dict]:
        state = self._machine.state
        if state.baseline is None:
            return []
        counterfactual = state.counterfactual["locations"] if state.counterfactual else None
        return merge(state.baseline["locations"], counterfactual)

    def submit_problem(self, text: str) -> WorkflowState:
        step = "submit_problem"
        with self._operation(step):
            if not text or not text.strip():
                raise EmptyInputError("Problem statement is empty.", step=step)
            self._require_stage(Stage.PROBLEM_DEFINITION, step)
            logic = self._call(step, self.service.generate_model_logic, text)
            self._machine.advance(
                Stage.MODEL_CONSTRUCTION,
                {"problem_statement": text, "model_logic": logic},
            )
        return self.snapshot()

    def generate_data(self) -> WorkflowState:
        step = "generate_data"
        with self._operation(step):
            self._require_stage(Stage.MODEL_CONSTRUCTION, step)
            raw = self._call(step, self.service.generate_synthetic_data, self._machine.state.model_logic)
            result = validate_result(raw, step=step)
            self._machine.advance(Stage.DATA_GENERATION, {"baseline": result})
        return self.snapshot()

    def proceed_to_analysis(self) -> WorkflowState:
        step = "proceed_to_analysis"
        with self._operation(step):
            state = self._machine.state
            if state.baseline is None:
                raise MissingPayloadError("Analysis needs a baseline equilibrium.", step=step)
            if state.stage is not Stage.ESTIMATION_ANALYSIS:
                self._require_stage(Stage.DATA_GENERATION, step)
                report = state.analysis_report
                if not report.strip():
                    report = self._call(
                        step, self.service.analyze_equilibrium, state.model_logic, state.baseline
                    )
                self._machine.advance(Stage.ESTIMATION_ANALYSIS, {"analysis_report": report})
        return self.snapshot()

    def proceed_to_counterfactual(self) -> WorkflowState:
        step = "proceed_to_counterfactual"
        with self._operation(step):
            self._require_stage(Stage.ESTIMATION_ANALYSIS, step)
            self._machine.advance(Stage.COUNTERFACTUAL)
        return self.snapshot()

    def run_counterfactual(self, shock_text: str) -> WorkflowState:
        step = "run_counterfactual"
        with self._operation(step):
            if not shock_text or not shock_text.strip():
                raise EmptyInputError("Shock description is empty.", step=step)
            self._require_stage(Stage.COUNTERFACTUAL, step)
            baseline = self._machine.state.baseline
            if baseline is None:
                raise MissingPayloadError("Counterfactuals need a baseline equilibrium.", step=step)
            raw = self._call(step, self.service.run_counterfactual, baseline, shock_text)
            result = validate_result(raw, step=step)
            self._machine.update({"counterfactual_shock": shock_text, "counterfactual": result})
        return self.snapshot()

    def reset_to(self, stage: Stage) -> WorkflowState:
        with self._operation("reset"):
            self._machine.reset_to(stage)
        return self.snapshot()

    @contextmanager
    def _operation(self, step: str) -> Iterator[None]:
        if not self._lock.acquire(blocking=False):
            raise BusyError("A workflow step is already in flight.", step=step)
        self._in_flight = True
        try:
            yield
        except (IllegalTransitionError, MissingPayloadError) as exc:
            print(f"[workflow] contract violation in {step}: {exc}")
            raise
        except WorkflowError as exc:
            print(f"[workflow] {exc.user_message()}")
            raise
        finally:
            self._in_flight = False
            self._lock.release()

    def _require_stage(self, expected: Stage, step: str) -> None:
        current = self._machine.stage
        if current is not expected:
            raise IllegalTransitionError(
                f"{step} requires stage {expected.value}, current stage is {current.value}.",
                step=step,
            )

    def _call(self, step: str, func: Callable[..., Any], *args: Any) -> Any:
        print(f"[workflow] {step}: calling generation service")
        try:
            return func(*args)
        except WorkflowError:
            raise
        except Exception as exc:
            raise CollaboratorError(f"{type(exc).__name__}: {exc}", step=step) from exc

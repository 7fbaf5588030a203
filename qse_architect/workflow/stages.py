from __future__ import annotations

from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Dict, List, Mapping, Tuple

from qse_architect.errors import IllegalTransitionError, MissingPayloadError


class Stage(str, Enum):
    PROBLEM_DEFINITION = "PROBLEM_DEFINITION"
    MODEL_CONSTRUCTION = "MODEL_CONSTRUCTION"
    DATA_GENERATION = "DATA_GENERATION"
    ESTIMATION_ANALYSIS = "ESTIMATION_ANALYSIS"
    COUNTERFACTUAL = "COUNTERFACTUAL"

    @property
    def position(self) -> int:
        return STAGE_ORDER.index(self)

    @property
    def label(self) -> str:
        return STAGE_LABELS[self]

    def successor(self) -> "Stage | None":
        position = self.position + 1
        if position >= len(STAGE_ORDER):
            return None
        return STAGE_ORDER[position]


STAGE_ORDER: Tuple[Stage, ...] = (
    Stage.PROBLEM_DEFINITION,
    Stage.MODEL_CONSTRUCTION,
    Stage.DATA_GENERATION,
    Stage.ESTIMATION_ANALYSIS,
    Stage.COUNTERFACTUAL,
)

STAGE_LABELS: Dict[Stage, str] = {
    Stage.PROBLEM_DEFINITION: "Problem",
    Stage.MODEL_CONSTRUCTION: "Modeling",
    Stage.DATA_GENERATION: "Simulation",
    Stage.ESTIMATION_ANALYSIS: "Analysis",
    Stage.COUNTERFACTUAL: "Counterfactual",
}

# Fields written when a stage is entered (or re-run while it is current).
STAGE_OUTPUTS: Dict[Stage, Tuple[str, ...]] = {
    Stage.PROBLEM_DEFINITION: (),
    Stage.MODEL_CONSTRUCTION: ("problem_statement", "model_logic"),
    Stage.DATA_GENERATION: ("baseline",),
    Stage.ESTIMATION_ANALYSIS: ("analysis_report",),
    Stage.COUNTERFACTUAL: ("counterfactual_shock", "counterfactual"),
}

# Fields that must be present, after the payload is applied, to enter a stage.
STAGE_REQUIREMENTS: Dict[Stage, Tuple[str, ...]] = {
    Stage.PROBLEM_DEFINITION: (),
    Stage.MODEL_CONSTRUCTION: ("problem_statement", "model_logic"),
    Stage.DATA_GENERATION: ("model_logic", "baseline"),
    Stage.ESTIMATION_ANALYSIS: ("baseline", "analysis_report"),
    Stage.COUNTERFACTUAL: ("baseline",),
}


@dataclass(frozen=True)
class WorkflowState:
    stage: Stage = Stage.PROBLEM_DEFINITION
    problem_statement: str = ""
    model_logic: str = ""
    baseline: Dict | None = None
    analysis_report: str = ""
    counterfactual_shock: str = ""
    counterfactual: Dict | None = None
    in_flight: bool = False


_FIELD_DEFAULTS = {
    item.name: item.default for item in fields(WorkflowState)
}


def _is_blank(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


class StageMachine:
    """Holds the workflow state and mediates every stage change.

    The state object is frozen; each commit builds a complete replacement and
    swaps the reference, so readers only ever see committed states.
    """

    def __init__(self, state: WorkflowState | None = None) -> None:
        self._state = state or WorkflowState()

    @property
    def state(self) -> WorkflowState:
        return self._state

    @property
    def stage(self) -> Stage:
        return self._state.stage

    def advance(self, target: Stage, payload: Mapping[str, object] | None = None) -> WorkflowState:
        target = Stage(target)
        current = self._state.stage
        if current.successor() is not target:
            raise IllegalTransitionError(
                f"Cannot move from {current.value} to {target.value}.",
                step="advance",
            )
        candidate = self._apply(target, payload or {}, step="advance")
        missing = [
            name for name in STAGE_REQUIREMENTS[target] if _is_blank(getattr(candidate, name))
        ]
        if missing:
            raise MissingPayloadError(
                f"Entering {target.value} requires: {', '.join(missing)}.",
                step="advance",
            )
        self._state = replace(candidate, stage=target)
        return self._state

    def update(self, payload: Mapping[str, object]) -> WorkflowState:
        """Store fields produced by the current stage without moving."""
        self._state = self._apply(self._state.stage, payload, step="update")
        return self._state

    def reset_to(self, target: Stage) -> WorkflowState:
        """Return to ``target`` and clear everything produced after it."""
        target = Stage(target)
        if target.position > self._state.stage.position:
            raise IllegalTransitionError(
                f"Cannot reset forward from {self._state.stage.value} to {target.value}.",
                step="reset",
            )
        cleared: Dict[str, object] = {}
        for stage in STAGE_ORDER[target.position + 1:]:
            for name in STAGE_OUTPUTS[stage]:
                cleared[name] = _FIELD_DEFAULTS[name]
        self._state = replace(self._state, stage=target, **cleared)
        return self._state

    def _apply(self, stage: Stage, payload: Mapping[str, object], step: str) -> WorkflowState:
        allowed = STAGE_OUTPUTS[stage]
        unexpected: List[str] = [key for key in payload if key not in allowed]
        if unexpected:
            raise IllegalTransitionError(
                f"{stage.value} does not produce: {', '.join(sorted(unexpected))}.",
                step=step,
            )
        return replace(self._state, **dict(payload))


def progress_line(current: Stage) -> str:
    parts = []
    for stage in STAGE_ORDER:
        if stage.position < current.position:
            marker = "[x]"
        elif stage is current:
            marker = "[>]"
        else:
            marker = "[ ]"
        parts.append(f"{marker} {stage.label}")
    return " -> ".join(parts)

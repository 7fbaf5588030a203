from __future__ import annotations


class WorkflowError(Exception):
    """Base class for failures raised by the stage workflow.

    ``step`` names the operation that failed so a caller can tell the user
    which step to retry.
    """

    reason = "failed"

    def __init__(self, message: str, step: str = "workflow") -> None:
        super().__init__(message)
        self.step = step

    def user_message(self) -> str:
        return f"{self.step} failed: {self.reason} ({self})"


class EmptyInputError(WorkflowError):
    reason = "input is empty"


class SchemaError(WorkflowError):
    reason = "could not parse result"


class IllegalTransitionError(WorkflowError):
    reason = "illegal stage transition"


class MissingPayloadError(WorkflowError):
    reason = "required data is missing"


class CollaboratorError(WorkflowError):
    reason = "generation service call failed"


class BusyError(WorkflowError):
    reason = "another step is still running"

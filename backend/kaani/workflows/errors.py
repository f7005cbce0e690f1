# /kaani/workflows/errors.py

from typing import List, Optional


class KaAniError(Exception):
    """Base class for every error raised by the conversation engine."""


class FlowDefinitionError(KaAniError):
    """A flow package is missing, unreadable, or fails validation."""

    def __init__(self, message: str, path: Optional[str] = None, problems: Optional[List[str]] = None):
        super().__init__(message)
        self.path = path
        self.problems = problems or []

    def __str__(self) -> str:
        msg = super().__str__()
        if self.path:
            msg = f"{self.path} - {msg}"
        if self.problems:
            msg += "".join(f"\n  - {problem}" for problem in self.problems)
        return msg


class DanglingStepReferenceError(KaAniError):
    """A step's `next` points to a step id that does not exist (strict mode only)."""

    def __init__(self, step_id: str, target_id: str):
        super().__init__(f"Step '{step_id}' references unknown step '{target_id}'")
        self.step_id = step_id
        self.target_id = target_id


class GenerationError(KaAniError):
    """Every configured language backend failed to produce a reply."""

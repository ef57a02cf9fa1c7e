"""
Step trace and result types returned by the driver.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple

STATUS_COMPLETED = "completed"
STATUS_EMPTY_OUTPUT = "empty_output"
STATUS_FAILED = "failed"


@dataclass
class StepRecord:
    """One executed statement; appended when the statement starts, finished when it ends."""

    index: int
    kind: str
    line: Optional[int] = None
    summary: Dict[str, Any] = field(default_factory=dict)
    outcome: str = "running"
    error: Optional[str] = None
    duration_seconds: float = 0.0

    def to_dict(self, include_timing: bool = True) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "index": self.index,
            "kind": self.kind,
            "line": self.line,
            "summary": self.summary,
            "outcome": self.outcome,
            "error": self.error,
        }
        if include_timing:
            payload["duration_seconds"] = self.duration_seconds
        return payload


@dataclass(frozen=True)
class ExecutionResult:
    success: bool
    output: str = ""
    error: Optional[str] = None
    error_kind: Optional[str] = None
    status: str = STATUS_COMPLETED
    steps: Tuple[StepRecord, ...] = ()
    transcript: Tuple[Dict[str, Any], ...] = ()
    variables: Dict[str, Any] = field(default_factory=dict)
    bot_name: Optional[str] = None
    event: str = "input"
    handler_index: Optional[int] = None
    run_id: Optional[str] = None
    duration_seconds: float = 0.0

    def __post_init__(self) -> None:
        # Detach from the interpreter's live state.
        object.__setattr__(self, "steps", tuple(replace(step, summary=copy.deepcopy(step.summary)) for step in self.steps))
        object.__setattr__(self, "transcript", tuple(copy.deepcopy(list(self.transcript))))
        object.__setattr__(self, "variables", copy.deepcopy(self.variables))

    def to_dict(self, include_timing: bool = True) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "success": self.success,
            "status": self.status,
            "output": self.output,
            "steps": [step.to_dict(include_timing) for step in self.steps],
            "transcript": list(self.transcript),
            "variables": self.variables,
            "bot": self.bot_name,
            "event": self.event,
            "handler_index": self.handler_index,
            "run_id": self.run_id,
        }
        if self.error is not None:
            payload["error"] = self.error
            payload["error_kind"] = self.error_kind
        if include_timing:
            payload["duration_seconds"] = self.duration_seconds
        return payload

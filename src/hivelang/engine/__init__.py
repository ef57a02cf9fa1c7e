"""
Interpreter and execution driver.
"""

from .control import ExecutionControl
from .driver import (
    execute_hivelang_event,
    execute_hivelang_program,
    normalize_input,
    run_hivelang_program,
    select_bot,
    select_handler,
)
from .interpreter import ExecutionState, Interpreter, tool_result_value
from .models import STATUS_COMPLETED, STATUS_EMPTY_OUTPUT, STATUS_FAILED, ExecutionResult, StepRecord

__all__ = [
    "ExecutionControl",
    "ExecutionResult",
    "ExecutionState",
    "Interpreter",
    "StepRecord",
    "STATUS_COMPLETED",
    "STATUS_EMPTY_OUTPUT",
    "STATUS_FAILED",
    "execute_hivelang_event",
    "execute_hivelang_program",
    "normalize_input",
    "run_hivelang_program",
    "select_bot",
    "select_handler",
    "tool_result_value",
]

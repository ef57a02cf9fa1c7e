"""
HiveLang bot language: lexer, parser, interpreter and execution driver.
"""

from .engine import (  # noqa: F401
    ExecutionResult,
    StepRecord,
    execute_hivelang_event,
    execute_hivelang_program,
    run_hivelang_program,
)
from .lang import ValidationReport, validate_hivelang_program  # noqa: F401
from .runtime.context import ExecutionContext, ExecutionMetadata  # noqa: F401
from .tools.registry import ToolDescriptor, ToolResult, tool  # noqa: F401
from .version import LANGUAGE_VERSION, __version__  # noqa: F401

__all__ = [
    "lexer",
    "parser",
    "ast_nodes",
    "errors",
    "ExecutionContext",
    "ExecutionMetadata",
    "ExecutionResult",
    "StepRecord",
    "ToolDescriptor",
    "ToolResult",
    "ValidationReport",
    "execute_hivelang_event",
    "execute_hivelang_program",
    "run_hivelang_program",
    "tool",
    "validate_hivelang_program",
    "__version__",
    "LANGUAGE_VERSION",
]

"""
Custom error types for the HiveLang toolchain.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class HiveLangError(Exception):
    """Base error with optional location metadata."""

    message: str
    line: Optional[int] = None
    column: Optional[int] = None

    kind = "HiveLangError"

    def __str__(self) -> str:  # pragma: no cover - trivial
        location = ""
        if self.line is not None:
            location = f" (line {self.line}"
            if self.column is not None:
                location += f", column {self.column}"
            location += ")"
        return f"{self.message}{location}"

    def describe(self) -> str:
        """Render as '<kind>: <message> (line, column)' for result payloads."""
        return f"{self.kind}: {self}"


class LexError(HiveLangError):
    """Lexical analysis error."""

    kind = "LexError"


@dataclass
class ParseError(HiveLangError):
    """Grammar violation; parsing aborts and no partial AST is returned."""

    expected: Optional[str] = None
    found: Optional[str] = None

    kind = "ParseError"


class HiveRuntimeError(HiveLangError):
    """Raised while a handler is executing; aborts the rest of the handler."""

    kind = "RuntimeError"


class UnboundVariableError(HiveRuntimeError):
    kind = "UnboundVariableError"


class PropertyAccessError(HiveRuntimeError):
    kind = "PropertyError"


class HiveTypeError(HiveRuntimeError):
    kind = "TypeError"


@dataclass
class UnknownToolError(HiveRuntimeError):
    tool_name: Optional[str] = None

    kind = "UnknownToolError"


@dataclass
class ToolExecutionError(HiveRuntimeError):
    """A tool raised, returned success=false, or returned a malformed result."""

    tool_name: Optional[str] = None
    output: Any = None

    kind = "ToolExecutionError"


class MemoryBridgeError(HiveRuntimeError):
    kind = "MemoryBridgeError"


class ExecutionTimeoutError(HiveRuntimeError):
    kind = "TimeoutError"


class ExecutionCancelledError(HiveRuntimeError):
    kind = "CancelledError"


class NoHandlerMatchedError(HiveRuntimeError):
    kind = "NoHandlerMatched"


class MultipleBotsUnsupportedError(HiveRuntimeError):
    kind = "MultipleBotsUnsupported"

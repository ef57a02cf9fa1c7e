"""
Resolve and invoke tools with per-call deadlines and normalised results.
"""

from __future__ import annotations

import inspect
import time
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

from ..errors import HiveRuntimeError, ToolExecutionError, UnknownToolError
from ..observability.metrics import MetricsRegistry, default_metrics
from ..runtime.context import host_call
from ..runtime.values import render_value, to_value
from .observability import after_tool_call, before_tool_call
from .registry import Tool, ToolRegistry, ToolResult

if TYPE_CHECKING:  # pragma: no cover
    from ..engine.control import ExecutionControl
    from ..runtime.context import ExecutionContext


def normalize_tool_result(raw: Any, tool_name: str) -> ToolResult:
    """Accept a ToolResult or a mapping with success/output/data; anything else is malformed."""
    if isinstance(raw, ToolResult):
        success, output, data = raw.success, raw.output, raw.data
    elif isinstance(raw, Mapping) and "success" in raw:
        success, output, data = raw.get("success"), raw.get("output", ""), raw.get("data")
    else:
        raise ToolExecutionError(
            f"Tool '{tool_name}' returned a malformed result of type {type(raw).__name__}",
            tool_name=tool_name,
        )
    if not isinstance(success, bool):
        raise ToolExecutionError(f"Tool '{tool_name}' returned a non-boolean 'success'", tool_name=tool_name)
    if not isinstance(output, str):
        output = render_value(to_value(output))
    if data is not None:
        data = to_value(data)
        if not isinstance(data, dict):
            data = {"value": data}
    return ToolResult(success=success, output=output, data=data)


class ToolDispatcher:
    """
    Tool calls inside one run are strictly sequential: `invoke` is awaited
    to completion before the interpreter moves on.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        context: "ExecutionContext",
        control: "ExecutionControl",
        *,
        timeout_seconds: Optional[float] = None,
        logging_level: str | None = None,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        self.registry = registry
        self.context = context
        self.control = control
        self.timeout_seconds = timeout_seconds
        self.logging_level = logging_level
        self.metrics = metrics or default_metrics

    def resolve(self, name: str) -> Optional[Tool]:
        return self.registry.get(name)

    def require(self, name: str) -> Tool:
        tool = self.resolve(name)
        if tool is None:
            known = ", ".join(sorted(self.registry.list_names())) or "none"
            raise UnknownToolError(f"Unknown tool '{name}'. Registered tools: {known}.", tool_name=name)
        return tool

    async def invoke(self, tool: Tool, args: Dict[str, Any], *, name: str | None = None) -> ToolResult:
        tool_name = name or tool.name
        run_id = self.context.metadata.run_id
        before_tool_call(tool, {"tool": tool_name, "run_id": run_id, "args": args}, self.logging_level)
        started = time.monotonic()
        try:
            label = f"tool '{tool_name}'"
            raw = await self.control.guard(
                host_call(tool.run, to_value(args), self.context), timeout=self.timeout_seconds, label=label
            )
            if inspect.isawaitable(raw):
                # a plain `run` that hands back a coroutine
                raw = await self.control.guard(raw, timeout=self.timeout_seconds, label=label)
            result = normalize_tool_result(raw, tool_name)
        except HiveRuntimeError as exc:
            self._after(tool, tool_name, started, ok=False, error=exc.message)
            raise
        except Exception as exc:
            self._after(tool, tool_name, started, ok=False, error=str(exc))
            raise ToolExecutionError(
                f"Tool '{tool_name}' raised {type(exc).__name__}: {exc}", tool_name=tool_name
            ) from exc
        if not result.success:
            self._after(tool, tool_name, started, ok=False, error=result.output, output=result.output)
            raise ToolExecutionError(
                f"Tool '{tool_name}' failed: {result.output}", tool_name=tool_name, output=result.output
            )
        self._after(tool, tool_name, started, ok=True, output=result.output)
        return result

    def _after(self, tool: Tool, tool_name: str, started: float, *, ok: bool, error: str | None = None, output: Any = None) -> None:
        duration = time.monotonic() - started
        self.metrics.record_tool_call(tool_name, "ok" if ok else "error", duration)
        after_tool_call(
            tool,
            {"tool": tool_name, "ok": ok, "error": error, "output": output, "duration_seconds": duration},
            self.logging_level,
        )

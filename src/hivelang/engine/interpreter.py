"""
Tree-walking interpreter for one selected handler.

All per-run mutable state lives in `ExecutionState`, which the driver
creates and threads through every call; the interpreter holds no globals,
so independent runs can share nothing but a memory backend.
"""

from __future__ import annotations

import inspect
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from .. import ast_nodes
from ..config import EngineConfig
from ..errors import ExecutionCancelledError, HiveLangError, HiveRuntimeError, HiveTypeError, UnknownToolError
from ..memory.bridge import MemoryBridge
from ..memory.models import MemorySlot
from ..observability.logging_utils import redact_event, redact_metadata
from ..observability.metrics import MetricsRegistry, default_metrics
from ..runtime.context import ExecutionContext
from ..runtime.expressions import ExpressionEvaluator, VariableEnvironment
from ..runtime.values import render_value, value_type
from ..tools.dispatcher import ToolDispatcher
from ..tools.registry import ToolResult
from .control import ExecutionControl
from .models import StepRecord

logger = logging.getLogger("hivelang.engine")

StepCallback = Callable[[StepRecord], Any]

STEP_KINDS = {
    ast_nodes.SayStmt: "say",
    ast_nodes.AskAIStmt: "ask_ai",
    ast_nodes.SetStmt: "set",
    ast_nodes.CallStmt: "call",
    ast_nodes.IfStmt: "if",
    ast_nodes.LoopStmt: "loop",
    ast_nodes.RememberStmt: "remember",
    ast_nodes.RecallStmt: "recall",
}


@dataclass
class ExecutionState:
    env: VariableEnvironment
    output: List[str] = field(default_factory=list)
    steps: List[StepRecord] = field(default_factory=list)
    transcript: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def output_text(self) -> str:
        return "\n".join(self.output)


def tool_result_value(result: ToolResult) -> Dict[str, Any]:
    """Bind shape for tool results: data keys merged in, fixed keys win."""
    value: Dict[str, Any] = dict(result.data or {})
    value.update({"success": result.success, "output": result.output, "data": result.data})
    return value


class Interpreter:
    def __init__(
        self,
        dispatcher: ToolDispatcher,
        memory: MemoryBridge,
        control: ExecutionControl,
        context: ExecutionContext,
        *,
        config: EngineConfig,
        memory_slots: Optional[Dict[str, MemorySlot]] = None,
        on_step: Optional[StepCallback] = None,
        metrics: Optional[MetricsRegistry] = None,
    ) -> None:
        self.dispatcher = dispatcher
        self.memory = memory
        self.control = control
        self.context = context
        self.config = config
        self.memory_slots = memory_slots or {}
        self.on_step = on_step
        self.metrics = metrics or default_metrics
        self._handlers = {
            ast_nodes.SayStmt: self._execute_say,
            ast_nodes.AskAIStmt: self._execute_ask_ai,
            ast_nodes.SetStmt: self._execute_set,
            ast_nodes.CallStmt: self._execute_call,
            ast_nodes.IfStmt: self._execute_if,
            ast_nodes.LoopStmt: self._execute_loop,
            ast_nodes.RememberStmt: self._execute_remember,
            ast_nodes.RecallStmt: self._execute_recall,
        }

    async def execute(self, handler: ast_nodes.Handler, state: ExecutionState) -> None:
        await self.run_block(handler.body, state)

    async def run_block(self, body: List[ast_nodes.Statement], state: ExecutionState) -> None:
        for stmt in body:
            await self._execute_with_timing(stmt, state)

    async def _execute_with_timing(self, stmt: ast_nodes.Statement, state: ExecutionState) -> None:
        self.control.check("between statements")
        span = getattr(stmt, "span", None)
        step = StepRecord(index=len(state.steps), kind=STEP_KINDS[type(stmt)], line=span.line if span else None)
        state.steps.append(step)
        start = time.monotonic()
        try:
            await self._handlers[type(stmt)](stmt, state, step)
        except ExecutionCancelledError as exc:
            _locate(exc, stmt)
            step.outcome = "cancelled"
            step.error = exc.describe()
            raise
        except HiveRuntimeError as exc:
            _locate(exc, stmt)
            step.outcome = "error"
            step.error = exc.describe()
            raise
        else:
            step.outcome = "ok"
        finally:
            step.duration_seconds = time.monotonic() - start
            self.metrics.record_step(step.kind, step.duration_seconds, step.outcome == "ok")
            await self._emit(step)

    async def _emit(self, step: StepRecord) -> None:
        if self.on_step is None:
            return
        try:
            result = self.on_step(step)
            if inspect.isawaitable(result):
                await result
        except Exception:  # pragma: no cover - defensive logging path
            logger.debug("on_step callback raised", exc_info=True)

    def _evaluator(self, state: ExecutionState) -> ExpressionEvaluator:
        return ExpressionEvaluator(state.env)

    async def _execute_say(self, stmt: ast_nodes.SayStmt, state: ExecutionState, step: StepRecord) -> None:
        text = self._evaluator(state).render(stmt.expr)
        state.output.append(text)
        state.transcript.append({"type": "say", "payload": text})
        step.summary = redact_event({"text": text})

    async def _execute_ask_ai(self, stmt: ast_nodes.AskAIStmt, state: ExecutionState, step: StepRecord) -> None:
        evaluator = self._evaluator(state)
        prompt = evaluator.render(stmt.prompt)
        options = {key: evaluator.evaluate(expr) for key, expr in stmt.options.items()}
        model = options.pop("model", None) or self.config.default_model
        tool_name, tool = self._resolve_ai_tool()
        args: Dict[str, Any] = {"prompt": prompt, **options}
        if model is not None:
            args["model"] = model
        system_prompt = self.context.metadata.bot_system_prompt
        if system_prompt:
            args["system"] = system_prompt
        step.summary = redact_event({"tool": tool_name, "prompt": prompt, "model": model})
        state.transcript.append({"type": "call", "tool": tool_name, "args": redact_event(args)})
        result = await self.dispatcher.invoke(tool, args, name=tool_name)
        state.env.bind("result", tool_result_value(result))

    def _resolve_ai_tool(self):
        for name in self.config.ai_tools:
            tool = self.dispatcher.resolve(name)
            if tool is not None:
                return name, tool
        tried = ", ".join(self.config.ai_tools) or "none"
        raise UnknownToolError(f"No AI tool is registered for 'ask ai' (tried {tried})", tool_name=tried)

    async def _execute_set(self, stmt: ast_nodes.SetStmt, state: ExecutionState, step: StepRecord) -> None:
        value = self._evaluator(state).evaluate(stmt.expr)
        state.env.bind(stmt.name, value)
        slot = self.memory_slots.get(stmt.name)
        step.summary = {"name": stmt.name, "type": value_type(value), "persisted": slot is not None}
        if slot is not None:
            await self.memory.set(slot.key, value)

    async def _execute_call(self, stmt: ast_nodes.CallStmt, state: ExecutionState, step: StepRecord) -> None:
        step.summary = {"tool": stmt.tool, "bind_as": stmt.bind_as}
        tool = self.dispatcher.require(stmt.tool)
        evaluator = self._evaluator(state)
        args = {key: evaluator.evaluate(expr) for key, expr in stmt.args.items()}
        step.summary = redact_event({"tool": stmt.tool, "args": args, "bind_as": stmt.bind_as})
        state.transcript.append({"type": "call", "tool": stmt.tool, "args": redact_metadata(args)})
        result = await self.dispatcher.invoke(tool, args, name=stmt.tool)
        if stmt.bind_as:
            state.env.bind(stmt.bind_as, tool_result_value(result))

    async def _execute_if(self, stmt: ast_nodes.IfStmt, state: ExecutionState, step: StepRecord) -> None:
        condition = self._evaluator(state).evaluate_condition(stmt.condition, "Condition of 'if'")
        if condition:
            branch, body = "then", stmt.then_body
        elif stmt.else_body is not None:
            branch, body = "else", stmt.else_body
        else:
            branch, body = "none", []
        step.summary = {"condition": condition, "branch": branch}
        await self.run_block(body, state)

    async def _execute_loop(self, stmt: ast_nodes.LoopStmt, state: ExecutionState, step: StepRecord) -> None:
        collection = self._evaluator(state).evaluate(stmt.collection)
        if not isinstance(collection, list):
            raise HiveTypeError(f"'loop' needs an array to iterate over, got {value_type(collection)}")
        step.summary = {"item": stmt.item, "count": len(collection)}
        saved = state.env.shadow(stmt.item)
        try:
            for element in collection:
                state.env.bind(stmt.item, element)
                await self.run_block(stmt.body, state)
        finally:
            state.env.restore(saved)

    async def _execute_remember(self, stmt: ast_nodes.RememberStmt, state: ExecutionState, step: StepRecord) -> None:
        evaluator = self._evaluator(state)
        key = _memory_key(evaluator.evaluate(stmt.key))
        value = evaluator.evaluate(stmt.value)
        step.summary = {"key": key, "mode": stmt.mode, "type": value_type(value)}
        if stmt.mode == "append":
            await self.memory.append(key, value)
        else:
            await self.memory.set(key, value)

    async def _execute_recall(self, stmt: ast_nodes.RecallStmt, state: ExecutionState, step: StepRecord) -> None:
        key = _memory_key(self._evaluator(state).evaluate(stmt.key))
        value = await self.memory.get(key)
        state.env.bind(stmt.bind_as, value)
        step.summary = {"key": key, "bind_as": stmt.bind_as, "found": value is not None}


def _memory_key(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return render_value(value)
    raise HiveTypeError(f"Memory keys must be strings, got {value_type(value)}")


def _locate(exc: HiveLangError, stmt: Any) -> None:
    span = getattr(stmt, "span", None)
    if exc.line is None and span is not None:
        exc.line = span.line
        exc.column = span.column

"""
Execution driver: lex, parse, select a handler, interpret, assemble the result.

This is the only entry point hosts call. It never raises for program, tool
or memory failures; those come back as a failed ExecutionResult carrying the
partial step trace.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .. import ast_nodes
from ..config import EngineConfig, load_config
from ..errors import (
    HiveLangError,
    HiveRuntimeError,
    LexError,
    MultipleBotsUnsupportedError,
    NoHandlerMatchedError,
    ParseError,
)
from ..memory.bridge import MemoryBridge
from ..memory.store import InMemorySharedMemory
from ..observability.metrics import MetricsRegistry, default_metrics
from ..parser import Parser
from ..runtime.context import ExecutionContext
from ..runtime.expressions import ExpressionEvaluator, VariableEnvironment
from ..runtime.values import to_value
from ..tools.dispatcher import ToolDispatcher
from ..tools.registry import Tool, build_registry
from .control import ExecutionControl
from .interpreter import ExecutionState, Interpreter, StepCallback
from .models import STATUS_COMPLETED, STATUS_EMPTY_OUTPUT, STATUS_FAILED, ExecutionResult

logger = logging.getLogger("hivelang.engine")

DEFAULT_EVENT = "input"


def normalize_input(raw: Any) -> Dict[str, Any]:
    """A plain string becomes {"input": text}; mappings are copied as values."""
    if raw is None:
        return {}
    if isinstance(raw, str):
        return {"input": raw}
    if isinstance(raw, Mapping):
        return to_value(raw)
    return {"input": to_value(raw)}


def select_bot(program: ast_nodes.Program, config: EngineConfig, bot_name: str | None = None) -> ast_nodes.BotDecl:
    if bot_name is not None:
        for bot in program.bots:
            if bot.name == bot_name:
                return bot
        names = ", ".join(bot.name for bot in program.bots)
        raise HiveRuntimeError(f"No bot named '{bot_name}' in this program (found: {names})")
    if len(program.bots) > 1 and config.require_single_bot:
        names = ", ".join(bot.name for bot in program.bots)
        raise MultipleBotsUnsupportedError(f"Program declares {len(program.bots)} bots ({names}); exactly one is supported")
    return program.bots[0]


def select_handler(
    bot: ast_nodes.BotDecl, event: str, evaluator: ExpressionEvaluator
) -> Tuple[Optional[int], Optional[ast_nodes.Handler]]:
    """First handler for `event` in source order whose guard holds or which has none."""
    for index, handler in enumerate(bot.handlers):
        if handler.event != event:
            continue
        if handler.guard is None:
            return index, handler
        if evaluator.evaluate_condition(handler.guard, f"Guard of 'on {event}'"):
            return index, handler
    return None, None


async def execute_hivelang_program(
    source: str,
    input: Any = None,
    tools: Iterable[Tool] | None = None,
    context: ExecutionContext | None = None,
    *,
    event: str = DEFAULT_EVENT,
    initial_variables: Mapping[str, Any] | None = None,
    bot_name: str | None = None,
    config: EngineConfig | None = None,
    cancel_event: asyncio.Event | None = None,
    on_step: StepCallback | None = None,
    metrics: MetricsRegistry | None = None,
) -> ExecutionResult:
    cfg = config or load_config()
    metrics = metrics or default_metrics
    context = context or ExecutionContext(shared_memory=InMemorySharedMemory())
    run_id = context.metadata.run_id
    started = time.monotonic()

    try:
        program = Parser.from_source(source).parse_program()
    except (LexError, ParseError) as exc:
        logger.info("Run %s rejected before execution: %s", run_id, exc.describe())
        return _failed(exc, run_id=run_id, event=event, started=started)

    bot: Optional[ast_nodes.BotDecl] = None
    handler_index: Optional[int] = None
    state = ExecutionState(env=VariableEnvironment({"input": normalize_input(input)}))
    try:
        for name, value in (initial_variables or {}).items():
            state.env.bind(name, value)
        bot = select_bot(program, cfg, bot_name)
        control = ExecutionControl(cfg.execution_timeout_seconds, cancel_event)
        registry = build_registry(tools)
        dispatcher = ToolDispatcher(
            registry,
            context,
            control,
            timeout_seconds=cfg.tool_timeout_seconds,
            logging_level=cfg.tool_logging,
            metrics=metrics,
        )
        memory = MemoryBridge(context, control, timeout_seconds=cfg.tool_timeout_seconds)
        slots = memory.slots(bot.memory_blocks)
        for name, value in (await memory.hydrate(slots)).items():
            state.env.bind(name, value)

        handler_index, handler = select_handler(bot, event, ExpressionEvaluator(state.env))
        if handler is None:
            if not cfg.synthesize_fallback:
                raise NoHandlerMatchedError(f"No 'on {event}' handler of {bot.kind} '{bot.name}' matched the input")
            logger.info("Run %s: no handler matched, returning empty fallback", run_id)
        else:
            interpreter = Interpreter(
                dispatcher,
                memory,
                control,
                context,
                config=cfg,
                memory_slots=slots,
                on_step=on_step,
                metrics=metrics,
            )
            await interpreter.execute(handler, state)
    except HiveRuntimeError as exc:
        logger.info("Run %s failed: %s", run_id, exc.describe())
        result = _failed(
            exc,
            run_id=run_id,
            event=event,
            started=started,
            state=state,
            bot_name=bot.name if bot else None,
            handler_index=handler_index,
        )
        if bot is not None:
            metrics.record_run(bot.name, result.duration_seconds, False)
        return result

    output = state.output_text
    duration = time.monotonic() - started
    metrics.record_run(bot.name, duration, True)
    status = STATUS_COMPLETED if output else STATUS_EMPTY_OUTPUT
    logger.info("Run %s bot=%s handler=%s status=%s steps=%d", run_id, bot.name, handler_index, status, len(state.steps))
    return ExecutionResult(
        success=True,
        output=output,
        status=status,
        steps=state.steps,
        transcript=state.transcript,
        variables=state.env.snapshot(),
        bot_name=bot.name,
        event=event,
        handler_index=handler_index,
        run_id=run_id,
        duration_seconds=duration,
    )


async def execute_hivelang_event(
    source: str,
    event: str,
    input: Any = None,
    tools: Iterable[Tool] | None = None,
    context: ExecutionContext | None = None,
    **kwargs: Any,
) -> ExecutionResult:
    """Run the first matching `on <event>` handler instead of `on input`."""
    return await execute_hivelang_program(source, input, tools, context, event=event, **kwargs)


def run_hivelang_program(
    source: str,
    input: Any = None,
    tools: Iterable[Tool] | None = None,
    context: ExecutionContext | None = None,
    **kwargs: Any,
) -> ExecutionResult:
    """Synchronous wrapper for callers without a running event loop."""
    return asyncio.run(execute_hivelang_program(source, input, tools, context, **kwargs))


def _failed(
    exc: HiveLangError,
    *,
    run_id: str,
    event: str,
    started: float,
    state: ExecutionState | None = None,
    bot_name: str | None = None,
    handler_index: int | None = None,
) -> ExecutionResult:
    steps: List[Any] = state.steps if state is not None else []
    return ExecutionResult(
        success=False,
        output=state.output_text if state is not None else "",
        error=exc.describe(),
        error_kind=exc.kind,
        status=STATUS_FAILED,
        steps=steps,
        transcript=state.transcript if state is not None else [],
        variables=state.env.snapshot() if state is not None else {},
        bot_name=bot_name,
        event=event,
        handler_index=handler_index,
        run_id=run_id,
        duration_seconds=time.monotonic() - started,
    )

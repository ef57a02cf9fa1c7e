"""
Lightweight tool-call observability hooks and logging helpers.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List

from ..config import DEFAULT_TOOL_LOGGING_LEVEL
from ..observability.logging_utils import redact_metadata

logger = logging.getLogger("hivelang.tools")

_before_interceptors: List[Callable[[Any, dict[str, Any]], None]] = []
_after_interceptors: List[Callable[[Any, dict[str, Any]], None]] = []


def normalize_logging_level(raw: str | None) -> str:
    level = (raw or "").strip().lower()
    if level in {"debug", "info", "quiet"}:
        return level
    return DEFAULT_TOOL_LOGGING_LEVEL


def register_before_tool_call(func: Callable[[Any, dict[str, Any]], None]) -> None:
    _before_interceptors.append(func)


def register_after_tool_call(func: Callable[[Any, dict[str, Any]], None]) -> None:
    _after_interceptors.append(func)


def clear_tool_interceptors() -> None:
    _before_interceptors.clear()
    _after_interceptors.clear()


def _run_interceptors(interceptors: list[Callable[[Any, dict[str, Any]], None]], tool: Any, payload: dict[str, Any]) -> None:
    for func in list(interceptors):
        try:
            func(tool, payload)
        except Exception:  # pragma: no cover - defensive logging path
            logger.debug("Tool interceptor raised", exc_info=True)


def before_tool_call(tool: Any, request: dict[str, Any], level: str | None = None) -> None:
    level = normalize_logging_level(level)
    name = request.get("tool") or getattr(tool, "name", "<tool>")
    run_id = request.get("run_id")
    if level == "debug":
        logger.debug("Tool %s run=%s args=%s", name, run_id, redact_metadata(request.get("args") or {}))
    elif level == "info":
        logger.info("Tool %s run=%s", name, run_id)
    _run_interceptors(_before_interceptors, tool, request)


def after_tool_call(tool: Any, response: dict[str, Any], level: str | None = None) -> None:
    level = normalize_logging_level(level)
    name = response.get("tool") or getattr(tool, "name", "<tool>")
    ok = response.get("ok", True)
    error_msg = response.get("error")
    duration = response.get("duration_seconds")
    snippet = response.get("output")
    if level == "debug":
        logger.debug(
            "Tool %s completed ok=%s duration=%s error=%s output=%s",
            name,
            ok,
            duration,
            error_msg,
            (snippet[:200] if isinstance(snippet, str) else snippet),
        )
    elif level == "info":
        if not ok:
            logger.warning("Tool %s failed error=%s", name, error_msg)
    elif level == "quiet":
        if not ok:
            logger.error("Tool %s failed error=%s", name, error_msg)
    _run_interceptors(_after_interceptors, tool, response)

"""
Centralized configuration loader for the HiveLang engine.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

DEFAULT_TOOL_TIMEOUT_SECONDS = 15.0
DEFAULT_EXECUTION_TIMEOUT_SECONDS = 30.0
DEFAULT_AI_TOOLS: Tuple[str, ...] = ("ai.respond", "general.respond")
DEFAULT_TOOL_LOGGING_LEVEL = "info"


@dataclass
class EngineConfig:
    tool_timeout_seconds: float = DEFAULT_TOOL_TIMEOUT_SECONDS
    execution_timeout_seconds: Optional[float] = DEFAULT_EXECUTION_TIMEOUT_SECONDS
    require_single_bot: bool = True
    synthesize_fallback: bool = False
    ai_tools: Tuple[str, ...] = field(default_factory=lambda: DEFAULT_AI_TOOLS)
    default_model: Optional[str] = None
    tool_logging: str = DEFAULT_TOOL_LOGGING_LEVEL


def _env_float(environ: Mapping[str, str], name: str, default: float) -> float:
    try:
        value = float(environ.get(name, default))
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


def _env_bool(environ: Mapping[str, str], name: str, default: bool) -> bool:
    val = environ.get(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "on"}


def _env_list(environ: Mapping[str, str], name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    raw = environ.get(name)
    if not raw:
        return default
    items = tuple(part.strip() for part in raw.split(",") if part.strip())
    return items or default


def load_config(env: Optional[Mapping[str, str]] = None) -> EngineConfig:
    environ = env if env is not None else os.environ
    return EngineConfig(
        tool_timeout_seconds=_env_float(environ, "HIVELANG_TOOL_TIMEOUT_SECONDS", DEFAULT_TOOL_TIMEOUT_SECONDS),
        execution_timeout_seconds=_env_float(
            environ, "HIVELANG_EXECUTION_TIMEOUT_SECONDS", DEFAULT_EXECUTION_TIMEOUT_SECONDS
        ),
        require_single_bot=_env_bool(environ, "HIVELANG_REQUIRE_SINGLE_BOT", True),
        synthesize_fallback=_env_bool(environ, "HIVELANG_SYNTHESIZE_FALLBACK", False),
        ai_tools=_env_list(environ, "HIVELANG_AI_TOOLS", DEFAULT_AI_TOOLS),
        default_model=environ.get("HIVELANG_DEFAULT_MODEL") or None,
        tool_logging=(environ.get("HIVELANG_TOOL_LOGGING") or DEFAULT_TOOL_LOGGING_LEVEL).strip().lower(),
    )

"""Application factory that builds the FastAPI app with all wiring."""

from __future__ import annotations

from typing import Any, Iterable, Optional

from fastapi import FastAPI

from ..config import EngineConfig, load_config
from ..memory.store import SessionMemoryStore
from ..observability.metrics import MetricsRegistry, default_metrics
from ..version import __version__
from .routes.compile import build_compile_router
from .routes.health import build_health_router
from .routes.memory import build_memory_router
from .routes.run import build_run_router


def create_app(
    tools: Optional[Iterable[Any]] = None,
    config: Optional[EngineConfig] = None,
    memory_store: Optional[SessionMemoryStore] = None,
    metrics: Optional[MetricsRegistry] = None,
) -> FastAPI:
    """Create the dev server app; tools are fixed for the app's lifetime."""

    tool_list = list(tools or [])
    config = config or load_config()
    memory_store = memory_store or SessionMemoryStore()
    metrics = metrics or default_metrics

    app = FastAPI(title="HiveLang", version=__version__)
    app.state.tools = tool_list
    app.state.memory_store = memory_store
    app.include_router(build_health_router(metrics))
    app.include_router(build_compile_router(tool_list))
    app.include_router(build_run_router(tool_list, config, memory_store, metrics))
    app.include_router(build_memory_router(memory_store))
    return app


__all__ = ["create_app"]

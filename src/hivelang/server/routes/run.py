"""Execution route."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, List

from fastapi import APIRouter

from ...config import EngineConfig
from ...engine import execute_hivelang_program
from ...memory.store import SessionMemoryStore
from ...observability.metrics import MetricsRegistry
from ...runtime.context import ExecutionContext, ExecutionMetadata
from ..schemas import ExecuteRequest

logger = logging.getLogger("hivelang.server")


def build_run_router(
    tools: List[Any],
    config: EngineConfig,
    memory_store: SessionMemoryStore,
    metrics: MetricsRegistry,
) -> APIRouter:
    router = APIRouter()

    @router.post("/api/execute")
    async def api_execute(payload: ExecuteRequest) -> Dict[str, Any]:
        run_config = config
        if payload.timeout_seconds is not None:
            run_config = replace(config, execution_timeout_seconds=payload.timeout_seconds)
        context = ExecutionContext(
            metadata=ExecutionMetadata(
                bot_id=payload.bot_id or f"session-{payload.session_id}",
                user_id=payload.user_id,
                bot_name=payload.bot_name,
                bot_system_prompt=payload.bot_system_prompt,
            ),
            shared_memory=memory_store.for_session(payload.session_id),
        )
        result = await execute_hivelang_program(
            payload.source,
            payload.input,
            tools,
            context,
            event=payload.event,
            initial_variables=payload.initial_variables,
            bot_name=payload.bot_name,
            config=run_config,
            metrics=metrics,
        )
        logger.info("Execute session=%s run=%s status=%s", payload.session_id, result.run_id, result.status)
        return result.to_dict()

    return router


__all__ = ["build_run_router"]

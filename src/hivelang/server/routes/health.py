"""Health and metrics routes."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

from fastapi import APIRouter

from ...observability.metrics import MetricsRegistry
from ...version import LANGUAGE_VERSION, __version__


def build_health_router(metrics: MetricsRegistry) -> APIRouter:
    router = APIRouter()

    @router.get("/health")
    def health() -> Dict[str, str]:
        return {"status": "ok", "version": __version__, "language_version": LANGUAGE_VERSION}

    @router.get("/api/metrics")
    def api_metrics() -> Dict[str, Any]:
        return {
            "steps": {kind: asdict(snap) for kind, snap in metrics.get_step_metrics().items()},
            "runs": {name: asdict(snap) for name, snap in metrics.get_run_metrics().items()},
            "tool_latency": metrics.get_tool_latency(),
        }

    return router


__all__ = ["build_health_router"]

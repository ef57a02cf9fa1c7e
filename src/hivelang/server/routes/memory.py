"""Session memory routes for the dev server."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, HTTPException

from ...memory.store import SessionMemoryStore


def build_memory_router(memory_store: SessionMemoryStore) -> APIRouter:
    router = APIRouter()

    @router.get("/api/sessions")
    def api_sessions() -> Dict[str, Any]:
        return {"sessions": memory_store.session_ids(), "max_sessions": memory_store.max_sessions}

    @router.get("/api/sessions/{session_id}/memory")
    def api_session_memory(session_id: str) -> Dict[str, Any]:
        if session_id not in memory_store.session_ids():
            raise HTTPException(status_code=404, detail=f"Unknown session '{session_id}'")
        return {"session_id": session_id, "memory": memory_store.for_session(session_id).snapshot()}

    @router.post("/api/sessions/{session_id}/clear")
    def api_session_clear(session_id: str) -> Dict[str, Any]:
        if not memory_store.drop(session_id):
            raise HTTPException(status_code=404, detail=f"Unknown session '{session_id}'")
        return {"session_id": session_id, "cleared": True}

    return router


__all__ = ["build_memory_router"]

"""Parse and validation routes."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException

from ...errors import LexError, ParseError
from ...lang import validate_hivelang_program
from ...parser import parse_source
from ..schemas import ErrorDetail, ParseRequest, ValidateRequest


def error_detail(exc: LexError | ParseError) -> Dict[str, Any]:
    return ErrorDetail(kind=exc.kind, message=exc.message, line=exc.line, column=exc.column).model_dump()


def build_compile_router(tools: List[Any]) -> APIRouter:
    router = APIRouter()

    @router.post("/api/parse")
    def api_parse(payload: ParseRequest) -> Dict[str, Any]:
        try:
            program = parse_source(payload.source)
        except (LexError, ParseError) as exc:
            raise HTTPException(status_code=400, detail=error_detail(exc)) from exc
        return {"ast": asdict(program)}

    @router.post("/api/validate")
    def api_validate(payload: ValidateRequest) -> Dict[str, Any]:
        catalogue: List[Any] = list(tools)
        catalogue.extend(payload.tool_names or [])
        report = validate_hivelang_program(payload.source, tools=catalogue)
        return report.to_dict()

    return router


__all__ = ["build_compile_router"]

"""Pydantic schemas used by the FastAPI dev server."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field


class ParseRequest(BaseModel):
    source: str


class ValidateRequest(BaseModel):
    source: str
    tool_names: Optional[List[str]] = Field(
        default=None, description="Extra tool names or capabilities to treat as registered"
    )


class ExecuteRequest(BaseModel):
    source: str
    input: Union[Dict[str, Any], str, None] = None
    event: str = "input"
    session_id: str = "default"
    bot_id: Optional[str] = None
    user_id: Optional[str] = None
    bot_name: Optional[str] = None
    bot_system_prompt: Optional[str] = None
    initial_variables: Dict[str, Any] = Field(default_factory=dict)
    timeout_seconds: Optional[float] = Field(default=None, gt=0)


class ErrorDetail(BaseModel):
    kind: str
    message: str
    line: Optional[int] = None
    column: Optional[int] = None

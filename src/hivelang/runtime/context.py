"""
Execution context supplied by the host for one driver call.
"""

from __future__ import annotations

import asyncio
import inspect
import uuid
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Protocol, runtime_checkable


@runtime_checkable
class SharedMemory(Protocol):
    """Key-value backend behind `remember`/`recall`; methods may be sync or async."""

    def get(self, key: str) -> Any: ...

    def set(self, key: str, value: Any) -> Any: ...

    def append(self, key: str, value: Any) -> Any: ...


_METADATA_ALIASES = {
    "botId": "bot_id",
    "runId": "run_id",
    "userId": "user_id",
    "botSystemPrompt": "bot_system_prompt",
    "botName": "bot_name",
}


@dataclass
class ExecutionMetadata:
    bot_id: str = "local-bot"
    run_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    user_id: Optional[str] = None
    bot_system_prompt: Optional[str] = None
    bot_name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "ExecutionMetadata":
        """Accepts both host-style camelCase keys and snake_case keys."""
        kwargs: Dict[str, Any] = {}
        for key, value in (data or {}).items():
            name = _METADATA_ALIASES.get(key, key)
            if name in cls.__dataclass_fields__ and value is not None:
                kwargs[name] = str(value)
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "botId": self.bot_id,
            "runId": self.run_id,
            "userId": self.user_id,
            "botSystemPrompt": self.bot_system_prompt,
            "botName": self.bot_name,
        }


@dataclass
class ExecutionContext:
    """Read by the engine; only mutated through the shared memory calls."""

    metadata: ExecutionMetadata = field(default_factory=ExecutionMetadata)
    shared_memory: Optional[SharedMemory] = None


def host_call(func: Callable[..., Any], *args: Any) -> Awaitable[Any]:
    """
    Awaitable for a host-supplied callable (a tool's `run` or a memory
    backend method). Coroutine functions run on the loop; plain callables
    run in a worker thread so deadlines and cancellation can still fire
    while they block.
    """
    if inspect.iscoroutinefunction(func):
        return func(*args)
    return asyncio.to_thread(func, *args)

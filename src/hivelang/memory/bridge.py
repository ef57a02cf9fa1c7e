"""
Pass-through from remember/recall and memory blocks to the host's shared memory.

Nothing is cached: every read or write is a fresh round trip, so concurrent
runs sharing a key see last-write-wins.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional

from .. import ast_nodes
from ..errors import HiveRuntimeError, MemoryBridgeError
from ..runtime.context import host_call
from ..runtime.values import default_for_type, to_value
from .models import ANONYMOUS_OWNER, MemoryScope, MemorySlot

if TYPE_CHECKING:  # pragma: no cover
    from ..engine.control import ExecutionControl
    from ..runtime.context import ExecutionContext, SharedMemory


class MemoryBridge:
    def __init__(self, context: "ExecutionContext", control: "ExecutionControl", timeout_seconds: Optional[float] = None) -> None:
        self.backend: Optional["SharedMemory"] = context.shared_memory
        self.metadata = context.metadata
        self.control = control
        self.timeout_seconds = timeout_seconds

    def scoped_key(self, scope: MemoryScope | str, name: str) -> str:
        scope = MemoryScope(scope)
        if scope is MemoryScope.SESSION:
            owner = self.metadata.bot_id
        else:
            owner = self.metadata.user_id or ANONYMOUS_OWNER
        return f"{scope.value}:{owner}:{name}"

    def slots(self, blocks: Iterable[ast_nodes.MemoryBlock]) -> Dict[str, MemorySlot]:
        slots: Dict[str, MemorySlot] = {}
        for block in blocks:
            scope = MemoryScope(block.scope)
            for var in block.variables:
                slots[var.name] = MemorySlot(
                    name=var.name, scope=scope, key=self.scoped_key(scope, var.name), type_name=var.type_name
                )
        return slots

    async def get(self, key: str) -> Any:
        return to_value(await self._call("get", key))

    async def set(self, key: str, value: Any) -> None:
        await self._call("set", key, to_value(value))

    async def append(self, key: str, value: Any) -> None:
        await self._call("append", key, to_value(value))

    async def hydrate(self, slots: Dict[str, MemorySlot]) -> Dict[str, Any]:
        """Read each declared variable, falling back to its typed default."""
        values: Dict[str, Any] = {}
        for name, slot in slots.items():
            value = await self.get(slot.key)
            values[name] = default_for_type(slot.type_name) if value is None else value
        return values

    async def _call(self, method: str, key: str, *args: Any) -> Any:
        if self.backend is None:
            raise MemoryBridgeError(f"Cannot {method} '{key}': no shared memory backend is configured")
        if not isinstance(key, str):
            raise MemoryBridgeError(f"Memory keys must be strings, got {type(key).__name__}")
        try:
            result = await self.control.guard(
                host_call(getattr(self.backend, method), key, *args),
                timeout=self.timeout_seconds,
                label=f"memory {method} '{key}'",
            )
        except HiveRuntimeError:
            raise
        except Exception as exc:
            raise MemoryBridgeError(f"Memory {method} '{key}' failed: {type(exc).__name__}: {exc}") from exc
        return result

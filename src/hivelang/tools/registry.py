"""
Registry for tools.

A registry is built once per driver call from the host's tool list and
passed by reference; there is no global singleton.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, runtime_checkable

from ..runtime.context import host_call


@dataclass
class ToolResult:
    success: bool
    output: str = ""
    data: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"success": self.success, "output": self.output}
        if self.data is not None:
            payload["data"] = self.data
        return payload


@runtime_checkable
class Tool(Protocol):
    """
    Anything with `name`, `capability`, `description` and
    `run(input, context)`; `run` may be a plain function or a coroutine and
    may return a ToolResult or a mapping with success/output/data.
    """

    name: str
    capability: str
    description: str

    def run(self, input: Dict[str, Any], context: Any) -> Any: ...


@dataclass
class ToolDescriptor:
    name: str
    capability: str
    description: str = ""
    handler: Optional[Callable[[Dict[str, Any], Any], Any]] = field(default=None, repr=False)

    async def run(self, input: Dict[str, Any], context: Any) -> Any:
        if self.handler is None:
            raise NotImplementedError(f"Tool '{self.name}' has no handler")
        return await host_call(self.handler, input, context)


def tool(name: str, capability: str | None = None, description: str = "") -> Callable[[Callable[..., Any]], ToolDescriptor]:
    """Decorator turning `fn(input, context)` into a ToolDescriptor."""

    def wrap(func: Callable[..., Any]) -> ToolDescriptor:
        return ToolDescriptor(
            name=name,
            capability=capability or name,
            description=description or (func.__doc__ or "").strip(),
            handler=func,
        )

    return wrap


class ToolRegistry:
    def __init__(self) -> None:
        self._tools: Dict[str, Tool] = {}

    def register(self, tool: Tool, key: str | None = None) -> None:
        self._tools[key or tool.name] = tool

    def get(self, name: str) -> Optional[Tool]:
        return self._tools.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    @property
    def tools(self) -> Dict[str, Tool]:
        """Expose registered tools for inspection/testing."""
        return self._tools

    def list_names(self) -> List[str]:
        return list(self._tools.keys())


def build_registry(tools: Iterable[Tool] | None) -> ToolRegistry:
    """
    Register every tool under its capability first, then under its name, so
    an exact name always wins over another tool's capability.
    """
    registry = ToolRegistry()
    tool_list = list(tools or [])
    for item in tool_list:
        _check_tool(item)
        capability = getattr(item, "capability", None)
        if capability:
            registry.register(item, capability)
    for item in tool_list:
        registry.register(item, item.name)
    return registry


def _check_tool(item: Any) -> None:
    if not getattr(item, "name", None) or not callable(getattr(item, "run", None)):
        raise TypeError(f"Tool {item!r} must have a name and a callable run(input, context)")

"""
Tool registry, dispatcher and call observability.
"""

from .dispatcher import ToolDispatcher, normalize_tool_result
from .observability import clear_tool_interceptors, register_after_tool_call, register_before_tool_call
from .registry import Tool, ToolDescriptor, ToolRegistry, ToolResult, build_registry, tool

__all__ = [
    "Tool",
    "ToolDescriptor",
    "ToolDispatcher",
    "ToolRegistry",
    "ToolResult",
    "build_registry",
    "clear_tool_interceptors",
    "normalize_tool_result",
    "register_after_tool_call",
    "register_before_tool_call",
    "tool",
]

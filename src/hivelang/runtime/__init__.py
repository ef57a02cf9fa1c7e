"""
Runtime value model, expression evaluation and execution context.
"""

from .context import ExecutionContext, ExecutionMetadata, SharedMemory
from .expressions import ExpressionEvaluator, VariableEnvironment
from .values import render_value, to_value, value_type, values_equal

__all__ = [
    "ExecutionContext",
    "ExecutionMetadata",
    "SharedMemory",
    "ExpressionEvaluator",
    "VariableEnvironment",
    "render_value",
    "to_value",
    "value_type",
    "values_equal",
]

from __future__ import annotations

import difflib
from typing import Any, Dict, Iterator, Tuple

from .. import ast_nodes
from ..errors import HiveLangError, HiveTypeError, PropertyAccessError, UnboundVariableError
from .values import contains, get_property, render_value, require_bool, to_value, values_equal

_MISSING = object()


class VariableEnvironment:
    """Per-run variable environment; `$x` and `x` address the same slot."""

    def __init__(self, backing: Dict[str, Any] | None = None) -> None:
        self.values: Dict[str, Any] = {}
        for name, value in (backing or {}).items():
            self.bind(name, value)

    def has(self, name: str) -> bool:
        return _normalize(name) in self.values

    def bind(self, name: str, value: Any) -> None:
        self.values[_normalize(name)] = to_value(value)

    def resolve(self, name: str) -> Any:
        key = _normalize(name)
        if key in self.values:
            return self.values[key]
        message = f"I don't know what {key} is here. Bind it with 'set ${key} to ...' first."
        matches = difflib.get_close_matches(key, list(self.values.keys()), n=1, cutoff=0.6)
        if matches:
            message += f" Did you mean {matches[0]}?"
        raise UnboundVariableError(message)

    def shadow(self, name: str) -> Tuple[str, Any]:
        """Remember the current binding of `name` so a loop can restore it."""
        key = _normalize(name)
        return key, self.values.get(key, _MISSING)

    def restore(self, saved: Tuple[str, Any]) -> None:
        key, previous = saved
        if previous is _MISSING:
            self.values.pop(key, None)
        else:
            self.values[key] = previous

    def snapshot(self) -> Dict[str, Any]:
        return to_value(self.values)

    def __iter__(self) -> Iterator[str]:
        return iter(self.values)


def _normalize(name: str) -> str:
    return name[1:] if name.startswith("$") else name


class ExpressionEvaluator:
    """Runtime evaluator for HiveLang expressions."""

    def __init__(self, env: VariableEnvironment) -> None:
        self.env = env

    def evaluate(self, expr: ast_nodes.Expr) -> Any:
        try:
            return self._evaluate(expr)
        except HiveLangError as exc:
            _locate(exc, expr)
            raise

    def evaluate_condition(self, expr: ast_nodes.Expr, context: str) -> bool:
        value = self.evaluate(expr)
        try:
            return require_bool(value, context)
        except HiveTypeError as exc:
            _locate(exc, expr)
            raise

    def render(self, expr: ast_nodes.Expr) -> str:
        return render_value(self.evaluate(expr))

    def _evaluate(self, expr: ast_nodes.Expr) -> Any:
        if isinstance(expr, ast_nodes.Literal):
            return to_value(expr.value)
        if isinstance(expr, ast_nodes.VarRef):
            return self.env.resolve(expr.name)
        if isinstance(expr, ast_nodes.PropAccess):
            value = self._evaluate(expr.base)
            label = _label(expr.base)
            for field in expr.path:
                value = get_property(value, field, label)
                label = f"{label}.{field}"
            return value
        if isinstance(expr, ast_nodes.StringTemplate):
            return "".join(
                segment if isinstance(segment, str) else render_value(self._evaluate(segment))
                for segment in expr.segments
            )
        if isinstance(expr, ast_nodes.ListLiteral):
            return [self._evaluate(item) for item in expr.items]
        if isinstance(expr, ast_nodes.ObjectLiteral):
            return {key: self._evaluate(value) for key, value in expr.entries.items()}
        if isinstance(expr, ast_nodes.Contains):
            return contains(self._evaluate(expr.left), self._evaluate(expr.right))
        if isinstance(expr, ast_nodes.Equals):
            equal = values_equal(self._evaluate(expr.left), self._evaluate(expr.right))
            return not equal if expr.negated else equal
        if isinstance(expr, ast_nodes.Concat):
            return "".join(render_value(self._evaluate(part)) for part in expr.parts)
        if isinstance(expr, ast_nodes.Coalesce):
            try:
                left = self._evaluate(expr.left)
            except (UnboundVariableError, PropertyAccessError):
                left = None
            return self._evaluate(expr.right) if left is None else left
        if isinstance(expr, ast_nodes.BoolOp):
            return self._evaluate_bool_op(expr)
        raise HiveTypeError(f"Unsupported expression type {type(expr).__name__}")

    def _evaluate_bool_op(self, expr: ast_nodes.BoolOp) -> bool:
        if expr.op == "not":
            return not require_bool(self._evaluate(expr.operands[0]), "Operand of 'not'")
        short_circuit = expr.op == "or"
        for operand in expr.operands:
            if require_bool(self._evaluate(operand), f"Operand of '{expr.op}'") is short_circuit:
                return short_circuit
        return not short_circuit


def _label(expr: Any) -> str:
    if isinstance(expr, ast_nodes.VarRef):
        return expr.name
    return "value"


def _locate(exc: HiveLangError, expr: Any) -> None:
    span = getattr(expr, "span", None)
    if exc.line is None and span is not None:
        exc.line = span.line
        exc.column = span.column

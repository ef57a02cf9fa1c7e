"""
Runtime values.

HiveLang values are plain Python data: str, int/float, bool, list, dict and
None. `to_value` is the only way foreign data enters the engine; it copies
and normalises, so a bound array or object is never shared with a tool or
the caller and `set` always rebinds instead of mutating.
"""

from __future__ import annotations

import dataclasses
import difflib
import json
import numbers
from typing import Any, Dict, List, Mapping

from ..errors import HiveTypeError, PropertyAccessError

# Fields checked, in order, to find the text of a message-like object.
MESSAGE_TEXT_FIELDS = ("input", "message", "task", "text", "query", "prompt")

_TYPE_DEFAULTS: Dict[str, Any] = {
    "string": "",
    "str": "",
    "number": 0,
    "int": 0,
    "float": 0.0,
    "bool": False,
    "boolean": False,
    "array": [],
    "list": [],
    "object": {},
    "map": {},
}


def value_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    raise HiveTypeError(f"Unsupported runtime value of Python type {type(value).__name__}")


def to_value(obj: Any) -> Any:
    if obj is None or isinstance(obj, (bool, str, int, float)):
        return obj
    if isinstance(obj, numbers.Number):
        return float(obj)  # Decimal, Fraction
    if isinstance(obj, Mapping):
        return {str(key): to_value(val) for key, val in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_value(item) for item in obj]
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return to_value(dataclasses.asdict(obj))
    return str(obj)


def default_for_type(type_name: str) -> Any:
    default = _TYPE_DEFAULTS.get((type_name or "").lower())
    return to_value(default)


def render_value(value: Any) -> str:
    """String form used by `say`, templates and concatenation."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else repr(value)
    if isinstance(value, (int, str)):
        return str(value)
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def values_equal(left: Any, right: Any) -> bool:
    left_type, right_type = value_type(left), value_type(right)
    if left_type != right_type:
        return False
    if left_type == "array":
        return len(left) == len(right) and all(values_equal(a, b) for a, b in zip(left, right))
    if left_type == "object":
        return left.keys() == right.keys() and all(values_equal(left[k], right[k]) for k in left)
    return left == right


def message_text(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        for key in MESSAGE_TEXT_FIELDS:
            candidate = value.get(key)
            if isinstance(candidate, str):
                return candidate
    return None


def contains(haystack: Any, needle: Any) -> bool:
    """
    string: case-insensitive substring; array: membership by value;
    object: its message text when it has one, else key membership.
    """
    if isinstance(haystack, list):
        return any(values_equal(item, needle) for item in haystack)
    if isinstance(haystack, dict):
        text = message_text(haystack)
        if text is not None:
            return contains(text, needle)
        return isinstance(needle, str) and needle in haystack
    if isinstance(haystack, str):
        if not isinstance(needle, str):
            needle = render_value(needle)
        return needle.casefold() in haystack.casefold()
    raise HiveTypeError(f"'contains' needs a string, array or object on the left, got {value_type(haystack)}")


def require_bool(value: Any, context: str) -> bool:
    if isinstance(value, bool):
        return value
    raise HiveTypeError(f"{context} must be a boolean, got {value_type(value)} {describe_value(value)}")


def describe_value(value: Any, limit: int = 60) -> str:
    text = json.dumps(value, ensure_ascii=False) if not isinstance(value, str) else json.dumps(value)
    return text if len(text) <= limit else text[: limit - 3] + "..."


def build_missing_field_error(field: str, available: List[str], label: str) -> str:
    parts = [f"I don't know field '{field}' on {label}."]
    if available:
        parts.append(f"Available fields: {', '.join(available)}.")
        matches = difflib.get_close_matches(field, available, n=1, cutoff=0.6)
        if matches and matches[0] != field:
            parts.append(f"Did you mean {matches[0]}?")
    return " ".join(parts)


def get_property(value: Any, field: str, label: str) -> Any:
    """Fallible field lookup; raises PropertyAccessError instead of returning undefined."""
    if isinstance(value, dict):
        if field in value:
            return value[field]
        raise PropertyAccessError(build_missing_field_error(field, [str(k) for k in value.keys()], label))
    if isinstance(value, (list, str)):
        if field == "length":
            return len(value)
        if isinstance(value, list) and field.isdigit():
            index = int(field)
            if index < len(value):
                return value[index]
            raise PropertyAccessError(f"Index {index} is out of range for {label} (length {len(value)}).")
    raise PropertyAccessError(f"Cannot read '{field}' of {label}: it is {value_type(value)}, not an object.")

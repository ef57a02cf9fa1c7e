"""String template parsing.

Every string literal is split into literal text and `{expr}` holes here, once,
so evaluation is a simple fold over segments.
"""

from __future__ import annotations

from typing import List, Union

from ... import ast_nodes
from ...errors import LexError, ParseError
from ...lexer import Lexer, Token

__all__ = ["parse_template", "_parse_template_hole"]

_TEMPLATE_ESCAPES = {"{", "}", "\\"}


def _find_hole_end(text: str, start: int) -> int:
    depth = 0
    quote: str | None = None
    idx = start
    while idx < len(text):
        char = text[idx]
        if quote:
            if char == "\\":
                idx += 2
                continue
            if char == quote:
                quote = None
        elif char in {'"', "'"}:
            quote = char
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return idx
        idx += 1
    return -1


def parse_template(self, token: Token) -> ast_nodes.Expr:
    text = token.value or ""
    span = self._span(token)
    segments: List[Union[str, ast_nodes.Expr]] = []
    buffer: List[str] = []
    has_holes = False
    idx = 0
    while idx < len(text):
        char = text[idx]
        if char == "\\" and idx + 1 < len(text) and text[idx + 1] in _TEMPLATE_ESCAPES:
            buffer.append(text[idx + 1])
            idx += 2
            continue
        if char == "{":
            end = _find_hole_end(text, idx)
            if end < 0:
                raise self.error("Unterminated '{' in string template", token)
            hole = text[idx + 1 : end].strip()
            if not hole:
                raise self.error("Empty '{}' in string template; escape literal braces as \\{ and \\}", token)
            if buffer:
                segments.append("".join(buffer))
                buffer = []
            segments.append(self._parse_template_hole(hole, token))
            has_holes = True
            idx = end + 1
            continue
        buffer.append(char)
        idx += 1
    if not has_holes:
        return ast_nodes.Literal(value="".join(buffer), span=span)
    if buffer:
        segments.append("".join(buffer))
    return ast_nodes.StringTemplate(segments=segments, span=span)


def _parse_template_hole(self, hole: str, token: Token) -> ast_nodes.Expr:
    try:
        tokens = Lexer(hole).tokenize()
        sub = type(self)(tokens)
        expr = sub.parse_expression()
        if not sub.check("EOF"):
            raise sub.error("Unexpected trailing input", sub.peek())
    except (LexError, ParseError) as exc:
        raise self.error(f"Invalid template hole '{{{hole}}}': {exc.message}", token) from exc
    return _relocate(expr, token)


def _relocate(expr: ast_nodes.Expr, token: Token) -> ast_nodes.Expr:
    """Point spans inside a hole at the enclosing string literal."""
    span = ast_nodes.Span(line=token.line, column=token.column)
    stack = [expr]
    while stack:
        node = stack.pop()
        if hasattr(node, "span"):
            node.span = span
        for value in vars(node).values():
            if isinstance(value, list):
                stack.extend(item for item in value if hasattr(item, "span"))
            elif isinstance(value, dict):
                stack.extend(item for item in value.values() if hasattr(item, "span"))
            elif hasattr(value, "span") and value is not span:
                stack.append(value)
    return expr

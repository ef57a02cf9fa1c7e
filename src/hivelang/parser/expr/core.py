"""Expression parsing helpers.

These functions are attached to the `Parser` class as methods. They rely on
the Parser instance to supply token helpers (`consume`, `match_value`, etc.)
and build nodes from `ast_nodes`.

Precedence, loosest first: or, and, not, comparison (==, !=, contains),
+ (concatenation), ?? (coalescing), primary.
"""

from __future__ import annotations

from typing import Dict

from ... import ast_nodes

__all__ = [
    "parse_expression",
    "parse_or",
    "parse_and",
    "parse_not",
    "parse_comparison",
    "parse_concat",
    "parse_coalesce",
    "parse_primary",
    "parse_reference",
    "parse_list_literal",
    "parse_object_literal",
    "parse_object_entries",
]

# Keywords that read as variables when used in expression position.
REFERENCE_KEYWORDS = {"input", "output", "user", "session"}
OBJECT_KEY_TYPES = {"IDENT", "KEYWORD", "STRING"}


def parse_expression(self) -> ast_nodes.Expr:
    return self.parse_or()


def parse_or(self) -> ast_nodes.Expr:
    start = self.peek()
    operands = [self.parse_and()]
    while self.match_value("KEYWORD", "or"):
        operands.append(self.parse_and())
    if len(operands) == 1:
        return operands[0]
    return ast_nodes.BoolOp(op="or", operands=operands, span=self._span(start))


def parse_and(self) -> ast_nodes.Expr:
    start = self.peek()
    operands = [self.parse_not()]
    while self.match_value("KEYWORD", "and"):
        operands.append(self.parse_not())
    if len(operands) == 1:
        return operands[0]
    return ast_nodes.BoolOp(op="and", operands=operands, span=self._span(start))


def parse_not(self) -> ast_nodes.Expr:
    token = self.peek()
    if self.match_value("KEYWORD", "not"):
        operand = self.parse_not()
        return ast_nodes.BoolOp(op="not", operands=[operand], span=self._span(token))
    return self.parse_comparison()


def _is_comparison(token) -> bool:
    if token.type == "OP" and token.value in {"==", "!="}:
        return True
    return token.type == "KEYWORD" and token.value == "contains"


def parse_comparison(self) -> ast_nodes.Expr:
    start = self.peek()
    expr = self.parse_concat()
    token = self.peek()
    if not _is_comparison(token):
        return expr
    self.advance()
    right = self.parse_concat()
    if token.value == "contains":
        expr = ast_nodes.Contains(left=expr, right=right, span=self._span(start))
    else:
        expr = ast_nodes.Equals(left=expr, right=right, negated=token.value == "!=", span=self._span(start))
    if _is_comparison(self.peek()):
        raise self.error("Comparisons cannot be chained; combine them with 'and' or 'or'", self.peek())
    return expr


def parse_concat(self) -> ast_nodes.Expr:
    start = self.peek()
    parts = [self.parse_coalesce()]
    while self.check_value("OP", "+"):
        self.advance()
        parts.append(self.parse_coalesce())
    if len(parts) == 1:
        return parts[0]
    return ast_nodes.Concat(parts=parts, span=self._span(start))


def parse_coalesce(self) -> ast_nodes.Expr:
    start = self.peek()
    expr = self.parse_primary()
    while self.check_value("OP", "??"):
        self.advance()
        right = self.parse_primary()
        expr = ast_nodes.Coalesce(left=expr, right=right, span=self._span(start))
    return expr


def parse_primary(self) -> ast_nodes.Expr:
    token = self.peek()
    span = self._span(token)
    if token.type in {"STRING", "MULTILINE_STRING"}:
        self.advance()
        return self.parse_template(token)
    if token.type == "NUMBER":
        self.advance()
        raw = token.value or "0"
        value = float(raw) if "." in raw else int(raw)
        return ast_nodes.Literal(value=value, span=span)
    if token.type == "KEYWORD" and token.value in {"true", "false"}:
        self.advance()
        return ast_nodes.Literal(value=token.value == "true", span=span)
    if token.type == "IDENT" and token.value == "null":
        self.advance()
        return ast_nodes.Literal(value=None, span=span)
    if token.type in {"VARIABLE", "IDENT"} or (token.type == "KEYWORD" and token.value in REFERENCE_KEYWORDS):
        return self.parse_reference()
    if token.type == "LBRACKET":
        return self.parse_list_literal()
    if token.type == "LBRACE":
        return self.parse_object_literal()
    if self.match("LPAREN"):
        expr = self.parse_expression()
        self.consume("RPAREN", expected="')'")
        return expr
    raise self.error("Expected an expression", token, expected="an expression")


def parse_reference(self) -> ast_nodes.Expr:
    token = self.peek()
    is_reference = token.type in {"VARIABLE", "IDENT"} or (
        token.type == "KEYWORD" and token.value in REFERENCE_KEYWORDS
    )
    if not is_reference:
        raise self.error("Expected a variable reference", token, expected="a variable reference")
    self.advance()
    root, *path = (token.value or "").split(".")
    span = self._span(token)
    base = ast_nodes.VarRef(name=root, span=span)
    if not path:
        return base
    return ast_nodes.PropAccess(base=base, path=path, span=span)


def parse_list_literal(self) -> ast_nodes.Expr:
    start = self.consume("LBRACKET", expected="'['")
    items = []
    while not self.check("RBRACKET"):
        items.append(self.parse_expression())
        if not self.match("COMMA"):
            break
    self.consume("RBRACKET", expected="']'")
    return ast_nodes.ListLiteral(items=items, span=self._span(start))


def parse_object_literal(self) -> ast_nodes.Expr:
    start = self.peek()
    entries = self.parse_object_entries()
    return ast_nodes.ObjectLiteral(entries=entries, span=self._span(start))


def parse_object_entries(self) -> Dict[str, ast_nodes.Expr]:
    self.consume("LBRACE", expected="'{'")
    entries: Dict[str, ast_nodes.Expr] = {}
    while not self.check("RBRACE"):
        key_tok = self.peek()
        dotted = key_tok.type != "STRING" and "." in (key_tok.value or "")
        if key_tok.type not in OBJECT_KEY_TYPES or dotted:
            raise self.error("Expected an object key", key_tok, expected="an object key")
        self.advance()
        key = key_tok.value or ""
        if key in entries:
            raise self.error(f"Duplicate key '{key}' in object literal", key_tok)
        self.consume("COLON", expected="':'")
        entries[key] = self.parse_expression()
        if not self.match("COMMA"):
            break
    self.consume("RBRACE", expected="'}'")
    return entries

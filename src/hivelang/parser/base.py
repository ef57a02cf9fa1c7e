"""
Recursive-descent parser for HiveLang with one token of lookahead.
"""

from __future__ import annotations

from typing import List

from .. import ast_nodes
from ..errors import ParseError
from ..lexer import Lexer, Token
from .expr import core as expr_core
from .expr import templates as expr_templates
from .stmt import core as stmt_core
from .stmt import declarations as stmt_decl


def describe_token(token: Token) -> str:
    if token.type == "EOF":
        return "end of input"
    if token.type in {"STRING", "MULTILINE_STRING"}:
        return "string literal"
    return f"'{token.value}'"


class Parser:
    def __init__(self, tokens: List[Token]) -> None:
        self.tokens = tokens
        self.position = 0

    @classmethod
    def from_source(cls, source: str) -> "Parser":
        return cls(Lexer(source).tokenize())

    parse_program = stmt_decl.parse_program
    parse_bot = stmt_decl.parse_bot
    parse_memory_block = stmt_decl.parse_memory_block
    parse_tools_decl = stmt_decl.parse_tools_decl
    parse_handler = stmt_decl.parse_handler

    parse_block = stmt_core.parse_block
    parse_statement = stmt_core.parse_statement
    parse_say_statement = stmt_core.parse_say_statement
    parse_ask_statement = stmt_core.parse_ask_statement
    parse_set_statement = stmt_core.parse_set_statement
    parse_call_statement = stmt_core.parse_call_statement
    parse_if_statement = stmt_core.parse_if_statement
    parse_loop_statement = stmt_core.parse_loop_statement
    parse_remember_statement = stmt_core.parse_remember_statement
    parse_recall_statement = stmt_core.parse_recall_statement
    _parse_binding_name = stmt_core._parse_binding_name

    parse_expression = expr_core.parse_expression
    parse_or = expr_core.parse_or
    parse_and = expr_core.parse_and
    parse_not = expr_core.parse_not
    parse_comparison = expr_core.parse_comparison
    parse_concat = expr_core.parse_concat
    parse_coalesce = expr_core.parse_coalesce
    parse_primary = expr_core.parse_primary
    parse_reference = expr_core.parse_reference
    parse_list_literal = expr_core.parse_list_literal
    parse_object_literal = expr_core.parse_object_literal
    parse_object_entries = expr_core.parse_object_entries
    parse_template = expr_templates.parse_template
    _parse_template_hole = expr_templates._parse_template_hole

    def consume(self, token_type: str, value: str | None = None, expected: str | None = None) -> Token:
        token = self.peek()
        if token.type != token_type or (value is not None and token.value != value):
            label = expected or (f"'{value}'" if value is not None else token_type)
            raise self.error(f"Expected {label}", token, expected=label)
        self.advance()
        return token

    def consume_any(self, token_types: set[str], expected: str) -> Token:
        token = self.peek()
        if token.type not in token_types:
            raise self.error(f"Expected {expected}", token, expected=expected)
        self.advance()
        return token

    def match(self, token_type: str) -> bool:
        if self.check(token_type):
            self.advance()
            return True
        return False

    def match_value(self, token_type: str, value: str) -> bool:
        if self.check_value(token_type, value):
            self.advance()
            return True
        return False

    def check(self, token_type: str) -> bool:
        return self.peek().type == token_type

    def check_value(self, token_type: str, value: str) -> bool:
        token = self.peek()
        return token.type == token_type and token.value == value

    def peek(self) -> Token:
        return self.tokens[self.position]

    def peek_offset(self, offset: int) -> Token:
        idx = min(self.position + offset, len(self.tokens) - 1)
        return self.tokens[idx]

    def advance(self) -> Token:
        token = self.tokens[self.position]
        self.position = min(self.position + 1, len(self.tokens) - 1)
        return token

    def error(self, message: str, token: Token, expected: str | None = None) -> ParseError:
        found = describe_token(token)
        if expected is not None:
            message = f"{message}, found {found}"
        return ParseError(message, token.line, token.column, expected=expected, found=found)

    def _span(self, token: Token) -> ast_nodes.Span:
        return ast_nodes.Span(line=token.line, column=token.column)


def parse_source(source: str) -> ast_nodes.Program:
    """Parse helper for tests and tooling."""
    return Parser.from_source(source).parse_program()


parse = parse_source

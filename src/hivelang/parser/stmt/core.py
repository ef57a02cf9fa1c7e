"""Statement parsing helpers; each statement is chosen by its leading keyword."""

from __future__ import annotations

from typing import List, Set

from ... import ast_nodes

__all__ = [
    "parse_block",
    "parse_statement",
    "parse_say_statement",
    "parse_ask_statement",
    "parse_set_statement",
    "parse_call_statement",
    "parse_if_statement",
    "parse_loop_statement",
    "parse_remember_statement",
    "parse_recall_statement",
    "_parse_binding_name",
]

STATEMENT_KEYWORDS = {"say", "ask", "set", "call", "if", "loop", "remember"}


def parse_block(self, terminators: Set[str], owner: str) -> List[ast_nodes.Statement]:
    """Parse statements until one of the terminator keywords (left unconsumed)."""
    body: List[ast_nodes.Statement] = []
    while True:
        token = self.peek()
        if token.type == "KEYWORD" and token.value in terminators:
            return body
        if token.type == "EOF":
            expected = " or ".join(f"'{value}'" for value in sorted(terminators))
            raise self.error(f"Expected {expected} to close {owner}", token, expected=expected)
        body.append(self.parse_statement())


def parse_statement(self) -> ast_nodes.Statement:
    token = self.peek()
    if token.type == "KEYWORD" and token.value in STATEMENT_KEYWORDS:
        if token.value == "say":
            return self.parse_say_statement()
        if token.value == "ask":
            return self.parse_ask_statement()
        if token.value == "set":
            return self.parse_set_statement()
        if token.value == "call":
            return self.parse_call_statement()
        if token.value == "if":
            return self.parse_if_statement()
        if token.value == "loop":
            return self.parse_loop_statement()
        return self.parse_remember_statement()
    if token.type == "IDENT" and token.value == "recall":
        return self.parse_recall_statement()
    raise self.error("Expected a statement", token, expected="a statement")


def _parse_binding_name(self, context: str) -> str:
    token = self.peek()
    if token.type in {"VARIABLE", "IDENT"} and "." not in (token.value or ""):
        self.advance()
        return token.value or ""
    if token.type in {"VARIABLE", "IDENT"}:
        raise self.error(f"Cannot bind a property path in {context}; use a plain variable", token)
    raise self.error(f"Expected a variable name in {context}", token, expected="a variable name")


def parse_say_statement(self) -> ast_nodes.SayStmt:
    start = self.consume("KEYWORD", "say")
    return ast_nodes.SayStmt(expr=self.parse_expression(), span=self._span(start))


def parse_ask_statement(self) -> ast_nodes.AskAIStmt:
    start = self.consume("KEYWORD", "ask")
    if not self.match_value("IDENT", "ai"):
        raise self.error("Expected 'ai' after 'ask'", self.peek(), expected="'ai'")
    prompt = self.parse_expression()
    options = {}
    if self.match_value("KEYWORD", "with"):
        if self.check("LBRACE"):
            options = self.parse_object_entries()
        else:
            while True:
                key_tok = self.consume_any({"IDENT", "KEYWORD"}, "an option name")
                self.consume("COLON", expected="':'")
                options[key_tok.value or ""] = self.parse_expression()
                if not self.match("COMMA"):
                    break
    return ast_nodes.AskAIStmt(prompt=prompt, options=options, span=self._span(start))


def parse_set_statement(self) -> ast_nodes.SetStmt:
    start = self.consume("KEYWORD", "set")
    name = self._parse_binding_name("'set'")
    if not self.match_value("OP", "="):
        self.match_value("IDENT", "to")
    return ast_nodes.SetStmt(name=name, expr=self.parse_expression(), span=self._span(start))


def parse_call_statement(self) -> ast_nodes.CallStmt:
    start = self.consume("KEYWORD", "call")
    tool_tok = self.consume("IDENT", expected="a tool name (namespace.verb)")
    self.consume("KEYWORD", "with", expected=f"'with' after 'call {tool_tok.value}'")
    args = self.parse_object_entries()
    bind_as = None
    if self.match_value("KEYWORD", "as"):
        bind_as = self._parse_binding_name("'call ... as'")
    return ast_nodes.CallStmt(tool=tool_tok.value or "", args=args, bind_as=bind_as, span=self._span(start))


def parse_if_statement(self) -> ast_nodes.IfStmt:
    start = self.consume("KEYWORD", "if")
    condition = self.parse_expression()
    then_body = self.parse_block({"else", "end"}, "'if'")
    else_body = None
    if self.match_value("KEYWORD", "else"):
        else_body = self.parse_block({"end"}, "'else'")
    self.consume("KEYWORD", "end", expected="'end' to close 'if'")
    return ast_nodes.IfStmt(condition=condition, then_body=then_body, else_body=else_body, span=self._span(start))


def parse_loop_statement(self) -> ast_nodes.LoopStmt:
    start = self.consume("KEYWORD", "loop")
    item = self._parse_binding_name("'loop'")
    self.consume("KEYWORD", "in", expected="'in' after the loop variable")
    collection = self.parse_reference()
    body = self.parse_block({"end"}, "'loop'")
    self.consume("KEYWORD", "end", expected="'end' to close 'loop'")
    return ast_nodes.LoopStmt(item=item, collection=collection, body=body, span=self._span(start))


def parse_remember_statement(self) -> ast_nodes.RememberStmt:
    start = self.consume("KEYWORD", "remember")
    key = self.parse_expression()
    if self.match_value("KEYWORD", "as"):
        mode = "set"
    elif self.match_value("IDENT", "append"):
        mode = "append"
    else:
        raise self.error("Expected 'as' or 'append' after the remember key", self.peek(), expected="'as' or 'append'")
    value = self.parse_expression()
    return ast_nodes.RememberStmt(key=key, value=value, mode=mode, span=self._span(start))


def parse_recall_statement(self) -> ast_nodes.RecallStmt:
    start = self.consume("IDENT", "recall")
    key = self.parse_expression()
    bind_as = "result"
    if self.match_value("KEYWORD", "as"):
        bind_as = self._parse_binding_name("'recall ... as'")
    return ast_nodes.RecallStmt(key=key, bind_as=bind_as, span=self._span(start))

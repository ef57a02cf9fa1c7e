"""Bot, memory block, tools and handler declarations."""

from __future__ import annotations

from ... import ast_nodes

__all__ = [
    "parse_program",
    "parse_bot",
    "parse_memory_block",
    "parse_tools_decl",
    "parse_handler",
]

MEMORY_SCOPES = {"session", "user"}
_CLOSERS = {"LPAREN": "RPAREN", "LBRACKET": "RBRACKET"}


def parse_program(self) -> ast_nodes.Program:
    program = ast_nodes.Program()
    seen: set[str] = set()
    while not self.check("EOF"):
        token = self.peek()
        if not (token.type == "KEYWORD" and token.value in {"bot", "agent"}):
            raise self.error("Expected a bot declaration", token, expected="'bot' or 'agent'")
        bot = self.parse_bot()
        if bot.name in seen:
            raise self.error(f"Duplicate bot name '{bot.name}'", token)
        seen.add(bot.name)
        program.bots.append(bot)
    if not program.bots:
        raise self.error("Expected at least one bot declaration", self.peek(), expected="'bot' or 'agent'")
    return program


def parse_bot(self) -> ast_nodes.BotDecl:
    kind_tok = self.advance()
    name_tok = self.consume_any({"IDENT", "STRING"}, f"a name after '{kind_tok.value}'")
    bot = ast_nodes.BotDecl(name=name_tok.value or "", kind=kind_tok.value or "bot", span=self._span(kind_tok))
    owner = f"{bot.kind} '{bot.name}'"
    while True:
        token = self.peek()
        if token.type == "EOF":
            raise self.error(f"Expected 'end' to close {owner}", token, expected="'end'")
        if token.type != "KEYWORD":
            raise self.error(f"Unexpected token in {owner}", token, expected="'on', 'memory', 'tools', 'description' or 'end'")
        if token.value == "end":
            self.advance()
            break
        if token.value == "on":
            bot.handlers.append(self.parse_handler())
            continue
        if bot.handlers and token.value in {"description", "memory", "tools"}:
            raise self.error(f"'{token.value}' must appear before the handlers of {owner}", token)
        if token.value == "description":
            self.advance()
            if bot.description is not None:
                raise self.error(f"Duplicate description in {owner}", token)
            desc_tok = self.consume_any({"STRING", "MULTILINE_STRING"}, "a string after 'description'")
            bot.description = desc_tok.value
            continue
        if token.value == "memory":
            bot.memory_blocks.append(self.parse_memory_block())
            continue
        if token.value == "tools":
            bot.tools.extend(self.parse_tools_decl())
            continue
        raise self.error(f"Unexpected keyword in {owner}", token, expected="'on', 'memory', 'tools', 'description' or 'end'")
    if not bot.handlers:
        raise self.error(f"{owner} must declare at least one 'on' handler", name_tok)
    return bot


def parse_memory_block(self) -> ast_nodes.MemoryBlock:
    start = self.consume("KEYWORD", "memory")
    scope_tok = self.peek()
    if not (scope_tok.type == "KEYWORD" and scope_tok.value in MEMORY_SCOPES):
        raise self.error("Expected memory scope", scope_tok, expected="'session' or 'user'")
    self.advance()
    block = ast_nodes.MemoryBlock(scope=scope_tok.value or "session", span=self._span(start))
    names: set[str] = set()
    while not self.match_value("KEYWORD", "end"):
        var_tok = self.consume("KEYWORD", "var", expected="'var' or 'end' in memory block")
        name = self._parse_binding_name("memory block")
        if name in names:
            raise self.error(f"Duplicate memory variable '{name}'", var_tok)
        names.add(name)
        self.match("COLON")
        type_name = "any"
        if self.check("IDENT") and "." not in (self.peek().value or ""):
            type_name = self.advance().value or "any"
        block.variables.append(ast_nodes.MemoryVarDecl(name=name, type_name=type_name, span=self._span(var_tok)))
    return block


def parse_tools_decl(self) -> list[str]:
    self.consume("KEYWORD", "tools")
    closer = None
    if self.peek().type in _CLOSERS:
        closer = _CLOSERS[self.advance().type]
    names = [self.consume("IDENT", expected="a tool name").value or ""]
    while self.match("COMMA"):
        names.append(self.consume("IDENT", expected="a tool name").value or "")
    if closer:
        self.consume(closer, expected="closing bracket for 'tools'")
    return names


def parse_handler(self) -> ast_nodes.Handler:
    start = self.consume("KEYWORD", "on")
    event_tok = self.peek()
    if event_tok.type == "KEYWORD" and event_tok.value == "input":
        event = "input"
    elif event_tok.type == "IDENT" and "." not in (event_tok.value or ""):
        event = event_tok.value or ""
    else:
        raise self.error("Expected an event name after 'on'", event_tok, expected="'input' or an event name")
    self.advance()
    guard = None
    if self.match_value("KEYWORD", "when"):
        guard = self.parse_expression()
    body = self.parse_block({"end"}, f"'on {event}' handler")
    self.consume("KEYWORD", "end", expected=f"'end' to close 'on {event}' handler")
    return ast_nodes.Handler(event=event, guard=guard, body=body, span=self._span(start))

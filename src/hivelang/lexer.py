"""
Lexer for the HiveLang bot language.

Whitespace and newlines are insignificant; blocks are closed with `end`.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import List, Optional

from .errors import LexError

KEYWORDS = {
    "bot",
    "agent",
    "end",
    "on",
    "when",
    "call",
    "with",
    "as",
    "say",
    "ask",
    "set",
    "if",
    "else",
    "loop",
    "in",
    "memory",
    "session",
    "user",
    "var",
    "tools",
    "description",
    "type",
    "scope",
    "persist",
    "remember",
    "contains",
    "and",
    "or",
    "not",
    "true",
    "false",
    "input",
    "output",
}

# Longest operators first.
OPERATORS = ("==", "!=", "??", "=", "+")

PUNCTUATION = {
    "{": "LBRACE",
    "}": "RBRACE",
    "[": "LBRACKET",
    "]": "RBRACKET",
    "(": "LPAREN",
    ")": "RPAREN",
    ":": "COLON",
    ",": "COMMA",
}

_SIMPLE_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", '"': '"', "'": "'"}


@dataclass
class Token:
    type: str
    value: Optional[str]
    line: int
    column: int

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"Token({self.type}, {self.value}, {self.line}:{self.column})"


def _is_ident_start(char: str) -> bool:
    return char.isalpha() or char == "_"


def _is_ident_char(char: str) -> bool:
    return char.isalnum() or char == "_"


class Lexer:
    """
    Single-pass scanner producing KEYWORD, IDENT, VARIABLE, STRING,
    MULTILINE_STRING, NUMBER, OP and punctuation tokens followed by EOF.

    String contents keep `\\{`, `\\}` and `\\\\` escapes intact; those are
    resolved by the template parser so literal braces survive hole scanning.
    """

    def __init__(self, source: str, filename: str = "<string>") -> None:
        self.source = source
        self.filename = filename
        self.pos = 0
        self.line = 1
        self.column = 1

    def tokenize(self) -> List[Token]:
        tokens: List[Token] = []
        while self.pos < len(self.source):
            char = self.source[self.pos]
            if char in " \t\r\n":
                self._advance()
                continue
            if char == "#":
                self._skip_line_comment()
                continue
            if self.source.startswith("/*", self.pos):
                self._skip_block_comment()
                continue
            if self.source.startswith('"""', self.pos):
                tokens.append(self._read_triple_string())
                continue
            if char in {'"', "'"}:
                tokens.append(self._read_string(char))
                continue
            if char == "$":
                tokens.append(self._read_variable())
                continue
            if char.isdigit() or (char == "-" and self._peek_char(1).isdigit()):
                tokens.append(self._read_number())
                continue
            if _is_ident_start(char):
                tokens.append(self._read_identifier())
                continue
            if char in PUNCTUATION:
                tokens.append(Token(PUNCTUATION[char], char, self.line, self.column))
                self._advance()
                continue
            op = next((candidate for candidate in OPERATORS if self.source.startswith(candidate, self.pos)), None)
            if op is not None:
                tokens.append(Token("OP", op, self.line, self.column))
                self._advance(len(op))
                continue
            raise LexError(f"Unexpected character '{char}'", self.line, self.column)
        tokens.append(Token("EOF", None, self.line, self.column))
        return tokens

    def _peek_char(self, offset: int = 0) -> str:
        idx = self.pos + offset
        return self.source[idx] if idx < len(self.source) else ""

    def _advance(self, count: int = 1) -> None:
        for _ in range(count):
            if self.pos >= len(self.source):
                return
            if self.source[self.pos] == "\n":
                self.line += 1
                self.column = 1
            else:
                self.column += 1
            self.pos += 1

    def _skip_line_comment(self) -> None:
        while self.pos < len(self.source) and self.source[self.pos] != "\n":
            self._advance()

    def _skip_block_comment(self) -> None:
        start_line, start_col = self.line, self.column
        end = self.source.find("*/", self.pos + 2)
        if end < 0:
            raise LexError("Unterminated block comment", start_line, start_col)
        self._advance(end + 2 - self.pos)

    def _read_string(self, quote: str) -> Token:
        start_line, start_col = self.line, self.column
        self._advance()
        chars: List[str] = []
        while True:
            if self.pos >= len(self.source) or self.source[self.pos] == "\n":
                raise LexError("Unterminated string literal", start_line, start_col)
            char = self.source[self.pos]
            if char == quote:
                self._advance()
                break
            if char == "\\":
                nxt = self._peek_char(1)
                if nxt == "":
                    raise LexError("Unterminated string literal", start_line, start_col)
                if nxt in _SIMPLE_ESCAPES:
                    chars.append(_SIMPLE_ESCAPES[nxt])
                else:
                    # Template-level escapes (\{ \} \\) and unknown ones pass through.
                    chars.append("\\" + nxt)
                self._advance(2)
                continue
            chars.append(char)
            self._advance()
        return Token("STRING", "".join(chars), start_line, start_col)

    def _read_triple_string(self) -> Token:
        start_line, start_col = self.line, self.column
        end = self.source.find('"""', self.pos + 3)
        if end < 0:
            raise LexError("Unterminated triple-quoted string", start_line, start_col)
        raw = self.source[self.pos + 3 : end]
        self._advance(end + 3 - self.pos)
        return Token("MULTILINE_STRING", inspect.cleandoc(raw), start_line, start_col)

    def _read_variable(self) -> Token:
        start_line, start_col = self.line, self.column
        self._advance()
        if not _is_ident_start(self._peek_char()):
            raise LexError("Expected a variable name after '$'", start_line, start_col)
        name = self._read_dotted_name()
        return Token("VARIABLE", name, start_line, start_col)

    def _read_identifier(self) -> Token:
        start_line, start_col = self.line, self.column
        name = self._read_dotted_name()
        token_type = "KEYWORD" if name in KEYWORDS else "IDENT"
        return Token(token_type, name, start_line, start_col)

    def _read_dotted_name(self) -> str:
        chars: List[str] = []
        while _is_ident_char(self._peek_char()):
            chars.append(self._peek_char())
            self._advance()
        while self._peek_char() == "." and _is_ident_char(self._peek_char(1)):
            chars.append(".")
            self._advance()
            while _is_ident_char(self._peek_char()):
                chars.append(self._peek_char())
                self._advance()
        return "".join(chars)

    def _read_number(self) -> Token:
        start_line, start_col = self.line, self.column
        chars: List[str] = []
        if self._peek_char() == "-":
            chars.append("-")
            self._advance()
        while self._peek_char().isdigit():
            chars.append(self._peek_char())
            self._advance()
        if self._peek_char() == "." and self._peek_char(1).isdigit():
            chars.append(".")
            self._advance()
            while self._peek_char().isdigit():
                chars.append(self._peek_char())
                self._advance()
        return Token("NUMBER", "".join(chars), start_line, start_col)


def tokenize(source: str) -> List[Token]:
    """Tokenize helper for tests and tooling."""
    return Lexer(source).tokenize()

"""
AST node definitions for the HiveLang bot language.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


@dataclass
class Span:
    """Location span for diagnostics."""

    line: int
    column: int


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------


@dataclass
class Literal:
    value: Any
    span: Optional[Span] = None


@dataclass
class ListLiteral:
    items: List["Expr"] = field(default_factory=list)
    span: Optional[Span] = None


@dataclass
class ObjectLiteral:
    entries: Dict[str, "Expr"] = field(default_factory=dict)
    span: Optional[Span] = None


@dataclass
class VarRef:
    """$name or a bare name; both address the same environment slot."""

    name: str
    span: Optional[Span] = None


@dataclass
class PropAccess:
    """base.path[0].path[1]... (e.g. input.task, result.output)."""

    base: "Expr"
    path: List[str] = field(default_factory=list)
    span: Optional[Span] = None


@dataclass
class StringTemplate:
    """Literal text interleaved with {expr} holes, split at parse time."""

    segments: List[Union[str, "Expr"]] = field(default_factory=list)
    span: Optional[Span] = None


@dataclass
class Contains:
    left: "Expr"
    right: "Expr"
    span: Optional[Span] = None


@dataclass
class BoolOp:
    """and / or over two or more operands, not over exactly one."""

    op: str
    operands: List["Expr"] = field(default_factory=list)
    span: Optional[Span] = None


@dataclass
class Equals:
    left: "Expr"
    right: "Expr"
    negated: bool = False
    span: Optional[Span] = None


@dataclass
class Concat:
    parts: List["Expr"] = field(default_factory=list)
    span: Optional[Span] = None


@dataclass
class Coalesce:
    """left ?? right: right when left is null, unbound or a missing field."""

    left: "Expr"
    right: "Expr"
    span: Optional[Span] = None


Expr = Union[
    Literal,
    ListLiteral,
    ObjectLiteral,
    VarRef,
    PropAccess,
    StringTemplate,
    Contains,
    BoolOp,
    Equals,
    Concat,
    Coalesce,
]


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------


@dataclass
class SayStmt:
    expr: Expr
    span: Optional[Span] = None


@dataclass
class AskAIStmt:
    prompt: Expr
    options: Dict[str, Expr] = field(default_factory=dict)
    span: Optional[Span] = None


@dataclass
class SetStmt:
    name: str
    expr: Expr
    span: Optional[Span] = None


@dataclass
class CallStmt:
    tool: str
    args: Dict[str, Expr] = field(default_factory=dict)
    bind_as: Optional[str] = None
    span: Optional[Span] = None


@dataclass
class IfStmt:
    condition: Expr
    then_body: List["Statement"] = field(default_factory=list)
    else_body: Optional[List["Statement"]] = None
    span: Optional[Span] = None


@dataclass
class LoopStmt:
    item: str
    collection: Expr
    body: List["Statement"] = field(default_factory=list)
    span: Optional[Span] = None


@dataclass
class RememberStmt:
    key: Expr
    value: Expr
    mode: str = "set"  # "set" | "append"
    span: Optional[Span] = None


@dataclass
class RecallStmt:
    key: Expr
    bind_as: str = "result"
    span: Optional[Span] = None


Statement = Union[SayStmt, AskAIStmt, SetStmt, CallStmt, IfStmt, LoopStmt, RememberStmt, RecallStmt]


# ---------------------------------------------------------------------------
# Declarations
# ---------------------------------------------------------------------------


@dataclass
class MemoryVarDecl:
    name: str
    type_name: str = "any"
    span: Optional[Span] = None


@dataclass
class MemoryBlock:
    """memory session|user ... end; declares shape, holds no values."""

    scope: str
    variables: List[MemoryVarDecl] = field(default_factory=list)
    span: Optional[Span] = None


@dataclass
class Handler:
    """on <event> [when <guard>] ... end"""

    event: str = "input"
    guard: Optional[Expr] = None
    body: List[Statement] = field(default_factory=list)
    span: Optional[Span] = None


@dataclass
class BotDecl:
    name: str
    kind: str = "bot"  # "bot" | "agent"
    description: Optional[str] = None
    memory_blocks: List[MemoryBlock] = field(default_factory=list)
    tools: List[str] = field(default_factory=list)
    handlers: List[Handler] = field(default_factory=list)
    span: Optional[Span] = None


@dataclass
class Program:
    """Top-level module comprising bot declarations."""

    bots: List[BotDecl] = field(default_factory=list)

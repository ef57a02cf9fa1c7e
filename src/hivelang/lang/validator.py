"""
Static checks over a parsed program, run without touching tools or memory.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Set

from .. import ast_nodes
from ..errors import LexError, ParseError
from ..parser import Parser


@dataclass(frozen=True)
class Diagnostic:
    code: str
    severity: str
    message: str
    line: Optional[int] = None
    column: Optional[int] = None
    hint: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "severity": self.severity,
            "message": self.message,
            "line": self.line,
            "column": self.column,
            "hint": self.hint,
        }


@dataclass
class ValidationReport:
    valid: bool
    errors: List[Diagnostic] = field(default_factory=list)
    warnings: List[Diagnostic] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": [diag.to_dict() for diag in self.errors],
            "warnings": [diag.to_dict() for diag in self.warnings],
        }


def _warn(code: str, message: str, span: Optional[ast_nodes.Span], hint: Optional[str] = None) -> Diagnostic:
    return Diagnostic(
        code=code,
        severity="warning",
        message=message,
        line=span.line if span else None,
        column=span.column if span else None,
        hint=hint,
    )


def validate_hivelang_program(
    source: str,
    tools: Optional[Iterable[Any]] = None,
    known_variables: Optional[Iterable[str]] = None,
) -> ValidationReport:
    """
    Lex and parse errors make the report invalid. Everything else is a
    warning: calls to tools missing from `tools` (by name or capability) or
    from the bot's `tools` declaration, events without an unconditional
    handler, more than one bot, and variables a handler reads but nothing
    binds.
    """
    try:
        program = Parser.from_source(source).parse_program()
    except (LexError, ParseError) as exc:
        error = Diagnostic(
            code="HL-0001",
            severity="error",
            message=f"{exc.kind}: {exc.message}",
            line=exc.line,
            column=exc.column,
            hint=f"Expected {exc.expected}." if isinstance(exc, ParseError) and exc.expected else None,
        )
        return ValidationReport(valid=False, errors=[error])

    catalogue: Optional[Set[str]] = None
    if tools is not None:
        catalogue = set()
        for item in tools:
            if isinstance(item, str):
                catalogue.add(item)
                continue
            catalogue.update(filter(None, (getattr(item, "name", None), getattr(item, "capability", None))))

    warnings: List[Diagnostic] = []
    if len(program.bots) > 1:
        warnings.append(
            _warn(
                "HL-1004",
                f"Program declares {len(program.bots)} bots; only one runs per execution",
                program.bots[1].span,
                "Split each bot into its own source file.",
            )
        )
    seeded = {"input"} | set(known_variables or [])
    for bot in program.bots:
        warnings.extend(_check_bot(bot, catalogue, seeded))
    return ValidationReport(valid=True, warnings=warnings)


def _check_bot(bot: ast_nodes.BotDecl, catalogue: Optional[Set[str]], seeded: Set[str]) -> List[Diagnostic]:
    warnings: List[Diagnostic] = []
    declared_tools = set(bot.tools)
    memory_names = {var.name for block in bot.memory_blocks for var in block.variables}

    events: Dict[str, bool] = {}
    for handler in bot.handlers:
        events[handler.event] = events.get(handler.event, False) or handler.guard is None
    for event, has_fallback in events.items():
        if not has_fallback:
            warnings.append(
                _warn(
                    "HL-1003",
                    f"{bot.kind} '{bot.name}' has no unconditional 'on {event}' handler",
                    bot.span,
                    f"Add a final 'on {event}' without 'when' so every input gets a reply.",
                )
            )

    for handler in bot.handlers:
        for stmt in iter_statements(handler.body):
            if isinstance(stmt, ast_nodes.CallStmt):
                if catalogue is not None and stmt.tool not in catalogue:
                    warnings.append(_warn("HL-1001", f"Tool '{stmt.tool}' is not in the tool catalogue", stmt.span))
                if declared_tools and stmt.tool not in declared_tools:
                    warnings.append(
                        _warn(
                            "HL-1002",
                            f"Tool '{stmt.tool}' is called but not listed in the 'tools' declaration",
                            stmt.span,
                            f"Add {stmt.tool} to 'tools'.",
                        )
                    )
        bound = seeded | memory_names | bound_names(handler.body)
        reported: Set[str] = set()
        for name, span in read_names(handler):
            if name not in bound and name not in reported:
                reported.add(name)
                warnings.append(_warn("HL-1005", f"Variable '{name}' is read but never set", span))
    return warnings


def iter_statements(body: List[ast_nodes.Statement]) -> Iterator[ast_nodes.Statement]:
    for stmt in body:
        yield stmt
        if isinstance(stmt, ast_nodes.IfStmt):
            yield from iter_statements(stmt.then_body)
            yield from iter_statements(stmt.else_body or [])
        elif isinstance(stmt, ast_nodes.LoopStmt):
            yield from iter_statements(stmt.body)


def bound_names(body: List[ast_nodes.Statement]) -> Set[str]:
    names: Set[str] = set()
    for stmt in iter_statements(body):
        if isinstance(stmt, ast_nodes.SetStmt):
            names.add(stmt.name)
        elif isinstance(stmt, ast_nodes.CallStmt) and stmt.bind_as:
            names.add(stmt.bind_as)
        elif isinstance(stmt, ast_nodes.AskAIStmt):
            names.add("result")
        elif isinstance(stmt, ast_nodes.RecallStmt):
            names.add(stmt.bind_as)
        elif isinstance(stmt, ast_nodes.LoopStmt):
            names.add(stmt.item)
    return names


def read_names(handler: ast_nodes.Handler) -> Iterator[tuple[str, Optional[ast_nodes.Span]]]:
    roots: List[Any] = [handler.guard] if handler.guard is not None else []
    for stmt in iter_statements(handler.body):
        if isinstance(stmt, ast_nodes.SayStmt):
            roots.append(stmt.expr)
        elif isinstance(stmt, ast_nodes.AskAIStmt):
            roots.append(stmt.prompt)
            roots.extend(stmt.options.values())
        elif isinstance(stmt, ast_nodes.SetStmt):
            roots.append(stmt.expr)
        elif isinstance(stmt, ast_nodes.CallStmt):
            roots.extend(stmt.args.values())
        elif isinstance(stmt, ast_nodes.IfStmt):
            roots.append(stmt.condition)
        elif isinstance(stmt, ast_nodes.LoopStmt):
            roots.append(stmt.collection)
        elif isinstance(stmt, ast_nodes.RememberStmt):
            roots.extend([stmt.key, stmt.value])
        elif isinstance(stmt, ast_nodes.RecallStmt):
            roots.append(stmt.key)
    for root in roots:
        yield from _expr_reads(root)


def _expr_reads(expr: Any) -> Iterator[tuple[str, Optional[ast_nodes.Span]]]:
    if isinstance(expr, ast_nodes.VarRef):
        yield expr.name, expr.span
    elif isinstance(expr, ast_nodes.Coalesce):
        # The left side of ?? may legitimately be unbound.
        yield from _expr_reads(expr.right)
    elif isinstance(expr, ast_nodes.PropAccess):
        yield from _expr_reads(expr.base)
    elif isinstance(expr, ast_nodes.StringTemplate):
        for segment in expr.segments:
            if not isinstance(segment, str):
                yield from _expr_reads(segment)
    elif isinstance(expr, ast_nodes.ListLiteral):
        for item in expr.items:
            yield from _expr_reads(item)
    elif isinstance(expr, ast_nodes.ObjectLiteral):
        for value in expr.entries.values():
            yield from _expr_reads(value)
    elif isinstance(expr, (ast_nodes.Contains, ast_nodes.Equals)):
        yield from _expr_reads(expr.left)
        yield from _expr_reads(expr.right)
    elif isinstance(expr, ast_nodes.Concat):
        for part in expr.parts:
            yield from _expr_reads(part)
    elif isinstance(expr, ast_nodes.BoolOp):
        for operand in expr.operands:
            yield from _expr_reads(operand)

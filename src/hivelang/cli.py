"""
Command-line interface for HiveLang (hivelang).
"""

from __future__ import annotations

import argparse
import importlib
import json
import logging
import sys
from dataclasses import asdict, replace
from pathlib import Path
from typing import Any, List

from . import lexer, parser
from .config import load_config
from .engine import run_hivelang_program
from .errors import LexError, ParseError
from .lang import validate_hivelang_program
from .memory.store import InMemorySharedMemory
from .runtime.context import ExecutionContext, ExecutionMetadata
from .version import __version__


def build_cli_parser() -> argparse.ArgumentParser:
    cli = argparse.ArgumentParser(prog="hivelang", description="HiveLang CLI")
    cli.add_argument(
        "--version",
        action="version",
        version=f"HiveLang {__version__} (Python {sys.version.split()[0]})",
    )
    cli.add_argument("--log-level", default="warning", help="Logging level (debug, info, warning, error)")
    sub = cli.add_subparsers(dest="command", required=True)

    tokens_cmd = sub.add_parser("tokens", help="Tokenize a .hive file and show the token stream")
    tokens_cmd.add_argument("file", type=Path)

    parse_cmd = sub.add_parser("parse", help="Parse a .hive file and show the AST")
    parse_cmd.add_argument("file", type=Path)

    check_cmd = sub.add_parser("check", help="Validate a .hive file without running it")
    check_cmd.add_argument("file", type=Path)
    check_cmd.add_argument("--tools", help="Tool catalogue as module:attribute")

    run_cmd = sub.add_parser("run", help="Run a bot from a .hive file")
    run_cmd.add_argument("file", type=Path)
    input_group = run_cmd.add_mutually_exclusive_group()
    input_group.add_argument("--input", help="Runtime input as a JSON object")
    input_group.add_argument("--message", help="Runtime input as plain text")
    run_cmd.add_argument("--event", default="input", help="Event name to dispatch (default: input)")
    run_cmd.add_argument("--bot", help="Bot to run when the file declares several")
    run_cmd.add_argument("--tools", help="Tools as module:attribute (a list or a callable returning one)")
    run_cmd.add_argument("--timeout", type=float, help="Overall execution timeout in seconds")
    run_cmd.add_argument("--user-id", help="User id for user-scoped memory")

    serve_cmd = sub.add_parser("serve", help="Start the FastAPI dev server")
    serve_cmd.add_argument("--host", default="127.0.0.1")
    serve_cmd.add_argument("--port", type=int, default=8000)
    serve_cmd.add_argument("--tools", help="Tools as module:attribute")
    serve_cmd.add_argument("--dry-run", action="store_true", help="Build app but do not start server")

    return cli


def load_tools(target: str | None) -> List[Any]:
    """Import `module:attribute`; the attribute is a tool list or a zero-arg callable returning one."""
    if not target:
        return []
    module_name, _, attr = target.partition(":")
    if not module_name or not attr:
        raise SystemExit(f"--tools must look like module:attribute, got '{target}'")
    try:
        loaded = getattr(importlib.import_module(module_name), attr)
    except (ImportError, AttributeError) as exc:
        raise SystemExit(f"Could not load tools from '{target}': {exc}") from exc
    if callable(loaded) and not hasattr(loaded, "run"):
        loaded = loaded()
    if hasattr(loaded, "run"):
        return [loaded]
    return list(loaded)


def _read_source(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SystemExit(f"Cannot read {path}: {exc}") from exc


def _parse_input(args: argparse.Namespace) -> Any:
    if args.message is not None:
        return args.message
    if args.input is None:
        return {}
    try:
        value = json.loads(args.input)
    except json.JSONDecodeError as exc:
        raise SystemExit(f"--input is not valid JSON: {exc}") from exc
    return value


def main(argv: list[str] | None = None) -> None:
    cli = build_cli_parser()
    args = cli.parse_args(argv)
    logging.basicConfig(level=str(args.log_level).upper(), format="%(levelname)s %(name)s: %(message)s")

    if args.command == "tokens":
        source = _read_source(args.file)
        try:
            tokens = lexer.Lexer(source, filename=str(args.file)).tokenize()
        except LexError as exc:
            raise SystemExit(exc.describe()) from exc
        print(json.dumps([asdict(token) for token in tokens], indent=2))
        return

    if args.command == "parse":
        source = _read_source(args.file)
        try:
            program = parser.parse_source(source)
        except (LexError, ParseError) as exc:
            raise SystemExit(exc.describe()) from exc
        print(json.dumps(asdict(program), indent=2))
        return

    if args.command == "check":
        report = validate_hivelang_program(_read_source(args.file), tools=load_tools(args.tools) if args.tools else None)
        print(json.dumps(report.to_dict(), indent=2))
        if not report.valid:
            raise SystemExit(1)
        return

    if args.command == "run":
        source = _read_source(args.file)
        config = load_config()
        if args.timeout:
            config = replace(config, execution_timeout_seconds=args.timeout)
        context = ExecutionContext(
            metadata=ExecutionMetadata(bot_id=args.file.stem, user_id=args.user_id),
            shared_memory=InMemorySharedMemory(),
        )
        result = run_hivelang_program(
            source,
            _parse_input(args),
            load_tools(args.tools),
            context,
            event=args.event,
            bot_name=args.bot,
            config=config,
        )
        print(json.dumps(result.to_dict(), indent=2))
        if not result.success:
            raise SystemExit(1)
        return

    if args.command == "serve":
        try:
            from .server import create_app
        except Exception as exc:  # pragma: no cover - load-time guard
            raise SystemExit(f"Failed to import server: {exc}") from exc
        app = create_app(tools=load_tools(args.tools))
        if args.dry_run:
            print(
                json.dumps(
                    {"status": "ready", "host": args.host, "port": args.port},
                    indent=2,
                )
            )
            return
        try:
            import uvicorn
        except ImportError as exc:  # pragma: no cover - runtime check
            raise SystemExit("uvicorn is required to run the server") from exc
        uvicorn.run(app, host=args.host, port=args.port)
        return


if __name__ == "__main__":  # pragma: no cover
    main()

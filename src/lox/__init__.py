"""Lox scanner, parser, resolver and interpreter — public API."""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from typing import Mapping

from .ast import Stmt
from .diagnostics import CollectingSink, Sink, format_diagnostic as format_diagnostic
from .emit import to_source
from .parse import ParseError as ParseError, Parser
from .resolve import ResolveError, Resolver, resolve
from .runtime import Interpreter, LoxRuntimeError as LoxRuntimeError
from .tokens import Scanner, tokenize as tokenize
from .values import LoxCallable, NativeFunction as NativeFunction

# Exit statuses shared by `run` and the command line.
EXIT_OK = 0
EXIT_USAGE = 64
EXIT_DATAERR = 65
EXIT_NOINPUT = 66
EXIT_SOFTWARE = 70


def parse(source: str, sink: Sink | None = None) -> list[Stmt]:
    """Scan and parse Lox source. Returns [] after any parse error."""
    tokens = Scanner(source, sink).scan_tokens()
    return Parser(tokens, sink).parse_program()


def check(source: str, sink: Sink | None = None) -> list[ResolveError]:
    """Parse and resolve Lox source. Returns resolver errors (empty = ok)."""
    return resolve(parse(source, sink), sink)


def emit(stmts: list[Stmt]) -> str:
    """Render parsed statements as parenthesized trees."""
    return to_source(stmts)


def execute(
    source: str,
    interpreter: Interpreter,
    sink: Sink | None = None,
    *,
    lenient: bool = False,
    resolver: Resolver | None = None,
) -> int:
    """Run one chunk of source through every phase against an interpreter.

    Returns an exit status: EXIT_DATAERR when scanning, parsing or (unless
    lenient) resolving reported anything, EXIT_SOFTWARE on a runtime error.
    Pass the same resolver on every call to keep earlier globals in scope.
    """
    scanner = Scanner(source, sink)
    tokens = scanner.scan_tokens()
    parser = Parser(tokens, sink)
    stmts = parser.parse_program()
    if scanner.errors or parser.errors:
        return EXIT_DATAERR
    if resolver is None:
        resolver = Resolver(sink)
    errors = resolver.resolve(stmts)
    if errors and not lenient:
        return EXIT_DATAERR
    if interpreter.interpret(stmts) is not None:
        return EXIT_SOFTWARE
    return EXIT_OK


@dataclass
class RunResult:
    stdout: str
    diagnostics: list[str] = field(default_factory=list)
    exit_code: int = EXIT_OK


def run(
    source: str,
    natives: Mapping[str, LoxCallable] | None = None,
    *,
    lenient: bool = False,
) -> RunResult:
    """Run a whole program with captured output and diagnostics."""
    out = io.StringIO()
    sink = CollectingSink()
    interpreter = Interpreter(natives, stdout=out, sink=sink)
    code = execute(source, interpreter, sink, lenient=lenient)
    return RunResult(out.getvalue(), sink.messages, code)

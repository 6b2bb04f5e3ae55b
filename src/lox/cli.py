"""Lox CLI — run .lox files or an interactive prompt."""

from __future__ import annotations

import sys

from . import (
    EXIT_DATAERR,
    EXIT_NOINPUT,
    EXIT_OK,
    EXIT_USAGE,
    check,
    emit,
    execute,
    parse,
)
from .diagnostics import CollectingSink, stderr_sink
from .resolve import Resolver
from .runtime import Interpreter


USAGE: str = """\
lox [OPTIONS] [FILE]

Run a Lox program, or start an interactive prompt when FILE is omitted.

Options:
  --ast       Print the parsed program instead of running it
  --check     Resolve the program and report problems without running it
  --lenient   Run even when the resolver reports problems
  --help      Show this help message
"""

PROMPT: str = "> "


def main(argv: list[str] | None = None) -> int:
    args = argv if argv is not None else sys.argv[1:]
    filepath: str = ""
    show_ast = False
    check_only = False
    lenient = False
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--help" or arg == "-h":
            print(USAGE, end="")
            return EXIT_OK
        elif arg == "--ast":
            show_ast = True
            i += 1
        elif arg == "--check":
            check_only = True
            i += 1
        elif arg == "--lenient":
            lenient = True
            i += 1
        elif arg.startswith("-"):
            print("lox: unknown flag '" + arg + "'", file=sys.stderr)
            return EXIT_USAGE
        elif filepath == "":
            filepath = arg
            i += 1
        else:
            print("lox: unexpected argument '" + arg + "'", file=sys.stderr)
            return EXIT_USAGE
    if filepath == "":
        if show_ast or check_only:
            print("lox: missing file argument", file=sys.stderr)
            return EXIT_USAGE
        return repl(lenient=lenient)

    try:
        with open(filepath, "rb") as f:
            raw = f.read()
    except FileNotFoundError:
        print("lox: " + filepath + ": No such file or directory", file=sys.stderr)
        return EXIT_NOINPUT
    except OSError as e:
        print("lox: " + filepath + ": " + str(e), file=sys.stderr)
        return EXIT_NOINPUT
    try:
        source = raw.decode("utf-8")
    except ValueError:
        print("lox: " + filepath + ": invalid utf-8", file=sys.stderr)
        return EXIT_NOINPUT

    if show_ast:
        sink = CollectingSink()
        stmts = parse(source, sink)
        for message in sink.messages:
            print(message, file=sys.stderr)
        if sink.messages:
            return EXIT_DATAERR
        sys.stdout.write(emit(stmts))
        return EXIT_OK
    if check_only:
        sink = CollectingSink()
        check(source, sink)
        for message in sink.messages:
            print(message, file=sys.stderr)
        return EXIT_DATAERR if sink.messages else EXIT_OK
    return execute(source, Interpreter(), stderr_sink, lenient=lenient)


def repl(*, lenient: bool = False) -> int:
    """Read lines until end of input against one interpreter.

    Errors are reported and the session goes on. Globals stay declared for
    the resolver across lines, so declaring one again with `var` is reported
    as a redeclaration; a line that fails to resolve declares nothing.
    """
    interpreter = Interpreter()
    resolver = Resolver(stderr_sink)
    while True:
        try:
            line = input(PROMPT)
        except EOFError:
            print()
            return EXIT_OK
        execute(line, interpreter, stderr_sink, lenient=lenient, resolver=resolver)


if __name__ == "__main__":
    sys.exit(main())

"""Diagnostic sinks shared by every phase."""

from __future__ import annotations

import sys
from typing import Callable

# sink(line, where, message); where is "", " at end" or " at 'lexeme'".
Sink = Callable[[int, str, str], None]


def format_diagnostic(line: int, where: str, message: str) -> str:
    return "[line " + str(line) + "] Error" + where + ": " + message


def stderr_sink(line: int, where: str, message: str) -> None:
    print(format_diagnostic(line, where, message), file=sys.stderr)


class CollectingSink:
    """Keeps formatted diagnostics in order of arrival."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    def __call__(self, line: int, where: str, message: str) -> None:
        self.messages.append(format_diagnostic(line, where, message))

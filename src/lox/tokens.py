"""Lox scanner — lexes source into a flat token list."""

from __future__ import annotations

from .diagnostics import Sink, stderr_sink


# Token type constants. Punctuation, operators and keywords use their own
# spelling as their type.
TK_NUMBER = "NUMBER"
TK_STRING = "STRING"
TK_IDENT = "IDENTIFIER"
TK_EOF = "EOF"

KEYWORDS: set[str] = {
    "and",
    "class",
    "else",
    "false",
    "for",
    "fun",
    "if",
    "nil",
    "or",
    "print",
    "return",
    "super",
    "this",
    "true",
    "var",
    "while",
}

SINGLE_OPS: set[str] = {
    "(",
    ")",
    "{",
    "}",
    ",",
    ".",
    ";",
    "*",
    "/",
    "+",
    "-",
    "!",
    "=",
    "<",
    ">",
}

# First character -> second character that forms a two-character operator.
DOUBLE_OPS: dict[str, str] = {
    "!": "=",
    "=": "=",
    "<": "=",
    ">": "=",
    "+": "+",
    "-": "-",
}


class ScanError(Exception):
    """Lexical error. Collected by the scanner, never raised past it."""

    def __init__(self, msg: str, line: int):
        self.msg: str = msg
        self.line: int = line
        super().__init__(msg + " at line " + str(line))


class Token:
    """A token with type, exact lexeme, literal value, and line."""

    def __init__(
        self, type_: str, lexeme: str, literal: float | str | None, line: int
    ):
        self.type: str = type_
        self.lexeme: str = lexeme
        self.literal: float | str | None = literal
        self.line: int = line

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Token):
            return NotImplemented
        return (
            self.type == other.type
            and self.lexeme == other.lexeme
            and self.literal == other.literal
            and self.line == other.line
        )

    def __hash__(self) -> int:
        return hash((self.type, self.lexeme, self.line))

    def __str__(self) -> str:
        return self.type + " " + self.lexeme + " " + str(self.literal)

    def __repr__(self) -> str:
        return (
            "Token("
            + self.type
            + ", "
            + repr(self.lexeme)
            + ", "
            + repr(self.literal)
            + ", "
            + str(self.line)
            + ")"
        )


def _is_digit(c: str) -> bool:
    return c >= "0" and c <= "9"


def _is_alpha(c: str) -> bool:
    return (c >= "a" and c <= "z") or (c >= "A" and c <= "Z") or c == "_"


def _is_alnum(c: str) -> bool:
    return _is_alpha(c) or _is_digit(c)


class Scanner:
    """Single pass over the source. Lexical errors are reported and skipped."""

    def __init__(self, source: str, sink: Sink | None = None):
        self.source: str = source
        self.sink: Sink = sink if sink is not None else stderr_sink
        self.tokens: list[Token] = []
        self.errors: list[ScanError] = []
        self.start: int = 0
        self.current: int = 0
        self.line: int = 1

    def scan_tokens(self) -> list[Token]:
        while not self.is_at_end():
            self.start = self.current
            self.scan_token()
        self.tokens.append(Token(TK_EOF, "", None, self.line))
        return self.tokens

    # ── Helpers ──────────────────────────────────────────────

    def is_at_end(self) -> bool:
        return self.current >= len(self.source)

    def advance(self) -> str:
        c = self.source[self.current]
        self.current += 1
        return c

    def match(self, expected: str) -> bool:
        if self.is_at_end() or self.source[self.current] != expected:
            return False
        self.current += 1
        return True

    def peek(self) -> str:
        if self.is_at_end():
            return "\0"
        return self.source[self.current]

    def peek_next(self) -> str:
        if self.current + 1 >= len(self.source):
            return "\0"
        return self.source[self.current + 1]

    def add_token(self, type_: str, literal: float | str | None = None) -> None:
        lexeme = self.source[self.start : self.current]
        self.tokens.append(Token(type_, lexeme, literal, self.line))

    def error(self, msg: str) -> None:
        self.errors.append(ScanError(msg, self.line))
        self.sink(self.line, "", msg)

    # ── Tokens ───────────────────────────────────────────────

    def scan_token(self) -> None:
        c = self.advance()
        if c == " " or c == "\t" or c == "\r":
            return
        if c == "\n":
            self.line += 1
            return
        if c == "/" and self.match("/"):
            while self.peek() != "\n" and not self.is_at_end():
                self.advance()
            return
        if c == '"':
            self.string()
            return
        if _is_digit(c):
            self.number()
            return
        if _is_alpha(c):
            self.identifier()
            return
        if c in DOUBLE_OPS and self.match(DOUBLE_OPS[c]):
            self.add_token(c + DOUBLE_OPS[c])
            return
        if c in SINGLE_OPS:
            self.add_token(c)
            return
        self.error("Unexpected character.")

    def string(self) -> None:
        while self.peek() != '"' and not self.is_at_end():
            if self.peek() == "\n":
                self.line += 1
            self.advance()
        if self.is_at_end():
            self.error("Unterminated string.")
            return
        self.advance()  # closing "
        self.add_token(TK_STRING, self.source[self.start + 1 : self.current - 1])

    def number(self) -> None:
        while _is_digit(self.peek()):
            self.advance()
        if self.peek() == "." and _is_digit(self.peek_next()):
            self.advance()
            while _is_digit(self.peek()):
                self.advance()
        self.add_token(TK_NUMBER, float(self.source[self.start : self.current]))

    def identifier(self) -> None:
        while _is_alnum(self.peek()):
            self.advance()
        word = self.source[self.start : self.current]
        if word in KEYWORDS:
            self.add_token(word)
        else:
            self.add_token(TK_IDENT)


def tokenize(source: str, sink: Sink | None = None) -> list[Token]:
    """Tokenize Lox source into a flat list ending with an EOF token."""
    return Scanner(source, sink).scan_tokens()

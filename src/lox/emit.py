"""Lox AST printer — renders statements as parenthesized prefix trees.

This is total over the node types in `lox/ast.py`: a new node type needs a
case here too.
"""

from __future__ import annotations

from .ast import (
    Assign,
    Binary,
    Block,
    Call,
    Expr,
    Expression,
    Function,
    Grouping,
    If,
    Literal,
    Logical,
    Print,
    Return,
    Stmt,
    Unary,
    Var,
    Variable,
    While,
)
from .values import VString


def to_source(stmts: list[Stmt]) -> str:
    """Render statements one tree per top-level statement."""
    return _Emitter().emit_program(stmts)


class _Emitter:
    _INDENT: str = "  "

    def __init__(self) -> None:
        self._lines: list[str] = []
        self._indent_level: int = 0

    # ── Public ──────────────────────────────────────────────

    def emit_program(self, stmts: list[Stmt]) -> str:
        self._lines = []
        self._indent_level = 0
        for stmt in stmts:
            self._emit_stmt(stmt)
        text = "\n".join(self._lines)
        if text != "" and not text.endswith("\n"):
            text += "\n"
        return text

    # ── Lines / Blocks ──────────────────────────────────────

    def _line(self, text: str) -> None:
        self._lines.append(self._INDENT * self._indent_level + text)

    def _nested(self, head: str, children: list[Stmt]) -> None:
        """(head child... ) with children indented one level."""
        if not children:
            self._line("(" + head + ")")
            return
        self._line("(" + head)
        self._indent_level += 1
        for child in children:
            self._emit_stmt(child)
        self._indent_level -= 1
        self._lines[-1] += ")"

    # ── Statements ──────────────────────────────────────────

    def _emit_stmt(self, stmt: Stmt) -> None:
        if isinstance(stmt, Print):
            self._line("(print " + self.emit_expr(stmt.expr) + ")")
        elif isinstance(stmt, Expression):
            self._line("(; " + self.emit_expr(stmt.expr) + ")")
        elif isinstance(stmt, Var):
            if stmt.initializer is None:
                self._line("(var " + stmt.target.name + ")")
            else:
                self._line(
                    "(var "
                    + stmt.target.name
                    + " "
                    + self.emit_expr(stmt.initializer)
                    + ")"
                )
        elif isinstance(stmt, Block):
            self._nested("block", stmt.statements)
        elif isinstance(stmt, If):
            branches = [stmt.then_branch]
            if stmt.else_branch is not None:
                branches.append(stmt.else_branch)
            self._nested("if " + self.emit_expr(stmt.condition), branches)
        elif isinstance(stmt, While):
            self._nested("while " + self.emit_expr(stmt.condition), [stmt.body])
        elif isinstance(stmt, Return):
            self._line("(return " + self.emit_expr(stmt.value) + ")")
        elif isinstance(stmt, Function):
            params = " ".join(p.name for p in stmt.params)
            self._nested(
                "fun " + stmt.name.name + " (" + params + ")", stmt.body.statements
            )
        else:
            raise TypeError("unknown statement " + type(stmt).__name__)

    # ── Expressions ─────────────────────────────────────────

    def emit_expr(self, expr: Expr) -> str:
        if isinstance(expr, Literal):
            if isinstance(expr.value, VString):
                return '"' + expr.value.value + '"'
            return expr.value.to_string()
        if isinstance(expr, Variable):
            return expr.name
        if isinstance(expr, Grouping):
            return "(group " + self.emit_expr(expr.expr) + ")"
        if isinstance(expr, Unary):
            return "(" + expr.op + " " + self.emit_expr(expr.operand) + ")"
        if isinstance(expr, (Binary, Logical)):
            return (
                "("
                + expr.operator.lexeme
                + " "
                + self.emit_expr(expr.left)
                + " "
                + self.emit_expr(expr.right)
                + ")"
            )
        if isinstance(expr, Assign):
            return (
                "(= " + expr.target.name + " " + self.emit_expr(expr.value) + ")"
            )
        if isinstance(expr, Call):
            parts = [self.emit_expr(expr.callee)]
            for arg in expr.args:
                parts.append(self.emit_expr(arg))
            return "(call " + " ".join(parts) + ")"
        raise TypeError("unknown expression " + type(expr).__name__)

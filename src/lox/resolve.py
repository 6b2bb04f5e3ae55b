"""Lox resolver — static checks of variable lifecycle and statement placement.

Every scope tracks each name through DECLARED -> DEFINED -> READ. Leaving a
scope reports names that never got past DECLARED or DEFINED. Names that are
not found in any scope are assumed to be globals and are not reported.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

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
from .diagnostics import Sink, stderr_sink
from .parse import where
from .tokens import Token


class VarState(enum.Enum):
    DECLARED = "declared"
    DEFINED = "defined"
    READ = "read"


class ResolveErrorKind(enum.Enum):
    REDECLARED = "redeclared"
    READ_IN_INITIALIZER = "read in initializer"
    NEVER_SET = "never set"
    NEVER_READ = "never read"
    UNDEFINED_ASSIGNMENT = "undefined assignment"
    RETURN_OUTSIDE_FUNCTION = "return outside function"


@dataclass
class ResolveError:
    kind: ResolveErrorKind
    token: Token
    msg: str

    @property
    def line(self) -> int:
        return self.token.line

    def __str__(self) -> str:
        return self.msg + " at line " + str(self.token.line)


Scope = dict[Variable, VarState]


class Resolver:
    def __init__(self, sink: Sink | None = None) -> None:
        self.sink: Sink = sink if sink is not None else stderr_sink
        self.errors: list[ResolveError] = []
        # The global scope is never popped.
        self.scopes: list[Scope] = [{}]
        self.in_function: bool = False

    def error(self, kind: ResolveErrorKind, token: Token, msg: str) -> None:
        self.errors.append(ResolveError(kind, token, msg))
        self.sink(token.line, where(token), msg)

    # ── Scope management ──────────────────────────────────────

    def enter_scope(self) -> None:
        self.scopes.append({})

    def exit_scope(self) -> None:
        scope = self.scopes.pop()
        for var, state in scope.items():
            if state is VarState.DECLARED:
                self.error(
                    ResolveErrorKind.NEVER_SET,
                    var.token,
                    "Variable '" + var.name + "' is never set.",
                )
            elif state is VarState.DEFINED:
                self.error(
                    ResolveErrorKind.NEVER_READ,
                    var.token,
                    "Variable '" + var.name + "' is never read.",
                )

    def owning_scope(self, var: Variable) -> Scope | None:
        i = len(self.scopes) - 1
        while i >= 0:
            if var in self.scopes[i]:
                return self.scopes[i]
            i -= 1
        return None

    def declare(self, var: Variable) -> None:
        scope = self.scopes[-1]
        if var in scope:
            self.error(
                ResolveErrorKind.REDECLARED,
                var.token,
                "Already a variable with this name in this scope.",
            )
        scope[var] = VarState.DECLARED

    def define(self, var: Variable) -> None:
        scope = self.owning_scope(var)
        if scope is None:
            self.error(
                ResolveErrorKind.UNDEFINED_ASSIGNMENT,
                var.token,
                "Assigning to undefined variable '" + var.name + "'.",
            )
            return
        if scope[var] is VarState.DECLARED:
            scope[var] = VarState.DEFINED

    # ── Statements ───────────────────────────────────────────

    def resolve(self, stmts: list[Stmt]) -> list[ResolveError]:
        """Check one program. Globals seen by earlier calls stay in scope.

        A program with errors leaves the global scope as it found it.
        """
        self.errors = []
        saved = dict(self.scopes[0])
        self.resolve_stmts(stmts)
        if self.errors:
            self.scopes[0] = saved
        return self.errors

    def resolve_stmts(self, stmts: list[Stmt]) -> None:
        for stmt in stmts:
            self.resolve_stmt(stmt)

    def resolve_stmt(self, stmt: Stmt) -> None:
        if isinstance(stmt, Print):
            self.resolve_expr(stmt.expr)
            return
        if isinstance(stmt, Expression):
            self.resolve_expr(stmt.expr)
            return
        if isinstance(stmt, Var):
            self.declare(stmt.target)
            if stmt.initializer is None:
                return
            self.resolve_expr(stmt.initializer)
            self.define(stmt.target)
            return
        if isinstance(stmt, Block):
            self.enter_scope()
            self.resolve_stmts(stmt.statements)
            self.exit_scope()
            return
        if isinstance(stmt, If):
            self.resolve_expr(stmt.condition)
            self.resolve_stmt(stmt.then_branch)
            if stmt.else_branch is not None:
                self.resolve_stmt(stmt.else_branch)
            return
        if isinstance(stmt, While):
            self.resolve_expr(stmt.condition)
            self.resolve_stmt(stmt.body)
            return
        if isinstance(stmt, Return):
            if not self.in_function:
                self.error(
                    ResolveErrorKind.RETURN_OUTSIDE_FUNCTION,
                    stmt.keyword,
                    "Can't return from top-level code.",
                )
            self.resolve_expr(stmt.value)
            return
        if isinstance(stmt, Function):
            self.declare(stmt.name)
            self.define(stmt.name)
            self.resolve_function(stmt)
            return
        raise TypeError("unknown statement " + type(stmt).__name__)

    def resolve_function(self, fn: Function) -> None:
        enclosing = self.in_function
        self.in_function = True
        self.enter_scope()
        for param in fn.params:
            self.declare(param)
            self.define(param)
        self.resolve_stmt(fn.body)
        self.exit_scope()
        self.in_function = enclosing

    # ── Expressions ──────────────────────────────────────────

    def resolve_expr(self, expr: Expr) -> None:
        if isinstance(expr, Literal):
            return
        if isinstance(expr, Variable):
            self.resolve_read(expr)
            return
        if isinstance(expr, Assign):
            self.resolve_expr(expr.value)
            self.define(expr.target)
            return
        if isinstance(expr, Unary):
            self.resolve_expr(expr.operand)
            return
        if isinstance(expr, (Binary, Logical)):
            self.resolve_expr(expr.left)
            self.resolve_expr(expr.right)
            return
        if isinstance(expr, Grouping):
            self.resolve_expr(expr.expr)
            return
        if isinstance(expr, Call):
            self.resolve_expr(expr.callee)
            for arg in expr.args:
                self.resolve_expr(arg)
            return
        raise TypeError("unknown expression " + type(expr).__name__)

    def resolve_read(self, var: Variable) -> None:
        scope = self.owning_scope(var)
        if scope is None:
            return
        state = scope[var]
        if state is VarState.DECLARED:
            self.error(
                ResolveErrorKind.READ_IN_INITIALIZER,
                var.token,
                "Can't read local variable '" + var.name + "' before it is set.",
            )
        elif state is VarState.DEFINED:
            scope[var] = VarState.READ


# ============================================================
# PUBLIC API
# ============================================================


def resolve(stmts: list[Stmt], sink: Sink | None = None) -> list[ResolveError]:
    """Check a parsed program. Returns every diagnostic found (empty = ok)."""
    return Resolver(sink).resolve(stmts)

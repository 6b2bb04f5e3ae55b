"""Lox AST — parse-time node definitions."""

from __future__ import annotations

from dataclasses import dataclass

from .tokens import Token
from .values import Value


# ============================================================
# UNARY OPERATORS
# ============================================================

OP_NEGATE = "-"
OP_NOT = "!"
OP_INCREMENT = "++"
OP_DECREMENT = "--"
OP_POSTFIX_INCREMENT = "post++"
OP_POSTFIX_DECREMENT = "post--"

POSTFIX_OPS: set[str] = {OP_POSTFIX_INCREMENT, OP_POSTFIX_DECREMENT}
STEP_OPS: dict[str, float] = {
    OP_INCREMENT: 1.0,
    OP_DECREMENT: -1.0,
    OP_POSTFIX_INCREMENT: 1.0,
    OP_POSTFIX_DECREMENT: -1.0,
}


# ============================================================
# EXPRESSIONS
# ============================================================


@dataclass
class Expr:
    """Base for all expressions."""


@dataclass
class Literal(Expr):
    """A constant; evaluates to its own value."""

    value: Value


@dataclass
class Unary(Expr):
    """op operand, where op is one of the OP_* constants."""

    op: str
    operand: Expr
    token: Token


@dataclass
class Binary(Expr):
    left: Expr
    operator: Token
    right: Expr


@dataclass
class Grouping(Expr):
    """( expr )."""

    expr: Expr


@dataclass(eq=False)
class Variable(Expr):
    """A name reference.

    Equality and hash go by name only, so a Variable can key a scope map
    regardless of where it occurs in the source.
    """

    name: str
    token: Token

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Variable):
            return NotImplemented
        return self.name == other.name

    def __hash__(self) -> int:
        return hash(self.name)


@dataclass
class Assign(Expr):
    """target = value."""

    target: Variable
    value: Expr


@dataclass
class Logical(Expr):
    """left and/or right. The right operand is a whole assignment expression."""

    left: Expr
    operator: Token
    right: Expr


@dataclass
class Call(Expr):
    """callee(args). paren is the closing ')' used for error positions."""

    callee: Expr
    paren: Token
    args: list[Expr]


# ============================================================
# STATEMENTS
# ============================================================


@dataclass
class Stmt:
    """Base for all statements."""


@dataclass
class Print(Stmt):
    expr: Expr
    keyword: Token


@dataclass
class Expression(Stmt):
    """Evaluate and discard."""

    expr: Expr


@dataclass
class Var(Stmt):
    """var name = initializer; initializer is None when omitted."""

    target: Variable
    initializer: Expr | None


@dataclass
class Block(Stmt):
    statements: list[Stmt]


@dataclass
class If(Stmt):
    """else_branch is None when there is no else."""

    keyword: Token
    condition: Expr
    then_branch: Stmt
    else_branch: Stmt | None


@dataclass
class While(Stmt):
    """keyword is the `while`, or the `for` a loop was desugared from."""

    keyword: Token
    condition: Expr
    body: Stmt


@dataclass
class Return(Stmt):
    keyword: Token
    value: Expr


@dataclass
class Function(Stmt):
    """fun name(params) { body }."""

    name: Variable
    params: list[Variable]
    body: Block

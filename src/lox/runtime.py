"""Lox runtime — evaluate a resolved program against a chain of environments.

Statements return either None (carry on) or a `Returning` holding the value of
a `return` on its way out to the nearest call. Runtime errors are raised as
`LoxRuntimeError` and stop the current `interpret` call.
"""

from __future__ import annotations

import math
import sys
import time
from dataclasses import dataclass
from typing import Mapping, TextIO

from .ast import (
    OP_NEGATE,
    OP_NOT,
    POSTFIX_OPS,
    STEP_OPS,
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
from .environment import Environment
from .parse import where
from .tokens import Token
from .values import (
    NIL,
    LoxCallable,
    NativeFunction,
    Value,
    VBool,
    VNumber,
    VString,
    values_equal,
)


# ============================================================
# Diagnostics
# ============================================================


class LoxRuntimeError(Exception):
    """Evaluation failure at a token."""

    def __init__(self, msg: str, token: Token):
        super().__init__(msg + " at line " + str(token.line))
        self.msg = msg
        self.token = token


# ============================================================
# Control flow
# ============================================================


@dataclass
class Returning:
    """A `return` unwinding to the nearest call boundary."""

    value: Value


# ============================================================
# Callables
# ============================================================


class LoxFunction(LoxCallable):
    """A user-defined function and the frame it was declared in."""

    def __init__(self, declaration: Function, closure: Environment):
        self.declaration = declaration
        self.closure = closure

    @property
    def name(self) -> str:
        return self.declaration.name.name

    def arity(self) -> int:
        return len(self.declaration.params)

    def call(self, interpreter: Interpreter, arguments: list[Value]) -> Value:
        env = Environment(self.closure)
        for param, arg in zip(self.declaration.params, arguments):
            env.define(param.name, arg)
        result = interpreter.execute_block(self.declaration.body.statements, env)
        if result is not None:
            return result.value
        return NIL

    def to_string(self) -> str:
        return "<fn " + self.name + ">"

    def __repr__(self) -> str:
        return "LoxFunction(" + repr(self.name) + ")"


def _clock(interpreter: Interpreter, arguments: list[Value]) -> Value:
    return VNumber(time.time())


CLOCK = NativeFunction("clock", 0, _clock)

# Each Lox call nests about seven Python frames.
RECURSION_LIMIT = 8000


# ============================================================
# Arithmetic
# ============================================================


def _divide(a: float, b: float) -> float:
    """IEEE division; Python raises on a zero divisor."""
    if b != 0:
        return a / b
    if a == 0 or math.isnan(a):
        return math.nan
    return math.copysign(math.inf, a) * math.copysign(1.0, b)


def _arith(op: str, a: float, b: float) -> float:
    if op == "-":
        return a - b
    if op == "*":
        return a * b
    if op == "/":
        return _divide(a, b)
    return a + b


def _compare(op: str, a: float, b: float) -> bool:
    if op == ">":
        return a > b
    if op == ">=":
        return a >= b
    if op == "<":
        return a < b
    return a <= b


# ============================================================
# Interpreter
# ============================================================


class Interpreter:
    stdout: TextIO
    environment: Environment

    def __init__(
        self,
        natives: Mapping[str, LoxCallable] | None = None,
        *,
        stdout: TextIO | None = None,
        sink: Sink | None = None,
    ):
        self.stdout = stdout if stdout is not None else sys.stdout
        self.sink: Sink = sink if sink is not None else stderr_sink
        # The top-level frame; replaced by its split on every top-level `var`.
        self.environment = Environment()
        self.define_native("clock", CLOCK)
        if natives is not None:
            for name, fn in natives.items():
                self.define_native(name, fn)

    def define_native(self, name: str, fn: LoxCallable) -> None:
        """Bind a callable in the current frame. Call before running code."""
        self.environment.define(name, fn)

    # ---- Running -----------------------------------------------------------

    def interpret(self, stmts: list[Stmt]) -> LoxRuntimeError | None:
        """Run statements until the first runtime error, which is reported and returned."""
        if sys.getrecursionlimit() < RECURSION_LIMIT:
            sys.setrecursionlimit(RECURSION_LIMIT)
        try:
            for stmt in stmts:
                self.execute(stmt)
        except LoxRuntimeError as e:
            self.sink(e.token.line, where(e.token), e.msg)
            return e
        return None

    # ---- Statements --------------------------------------------------------

    def execute_block(self, stmts: list[Stmt], env: Environment) -> Returning | None:
        previous = self.environment
        self.environment = env
        try:
            for stmt in stmts:
                result = self.execute(stmt)
                if result is not None:
                    return result
            return None
        finally:
            self.environment = previous

    def execute(self, stmt: Stmt) -> Returning | None:
        if isinstance(stmt, Expression):
            self.evaluate(stmt.expr)
            return None

        if isinstance(stmt, Print):
            value = self.evaluate(stmt.expr)
            self.stdout.write(value.to_string() + "\n")
            return None

        if isinstance(stmt, Var):
            initial: Value | None = None
            if stmt.initializer is not None:
                initial = self.evaluate(stmt.initializer)
            # Each declaration gets a fresh frame, so closures made before it
            # keep seeing the frame they captured.
            self.environment = self.environment.split()
            if initial is None:
                self.environment.declare(stmt.target.name)
            else:
                self.environment.define(stmt.target.name, initial)
            return None

        if isinstance(stmt, Block):
            return self.execute_block(stmt.statements, Environment(self.environment))

        if isinstance(stmt, If):
            cond = self.evaluate(stmt.condition)
            if not isinstance(cond, VBool):
                raise LoxRuntimeError("Condition must be a boolean.", stmt.keyword)
            if cond.value:
                return self.execute(stmt.then_branch)
            if stmt.else_branch is not None:
                return self.execute(stmt.else_branch)
            return None

        if isinstance(stmt, While):
            while True:
                cond = self.evaluate(stmt.condition)
                if not isinstance(cond, VBool):
                    raise LoxRuntimeError("Condition must be a boolean.", stmt.keyword)
                if not cond.value:
                    return None
                result = self.execute(stmt.body)
                if result is not None:
                    return result

        if isinstance(stmt, Return):
            return Returning(self.evaluate(stmt.value))

        if isinstance(stmt, Function):
            fn = LoxFunction(stmt, self.environment)
            self.environment.define(stmt.name.name, fn)
            return None

        raise TypeError("unknown statement " + type(stmt).__name__)

    # ---- Expressions -------------------------------------------------------

    def evaluate(self, expr: Expr) -> Value:
        if isinstance(expr, Literal):
            return expr.value

        if isinstance(expr, Grouping):
            return self.evaluate(expr.expr)

        if isinstance(expr, Variable):
            return self._lookup(expr)

        if isinstance(expr, Assign):
            previous: Value | None = None
            if isinstance(expr.value, Unary) and expr.value.op in POSTFIX_OPS:
                previous = self.evaluate(expr.value.operand)
            value = self.evaluate(expr.value)
            if not self.environment.assign(expr.target.name, value):
                raise LoxRuntimeError(
                    "Undefined variable '" + expr.target.name + "'.",
                    expr.target.token,
                )
            return previous if previous is not None else value

        if isinstance(expr, Unary):
            return self._eval_unary(expr)

        if isinstance(expr, Binary):
            left = self.evaluate(expr.left)
            right = self.evaluate(expr.right)
            return self._eval_binary(expr.operator, left, right)

        if isinstance(expr, Logical):
            left = self.evaluate(expr.left)
            if not isinstance(left, VBool):
                raise LoxRuntimeError(
                    "Left operand of '" + expr.operator.lexeme + "' must be a boolean.",
                    expr.operator,
                )
            if expr.operator.type == "or":
                if left.value:
                    return left
            elif not left.value:
                return left
            return self.evaluate(expr.right)

        if isinstance(expr, Call):
            return self._eval_call(expr)

        raise TypeError("unknown expression " + type(expr).__name__)

    def _lookup(self, var: Variable) -> Value:
        value = self.environment.get(var.name)
        if value is not None:
            return value
        if self.environment.is_declared(var.name):
            raise LoxRuntimeError(
                "Uninitialized variable '" + var.name + "'.", var.token
            )
        raise LoxRuntimeError("Undefined variable '" + var.name + "'.", var.token)

    def _eval_unary(self, expr: Unary) -> Value:
        operand = self.evaluate(expr.operand)
        if expr.op == OP_NOT:
            if not isinstance(operand, VBool):
                raise LoxRuntimeError("Operand must be a boolean.", expr.token)
            return VBool(not operand.value)
        if not isinstance(operand, VNumber):
            raise LoxRuntimeError("Operand must be a number.", expr.token)
        if expr.op == OP_NEGATE:
            return VNumber(-operand.value)
        return VNumber(operand.value + STEP_OPS[expr.op])

    def _eval_binary(self, op: Token, left: Value, right: Value) -> Value:
        if op.type == "==":
            return VBool(values_equal(left, right))
        if op.type == "!=":
            return VBool(not values_equal(left, right))

        if op.type == "+":
            if isinstance(left, VNumber) and isinstance(right, VNumber):
                return VNumber(left.value + right.value)
            if isinstance(left, VString):
                return VString(left.value + right.to_string())
            raise LoxRuntimeError(
                "Operands must be two numbers or two strings.", op
            )

        if not isinstance(left, VNumber) or not isinstance(right, VNumber):
            raise LoxRuntimeError("Operands must be numbers.", op)
        if op.type in ("-", "*", "/"):
            return VNumber(_arith(op.type, left.value, right.value))
        if op.type in (">", ">=", "<", "<="):
            return VBool(_compare(op.type, left.value, right.value))
        raise LoxRuntimeError("Unknown operator '" + op.lexeme + "'.", op)

    def _eval_call(self, call: Call) -> Value:
        callee = self.evaluate(call.callee)
        args = [self.evaluate(arg) for arg in call.args]
        if not isinstance(callee, LoxCallable):
            raise LoxRuntimeError(
                "Can only call functions.", call.paren
            )
        if len(args) != callee.arity():
            raise LoxRuntimeError(
                "Expected "
                + str(callee.arity())
                + " arguments but got "
                + str(len(args))
                + ".",
                call.paren,
            )
        try:
            return callee.call(self, args)
        except RecursionError:
            raise LoxRuntimeError("Stack overflow.", call.paren) from None


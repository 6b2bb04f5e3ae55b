"""Lox runtime values. Literal expressions wrap these directly."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from .runtime import Interpreter


class Value:
    """A runtime value tagged by its class."""

    def to_string(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class VNumber(Value):
    value: float

    def to_string(self) -> str:
        return format_number(self.value)


@dataclass(frozen=True)
class VString(Value):
    value: str

    def to_string(self) -> str:
        return self.value


@dataclass(frozen=True)
class VBool(Value):
    value: bool

    def to_string(self) -> str:
        return "true" if self.value else "false"


@dataclass(frozen=True)
class VNil(Value):
    def to_string(self) -> str:
        return "nil"


NIL = VNil()
TRUE = VBool(True)
FALSE = VBool(False)


class LoxCallable(Value):
    """Anything that can be called: an arity and a call operation."""

    def arity(self) -> int:
        raise NotImplementedError

    def call(self, interpreter: Interpreter, arguments: list[Value]) -> Value:
        raise NotImplementedError


class NativeFunction(LoxCallable):
    """A host function exposed to Lox code."""

    def __init__(
        self,
        name: str,
        arity: int,
        fn: Callable[[Interpreter, list[Value]], Value],
    ):
        self.name = name
        self._arity = arity
        self._fn = fn

    def arity(self) -> int:
        return self._arity

    def call(self, interpreter: Interpreter, arguments: list[Value]) -> Value:
        return self._fn(interpreter, arguments)

    def to_string(self) -> str:
        return "<native fn " + self.name + ">"

    def __repr__(self) -> str:
        return "NativeFunction(" + repr(self.name) + ", " + str(self._arity) + ")"


def format_number(x: float) -> str:
    if math.isnan(x):
        return "NaN"
    if math.isinf(x):
        return "Infinity" if x > 0 else "-Infinity"
    if x == int(x) and abs(x) < 1e16:
        if x == 0 and math.copysign(1.0, x) < 0:
            return "-0"
        return str(int(x))
    return repr(x)


def values_equal(a: Value, b: Value) -> bool:
    """Structural equality per variant; different variants are never equal."""
    if isinstance(a, VNil):
        return isinstance(b, VNil)
    if isinstance(a, VNumber):
        return isinstance(b, VNumber) and a.value == b.value
    if isinstance(a, VString):
        return isinstance(b, VString) and a.value == b.value
    if isinstance(a, VBool):
        return isinstance(b, VBool) and a.value == b.value
    return a is b

"""Binding frames for the interpreter."""

from __future__ import annotations

from .values import Value


class Environment:
    """One frame of bindings with an optional enclosing frame.

    A name can be declared without a value. Lookups stop at the first frame
    that declares the name, set or not.
    """

    def __init__(self, enclosing: Environment | None = None):
        self.enclosing: Environment | None = enclosing
        self.values: dict[str, Value] = {}
        self.declared: set[str] = set()

    def declare(self, name: str) -> None:
        self.declared.add(name)

    def define(self, name: str, value: Value) -> None:
        self.declared.add(name)
        self.values[name] = value

    def owner(self, name: str) -> Environment | None:
        env: Environment | None = self
        while env is not None:
            if name in env.declared:
                return env
            env = env.enclosing
        return None

    def get(self, name: str) -> Value | None:
        """Value bound to name, or None when undeclared or never set."""
        env = self.owner(name)
        if env is None:
            return None
        return env.values.get(name)

    def assign(self, name: str, value: Value) -> bool:
        """Set name in its owning frame. False when no frame declares it."""
        env = self.owner(name)
        if env is None:
            return False
        env.values[name] = value
        return True

    def is_declared(self, name: str) -> bool:
        return self.owner(name) is not None

    def split(self) -> Environment:
        """A new frame with the same parent and a copy of this frame's bindings."""
        env = Environment(self.enclosing)
        env.values = dict(self.values)
        env.declared = set(self.declared)
        return env


"""Lexical scope chain for the Lox runtime."""

from __future__ import annotations

from typing import Any

from .errors import UndefinedVariable
from .tokens import Token


class Environment:
    """One scope: a binding table plus a link to the enclosing scope.

    Environments are shared by reference. Every closure and nested scope created
    while this one was active holds the same object, so a mutation made through
    any holder is visible to all of them.
    """

    def __init__(self, enclosing: Environment | None = None):
        self.values: dict[str, Any] = {}
        self.enclosing: Environment | None = enclosing

    def __repr__(self) -> str:
        return "Environment(" + ", ".join(self.values) + ")"

    def define(self, name: str, value: Any) -> None:
        self.values[name] = value

    def get(self, name: Token) -> Any:
        env: Environment | None = self
        while env is not None:
            if name.lexeme in env.values:
                return env.values[name.lexeme]
            env = env.enclosing
        raise UndefinedVariable(name)

    def assign(self, name: Token, value: Any) -> None:
        env: Environment | None = self
        while env is not None:
            if name.lexeme in env.values:
                env.values[name.lexeme] = value
                return
            env = env.enclosing
        raise UndefinedVariable(name)

    def ancestor(self, distance: int) -> Environment:
        env = self
        i = 0
        while i < distance:
            if env.enclosing is None:
                raise RuntimeError(
                    "scope chain shorter than resolved distance " + str(distance)
                )
            env = env.enclosing
            i += 1
        return env

    def get_at(self, distance: int, name: str) -> Any:
        values = self.ancestor(distance).values
        if name not in values:
            raise RuntimeError(
                "resolved name '" + name + "' missing at distance " + str(distance)
            )
        return values[name]

    def assign_at(self, distance: int, name: Token, value: Any) -> None:
        values = self.ancestor(distance).values
        if name.lexeme not in values:
            raise RuntimeError(
                "resolved name '" + name.lexeme + "' missing at distance " + str(distance)
            )
        values[name.lexeme] = value

"""Runtime error hierarchy.

Every error carries the token whose line is reported. Syntax and resolution
errors live beside their passes (`ParseError`, `ResolveError`).
"""

from __future__ import annotations

from .tokens import Token


class LoxRuntimeError(Exception):
    """Base error for Lox evaluation. Aborts the whole run when uncaught."""

    def __init__(self, token: Token, msg: str):
        super().__init__(msg)
        self.token = token
        self.msg = msg


class UndefinedVariable(LoxRuntimeError):
    def __init__(self, name: Token):
        super().__init__(name, "Undefined variable '" + name.lexeme + "'.")


class LoxTypeError(LoxRuntimeError):
    """Operator applied to operands of the wrong kind."""


class ArityMismatch(LoxRuntimeError):
    def __init__(self, paren: Token, expected: int, got: int):
        super().__init__(
            paren,
            "Expected " + str(expected) + " arguments but got " + str(got) + ".",
        )
        self.expected = expected
        self.got = got


class NotCallable(LoxRuntimeError):
    def __init__(self, paren: Token):
        super().__init__(paren, "Can only call functions and classes.")


class NotAnInstance(LoxRuntimeError):
    """Property access or assignment on something that is not an instance."""


class UndefinedProperty(LoxRuntimeError):
    def __init__(self, name: Token):
        super().__init__(name, "Undefined property '" + name.lexeme + "'.")


class NotAClass(LoxRuntimeError):
    def __init__(self, name: Token):
        super().__init__(name, "Superclass must be a class.")


class StackOverflow(LoxRuntimeError):
    """Lox calls nested deeper than the host stack allows."""

    def __init__(self, paren: Token):
        super().__init__(paren, "Stack overflow.")

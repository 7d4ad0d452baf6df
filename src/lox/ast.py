"""Lox AST — parse-time node definitions.

Nodes are frozen and compare by identity: the resolver's binding table is
keyed on the node object itself, so two structurally equal `Variable` nodes at
different sites must stay distinct.
"""

from __future__ import annotations

from dataclasses import dataclass

from .tokens import Token


# ============================================================
# EXPRESSIONS
# ============================================================


@dataclass(frozen=True, eq=False)
class Expr:
    """Base for all expressions."""


@dataclass(frozen=True, eq=False)
class Literal(Expr):
    """false, true, nil, number, string."""

    value: float | str | bool | None


@dataclass(frozen=True, eq=False)
class Grouping(Expr):
    """( expression )."""

    expression: Expr


@dataclass(frozen=True, eq=False)
class Unary(Expr):
    """! right, - right."""

    operator: Token
    right: Expr


@dataclass(frozen=True, eq=False)
class Binary(Expr):
    """Arithmetic, comparison, and equality operators."""

    left: Expr
    operator: Token
    right: Expr


@dataclass(frozen=True, eq=False)
class Logical(Expr):
    """Short-circuiting and / or."""

    left: Expr
    operator: Token
    right: Expr


@dataclass(frozen=True, eq=False)
class Variable(Expr):
    name: Token


@dataclass(frozen=True, eq=False)
class Assign(Expr):
    """name = value."""

    name: Token
    value: Expr


@dataclass(frozen=True, eq=False)
class Call(Expr):
    """callee ( arguments ). paren is the closing ')' for error lines."""

    callee: Expr
    paren: Token
    arguments: list[Expr]


@dataclass(frozen=True, eq=False)
class Get(Expr):
    """object . name."""

    object: Expr
    name: Token


@dataclass(frozen=True, eq=False)
class Set(Expr):
    """object . name = value."""

    object: Expr
    name: Token
    value: Expr


@dataclass(frozen=True, eq=False)
class This(Expr):
    keyword: Token


@dataclass(frozen=True, eq=False)
class Super(Expr):
    """super . method."""

    keyword: Token
    method: Token


# ============================================================
# STATEMENTS
# ============================================================


@dataclass(frozen=True, eq=False)
class Stmt:
    """Base for all statements."""


@dataclass(frozen=True, eq=False)
class Expression(Stmt):
    """expression ;"""

    expression: Expr


@dataclass(frozen=True, eq=False)
class Print(Stmt):
    """print expression ;"""

    expression: Expr


@dataclass(frozen=True, eq=False)
class Var(Stmt):
    """var name ( = initializer )? ;"""

    name: Token
    initializer: Expr | None


@dataclass(frozen=True, eq=False)
class Block(Stmt):
    """{ statements }"""

    statements: list[Stmt]


@dataclass(frozen=True, eq=False)
class If(Stmt):
    condition: Expr
    then_branch: Stmt
    else_branch: Stmt | None


@dataclass(frozen=True, eq=False)
class While(Stmt):
    condition: Expr
    body: Stmt


@dataclass(frozen=True, eq=False)
class Function(Stmt):
    """fun name ( params ) { body }. Also used for methods."""

    name: Token
    params: list[Token]
    body: list[Stmt]


@dataclass(frozen=True, eq=False)
class Return(Stmt):
    """return value? ;"""

    keyword: Token
    value: Expr | None


@dataclass(frozen=True, eq=False)
class Class(Stmt):
    """class name ( < superclass )? { methods }"""

    name: Token
    superclass: Variable | None
    methods: list[Function]

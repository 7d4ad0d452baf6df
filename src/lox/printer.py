"""Lox AST printer — renders statements as parenthesized s-expressions.

Total over the node types in `lox/ast.py`: a new node type needs a case here
as well. Output is for debugging (`lox --ast`) and tests; nothing reads it back.
"""

from __future__ import annotations

from .ast import (
    Assign,
    Binary,
    Block,
    Call,
    Class,
    Expr,
    Expression,
    Function,
    Get,
    Grouping,
    If,
    Literal,
    Logical,
    Print,
    Return,
    Set,
    Stmt,
    Super,
    This,
    Unary,
    Var,
    Variable,
    While,
)
from .runtime import stringify


def to_sexpr(statements: list[Stmt]) -> str:
    """Render a program, one top-level statement per line."""
    printer = _Printer()
    return "\n".join(printer.render_stmt(stmt) for stmt in statements)


def expr_to_sexpr(expr: Expr) -> str:
    return _Printer().render_expr(expr)


class _Printer:
    def _wrap(self, head: str, *parts: str) -> str:
        return "(" + " ".join((head,) + parts) + ")"

    def _stmts(self, statements: list[Stmt]) -> list[str]:
        return [self.render_stmt(s) for s in statements]

    # ── Statements ───────────────────────────────────────────

    def render_stmt(self, stmt: Stmt) -> str:
        if isinstance(stmt, Expression):
            return self._wrap(";", self.render_expr(stmt.expression))
        if isinstance(stmt, Print):
            return self._wrap("print", self.render_expr(stmt.expression))
        if isinstance(stmt, Var):
            if stmt.initializer is None:
                return self._wrap("var", stmt.name.lexeme)
            return self._wrap("var", stmt.name.lexeme, self.render_expr(stmt.initializer))
        if isinstance(stmt, Block):
            return self._wrap("block", *self._stmts(stmt.statements))
        if isinstance(stmt, If):
            parts = [self.render_expr(stmt.condition), self.render_stmt(stmt.then_branch)]
            if stmt.else_branch is not None:
                parts.append(self.render_stmt(stmt.else_branch))
            return self._wrap("if", *parts)
        if isinstance(stmt, While):
            return self._wrap(
                "while", self.render_expr(stmt.condition), self.render_stmt(stmt.body)
            )
        if isinstance(stmt, Function):
            return self._render_function(stmt)
        if isinstance(stmt, Return):
            if stmt.value is None:
                return self._wrap("return")
            return self._wrap("return", self.render_expr(stmt.value))
        if isinstance(stmt, Class):
            head = [stmt.name.lexeme]
            if stmt.superclass is not None:
                head += ["<", stmt.superclass.name.lexeme]
            methods = [self._render_function(m) for m in stmt.methods]
            return self._wrap("class", *head, *methods)
        raise RuntimeError("unhandled statement type: " + type(stmt).__name__)

    def _render_function(self, fn: Function) -> str:
        params = "(" + " ".join(p.lexeme for p in fn.params) + ")"
        return self._wrap("fun", fn.name.lexeme, params, *self._stmts(fn.body))

    # ── Expressions ──────────────────────────────────────────

    def render_expr(self, expr: Expr) -> str:
        if isinstance(expr, Literal):
            if isinstance(expr.value, str):
                return '"' + expr.value + '"'
            return stringify(expr.value)
        if isinstance(expr, Grouping):
            return self._wrap("group", self.render_expr(expr.expression))
        if isinstance(expr, Unary):
            return self._wrap(expr.operator.lexeme, self.render_expr(expr.right))
        if isinstance(expr, (Binary, Logical)):
            return self._wrap(
                expr.operator.lexeme,
                self.render_expr(expr.left),
                self.render_expr(expr.right),
            )
        if isinstance(expr, Variable):
            return expr.name.lexeme
        if isinstance(expr, Assign):
            return self._wrap("=", expr.name.lexeme, self.render_expr(expr.value))
        if isinstance(expr, Call):
            args = [self.render_expr(a) for a in expr.arguments]
            return self._wrap("call", self.render_expr(expr.callee), *args)
        if isinstance(expr, Get):
            return self._wrap(".", self.render_expr(expr.object), expr.name.lexeme)
        if isinstance(expr, Set):
            target = self._wrap(".", self.render_expr(expr.object), expr.name.lexeme)
            return self._wrap("=", target, self.render_expr(expr.value))
        if isinstance(expr, This):
            return "this"
        if isinstance(expr, Super):
            return self._wrap("super", expr.method.lexeme)
        raise RuntimeError("unhandled expression type: " + type(expr).__name__)

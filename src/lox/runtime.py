"""Lox runtime — runtime values and the tree-walking evaluator."""

from __future__ import annotations

import logging
import math
import sys
import time
from dataclasses import dataclass, field
from typing import Any, Callable, TextIO

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
from .environment import Environment
from .errors import (
    ArityMismatch,
    LoxRuntimeError,
    LoxTypeError,
    NotAClass,
    NotAnInstance,
    NotCallable,
    StackOverflow,
    UndefinedProperty,
)
from .report import Reporter
from .tokens import Token, TokenType

logger = logging.getLogger(__name__)


# ============================================================
# Values
# ============================================================


class LoxCallable:
    """Anything a Call expression can invoke."""

    def arity(self) -> int:
        raise NotImplementedError

    def call(self, interpreter: Interpreter, arguments: list[Any]) -> Any:
        raise NotImplementedError

    def to_string(self) -> str:
        raise NotImplementedError


@dataclass(eq=False)
class NativeFunction(LoxCallable):
    name: str
    n_params: int
    fn: Callable[[list[Any]], Any]

    def arity(self) -> int:
        return self.n_params

    def call(self, interpreter: Interpreter, arguments: list[Any]) -> Any:
        return self.fn(arguments)

    def to_string(self) -> str:
        return "<native fn>"


@dataclass(eq=False)
class LoxFunction(LoxCallable):
    """A function declaration paired with the environment it was defined in."""

    declaration: Function
    closure: Environment
    is_initializer: bool = False

    def arity(self) -> int:
        return len(self.declaration.params)

    def bind(self, instance: LoxInstance) -> LoxFunction:
        env = Environment(self.closure)
        env.define("this", instance)
        return LoxFunction(self.declaration, env, self.is_initializer)

    def call(self, interpreter: Interpreter, arguments: list[Any]) -> Any:
        env = Environment(self.closure)
        for param, arg in zip(self.declaration.params, arguments):
            env.define(param.lexeme, arg)
        outcome = interpreter.execute_block(self.declaration.body, env)
        # init() always yields the instance, even on a bare `return;`
        if self.is_initializer:
            return self.closure.get_at(0, "this")
        if outcome is not None:
            return outcome.value
        return None

    def to_string(self) -> str:
        return "<fn " + self.declaration.name.lexeme + ">"


@dataclass(eq=False)
class LoxClass(LoxCallable):
    name: str
    superclass: LoxClass | None
    methods: dict[str, LoxFunction]

    def find_method(self, name: str) -> LoxFunction | None:
        klass: LoxClass | None = self
        while klass is not None:
            if name in klass.methods:
                return klass.methods[name]
            klass = klass.superclass
        return None

    def arity(self) -> int:
        initializer = self.find_method("init")
        if initializer is None:
            return 0
        return initializer.arity()

    def call(self, interpreter: Interpreter, arguments: list[Any]) -> Any:
        instance = LoxInstance(self)
        initializer = self.find_method("init")
        if initializer is not None:
            initializer.bind(instance).call(interpreter, arguments)
        return instance

    def to_string(self) -> str:
        return self.name


@dataclass(eq=False)
class LoxInstance:
    klass: LoxClass
    fields: dict[str, Any] = field(default_factory=dict)

    def get(self, name: Token) -> Any:
        # Fields shadow methods
        if name.lexeme in self.fields:
            return self.fields[name.lexeme]
        method = self.klass.find_method(name.lexeme)
        if method is not None:
            return method.bind(self)
        raise UndefinedProperty(name)

    def set(self, name: Token, value: Any) -> None:
        self.fields[name.lexeme] = value

    def to_string(self) -> str:
        return self.klass.name + " instance"


def is_truthy(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return True


def is_equal(a: Any, b: Any) -> bool:
    # Values of different kinds are never equal; true is not 1
    if a is None:
        return b is None
    if type(a) is not type(b):
        return False
    if isinstance(a, float):
        # NaN equals NaN; -0 and 0 differ
        if math.isnan(a) and math.isnan(b):
            return True
        return a == b and math.copysign(1.0, a) == math.copysign(1.0, b)
    return a == b


def _format_number(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    text = repr(value)
    if text.endswith(".0"):
        text = text[:-2]
    return text


def stringify(value: Any) -> str:
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return _format_number(value)
    if isinstance(value, str):
        return value
    if isinstance(value, (LoxCallable, LoxInstance)):
        return value.to_string()
    raise RuntimeError("no string form for host value " + repr(value))


def _divide(left: float, right: float) -> float:
    if right == 0:
        if left == 0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1.0, right)
    return left / right


# ============================================================
# Control flow (internal)
# ============================================================


@dataclass
class _Return:
    """Abrupt completion of a statement: unwinds to the enclosing call."""

    value: Any


# ============================================================
# Interpreter
# ============================================================


@dataclass
class RunResult:
    exit_code: int
    stdout: str
    stderr: str


def _clock(arguments: list[Any]) -> float:
    return time.time()


class Interpreter:
    def __init__(self, out: TextIO | None = None, reporter: Reporter | None = None):
        self.out: TextIO | None = out
        self.reporter: Reporter = reporter if reporter is not None else Reporter()
        self.globals: Environment = Environment()
        self.environment: Environment = self.globals
        self.locals: dict[Expr, int] = {}
        self.globals.define("clock", NativeFunction("clock", 0, _clock))

    # ---- Entry points ------------------------------------------------------

    def resolve(self, bindings: dict[Expr, int]) -> None:
        """Merge a resolver binding table. REPL sessions accumulate these."""
        self.locals.update(bindings)

    def interpret(self, statements: list[Stmt]) -> None:
        try:
            for stmt in statements:
                self.execute(stmt)
        except LoxRuntimeError as e:
            self.reporter.runtime_error(e)

    # ---- Statements --------------------------------------------------------

    def execute_block(self, statements: list[Stmt], environment: Environment) -> _Return | None:
        previous = self.environment
        self.environment = environment
        try:
            for stmt in statements:
                outcome = self.execute(stmt)
                if outcome is not None:
                    return outcome
            return None
        finally:
            self.environment = previous

    def execute(self, stmt: Stmt) -> _Return | None:
        if isinstance(stmt, Expression):
            self.evaluate(stmt.expression)
            return None

        if isinstance(stmt, Print):
            value = self.evaluate(stmt.expression)
            out = self.out if self.out is not None else sys.stdout
            out.write(stringify(value) + "\n")
            return None

        if isinstance(stmt, Var):
            value = None
            if stmt.initializer is not None:
                value = self.evaluate(stmt.initializer)
            self.environment.define(stmt.name.lexeme, value)
            return None

        if isinstance(stmt, Block):
            return self.execute_block(stmt.statements, Environment(self.environment))

        if isinstance(stmt, If):
            if is_truthy(self.evaluate(stmt.condition)):
                return self.execute(stmt.then_branch)
            if stmt.else_branch is not None:
                return self.execute(stmt.else_branch)
            return None

        if isinstance(stmt, While):
            while is_truthy(self.evaluate(stmt.condition)):
                outcome = self.execute(stmt.body)
                if outcome is not None:
                    return outcome
            return None

        if isinstance(stmt, Function):
            logger.debug("define function %s", stmt.name.lexeme)
            self.environment.define(stmt.name.lexeme, LoxFunction(stmt, self.environment))
            return None

        if isinstance(stmt, Return):
            value = None
            if stmt.value is not None:
                value = self.evaluate(stmt.value)
            return _Return(value)

        if isinstance(stmt, Class):
            self._execute_class(stmt)
            return None

        raise RuntimeError("unhandled statement type: " + type(stmt).__name__)

    def _execute_class(self, stmt: Class) -> None:
        superclass: LoxClass | None = None
        if stmt.superclass is not None:
            value = self.evaluate(stmt.superclass)
            if not isinstance(value, LoxClass):
                raise NotAClass(stmt.superclass.name)
            superclass = value

        self.environment.define(stmt.name.lexeme, None)

        # Methods close over a scope binding `super` to the class they were
        # declared under, not the receiver's runtime class.
        if superclass is not None:
            self.environment = Environment(self.environment)
            self.environment.define("super", superclass)

        methods: dict[str, LoxFunction] = {}
        for method in stmt.methods:
            is_init = method.name.lexeme == "init"
            methods[method.name.lexeme] = LoxFunction(method, self.environment, is_init)
        klass = LoxClass(stmt.name.lexeme, superclass, methods)

        if superclass is not None:
            assert self.environment.enclosing is not None
            self.environment = self.environment.enclosing

        logger.debug(
            "define class %s (superclass %s)",
            klass.name,
            superclass.name if superclass is not None else "none",
        )
        self.environment.assign(stmt.name, klass)

    # ---- Expressions -------------------------------------------------------

    def evaluate(self, expr: Expr) -> Any:
        if isinstance(expr, Literal):
            return expr.value

        if isinstance(expr, Grouping):
            return self.evaluate(expr.expression)

        if isinstance(expr, Unary):
            return self._eval_unary(expr)

        if isinstance(expr, Binary):
            return self._eval_binary(expr)

        if isinstance(expr, Logical):
            left = self.evaluate(expr.left)
            if expr.operator.type == TokenType.OR:
                if is_truthy(left):
                    return left
            elif not is_truthy(left):
                return left
            return self.evaluate(expr.right)

        if isinstance(expr, Variable):
            return self._look_up_variable(expr.name, expr)

        if isinstance(expr, Assign):
            value = self.evaluate(expr.value)
            distance = self.locals.get(expr)
            if distance is not None:
                self.environment.assign_at(distance, expr.name, value)
            else:
                self.globals.assign(expr.name, value)
            return value

        if isinstance(expr, Call):
            return self._eval_call(expr)

        if isinstance(expr, Get):
            obj = self.evaluate(expr.object)
            if isinstance(obj, LoxInstance):
                return obj.get(expr.name)
            raise NotAnInstance(expr.name, "Only instances have properties.")

        if isinstance(expr, Set):
            obj = self.evaluate(expr.object)
            if not isinstance(obj, LoxInstance):
                raise NotAnInstance(expr.name, "Only instances have fields.")
            value = self.evaluate(expr.value)
            obj.set(expr.name, value)
            return value

        if isinstance(expr, This):
            return self._look_up_variable(expr.keyword, expr)

        if isinstance(expr, Super):
            return self._eval_super(expr)

        raise RuntimeError("unhandled expression type: " + type(expr).__name__)

    def _look_up_variable(self, name: Token, expr: Expr) -> Any:
        distance = self.locals.get(expr)
        if distance is not None:
            return self.environment.get_at(distance, name.lexeme)
        return self.globals.get(name)

    def _eval_super(self, expr: Super) -> Any:
        distance = self.locals.get(expr)
        if distance is None:
            raise RuntimeError("unresolved 'super' at line " + str(expr.keyword.line))
        superclass = self.environment.get_at(distance, "super")
        # `this` is always bound one scope inside the `super` scope
        instance = self.environment.get_at(distance - 1, "this")
        method = superclass.find_method(expr.method.lexeme)
        if method is None:
            raise UndefinedProperty(expr.method)
        return method.bind(instance)

    def _eval_call(self, expr: Call) -> Any:
        callee = self.evaluate(expr.callee)
        arguments = [self.evaluate(arg) for arg in expr.arguments]
        if not isinstance(callee, LoxCallable):
            raise NotCallable(expr.paren)
        if len(arguments) != callee.arity():
            raise ArityMismatch(expr.paren, callee.arity(), len(arguments))
        try:
            return callee.call(self, arguments)
        except RecursionError:
            raise StackOverflow(expr.paren) from None

    def _eval_unary(self, expr: Unary) -> Any:
        right = self.evaluate(expr.right)
        op = expr.operator.type
        if op == TokenType.BANG:
            return not is_truthy(right)
        if op == TokenType.MINUS:
            _check_number_operand(expr.operator, right)
            return -right
        raise RuntimeError("unknown unary operator " + expr.operator.lexeme)

    def _eval_binary(self, expr: Binary) -> Any:
        left = self.evaluate(expr.left)
        right = self.evaluate(expr.right)
        op = expr.operator.type

        if op == TokenType.EQUAL_EQUAL:
            return is_equal(left, right)
        if op == TokenType.BANG_EQUAL:
            return not is_equal(left, right)

        if op == TokenType.PLUS:
            if isinstance(left, float) and isinstance(right, float):
                return left + right
            if isinstance(left, str) and isinstance(right, str):
                return left + right
            raise LoxTypeError(
                expr.operator, "Operands must be two numbers or two strings."
            )

        _check_number_operands(expr.operator, left, right)
        if op == TokenType.MINUS:
            return left - right
        if op == TokenType.STAR:
            return left * right
        if op == TokenType.SLASH:
            return _divide(left, right)
        if op == TokenType.GREATER:
            return left > right
        if op == TokenType.GREATER_EQUAL:
            return left >= right
        if op == TokenType.LESS:
            return left < right
        if op == TokenType.LESS_EQUAL:
            return left <= right
        raise RuntimeError("unknown binary operator " + expr.operator.lexeme)


def _check_number_operand(operator: Token, operand: Any) -> None:
    if not isinstance(operand, float):
        raise LoxTypeError(operator, "Operand must be a number.")


def _check_number_operands(operator: Token, left: Any, right: Any) -> None:
    if not isinstance(left, float) or not isinstance(right, float):
        raise LoxTypeError(operator, "Operands must be numbers.")

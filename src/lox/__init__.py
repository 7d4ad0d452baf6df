"""Lox interpreter — public API."""

from __future__ import annotations

import io
import logging
import sys
from typing import TextIO

from .ast import Expr, Stmt
from .parse import ParseError as ParseError, Parser
from .report import Reporter
from .resolve import ResolveError as ResolveError, Resolver
from .runtime import Interpreter, RunResult as RunResult
from .tokens import Token, scan as scan_tokens

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

# sysexits.h
EX_OK: int = 0
EX_USAGE: int = 64
EX_DATAERR: int = 65
EX_NOINPUT: int = 66
EX_SOFTWARE: int = 70

# Each Lox call costs several host frames
RECURSION_LIMIT: int = 10000


def raise_recursion_limit() -> None:
    if sys.getrecursionlimit() < RECURSION_LIMIT:
        sys.setrecursionlimit(RECURSION_LIMIT)


def scan(source: str, reporter: Reporter | None = None) -> list[Token]:
    """Tokenize Lox source. Errors go to `reporter` (stderr by default)."""
    return scan_tokens(source, reporter if reporter is not None else Reporter())


def parse(source: str, reporter: Reporter | None = None) -> list[Stmt]:
    """Scan and parse Lox source into statements. Bad statements are dropped."""
    reporter = reporter if reporter is not None else Reporter()
    return Parser(scan_tokens(source, reporter), reporter).parse()


def resolve(statements: list[Stmt], reporter: Reporter | None = None) -> dict[Expr, int]:
    """Compute the scope distance of every local variable reference."""
    return Resolver(reporter).resolve(statements)


class Lox:
    """An interpreter session. Globals persist from one `run` to the next."""

    def __init__(self, out: TextIO | None = None, err: TextIO | None = None):
        raise_recursion_limit()
        self.reporter: Reporter = Reporter(err)
        self.interpreter: Interpreter = Interpreter(out, self.reporter)

    def run(self, source: str) -> int:
        """Run one chunk of source and return its exit status."""
        self.reporter.reset()
        tokens = scan_tokens(source, self.reporter)
        logger.debug("scanned %d tokens", len(tokens))
        statements = Parser(tokens, self.reporter).parse()
        logger.debug("parsed %d statements", len(statements))
        if self.reporter.had_error:
            return EX_DATAERR
        bindings = Resolver(self.reporter).resolve(statements)
        logger.debug("resolved %d local bindings", len(bindings))
        if self.reporter.had_error:
            return EX_DATAERR
        self.interpreter.resolve(bindings)
        self.interpreter.interpret(statements)
        if self.reporter.had_runtime_error:
            return EX_SOFTWARE
        return EX_OK


def run(source: str, *, out: TextIO | None = None, err: TextIO | None = None) -> RunResult:
    """Run a whole Lox program and capture what it printed.

    When `out` or `err` is given, the captured text is also copied there.
    """
    stdout = io.StringIO()
    stderr = io.StringIO()
    exit_code = Lox(stdout, stderr).run(source)
    result = RunResult(exit_code, stdout.getvalue(), stderr.getvalue())
    if out is not None:
        out.write(result.stdout)
    if err is not None:
        err.write(result.stderr)
    return result

"""Error sink shared by every pipeline phase."""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, TextIO

from .tokens import Token, TokenType

if TYPE_CHECKING:
    from .errors import LoxRuntimeError

logger = logging.getLogger(__name__)


class Reporter:
    """Formats diagnostics onto a stream and remembers whether any occurred.

    The driver inspects `had_error` (syntax or resolution) and
    `had_runtime_error` to pick an exit code.
    """

    def __init__(self, stream: TextIO | None = None):
        self.stream: TextIO | None = stream
        self.had_error: bool = False
        self.had_runtime_error: bool = False

    def _write(self, text: str) -> None:
        stream = self.stream if self.stream is not None else sys.stderr
        stream.write(text + "\n")

    def error(self, line: int, message: str) -> None:
        self._report(line, "", message)

    def token_error(self, token: Token, message: str) -> None:
        if token.type == TokenType.EOF:
            self._report(token.line, " at end", message)
        else:
            self._report(token.line, " at '" + token.lexeme + "'", message)

    def runtime_error(self, error: LoxRuntimeError) -> None:
        logger.debug("runtime error at line %d: %s", error.token.line, error.msg)
        self._write(error.msg + "\n[line " + str(error.token.line) + "]")
        self.had_runtime_error = True

    def reset(self) -> None:
        self.had_error = False
        self.had_runtime_error = False

    def _report(self, line: int, where: str, message: str) -> None:
        logger.debug("error at line %d%s: %s", line, where, message)
        self._write("[line " + str(line) + "] Error" + where + ": " + message)
        self.had_error = True

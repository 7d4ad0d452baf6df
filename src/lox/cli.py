"""Lox CLI — run .lox files or an interactive prompt."""

from __future__ import annotations

import logging
import sys

from . import EX_DATAERR, EX_NOINPUT, EX_OK, EX_USAGE, Lox, parse, raise_recursion_limit
from .printer import to_sexpr
from .report import Reporter

logger = logging.getLogger(__name__)


USAGE: str = """\
lox [OPTIONS] [FILE]

Run a Lox program, or start a prompt when no FILE is given.

Options:
  --ast          Print the parsed program as s-expressions instead of running it
  --verbose, -v  Log pipeline phases to stderr
  --help, -h     Show this help message
"""


def main(argv: list[str] | None = None) -> int:
    args = argv if argv is not None else sys.argv[1:]
    filepath: str = ""
    show_ast = False
    verbose = False
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--help" or arg == "-h":
            print(USAGE, end="")
            return EX_OK
        elif arg == "--ast":
            show_ast = True
            i += 1
        elif arg == "--verbose" or arg == "-v":
            verbose = True
            i += 1
        elif arg.startswith("-"):
            print("lox: unknown flag '" + arg + "'", file=sys.stderr)
            print(USAGE, end="", file=sys.stderr)
            return EX_USAGE
        elif filepath == "":
            filepath = arg
            i += 1
        else:
            print("lox: unexpected argument '" + arg + "'", file=sys.stderr)
            print(USAGE, end="", file=sys.stderr)
            return EX_USAGE

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(levelname)s %(name)s: %(message)s",
        )

    raise_recursion_limit()

    if filepath == "":
        return run_prompt(show_ast)

    try:
        with open(filepath, encoding="utf-8") as f:
            source = f.read()
    except FileNotFoundError:
        print("lox: " + filepath + ": No such file or directory", file=sys.stderr)
        return EX_NOINPUT
    except OSError as e:
        print("lox: " + filepath + ": " + str(e), file=sys.stderr)
        return EX_NOINPUT
    except ValueError:
        print("lox: " + filepath + ": invalid utf-8", file=sys.stderr)
        return EX_DATAERR

    logger.debug("running %s", filepath)
    if show_ast:
        return print_ast(source)
    return Lox().run(source)


def print_ast(source: str) -> int:
    reporter = Reporter()
    statements = parse(source, reporter)
    if reporter.had_error:
        return EX_DATAERR
    if statements:
        print(to_sexpr(statements))
    return EX_OK


def run_prompt(show_ast: bool = False) -> int:
    """Read-eval-print loop. Errors on one line never end the session."""
    session = Lox()
    while True:
        sys.stdout.write("> ")
        sys.stdout.flush()
        line = sys.stdin.readline()
        if line == "":
            sys.stdout.write("\n")
            return EX_OK
        if show_ast:
            print_ast(line)
        else:
            session.run(line)


if __name__ == "__main__":
    sys.exit(main())

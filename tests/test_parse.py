"""Tests for the Lox parser."""

import io

from lox import parse
from lox.ast import Assign, Block, Class, Expression, Function, Print, Set, Var, While
from lox.parse import Parser
from lox.printer import to_sexpr
from lox.report import Reporter
from lox.tokens import scan


def _parse(source: str) -> tuple[list, Reporter, str]:
    stream = io.StringIO()
    reporter = Reporter(stream)
    statements = parse(source, reporter)
    return statements, reporter, stream.getvalue()


def _sexpr(source: str) -> str:
    statements, reporter, err = _parse(source)
    assert not reporter.had_error, err
    return to_sexpr(statements)


# ---------------------------------------------------------------------------
# Precedence and associativity
# ---------------------------------------------------------------------------


def test_factor_binds_tighter_than_term():
    assert _sexpr("print 1 + 2 * 3;") == "(print (+ 1 (* 2 3)))"


def test_grouping_overrides_precedence():
    assert _sexpr("print (1 + 2) * 3;") == "(print (* (group (+ 1 2)) 3))"


def test_binary_levels_are_left_associative():
    assert _sexpr("1 - 2 - 3;") == "(; (- (- 1 2) 3))"
    assert _sexpr("1 / 2 / 3;") == "(; (/ (/ 1 2) 3))"
    assert _sexpr("1 < 2 == true;") == "(; (== (< 1 2) true))"


def test_assignment_is_right_associative():
    statements, _, _ = _parse("a = b = c;")
    expr = statements[0].expression
    assert isinstance(expr, Assign)
    assert isinstance(expr.value, Assign)
    assert to_sexpr(statements) == "(; (= a (= b c)))"


def test_logical_precedence():
    assert _sexpr("a or b and c;") == "(; (or a (and b c)))"


def test_unary_chain():
    assert _sexpr("!!true;") == "(; (! (! true)))"
    assert _sexpr("-a * b;") == "(; (* (- a) b))"


def test_call_and_property_chain():
    assert _sexpr("a.b(1)(2).c;") == "(; (. (call (call (. a b) 1) 2) c))"


def test_property_assignment_becomes_set():
    statements, _, _ = _parse("a.b.c = 1;")
    expr = statements[0].expression
    assert isinstance(expr, Set)
    assert expr.name.lexeme == "c"
    assert to_sexpr(statements) == "(; (= (. (. a b) c) 1))"


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------


def test_var_with_and_without_initializer():
    statements, _, _ = _parse("var a = 1; var b;")
    assert isinstance(statements[0], Var)
    assert statements[1].initializer is None
    assert to_sexpr(statements) == "(var a 1)\n(var b)"


def test_for_desugars_to_while_in_block():
    statements, _, _ = _parse("for (var i = 0; i < 3; i = i + 1) print i;")
    assert len(statements) == 1
    outer = statements[0]
    assert isinstance(outer, Block)
    assert isinstance(outer.statements[0], Var)
    loop = outer.statements[1]
    assert isinstance(loop, While)
    assert isinstance(loop.body, Block)
    assert isinstance(loop.body.statements[0], Print)
    assert isinstance(loop.body.statements[1], Expression)


def test_for_without_clauses_loops_on_true():
    statements, _, _ = _parse("for (;;) print 1;")
    loop = statements[0]
    assert isinstance(loop, While)
    assert to_sexpr(statements) == "(while true (print 1))"


def test_function_declaration():
    statements, _, _ = _parse("fun add(a, b) { return a + b; }")
    fn = statements[0]
    assert isinstance(fn, Function)
    assert [p.lexeme for p in fn.params] == ["a", "b"]
    assert to_sexpr(statements) == "(fun add (a b) (return (+ a b)))"


def test_class_declaration_with_superclass():
    statements, _, _ = _parse("class B < A { greet() { print super.greet(); } }")
    cls = statements[0]
    assert isinstance(cls, Class)
    assert cls.superclass is not None
    assert cls.superclass.name.lexeme == "A"
    assert [m.name.lexeme for m in cls.methods] == ["greet"]


def test_if_else_attaches_to_nearest_if():
    assert (
        _sexpr("if (a) if (b) print 1; else print 2;")
        == "(if a (if b (print 1) (print 2)))"
    )


# ---------------------------------------------------------------------------
# Errors and recovery
# ---------------------------------------------------------------------------


def test_bad_statement_is_dropped_and_parsing_continues():
    statements, reporter, err = _parse("print 1 +; print 2;")
    assert reporter.had_error
    assert "[line 1] Error at ';': Expect expression." in err
    assert to_sexpr(statements) == "(print 2)"


def test_synchronize_stops_before_statement_keyword():
    statements, reporter, _ = _parse("var 1 print 2;")
    assert reporter.had_error
    assert to_sexpr(statements) == "(print 2)"


def test_invalid_assignment_target_reported_not_raised():
    statements, reporter, err = _parse("1 = 2; print 3;")
    assert reporter.had_error
    assert "Error at '=': Invalid assignment target." in err
    # Both statements survive
    assert len(statements) == 2


def test_error_at_end():
    _, reporter, err = _parse("print 1")
    assert reporter.had_error
    assert err == "[line 1] Error at end: Expect ';' after value.\n"


def test_parser_collects_errors():
    reporter = Reporter(io.StringIO())
    parser = Parser(scan("print ; var ;", reporter), reporter)
    parser.parse()
    assert [e.msg for e in parser.errors] == ["Expect expression.", "Expect variable name."]


def test_too_many_arguments_reported_without_aborting():
    args = ", ".join(["1"] * 256)
    statements, reporter, err = _parse("f(" + args + "); print 1;")
    assert reporter.had_error
    assert "Can't have more than 255 arguments." in err
    assert len(statements) == 2


def test_255_arguments_is_fine():
    args = ", ".join(["1"] * 255)
    _, reporter, _ = _parse("f(" + args + ");")
    assert not reporter.had_error


def test_too_many_parameters():
    params = ", ".join("p" + str(i) for i in range(256))
    _, reporter, err = _parse("fun f(" + params + ") {}")
    assert reporter.had_error
    assert "Can't have more than 255 parameters." in err

"""Tests for the Lox interpreter and runtime values."""

import io
import math

import pytest

from lox import EX_DATAERR, EX_OK, EX_SOFTWARE, Lox, parse, run
from lox.errors import ArityMismatch, LoxRuntimeError, LoxTypeError
from lox.report import Reporter
from lox.resolve import resolve
from lox.runtime import (
    Interpreter,
    LoxClass,
    LoxFunction,
    LoxInstance,
    NativeFunction,
    is_equal,
    is_truthy,
    stringify,
)


def _interpreter(source: str) -> tuple[Interpreter, io.StringIO, io.StringIO]:
    out = io.StringIO()
    err = io.StringIO()
    reporter = Reporter(err)
    statements = parse(source, reporter)
    bindings = resolve(statements, reporter)
    assert not reporter.had_error, err.getvalue()
    interp = Interpreter(out, reporter)
    interp.resolve(bindings)
    interp.interpret(statements)
    return interp, out, err


def _output(source: str) -> str:
    result = run(source)
    assert result.exit_code == EX_OK, result.stderr
    return result.stdout


# ---------------------------------------------------------------------------
# Values
# ---------------------------------------------------------------------------


def test_truthiness():
    assert not is_truthy(None)
    assert not is_truthy(False)
    assert is_truthy(True)
    assert is_truthy(0.0)
    assert is_truthy("")


def test_equality_is_kind_checked():
    assert is_equal(None, None)
    assert not is_equal(None, False)
    assert not is_equal(True, 1.0)
    assert not is_equal(0.0, False)
    assert is_equal("a", "a")
    assert is_equal(2.0, 2.0)


def test_number_equality_compares_like_boxed_doubles():
    assert is_equal(math.nan, math.nan)
    assert not is_equal(-0.0, 0.0)
    assert is_equal(-0.0, -0.0)
    assert not is_equal(math.nan, 1.0)


@pytest.mark.parametrize(
    "value,text",
    [
        (None, "nil"),
        (True, "true"),
        (False, "false"),
        (5.0, "5"),
        (-0.0, "-0"),
        (2.5, "2.5"),
        (1e21, "1e+21"),
        (math.inf, "Infinity"),
        (-math.inf, "-Infinity"),
        (math.nan, "NaN"),
        ("raw", "raw"),
    ],
)
def test_stringify_primitives(value, text):
    assert stringify(value) == text


def test_stringify_runtime_objects():
    klass = LoxClass("Point", None, {})
    assert stringify(klass) == "Point"
    assert stringify(LoxInstance(klass)) == "Point instance"
    assert stringify(NativeFunction("clock", 0, lambda args: 0.0)) == "<native fn>"


def test_class_arity_follows_initializer():
    interp, _, _ = _interpreter("class P { init(a, b) {} } class Q {}")
    p = interp.globals.values["P"]
    q = interp.globals.values["Q"]
    assert isinstance(p, LoxClass)
    assert p.arity() == 2
    assert q.arity() == 0


def test_find_method_walks_superclass_chain():
    interp, _, _ = _interpreter("class A { m() {} } class B < A {} class C < B {}")
    c = interp.globals.values["C"]
    method = c.find_method("m")
    assert isinstance(method, LoxFunction)
    assert method is interp.globals.values["A"].methods["m"]
    assert c.find_method("missing") is None


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


def test_arithmetic_results():
    assert _output("print 1 + 2 * 3; print (1 + 2) * 3; print 10 / 2;") == "7\n9\n5\n"


def test_logical_operators_return_operands():
    assert _output('print nil or "fallback";') == "fallback\n"
    assert _output("print 0 and 1;") == "1\n"


def test_and_short_circuits_calls():
    source = """
var calls = 0;
fun sideEffect() { calls = calls + 1; return true; }
false and sideEffect();
true or sideEffect();
print calls;
"""
    assert _output(source) == "0\n"


def test_closure_counter():
    source = """
fun makeCounter() {
  var count = 0;
  fun counter() { count = count + 1; return count; }
  return counter;
}
var c = makeCounter();
c();
print c();
"""
    assert _output(source) == "2\n"


def test_super_dispatch():
    source = """
class A { greet() { return "A"; } }
class B < A { greet() { return super.greet() + "B"; } }
print B().greet();
"""
    assert _output(source) == "AB\n"


def test_arity_mismatch_does_not_execute_body():
    source = """
var ran = false;
fun f(a, b) { ran = true; }
f(1);
"""
    interp, out, err = _interpreter(source)
    assert interp.reporter.had_runtime_error
    assert interp.globals.values["ran"] is False
    assert err.getvalue() == "Expected 2 arguments but got 1.\n[line 4]\n"


def test_runtime_error_stops_remaining_statements():
    interp, out, err = _interpreter('print "before"; print -"x"; print "after";')
    assert out.getvalue() == "before\n"
    assert "Operand must be a number." in err.getvalue()
    assert interp.reporter.had_runtime_error


def test_error_kinds_share_base_class():
    with pytest.raises(LoxRuntimeError):
        _raise_from("print 1 < nil;")
    with pytest.raises(LoxTypeError):
        _raise_from('print "a" - "b";')
    with pytest.raises(ArityMismatch) as exc_info:
        _raise_from("fun f() {} f(1, 2);")
    assert exc_info.value.expected == 0
    assert exc_info.value.got == 2


def _raise_from(source: str) -> None:
    reporter = Reporter(io.StringIO())
    statements = parse(source, reporter)
    interp = Interpreter(io.StringIO(), reporter)
    interp.resolve(resolve(statements, reporter))
    for stmt in statements:
        interp.execute(stmt)


def test_return_unwinds_nested_blocks_and_restores_environment():
    source = """
fun find() {
  { { while (true) { return "found"; } } }
}
print find();
"""
    interp, out, _ = _interpreter(source)
    assert out.getvalue() == "found\n"
    assert interp.environment is interp.globals


def test_environment_restored_after_runtime_error():
    interp, _, _ = _interpreter("fun f() { { nope; } } f();")
    assert interp.reporter.had_runtime_error
    assert interp.environment is interp.globals


def test_deep_recursion_returns_values():
    source = """
fun sum(n) { if (n == 0) return 0; return n + sum(n - 1); }
print sum(50);
"""
    assert _output(source) == "1275\n"


def test_recursion_far_deeper_than_host_default():
    source = """
fun count(n) { if (n > 0) return count(n - 1); return n; }
print count(1000);
fun sum(n) { if (n == 0) return 0; return n + sum(n - 1); }
print sum(1000);
"""
    assert _output(source) == "0\n500500\n"


def test_runaway_recursion_is_a_runtime_error():
    result = run("fun forever(n) {\n  return forever(n + 1);\n}\nforever(0);")
    assert result.exit_code == EX_SOFTWARE
    assert "Stack overflow." in result.stderr
    assert "[line 2]" in result.stderr


def test_session_survives_stack_overflow():
    out = io.StringIO()
    err = io.StringIO()
    session = Lox(out, err)
    assert session.run("fun forever() { forever(); } forever();") == EX_SOFTWARE
    assert session.interpreter.environment is session.interpreter.globals
    assert session.run('print "still here";') == EX_OK
    assert out.getvalue() == "still here\n"
    assert err.getvalue().count("Stack overflow.") == 1


def test_deeply_nested_expression_is_a_syntax_error():
    depth = 20000
    result = run("print " + "(" * depth + "1" + ")" * depth + ";")
    assert result.exit_code == EX_DATAERR
    assert "Too much nesting." in result.stderr
    assert result.stdout == ""


def test_initializer_always_returns_instance():
    source = """
class Foo { init() { return; } }
var f = Foo();
print f.init() == f;
"""
    assert _output(source) == "true\n"


def test_clock_is_a_native():
    interp, out, _ = _interpreter("print clock() > 1000000000;")
    assert out.getvalue() == "true\n"
    assert isinstance(interp.globals.values["clock"], NativeFunction)


def test_print_defaults_to_stdout(capsys):
    reporter = Reporter(io.StringIO())
    statements = parse('print "hi";', reporter)
    Interpreter(reporter=reporter).interpret(statements)
    assert capsys.readouterr().out == "hi\n"


# ---------------------------------------------------------------------------
# Driver
# ---------------------------------------------------------------------------


def test_run_captures_output_and_exit_code():
    result = run('print "hello";')
    assert result.exit_code == EX_OK
    assert result.stdout == "hello\n"
    assert result.stderr == ""


def test_run_syntax_error_does_not_execute():
    result = run('print "side effect"; print ;')
    assert result.exit_code == EX_DATAERR
    assert result.stdout == ""


def test_run_resolution_error_does_not_execute():
    result = run('print "side effect"; return 1;')
    assert result.exit_code == EX_DATAERR
    assert result.stdout == ""
    assert "Can't return from top-level code." in result.stderr


def test_run_runtime_error_exit_code():
    result = run("print nope;")
    assert result.exit_code == EX_SOFTWARE
    assert result.stderr == "Undefined variable 'nope'.\n[line 1]\n"


def test_run_copies_to_streams():
    out = io.StringIO()
    err = io.StringIO()
    run("print 1; print x;", out=out, err=err)
    assert out.getvalue() == "1\n"
    assert "Undefined variable 'x'." in err.getvalue()


def test_session_keeps_globals_between_runs():
    out = io.StringIO()
    session = Lox(out, io.StringIO())
    assert session.run("var a = 1;") == EX_OK
    assert session.run("fun show() { print a; }") == EX_OK
    assert session.run("a = 2; show();") == EX_OK
    assert out.getvalue() == "2\n"


def test_session_recovers_after_errors():
    out = io.StringIO()
    session = Lox(out, io.StringIO())
    assert session.run("print ;") == EX_DATAERR
    assert session.run("print nope;") == EX_SOFTWARE
    assert session.run('print "ok";') == EX_OK
    assert out.getvalue() == "ok\n"


def test_session_accumulates_local_bindings():
    out = io.StringIO()
    session = Lox(out, io.StringIO())
    session.run("fun outer() { var x = 1; fun inner() { return x; } return inner; }")
    session.run("var f = outer();")
    session.run("print f();")
    assert out.getvalue() == "1\n"

"""Tests for the resolver's variable lifecycle checks."""

from lox import check, parse
from lox.diagnostics import CollectingSink
from lox.resolve import ResolveErrorKind, Resolver


def _kinds(source: str) -> list[ResolveErrorKind]:
    return [e.kind for e in check(source, CollectingSink())]


def test_empty_program():
    assert _kinds("") == []


def test_variable_declared_twice():
    assert ResolveErrorKind.REDECLARED in _kinds("var a;\nvar a;")


def test_variable_declared_twice_in_block():
    assert ResolveErrorKind.REDECLARED in _kinds("{\n  var a;\n  var a;\n}")


def test_variable_never_set():
    assert _kinds("{ var a; }") == [ResolveErrorKind.NEVER_SET]


def test_variable_never_read():
    assert _kinds("{ var a = 5; }") == [ResolveErrorKind.NEVER_READ]


def test_function_never_called():
    assert ResolveErrorKind.NEVER_READ in _kinds("{ fun hello() {} }")


def test_unused_parameter():
    errors = check("fun f(x) { return 1; } f(2);", CollectingSink())
    assert [e.msg for e in errors] == ["Variable 'x' is never read."]


def test_defined_after_declaration():
    assert _kinds("var a;\na = 5;\na;") == []


def test_defined_after_declaration_in_block():
    assert _kinds("var a;\n{\n  a = 5;\n}\na;") == []


def test_read_in_own_initializer():
    errors = check("{ var a = a; }", CollectingSink())
    assert errors[0].kind is ResolveErrorKind.READ_IN_INITIALIZER
    assert errors[0].msg == "Can't read local variable 'a' before it is set."


def test_assign_to_undefined():
    errors = check("{ b = 1; }", CollectingSink())
    assert [e.kind for e in errors] == [ResolveErrorKind.UNDEFINED_ASSIGNMENT]


def test_return_outside_function():
    assert _kinds("return;") == [ResolveErrorKind.RETURN_OUTSIDE_FUNCTION]


def test_return_inside_function():
    assert _kinds("fun hello() {\n  return;\n}\nhello();") == []


def test_for_loop():
    assert _kinds("for (var i = 0; i < 10; i = i + 1) {}") == []


def test_reassign_after_read():
    assert _kinds("{\n  var a = 5;\n  a;\n  a = 6;\n}") == []


def test_errors_report_to_sink_with_position():
    sink = CollectingSink()
    check("{\n  var unused = 1;\n}", sink)
    assert sink.messages == ["[line 2] Error at 'unused': Variable 'unused' is never read."]


def test_resolver_keeps_globals_between_calls():
    resolver = Resolver(CollectingSink())
    assert resolver.resolve(parse("var a = 1;")) == []
    assert resolver.resolve(parse("{ a = 2; }")) == []


def test_failed_program_leaves_globals_untouched():
    resolver = Resolver(CollectingSink())
    kinds = [e.kind for e in resolver.resolve(parse("var a; var a;"))]
    assert kinds == [ResolveErrorKind.REDECLARED]
    assert resolver.resolve(parse("var a = 1;")) == []
    kinds = [e.kind for e in resolver.resolve(parse("var a = 2;"))]
    assert kinds == [ResolveErrorKind.REDECLARED]

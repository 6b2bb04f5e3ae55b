"""CLI tests for the lox entry point."""

import io

import pytest

from lox.cli import main


def _write(tmp_path, source: str) -> str:
    path = tmp_path / "prog.lox"
    path.write_text(source)
    return str(path)


def test_help(capsys):
    assert main(["--help"]) == 0
    assert "lox [OPTIONS] [FILE]" in capsys.readouterr().out


def test_run_file(tmp_path, capsys):
    path = _write(tmp_path, 'var greeting = "hi";\nprint greeting + " there";\n')
    assert main([path]) == 0
    assert capsys.readouterr().out == "hi there\n"


def test_missing_file(tmp_path, capsys):
    assert main([str(tmp_path / "nope.lox")]) == 66
    assert "No such file or directory" in capsys.readouterr().err


@pytest.mark.parametrize(
    "args",
    [["--bogus"], ["a.lox", "b.lox"], ["--ast"], ["--check"]],
    ids=["unknown-flag", "two-files", "ast-without-file", "check-without-file"],
)
def test_usage_errors(args, capsys):
    assert main(args) == 64
    assert capsys.readouterr().err.startswith("lox: ")


def test_scan_error_exits_65(tmp_path, capsys):
    path = _write(tmp_path, "print 1 @ 2;\n")
    assert main([path]) == 65
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "[line 1] Error: Unexpected character." in captured.err


def test_parse_error_exits_65(tmp_path, capsys):
    path = _write(tmp_path, "print 1\n")
    assert main([path]) == 65
    assert "Error at end: Expect ';' after value." in capsys.readouterr().err


def test_resolver_error_exits_65_unless_lenient(tmp_path, capsys):
    path = _write(tmp_path, "{ var unused = 1; }\nprint 7;\n")
    assert main([path]) == 65
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "Variable 'unused' is never read." in captured.err
    assert main(["--lenient", path]) == 0
    assert capsys.readouterr().out == "7\n"


def test_runtime_error_exits_70(tmp_path, capsys):
    path = _write(tmp_path, 'print 1;\nprint -"a";\nprint 2;\n')
    assert main([path]) == 70
    captured = capsys.readouterr()
    assert captured.out == "1\n"
    assert "[line 2] Error at '-': Operand must be a number." in captured.err


def test_ast_mode(tmp_path, capsys):
    path = _write(tmp_path, "print 1 + 2;\n")
    assert main(["--ast", path]) == 0
    assert capsys.readouterr().out == "(print (+ 1 2))\n"


def test_check_mode(tmp_path, capsys):
    path = _write(tmp_path, "return 1;\n")
    assert main(["--check", path]) == 65
    assert "Can't return from top-level code." in capsys.readouterr().err
    clean = _write(tmp_path, "print 1;\n")
    assert main(["--check", clean]) == 0
    assert capsys.readouterr().out == ""


def test_repl_keeps_state_between_lines(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("var a = 1;\na = a + 1;\nprint a;\n"))
    assert main([]) == 0
    out = capsys.readouterr().out
    assert out.startswith("> ")
    assert "2\n" in out


def test_repl_continues_after_errors(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("print missing;\nprint (;\nprint 3;\n"))
    assert main([]) == 0
    captured = capsys.readouterr()
    assert "Undefined variable 'missing'." in captured.err
    assert "Expect expression." in captured.err
    assert "3\n" in captured.out


def test_repl_forgets_declarations_from_rejected_lines(monkeypatch, capsys):
    source = "var a = 1; var a = 2;\nvar a = 3;\nprint a;\n"
    monkeypatch.setattr("sys.stdin", io.StringIO(source))
    assert main([]) == 0
    captured = capsys.readouterr()
    assert captured.err.count("Already a variable with this name in this scope.") == 1
    assert "3\n" in captured.out


def test_stack_overflow_exits_70(tmp_path, capsys):
    path = _write(tmp_path, "fun f(n) { return f(n + 1); }\nf(0);\n")
    assert main([path]) == 70
    assert "Error at ')': Stack overflow." in capsys.readouterr().err

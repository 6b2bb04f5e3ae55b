"""Data-driven tests for the Lox phases.

Each .tests file holds cases of the form:

    === name
    source
    ---
    expected
    ---

Expected is `ok`, `error: <substring>`, or phase output: the printed tree
for parser cases and the program's stdout for program cases.
"""

import signal
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from lox import check as lox_check, emit as lox_emit, run as lox_run
from lox.diagnostics import CollectingSink
from lox.parse import Parser
from lox.tokens import Scanner

TIMEOUT = 5
TESTS_DIR = Path(__file__).parent

TESTS = {
    "lox_parse": "parser",
    "lox_resolve": "resolver",
    "lox_program": "programs",
}


# ---------------------------------------------------------------------------
# Timeout
# ---------------------------------------------------------------------------


def _timeout_handler(signum, frame):
    raise TimeoutError("phase timed out")


signal.signal(signal.SIGALRM, _timeout_handler)


# ---------------------------------------------------------------------------
# Spec file parsing
# ---------------------------------------------------------------------------


def parse_spec_file(path: Path) -> list[tuple[str, str, str]]:
    """Parse a .tests file into (name, input, expected) tuples."""
    lines = path.read_text().split("\n")
    result: list[tuple[str, str, str]] = []
    i = 0
    while i < len(lines):
        line = lines[i]
        if line.startswith("=== "):
            test_name = line[4:].strip()
            i += 1
            input_lines: list[str] = []
            while i < len(lines) and not lines[i].startswith("---"):
                input_lines.append(lines[i])
                i += 1
            if i < len(lines) and lines[i] == "---":
                i += 1
            expected_lines: list[str] = []
            while i < len(lines) and not lines[i].startswith("---"):
                expected_lines.append(lines[i])
                i += 1
            if i < len(lines) and lines[i] == "---":
                i += 1
            test_input = "\n".join(input_lines)
            expected = "\n".join(expected_lines).strip()
            result.append((test_name, test_input, expected))
        else:
            i += 1
    return result


def discover_specs(test_dir: Path) -> list[tuple[str, str, str]]:
    """Glob *.tests in test_dir, return (test_id, input, expected) tuples."""
    results = []
    for test_file in sorted(test_dir.glob("*.tests")):
        for name, input_code, expected in parse_spec_file(test_file):
            results.append((f"{test_file.stem}/{name}", input_code, expected))
    return results


# ---------------------------------------------------------------------------
# Phase result + assertion checker
# ---------------------------------------------------------------------------


@dataclass
class PhaseResult:
    errors: list[str] = field(default_factory=list)
    output: str = ""


def check_expected(expected: str, result: PhaseResult, phase: str) -> None:
    if expected == "ok":
        if result.errors:
            pytest.fail(f"Expected ok, got error: {result.errors[0]}")
        return
    if expected.startswith("error:"):
        expected_msg = expected[6:].strip()
        if not result.errors:
            pytest.fail(f"Expected error containing '{expected_msg}', got ok")
        found = any(expected_msg.lower() in e.lower() for e in result.errors)
        if not found:
            pytest.fail(
                f"Expected error containing '{expected_msg}', got: {result.errors}"
            )
        return
    if result.errors:
        pytest.fail(f"{phase} failed: {result.errors[0]}")
    actual = result.output.strip()
    if actual != expected:
        pytest.fail(
            f"{phase} output mismatch\n"
            f"  expected: {expected!r}\n"
            f"  actual:   {actual!r}"
        )


# ---------------------------------------------------------------------------
# Phase runners
# ---------------------------------------------------------------------------


def run_lox_parse(source: str) -> PhaseResult:
    sink = CollectingSink()
    try:
        signal.alarm(TIMEOUT)
        tokens = Scanner(source, sink).scan_tokens()
        stmts = Parser(tokens, sink).parse_program()
        return PhaseResult(errors=sink.messages, output=lox_emit(stmts))
    finally:
        signal.alarm(0)


def run_lox_resolve(source: str) -> PhaseResult:
    sink = CollectingSink()
    try:
        signal.alarm(TIMEOUT)
        lox_check(source, sink)
        return PhaseResult(errors=sink.messages)
    finally:
        signal.alarm(0)


def run_lox_program(source: str) -> PhaseResult:
    try:
        signal.alarm(TIMEOUT)
        result = lox_run(source)
        return PhaseResult(errors=result.diagnostics, output=result.stdout)
    finally:
        signal.alarm(0)


# ---------------------------------------------------------------------------
# Parametrization
# ---------------------------------------------------------------------------


def pytest_generate_tests(metafunc):
    for name, subdir in TESTS.items():
        fixture = f"{name}_input"
        if fixture in metafunc.fixturenames:
            specs = discover_specs(TESTS_DIR / subdir)
            params = [pytest.param(inp, exp, id=tid) for tid, inp, exp in specs]
            metafunc.parametrize(f"{fixture},{name}_expected", params)


# ---------------------------------------------------------------------------
# Test functions
# ---------------------------------------------------------------------------


def test_lox_parse(lox_parse_input, lox_parse_expected):
    check_expected(lox_parse_expected, run_lox_parse(lox_parse_input), "lox_parse")


def test_lox_resolve(lox_resolve_input, lox_resolve_expected):
    check_expected(
        lox_resolve_expected, run_lox_resolve(lox_resolve_input), "lox_resolve"
    )


def test_lox_program(lox_program_input, lox_program_expected):
    check_expected(
        lox_program_expected, run_lox_program(lox_program_input), "lox_program"
    )

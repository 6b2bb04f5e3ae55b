"""Pytest configuration for the Lox test suite."""

import io
import sys
from pathlib import Path

import pytest

# Add src directory to path for lox imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from lox.diagnostics import CollectingSink  # noqa: E402
from lox.runtime import Interpreter  # noqa: E402
from lox.values import NIL, NativeFunction, Value  # noqa: E402


class Output:
    """Receives values from the `setTestOutput` native."""

    def __init__(self) -> None:
        self.value: Value = NIL

    def native(self) -> NativeFunction:
        def set_output(interpreter, arguments):
            self.value = arguments[0]
            return NIL

        return NativeFunction("setTestOutput", 1, set_output)


@pytest.fixture
def output() -> Output:
    return Output()


@pytest.fixture
def sink() -> CollectingSink:
    return CollectingSink()


@pytest.fixture
def interpreter(output: Output, sink: CollectingSink) -> Interpreter:
    return Interpreter(
        {"setTestOutput": output.native()}, stdout=io.StringIO(), sink=sink
    )

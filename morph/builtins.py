"""Built-in functions installed into every interpreter's global scope.

Each builtin is a BuiltinFunction wrapping a callable from a list of
argument values to a value. State a builtin needs (the output stream for
log/print) is captured when the table is built, so every interpreter owns
an independent set.
"""

from __future__ import annotations

import math
import sys
from typing import TextIO

from morph.errors import (
    EvaluationError, runtime_arity_mismatch, runtime_type_error, runtime_invalid_operation,
)
from morph.values import (
    Value, IntegerValue, FloatValue, StringValue, ListValue, BuiltinFunction, UNIT, as_integer,
)


def _check_arity(args: list[Value], expected: int) -> None:
    if len(args) != expected:
        raise EvaluationError(runtime_arity_mismatch(expected, len(args)))


def _make_writer(name: str, stream: TextIO, end: str) -> BuiltinFunction:
    def write(args: list[Value]) -> Value:
        stream.write(" ".join(str(arg) for arg in args) + end)
        return UNIT
    return BuiltinFunction(name=name, impl=write)


def _len(args: list[Value]) -> Value:
    _check_arity(args, 1)
    arg = args[0]
    if isinstance(arg, ListValue):
        return IntegerValue(len(arg.items))
    if isinstance(arg, StringValue):
        return IntegerValue(len(arg.value))
    raise EvaluationError(runtime_type_error("len() requires a list or string"))


def _push(args: list[Value]) -> Value:
    # Values are immutable and builtins receive copies, so there is nothing
    # to append to. Kept for source compatibility.
    _check_arity(args, 2)
    return UNIT


def _range(args: list[Value]) -> Value:
    if len(args) == 1:
        start, end, step = 0, as_integer(args[0]), 1
    elif len(args) == 2:
        start, end, step = as_integer(args[0]), as_integer(args[1]), 1
    elif len(args) == 3:
        start, end, step = as_integer(args[0]), as_integer(args[1]), as_integer(args[2])
    else:
        raise EvaluationError(runtime_arity_mismatch(3, len(args)))
    if step == 0:
        raise EvaluationError(runtime_invalid_operation("range() step must not be zero"))
    return ListValue(tuple(IntegerValue(i) for i in range(start, end, step)))


def _sqrt(args: list[Value]) -> Value:
    _check_arity(args, 1)
    arg = args[0]
    if not isinstance(arg, (IntegerValue, FloatValue)):
        raise EvaluationError(runtime_type_error(f"sqrt() requires a number, got {arg.type_name()}"))
    if arg.value < 0:
        raise EvaluationError(runtime_invalid_operation("sqrt() of a negative number"))
    return FloatValue(math.sqrt(arg.value))


def make_builtins(stdout: TextIO | None = None) -> dict[str, BuiltinFunction]:
    """Build a fresh builtin table writing to `stdout` (default sys.stdout)."""
    stream = stdout if stdout is not None else sys.stdout
    return {
        "log": _make_writer("log", stream, "\n"),
        "print": _make_writer("print", stream, ""),
        "len": BuiltinFunction(name="len", impl=_len, arity=1),
        "push": BuiltinFunction(name="push", impl=_push, arity=2),
        "range": BuiltinFunction(name="range", impl=_range),
        "sqrt": BuiltinFunction(name="sqrt", impl=_sqrt, arity=1),
    }

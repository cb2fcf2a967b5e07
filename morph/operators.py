"""Arithmetic, comparison and logical operators on runtime values.

Int and Float mix by promoting to Float. Integer division truncates toward
zero and the remainder takes the sign of the dividend. Dividing by zero is
always an error, for floats as well as integers.
"""

from __future__ import annotations

import math
from typing import Callable, Optional

from morph.errors import EvaluationError, runtime_type_error, runtime_custom
from morph.values import (
    Value, IntegerValue, FloatValue, StringValue, ListValue, BooleanValue,
)

_VERBS = {
    "+": "add",
    "-": "subtract",
    "*": "multiply",
    "/": "divide",
    "%": "modulo",
}


def _type_mismatch(verb: str, left: Value, right: Value) -> EvaluationError:
    return EvaluationError(runtime_type_error(
        f"Cannot {verb} {left.type_name()} and {right.type_name()}",
    ))


def _numbers(left: Value, right: Value) -> Optional[tuple[int | float, int | float, bool]]:
    """Unwrap a numeric pair; the flag says whether both are integers."""
    if not isinstance(left, (IntegerValue, FloatValue)):
        return None
    if not isinstance(right, (IntegerValue, FloatValue)):
        return None
    both_int = isinstance(left, IntegerValue) and isinstance(right, IntegerValue)
    return left.value, right.value, both_int


def _wrap(result: int | float, both_int: bool) -> Value:
    if both_int:
        return IntegerValue(int(result))
    return FloatValue(float(result))


def truncating_div(a: int, b: int) -> int:
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b >= 0) else -q


def truncating_mod(a: int, b: int) -> int:
    return a - b * truncating_div(a, b)


def _add(left: Value, right: Value) -> Value:
    if isinstance(left, StringValue) and isinstance(right, StringValue):
        return StringValue(left.value + right.value)
    if isinstance(left, ListValue) and isinstance(right, ListValue):
        return ListValue(left.items + right.items)
    nums = _numbers(left, right)
    if nums is None:
        raise _type_mismatch("add", left, right)
    a, b, both_int = nums
    return _wrap(a + b, both_int)


def _arith(op: str, fn: Callable[[int | float, int | float], int | float]) -> Callable[[Value, Value], Value]:
    def apply(left: Value, right: Value) -> Value:
        nums = _numbers(left, right)
        if nums is None:
            raise _type_mismatch(_VERBS[op], left, right)
        a, b, both_int = nums
        return _wrap(fn(a, b), both_int)
    return apply


def _divide(left: Value, right: Value) -> Value:
    nums = _numbers(left, right)
    if nums is None:
        raise _type_mismatch("divide", left, right)
    a, b, both_int = nums
    if b == 0:
        raise EvaluationError(runtime_custom("Division by zero"))
    if both_int:
        return IntegerValue(truncating_div(a, b))
    return FloatValue(a / b)


def _modulo(left: Value, right: Value) -> Value:
    nums = _numbers(left, right)
    if nums is None:
        raise _type_mismatch("modulo", left, right)
    a, b, both_int = nums
    if b == 0:
        raise EvaluationError(runtime_custom("Modulo by zero"))
    if both_int:
        return IntegerValue(truncating_mod(a, b))
    return FloatValue(math.fmod(a, b))


def _compare(left: Value, right: Value) -> int:
    nums = _numbers(left, right)
    if nums is not None:
        a, b, _ = nums
    elif isinstance(left, StringValue) and isinstance(right, StringValue):
        a, b = left.value, right.value
    else:
        raise EvaluationError(runtime_type_error(
            f"Cannot compare {left.type_name()} and {right.type_name()}",
        ))
    return (a > b) - (a < b)


_ARITHMETIC: dict[str, Callable[[Value, Value], Value]] = {
    "+": _add,
    "-": _arith("-", lambda a, b: a - b),
    "*": _arith("*", lambda a, b: a * b),
    "/": _divide,
    "%": _modulo,
}

_ORDERING: dict[str, Callable[[int], bool]] = {
    "<": lambda c: c < 0,
    "<=": lambda c: c <= 0,
    ">": lambda c: c > 0,
    ">=": lambda c: c >= 0,
}


def apply_binary(op: str, left: Value, right: Value) -> Value:
    if op == "==":
        return BooleanValue(left == right)
    if op == "!=":
        return BooleanValue(left != right)
    if op in _ORDERING:
        return BooleanValue(_ORDERING[op](_compare(left, right)))
    if op in _ARITHMETIC:
        return _ARITHMETIC[op](left, right)
    raise EvaluationError(runtime_custom(f"Unknown binary operator '{op}'"))


def apply_unary(op: str, operand: Value) -> Value:
    if op == "-":
        if isinstance(operand, IntegerValue):
            return IntegerValue(-operand.value)
        if isinstance(operand, FloatValue):
            return FloatValue(-operand.value)
        raise EvaluationError(runtime_type_error(f"Cannot negate {operand.type_name()}"))
    if op == "!":
        return BooleanValue(not operand.is_truthy())
    raise EvaluationError(runtime_custom(f"Unknown unary operator '{op}'"))

"""Runtime Operator Tests — OPS-001 through OPS-004."""

import pytest

from morph.operators import apply_binary, apply_unary, truncating_div, truncating_mod
from morph.values import IntegerValue, FloatValue, StringValue, BooleanValue, UNIT, from_python
from morph.errors import EvaluationError, RuntimeErrorKind


def _raises(op: str, left, right):
    with pytest.raises(EvaluationError) as exc_info:
        apply_binary(op, left, right)
    return exc_info.value.error


class TestIntegerDivision:
    """OPS-001: Truncation toward zero."""

    @pytest.mark.parametrize("a,b,q,r", [
        (7, 2, 3, 1),
        (-7, 2, -3, -1),
        (7, -2, -3, 1),
        (-7, -2, 3, -1),
        (6, 3, 2, 0),
    ])
    def test_quotient_and_remainder(self, a, b, q, r):
        assert truncating_div(a, b) == q
        assert truncating_mod(a, b) == r
        assert apply_binary("/", IntegerValue(a), IntegerValue(b)) == IntegerValue(q)
        assert apply_binary("%", IntegerValue(a), IntegerValue(b)) == IntegerValue(r)

    def test_zero_divisors(self):
        assert _raises("/", IntegerValue(1), IntegerValue(0)).message == "Division by zero"
        assert _raises("/", FloatValue(1.0), FloatValue(0.0)).message == "Division by zero"
        assert _raises("%", FloatValue(1.0), IntegerValue(0)).message == "Modulo by zero"


class TestMixedArithmetic:
    """OPS-002: Int/Float promotion, concatenation and type errors."""

    def test_promotion(self):
        assert apply_binary("+", IntegerValue(1), FloatValue(0.5)) == FloatValue(1.5)
        assert apply_binary("*", FloatValue(2.0), IntegerValue(3)) == FloatValue(6.0)

    def test_float_remainder_uses_fmod(self):
        assert apply_binary("%", FloatValue(-7.5), FloatValue(2.0)) == FloatValue(-1.5)

    def test_concatenation(self):
        assert apply_binary("+", StringValue("a"), StringValue("b")) == StringValue("ab")
        assert apply_binary("+", from_python([1]), from_python([2])) == from_python([1, 2])

    def test_subtract_strings(self):
        error = _raises("-", StringValue("a"), StringValue("b"))
        assert error.variant == RuntimeErrorKind.TYPE_ERROR
        assert error.message == "Type error: Cannot subtract String and String"

    def test_unknown_operator(self):
        assert _raises("**", IntegerValue(1), IntegerValue(2)).message == "Unknown binary operator '**'"


class TestComparison:
    """OPS-003: Ordering and equality."""

    def test_numeric(self):
        assert apply_binary("<", IntegerValue(1), FloatValue(1.5)) == BooleanValue(True)
        assert apply_binary(">=", IntegerValue(2), IntegerValue(2)) == BooleanValue(True)

    def test_strings(self):
        assert apply_binary("<", StringValue("abc"), StringValue("abd")) == BooleanValue(True)

    def test_incomparable(self):
        error = _raises("<", IntegerValue(1), StringValue("1"))
        assert error.message == "Type error: Cannot compare Int and String"

    def test_equality_across_kinds(self):
        assert apply_binary("==", IntegerValue(1), StringValue("1")) == BooleanValue(False)
        assert apply_binary("!=", IntegerValue(1), FloatValue(1.0)) == BooleanValue(True)


class TestUnary:
    """OPS-004: Negation and logical not."""

    def test_negate(self):
        assert apply_unary("-", IntegerValue(3)) == IntegerValue(-3)
        assert apply_unary("-", FloatValue(0.5)) == FloatValue(-0.5)

    def test_negate_string(self):
        with pytest.raises(EvaluationError) as exc_info:
            apply_unary("-", StringValue("x"))
        assert exc_info.value.error.message == "Type error: Cannot negate String"

    def test_not_uses_truthiness(self):
        assert apply_unary("!", IntegerValue(0)) == BooleanValue(True)
        assert apply_unary("!", StringValue("x")) == BooleanValue(False)
        assert apply_unary("!", UNIT) == BooleanValue(True)

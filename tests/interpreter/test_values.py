"""Runtime Value Tests — VAL-001 through VAL-005."""

import pytest

from morph.values import (
    IntegerValue, FloatValue, StringValue, BooleanValue, ListValue, RecordValue,
    UserFunction, BuiltinFunction, UNIT, TRUE, FALSE,
    as_integer, from_python, to_python,
)
from morph.errors import EvaluationError


class TestRendering:
    """VAL-001: String forms used by log/print."""

    def test_scalars(self):
        assert str(IntegerValue(-3)) == "-3"
        assert str(FloatValue(2.5)) == "2.5"
        assert str(StringValue("hi")) == "hi"
        assert str(TRUE) == "true"
        assert str(FALSE) == "false"
        assert str(UNIT) == "()"

    def test_list(self):
        assert str(from_python([1, "a", [2]])) == "[1, a, [2]]"
        assert str(ListValue()) == "[]"

    def test_record(self):
        assert str(RecordValue({})) == "{}"
        assert str(from_python({"x": 1, "y": True})) == "{ x: 1, y: true }"

    def test_functions(self):
        assert str(UserFunction()) == "<function>"
        assert str(BuiltinFunction(name="len")) == "<function>"


class TestTruthiness:
    """VAL-002: Truthiness of every value kind."""

    @pytest.mark.parametrize("value,expected", [
        (IntegerValue(0), False),
        (IntegerValue(5), True),
        (FloatValue(0.0), False),
        (FloatValue(0.1), True),
        (StringValue(""), False),
        (StringValue("x"), True),
        (FALSE, False),
        (TRUE, True),
        (ListValue(), False),
        (from_python([0]), True),
        (RecordValue({}), False),
        (from_python({"a": 0}), True),
        (UNIT, False),
        (UserFunction(), True),
    ])
    def test_truthiness(self, value, expected):
        assert value.is_truthy() is expected


class TestEquality:
    """VAL-003: Structural equality for data, identity for functions."""

    def test_int_float_never_equal(self):
        assert IntegerValue(1) != FloatValue(1.0)

    def test_structural(self):
        assert from_python([1, {"a": "b"}]) == from_python([1, {"a": "b"}])
        assert from_python([1, 2]) != from_python([2, 1])

    def test_function_identity(self):
        f = UserFunction()
        assert f == f
        assert f != UserFunction()

    def test_builtin_identity(self):
        first = BuiltinFunction(name="len")
        second = BuiltinFunction(name="len")
        assert first != second
        assert len({first, second, first}) == 2

    def test_unit_singleton_equality(self):
        assert UNIT == from_python(None)


class TestConversions:
    """VAL-004: from_python / to_python / as_integer."""

    def test_bool_is_not_int(self):
        assert from_python(True) == TRUE
        assert isinstance(from_python(1), IntegerValue)

    def test_to_python(self):
        value = from_python({"xs": [1, 2.5, "s", False], "u": None})
        assert to_python(value) == {"xs": [1, 2.5, "s", False], "u": None}

    def test_unconvertible(self):
        with pytest.raises(TypeError):
            from_python(object())

    def test_as_integer(self):
        assert as_integer(IntegerValue(4)) == 4
        with pytest.raises(EvaluationError) as exc_info:
            as_integer(FloatValue(4.0))
        assert exc_info.value.error.message == "Type error: Expected Int, got Float"


class TestImmutability:
    """VAL-005: Values cannot be changed in place."""

    def test_replace_returns_new_list(self):
        original = from_python([1, 2, 3])
        updated = original.replace(0, IntegerValue(9))
        assert to_python(original) == [1, 2, 3]
        assert to_python(updated) == [9, 2, 3]

    def test_frozen(self):
        value = IntegerValue(1)
        with pytest.raises(AttributeError):
            value.value = 2

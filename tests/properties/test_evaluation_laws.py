"""Property-Based Tests for Morph evaluation laws.

  1. Pipe desugaring: `x |> f(y)` evaluates exactly like `f(x, y)`
  2. Precedence: `a + b * c` evaluates like `a + (b * c)`
  3. Division: truncated quotient and remainder recombine to the dividend
  4. Ghost bounds: a value passes Min/Max exactly when it lies in range
  5. Printing: a formatted expression parses back to the same value
"""

from __future__ import annotations

from hypothesis import given, settings, assume
from hypothesis import strategies as st

from morph.parser import parse
from morph.interpreter import interpret
from morph.ghost import validate_ghost
from morph.operators import truncating_div, truncating_mod
from morph.printer import format_expr
from morph.values import IntegerValue

small_ints = st.integers(min_value=-1000, max_value=1000)


def _eval(expr_text: str, prelude: str = "") -> IntegerValue:
    return interpret(parse(f"{prelude}\nproto main() {{ return {expr_text} }}"))


_PRELUDE = "proto f(a, b) { a * 3 - b }"


class TestPipeDesugaring:

    @given(x=small_ints, y=small_ints)
    @settings(max_examples=50)
    def test_pipe_equals_call(self, x, y):
        piped = _eval(f"({x}) |> f({y})", _PRELUDE)
        called = _eval(f"f({x}, {y})", _PRELUDE)
        assert piped == called


class TestPrecedence:

    @given(a=small_ints, b=small_ints, c=small_ints)
    @settings(max_examples=50)
    def test_multiplication_first(self, a, b, c):
        assert _eval(f"({a}) + ({b}) * ({c})") == IntegerValue(a + b * c)

    @given(a=small_ints, b=small_ints, c=small_ints)
    @settings(max_examples=50)
    def test_subtraction_left_associative(self, a, b, c):
        assert _eval(f"({a}) - ({b}) - ({c})") == IntegerValue(a - b - c)


class TestDivisionLaws:

    @given(a=small_ints, b=small_ints)
    def test_quotient_remainder_identity(self, a, b):
        assume(b != 0)
        assert truncating_div(a, b) * b + truncating_mod(a, b) == a

    @given(a=small_ints, b=small_ints)
    def test_remainder_magnitude(self, a, b):
        assume(b != 0)
        r = truncating_mod(a, b)
        assert abs(r) < abs(b)
        assert r == 0 or (r > 0) == (a > 0)


class TestGhostBounds:

    @given(n=small_ints, lo=small_ints, hi=small_ints)
    def test_in_range_iff_valid(self, n, lo, hi):
        error = validate_ghost(IntegerValue(n), [("Min", lo), ("Max", hi)])
        assert (error is None) == (lo <= n <= hi)


class TestPrinterRoundTrip:

    @given(a=small_ints, b=small_ints, c=small_ints, op1=st.sampled_from("+-*"), op2=st.sampled_from("+-*"))
    @settings(max_examples=50)
    def test_format_preserves_value(self, a, b, c, op1, op2):
        text = f"({a}) {op1} ({b}) {op2} ({c})"
        module = parse(f"proto main() {{ return {text} }}")
        printed = format_expr(module.declarations[0].body[0].value)
        assert _eval(printed) == _eval(text)

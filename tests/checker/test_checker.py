"""Morph Type Checker Tests — CHECK-001 through CHECK-012."""

from morph.parser import parse
from morph.checker import check, TypeChecker
from morph.errors import ErrorKind, TypeErrorKind


def _check(source: str) -> list:
    return check(parse(source))


def _variants(source: str) -> list:
    return [e.variant for e in _check(source)]


class TestWellTyped:
    """CHECK-001: Programs that type check cleanly."""

    def test_arithmetic_main(self):
        assert _check("proto main() { return 1 + 2 * 3 }") == []

    def test_list_indexing(self):
        assert _check("proto main() { let items = [1,2,3]; return items[0] + items[1] + items[2] }") == []

    def test_match_with_range(self):
        assert _check('proto main() { return match 5 { 90..100 => "A", _ => "C" } }') == []

    def test_annotated_function_and_call(self):
        source = """
proto add(a: Int, b: Int) => Int {
  return a + b
}

proto main() {
  let total: Int = add(1, 2)
  return total
}
"""
        assert _check(source) == []

    def test_recursion(self):
        source = """
proto fact(n: Int) => Int {
  if n <= 1 { return 1 }
  return n * fact(n - 1)
}
"""
        assert _check(source) == []

    def test_functions_may_be_declared_after_use(self):
        source = """
proto main() { return helper(2) }
proto helper(x: Int) => Int { x * 2 }
"""
        assert _check(source) == []

    def test_branches_that_both_return(self):
        source = """
proto sign(n: Int) => Int {
  if n < 0 { return -1 } else { return 1 }
}
"""
        assert _check(source) == []

    def test_builtins(self):
        source = """
proto main() {
  log("a", 1, true)
  print()
  let n: Int = len([1, 2])
  let r: List<Int> = range(0, 10, 2)
  let s: Float = sqrt(4)
  push([1], 2)
}
"""
        assert _check(source) == []


class TestMismatches:
    """CHECK-002: Annotation and return mismatches."""

    def test_let_annotation_mismatch(self):
        errors = _check('proto main() { let x: Int = "hello" }')
        assert len(errors) == 1
        assert errors[0].kind == ErrorKind.TYPE_ERROR
        assert errors[0].variant == TypeErrorKind.MISMATCH
        assert errors[0].message == "Type mismatch: expected Int, got String"
        assert errors[0].details == {"expected": "Int", "got": "String"}

    def test_int_widens_to_float(self):
        assert _check("proto main() { let x: Float = 1 }") == []

    def test_float_does_not_narrow_to_int(self):
        assert _variants("proto main() { let x: Int = 1.5 }") == [TypeErrorKind.MISMATCH]

    def test_return_type_mismatch(self):
        errors = _check('proto f() => Int { return "no" }')
        assert [e.variant for e in errors] == [TypeErrorKind.MISMATCH]

    def test_tail_expression_checked_against_return_type(self):
        errors = _check('proto f() => Int { "no" }')
        assert [e.variant for e in errors] == [TypeErrorKind.MISMATCH]

    def test_unannotated_return_is_not_checked(self):
        assert _check('proto f() { return "anything" }') == []

    def test_argument_mismatch(self):
        source = 'proto inc(x: Int) => Int { x + 1 }\nproto main() { inc("one") }'
        errors = _check(source)
        assert len(errors) == 1
        assert errors[0].details == {"expected": "Int", "got": "String"}

    def test_assignment_mismatch(self):
        assert _variants('proto main() { var x = 1; x = "s" }') == [TypeErrorKind.MISMATCH]

    def test_list_elements_must_agree(self):
        assert _variants('proto main() { let xs = [1, "two"] }') == [TypeErrorKind.MISMATCH]

    def test_list_annotation_accepts_empty_list(self):
        assert _check("proto main() { let xs: List<Int> = [] }") == []


class TestUndefined:
    """CHECK-003: Undefined names and types."""

    def test_undefined_variable(self):
        errors = _check("proto main() { return y }")
        assert errors[0].variant == TypeErrorKind.UNDEFINED_VARIABLE
        assert errors[0].message == "Undefined variable: y"

    def test_undefined_function(self):
        assert _variants("proto main() { missing(1) }") == [TypeErrorKind.UNDEFINED_VARIABLE]

    def test_undefined_type(self):
        errors = _check("proto f(x: Widget) { x }")
        assert errors[0].variant == TypeErrorKind.UNDEFINED_TYPE
        assert errors[0].message == "Undefined type: Widget"

    def test_loop_variable_not_visible_after_loop(self):
        source = "proto main() { for x in [1, 2] { log(x) }; return x }"
        assert _variants(source) == [TypeErrorKind.UNDEFINED_VARIABLE]

    def test_list_generic_arity(self):
        errors = _check("proto main() { let x: List<Int, Int> = [] }")
        assert errors[0].variant == TypeErrorKind.CUSTOM
        assert errors[0].message == "List type requires exactly one type parameter"


class TestArity:
    """CHECK-004: Call arity."""

    def test_too_many_arguments(self):
        source = "proto add(a: Int, b: Int) => Int { a + b }\nproto main() { add(1, 2, 3) }"
        errors = _check(source)
        assert errors[0].variant == TypeErrorKind.ARITY_MISMATCH
        assert errors[0].details == {"expected": 2, "got": 3}

    def test_range_accepts_one_to_three(self):
        assert _check("proto main() { range(3); range(1, 3); range(1, 9, 2) }") == []
        assert _variants("proto main() { range() }") == [TypeErrorKind.ARITY_MISMATCH]

    def test_len_requires_one(self):
        assert _variants("proto main() { len() }") == [TypeErrorKind.ARITY_MISMATCH]


class TestOperators:
    """CHECK-005: Binary and unary operator typing."""

    def test_string_concatenation(self):
        assert _check('proto main() { let s: String = "a" + "b" }') == []

    def test_mixed_numeric_promotes_to_float(self):
        assert _check("proto main() { let x: Float = 1 + 2.5 }") == []
        assert _variants("proto main() { let x: Int = 1 + 2.5 }") == [TypeErrorKind.MISMATCH]

    def test_int_plus_string_is_invalid(self):
        errors = _check('proto main() { 1 + "a" }')
        assert errors[0].variant == TypeErrorKind.INVALID_OPERATION
        assert errors[0].message == "Invalid operation: Cannot apply '+' to Int and String"

    def test_string_subtraction_is_invalid(self):
        assert _variants('proto main() { "a" - "b" }') == [TypeErrorKind.INVALID_OPERATION]

    def test_comparisons_are_bool(self):
        assert _check('proto main() { let b: Bool = 1 < 2; let c: Bool = "a" == 3 }') == []

    def test_negate_string(self):
        assert _variants('proto main() { -"a" }') == [TypeErrorKind.INVALID_OPERATION]

    def test_not_is_always_bool(self):
        assert _check("proto main() { let b: Bool = !1 }") == []

    def test_type_variable_takes_concrete_type(self):
        assert _check("proto twice(x) { let y: Int = x + 1; y }") == []

    def test_type_variable_concatenates_only_with_plus(self):
        assert _check('proto greet(name) { let s: String = name + "!"; s }') == []
        errors = _check('proto f(x) { return x - "a" }')
        assert [e.variant for e in errors] == [TypeErrorKind.INVALID_OPERATION]
        assert errors[0].message == "Invalid operation: Cannot apply '-' to param_x and String"

    def test_type_variable_rejects_bool(self):
        assert _variants("proto g(y) { return y * true }") == [TypeErrorKind.INVALID_OPERATION]
        assert _variants("proto h(y) { return false + y }") == [TypeErrorKind.INVALID_OPERATION]

    def test_two_type_variables(self):
        assert _check("proto add(a, b) { a + b }") == []


class TestErrorRecovery:
    """CHECK-006: Errors accumulate without cascading."""

    def test_one_error_per_mistake(self):
        errors = _check('proto main() { let a = missing + 1; let b: Int = a * 2 }')
        assert len(errors) == 1

    def test_errors_across_functions_accumulate(self):
        source = 'proto a() { let x: Int = "s" }\nproto b() { return nope }'
        assert len(_check(source)) == 2


class TestControlFlow:
    """CHECK-007: if, match, for and blocks."""

    def test_if_branches_must_agree(self):
        assert _variants('proto main() { let x = if true { 1 } else { "s" } }') == [TypeErrorKind.MISMATCH]

    def test_if_branches_do_not_widen(self):
        assert _variants("proto main() { let x = if true { 1 } else { 2.0 } }") == [TypeErrorKind.MISMATCH]

    def test_if_without_else_is_unit(self):
        assert _variants("proto main() { let x: Int = if true { 1 } }") == [TypeErrorKind.MISMATCH]

    def test_block_type_is_last_expression(self):
        assert _check("proto main() { let x: Int = { let a = 1; a + 1 } }") == []

    def test_for_requires_list(self):
        errors = _check("proto main() { for x in 5 { } }")
        assert errors[0].variant == TypeErrorKind.CUSTOM
        assert "For loop requires a list" in errors[0].message

    def test_for_element_type(self):
        assert _check('proto main() { for s in ["a"] { let t: String = s } }') == []

    def test_match_arms_are_checked(self):
        assert _variants("proto main() { match 1 { 1 => nope, _ => 0 } }") == [TypeErrorKind.UNDEFINED_VARIABLE]


class TestRecordsAndIndexing:
    """CHECK-008: Field access and indexing."""

    def test_field_access(self):
        assert _check("proto main() { let p = { x: 1 }; let n: Int = p.x }") == []

    def test_missing_field(self):
        errors = _check("proto main() { let p = { x: 1 }; p.y }")
        assert errors[0].message == "Field 'y' not found"

    def test_field_on_non_record(self):
        errors = _check("proto main() { let n = 1; n.x }")
        assert errors[0].message == "Type Int is not a record"

    def test_index_must_be_int(self):
        assert _variants('proto main() { let xs = [1]; xs["a"] }') == [TypeErrorKind.MISMATCH]

    def test_string_indexing_yields_string(self):
        assert _check('proto main() { let c: String = "abc"[0] }') == []

    def test_not_indexable(self):
        errors = _check("proto main() { let b = true; b[0] }")
        assert errors[0].message == "Type Bool is not indexable"

    def test_record_type_declaration(self):
        source = """
type Point = { x: Int, y: Int }

proto origin() => Point {
  return { x: 0, y: 0 }
}
"""
        assert _check(source) == []

    def test_record_type_mismatch(self):
        source = "type Point = { x: Int, y: Int }\nproto f() => Point { return { x: 0 } }"
        assert _variants(source) == [TypeErrorKind.MISMATCH]


class TestTypeDeclarations:
    """CHECK-009: Aliases and enums."""

    def test_alias(self):
        assert _check("type Score = Int\nproto main() { let s: Score = 10 }") == []

    def test_enum_variants_are_strings(self):
        source = "type Color = Red | Green\nproto main() { let c: Color = Red; let s: String = Green }"
        assert _check(source) == []


class TestPipesAndLambdas:
    """CHECK-010: Pipes type as calls; lambdas infer function types."""

    def test_pipe_prepends_left_operand(self):
        source = "proto add(a: Int, b: Int) => Int { a + b }\nproto main() { let x: Int = 1 |> add(2) }"
        assert _check(source) == []

    def test_pipe_arity(self):
        source = "proto add(a: Int, b: Int) => Int { a + b }\nproto main() { 1 |> add(2, 3) }"
        assert _variants(source) == [TypeErrorKind.ARITY_MISMATCH]

    def test_pipe_argument_type(self):
        source = 'proto inc(a: Int) => Int { a + 1 }\nproto main() { "s" |> inc }'
        assert _variants(source) == [TypeErrorKind.MISMATCH]

    def test_lambda_call(self):
        assert _check("proto main() { let f = |x: Int| x * 2; let y: Int = f(3) }") == []

    def test_lambda_arity(self):
        assert _variants("proto main() { let f = |x: Int| x; f() }") == [TypeErrorKind.ARITY_MISMATCH]

    def test_calling_a_non_function(self):
        assert _variants("proto main() { let n = 1; n() }") == [TypeErrorKind.INVALID_OPERATION]


class TestSolveBlocks:
    """CHECK-011: Solve blocks are checked in pass 3."""

    def test_well_typed_solve_block(self):
        source = "solve quote(qty: Int) {\n  let price = qty * 10\n  ensure price > 0\n  return price\n}"
        assert _check(source) == []

    def test_ensure_must_be_bool(self):
        source = 'solve s() {\n  ensure "yes"\n}'
        assert _variants(source) == [TypeErrorKind.MISMATCH]


class TestCheckerInstances:
    """CHECK-012: Each checker owns its environment."""

    def test_rechecking_resets_errors(self):
        checker = TypeChecker()
        bad = parse('proto main() { let x: Int = "s" }')
        good = parse("proto main() { 1 }")
        assert len(checker.check_module(bad)) == 1
        assert checker.check_module(good) == []

    def test_definitions_do_not_leak_between_modules(self):
        checker = TypeChecker()
        checker.check_module(parse("proto helper() { 1 }"))
        errors = checker.check_module(parse("proto main() { helper() }"))
        assert [e.variant for e in errors] == [TypeErrorKind.UNDEFINED_VARIABLE]

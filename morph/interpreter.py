"""Morph Interpreter — tree-walking evaluator for draft (proto) mode.

Execution is two-pass. Pass 1 registers every function declaration in the
global scope together with a flattened snapshot of the bindings visible at
that moment. Pass 2 calls `main` with no arguments when it exists, and
otherwise runs each top-level solve block in order, returning the value of
the last one.

Every block, loop iteration and call runs in a fresh child scope; the
previous scope is restored on exit whether or not evaluation succeeded.
The first runtime error aborts the whole run.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO

from morph.ast_nodes import (
    Module, FunctionDecl, FunctionMode, TypeDecl, EnumDefinition,
    SolveBlock, BindingConstraint, EnsureConstraint, ImportDecl,
    TypeAnnotation,
    Statement, VarDecl, ExprStmt, ReturnStmt, ForStmt, AssignStmt,
    Expr, IntLiteral, FloatLiteral, StringLiteral, BoolLiteral, ListLiteral, RecordLiteral,
    Identifier, BinaryOp, UnaryOp, CallExpr, PipeExpr, MatchExpr, BlockExpr, IfExpr,
    FieldAccess, IndexAccess, LambdaExpr, ClaimExpr,
    Pattern, WildcardPattern, LiteralPattern, IdentPattern, RangePattern, TuplePattern,
)
from morph.builtins import make_builtins
from morph.errors import (
    SourceLocation, EvaluationError,
    runtime_type_error, runtime_undefined_variable, undefined_function,
    runtime_arity_mismatch, index_out_of_bounds, runtime_invalid_operation, runtime_custom,
)
from morph.ghost import validate_ghost, ghost_attributes_of
from morph.operators import apply_binary, apply_unary
from morph.printer import format_expr
from morph.scope import Scope
from morph.values import (
    Value, IntegerValue, FloatValue, StringValue, BooleanValue, ListValue, RecordValue,
    FunctionValue, UserFunction, BuiltinFunction, UNIT, as_integer, from_python,
)

logger = logging.getLogger(__name__)


class Environment(Scope[Value]):
    """Runtime scope chain mapping names to values."""


class _ReturnSignal(Exception):
    """Unwinds a `return` to the enclosing function call."""

    def __init__(self, value: Value):
        super().__init__()
        self.value = value


class Interpreter:
    """Evaluates a parsed Morph module.

    Each instance owns its own global scope and builtin table.
    """

    def __init__(
        self,
        stdout: Optional[TextIO] = None,
        validate_ghosts: bool = True,
        recursion_limit: Optional[int] = None,
    ):
        self.globals = Environment()
        for name, builtin in make_builtins(stdout).items():
            self.globals.define(name, builtin)
        self.environment: Environment = self.globals
        self.validate_ghosts = validate_ghosts
        self.recursion_limit = recursion_limit

    # -------------------------------------------------------------------
    # Module execution
    # -------------------------------------------------------------------

    def interpret(self, module: Module) -> Value:
        previous_limit = sys.getrecursionlimit()
        if self.recursion_limit and self.recursion_limit > previous_limit:
            sys.setrecursionlimit(self.recursion_limit)
        try:
            self._register_declarations(module)
            return self._run(module)
        except RecursionError:
            raise EvaluationError(runtime_custom("Maximum recursion depth exceeded")) from None
        finally:
            sys.setrecursionlimit(previous_limit)

    def _register_declarations(self, module: Module) -> None:
        for decl in module.declarations:
            if isinstance(decl, TypeDecl) and isinstance(decl.definition, EnumDefinition):
                # Enums are strings for now: each variant names itself.
                for variant in decl.definition.variants:
                    self.globals.define(variant, StringValue(variant))

        for decl in module.declarations:
            if isinstance(decl, FunctionDecl):
                func = UserFunction(decl=decl, closure=self.environment.snapshot())
                self.globals.define(decl.name, func)
                logger.debug("Registered function %s (%s)", decl.name, decl.mode.value)

    def _run(self, module: Module) -> Value:
        main = module.find_function("main")
        if main is not None:
            logger.debug("Calling main")
            return self.call_function(self.globals.lookup("main"), [], main.location)

        result: Value = UNIT
        for decl in module.declarations:
            if isinstance(decl, SolveBlock):
                result = self.execute_solve_block(decl)
            elif isinstance(decl, ImportDecl):
                logger.debug("Import of %s has no effect in draft mode", decl.module_name)
        return result

    def execute_solve_block(self, block: SolveBlock) -> Value:
        logger.debug("Executing solve block %s", block.name)
        previous = self.environment
        self.environment = previous.child_scope()
        try:
            # Solve blocks are not callable yet; parameters are placeholders.
            for param in block.params:
                self.environment.define(param.name, UNIT)

            for constraint in block.constraints:
                if isinstance(constraint, BindingConstraint):
                    self.environment.define(constraint.name, self.evaluate(constraint.expr))
                elif isinstance(constraint, EnsureConstraint):
                    value = self.evaluate(constraint.expr)
                    if not value.is_truthy():
                        raise EvaluationError(runtime_custom(
                            f"Ensure constraint failed: {format_expr(constraint.expr)}",
                            constraint.location,
                        ))

            if block.return_expr is not None:
                return self.evaluate(block.return_expr)
            return UNIT
        except _ReturnSignal as ret:
            # A `return` nested in a block expression ends the solve block.
            return ret.value
        finally:
            self.environment = previous

    # -------------------------------------------------------------------
    # Calls
    # -------------------------------------------------------------------

    def call_function(
        self,
        func: Optional[Value],
        args: list[Value],
        location: Optional[SourceLocation] = None,
    ) -> Value:
        if isinstance(func, BuiltinFunction):
            if func.arity is not None and len(args) != func.arity:
                raise EvaluationError(runtime_arity_mismatch(func.arity, len(args), location))
            return func(args)

        if isinstance(func, UserFunction):
            return self._call_user_function(func, args, location)

        raise EvaluationError(runtime_type_error("Not a function", location))

    def _call_user_function(
        self,
        func: UserFunction,
        args: list[Value],
        location: Optional[SourceLocation],
    ) -> Value:
        decl = func.decl
        if decl.mode == FunctionMode.SOLID:
            raise EvaluationError(runtime_invalid_operation(
                f"Cannot execute solid function '{decl.name}' in draft mode", location,
            ))
        if len(decl.params) != len(args):
            raise EvaluationError(runtime_arity_mismatch(len(decl.params), len(args), location))

        if func.closure is not None:
            env = Environment(parent=self.globals)
            for name, value in func.closure.items():
                env.define(name, value)
        else:
            env = Environment(parent=self.environment)

        for param, arg in zip(decl.params, args):
            self._check_ghost(param.type_annotation, arg, param.location)
            env.define(param.name, arg)

        previous = self.environment
        self.environment = env
        try:
            result: Value = UNIT
            for stmt in decl.body:
                result = self.execute_statement(stmt)
            return result
        except _ReturnSignal as ret:
            return ret.value
        finally:
            self.environment = previous

    def _resolve_callee(self, callee: Expr) -> Value:
        if isinstance(callee, Identifier):
            func = self.environment.lookup(callee.name)
            if func is None:
                raise EvaluationError(undefined_function(callee.name, callee.location))
            return func
        return self.evaluate(callee)

    def _check_ghost(
        self,
        annotation: Optional[TypeAnnotation],
        value: Value,
        location: Optional[SourceLocation],
    ) -> None:
        if not self.validate_ghosts:
            return
        attributes = ghost_attributes_of(annotation)
        if not attributes:
            return
        failure = validate_ghost(value, attributes, location)
        if failure is not None:
            raise EvaluationError(runtime_type_error(failure.message, location, failure.details))

    # -------------------------------------------------------------------
    # Statements
    # -------------------------------------------------------------------

    def execute_statement(self, stmt: Statement) -> Value:
        if isinstance(stmt, VarDecl):
            value = self.evaluate(stmt.value)
            self._check_ghost(stmt.type_annotation, value, stmt.location)
            self.environment.define(stmt.name, value)
            return UNIT

        if isinstance(stmt, ExprStmt):
            return self.evaluate(stmt.expr)

        if isinstance(stmt, ReturnStmt):
            value = self.evaluate(stmt.value) if stmt.value is not None else UNIT
            raise _ReturnSignal(value)

        if isinstance(stmt, ForStmt):
            return self._execute_for(stmt)

        if isinstance(stmt, AssignStmt):
            value = self.evaluate(stmt.value)
            self._assign(stmt.target, value)
            return UNIT

        raise EvaluationError(runtime_custom(f"Unknown statement {type(stmt).__name__}", stmt.location))

    def _execute_for(self, stmt: ForStmt) -> Value:
        iterable = self.evaluate(stmt.iterable)
        if not isinstance(iterable, ListValue):
            raise EvaluationError(runtime_type_error("For loop requires a list", stmt.location))

        result: Value = UNIT
        for item in iterable.items:
            previous = self.environment
            self.environment = previous.child_scope()
            try:
                self.environment.define(stmt.var_name, item)
                if stmt.guard is not None and not self.evaluate(stmt.guard).is_truthy():
                    continue
                for body_stmt in stmt.body:
                    result = self.execute_statement(body_stmt)
            finally:
                self.environment = previous
        return result

    def _assign(self, target: Expr, value: Value) -> None:
        if isinstance(target, Identifier):
            if not self.environment.assign(target.name, value):
                raise EvaluationError(runtime_undefined_variable(target.name, target.location))
            return

        if isinstance(target, IndexAccess):
            container = self.evaluate(target.obj)
            if not isinstance(container, ListValue):
                raise EvaluationError(runtime_type_error(
                    f"Cannot assign into {container.type_name()} by index", target.location,
                ))
            idx = as_integer(self.evaluate(target.index))
            if idx < 0 or idx >= len(container.items):
                raise EvaluationError(index_out_of_bounds(idx, len(container.items), target.location))
            # Lists are immutable: rebuild and rebind the enclosing target.
            self._assign(target.obj, container.replace(idx, value))
            return

        if isinstance(target, FieldAccess):
            # Field assignment is not supported yet and leaves the record unchanged.
            self.evaluate(target.obj)
            logger.debug("Ignoring assignment to field '%s'", target.field_name)
            return

        raise EvaluationError(runtime_invalid_operation("Invalid assignment target", target.location))

    # -------------------------------------------------------------------
    # Expressions
    # -------------------------------------------------------------------

    def evaluate(self, expr: Expr) -> Value:
        try:
            return self._evaluate(expr)
        except EvaluationError as e:
            if e.error.location is None and expr.location is not None:
                e.error.location = expr.location
            raise

    def _evaluate(self, expr: Expr) -> Value:
        if isinstance(expr, IntLiteral):
            return IntegerValue(expr.value)
        if isinstance(expr, FloatLiteral):
            return FloatValue(expr.value)
        if isinstance(expr, StringLiteral):
            return StringValue(expr.value)
        if isinstance(expr, BoolLiteral):
            return BooleanValue(expr.value)

        if isinstance(expr, ListLiteral):
            return ListValue(tuple(self.evaluate(e) for e in expr.elements))

        if isinstance(expr, RecordLiteral):
            return RecordValue({name: self.evaluate(value) for name, value in expr.fields})

        if isinstance(expr, Identifier):
            value = self.environment.lookup(expr.name)
            if value is None:
                raise EvaluationError(runtime_undefined_variable(expr.name, expr.location))
            return value

        if isinstance(expr, BinaryOp):
            left = self.evaluate(expr.left)
            right = self.evaluate(expr.right)
            return apply_binary(expr.op, left, right)

        if isinstance(expr, UnaryOp):
            return apply_unary(expr.op, self.evaluate(expr.operand))

        if isinstance(expr, CallExpr):
            func = self._resolve_callee(expr.callee)
            args = [self.evaluate(a) for a in expr.args]
            return self.call_function(func, args, expr.location)

        if isinstance(expr, PipeExpr):
            return self._evaluate_pipe(expr)

        if isinstance(expr, MatchExpr):
            subject = self.evaluate(expr.subject)
            for arm in expr.arms:
                if self.match_pattern(subject, arm.pattern):
                    return self.evaluate(arm.body)
            raise EvaluationError(runtime_custom("No match arm matched", expr.location))

        if isinstance(expr, BlockExpr):
            return self._evaluate_block(expr)

        if isinstance(expr, IfExpr):
            if self.evaluate(expr.condition).is_truthy():
                return self.evaluate(expr.then_branch)
            if expr.else_branch is not None:
                return self.evaluate(expr.else_branch)
            return UNIT

        if isinstance(expr, FieldAccess):
            obj = self.evaluate(expr.obj)
            if not isinstance(obj, RecordValue):
                raise EvaluationError(runtime_type_error("Not a record", expr.location))
            value = obj.get(expr.field_name)
            if value is None:
                raise EvaluationError(runtime_custom(f"Field '{expr.field_name}' not found", expr.location))
            return value

        if isinstance(expr, IndexAccess):
            return self._evaluate_index(expr)

        if isinstance(expr, LambdaExpr):
            decl = FunctionDecl(
                mode=FunctionMode.PROTO,
                name="<lambda>",
                params=expr.params,
                body=[ExprStmt(expr=expr.body, location=expr.body.location)],
                location=expr.location,
            )
            return UserFunction(decl=decl, closure=self.environment.snapshot())

        if isinstance(expr, ClaimExpr):
            # Ownership transfer has no runtime effect in draft mode.
            return self.evaluate(expr.expr)

        raise EvaluationError(runtime_custom(f"Unknown expression {type(expr).__name__}", expr.location))

    def _evaluate_pipe(self, expr: PipeExpr) -> Value:
        left = self.evaluate(expr.left)
        right = expr.right
        if isinstance(right, CallExpr):
            func = self._resolve_callee(right.callee)
            args = [left] + [self.evaluate(a) for a in right.args]
            return self.call_function(func, args, right.location)
        if isinstance(right, Identifier):
            func = self._resolve_callee(right)
            return self.call_function(func, [left], right.location)
        raise EvaluationError(runtime_type_error("Right side of pipe must be a function", expr.location))

    def _evaluate_block(self, block: BlockExpr) -> Value:
        previous = self.environment
        self.environment = previous.child_scope()
        try:
            result: Value = UNIT
            for stmt in block.statements:
                result = self.execute_statement(stmt)
            return result
        finally:
            self.environment = previous

    def _evaluate_index(self, expr: IndexAccess) -> Value:
        obj = self.evaluate(expr.obj)
        index = self.evaluate(expr.index)
        if isinstance(obj, ListValue):
            idx = as_integer(index)
            if idx < 0 or idx >= len(obj.items):
                raise EvaluationError(index_out_of_bounds(idx, len(obj.items), expr.location))
            return obj.items[idx]
        if isinstance(obj, StringValue):
            idx = as_integer(index)
            if idx < 0 or idx >= len(obj.value):
                raise EvaluationError(index_out_of_bounds(idx, len(obj.value), expr.location))
            return StringValue(obj.value[idx])
        raise EvaluationError(runtime_type_error("Not indexable", expr.location))

    # -------------------------------------------------------------------
    # Patterns
    # -------------------------------------------------------------------

    def match_pattern(self, value: Value, pattern: Pattern) -> bool:
        if isinstance(pattern, WildcardPattern):
            return True

        if isinstance(pattern, LiteralPattern):
            return value == from_python(pattern.value)

        if isinstance(pattern, IdentPattern):
            # Matches unconditionally; the name is not bound.
            return True

        if isinstance(pattern, RangePattern):
            bounds = []
            for bound in (pattern.start, pattern.end):
                if (not isinstance(bound, LiteralPattern)
                        or not isinstance(bound.value, int)
                        or isinstance(bound.value, bool)):
                    raise EvaluationError(runtime_custom(
                        "Range patterns must use integer literals", pattern.location,
                    ))
                bounds.append(bound.value)
            if not isinstance(value, IntegerValue):
                return False
            return bounds[0] <= value.value <= bounds[1]

        if isinstance(pattern, TuplePattern):
            raise EvaluationError(runtime_custom("Tuple patterns not yet supported", pattern.location))

        raise EvaluationError(runtime_custom(f"Unknown pattern {type(pattern).__name__}", pattern.location))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def interpret(
    module: Module,
    stdout: Optional[TextIO] = None,
    validate_ghosts: bool = True,
    recursion_limit: Optional[int] = None,
) -> Value:
    """Run a parsed module on a fresh interpreter and return its result."""
    interpreter = Interpreter(
        stdout=stdout, validate_ghosts=validate_ghosts, recursion_limit=recursion_limit,
    )
    return interpreter.interpret(module)

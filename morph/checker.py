"""Morph Type Checker.

Three module-wide passes:
  1. register every `type` declaration (aliases, records, enums)
  2. register every function signature
  3. check every function body and solve block

This is structural checking, not unification: unannotated parameters get a
type variable that is accepted everywhere and never bound. Errors from all
passes accumulate into one list; a failing expression reports once and then
has the permissive Error type, so one mistake does not cascade.
"""

from __future__ import annotations

import logging
from typing import Optional

from morph.ast_nodes import (
    Module, FunctionDecl, TypeDecl, AliasDefinition, RecordDefinition, EnumDefinition,
    SolveBlock, BindingConstraint, EnsureConstraint, Parameter, TypeAnnotation,
    Statement, VarDecl, ExprStmt, ReturnStmt, ForStmt, AssignStmt,
    Expr, IntLiteral, FloatLiteral, StringLiteral, BoolLiteral, ListLiteral, RecordLiteral,
    Identifier, BinaryOp, UnaryOp, CallExpr, PipeExpr, MatchExpr, BlockExpr, IfExpr,
    FieldAccess, IndexAccess, LambdaExpr, ClaimExpr,
)
from morph.errors import (
    MorphError, SourceLocation,
    type_mismatch, undefined_variable, arity_mismatch, invalid_operation, custom_type_error,
)
from morph.types import (
    MorphType, ListType, RecordType, FunctionType, TypeVariable,
    INT, FLOAT, STRING, BOOL, UNIT, ERROR, NEVER, NUMERIC,
    TypeEnvironment, TypeResolutionError, resolve_type_annotation,
    is_compatible, is_permissive, strip_ghost, make_list_type,
)

logger = logging.getLogger(__name__)

_COMPARISON_OPS = ("==", "!=", "<", "<=", ">", ">=")
_ARITHMETIC_OPS = ("+", "-", "*", "/", "%")


def _builtin_signatures() -> dict[str, FunctionType]:
    elem = TypeVariable("a")
    return {
        "print": FunctionType((), UNIT, variadic=True),
        "log": FunctionType((), UNIT, variadic=True),
        "len": FunctionType((TypeVariable("collection"),), INT),
        "push": FunctionType((make_list_type(elem), elem), UNIT),
        "range": FunctionType((INT, INT, INT), make_list_type(INT), optional=2),
        "sqrt": FunctionType((FLOAT,), FLOAT),
    }


class TypeChecker:
    """Type checks a Morph module."""

    def __init__(self, verify: bool = False):
        self.env = TypeEnvironment()
        self.errors: list[MorphError] = []
        self.verify = verify
        self._signatures: dict[int, FunctionType] = {}
        # None when the enclosing function has no return annotation.
        self._current_return_type: Optional[MorphType] = None

    def check_module(self, module: Module) -> list[MorphError]:
        """Type check an entire module. Returns list of errors."""
        self.env = TypeEnvironment()
        self.errors = []
        self._signatures = {}
        self._register_builtins()

        # Pass 1: types
        for decl in module.declarations:
            if isinstance(decl, TypeDecl):
                self._register_type(decl)

        # Pass 2: function signatures
        for decl in module.declarations:
            if isinstance(decl, FunctionDecl):
                self._register_function(decl)

        # Pass 3: bodies
        for decl in module.declarations:
            if isinstance(decl, FunctionDecl):
                self._check_function(decl)
            elif isinstance(decl, SolveBlock):
                self._check_solve_block(decl)

        if self.verify:
            from morph.contracts import EnsureVerifier
            self.errors.extend(EnsureVerifier().verify_module(module))

        logger.debug("Checked %s: %d error(s)", module.filename, len(self.errors))
        return self.errors

    def _register_builtins(self) -> None:
        for name, signature in _builtin_signatures().items():
            self.env.define_variable(name, signature)

    def _error(self, error: MorphError) -> MorphType:
        self.errors.append(error)
        return ERROR

    def _resolve(self, annotation: Optional[TypeAnnotation]) -> MorphType:
        try:
            return resolve_type_annotation(annotation, self.env)
        except TypeResolutionError as e:
            return self._error(e.error)

    def _param_type(self, param: Parameter) -> MorphType:
        if param.type_annotation is None:
            return TypeVariable(f"param_{param.name}")
        return self._resolve(param.type_annotation)

    # -------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------

    def _register_type(self, decl: TypeDecl) -> None:
        definition = decl.definition
        if isinstance(definition, AliasDefinition):
            self.env.define_type(decl.name, self._resolve(definition.target))
        elif isinstance(definition, RecordDefinition):
            fields = tuple((name, self._resolve(ann)) for name, ann in definition.fields)
            self.env.define_type(decl.name, RecordType(fields))
        elif isinstance(definition, EnumDefinition):
            # No variant type yet: enums are strings and variants are constants.
            self.env.define_type(decl.name, STRING)
            for variant in definition.variants:
                self.env.define_variable(variant, STRING)

    def _register_function(self, decl: FunctionDecl) -> None:
        params = tuple(self._param_type(p) for p in decl.params)
        ret = self._resolve(decl.return_type) if decl.return_type is not None else UNIT
        signature = FunctionType(params, ret)
        self._signatures[id(decl)] = signature
        self.env.define_variable(decl.name, signature)

    # -------------------------------------------------------------------
    # Bodies
    # -------------------------------------------------------------------

    def _check_function(self, decl: FunctionDecl) -> None:
        signature = self._signatures[id(decl)]
        saved_env = self.env
        saved_return = self._current_return_type
        self.env = saved_env.child_scope()
        self._current_return_type = signature.return_type if decl.return_type is not None else None
        try:
            for param, typ in zip(decl.params, signature.param_types):
                self.env.define_variable(param.name, typ)
            body_type = self._check_statements(decl.body)
            tail = decl.body[-1] if decl.body else None
            expected = self._current_return_type
            if isinstance(tail, ExprStmt) and expected is not None and not is_compatible(expected, body_type):
                self.errors.append(type_mismatch(str(expected), str(body_type), tail.location))
        finally:
            self.env = saved_env
            self._current_return_type = saved_return

    def _check_solve_block(self, block: SolveBlock) -> None:
        saved_env = self.env
        saved_return = self._current_return_type
        self.env = saved_env.child_scope()
        self._current_return_type = None
        try:
            for param in block.params:
                self.env.define_variable(param.name, self._param_type(param))
            for constraint in block.constraints:
                if isinstance(constraint, BindingConstraint):
                    self.env.define_variable(constraint.name, self._infer(constraint.expr))
                elif isinstance(constraint, EnsureConstraint):
                    cond = self._infer(constraint.expr)
                    if not is_compatible(BOOL, cond):
                        self.errors.append(type_mismatch("Bool", str(cond), constraint.location))
            if block.return_expr is not None:
                self._infer(block.return_expr)
        finally:
            self.env = saved_env
            self._current_return_type = saved_return

    def _check_statements(self, statements: list[Statement]) -> MorphType:
        """Check statements in the current scope; returns the block's type."""
        result: MorphType = UNIT
        for stmt in statements:
            result = self._check_statement(stmt)
        return result

    def _in_child_scope(self, statements: list[Statement]) -> MorphType:
        saved = self.env
        self.env = saved.child_scope()
        try:
            return self._check_statements(statements)
        finally:
            self.env = saved

    # -------------------------------------------------------------------
    # Statements
    # -------------------------------------------------------------------

    def _check_statement(self, stmt: Statement) -> MorphType:
        if isinstance(stmt, VarDecl):
            self._check_var_decl(stmt)
            return UNIT
        if isinstance(stmt, ExprStmt):
            return self._infer(stmt.expr)
        if isinstance(stmt, ReturnStmt):
            self._check_return(stmt)
            return NEVER
        if isinstance(stmt, ForStmt):
            self._check_for(stmt)
            return UNIT
        if isinstance(stmt, AssignStmt):
            self._check_assign(stmt)
            return UNIT
        return UNIT

    def _check_var_decl(self, stmt: VarDecl) -> None:
        inferred = self._infer(stmt.value)
        if stmt.type_annotation is None:
            self.env.define_variable(stmt.name, inferred)
            return
        declared = self._resolve(stmt.type_annotation)
        if not is_compatible(declared, inferred):
            self.errors.append(type_mismatch(str(declared), str(inferred), stmt.location))
        self.env.define_variable(stmt.name, declared)

    def _check_return(self, stmt: ReturnStmt) -> None:
        actual = self._infer(stmt.value) if stmt.value is not None else UNIT
        expected = self._current_return_type
        if expected is not None and not is_compatible(expected, actual):
            self.errors.append(type_mismatch(str(expected), str(actual), stmt.location))

    def _check_for(self, stmt: ForStmt) -> None:
        iter_type = strip_ghost(self._infer(stmt.iterable))
        if isinstance(iter_type, ListType):
            elem = iter_type.element_type
        elif is_permissive(iter_type):
            elem = ERROR
        else:
            self.errors.append(custom_type_error(
                f"For loop requires a list, got {iter_type}", stmt.location,
            ))
            elem = ERROR

        saved = self.env
        self.env = saved.child_scope()
        try:
            self.env.define_variable(stmt.var_name, elem)
            if stmt.guard is not None:
                self._infer(stmt.guard)
            self._check_statements(stmt.body)
        finally:
            self.env = saved

    def _check_assign(self, stmt: AssignStmt) -> None:
        target = self._infer(stmt.target)
        value = self._infer(stmt.value)
        if not is_compatible(target, value):
            self.errors.append(type_mismatch(str(target), str(value), stmt.location))

    # -------------------------------------------------------------------
    # Expressions
    # -------------------------------------------------------------------

    def _infer(self, expr: Expr) -> MorphType:
        if isinstance(expr, IntLiteral):
            return INT
        if isinstance(expr, FloatLiteral):
            return FLOAT
        if isinstance(expr, StringLiteral):
            return STRING
        if isinstance(expr, BoolLiteral):
            return BOOL

        if isinstance(expr, ListLiteral):
            return self._infer_list(expr)

        if isinstance(expr, RecordLiteral):
            return RecordType(tuple((name, self._infer(value)) for name, value in expr.fields))

        if isinstance(expr, Identifier):
            typ = self.env.lookup_variable(expr.name)
            if typ is None:
                return self._error(undefined_variable(expr.name, expr.location))
            return typ

        if isinstance(expr, BinaryOp):
            left = self._infer(expr.left)
            right = self._infer(expr.right)
            return self._binary_type(expr.op, left, right, expr.location)

        if isinstance(expr, UnaryOp):
            operand = self._infer(expr.operand)
            if expr.op == "!":
                return BOOL
            base = strip_ghost(operand)
            if base in NUMERIC or is_permissive(base):
                return base
            return self._error(invalid_operation(f"Cannot negate {operand}", expr.location))

        if isinstance(expr, CallExpr):
            callee = self._infer(expr.callee)
            args = [self._infer(a) for a in expr.args]
            return self._check_call(callee, args, expr.args, expr.location)

        if isinstance(expr, PipeExpr):
            return self._infer_pipe(expr)

        if isinstance(expr, MatchExpr):
            self._infer(expr.subject)
            arm_types = [self._infer(arm.body) for arm in expr.arms]
            for typ in arm_types:
                if typ != NEVER:
                    return typ
            return arm_types[0] if arm_types else UNIT

        if isinstance(expr, BlockExpr):
            return self._in_child_scope(expr.statements)

        if isinstance(expr, IfExpr):
            return self._infer_if(expr)

        if isinstance(expr, FieldAccess):
            obj = strip_ghost(self._infer(expr.obj))
            if is_permissive(obj):
                return ERROR
            if not isinstance(obj, RecordType):
                return self._error(custom_type_error(f"Type {obj} is not a record", expr.location))
            field_type = obj.get_field_type(expr.field_name)
            if field_type is None:
                return self._error(custom_type_error(
                    f"Field '{expr.field_name}' not found", expr.location,
                ))
            return field_type

        if isinstance(expr, IndexAccess):
            return self._infer_index(expr)

        if isinstance(expr, LambdaExpr):
            return self._infer_lambda(expr)

        if isinstance(expr, ClaimExpr):
            return self._infer(expr.expr)

        return ERROR

    def _infer_list(self, expr: ListLiteral) -> MorphType:
        if not expr.elements:
            return make_list_type(TypeVariable("elem"))
        first = self._infer(expr.elements[0])
        for element in expr.elements[1:]:
            typ = self._infer(element)
            if not is_compatible(first, typ):
                self.errors.append(type_mismatch(str(first), str(typ), element.location))
        return make_list_type(first)

    def _binary_type(
        self,
        op: str,
        left: MorphType,
        right: MorphType,
        location: Optional[SourceLocation],
    ) -> MorphType:
        if op in _COMPARISON_OPS:
            return BOOL
        if op not in _ARITHMETIC_OPS:
            return self._error(invalid_operation(f"Unknown operator '{op}'", location))

        l, r = strip_ghost(left), strip_ghost(right)
        if l == ERROR or r == ERROR:
            return ERROR
        if is_permissive(l) or is_permissive(r):
            # A type variable takes on the concrete type it is combined with,
            # provided that type supports the operator at all.
            concrete = r if is_permissive(l) else l
            if is_permissive(concrete) or concrete in NUMERIC:
                return concrete
            if op == "+" and (concrete == STRING or isinstance(concrete, ListType)):
                return concrete
            return self._error(invalid_operation(f"Cannot apply '{op}' to {left} and {right}", location))
        if l in NUMERIC and r in NUMERIC:
            return INT if l == INT and r == INT else FLOAT
        if op == "+" and l == STRING and r == STRING:
            return STRING
        if op == "+" and isinstance(l, ListType) and isinstance(r, ListType) and is_compatible(l, r):
            return l
        return self._error(invalid_operation(f"Cannot apply '{op}' to {left} and {right}", location))

    def _check_call(
        self,
        callee: MorphType,
        arg_types: list[MorphType],
        arg_exprs: list[Expr],
        location: Optional[SourceLocation],
    ) -> MorphType:
        callee = strip_ghost(callee)
        if is_permissive(callee):
            return ERROR
        if not isinstance(callee, FunctionType):
            return self._error(invalid_operation(f"Not a function: {callee}", location))

        if not callee.accepts_arity(len(arg_types)):
            expected = callee.min_arity if len(arg_types) < callee.min_arity else len(callee.param_types)
            self.errors.append(arity_mismatch(expected, len(arg_types), location))
            return callee.return_type

        for param, arg, arg_expr in zip(callee.param_types, arg_types, arg_exprs):
            if not is_compatible(param, arg):
                self.errors.append(type_mismatch(
                    str(param), str(arg), arg_expr.location or location,
                ))
        return callee.return_type

    def _infer_pipe(self, expr: PipeExpr) -> MorphType:
        left = self._infer(expr.left)
        right = expr.right
        if isinstance(right, CallExpr):
            callee = self._infer(right.callee)
            args = [left] + [self._infer(a) for a in right.args]
            return self._check_call(callee, args, [expr.left] + right.args, right.location)
        if isinstance(right, Identifier):
            callee = self._infer(right)
            return self._check_call(callee, [left], [expr.left], right.location)
        return self._error(invalid_operation("Right side of pipe must be callable", expr.location))

    def _infer_if(self, expr: IfExpr) -> MorphType:
        self._infer(expr.condition)
        then_type = self._infer(expr.then_branch)
        if expr.else_branch is None:
            return UNIT
        else_type = self._infer(expr.else_branch)
        if then_type == NEVER:
            return else_type
        if else_type == NEVER:
            return then_type
        # Both branches must agree exactly; Int does not widen to Float here.
        if not (is_compatible(then_type, else_type) and is_compatible(else_type, then_type)):
            return self._error(type_mismatch(str(then_type), str(else_type), expr.location))
        return then_type

    def _infer_index(self, expr: IndexAccess) -> MorphType:
        obj = strip_ghost(self._infer(expr.obj))
        index = self._infer(expr.index)
        if not is_compatible(INT, index):
            self.errors.append(type_mismatch("Int", str(index), expr.index.location))
        if isinstance(obj, ListType):
            return obj.element_type
        if obj == STRING:
            return STRING
        if is_permissive(obj):
            return ERROR
        return self._error(custom_type_error(f"Type {obj} is not indexable", expr.location))

    def _infer_lambda(self, expr: LambdaExpr) -> MorphType:
        saved_env = self.env
        saved_return = self._current_return_type
        self.env = saved_env.child_scope()
        self._current_return_type = None
        try:
            params = tuple(self._param_type(p) for p in expr.params)
            for param, typ in zip(expr.params, params):
                self.env.define_variable(param.name, typ)
            body = self._infer(expr.body)
        finally:
            self.env = saved_env
            self._current_return_type = saved_return
        return FunctionType(params, body)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def check(module: Module, verify: bool = False) -> list[MorphError]:
    """Type check a module. An empty list means the module is well typed.

    With verify=True, solve-block ensure constraints are also checked for
    satisfiability with the z3 SMT solver.
    """
    return TypeChecker(verify=verify).check_module(module)

"""Morph Ensure Verification.

Solve-block `ensure` constraints checked with the Z3 SMT solver.
Gated behind `check(module, verify=True)` / `morph check --verify`, since
plain type checking stays fast without it.

Each solve block is translated independently: parameters become free
solver variables, `let` bindings become equalities, and every ensure is
checked for satisfiability under the bindings and the ensures before it.
An ensure that no assignment of the parameters can satisfy is reported.
Expressions outside linear arithmetic and boolean logic are skipped.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import z3

from morph.ast_nodes import (
    Module, SolveBlock, BindingConstraint, EnsureConstraint, Parameter,
    Expr, IntLiteral, FloatLiteral, BoolLiteral, Identifier, BinaryOp, UnaryOp, IfExpr,
    BlockExpr, ExprStmt,
    NamedType, GhostAnnotation,
)
from morph.errors import MorphError, contract_error
from morph.printer import format_expr

logger = logging.getLogger(__name__)

_OPS = {
    "+": lambda l, r: l + r,
    "-": lambda l, r: l - r,
    "*": lambda l, r: l * r,
    "==": lambda l, r: l == r,
    "!=": lambda l, r: l != r,
    ">=": lambda l, r: l >= r,
    "<=": lambda l, r: l <= r,
    ">": lambda l, r: l > r,
    "<": lambda l, r: l < r,
}


class EnsureVerifier:
    """Verifies solve-block ensure constraints using the Z3 SMT solver."""

    def __init__(self):
        self.errors: list[MorphError] = []

    def verify_module(self, module: Module) -> list[MorphError]:
        self.errors = []
        for block in module.solve_blocks:
            self.verify_block(block)
        return self.errors

    def verify_block(self, block: SolveBlock) -> None:
        solver = z3.Solver()
        z3_vars = self._make_z3_vars(block.params)

        for constraint in block.constraints:
            if isinstance(constraint, BindingConstraint):
                self._bind(solver, z3_vars, constraint)
            elif isinstance(constraint, EnsureConstraint):
                self._verify_ensure(solver, z3_vars, constraint, block)

    def _bind(self, solver: z3.Solver, z3_vars: dict[str, Any], binding: BindingConstraint) -> None:
        value = self._translate(binding.expr, z3_vars)
        if value is None:
            # Unknown value: later references to this name are untranslatable.
            z3_vars.pop(binding.name, None)
            return
        var = z3.FreshConst(value.sort(), prefix=binding.name)
        z3_vars[binding.name] = var
        solver.add(var == value)

    def _verify_ensure(
        self,
        solver: z3.Solver,
        z3_vars: dict[str, Any],
        ensure: EnsureConstraint,
        block: SolveBlock,
    ) -> None:
        cond = self._translate(ensure.expr, z3_vars)
        if cond is None or not z3.is_bool(cond):
            logger.debug("Skipping ensure in %s: %s", block.name, format_expr(ensure.expr))
            return

        solver.push()
        solver.add(cond)
        result = solver.check()
        solver.pop()

        if result == z3.unsat:
            self.errors.append(contract_error(
                constraint=format_expr(ensure.expr),
                solve_block=block.name,
                reason="can never hold",
                location=ensure.location,
            ))
            return
        # Later ensures are checked assuming this one held.
        solver.add(cond)

    def _make_z3_vars(self, params: list[Parameter]) -> dict[str, Any]:
        """Create Z3 variables from parameter annotations; unannotated is Int."""
        z3_vars: dict[str, Any] = {}
        for p in params:
            annotation = p.type_annotation
            while isinstance(annotation, GhostAnnotation):
                annotation = annotation.base
            type_name = annotation.name if isinstance(annotation, NamedType) else None
            if type_name in (None, "Int"):
                z3_vars[p.name] = z3.Int(p.name)
            elif type_name == "Float":
                z3_vars[p.name] = z3.Real(p.name)
            elif type_name == "Bool":
                z3_vars[p.name] = z3.Bool(p.name)
        return z3_vars

    def _translate(self, expr: Expr, z3_vars: dict[str, Any]) -> Optional[Any]:
        try:
            return self._expr_to_z3(expr, z3_vars)
        except (z3.Z3Exception, TypeError) as e:
            # Sort mismatches such as Bool + Int
            logger.debug("Cannot translate %s: %s", format_expr(expr), e)
            return None

    def _expr_to_z3(self, expr: Expr, z3_vars: dict[str, Any]) -> Optional[Any]:
        """Convert a Morph expression to a Z3 expression, or None."""
        if isinstance(expr, BoolLiteral):
            return z3.BoolVal(expr.value)

        if isinstance(expr, IntLiteral):
            return z3.IntVal(expr.value)

        if isinstance(expr, FloatLiteral):
            return z3.RealVal(expr.value)

        if isinstance(expr, Identifier):
            return z3_vars.get(expr.name)

        if isinstance(expr, BinaryOp):
            op_fn = _OPS.get(expr.op)
            if op_fn is None:
                return None
            left = self._expr_to_z3(expr.left, z3_vars)
            right = self._expr_to_z3(expr.right, z3_vars)
            if left is None or right is None:
                return None
            return op_fn(left, right)

        if isinstance(expr, UnaryOp):
            operand = self._expr_to_z3(expr.operand, z3_vars)
            if operand is None:
                return None
            if expr.op == "-":
                return -operand
            if expr.op == "!":
                return z3.Not(operand)
            return None

        if isinstance(expr, BlockExpr):
            # Only a block that is a single expression has a value to translate.
            if len(expr.statements) == 1 and isinstance(expr.statements[0], ExprStmt):
                return self._expr_to_z3(expr.statements[0].expr, z3_vars)
            return None

        if isinstance(expr, IfExpr) and expr.else_branch is not None:
            cond = self._expr_to_z3(expr.condition, z3_vars)
            then = self._expr_to_z3(expr.then_branch, z3_vars)
            other = self._expr_to_z3(expr.else_branch, z3_vars)
            if cond is None or then is None or other is None:
                return None
            return z3.If(cond, then, other)

        return None


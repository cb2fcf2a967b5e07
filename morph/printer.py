"""Render AST nodes back to Morph source text.

Used by `morph parse`, by ensure-failure messages and by the contract
verifier's reports. Output re-parses to an equivalent tree; original
formatting and comments are not preserved.
"""

from __future__ import annotations

from morph.ast_nodes import (
    Module, Declaration, FunctionDecl, TypeDecl, AliasDefinition, RecordDefinition,
    EnumDefinition, SolveBlock, BindingConstraint, ImportDecl, Parameter,
    Statement, VarDecl, ExprStmt, ReturnStmt, ForStmt, AssignStmt,
    Expr, IntLiteral, FloatLiteral, StringLiteral, BoolLiteral, ListLiteral, RecordLiteral,
    Identifier, BinaryOp, UnaryOp, CallExpr, PipeExpr, MatchExpr, BlockExpr, IfExpr,
    FieldAccess, IndexAccess, LambdaExpr, ClaimExpr,
    Pattern, WildcardPattern, LiteralPattern, IdentPattern, RangePattern, TuplePattern,
)

INDENT = "    "

# Binding strength of each binary operator; higher binds tighter.
_PRECEDENCE = {
    "==": 1, "!=": 1,
    "<": 2, "<=": 2, ">": 2, ">=": 2,
    "+": 3, "-": 3,
    "*": 4, "/": 4, "%": 4,
}


def format_literal(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return f'"{value}"'
    return str(value)


def format_pattern(pattern: Pattern) -> str:
    if isinstance(pattern, WildcardPattern):
        return "_"
    if isinstance(pattern, LiteralPattern):
        return format_literal(pattern.value)
    if isinstance(pattern, IdentPattern):
        return pattern.name
    if isinstance(pattern, RangePattern):
        return f"{format_pattern(pattern.start)}..{format_pattern(pattern.end)}"
    if isinstance(pattern, TuplePattern):
        return "(" + ", ".join(format_pattern(p) for p in pattern.elements) + ")"
    return "<?>"


def _format_operand(expr: Expr, parent_prec: int, right: bool) -> str:
    text = format_expr(expr)
    if isinstance(expr, PipeExpr):
        return f"({text})"
    if isinstance(expr, BinaryOp):
        prec = _PRECEDENCE.get(expr.op, 0)
        # Left-associative: a right operand at equal precedence needs parens.
        if prec < parent_prec or (right and prec == parent_prec):
            return f"({text})"
    return text


def format_params(params: list[Parameter]) -> str:
    parts = []
    for p in params:
        parts.append(f"{p.name}: {p.type_annotation}" if p.type_annotation else p.name)
    return ", ".join(parts)


def format_expr(expr: Expr, level: int = 0) -> str:
    if isinstance(expr, (IntLiteral, FloatLiteral, StringLiteral, BoolLiteral)):
        return format_literal(expr.value)
    if isinstance(expr, Identifier):
        return expr.name
    if isinstance(expr, ListLiteral):
        return "[" + ", ".join(format_expr(e, level) for e in expr.elements) + "]"
    if isinstance(expr, RecordLiteral):
        if not expr.fields:
            return "{}"
        return "{ " + ", ".join(f"{k}: {format_expr(v, level)}" for k, v in expr.fields) + " }"
    if isinstance(expr, BinaryOp):
        prec = _PRECEDENCE.get(expr.op, 0)
        left = _format_operand(expr.left, prec, right=False)
        right = _format_operand(expr.right, prec, right=True)
        return f"{left} {expr.op} {right}"
    if isinstance(expr, UnaryOp):
        operand = format_expr(expr.operand, level)
        if isinstance(expr.operand, (BinaryOp, PipeExpr)):
            operand = f"({operand})"
        return f"{expr.op}{operand}"
    if isinstance(expr, CallExpr):
        args = ", ".join(format_expr(a, level) for a in expr.args)
        return f"{format_expr(expr.callee, level)}({args})"
    if isinstance(expr, PipeExpr):
        return f"{format_expr(expr.left, level)} |> {format_expr(expr.right, level)}"
    if isinstance(expr, FieldAccess):
        return f"{format_expr(expr.obj, level)}.{expr.field_name}"
    if isinstance(expr, IndexAccess):
        return f"{format_expr(expr.obj, level)}[{format_expr(expr.index, level)}]"
    if isinstance(expr, ClaimExpr):
        return f"claim {format_expr(expr.expr, level)}"
    if isinstance(expr, LambdaExpr):
        return f"|{format_params(expr.params)}| {format_expr(expr.body, level)}"
    if isinstance(expr, BlockExpr):
        return _format_body(expr.statements, level)
    if isinstance(expr, IfExpr):
        text = f"if {format_expr(expr.condition, level)} {format_expr(expr.then_branch, level)}"
        if expr.else_branch is not None:
            text += f" else {format_expr(expr.else_branch, level)}"
        return text
    if isinstance(expr, MatchExpr):
        pad = INDENT * (level + 1)
        arms = "".join(
            f"{pad}{format_pattern(arm.pattern)} => {format_expr(arm.body, level + 1)}\n"
            for arm in expr.arms
        )
        return f"match {format_expr(expr.subject, level)} {{\n{arms}{INDENT * level}}}"
    return "<?>"


def format_statement(stmt: Statement, level: int = 0) -> str:
    if isinstance(stmt, VarDecl):
        keyword = "var" if stmt.mutable else "let"
        ann = f": {stmt.type_annotation}" if stmt.type_annotation else ""
        return f"{keyword} {stmt.name}{ann} = {format_expr(stmt.value, level)}"
    if isinstance(stmt, ExprStmt):
        return format_expr(stmt.expr, level)
    if isinstance(stmt, ReturnStmt):
        if stmt.value is None:
            return "return"
        return f"return {format_expr(stmt.value, level)}"
    if isinstance(stmt, ForStmt):
        guard = f" where {format_expr(stmt.guard, level)}" if stmt.guard is not None else ""
        body = _format_body(stmt.body, level)
        return f"for {stmt.var_name} in {format_expr(stmt.iterable, level)}{guard} {body}"
    if isinstance(stmt, AssignStmt):
        return f"{format_expr(stmt.target, level)} = {format_expr(stmt.value, level)}"
    return "<?>"


def _format_body(statements: list[Statement], level: int) -> str:
    if not statements:
        return "{\n" + INDENT * level + "}"
    pad = INDENT * (level + 1)
    lines = "".join(f"{pad}{format_statement(s, level + 1)}\n" for s in statements)
    return "{\n" + lines + INDENT * level + "}"


def format_declaration(decl: Declaration) -> str:
    if isinstance(decl, FunctionDecl):
        ret = f" => {decl.return_type}" if decl.return_type else ""
        return f"{decl.mode.value} {decl.name}({format_params(decl.params)}){ret} {_format_body(decl.body, 0)}"
    if isinstance(decl, TypeDecl):
        definition = decl.definition
        if isinstance(definition, AliasDefinition):
            return f"type {decl.name} = {definition.target}"
        if isinstance(definition, EnumDefinition):
            return f"type {decl.name} = " + " | ".join(definition.variants)
        if isinstance(definition, RecordDefinition):
            fields = ", ".join(f"{name}: {ann}" for name, ann in definition.fields)
            return f"type {decl.name} = {{ {fields} }}"
    if isinstance(decl, SolveBlock):
        lines = []
        for c in decl.constraints:
            if isinstance(c, BindingConstraint):
                lines.append(f"{INDENT}let {c.name} = {format_expr(c.expr, 1)}")
            else:
                lines.append(f"{INDENT}ensure {format_expr(c.expr, 1)}")
        if decl.return_expr is not None:
            lines.append(f"{INDENT}return {format_expr(decl.return_expr, 1)}")
        body = "".join(line + "\n" for line in lines)
        return f"solve {decl.name}({format_params(decl.params)}) {{\n{body}}}"
    if isinstance(decl, ImportDecl):
        return f"import {decl.module_name}"
    return "<?>"


def format_module(module: Module) -> str:
    return "\n\n".join(format_declaration(d) for d in module.declarations) + "\n"

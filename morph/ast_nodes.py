"""Morph AST Node definitions.

Top-level constructs: proto/solid functions, type declarations, solve
blocks and imports. If, match and block are expressions; function, loop
and solve bodies are statement sequences.

Nodes are built once by the parser and only read afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Any, Union

from morph.errors import SourceLocation


# ---------------------------------------------------------------------------
# Type Annotations (in source)
# ---------------------------------------------------------------------------

# A Ghost attribute value: str, int, float, bool or a list of those.
GhostValue = Union[str, int, float, bool, list]


@dataclass
class TypeAnnotation:
    location: Optional[SourceLocation] = None


@dataclass
class NamedType(TypeAnnotation):
    name: str = ""

    def __str__(self) -> str:
        return self.name


@dataclass
class GenericTypeAnnotation(TypeAnnotation):
    name: str = ""
    args: list[TypeAnnotation] = field(default_factory=list)

    def __str__(self) -> str:
        args = ", ".join(str(a) for a in self.args)
        return f"{self.name}<{args}>"


@dataclass
class FunctionTypeAnnotation(TypeAnnotation):
    params: list[TypeAnnotation] = field(default_factory=list)
    return_type: TypeAnnotation = field(default_factory=TypeAnnotation)

    def __str__(self) -> str:
        params = ", ".join(str(p) for p in self.params)
        return f"({params}) => {self.return_type}"


@dataclass
class GhostAnnotation(TypeAnnotation):
    """A base annotation carrying runtime-validation metadata."""
    base: TypeAnnotation = field(default_factory=TypeAnnotation)
    attributes: list[tuple[str, GhostValue]] = field(default_factory=list)

    def __str__(self) -> str:
        attrs = ", ".join(f"{k}: {format_ghost_value(v)}" for k, v in self.attributes)
        return f"{self.base}<Ghost: {attrs}>"


def format_ghost_value(value: GhostValue) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return f'"{value}"'
    if isinstance(value, list):
        return "[" + ", ".join(format_ghost_value(v) for v in value) + "]"
    return str(value)


# ---------------------------------------------------------------------------
# Patterns (for match expressions)
# ---------------------------------------------------------------------------

@dataclass
class Pattern:
    """Base class for patterns."""
    location: Optional[SourceLocation] = None


@dataclass
class WildcardPattern(Pattern):
    """The _ pattern; matches anything."""
    pass


@dataclass
class LiteralPattern(Pattern):
    """Matches a literal value (Int, Float, String, Bool)."""
    value: Any = None


@dataclass
class IdentPattern(Pattern):
    """Matches anything. The name is not bound."""
    name: str = ""


@dataclass
class RangePattern(Pattern):
    """lo..hi, inclusive on both ends."""
    start: Pattern = field(default_factory=Pattern)
    end: Pattern = field(default_factory=Pattern)


@dataclass
class TuplePattern(Pattern):
    elements: list[Pattern] = field(default_factory=list)


@dataclass
class MatchArm:
    pattern: Pattern = field(default_factory=Pattern)
    body: Expr = field(default_factory=lambda: Expr())
    location: Optional[SourceLocation] = None


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------

@dataclass
class Expr:
    location: Optional[SourceLocation] = None


@dataclass
class IntLiteral(Expr):
    value: int = 0


@dataclass
class FloatLiteral(Expr):
    value: float = 0.0


@dataclass
class StringLiteral(Expr):
    value: str = ""


@dataclass
class BoolLiteral(Expr):
    value: bool = False


@dataclass
class ListLiteral(Expr):
    elements: list[Expr] = field(default_factory=list)


@dataclass
class RecordLiteral(Expr):
    fields: list[tuple[str, Expr]] = field(default_factory=list)


@dataclass
class Identifier(Expr):
    name: str = ""


@dataclass
class BinaryOp(Expr):
    op: str = ""
    left: Expr = field(default_factory=Expr)
    right: Expr = field(default_factory=Expr)


@dataclass
class UnaryOp(Expr):
    op: str = ""
    operand: Expr = field(default_factory=Expr)


@dataclass
class CallExpr(Expr):
    callee: Expr = field(default_factory=Expr)
    args: list[Expr] = field(default_factory=list)


@dataclass
class PipeExpr(Expr):
    """left |> right, where right is a CallExpr or an Identifier."""
    left: Expr = field(default_factory=Expr)
    right: Expr = field(default_factory=Expr)


@dataclass
class MatchExpr(Expr):
    subject: Expr = field(default_factory=Expr)
    arms: list[MatchArm] = field(default_factory=list)


@dataclass
class BlockExpr(Expr):
    statements: list[Statement] = field(default_factory=list)


@dataclass
class IfExpr(Expr):
    condition: Expr = field(default_factory=Expr)
    then_branch: Expr = field(default_factory=Expr)
    else_branch: Optional[Expr] = None


@dataclass
class FieldAccess(Expr):
    obj: Expr = field(default_factory=Expr)
    field_name: str = ""


@dataclass
class IndexAccess(Expr):
    obj: Expr = field(default_factory=Expr)
    index: Expr = field(default_factory=Expr)


@dataclass
class LambdaExpr(Expr):
    params: list[Parameter] = field(default_factory=list)
    body: Expr = field(default_factory=Expr)


@dataclass
class ClaimExpr(Expr):
    """Ownership transfer marker. Transparent in draft mode."""
    expr: Expr = field(default_factory=Expr)


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------

@dataclass
class Statement:
    location: Optional[SourceLocation] = None


@dataclass
class VarDecl(Statement):
    name: str = ""
    mutable: bool = False
    type_annotation: Optional[TypeAnnotation] = None
    value: Expr = field(default_factory=Expr)


@dataclass
class ExprStmt(Statement):
    expr: Expr = field(default_factory=Expr)


@dataclass
class ReturnStmt(Statement):
    value: Optional[Expr] = None


@dataclass
class ForStmt(Statement):
    var_name: str = ""
    iterable: Expr = field(default_factory=Expr)
    guard: Optional[Expr] = None
    body: list[Statement] = field(default_factory=list)


@dataclass
class AssignStmt(Statement):
    target: Expr = field(default_factory=Expr)
    value: Expr = field(default_factory=Expr)


# ---------------------------------------------------------------------------
# Declarations
# ---------------------------------------------------------------------------

class FunctionMode(Enum):
    PROTO = "proto"
    SOLID = "solid"


@dataclass
class Parameter:
    name: str
    type_annotation: Optional[TypeAnnotation] = None
    location: Optional[SourceLocation] = None


@dataclass
class Declaration:
    location: Optional[SourceLocation] = None


@dataclass
class FunctionDecl(Declaration):
    mode: FunctionMode = FunctionMode.PROTO
    name: str = ""
    params: list[Parameter] = field(default_factory=list)
    return_type: Optional[TypeAnnotation] = None
    body: list[Statement] = field(default_factory=list)


@dataclass
class AliasDefinition:
    target: TypeAnnotation


@dataclass
class RecordDefinition:
    fields: list[tuple[str, TypeAnnotation]] = field(default_factory=list)


@dataclass
class EnumDefinition:
    variants: list[str] = field(default_factory=list)


TypeDefinition = Union[AliasDefinition, RecordDefinition, EnumDefinition]


@dataclass
class TypeDecl(Declaration):
    name: str = ""
    definition: TypeDefinition = field(default_factory=RecordDefinition)


@dataclass
class BindingConstraint:
    name: str
    expr: Expr
    location: Optional[SourceLocation] = None


@dataclass
class EnsureConstraint:
    expr: Expr
    location: Optional[SourceLocation] = None


Constraint = Union[BindingConstraint, EnsureConstraint]


@dataclass
class SolveBlock(Declaration):
    name: str = ""
    params: list[Parameter] = field(default_factory=list)
    constraints: list[Constraint] = field(default_factory=list)
    return_expr: Optional[Expr] = None


@dataclass
class ImportDecl(Declaration):
    path: list[str] = field(default_factory=list)

    @property
    def module_name(self) -> str:
        return ".".join(self.path)


# ---------------------------------------------------------------------------
# Module
# ---------------------------------------------------------------------------

@dataclass
class Module:
    declarations: list[Declaration] = field(default_factory=list)
    filename: str = "<stdin>"

    @property
    def functions(self) -> list[FunctionDecl]:
        return [d for d in self.declarations if isinstance(d, FunctionDecl)]

    @property
    def solve_blocks(self) -> list[SolveBlock]:
        return [d for d in self.declarations if isinstance(d, SolveBlock)]

    def find_function(self, name: str) -> Optional[FunctionDecl]:
        for func in self.functions:
            if func.name == name:
                return func
        return None

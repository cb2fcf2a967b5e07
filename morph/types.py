"""Morph Type System.

Built-in types: Int, Float, String, Bool, Unit
Structural types: List<T>, records, functions, Ghost-wrapped types
Type variables stand in for unannotated parameters and are permissive.
Type environment with scoping.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from morph.scope import Scope
from morph.errors import MorphError, undefined_type, custom_type_error


# ---------------------------------------------------------------------------
# Type Representations
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MorphType:
    """Base type."""
    def __str__(self) -> str:
        return "Unknown"


@dataclass(frozen=True)
class PrimitiveType(MorphType):
    name: str = ""

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class ListType(MorphType):
    element_type: MorphType = field(default_factory=MorphType)

    def __str__(self) -> str:
        return f"List<{self.element_type}>"


@dataclass(frozen=True)
class RecordType(MorphType):
    fields: tuple[tuple[str, MorphType], ...] = ()

    def __str__(self) -> str:
        if not self.fields:
            return "{}"
        inner = ", ".join(f"{name}: {typ}" for name, typ in self.fields)
        return f"{{ {inner} }}"

    def get_field_type(self, field_name: str) -> Optional[MorphType]:
        for name, typ in self.fields:
            if name == field_name:
                return typ
        return None

    def field_names(self) -> set[str]:
        return {name for name, _ in self.fields}


@dataclass(frozen=True)
class FunctionType(MorphType):
    param_types: tuple[MorphType, ...] = ()
    return_type: MorphType = field(default_factory=MorphType)
    # Trailing parameters that may be omitted (builtins such as range).
    optional: int = 0
    variadic: bool = False

    def __str__(self) -> str:
        params = ", ".join(str(p) for p in self.param_types)
        if self.variadic:
            params = f"{params}, ..." if params else "..."
        return f"({params}) => {self.return_type}"

    @property
    def min_arity(self) -> int:
        return len(self.param_types) - self.optional

    def accepts_arity(self, count: int) -> bool:
        if self.variadic:
            return count >= self.min_arity
        return self.min_arity <= count <= len(self.param_types)


@dataclass(frozen=True)
class GhostType(MorphType):
    """A base type carrying runtime-validation attributes."""
    base: MorphType = field(default_factory=MorphType)
    attributes: tuple[tuple[str, Any], ...] = ()

    def __str__(self) -> str:
        return f"{self.base}<Ghost>"


@dataclass(frozen=True)
class TypeVariable(MorphType):
    name: str = ""

    def __str__(self) -> str:
        return self.name


# ---------------------------------------------------------------------------
# Built-in Types
# ---------------------------------------------------------------------------

INT = PrimitiveType("Int")
FLOAT = PrimitiveType("Float")
STRING = PrimitiveType("String")
BOOL = PrimitiveType("Bool")
UNIT = PrimitiveType("Unit")
# Produced after an error has been reported; compatible with everything.
ERROR = PrimitiveType("Error")
# Type of a block that always returns before producing a value.
NEVER = PrimitiveType("Never")

BUILTIN_TYPES: dict[str, MorphType] = {
    "Int": INT,
    "Float": FLOAT,
    "String": STRING,
    "Bool": BOOL,
    "Unit": UNIT,
}

NUMERIC = (INT, FLOAT)


def make_list_type(element: MorphType) -> ListType:
    return ListType(element)


def strip_ghost(typ: MorphType) -> MorphType:
    while isinstance(typ, GhostType):
        typ = typ.base
    return typ


def is_permissive(typ: MorphType) -> bool:
    """Type variables, Never and the error type unify with anything."""
    return isinstance(typ, TypeVariable) or typ == ERROR or typ == NEVER


def is_compatible(expected: MorphType, actual: MorphType) -> bool:
    """Can a value of type `actual` be used where `expected` is required?"""
    expected = strip_ghost(expected)
    actual = strip_ghost(actual)

    if is_permissive(expected) or is_permissive(actual):
        return True
    if expected == actual:
        return True
    if expected == FLOAT and actual == INT:
        return True
    if isinstance(expected, ListType) and isinstance(actual, ListType):
        return is_compatible(expected.element_type, actual.element_type)
    if isinstance(expected, RecordType) and isinstance(actual, RecordType):
        if expected.field_names() != actual.field_names():
            return False
        return all(
            is_compatible(typ, actual.get_field_type(name))
            for name, typ in expected.fields
        )
    if isinstance(expected, FunctionType) and isinstance(actual, FunctionType):
        if len(expected.param_types) != len(actual.param_types):
            return False
        return all(
            is_compatible(a, e) for e, a in zip(expected.param_types, actual.param_types)
        ) and is_compatible(expected.return_type, actual.return_type)
    return False


# ---------------------------------------------------------------------------
# Type Environment
# ---------------------------------------------------------------------------

class TypeEnvironment(Scope[MorphType]):
    """Scoped type environment: variable types plus named type definitions.

    The root environment is seeded with the built-in type names.
    """

    def __init__(self, parent: Optional[TypeEnvironment] = None):
        super().__init__(parent)
        self._types: dict[str, MorphType] = {}
        if parent is None:
            self._types.update(BUILTIN_TYPES)

    def define_variable(self, name: str, typ: MorphType) -> None:
        self.define(name, typ)

    def lookup_variable(self, name: str) -> Optional[MorphType]:
        return self.lookup(name)

    def define_type(self, name: str, typ: MorphType) -> None:
        self._types[name] = typ

    def lookup_type(self, name: str) -> Optional[MorphType]:
        env: Optional[TypeEnvironment] = self
        while env is not None:
            if name in env._types:
                return env._types[name]
            env = env.parent  # type: ignore[assignment]
        return None


class TypeResolutionError(Exception):
    """An annotation names a type that cannot be resolved."""

    def __init__(self, error: MorphError):
        self.error = error
        super().__init__(str(error))


def _freeze_ghost_value(value: Any) -> Any:
    if isinstance(value, list):
        return tuple(_freeze_ghost_value(v) for v in value)
    return value


def resolve_type_annotation(annotation, env: TypeEnvironment) -> MorphType:
    """Resolve a TypeAnnotation AST node to a MorphType.

    Raises TypeResolutionError for unknown names or malformed generics.
    """
    from morph.ast_nodes import (
        NamedType, GenericTypeAnnotation, FunctionTypeAnnotation, GhostAnnotation,
    )

    if annotation is None:
        return UNIT

    if isinstance(annotation, NamedType):
        looked = env.lookup_type(annotation.name)
        if looked is None:
            raise TypeResolutionError(undefined_type(annotation.name, annotation.location))
        return looked

    if isinstance(annotation, GenericTypeAnnotation):
        if annotation.name == "List":
            if len(annotation.args) != 1:
                raise TypeResolutionError(custom_type_error(
                    "List type requires exactly one type parameter", annotation.location,
                ))
            return make_list_type(resolve_type_annotation(annotation.args[0], env))
        base = env.lookup_type(annotation.name)
        if base is None:
            raise TypeResolutionError(undefined_type(annotation.name, annotation.location))
        # Parameters of user generics are resolved for errors but not tracked.
        for arg in annotation.args:
            resolve_type_annotation(arg, env)
        return base

    if isinstance(annotation, FunctionTypeAnnotation):
        params = tuple(resolve_type_annotation(p, env) for p in annotation.params)
        ret = resolve_type_annotation(annotation.return_type, env)
        return FunctionType(params, ret)

    if isinstance(annotation, GhostAnnotation):
        base = resolve_type_annotation(annotation.base, env)
        attrs = tuple((k, _freeze_ghost_value(v)) for k, v in annotation.attributes)
        return GhostType(base, attrs)

    raise TypeResolutionError(custom_type_error(
        f"Unsupported type annotation: {annotation}", getattr(annotation, "location", None),
    ))

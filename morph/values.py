"""Morph runtime values.

Values are immutable: lists hold tuples and records are never updated in
place, so copying a binding can never create a shared mutable alias.
Equality is structural for data values and identity for functions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Optional, TYPE_CHECKING

from morph.errors import EvaluationError, runtime_type_error

if TYPE_CHECKING:
    from morph.ast_nodes import FunctionDecl


@dataclass(frozen=True)
class Value:
    def type_name(self) -> str:
        return "Unknown"

    def is_truthy(self) -> bool:
        return True


@dataclass(frozen=True)
class IntegerValue(Value):
    value: int = 0

    def type_name(self) -> str:
        return "Int"

    def is_truthy(self) -> bool:
        return self.value != 0

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class FloatValue(Value):
    value: float = 0.0

    def type_name(self) -> str:
        return "Float"

    def is_truthy(self) -> bool:
        return self.value != 0.0

    def __str__(self) -> str:
        return repr(self.value)


@dataclass(frozen=True)
class StringValue(Value):
    value: str = ""

    def type_name(self) -> str:
        return "String"

    def is_truthy(self) -> bool:
        return self.value != ""

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class BooleanValue(Value):
    value: bool = False

    def type_name(self) -> str:
        return "Bool"

    def is_truthy(self) -> bool:
        return self.value

    def __str__(self) -> str:
        return "true" if self.value else "false"


@dataclass(frozen=True)
class ListValue(Value):
    items: tuple[Value, ...] = ()

    def type_name(self) -> str:
        return "List"

    def is_truthy(self) -> bool:
        return len(self.items) > 0

    def __str__(self) -> str:
        return "[" + ", ".join(str(item) for item in self.items) + "]"

    def __len__(self) -> int:
        return len(self.items)

    def replace(self, index: int, value: Value) -> ListValue:
        items = list(self.items)
        items[index] = value
        return ListValue(tuple(items))


@dataclass(frozen=True)
class RecordValue(Value):
    fields: dict[str, Value] = field(default_factory=dict)

    def type_name(self) -> str:
        return "Record"

    def is_truthy(self) -> bool:
        return len(self.fields) > 0

    def __str__(self) -> str:
        if not self.fields:
            return "{}"
        inner = ", ".join(f"{k}: {v}" for k, v in self.fields.items())
        return f"{{ {inner} }}"

    def get(self, name: str) -> Optional[Value]:
        return self.fields.get(name)


@dataclass(frozen=True, eq=False)
class FunctionValue(Value):
    def type_name(self) -> str:
        return "Function"

    def __str__(self) -> str:
        return "<function>"

    # Functions compare by identity, never structurally.
    def __eq__(self, other: object) -> bool:
        return self is other

    def __ne__(self, other: object) -> bool:
        return self is not other

    __hash__ = object.__hash__


@dataclass(frozen=True, eq=False)
class UserFunction(FunctionValue):
    """A declared function or lambda with its captured bindings.

    `closure` is a flattened copy of every binding visible where the
    function value was created; later rebinding in that scope is not seen.
    """
    decl: Optional[FunctionDecl] = None
    closure: Optional[dict[str, Value]] = None

    @property
    def name(self) -> str:
        return self.decl.name if self.decl else "<lambda>"


@dataclass(frozen=True, eq=False)
class BuiltinFunction(FunctionValue):
    """Host-implemented function: a callable from a value list to a value.

    `arity` of None means the builtin checks its own argument count.
    """
    name: str = ""
    impl: Callable[[list[Value]], Value] = field(default=lambda args: UNIT)
    arity: Optional[int] = None

    def __call__(self, args: list[Value]) -> Value:
        return self.impl(args)


@dataclass(frozen=True)
class UnitValue(Value):
    def type_name(self) -> str:
        return "Unit"

    def is_truthy(self) -> bool:
        return False

    def __str__(self) -> str:
        return "()"


UNIT = UnitValue()
TRUE = BooleanValue(True)
FALSE = BooleanValue(False)


# ---------------------------------------------------------------------------
# Conversions
# ---------------------------------------------------------------------------

def as_integer(value: Value) -> int:
    if isinstance(value, IntegerValue):
        return value.value
    raise EvaluationError(runtime_type_error(f"Expected Int, got {value.type_name()}"))


def from_python(obj: Any) -> Value:
    """Build a Value from a plain Python object."""
    if isinstance(obj, Value):
        return obj
    if obj is None:
        return UNIT
    if isinstance(obj, bool):
        return BooleanValue(obj)
    if isinstance(obj, int):
        return IntegerValue(obj)
    if isinstance(obj, float):
        return FloatValue(obj)
    if isinstance(obj, str):
        return StringValue(obj)
    if isinstance(obj, (list, tuple)):
        return ListValue(tuple(from_python(o) for o in obj))
    if isinstance(obj, dict):
        return RecordValue({str(k): from_python(v) for k, v in obj.items()})
    raise TypeError(f"Cannot convert {type(obj).__name__} to a Morph value")


def to_python(value: Value) -> Any:
    """Inverse of from_python; functions are returned as-is."""
    if isinstance(value, (IntegerValue, FloatValue, StringValue, BooleanValue)):
        return value.value
    if isinstance(value, ListValue):
        return [to_python(v) for v in value.items]
    if isinstance(value, RecordValue):
        return {k: to_python(v) for k, v in value.fields.items()}
    if isinstance(value, UnitValue):
        return None
    return value

"""Structured error objects for the Morph front end.

Every failure is a MorphError value: a kind, a human-readable message, an
optional source location and a details dict with the structured fields.
Lexing and parsing fail fast with a single error; type checking accumulates
a list; evaluation aborts on the first error.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class ErrorKind(Enum):
    LEX_ERROR = "lex_error"
    SYNTAX_ERROR = "syntax_error"
    TYPE_ERROR = "type_error"
    CONTRACT_ERROR = "contract_error"
    RUNTIME_ERROR = "runtime_error"


class TypeErrorKind(Enum):
    MISMATCH = "mismatch"
    UNDEFINED_TYPE = "undefined_type"
    UNDEFINED_VARIABLE = "undefined_variable"
    ARITY_MISMATCH = "arity_mismatch"
    INVALID_OPERATION = "invalid_operation"
    GHOST_VALIDATION_FAILED = "ghost_validation_failed"
    CUSTOM = "custom"


class RuntimeErrorKind(Enum):
    TYPE_ERROR = "type_error"
    UNDEFINED_VARIABLE = "undefined_variable"
    UNDEFINED_FUNCTION = "undefined_function"
    ARITY_MISMATCH = "arity_mismatch"
    INDEX_OUT_OF_BOUNDS = "index_out_of_bounds"
    INVALID_OPERATION = "invalid_operation"
    CUSTOM = "custom"


@dataclass
class SourceLocation:
    line: int
    column: int
    file: str = "<stdin>"

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column}"


@dataclass
class MorphError:
    kind: ErrorKind
    message: str
    location: Optional[SourceLocation] = None
    details: dict[str, Any] = field(default_factory=dict)
    variant: Optional[Enum] = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "kind": self.kind.value,
            "message": self.message,
        }
        if self.variant is not None:
            d["variant"] = self.variant.value
        if self.location:
            d["location"] = {
                "file": self.location.file,
                "line": self.location.line,
                "column": self.location.column,
            }
        if self.details:
            d["details"] = self.details
        return d

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def __str__(self) -> str:
        loc = f" at {self.location}" if self.location else ""
        return f"[{self.kind.value}]{loc}: {self.message}"


# ---------------------------------------------------------------------------
# Lexing / parsing
# ---------------------------------------------------------------------------

def lex_error(message: str, location: Optional[SourceLocation] = None) -> MorphError:
    return MorphError(kind=ErrorKind.LEX_ERROR, message=message, location=location)


def syntax_error(
    message: str,
    location: Optional[SourceLocation] = None,
    expected: Optional[str] = None,
    found: Optional[str] = None,
) -> MorphError:
    details: dict[str, Any] = {}
    if expected is not None:
        details["expected"] = expected
    if found is not None:
        details["found"] = found
    return MorphError(
        kind=ErrorKind.SYNTAX_ERROR,
        message=message,
        location=location,
        details=details,
    )


# ---------------------------------------------------------------------------
# Type checking
# ---------------------------------------------------------------------------

def _type_error(
    variant: TypeErrorKind,
    message: str,
    location: Optional[SourceLocation],
    details: Optional[dict[str, Any]] = None,
) -> MorphError:
    return MorphError(
        kind=ErrorKind.TYPE_ERROR,
        message=message,
        location=location,
        details=details or {},
        variant=variant,
    )


def type_mismatch(
    expected: str,
    got: str,
    location: Optional[SourceLocation] = None,
) -> MorphError:
    return _type_error(
        TypeErrorKind.MISMATCH,
        f"Type mismatch: expected {expected}, got {got}",
        location,
        {"expected": expected, "got": got},
    )


def undefined_type(name: str, location: Optional[SourceLocation] = None) -> MorphError:
    return _type_error(
        TypeErrorKind.UNDEFINED_TYPE, f"Undefined type: {name}", location, {"name": name},
    )


def undefined_variable(name: str, location: Optional[SourceLocation] = None) -> MorphError:
    return _type_error(
        TypeErrorKind.UNDEFINED_VARIABLE, f"Undefined variable: {name}", location, {"name": name},
    )


def arity_mismatch(
    expected: int,
    got: int,
    location: Optional[SourceLocation] = None,
) -> MorphError:
    return _type_error(
        TypeErrorKind.ARITY_MISMATCH,
        f"Expected {expected} arguments, got {got}",
        location,
        {"expected": expected, "got": got},
    )


def invalid_operation(message: str, location: Optional[SourceLocation] = None) -> MorphError:
    return _type_error(
        TypeErrorKind.INVALID_OPERATION, f"Invalid operation: {message}", location,
    )


def ghost_validation_failed(
    type_name: str,
    reason: str,
    location: Optional[SourceLocation] = None,
) -> MorphError:
    return _type_error(
        TypeErrorKind.GHOST_VALIDATION_FAILED,
        f"Ghost type validation failed for {type_name}: {reason}",
        location,
        {"type_name": type_name, "reason": reason},
    )


def custom_type_error(message: str, location: Optional[SourceLocation] = None) -> MorphError:
    return _type_error(TypeErrorKind.CUSTOM, message, location)


def contract_error(
    constraint: str,
    solve_block: str,
    reason: str,
    location: Optional[SourceLocation] = None,
) -> MorphError:
    return MorphError(
        kind=ErrorKind.CONTRACT_ERROR,
        message=f"Ensure constraint in '{solve_block}' {reason}: {constraint}",
        location=location,
        details={
            "constraint": constraint,
            "solve_block": solve_block,
            "reason": reason,
        },
    )


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------

def _runtime_error(
    variant: RuntimeErrorKind,
    message: str,
    location: Optional[SourceLocation],
    details: Optional[dict[str, Any]] = None,
) -> MorphError:
    return MorphError(
        kind=ErrorKind.RUNTIME_ERROR,
        message=message,
        location=location,
        details=details or {},
        variant=variant,
    )


def runtime_type_error(
    message: str,
    location: Optional[SourceLocation] = None,
    details: Optional[dict[str, Any]] = None,
) -> MorphError:
    return _runtime_error(RuntimeErrorKind.TYPE_ERROR, f"Type error: {message}", location, details)


def runtime_undefined_variable(name: str, location: Optional[SourceLocation] = None) -> MorphError:
    return _runtime_error(
        RuntimeErrorKind.UNDEFINED_VARIABLE, f"Undefined variable: {name}", location, {"name": name},
    )


def undefined_function(name: str, location: Optional[SourceLocation] = None) -> MorphError:
    return _runtime_error(
        RuntimeErrorKind.UNDEFINED_FUNCTION, f"Undefined function: {name}", location, {"name": name},
    )


def runtime_arity_mismatch(
    expected: int,
    got: int,
    location: Optional[SourceLocation] = None,
) -> MorphError:
    return _runtime_error(
        RuntimeErrorKind.ARITY_MISMATCH,
        f"Expected {expected} arguments, got {got}",
        location,
        {"expected": expected, "got": got},
    )


def index_out_of_bounds(
    index: int,
    length: int,
    location: Optional[SourceLocation] = None,
) -> MorphError:
    return _runtime_error(
        RuntimeErrorKind.INDEX_OUT_OF_BOUNDS,
        f"Index {index} out of bounds for list of length {length}",
        location,
        {"index": index, "len": length},
    )


def runtime_invalid_operation(message: str, location: Optional[SourceLocation] = None) -> MorphError:
    return _runtime_error(
        RuntimeErrorKind.INVALID_OPERATION, f"Invalid operation: {message}", location,
    )


def runtime_custom(message: str, location: Optional[SourceLocation] = None) -> MorphError:
    return _runtime_error(RuntimeErrorKind.CUSTOM, message, location)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class MorphException(Exception):
    """Exception wrapping one or more MorphErrors."""

    def __init__(self, errors: list[MorphError] | MorphError):
        if isinstance(errors, MorphError):
            errors = [errors]
        self.errors = errors
        super().__init__(self._format())

    @property
    def error(self) -> MorphError:
        return self.errors[0]

    def _format(self) -> str:
        return "\n".join(str(e) for e in self.errors)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps([e.to_dict() for e in self.errors], indent=indent)


class CompileError(MorphException):
    """Raised by the lexer or parser. Always carries exactly one error."""


class LexError(CompileError):
    pass


class ParseError(CompileError):
    pass


class EvaluationError(MorphException):
    """Raised by the interpreter; aborts the whole run."""

    @property
    def variant(self) -> Optional[Enum]:
        return self.error.variant

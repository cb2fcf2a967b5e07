"""Ghost attribute validation.

Ghost attributes are key/value metadata on a type annotation, e.g.

    let age: Int<Ghost: Min: 0, Max: 150> = 42
    let slug: String<Ghost: Regex: "^[a-z-]+$"> = "hello-world"

They are checked against runtime values, not during static checking.
Recognised keys are Regex, Min and Max; other keys are ignored so new
attributes can be added without breaking existing programs.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Iterable, Optional

from morph.ast_nodes import GhostAnnotation, TypeAnnotation
from morph.errors import MorphError, SourceLocation, ghost_validation_failed
from morph.values import Value, IntegerValue, FloatValue, StringValue

logger = logging.getLogger(__name__)


def _is_number(bound: Any) -> bool:
    return isinstance(bound, (int, float)) and not isinstance(bound, bool)


def _check_regex(value: Value, pattern: Any, location: Optional[SourceLocation]) -> Optional[MorphError]:
    if not isinstance(pattern, str):
        return ghost_validation_failed(
            value.type_name(), "Regex attribute must be a string pattern", location,
        )
    try:
        compiled = re.compile(pattern)
    except re.error as e:
        return ghost_validation_failed("String", f"Invalid regex pattern: {e}", location)
    if isinstance(value, StringValue) and compiled.search(value.value) is None:
        return ghost_validation_failed(
            "String", f"Value '{value.value}' does not match pattern '{pattern}'", location,
        )
    return None


def _check_bound(
    value: Value,
    key: str,
    bound: Any,
    location: Optional[SourceLocation],
) -> Optional[MorphError]:
    if not _is_number(bound):
        return ghost_validation_failed(value.type_name(), f"{key} attribute must be numeric", location)
    if not isinstance(value, (IntegerValue, FloatValue)):
        return None
    n = value.value
    if key == "Min" and n < bound:
        return ghost_validation_failed(
            value.type_name(), f"Value {n} is less than minimum {bound}", location,
        )
    if key == "Max" and n > bound:
        return ghost_validation_failed(
            value.type_name(), f"Value {n} is greater than maximum {bound}", location,
        )
    return None


def validate_ghost(
    value: Value,
    attributes: Iterable[tuple[str, Any]],
    location: Optional[SourceLocation] = None,
) -> Optional[MorphError]:
    """Check a runtime value against Ghost attributes.

    Returns the first failure, or None when every recognised attribute holds.
    """
    for key, bound in attributes:
        if key == "Regex":
            error = _check_regex(value, bound, location)
        elif key in ("Min", "Max"):
            error = _check_bound(value, key, bound, location)
        else:
            continue
        if error is not None:
            logger.debug("Ghost check %s failed for %s", key, value)
            return error
    return None


def ghost_attributes_of(annotation: Optional[TypeAnnotation]) -> list[tuple[str, Any]]:
    """Collect the attributes of a (possibly nested) Ghost annotation."""
    attributes: list[tuple[str, Any]] = []
    while isinstance(annotation, GhostAnnotation):
        attributes = list(annotation.attributes) + attributes
        annotation = annotation.base
    return attributes

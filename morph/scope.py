"""Chained scopes shared by the type checker and the interpreter.

A Scope maps names to a payload (a MorphType while checking, a Value while
evaluating) and optionally points at a parent. Lookups walk outward; the
root scope has no parent. Scopes form a tree: each has exactly one parent
and nothing is shared between siblings.
"""

from __future__ import annotations

from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class Scope(Generic[T]):
    """A single scope level in a parent chain."""

    def __init__(self, parent: Optional[Scope[T]] = None):
        self.parent = parent
        self._bindings: dict[str, T] = {}

    def define(self, name: str, value: T) -> None:
        """Bind name in this scope, shadowing any outer binding."""
        self._bindings[name] = value

    def lookup(self, name: str) -> Optional[T]:
        scope: Optional[Scope[T]] = self
        while scope is not None:
            if name in scope._bindings:
                return scope._bindings[name]
            scope = scope.parent
        return None

    def assign(self, name: str, value: T) -> bool:
        """Rebind name in the nearest scope that defines it.

        Returns False when no scope in the chain defines the name.
        """
        scope: Optional[Scope[T]] = self
        while scope is not None:
            if name in scope._bindings:
                scope._bindings[name] = value
                return True
            scope = scope.parent
        return False

    def snapshot(self) -> dict[str, T]:
        """Flatten the chain into one mapping; inner bindings win."""
        chain: list[Scope[T]] = []
        scope: Optional[Scope[T]] = self
        while scope is not None:
            chain.append(scope)
            scope = scope.parent
        flat: dict[str, T] = {}
        for level in reversed(chain):
            flat.update(level._bindings)
        return flat

    def child_scope(self) -> Scope[T]:
        return type(self)(parent=self)

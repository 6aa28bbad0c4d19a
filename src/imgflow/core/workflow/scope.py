# core/workflow/scope.py
"""
Variable Scopes
===============

A VariableScope is a named, mutable, case-insensitive mapping of variable
names to text. The same type serves as the template variable store and as
the condition context; each execution gets its own instances.

Scopes are not thread-safe. Concurrent workflow runs must each use their
own scope rather than share one.

Example:
    scope = VariableScope("template")
    scope.set("counter", 1)
    scope.increment("counter")   # -> 2
    scope.get("COUNTER")         # -> "2"
"""

from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from .values import Value, parse_int, to_text

__all__ = ["VariableScope", "ScopeRegistry"]


class VariableScope:
    """
    Named key -> text store with case-insensitive keys.

    Keys are canonicalized to lower case on every read and write. Values are
    stored as text (see values.to_text) and can be read back typed with
    get_value() or get_int().
    """

    def __init__(self, scope_id: str, bindings: Optional[Mapping[str, Any]] = None):
        self.scope_id = scope_id
        self._bindings: Dict[str, str] = {}
        if bindings:
            self.update(bindings)

    @staticmethod
    def _key(name: str) -> str:
        return name.strip().lower()

    def get(self, name: str, default: str = "") -> str:
        """Get a binding's text, or ``default`` when unbound."""
        return self._bindings.get(self._key(name), default)

    def get_value(self, name: str) -> Optional[Value]:
        """Get a binding as a tagged Value, or None when unbound."""
        key = self._key(name)
        if key not in self._bindings:
            return None
        return Value.parse(self._bindings[key])

    def get_int(self, name: str, default: int = 0) -> int:
        """Get a binding as an integer, falling back to ``default``."""
        parsed = parse_int(self._bindings.get(self._key(name)))
        return default if parsed is None else parsed

    def set(self, name: str, value: Any) -> None:
        self._bindings[self._key(name)] = to_text(value)

    def update(self, bindings: Mapping[str, Any]) -> None:
        for name, value in bindings.items():
            self.set(name, value)

    def unset(self, name: str) -> None:
        self._bindings.pop(self._key(name), None)

    def increment(self, name: str, by: int = 1) -> int:
        """
        Add ``by`` to an integer binding and store the result.

        Unbound or non-numeric bindings count as 0.

        Returns:
            The new value
        """
        value = self.get_int(name, 0) + by
        self.set(name, value)
        return value

    def clear(self) -> None:
        self._bindings.clear()

    def reset(self, defaults: Optional[Mapping[str, Any]] = None) -> None:
        """Clear all bindings, then seed them from ``defaults``."""
        self.clear()
        if defaults:
            self.update(defaults)

    def copy(self, scope_id: Optional[str] = None) -> "VariableScope":
        """Return an independent scope with the same bindings."""
        return VariableScope(scope_id or self.scope_id, self._bindings)

    def names(self) -> List[str]:
        return list(self._bindings)

    def items(self) -> List[Tuple[str, str]]:
        return list(self._bindings.items())

    def to_dict(self) -> Dict[str, str]:
        return dict(self._bindings)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self._key(name) in self._bindings

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._bindings))

    def __len__(self) -> int:
        return len(self._bindings)

    def __repr__(self) -> str:
        return f"VariableScope({self.scope_id!r}, {self._bindings!r})"


class ScopeRegistry:
    """
    Holds independent VariableScopes addressed by scope id.

    Typical ids are "template" and "context" for one run, or a per-run
    prefix when nested workflows execute.
    """

    def __init__(self):
        self._scopes: Dict[str, VariableScope] = {}

    def get(self, scope_id: str) -> VariableScope:
        """Get the scope with ``scope_id``, creating it empty if needed."""
        scope = self._scopes.get(scope_id)
        if scope is None:
            scope = VariableScope(scope_id)
            self._scopes[scope_id] = scope
        return scope

    def create(self, scope_id: str, defaults: Optional[Mapping[str, Any]] = None) -> VariableScope:
        """Create (or replace) a scope seeded with ``defaults``."""
        scope = VariableScope(scope_id, defaults)
        self._scopes[scope_id] = scope
        return scope

    def drop(self, scope_id: str) -> None:
        self._scopes.pop(scope_id, None)

    def reset_all(self) -> None:
        """Clear every scope at the start of a new execution pass."""
        for scope in self._scopes.values():
            scope.clear()

    def __contains__(self, scope_id: object) -> bool:
        return scope_id in self._scopes

    def __len__(self) -> int:
        return len(self._scopes)

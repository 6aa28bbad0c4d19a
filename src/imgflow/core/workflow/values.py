# core/workflow/values.py
"""
Tagged Values
=============

Workflow documents and variable scopes store everything as text. This module
gives that text a kind (integer, boolean or plain text) with one set of
coercion rules shared by templating, condition evaluation and validation.

Rules:
- Integer: optional leading "-" followed by ASCII digits ("007" is 7).
- Boolean: true/yes/on/enabled or false/no/off/disabled, case-insensitive.
  "1" and "0" are integers, but still coerce to True/False via as_bool().
- Anything else is text.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

__all__ = [
    "ValueKind",
    "Value",
    "TRUE_LITERALS",
    "FALSE_LITERALS",
    "parse_int",
    "parse_uint",
    "parse_bool",
    "to_text",
]

TRUE_LITERALS = frozenset({"true", "yes", "1", "on", "enabled"})
FALSE_LITERALS = frozenset({"false", "no", "0", "off", "disabled"})

_INT_PATTERN = re.compile(r"^-?[0-9]+$")
_UINT_PATTERN = re.compile(r"^[0-9]+$")


class ValueKind(Enum):
    """Kind of a tagged value."""

    INTEGER = "integer"
    BOOLEAN = "boolean"
    TEXT = "text"


def parse_int(text: Optional[str]) -> Optional[int]:
    """Parse a signed integer, or return None if ``text`` is not one."""
    if text is None:
        return None
    text = text.strip()
    if not _INT_PATTERN.match(text):
        return None
    return int(text)


def parse_uint(text: Optional[str]) -> Optional[int]:
    """Parse an unsigned integer made only of digits (no sign, no spaces)."""
    if text is None or not _UINT_PATTERN.match(text):
        return None
    return int(text)


def parse_bool(text: Optional[str]) -> Optional[bool]:
    """Parse a boolean literal, or return None if ``text`` is not one."""
    if text is None:
        return None
    lowered = text.strip().lower()
    if lowered in TRUE_LITERALS:
        return True
    if lowered in FALSE_LITERALS:
        return False
    return None


def to_text(value: Any) -> str:
    """
    Canonicalize a document or binding value to text.

    None becomes "", booleans become "true"/"false" and lists are joined
    with commas.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(to_text(v) for v in value)
    return str(value)


@dataclass(frozen=True)
class Value:
    """A piece of workflow text tagged with its kind."""

    kind: ValueKind
    raw: str

    @classmethod
    def parse(cls, value: Any) -> "Value":
        """Classify ``value`` after canonicalizing it to text."""
        raw = to_text(value)
        if parse_int(raw) is not None:
            return cls(ValueKind.INTEGER, raw)
        if parse_bool(raw) is not None:
            return cls(ValueKind.BOOLEAN, raw)
        return cls(ValueKind.TEXT, raw)

    @property
    def is_integer(self) -> bool:
        return self.kind is ValueKind.INTEGER

    def as_int(self, default: int = 0) -> int:
        parsed = parse_int(self.raw)
        return default if parsed is None else parsed

    def as_bool(self, default: bool = False) -> bool:
        parsed = parse_bool(self.raw)
        return default if parsed is None else parsed

    def __str__(self) -> str:
        return self.raw

"""
Rule Values

The small closed set of values that flow through rule evaluation and Memory:
string, boolean, number, or absent. Capabilities may also hand back other
objects (e.g. a list of saved locations); those are carried as opaque values.
"""

from enum import Enum
from typing import Any, Optional


class ValueKind(str, Enum):
    """Kinds of rule values"""
    STRING = "string"
    BOOLEAN = "boolean"
    NUMBER = "number"
    ABSENT = "absent"
    OTHER = "other"


def kind_of(value: Any) -> ValueKind:
    """Classify a value. bool is checked before int since bool subclasses int."""
    if value is None:
        return ValueKind.ABSENT
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    return ValueKind.OTHER


def values_equal(left: Any, right: Any) -> bool:
    """
    Structural equality between two evaluated operands.

    Values of different kinds are never equal (so True != 1 and "1" != 1);
    it is not an error to compare them.
    """
    if kind_of(left) != kind_of(right):
        return False
    return bool(left == right)


def as_bool(value: Any) -> bool:
    """Only a boolean True is true; everything else, including "true", is false"""
    return value is True


def as_text(value: Any) -> str:
    """Strings pass through; anything else becomes the empty string"""
    return value if isinstance(value, str) else ""


def describe(value: Any) -> Optional[str]:
    """Short printable form used in log lines"""
    if value is None:
        return None
    text = repr(value)
    return text if len(text) <= 80 else text[:77] + "..."

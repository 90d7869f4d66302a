"""
Value model shared by records, rule parameters and expression results.

Values are plain Python objects restricted to a closed set of kinds:

- NULL:    None
- NUMBER:  int or float (bool is NOT a number)
- STRING:  str
- BOOLEAN: bool
- ARRAY:   list (tuples are normalized to lists)
- OBJECT:  dict with string keys

Equality, ordering and truthiness are defined here once and reused by the
interpreter, the coercion policy and the rule validator.
"""

import json
import math
from enum import Enum
from typing import Any, Optional


class ValueKind(str, Enum):
    """Runtime tag of a value."""
    NULL = "null"
    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"


def _kind_or_none(value: Any) -> Optional[ValueKind]:
    # bool must be checked before int: bool is an int subclass
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, (list, tuple)):
        return ValueKind.ARRAY
    if isinstance(value, dict):
        return ValueKind.OBJECT
    return None


def kind_of(value: Any) -> ValueKind:
    """
    Classify a value.

    Raises:
        TypeError: If the value is outside the supported set
    """
    kind = _kind_or_none(value)
    if kind is None:
        raise TypeError(f"unsupported value type {type(value).__name__}")
    return kind


def is_value(value: Any) -> bool:
    """Check whether value (recursively) belongs to the supported set."""
    kind = _kind_or_none(value)
    if kind is None:
        return False
    if kind is ValueKind.ARRAY:
        return all(is_value(item) for item in value)
    if kind is ValueKind.OBJECT:
        return all(isinstance(k, str) and is_value(v) for k, v in value.items())
    return True


def normalize(value: Any) -> Any:
    """
    Return value with tuples converted to lists, recursively.

    Raises:
        TypeError: If value contains an unsupported type
    """
    kind = kind_of(value)
    if kind is ValueKind.ARRAY:
        return [normalize(item) for item in value]
    if kind is ValueKind.OBJECT:
        return {str(k): normalize(v) for k, v in value.items()}
    return value


def is_number(value: Any) -> bool:
    """True for int/float values, excluding bool."""
    return _kind_or_none(value) is ValueKind.NUMBER


def values_equal(left: Any, right: Any) -> bool:
    """
    Structural equality.

    Primitives compare by value, arrays element-wise, objects key-wise.
    Values of different kinds are never equal (``True != 1``).
    """
    left_kind = _kind_or_none(left)
    right_kind = _kind_or_none(right)
    if left_kind is None or right_kind is None:
        return left == right
    if left_kind is not right_kind:
        return False
    if left_kind is ValueKind.ARRAY:
        return len(left) == len(right) and all(
            values_equal(a, b) for a, b in zip(left, right)
        )
    if left_kind is ValueKind.OBJECT:
        if set(left.keys()) != set(right.keys()):
            return False
        return all(values_equal(left[key], right[key]) for key in left)
    return left == right


def compare_values(left: Any, right: Any) -> int:
    """
    Order two values: negative, zero or positive.

    Only number/number and string/string pairs are ordered.

    Raises:
        TypeError: For any other pair
    """
    left_kind = _kind_or_none(left)
    right_kind = _kind_or_none(right)
    ordered = (ValueKind.NUMBER, ValueKind.STRING)
    if left_kind is not right_kind or left_kind not in ordered:
        raise TypeError(
            f"cannot compare {describe(left)} with {describe(right)}"
        )
    if left_kind is ValueKind.NUMBER and (math.isnan(left) or math.isnan(right)):
        raise TypeError("cannot compare NaN")
    return (left > right) - (left < right)


def is_truthy(value: Any) -> bool:
    """
    Boolean interpretation of a value.

    null, false, 0, NaN and "" are falsy; arrays and objects are always truthy.
    """
    kind = _kind_or_none(value)
    if kind is ValueKind.NULL:
        return False
    if kind is ValueKind.BOOLEAN:
        return value
    if kind is ValueKind.NUMBER:
        return value != 0 and not math.isnan(value)
    if kind is ValueKind.STRING:
        return value != ""
    if kind in (ValueKind.ARRAY, ValueKind.OBJECT):
        return True
    return bool(value)


def format_number(value: float) -> str:
    """Canonical text of a number: integral floats drop the fraction."""
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer() and abs(value) < 1e21:
            return str(int(value))
        return repr(value)
    return str(value)


def to_literal(value: Any) -> str:
    """
    Encode a value as expression source text.

    Strings are quoted, arrays become array literals. Objects have no literal
    form in the expression grammar and are emitted as JSON text.
    """
    kind = _kind_or_none(value)
    if kind is ValueKind.NULL:
        return "null"
    if kind is ValueKind.BOOLEAN:
        return "true" if value else "false"
    if kind is ValueKind.NUMBER:
        return format_number(value)
    if kind is ValueKind.STRING:
        return json.dumps(value, ensure_ascii=False)
    if kind is ValueKind.ARRAY:
        return "[" + ", ".join(to_literal(item) for item in value) + "]"
    return json.dumps(value, ensure_ascii=False, default=str)


def to_text(value: Any) -> str:
    """Canonical textual form (strings are returned unquoted)."""
    if isinstance(value, str):
        return value
    return to_literal(value)


def describe(value: Any) -> str:
    """Short description used in error messages."""
    kind = _kind_or_none(value)
    if kind is None:
        return type(value).__name__
    return kind.value


__all__ = [
    "ValueKind",
    "kind_of",
    "is_value",
    "normalize",
    "is_number",
    "values_equal",
    "compare_values",
    "is_truthy",
    "format_number",
    "to_literal",
    "to_text",
    "describe",
]

"""
Built-in functions available to every expression.

Variadic math/string helpers accept either positional values or a single
array argument, so ``sum(1, 2, 3)``, ``sum(...scores)`` and ``sum(scores)``
are equivalent.

Dates are ISO-8601 strings (or epoch milliseconds); naive timestamps are
treated as UTC.
"""

import math
from datetime import datetime, timezone
from typing import Any, Callable, List

from criteria_engine.functions.registry import FunctionRegistry
from criteria_engine.values import describe, is_number, is_truthy, to_text, values_equal


builtin_registry = FunctionRegistry("builtin")


def _flatten_single_array(args: tuple) -> List[Any]:
    if len(args) == 1 and isinstance(args[0], (list, tuple)):
        return list(args[0])
    return list(args)


def _numbers(name: str, args: tuple) -> List[Any]:
    values = _flatten_single_array(args)
    for value in values:
        if not is_number(value):
            raise TypeError(f"{name}() expects numbers, got {describe(value)}")
    return values


def _number(name: str, value: Any) -> Any:
    if not is_number(value):
        raise TypeError(f"{name}() expects a number, got {describe(value)}")
    return value


def _array(name: str, value: Any) -> List[Any]:
    if not isinstance(value, (list, tuple)):
        raise TypeError(f"{name}() expects an array, got {describe(value)}")
    return list(value)


def _string(name: str, value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{name}() expects a string, got {describe(value)}")
    return value


def _predicate(name: str, value: Any) -> Callable[[Any], Any]:
    if not callable(value):
        raise TypeError(f"{name}() expects a predicate such as x => x > 0")
    return value


def _to_datetime(value: Any) -> datetime:
    if is_number(value):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    raise TypeError(f"expected an ISO date string, got {describe(value)}")


# =============================================================================
# MATH
# =============================================================================

@builtin_registry.function("sum", category="math", builtin=True)
def fn_sum(*args: Any) -> Any:
    """Sum of the arguments (0 when empty)."""
    return sum(_numbers("sum", args), 0)


@builtin_registry.function("avg", category="math", builtin=True)
def fn_avg(*args: Any) -> Any:
    """Arithmetic mean of the arguments."""
    values = _numbers("avg", args)
    if not values:
        raise ValueError("avg() requires at least one number")
    return sum(values) / len(values)


@builtin_registry.function("max", category="math", builtin=True)
def fn_max(*args: Any) -> Any:
    """Largest argument."""
    values = _numbers("max", args)
    if not values:
        raise ValueError("max() requires at least one number")
    return max(values)


@builtin_registry.function("min", category="math", builtin=True)
def fn_min(*args: Any) -> Any:
    """Smallest argument."""
    values = _numbers("min", args)
    if not values:
        raise ValueError("min() requires at least one number")
    return min(values)


@builtin_registry.function("abs", category="math", builtin=True)
def fn_abs(value: Any) -> Any:
    """Absolute value."""
    return abs(_number("abs", value))


@builtin_registry.function("round", category="math", builtin=True)
def fn_round(value: Any) -> int:
    """Round to the nearest integer, halves away from negative infinity."""
    return math.floor(_number("round", value) + 0.5)


@builtin_registry.function("ceil", category="math", builtin=True)
def fn_ceil(value: Any) -> int:
    """Smallest integer not less than the value."""
    return math.ceil(_number("ceil", value))


@builtin_registry.function("floor", category="math", builtin=True)
def fn_floor(value: Any) -> int:
    """Largest integer not greater than the value."""
    return math.floor(_number("floor", value))


# =============================================================================
# ARRAYS
# =============================================================================

@builtin_registry.function("count", category="array", builtin=True)
def fn_count(value: Any) -> int:
    """Number of elements in an array."""
    return len(_array("count", value))


@builtin_registry.function("unique", category="array", builtin=True)
def fn_unique(value: Any) -> List[Any]:
    """Distinct elements, first occurrence order kept."""
    result: List[Any] = []
    for item in _array("unique", value):
        if not any(values_equal(item, seen) for seen in result):
            result.append(item)
    return result


@builtin_registry.function("filter", category="array", builtin=True)
def fn_filter(value: Any, predicate: Any) -> List[Any]:
    """Elements for which the predicate is truthy: filter(items, x => x > 3)."""
    check = _predicate("filter", predicate)
    return [item for item in _array("filter", value) if is_truthy(check(item))]


@builtin_registry.function("any", category="array", builtin=True)
def fn_any(value: Any, predicate: Any = None) -> bool:
    """True if any element (or predicate result) is truthy."""
    items = _array("any", value)
    if predicate is None:
        return any(is_truthy(item) for item in items)
    check = _predicate("any", predicate)
    return any(is_truthy(check(item)) for item in items)


@builtin_registry.function("all", category="array", builtin=True)
def fn_all(value: Any, predicate: Any = None) -> bool:
    """True if every element (or predicate result) is truthy."""
    items = _array("all", value)
    if predicate is None:
        return all(is_truthy(item) for item in items)
    check = _predicate("all", predicate)
    return all(is_truthy(check(item)) for item in items)


# =============================================================================
# TYPE CHECKS
# =============================================================================

@builtin_registry.function("isEmpty", category="type", builtin=True)
def fn_is_empty(value: Any = None) -> bool:
    """True for null, blank strings, empty arrays and empty objects."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


@builtin_registry.function("isNumber", category="type", builtin=True)
def fn_is_number(value: Any = None) -> bool:
    """True for numbers other than NaN."""
    return is_number(value) and not math.isnan(value)


@builtin_registry.function("isString", category="type", builtin=True)
def fn_is_string(value: Any = None) -> bool:
    return isinstance(value, str)


@builtin_registry.function("isBoolean", category="type", builtin=True)
def fn_is_boolean(value: Any = None) -> bool:
    return isinstance(value, bool)


@builtin_registry.function("isArray", category="type", builtin=True)
def fn_is_array(value: Any = None) -> bool:
    return isinstance(value, (list, tuple))


# =============================================================================
# STRINGS
# =============================================================================

@builtin_registry.function("concat", category="string", builtin=True)
def fn_concat(*args: Any) -> str:
    """Join the arguments as text."""
    return "".join(to_text(value) for value in _flatten_single_array(args))


@builtin_registry.function("toLowerCase", category="string", builtin=True)
def fn_to_lower_case(value: Any) -> str:
    return _string("toLowerCase", value).lower()


@builtin_registry.function("toUpperCase", category="string", builtin=True)
def fn_to_upper_case(value: Any) -> str:
    return _string("toUpperCase", value).upper()


@builtin_registry.function("trim", category="string", builtin=True)
def fn_trim(value: Any) -> str:
    return _string("trim", value).strip()


# =============================================================================
# DATES
# =============================================================================

@builtin_registry.function("now", category="date", builtin=True)
def fn_now() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


@builtin_registry.function("isToday", category="date", builtin=True)
def fn_is_today(value: Any) -> bool:
    """True if the date falls on the current UTC day."""
    return _to_datetime(value).astimezone(timezone.utc).date() == datetime.now(timezone.utc).date()


@builtin_registry.function("daysBetween", category="date", builtin=True)
def fn_days_between(first: Any, second: Any) -> int:
    """Whole days between two dates, rounded up."""
    delta = abs((_to_datetime(second) - _to_datetime(first)).total_seconds())
    return math.ceil(delta / 86400)


__all__ = ["builtin_registry"]

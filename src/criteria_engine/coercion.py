"""
Coercion of raw values before validation.

Two tiers:
- strict: the criterion declares a number/string/boolean rule. Only
  well-formed text is converted; anything else is returned untouched so the
  type rule reports a normal validation error.
- flexible: no type rule. Strings that look numeric or boolean are converted,
  everything else is left as-is.
"""

import re
from typing import Any, Iterable, Optional

from criteria_engine.values import to_text

NUMBER_PATTERN = re.compile(r"^-?\d+(\.\d+)?$")
TYPE_RULES = ("number", "string", "boolean")

_NON_NUMERIC = re.compile(r"[^0-9.\-]")


def target_type(rules: Iterable[Any]) -> Optional[str]:
    """Return the first number/string/boolean rule type, if any."""
    for rule in rules or ():
        rule_type = getattr(rule, "type", None)
        if rule_type in TYPE_RULES:
            return rule_type
    return None


def _parse_number(text: str) -> Any:
    if "." in text:
        return float(text)
    return int(text)


def coerce_strict(value: Any, target: str) -> Any:
    """Convert value toward target type, returning it unchanged on mismatch."""
    if value is None:
        return None

    text = to_text(value)

    if target == "number":
        if NUMBER_PATTERN.match(text):
            return _parse_number(text)
        return value

    if target == "boolean":
        lowered = text.strip().lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
        return value

    return text


def coerce_flexible(value: Any) -> Any:
    """Best-effort conversion of loosely typed strings."""
    if not isinstance(value, str):
        return value

    cleaned = _NON_NUMERIC.sub("", value)
    if cleaned:
        try:
            number = float(cleaned)
        except ValueError:
            number = None
        if number is not None:
            if "." not in cleaned and number.is_integer():
                return int(cleaned)
            return number

    lowered = value.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    return value


def coerce_value(value: Any, rules: Iterable[Any] = ()) -> Any:
    """
    Coerce a resolved criterion value according to its rules.

    Args:
        value: Raw or derived value
        rules: The criterion's rules; the first type rule selects strict mode

    Returns:
        The coerced value (None always passes through)
    """
    if value is None:
        return None
    target = target_type(rules)
    if target is None:
        return coerce_flexible(value)
    return coerce_strict(value, target)


__all__ = [
    "NUMBER_PATTERN",
    "coerce_value",
    "coerce_strict",
    "coerce_flexible",
    "target_type",
]

"""
Validation rule models.

Each rule is a frozen pydantic model tagged by ``type``:

    exists | in | between | includes | number | string | boolean | array
    | gt | gte | lt | lte | eq | custom

Rules are usually built from plain data with ``parse_rule``:

    parse_rule({"type": "between", "min": 0, "max": 120})
"""

from typing import Annotated, Any, Callable, List, Literal, Mapping, Union

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError

from criteria_engine.errors import ConfigurationError
from criteria_engine.values import describe, is_value, normalize

Number = Union[StrictInt, StrictFloat]


class BaseRule(BaseModel):
    """Common configuration of every rule model."""

    model_config = ConfigDict(frozen=True, extra="forbid")


class ExistsRule(BaseRule):
    """Value must not be null."""
    type: Literal["exists"] = "exists"


class _ValuesRule(BaseRule):
    values: List[Any]

    @field_validator("values")
    @classmethod
    def validate_values(cls, v: List[Any]) -> List[Any]:
        """Ensure every allowed value belongs to the value model."""
        for item in v:
            if not is_value(item):
                raise ValueError(f"unsupported value of type {describe(item)}")
        return [normalize(item) for item in v]


class InRule(_ValuesRule):
    """Value must equal one of ``values``."""
    type: Literal["in"] = "in"


class IncludesRule(_ValuesRule):
    """Value must be an array containing every one of ``values``."""
    type: Literal["includes"] = "includes"


class BetweenRule(BaseRule):
    """Value must be a number within ``[min, max]``."""
    type: Literal["between"] = "between"
    min: Number
    max: Number


class TypeRule(BaseRule):
    """Value must be of the named kind."""
    type: Literal["number", "string", "boolean", "array"]


class ComparisonRule(BaseRule):
    """Value must be a number and compare against ``value``."""
    type: Literal["gt", "gte", "lt", "lte"]
    value: Number


class EqualsRule(BaseRule):
    """Value must structurally equal ``value``."""
    type: Literal["eq"] = "eq"
    value: Any = None

    @field_validator("value")
    @classmethod
    def validate_value(cls, v: Any) -> Any:
        if not is_value(v):
            raise ValueError(f"unsupported value of type {describe(v)}")
        return normalize(v)


class CustomRule(BaseRule):
    """Value must satisfy a caller supplied predicate."""
    type: Literal["custom"] = "custom"
    validator: Callable[[Any], Any]
    description: str = ""


Rule = Annotated[
    Union[
        ExistsRule,
        InRule,
        IncludesRule,
        BetweenRule,
        TypeRule,
        ComparisonRule,
        EqualsRule,
        CustomRule,
    ],
    Field(discriminator="type"),
]

RULE_TYPES = (
    "exists", "in", "between", "includes",
    "number", "string", "boolean", "array",
    "gt", "gte", "lt", "lte", "eq", "custom",
)

_rule_adapter: TypeAdapter = TypeAdapter(Rule)


def parse_rule(data: Union[BaseRule, Mapping[str, Any]]) -> BaseRule:
    """
    Build a rule model from plain data.

    Args:
        data: Mapping with a ``type`` key, or an existing rule model

    Returns:
        The matching rule model

    Raises:
        ConfigurationError: If the data does not describe a valid rule
    """
    if isinstance(data, BaseRule):
        return data
    if not isinstance(data, Mapping):
        raise ConfigurationError(
            f"Rule must be a mapping, got {type(data).__name__}",
        )
    try:
        return _rule_adapter.validate_python(dict(data))
    except PydanticValidationError as e:
        raise ConfigurationError(
            f"Invalid rule {dict(data).get('type')!r}: {e.errors()[0]['msg']}",
            {"rule": {k: v for k, v in data.items() if k != "validator"}, "errors": e.error_count()},
        ) from e


def parse_rules(items: Any) -> List[BaseRule]:
    """Build a list of rules, accepting None for 'no rules'."""
    if items is None:
        return []
    if not isinstance(items, (list, tuple)):
        raise ConfigurationError(f"Rules must be a list, got {type(items).__name__}")
    return [parse_rule(item) for item in items]


__all__ = [
    "BaseRule",
    "ExistsRule",
    "InRule",
    "IncludesRule",
    "BetweenRule",
    "TypeRule",
    "ComparisonRule",
    "EqualsRule",
    "CustomRule",
    "Rule",
    "RULE_TYPES",
    "parse_rule",
    "parse_rules",
]

"""
Rule validation.

RuleValidator.check answers "does this value satisfy this rule"; the
module-level validate_criterion runs every rule of a criterion and builds
localized messages from the catalog.
"""

import json
import math
from typing import Any, Dict, Optional

from criteria_engine.catalog import Catalog
from criteria_engine.errors import ValidationError
from criteria_engine.logger import logger
from criteria_engine.models import CriterionConfig, ValidationResult
from criteria_engine.rules import (
    BaseRule,
    BetweenRule,
    ComparisonRule,
    CustomRule,
    EqualsRule,
    ExistsRule,
    IncludesRule,
    InRule,
    TypeRule,
)
from criteria_engine.values import is_number, is_truthy, values_equal

ERROR_KEYS: Dict[str, str] = {
    "exists": "errors.criteriaExists",
    "in": "errors.criteriaIn",
    "between": "errors.betweenRange",
    "includes": "errors.criteriaIncludes",
    "number": "errors.numberType",
    "string": "errors.stringType",
    "boolean": "errors.booleanType",
    "array": "errors.criteriaArray",
    "gt": "errors.greaterThan",
    "gte": "errors.greaterThanEqual",
    "lt": "errors.lessThan",
    "lte": "errors.lessThanEqual",
    "eq": "errors.equalTo",
    "custom": "errors.customValidationFailed",
}


def _is_plain_number(value: Any) -> bool:
    return is_number(value) and not math.isnan(value)


class RuleValidator:
    """Checks a single value against a single rule."""

    def check(self, value: Any, rule: BaseRule) -> bool:
        """
        Check value against rule.

        Raises:
            ValidationError: If the rule is not a known rule model
        """
        if isinstance(rule, ExistsRule):
            return value is not None

        if isinstance(rule, InRule):
            return any(values_equal(value, allowed) for allowed in rule.values)

        if isinstance(rule, BetweenRule):
            return _is_plain_number(value) and rule.min <= value <= rule.max

        if isinstance(rule, IncludesRule):
            if not isinstance(value, (list, tuple)):
                return False
            return all(
                any(values_equal(item, required) for item in value)
                for required in rule.values
            )

        if isinstance(rule, TypeRule):
            if rule.type == "number":
                return _is_plain_number(value)
            if rule.type == "string":
                return isinstance(value, str)
            if rule.type == "boolean":
                return isinstance(value, bool)
            return isinstance(value, (list, tuple))

        if isinstance(rule, ComparisonRule):
            if not _is_plain_number(value):
                return False
            if rule.type == "gt":
                return value > rule.value
            if rule.type == "gte":
                return value >= rule.value
            if rule.type == "lt":
                return value < rule.value
            return value <= rule.value

        if isinstance(rule, EqualsRule):
            return values_equal(value, rule.value)

        if isinstance(rule, CustomRule):
            try:
                return is_truthy(rule.validator(value))
            except Exception as e:
                logger.debug("Custom validator raised", error_type=type(e).__name__, error=str(e))
                return False

        raise ValidationError(
            f"Invalid rule type: {type(rule).__name__}",
            {"rule": repr(rule)},
        )

    @staticmethod
    def error_key(rule: BaseRule) -> str:
        return ERROR_KEYS.get(getattr(rule, "type", ""), "errors.unknown")

    @staticmethod
    def message_params(rule: BaseRule, criterion: str) -> Dict[str, Any]:
        """Placeholder values for the rule's message template."""
        params: Dict[str, Any] = {"criterion": criterion}
        if isinstance(rule, BetweenRule):
            params["min"] = rule.min
            params["max"] = rule.max
        elif isinstance(rule, (ComparisonRule, EqualsRule)):
            params["value"] = rule.value
        elif isinstance(rule, (InRule, IncludesRule)):
            params["values"] = json.dumps(rule.values, ensure_ascii=False, default=str)
        return params


_default_validator = RuleValidator()


def validate_criterion(
    value: Any,
    config: CriterionConfig,
    language: str,
    catalog: Optional[Catalog] = None,
    validator: Optional[RuleValidator] = None,
) -> ValidationResult:
    """
    Validate an already resolved value against every rule of a criterion.

    Errors are keyed by rule type; a later rule of the same type replaces the
    message of an earlier one.

    Raises:
        ValidationError: If a rule of unknown kind is encountered
    """
    if not config.rules:
        return ValidationResult(criterion=config.id, success=True, errors=None)

    catalog = catalog or Catalog.default()
    validator = validator or _default_validator

    errors: Dict[str, str] = {}
    for rule in config.rules:
        if validator.check(value, rule):
            continue
        errors[rule.type] = catalog.render(
            language,
            validator.error_key(rule),
            validator.message_params(rule, config.display_name),
            fallback=f"Validation failed for rule {rule.type}",
        )

    return ValidationResult(
        criterion=config.id,
        success=not errors,
        errors=errors or None,
    )


__all__ = ["RuleValidator", "ERROR_KEYS", "validate_criterion"]

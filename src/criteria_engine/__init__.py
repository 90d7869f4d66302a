"""
Criteria Engine - declarative validation of data records.

Main components:
- CriteriaResolver: derivation, coercion, validation and equation evaluation
- CriterionConfig: configuration of one criterion
- Rule models (ExistsRule, InRule, BetweenRule, ...) and parse_rule
- FunctionRegistry: functions callable from expressions
- Catalog: localized validation messages
"""

from criteria_engine.catalog import Catalog
from criteria_engine.config_loader import load_criteria, parse_criteria
from criteria_engine.errors import (
    ComputationError,
    ConfigLoadError,
    ConfigurationError,
    CriteriaEngineError,
    ExpressionError,
    ExpressionEvaluationError,
    ExpressionParseError,
    FunctionAlreadyRegisteredError,
    UnknownCriterionError,
    ValidationError,
)
from criteria_engine.expression import Interpreter, evaluate_expression, parse_expression
from criteria_engine.functions import FunctionRegistry, builtin_registry, create_function_registry
from criteria_engine.models import (
    CriterionConfig,
    EquationValidation,
    FailedField,
    ProcessedEquation,
    QueryResult,
    ValidationResult,
    ValidationSummary,
)
from criteria_engine.resolver import CriteriaResolver
from criteria_engine.rules import (
    BetweenRule,
    ComparisonRule,
    CustomRule,
    EqualsRule,
    ExistsRule,
    IncludesRule,
    InRule,
    TypeRule,
    parse_rule,
)

__version__ = "1.0.0"

__all__ = [
    "CriteriaResolver",
    "CriterionConfig",
    "ValidationResult",
    "ValidationSummary",
    "FailedField",
    "QueryResult",
    "ProcessedEquation",
    "EquationValidation",
    "ExistsRule",
    "InRule",
    "IncludesRule",
    "BetweenRule",
    "TypeRule",
    "ComparisonRule",
    "EqualsRule",
    "CustomRule",
    "parse_rule",
    "FunctionRegistry",
    "builtin_registry",
    "create_function_registry",
    "Interpreter",
    "evaluate_expression",
    "parse_expression",
    "Catalog",
    "load_criteria",
    "parse_criteria",
    "CriteriaEngineError",
    "ConfigurationError",
    "ConfigLoadError",
    "UnknownCriterionError",
    "FunctionAlreadyRegisteredError",
    "ComputationError",
    "ExpressionError",
    "ExpressionParseError",
    "ExpressionEvaluationError",
    "ValidationError",
]

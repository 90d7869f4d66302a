"""
Error taxonomy for the criteria engine.

ConfigurationError  - broken setup (ids, duplicate functions, rule data)
ComputationError    - a criterion derivation failed
ExpressionError     - an expression could not be parsed or evaluated
ValidationError     - the validator received a rule it does not understand
"""

from typing import Any, Dict, Optional


class CriteriaEngineError(Exception):
    """Base class for every error raised by the engine."""

    code = "ENGINE_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(CriteriaEngineError):
    """Raised when criteria, rules or functions are misconfigured."""

    code = "CONFIGURATION_ERROR"


class ConfigLoadError(ConfigurationError):
    """Raised when a criteria file cannot be read or parsed."""

    def __init__(self, file_path: str, reason: str):
        self.file_path = file_path
        self.reason = reason
        super().__init__(
            f"Failed to load '{file_path}': {reason}",
            {"file_path": file_path},
        )


class UnknownCriterionError(ConfigurationError):
    """Raised when a criterion id is not configured."""

    def __init__(self, criterion_id: str):
        self.criterion_id = criterion_id
        super().__init__(
            f"Criterion '{criterion_id}' not found",
            {"criterion_id": criterion_id},
        )


class FunctionAlreadyRegisteredError(ConfigurationError):
    """Raised when trying to register a function name that already exists."""

    def __init__(self, function_name: str, registry_name: str = ""):
        self.function_name = function_name
        self.registry_name = registry_name
        message = f"Function '{function_name}' already registered"
        if registry_name:
            message += f" in registry '{registry_name}'"
        super().__init__(message, {"function_name": function_name})


class ComputationError(CriteriaEngineError):
    """Raised when the derivation of a criterion value fails."""

    code = "COMPUTATION_ERROR"

    def __init__(self, criterion_id: str, original_error: Exception):
        self.criterion_id = criterion_id
        self.original_error = original_error
        super().__init__(
            f"Failed to compute value for criterion '{criterion_id}': {original_error}",
            {"criterion_id": criterion_id, "error": str(original_error)},
        )


class ExpressionError(CriteriaEngineError):
    """Raised when an expression cannot be parsed or evaluated."""

    code = "EXPRESSION_ERROR"

    def __init__(
        self,
        message: str,
        expression: Optional[str] = None,
        position: Optional[int] = None,
    ):
        self.reason = message
        self.expression = expression
        self.position = position
        details: Dict[str, Any] = {}
        if expression is not None:
            details["expression"] = expression
        if position is not None:
            details["position"] = position
            message = f"{message} (at position {position})"
        super().__init__(message, details)


class ExpressionParseError(ExpressionError):
    """Raised when an expression string is malformed."""


class ExpressionEvaluationError(ExpressionError):
    """Raised when a well-formed expression fails at evaluation time."""


class ValidationError(CriteriaEngineError):
    """Raised when a rule of an unknown kind reaches the validator."""

    code = "VALIDATION_ERROR"


__all__ = [
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

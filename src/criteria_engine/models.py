"""
Data classes exchanged with callers of the resolver.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from criteria_engine.rules import BaseRule, parse_rules

Derivation = Union[str, Callable[[Mapping[str, Any]], Any]]


@dataclass(frozen=True)
class CriterionConfig:
    """
    Configuration of a single criterion.

    Attributes:
        id: Criterion identifier, also the record field read when there is no derivation
        name: Display name used in messages (defaults to id)
        derive: Expression string or callable computing the value from the record
        rules: Validation rules; plain dicts are converted to rule models
    """
    id: str
    name: Optional[str] = None
    derive: Optional[Derivation] = None
    rules: Tuple[BaseRule, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "rules", tuple(parse_rules(self.rules)))

    @property
    def display_name(self) -> str:
        return self.name or self.id

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CriterionConfig":
        return cls(
            id=data.get("id"),
            name=data.get("name"),
            derive=data.get("derive"),
            rules=data.get("rules") or (),
        )


@dataclass
class ValidationResult:
    """
    Result of validating one criterion.

    Attributes:
        criterion: Criterion id
        success: True when every rule passed
        errors: rule type -> message, None on success
    """
    criterion: str
    success: bool
    errors: Optional[Dict[str, str]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "criterion": self.criterion,
            "success": self.success,
            "errors": dict(self.errors) if self.errors else None,
        }


@dataclass
class FailedField:
    """A criterion that failed validation."""
    id: str
    errors: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "errors": dict(self.errors)}


@dataclass
class ValidationSummary:
    """
    Aggregated validation results.

    Attributes:
        success_fields: Ids of criteria that passed, in registration order
        failed_fields: Criteria that failed, with their messages
    """
    success_fields: List[str] = field(default_factory=list)
    failed_fields: List[FailedField] = field(default_factory=list)

    @property
    def overall_success(self) -> bool:
        return len(self.failed_fields) == 0

    @classmethod
    def from_results(cls, results: List[ValidationResult]) -> "ValidationSummary":
        summary = cls()
        for result in results:
            summary.add(result)
        return summary

    def add(self, result: ValidationResult) -> None:
        if result.success:
            self.success_fields.append(result.criterion)
        else:
            self.failed_fields.append(FailedField(result.criterion, dict(result.errors or {})))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "success_fields": list(self.success_fields),
            "failed_fields": [f.to_dict() for f in self.failed_fields],
            "overall_success": self.overall_success,
        }


@dataclass
class QueryResult:
    """Validation summary plus the record to hand downstream."""
    summary: ValidationSummary
    data: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {"summary": self.summary.to_dict(), "data": dict(self.data)}


@dataclass
class ProcessedEquation:
    """
    Diagnostic view of an equation evaluation.

    Attributes:
        template: The equation as written
        expression: Template with placeholders substituted
        environment: Values available for substitution
        result: Boolean outcome (False when evaluation failed)
        error: Failure message, if any
    """
    template: str
    expression: str
    environment: Dict[str, Any]
    result: bool
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "template": self.template,
            "expression": self.expression,
            "environment": dict(self.environment),
            "result": self.result,
            "error": self.error,
        }


@dataclass
class EquationValidation:
    """Outcome of validating the criteria referenced by an equation, then evaluating it."""
    summary: ValidationSummary
    result: bool

    @property
    def success(self) -> bool:
        return self.summary.overall_success and self.result

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.summary.to_dict(),
            "result": self.result,
            "success": self.success,
        }


__all__ = [
    "Derivation",
    "CriterionConfig",
    "ValidationResult",
    "FailedField",
    "ValidationSummary",
    "QueryResult",
    "ProcessedEquation",
    "EquationValidation",
]

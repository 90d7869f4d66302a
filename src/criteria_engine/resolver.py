"""
CriteriaResolver - evaluates criteria and equations against data records.

Pipeline per criterion:
    record -> derivation (expression or callable) -> coercion -> rules

Equations are boolean expressions with ``{{criterion}}`` placeholders:

    resolver = CriteriaResolver([
        CriterionConfig(id="age", rules=[{"type": "number"}, {"type": "gte", "value": 18}]),
        CriterionConfig(id="total", derive="salary + (bonus || 0)"),
    ])

    resolver.validate_all({"age": "42", "salary": 100, "bonus": None}).overall_success  # True
    resolver.evaluate_equation("{{age}} >= 18", [{"age": 21}])  # True

Equation evaluation is fail-closed: a template that cannot be parsed or
evaluated yields False instead of raising. A failed derivation raises
ComputationError from validate_all, and is reported as a ``compute`` failure
while process_query builds its output.
"""

from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from criteria_engine.catalog import PLACEHOLDER_PATTERN, Catalog
from criteria_engine.coercion import coerce_value
from criteria_engine.config_loader import bind_expression_rules
from criteria_engine.errors import (
    ComputationError,
    ConfigurationError,
    ExpressionError,
    ExpressionEvaluationError,
    UnknownCriterionError,
)
from criteria_engine.expression import Interpreter, parse_expression
from criteria_engine.functions import create_function_registry
from criteria_engine.logger import logger
from criteria_engine.models import (
    CriterionConfig,
    EquationValidation,
    ProcessedEquation,
    QueryResult,
    ValidationResult,
    ValidationSummary,
)
from criteria_engine.settings import settings
from criteria_engine.validator import RuleValidator, validate_criterion
from criteria_engine.values import is_truthy, to_literal

Record = Mapping[str, Any]
Sources = Union[Record, Sequence[Record], None]

UNRESOLVED_TOKEN = "undefined"


class CriteriaResolver:
    """
    Orchestrates derivation, coercion, validation and equation evaluation.

    Criteria and functions are configured up front; evaluation methods never
    modify resolver state, so one resolver can serve concurrent callers once
    setup is complete.
    """

    def __init__(
        self,
        criteria: Iterable[Union[CriterionConfig, Mapping[str, Any]]] = (),
        language: Optional[str] = None,
        functions: Optional[Mapping[str, Callable[..., Any]]] = None,
        catalog: Optional[Catalog] = None,
    ):
        """
        Args:
            criteria: Criterion configs (or plain dicts), in registration order
            language: Message language (defaults to engine.language)
            functions: Extra functions available to expressions
            catalog: Message catalog (defaults to the bundled one)

        Raises:
            ConfigurationError: If a rule is invalid or a function name clashes
        """
        self._registry = create_function_registry("resolver")
        for name, func in (functions or {}).items():
            self._registry.register(name, func)
        self._interpreter = Interpreter(self._registry.view())

        self._criteria: Dict[str, CriterionConfig] = {}
        for item in criteria or ():
            config = item if isinstance(item, CriterionConfig) else CriterionConfig.from_dict(item)
            if config.id in self._criteria:
                logger.warning("Duplicate criterion id, last definition wins", criterion=config.id)
            # Expression rules from files see this resolver's functions
            self._criteria[config.id] = bind_expression_rules(config, self._interpreter)

        self.catalog = catalog or Catalog.default()
        self.language = self._select_language(language)

        self._validator = RuleValidator()
        self._evaluated = False

    def _select_language(self, language: Optional[str]) -> str:
        requested = language or settings.get_nested("engine.language", "en")
        if self.catalog.has_language(requested):
            return requested
        logger.warning(
            "Unknown language, falling back to default",
            language=requested,
            default=self.catalog.default_language,
        )
        return self.catalog.default_language

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def criteria(self) -> List[CriterionConfig]:
        """Configured criteria in registration order."""
        return list(self._criteria.values())

    @property
    def functions(self) -> Mapping[str, Callable[..., Any]]:
        """Read-only snapshot of the functions visible to expressions."""
        return self._registry.snapshot()

    def get_criterion(self, criterion_id: str) -> CriterionConfig:
        """
        Raises:
            UnknownCriterionError: If the id is not configured
        """
        config = self._criteria.get(criterion_id)
        if config is None:
            raise UnknownCriterionError(criterion_id)
        return config

    def register_function(self, name: str, func: Callable[..., Any], description: str = "") -> None:
        """
        Make a function callable from expressions.

        Raises:
            FunctionAlreadyRegisteredError: If the name already exists
        """
        if self._evaluated:
            logger.warning("Function registered after evaluation started", function=name)
        self._registry.register(name, func, description)
        logger.debug("Function registered", function=name)

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------

    def _derive(self, config: CriterionConfig, record: Record) -> Any:
        try:
            if callable(config.derive):
                return config.derive(record)
            return self._interpreter.evaluate(config.derive, record)
        except Exception as e:
            raise ComputationError(config.id, e) from e

    def _resolve(self, config: CriterionConfig, record: Record) -> Any:
        if config.derive is None:
            raw = record.get(config.id)
        else:
            raw = self._derive(config, record)
        return coerce_value(raw, config.rules)

    def resolve_value(self, criterion_id: str, record: Record) -> Any:
        """
        Resolve the coerced value of a criterion for a record.

        Raises:
            UnknownCriterionError: If the id is not configured
            ComputationError: If the derivation fails
        """
        self._evaluated = True
        return self._resolve(self.get_criterion(criterion_id), record)

    def compute(self, expression: str, record: Optional[Record] = None) -> Any:
        """
        Evaluate an expression against a record and the registered functions.

        Raises:
            ExpressionError: If the expression is malformed or fails
        """
        self._evaluated = True
        return self._interpreter.evaluate(expression, record or {})

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _failure(
        self,
        criterion_id: str,
        rule_key: str,
        message_key: str,
        params: Mapping[str, Any],
    ) -> ValidationResult:
        message = self.catalog.render(self.language, message_key, params, fallback=message_key)
        return ValidationResult(criterion=criterion_id, success=False, errors={rule_key: message})

    def _compute_failure(self, config: CriterionConfig, error: ComputationError) -> ValidationResult:
        logger.debug("Derivation failed", criterion=config.id, error=str(error.original_error))
        return self._failure(
            config.id, "compute", "errors.computeValueFailed", {"criterion": config.display_name}
        )

    def validate_all(self, record: Record) -> ValidationSummary:
        """
        Validate every configured criterion against a record.

        Raises:
            ConfigurationError: If a criterion has an empty id
            ComputationError: If a derivation fails
            ValidationError: If a criterion carries an unknown rule
        """
        self._evaluated = True
        summary = ValidationSummary()
        for config in self._criteria.values():
            if not config.id:
                raise ConfigurationError("Criterion id is required", {"name": config.name})
            value = self._resolve(config, record)
            summary.add(validate_criterion(value, config, self.language, self.catalog, self._validator))

        logger.debug(
            "Criteria validated",
            passed=len(summary.success_fields),
            failed=len(summary.failed_fields),
        )
        return summary

    def process_query(self, record: Record) -> QueryResult:
        """
        Validate a record and, on success, build the resolved output record.

        On failure the original record is returned untouched alongside the
        summary. A derivation that fails while the output record is built is
        reported as a failed field with a ``compute`` error.

        Raises:
            ComputationError: If a derivation fails during validation
        """
        summary = self.validate_all(record)
        if not summary.overall_success:
            return QueryResult(summary=summary, data=record)

        data: Dict[str, Any] = {}
        for config in self._criteria.values():
            try:
                data[config.id] = self._resolve(config, record)
            except ComputationError as e:
                summary.add(self._compute_failure(config, e))
        return QueryResult(summary=summary, data=data)

    # ------------------------------------------------------------------
    # Equations
    # ------------------------------------------------------------------

    @staticmethod
    def _normalize_sources(sources: Sources) -> List[Record]:
        if sources is None:
            return []
        if isinstance(sources, Mapping):
            return [sources]
        return list(sources)

    def _equation_environment(self, sources: Sources) -> Dict[str, Any]:
        environment: Dict[str, Any] = {}
        for config in self._criteria.values():
            if config.derive is None:
                continue
            try:
                environment[config.id] = self._derive(config, {})
            except ComputationError as e:
                logger.debug(
                    "Derivation skipped while building equation environment",
                    criterion=config.id,
                    error=str(e.original_error),
                )
        for source in self._normalize_sources(sources):
            environment.update(source)
        return environment

    @staticmethod
    def substitute_placeholders(template: str, environment: Mapping[str, Any]) -> str:
        """
        Replace ``{{name}}`` with the literal form of environment[name].

        Raises:
            ExpressionEvaluationError: If a value has no literal form
        """
        def replace(match) -> str:
            name = match.group(1)
            if name not in environment:
                return UNRESOLVED_TOKEN
            try:
                return to_literal(environment[name])
            except (ValueError, OverflowError) as e:
                raise ExpressionEvaluationError(f"cannot substitute '{name}': {e}") from e

        return PLACEHOLDER_PATTERN.sub(replace, template)

    def _run_equation(self, template: str, environment: Mapping[str, Any]) -> Tuple[str, bool]:
        expression = self.substitute_placeholders(template, environment)
        tree = parse_expression(expression)
        return expression, is_truthy(self._interpreter.evaluate_tree(tree, {}, expression))

    def get_processed_equation(self, template: str, sources: Sources = None) -> ProcessedEquation:
        """
        Evaluate an equation and return the intermediate artifacts.

        Args:
            template: Boolean expression with ``{{criterion}}`` placeholders
            sources: Records merged in order over the derived values

        Returns:
            ProcessedEquation with the substituted expression, the merge
            environment, the boolean result and the failure message if any
        """
        self._evaluated = True
        template = str(template)
        environment = self._equation_environment(sources)

        expression = template
        error = None
        try:
            expression, result = self._run_equation(template, environment)
        except ExpressionError as e:
            result = False
            error = str(e)
            if e.expression is not None:
                expression = e.expression
            logger.debug("Equation failed closed", template=template, error=error)

        if settings.get_nested("logging.log_equations", False):
            logger.event("equation_evaluated", template=template, expression=expression, result=result)

        return ProcessedEquation(
            template=template,
            expression=expression,
            environment=environment,
            result=result,
            error=error,
        )

    def evaluate_equation(self, template: str, sources: Sources = None) -> bool:
        """
        Evaluate an equation; any parse or evaluation failure yields False.
        """
        return self.get_processed_equation(template, sources).result

    def validate_equation(self, template: str, record: Record) -> EquationValidation:
        """
        Validate the criteria referenced by an equation, then evaluate it.

        Placeholders naming unconfigured criteria fail validation, and so do
        criteria whose derivation fails (``compute``). The equation is only
        evaluated when every referenced criterion passes; an evaluation
        failure is reported under the ``expression`` field.
        """
        self._evaluated = True
        template = str(template)
        referenced = list(dict.fromkeys(PLACEHOLDER_PATTERN.findall(template)))

        summary = ValidationSummary()
        environment: Dict[str, Any] = {}
        for criterion_id in referenced:
            config = self._criteria.get(criterion_id)
            if config is None:
                summary.add(self._failure(
                    criterion_id, "criterion", "errors.criteriaNotConfigured", {"criterion": criterion_id}
                ))
                continue
            try:
                value = self._resolve(config, record)
            except ComputationError as e:
                summary.add(self._compute_failure(config, e))
                continue
            environment[criterion_id] = value
            summary.add(validate_criterion(value, config, self.language, self.catalog, self._validator))

        if not summary.overall_success:
            return EquationValidation(summary=summary, result=False)

        try:
            _, result = self._run_equation(template, environment)
        except ExpressionError as e:
            summary.add(self._failure("expression", "expression", "errors.expression", {"message": e.reason}))
            result = False

        return EquationValidation(summary=summary, result=result)

    def __repr__(self) -> str:
        return (
            f"CriteriaResolver(criteria={len(self._criteria)}, "
            f"language={self.language!r}, functions={len(self._registry)})"
        )


__all__ = ["CriteriaResolver", "UNRESOLVED_TOKEN"]

"""
Loads criteria definitions from YAML files.

File format:

    criteria:
      - id: age
        name: Age
        rules:
          - {type: number}
          - {type: between, min: 0, max: 120}
      - id: total
        derive: "salary + (bonus || 0)"
        rules:
          - {type: custom, expression: "value >= 0"}

Custom rules in files carry an ``expression`` evaluated with the candidate
value bound to ``value``. Expressions are parsed at load time so syntax
errors surface as configuration errors instead of failing validations later.
A CriteriaResolver rebinds these expressions to its own function registry,
so functions passed to the resolver are callable from them.
"""

from dataclasses import replace
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

import yaml

from criteria_engine.errors import ConfigLoadError, ConfigurationError, ExpressionParseError
from criteria_engine.expression import Interpreter, parse_expression
from criteria_engine.functions import create_function_registry
from criteria_engine.models import CriterionConfig
from criteria_engine.rules import CustomRule

PathLike = Union[str, Path]


class ExpressionPredicate:
    """Custom-rule predicate backed by an expression over ``value``."""

    def __init__(self, expression: str, interpreter: Interpreter):
        self.expression = expression
        self.interpreter = interpreter
        self._tree = parse_expression(expression)

    def bind(self, interpreter: Interpreter) -> "ExpressionPredicate":
        """Same expression evaluated with another interpreter's functions."""
        return ExpressionPredicate(self.expression, interpreter)

    def __call__(self, value: Any) -> Any:
        return self.interpreter.evaluate_tree(self._tree, {"value": value}, self.expression)

    def __repr__(self) -> str:
        return f"ExpressionPredicate({self.expression!r})"


def bind_expression_rules(config: CriterionConfig, interpreter: Interpreter) -> CriterionConfig:
    """
    Rebind the expression predicates of a criterion's custom rules.

    Returns the config itself when it has no expression rules.
    """
    if not any(
        isinstance(rule, CustomRule) and isinstance(rule.validator, ExpressionPredicate)
        for rule in config.rules
    ):
        return config

    rules = tuple(
        rule.model_copy(update={"validator": rule.validator.bind(interpreter)})
        if isinstance(rule, CustomRule) and isinstance(rule.validator, ExpressionPredicate)
        else rule
        for rule in config.rules
    )
    return replace(config, rules=rules)


def read_yaml(file_path: PathLike) -> Any:
    """
    Read a YAML (or JSON) document.

    Raises:
        ConfigLoadError: If the file is missing or cannot be parsed
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise ConfigLoadError(str(file_path), "File not found")
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigLoadError(str(file_path), f"YAML parse error: {e}")
    except OSError as e:
        raise ConfigLoadError(str(file_path), str(e))


def _build_rule(data: Any, interpreter: Interpreter, criterion_id: str) -> Any:
    if not isinstance(data, Mapping) or data.get("type") != "custom" or "expression" not in data:
        return data

    expression = data["expression"]
    try:
        predicate = ExpressionPredicate(expression, interpreter)
    except ExpressionParseError as e:
        raise ConfigurationError(
            f"Invalid custom rule expression for criterion '{criterion_id}': {e}",
            {"criterion_id": criterion_id, "expression": expression},
        ) from e

    rule = {k: v for k, v in data.items() if k != "expression"}
    rule["validator"] = predicate
    rule.setdefault("description", expression)
    return rule


def _build_criterion(data: Any, interpreter: Interpreter, index: int) -> CriterionConfig:
    if not isinstance(data, Mapping):
        raise ConfigurationError(
            f"Criterion #{index} must be a mapping, got {type(data).__name__}",
            {"index": index},
        )

    criterion_id = data.get("id")
    if not isinstance(criterion_id, str) or not criterion_id:
        raise ConfigurationError(f"Criterion #{index} has no id", {"index": index})

    unknown = set(data.keys()) - {"id", "name", "derive", "rules"}
    if unknown:
        raise ConfigurationError(
            f"Criterion '{criterion_id}' has unknown keys: {sorted(unknown)}",
            {"criterion_id": criterion_id},
        )

    derive = data.get("derive")
    if derive is not None:
        if not isinstance(derive, str):
            raise ConfigurationError(
                f"Criterion '{criterion_id}': derive must be an expression string",
                {"criterion_id": criterion_id},
            )
        try:
            parse_expression(derive)
        except ExpressionParseError as e:
            raise ConfigurationError(
                f"Invalid derive expression for criterion '{criterion_id}': {e}",
                {"criterion_id": criterion_id, "expression": derive},
            ) from e

    rules = data.get("rules") or []
    if not isinstance(rules, list):
        raise ConfigurationError(
            f"Criterion '{criterion_id}': rules must be a list",
            {"criterion_id": criterion_id},
        )

    return CriterionConfig(
        id=criterion_id,
        name=data.get("name"),
        derive=derive,
        rules=tuple(_build_rule(rule, interpreter, criterion_id) for rule in rules),
    )


def parse_criteria(
    data: Any,
    functions: Optional[Mapping[str, Callable[..., Any]]] = None,
) -> List[CriterionConfig]:
    """
    Build criterion configs from already parsed data.

    Accepts either ``{"criteria": [...]}`` or the bare list.

    Raises:
        ConfigurationError: If an entry is invalid
    """
    if isinstance(data, Mapping):
        data = data.get("criteria")
    if not isinstance(data, list):
        raise ConfigurationError("'criteria' must be a list of criterion definitions")

    registry = create_function_registry("config")
    for name, func in (functions or {}).items():
        registry.register(name, func)
    interpreter = Interpreter(registry.view())

    return [_build_criterion(item, interpreter, index) for index, item in enumerate(data)]


def load_criteria(
    file_path: PathLike,
    functions: Optional[Mapping[str, Callable[..., Any]]] = None,
) -> List[CriterionConfig]:
    """
    Load criterion configs from a YAML file.

    Args:
        file_path: Path to the criteria file
        functions: Extra functions available to custom rule expressions

    Raises:
        ConfigLoadError: If the file is missing or malformed
        ConfigurationError: If an entry is invalid
    """
    data = read_yaml(file_path)
    if data is None:
        raise ConfigLoadError(str(file_path), "File is empty")
    return parse_criteria(data, functions)


def load_record(file_path: PathLike) -> Dict[str, Any]:
    """
    Load a data record (JSON or YAML mapping).

    Raises:
        ConfigLoadError: If the file is missing, malformed or not a mapping
    """
    data = read_yaml(file_path)
    if not isinstance(data, dict):
        raise ConfigLoadError(str(file_path), "Data file must contain a mapping")
    return data


__all__ = [
    "ExpressionPredicate",
    "bind_expression_rules",
    "read_yaml",
    "parse_criteria",
    "load_criteria",
    "load_record",
]

"""
Tests for loading criteria and records from files.
"""

import json

import pytest

from criteria_engine.config_loader import (
    ExpressionPredicate,
    load_criteria,
    load_record,
    parse_criteria,
    read_yaml,
)
from criteria_engine.errors import ConfigLoadError, ConfigurationError, ExpressionEvaluationError
from criteria_engine.expression import Interpreter
from criteria_engine.resolver import CriteriaResolver
from criteria_engine.rules import CustomRule


class TestLoadCriteria:
    """Loading criteria files"""

    def test_load(self, criteria_file):
        criteria = load_criteria(criteria_file)
        assert [c.id for c in criteria] == ["age", "total"]
        assert criteria[0].display_name == "Age"
        assert criteria[1].derive == "salary + (bonus || 0)"

    def test_custom_expression_rule(self, criteria_file):
        rule = load_criteria(criteria_file)[1].rules[0]
        assert isinstance(rule, CustomRule)
        assert isinstance(rule.validator, ExpressionPredicate)
        assert rule.description == "value >= 0"
        assert rule.validator(5) is True
        assert rule.validator(-1) is False

    def test_end_to_end(self, criteria_file):
        resolver = CriteriaResolver(load_criteria(criteria_file), language="en")

        ok = resolver.validate_all({"age": "30", "salary": 100, "bonus": None})
        assert ok.overall_success

        bad = resolver.validate_all({"age": 30, "salary": -100, "bonus": 5})
        assert bad.failed_fields[0].id == "total"
        assert bad.failed_fields[0].errors == {
            "custom": "Custom validation failed for criteria total"
        }

    def test_extra_functions(self, write_yaml):
        path = write_yaml("criteria.yaml", {
            "criteria": [
                {"id": "n", "rules": [{"type": "custom", "expression": "isEven(value)"}]},
            ]
        })
        criteria = load_criteria(path, functions={"isEven": lambda v: v % 2 == 0})
        assert criteria[0].rules[0].validator(4) is True

    def test_resolver_functions_reach_expression_rules(self, write_yaml):
        path = write_yaml("criteria.yaml", {
            "criteria": [
                {"id": "n", "rules": [{"type": "custom", "expression": "isEven(value)"}]},
            ]
        })
        criteria = load_criteria(path)
        resolver = CriteriaResolver(criteria, functions={"isEven": lambda v: v % 2 == 0})

        assert resolver.validate_all({"n": 4}).overall_success
        summary = resolver.validate_all({"n": 3})
        assert list(summary.failed_fields[0].errors) == ["custom"]
        # Loaded config keeps its own binding
        with pytest.raises(ExpressionEvaluationError):
            criteria[0].rules[0].validator(4)

    def test_bare_list(self):
        criteria = parse_criteria([{"id": "a"}, {"id": "b", "rules": None}])
        assert [c.id for c in criteria] == ["a", "b"]
        assert criteria[1].rules == ()

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigLoadError) as exc_info:
            load_criteria(tmp_path / "nope.yaml")
        assert "File not found" in str(exc_info.value)

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        with pytest.raises(ConfigLoadError):
            load_criteria(path)

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("criteria: [\n  - id: x", encoding="utf-8")
        with pytest.raises(ConfigLoadError):
            load_criteria(path)


class TestParseCriteriaErrors:
    """Invalid definitions"""

    @pytest.mark.parametrize("data", [
        {"criteria": "age"},
        {"other": []},
        [["age"]],
        [{"name": "no id"}],
        [{"id": ""}],
        [{"id": "x", "unexpected": 1}],
        [{"id": "x", "derive": 42}],
        [{"id": "x", "derive": "1 +"}],
        [{"id": "x", "rules": {"type": "exists"}}],
        [{"id": "x", "rules": [{"type": "bogus"}]}],
        [{"id": "x", "rules": [{"type": "custom", "expression": "value >"}]}],
    ])
    def test_invalid(self, data):
        with pytest.raises(ConfigurationError):
            parse_criteria(data)

    def test_error_names_criterion(self):
        with pytest.raises(ConfigurationError) as exc_info:
            parse_criteria([{"id": "total", "derive": "a +* b"}])
        assert exc_info.value.details["criterion_id"] == "total"


class TestLoadRecord:
    """Loading data records"""

    def test_json(self, tmp_path):
        path = tmp_path / "record.json"
        path.write_text(json.dumps({"age": 42, "tags": ["a"]}), encoding="utf-8")
        assert load_record(path) == {"age": 42, "tags": ["a"]}

    def test_yaml(self, write_yaml):
        path = write_yaml("record.yaml", {"name": "Ana", "active": True})
        assert load_record(path) == {"name": "Ana", "active": True}

    def test_not_a_mapping(self, write_yaml):
        with pytest.raises(ConfigLoadError):
            load_record(write_yaml("list.yaml", [1, 2]))

    def test_read_yaml_missing(self, tmp_path):
        with pytest.raises(ConfigLoadError):
            read_yaml(tmp_path / "missing.yaml")


class TestExpressionPredicate:

    def test_binds_value(self):
        predicate = ExpressionPredicate("value > 3 && value < 10", Interpreter())
        assert predicate(5) is True
        assert predicate(11) is False
        assert "value > 3" in repr(predicate)

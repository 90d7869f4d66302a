"""
Shared pytest fixtures for criteria engine tests.

Provides fixtures for:
- Sample criterion configurations
- Resolver factory
- Criteria and record files on disk
"""

from pathlib import Path
from typing import Any, Dict, List

import pytest
import yaml

from criteria_engine.models import CriterionConfig
from criteria_engine.resolver import CriteriaResolver


# =============================================================================
# Criteria Fixtures
# =============================================================================

@pytest.fixture
def sample_criteria() -> List[CriterionConfig]:
    """A small, realistic set of criteria."""
    return [
        CriterionConfig(
            id="age",
            name="Age",
            rules=[{"type": "number"}, {"type": "between", "min": 18, "max": 120}],
        ),
        CriterionConfig(
            id="status",
            rules=[{"type": "exists"}, {"type": "in", "values": ["active", "pending"]}],
        ),
        CriterionConfig(id="notes"),
    ]


@pytest.fixture
def make_resolver():
    """Factory building a resolver from configs or plain dicts."""
    def _create(criteria=(), **kwargs) -> CriteriaResolver:
        return CriteriaResolver(list(criteria), **kwargs)
    return _create


@pytest.fixture
def resolver(sample_criteria, make_resolver) -> CriteriaResolver:
    return make_resolver(sample_criteria, language="en")


# =============================================================================
# File Fixtures
# =============================================================================

@pytest.fixture
def write_yaml(tmp_path: Path):
    """Write data as YAML into tmp_path and return the path."""
    def _write(name: str, data: Any) -> Path:
        path = tmp_path / name
        path.write_text(yaml.safe_dump(data, allow_unicode=True), encoding="utf-8")
        return path
    return _write


@pytest.fixture
def criteria_file(write_yaml) -> Path:
    data: Dict[str, Any] = {
        "criteria": [
            {
                "id": "age",
                "name": "Age",
                "rules": [{"type": "number"}, {"type": "gte", "value": 18}],
            },
            {
                "id": "total",
                "derive": "salary + (bonus || 0)",
                "rules": [{"type": "custom", "expression": "value >= 0"}],
            },
        ]
    }
    return write_yaml("criteria.yaml", data)

"""
Tests for the settings loader.
"""

from pathlib import Path

import pytest

from criteria_engine import settings as settings_module
from criteria_engine.settings import (
    DEFAULTS,
    DotDict,
    _deep_merge,
    load_settings,
    reload_settings,
    validate_settings,
)


class TestDotDict:
    """Attribute access"""

    def test_dot_access(self):
        d = DotDict({"a": 1, "b": {"c": 2}})
        assert d.a == 1
        assert d.b.c == 2

    def test_missing_key_raises(self):
        with pytest.raises(AttributeError):
            _ = DotDict({}).nonexistent

    def test_get_nested(self):
        d = DotDict({"engine": {"language": "pt"}})
        assert d.get_nested("engine.language") == "pt"
        assert d.get_nested("engine.missing", "default") == "default"

    def test_set_attr(self):
        d = DotDict({})
        d.foo = "bar"
        assert d["foo"] == "bar"


class TestLoadSettings:
    """Loading from YAML"""

    def test_defaults_when_no_file(self):
        loaded = load_settings(Path("/nonexistent/settings.yaml"))
        assert loaded.engine.language == DEFAULTS["engine"]["language"]
        assert loaded.engine.max_expression_depth == DEFAULTS["engine"]["max_expression_depth"]

    def test_deep_merge_with_file(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("engine:\n  language: es\n", encoding="utf-8")

        loaded = load_settings(path)

        assert loaded.engine.language == "es"
        assert loaded.engine.default_language == DEFAULTS["engine"]["default_language"]
        assert loaded.logging.level == DEFAULTS["logging"]["level"]

    def test_empty_file(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("", encoding="utf-8")
        assert load_settings(path).engine.language == "en"

    def test_env_var_override(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.yaml"
        path.write_text("logging:\n  level: DEBUG\n", encoding="utf-8")
        monkeypatch.setenv("CRITERIA_ENGINE_SETTINGS", str(path))

        assert load_settings().logging.level == "DEBUG"

    def test_bundled_file_matches_defaults(self):
        bundled = load_settings(settings_module.SETTINGS_FILE)
        assert validate_settings(bundled) == []
        assert bundled.engine.language == "en"

    def test_deep_merge_does_not_mutate_base(self):
        base = {"a": {"b": 1}}
        merged = _deep_merge(base, {"a": {"c": 2}})
        assert merged == {"a": {"b": 1, "c": 2}}
        assert base == {"a": {"b": 1}}


class TestValidateSettings:
    """Validation"""

    def test_valid_defaults(self):
        assert validate_settings(DotDict(DEFAULTS)) == []

    @pytest.mark.parametrize("path,value,fragment", [
        (("engine", "max_expression_depth"), 0, "max_expression_depth"),
        (("engine", "max_expression_length"), "long", "max_expression_length"),
        (("engine", "language"), "", "engine.language"),
        (("logging", "level"), "LOUD", "logging.level"),
    ])
    def test_invalid_values(self, path, value, fragment):
        data = _deep_merge({}, DEFAULTS)
        data[path[0]] = dict(data[path[0]])
        data[path[0]][path[1]] = value
        errors = validate_settings(DotDict(data))
        assert any(fragment in e for e in errors)


class TestReloadSettings:
    """Reloading updates the shared instance"""

    def test_reload_in_place(self, tmp_path, monkeypatch):
        shared = settings_module.settings
        path = tmp_path / "reload.yaml"
        path.write_text("engine:\n  language: pt\n", encoding="utf-8")
        monkeypatch.setenv("CRITERIA_ENGINE_SETTINGS", str(path))

        try:
            reloaded = reload_settings()
            assert reloaded is shared
            assert shared.engine.language == "pt"
        finally:
            monkeypatch.delenv("CRITERIA_ENGINE_SETTINGS")
            reload_settings()

        assert shared.engine.language == "en"

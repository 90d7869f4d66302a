"""
Tests for the message catalog.
"""

import pytest

from criteria_engine.catalog import Catalog, substitute
from criteria_engine.errors import ConfigLoadError


class TestDefaultCatalog:
    """Bundled messages"""

    def test_languages(self):
        catalog = Catalog.default()
        assert set(catalog.languages) >= {"en", "pt", "es"}
        assert catalog.default_language == "en"

    def test_default_is_cached(self):
        assert Catalog.default() is Catalog.default()

    def test_get(self):
        catalog = Catalog.default()
        assert catalog.get("en", "errors.numberType") == "Criteria {{criterion}} must be a number"
        assert catalog.get("es", "errors.numberType") == "El criterio {{criterion}} debe ser un número"

    def test_unknown_language_falls_back(self):
        catalog = Catalog.default()
        assert catalog.get("de", "errors.numberType") == catalog.get("en", "errors.numberType")

    def test_unknown_key(self):
        assert Catalog.default().get("en", "errors.nope") is None

    def test_every_language_has_the_same_keys(self):
        catalog = Catalog.default()
        english = set(catalog._messages["en"])
        for language in ("pt", "es"):
            assert set(catalog._messages[language]) == english


class TestCatalogLookup:
    """Fallback and rendering"""

    @pytest.fixture
    def catalog(self):
        return Catalog(
            {
                "en": {"greet": "Hello {{name}}", "only_en": "English"},
                "pt": {"greet": "Olá {{name}}"},
            },
            default_language="en",
        )

    def test_missing_key_falls_back_to_default_language(self, catalog):
        assert catalog.get("pt", "only_en") == "English"

    def test_render(self, catalog):
        assert catalog.render("pt", "greet", {"name": "Ana"}) == "Olá Ana"

    def test_render_leaves_unknown_placeholders(self, catalog):
        assert catalog.render("en", "greet", {}) == "Hello {{name}}"

    def test_render_fallback(self, catalog):
        assert catalog.render("en", "missing", fallback="default") == "default"
        assert catalog.render("en", "missing") is None

    def test_contains(self, catalog):
        assert "pt" in catalog
        assert "fr" not in catalog


class TestSubstitute:

    def test_repeated_placeholders(self):
        assert substitute("{{a}}-{{a}}", {"a": 1}) == "1-1"

    def test_non_string_params(self):
        assert substitute("{{v}}", {"v": 2.0}) == "2"
        assert substitute("{{v}}", {"v": [1, "x"]}) == '[1, "x"]'

    def test_replacement_text_is_literal(self):
        assert substitute("{{a}}", {"a": r"\1 {{b}}"}) == r"\1 {{b}}"


class TestFromYaml:

    def test_load(self, tmp_path):
        path = tmp_path / "messages.yaml"
        path.write_text(
            "default_language: pt\nlanguages:\n  pt:\n    k: 'v {{x}}'\n",
            encoding="utf-8",
        )
        catalog = Catalog.from_yaml(path)
        assert catalog.default_language == "pt"
        assert catalog.render("en", "k", {"x": 1}) == "v 1"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigLoadError):
            Catalog.from_yaml(tmp_path / "none.yaml")

    def test_malformed(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("languages: [unclosed", encoding="utf-8")
        with pytest.raises(ConfigLoadError):
            Catalog.from_yaml(path)

    def test_languages_required(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("default_language: en\n", encoding="utf-8")
        with pytest.raises(ConfigLoadError):
            Catalog.from_yaml(path)

"""
Message catalog for validation errors.

Templates are keyed by language and message key and may contain
``{{param}}`` placeholders:

    catalog = Catalog.default()
    catalog.render("pt", "errors.betweenRange", {"criterion": "age", "min": 0, "max": 120})

Lookups for an unknown language or a key missing in that language fall back
to the catalog's default language.
"""

import re
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from criteria_engine.errors import ConfigLoadError
from criteria_engine.settings import settings
from criteria_engine.values import to_text

MESSAGES_FILE = Path(__file__).parent / "data" / "messages.yaml"

PLACEHOLDER_PATTERN = re.compile(r"\{\{([A-Za-z0-9_]+)\}\}")


class Catalog:
    """Read-only language -> key -> template lookup."""

    def __init__(
        self,
        messages: Mapping[str, Mapping[str, str]],
        default_language: Optional[str] = None,
    ):
        self._messages: Dict[str, Dict[str, str]] = {
            str(language): dict(templates or {})
            for language, templates in messages.items()
        }
        self.default_language = default_language or settings.get_nested(
            "engine.default_language", "en"
        )

    @classmethod
    def from_yaml(cls, file_path: Optional[Path] = None) -> "Catalog":
        """
        Load a catalog from a YAML file.

        Raises:
            ConfigLoadError: If the file is missing or malformed
        """
        file_path = Path(file_path or MESSAGES_FILE)
        if not file_path.exists():
            raise ConfigLoadError(str(file_path), "File not found")
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigLoadError(str(file_path), f"YAML parse error: {e}")

        if not isinstance(data, dict):
            raise ConfigLoadError(str(file_path), "Catalog file must contain a mapping")
        languages = data.get("languages")
        if not isinstance(languages, dict):
            raise ConfigLoadError(str(file_path), "'languages' mapping is required")
        return cls(languages, data.get("default_language"))

    @classmethod
    def default(cls) -> "Catalog":
        """Bundled catalog (en, pt, es), loaded once."""
        return _default_catalog()

    @property
    def languages(self) -> List[str]:
        return list(self._messages.keys())

    def has_language(self, language: str) -> bool:
        return language in self._messages

    def get(self, language: str, key: str) -> Optional[str]:
        """Template for key in language, falling back to the default language."""
        template = self._messages.get(language, {}).get(key)
        if template is None and language != self.default_language:
            template = self._messages.get(self.default_language, {}).get(key)
        return template

    def render(
        self,
        language: str,
        key: str,
        params: Optional[Mapping[str, Any]] = None,
        fallback: Optional[str] = None,
    ) -> Optional[str]:
        """
        Look up a template and substitute its placeholders.

        Placeholders without a matching param are left as-is. Returns
        ``fallback`` when no template exists for the key.
        """
        template = self.get(language, key)
        if template is None:
            return fallback
        return substitute(template, params or {})

    def __contains__(self, language: str) -> bool:
        return self.has_language(language)

    def __repr__(self) -> str:
        return f"Catalog(languages={self.languages!r}, default={self.default_language!r})"


def substitute(template: str, params: Mapping[str, Any]) -> str:
    """Replace ``{{name}}`` tokens with the textual form of params[name]."""
    def replace(match: "re.Match[str]") -> str:
        name = match.group(1)
        if name not in params:
            return match.group(0)
        return to_text(params[name])

    return PLACEHOLDER_PATTERN.sub(replace, template)


@lru_cache(maxsize=1)
def _default_catalog() -> Catalog:
    return Catalog.from_yaml(MESSAGES_FILE)


__all__ = ["Catalog", "substitute", "MESSAGES_FILE", "PLACEHOLDER_PATTERN"]

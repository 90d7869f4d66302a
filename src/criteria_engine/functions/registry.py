"""
Function Registry for the expression language.

Functions and record fields share one namespace at evaluation time; the
registry holds the function half. Built-ins are registered once at import
time and every resolver works on its own copy, so extra functions registered
on one resolver are invisible to others.

Registries are written during setup and only read afterwards. Registering a
name twice is a configuration error, never an overwrite.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional

from criteria_engine.errors import ConfigurationError, FunctionAlreadyRegisteredError


ExpressionFunction = Callable[..., Any]


@dataclass(frozen=True)
class FunctionMetadata:
    """
    Metadata for a registered function.

    Attributes:
        name: Name visible to expressions
        func: The callable, invoked with positional values
        description: Human-readable description
        category: Category for grouping (math, array, string, ...)
        builtin: Whether the function ships with the engine
    """
    name: str
    func: ExpressionFunction
    description: str = ""
    category: str = "general"
    builtin: bool = False


class FunctionRegistry:
    """
    Registry of functions callable from expressions.

    Example:
        registry = FunctionRegistry("custom")

        @registry.function("double", category="math")
        def double(x):
            return x * 2

        registry.register("triple", lambda x: x * 3)
    """

    def __init__(self, name: str = "functions"):
        self.name = name
        self._metadata: Dict[str, FunctionMetadata] = {}
        self._functions: Dict[str, ExpressionFunction] = {}
        self._categories: Dict[str, List[str]] = {}

    def function(
        self,
        name: str,
        description: str = "",
        category: str = "general",
        builtin: bool = False,
    ) -> Callable[[ExpressionFunction], ExpressionFunction]:
        """
        Decorator for registering a function.

        Raises:
            FunctionAlreadyRegisteredError: If the name is taken
        """
        def decorator(func: ExpressionFunction) -> ExpressionFunction:
            self._add(FunctionMetadata(
                name=name,
                func=func,
                description=description or (func.__doc__ or "").strip(),
                category=category,
                builtin=builtin,
            ))
            return func

        return decorator

    def register(
        self,
        name: str,
        func: ExpressionFunction,
        description: str = "",
        category: str = "custom",
    ) -> None:
        """
        Register a function programmatically.

        Args:
            name: Name visible to expressions (case-sensitive)
            func: Callable taking positional values
            description: Human-readable description
            category: Category for grouping

        Raises:
            ConfigurationError: If name is empty or func is not callable
            FunctionAlreadyRegisteredError: If the name is already registered
        """
        self.function(name, description, category)(func)

    def _add(self, metadata: FunctionMetadata) -> None:
        if not isinstance(metadata.name, str) or not metadata.name:
            raise ConfigurationError(
                "Function name must be a non-empty string",
                {"registry": self.name},
            )
        if not callable(metadata.func):
            raise ConfigurationError(
                f"Function '{metadata.name}' is not callable",
                {"registry": self.name, "function_name": metadata.name},
            )
        if metadata.name in self._metadata:
            raise FunctionAlreadyRegisteredError(metadata.name, self.name)

        self._metadata[metadata.name] = metadata
        self._functions[metadata.name] = metadata.func
        self._categories.setdefault(metadata.category, []).append(metadata.name)

    def get(self, name: str) -> Optional[FunctionMetadata]:
        """Get metadata for a function."""
        return self._metadata.get(name)

    def has(self, name: str) -> bool:
        """Check if a function exists."""
        return name in self._metadata

    def list_all(self) -> List[str]:
        """List all function names."""
        return list(self._metadata.keys())

    def list_by_category(self, category: str) -> List[str]:
        """List function names in a category."""
        return list(self._categories.get(category, []))

    def get_categories(self) -> List[str]:
        """List all categories."""
        return list(self._categories.keys())

    def view(self) -> Mapping[str, ExpressionFunction]:
        """Live read-only view used by the interpreter."""
        return MappingProxyType(self._functions)

    def snapshot(self) -> Mapping[str, ExpressionFunction]:
        """Read-only copy of the current name -> function mapping."""
        return MappingProxyType(dict(self._functions))

    def copy(self, name: str) -> "FunctionRegistry":
        """Create an independent registry with the same functions."""
        clone = FunctionRegistry(name)
        for metadata in self._metadata.values():
            clone._add(metadata)
        return clone

    def get_documentation(self) -> str:
        """
        Generate documentation for all functions in the registry.

        Returns:
            Markdown-formatted documentation string
        """
        lines = [f"# {self.name.replace('_', ' ').title()} Functions\n"]
        lines.append(f"Total functions: {len(self._metadata)}\n")

        for category in sorted(self._categories.keys()):
            lines.append(f"\n## {category.title()}\n")
            for name in sorted(self._categories[category]):
                meta = self._metadata[name]
                lines.append(f"### `{name}`")
                if meta.description:
                    lines.append(f"\n{meta.description}")
                lines.append("")

        return "\n".join(lines)

    def __len__(self) -> int:
        return len(self._metadata)

    def __contains__(self, name: str) -> bool:
        return name in self._metadata

    def __repr__(self) -> str:
        return f"FunctionRegistry(name={self.name!r}, functions={len(self._metadata)})"


__all__ = ["FunctionRegistry", "FunctionMetadata", "ExpressionFunction"]

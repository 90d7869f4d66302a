"""
Functions callable from criteria expressions.

- FunctionRegistry: name -> callable registry with metadata
- builtin_registry: math, array, type, string and date helpers
- create_function_registry: independent copy of the built-ins
"""

from criteria_engine.functions.registry import (
    ExpressionFunction,
    FunctionMetadata,
    FunctionRegistry,
)
from criteria_engine.functions.builtin import builtin_registry


def create_function_registry(name: str = "functions") -> FunctionRegistry:
    """Create a registry pre-populated with the built-in functions."""
    return builtin_registry.copy(name)


__all__ = [
    "ExpressionFunction",
    "FunctionMetadata",
    "FunctionRegistry",
    "builtin_registry",
    "create_function_registry",
]

"""
AST node types for the expression language.

Nodes are frozen so parsed trees can be cached and shared between threads.
"""

from dataclasses import dataclass
from typing import Any, Tuple


@dataclass(frozen=True)
class Node:
    position: int


@dataclass(frozen=True)
class Literal(Node):
    value: Any


@dataclass(frozen=True)
class Identifier(Node):
    name: str


@dataclass(frozen=True)
class ArrayLiteral(Node):
    items: Tuple[Node, ...]


@dataclass(frozen=True)
class Spread(Node):
    """``...name`` inside a call argument list."""
    name: str


@dataclass(frozen=True)
class Lambda(Node):
    """Single-parameter arrow function ``x => body``."""
    param: str
    body: Node


@dataclass(frozen=True)
class Call(Node):
    name: str
    args: Tuple[Node, ...]


@dataclass(frozen=True)
class Unary(Node):
    operator: str
    operand: Node


@dataclass(frozen=True)
class Binary(Node):
    operator: str
    left: Node
    right: Node


@dataclass(frozen=True)
class Logical(Node):
    """Short-circuit ``&&`` / ``||``."""
    operator: str
    left: Node
    right: Node


__all__ = [
    "Node",
    "Literal",
    "Identifier",
    "ArrayLiteral",
    "Spread",
    "Lambda",
    "Call",
    "Unary",
    "Binary",
    "Logical",
]

"""
Tree-walking interpreter for the criteria expression language.

The environment is a chain of mappings looked up in order:
lambda parameters, then the data record, then the function registry.
A record field therefore shadows a function with the same name.

The grammar has no loops, assignment or recursion, so evaluation time is
proportional to the size of the tree and no effect beyond calling registered
functions is possible.
"""

import math
from collections import ChainMap
from typing import Any, Callable, Dict, Mapping, Optional

from criteria_engine.errors import ExpressionError, ExpressionEvaluationError
from criteria_engine.expression.nodes import (
    ArrayLiteral,
    Binary,
    Call,
    Identifier,
    Lambda,
    Literal,
    Logical,
    Node,
    Spread,
    Unary,
)
from criteria_engine.expression.parser import parse_expression
from criteria_engine.values import (
    compare_values,
    describe,
    is_number,
    is_truthy,
    is_value,
    normalize,
    to_text,
    values_equal,
)

Environment = Mapping[str, Any]


class LambdaClosure:
    """
    Callable produced by evaluating ``x => body``.

    Bound to the environment it was created in; accepts exactly one argument.
    Higher-order functions (filter, any, all) receive these as predicates.
    """

    def __init__(self, node: Lambda, env: ChainMap, interpreter: "Interpreter"):
        self.node = node
        self.env = env
        self.interpreter = interpreter

    @property
    def param(self) -> str:
        return self.node.param

    def __call__(self, *args: Any) -> Any:
        if len(args) != 1:
            raise ExpressionEvaluationError(
                f"lambda '{self.param} => ...' expects exactly 1 argument, got {len(args)}",
                position=self.node.position,
            )
        scope = self.env.new_child({self.param: args[0]})
        return self.interpreter.evaluate_node(self.node.body, scope)

    def __repr__(self) -> str:
        return f"LambdaClosure(param={self.param!r})"


class Interpreter:
    """
    Evaluates expression trees against a record and a function registry.

    Example:
        interpreter = Interpreter(builtin_registry.snapshot())
        interpreter.evaluate("sum(...scores) / count(scores)", {"scores": [1, 2, 3]})
    """

    def __init__(self, functions: Optional[Mapping[str, Callable[..., Any]]] = None):
        self.functions = functions if functions is not None else {}
        self._handlers: Dict[type, Callable[[Any, ChainMap], Any]] = {
            Literal: self._literal,
            Identifier: self._identifier,
            ArrayLiteral: self._array,
            Call: self._call,
            Unary: self._unary,
            Binary: self._binary,
            Logical: self._logical,
            Lambda: self._lambda,
            Spread: self._spread,
        }

    def evaluate(self, expression: str, record: Optional[Environment] = None) -> Any:
        """
        Parse and evaluate an expression.

        Args:
            expression: Expression source text
            record: Data record whose fields are visible as identifiers

        Returns:
            The resulting value

        Raises:
            ExpressionParseError: If the expression is malformed
            ExpressionEvaluationError: If evaluation fails
        """
        tree = parse_expression(expression)
        return self.evaluate_tree(tree, record, expression)

    def evaluate_tree(
        self,
        tree: Node,
        record: Optional[Environment] = None,
        expression: Optional[str] = None,
    ) -> Any:
        """Evaluate an already parsed tree and normalize the result."""
        env = ChainMap(dict(record or {}), self.functions)
        try:
            result = self.evaluate_node(tree, env)
        except RecursionError:
            raise ExpressionEvaluationError(
                "expression is nested too deeply", expression
            ) from None
        except ExpressionError as e:
            if e.expression is None and expression is not None:
                raise type(e)(e.reason, expression, e.position) from (e.__cause__ or e)
            raise
        if not is_value(result):
            raise ExpressionEvaluationError(
                f"expression evaluated to unsupported {describe(result)}", expression
            )
        return normalize(result)

    def evaluate_node(self, node: Node, env: ChainMap) -> Any:
        handler = self._handlers.get(type(node))
        if handler is None:
            raise ExpressionEvaluationError(
                f"unsupported node {type(node).__name__}", position=node.position
            )
        return handler(node, env)

    # ------------------------------------------------------------------
    # Node handlers
    # ------------------------------------------------------------------

    def _literal(self, node: Literal, env: ChainMap) -> Any:
        return node.value

    def _lookup(self, name: str, position: int, env: ChainMap) -> Any:
        try:
            return env[name]
        except KeyError:
            raise ExpressionEvaluationError(
                f"Unknown identifier '{name}'", position=position
            ) from None

    def _identifier(self, node: Identifier, env: ChainMap) -> Any:
        return self._lookup(node.name, node.position, env)

    def _array(self, node: ArrayLiteral, env: ChainMap) -> Any:
        return [self.evaluate_node(item, env) for item in node.items]

    def _lambda(self, node: Lambda, env: ChainMap) -> Any:
        return LambdaClosure(node, env, self)

    def _spread(self, node: Spread, env: ChainMap) -> Any:
        value = self._lookup(node.name, node.position, env)
        if not isinstance(value, (list, tuple)):
            raise ExpressionEvaluationError(
                f"cannot spread '{node.name}': expected array, got {describe(value)}",
                position=node.position,
            )
        return list(value)

    def _call(self, node: Call, env: ChainMap) -> Any:
        func = self._lookup(node.name, node.position, env)
        if not callable(func):
            raise ExpressionEvaluationError(
                f"'{node.name}' is not a function", position=node.position
            )

        args = []
        for arg in node.args:
            if isinstance(arg, Spread):
                args.extend(self._spread(arg, env))
            else:
                args.append(self.evaluate_node(arg, env))

        try:
            result = func(*args)
        except ExpressionError:
            raise
        except Exception as e:
            raise ExpressionEvaluationError(
                f"function '{node.name}' failed: {e}", position=node.position
            ) from e

        if isinstance(result, tuple):
            result = list(result)
        if not (is_value(result) or callable(result)):
            raise ExpressionEvaluationError(
                f"function '{node.name}' returned unsupported {describe(result)}",
                position=node.position,
            )
        return result

    def _unary(self, node: Unary, env: ChainMap) -> Any:
        operand = self.evaluate_node(node.operand, env)
        if node.operator == "!":
            return not is_truthy(operand)
        if not is_number(operand):
            raise ExpressionEvaluationError(
                f"unary '-' expects a number, got {describe(operand)}",
                position=node.position,
            )
        return -operand

    def _logical(self, node: Logical, env: ChainMap) -> Any:
        # Short-circuit; the deciding operand is returned as-is
        left = self.evaluate_node(node.left, env)
        if node.operator == "&&":
            if not is_truthy(left):
                return left
            return self.evaluate_node(node.right, env)
        if is_truthy(left):
            return left
        return self.evaluate_node(node.right, env)

    def _binary(self, node: Binary, env: ChainMap) -> Any:
        left = self.evaluate_node(node.left, env)
        right = self.evaluate_node(node.right, env)
        operator = node.operator

        if operator == "==":
            return values_equal(left, right)
        if operator == "!=":
            return not values_equal(left, right)

        if operator in (">", ">=", "<", "<="):
            try:
                order = compare_values(left, right)
            except TypeError as e:
                raise ExpressionEvaluationError(
                    f"'{operator}': {e}", position=node.position
                ) from None
            if operator == ">":
                return order > 0
            if operator == ">=":
                return order >= 0
            if operator == "<":
                return order < 0
            return order <= 0

        if operator == "+" and not (is_number(left) and is_number(right)):
            return self._concat(left, right, node)

        if not (is_number(left) and is_number(right)):
            raise ExpressionEvaluationError(
                f"'{operator}' expects numbers, got {describe(left)} and {describe(right)}",
                position=node.position,
            )

        if operator == "/" and right == 0:
            raise ExpressionEvaluationError("division by zero", position=node.position)

        try:
            if operator == "+":
                result = left + right
            elif operator == "-":
                result = left - right
            elif operator == "*":
                result = left * right
            else:
                result = left / right
        except (OverflowError, ValueError) as e:
            raise ExpressionEvaluationError(
                f"'{operator}' out of range: {e}", position=node.position
            ) from e

        if isinstance(result, float) and math.isnan(result):
            raise ExpressionEvaluationError(
                f"'{operator}' produced NaN", position=node.position
            )
        return result

    def _concat(self, left: Any, right: Any, node: Binary) -> str:
        left_ok = isinstance(left, str) or is_number(left)
        right_ok = isinstance(right, str) or is_number(right)
        if left_ok and right_ok and (isinstance(left, str) or isinstance(right, str)):
            try:
                return to_text(left) + to_text(right)
            except ValueError as e:
                raise ExpressionEvaluationError(
                    f"'+' cannot convert number to text: {e}", position=node.position
                ) from e
        raise ExpressionEvaluationError(
            f"'+' expects numbers or strings, got {describe(left)} and {describe(right)}",
            position=node.position,
        )


def evaluate_expression(
    expression: str,
    record: Optional[Environment] = None,
    functions: Optional[Mapping[str, Callable[..., Any]]] = None,
) -> Any:
    """Evaluate an expression with a one-off interpreter."""
    return Interpreter(functions).evaluate(expression, record)


__all__ = ["Interpreter", "LambdaClosure", "evaluate_expression"]

"""
Tests for the value model: kinds, equality, ordering, truthiness, literals.
"""

import math

import pytest

from criteria_engine.values import (
    ValueKind,
    compare_values,
    describe,
    format_number,
    is_number,
    is_truthy,
    is_value,
    kind_of,
    normalize,
    to_literal,
    to_text,
    values_equal,
)


class TestKinds:
    """Classification of native values"""

    @pytest.mark.parametrize("value,kind", [
        (None, ValueKind.NULL),
        (1, ValueKind.NUMBER),
        (1.5, ValueKind.NUMBER),
        ("x", ValueKind.STRING),
        (True, ValueKind.BOOLEAN),
        ([1, 2], ValueKind.ARRAY),
        ((1, 2), ValueKind.ARRAY),
        ({"a": 1}, ValueKind.OBJECT),
    ])
    def test_kind_of(self, value, kind):
        assert kind_of(value) is kind

    def test_bool_is_not_number(self):
        assert not is_number(True)
        assert is_number(0)

    def test_unsupported_type_raises(self):
        with pytest.raises(TypeError):
            kind_of(object())

    def test_is_value_recursive(self):
        assert is_value({"a": [1, "b", None, {"c": True}]})
        assert not is_value([1, object()])
        assert not is_value({1: "non-string key"})

    def test_normalize_converts_tuples(self):
        assert normalize((1, (2, 3))) == [1, [2, 3]]

    def test_describe(self):
        assert describe([]) == "array"
        assert describe(object()) == "object"


class TestEquality:
    """Structural equality"""

    def test_primitives(self):
        assert values_equal("John", "John")
        assert not values_equal("John", "Jane")
        assert values_equal(2, 2.0)

    def test_bool_and_number_differ(self):
        assert not values_equal(True, 1)
        assert not values_equal(0, False)

    def test_arrays_elementwise(self):
        assert values_equal([1, [2, "x"]], (1, (2, "x")))
        assert not values_equal([1, 2], [1, 2, 3])

    def test_objects_keywise(self):
        assert values_equal({"a": 1, "b": [1]}, {"b": [1], "a": 1})
        assert not values_equal({"a": 1}, {"a": 1, "b": 2})

    def test_null(self):
        assert values_equal(None, None)
        assert not values_equal(None, 0)


class TestOrdering:
    """Ordering of numbers and strings"""

    def test_numbers(self):
        assert compare_values(1, 2) < 0
        assert compare_values(2, 2.0) == 0
        assert compare_values(3, 2) > 0

    def test_strings(self):
        assert compare_values("a", "b") < 0

    def test_mixed_kinds_raise(self):
        with pytest.raises(TypeError):
            compare_values(1, "1")
        with pytest.raises(TypeError):
            compare_values(True, False)

    def test_nan_raises(self):
        with pytest.raises(TypeError):
            compare_values(math.nan, 1)


class TestTruthiness:
    """Boolean interpretation"""

    @pytest.mark.parametrize("value", [None, False, 0, 0.0, math.nan, ""])
    def test_falsy(self, value):
        assert is_truthy(value) is False

    @pytest.mark.parametrize("value", [True, 1, -0.5, "0", " ", [], {}])
    def test_truthy(self, value):
        assert is_truthy(value) is True


class TestTextForms:
    """Canonical text and literal encoding"""

    def test_format_number(self):
        assert format_number(3.0) == "3"
        assert format_number(-3.5) == "-3.5"
        assert format_number(7) == "7"
        assert format_number(math.inf) == "Infinity"

    def test_literal_quotes_strings(self):
        assert to_literal('say "hi"') == '"say \\"hi\\""'

    def test_literal_scalars(self):
        assert to_literal(None) == "null"
        assert to_literal(True) == "true"
        assert to_literal(12) == "12"

    def test_literal_array(self):
        assert to_literal([1, "a", False]) == '[1, "a", false]'

    def test_to_text_leaves_strings_unquoted(self):
        assert to_text("abc") == "abc"
        assert to_text(4.0) == "4"

"""
Tests for branch condition evaluation.

Covers dotted-path lookup and the coercive comparison rules.
"""
import math

import pytest

from nodeflow.engine.conditions import (
    UNDEFINED,
    compare,
    evaluate_condition,
    resolve_path,
    select_output_port,
    to_js_string,
    to_number,
)
from nodeflow.nodes.branch_nodes import BranchNode


class TestResolvePath:

    def test_nested_lookup(self):
        assert resolve_path({"user": {"age": 30}}, "user.age") == 30

    def test_missing_key_is_undefined(self):
        assert resolve_path({"user": {}}, "user.age") is UNDEFINED

    def test_missing_intermediate_is_undefined(self):
        assert resolve_path({}, "user.age.years") is UNDEFINED

    def test_scalar_intermediate_is_undefined(self):
        assert resolve_path({"user": "bob"}, "user.age") is UNDEFINED

    def test_list_index(self):
        assert resolve_path({"items": ["a", "b"]}, "items.1") == "b"
        assert resolve_path({"items": ["a"]}, "items.3") is UNDEFINED

    def test_empty_path(self):
        assert resolve_path({"a": 1}, "") is UNDEFINED


class TestCoercion:

    @pytest.mark.parametrize("value,expected", [
        (5, "5"),
        (5.0, "5"),
        (1.5, "1.5"),
        (1e-7, "1e-7"),
        (-2.5e-8, "-2.5e-8"),
        (1.5e-5, "0.000015"),
        (1e-6, "0.000001"),
        (1e21, "1e+21"),
        (2.5e22, "2.5e+22"),
        (True, "true"),
        (None, "null"),
        (UNDEFINED, "undefined"),
        ({"a": 1}, "[object Object]"),
        ([1, [2, 3], None], "1,2,3,"),
        ("text", "text"),
    ])
    def test_to_js_string(self, value, expected):
        assert to_js_string(value) == expected

    @pytest.mark.parametrize("value,expected", [
        ("10", 10.0),
        (" 12 ", 12.0),
        ("", 0.0),
        ("1e3", 1000.0),
        ("0x10", 16.0),
        (".5", 0.5),
        (True, 1.0),
        (None, 0.0),
        ([], 0.0),
        ([7], 7.0),
    ])
    def test_to_number(self, value, expected):
        assert to_number(value) == expected

    @pytest.mark.parametrize("value", ["abc", "1_000", "12px", UNDEFINED, {"a": 1}, [1, 2]])
    def test_to_number_nan(self, value):
        assert math.isnan(to_number(value))


class TestCompare:

    def test_equals_on_string_representation(self):
        payload = {"initialValue": "hello world"}
        assert evaluate_condition("initialValue", "equals", "hello world", payload)
        assert not evaluate_condition("initialValue", "notEquals", "hello world", payload)

    def test_numeric_equals_string(self):
        assert evaluate_condition("n", "equals", "5", {"n": 5})
        assert evaluate_condition("n", "equals", 5, {"n": "5"})

    def test_small_float_contains_exponent(self):
        assert evaluate_condition("v", "equals", "1e-7", {"v": 1e-7})
        assert evaluate_condition("v", "contains", "e-7", {"v": 3e-7})

    def test_missing_value_equals_undefined(self):
        assert evaluate_condition("nope", "equals", "undefined", {})

    def test_contains(self):
        assert evaluate_condition("msg", "contains", "world", {"msg": "hello world"})
        assert not evaluate_condition("msg", "contains", "moon", {"msg": "hello world"})

    def test_greater_than_coerces_numbers(self):
        assert evaluate_condition("v", "greaterThan", "5", {"v": "10"})
        assert not evaluate_condition("v", "lessThan", "5", {"v": "10"})

    def test_non_numeric_comparison_is_false(self):
        assert not evaluate_condition("v", "greaterThan", "abc", {"v": "10"})
        assert not evaluate_condition("v", "lessThan", "abc", {"v": "10"})

    def test_unknown_operator(self):
        with pytest.raises(ValueError):
            compare("a", "startsWith", "a")


class TestSelectOutputPort:

    def test_true_port(self):
        node = BranchNode("if", path="initialValue", comparison="equals", value="hello world")
        assert select_output_port(node, {"initialValue": "hello world"}) == "true"

    def test_false_port(self):
        node = BranchNode("if", path="initialValue", comparison="notEquals", value="hello world")
        assert select_output_port(node, {"initialValue": "hello world"}) == "false"

"""Tests for Choice condition labels."""

import pytest

from sfn_console.layout.conditions import (
    PLACEHOLDER_LABEL,
    summarize_condition,
    variable_name,
)
from sfn_console.models.definition import ChoiceRule


def rule(**fields):
    return ChoiceRule.model_validate({"Next": "Target", **fields})


class TestSummarizeCondition:
    """Test the recognised operators and the placeholder fallback."""

    @pytest.mark.parametrize("fields, expected", [
        ({"Variable": "$.status", "StringEquals": "done"}, 'status = "done"'),
        ({"Variable": "$.flag", "BooleanEquals": True}, "flag = true"),
        ({"Variable": "$.flag", "BooleanEquals": False}, "flag = false"),
        ({"Variable": "$.n", "NumericEquals": 3}, "n = 3"),
        ({"Variable": "$.n", "NumericGreaterThan": 2.5}, "n > 2.5"),
        ({"Variable": "$.n", "NumericLessThan": 0}, "n < 0"),
        ({"Variable": "$.n", "NumericGreaterThanEquals": 10}, "n >= 10"),
        ({"Variable": "$.n", "NumericLessThanEquals": -1}, "n <= -1"),
        ({"Variable": "$.item", "IsPresent": True}, "item exists"),
        ({"Variable": "$.item", "IsPresent": False}, "item !exists"),
    ])
    def test_recognised_operators(self, fields, expected):
        """Test each supported operator's label."""
        assert summarize_condition(rule(**fields)) == expected

    def test_uses_last_path_segment(self):
        """Test that only the last JSONPath segment is shown."""
        label = summarize_condition(rule(Variable="$.order.customer.tier", StringEquals="gold"))
        assert label == 'tier = "gold"'

    @pytest.mark.parametrize("fields", [
        {"Variable": "$.a", "StringEqualsPath": "$.b"},
        {"Variable": "$.ts", "TimestampGreaterThan": "2024-01-01T00:00:00Z"},
        {"Variable": "$.name", "StringMatches": "log-*"},
        {"And": [{"Variable": "$.a", "NumericEquals": 1}, {"Variable": "$.b", "NumericEquals": 2}]},
        {"Not": {"Variable": "$.a", "IsNull": True}},
        {"StringEquals": "orphan"},
    ])
    def test_unrecognised_conditions_get_placeholder(self, fields):
        """Test that unsupported conditions are never guessed at."""
        assert summarize_condition(rule(**fields)) == PLACEHOLDER_LABEL

    def test_first_listed_operator_wins(self):
        """Test operator precedence when a rule carries several keys."""
        label = summarize_condition(
            rule(Variable="$.x", NumericLessThan=5, StringEquals="five")
        )
        assert label == 'x = "five"'


def test_variable_name():
    """Test JSONPath tail extraction."""
    assert variable_name("$.a.b") == "b"
    assert variable_name("$") == "$"

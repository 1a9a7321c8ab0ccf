"""Tests for workflow definition parsing."""

import json

import pytest

from sfn_console.models.definition import (
    ChoiceState,
    FailState,
    MalformedDefinitionError,
    ParallelState,
    StateType,
    TaskState,
    WorkflowDefinition,
    parse_definition,
)
from tests.fixtures.definitions import (
    catch_definition,
    choice_definition,
    parallel_definition,
)


class TestParseDefinition:
    """Test normalization of the accepted input shapes."""

    def test_parse_mapping(self):
        """Test parsing an already-decoded mapping."""
        definition = parse_definition(choice_definition())
        assert definition.start_at == "CheckOrder"
        assert set(definition.states) == {"CheckOrder", "Ship", "Review", "Cancel"}

    def test_parse_json_text(self):
        """Test parsing JSON text."""
        definition = parse_definition(json.dumps(catch_definition()))
        assert isinstance(definition.states["Charge"], TaskState)

    def test_parse_model_passthrough(self):
        """Test that a validated model is returned as-is."""
        model = WorkflowDefinition.model_validate(catch_definition())
        assert parse_definition(model) is model

    @pytest.mark.parametrize("bad, reason", [
        (None, "no definition"),
        ("{not json", "invalid JSON"),
        ("[]", "expected a JSON object"),
        ({"StartAt": "X", "States": {}}, "States is empty"),
        ({"States": {"A": {"Type": "Pass", "End": True}}}, "missing StartAt"),
        ({"StartAt": "B", "States": {"A": {"Type": "Pass", "End": True}}}, "not a defined state"),
        ({"StartAt": "A", "States": {"A": {"Type": "Mystery"}}}, "validation error"),
    ])
    def test_malformed(self, bad, reason):
        """Test that each malformed shape raises with a useful reason."""
        with pytest.raises(MalformedDefinitionError, match=reason):
            parse_definition(bad)

    def test_malformed_is_value_error(self):
        """Test that callers can catch the error as ValueError."""
        with pytest.raises(ValueError):
            parse_definition("")


class TestStateVariants:
    """Test the closed sum type of states."""

    def test_dispatch_on_type(self):
        """Test that each Type maps to its own model."""
        definition = parse_definition(choice_definition())
        assert isinstance(definition.states["CheckOrder"], ChoiceState)
        assert isinstance(definition.states["Cancel"], FailState)
        assert definition.states["Review"].kind == StateType.WAIT

    def test_choice_fields(self):
        """Test Choice rules and default."""
        choice = parse_definition(choice_definition()).states["CheckOrder"]
        assert choice.default == "Cancel"
        assert [rule.next for rule in choice.choices] == ["Ship", "Review"]
        assert choice.choices[0].variable == "$.order.status"
        assert choice.choices[0].operators == {"StringEquals": "paid"}

    def test_parallel_branches_are_definitions(self):
        """Test that branches parse recursively."""
        parallel = parse_definition(parallel_definition()).states["FanOut"]
        assert isinstance(parallel, ParallelState)
        assert len(parallel.branches) == 2
        assert parallel.branches[0].start_at == "Resize"
        assert isinstance(parallel.branches[1].states["Upload"], TaskState)
        assert parallel.next == "Notify"

    def test_catch_rules(self):
        """Test Catch parsing and the has_catch helper."""
        task = parse_definition(catch_definition()).states["Charge"]
        assert task.has_catch
        assert task.catch[0].error_equals == ["States.ALL"]
        assert task.catch[0].next == "ChargeFailed"

    def test_end_flag_defaults_false(self):
        """Test that End is optional."""
        task = parse_definition(catch_definition()).states["Charge"]
        assert task.end is False
        assert parse_definition(catch_definition()).states["Receipt"].end is True

    def test_unknown_keys_ignored(self):
        """Test that ASL keys irrelevant to layout are tolerated."""
        definition = parse_definition({
            "StartAt": "A",
            "TimeoutSeconds": 30,
            "States": {
                "A": {
                    "Type": "Task",
                    "Resource": "arn:a",
                    "Parameters": {"x.$": "$.x"},
                    "Retry": [{"ErrorEquals": ["States.ALL"], "MaxAttempts": 2}],
                    "End": True,
                },
            },
        })
        assert definition.states["A"].resource == "arn:a"

    def test_branch_validation_is_lenient(self):
        """Test that an incomplete branch does not reject the definition."""
        definition = parse_definition({
            "StartAt": "P",
            "States": {
                "P": {"Type": "Parallel", "Branches": [{"States": {}}], "End": True},
            },
        })
        assert definition.states["P"].branches[0].start_at is None


class TestDeepNesting:
    """Deeply nested input is malformed, not a crash."""

    def test_nested_json_text(self):
        """Test that text too deep for the JSON decoder is rejected."""
        with pytest.raises(MalformedDefinitionError, match="nested too deeply"):
            parse_definition("[" * 200000)

    def test_nested_json_bytes(self):
        """Test the same for bytes input."""
        with pytest.raises(MalformedDefinitionError):
            parse_definition(b"{\"a\": " * 100000)

"""Workflow definition models for Amazon States Language documents.

This module provides Pydantic schemas for the state machine definitions
returned by ``DescribeStateMachine`` (the ``definition`` field). They describe
only what the diagram needs: states, their transitions, branching, parallel
sub-flows and error handling. Every other ASL key (Parameters, ResultPath,
Retry, ItemProcessor, ...) is ignored.

States form a closed sum type discriminated by the ASL ``Type`` field. Each
variant carries only the fields that kind of state can have:

    Task / Pass / Wait / Map  -> Next, End, Catch
    Parallel                  -> Next, End, Catch, Branches
    Choice                    -> Choices, Default
    Succeed / Fail            -> (terminal)

An unknown ``Type`` makes the whole definition malformed.

Usage:
    from sfn_console.models.definition import parse_definition

    definition = parse_definition('{"StartAt": "A", "States": {...}}')
    first = definition.states[definition.start_at]
"""

import json
import logging
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)


class MalformedDefinitionError(ValueError):
    """Raised when a definition cannot be parsed or is structurally incomplete."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Malformed state machine definition: {reason}")


class StateType(str, Enum):
    """ASL state kinds understood by the layout engines."""
    TASK = "Task"
    PASS = "Pass"
    WAIT = "Wait"
    SUCCEED = "Succeed"
    FAIL = "Fail"
    CHOICE = "Choice"
    PARALLEL = "Parallel"
    MAP = "Map"


_ASL_CONFIG = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class CatchRule(BaseModel):
    """One entry of a state's ``Catch`` list.

    Attributes:
        error_equals: Error names this rule matches
        next: State to transition to when the rule matches
    """

    model_config = _ASL_CONFIG

    error_equals: List[str] = Field(default_factory=list, alias="ErrorEquals")
    next: Optional[str] = Field(default=None, alias="Next")


class ChoiceRule(BaseModel):
    """One entry of a Choice state's ``Choices`` list.

    Comparison operators (``StringEquals``, ``NumericGreaterThan``, ...) and
    compound rules (``And``/``Or``/``Not``) are kept as extra fields so the
    condition summary can inspect them without this model knowing every
    operator ASL defines.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow", frozen=True)

    variable: Optional[str] = Field(default=None, alias="Variable")
    next: Optional[str] = Field(default=None, alias="Next")

    @property
    def operators(self) -> Dict[str, Any]:
        """Comparison/compound keys of the rule, as written in the document."""
        return dict(self.model_extra or {})


class BaseState(BaseModel):
    """Fields shared by every state kind."""

    model_config = _ASL_CONFIG

    comment: Optional[str] = Field(default=None, alias="Comment")
    catch: List[CatchRule] = Field(default_factory=list, alias="Catch")

    @property
    def kind(self) -> StateType:
        return StateType(self.type)

    @property
    def has_catch(self) -> bool:
        return len(self.catch) > 0


class FlowState(BaseState):
    """A state that either continues to ``Next`` or ends the flow."""

    next: Optional[str] = Field(default=None, alias="Next")
    end: bool = Field(default=False, alias="End")


class TaskState(FlowState):
    type: Literal["Task"] = Field(default="Task", alias="Type")
    resource: Optional[str] = Field(default=None, alias="Resource")


class PassState(FlowState):
    type: Literal["Pass"] = Field(default="Pass", alias="Type")


class WaitState(FlowState):
    type: Literal["Wait"] = Field(default="Wait", alias="Type")


class MapState(FlowState):
    """Map states are drawn as a single node; the iterator is not expanded."""

    type: Literal["Map"] = Field(default="Map", alias="Type")


class ParallelState(FlowState):
    type: Literal["Parallel"] = Field(default="Parallel", alias="Type")
    branches: List["WorkflowDefinition"] = Field(default_factory=list, alias="Branches")


class ChoiceState(BaseState):
    type: Literal["Choice"] = Field(default="Choice", alias="Type")
    choices: List[ChoiceRule] = Field(default_factory=list, alias="Choices")
    default: Optional[str] = Field(default=None, alias="Default")


class SucceedState(BaseState):
    type: Literal["Succeed"] = Field(default="Succeed", alias="Type")


class FailState(BaseState):
    type: Literal["Fail"] = Field(default="Fail", alias="Type")
    error: Optional[str] = Field(default=None, alias="Error")
    cause: Optional[str] = Field(default=None, alias="Cause")


State = Annotated[
    Union[
        TaskState,
        PassState,
        WaitState,
        MapState,
        ParallelState,
        ChoiceState,
        SucceedState,
        FailState,
    ],
    Field(discriminator="type"),
]


class WorkflowDefinition(BaseModel):
    """A state machine definition, or one branch of a Parallel state.

    Branch definitions are validated leniently: a branch whose ``StartAt`` is
    missing or dangling is still a valid model and is skipped at layout time.
    Top-level completeness is checked by :func:`parse_definition`.

    Attributes:
        start_at: Name of the entry state
        states: State name -> state
        comment: Optional ASL comment
    """

    model_config = _ASL_CONFIG

    start_at: Optional[str] = Field(default=None, alias="StartAt")
    states: Dict[str, State] = Field(default_factory=dict, alias="States")
    comment: Optional[str] = Field(default=None, alias="Comment")

    def get(self, name: Optional[str]) -> Optional[BaseState]:
        """Look up a state by name; None for missing or dangling names."""
        if name is None:
            return None
        return self.states.get(name)


ParallelState.model_rebuild()
WorkflowDefinition.model_rebuild()


def parse_definition(definition: Any) -> WorkflowDefinition:
    """Normalize a definition into a validated WorkflowDefinition.

    Args:
        definition: JSON text (str or bytes), an already-parsed mapping, or a
            WorkflowDefinition

    Returns:
        WorkflowDefinition whose ``start_at`` is a key of ``states``

    Raises:
        MalformedDefinitionError: If the input is missing, unparseable, fails
            validation, has no states, or its start state is not defined
    """
    if definition is None:
        raise MalformedDefinitionError("no definition given")

    if isinstance(definition, WorkflowDefinition):
        parsed = definition
    else:
        if isinstance(definition, (str, bytes, bytearray)):
            try:
                definition = json.loads(definition)
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                raise MalformedDefinitionError(f"invalid JSON ({e})")
            except RecursionError:
                raise MalformedDefinitionError("invalid JSON (nested too deeply)")

        if not isinstance(definition, dict):
            raise MalformedDefinitionError(
                f"expected a JSON object, got {type(definition).__name__}"
            )

        try:
            parsed = WorkflowDefinition.model_validate(definition)
        except ValidationError as e:
            raise MalformedDefinitionError(
                f"{e.error_count()} validation error(s): {e.errors()[0]['msg']}"
            )
        except RecursionError:
            raise MalformedDefinitionError("definition nested too deeply to validate")

    if not parsed.start_at:
        raise MalformedDefinitionError("missing StartAt")
    if not parsed.states:
        raise MalformedDefinitionError("States is empty")
    if parsed.start_at not in parsed.states:
        raise MalformedDefinitionError(
            f"StartAt '{parsed.start_at}' is not a defined state"
        )

    logger.debug(
        f"Parsed definition: start={parsed.start_at}, {len(parsed.states)} states"
    )
    return parsed


__all__ = [
    "MalformedDefinitionError",
    "StateType",
    "CatchRule",
    "ChoiceRule",
    "BaseState",
    "FlowState",
    "TaskState",
    "PassState",
    "WaitState",
    "MapState",
    "ParallelState",
    "ChoiceState",
    "SucceedState",
    "FailState",
    "State",
    "WorkflowDefinition",
    "parse_definition",
]

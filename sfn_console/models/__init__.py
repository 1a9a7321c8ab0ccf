"""Models for state machine diagrams.

Input side: Amazon States Language definitions (closed sum type of states).
Output side: the positioned node/edge graph consumed by the diagram renderer.
"""

from .definition import (
    MalformedDefinitionError,
    StateType,
    CatchRule,
    ChoiceRule,
    WorkflowDefinition,
    parse_definition,
)
from .layout_graph import (
    NodePosition,
    BoundingBox,
    NodeRole,
    EdgeKind,
    Port,
    PositionedNode,
    LayoutEdge,
    LayoutGraph,
)

__all__ = [
    # Definitions
    "MalformedDefinitionError",
    "StateType",
    "CatchRule",
    "ChoiceRule",
    "WorkflowDefinition",
    "parse_definition",

    # Layout graph
    "NodePosition",
    "BoundingBox",
    "NodeRole",
    "EdgeKind",
    "Port",
    "PositionedNode",
    "LayoutEdge",
    "LayoutGraph",
]

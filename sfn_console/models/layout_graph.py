"""Layout graph returned by the layout engines.

This module provides the schemas handed to the diagram renderer:
- Node positions (x, y coordinates in layout units) and their bounding box
- Positioned nodes, including the synthesized Start/End markers
- Directed edges annotated with a semantic kind, label and ports

The renderer treats ``kind`` on nodes and edges as a closed enumeration for
styling (colour by state kind, dash style by edge kind). Coordinates are
consistent layout units, not pixels; top-left origin, y grows downward.

A LayoutGraph is produced fresh for every layout call and is owned by the
caller once returned. Nodes are frozen so a position, once assigned, cannot be
rewritten.
"""

import logging
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

import networkx as nx
from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class NodePosition(BaseModel):
    """Position of a single node in 2D layout space.

    Attributes:
        x: Horizontal coordinate
        y: Vertical coordinate
    """

    model_config = ConfigDict(frozen=True)

    x: float = Field(..., description="Horizontal coordinate")
    y: float = Field(..., description="Vertical coordinate")

    def to_list(self) -> List[float]:
        """Convert to list format [x, y].

        Returns:
            Position as [x, y] list
        """
        return [self.x, self.y]


class NodeRole(str, Enum):
    """Category of a node: a real state or a synthesized marker."""
    STATE = "state"
    ENTRY = "entry"
    EXIT = "exit"


class EdgeKind(str, Enum):
    """Semantic kind of an edge; the renderer picks colour and dash from it."""
    SEQUENTIAL = "sequential"
    CONDITIONAL = "conditional"
    DEFAULT = "default"
    ERROR = "error"
    ENTRY = "entry"
    EXIT = "exit"


class Port(str, Enum):
    """Connection point on a node.

    PRIMARY is the normal flow (in at the top, out at the bottom); ERROR is the
    side port used by catch transitions.
    """
    PRIMARY = "primary"
    ERROR = "error"


# Edge kinds drawn with a dashed stroke
DASHED_EDGE_KINDS = frozenset({EdgeKind.DEFAULT, EdgeKind.ERROR})

ENTRY_KIND = "Start"
EXIT_KIND = "End"

_CAMEL = ConfigDict(populate_by_name=True, frozen=True)


class NodeFlags(BaseModel):
    model_config = _CAMEL

    is_branch_member: bool = Field(default=False, alias="isBranchMember")
    has_error_output: bool = Field(default=False, alias="hasErrorOutput")


class PositionedNode(BaseModel):
    """A node with its final coordinates.

    Attributes:
        id: Unique node id (state name, branch-scoped id, or marker id)
        kind: ASL state type, or "Start"/"End" for markers
        role: Whether this is a real state or a synthesized marker
        label: Display text
        x: Horizontal coordinate
        y: Vertical coordinate
        flags: Rendering hints
    """

    model_config = _CAMEL

    id: str = Field(..., description="Unique node id")
    kind: str = Field(..., description="ASL state type or marker kind")
    role: NodeRole = Field(default=NodeRole.STATE, description="State or marker")
    label: str = Field(..., description="Display text")
    x: float = Field(..., description="Horizontal coordinate")
    y: float = Field(..., description="Vertical coordinate")
    flags: NodeFlags = Field(default_factory=NodeFlags)

    @property
    def position(self) -> NodePosition:
        return NodePosition(x=self.x, y=self.y)

    @property
    def is_marker(self) -> bool:
        return self.role != NodeRole.STATE


class BoundingBox(BaseModel):
    """Extent of the node anchors of a layout, used to fit the viewport.

    Attributes:
        min_x: Leftmost anchor x
        max_x: Rightmost anchor x
        min_y: Topmost anchor y
        max_y: Bottommost anchor y
    """

    model_config = ConfigDict(frozen=True)

    min_x: float
    max_x: float
    min_y: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @classmethod
    def around(cls, nodes: Iterable[PositionedNode]) -> Optional["BoundingBox"]:
        """Smallest box holding every node anchor; None when there are no nodes."""
        anchors = [(node.x, node.y) for node in nodes]
        if not anchors:
            return None
        xs, ys = zip(*anchors)
        return cls(min_x=min(xs), max_x=max(xs), min_y=min(ys), max_y=max(ys))

    def padded(self, margin: float) -> "BoundingBox":
        """Grow the box by ``margin`` on every side."""
        return BoundingBox(
            min_x=self.min_x - margin,
            max_x=self.max_x + margin,
            min_y=self.min_y - margin,
            max_y=self.max_y + margin,
        )

    def to_viewport(self) -> Dict[str, float]:
        """Renderer viewport rectangle: top-left corner plus size."""
        return {"x": self.min_x, "y": self.min_y, "width": self.width, "height": self.height}


class LayoutEdge(BaseModel):
    """A directed, annotated edge between two positioned nodes.

    Attributes:
        id: Unique edge id
        source: Source node id
        target: Target node id
        kind: Semantic kind (sequential, conditional, default, error, entry, exit)
        label: Optional label text (condition summary, "default", "error")
        source_port: Port the edge leaves from, when not the primary one
        target_port: Port the edge enters, when not the primary one
    """

    model_config = _CAMEL

    id: str = Field(..., description="Unique edge id")
    source: str = Field(..., description="Source node id")
    target: str = Field(..., description="Target node id")
    kind: EdgeKind = Field(..., description="Semantic kind")
    label: Optional[str] = Field(default=None, description="Label text")
    source_port: Optional[Port] = Field(default=None, alias="sourcePort")
    target_port: Optional[Port] = Field(default=None, alias="targetPort")

    @property
    def dashed(self) -> bool:
        """Whether the renderer should draw this edge dashed."""
        return self.kind in DASHED_EDGE_KINDS


class LayoutGraph(BaseModel):
    """Positioned node/edge graph for one workflow definition.

    Attributes:
        nodes: Nodes in traversal order
        edges: Edges in emission order
        warnings: Notes about references that were dropped during layout
    """

    nodes: List[PositionedNode] = Field(default_factory=list)
    edges: List[LayoutEdge] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    @classmethod
    def empty(cls) -> "LayoutGraph":
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self.nodes and not self.edges

    def node_ids(self) -> List[str]:
        return [node.id for node in self.nodes]

    def node(self, node_id: str) -> Optional[PositionedNode]:
        """Get a node by id, or None if absent."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def edges_from(self, node_id: str) -> List[LayoutEdge]:
        return [edge for edge in self.edges if edge.source == node_id]

    def edges_to(self, node_id: str) -> List[LayoutEdge]:
        return [edge for edge in self.edges if edge.target == node_id]

    @property
    def bounding_box(self) -> Optional[BoundingBox]:
        """Bounding box of all node anchors (None for an empty graph)."""
        return BoundingBox.around(self.nodes)

    def to_dict(self) -> Dict[str, Any]:
        """Export the renderer payload: ``{"nodes": [...], "edges": [...]}``.

        Keys are camelCase, enums are plain strings and unset optional fields
        are omitted.
        """
        return {
            "nodes": [
                node.model_dump(mode="json", by_alias=True, exclude_none=True)
                for node in self.nodes
            ],
            "edges": [
                edge.model_dump(mode="json", by_alias=True, exclude_none=True)
                for edge in self.edges
            ],
        }

    def to_networkx(self) -> nx.MultiDiGraph:
        """Build a NetworkX multigraph with 'pos' attributes on nodes.

        Edges are keyed by edge id, so parallel edges between the same pair
        of nodes (e.g. a Choice rule and a catch rule) are all kept.

        Returns:
            MultiDiGraph mirroring this layout
        """
        graph = nx.MultiDiGraph()
        for node in self.nodes:
            graph.add_node(
                node.id,
                kind=node.kind,
                role=node.role.value,
                label=node.label,
                pos=node.position.to_list(),
            )
        for edge in self.edges:
            if edge.source not in graph or edge.target not in graph:
                logger.warning(f"Edge {edge.id} references a node not in the layout")
            graph.add_edge(
                edge.source,
                edge.target,
                key=edge.id,
                kind=edge.kind.value,
                label=edge.label,
            )
        return graph


__all__ = [
    "NodePosition",
    "BoundingBox",
    "NodeRole",
    "EdgeKind",
    "Port",
    "DASHED_EDGE_KINDS",
    "ENTRY_KIND",
    "EXIT_KIND",
    "NodeFlags",
    "PositionedNode",
    "LayoutEdge",
    "LayoutGraph",
]

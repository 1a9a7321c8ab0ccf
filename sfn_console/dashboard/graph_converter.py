"""Convert layout graphs to React Flow format."""

from typing import Any, Dict, List, Optional

from sfn_console.models.layout_graph import (
    EdgeKind,
    LayoutEdge,
    LayoutGraph,
    Port,
    PositionedNode,
)

# Minimap / legend colours by node kind (lower-case)
NODE_COLORS: Dict[str, str] = {
    "start": "#4ade80",
    "end": "#f87171",
    "fail": "#f87171",
    "choice": "#fbbf24",
    "succeed": "#4ade80",
    "wait": "#f472b6",
    "parallel": "#a78bfa",
    "map": "#2dd4bf",
    "pass": "#38bdf8",
}
DEFAULT_NODE_COLOR = "#818cf8"

LEGEND_KINDS = ["Task", "Choice", "Pass", "Wait", "Succeed", "Fail", "Parallel", "Map"]

BRANCH_STROKE = "#a78bfa"

EDGE_STROKES: Dict[EdgeKind, str] = {
    EdgeKind.ENTRY: "#4ade80",
    EdgeKind.SEQUENTIAL: "#6b7280",
    EdgeKind.CONDITIONAL: "#fbbf24",
    EdgeKind.DEFAULT: "#6b7280",
    EdgeKind.ERROR: "#f87171",
    EdgeKind.EXIT: "#f87171",
}

EDGE_DASHES: Dict[EdgeKind, str] = {
    EdgeKind.DEFAULT: "6,4",
    EdgeKind.ERROR: "4,4",
}

LABEL_STYLES: Dict[EdgeKind, Dict[str, Any]] = {
    EdgeKind.CONDITIONAL: {"fill": "#fbbf24", "fontSize": 11, "fontWeight": 600},
    EdgeKind.DEFAULT: {"fill": "#9ca3af", "fontSize": 11},
    EdgeKind.ERROR: {"fill": "#f87171", "fontSize": 11, "fontWeight": 600},
}

LABEL_BACKGROUND = {
    "labelBgStyle": {"fill": "#1e2030", "stroke": "#3a3d4e", "strokeWidth": 1},
    "labelBgPadding": [4, 8],
    "labelBgBorderRadius": 4,
}

SOURCE_HANDLES = {Port.PRIMARY: "bottom", Port.ERROR: "right"}
TARGET_HANDLES = {Port.PRIMARY: "top", Port.ERROR: "left"}

# Room around the outermost node anchors when fitting the viewport
VIEWPORT_MARGIN = 80.0


def node_color(kind: Optional[str]) -> str:
    """Minimap colour for a node kind; unknown kinds get the Task colour."""
    return NODE_COLORS.get((kind or "").lower(), DEFAULT_NODE_COLOR)


def legend() -> List[Dict[str, str]]:
    """Ordered legend entries shown under the diagram."""
    return [{"type": kind, "color": node_color(kind)} for kind in LEGEND_KINDS]


class ReactFlowConverter:
    """Convert LayoutGraph objects to React Flow elements."""

    def layout_to_reactflow(self, graph: LayoutGraph) -> Dict[str, List[Dict[str, Any]]]:
        """Convert a layout graph to React Flow format.

        Args:
            graph: Positioned layout graph

        Returns:
            Dict with 'nodes' and 'edges' lists in React Flow format
        """
        nodes_by_id = {node.id: node for node in graph.nodes}

        elements = {
            "nodes": [self._convert_node(node) for node in graph.nodes],
            "edges": [],
        }

        for edge in graph.edges:
            elements["edges"].append(self._convert_edge(edge, nodes_by_id))

        return elements

    def fit_view(
        self, graph: LayoutGraph, margin: float = VIEWPORT_MARGIN
    ) -> Optional[Dict[str, float]]:
        """Viewport rectangle that shows the whole diagram.

        Args:
            graph: Positioned layout graph
            margin: Padding around the outermost node anchors

        Returns:
            Dict with x, y, width and height, or None for an empty graph
        """
        bbox = graph.bounding_box
        if bbox is None:
            return None
        return bbox.padded(margin).to_viewport()

    def _convert_node(self, node: PositionedNode) -> Dict[str, Any]:
        return {
            "id": node.id,
            "type": "custom",
            "position": {"x": node.x, "y": node.y},
            "data": {
                "label": node.label,
                "type": node.kind,
                "isBranch": node.flags.is_branch_member,
                "hasCatch": node.flags.has_error_output,
            },
        }

    def _convert_edge(
        self, edge: LayoutEdge, nodes_by_id: Dict[str, PositionedNode]
    ) -> Dict[str, Any]:
        """Convert one edge, including label and handle styling.

        Args:
            edge: Layout edge
            nodes_by_id: Nodes of the same graph, for branch detection

        Returns:
            React Flow edge dict
        """
        style: Dict[str, Any] = {
            "stroke": self._get_stroke(edge, nodes_by_id),
            "strokeWidth": 2,
        }
        if edge.kind in EDGE_DASHES:
            style["strokeDasharray"] = EDGE_DASHES[edge.kind]

        converted: Dict[str, Any] = {
            "id": edge.id,
            "source": edge.source,
            "target": edge.target,
            "type": "smoothstep",
            "style": style,
        }

        if edge.kind == EdgeKind.ENTRY:
            converted["animated"] = True

        if edge.label:
            converted["label"] = edge.label
            converted["labelStyle"] = LABEL_STYLES.get(edge.kind, {"fontSize": 11})
            converted.update(LABEL_BACKGROUND)

        if edge.source_port is not None:
            converted["sourceHandle"] = SOURCE_HANDLES[edge.source_port]
        if edge.target_port is not None:
            converted["targetHandle"] = TARGET_HANDLES[edge.target_port]

        return converted

    def _get_stroke(
        self, edge: LayoutEdge, nodes_by_id: Dict[str, PositionedNode]
    ) -> str:
        """Parallel fan-out and rejoin edges are drawn in the branch colour."""
        if edge.kind == EdgeKind.SEQUENTIAL:
            source = nodes_by_id.get(edge.source)
            target = nodes_by_id.get(edge.target)
            if source is not None and target is not None:
                entering = source.kind == "Parallel" and target.flags.is_branch_member
                leaving = source.flags.is_branch_member and not target.flags.is_branch_member
                if entering or leaving:
                    return BRANCH_STROKE
        return EDGE_STROKES[edge.kind]

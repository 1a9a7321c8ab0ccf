"""Top-down layout engine for state machine definitions.

Places states by traversal order from ``StartAt``: each state goes one row
below its predecessor, Choice targets and Parallel branches fan out
horizontally beneath their parent, and catch targets go to a side lane on the
right. Workflow definitions are shallow and mostly linear, so this recursive
stacking gives a readable top-to-bottom flow that follows how the document is
written. It is fully deterministic, so the same input always gives the same
diagram.

Traversal state lives in a LayoutContext created per call and passed through
every recursive step. Nothing is shared between calls, so one engine instance
can serve concurrent requests.

Node ids (a "~n" suffix is added when a state name already holds the id):
    main graph      -> state name
    branch states   -> "<parallel node id>::<branch index>::<state name>"
    entry marker    -> "__START__"
    exit markers    -> "__END_<node id>__"

Markers are told apart from states by NodeRole, never by id.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple

from sfn_console.config.settings import LayoutSpacing, get_layout_spacing, is_enabled
from sfn_console.layout.conditions import summarize_condition
from sfn_console.layout.engines.base import LayoutEngine
from sfn_console.models.definition import (
    BaseState,
    ChoiceState,
    FailState,
    FlowState,
    MalformedDefinitionError,
    ParallelState,
    SucceedState,
    WorkflowDefinition,
    parse_definition,
)
from sfn_console.models.layout_graph import (
    ENTRY_KIND,
    EXIT_KIND,
    EdgeKind,
    LayoutEdge,
    LayoutGraph,
    NodeFlags,
    NodePosition,
    NodeRole,
    Port,
    PositionedNode,
)

logger = logging.getLogger(__name__)

ENTRY_NODE_ID = "__START__"
BRANCH_ID_SEPARATOR = "::"
COLLISION_SUFFIX = "~"

ENTRY_KEY = ("entry",)


def exit_node_id(node_id: str) -> str:
    return f"__END_{node_id}__"


def branch_node_id(parallel_id: str, index: int, name: str) -> str:
    return BRANCH_ID_SEPARATOR.join([parallel_id, str(index), name])


@dataclass
class NodeIds:
    """Node id allocation for one layout call.

    State names are free text, so a definition can name a state ``__START__``
    or ``P::0::A`` and spell an id the engine would derive for something else.
    Every key (a state in a scope, or a marker) is bound to one id the first
    time it is asked for; a preferred id that is already bound gets a ``~n``
    suffix instead.
    """

    assigned: Dict[Tuple[Any, ...], str] = field(default_factory=dict)
    taken: Set[str] = field(default_factory=set)

    def claim(self, key: Tuple[Any, ...], preferred: str) -> str:
        node_id = self.assigned.get(key)
        if node_id is not None:
            return node_id

        node_id, n = preferred, 0
        while node_id in self.taken:
            n += 1
            node_id = f"{preferred}{COLLISION_SUFFIX}{n}"
        self.assigned[key] = node_id
        self.taken.add(node_id)
        return node_id


@dataclass
class Scope:
    """One namespace of states: the main graph or a single Parallel branch.

    Attributes:
        definition: States visible in this scope
        ids: Id allocator shared by every scope of the call
        parallel_id: Node id of the owning Parallel state (None for main graph)
        index: Branch index within the owning Parallel state
        visited: State names already laid out in this scope
        tails: Node ids that complete this branch (rejoined by the caller)
    """

    definition: WorkflowDefinition
    ids: NodeIds
    parallel_id: Optional[str] = None
    index: int = 0
    visited: Set[str] = field(default_factory=set)
    tails: List[str] = field(default_factory=list)

    @property
    def is_branch(self) -> bool:
        return self.parallel_id is not None

    def node_id(self, name: str) -> str:
        if self.parallel_id is None:
            preferred = name
        else:
            preferred = branch_node_id(self.parallel_id, self.index, name)
        return self.ids.claim((self.parallel_id, self.index, name), preferred)

    def branch(self, parallel_id: str, index: int, definition: WorkflowDefinition) -> "Scope":
        return Scope(definition=definition, ids=self.ids, parallel_id=parallel_id, index=index)

    def state(self, name: Optional[str]) -> Optional[BaseState]:
        return self.definition.get(name)


@dataclass
class LayoutContext:
    """Working set for a single layout call."""

    spacing: LayoutSpacing
    exit_markers: bool = True
    error_lane: bool = True
    ids: NodeIds = field(default_factory=NodeIds)
    nodes: List[PositionedNode] = field(default_factory=list)
    edges: List[LayoutEdge] = field(default_factory=list)
    positions: Dict[str, NodePosition] = field(default_factory=dict)
    occupied: Set[Tuple[float, float]] = field(default_factory=set)
    warnings: List[str] = field(default_factory=list)
    edge_ids: Set[str] = field(default_factory=set)

    def add_node(
        self,
        node_id: str,
        kind: str,
        label: str,
        x: float,
        y: float,
        role: NodeRole = NodeRole.STATE,
        flags: Optional[NodeFlags] = None,
    ) -> PositionedNode:
        """Place a node; the returned node carries the x actually used.

        A slot already holding a node pushes the new one right, one column
        at a time, so no two nodes share a coordinate.
        """
        # Positions are write-once
        if node_id in self.positions:
            raise ValueError(f"Node {node_id} is already positioned")
        while (x, y) in self.occupied:
            x += self.spacing.horizontal

        node = PositionedNode(
            id=node_id,
            kind=kind,
            role=role,
            label=label,
            x=x,
            y=y,
            flags=flags or NodeFlags(),
        )
        self.nodes.append(node)
        self.positions[node_id] = node.position
        self.occupied.add((x, y))
        return node

    def connect(
        self,
        source: str,
        target: str,
        kind: EdgeKind,
        label: Optional[str] = None,
        source_port: Optional[Port] = None,
        target_port: Optional[Port] = None,
    ) -> LayoutEdge:
        base_id = f"{kind.value}:{source}->{target}"
        edge_id, n = base_id, 0
        while edge_id in self.edge_ids:
            n += 1
            edge_id = f"{base_id}#{n}"
        self.edge_ids.add(edge_id)

        edge = LayoutEdge(
            id=edge_id,
            source=source,
            target=target,
            kind=kind,
            label=label,
            source_port=source_port,
            target_port=target_port,
        )
        self.edges.append(edge)
        return edge

    def drop(self, source: str, what: str, target: str) -> None:
        """Record a transition whose target is not a defined state."""
        message = f"{source}: {what} target '{target}' is not a defined state"
        logger.debug(f"Dropping dangling reference ({message})")
        self.warnings.append(message)

    def to_graph(self) -> LayoutGraph:
        return LayoutGraph(nodes=self.nodes, edges=self.edges, warnings=self.warnings)


class TopDownLayoutEngine(LayoutEngine):
    """Recursive top-down layout with horizontal fan-out and an error lane."""

    def __init__(
        self,
        spacing: Optional[LayoutSpacing] = None,
        exit_markers: Optional[bool] = None,
        error_lane: Optional[bool] = None,
    ):
        """Initialize the engine.

        Args:
            spacing: Spacing constants (read from the environment if None)
            exit_markers: Draw End markers (feature flag 'exit_markers' if None)
            error_lane: Put catch-only Fail states beside the thrower
                (feature flag 'error_lane_fail_states' if None)
        """
        self._spacing = spacing or get_layout_spacing()
        self._exit_markers_enabled = (
            is_enabled("exit_markers") if exit_markers is None else exit_markers
        )
        self._error_lane_enabled = (
            is_enabled("error_lane_fail_states") if error_lane is None else error_lane
        )

    @property
    def name(self) -> str:
        return "top-down"

    @property
    def supports_branches(self) -> bool:
        return True

    @property
    def supports_error_lanes(self) -> bool:
        return True

    @property
    def spacing(self) -> LayoutSpacing:
        return self._spacing

    def layout(
        self,
        definition: Any,
        options: Optional[Dict[str, Any]] = None,
    ) -> LayoutGraph:
        """Compute the layout graph for a definition.

        Malformed input never raises: it is logged and an empty graph is
        returned so the viewer can show an empty state.

        Args:
            definition: JSON text, parsed mapping or WorkflowDefinition
            options: Optional spacing overrides ('horizontal', 'vertical', 'branch')

        Returns:
            LayoutGraph with positioned nodes and annotated edges
        """
        try:
            parsed = parse_definition(definition)
        except MalformedDefinitionError as e:
            logger.warning(f"{e}; returning empty layout")
            return LayoutGraph.empty()

        context = LayoutContext(
            spacing=self._resolve_spacing(options),
            exit_markers=self._exit_markers_enabled,
            error_lane=self._error_lane_enabled,
        )
        scope = Scope(definition=parsed, ids=context.ids)

        # Main-graph states keep their names; synthesized ids yield to them
        for name in parsed.states:
            scope.node_id(name)

        entry_id = context.ids.claim(ENTRY_KEY, ENTRY_NODE_ID)
        context.add_node(
            entry_id, kind=ENTRY_KIND, label="Start", x=0.0, y=0.0,
            role=NodeRole.ENTRY,
        )
        context.connect(entry_id, scope.node_id(parsed.start_at), EdgeKind.ENTRY)

        try:
            self._process(context, scope, parsed.start_at, 0.0, context.spacing.vertical)
        except RecursionError:
            logger.error(
                f"Definition too deeply nested to lay out "
                f"({len(parsed.states)} states); returning empty layout"
            )
            return LayoutGraph.empty()

        graph = context.to_graph()
        logger.debug(
            f"Laid out {len(graph.nodes)} nodes and {len(graph.edges)} edges "
            f"({len(graph.warnings)} dropped references)"
        )
        return graph

    def _resolve_spacing(self, options: Optional[Dict[str, Any]]) -> LayoutSpacing:
        if not options:
            return self._spacing
        overrides = {
            key: value for key, value in options.items()
            if key in LayoutSpacing.model_fields
        }
        return LayoutSpacing(**{**self._spacing.model_dump(), **overrides})

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def _process(
        self, ctx: LayoutContext, scope: Scope, name: str, x: float, y: float
    ) -> float:
        """Lay out a state and everything first reached from it.

        Returns:
            The first free y below the laid-out subtree
        """
        state = scope.state(name)
        if state is None or name in scope.visited:
            return y

        scope.visited.add(name)
        node_id = scope.node_id(name)
        x = ctx.add_node(
            node_id,
            kind=state.kind.value,
            label=name,
            x=x,
            y=y,
            flags=NodeFlags(
                is_branch_member=scope.is_branch,
                has_error_output=state.has_catch,
            ),
        ).x

        if isinstance(state, ParallelState):
            return self._parallel(ctx, scope, node_id, state, x, y)
        if isinstance(state, ChoiceState):
            return self._choice(ctx, scope, node_id, state, x, y)
        if isinstance(state, (SucceedState, FailState)):
            deferred = self._catches(ctx, scope, node_id, state, x, y)
            next_y = y + ctx.spacing.vertical
            if isinstance(state, SucceedState):
                next_y = self._finish(ctx, scope, node_id, [node_id], x, next_y, end=False)
            return self._error_lane(ctx, scope, deferred, x, next_y)
        return self._flow(ctx, scope, node_id, state, x, y)

    def _flow(
        self, ctx: LayoutContext, scope: Scope, node_id: str,
        state: FlowState, x: float, y: float,
    ) -> float:
        """Task, Pass, Wait and Map: catch edges, then Next or End."""
        deferred = self._catches(ctx, scope, node_id, state, x, y)
        next_y = y + ctx.spacing.vertical

        if state.next is not None and scope.state(state.next) is not None:
            ctx.connect(node_id, scope.node_id(state.next), EdgeKind.SEQUENTIAL)
            next_y = self._process(ctx, scope, state.next, x, next_y)
        else:
            if state.next is not None:
                ctx.drop(node_id, "Next", state.next)
            next_y = self._finish(ctx, scope, node_id, [node_id], x, next_y, end=state.end)

        return self._error_lane(ctx, scope, deferred, x, next_y)

    def _choice(
        self, ctx: LayoutContext, scope: Scope, node_id: str,
        state: ChoiceState, x: float, y: float,
    ) -> float:
        """Fan Choice targets out horizontally, centred beneath the Choice."""
        spacing = ctx.spacing
        deferred = self._catches(ctx, scope, node_id, state, x, y)

        slots = len(state.choices) + (1 if state.default is not None else 0)
        start_x = x - (slots - 1) * spacing.horizontal / 2
        row_y = y + spacing.vertical
        max_y = row_y

        for index, rule in enumerate(state.choices):
            end_y = self._fan_out(
                ctx, scope, node_id, rule.next,
                EdgeKind.CONDITIONAL, summarize_condition(rule),
                start_x + index * spacing.horizontal, row_y,
            )
            max_y = max(max_y, end_y)

        if state.default is not None:
            end_y = self._fan_out(
                ctx, scope, node_id, state.default,
                EdgeKind.DEFAULT, "default",
                start_x + len(state.choices) * spacing.horizontal, row_y,
            )
            max_y = max(max_y, end_y)

        return self._error_lane(ctx, scope, deferred, x, max_y)

    def _fan_out(
        self, ctx: LayoutContext, scope: Scope, node_id: str, target: Optional[str],
        kind: EdgeKind, label: str, x: float, y: float,
    ) -> float:
        if target is None:
            return y
        if scope.state(target) is None:
            ctx.drop(node_id, "Choice" if kind == EdgeKind.CONDITIONAL else "Default", target)
            return y
        ctx.connect(node_id, scope.node_id(target), kind, label=label)
        return self._process(ctx, scope, target, x, y)

    def _parallel(
        self, ctx: LayoutContext, scope: Scope, node_id: str,
        state: ParallelState, x: float, y: float,
    ) -> float:
        """Lay out each branch as its own sub-graph, then rejoin below."""
        spacing = ctx.spacing
        deferred = self._catches(ctx, scope, node_id, state, x, y)

        count = len(state.branches)
        start_x = x - (count - 1) * spacing.branch / 2
        branch_y = y + spacing.vertical
        max_y = branch_y
        tails: List[str] = []

        for index, branch in enumerate(state.branches):
            branch_scope = scope.branch(node_id, index, branch)
            if branch_scope.state(branch.start_at) is None:
                ctx.drop(node_id, f"Branch {index} StartAt", str(branch.start_at))
                continue

            ctx.connect(node_id, branch_scope.node_id(branch.start_at), EdgeKind.SEQUENTIAL)
            end_y = self._process(
                ctx, branch_scope, branch.start_at, start_x + index * spacing.branch, branch_y
            )
            max_y = max(max_y, end_y)
            tails.extend(branch_scope.tails)

        # No branch completes normally: keep the successor reachable
        if not tails:
            tails = [node_id]

        next_y = max_y
        if state.next is not None and scope.state(state.next) is not None:
            successor = scope.node_id(state.next)
            for tail in tails:
                ctx.connect(tail, successor, EdgeKind.SEQUENTIAL)
            next_y = self._process(ctx, scope, state.next, x, next_y)
        else:
            if state.next is not None:
                ctx.drop(node_id, "Next", state.next)
            next_y = self._finish(ctx, scope, node_id, tails, x, next_y, end=state.end)

        return self._error_lane(ctx, scope, deferred, x, next_y)

    def _finish(
        self, ctx: LayoutContext, scope: Scope, node_id: str, tails: List[str],
        x: float, y: float, end: bool,
    ) -> float:
        """Close a flow that has no successor.

        Inside a branch the tails are handed to the enclosing Parallel state
        for rejoining. In the main graph an explicit End gets an exit marker.
        """
        if scope.is_branch:
            scope.tails.extend(tails)
            return y
        if not (end and ctx.exit_markers):
            return y

        marker_id = ctx.ids.claim(("exit", node_id), exit_node_id(node_id))
        ctx.add_node(marker_id, kind=EXIT_KIND, label="End", x=x, y=y, role=NodeRole.EXIT)
        for tail in tails:
            ctx.connect(tail, marker_id, EdgeKind.EXIT)
        return y + ctx.spacing.vertical

    def _catches(
        self, ctx: LayoutContext, scope: Scope, node_id: str,
        state: BaseState, x: float, y: float,
    ) -> List[str]:
        """Emit error edges; place unvisited Fail targets beside the thrower.

        Returns:
            Unvisited non-Fail catch targets, to be laid out in the error lane
            once the normal flow below this state has been placed
        """
        deferred: List[str] = []
        lane = 0
        for rule in state.catch:
            if rule.next is None:
                continue
            target = scope.state(rule.next)
            if target is None:
                ctx.drop(node_id, "Catch", rule.next)
                continue

            is_fail = isinstance(target, FailState)
            ctx.connect(
                node_id,
                scope.node_id(rule.next),
                EdgeKind.ERROR,
                label="error",
                source_port=Port.ERROR,
                target_port=Port.ERROR if is_fail else Port.PRIMARY,
            )
            if rule.next in scope.visited:
                continue

            if is_fail and ctx.error_lane:
                lane += 1
                self._process(ctx, scope, rule.next, x + lane * ctx.spacing.horizontal, y)
            elif rule.next not in deferred:
                deferred.append(rule.next)
        return deferred

    def _error_lane(
        self, ctx: LayoutContext, scope: Scope, names: List[str], x: float, y: float
    ) -> float:
        """Lay out catch-only targets to the right, below everything placed so far."""
        for name in names:
            y = self._process(ctx, scope, name, x + ctx.spacing.horizontal, y)
        return y

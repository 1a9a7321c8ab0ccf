"""Base layout engine protocol.

Defines the interface that all layout engines must implement.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from sfn_console.models.layout_graph import LayoutGraph


class LayoutEngine(ABC):
    """Abstract base class for layout engines.

    Layout engines convert a workflow definition into a positioned graph
    with node coordinates and annotated edges. Implementations must be
    synchronous and hold no state between calls.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Engine name (e.g., 'top-down')."""
        ...

    @property
    @abstractmethod
    def supports_branches(self) -> bool:
        """Whether engine expands Parallel branches into sub-graphs."""
        ...

    @property
    @abstractmethod
    def supports_error_lanes(self) -> bool:
        """Whether engine draws catch targets in a separate side lane."""
        ...

    @abstractmethod
    def layout(
        self,
        definition: Any,
        options: Optional[Dict[str, Any]] = None,
    ) -> LayoutGraph:
        """Compute layout for a workflow definition.

        Args:
            definition: JSON text, parsed mapping or WorkflowDefinition
            options: Engine-specific layout options

        Returns:
            LayoutGraph with positioned nodes and edges (empty when the
            definition is malformed)
        """
        ...

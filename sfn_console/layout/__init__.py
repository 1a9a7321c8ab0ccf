"""Layout module for state machine diagrams.

This module provides:
- Layout engine abstraction (LayoutEngine)
- Top-down engine for Amazon States Language definitions
- ``layout(definition)``, the one-call entry point used by the dashboard

Usage:
    from sfn_console.layout import layout

    graph = layout(description["definition"])
    if graph.is_empty:
        ...  # show the empty-state message
"""

from typing import Any, Dict, Optional

from sfn_console.layout.engines import ENGINES, get_engine
from sfn_console.layout.engines.base import LayoutEngine
from sfn_console.layout.engines.top_down import TopDownLayoutEngine
from sfn_console.models.layout_graph import LayoutGraph


def layout(
    definition: Any,
    engine: Optional[str] = None,
    options: Optional[Dict[str, Any]] = None,
) -> LayoutGraph:
    """Lay out a workflow definition with a freshly built engine.

    Args:
        definition: JSON text, parsed mapping or WorkflowDefinition
        engine: Engine name (configured default if None)
        options: Engine-specific options

    Returns:
        LayoutGraph; empty when the definition is malformed
    """
    return get_engine(engine)().layout(definition, options)


__all__ = [
    "LayoutEngine",
    "TopDownLayoutEngine",
    "ENGINES",
    "get_engine",
    "layout",
]

"""Diagram service used by the dashboard's state machine view.

Runs the (synchronous) layout engine in a worker thread so large definitions
do not block the event loop, converts the result to React Flow elements and
wraps everything in the standard response envelope.

Usage:
    from sfn_console.dashboard.diagram import render_diagram

    description = await client.describe_state_machine(arn)
    response = await render_diagram(description["definition"])
    if response["ok"] and response["data"]["empty"]:
        ...  # "No states to display"
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from sfn_console.dashboard.graph_converter import ReactFlowConverter, legend
from sfn_console.layout.engines import engine_capabilities, get_engine
from sfn_console.layout.engines.base import LayoutEngine
from sfn_console.utils.response import ErrorCode, error_response, success_response

logger = logging.getLogger(__name__)


async def render_diagram(
    definition: Any,
    engine: Optional[LayoutEngine] = None,
    converter: Optional[ReactFlowConverter] = None,
) -> Dict[str, Any]:
    """Lay out a definition and return renderer-ready elements.

    Args:
        definition: JSON text, parsed mapping or WorkflowDefinition
        engine: Layout engine to use (configured default if None)
        converter: React Flow converter (a new one if None)

    Returns:
        Success envelope with ``nodes``, ``edges``, ``legend``, ``viewport``
        (None when empty), ``engine`` capabilities and ``empty``, plus any
        dropped-reference warnings; error envelope if the engine
        could not be resolved or raised unexpectedly
    """
    try:
        engine = engine or get_engine()()
    except ValueError as e:
        logger.error(f"Cannot build layout engine: {e}")
        return error_response(str(e), code=ErrorCode.UNKNOWN_ENGINE)

    converter = converter or ReactFlowConverter()

    try:
        graph = await asyncio.to_thread(engine.layout, definition)
    except Exception as e:
        logger.exception(f"Layout with engine '{engine.name}' failed")
        return error_response(
            f"Layout failed: {e}",
            code=ErrorCode.LAYOUT_FAILED,
            details={"engine": engine.name},
        )

    elements = converter.layout_to_reactflow(graph)
    data = {
        **elements,
        "legend": legend(),
        "viewport": converter.fit_view(graph),
        "engine": engine_capabilities(engine),
        "empty": graph.is_empty,
    }
    return success_response(data, warnings=graph.warnings)

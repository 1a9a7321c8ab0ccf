"""Layout engines registry.

Available engines:
- top-down: recursive stacking with horizontal fan-out (default)

The default is picked by SFN_LAYOUT_ENGINE, see sfn_console.config.settings.
"""

from typing import Any, Dict, List, Optional, Type

from sfn_console.config.settings import get_default_engine_name
from sfn_console.layout.engines.base import LayoutEngine
from sfn_console.layout.engines.top_down import TopDownLayoutEngine

ENGINES: Dict[str, Type[LayoutEngine]] = {
    "top-down": TopDownLayoutEngine,
}


def available_engines() -> List[str]:
    return sorted(ENGINES)


def engine_capabilities(engine: LayoutEngine) -> Dict[str, Any]:
    """What an engine draws, in the renderer's camelCase."""
    return {
        "name": engine.name,
        "supportsBranches": engine.supports_branches,
        "supportsErrorLanes": engine.supports_error_lanes,
    }


def describe_engines() -> List[Dict[str, Any]]:
    """Capabilities of every registered engine, sorted by name."""
    return [engine_capabilities(ENGINES[name]()) for name in available_engines()]


def get_engine(name: Optional[str] = None) -> Type[LayoutEngine]:
    """Resolve an engine class.

    Args:
        name: Registered engine name; falls back to the configured default

    Raises:
        ValueError: If the name is not registered
    """
    name = name or get_default_engine_name()
    try:
        return ENGINES[name]
    except KeyError:
        raise ValueError(
            f"Unknown layout engine '{name}' (registered: {', '.join(available_engines())})"
        ) from None


__all__ = [
    "LayoutEngine",
    "TopDownLayoutEngine",
    "ENGINES",
    "available_engines",
    "describe_engines",
    "engine_capabilities",
    "get_engine",
]

"""
Configuration and Feature Flags for diagram layout

This module exposes the layout spacing constants and a small set of feature
flags. Everything is controlled via environment variables so a deployment can
tune the diagram without code changes.

Usage:
    from sfn_console.config.settings import get_layout_spacing, is_enabled

    spacing = get_layout_spacing()
    if is_enabled('exit_markers'):
        # Draw an End marker below states with "End": true
        ...

Environment Variables:
    SFN_LAYOUT_HORIZONTAL_SPACING=240  - Distance between sibling columns
    SFN_LAYOUT_VERTICAL_SPACING=100    - Distance between rows
    SFN_LAYOUT_BRANCH_SPACING=200      - Distance between Parallel branches
    SFN_LAYOUT_ENGINE=top-down         - Default layout engine name
    SFN_EXIT_MARKERS=true/false        - Toggle End markers
    SFN_ERROR_LANE=true/false          - Toggle side lane for catch-only Fail states
"""

import os
from typing import Dict, Mapping, Optional

from pydantic import BaseModel, Field


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == 'true'


# Feature flags with environment variable overrides
FEATURE_FLAGS: Dict[str, bool] = {
    # Synthesize an End marker below every state carrying "End": true
    'exit_markers': _env_flag('SFN_EXIT_MARKERS', 'true'),

    # Place Fail states reached only through Catch to the right of the thrower
    'error_lane_fail_states': _env_flag('SFN_ERROR_LANE', 'true'),
}


class LayoutSpacing(BaseModel):
    """Spacing constants used by the layout engines (layout units, not pixels).

    Attributes:
        horizontal: Distance between Choice targets and the error lane offset
        vertical: Distance between consecutive rows
        branch: Distance between Parallel branch columns
    """

    model_config = {"frozen": True}

    horizontal: float = Field(default=240.0, gt=0, description="Column spacing")
    vertical: float = Field(default=100.0, gt=0, description="Row spacing")
    branch: float = Field(default=200.0, gt=0, description="Parallel branch spacing")


SPACING_ENV_VARS: Dict[str, str] = {
    'horizontal': 'SFN_LAYOUT_HORIZONTAL_SPACING',
    'vertical': 'SFN_LAYOUT_VERTICAL_SPACING',
    'branch': 'SFN_LAYOUT_BRANCH_SPACING',
}


def get_layout_spacing(environ: Optional[Mapping[str, str]] = None) -> LayoutSpacing:
    """
    Build the spacing constants from the environment.

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        LayoutSpacing with defaults for unset variables

    Raises:
        ValueError: If a variable is set but is not a number

    Example:
        >>> get_layout_spacing({'SFN_LAYOUT_VERTICAL_SPACING': '80'}).vertical
        80.0
    """
    env = os.environ if environ is None else environ
    values = {}
    for field_name, var in SPACING_ENV_VARS.items():
        raw = env.get(var)
        if raw is None or raw == '':
            continue
        try:
            values[field_name] = float(raw)
        except ValueError:
            raise ValueError(f"{var} must be a number, got {raw!r}")
    return LayoutSpacing(**values)


def get_default_engine_name(environ: Optional[Mapping[str, str]] = None) -> str:
    """Name of the layout engine used when the caller does not pick one."""
    env = os.environ if environ is None else environ
    return env.get('SFN_LAYOUT_ENGINE') or 'top-down'


def _require_flag(flag: str) -> None:
    if flag not in FEATURE_FLAGS:
        raise KeyError(
            f"No feature flag named '{flag}' "
            f"(known: {', '.join(sorted(FEATURE_FLAGS))})"
        )


def is_enabled(flag: str) -> bool:
    """
    Current value of a feature flag.

    Args:
        flag: Flag name, e.g. 'error_lane_fail_states'

    Raises:
        KeyError: For a name missing from FEATURE_FLAGS
    """
    _require_flag(flag)
    return FEATURE_FLAGS[flag]


def get_all_flags() -> Dict[str, bool]:
    """
    Snapshot of every feature flag.

    The returned dict is a copy; change flags with set_flag().

    Example:
        >>> sorted(get_all_flags())
        ['error_lane_fail_states', 'exit_markers']
    """
    return dict(FEATURE_FLAGS)


def set_flag(flag: str, enabled: bool) -> None:
    """
    Override a feature flag in-process.

    Meant for tests; deployments set the SFN_* environment variables instead.
    Engines read flags when they are constructed, so already-built engines
    keep their previous behaviour.

    Raises:
        KeyError: For a name missing from FEATURE_FLAGS
    """
    _require_flag(flag)
    FEATURE_FLAGS[flag] = enabled

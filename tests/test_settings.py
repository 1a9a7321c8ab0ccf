"""Tests for layout configuration and feature flags."""

import pytest
from pydantic import ValidationError

from sfn_console.config.settings import (
    LayoutSpacing,
    get_all_flags,
    get_default_engine_name,
    get_layout_spacing,
    is_enabled,
    set_flag,
)
from sfn_console.layout.engines.top_down import TopDownLayoutEngine
from tests.fixtures.definitions import linear_definition


@pytest.fixture
def restore_flags():
    """Put feature flags back after a test flips them."""
    saved = get_all_flags()
    yield
    for flag, enabled in saved.items():
        set_flag(flag, enabled)


class TestLayoutSpacing:
    """Test spacing constants and their environment overrides."""

    def test_defaults(self):
        """Test the default spacing."""
        spacing = get_layout_spacing({})
        assert (spacing.horizontal, spacing.vertical, spacing.branch) == (240.0, 100.0, 200.0)

    def test_environment_overrides(self):
        """Test reading spacing from environment variables."""
        spacing = get_layout_spacing({
            "SFN_LAYOUT_HORIZONTAL_SPACING": "300",
            "SFN_LAYOUT_BRANCH_SPACING": "150.5",
            "SFN_LAYOUT_VERTICAL_SPACING": "",
        })
        assert spacing.horizontal == 300.0
        assert spacing.branch == 150.5
        assert spacing.vertical == 100.0

    def test_non_numeric_value(self):
        """Test that a garbled value names the variable."""
        with pytest.raises(ValueError, match="SFN_LAYOUT_VERTICAL_SPACING"):
            get_layout_spacing({"SFN_LAYOUT_VERTICAL_SPACING": "tall"})

    def test_non_positive_rejected(self):
        """Test that spacing must be positive."""
        with pytest.raises(ValidationError):
            LayoutSpacing(vertical=0)

    def test_engine_reads_environment(self, monkeypatch):
        """Test that a new engine picks up spacing from the environment."""
        monkeypatch.setenv("SFN_LAYOUT_VERTICAL_SPACING", "40")
        graph = TopDownLayoutEngine().layout(linear_definition())
        assert graph.node("Enrich").y == 80.0


class TestDefaultEngine:
    """Test engine selection defaults."""

    def test_default_engine_name(self):
        assert get_default_engine_name({}) == "top-down"

    def test_engine_name_override(self):
        assert get_default_engine_name({"SFN_LAYOUT_ENGINE": "custom"}) == "custom"


class TestFeatureFlags:
    """Test feature flag lookup and overrides."""

    def test_known_flags(self):
        """Test that both flags exist."""
        assert set(get_all_flags()) == {"exit_markers", "error_lane_fail_states"}

    def test_unknown_flag(self):
        """Test that unknown flags raise KeyError listing the valid ones."""
        with pytest.raises(KeyError, match="exit_markers"):
            is_enabled("does_not_exist")
        with pytest.raises(KeyError):
            set_flag("does_not_exist", True)

    def test_get_all_flags_is_a_copy(self, restore_flags):
        """Test that mutating the returned dict does not change flags."""
        flags = get_all_flags()
        flags["exit_markers"] = not flags["exit_markers"]
        assert get_all_flags()["exit_markers"] != flags["exit_markers"]

    def test_exit_marker_flag_controls_engine(self, restore_flags):
        """Test that the flag is read when the engine is built."""
        set_flag("exit_markers", False)
        graph = TopDownLayoutEngine().layout(linear_definition())
        assert graph.node("__END_Store__") is None

        set_flag("exit_markers", True)
        graph = TopDownLayoutEngine().layout(linear_definition())
        assert graph.node("__END_Store__") is not None

    def test_constructor_argument_wins(self, restore_flags):
        """Test that explicit engine arguments override the flags."""
        set_flag("exit_markers", False)
        graph = TopDownLayoutEngine(exit_markers=True).layout(linear_definition())
        assert graph.node("__END_Store__") is not None

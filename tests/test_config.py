"""Tests for layout configuration."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from flowlayout.config import BranchingLayoutConstants, LayoutConfig


class TestDefaults:
    def test_layout_defaults(self):
        config = LayoutConfig()
        assert config.x_spacing == 350
        assert config.y_spacing == 180
        assert config.viewport_offset_x == 0
        assert config.viewport_offset_y == 720
        assert config.cluster_multiplier is None
        assert config.collision_margin == 20
        assert config.max_collision_attempts == 50
        assert config.max_level_updates is None

    def test_branching_defaults(self):
        c = BranchingLayoutConstants()
        assert (c.padding, c.header_height, c.slot_spacing) == (20, 50, 10)
        assert (c.slot_width, c.slot_height, c.first_slot_extra_spacing) == (130, 60, 10)


class TestFromEnv:
    def test_empty_environment_gives_defaults(self):
        assert LayoutConfig.from_env({}) == LayoutConfig()

    def test_values_are_read_and_coerced(self):
        config = LayoutConfig.from_env({
            "FLOWLAYOUT_X_SPACING": "400",
            "FLOWLAYOUT_CLUSTER_MULTIPLIER": "5",
            "FLOWLAYOUT_BRANCHING_SLOT_HEIGHT": "70",
        })
        assert config.x_spacing == 400
        assert config.cluster_multiplier == 5
        assert config.branching.slot_height == 70
        assert config.branching.padding == 20

    def test_none_clears_optional_value(self):
        config = LayoutConfig.from_env({"FLOWLAYOUT_CLUSTER_MULTIPLIER": "none"})
        assert config.cluster_multiplier is None

    def test_invalid_value_raises(self):
        with pytest.raises(ValidationError):
            LayoutConfig.from_env({"FLOWLAYOUT_MAX_COLLISION_ATTEMPTS": "0"})

    def test_unrelated_variables_ignored(self):
        config = LayoutConfig.from_env({"PATH": "/bin", "FLOWLAYOUT_UNKNOWN": "1"})
        assert config == LayoutConfig()


class TestMerged:
    def test_no_overrides_returns_same_config(self):
        config = LayoutConfig()
        assert config.merged(None) is config
        assert config.merged({}) is config

    def test_partial_branching_override_keeps_other_values(self):
        config = LayoutConfig().merged({"y_spacing": 200, "branching": {"padding": 10}})
        assert config.y_spacing == 200
        assert config.branching.padding == 10
        assert config.branching.header_height == 50

    def test_merged_does_not_mutate_original(self):
        base = LayoutConfig()
        base.merged({"branching": {"slot_width": 200}})
        assert base.branching.slot_width == 130

    def test_invalid_override_raises(self):
        with pytest.raises(ValidationError):
            LayoutConfig().merged({"max_level_updates": -1})

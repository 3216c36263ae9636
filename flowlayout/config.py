"""
Layout configuration.

All spacing constants the engine uses live here so callers can tune them per
request. Defaults can be overridden through environment variables:

    FLOWLAYOUT_X_SPACING=400            - horizontal distance between levels
    FLOWLAYOUT_Y_SPACING=200            - vertical distance between rows
    FLOWLAYOUT_BRANCHING_SLOT_HEIGHT=70 - branching group geometry

Usage:
    from flowlayout.config import LayoutConfig

    config = LayoutConfig.from_env()
    tuned = config.merged({"x_spacing": 420})
"""

import os
from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field


ENV_PREFIX = "FLOWLAYOUT_"


class BranchingLayoutConstants(BaseModel):
    """Geometry of a branching module and its stacked output slots."""
    padding: float = Field(default=20, description="Inner padding of the branching frame")
    header_height: float = Field(default=50, description="Height of the frame header")
    slot_spacing: float = Field(default=10, description="Vertical gap between slots")
    slot_width: float = Field(default=130, description="Width of one output slot")
    slot_height: float = Field(default=60, description="Height of one output slot")
    first_slot_extra_spacing: float = Field(
        default=10, description="Extra gap between header and the first slot"
    )


class LayoutConfig(BaseModel):
    """Configuration options for the layout pipeline."""
    x_spacing: float = Field(default=350, description="Horizontal spacing between levels")
    y_spacing: float = Field(default=180, description="Vertical spacing between modules in a level")
    viewport_offset_x: float = Field(default=0, description="X origin of level 0")
    viewport_offset_y: float = Field(default=720, description="Y origin of the first row")
    cluster_multiplier: Optional[int] = Field(
        default=None,
        description="Levels of horizontal offset per component (None = deepest level + 2)",
    )
    collision_margin: float = Field(default=20, description="Minimum gap kept between boxes")
    max_collision_attempts: int = Field(
        default=50, ge=1, description="Downward pushes tried before accepting a candidate"
    )
    max_level_updates: Optional[int] = Field(
        default=None,
        ge=1,
        description="Times a module's level may increase (None = module count; never below it)",
    )
    branching: BranchingLayoutConstants = Field(default_factory=BranchingLayoutConstants)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "LayoutConfig":
        """
        Build a config from FLOWLAYOUT_* environment variables.

        Args:
            environ: Mapping to read instead of os.environ

        Returns:
            LayoutConfig with every present variable applied

        Raises:
            pydantic.ValidationError: If a variable holds an invalid value
        """
        env = os.environ if environ is None else environ
        overrides: dict[str, Any] = {}
        for name in cls.model_fields:
            if name == "branching":
                continue
            value = env.get(f"{ENV_PREFIX}{name.upper()}")
            if value is not None:
                overrides[name] = None if value.lower() in ("", "none") else value

        branching: dict[str, Any] = {}
        for name in BranchingLayoutConstants.model_fields:
            value = env.get(f"{ENV_PREFIX}BRANCHING_{name.upper()}")
            if value is not None:
                branching[name] = value
        if branching:
            overrides["branching"] = branching

        return cls.model_validate(overrides)

    def merged(self, overrides: Optional[Mapping[str, Any]]) -> "LayoutConfig":
        """Return a copy with a partial override dict applied (nested for branching)."""
        if not overrides:
            return self
        data = self.model_dump()
        for key, value in overrides.items():
            if key == "branching" and isinstance(value, Mapping):
                data["branching"].update(value)
            else:
                data[key] = value
        return LayoutConfig.model_validate(data)

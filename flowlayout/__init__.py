"""
flowlayout - Automatic layout engine for branching dialog flows.

This package provides the stateless layout engine used by the flow editor,
plus the validation and analysis helpers shared by its HTTP API and CLI.
"""

from .models import (
    # Enums
    NodeKind,
    AnchorSide,
    # Records
    Position,
    Size,
    Node,
    Edge,
    FlowSnapshot,
)

from .config import LayoutConfig, BranchingLayoutConstants
from .validation import validate_snapshot, validation_summary, ValidationIssue, IssueSeverity
from .analysis import summarize_flow, find_connected_components, find_cycles, count_crossings
from .branching import calculate_slot_position, calculate_branching_size
from .layout import auto_layout, run_layout, reposition_branching_group, LayoutResult, LayoutBounds

__all__ = [
    # Enums
    "NodeKind",
    "AnchorSide",
    # Records
    "Position",
    "Size",
    "Node",
    "Edge",
    "FlowSnapshot",
    # Configuration
    "LayoutConfig",
    "BranchingLayoutConstants",
    # Validation
    "validate_snapshot",
    "validation_summary",
    "ValidationIssue",
    "IssueSeverity",
    # Analysis
    "summarize_flow",
    "find_connected_components",
    "find_cycles",
    "count_crossings",
    # Branching geometry
    "calculate_slot_position",
    "calculate_branching_size",
    # Layout
    "auto_layout",
    "run_layout",
    "reposition_branching_group",
    "LayoutResult",
    "LayoutBounds",
]

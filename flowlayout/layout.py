"""
Automatic layout of branching dialog flows.

Pipeline:
  1. Scope      - resolve the selection (whole graph when empty)
  2. Graph      - collapse output slots into their modules, find roots
  3. Components - separate disjoint sub-flows into bands
  4. Levels     - BFS depth from the roots
  5. Ordering   - baseline + single barycenter pass per level
  6. Placement  - coordinates, anchor rules, collision resolution
  7. Anchor     - shift so the anchor module keeps its position
                  (scoped calls then settle against untouched modules)
  8. Branching  - restack slots and resize branching frames

The engine is stateless: every call derives everything from the snapshot it
is given and returns new node records without touching the input.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from .analysis import component_index, find_connected_components
from .branching import apply_branching_geometry, calculate_branching_size, reposition_slots
from .config import LayoutConfig
from .graph import ModuleGraph, build_module_graph, resolve_slot_parents
from .levels import assign_levels
from .models import Edge, Node, Position
from .ordering import order_layers
from .positioning import Box, place_modules, settle_boxes
from .scope import LayoutScope, choose_anchor, resolve_scope, shift_to_anchor

logger = logging.getLogger(__name__)


@dataclass
class LayoutBounds:
    """Extent of a laid-out diagram and the point a viewport should center on."""
    min_x: float
    min_y: float
    max_x: float
    max_y: float
    center_x: float
    center_y: float

    def to_dict(self) -> dict:
        return {
            "min_x": self.min_x,
            "min_y": self.min_y,
            "max_x": self.max_x,
            "max_y": self.max_y,
            "center": {"x": self.center_x, "y": self.center_y},
        }


@dataclass
class LayoutResult:
    """Repositioned nodes plus the intermediate results that produced them."""
    nodes: list[Node]
    edges: list[Edge]
    scoped: bool = False
    roots: list[str] = field(default_factory=list)
    levels: dict[str, int] = field(default_factory=dict)
    layers: dict[int, list[str]] = field(default_factory=dict)
    components: dict[str, int] = field(default_factory=dict)
    anchor_id: Optional[str] = None
    delta: tuple[float, float] = (0.0, 0.0)
    saturated: set[str] = field(default_factory=set)

    @property
    def bounds(self) -> Optional[LayoutBounds]:
        """Bounding box of all nodes, centered on the anchor when there is one."""
        if not self.nodes:
            return None
        min_x = min(n.position.x for n in self.nodes)
        min_y = min(n.position.y for n in self.nodes)
        max_x = max(n.position.x + n.size.width for n in self.nodes)
        max_y = max(n.position.y + n.size.height for n in self.nodes)
        center_x, center_y = (min_x + max_x) / 2, (min_y + max_y) / 2
        anchor = next((n for n in self.nodes if n.id == self.anchor_id), None)
        if anchor is not None:
            center_x, center_y = anchor.center()
        return LayoutBounds(min_x, min_y, max_x, max_y, center_x, center_y)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        bounds = self.bounds
        return {
            "nodes": [n.to_json_dict() for n in self.nodes],
            "edges": [e.to_json_dict() for e in self.edges],
            "scoped": self.scoped,
            "roots": self.roots,
            "levels": self.levels,
            "layers": [self.layers[level] for level in sorted(self.layers)],
            "anchor": self.anchor_id,
            "delta": {"x": self.delta[0], "y": self.delta[1]},
            "saturated": sorted(self.saturated),
            "bounds": bounds.to_dict() if bounds else None,
        }


def _module_sizes(
    nodes: list[Node],
    graph: ModuleGraph,
    config: LayoutConfig,
) -> dict[str, tuple[float, float]]:
    """
    Box size per module node.

    Branching modules that take part in the layout get the frame size their
    slots will give them; everything else keeps its current size.
    """
    parent_of = resolve_slot_parents(nodes)
    sizes: dict[str, tuple[float, float]] = {}
    for node in nodes:
        if node.id in parent_of or node.id in sizes:
            continue
        slots = graph.slots_by_parent.get(node.id)
        if slots and node.id in graph:
            frame = calculate_branching_size(len(slots), config.branching)
            sizes[node.id] = (frame.width, frame.height)
        else:
            sizes[node.id] = (node.size.width, node.size.height)
    return sizes


def _current_boxes(
    nodes: list[Node],
    sizes: dict[str, tuple[float, float]],
    module_ids: Iterable[str],
) -> dict[str, Box]:
    wanted = set(module_ids)
    boxes: dict[str, Box] = {}
    for node in nodes:
        if node.id in wanted and node.id not in boxes:
            width, height = sizes[node.id]
            boxes[node.id] = Box(node.position.x, node.position.y, width, height)
    return boxes


def run_layout(
    nodes: list[Node],
    edges: list[Edge],
    root_hint: Optional[str] = None,
    selection: Optional[Iterable[str]] = None,
    config: Optional[LayoutConfig] = None,
) -> LayoutResult:
    """
    Compute a layout for a flow snapshot.

    Args:
        nodes: All nodes of the diagram (modules and output slots)
        edges: All edges of the diagram
        root_hint: Module to prefer as the level-0 root
        selection: Node ids to restrict the layout to (None/empty = all)
        config: Spacing, collision and branching settings

    Returns:
        LayoutResult whose nodes carry the new positions (and frame sizes for
        branching modules); edges are returned unmodified
    """
    config = config or LayoutConfig()
    working = [n.model_copy(deep=True) for n in nodes]

    scope: LayoutScope = resolve_scope(working, selection)
    graph = build_module_graph(working, edges, root_hint, scope.module_ids)
    if not graph.module_ids:
        logger.debug("No modules to lay out")
        return LayoutResult(nodes=working, edges=list(edges), scoped=scope.is_scoped)

    components = component_index(find_connected_components(graph))
    levels = assign_levels(graph, config.max_level_updates)
    layers = order_layers(graph, levels)

    sizes = _module_sizes(working, graph, config)
    placement = place_modules(graph, levels, layers, components, sizes, config)

    anchor_id = choose_anchor(working, graph, scope)
    before = _current_boxes(working, sizes, graph.module_ids)
    shift = shift_to_anchor(before, placement.boxes, anchor_id, scope.is_scoped)
    boxes = shift.boxes
    saturated = placement.saturated

    if scope.is_scoped:
        outside = [m for m in sizes if m not in graph]
        obstacles = list(_current_boxes(working, sizes, outside).values())
        settled = settle_boxes(placement.sequence, boxes, obstacles, config)
        boxes = settled.boxes
        saturated = settled.saturated

    repositioned = [
        node.model_copy(update={"position": Position(x=boxes[node.id].x, y=boxes[node.id].y)})
        if node.id in boxes and node.id not in graph.parent_of
        else node
        for node in working
    ]
    branching_ids = [p for p in graph.slots_by_parent if p in graph]
    result_nodes = apply_branching_geometry(repositioned, config.branching, branching_ids)

    logger.debug(
        f"Laid out {len(graph.module_ids)} module(s) over {len(layers)} level(s), "
        f"anchor={anchor_id}, delta={shift.delta}"
    )
    return LayoutResult(
        nodes=result_nodes,
        edges=list(edges),
        scoped=scope.is_scoped,
        roots=list(graph.roots),
        levels=levels,
        layers=layers,
        components=components,
        anchor_id=anchor_id,
        delta=shift.delta,
        saturated=saturated,
    )


def auto_layout(
    nodes: list[Node],
    edges: list[Edge],
    root_hint: Optional[str] = None,
    selection: Optional[Iterable[str]] = None,
    config: Optional[LayoutConfig] = None,
) -> list[Node]:
    """
    Lay out a flow and return the repositioned nodes.

    See run_layout for the arguments; this drops the diagnostics.
    """
    return run_layout(nodes, edges, root_hint, selection, config).nodes


def reposition_branching_group(
    nodes: list[Node],
    parent_id: str,
    config: Optional[LayoutConfig] = None,
) -> list[Node]:
    """
    Restack a branching module's slots after an out-of-band slot change.

    Slot indices are renumbered to 0..N-1 in their current order and the
    parent's frame is resized; no other node moves.
    """
    config = config or LayoutConfig()
    working = [n.model_copy(deep=True) for n in nodes]
    return reposition_slots(working, parent_id, config.branching)

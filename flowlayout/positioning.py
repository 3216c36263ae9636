"""
Coordinate assignment and collision resolution.

Modules are visited in (level, order) sequence. Each gets a default spot from
its level, component and order index, which an anchored incoming connection
or an output-slot connection may override. The candidate is then pushed
downward past any already-placed box it overlaps.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from .config import LayoutConfig
from .graph import ModuleEdge, ModuleGraph
from .models import AnchorSide

logger = logging.getLogger(__name__)


@dataclass
class Box:
    """An axis-aligned bounding box (top-left corner plus size)."""
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def center(self) -> tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    def overlaps(self, other: "Box", margin: float = 0) -> bool:
        """True if the boxes come closer than `margin` on both axes."""
        return (
            self.x < other.right + margin
            and other.x < self.right + margin
            and self.y < other.bottom + margin
            and other.y < self.bottom + margin
        )

    def moved(self, x: Optional[float] = None, y: Optional[float] = None) -> "Box":
        return Box(
            x=self.x if x is None else x,
            y=self.y if y is None else y,
            width=self.width,
            height=self.height,
        )

    def shifted(self, dx: float, dy: float) -> "Box":
        return Box(self.x + dx, self.y + dy, self.width, self.height)


@dataclass
class Placement:
    """Result of placing a set of modules."""
    boxes: dict[str, Box] = field(default_factory=dict)
    sequence: list[str] = field(default_factory=list)  # (level, order) visit order
    saturated: set[str] = field(default_factory=set)


# Anchor votes: +1 pushes the target right/down of the source, -1 left/up
_VERTICAL_VOTES = {
    ("source", AnchorSide.BOTTOM): 1,
    ("source", AnchorSide.TOP): -1,
    ("target", AnchorSide.TOP): 1,
    ("target", AnchorSide.BOTTOM): -1,
}
_HORIZONTAL_VOTES = {
    ("source", AnchorSide.RIGHT): 1,
    ("source", AnchorSide.LEFT): -1,
    ("target", AnchorSide.LEFT): 1,
    ("target", AnchorSide.RIGHT): -1,
}


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


def anchor_direction(
    source_anchor: Optional[AnchorSide],
    target_anchor: Optional[AnchorSide],
) -> tuple[int, int]:
    """
    Direction (dx, dy) from source to target implied by an anchor pair.

    bottom->top gives (0, 1), right->left gives (1, 0), bottom->left gives
    (1, 1). A lone anchor decides its own axis. Same-side pairs such as
    bottom->bottom cancel out to (0, 0).
    """
    sides = (("source", source_anchor), ("target", target_anchor))
    dx = sum(_HORIZONTAL_VOTES.get(s, 0) for s in sides)
    dy = sum(_VERTICAL_VOTES.get(s, 0) for s in sides)
    return _sign(dx), _sign(dy)


def _away_sign(source_box: Box, neighbor_boxes: list[Box], axis: int) -> int:
    """Pick +1/-1 on an axis so the target lands away from the source's neighbors."""
    if not neighbor_boxes:
        return 1
    origin = source_box.center()[axis]
    mean = sum(b.center()[axis] for b in neighbor_boxes) / len(neighbor_boxes)
    return -1 if mean > origin else 1


def anchored_box(
    edge: ModuleEdge,
    source_box: Box,
    candidate: Box,
    neighbor_boxes: list[Box],
    config: LayoutConfig,
) -> Box:
    """
    Place `candidate` relative to an already-placed source per the anchor rules.

    Offsets are one full spacing unit past the source's edge on each axis the
    anchors point along; the other axis stays aligned with the source.
    """
    dx, dy = anchor_direction(edge.source_anchor, edge.target_anchor)
    if dx == 0 and dy == 0:
        # Same-side pair: sit beside the source, away from its other neighbors
        sides = {edge.source_anchor, edge.target_anchor} - {None}
        if sides & {AnchorSide.TOP, AnchorSide.BOTTOM}:
            dx = _away_sign(source_box, neighbor_boxes, axis=0)
        else:
            dy = _away_sign(source_box, neighbor_boxes, axis=1)

    x = source_box.x
    if dx > 0:
        x = source_box.right + config.x_spacing
    elif dx < 0:
        x = source_box.x - candidate.width - config.x_spacing

    y = source_box.y
    if dy > 0:
        y = source_box.bottom + config.y_spacing
    elif dy < 0:
        y = source_box.y - candidate.height - config.y_spacing

    return candidate.moved(x=x, y=y)


def resolve_collision(
    candidate: Box,
    placed: Iterable[Box],
    margin: float,
    max_attempts: int,
) -> tuple[Box, bool]:
    """
    Push a candidate downward until it clears every placed box.

    Args:
        candidate: Desired box
        placed: Boxes already on the canvas
        margin: Gap that must remain between boxes
        max_attempts: Pushes tried before giving up

    Returns:
        (final box, saturated) where saturated means the attempts ran out
        with an overlap remaining; the last candidate is kept regardless
    """
    placed = list(placed)
    box = candidate
    for _ in range(max_attempts):
        blocker = next((p for p in placed if box.overlaps(p, margin)), None)
        if blocker is None:
            return box, False
        box = box.moved(y=blocker.bottom + margin)
    saturated = any(box.overlaps(p, margin) for p in placed)
    return box, saturated


def resolve_cluster_multiplier(levels: dict[str, int], config: LayoutConfig) -> int:
    if config.cluster_multiplier is not None:
        return config.cluster_multiplier
    return max(levels.values(), default=0) + 2


def place_modules(
    graph: ModuleGraph,
    levels: dict[str, int],
    layers: dict[int, list[str]],
    components: dict[str, int],
    sizes: dict[str, tuple[float, float]],
    config: LayoutConfig,
) -> Placement:
    """
    Assign a box to every module of the graph.

    Args:
        graph: Module graph
        levels: Level per module
        layers: Ordered module ids per level
        components: Component index per module
        sizes: (width, height) per module, branching frames already resized
        config: Spacing and collision settings

    Returns:
        Placement with boxes, the visit sequence and saturated module ids
    """
    multiplier = resolve_cluster_multiplier(levels, config)
    placement = Placement()

    for level, members in layers.items():
        for order, module_id in enumerate(members):
            width, height = sizes[module_id]
            column = level + components.get(module_id, 0) * multiplier
            candidate = Box(
                x=column * config.x_spacing + config.viewport_offset_x,
                y=order * config.y_spacing + config.viewport_offset_y,
                width=width,
                height=height,
            )
            candidate = _override_from_incoming(graph, module_id, candidate, placement.boxes, config)

            box, saturated = resolve_collision(
                candidate,
                placement.boxes.values(),
                config.collision_margin,
                config.max_collision_attempts,
            )
            if saturated:
                placement.saturated.add(module_id)
            placement.boxes[module_id] = box
            placement.sequence.append(module_id)

    if placement.saturated:
        logger.warning(
            f"Collision attempts exhausted for {len(placement.saturated)} module(s): "
            f"{', '.join(sorted(placement.saturated))}"
        )
    return placement


def _override_from_incoming(
    graph: ModuleGraph,
    module_id: str,
    candidate: Box,
    placed: dict[str, Box],
    config: LayoutConfig,
) -> Box:
    """Apply the anchor rule, else the output-slot column rule, else keep the default."""
    incoming = [e for e in graph.incoming.get(module_id, []) if e.source in placed]

    for edge in incoming:
        if not edge.has_anchor:
            continue
        source_box = placed[edge.source]
        neighbor_ids = set(graph.successors(edge.source)) | set(graph.predecessors(edge.source))
        neighbor_boxes = [placed[n] for n in sorted(neighbor_ids) if n in placed and n != module_id]
        return anchored_box(edge, source_box, candidate, neighbor_boxes, config)

    for edge in incoming:
        if not edge.from_slot:
            continue
        parent_box = placed[edge.source]
        return candidate.moved(
            x=max(candidate.x, parent_box.x + config.x_spacing),
            y=parent_box.y + edge.slot_index * config.y_spacing,
        )

    return candidate


def settle_boxes(
    sequence: list[str],
    boxes: dict[str, Box],
    obstacles: Iterable[Box],
    config: LayoutConfig,
) -> Placement:
    """
    Re-run collision resolution for already-computed boxes against fixed obstacles.

    Boxes are settled in `sequence` order; each settled box becomes an
    obstacle for the ones after it.
    """
    placement = Placement(sequence=list(sequence))
    placed = list(obstacles)
    for module_id in sequence:
        box, saturated = resolve_collision(
            boxes[module_id],
            placed,
            config.collision_margin,
            config.max_collision_attempts,
        )
        if saturated:
            placement.saturated.add(module_id)
        placement.boxes[module_id] = box
        placed.append(box)

    if placement.saturated:
        logger.warning(
            f"Collision attempts exhausted while settling {len(placement.saturated)} module(s)"
        )
    return placement

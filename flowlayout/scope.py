"""
Selection scoping and anchor preservation.

A layout may be restricted to the modules a user selected; everything else
stays put and only acts as an obstacle. After layout, positions are shifted
so one anchor module keeps its on-screen location.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from .graph import ModuleGraph, resolve_slot_parents
from .models import Node
from .positioning import Box

logger = logging.getLogger(__name__)


@dataclass
class LayoutScope:
    """
    Which modules a layout call may move.

    Attributes:
        module_ids: Selected modules in selection order, or None for the whole graph
        selected_ids: The raw selection ids that resolved to a node
    """
    module_ids: Optional[list[str]] = None
    selected_ids: list[str] = field(default_factory=list)

    @property
    def is_scoped(self) -> bool:
        return self.module_ids is not None

    def contains(self, module_id: str) -> bool:
        return self.module_ids is None or module_id in self.module_ids


def resolve_scope(nodes: list[Node], selection: Optional[Iterable[str]]) -> LayoutScope:
    """
    Turn a caller selection into a layout scope.

    Slot ids resolve to their owning module and unknown ids are ignored. A
    selection that resolves to no module means a whole-graph layout.
    """
    if not selection:
        return LayoutScope()

    parent_of = resolve_slot_parents(nodes)
    known = {n.id for n in nodes}
    selected_ids = [s for s in selection if s in known]

    module_ids: list[str] = []
    for node_id in selected_ids:
        module_id = parent_of.get(node_id, node_id)
        if module_id not in module_ids:
            module_ids.append(module_id)

    if not module_ids:
        logger.debug("Selection matched no modules, laying out the whole graph")
        return LayoutScope()
    return LayoutScope(module_ids=module_ids, selected_ids=selected_ids)


def choose_anchor(nodes: list[Node], graph: ModuleGraph, scope: LayoutScope) -> Optional[str]:
    """
    Pick the module whose position the layout preserves.

    Whole graph: the resolved root, else the first module. Scoped: the first
    top-level module of the selection, else the owner of the single (or
    first) selected slot.
    """
    if not scope.is_scoped:
        if graph.primary_root is not None:
            return graph.primary_root
        return graph.module_ids[0] if graph.module_ids else None

    parent_of = resolve_slot_parents(nodes)
    for node_id in scope.selected_ids:
        if node_id not in parent_of and node_id in graph:
            return node_id
    for node_id in scope.selected_ids:
        owner = parent_of.get(node_id)
        if owner is not None and owner in graph:
            return owner
    return None


@dataclass
class AnchorShift:
    """Outcome of shifting a layout onto its anchor."""
    boxes: dict[str, Box]
    delta: tuple[float, float] = (0.0, 0.0)
    shifted_ids: set[str] = field(default_factory=set)


def shift_to_anchor(
    before: dict[str, Box],
    after: dict[str, Box],
    anchor_id: Optional[str],
    scoped: bool,
) -> AnchorShift:
    """
    Translate laid-out boxes so the anchor keeps its previous position.

    Args:
        before: Boxes of the laid-out modules prior to this call
        after: Boxes the layout computed for them
        anchor_id: Module to hold in place
        scoped: When True only modules whose position changed are shifted

    Returns:
        AnchorShift with the translated boxes, the delta and the shifted ids
    """
    if anchor_id is None or anchor_id not in before or anchor_id not in after:
        return AnchorShift(boxes=dict(after))

    dx = before[anchor_id].x - after[anchor_id].x
    dy = before[anchor_id].y - after[anchor_id].y

    shifted: dict[str, Box] = {}
    shifted_ids: set[str] = set()
    for module_id, box in after.items():
        prior = before.get(module_id)
        moved = prior is None or (prior.x, prior.y) != (box.x, box.y)
        if not scoped or moved:
            shifted[module_id] = box.shifted(dx, dy)
            shifted_ids.add(module_id)
        else:
            shifted[module_id] = box

    logger.debug(f"Anchor {anchor_id} shift ({dx}, {dy}) applied to {len(shifted_ids)} module(s)")
    return AnchorShift(boxes=shifted, delta=(dx, dy), shifted_ids=shifted_ids)

"""
Branching group geometry.

A branching module renders its output slots as a fixed vertical stack inside
its own frame. Slot geometry is derived purely from the slot count and index,
so it is recomputed after every layout pass and after any slot add, remove or
reorder rather than stored.
"""

from typing import Iterable, Optional

from .config import BranchingLayoutConstants
from .graph import group_slots, resolve_slot_parents
from .models import Node, Position, Size


def calculate_slot_position(
    parent_position: Position,
    index: int,
    constants: Optional[BranchingLayoutConstants] = None,
) -> Position:
    """Position of slot `index` inside a branching module placed at parent_position."""
    c = constants or BranchingLayoutConstants()
    return Position(
        x=parent_position.x + c.padding,
        y=(
            parent_position.y
            + c.header_height
            + c.slot_spacing
            + c.first_slot_extra_spacing
            + index * (c.slot_height + c.slot_spacing)
        ),
    )


def calculate_branching_size(
    slot_count: int,
    constants: Optional[BranchingLayoutConstants] = None,
) -> Size:
    """Frame size of a branching module owning slot_count slots (slot_count >= 1)."""
    c = constants or BranchingLayoutConstants()
    return Size(
        width=c.slot_width + c.padding * 2,
        height=(
            c.header_height
            + c.slot_spacing
            + c.first_slot_extra_spacing
            + slot_count * c.slot_height
            + (slot_count - 1) * c.slot_spacing
            + c.padding
        ),
    )


def apply_branching_geometry(
    nodes: list[Node],
    constants: Optional[BranchingLayoutConstants] = None,
    parent_ids: Optional[Iterable[str]] = None,
) -> list[Node]:
    """
    Restack the slots of branching modules and resize their frames.

    Slots are ordered by their current slot index (input order breaks ties)
    and renumbered 0..N-1, so a gap or duplicate left by an out-of-band
    change is repaired.

    Args:
        nodes: All nodes of the diagram
        constants: Branching geometry
        parent_ids: Restrict to these branching modules (None = all of them)

    Returns:
        A new list of nodes; records that changed are copies
    """
    c = constants or BranchingLayoutConstants()
    parent_of = resolve_slot_parents(nodes)
    slots_by_parent = group_slots(nodes, parent_of)
    if parent_ids is not None:
        wanted = set(parent_ids)
        slots_by_parent = {p: s for p, s in slots_by_parent.items() if p in wanted}
    if not slots_by_parent:
        return list(nodes)

    parents = {n.id: n for n in nodes if n.id in slots_by_parent}
    updates: dict[str, dict] = {}
    for parent_id, slots in slots_by_parent.items():
        parent = parents[parent_id]
        updates[parent_id] = {"size": calculate_branching_size(len(slots), c)}
        for index, slot in enumerate(slots):
            updates[slot.id] = {
                "position": calculate_slot_position(parent.position, index, c),
                "slot_index": index,
            }

    return [
        node.model_copy(update=updates[node.id]) if node.id in updates else node
        for node in nodes
    ]


def reposition_slots(
    nodes: list[Node],
    parent_id: str,
    constants: Optional[BranchingLayoutConstants] = None,
) -> list[Node]:
    """Restack one branching module's slots after a slot add, remove or reorder."""
    return apply_branching_geometry(nodes, constants, parent_ids=[parent_id])

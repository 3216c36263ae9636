"""
Ordering of modules within each level.

Each level starts from a deterministic baseline order. Levels after the first
are then sorted by the barycenter heuristic against the level before them, in
a single forward pass. This approximates minimum edge crossings (an NP-hard
problem); residual crossings are expected.
"""

from typing import Optional

from .graph import ModuleEdge, ModuleGraph
from .levels import group_by_level


def _first_slot_edge(graph: ModuleGraph, module_id: str) -> Optional[ModuleEdge]:
    for edge in graph.incoming.get(module_id, []):
        if edge.from_slot:
            return edge
    return None


def baseline_order(module_ids: list[str], graph: ModuleGraph, levels: dict[str, int]) -> list[str]:
    """
    Deterministic baseline order for one level.

    Three tiers, in this order:
    1. Modules reached from an output slot, by slot index ascending
    2. Modules grouped by their first predecessor so each fan-out stays
       contiguous; groups by predecessor level then predecessor id
    3. Everything else, by id

    Args:
        module_ids: Modules sharing a level, in input order
        graph: Module graph
        levels: Level per module

    Returns:
        The reordered module ids
    """
    edge_rank = {id(edge): i for i, edge in enumerate(graph.edges)}

    from_slot: list[tuple[int, int, str, int, str]] = []
    grouped: list[tuple[int, str, int, str]] = []
    remaining: list[str] = []

    for position, module_id in enumerate(module_ids):
        slot_edge = _first_slot_edge(graph, module_id)
        if slot_edge is not None:
            from_slot.append((
                slot_edge.slot_index,
                levels.get(slot_edge.source, 0),
                slot_edge.source,
                position,
                module_id,
            ))
            continue

        incoming = graph.incoming.get(module_id, [])
        if incoming:
            first = incoming[0]
            grouped.append((levels.get(first.source, 0), first.source, edge_rank[id(first)], module_id))
        else:
            remaining.append(module_id)

    ordered = [entry[-1] for entry in sorted(from_slot)]
    ordered.extend(entry[-1] for entry in sorted(grouped))
    ordered.extend(sorted(remaining))
    return ordered


def barycenter(
    module_id: str,
    graph: ModuleGraph,
    previous_positions: dict[str, int],
    fallback: float,
) -> float:
    """
    Mean index of a module's predecessors in the previous level.

    Modules without a predecessor there keep `fallback` so their relative
    baseline order survives the sort.
    """
    positions = {
        source: previous_positions[source]
        for source in graph.predecessors(module_id)
        if source in previous_positions
    }
    if not positions:
        return fallback
    return sum(positions.values()) / len(positions)


def order_layers(graph: ModuleGraph, levels: dict[str, int]) -> dict[int, list[str]]:
    """
    Order every level for crossing reduction.

    Returns:
        Dictionary mapping level to its ordered module ids, ascending by level
    """
    layers: dict[int, list[str]] = {}
    previous: Optional[list[str]] = None

    for level, members in group_by_level(levels).items():
        baseline = baseline_order(members, graph, levels)
        if previous is None:
            layers[level] = baseline
        else:
            prev_pos = {module_id: i for i, module_id in enumerate(previous)}
            keyed = [
                (barycenter(module_id, graph, prev_pos, index + 0.5), index, module_id)
                for index, module_id in enumerate(baseline)
            ]
            layers[level] = [module_id for _, _, module_id in sorted(keyed)]
        previous = layers[level]

    return layers

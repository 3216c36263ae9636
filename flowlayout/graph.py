"""
Module-level graph construction.

Output slots are collapsed into the branching module that owns them, so the
layout works on one vertex per flow step. Every retained edge remembers the
slot it left from and the anchor sides the user pinned.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable, Optional

from .models import AnchorSide, Edge, Node

logger = logging.getLogger(__name__)


@dataclass
class ModuleEdge:
    """An edge between two modules after slot endpoints were collapsed."""
    source: str
    target: str
    edge_id: str
    slot_index: Optional[int] = None  # Set when the source endpoint was a slot
    source_anchor: Optional[AnchorSide] = None
    target_anchor: Optional[AnchorSide] = None

    @property
    def from_slot(self) -> bool:
        return self.slot_index is not None

    @property
    def has_anchor(self) -> bool:
        return self.source_anchor is not None or self.target_anchor is not None


@dataclass
class ModuleGraph:
    """
    Directed module graph derived from a node/edge snapshot.

    Attributes:
        module_ids: Modules taking part in this layout, in input order
        edges: Module edges in input order (no self-loops, no dangling ends)
        roots: Level-0 seeds; non-empty whenever module_ids is
        slots_by_parent: Output slots per owning module, sorted by slot index.
            Covers every branching module of the snapshot, in scope or not.
        parent_of: Slot id -> owning module id for slots that resolved
    """
    module_ids: list[str] = field(default_factory=list)
    edges: list[ModuleEdge] = field(default_factory=list)
    roots: list[str] = field(default_factory=list)
    in_degree: dict[str, int] = field(default_factory=dict)
    slots_by_parent: dict[str, list[Node]] = field(default_factory=dict)
    parent_of: dict[str, str] = field(default_factory=dict)
    outgoing: dict[str, list[ModuleEdge]] = field(default_factory=lambda: defaultdict(list))
    incoming: dict[str, list[ModuleEdge]] = field(default_factory=lambda: defaultdict(list))

    @property
    def primary_root(self) -> Optional[str]:
        return self.roots[0] if self.roots else None

    def __contains__(self, module_id: str) -> bool:
        return module_id in self.in_degree

    def successors(self, module_id: str) -> list[str]:
        return [e.target for e in self.outgoing.get(module_id, [])]

    def predecessors(self, module_id: str) -> list[str]:
        return [e.source for e in self.incoming.get(module_id, [])]

    def is_branching(self, module_id: str) -> bool:
        return bool(self.slots_by_parent.get(module_id))


def resolve_slot_parents(nodes: list[Node]) -> dict[str, str]:
    """
    Map each output slot id to its owning module id.

    A slot whose parent does not resolve to an existing module node is left
    out of the map and gets treated as a standalone module.
    """
    module_node_ids = {n.id for n in nodes if not n.is_slot}
    parents: dict[str, str] = {}
    for node in nodes:
        if not node.is_slot:
            continue
        if node.parent_module_id is not None and node.parent_module_id in module_node_ids:
            parents[node.id] = node.parent_module_id
        else:
            logger.debug(f"Slot {node.id} has no resolvable parent, treating as module")
    return parents


def group_slots(nodes: list[Node], parent_of: dict[str, str]) -> dict[str, list[Node]]:
    """Group resolved slots by owner, ordered by slot index then input order."""
    grouped: dict[str, list[tuple[int, int, Node]]] = defaultdict(list)
    for order, node in enumerate(nodes):
        parent_id = parent_of.get(node.id)
        if parent_id is None:
            continue
        index = node.slot_index if node.slot_index is not None else 0
        grouped[parent_id].append((index, order, node))
    return {
        parent_id: [node for _, _, node in sorted(entries, key=lambda e: (e[0], e[1]))]
        for parent_id, entries in grouped.items()
    }


def build_module_graph(
    nodes: list[Node],
    edges: list[Edge],
    root_hint: Optional[str] = None,
    subset: Optional[Iterable[str]] = None,
) -> ModuleGraph:
    """
    Build the module graph used by every later layout phase.

    Args:
        nodes: All nodes of the snapshot
        edges: All edges of the snapshot
        root_hint: Module to prefer as the level-0 anchor
        subset: Module ids the layout is restricted to (None or empty = all)

    Returns:
        ModuleGraph over the participating modules
    """
    parent_of = resolve_slot_parents(nodes)
    slot_by_id = {n.id: n for n in nodes if n.id in parent_of}
    scope = set(subset) if subset else None

    graph = ModuleGraph(parent_of=parent_of)
    graph.slots_by_parent = group_slots(nodes, parent_of)

    seen: set[str] = set()
    for node in nodes:
        if node.id in parent_of or node.id in seen:
            continue
        if scope is not None and node.id not in scope:
            continue
        seen.add(node.id)
        graph.module_ids.append(node.id)
        graph.in_degree[node.id] = 0

    dropped = 0
    for edge in edges:
        source = parent_of.get(edge.source, edge.source)
        target = parent_of.get(edge.target, edge.target)
        if source not in graph or target not in graph or source == target:
            dropped += 1
            continue

        slot = slot_by_id.get(edge.source)
        slot_index = None
        if slot is not None:
            slot_index = slot.slot_index if slot.slot_index is not None else 0

        module_edge = ModuleEdge(
            source=source,
            target=target,
            edge_id=edge.id,
            slot_index=slot_index,
            source_anchor=edge.source_anchor,
            target_anchor=edge.target_anchor,
        )
        graph.edges.append(module_edge)
        graph.outgoing[source].append(module_edge)
        graph.incoming[target].append(module_edge)
        graph.in_degree[target] += 1

    if dropped:
        logger.debug(f"Dropped {dropped} edge(s) outside the module graph")

    graph.roots = _find_roots(graph, parent_of.get(root_hint, root_hint) if root_hint else None)
    logger.debug(
        f"Module graph: {len(graph.module_ids)} modules, "
        f"{len(graph.edges)} edges, roots={graph.roots}"
    )
    return graph


def _find_roots(graph: ModuleGraph, root_hint: Optional[str]) -> list[str]:
    """Root hint if usable, else in-degree-0 modules, else the first module."""
    if root_hint is not None and root_hint in graph:
        return [root_hint]
    roots = [m for m in graph.module_ids if graph.in_degree[m] == 0]
    if roots:
        return roots
    return graph.module_ids[:1]

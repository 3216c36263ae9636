"""
Flow analysis - component partitioning and structural diagnostics.

Connected components keep unrelated sub-flows in separate horizontal bands.
The remaining helpers (cycles, crossings, summary) describe a flow without
changing it and back the validate/summarize surfaces.
"""

from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Optional

from .config import LayoutConfig
from .graph import ModuleGraph, build_module_graph
from .levels import assign_levels
from .models import Edge, Node
from .ordering import order_layers


@dataclass
class ConnectedComponent:
    """A connected component of the module graph."""
    index: int
    module_ids: list[str] = field(default_factory=list)
    edge_count: int = 0

    @property
    def size(self) -> int:
        return len(self.module_ids)


@dataclass
class FlowSummary:
    """Complete summary of a flow's structure."""
    total_nodes: int
    total_edges: int
    module_count: int
    slot_count: int
    branching_count: int
    module_edge_count: int
    connected_components: int
    roots: list[str]
    depth: int
    crossings: int
    cycle_count: int
    orphan_count: int

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "total_nodes": self.total_nodes,
            "total_edges": self.total_edges,
            "module_count": self.module_count,
            "slot_count": self.slot_count,
            "branching_count": self.branching_count,
            "module_edge_count": self.module_edge_count,
            "connected_components": self.connected_components,
            "roots": self.roots,
            "depth": self.depth,
            "crossings": self.crossings,
            "cycle_count": self.cycle_count,
            "orphan_count": self.orphan_count,
        }


def find_connected_components(graph: ModuleGraph) -> list[ConnectedComponent]:
    """
    Find all connected components of the module graph using BFS.

    Edges are treated as undirected. Components are numbered in the order
    their first module appears in the input.

    Args:
        graph: The module graph to partition

    Returns:
        List of ConnectedComponent objects
    """
    if not graph.module_ids:
        return []

    # Build adjacency list (undirected)
    adjacency: dict[str, set[str]] = {m: set() for m in graph.module_ids}
    edge_counts: dict[str, int] = defaultdict(int)
    for edge in graph.edges:
        adjacency[edge.source].add(edge.target)
        adjacency[edge.target].add(edge.source)
        edge_counts[edge.source] += 1

    visited: set[str] = set()
    components: list[ConnectedComponent] = []

    for start in graph.module_ids:
        if start in visited:
            continue

        component = ConnectedComponent(index=len(components))
        queue = [start]
        visited.add(start)
        while queue:
            current = queue.pop(0)
            component.module_ids.append(current)
            component.edge_count += edge_counts[current]
            for neighbor in sorted(adjacency[current]):
                if neighbor not in visited:
                    visited.add(neighbor)
                    queue.append(neighbor)

        components.append(component)

    return components


def component_index(components: list[ConnectedComponent]) -> dict[str, int]:
    """Map each module id to the index of its component."""
    return {m: c.index for c in components for m in c.module_ids}


def find_strongly_connected_components(graph: ModuleGraph) -> list[list[str]]:
    """
    Strongly connected components of the module graph (Tarjan, iterative).

    Runs in O(modules + edges). Components come out in reverse topological
    order; a module on no cycle forms a component of its own.
    """
    index_of: dict[str, int] = {}
    lowlink: dict[str, int] = {}
    stack: list[str] = []
    on_stack: set[str] = set()
    components: list[list[str]] = []

    def visit(module_id: str):
        index_of[module_id] = lowlink[module_id] = len(index_of)
        stack.append(module_id)
        on_stack.add(module_id)

    for start in graph.module_ids:
        if start in index_of:
            continue
        visit(start)
        work = [(start, iter(graph.successors(start)))]
        while work:
            current, successors = work[-1]
            descended = False
            for neighbor in successors:
                if neighbor not in index_of:
                    visit(neighbor)
                    work.append((neighbor, iter(graph.successors(neighbor))))
                    descended = True
                    break
                if neighbor in on_stack:
                    lowlink[current] = min(lowlink[current], index_of[neighbor])
            if descended:
                continue

            work.pop()
            if work:
                caller = work[-1][0]
                lowlink[caller] = min(lowlink[caller], lowlink[current])
            if lowlink[current] == index_of[current]:
                component: list[str] = []
                while True:
                    member = stack.pop()
                    on_stack.discard(member)
                    component.append(member)
                    if member == current:
                        break
                components.append(component)

    return components


def _cycle_through(graph: ModuleGraph, start: str, members: set[str]) -> list[str]:
    """Shortest cycle from start back to itself using only the given modules."""
    parent: dict[str, Optional[str]] = {start: None}
    queue = deque([start])
    while queue:
        current = queue.popleft()
        for neighbor in graph.successors(current):
            if neighbor == start:
                path = [current]
                while parent[path[-1]] is not None:
                    path.append(parent[path[-1]])
                return path[::-1] + [start]
            if neighbor in members and neighbor not in parent:
                parent[neighbor] = current
                queue.append(neighbor)
    return [start]


def find_cycles(graph: ModuleGraph) -> list[list[str]]:
    """
    Find cycles in the module graph.

    Reports one cycle per strongly connected component of two or more
    modules, as a list of module ids ending with its starting module. The
    cycle starts at the component's first module in input order, and the
    cycles come out in that order too.
    """
    order = {m: i for i, m in enumerate(graph.module_ids)}
    cycles: list[list[str]] = []
    for component in find_strongly_connected_components(graph):
        if len(component) < 2:
            continue
        start = min(component, key=order.__getitem__)
        cycles.append(_cycle_through(graph, start, set(component)))

    cycles.sort(key=lambda cycle: order[cycle[0]])
    return cycles


def count_crossings(layers: dict[int, list[str]], graph: ModuleGraph) -> int:
    """Count edge crossings between consecutive layers (inversion count)."""
    ordered = list(layers.values())
    total = 0
    for upper, lower in zip(ordered, ordered[1:]):
        lower_pos = {m: i for i, m in enumerate(lower)}
        pairs: list[tuple[int, int]] = []
        for up_pos, module_id in enumerate(upper):
            for target in graph.successors(module_id):
                if target in lower_pos:
                    pairs.append((up_pos, lower_pos[target]))
        for i in range(len(pairs)):
            for j in range(i + 1, len(pairs)):
                (a0, a1), (b0, b1) = pairs[i], pairs[j]
                if (a0 < b0 and a1 > b1) or (a0 > b0 and a1 < b1):
                    total += 1
    return total


def summarize_flow(
    nodes: list[Node],
    edges: list[Edge],
    root_hint: Optional[str] = None,
    config: Optional[LayoutConfig] = None,
) -> FlowSummary:
    """
    Generate a structural summary of a flow.

    Args:
        nodes: All nodes of the snapshot
        edges: All edges of the snapshot
        root_hint: Module to treat as the root
        config: Layout configuration (level update cap)

    Returns:
        FlowSummary with counts, depth and crossing diagnostics
    """
    config = config or LayoutConfig()
    graph = build_module_graph(nodes, edges, root_hint)
    levels = assign_levels(graph, config.max_level_updates)
    layers = order_layers(graph, levels)

    connected = {e.source for e in graph.edges} | {e.target for e in graph.edges}
    slot_count = sum(len(s) for s in graph.slots_by_parent.values())

    return FlowSummary(
        total_nodes=len(nodes),
        total_edges=len(edges),
        module_count=len(graph.module_ids),
        slot_count=slot_count,
        branching_count=len(graph.slots_by_parent),
        module_edge_count=len(graph.edges),
        connected_components=len(find_connected_components(graph)),
        roots=list(graph.roots),
        depth=(max(levels.values()) + 1) if levels else 0,
        crossings=count_crossings(layers, graph),
        cycle_count=len(find_cycles(graph)),
        orphan_count=sum(1 for m in graph.module_ids if m not in connected),
    )

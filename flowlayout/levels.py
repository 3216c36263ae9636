"""
Level assignment.

Breadth-first layering from the root set. A module's level only ever
increases, so a module fed by several paths ends up one level past its
deepest predecessor.
"""

import logging
from collections import deque
from typing import Optional

from .graph import ModuleGraph

logger = logging.getLogger(__name__)


def assign_levels(graph: ModuleGraph, max_updates: Optional[int] = None) -> dict[str, int]:
    """
    Assign a non-negative level to every module of the graph.

    Args:
        graph: Module graph with its root set resolved
        max_updates: How many times a single module's level may be raised.
            Raised to the module count when lower (None = module count): a
            module of an acyclic graph takes at most n-1 distinct levels, so
            only cyclic input ever reaches the cap.

    Returns:
        Dictionary mapping module_id to level, in module input order.
        Modules the BFS never reaches stay at level 0.
    """
    max_updates = max(max_updates or 0, len(graph.module_ids))
    levels: dict[str, int] = {}
    updates: dict[str, int] = {}
    queue: deque[str] = deque()

    for root in graph.roots:
        levels[root] = 0
        updates[root] = 1
        queue.append(root)

    capped: set[str] = set()
    while queue:
        current = queue.popleft()
        candidate = levels[current] + 1
        for neighbor in graph.successors(current):
            existing = levels.get(neighbor)
            if existing is not None and candidate <= existing:
                continue
            if updates.get(neighbor, 0) >= max_updates:
                capped.add(neighbor)
                continue
            levels[neighbor] = candidate
            updates[neighbor] = updates.get(neighbor, 0) + 1
            queue.append(neighbor)

    if capped:
        logger.warning(
            f"Level relaxation capped for {len(capped)} module(s) "
            f"({', '.join(sorted(capped))}); the flow likely contains a cycle"
        )

    return {module_id: levels.get(module_id, 0) for module_id in graph.module_ids}


def group_by_level(levels: dict[str, int]) -> dict[int, list[str]]:
    """Group module ids by level, ascending, keeping input order within a level."""
    grouped: dict[int, list[str]] = {}
    for module_id, level in levels.items():
        grouped.setdefault(level, []).append(module_id)
    return {level: grouped[level] for level in sorted(grouped)}

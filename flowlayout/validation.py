"""
Flow validation - Check snapshots for structural issues.

The layout engine tolerates every issue reported here (it drops or
reinterprets what it cannot use); validation tells the caller what was
dropped or reinterpreted and why.
"""

from collections import Counter, defaultdict
from dataclasses import dataclass
from enum import Enum

from .analysis import find_cycles
from .graph import build_module_graph, resolve_slot_parents
from .models import Edge, Node


class IssueSeverity(str, Enum):
    """Severity levels for validation issues."""
    ERROR = "error"      # Violates an upstream store invariant
    WARNING = "warning"  # Layout works around it, should review
    INFO = "info"        # Informational, may be intentional


@dataclass
class ValidationIssue:
    """A single validation issue found in a snapshot."""
    severity: IssueSeverity
    message: str
    node_id: str | None = None
    edge_id: str | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        result = {
            "type": self.severity.value,
            "message": self.message
        }
        if self.node_id:
            result["node_id"] = self.node_id
        if self.edge_id:
            result["edge_id"] = self.edge_id
        return result


def validate_snapshot(nodes: list[Node], edges: list[Edge]) -> list[ValidationIssue]:
    """
    Validate a flow snapshot and return a list of issues.

    Checks for:
    - Empty flow (no modules) - INFO
    - Duplicate node ids - ERROR
    - Edge endpoints that reference missing nodes - ERROR
    - Output slots whose parent is missing - WARNING
    - Output slots without a slot index - WARNING
    - Duplicate slot indices under one parent - ERROR
    - Slot indices not contiguous from 0 - WARNING
    - Edges that collapse to a self-loop - WARNING
    - Output slots with no outgoing connection - WARNING
    - Cycles between modules - WARNING

    Args:
        nodes: All nodes of the snapshot
        edges: All edges of the snapshot

    Returns:
        List of ValidationIssue objects
    """
    issues: list[ValidationIssue] = []

    parent_of = resolve_slot_parents(nodes)
    if not any(not n.is_slot or n.id not in parent_of for n in nodes):
        issues.append(ValidationIssue(
            severity=IssueSeverity.INFO,
            message="Flow has no modules to lay out"
        ))
        return issues

    # Duplicate ids
    id_counts = Counter(n.id for n in nodes)
    for node_id, count in id_counts.items():
        if count > 1:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Node id used {count} times",
                node_id=node_id
            ))

    # Dangling edge endpoints
    node_ids = set(id_counts)
    for edge in edges:
        for role, endpoint in (("source", edge.source), ("target", edge.target)):
            if endpoint not in node_ids:
                issues.append(ValidationIssue(
                    severity=IssueSeverity.ERROR,
                    message=f"Edge references non-existent {role} node: {endpoint}",
                    edge_id=edge.id
                ))

    # Slot ownership
    indices_by_parent: dict[str, list[int]] = defaultdict(list)
    for node in nodes:
        if not node.is_slot:
            continue
        if node.id not in parent_of:
            issues.append(ValidationIssue(
                severity=IssueSeverity.WARNING,
                message=f"Output slot parent {node.parent_module_id!r} not found; laid out as a module",
                node_id=node.id
            ))
            continue
        if node.slot_index is None:
            issues.append(ValidationIssue(
                severity=IssueSeverity.WARNING,
                message="Output slot has no slot index; treated as index 0",
                node_id=node.id
            ))
            continue
        indices_by_parent[parent_of[node.id]].append(node.slot_index)

    for parent_id, indices in indices_by_parent.items():
        duplicates = sorted(i for i, c in Counter(indices).items() if c > 1)
        if duplicates:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Duplicate slot indices {duplicates}",
                node_id=parent_id
            ))
        elif sorted(indices) != list(range(len(indices))):
            issues.append(ValidationIssue(
                severity=IssueSeverity.WARNING,
                message=f"Slot indices {sorted(indices)} are not contiguous from 0",
                node_id=parent_id
            ))

    # Self-loops after collapsing slots into their parents
    for edge in edges:
        source = parent_of.get(edge.source, edge.source)
        target = parent_of.get(edge.target, edge.target)
        if source == target and source in node_ids:
            issues.append(ValidationIssue(
                severity=IssueSeverity.WARNING,
                message="Edge loops back into its own module and is ignored by layout",
                edge_id=edge.id,
                node_id=source
            ))

    # Unconnected output slots
    sources = {e.source for e in edges}
    for node in nodes:
        if node.id in parent_of and node.id not in sources:
            issues.append(ValidationIssue(
                severity=IssueSeverity.WARNING,
                message=f"Output slot {node.slot_index} of {parent_of[node.id]} is not connected",
                node_id=node.id
            ))

    # Cycles
    graph = build_module_graph(nodes, edges)
    for cycle in find_cycles(graph):
        issues.append(ValidationIssue(
            severity=IssueSeverity.WARNING,
            message=f"Cycle between modules: {' -> '.join(cycle)}",
            node_id=cycle[0]
        ))

    return issues


def validation_summary(issues: list[ValidationIssue]) -> dict:
    """
    Create a summary of validation issues.

    Args:
        issues: List of validation issues

    Returns:
        Dictionary with counts by severity
    """
    return {
        "total": len(issues),
        "errors": len([i for i in issues if i.severity == IssueSeverity.ERROR]),
        "warnings": len([i for i in issues if i.severity == IssueSeverity.WARNING]),
        "info": len([i for i in issues if i.severity == IssueSeverity.INFO]),
        "valid": len([i for i in issues if i.severity == IssueSeverity.ERROR]) == 0
    }

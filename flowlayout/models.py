"""
Core data models for flow diagrams.

These models define the record shapes the layout engine consumes:
- Nodes are either flow modules or output slots owned by a branching module
- Edges connect nodes (source/target) and may pin the side they attach to
- A snapshot bundles nodes, edges and the optional root hint / selection

Field Naming Convention:
- Python attributes are snake_case
- JSON serialization outputs camelCase (parentModuleId, slotIndex, sourceAnchor)
- For backward compatibility, flat x/y/width/height, from/to, *_side and
  handle ids like "bottom-source" are accepted on input and converted
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, ConfigDict, Field, model_validator
import uuid


# Size used when a record arrives without one
DEFAULT_NODE_WIDTH = 220
DEFAULT_NODE_HEIGHT = 80


class NodeKind(str, Enum):
    """Structural role of a node in the flow."""
    MODULE = "module"
    OUTPUT_SLOT = "outputSlot"


class AnchorSide(str, Enum):
    """Side of a node's bounding box a connection leaves from or arrives at."""
    TOP = "top"
    BOTTOM = "bottom"
    LEFT = "left"
    RIGHT = "right"


def generate_node_id() -> str:
    """Generate a unique node ID."""
    return f"n{uuid.uuid4().hex[:8]}"


def generate_edge_id() -> str:
    """Generate a unique edge ID."""
    return f"e{uuid.uuid4().hex[:8]}"


def normalize_anchor(value: Any) -> Optional[str]:
    """
    Normalize an anchor/handle value to a bare side name.

    Accepts "bottom", "BOTTOM", "bottom-source", "top-target" and AnchorSide
    members. Anything else (including handle ids such as "output-0") means
    "unspecified" and returns None.
    """
    if value is None:
        return None
    if isinstance(value, AnchorSide):
        return value.value
    if not isinstance(value, str):
        return None
    side = value.strip().lower()
    for suffix in ("-source", "-target"):
        if side.endswith(suffix):
            side = side[: -len(suffix)]
    if side in {a.value for a in AnchorSide}:
        return side
    return None


def _kind_from_node_type(node_type: Any) -> str:
    """Map an editor node type ("branchingOutputInternal", "single", ...) to a kind."""
    if isinstance(node_type, str):
        if node_type in {k.value for k in NodeKind}:
            return node_type
        if "output" in node_type.lower():
            return NodeKind.OUTPUT_SLOT.value
    return NodeKind.MODULE.value


class Position(BaseModel):
    """Top-left corner of a node on the canvas."""
    x: float = 0
    y: float = 0


class Size(BaseModel):
    """Rendered size of a node."""
    width: float = DEFAULT_NODE_WIDTH
    height: float = DEFAULT_NODE_HEIGHT


class Node(BaseModel):
    """
    A node in the flow diagram.

    Output slots carry `parent_module_id` and `slot_index`; the parent never
    holds its children, so slot add/remove/reorder only touches slot records.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=generate_node_id)
    kind: NodeKind = NodeKind.MODULE
    label: str = ""
    position: Position = Field(default_factory=Position)
    size: Size = Field(default_factory=Size)
    parent_module_id: Optional[str] = Field(default=None, alias="parentModuleId")
    slot_index: Optional[int] = Field(default=None, alias="slotIndex")

    @model_validator(mode='before')
    @classmethod
    def convert_legacy_fields(cls, data: Any) -> Any:
        """Convert flat geometry and editor-specific keys to the canonical shape."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        # Flat geometry (x/y/width/height at the top level)
        if 'position' not in data and ('x' in data or 'y' in data):
            data['position'] = {'x': data.pop('x', 0), 'y': data.pop('y', 0)}
        if 'size' not in data and ('width' in data or 'height' in data):
            data['size'] = {
                'width': data.pop('width', DEFAULT_NODE_WIDTH),
                'height': data.pop('height', DEFAULT_NODE_HEIGHT),
            }
        # Editor keys for slot ownership
        if 'parentNodeId' in data and 'parentModuleId' not in data and 'parent_module_id' not in data:
            data['parentModuleId'] = data.pop('parentNodeId')
        if 'outputIndex' in data and 'slotIndex' not in data and 'slot_index' not in data:
            data['slotIndex'] = data.pop('outputIndex')
        if 'type' in data and 'kind' not in data:
            data['kind'] = _kind_from_node_type(data.pop('type'))
        return data

    @property
    def is_slot(self) -> bool:
        """True if this record is an output slot."""
        return self.kind == NodeKind.OUTPUT_SLOT

    def center(self) -> tuple[float, float]:
        """Get the center point of the node."""
        return (
            self.position.x + self.size.width / 2,
            self.position.y + self.size.height / 2,
        )

    def bounds(self) -> tuple[float, float, float, float]:
        """Get the bounding box (x, y, right, bottom)."""
        return (
            self.position.x,
            self.position.y,
            self.position.x + self.size.width,
            self.position.y + self.size.height,
        )

    def to_json_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        result = {
            "id": self.id,
            "kind": self.kind.value,
            "position": {"x": self.position.x, "y": self.position.y},
            "size": {"width": self.size.width, "height": self.size.height},
        }
        if self.label:
            result["label"] = self.label
        # Only include ownership if set
        if self.parent_module_id is not None:
            result["parentModuleId"] = self.parent_module_id
        if self.slot_index is not None:
            result["slotIndex"] = self.slot_index
        return result


class Edge(BaseModel):
    """
    An edge connecting two nodes.

    Uses `source` and `target` as canonical field names.
    Accepts `from`/`to` on input for backward compatibility.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=generate_edge_id)
    source: str  # Source node ID
    target: str  # Target node ID
    label: str = ""
    # Connection sides, None means "use default placement"
    source_anchor: Optional[AnchorSide] = Field(default=None, alias="sourceAnchor")
    target_anchor: Optional[AnchorSide] = Field(default=None, alias="targetAnchor")

    @model_validator(mode='before')
    @classmethod
    def convert_legacy_fields(cls, data: Any) -> Any:
        """Convert legacy endpoint and side fields to the canonical shape."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        # Handle 'from' -> 'source' (from is a Python keyword)
        if 'from' in data and 'source' not in data:
            data['source'] = data.pop('from')
        if 'to' in data and 'target' not in data:
            data['target'] = data.pop('to')

        for canonical, snake, legacy in (
            ('sourceAnchor', 'source_anchor', ('source_side', 'sourceHandle')),
            ('targetAnchor', 'target_anchor', ('target_side', 'targetHandle')),
        ):
            raw = data.pop(canonical, None)
            if raw is None:
                raw = data.pop(snake, None)
            for key in legacy:
                value = data.pop(key, None)
                if raw is None:
                    raw = value
            data[canonical] = normalize_anchor(raw)
        return data

    @property
    def has_anchor(self) -> bool:
        return self.source_anchor is not None or self.target_anchor is not None

    def to_json_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        result = {
            "id": self.id,
            "source": self.source,
            "target": self.target,
        }
        if self.label:
            result["label"] = self.label
        # Only include anchors if they're set
        if self.source_anchor:
            result["sourceAnchor"] = self.source_anchor.value
        if self.target_anchor:
            result["targetAnchor"] = self.target_anchor.value
        return result


class FlowSnapshot(BaseModel):
    """
    An immutable view of the diagram handed to the layout engine.

    This is the body of layout requests and the document the CLI reads.
    """
    model_config = ConfigDict(populate_by_name=True)

    nodes: list[Node] = Field(default_factory=list)
    edges: list[Edge] = Field(default_factory=list)
    root_hint: Optional[str] = Field(default=None, alias="rootHint")
    selection: Optional[list[str]] = None

    def to_json_dict(self) -> dict:
        """Convert to JSON-serializable dict with proper field names."""
        result: dict = {
            "nodes": [n.to_json_dict() for n in self.nodes],
            "edges": [e.to_json_dict() for e in self.edges],
        }
        if self.root_hint is not None:
            result["rootHint"] = self.root_hint
        if self.selection is not None:
            result["selection"] = list(self.selection)
        return result

    @classmethod
    def from_json_dict(cls, data: dict) -> "FlowSnapshot":
        """Create a snapshot from a JSON dict (handles legacy formats)."""
        return cls.model_validate(data)

    def get_node(self, node_id: str) -> Optional[Node]:
        """Get a node by ID (O(n))."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

"""Graph engine for prompt block canvases.

Every operation takes an explicit snapshot (nodes, edges, groups) and
returns a new one; nothing in the package holds mutable graph state.
"""

from blockcanvas.deletion import apply_deletion
from blockcanvas.editing import add_node, clear_node, toggle_active
from blockcanvas.geometry import canvas_position_from_screen, port_anchor_position
from blockcanvas.groups import create_group, delete_group, remove_from_group, rename_group
from blockcanvas.layout import layout_nodes, organize_subset
from blockcanvas.merge import apply_merge
from blockcanvas.ports import connect, disconnect, reconcile_ports
from blockcanvas.traversal import execution_sequence, flow_highlights
from blockcanvas.types import (
    Canvas,
    Edge,
    ExecutionSequence,
    GraphChange,
    Group,
    ImagePart,
    MergeResult,
    Node,
    NodeKind,
    NodeSource,
    Position,
    TextPart,
    Viewport,
)

__all__ = [
    "Canvas",
    "Edge",
    "ExecutionSequence",
    "GraphChange",
    "Group",
    "ImagePart",
    "MergeResult",
    "Node",
    "NodeKind",
    "NodeSource",
    "Position",
    "TextPart",
    "Viewport",
    "add_node",
    "apply_deletion",
    "apply_merge",
    "canvas_position_from_screen",
    "clear_node",
    "connect",
    "create_group",
    "delete_group",
    "disconnect",
    "execution_sequence",
    "flow_highlights",
    "layout_nodes",
    "organize_subset",
    "port_anchor_position",
    "reconcile_ports",
    "remove_from_group",
    "rename_group",
    "toggle_active",
]

"""Single-block edits: add, toggle active, clear."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace

from blockcanvas.config import DEFAULT_MODEL, DEFAULT_NODE_HEIGHT, DEFAULT_NODE_WIDTH, IMAGE_NODE_HEIGHT
from blockcanvas.types import IdFactory, Node, NodeKind, NodeSource, Position, new_id


def add_node(
    nodes: Sequence[Node],
    position: Position,
    kind: NodeKind = NodeKind.TEXT,
    model: str | None = DEFAULT_MODEL,
    id_factory: IdFactory = new_id,
) -> tuple[tuple[Node, ...], Node]:
    """Append an empty user block with a single spare port.

    Returns the new node list and the created node. Image blocks start
    taller to leave room for the picture.
    """
    node = Node(
        id=id_factory(),
        position=position,
        width=DEFAULT_NODE_WIDTH,
        height=IMAGE_NODE_HEIGHT if kind == NodeKind.IMAGE else DEFAULT_NODE_HEIGHT,
        ports=(id_factory(),),
        source=NodeSource.USER,
        kind=kind,
        model=model,
    )
    return (*nodes, node), node


def toggle_active(nodes: Sequence[Node], node_id: str) -> tuple[Node, ...]:
    """Flip ``inactive`` on one node; inactive nodes are left out of prompts."""
    return tuple(replace(n, inactive=not n.inactive) if n.id == node_id else n for n in nodes)


def clear_node(nodes: Sequence[Node], node_id: str) -> tuple[Node, ...]:
    """Empty a node's content and turn it back into a user text block.

    Ports, position, model and flags are kept so existing edges stay valid.
    """
    return tuple(
        replace(n, parts=(), kind=NodeKind.TEXT, source=NodeSource.USER) if n.id == node_id else n
        for n in nodes
    )

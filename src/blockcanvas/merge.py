"""Merge effects: collapse several blocks into one synthetic block."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from blockcanvas.config import DEFAULT_MODEL, DEFAULT_NODE_HEIGHT, DEFAULT_NODE_WIDTH
from blockcanvas.types import (
    ContentPart,
    Edge,
    EdgeKey,
    Group,
    IdFactory,
    ImagePart,
    MergeResult,
    Node,
    NodeKind,
    NodeSource,
    Position,
    TextPart,
    new_id,
    prune_groups,
)

logger = logging.getLogger(__name__)

MERGE_SEPARATOR = "\n\n"


def merged_parts(nodes: Sequence[Node], id_factory: IdFactory = new_id) -> tuple[ContentPart, ...]:
    """Content for the merged block.

    Non-blank texts are joined with a blank line. The image survives only
    when every merged node carries the same image reference.
    """
    content = MERGE_SEPARATOR.join(n.text for n in nodes if n.text.strip())
    parts: list[ContentPart] = [TextPart(content=content, id=id_factory())]

    first = nodes[0].image_part
    if first is not None and all(n.image_ref == first.image_ref for n in nodes):
        parts.append(ImagePart(image_ref=first.image_ref, mime_type=first.mime_type, id=id_factory()))
    return tuple(parts)


def apply_merge(
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    groups: Sequence[Group],
    merge_ids: Sequence[str],
    node_width: float = DEFAULT_NODE_WIDTH,
    id_factory: IdFactory = new_id,
) -> MergeResult | None:
    """Merge ``merge_ids`` into a new node and rewire edges onto its one port.

    Returns None when no id resolves to an existing node. Edges between
    merged nodes are dropped. Edges into or out of the merged set are
    re-pointed at the new node, collapsing those that share the same remote
    node and handle. Unrelated edges pass through unchanged.
    """
    node_map = {n.id: n for n in nodes}
    to_merge = [node_map[nid] for nid in merge_ids if nid in node_map]
    if not to_merge:
        return None

    merging = set(merge_ids)
    new_node_id = id_factory()
    new_port_id = id_factory()

    new_node = Node(
        id=new_node_id,
        position=Position(
            x=min(n.position.x for n in to_merge),
            y=min(n.position.y for n in to_merge),
        ),
        width=node_width,
        height=DEFAULT_NODE_HEIGHT,
        parts=merged_parts(to_merge, id_factory),
        ports=(new_port_id,),
        source=NodeSource.USER,
        kind=NodeKind.TEXT,
        model=to_merge[0].model or DEFAULT_MODEL,
    )

    new_edges: list[Edge] = []
    seen: set[EdgeKey] = set()
    for edge in edges:
        source_merged = edge.source in merging
        target_merged = edge.target in merging

        if source_merged and target_merged:
            continue

        if target_merged:
            key: EdgeKey = (edge.source, edge.source_handle, new_node_id, new_port_id)
        elif source_merged:
            key = (new_node_id, new_port_id, edge.target, edge.target_handle)
        else:
            new_edges.append(edge)
            continue

        if key in seen:
            continue
        seen.add(key)
        source, source_handle, target, target_handle = key
        new_edges.append(
            Edge(
                id=id_factory(),
                source=source,
                target=target,
                source_handle=source_handle,
                target_handle=target_handle,
                color=edge.color,
            )
        )

    logger.debug("Merged %d nodes into %s with %d rewired edges", len(to_merge), new_node_id, len(seen))
    return MergeResult(
        nodes=(*(n for n in nodes if n.id not in merging), new_node),
        edges=tuple(new_edges),
        groups=prune_groups(groups, merging),
        new_node=new_node,
    )

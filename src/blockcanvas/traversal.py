"""Ancestor traversal: which blocks feed a trigger block, in prompt order."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Sequence
from typing import Union

from blockcanvas.types import Edge, ExecutionSequence, Node

logger = logging.getLogger(__name__)

Frame = tuple[str, Union[str, None]]


def execution_sequence(trigger_node_id: str, nodes: Sequence[Node], edges: Sequence[Edge]) -> ExecutionSequence:
    """Walk inbound edges from ``trigger_node_id`` and collect its ancestry.

    The walk is port-scoped: after following an edge into its source node,
    only edges arriving at that edge's ``source_handle`` are followed next.
    The trigger frame has no port, so every inbound edge of the trigger
    counts. Each (node, input port) frame is expanded once, which makes
    cyclic graphs terminate without changing results on acyclic ones.

    The returned sequence is ordered by x position, left to right.
    """
    inbound: dict[str, list[Edge]] = defaultdict(list)
    for edge in edges:
        inbound[edge.target].append(edge)

    visited: set[str] = set()
    ancestor_edge_ids: set[str] = set()
    seen_frames: set[Frame] = set()
    stack: list[Frame] = [(trigger_node_id, None)]

    while stack:
        frame = stack.pop()
        if frame in seen_frames:
            continue
        seen_frames.add(frame)

        node_id, input_port = frame
        visited.add(node_id)

        for edge in inbound.get(node_id, ()):
            if input_port and edge.target_handle != input_port:
                continue
            ancestor_edge_ids.add(edge.id)
            next_frame = (edge.source, edge.source_handle)
            if next_frame in seen_frames:
                logger.debug("Traversal revisits %s:%s; skipping", *next_frame)
                continue
            stack.append(next_frame)

    sequence = sorted((n for n in nodes if n.id in visited), key=lambda n: n.position.x)
    return ExecutionSequence(sequence=tuple(sequence), ancestor_edge_ids=frozenset(ancestor_edge_ids))


def flow_highlights(
    trigger_node_id: str,
    nodes: Sequence[Node],
    edges: Sequence[Edge],
) -> tuple[frozenset[str], frozenset[str]]:
    """Ancestor edge ids of a node and every port those edges touch."""
    result = execution_sequence(trigger_node_id, nodes, edges)
    port_ids: set[str] = set()
    for edge in edges:
        if edge.id in result.ancestor_edge_ids:
            if edge.source_handle:
                port_ids.add(edge.source_handle)
            if edge.target_handle:
                port_ids.add(edge.target_handle)
    return result.ancestor_edge_ids, frozenset(port_ids)

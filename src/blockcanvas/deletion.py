"""Deletion effects: remove blocks, bridge their flows, close the gaps.

Pipeline:
  1. Partition edges by how many endpoints are deleted.
  2. Bridge every (incoming, outgoing) pair that meets on the same port of a
     deleted node, skipping tuples that already exist.
  3. Pull downstream subtrees left when a bridge spans an oversized gap.
  4. Reconcile ports and prune groups.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace

import networkx as nx

from blockcanvas.config import GAP_SLACK, IDEAL_GAP
from blockcanvas.ports import reconcile_all
from blockcanvas.types import Edge, EdgeKey, GraphChange, Group, IdFactory, Node, Position, new_id, prune_groups

logger = logging.getLogger(__name__)

# ─── Edge Partitioning ────────────────────────────────────────────────────────


@dataclass
class EdgePartition:
    """Edges split by how they touch the deleted set.

    Edges with both endpoints deleted are internal and simply dropped.
    """

    incoming: list[Edge] = field(default_factory=list)
    outgoing: list[Edge] = field(default_factory=list)
    remaining: list[Edge] = field(default_factory=list)


def partition_edges(edges: Iterable[Edge], deleted: set[str]) -> EdgePartition:
    partition = EdgePartition()
    for edge in edges:
        source_deleted = edge.source in deleted
        target_deleted = edge.target in deleted
        if source_deleted and target_deleted:
            continue
        if source_deleted:
            partition.outgoing.append(edge)
        elif target_deleted:
            partition.incoming.append(edge)
        else:
            partition.remaining.append(edge)
    return partition


# ─── Bridging ─────────────────────────────────────────────────────────────────


def bridge_edges(
    nodes: Sequence[Node],
    deleted_ids: Sequence[str],
    partition: EdgePartition,
    id_factory: IdFactory = new_id,
) -> list[Edge]:
    """Synthesize direct edges across deleted nodes.

    For each deleted node and each of its ports, every incoming edge on that
    port is joined to every outgoing edge from it. The bridge carries the
    incoming edge's color. A bridge is skipped when its tuple already exists
    among remaining or previously bridged edges.
    """
    node_map = {n.id: n for n in nodes}
    known: set[EdgeKey] = {e.key for e in partition.remaining}
    bridged: list[Edge] = []

    for deleted_id in deleted_ids:
        node = node_map.get(deleted_id)
        if node is None:
            continue

        relevant_in = [e for e in partition.incoming if e.target == deleted_id]
        relevant_out = [e for e in partition.outgoing if e.source == deleted_id]

        for port_id in node.ports:
            port_in = [e for e in relevant_in if e.target_handle == port_id]
            port_out = [e for e in relevant_out if e.source_handle == port_id]

            for in_edge in port_in:
                for out_edge in port_out:
                    key: EdgeKey = (in_edge.source, in_edge.source_handle, out_edge.target, out_edge.target_handle)
                    if key in known:
                        logger.debug("Skipping duplicate bridge %s:%s -> %s:%s", *key)
                        continue
                    known.add(key)
                    bridged.append(
                        Edge(
                            id=id_factory(),
                            source=in_edge.source,
                            target=out_edge.target,
                            source_handle=in_edge.source_handle,
                            target_handle=out_edge.target_handle,
                            color=in_edge.color,
                        )
                    )
                    logger.debug("Bridged %s across deleted %s to %s", in_edge.source, deleted_id, out_edge.target)

    return bridged


# ─── Subtree Shifting ─────────────────────────────────────────────────────────


def compress_gaps(
    positions: dict[str, Position],
    bridged: Iterable[Edge],
    final_edges: Iterable[Edge],
) -> dict[str, Position]:
    """Pull downstream subtrees left where a bridge spans too wide a gap.

    When a bridge's target sits more than ``IDEAL_GAP + GAP_SLACK`` to the
    right of its source, the target and everything reachable from it move
    left so the gap becomes ``IDEAL_GAP``. A node moves at most once across
    all bridges; an already-moved node also stops the walk through it.
    Distances are measured after earlier shifts.
    """
    positions = dict(positions)
    graph: nx.DiGraph = nx.DiGraph()
    graph.add_nodes_from(positions)
    for edge in final_edges:
        if edge.source in graph and edge.target in graph:
            graph.add_edge(edge.source, edge.target)

    moved: set[str] = set()

    def shift_subtree(root_id: str, delta_x: float) -> None:
        stack = [root_id]
        while stack:
            node_id = stack.pop()
            if node_id in moved:
                continue
            moved.add(node_id)
            positions[node_id] = positions[node_id].shifted(dx=delta_x)
            stack.extend(reversed(list(graph.successors(node_id))))

    for edge in bridged:
        parent = positions.get(edge.source)
        child = positions.get(edge.target)
        if parent is None or child is None:
            continue
        distance = child.x - parent.x
        if distance > IDEAL_GAP + GAP_SLACK:
            logger.debug("Shifting subtree at %s by %.1f", edge.target, IDEAL_GAP - distance)
            shift_subtree(edge.target, IDEAL_GAP - distance)

    return positions


# ─── Full Deletion Pipeline ───────────────────────────────────────────────────


def apply_deletion(
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    groups: Sequence[Group],
    deleted_ids: Sequence[str],
    id_factory: IdFactory = new_id,
) -> GraphChange:
    """Delete ``deleted_ids`` and return the resulting snapshot.

    Ids that match no node are ignored. Every surviving edge references
    surviving nodes, no two edges share a (source, handle, target, handle)
    tuple introduced by bridging, and groups never reference deleted nodes.
    """
    deleted = set(deleted_ids)
    partition = partition_edges(edges, deleted)
    bridged = bridge_edges(nodes, deleted_ids, partition, id_factory)
    final_edges = tuple(partition.remaining) + tuple(bridged)

    survivors = [n for n in nodes if n.id not in deleted]
    positions = compress_gaps({n.id: n.position for n in survivors}, bridged, final_edges)
    survivors = [n if positions[n.id] == n.position else replace(n, position=positions[n.id]) for n in survivors]

    logger.debug(
        "Deleted %d nodes: %d edges dropped, %d bridged",
        len(deleted),
        len(edges) - len(partition.remaining),
        len(bridged),
    )
    return GraphChange(
        nodes=reconcile_all(survivors, final_edges),
        edges=final_edges,
        groups=prune_groups(groups, deleted),
    )

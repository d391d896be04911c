"""Port lifecycle: keep exactly one trailing spare port on every node."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import replace

from blockcanvas.types import Edge, GraphChange, IdFactory, Node, new_id

logger = logging.getLogger(__name__)


def active_ports(node_id: str, edges: Iterable[Edge]) -> set[str]:
    """Handles referenced by any edge touching ``node_id`` on this node's side."""
    active: set[str] = set()
    for edge in edges:
        if edge.source == node_id and edge.source_handle:
            active.add(edge.source_handle)
        if edge.target == node_id and edge.target_handle:
            active.add(edge.target_handle)
    return active


def reconcile_ports(node: Node, edges: Iterable[Edge]) -> tuple[str, ...]:
    """Collapse a trailing run of unused ports down to a single spare.

    Only the tail is examined: a connected port stops the scan, and an
    unused port directly after a connected one is kept as the spare.
    Unused ports earlier in the list are left alone. Never drops below one
    port.
    """
    active = active_ports(node.id, edges)
    ports = list(node.ports)
    while len(ports) > 1:
        if ports[-1] in active or ports[-2] in active:
            break
        ports.pop()
    return tuple(ports)


def reconcile_all(nodes: Iterable[Node], edges: Sequence[Edge]) -> tuple[Node, ...]:
    """Reconcile every node's ports against ``edges``.

    Nodes whose port list is unchanged are returned as-is.
    """
    result: list[Node] = []
    for node in nodes:
        ports = reconcile_ports(node, edges)
        result.append(node if ports == node.ports else replace(node, ports=ports))
    return tuple(result)


def connect(
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    source_id: str,
    target_id: str,
    source_handle: str | None = None,
    target_handle: str | None = None,
    color: str | None = None,
    id_factory: IdFactory = new_id,
) -> GraphChange | None:
    """Add an edge from ``source_id`` to ``target_id``.

    A missing source handle defaults to the source's last port, a missing
    target handle to the target's first port. Connecting a node's last port
    grows that node by one fresh spare port.
    """
    if source_id == target_id:
        return None
    by_id = {n.id: n for n in nodes}
    source = by_id.get(source_id)
    target = by_id.get(target_id)
    if source is None or target is None:
        return None

    if source_handle is None and source.ports:
        source_handle = source.ports[-1]
    if target_handle is None and target.ports:
        target_handle = target.ports[0]
    if source_handle is None or target_handle is None:
        return None

    next_nodes: list[Node] = []
    for node in nodes:
        ports = list(node.ports)
        if node.id == source_id and ports and ports[-1] == source_handle:
            ports.append(id_factory())
        if node.id == target_id and ports and ports[-1] == target_handle:
            ports.append(id_factory())
        next_nodes.append(node if len(ports) == len(node.ports) else replace(node, ports=tuple(ports)))

    edge = Edge(
        id=id_factory(),
        source=source_id,
        target=target_id,
        source_handle=source_handle,
        target_handle=target_handle,
        color=color,
    )
    logger.debug("Connected %s:%s -> %s:%s", source_id, source_handle, target_id, target_handle)
    return GraphChange(nodes=tuple(next_nodes), edges=(*edges, edge))


def disconnect(nodes: Sequence[Node], edges: Sequence[Edge], edge_id: str) -> GraphChange:
    """Remove one edge and trim the spare ports it leaves behind."""
    remaining = tuple(e for e in edges if e.id != edge_id)
    return GraphChange(nodes=reconcile_all(nodes, remaining), edges=remaining)

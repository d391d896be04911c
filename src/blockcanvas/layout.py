"""Layout module — layered left-to-right auto-layout for blocks.

Phases:
  1. Level assignment (longest-path layering on the induced subgraph)
  2. Column grouping (level, then original vertical order)
  3. Coordinate assignment (size-aware column widths and row heights)

Columns grow to the right: a node's level is its column index. Inside a
column, nodes keep the top-to-bottom order the user gave them.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace

import networkx as nx

from blockcanvas.config import (
    COLLAPSED_HEIGHT_BASE,
    COLLAPSED_MIN_HEIGHT,
    COLLAPSED_WIDTH,
    DEFAULT_NODE_HEIGHT,
    DEFAULT_NODE_WIDTH,
    LAYOUT_H_GAP,
    LAYOUT_ORIGIN_X,
    LAYOUT_ORIGIN_Y,
    LAYOUT_V_GAP,
    MIN_COLUMN_WIDTH,
    PORT_SPACING,
)
from blockcanvas.geometry import bounding_origin
from blockcanvas.types import Edge, Node, Position

logger = logging.getLogger(__name__)

# ─── Level Assignment ─────────────────────────────────────────────────────────


def induced_digraph(node_ids: Iterable[str], edges: Iterable[Edge]) -> nx.DiGraph:
    """DiGraph over ``node_ids`` keeping only edges with both endpoints inside.

    Parallel port-to-port edges between the same two nodes collapse into one
    graph edge; levels only depend on node adjacency.
    """
    graph: nx.DiGraph = nx.DiGraph()
    graph.add_nodes_from(node_ids)
    for edge in edges:
        if edge.source in graph and edge.target in graph:
            graph.add_edge(edge.source, edge.target)
    return graph


class LayerAssignment:
    """Result of level assignment: each node is assigned a column.

    Level 0 is the leftmost column.

    Attributes:
        levels: Maps node id → level index.
        level_count: Total number of columns.
        converged: False when the pass cap was hit, which only happens when
            the subgraph has a cycle. Levels are then not a true longest-path
            layering.
    """

    def __init__(self, levels: dict[str, int], level_count: int, converged: bool) -> None:
        self.levels = levels
        self.level_count = level_count
        self.converged = converged

    @classmethod
    def assign(cls, node_ids: Sequence[str], edges: Iterable[Edge]) -> LayerAssignment:
        """Assign levels using bounded fixed-point iteration.

        Algorithm: for each edge u→v, level[v] = max(level[v], level[u]+1).
        Repeat until a pass changes nothing, for at most ``len(node_ids) + 1``
        passes so a cycle cannot loop forever.
        """
        graph = induced_digraph(node_ids, edges)

        # Initialize all levels to 0.
        levels: dict[str, int] = {node_id: 0 for node_id in graph.nodes}

        converged = False
        for _pass in range(len(levels) + 1):
            changed = False
            for src, tgt in graph.edges():
                src_level = levels[src]
                if levels[tgt] < src_level + 1:
                    levels[tgt] = src_level + 1
                    changed = True
            if not changed:
                converged = True
                break

        if not converged:
            logger.debug("Level assignment hit the pass cap; subgraph has a cycle")

        level_count = (max(levels.values()) + 1) if levels else 0
        return cls(levels=levels, level_count=level_count, converged=converged)


def assign_levels(node_ids: Sequence[str], edges: Iterable[Edge]) -> dict[str, int]:
    """Node id → column index for the subgraph induced by ``node_ids``."""
    return LayerAssignment.assign(node_ids, edges).levels


# ─── Column Grouping ──────────────────────────────────────────────────────────


def group_by_level(nodes: Sequence[Node], la: LayerAssignment) -> list[list[str]]:
    """Bucket node ids per level, each bucket ordered by pre-layout y.

    The sort is stable, so nodes at the same height keep their input order.
    """
    columns: list[list[str]] = [[] for _ in range(la.level_count)]
    for node in sorted(nodes, key=lambda n: n.position.y):
        columns[la.levels[node.id]].append(node.id)
    return columns


# ─── Coordinate Assignment ────────────────────────────────────────────────────


def layout_width(node: Node) -> float:
    """Width a node occupies in a column."""
    if node.collapsed:
        return COLLAPSED_WIDTH
    return node.width or DEFAULT_NODE_WIDTH


def layout_height(node: Node) -> float:
    """Height a node occupies in a column.

    Collapsed nodes still list their ports, so they grow with the port count.
    """
    if node.collapsed:
        return max(COLLAPSED_MIN_HEIGHT, len(node.ports) * PORT_SPACING + COLLAPSED_HEIGHT_BASE)
    return node.height or DEFAULT_NODE_HEIGHT


@dataclass
class ColumnSlot:
    """A node's place in the layered layout."""

    id: str
    level: int
    order: int
    x: float
    y: float


def assign_coordinates(
    columns: list[list[str]],
    node_map: dict[str, Node],
    origin_x: float,
    origin_y: float,
) -> dict[str, ColumnSlot]:
    """Assign (x, y) canvas coordinates to every node in ``columns``.

    Column x = origin + widths of all previous columns, each padded by the
    horizontal gap. Row y = origin + heights of the nodes above it in the
    same column, each padded by the vertical gap.
    """
    slots: dict[str, ColumnSlot] = {}
    x = origin_x
    for level, column in enumerate(columns):
        y = origin_y
        for order, node_id in enumerate(column):
            node = node_map[node_id]
            slots[node_id] = ColumnSlot(id=node_id, level=level, order=order, x=x, y=y)
            y += layout_height(node) + LAYOUT_V_GAP

        column_width = max((layout_width(node_map[nid]) for nid in column), default=MIN_COLUMN_WIDTH)
        x += max(column_width, MIN_COLUMN_WIDTH) + LAYOUT_H_GAP

    return slots


# ─── Full Layout Pipeline ─────────────────────────────────────────────────────


def layout_nodes(
    target_nodes: Sequence[Node],
    target_edges: Iterable[Edge],
    origin_x: float = LAYOUT_ORIGIN_X,
    origin_y: float = LAYOUT_ORIGIN_Y,
) -> tuple[Node, ...]:
    """Lay out ``target_nodes`` in columns and return them repositioned.

    Only edges between target nodes count. Output order matches input order
    and only ``position`` changes.
    """
    if not target_nodes:
        return ()

    node_map = {n.id: n for n in target_nodes}
    la = LayerAssignment.assign(list(node_map), target_edges)
    columns = group_by_level(list(node_map.values()), la)
    slots = assign_coordinates(columns, node_map, origin_x, origin_y)

    logger.debug("Laid out %d nodes in %d columns", len(node_map), la.level_count)
    return tuple(
        replace(node, position=Position(x=slots[node.id].x, y=slots[node.id].y))
        for node in target_nodes
    )


def organize_subset(
    nodes: Sequence[Node],
    edges: Iterable[Edge],
    node_ids: Iterable[str],
) -> tuple[Node, ...]:
    """Lay out only ``node_ids`` in place, anchored at their bounding origin.

    Every other node is returned untouched.
    """
    wanted = set(node_ids)
    targets = [n for n in nodes if n.id in wanted]
    origin = bounding_origin(targets)
    if origin is None:
        return tuple(nodes)

    organized = {n.id: n for n in layout_nodes(targets, edges, origin.x, origin.y)}
    return tuple(organized.get(n.id, n) for n in nodes)

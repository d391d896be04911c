"""Group lifecycle: create, ungroup, delete and rename.

Groups are visual only. Creating one tidies the selection in place first,
so the group frame wraps a readable column layout.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import replace

from blockcanvas.layout import organize_subset
from blockcanvas.types import Edge, GraphChange, Group, IdFactory, Node, new_id, prune_groups

logger = logging.getLogger(__name__)

DEFAULT_GROUP_TITLE = "New Group"
DEFAULT_GROUP_COLOR = "gray"


def create_group(
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    groups: Sequence[Group],
    node_ids: Iterable[str],
    title: str = DEFAULT_GROUP_TITLE,
    color: str | None = DEFAULT_GROUP_COLOR,
    id_factory: IdFactory = new_id,
) -> GraphChange | None:
    """Lay out ``node_ids`` at their bounding origin and group them.

    Ids that match no node are left out of the group. Returns None when
    nothing matches.
    """
    known = {n.id for n in nodes}
    members = tuple(dict.fromkeys(nid for nid in node_ids if nid in known))
    if not members:
        return None

    group = Group(id=id_factory(), title=title, node_ids=members, color=color)
    logger.debug("Created group %s with %d nodes", group.id, len(members))
    return GraphChange(
        nodes=organize_subset(nodes, edges, members),
        edges=tuple(edges),
        groups=(*groups, group),
    )


def remove_from_group(groups: Iterable[Group], node_id: str) -> tuple[Group, ...]:
    """Take ``node_id`` out of every group; groups left empty disappear."""
    return prune_groups(tuple(groups), {node_id})


def delete_group(groups: Iterable[Group], group_id: str) -> tuple[Group, ...]:
    """Drop a group. Its nodes stay on the canvas."""
    return tuple(g for g in groups if g.id != group_id)


def rename_group(groups: Iterable[Group], group_id: str, title: str) -> tuple[Group, ...]:
    return tuple(replace(g, title=title) if g.id == group_id else g for g in groups)

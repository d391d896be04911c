"""Coordinate transforms between screen and canvas space, and port anchors."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Literal

from blockcanvas.config import (
    COLLAPSED_PORT_TOP,
    COLLAPSED_WIDTH,
    EXPANDED_PORT_TOP,
    MAX_SCALE,
    MIN_SCALE,
    PORT_SPACING,
    WHEEL_SENSITIVITY,
    ZOOM_STEP,
)
from blockcanvas.types import Node, Position, Viewport

Side = Literal["left", "right"]


def canvas_position_from_screen(
    screen_x: float,
    screen_y: float,
    viewport_offset: Position,
    viewport_scale: float,
) -> Position:
    """Inverse of the viewport transform: ``(screen - offset) / scale``.

    ``viewport_scale`` must be positive. Viewports built by the zoom helpers
    below are always clamped to at least ``MIN_SCALE``.
    """
    return Position(
        x=(screen_x - viewport_offset.x) / viewport_scale,
        y=(screen_y - viewport_offset.y) / viewport_scale,
    )


def effective_width(node: Node) -> float:
    return COLLAPSED_WIDTH if node.collapsed else node.width


def port_anchor_position(
    node_id: str,
    port_id: str,
    side: Side,
    nodes: Mapping[str, Node] | Iterable[Node],
) -> Position | None:
    """Canvas position of a port's connection point.

    ``nodes`` may be an id → node mapping or any iterable of nodes.
    Returns None when the node or the port does not exist.
    """
    if isinstance(nodes, Mapping):
        node = nodes.get(node_id)
    else:
        node = next((n for n in nodes if n.id == node_id), None)
    if node is None:
        return None

    try:
        index = node.ports.index(port_id)
    except ValueError:
        return None

    top = COLLAPSED_PORT_TOP if node.collapsed else EXPANDED_PORT_TOP
    y = node.position.y + top + index * PORT_SPACING
    x = node.position.x if side == "left" else node.position.x + effective_width(node)
    return Position(x=x, y=y)


def bounding_origin(nodes: Iterable[Node]) -> Position | None:
    """Top-left corner (min x, min y) of a node set, or None when empty."""
    nodes = list(nodes)
    if not nodes:
        return None
    return Position(
        x=min(n.position.x for n in nodes),
        y=min(n.position.y for n in nodes),
    )


# ─── Zoom ─────────────────────────────────────────────────────────────────────


def _clamp_scale(scale: float) -> float:
    return min(max(scale, MIN_SCALE), MAX_SCALE)


def _zoom_to(viewport: Viewport, new_scale: float, anchor: Position) -> Viewport:
    """Rescale so the canvas point under the screen ``anchor`` stays put."""
    world = canvas_position_from_screen(anchor.x, anchor.y, viewport.offset, viewport.scale)
    offset = Position(
        x=anchor.x - world.x * new_scale,
        y=anchor.y - world.y * new_scale,
    )
    return Viewport(offset=offset, scale=new_scale)


def zoom_viewport(viewport: Viewport, factor: float, anchor: Position) -> Viewport:
    return _zoom_to(viewport, _clamp_scale(viewport.scale * factor), anchor)


def zoom_in(viewport: Viewport, anchor: Position) -> Viewport:
    return zoom_viewport(viewport, ZOOM_STEP, anchor)


def zoom_out(viewport: Viewport, anchor: Position) -> Viewport:
    return zoom_viewport(viewport, 1 / ZOOM_STEP, anchor)


def wheel_zoom(viewport: Viewport, delta_y: float, anchor: Position) -> Viewport:
    """Additive zoom for a wheel event; scrolling down (positive delta) zooms out."""
    new_scale = _clamp_scale(viewport.scale - delta_y * WHEEL_SENSITIVITY)
    return _zoom_to(viewport, new_scale, anchor)

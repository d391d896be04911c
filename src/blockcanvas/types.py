"""Graph records shared by every engine in the package.

All records are frozen dataclasses holding tuples, so an engine can never
mutate the snapshot it was handed. Engines build new records with
``dataclasses.replace`` and return them.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Union

from blockcanvas.config import DEFAULT_NODE_HEIGHT, DEFAULT_NODE_WIDTH

IdFactory = Callable[[], str]


def new_id() -> str:
    """Return a fresh UUID4 string identifier."""
    return str(uuid.uuid4())


# ─── Geometry ─────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Position:
    """A point in canvas coordinates (logical units, not screen pixels)."""

    x: float
    y: float

    def shifted(self, dx: float = 0.0, dy: float = 0.0) -> Position:
        return Position(x=self.x + dx, y=self.y + dy)


@dataclass(frozen=True)
class Viewport:
    """Screen transform: ``screen = canvas * scale + offset``."""

    offset: Position = Position(0.0, 0.0)
    scale: float = 1.0


# ─── Content Parts ────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class TextPart:
    content: str
    id: str = field(default_factory=new_id)


@dataclass(frozen=True)
class ImagePart:
    """An image fragment. ``image_ref`` is a key into an external image store."""

    image_ref: str
    mime_type: str | None = None
    id: str = field(default_factory=new_id)


ContentPart = Union[TextPart, ImagePart]


# ─── Prompt Parts ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class TextPrompt:
    text: str


@dataclass(frozen=True)
class InlineImagePrompt:
    """Inline image data sent to a provider.

    ``image_ref`` is kept when the bytes came from the image store, so a
    stored execution context can drop the payload and still point at it.
    """

    mime_type: str
    data: str
    image_ref: str | None = None


PromptPart = Union[TextPrompt, InlineImagePrompt]


# ─── Graph Records ────────────────────────────────────────────────────────────


class NodeSource(str, Enum):
    USER = "user"
    AI = "ai"


class NodeKind(str, Enum):
    TEXT = "text"
    IMAGE = "image"


@dataclass(frozen=True)
class Node:
    """A block on the canvas.

    Port order is meaningful: the first port is the primary one for
    single-port flows, and the last port is the spare the user connects next.
    """

    id: str
    position: Position
    width: float = DEFAULT_NODE_WIDTH
    height: float = DEFAULT_NODE_HEIGHT
    parts: tuple[ContentPart, ...] = ()
    ports: tuple[str, ...] = ()
    source: NodeSource = NodeSource.USER
    kind: NodeKind = NodeKind.TEXT
    model: str | None = None
    inactive: bool = False
    collapsed: bool = False
    execution_context: tuple[PromptPart, ...] = ()

    @property
    def text(self) -> str:
        """All text parts joined with newlines (the legacy ``content`` string)."""
        return "\n".join(p.content for p in self.parts if isinstance(p, TextPart))

    @property
    def image_part(self) -> ImagePart | None:
        for part in self.parts:
            if isinstance(part, ImagePart):
                return part
        return None

    @property
    def image_ref(self) -> str | None:
        image = self.image_part
        return image.image_ref if image is not None else None

    @property
    def image_mime_type(self) -> str | None:
        image = self.image_part
        return image.mime_type if image is not None else None

    @classmethod
    def from_legacy(
        cls,
        id: str,
        position: Position,
        content: str = "",
        image_id: str | None = None,
        image_mime_type: str | None = None,
        **kwargs: object,
    ) -> Node:
        """Build a node from the legacy single text + optional image pair."""
        parts: list[ContentPart] = []
        if content:
            parts.append(TextPart(content=content))
        if image_id:
            parts.append(ImagePart(image_ref=image_id, mime_type=image_mime_type))
        return cls(id=id, position=position, parts=tuple(parts), **kwargs)  # type: ignore[arg-type]


EdgeKey = tuple[str, Union[str, None], str, Union[str, None]]


@dataclass(frozen=True)
class Edge:
    """A directed port-to-port connection establishing context flow."""

    id: str
    source: str
    target: str
    source_handle: str | None = None
    target_handle: str | None = None
    color: str | None = None

    @property
    def key(self) -> EdgeKey:
        """The (source, source_handle, target, target_handle) identity used for dedup."""
        return (self.source, self.source_handle, self.target, self.target_handle)


@dataclass(frozen=True)
class Group:
    """A named cluster of nodes. Visual only, never part of execution."""

    id: str
    title: str
    node_ids: tuple[str, ...] = ()
    color: str | None = None


# ─── Results ──────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class GraphChange:
    """A full new snapshot produced by a structural operation."""

    nodes: tuple[Node, ...]
    edges: tuple[Edge, ...]
    groups: tuple[Group, ...] = ()


@dataclass(frozen=True)
class MergeResult:
    nodes: tuple[Node, ...]
    edges: tuple[Edge, ...]
    groups: tuple[Group, ...]
    new_node: Node


@dataclass(frozen=True)
class ExecutionSequence:
    """Ancestors of a trigger node in prompt order, plus the edges walked."""

    sequence: tuple[Node, ...]
    ancestor_edge_ids: frozenset[str]


@dataclass(frozen=True)
class Canvas:
    """A persisted canvas document."""

    nodes: tuple[Node, ...] = ()
    edges: tuple[Edge, ...] = ()
    groups: tuple[Group, ...] = ()
    viewport: Viewport = Viewport()


def prune_groups(groups: tuple[Group, ...] | list[Group], removed_ids: set[str]) -> tuple[Group, ...]:
    """Strip removed node ids from every group and drop groups left empty."""
    result: list[Group] = []
    for group in groups:
        members = tuple(nid for nid in group.node_ids if nid not in removed_ids)
        if members:
            result.append(replace(group, node_ids=members))
    return tuple(result)

"""JSON canvas documents, in the format the block canvas web app saves.

Records use camelCase keys. Nodes carry both ``parts`` and the legacy
``content`` / ``imageId`` pair so older readers still see their text; on
load, ``parts`` wins when present and legacy nodes are migrated.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from blockcanvas.config import CANVAS_FORMAT_VERSION, DEFAULT_NODE_HEIGHT, DEFAULT_NODE_WIDTH
from blockcanvas.persistence.base import CanvasFormatError
from blockcanvas.types import (
    Canvas,
    ContentPart,
    Edge,
    Group,
    ImagePart,
    InlineImagePrompt,
    Node,
    NodeKind,
    NodeSource,
    Position,
    PromptPart,
    TextPart,
    TextPrompt,
    Viewport,
    new_id,
)

logger = logging.getLogger(__name__)

# ─── Document Schema ──────────────────────────────────────────────────────────


class _Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PositionModel(_Record):
    x: float
    y: float


class PartModel(_Record):
    id: str | None = None
    type: Literal["text", "image"] = "text"
    content: str = ""
    image_id: str | None = None
    mime_type: str | None = None


class InlineDataModel(_Record):
    mime_type: str
    data: str


class PromptPartModel(_Record):
    text: str | None = None
    inline_data: InlineDataModel | None = None
    image_id: str | None = None


class NodeModel(_Record):
    id: str
    type: Literal["text", "image"] = "text"
    source: Literal["user", "ai"] = "user"
    content: str = ""
    position: PositionModel
    width: float = DEFAULT_NODE_WIDTH
    height: float = DEFAULT_NODE_HEIGHT
    ports: list[str] = Field(default_factory=list)
    model: str | None = None
    is_inactive: bool = False
    collapsed: bool = False
    image_id: str | None = None
    image_mime_type: str | None = None
    parts: list[PartModel] | None = None
    execution_context: list[PromptPartModel] | None = None


class EdgeModel(_Record):
    id: str
    source: str
    target: str
    source_handle: str | None = None
    target_handle: str | None = None
    color: str | None = None


class GroupModel(_Record):
    id: str
    title: str = ""
    node_ids: list[str] = Field(default_factory=list)
    color: str | None = None


class CanvasModel(_Record):
    nodes: list[NodeModel]
    edges: list[EdgeModel]
    groups: list[GroupModel] = Field(default_factory=list)
    offset: PositionModel | None = None
    scale: float | None = None
    version: str | None = None


# ─── Document → Records ───────────────────────────────────────────────────────


def _part_from_model(model: PartModel) -> ContentPart | None:
    part_id = model.id or new_id()
    if model.type == "image":
        if not model.image_id:
            logger.warning("Dropping image part %s without an image id", part_id)
            return None
        return ImagePart(image_ref=model.image_id, mime_type=model.mime_type, id=part_id)
    return TextPart(content=model.content, id=part_id)


def _prompt_from_model(model: PromptPartModel) -> PromptPart | None:
    if model.inline_data is not None:
        return InlineImagePrompt(
            mime_type=model.inline_data.mime_type,
            data=model.inline_data.data,
            image_ref=model.image_id,
        )
    if model.text is not None:
        return TextPrompt(text=model.text)
    return None


def _node_from_model(model: NodeModel) -> Node:
    common = dict(
        width=model.width,
        height=model.height,
        ports=tuple(model.ports),
        source=NodeSource(model.source),
        kind=NodeKind(model.type),
        model=model.model,
        inactive=model.is_inactive,
        collapsed=model.collapsed,
        execution_context=tuple(
            p for p in (_prompt_from_model(m) for m in model.execution_context or []) if p is not None
        ),
    )
    position = Position(x=model.position.x, y=model.position.y)

    if model.parts:
        parts = tuple(p for p in (_part_from_model(m) for m in model.parts) if p is not None)
        return Node(id=model.id, position=position, parts=parts, **common)

    return Node.from_legacy(
        id=model.id,
        position=position,
        content=model.content,
        image_id=model.image_id,
        image_mime_type=model.image_mime_type,
        **common,
    )


def canvas_from_model(model: CanvasModel) -> Canvas:
    viewport = Viewport(
        offset=Position(x=model.offset.x, y=model.offset.y) if model.offset else Position(0.0, 0.0),
        scale=model.scale or 1.0,
    )
    return Canvas(
        nodes=tuple(_node_from_model(n) for n in model.nodes),
        edges=tuple(
            Edge(
                id=e.id,
                source=e.source,
                target=e.target,
                source_handle=e.source_handle,
                target_handle=e.target_handle,
                color=e.color,
            )
            for e in model.edges
        ),
        groups=tuple(Group(id=g.id, title=g.title, node_ids=tuple(g.node_ids), color=g.color) for g in model.groups),
        viewport=viewport,
    )


# ─── Records → Document ───────────────────────────────────────────────────────


def _part_to_model(part: ContentPart) -> PartModel:
    if isinstance(part, ImagePart):
        return PartModel(id=part.id, type="image", image_id=part.image_ref, mime_type=part.mime_type)
    return PartModel(id=part.id, type="text", content=part.content)


def _prompt_to_model(part: PromptPart) -> PromptPartModel:
    if isinstance(part, InlineImagePrompt):
        return PromptPartModel(
            inline_data=InlineDataModel(mime_type=part.mime_type, data=part.data),
            image_id=part.image_ref,
        )
    return PromptPartModel(text=part.text)


def _node_to_model(node: Node) -> NodeModel:
    return NodeModel(
        id=node.id,
        type=node.kind.value,
        source=node.source.value,
        content=node.text,
        position=PositionModel(x=node.position.x, y=node.position.y),
        width=node.width,
        height=node.height,
        ports=list(node.ports),
        model=node.model,
        is_inactive=node.inactive,
        collapsed=node.collapsed,
        image_id=node.image_ref,
        image_mime_type=node.image_mime_type,
        parts=[_part_to_model(p) for p in node.parts],
        execution_context=[_prompt_to_model(p) for p in node.execution_context] or None,
    )


def canvas_to_model(canvas: Canvas) -> CanvasModel:
    return CanvasModel(
        nodes=[_node_to_model(n) for n in canvas.nodes],
        edges=[
            EdgeModel(
                id=e.id,
                source=e.source,
                target=e.target,
                source_handle=e.source_handle,
                target_handle=e.target_handle,
                color=e.color,
            )
            for e in canvas.edges
        ],
        groups=[GroupModel(id=g.id, title=g.title, node_ids=list(g.node_ids), color=g.color) for g in canvas.groups],
        offset=PositionModel(x=canvas.viewport.offset.x, y=canvas.viewport.offset.y),
        scale=canvas.viewport.scale,
        version=CANVAS_FORMAT_VERSION,
    )


# ─── Public API ───────────────────────────────────────────────────────────────


def loads_canvas(text: str | bytes) -> Canvas:
    """Parse a canvas document. Raises CanvasFormatError on bad input."""
    try:
        model = CanvasModel.model_validate_json(text)
    except ValidationError as exc:
        raise CanvasFormatError(f"Invalid canvas document: {exc}") from exc
    return canvas_from_model(model)


def dumps_canvas(canvas: Canvas) -> str:
    return canvas_to_model(canvas).model_dump_json(indent=2, by_alias=True, exclude_none=True)


class JsonCanvasStore:
    """Canvas documents stored as UTF-8 JSON files."""

    def load(self, path: str | Path) -> Canvas:
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise CanvasFormatError(f"{path} is not UTF-8 text") from exc
        canvas = loads_canvas(text)
        logger.debug("Loaded %s: %d nodes, %d edges", path, len(canvas.nodes), len(canvas.edges))
        return canvas

    def save(self, canvas: Canvas, path: str | Path) -> None:
        path = Path(path)
        path.write_text(dumps_canvas(canvas) + "\n", encoding="utf-8")
        logger.debug("Saved %s: %d nodes, %d edges", path, len(canvas.nodes), len(canvas.edges))

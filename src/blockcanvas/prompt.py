"""Prompt assembly from an execution sequence, and folding results back in.

The provider call sits between :func:`build_prompt` and
:func:`append_generated` and is not part of this package.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, replace
from typing import Optional

from blockcanvas.config import IMAGE_PLACEHOLDER
from blockcanvas.types import (
    ContentPart,
    IdFactory,
    ImagePart,
    InlineImagePrompt,
    Node,
    NodeKind,
    NodeSource,
    PromptPart,
    TextPart,
    TextPrompt,
    new_id,
)

logger = logging.getLogger(__name__)

_IMAGE_DATA_URL = re.compile(r"^data:(image/[a-z+]+);base64,(.+)$", re.DOTALL)
_ANY_DATA_URL = re.compile(r"^data:([^;]+);base64,(.+)$", re.DOTALL)

ImageLookup = Callable[[str], Optional[str]]
ImageStore = Callable[[str, str], str]


def parse_image_data_url(value: str) -> tuple[str, str] | None:
    """(mime_type, base64 payload) for a ``data:image/...;base64,`` URL."""
    match = _IMAGE_DATA_URL.match(value)
    if match is None:
        return None
    return match.group(1), match.group(2)


def _node_prompt(node: Node, image_lookup: ImageLookup) -> list[PromptPart]:
    parts: list[PromptPart] = []
    for part in node.parts:
        if isinstance(part, TextPart):
            if not part.content:
                continue
            inline = parse_image_data_url(part.content)
            if inline is not None:
                parts.append(InlineImagePrompt(mime_type=inline[0], data=inline[1]))
            else:
                parts.append(TextPrompt(text=part.content))
        else:
            data_url = image_lookup(part.image_ref)
            inline = parse_image_data_url(data_url) if data_url else None
            if inline is None:
                logger.warning("Image %s for node %s is unavailable; leaving it out", part.image_ref, node.id)
                continue
            parts.append(InlineImagePrompt(mime_type=inline[0], data=inline[1], image_ref=part.image_ref))
    return parts


def build_prompt(sequence: Iterable[Node], image_lookup: ImageLookup) -> list[PromptPart]:
    """Provider-neutral prompt parts for an ordered ancestor sequence.

    Inactive nodes are skipped. ``image_lookup`` maps an image reference to
    a data URL, or None when the store no longer has it.
    """
    prompt: list[PromptPart] = []
    for node in sequence:
        if node.inactive:
            continue
        prompt.extend(_node_prompt(node, image_lookup))
    return prompt


def redact_prompt(parts: Iterable[PromptPart]) -> tuple[PromptPart, ...]:
    """Drop stored image payloads so a prompt can be kept on the node."""
    return tuple(
        replace(part, data=IMAGE_PLACEHOLDER)
        if isinstance(part, InlineImagePrompt) and part.image_ref is not None
        else part
        for part in parts
    )


# ─── Generated Output ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class GeneratedPart:
    """One segment of a provider response: ``kind`` is "text" or "image".

    Image content is a ``data:<mime>;base64,`` URL.
    """

    kind: str
    content: str


def append_generated(
    node: Node,
    generated: Sequence[GeneratedPart],
    prompt: Iterable[PromptPart],
    store_image: ImageStore,
    id_factory: IdFactory = new_id,
) -> Node:
    """Return ``node`` with a provider response appended to its parts.

    Each text segment becomes its own text part. Each image is handed to
    ``store_image(payload, mime_type)`` and referenced by the returned key.
    A trailing empty text part is kept so the user can continue typing.
    """
    parts: list[ContentPart] = list(node.parts)

    for item in generated:
        if item.kind == "text":
            parts.append(TextPart(content=item.content, id=id_factory()))
            continue
        match = _ANY_DATA_URL.match(item.content)
        if match is None:
            logger.warning("Dropping generated image for node %s: not a base64 data URL", node.id)
            continue
        mime_type, payload = match.group(1), match.group(2)
        image_ref = store_image(payload, mime_type)
        parts.append(ImagePart(image_ref=image_ref, mime_type=mime_type, id=id_factory()))

    if parts and not isinstance(parts[-1], TextPart):
        parts.append(TextPart(content="", id=id_factory()))

    return replace(
        node,
        parts=tuple(parts),
        kind=NodeKind.TEXT,
        source=NodeSource.AI,
        execution_context=redact_prompt(prompt),
    )

"""Tests for prompt.py — prompt assembly, redaction and appending generated output."""

from __future__ import annotations

import itertools

from blockcanvas.prompt import (
    GeneratedPart,
    append_generated,
    build_prompt,
    parse_image_data_url,
    redact_prompt,
)
from blockcanvas.types import (
    ImagePart,
    InlineImagePrompt,
    Node,
    NodeKind,
    NodeSource,
    Position,
    TextPart,
    TextPrompt,
)

# ─── Helpers ──────────────────────────────────────────────────────────────────

PNG_URL = "data:image/png;base64,iVBORw0KGgo="


def make_node(node_id: str, *parts, inactive: bool = False) -> Node:
    return Node(id=node_id, position=Position(0, 0), parts=tuple(parts), inactive=inactive)


def lookup_from(store: dict[str, str]):
    return store.get


def counter_ids(prefix: str = "part"):
    counter = itertools.count()
    return lambda: f"{prefix}-{next(counter)}"


# ─── build_prompt Tests ───────────────────────────────────────────────────────


class TestBuildPrompt:
    def test_text_in_order(self):
        """Text parts of each node follow the sequence order."""
        sequence = [make_node("A", TextPart("one")), make_node("B", TextPart("two"), TextPart("three"))]
        assert build_prompt(sequence, lookup_from({})) == [
            TextPrompt("one"),
            TextPrompt("two"),
            TextPrompt("three"),
        ]

    def test_inactive_skipped(self):
        """Inactive nodes contribute nothing."""
        sequence = [make_node("A", TextPart("skip me"), inactive=True), make_node("B", TextPart("keep"))]
        assert build_prompt(sequence, lookup_from({})) == [TextPrompt("keep")]

    def test_empty_text_skipped(self):
        """Empty text parts are left out."""
        assert build_prompt([make_node("A", TextPart(""))], lookup_from({})) == []

    def test_stored_image_inlined(self):
        """Image parts are resolved through the lookup and keep their ref."""
        sequence = [make_node("A", ImagePart("img-1"))]
        prompt = build_prompt(sequence, lookup_from({"img-1": PNG_URL}))
        assert prompt == [InlineImagePrompt(mime_type="image/png", data="iVBORw0KGgo=", image_ref="img-1")]

    def test_missing_image_skipped(self):
        """An image the store no longer has is dropped."""
        sequence = [make_node("A", ImagePart("gone"), TextPart("after"))]
        assert build_prompt(sequence, lookup_from({})) == [TextPrompt("after")]

    def test_data_url_text_becomes_image(self):
        """A text part holding an image data URL is sent as an inline image."""
        prompt = build_prompt([make_node("A", TextPart(PNG_URL))], lookup_from({}))
        assert prompt == [InlineImagePrompt(mime_type="image/png", data="iVBORw0KGgo=")]

    def test_migrated_legacy_node_sends_text_and_image(self):
        """A legacy content + image node contributes both parts, text first."""
        node = Node.from_legacy(id="A", position=Position(0, 0), content="caption", image_id="img-1")
        prompt = build_prompt([node], lookup_from({"img-1": PNG_URL}))
        assert prompt == [
            TextPrompt("caption"),
            InlineImagePrompt(mime_type="image/png", data="iVBORw0KGgo=", image_ref="img-1"),
        ]


class TestParseImageDataUrl:
    def test_valid(self):
        """Mime type and payload are split out."""
        assert parse_image_data_url("data:image/jpeg;base64,AAAA") == ("image/jpeg", "AAAA")

    def test_not_an_image(self):
        """Non-image and non-data strings yield None."""
        assert parse_image_data_url("data:text/plain;base64,AAAA") is None
        assert parse_image_data_url("hello") is None


class TestRedactPrompt:
    def test_stored_images_redacted(self):
        """Payloads with a store ref are replaced; inline-only data is kept."""
        stored = InlineImagePrompt(mime_type="image/png", data="AAAA", image_ref="img-1")
        inline = InlineImagePrompt(mime_type="image/png", data="BBBB")
        redacted = redact_prompt([TextPrompt("t"), stored, inline])
        assert redacted[0] == TextPrompt("t")
        assert redacted[1].data == "(image data)"
        assert redacted[1].image_ref == "img-1"
        assert redacted[2] is inline


# ─── append_generated Tests ───────────────────────────────────────────────────


class TestAppendGenerated:
    def test_text_appended(self):
        """Generated text becomes a new part; the node turns into an AI text node."""
        node = make_node("A", TextPart("question", id="q"))
        prompt = [TextPrompt("question")]
        result = append_generated(node, [GeneratedPart("text", "answer")], prompt, lambda p, m: "unused", counter_ids())
        assert [p.content for p in result.parts] == ["question", "answer"]
        assert result.source == NodeSource.AI
        assert result.kind == NodeKind.TEXT
        assert result.execution_context == (TextPrompt("question"),)

    def test_image_stored_and_followed_by_text(self):
        """Images go to the store; an empty text part is appended after them."""
        stored: list[tuple[str, str]] = []

        def store_image(payload: str, mime_type: str) -> str:
            stored.append((payload, mime_type))
            return "img-42"

        node = make_node("A", TextPart("draw", id="q"))
        result = append_generated(node, [GeneratedPart("image", PNG_URL)], [], store_image, counter_ids())
        assert stored == [("iVBORw0KGgo=", "image/png")]
        assert isinstance(result.parts[1], ImagePart)
        assert result.parts[1].image_ref == "img-42"
        assert result.parts[-1] == TextPart("", id="part-1")

    def test_bad_image_dropped(self):
        """Generated images that are not data URLs are ignored."""
        node = make_node("A", TextPart("x", id="q"))
        result = append_generated(node, [GeneratedPart("image", "http://nope")], [], lambda p, m: "ref")
        assert result.parts == node.parts

    def test_context_redacted(self):
        """Stored image payloads are not kept in the execution context."""
        prompt = [InlineImagePrompt(mime_type="image/png", data="AAAA", image_ref="img-1")]
        result = append_generated(make_node("A"), [], prompt, lambda p, m: "ref")
        assert result.execution_context[0].data == "(image data)"

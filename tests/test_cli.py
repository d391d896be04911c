"""Tests for cli.py — each subcommand against a canvas file on disk."""

from __future__ import annotations

import pytest

from blockcanvas.cli import build_parser, main
from blockcanvas.persistence import JsonCanvasStore
from blockcanvas.types import Canvas, Edge, Node, Position, TextPart, Viewport

# ─── Helpers ──────────────────────────────────────────────────────────────────


@pytest.fixture
def canvas_file(tmp_path):
    """A → B → C chain, scattered, with B inactive."""
    nodes = (
        Node(id="A", position=Position(700, 40), parts=(TextPart("first", id="ta"),), ports=("a1", "a2")),
        Node(id="B", position=Position(20, 300), parts=(TextPart("second", id="tb"),), ports=("b1", "b2"), inactive=True),
        Node(id="C", position=Position(1500, 900), parts=(TextPart("third", id="tc"),), ports=("c1", "c2")),
    )
    edges = (
        Edge(id="e1", source="A", target="B", source_handle="a1", target_handle="b1"),
        Edge(id="e2", source="B", target="C", source_handle="b1", target_handle="c1"),
    )
    path = tmp_path / "board.canvas.json"
    JsonCanvasStore().save(Canvas(nodes=nodes, edges=edges, viewport=Viewport(Position(50, 60), 2.0)), path)
    return path


def load(path) -> Canvas:
    return JsonCanvasStore().load(path)


# ─── Subcommand Tests ─────────────────────────────────────────────────────────


class TestOrganize:
    def test_lays_out_and_resets_pan(self, canvas_file, capsys):
        """organize writes laid-out positions and a zero offset."""
        assert main(["organize", str(canvas_file)]) == 0
        canvas = load(canvas_file)
        xs = {n.id: n.position.x for n in canvas.nodes}
        assert xs == {"A": 100, "B": 480, "C": 860}
        assert canvas.viewport == Viewport(Position(0, 0), 2.0)
        assert "Organized 3 nodes" in capsys.readouterr().out

    def test_output_to_other_file(self, canvas_file, tmp_path):
        """-o leaves the input untouched."""
        out = tmp_path / "out.json"
        before = canvas_file.read_text(encoding="utf-8")
        assert main(["organize", str(canvas_file), "-o", str(out)]) == 0
        assert canvas_file.read_text(encoding="utf-8") == before
        assert out.exists()


class TestSequence:
    def test_prints_ancestors(self, canvas_file, capsys):
        """Ancestors print left to right with inactive markers."""
        assert main(["sequence", str(canvas_file), "C"]) == 0
        captured = capsys.readouterr()
        assert captured.out.splitlines() == ["B (inactive)", "A", "C"]
        assert "2 ancestor edges" in captured.err


class TestDelete:
    def test_bridges_and_saves(self, canvas_file, capsys):
        """Deleting B leaves a bridge from A to C."""
        assert main(["delete", str(canvas_file), "B"]) == 0
        canvas = load(canvas_file)
        assert [n.id for n in canvas.nodes] == ["A", "C"]
        assert [(e.source, e.target) for e in canvas.edges] == [("A", "C")]
        assert "Deleted 1 nodes" in capsys.readouterr().out


class TestMerge:
    def test_merges_and_prints_id(self, canvas_file, capsys):
        """The new node id is printed and replaces the merged nodes."""
        assert main(["merge", str(canvas_file), "A", "B"]) == 0
        new_id = capsys.readouterr().out.strip()
        canvas = load(canvas_file)
        assert [n.id for n in canvas.nodes] == ["C", new_id]
        assert canvas.nodes[1].text == "first\n\nsecond"

    def test_nothing_to_merge(self, canvas_file, capsys):
        """Unknown ids exit with status 1."""
        assert main(["merge", str(canvas_file), "nope"]) == 1
        assert "error" in capsys.readouterr().err


class TestErrors:
    def test_missing_file(self, tmp_path, capsys):
        """A missing canvas is reported, not raised."""
        assert main(["organize", str(tmp_path / "absent.json")]) == 1
        assert "no such file" in capsys.readouterr().err

    def test_malformed_file(self, tmp_path, capsys):
        """A malformed canvas exits with status 1."""
        path = tmp_path / "bad.json"
        path.write_text("{}", encoding="utf-8")
        assert main(["organize", str(path)]) == 1
        assert "Invalid canvas document" in capsys.readouterr().err

    def test_subcommand_required(self):
        """Running without a subcommand is a usage error."""
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

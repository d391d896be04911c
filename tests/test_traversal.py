"""Tests for traversal.py — port-scoped ancestor walks and flow highlights."""

from __future__ import annotations

from blockcanvas.traversal import execution_sequence, flow_highlights
from blockcanvas.types import Edge, Node, Position

# ─── Helpers ──────────────────────────────────────────────────────────────────


def make_node(node_id: str, x: float, *ports: str, inactive: bool = False) -> Node:
    return Node(id=node_id, position=Position(x, 0), ports=ports or (f"{node_id}-p",), inactive=inactive)


def link(source: str, target: str, source_handle: str | None = None, target_handle: str | None = None) -> Edge:
    return Edge(
        id=f"{source}->{target}",
        source=source,
        target=target,
        source_handle=source_handle or f"{source}-p",
        target_handle=target_handle or f"{target}-p",
    )


def ids(result) -> list[str]:
    return [n.id for n in result.sequence]


# ─── execution_sequence Tests ─────────────────────────────────────────────────


class TestExecutionSequence:
    def test_lone_node(self):
        """A node with no inbound edges yields only itself."""
        result = execution_sequence("A", [make_node("A", 0)], [])
        assert ids(result) == ["A"]
        assert result.ancestor_edge_ids == frozenset()

    def test_chain_sorted_by_x(self):
        """Ancestors come back ordered left to right, trigger included."""
        nodes = [make_node("C", 800), make_node("A", 0), make_node("B", 400)]
        result = execution_sequence("C", nodes, [link("A", "B"), link("B", "C")])
        assert ids(result) == ["A", "B", "C"]
        assert result.ancestor_edge_ids == {"A->B", "B->C"}

    def test_diamond(self):
        """A diamond yields all four nodes and all four edges."""
        nodes = [make_node("A", 0), make_node("B", 400), make_node("C", 400), make_node("D", 800)]
        edges = [link("A", "B"), link("A", "C"), link("B", "D"), link("C", "D")]
        result = execution_sequence("D", nodes, edges)
        assert set(ids(result)) == {"A", "B", "C", "D"}
        assert ids(result)[0] == "A" and ids(result)[-1] == "D"
        assert len(result.ancestor_edge_ids) == 4

    def test_descendants_excluded(self):
        """Downstream nodes are not part of the ancestry."""
        nodes = [make_node("A", 0), make_node("B", 400)]
        result = execution_sequence("A", nodes, [link("A", "B")])
        assert ids(result) == ["A"]

    def test_port_scoping(self):
        """Only edges arriving on the port that fed the next step are followed."""
        nodes = [
            make_node("X", 0, "x1"),
            make_node("Y", 0, "y1"),
            make_node("A", 400, "a1", "a2"),
            make_node("T", 800, "t1"),
        ]
        edges = [
            link("X", "A", "x1", "a1"),
            link("Y", "A", "y1", "a2"),
            link("A", "T", "a2", "t1"),
        ]
        result = execution_sequence("T", nodes, edges)
        assert set(ids(result)) == {"Y", "A", "T"}
        assert result.ancestor_edge_ids == {"Y->A", "A->T"}

    def test_trigger_follows_every_inbound_edge(self):
        """The trigger itself is not port-scoped."""
        nodes = [make_node("X", 0, "x1"), make_node("Y", 0, "y1"), make_node("T", 400, "t1", "t2")]
        edges = [link("X", "T", "x1", "t1"), link("Y", "T", "y1", "t2")]
        result = execution_sequence("T", nodes, edges)
        assert set(ids(result)) == {"X", "Y", "T"}

    def test_inactive_nodes_still_listed(self):
        """Inactive ancestors are in the sequence; the prompt builder skips them."""
        nodes = [make_node("A", 0, inactive=True), make_node("B", 400)]
        result = execution_sequence("B", nodes, [link("A", "B")])
        assert ids(result) == ["A", "B"]
        assert result.sequence[0].inactive

    def test_cycle_terminates(self):
        """A → B → A still returns both nodes."""
        nodes = [make_node("A", 0), make_node("B", 400)]
        result = execution_sequence("B", nodes, [link("A", "B"), link("B", "A")])
        assert set(ids(result)) == {"A", "B"}
        assert result.ancestor_edge_ids == {"A->B", "B->A"}

    def test_unknown_trigger(self):
        """An id that matches no node yields an empty sequence."""
        assert execution_sequence("missing", [make_node("A", 0)], []).sequence == ()


# ─── flow_highlights Tests ────────────────────────────────────────────────────


class TestFlowHighlights:
    def test_edges_and_ports(self):
        """Highlights cover ancestor edges and both handles of each."""
        nodes = [make_node("A", 0, "a1"), make_node("B", 400, "b1"), make_node("C", 800, "c1")]
        edges = [link("A", "B", "a1", "b1"), link("B", "C", "b1", "c1")]
        edge_ids, port_ids = flow_highlights("B", nodes, edges)
        assert edge_ids == {"A->B"}
        assert port_ids == {"a1", "b1"}

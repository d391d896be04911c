"""Command-line access to the graph engine over canvas JSON files."""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path

from blockcanvas.config import LAYOUT_ORIGIN_X, LAYOUT_ORIGIN_Y, configure_logging
from blockcanvas.deletion import apply_deletion
from blockcanvas.layout import layout_nodes
from blockcanvas.merge import apply_merge
from blockcanvas.persistence import CanvasFormatError, JsonCanvasStore
from blockcanvas.traversal import execution_sequence
from blockcanvas.types import Canvas, Position, Viewport


def _output_path(args: argparse.Namespace) -> Path:
    return Path(args.output) if args.output else Path(args.file)


def cmd_organize(args: argparse.Namespace, store: JsonCanvasStore) -> int:
    canvas = store.load(args.file)
    origin_x, origin_y = args.origin
    nodes = layout_nodes(canvas.nodes, canvas.edges, origin_x, origin_y)
    # Global layout also resets the pan so the organized graph is in view.
    viewport = Viewport(offset=Position(0.0, 0.0), scale=canvas.viewport.scale)
    store.save(replace(canvas, nodes=nodes, viewport=viewport), _output_path(args))
    print(f"Organized {len(nodes)} nodes")
    return 0


def cmd_sequence(args: argparse.Namespace, store: JsonCanvasStore) -> int:
    canvas = store.load(args.file)
    result = execution_sequence(args.node_id, canvas.nodes, canvas.edges)
    for node in result.sequence:
        marker = " (inactive)" if node.inactive else ""
        print(f"{node.id}{marker}")
    print(f"{len(result.ancestor_edge_ids)} ancestor edges", file=sys.stderr)
    return 0


def cmd_delete(args: argparse.Namespace, store: JsonCanvasStore) -> int:
    canvas = store.load(args.file)
    change = apply_deletion(canvas.nodes, canvas.edges, canvas.groups, args.node_ids)
    updated = Canvas(nodes=change.nodes, edges=change.edges, groups=change.groups, viewport=canvas.viewport)
    store.save(updated, _output_path(args))
    print(f"Deleted {len(canvas.nodes) - len(change.nodes)} nodes")
    return 0


def cmd_merge(args: argparse.Namespace, store: JsonCanvasStore) -> int:
    canvas = store.load(args.file)
    result = apply_merge(canvas.nodes, canvas.edges, canvas.groups, args.node_ids)
    if result is None:
        print("error: none of the given node ids exist", file=sys.stderr)
        return 1
    updated = Canvas(nodes=result.nodes, edges=result.edges, groups=result.groups, viewport=canvas.viewport)
    store.save(updated, _output_path(args))
    print(result.new_node.id)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="blockcanvas", description=__doc__)
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    organize = sub.add_parser("organize", help="auto-layout every block")
    organize.add_argument("file")
    organize.add_argument(
        "--origin",
        nargs=2,
        type=float,
        metavar=("X", "Y"),
        default=(LAYOUT_ORIGIN_X, LAYOUT_ORIGIN_Y),
    )
    organize.add_argument("-o", "--output")
    organize.set_defaults(handler=cmd_organize)

    sequence = sub.add_parser("sequence", help="print the execution sequence of a block")
    sequence.add_argument("file")
    sequence.add_argument("node_id")
    sequence.set_defaults(handler=cmd_sequence)

    delete = sub.add_parser("delete", help="delete blocks, bridging their connections")
    delete.add_argument("file")
    delete.add_argument("node_ids", nargs="+")
    delete.add_argument("-o", "--output")
    delete.set_defaults(handler=cmd_delete)

    merge = sub.add_parser("merge", help="merge blocks into one")
    merge.add_argument("file")
    merge.add_argument("node_ids", nargs="+")
    merge.add_argument("-o", "--output")
    merge.set_defaults(handler=cmd_merge)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging("DEBUG" if args.verbose else None)

    try:
        return args.handler(args, JsonCanvasStore())
    except FileNotFoundError as exc:
        print(f"error: {exc.filename}: no such file", file=sys.stderr)
        return 1
    except CanvasFormatError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())

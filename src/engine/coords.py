"""
Stack Games - Coordinates

Node id parsing, board geometry and human-readable coordinates.

Node ids have the form "r<row>c<col>" with r0 at the top of the board.
Algebraic (A1) display labels columns A.. left to right and rows 1..size from
the bottom, so r0 is shown as row `size`.
"""

import re

from src.engine.base import NodeId

_NODE_RE = re.compile(r"^r(\d+)c(\d+)$")
_A1_RE = re.compile(r"^([A-Za-z])(\d+)$")

# Diagonal directions as (d_row, d_col), in generation order.
DIAGONALS: tuple[tuple[int, int], ...] = ((-1, -1), (-1, 1), (1, -1), (1, 1))

Direction = tuple[int, int]


def parse_node_id(node: NodeId) -> tuple[int, int]:
    """
    Split a node id into (row, col).

    Raises:
        ValueError: If the id is not of the form r<row>c<col>
    """
    match = _NODE_RE.match(node) if isinstance(node, str) else None
    if match is None:
        raise ValueError(f"Malformed node id: {node!r}")
    return int(match.group(1)), int(match.group(2))


def make_node_id(row: int, col: int) -> NodeId:
    return f"r{row}c{col}"


def in_bounds(row: int, col: int, size: int) -> bool:
    return 0 <= row < size and 0 <= col < size


def is_playable(row: int, col: int, size: int, all_squares: bool = False) -> bool:
    """Whether a square can hold a stack. Checkers boards use the even-parity squares."""
    if not in_bounds(row, col, size):
        return False
    return all_squares or (row + col) % 2 == 0


def node_sort_key(node: NodeId) -> tuple[int, int]:
    return parse_node_id(node)


def direction_between(from_: NodeId, to: NodeId) -> Direction:
    """Unit step (d_row, d_col) pointing from one node toward another."""
    fr, fc = parse_node_id(from_)
    tr, tc = parse_node_id(to)
    return _sign(tr - fr), _sign(tc - fc)


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


def node_to_a1(node: NodeId, size: int, flip: bool = False) -> str:
    """
    Convert a node id to an algebraic label.

    Args:
        node: Node id
        size: Board edge length
        flip: Mirror both axes (board viewed from the Dark side)

    Returns:
        Label such as "A1"
    """
    row, col = parse_node_id(node)
    if flip:
        row, col = size - 1 - row, size - 1 - col
    return f"{chr(ord('A') + col)}{size - row}"


def a1_to_node(text: str, size: int, flip: bool = False) -> NodeId:
    """
    Convert an algebraic label back to a node id.

    Raises:
        ValueError: If the label is malformed or off the board
    """
    match = _A1_RE.match(text.strip())
    if match is None:
        raise ValueError(f"Malformed coordinate: {text!r}")
    col = ord(match.group(1).upper()) - ord("A")
    row = size - int(match.group(2))
    if flip:
        row, col = size - 1 - row, size - 1 - col
    if not in_bounds(row, col, size):
        raise ValueError(f"Coordinate {text!r} is off a {size}x{size} board")
    return make_node_id(row, col)


def format_node_id(node: NodeId, fmt: str, size: int, flip: bool = False) -> str:
    """Render a node id in the requested format ("rc" or "a1")."""
    if fmt == "rc":
        return node
    if fmt == "a1":
        return node_to_a1(node, size, flip)
    raise ValueError(f"Unknown coordinate format: {fmt!r}")


def format_turn_notation(
    nodes: list[NodeId],
    had_capture: bool,
    size: int,
    fmt: str = "a1",
    flip: bool = False,
) -> str:
    """
    Notation for a completed turn, e.g. "A3 → B4" or "A3 × C5 × E3".

    Args:
        nodes: Starting node followed by every landing node
        had_capture: Whether the turn captured
        size: Board edge length
        fmt: Coordinate format
        flip: Mirror coordinates for display

    Returns:
        Notation string (empty when no nodes were recorded)
    """
    separator = " × " if had_capture else " → "
    return separator.join(format_node_id(n, fmt, size, flip) for n in nodes)

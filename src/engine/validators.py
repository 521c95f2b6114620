"""
Stack Games - Input Validation Utilities

Provides validation functions for engine inputs. All validators either return
validated data or raise descriptive ValueError exceptions.
"""

from typing import Iterable, Mapping, Sequence

from src.engine.base import Board, NodeId, Piece, Rank, Stack
from src.engine.coords import is_playable, parse_node_id


def validate_board_size(size: int) -> int:
    """
    Validate a board edge length.

    Raises:
        ValueError: If size is not 7 or 8
    """
    if not isinstance(size, int) or isinstance(size, bool):
        raise ValueError(f"Board size must be an integer, got {type(size).__name__}.")
    if size not in (7, 8):
        raise ValueError(f"Board size must be 7 or 8, got {size}.")
    return size


def validate_node_id(node: NodeId, size: int, all_squares: bool = False) -> NodeId:
    """
    Validate a node id against a board.

    Args:
        node: Node id to validate
        size: Board edge length
        all_squares: Whether every square is playable

    Returns:
        The node id

    Raises:
        ValueError: If the id is malformed, off the board or on an unplayable square
    """
    row, col = parse_node_id(node)
    if not is_playable(row, col, size, all_squares):
        raise ValueError(f"Node {node} is not a playable square on a {size}x{size} board.")
    return node


def validate_stack(stack: Sequence[Piece], ranks: Iterable[Rank]) -> Stack:
    """
    Validate and normalize a stack.

    Args:
        stack: Pieces, bottom to top
        ranks: Ranks allowed by the ruleset

    Returns:
        The stack as a tuple

    Raises:
        ValueError: If the stack is empty or holds a rank outside the ruleset
    """
    stack_tuple = tuple(stack)
    if not stack_tuple:
        raise ValueError("Stacks on the board cannot be empty.")

    allowed = frozenset(ranks)
    for i, piece in enumerate(stack_tuple):
        if not isinstance(piece, Piece):
            raise ValueError(f"Stack entry at index {i} must be a Piece, got {type(piece).__name__}.")
        if piece.rank not in allowed:
            raise ValueError(f"Rank {piece.rank.value} at index {i} is not used by this ruleset.")
    return stack_tuple


def validate_board(
    board: Mapping[NodeId, Sequence[Piece]],
    size: int,
    ranks: Iterable[Rank],
    all_squares: bool = False,
    max_stack_height: int | None = None,
) -> Board:
    """
    Validate every node and stack on a board.

    Args:
        board: Mapping of node id to stack
        size: Board edge length
        ranks: Ranks allowed by the ruleset
        all_squares: Whether every square is playable
        max_stack_height: Largest allowed stack (None = no limit)

    Returns:
        A fresh board with tuple stacks

    Raises:
        ValueError: If any node or stack is invalid
    """
    allowed = frozenset(ranks)
    validated: Board = {}
    for node, stack in board.items():
        validate_node_id(node, size, all_squares)
        stack_tuple = validate_stack(stack, allowed)
        if max_stack_height is not None and len(stack_tuple) > max_stack_height:
            raise ValueError(f"Stack at {node} has {len(stack_tuple)} pieces, at most {max_stack_height} allowed.")
        validated[node] = stack_tuple
    return validated


def validate_history_cursor(index: int, length: int) -> int:
    """
    Validate a history cursor.

    Raises:
        ValueError: If index is outside 0..length-1
    """
    if not isinstance(index, int) or isinstance(index, bool):
        raise ValueError(f"History index must be an integer, got {type(index).__name__}.")
    if not (0 <= index < length):
        raise ValueError(f"History index {index} is out of range for {length} entries.")
    return index

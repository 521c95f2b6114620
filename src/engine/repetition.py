"""
Stack Games - State Hashing and Repetition

A position hash ignores the interaction phase, history and object identity:
two states with the same stacks, side to move and chess rights hash equal.
"""

from collections import Counter

from src.engine.base import GameState, Player
from src.engine.coords import node_sort_key
from src.engine.history import HistorySnapshot

THREEFOLD = 3


def hash_state(state: GameState) -> str:
    """
    Deterministic position key.

    Nodes are listed in sorted order, each followed by its piece codes from
    bottom to top, then the side to move and, for chess, castling rights and
    en passant squares.
    """
    parts: list[str] = []
    for node in sorted(state.board, key=node_sort_key):
        stack = state.board[node]
        if not stack:
            continue
        parts.append(node)
        parts.extend(piece.code for piece in stack)

    parts.append(f"toMove:{state.to_move.value}")

    chess = state.chess
    if chess is not None:
        for player in (Player.LIGHT, Player.DARK):
            rights = chess.rights(player)
            parts.append(f"castle{player.value}:{int(rights.king_side)}{int(rights.queen_side)}")
        if chess.en_passant_target:
            parts.append(f"epT:{chess.en_passant_target}")
        if chess.en_passant_pawn:
            parts.append(f"epP:{chess.en_passant_pawn}")

    return "|".join(parts)


class RepetitionTracker:
    """Occurrence counts of positions on the active history line."""

    def __init__(self) -> None:
        self._counts: Counter[str] = Counter()

    def reset(self) -> None:
        self._counts.clear()

    def rebuild(self, snapshot: HistorySnapshot) -> None:
        """Recount from states 0..current_index of a history."""
        self._counts = Counter(hash_state(s) for s in snapshot.active_states())

    def record(self, state: GameState) -> int:
        """Count one more occurrence of state; return the new count."""
        key = hash_state(state)
        self._counts[key] += 1
        return self._counts[key]

    def count(self, state: GameState) -> int:
        return self._counts[hash_state(state)]

    def is_threefold(self, state: GameState) -> bool:
        return self.count(state) >= THREEFOLD


def would_create_threefold(history: HistorySnapshot, next_state: GameState) -> bool:
    """True if next_state already occurs twice on the active line of history."""
    target = hash_state(next_state)
    seen = sum(1 for s in history.active_states() if hash_state(s) == target)
    return seen >= THREEFOLD - 1

"""
Stack Games - Session Event Definitions

Event types and payloads for game state changes, plus classification of
authoritative snapshot updates into events for remote consumers.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any

from src.wire.models import WireSnapshot


class GameEvent(Enum):
    """Events that can occur during a game."""

    MOVE_APPLIED = auto()
    CAPTURE_CONTINUES = auto()
    TURN_ENDED = auto()
    PROMOTED = auto()
    GAME_OVER = auto()
    DRAW = auto()
    UNDO = auto()
    REDO = auto()
    JUMP = auto()
    LOADED = auto()


@dataclass
class EventPayload:
    """Wrapper for session event data."""

    event: GameEvent
    state_version: int
    data: dict[str, Any] = field(default_factory=dict)


def classify_snapshot_change(old: WireSnapshot | None, new: WireSnapshot) -> GameEvent | None:
    """
    Determine the game event from two consecutive authoritative snapshots.

    Args:
        old: Previously applied snapshot (None if there was none)
        new: Incoming snapshot

    Returns:
        The event the change represents, or None for a stale or identical snapshot
    """
    if old is None:
        return GameEvent.LOADED
    if new.state_version <= old.state_version:
        return None

    forced = new.state.forced_game_over
    if forced is not None and old.state.forced_game_over is None:
        return GameEvent.DRAW if forced.winner is None else GameEvent.GAME_OVER

    old_len, new_len = len(old.history.states), len(new.history.states)
    old_idx, new_idx = old.history.current_index, new.history.current_index
    same_line = old.history.states == new.history.states

    if same_line and new_idx != old_idx:
        if new_idx == old_idx - 1:
            return GameEvent.UNDO
        if new_idx == old_idx + 1:
            return GameEvent.REDO
        return GameEvent.JUMP

    if new_idx == old_idx + 1 and new_len == new_idx + 1:
        return GameEvent.TURN_ENDED

    if new_idx == old_idx and same_line:
        if new.state.to_move == old.state.to_move and new.state.board != old.state.board:
            return GameEvent.CAPTURE_CONTINUES
        return None

    return GameEvent.LOADED

"""
Stack Games - History Manager

An ordered list of turn-boundary states with a cursor. Pushing while the
cursor is behind the end discards the redo future.
"""

import logging
from dataclasses import dataclass
from typing import Sequence

from src.engine.base import GameState
from src.engine.errors import InvalidStateError
from src.engine.validators import validate_history_cursor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HistoryEntry:
    """One recorded position and the notation of the turn that produced it."""
    state: GameState
    notation: str
    index: int


@dataclass(frozen=True)
class HistorySnapshot:
    """
    Exportable copy of a history.

    Attributes:
        states: Every recorded state, oldest first
        notation: Notation per state ("" for the initial position)
        current_index: Cursor position
    """
    states: tuple[GameState, ...]
    notation: tuple[str, ...]
    current_index: int

    def active_states(self) -> tuple[GameState, ...]:
        """States 0..current_index (the line leading to the current position)."""
        return self.states[: self.current_index + 1]


class HistoryManager:
    """
    Undoable list of states.

    Owned by a single caller; not thread-safe.
    """

    def __init__(self) -> None:
        self._states: list[GameState] = []
        self._notation: list[str] = []
        self._index = -1

    def __len__(self) -> int:
        return len(self._states)

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def current(self) -> GameState | None:
        if self._index < 0:
            return None
        return self._states[self._index]

    @property
    def can_undo(self) -> bool:
        return self._index > 0

    @property
    def can_redo(self) -> bool:
        return 0 <= self._index < len(self._states) - 1

    def push(self, state: GameState, notation: str = "") -> None:
        """
        Record a state after the cursor, dropping any redo future.

        Args:
            state: State at a turn boundary
            notation: Notation of the turn that produced it
        """
        if self._index < len(self._states) - 1:
            dropped = len(self._states) - 1 - self._index
            logger.debug("Discarding %d future history entries", dropped)
            del self._states[self._index + 1:]
            del self._notation[self._index + 1:]
        self._states.append(state)
        self._notation.append(notation)
        self._index = len(self._states) - 1

    def undo(self) -> GameState | None:
        if not self.can_undo:
            return None
        self._index -= 1
        return self._states[self._index]

    def redo(self) -> GameState | None:
        if not self.can_redo:
            return None
        self._index += 1
        return self._states[self._index]

    def jump_to(self, index: int) -> GameState | None:
        """Move the cursor to index; None (and no change) if out of range."""
        if not isinstance(index, int) or not (0 <= index < len(self._states)):
            return None
        self._index = index
        return self._states[index]

    def replace_current(self, state: GameState) -> None:
        """Overwrite the entry at the cursor, keeping its notation."""
        if self._index < 0:
            raise InvalidStateError("History is empty.")
        self._states[self._index] = state

    def entries(self) -> list[HistoryEntry]:
        return [
            HistoryEntry(state=s, notation=n, index=i)
            for i, (s, n) in enumerate(zip(self._states, self._notation))
        ]

    def clear(self) -> None:
        self._states.clear()
        self._notation.clear()
        self._index = -1

    def replace_all(
        self,
        states: Sequence[GameState],
        notation: Sequence[str] | None = None,
        current_index: int | None = None,
    ) -> None:
        """
        Replace the whole history.

        Args:
            states: New states, oldest first (at least one)
            notation: Notation per state; padded with "" when short
            current_index: Cursor position (default: last state)

        Raises:
            InvalidStateError: If the states are empty, notation is too long or
                the cursor is out of range
        """
        if not states:
            raise InvalidStateError("History must contain at least one state.")

        notes = list(notation or [])
        if len(notes) > len(states):
            raise InvalidStateError(
                f"History has {len(notes)} notation entries for {len(states)} states."
            )
        notes.extend([""] * (len(states) - len(notes)))

        index = len(states) - 1 if current_index is None else current_index
        try:
            validate_history_cursor(index, len(states))
        except ValueError as e:
            raise InvalidStateError(str(e)) from e

        self._states = list(states)
        self._notation = notes
        self._index = index

    def export_snapshots(self) -> HistorySnapshot:
        return HistorySnapshot(
            states=tuple(self._states),
            notation=tuple(self._notation),
            current_index=self._index,
        )

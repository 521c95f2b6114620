"""
Stack Games Session.

Per-game orchestration and the events it reports to callers.
"""

from src.session.events import EventPayload, GameEvent, classify_snapshot_change
from src.session.game_session import GameSession, MoveOutcome

__all__ = [
    "EventPayload",
    "GameEvent",
    "GameSession",
    "MoveOutcome",
    "classify_snapshot_change",
]

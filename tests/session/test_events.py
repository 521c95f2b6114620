"""
Stack Games - Snapshot Classification Tests
"""

import pytest
from src.engine.base import CaptureMove, ForcedGameOver, Player, QuietMove
from src.engine.history import HistorySnapshot
from src.session.events import GameEvent, classify_snapshot_change
from src.session.game_session import GameSession
from src.wire.serializer import serialize_snapshot


@pytest.fixture
def session(settings):
    return GameSession.new(settings=settings)


def forced_snapshot(state, winner, version):
    forced = state.with_board(state.board, forced_game_over=ForcedGameOver(winner, "RESIGNED", "over"))
    history = HistorySnapshot(states=(state, forced), notation=("", ""), current_index=1)
    return serialize_snapshot(forced, history, version)


class TestClassify:
    """Tests for classify_snapshot_change()."""

    def test_first_snapshot_is_load(self, session):
        assert classify_snapshot_change(None, session.export_snapshot()) == GameEvent.LOADED

    def test_stale_version_ignored(self, session):
        old = session.export_snapshot()
        assert classify_snapshot_change(old, old) is None

    def test_turn_ended(self, session):
        old = session.export_snapshot()
        session.play_move(QuietMove("r4c0", "r3c1"))
        assert classify_snapshot_change(old, session.export_snapshot()) == GameEvent.TURN_ENDED

    def test_undo_and_redo(self, session):
        session.play_move(QuietMove("r4c0", "r3c1"))
        played = session.export_snapshot()
        session.undo()
        undone = session.export_snapshot()
        session.redo()
        redone = session.export_snapshot()
        assert classify_snapshot_change(played, undone) == GameEvent.UNDO
        assert classify_snapshot_change(undone, redone) == GameEvent.REDO

    def test_jump(self, session):
        session.play_move(QuietMove("r4c0", "r3c1"))
        session.play_move(CaptureMove("r2c2", "r3c1", "r4c0"))
        old = session.export_snapshot()
        session.jump_to_history(0)
        assert classify_snapshot_change(old, session.export_snapshot()) == GameEvent.JUMP

    def test_move_after_undo_is_turn(self, session):
        session.play_move(QuietMove("r4c0", "r3c1"))
        session.undo()
        old = session.export_snapshot()
        session.play_move(QuietMove("r4c6", "r3c5"))
        assert classify_snapshot_change(old, session.export_snapshot()) == GameEvent.TURN_ENDED

    def test_capture_continues(self, settings, lasca_double_capture):
        session = GameSession(lasca_double_capture, settings)
        old = session.export_snapshot()
        session.play_move(CaptureMove("r6c0", "r5c1", "r4c2"))
        assert classify_snapshot_change(old, session.export_snapshot()) == GameEvent.CAPTURE_CONTINUES

    @pytest.mark.parametrize("winner,event", [
        (Player.DARK, GameEvent.GAME_OVER),
        (None, GameEvent.DRAW),
    ])
    def test_forced_result(self, session, winner, event):
        old = session.export_snapshot()
        new = forced_snapshot(session.state, winner, old.state_version + 1)
        assert classify_snapshot_change(old, new) == event

    def test_other_game_is_load(self, session, settings):
        old = session.export_snapshot()
        other = GameSession.new("damasca_8", settings=settings)
        new = serialize_snapshot(other.state, other.history, old.state_version + 1)
        assert classify_snapshot_change(old, new) == GameEvent.LOADED

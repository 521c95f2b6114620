"""
Stack Games - Game-Over Evaluator Tests
"""

from src.engine.base import ForcedGameOver, Player
from src.engine.game_over import (
    NO_MOVES,
    NO_PIECES,
    THREEFOLD_REPETITION,
    GameOverEvaluator,
)


class TestEvaluate:
    """Tests for GameOverEvaluator.evaluate()."""

    def test_opening_positions_are_live(self, initial_states):
        for state in initial_states.values():
            assert GameOverEvaluator.evaluate(state) is None

    def test_no_pieces(self, make_state):
        result = GameOverEvaluator.evaluate(make_state({"r2c2": "BO"}))
        assert result.winner == Player.DARK
        assert result.reason_code == NO_PIECES
        assert result.message == "Dark wins — Light has no pieces"

    def test_buried_pieces_do_not_count(self, make_state):
        result = GameOverEvaluator.evaluate(make_state({"r2c2": "WS WS BO"}))
        assert result.reason_code == NO_PIECES

    def test_no_moves(self, make_state):
        result = GameOverEvaluator.evaluate(make_state({"r1c1": "WS", "r0c0": "BS", "r0c2": "BS"}))
        assert result.winner == Player.DARK
        assert result.reason_code == NO_MOVES
        assert not result.is_draw

    def test_forced_result_wins(self, make_state):
        forced = ForcedGameOver(None, "AGREED", "Draw — agreed")
        result = GameOverEvaluator.evaluate(make_state({"r4c2": "WS", "r2c2": "BS"}, forced_game_over=forced))
        assert result.is_draw
        assert result.reason_code == "AGREED"
        assert result.message == "Draw — agreed"

    def test_threefold_draw(self):
        result = GameOverEvaluator.threefold_draw()
        assert result.is_draw
        assert result.reason_code == THREEFOLD_REPETITION

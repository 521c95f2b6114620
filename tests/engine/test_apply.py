"""
Stack Games - Move Applier Tests

Tests for MoveApplier: relocation, absorption, removal and promotion.
"""

import pytest
from src.engine.apply import MoveApplier, promote_stack, reaches_promotion_row
from src.engine.base import CaptureChainAux, CaptureMove, Player, QuietMove, Rank
from src.engine.errors import IllegalMoveError
from src.engine.rulesets import LASCA_7
from src.engine.setup import create_initial_state


# === Quiet Moves ===


class TestQuietMove:
    """Tests for MoveApplier.apply() with quiet moves."""

    def test_relocates_whole_stack(self, make_state, stack):
        state = make_state({"r4c2": "BS WS"})
        result = MoveApplier.apply(state, QuietMove("r4c2", "r3c3"))
        assert result.state.board == {"r3c3": stack("BS WS")}
        assert result.state.to_move == Player.DARK
        assert not result.did_promote

    def test_promotion_on_far_row(self, make_state):
        state = make_state({"r1c1": "WS"})
        result = MoveApplier.apply(state, QuietMove("r1c1", "r0c0"))
        assert result.did_promote
        assert result.state.top_at("r0c0").rank == Rank.OFFICER

    def test_dark_promotes_on_last_row(self, make_state):
        state = make_state({"r5c1": "BS"}, to_move=Player.DARK)
        result = MoveApplier.apply(state, QuietMove("r5c1", "r6c2"))
        assert result.did_promote

    def test_input_state_untouched(self, make_state, stack):
        state = make_state({"r4c2": "WS"})
        MoveApplier.apply(state, QuietMove("r4c2", "r3c3"))
        assert state.board == {"r4c2": stack("WS")}


# === Captures ===


class TestStackingCapture:
    """Tests for stacking captures in MoveApplier.apply()."""

    def test_lasca_absorbs_whole_stack(self, make_state, stack):
        state = make_state({"r4c2": "WS", "r3c3": "BS BS"})
        result = MoveApplier.apply(state, CaptureMove("r4c2", "r3c3", "r2c4"))
        assert result.state.board == {"r2c4": stack("BS BS WS")}
        assert result.state.piece_count() == state.piece_count()

    def test_capture_keeps_side_to_move(self, make_state):
        state = make_state({"r4c2": "WS", "r3c3": "BS"})
        result = MoveApplier.apply(state, CaptureMove("r4c2", "r3c3", "r2c4"))
        assert result.state.to_move == Player.LIGHT

    def test_damasca_takes_top_piece(self, make_state, stack):
        state = make_state({"r4c2": "WS", "r3c3": "WS BS"}, variant_id="damasca_8")
        result = MoveApplier.apply(state, CaptureMove("r4c2", "r3c3", "r2c4"))
        assert result.state.board == {"r3c3": stack("WS"), "r2c4": stack("BS WS")}
        assert result.state.piece_count() == state.piece_count()
        assert result.state.capture_chain == CaptureChainAux(promotion_earned=False)

    def test_capture_promotes_on_landing(self, make_state):
        state = make_state({"r2c2": "WS", "r1c3": "BS"})
        result = MoveApplier.apply(state, CaptureMove("r2c2", "r1c3", "r0c4"))
        assert result.did_promote
        assert result.state.top_at("r0c4").rank == Rank.OFFICER

    def test_end_of_chain_promotion_is_deferred(self, make_state):
        state = make_state({"r2c2": "WS", "r1c3": "BS"}, variant_id="damasca_8")
        result = MoveApplier.apply(state, CaptureMove("r2c2", "r1c3", "r0c4"))
        assert not result.did_promote
        assert result.state.top_at("r0c4").rank == Rank.SOLDIER
        assert result.state.capture_chain.promotion_earned


class TestRemovalCapture:
    """Tests for removal captures in MoveApplier.apply()."""

    def test_immediate_removal(self, make_state, stack):
        state = make_state({"r4c2": "WS", "r3c3": "BS"}, variant_id="dama_8_classic_standard")
        result = MoveApplier.apply(state, CaptureMove("r4c2", "r3c3", "r2c4"))
        assert result.state.board == {"r2c4": stack("WS")}
        assert result.state.piece_count() == state.piece_count() - 1

    def test_end_of_sequence_leaves_jumped_piece(self, make_state):
        state = make_state({"r4c2": "WS", "r3c3": "BS"}, variant_id="dama_8_classic_international")
        result = MoveApplier.apply(state, CaptureMove("r4c2", "r3c3", "r2c4"))
        assert "r3c3" in result.state.board
        assert result.state.piece_count() == state.piece_count()

    def test_remove_jumped(self, make_state, stack):
        state = make_state({"r3c3": "BS", "r3c5": "WS BS"}, variant_id="dama_8_classic_international")
        cleared = MoveApplier.remove_jumped(state, frozenset({"r3c3", "r3c5", "r5c5"}))
        assert cleared.board == {"r3c5": stack("WS")}


# === Preconditions ===


class TestPreconditions:
    """Tests for MoveApplier.apply() precondition checks."""

    def test_empty_origin(self, make_state):
        with pytest.raises(IllegalMoveError, match="No stack"):
            MoveApplier.apply(make_state({"r4c2": "WS"}), QuietMove("r4c4", "r3c3"))

    def test_opponent_stack(self, make_state):
        with pytest.raises(IllegalMoveError, match="not controlled"):
            MoveApplier.apply(make_state({"r2c2": "BS"}), QuietMove("r2c2", "r3c3"))

    def test_occupied_landing(self, make_state):
        state = make_state({"r4c2": "WS", "r3c3": "WS"})
        with pytest.raises(IllegalMoveError, match="not empty"):
            MoveApplier.apply(state, QuietMove("r4c2", "r3c3"))

    def test_unplayable_landing(self, make_state):
        with pytest.raises(IllegalMoveError, match="not playable"):
            MoveApplier.apply(make_state({"r4c2": "WS"}), QuietMove("r4c2", "r3c2"))

    def test_capture_over_friendly(self, make_state):
        state = make_state({"r4c2": "WS", "r3c3": "WS"})
        with pytest.raises(IllegalMoveError, match="No enemy"):
            MoveApplier.apply(state, CaptureMove("r4c2", "r3c3", "r2c4"))

    def test_over_not_between(self, make_state):
        state = make_state({"r4c2": "WS", "r3c1": "BS"})
        with pytest.raises(IllegalMoveError, match="between"):
            MoveApplier.apply(state, CaptureMove("r4c2", "r3c1", "r2c4"))

    def test_chess_errors_are_illegal_moves(self):
        state = create_initial_state("chess_classic")
        with pytest.raises(IllegalMoveError):
            MoveApplier.apply(state, QuietMove("r1c0", "r2c0"))


class TestPromotionHelpers:
    """Tests for promote_stack() and reaches_promotion_row()."""

    def test_promote_stack_changes_top_only(self, stack):
        assert promote_stack(stack("WS BS")) == stack("WS BO")

    def test_reaches_promotion_row(self, stack):
        assert reaches_promotion_row(stack("WS"), "r0c2", LASCA_7)
        assert not reaches_promotion_row(stack("WS"), "r6c2", LASCA_7)
        assert not reaches_promotion_row(stack("WO"), "r0c2", LASCA_7)

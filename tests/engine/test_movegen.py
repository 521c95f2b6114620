"""
Stack Games - Move Generator Tests

Tests for MoveGenerator: quiet moves, captures, mandatory and maximum capture,
flying officers and chain constraints.
"""

import pytest
from src.engine.base import CaptureMove, Player, QuietMove
from src.engine.movegen import (
    MoveGenerator,
    MovegenConstraints,
    direction_allowed,
    forward_directions,
)
from src.engine.rulesets import OfficerTurnRule
from src.engine.setup import create_initial_state


# === Quiet Moves ===


class TestQuietMoves:
    """Tests for quiet moves from MoveGenerator.generate()."""

    def test_lasca_opening(self):
        moves = MoveGenerator.generate(create_initial_state("lasca_7_classic"))
        assert moves == [
            QuietMove("r4c0", "r3c1"),
            QuietMove("r4c2", "r3c1"),
            QuietMove("r4c2", "r3c3"),
            QuietMove("r4c4", "r3c3"),
            QuietMove("r4c4", "r3c5"),
            QuietMove("r4c6", "r3c5"),
        ]

    def test_dark_soldiers_move_down(self, make_state):
        state = make_state({"r2c2": "BS"}, to_move=Player.DARK)
        assert MoveGenerator.generate(state) == [QuietMove("r2c2", "r3c1"), QuietMove("r2c2", "r3c3")]

    def test_lasca_officer_steps_one(self, make_state):
        state = make_state({"r3c3": "WO"})
        assert len(MoveGenerator.generate(state)) == 4

    def test_dama_officer_flies(self, make_state):
        state = make_state({"r3c3": "WO"}, variant_id="dama_8_classic_standard")
        moves = MoveGenerator.generate(state)
        assert len(moves) == 13
        assert QuietMove("r3c3", "r7c7") in moves

    def test_blocked_soldier(self, make_state):
        state = make_state({"r1c1": "WS", "r0c0": "BS", "r0c2": "BS"})
        assert MoveGenerator.generate(state) == []

    def test_only_top_piece_owner_moves(self, make_state):
        state = make_state({"r4c2": "WS BS"})
        assert MoveGenerator.generate(state) == []

    @pytest.mark.parametrize("owner,expected", [
        (Player.LIGHT, ((-1, -1), (-1, 1))),
        (Player.DARK, ((1, -1), (1, 1))),
    ])
    def test_forward_directions(self, owner, expected):
        assert forward_directions(owner) == expected


# === Captures ===


class TestCaptures:
    """Tests for MoveGenerator.captures()."""

    def test_mandatory_capture(self, make_state):
        state = make_state({"r4c2": "WS", "r3c3": "BS", "r6c0": "WS"})
        assert MoveGenerator.generate(state) == [CaptureMove("r4c2", "r3c3", "r2c4")]

    def test_lasca_soldier_cannot_capture_backward(self, make_state):
        state = make_state({"r2c2": "WS", "r3c3": "BS"})
        moves = MoveGenerator.generate(state)
        assert moves == [QuietMove("r2c2", "r1c1"), QuietMove("r2c2", "r1c3")]

    def test_dama_soldier_captures_backward(self, make_state):
        state = make_state({"r2c2": "WS", "r3c3": "BS"}, variant_id="dama_8_classic_standard")
        assert MoveGenerator.generate(state) == [CaptureMove("r2c2", "r3c3", "r4c4")]

    def test_cannot_capture_own_stack(self, make_state):
        state = make_state({"r4c2": "WS", "r3c3": "BS WS"})
        assert not MoveGenerator.has_capture(state)

    def test_landing_must_be_empty(self, make_state):
        state = make_state({"r4c2": "WS", "r3c3": "BS", "r2c4": "BS"})
        assert not MoveGenerator.has_capture(state)

    def test_flying_capture_landings(self, make_state):
        state = make_state({"r7c1": "WO", "r4c4": "BS"}, variant_id="dama_8_classic_standard")
        assert MoveGenerator.generate(state) == [
            CaptureMove("r7c1", "r4c4", "r3c5"),
            CaptureMove("r7c1", "r4c4", "r2c6"),
            CaptureMove("r7c1", "r4c4", "r1c7"),
        ]

    def test_flying_capture_blocked_by_second_piece(self, make_state):
        state = make_state(
            {"r7c1": "WO", "r4c4": "BS", "r3c5": "BS"}, variant_id="dama_8_classic_standard",
        )
        assert not MoveGenerator.has_capture(state)

    def test_maximum_capture(self, make_state):
        state = make_state(
            {"r5c1": "WS", "r4c2": "BS", "r2c4": "BS", "r5c5": "WS", "r4c6": "BS"},
            variant_id="dama_8_classic_standard",
        )
        assert MoveGenerator.generate(state) == [CaptureMove("r5c1", "r4c2", "r3c3")]

    def test_lasca_has_no_maximum_capture(self, make_state):
        state = make_state({"r6c0": "WS", "r5c1": "BS", "r3c3": "BS", "r6c4": "WS", "r5c5": "BS"})
        captures = MoveGenerator.captures(state)
        assert CaptureMove("r6c4", "r5c5", "r4c6") in captures
        assert CaptureMove("r6c0", "r5c1", "r4c2") in captures


# === Chain Constraints ===


class TestConstraints:
    """Tests for MovegenConstraints."""

    def test_excluded_square_suppresses_jump(self, make_state):
        state = make_state({"r4c2": "BS", "r5c3": "WO"})
        constraints = MovegenConstraints(forced_from="r5c3", excluded_over=frozenset({"r4c2"}))
        assert MoveGenerator.captures(state, constraints) == []
        assert MoveGenerator.captures(state) == [CaptureMove("r5c3", "r4c2", "r3c1")]

    def test_forced_from_limits_origins(self, make_state):
        state = make_state({"r4c2": "WS", "r3c3": "BS", "r4c6": "WS", "r3c5": "BS"})
        constraints = MovegenConstraints(forced_from="r4c6")
        assert MoveGenerator.captures(state, constraints) == [CaptureMove("r4c6", "r3c5", "r2c4")]

    def test_forced_from_not_controlled(self, make_state):
        state = make_state({"r4c2": "WS", "r3c3": "BS"})
        assert MoveGenerator.captures(state, MovegenConstraints(forced_from="r3c3")) == []

    def test_zigzag_blocks_straight_continuation(self, make_state):
        state = make_state({"r5c3": "WO", "r3c5": "BS"}, variant_id="dama_8_classic_standard")
        straight = MovegenConstraints(forced_from="r5c3", last_dir=(-1, 1))
        assert MoveGenerator.captures(state, straight) == []
        turned = MovegenConstraints(forced_from="r5c3", last_dir=(-1, -1))
        assert MoveGenerator.captures(state, turned) != []


class TestDirectionAllowed:
    """Tests for officer direction rules."""

    @pytest.mark.parametrize("rule,direction,allowed", [
        (OfficerTurnRule.ANY, (1, -1), True),
        (OfficerTurnRule.NO_REVERSE, (-1, 1), True),
        (OfficerTurnRule.NO_REVERSE, (-1, -1), True),
        (OfficerTurnRule.NO_REVERSE, (1, -1), False),
        (OfficerTurnRule.ZIGZAG, (-1, 1), False),
        (OfficerTurnRule.ZIGZAG, (1, -1), False),
        (OfficerTurnRule.ZIGZAG, (1, 1), True),
    ])
    def test_after_up_right(self, rule, direction, allowed):
        assert direction_allowed(rule, direction, (-1, 1)) is allowed

    def test_first_step_unrestricted(self):
        assert direction_allowed(OfficerTurnRule.ZIGZAG, (-1, 1), None)


# === Chess Dispatch ===


class TestChessDispatch:
    """Tests for chess move generation."""

    def test_opening_move_count(self):
        assert len(MoveGenerator.generate(create_initial_state("chess_classic"))) == 20

    def test_no_captures_at_start(self):
        assert not MoveGenerator.has_capture(create_initial_state("chess_classic"))

"""
Stack Games - Base Classes Tests

Tests for dataclasses, enums, and the error hierarchy.
"""

from dataclasses import FrozenInstanceError

import pytest
from src.engine.base import (
    CaptureMove,
    ChessAux,
    CastlingRights,
    Piece,
    Player,
    QuietMove,
    Rank,
    top_of,
)
from src.engine.errors import IllegalMoveError, InvalidStateError, StackGamesError


class TestPlayer:
    """Tests for Player enum."""

    def test_wire_codes(self):
        assert Player.LIGHT.value == "W"
        assert Player.DARK.value == "B"

    def test_opponent(self):
        assert Player.LIGHT.opponent == Player.DARK
        assert Player.DARK.opponent == Player.LIGHT

    def test_display_name(self):
        assert Player.LIGHT.display_name == "Light"
        assert Player.DARK.display_name == "Dark"


class TestPiece:
    """Tests for Piece dataclass."""

    def test_code(self):
        assert Piece(Player.LIGHT, Rank.SOLDIER).code == "WS"
        assert Piece(Player.DARK, Rank.KING).code == "BK"

    def test_promoted_keeps_owner(self):
        piece = Piece(Player.DARK, Rank.SOLDIER).promoted(Rank.OFFICER)
        assert piece == Piece(Player.DARK, Rank.OFFICER)

    def test_immutable(self):
        piece = Piece(Player.LIGHT, Rank.SOLDIER)
        with pytest.raises(FrozenInstanceError):
            piece.rank = Rank.OFFICER


class TestTopOf:
    """Tests for top_of()."""

    def test_empty_and_missing(self):
        assert top_of(None) is None
        assert top_of(()) is None

    def test_last_piece_is_top(self, stack):
        assert top_of(stack("BS WO")) == Piece(Player.LIGHT, Rank.OFFICER)


class TestGameState:
    """Tests for GameState helpers."""

    def test_controlled_nodes_use_top_piece(self, make_state):
        state = make_state({"r4c2": "BS WS", "r2c2": "WS BO"})
        assert state.controlled_nodes(Player.LIGHT) == ["r4c2"]
        assert state.controlled_nodes(Player.DARK) == ["r2c2"]

    def test_piece_count_includes_buried(self, make_state):
        state = make_state({"r4c2": "BS WS", "r2c2": "WS BS WO"})
        assert state.piece_count() == 5

    def test_stack_queries(self, make_state):
        state = make_state({"r4c2": "BS WS"})
        assert state.top_at("r4c2").owner == Player.LIGHT
        assert state.top_at("r3c3") is None
        assert state.is_empty("r3c3")
        assert not state.is_empty("r4c2")

    def test_with_board_returns_new_state(self, make_state):
        state = make_state({"r4c2": "WS"})
        moved = state.with_board({"r3c3": state.board["r4c2"]}, to_move=Player.DARK)
        assert "r4c2" in state.board
        assert moved.board == {"r3c3": state.board["r4c2"]}
        assert moved.to_move == Player.DARK
        assert state.to_move == Player.LIGHT


class TestMoves:
    """Tests for QuietMove and CaptureMove."""

    def test_kinds(self):
        assert QuietMove("r4c2", "r3c3").kind == "move"
        assert CaptureMove("r4c2", "r3c3", "r2c4").kind == "capture"

    def test_value_equality(self):
        assert CaptureMove("r4c2", "r3c3", "r2c4") == CaptureMove("r4c2", "r3c3", "r2c4")
        assert QuietMove("r4c2", "r3c3") != QuietMove("r4c2", "r3c1")


class TestChessAux:
    """Tests for ChessAux."""

    def test_default_rights(self):
        aux = ChessAux()
        assert aux.rights(Player.LIGHT) == CastlingRights(True, True)
        assert aux.en_passant_target is None

    def test_missing_side_has_no_rights(self):
        aux = ChessAux(castling={Player.LIGHT: CastlingRights()})
        assert aux.rights(Player.DARK) == CastlingRights(False, False)


class TestErrors:
    """Tests for the engine error hierarchy."""

    def test_kinds(self):
        assert IllegalMoveError.kind == "illegal_move"
        assert InvalidStateError.kind == "invalid_state"

    def test_hierarchy(self):
        assert issubclass(IllegalMoveError, StackGamesError)
        assert issubclass(InvalidStateError, StackGamesError)
        assert issubclass(StackGamesError, ValueError)

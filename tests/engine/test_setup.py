"""
Stack Games - Initial Position Tests
"""

import pytest
from src.engine.base import DeadPlayCounters, Phase, Player, Rank
from src.engine.coords import parse_node_id
from src.engine.errors import InvalidStateError
from src.engine.rulesets import VARIANTS, get_variant
from src.engine.setup import create_initial_state, start_nodes


def rows_of(state, player):
    return {parse_node_id(node)[0] for node in state.controlled_nodes(player)}


class TestCheckersSetup:
    """Tests for create_initial_state() on checkers boards."""

    def test_default_is_lasca_7(self):
        state = create_initial_state()
        assert state.meta.variant_id == "lasca_7_classic"
        assert state.meta.board_size == 7

    def test_lasca_7_layout(self):
        state = create_initial_state("lasca_7_classic")
        assert len(state.controlled_nodes(Player.DARK)) == 11
        assert len(state.controlled_nodes(Player.LIGHT)) == 11
        assert rows_of(state, Player.DARK) == {0, 1, 2}
        assert rows_of(state, Player.LIGHT) == {4, 5, 6}

    @pytest.mark.parametrize("variant_id", [
        "lasca_8_dama_board",
        "dama_8_classic_standard",
        "dama_8_classic_international",
        "damasca_8",
        "damasca_8_classic",
    ])
    def test_eight_by_eight_layout(self, variant_id):
        state = create_initial_state(variant_id)
        assert state.piece_count() == 24
        assert rows_of(state, Player.DARK) == {0, 1, 2}
        assert rows_of(state, Player.LIGHT) == {5, 6, 7}

    def test_single_soldiers_only(self):
        state = create_initial_state("lasca_7_classic")
        assert all(len(s) == 1 and s[0].rank == Rank.SOLDIER for s in state.board.values())

    def test_light_moves_first(self, initial_states):
        for state in initial_states.values():
            assert state.to_move == Player.LIGHT
            assert state.phase == Phase.IDLE
            assert state.forced_game_over is None

    def test_damasca_counters(self):
        assert create_initial_state("damasca_8").dead_play == DeadPlayCounters()
        assert create_initial_state("lasca_7_classic").dead_play is None

    def test_start_nodes_too_many(self):
        with pytest.raises(ValueError, match="do not fit"):
            start_nodes(get_variant("lasca_7_classic").ruleset, 13)

    def test_unknown_variant(self):
        with pytest.raises(InvalidStateError):
            create_initial_state("no_such_game")

    def test_alias(self):
        assert create_initial_state("dama_8_classic").meta.variant_id == "dama_8_classic_standard"


class TestChessSetup:
    """Tests for create_initial_state() for chess."""

    def test_layout(self):
        state = create_initial_state("chess_classic")
        assert state.piece_count() == 32
        assert state.top_at("r7c4").rank == Rank.KING
        assert state.top_at("r7c4").owner == Player.LIGHT
        assert state.top_at("r0c3").rank == Rank.QUEEN
        assert state.top_at("r0c3").owner == Player.DARK
        assert rows_of(state, Player.DARK) == {0, 1}
        assert rows_of(state, Player.LIGHT) == {6, 7}

    def test_castling_rights(self):
        state = create_initial_state("chess_classic")
        assert state.chess is not None
        assert state.chess.rights(Player.LIGHT).king_side
        assert state.chess.en_passant_target is None


@pytest.mark.parametrize("variant", VARIANTS, ids=lambda v: v.variant_id)
def test_every_variant_has_legal_start(variant):
    state = create_initial_state(variant.variant_id)
    assert state.meta == variant.meta()
    assert state.controlled_nodes(Player.LIGHT)

"""
Stack Games - Test Configuration and Fixtures

Common fixtures and board builders for all test modules.
"""

from dataclasses import replace
from typing import Any, Callable

import pytest

from src.config.settings import Settings
from src.engine.base import ChessAux, DeadPlayCounters, GameState, Piece, Player, Rank
from src.engine.rulesets import VARIANTS, get_variant
from src.engine.setup import create_initial_state


# =============================================================================
# BOARD BUILDERS
# =============================================================================

def parse_stack(codes: str) -> tuple[Piece, ...]:
    """'BS WO' -> (Dark Soldier, Light Officer), bottom to top."""
    return tuple(Piece(Player(code[0]), Rank(code[1])) for code in codes.split())


def build_state(
    board: dict[str, str],
    to_move: Player = Player.LIGHT,
    variant_id: str = "lasca_7_classic",
    **changes: Any,
) -> GameState:
    """
    Build a state from a compact board description.

    Args:
        board: Node id -> space-separated piece codes, bottom to top
        to_move: Side to move
        variant_id: Variant whose meta the state carries
        **changes: Extra GameState fields to replace

    Returns:
        GameState with the variant's default auxiliary data
    """
    variant = get_variant(variant_id)
    ruleset = variant.ruleset
    state = GameState(
        board={node: parse_stack(codes) for node, codes in board.items()},
        to_move=to_move,
        meta=variant.meta(),
        chess=ChessAux() if ruleset.is_chess else None,
        dead_play=DeadPlayCounters() if ruleset.dead_play_rules else None,
    )
    return replace(state, **changes) if changes else state


@pytest.fixture
def make_state() -> Callable[..., GameState]:
    """Factory fixture wrapping build_state."""
    return build_state


@pytest.fixture
def stack() -> Callable[[str], tuple[Piece, ...]]:
    """Factory fixture wrapping parse_stack."""
    return parse_stack


# =============================================================================
# POSITIONS
# =============================================================================

@pytest.fixture
def lasca_double_capture() -> GameState:
    """Light soldier at r6c0 with two Dark soldiers lined up for a two-step chain."""
    return build_state({"r6c0": "WS", "r5c1": "BS", "r3c3": "BS"})


@pytest.fixture
def lasca_officer_shuffle() -> GameState:
    """Two lone officers far apart; moves can repeat the position indefinitely."""
    return build_state({"r6c0": "WO", "r0c6": "BO"})


@pytest.fixture
def initial_states() -> dict[str, GameState]:
    """Starting position of every registered variant."""
    return {v.variant_id: create_initial_state(v.variant_id) for v in VARIANTS}


# =============================================================================
# SETTINGS
# =============================================================================

@pytest.fixture
def settings() -> Settings:
    """Settings with defaults only (no .env file)."""
    return Settings(_env_file=None)

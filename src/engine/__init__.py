"""
Stack Games Engine.

Pure Python game logic with zero UI/network dependencies.
Handles move generation, capture chains, promotion, history and game-over
detection for Lasca, Dama, Damasca and Classic Chess.
"""

from src.engine.base import (
    CaptureMove,
    GameMeta,
    GameState,
    Move,
    Piece,
    Player,
    QuietMove,
    Rank,
    RulesetId,
)
from src.engine.chain import CaptureChainEngine, ChainState, ChainStep
from src.engine.errors import IllegalMoveError, InvalidStateError, StackGamesError
from src.engine.game_over import GameOverEvaluator, GameResult
from src.engine.history import HistoryManager, HistorySnapshot
from src.engine.movegen import MoveGenerator
from src.engine.repetition import RepetitionTracker, hash_state
from src.engine.rulesets import VARIANTS, RulesetConfig, get_variant
from src.engine.setup import create_initial_state

__all__ = [
    # Data Classes
    "CaptureMove",
    "GameMeta",
    "GameState",
    "Move",
    "Piece",
    "QuietMove",
    # Enums
    "Player",
    "Rank",
    "RulesetId",
    # Rules
    "RulesetConfig",
    "VARIANTS",
    "get_variant",
    "create_initial_state",
    # Engines
    "CaptureChainEngine",
    "ChainState",
    "ChainStep",
    "GameOverEvaluator",
    "GameResult",
    "MoveGenerator",
    # History
    "HistoryManager",
    "HistorySnapshot",
    "RepetitionTracker",
    "hash_state",
    # Errors
    "IllegalMoveError",
    "InvalidStateError",
    "StackGamesError",
]

"""
Stack Games - Game-Over Evaluator

Decides whether the position is terminal for the side to move.
"""

import logging
from dataclasses import dataclass

from src.engine.base import GameState, Player
from src.engine.chess import ChessRules
from src.engine.movegen import MoveGenerator
from src.engine.rulesets import RulesetConfig, ruleset_for

logger = logging.getLogger(__name__)

NO_PIECES = "NO_PIECES"
NO_MOVES = "NO_MOVES"
CHECKMATE = "CHECKMATE"
STALEMATE = "STALEMATE"
THREEFOLD_REPETITION = "THREEFOLD_REPETITION"


@dataclass(frozen=True)
class GameResult:
    """
    A finished game.

    Attributes:
        winner: Winning side, or None for a draw
        reason_code: Machine-readable reason
        message: Human-readable summary
    """
    winner: Player | None
    reason_code: str
    message: str

    @property
    def is_draw(self) -> bool:
        return self.winner is None


class GameOverEvaluator:
    """Stateless terminal-position detection."""

    @classmethod
    def evaluate(cls, state: GameState, ruleset: RulesetConfig | None = None) -> GameResult | None:
        """
        Evaluate a state at a turn boundary.

        Args:
            state: State with the side to move about to play
            ruleset: Rules to apply (default: from the state's meta)

        Returns:
            GameResult if the game is over, else None
        """
        forced = state.forced_game_over
        if forced is not None:
            return GameResult(forced.winner, forced.reason_code, forced.message)

        ruleset = ruleset or ruleset_for(state)
        loser = state.to_move
        winner = loser.opponent

        if not state.controlled_nodes(loser):
            return GameResult(
                winner, NO_PIECES,
                f"{winner.display_name} wins — {loser.display_name} has no pieces",
            )

        if MoveGenerator.generate(state, ruleset=ruleset):
            return None

        if ruleset.is_chess:
            if ChessRules.is_in_check(state, loser):
                return GameResult(
                    winner, CHECKMATE,
                    f"{winner.display_name} wins — {loser.display_name} is checkmated",
                )
            if ruleset.stalemate_is_draw:
                return GameResult(None, STALEMATE, f"Draw — {loser.display_name} is stalemated")

        return GameResult(
            winner, NO_MOVES,
            f"{winner.display_name} wins — {loser.display_name} has no moves",
        )

    @classmethod
    def threefold_draw(cls) -> GameResult:
        return GameResult(None, THREEFOLD_REPETITION, "Draw — threefold repetition")

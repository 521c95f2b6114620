"""
Stack Games - Damasca Dead-Play Rules

Ends Damasca games that stop making progress. Two ply counters are kept on the
state and updated at every turn boundary; when either reaches its limit the
game is adjudicated on material, then on controlled stacks, else drawn.

Under Damasca International a side reduced to one officer against enemy
officers must be captured within ten plies, or the game goes to material.
"""

import logging
from collections import Counter

from src.engine.base import (
    DeadPlayCounters,
    ForcedGameOver,
    GameState,
    LoneKingCounter,
    Piece,
    Player,
    Rank,
    RulesetId,
)
from src.engine.rulesets import ruleset_for

logger = logging.getLogger(__name__)

NO_PROGRESS_LIMIT_PLIES = 40
OFFICER_ONLY_LIMIT_PLIES = 30
LONE_KING_LIMIT_PLIES = 10

OFFICER_VALUE = 1.6
SOLDIER_VALUE = 1.0
MATERIAL_EPSILON = 0.05

NO_PROGRESS_REASON = "DAMASCA_NO_PROGRESS"
OFFICER_ONLY_REASON = "DAMASCA_OFFICER_ONLY"
THREEFOLD_REASON = "DAMASCA_THREEFOLD_REPETITION"
LONE_KING_REASON = "DAMASCA_LONE_KING_TIMEOUT"


def piece_value(piece: Piece) -> float:
    return OFFICER_VALUE if piece.rank == Rank.OFFICER else SOLDIER_VALUE


class DeadPlayRules:
    """Stateless Damasca dead-play bookkeeping and adjudication."""

    @classmethod
    def applies(cls, state: GameState) -> bool:
        return ruleset_for(state).dead_play_rules

    @classmethod
    def material(cls, state: GameState, player: Player) -> float:
        """Weighted count of every piece player owns, buried ones included."""
        return sum(
            piece_value(piece)
            for stack in state.board.values()
            for piece in stack
            if piece.owner == player
        )

    @classmethod
    def controlled_stacks(cls, state: GameState, player: Player) -> int:
        return len(state.controlled_nodes(player))

    @classmethod
    def adjudicate(cls, state: GameState, reason_code: str, reason_label: str) -> GameState:
        """
        Impose a result on a dead position.

        Material decides first, then the number of controlled stacks; equal on
        both counts is a draw.

        Args:
            state: Position to adjudicate
            reason_code: Machine-readable reason
            reason_label: Human-readable reason

        Returns:
            State carrying a ForcedGameOver (unchanged if one is already set)
        """
        if state.forced_game_over is not None:
            return state

        light_mat = cls.material(state, Player.LIGHT)
        dark_mat = cls.material(state, Player.DARK)
        light_ctrl = cls.controlled_stacks(state, Player.LIGHT)
        dark_ctrl = cls.controlled_stacks(state, Player.DARK)

        winner: Player | None
        if abs(light_mat - dark_mat) >= MATERIAL_EPSILON:
            winner = Player.LIGHT if light_mat > dark_mat else Player.DARK
            ladder = "material"
        elif light_ctrl != dark_ctrl:
            winner = Player.LIGHT if light_ctrl > dark_ctrl else Player.DARK
            ladder = "control"
        else:
            winner = None
            ladder = "draw"

        details = (
            f"material: Light {light_mat:.1f} / Dark {dark_mat:.1f}; "
            f"control: Light {light_ctrl} / Dark {dark_ctrl}"
        )
        if winner is None:
            message = f"Draw (adjudicated) — {reason_label} ({details})"
        else:
            message = f"{winner.display_name} wins (adjudicated) — {reason_label} ({ladder}; {details})"

        logger.info("Adjudicated %s: %s", reason_code, message)
        return state.with_board(
            state.board,
            forced_game_over=ForcedGameOver(winner=winner, reason_code=reason_code, message=message),
        )

    @classmethod
    def lone_officer_side(cls, state: GameState) -> Player | None:
        """
        Side whose whole army is one officer while the enemy still has an officer.

        Buried pieces count toward a side's army. When both or neither side is
        down to a lone officer there is no lone side.
        """
        pieces: Counter[Player] = Counter()
        officers: Counter[Player] = Counter()
        for stack in state.board.values():
            for piece in stack:
                pieces[piece.owner] += 1
                if piece.rank == Rank.OFFICER:
                    officers[piece.owner] += 1

        lone = [p for p in (Player.LIGHT, Player.DARK) if pieces[p] == 1 and officers[p] == 1]
        if len(lone) != 1:
            return None
        side = lone[0]
        return side if officers[side.opponent] >= 1 else None

    @classmethod
    def update(
        cls,
        state: GameState,
        moved_rank: Rank,
        did_capture: bool,
        did_promote: bool,
    ) -> GameState:
        """
        Advance the counters after a completed turn and adjudicate at the limits.

        Args:
            state: State at the turn boundary
            moved_rank: Rank of the moving stack's top when the turn started
            did_capture: Whether the turn captured
            did_promote: Whether the turn promoted

        Returns:
            State with updated counters, possibly adjudicated
        """
        if not cls.applies(state) or state.forced_game_over is not None:
            return state

        label = ruleset_for(state).officer_label.lower()
        prev = state.dead_play or DeadPlayCounters()
        soldier_moved = moved_rank == Rank.SOLDIER
        reset = did_capture or did_promote or soldier_moved

        counters = DeadPlayCounters(
            no_progress_plies=0 if reset else prev.no_progress_plies + 1,
            officer_only_plies=0 if reset else prev.officer_only_plies + 1,
        )
        next_state = state.with_board(state.board, dead_play=counters)

        if counters.no_progress_plies >= NO_PROGRESS_LIMIT_PLIES:
            return cls.adjudicate(
                next_state, NO_PROGRESS_REASON, f"no progress for {NO_PROGRESS_LIMIT_PLIES} plies",
            )
        if counters.officer_only_plies >= OFFICER_ONLY_LIMIT_PLIES:
            return cls.adjudicate(
                next_state, OFFICER_ONLY_REASON, f"{label}s only for {OFFICER_ONLY_LIMIT_PLIES} plies",
            )
        return cls._advance_lone_king(next_state, label)

    @classmethod
    def _advance_lone_king(cls, state: GameState, label: str) -> GameState:
        """Tick the lone-officer timer; at the limit the side with more material wins."""
        if state.meta.ruleset_id != RulesetId.DAMASCA:
            return state

        side = cls.lone_officer_side(state)
        if side is None:
            return state if state.lone_king is None else state.with_board(state.board, lone_king=None)

        prev = state.lone_king
        plies = prev.plies + 1 if prev is not None and prev.lone_side == side else 1
        next_state = state.with_board(state.board, lone_king=LoneKingCounter(side, plies))
        if plies < LONE_KING_LIMIT_PLIES:
            return next_state

        light_mat = cls.material(state, Player.LIGHT)
        dark_mat = cls.material(state, Player.DARK)
        winner = Player.LIGHT if light_mat >= dark_mat else Player.DARK
        message = (
            f"{winner.display_name} wins — lone {label} not captured in {LONE_KING_LIMIT_PLIES} plies "
            f"(material: Light {light_mat:.1f} / Dark {dark_mat:.1f})"
        )
        logger.info("Adjudicated %s: %s", LONE_KING_REASON, message)
        return next_state.with_board(
            state.board,
            forced_game_over=ForcedGameOver(winner=winner, reason_code=LONE_KING_REASON, message=message),
        )

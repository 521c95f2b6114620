"""
Stack Games - Capture-Chain Controller

Drives a turn that may consist of several capture steps. The caller owns the
ChainState value and passes it in and out explicitly; the controller itself
holds no state.

Turn flow:
1. Idle: any legal move. A quiet move ends the turn at once.
2. After a capture: the mover is locked to its landing square and may only
   continue capturing, never over a square it already jumped.
3. The chain ends when no further capture exists, when a promotion stops it,
   or after any capture in rulesets without chains. Finalization removes
   end-of-sequence captures, applies an earned promotion and flips the turn.
"""

import logging
from dataclasses import dataclass, replace

from src.engine.apply import MoveApplier
from src.engine.base import (
    CaptureRemoval,
    GameState,
    Move,
    NodeId,
    Phase,
    QuietMove,
    Rank,
)
from src.engine.coords import Direction, direction_between, format_turn_notation
from src.engine.dead_play import DeadPlayRules
from src.engine.errors import IllegalMoveError
from src.engine.movegen import MoveGenerator, MovegenConstraints
from src.engine.rulesets import PromotionTiming, RulesetConfig, ruleset_for

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChainState:
    """
    Progress of the current turn.

    Attributes:
        locked_from: Square the capturing stack must continue from (None = Idle)
        jumped: Squares already jumped this turn
        last_dir: Direction of the last capture step
        nodes: Starting square followed by every landing square
        had_capture: Whether the turn has captured
        moved_rank: Rank of the moving stack's top when the turn started
        promoted: Whether a promotion already happened this turn
    """
    locked_from: NodeId | None = None
    jumped: frozenset[NodeId] = frozenset()
    last_dir: Direction | None = None
    nodes: tuple[NodeId, ...] = ()
    had_capture: bool = False
    moved_rank: Rank | None = None
    promoted: bool = False

    @classmethod
    def idle(cls) -> "ChainState":
        return cls()

    @property
    def is_active(self) -> bool:
        return self.locked_from is not None

    def constraints(self) -> MovegenConstraints:
        return MovegenConstraints(
            forced_from=self.locked_from,
            excluded_over=self.jumped,
            last_dir=self.last_dir,
        )


@dataclass(frozen=True)
class ChainStep:
    """
    Result of playing one move through the controller.

    Attributes:
        state: State after the move (and after finalization if the turn ended)
        chain: Chain state to pass to the next call
        did_promote: Whether this step (or its finalization) promoted a piece
        turn_ended: Whether the turn passed to the opponent
        notation: Notation of the finished turn, None while the chain continues
    """
    state: GameState
    chain: ChainState
    did_promote: bool
    turn_ended: bool
    notation: str | None = None


class CaptureChainEngine:
    """
    Stateless capture-chain controller.

    All methods are classmethods; chain progress travels in ChainState.
    """

    @classmethod
    def legal_moves(
        cls,
        state: GameState,
        chain: ChainState | None = None,
        ruleset: RulesetConfig | None = None,
    ) -> list[Move]:
        """
        Moves available right now.

        Args:
            state: Current state
            chain: Current chain progress (None = Idle)
            ruleset: Rules to apply (default: from the state's meta)

        Returns:
            Every legal move when Idle; only continuing captures when Active
        """
        ruleset = ruleset or ruleset_for(state)
        if chain is None or not chain.is_active:
            return MoveGenerator.generate(state, ruleset=ruleset)
        return list(MoveGenerator.captures(state, chain.constraints(), ruleset))

    @classmethod
    def play(
        cls,
        state: GameState,
        chain: ChainState | None,
        move: Move,
        ruleset: RulesetConfig | None = None,
        coord_format: str = "a1",
    ) -> ChainStep:
        """
        Play one move of the current turn.

        Args:
            state: Current state
            chain: Current chain progress (None = Idle)
            move: Move to play; must be in legal_moves(state, chain)
            ruleset: Rules to apply (default: from the state's meta)
            coord_format: Coordinate format for the turn notation

        Returns:
            ChainStep describing the new state and chain

        Raises:
            IllegalMoveError: If the move is not currently legal
        """
        ruleset = ruleset or ruleset_for(state)
        chain = chain or ChainState.idle()

        if move not in cls.legal_moves(state, chain, ruleset):
            logger.warning("Rejected move %s for %s", move, state.to_move.display_name)
            raise IllegalMoveError(f"Move {move} is not legal in the current position.")

        moved_rank = chain.moved_rank or state.top_at(move.from_).rank
        nodes = (chain.nodes or (move.from_,)) + (move.to,)
        result = MoveApplier.apply(state, move, ruleset)

        if isinstance(move, QuietMove):
            ended = cls.end_turn(result.state, moved_rank, did_capture=False, did_promote=result.did_promote)
            notation = format_turn_notation(list(nodes), False, ruleset.board_size, coord_format)
            logger.debug("Turn ended with quiet move %s", notation)
            return ChainStep(ended, ChainState.idle(), result.did_promote, True, notation)

        active = ChainState(
            locked_from=move.to,
            jumped=chain.jumped | {move.over},
            last_dir=direction_between(move.from_, move.to),
            nodes=nodes,
            had_capture=True,
            moved_rank=moved_rank,
            promoted=chain.promoted or result.did_promote,
        )

        stop = not ruleset.capture_chains or (result.did_promote and ruleset.stop_capture_on_promotion)
        if not stop and MoveGenerator.has_capture(result.state, active.constraints(), ruleset):
            logger.debug("Capture chain continues from %s", move.to)
            return ChainStep(result.state, active, result.did_promote, False, None)

        return cls._finish(result.state, active, ruleset, result.did_promote, coord_format)

    @classmethod
    def _finish(
        cls,
        state: GameState,
        chain: ChainState,
        ruleset: RulesetConfig,
        did_promote: bool,
        coord_format: str,
    ) -> ChainStep:
        if not ruleset.stacking and ruleset.capture_removal == CaptureRemoval.END_OF_SEQUENCE:
            state = MoveApplier.remove_jumped(state, chain.jumped)

        if ruleset.promotion_timing == PromotionTiming.END_OF_CHAIN:
            if state.capture_chain is not None and state.capture_chain.promotion_earned:
                state, promoted = MoveApplier.promote_at(state, chain.locked_from, state.to_move)
                did_promote = did_promote or promoted

        state = replace(state, to_move=state.to_move.opponent, capture_chain=None)
        ended = cls.end_turn(
            state,
            chain.moved_rank,
            did_capture=True,
            did_promote=did_promote or chain.promoted,
        )
        notation = format_turn_notation(list(chain.nodes), True, ruleset.board_size, coord_format)
        logger.debug("Turn ended after capture %s", notation)
        return ChainStep(ended, ChainState.idle(), did_promote, True, notation)

    @classmethod
    def end_turn(
        cls,
        state: GameState,
        moved_rank: Rank | None,
        did_capture: bool,
        did_promote: bool,
    ) -> GameState:
        """
        Apply turn-boundary rules to a state whose side to move has already flipped.

        Args:
            state: State after the turn
            moved_rank: Rank of the moving stack's top when the turn started
            did_capture: Whether the turn captured
            did_promote: Whether the turn promoted

        Returns:
            State with phase reset and dead-play counters advanced
        """
        state = replace(state, phase=Phase.IDLE)
        if moved_rank is None:
            return state
        return DeadPlayRules.update(state, moved_rank, did_capture, did_promote)

    @classmethod
    def captures_available(cls, state: GameState, ruleset: RulesetConfig | None = None) -> bool:
        """Whether the side to move is under a capture obligation."""
        ruleset = ruleset or ruleset_for(state)
        return ruleset.mandatory_capture and bool(MoveGenerator.captures(state, ruleset=ruleset))

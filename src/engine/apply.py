"""
Stack Games - Move Applier

Applies a single move to a GameState and returns a new state. Handles stack
relocation, absorption or removal of captured pieces, and promotion. A quiet
move flips the side to move; a capture never does, since the capture-chain
controller decides when the turn ends.
"""

from dataclasses import dataclass

from src.engine.base import (
    Board,
    CaptureChainAux,
    CaptureMove,
    CaptureRemoval,
    GameState,
    Move,
    Phase,
    Player,
    QuietMove,
    Rank,
    Stack,
    top_of,
)
from src.engine.chess import ChessRules
from src.engine.coords import is_playable, parse_node_id
from src.engine.errors import IllegalMoveError
from src.engine.rulesets import (
    CaptureTransfer,
    PromotionTiming,
    RulesetConfig,
    ruleset_for,
)


@dataclass(frozen=True)
class ApplyResult:
    """
    Outcome of applying one move.

    Attributes:
        state: Resulting state
        did_promote: Whether a piece was promoted by this move
    """
    state: GameState
    did_promote: bool = False


def promote_stack(stack: Stack) -> Stack:
    """Return the stack with its top Soldier turned into an Officer."""
    return stack[:-1] + (stack[-1].promoted(Rank.OFFICER),)


def reaches_promotion_row(stack: Stack, node: str, ruleset: RulesetConfig) -> bool:
    """Whether the top of stack is a Soldier standing on its promotion row."""
    top = top_of(stack)
    if top is None or top.rank != Rank.SOLDIER:
        return False
    row, _ = parse_node_id(node)
    return row == ruleset.promotion_row(top.owner)


class MoveApplier:
    """
    Stateless move application for every ruleset.

    All methods are classmethods operating on immutable states.
    """

    @classmethod
    def apply(cls, state: GameState, move: Move, ruleset: RulesetConfig | None = None) -> ApplyResult:
        """
        Apply a move.

        Args:
            state: Current state
            move: Quiet move or capture
            ruleset: Rules to apply (default: looked up from the state's meta)

        Returns:
            ApplyResult with the new state and whether a promotion happened

        Raises:
            IllegalMoveError: If the move's preconditions do not hold
        """
        ruleset = ruleset or ruleset_for(state)

        if ruleset.is_chess:
            try:
                next_state, did_promote = ChessRules.apply(state, move)
            except ValueError as e:
                raise IllegalMoveError(str(e)) from e
            return ApplyResult(next_state, did_promote)

        cls._check_preconditions(state, move, ruleset)

        if isinstance(move, QuietMove):
            return cls._apply_quiet(state, move, ruleset)
        return cls._apply_capture(state, move, ruleset)

    @classmethod
    def _check_preconditions(cls, state: GameState, move: Move, ruleset: RulesetConfig) -> None:
        size = ruleset.board_size
        moving = top_of(state.board.get(move.from_))
        if moving is None:
            raise IllegalMoveError(f"No stack at {move.from_}.")
        if moving.owner != state.to_move:
            raise IllegalMoveError(f"Stack at {move.from_} is not controlled by {state.to_move.display_name}.")

        row, col = parse_node_id(move.to)
        if not is_playable(row, col, size, ruleset.all_squares):
            raise IllegalMoveError(f"Landing square {move.to} is not playable.")
        if not state.is_empty(move.to):
            raise IllegalMoveError(f"Landing square {move.to} is not empty.")

        if isinstance(move, CaptureMove):
            victim = state.top_at(move.over)
            if victim is None or victim.owner == state.to_move:
                raise IllegalMoveError(f"No enemy stack to capture at {move.over}.")
            if not cls._strictly_between(move.from_, move.over, move.to):
                raise IllegalMoveError(f"{move.over} does not lie between {move.from_} and {move.to}.")

    @staticmethod
    def _strictly_between(from_: str, over: str, to: str) -> bool:
        fr, fc = parse_node_id(from_)
        orow, ocol = parse_node_id(over)
        tr, tc = parse_node_id(to)
        dr, dc = tr - fr, tc - fc
        if abs(dr) != abs(dc) or dr == 0:
            return False
        step = abs(dr)
        k = abs(orow - fr)
        return 0 < k < step and (orow - fr) * step == dr * k and (ocol - fc) * step == dc * k

    @classmethod
    def _apply_quiet(cls, state: GameState, move: QuietMove, ruleset: RulesetConfig) -> ApplyResult:
        board = dict(state.board)
        stack = board.pop(move.from_)

        did_promote = reaches_promotion_row(stack, move.to, ruleset)
        if did_promote:
            stack = promote_stack(stack)
        board[move.to] = stack

        next_state = state.with_board(
            board,
            to_move=state.to_move.opponent,
            phase=Phase.IDLE,
            capture_chain=None,
        )
        return ApplyResult(next_state, did_promote)

    @classmethod
    def capture_board(cls, board: Board, move: CaptureMove, ruleset: RulesetConfig) -> Board:
        """
        Board after a capture step, without promotion.

        Args:
            board: Current board (not modified)
            move: Capture to apply
            ruleset: Rules deciding how the jumped stack is resolved

        Returns:
            New board
        """
        next_board = dict(board)
        moving = next_board.pop(move.from_)
        jumped = next_board[move.over]

        if ruleset.stacking:
            if ruleset.capture_transfer == CaptureTransfer.WHOLE_STACK:
                del next_board[move.over]
                moving = jumped + moving
            else:
                remainder = jumped[:-1]
                if remainder:
                    next_board[move.over] = remainder
                else:
                    del next_board[move.over]
                moving = jumped[-1:] + moving
        elif ruleset.capture_removal == CaptureRemoval.IMMEDIATE:
            remainder = jumped[:-1]
            if remainder:
                next_board[move.over] = remainder
            else:
                del next_board[move.over]

        next_board[move.to] = moving
        return next_board

    @classmethod
    def _apply_capture(cls, state: GameState, move: CaptureMove, ruleset: RulesetConfig) -> ApplyResult:
        board = cls.capture_board(state.board, move, ruleset)
        stack = board[move.to]
        on_row = reaches_promotion_row(stack, move.to, ruleset)

        did_promote = False
        capture_chain = state.capture_chain
        if ruleset.promotion_timing == PromotionTiming.END_OF_CHAIN:
            earned = bool(capture_chain and capture_chain.promotion_earned) or on_row
            capture_chain = CaptureChainAux(promotion_earned=earned)
        elif on_row:
            board[move.to] = promote_stack(stack)
            did_promote = True

        next_state = state.with_board(board, phase=Phase.IDLE, capture_chain=capture_chain)
        return ApplyResult(next_state, did_promote)

    @classmethod
    def remove_jumped(cls, state: GameState, jumped: frozenset[str]) -> GameState:
        """Take the top piece off every jumped square (end-of-sequence removal)."""
        board = dict(state.board)
        for node in jumped:
            stack = board.get(node)
            if not stack:
                continue
            if len(stack) > 1:
                board[node] = stack[:-1]
            else:
                del board[node]
        return state.with_board(board)

    @classmethod
    def promote_at(cls, state: GameState, node: str, owner: Player) -> tuple[GameState, bool]:
        """Promote the top Soldier at node if owner controls it."""
        stack = state.board.get(node)
        top = top_of(stack)
        if top is None or top.owner != owner or top.rank != Rank.SOLDIER:
            return state, False
        board = dict(state.board)
        board[node] = promote_stack(stack)
        return state.with_board(board), True

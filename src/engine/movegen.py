"""
Stack Games - Move Generator

Legal move generation for every ruleset. Captures are enumerated first; when
any exist and captures are mandatory, quiet moves are not offered. Inside a
capture chain the caller passes constraints that lock the origin, exclude
already-jumped squares and carry the last capture direction.

Output order is deterministic: origins in (row, col) order, directions in
DIAGONALS order, landing squares nearest first.
"""

from dataclasses import dataclass

from src.engine.apply import MoveApplier, promote_stack, reaches_promotion_row
from src.engine.base import (
    Board,
    CaptureMove,
    GameState,
    Move,
    NodeId,
    Player,
    QuietMove,
    Rank,
    top_of,
)
from src.engine.chess import ChessRules
from src.engine.coords import (
    DIAGONALS,
    Direction,
    direction_between,
    in_bounds,
    is_playable,
    make_node_id,
    node_sort_key,
    parse_node_id,
)
from src.engine.rulesets import OfficerTurnRule, PromotionTiming, RulesetConfig, ruleset_for


@dataclass(frozen=True)
class MovegenConstraints:
    """
    Restrictions applied while a capture chain is in progress.

    Attributes:
        forced_from: Only moves starting here are generated
        excluded_over: Squares that may not be jumped again
        last_dir: Direction of the previous capture step
    """
    forced_from: NodeId | None = None
    excluded_over: frozenset[NodeId] = frozenset()
    last_dir: Direction | None = None


def direction_allowed(rule: OfficerTurnRule, direction: Direction, last_dir: Direction | None) -> bool:
    """Whether an officer may capture in direction after a capture along last_dir."""
    if last_dir is None or rule == OfficerTurnRule.ANY:
        return True
    reverse = (-last_dir[0], -last_dir[1])
    if rule == OfficerTurnRule.ZIGZAG:
        return direction != last_dir and direction != reverse
    return direction != reverse


def forward_directions(owner: Player) -> tuple[Direction, Direction]:
    forward = 1 if owner == Player.DARK else -1
    return (forward, -1), (forward, 1)


def _fingerprint(board: Board) -> tuple:
    return tuple(sorted((node, tuple(p.code for p in stack)) for node, stack in board.items()))


class MoveGenerator:
    """
    Stateless legal move generation.

    All methods are classmethods; the ruleset is looked up from the state's
    meta unless passed explicitly.
    """

    @classmethod
    def generate(
        cls,
        state: GameState,
        constraints: MovegenConstraints | None = None,
        ruleset: RulesetConfig | None = None,
    ) -> list[Move]:
        """
        Generate legal moves for the side to move.

        Args:
            state: Current state
            constraints: Chain restrictions (None = unrestricted)
            ruleset: Rules to apply (default: from the state's meta)

        Returns:
            Legal moves in deterministic order
        """
        ruleset = ruleset or ruleset_for(state)
        constraints = constraints or MovegenConstraints()

        if ruleset.is_chess:
            moves = ChessRules.legal_moves(state)
            if constraints.forced_from is not None:
                moves = [m for m in moves if m.from_ == constraints.forced_from]
            return moves

        captures = cls._selectable_captures(state, constraints, ruleset)
        if captures and ruleset.mandatory_capture:
            return captures
        return captures + cls._quiet_moves(state, constraints, ruleset)

    @classmethod
    def captures(
        cls,
        state: GameState,
        constraints: MovegenConstraints | None = None,
        ruleset: RulesetConfig | None = None,
    ) -> list[CaptureMove]:
        """Legal captures only."""
        ruleset = ruleset or ruleset_for(state)
        constraints = constraints or MovegenConstraints()
        if ruleset.is_chess:
            return [m for m in cls.generate(state, constraints, ruleset) if isinstance(m, CaptureMove)]
        return cls._selectable_captures(state, constraints, ruleset)

    @classmethod
    def has_capture(
        cls,
        state: GameState,
        constraints: MovegenConstraints | None = None,
        ruleset: RulesetConfig | None = None,
    ) -> bool:
        return bool(cls.captures(state, constraints, ruleset))

    # === Internals ===

    @classmethod
    def _origins(cls, state: GameState, constraints: MovegenConstraints) -> list[NodeId]:
        if constraints.forced_from is not None:
            top = state.top_at(constraints.forced_from)
            if top is None or top.owner != state.to_move:
                return []
            return [constraints.forced_from]
        return sorted(state.controlled_nodes(state.to_move), key=node_sort_key)

    @classmethod
    def _raw_captures_from(
        cls,
        board: Board,
        to_move: Player,
        node: NodeId,
        ruleset: RulesetConfig,
        excluded: frozenset[NodeId],
        last_dir: Direction | None,
    ) -> list[CaptureMove]:
        top = top_of(board.get(node))
        if top is None or top.owner != to_move:
            return []

        size = ruleset.board_size
        row, col = parse_node_id(node)
        out: list[CaptureMove] = []

        if top.rank == Rank.SOLDIER:
            directions = DIAGONALS if ruleset.soldiers_capture_backward else forward_directions(top.owner)
            flying = False
        else:
            directions = tuple(
                d for d in DIAGONALS if direction_allowed(ruleset.officer_turn_rule, d, last_dir)
            )
            flying = ruleset.flying_officers

        for dr, dc in directions:
            if flying:
                out.extend(cls._flying_captures(board, to_move, node, (dr, dc), size, excluded))
                continue

            land_r, land_c = row + 2 * dr, col + 2 * dc
            if not is_playable(land_r, land_c, size, ruleset.all_squares):
                continue
            over = make_node_id(row + dr, col + dc)
            to = make_node_id(land_r, land_c)
            if over in excluded or to in board:
                continue
            victim = top_of(board.get(over))
            if victim is None or victim.owner == to_move:
                continue
            out.append(CaptureMove(node, over, to))

        return out

    @classmethod
    def _flying_captures(
        cls,
        board: Board,
        to_move: Player,
        node: NodeId,
        direction: Direction,
        size: int,
        excluded: frozenset[NodeId],
    ) -> list[CaptureMove]:
        dr, dc = direction
        row, col = parse_node_id(node)
        r, c = row + dr, col + dc
        seen: NodeId | None = None
        out: list[CaptureMove] = []

        while in_bounds(r, c, size):
            current = make_node_id(r, c)
            occupant = top_of(board.get(current))
            if occupant is None:
                if seen is not None:
                    out.append(CaptureMove(node, seen, current))
            elif seen is not None or occupant.owner == to_move or current in excluded:
                # A second piece, a friendly piece or an already-jumped piece closes the ray.
                break
            else:
                seen = current
            r, c = r + dr, c + dc

        return out

    @classmethod
    def _selectable_captures(
        cls,
        state: GameState,
        constraints: MovegenConstraints,
        ruleset: RulesetConfig,
    ) -> list[CaptureMove]:
        candidates: list[CaptureMove] = []
        for node in cls._origins(state, constraints):
            candidates.extend(cls._raw_captures_from(
                state.board, state.to_move, node, ruleset,
                constraints.excluded_over, constraints.last_dir,
            ))

        if not candidates or not ruleset.max_capture:
            return candidates

        memo: dict[tuple, int] = {}
        scored = [
            (move, 1 + cls._line_after(state.board, state.to_move, move, constraints.excluded_over, ruleset, memo))
            for move in candidates
        ]
        best = max(score for _, score in scored)
        return [move for move, score in scored if score == best]

    @classmethod
    def _line_after(
        cls,
        board: Board,
        to_move: Player,
        move: CaptureMove,
        excluded: frozenset[NodeId],
        ruleset: RulesetConfig,
        memo: dict[tuple, int],
    ) -> int:
        """Longest number of further captures after playing move."""
        next_board = MoveApplier.capture_board(board, move, ruleset)
        if (
            ruleset.promotion_timing == PromotionTiming.ON_LANDING
            and reaches_promotion_row(next_board[move.to], move.to, ruleset)
        ):
            if ruleset.stop_capture_on_promotion:
                return 0
            next_board[move.to] = promote_stack(next_board[move.to])

        return cls._best_line(
            next_board, to_move, move.to,
            excluded | {move.over},
            direction_between(move.from_, move.to),
            ruleset, memo,
        )

    @classmethod
    def _best_line(
        cls,
        board: Board,
        to_move: Player,
        node: NodeId,
        excluded: frozenset[NodeId],
        last_dir: Direction,
        ruleset: RulesetConfig,
        memo: dict[tuple, int],
    ) -> int:
        key = (_fingerprint(board), node, excluded, last_dir)
        cached = memo.get(key)
        if cached is not None:
            return cached

        best = 0
        for move in cls._raw_captures_from(board, to_move, node, ruleset, excluded, last_dir):
            best = max(best, 1 + cls._line_after(board, to_move, move, excluded, ruleset, memo))

        memo[key] = best
        return best

    @classmethod
    def _quiet_moves(
        cls,
        state: GameState,
        constraints: MovegenConstraints,
        ruleset: RulesetConfig,
    ) -> list[QuietMove]:
        size = ruleset.board_size
        out: list[QuietMove] = []

        for node in cls._origins(state, constraints):
            top = state.top_at(node)
            row, col = parse_node_id(node)
            if top.rank == Rank.SOLDIER:
                directions = forward_directions(top.owner)
                sliding = False
            else:
                directions = DIAGONALS
                sliding = ruleset.flying_officers

            for dr, dc in directions:
                r, c = row + dr, col + dc
                while is_playable(r, c, size, ruleset.all_squares):
                    to = make_node_id(r, c)
                    if to in state.board:
                        break
                    out.append(QuietMove(node, to))
                    if not sliding:
                        break
                    r, c = r + dr, c + dc

        return out

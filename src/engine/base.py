"""
Stack Games - Engine Base Classes

This module defines the foundational data structures and enums shared by every
ruleset: pieces, stacks, the board, game state and moves. All classes are
immutable (frozen dataclasses) so that a state can be hashed, diffed, stored in
history or sent over the wire without copying.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import ClassVar, Mapping, Union

NodeId = str


class Player(Enum):
    """Side identifiers. Values are the wire codes."""
    LIGHT = "W"
    DARK = "B"

    @property
    def opponent(self) -> "Player":
        return Player.DARK if self is Player.LIGHT else Player.LIGHT

    @property
    def display_name(self) -> str:
        return "Light" if self is Player.LIGHT else "Dark"


class Rank(Enum):
    """Piece ranks. Checkers-family and chess ranks share one enum."""
    SOLDIER = "S"
    OFFICER = "O"
    PAWN = "P"
    KNIGHT = "N"
    BISHOP = "B"
    ROOK = "R"
    QUEEN = "Q"
    KING = "K"


CHECKERS_RANKS = frozenset({Rank.SOLDIER, Rank.OFFICER})
CHESS_RANKS = frozenset({
    Rank.PAWN, Rank.KNIGHT, Rank.BISHOP, Rank.ROOK, Rank.QUEEN, Rank.KING,
})


class Phase(Enum):
    """Interaction phase carried on the state for UI consumers."""
    IDLE = "idle"
    SELECT = "select"
    ANIM = "anim"


class RulesetId(Enum):
    """Closed set of rule families."""
    LASCA = "lasca"
    DAMA = "dama"
    DAMASCA = "damasca"
    DAMASCA_CLASSIC = "damasca_classic"
    CHESS = "chess"


class CaptureRemoval(Enum):
    """When a jumped piece leaves play in removal rulesets."""
    IMMEDIATE = "immediate"
    END_OF_SEQUENCE = "end_of_sequence"


@dataclass(frozen=True)
class Piece:
    """
    A single piece.

    Attributes:
        owner: Side owning the piece
        rank: Piece rank (scoped by ruleset)
    """
    owner: Player
    rank: Rank

    @property
    def code(self) -> str:
        """Two-letter code, e.g. 'WS' for a Light soldier."""
        return self.owner.value + self.rank.value

    def promoted(self, rank: Rank) -> "Piece":
        return replace(self, rank=rank)


# Bottom to top. Never empty while on the board.
Stack = tuple[Piece, ...]
Board = dict[NodeId, Stack]


def top_of(stack: Stack | None) -> Piece | None:
    """Return the top piece of a stack, or None for an empty/missing stack."""
    if not stack:
        return None
    return stack[-1]


@dataclass(frozen=True)
class GameMeta:
    """
    Ruleset identity, fixed at game creation.

    Attributes:
        variant_id: Variant identifier (e.g. 'lasca_7_classic')
        ruleset_id: Rule family
        board_size: Board edge length
        capture_removal: Removal timing (meaningful for removal rulesets)
    """
    variant_id: str
    ruleset_id: RulesetId
    board_size: int
    capture_removal: CaptureRemoval = CaptureRemoval.IMMEDIATE


@dataclass(frozen=True)
class CastlingRights:
    king_side: bool = True
    queen_side: bool = True


@dataclass(frozen=True)
class ChessAux:
    """
    Chess side data that affects legality.

    Attributes:
        castling: Castling rights per side
        en_passant_target: Square passed over by a pawn double-step
        en_passant_pawn: Square of the pawn that just double-stepped
    """
    castling: Mapping[Player, CastlingRights] = field(default_factory=lambda: {
        Player.LIGHT: CastlingRights(),
        Player.DARK: CastlingRights(),
    })
    en_passant_target: NodeId | None = None
    en_passant_pawn: NodeId | None = None

    def rights(self, player: Player) -> CastlingRights:
        return self.castling.get(player, CastlingRights(False, False))


@dataclass(frozen=True)
class ForcedGameOver:
    """An externally or rule-imposed result. winner is None for a draw."""
    winner: Player | None
    reason_code: str
    message: str


@dataclass(frozen=True)
class CaptureChainAux:
    """Chain bookkeeping that must survive a mid-chain sync."""
    promotion_earned: bool = False


@dataclass(frozen=True)
class DeadPlayCounters:
    """Damasca dead-play ply counters."""
    no_progress_plies: int = 0
    officer_only_plies: int = 0


@dataclass(frozen=True)
class LoneKingCounter:
    """
    Damasca lone-officer timer.

    Attributes:
        lone_side: Side reduced to a single officer
        plies: Turn boundaries passed with that side still alone
    """
    lone_side: Player
    plies: int = 0


@dataclass(frozen=True)
class GameState:
    """
    Complete position of a game.

    Attributes:
        board: Mapping of node id to stack (absent key = empty node)
        to_move: Side to move
        phase: UI interaction phase (not part of the position)
        meta: Ruleset identity
        chess: Castling/en-passant data (chess only)
        forced_game_over: Imposed result, if any
        capture_chain: Mid-chain bookkeeping, if a chain is active
        dead_play: Damasca dead-play counters
        lone_king: Damasca lone-officer timer, while one side is down to one officer
    """
    board: Board
    to_move: Player
    meta: GameMeta
    phase: Phase = Phase.IDLE
    chess: ChessAux | None = None
    forced_game_over: ForcedGameOver | None = None
    capture_chain: CaptureChainAux | None = None
    dead_play: DeadPlayCounters | None = None
    lone_king: LoneKingCounter | None = None

    def stack_at(self, node: NodeId) -> Stack | None:
        return self.board.get(node)

    def top_at(self, node: NodeId) -> Piece | None:
        return top_of(self.board.get(node))

    def is_empty(self, node: NodeId) -> bool:
        return not self.board.get(node)

    def controlled_nodes(self, player: Player) -> list[NodeId]:
        """Nodes whose top piece belongs to player."""
        return [node for node, stack in self.board.items() if stack and stack[-1].owner == player]

    def piece_count(self) -> int:
        """Total pieces on the board, buried ones included."""
        return sum(len(stack) for stack in self.board.values())

    def with_board(self, board: Board, **changes) -> "GameState":
        return replace(self, board=board, **changes)


@dataclass(frozen=True)
class QuietMove:
    """A non-capturing relocation of a whole stack."""
    kind: ClassVar[str] = "move"
    from_: NodeId
    to: NodeId


@dataclass(frozen=True)
class CaptureMove:
    """A jump from `from_` over `over` to `to`."""
    kind: ClassVar[str] = "capture"
    from_: NodeId
    over: NodeId
    to: NodeId


Move = Union[QuietMove, CaptureMove]

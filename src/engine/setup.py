"""
Stack Games - Initial Positions

Builds the starting GameState for any registered variant.
"""

from src.engine.base import Board, ChessAux, DeadPlayCounters, GameState, Piece, Player, Rank
from src.engine.coords import is_playable, make_node_id
from src.engine.rulesets import DEFAULT_VARIANT_ID, RulesetConfig, get_variant

CHESS_BACK_RANK: tuple[Rank, ...] = (
    Rank.ROOK, Rank.KNIGHT, Rank.BISHOP, Rank.QUEEN,
    Rank.KING, Rank.BISHOP, Rank.KNIGHT, Rank.ROOK,
)


def start_nodes(ruleset: RulesetConfig, pieces_per_side: int) -> tuple[list[str], list[str]]:
    """
    Starting squares for a checkers-family board.

    Dark takes the first playable squares in row-major order and Light the
    last ones, leaving the middle rows empty.

    Returns:
        (dark_nodes, light_nodes)
    """
    size = ruleset.board_size
    playable = [
        make_node_id(r, c)
        for r in range(size)
        for c in range(size)
        if is_playable(r, c, size, ruleset.all_squares)
    ]
    if 2 * pieces_per_side > len(playable):
        raise ValueError(f"{pieces_per_side} pieces per side do not fit on a {size}x{size} board.")

    dark = playable[:pieces_per_side]
    light = playable[-pieces_per_side:]
    return dark, light


def _checkers_board(ruleset: RulesetConfig, pieces_per_side: int) -> Board:
    dark, light = start_nodes(ruleset, pieces_per_side)
    board: Board = {}
    for node in dark:
        board[node] = (Piece(Player.DARK, Rank.SOLDIER),)
    for node in light:
        board[node] = (Piece(Player.LIGHT, Rank.SOLDIER),)
    return board


def _chess_board() -> Board:
    board: Board = {}
    for col, rank in enumerate(CHESS_BACK_RANK):
        board[make_node_id(0, col)] = (Piece(Player.DARK, rank),)
        board[make_node_id(1, col)] = (Piece(Player.DARK, Rank.PAWN),)
        board[make_node_id(6, col)] = (Piece(Player.LIGHT, Rank.PAWN),)
        board[make_node_id(7, col)] = (Piece(Player.LIGHT, rank),)
    return board


def create_initial_state(variant_id: str | None = None) -> GameState:
    """
    Create the starting position for a variant.

    Args:
        variant_id: Registered variant id or alias (None = default variant)

    Returns:
        Initial GameState with Light to move

    Raises:
        InvalidStateError: If the variant id is unknown
    """
    variant = get_variant(variant_id or DEFAULT_VARIANT_ID)
    ruleset = variant.ruleset

    if ruleset.is_chess:
        return GameState(board=_chess_board(), to_move=Player.LIGHT, meta=variant.meta(), chess=ChessAux())

    return GameState(
        board=_checkers_board(ruleset, variant.pieces_per_side),
        to_move=Player.LIGHT,
        meta=variant.meta(),
        dead_play=DeadPlayCounters() if ruleset.dead_play_rules else None,
    )

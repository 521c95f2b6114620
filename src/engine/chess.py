"""
Stack Games - Classic Chess

Chess rules on the shared board representation: every stack holds exactly one
piece and every square is playable. Handles check detection, castling, en
passant and auto-queen promotion.
"""

from dataclasses import replace

from src.engine.base import (
    Board,
    CaptureMove,
    CastlingRights,
    ChessAux,
    GameState,
    Move,
    NodeId,
    Phase,
    Piece,
    Player,
    QuietMove,
    Rank,
    top_of,
)
from src.engine.coords import DIAGONALS, in_bounds, make_node_id, node_sort_key, parse_node_id

BOARD_SIZE = 8

ORTHOGONALS: tuple[tuple[int, int], ...] = ((-1, 0), (1, 0), (0, -1), (0, 1))
KING_STEPS = DIAGONALS + ORTHOGONALS
KNIGHT_STEPS: tuple[tuple[int, int], ...] = (
    (-2, -1), (-2, 1), (-1, -2), (-1, 2), (1, -2), (1, 2), (2, -1), (2, 1),
)

KING_COL = 4
KING_SIDE_ROOK_COL = 7
QUEEN_SIDE_ROOK_COL = 0


def home_row(player: Player) -> int:
    return BOARD_SIZE - 1 if player == Player.LIGHT else 0


def pawn_direction(player: Player) -> int:
    return -1 if player == Player.LIGHT else 1


def rook_start(player: Player, king_side: bool) -> NodeId:
    return make_node_id(home_row(player), KING_SIDE_ROOK_COL if king_side else QUEEN_SIDE_ROOK_COL)


class ChessRules:
    """
    Stateless chess move generation and application.

    All methods are classmethods operating on GameState values.
    """

    # === Attacks ===

    @classmethod
    def is_square_attacked(cls, board: Board, square: NodeId, by_player: Player) -> bool:
        """
        Check whether any piece of by_player attacks a square.

        Args:
            board: Board to inspect
            square: Target square
            by_player: Attacking side

        Returns:
            True if the square is attacked
        """
        row, col = parse_node_id(square)

        def piece_at(r: int, c: int) -> Piece | None:
            return top_of(board.get(make_node_id(r, c)))

        # Pawns attack diagonally forward, so look one row against their direction.
        pawn_row = row - pawn_direction(by_player)
        for dc in (-1, 1):
            if in_bounds(pawn_row, col + dc, BOARD_SIZE):
                piece = piece_at(pawn_row, col + dc)
                if piece and piece.owner == by_player and piece.rank == Rank.PAWN:
                    return True

        for dr, dc in KNIGHT_STEPS:
            if in_bounds(row + dr, col + dc, BOARD_SIZE):
                piece = piece_at(row + dr, col + dc)
                if piece and piece.owner == by_player and piece.rank == Rank.KNIGHT:
                    return True

        for dr, dc in KING_STEPS:
            if in_bounds(row + dr, col + dc, BOARD_SIZE):
                piece = piece_at(row + dr, col + dc)
                if piece and piece.owner == by_player and piece.rank == Rank.KING:
                    return True

        for steps, sliders in (
            (DIAGONALS, (Rank.BISHOP, Rank.QUEEN)),
            (ORTHOGONALS, (Rank.ROOK, Rank.QUEEN)),
        ):
            for dr, dc in steps:
                r, c = row + dr, col + dc
                while in_bounds(r, c, BOARD_SIZE):
                    piece = piece_at(r, c)
                    if piece is not None:
                        if piece.owner == by_player and piece.rank in sliders:
                            return True
                        break
                    r, c = r + dr, c + dc

        return False

    @classmethod
    def find_king(cls, board: Board, player: Player) -> NodeId | None:
        for node, stack in board.items():
            top = top_of(stack)
            if top and top.owner == player and top.rank == Rank.KING:
                return node
        return None

    @classmethod
    def is_in_check(cls, state: GameState, player: Player | None = None) -> bool:
        """Whether player's king (default: side to move) is attacked."""
        player = player or state.to_move
        king = cls.find_king(state.board, player)
        if king is None:
            return False
        return cls.is_square_attacked(state.board, king, player.opponent)

    # === Move generation ===

    @classmethod
    def _pseudo_moves_from(cls, state: GameState, node: NodeId) -> list[Move]:
        board = state.board
        piece = top_of(board.get(node))
        if piece is None or piece.owner != state.to_move:
            return []

        row, col = parse_node_id(node)
        player = piece.owner
        out: list[Move] = []

        def target(r: int, c: int) -> tuple[NodeId, Piece | None]:
            to = make_node_id(r, c)
            return to, top_of(board.get(to))

        def add_step(r: int, c: int) -> bool:
            """Add a move or capture to (r, c); return True if the ray continues."""
            if not in_bounds(r, c, BOARD_SIZE):
                return False
            to, occupant = target(r, c)
            if occupant is None:
                out.append(QuietMove(node, to))
                return True
            if occupant.owner != player and occupant.rank != Rank.KING:
                out.append(CaptureMove(node, to, to))
            return False

        if piece.rank == Rank.PAWN:
            direction = pawn_direction(player)
            one = row + direction
            if in_bounds(one, col, BOARD_SIZE) and board.get(make_node_id(one, col)) is None:
                out.append(QuietMove(node, make_node_id(one, col)))
                two = one + direction
                start_row = home_row(player) + direction
                if row == start_row and board.get(make_node_id(two, col)) is None:
                    out.append(QuietMove(node, make_node_id(two, col)))
            for dc in (-1, 1):
                r, c = one, col + dc
                if not in_bounds(r, c, BOARD_SIZE):
                    continue
                to, occupant = target(r, c)
                if occupant is not None:
                    if occupant.owner != player and occupant.rank != Rank.KING:
                        out.append(CaptureMove(node, to, to))
                elif state.chess and state.chess.en_passant_target == to:
                    victim_node = state.chess.en_passant_pawn
                    victim = top_of(board.get(victim_node)) if victim_node else None
                    if victim and victim.owner != player and victim.rank == Rank.PAWN:
                        out.append(CaptureMove(node, victim_node, to))
            return out

        if piece.rank == Rank.KNIGHT:
            for dr, dc in KNIGHT_STEPS:
                add_step(row + dr, col + dc)
            return out

        if piece.rank == Rank.KING:
            for dr, dc in KING_STEPS:
                add_step(row + dr, col + dc)
            return out

        steps = {
            Rank.BISHOP: DIAGONALS,
            Rank.ROOK: ORTHOGONALS,
            Rank.QUEEN: KING_STEPS,
        }[piece.rank]
        for dr, dc in steps:
            r, c = row + dr, col + dc
            while add_step(r, c):
                r, c = r + dr, c + dc
        return out

    @classmethod
    def _castling_moves(cls, state: GameState) -> list[Move]:
        player = state.to_move
        rights = (state.chess or ChessAux()).rights(player)
        row = home_row(player)
        king_node = make_node_id(row, KING_COL)
        king = top_of(state.board.get(king_node))
        if king is None or king.owner != player or king.rank != Rank.KING:
            return []

        opponent = player.opponent
        if cls.is_square_attacked(state.board, king_node, opponent):
            return []

        out: list[Move] = []
        for king_side, allowed in ((True, rights.king_side), (False, rights.queen_side)):
            if not allowed:
                continue
            rook = top_of(state.board.get(rook_start(player, king_side)))
            if rook is None or rook.owner != player or rook.rank != Rank.ROOK:
                continue
            between = (5, 6) if king_side else (1, 2, 3)
            if any(make_node_id(row, c) in state.board for c in between):
                continue
            passed = (5, 6) if king_side else (3, 2)
            if any(cls.is_square_attacked(state.board, make_node_id(row, c), opponent) for c in passed):
                continue
            out.append(QuietMove(king_node, make_node_id(row, passed[-1])))
        return out

    @classmethod
    def legal_moves(cls, state: GameState) -> list[Move]:
        """
        All legal moves for the side to move.

        Pseudo-legal moves that leave the mover's king attacked are dropped.
        Quiet moves are listed before captures, each group in (row, col) order
        of origin.

        Args:
            state: Current chess position

        Returns:
            List of legal moves
        """
        candidates: list[Move] = []
        for node in sorted(state.controlled_nodes(state.to_move), key=node_sort_key):
            candidates.extend(cls._pseudo_moves_from(state, node))

        legal = [m for m in candidates if not cls._leaves_king_in_check(state, m)]
        legal.extend(cls._castling_moves(state))

        quiet = [m for m in legal if isinstance(m, QuietMove)]
        captures = [m for m in legal if isinstance(m, CaptureMove)]
        quiet.sort(key=lambda m: node_sort_key(m.from_))
        captures.sort(key=lambda m: node_sort_key(m.from_))
        return quiet + captures

    @classmethod
    def _leaves_king_in_check(cls, state: GameState, move: Move) -> bool:
        board = dict(state.board)
        moving = board.pop(move.from_)
        if isinstance(move, CaptureMove):
            board.pop(move.over, None)
        board[move.to] = moving
        king = cls.find_king(board, state.to_move)
        if king is None:
            return False
        return cls.is_square_attacked(board, king, state.to_move.opponent)

    # === Application ===

    @classmethod
    def apply(cls, state: GameState, move: Move) -> tuple[GameState, bool]:
        """
        Apply a chess move.

        Quiet moves flip the side to move; captures leave it for the turn
        controller. Castling relocates the rook, a pawn double step sets en
        passant, and a pawn reaching the last row becomes a queen.

        Args:
            state: Current position
            move: Move to apply (legality is the caller's concern)

        Returns:
            (new_state, did_promote)

        Raises:
            ValueError: If the move does not fit the position
        """
        moving = state.board.get(move.from_)
        piece = top_of(moving)
        if piece is None or piece.owner != state.to_move:
            raise ValueError(f"No piece of the side to move at {move.from_}.")

        chess = state.chess or ChessAux()
        castling = dict(chess.castling)
        board = dict(state.board)
        player = piece.owner
        fr, fc = parse_node_id(move.from_)
        tr, tc = parse_node_id(move.to)

        def drop_rights(side: Player, king_side: bool | None = None) -> None:
            current = castling.get(side, CastlingRights(False, False))
            if king_side is None:
                castling[side] = CastlingRights(False, False)
            elif king_side:
                castling[side] = replace(current, king_side=False)
            else:
                castling[side] = replace(current, queen_side=False)

        captured: Piece | None = None
        if isinstance(move, CaptureMove):
            captured = top_of(board.get(move.over))
            if captured is None or captured.owner == player:
                raise ValueError(f"No enemy piece to capture at {move.over}.")
            if captured.rank == Rank.KING:
                raise ValueError("Kings cannot be captured.")
            if move.over != move.to:
                if chess.en_passant_target != move.to or chess.en_passant_pawn != move.over:
                    raise ValueError("En passant is not available.")
                if move.to in board:
                    raise ValueError(f"En passant destination {move.to} is occupied.")
            del board[move.over]
        elif move.to in board:
            raise ValueError(f"Destination {move.to} is occupied.")

        del board[move.from_]
        did_promote = False
        if piece.rank == Rank.PAWN and tr == home_row(player.opponent):
            piece = piece.promoted(Rank.QUEEN)
            did_promote = True
        board[move.to] = (piece,)

        en_passant_target = None
        en_passant_pawn = None

        if piece.rank == Rank.KING:
            if isinstance(move, QuietMove) and fr == tr == home_row(player) and abs(tc - fc) == 2:
                king_side = tc > fc
                rook_from = rook_start(player, king_side)
                rook = board.pop(rook_from, None)
                if top_of(rook) is None or rook[-1].rank != Rank.ROOK:
                    raise ValueError("Castling requires a rook on its start square.")
                board[make_node_id(fr, 5 if king_side else 3)] = rook
            drop_rights(player)
        elif piece.rank == Rank.ROOK:
            if move.from_ == rook_start(player, True):
                drop_rights(player, True)
            elif move.from_ == rook_start(player, False):
                drop_rights(player, False)
        elif piece.rank == Rank.PAWN and abs(tr - fr) == 2 and fc == tc:
            en_passant_target = make_node_id(fr + pawn_direction(player), fc)
            en_passant_pawn = move.to

        if captured is not None and captured.rank == Rank.ROOK:
            opponent = player.opponent
            if move.over == rook_start(opponent, True):
                drop_rights(opponent, True)
            elif move.over == rook_start(opponent, False):
                drop_rights(opponent, False)

        next_chess = ChessAux(
            castling=castling,
            en_passant_target=en_passant_target,
            en_passant_pawn=en_passant_pawn,
        )
        to_move = player.opponent if isinstance(move, QuietMove) else player
        return state.with_board(board, to_move=to_move, phase=Phase.IDLE, chess=next_chess), did_promote

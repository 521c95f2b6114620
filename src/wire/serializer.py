"""
Stack Games - Wire Serializer

Converts engine values to and from the wire models. Deserialization validates
everything the engine relies on and raises InvalidStateError on the first
problem; pydantic's ValidationError never escapes this module.
"""

import logging
from typing import Any

from pydantic import BaseModel, ValidationError

from src.engine.base import (
    CaptureChainAux,
    CaptureRemoval,
    CastlingRights,
    ChessAux,
    DeadPlayCounters,
    ForcedGameOver,
    GameMeta,
    GameState,
    LoneKingCounter,
    Phase,
    Piece,
    Player,
    Rank,
    RulesetId,
)
from src.engine.coords import node_sort_key
from src.engine.errors import InvalidStateError
from src.engine.history import HistorySnapshot
from src.engine.rulesets import DEFAULT_VARIANT_ID, get_variant, ruleset_for_meta
from src.engine.validators import validate_board, validate_history_cursor
from src.wire.models import (
    WireCaptureChain,
    WireCastling,
    WireChessAux,
    WireDeadPlay,
    WireForcedGameOver,
    WireGameState,
    WireHistory,
    WireLoneKing,
    WireMeta,
    WirePiece,
    WireSnapshot,
)

logger = logging.getLogger(__name__)


def to_json_dict(model: BaseModel) -> dict[str, Any]:
    """Dump a wire model to a JSON-ready dict with camelCase keys."""
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)


def parse_wire(model_cls: type[BaseModel], data: Any) -> Any:
    if isinstance(data, model_cls):
        return data
    try:
        return model_cls.model_validate(data)
    except ValidationError as e:
        logger.warning("Rejected malformed %s: %s", model_cls.__name__, e.error_count())
        raise InvalidStateError(f"Malformed {model_cls.__name__}: {e.errors()[0]['msg']}") from e


def default_meta() -> GameMeta:
    return get_variant(DEFAULT_VARIANT_ID).meta()


# === Meta ===

def serialize_meta(meta: GameMeta) -> WireMeta:
    return WireMeta(
        variant_id=meta.variant_id,
        ruleset_id=meta.ruleset_id.value,
        board_size=meta.board_size,
        capture_removal=meta.capture_removal.value,
    )


def deserialize_meta(wire: WireMeta) -> GameMeta:
    """
    Build a GameMeta and check it against the variant registry.

    Raises:
        InvalidStateError: If the variant is unknown or the meta disagrees with it
    """
    variant = get_variant(wire.variant_id)
    ruleset = variant.ruleset
    if wire.ruleset_id != ruleset.ruleset_id.value or wire.board_size != ruleset.board_size:
        raise InvalidStateError(
            f"Meta {wire.ruleset_id}/{wire.board_size} does not match variant {variant.variant_id}."
        )
    removal = CaptureRemoval(wire.capture_removal) if wire.capture_removal else ruleset.capture_removal
    return GameMeta(
        variant_id=variant.variant_id,
        ruleset_id=ruleset.ruleset_id,
        board_size=ruleset.board_size,
        capture_removal=removal,
    )


# === State ===

def serialize_state(state: GameState) -> WireGameState:
    """Convert a GameState to its wire model. Board entries are in (row, col) order."""
    chess = None
    if state.chess is not None:
        chess = WireChessAux(
            castling={
                player.value: WireCastling(
                    king_side=state.chess.rights(player).king_side,
                    queen_side=state.chess.rights(player).queen_side,
                )
                for player in (Player.LIGHT, Player.DARK)
            },
            en_passant_target=state.chess.en_passant_target,
            en_passant_pawn=state.chess.en_passant_pawn,
        )

    forced = None
    if state.forced_game_over is not None:
        forced = WireForcedGameOver(
            winner=state.forced_game_over.winner.value if state.forced_game_over.winner else None,
            reason_code=state.forced_game_over.reason_code,
            message=state.forced_game_over.message,
        )

    return WireGameState(
        board=[
            (node, [WirePiece(owner=p.owner.value, rank=p.rank.value) for p in state.board[node]])
            for node in sorted(state.board, key=node_sort_key)
        ],
        to_move=state.to_move.value,
        phase=state.phase.value,
        meta=serialize_meta(state.meta),
        chess=chess,
        forced_game_over=forced,
        capture_chain=(
            WireCaptureChain(promotion_earned=state.capture_chain.promotion_earned)
            if state.capture_chain is not None else None
        ),
        damasca_dead_play=(
            WireDeadPlay(
                no_progress_plies=state.dead_play.no_progress_plies,
                officer_only_plies=state.dead_play.officer_only_plies,
            )
            if state.dead_play is not None else None
        ),
        damasca_lone_king_vs_kings=(
            WireLoneKing(lone_king_side=state.lone_king.lone_side.value, plies=state.lone_king.plies)
            if state.lone_king is not None else None
        ),
    )


def deserialize_state(data: WireGameState | dict, fallback_meta: GameMeta | None = None) -> GameState:
    """
    Convert wire data to a validated GameState.

    Args:
        data: WireGameState or its JSON dict
        fallback_meta: Meta to use when the data carries none (default variant if None)

    Returns:
        GameState

    Raises:
        InvalidStateError: On malformed shape, unknown variant, inconsistent meta,
            bad or unplayable node ids, duplicate nodes, empty stacks or ranks the
            ruleset does not use
    """
    wire: WireGameState = parse_wire(WireGameState, data)
    meta = deserialize_meta(wire.meta) if wire.meta is not None else (fallback_meta or default_meta())
    ruleset = ruleset_for_meta(meta)

    raw_board: dict[str, list[Piece]] = {}
    for node, stack in wire.board:
        if node in raw_board:
            raise InvalidStateError(f"Node {node} appears more than once.")
        raw_board[node] = [Piece(Player(p.owner), Rank(p.rank)) for p in stack]

    try:
        board = validate_board(
            raw_board,
            ruleset.board_size,
            ruleset.ranks,
            all_squares=ruleset.all_squares,
            max_stack_height=None if ruleset.stacking else 1,
        )
    except ValueError as e:
        logger.warning("Rejected board: %s", e)
        raise InvalidStateError(str(e)) from e

    chess = None
    if meta.ruleset_id == RulesetId.CHESS:
        chess = ChessAux()
        if wire.chess is not None:
            chess = ChessAux(
                castling={
                    Player(code): CastlingRights(rights.king_side, rights.queen_side)
                    for code, rights in wire.chess.castling.items()
                },
                en_passant_target=wire.chess.en_passant_target,
                en_passant_pawn=wire.chess.en_passant_pawn,
            )

    forced = None
    if wire.forced_game_over is not None:
        forced = ForcedGameOver(
            winner=Player(wire.forced_game_over.winner) if wire.forced_game_over.winner else None,
            reason_code=wire.forced_game_over.reason_code,
            message=wire.forced_game_over.message,
        )

    dead_play = None
    if ruleset.dead_play_rules:
        counters = wire.damasca_dead_play or WireDeadPlay()
        dead_play = DeadPlayCounters(counters.no_progress_plies, counters.officer_only_plies)

    lone_king = None
    if meta.ruleset_id == RulesetId.DAMASCA and wire.damasca_lone_king_vs_kings is not None:
        timer = wire.damasca_lone_king_vs_kings
        lone_king = LoneKingCounter(Player(timer.lone_king_side), timer.plies)

    return GameState(
        board=board,
        to_move=Player(wire.to_move),
        meta=meta,
        phase=Phase(wire.phase),
        chess=chess,
        forced_game_over=forced,
        capture_chain=(
            CaptureChainAux(wire.capture_chain.promotion_earned)
            if wire.capture_chain is not None else None
        ),
        dead_play=dead_play,
        lone_king=lone_king,
    )


# === History ===

def serialize_history(snapshot: HistorySnapshot) -> WireHistory:
    return WireHistory(
        states=[serialize_state(s) for s in snapshot.states],
        notation=list(snapshot.notation),
        current_index=snapshot.current_index,
    )


def deserialize_history(data: WireHistory | dict, fallback_meta: GameMeta | None = None) -> HistorySnapshot:
    """
    Convert wire history to a HistorySnapshot.

    A missing cursor points at the last state and short notation is padded
    with empty strings.

    Raises:
        InvalidStateError: If any state is invalid, the history is empty, or
            the cursor or notation length is inconsistent
    """
    wire: WireHistory = parse_wire(WireHistory, data)
    states = tuple(deserialize_state(s, fallback_meta) for s in wire.states)
    if not states:
        raise InvalidStateError("History must contain at least one state.")

    index = len(states) - 1 if wire.current_index is None else wire.current_index
    try:
        validate_history_cursor(index, len(states))
    except ValueError as e:
        raise InvalidStateError(str(e)) from e
    if len(wire.notation) > len(states):
        raise InvalidStateError(f"History has {len(wire.notation)} notation entries for {len(states)} states.")

    notation = tuple(wire.notation) + ("",) * (len(states) - len(wire.notation))
    return HistorySnapshot(states=states, notation=notation, current_index=index)


# === Snapshot ===

def serialize_snapshot(state: GameState, snapshot: HistorySnapshot, state_version: int) -> WireSnapshot:
    return WireSnapshot(
        state=serialize_state(state),
        history=serialize_history(snapshot),
        state_version=state_version,
    )


def deserialize_snapshot(data: WireSnapshot | dict) -> tuple[GameState, HistorySnapshot, int]:
    """
    Convert a wire snapshot.

    Returns:
        (state, history, state_version)

    Raises:
        InvalidStateError: If any part is invalid
    """
    wire: WireSnapshot = parse_wire(WireSnapshot, data)
    state = deserialize_state(wire.state)
    history = deserialize_history(wire.history, state.meta)
    return state, history, wire.state_version

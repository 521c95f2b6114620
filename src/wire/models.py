"""
Stack Games - Wire Models

Pydantic models for the JSON representation shared by saves, the offline UI
and a multiplayer authority. Field names are camelCase on the wire.
"""

from typing import Literal

from pydantic import BaseModel, Field

PlayerCode = Literal["W", "B"]
RankCode = Literal["S", "O", "P", "N", "B", "R", "Q", "K"]


class WirePiece(BaseModel):
    """One piece: owner and rank codes."""

    owner: PlayerCode
    rank: RankCode

    model_config = {"frozen": True}


class WireMeta(BaseModel):
    """Ruleset identity."""

    variant_id: str = Field(alias="variantId")
    ruleset_id: Literal["lasca", "dama", "damasca", "damasca_classic", "chess"] = Field(alias="rulesetId")
    board_size: Literal[7, 8] = Field(alias="boardSize")
    capture_removal: Literal["immediate", "end_of_sequence"] | None = Field(None, alias="captureRemoval")

    model_config = {"populate_by_name": True}


class WireCastling(BaseModel):
    king_side: bool = Field(alias="kingSide")
    queen_side: bool = Field(alias="queenSide")

    model_config = {"populate_by_name": True}


class WireChessAux(BaseModel):
    """Castling rights and en passant squares."""

    castling: dict[PlayerCode, WireCastling]
    en_passant_target: str | None = Field(None, alias="enPassantTarget")
    en_passant_pawn: str | None = Field(None, alias="enPassantPawn")

    model_config = {"populate_by_name": True}


class WireForcedGameOver(BaseModel):
    winner: PlayerCode | None = None
    reason_code: str = Field(alias="reasonCode")
    message: str

    model_config = {"populate_by_name": True}


class WireCaptureChain(BaseModel):
    promotion_earned: bool = Field(False, alias="promotionEarned")

    model_config = {"populate_by_name": True}


class WireDeadPlay(BaseModel):
    no_progress_plies: int = Field(0, ge=0, alias="noProgressPlies")
    officer_only_plies: int = Field(0, ge=0, alias="officerOnlyPlies")

    model_config = {"populate_by_name": True}


class WireLoneKing(BaseModel):
    lone_king_side: PlayerCode = Field(alias="loneKingSide")
    plies: int = Field(0, ge=0)

    model_config = {"populate_by_name": True}


class WireGameState(BaseModel):
    """
    A full game state.

    The board is a list of [nodeId, stack] pairs, each stack bottom to top.
    """

    board: list[tuple[str, list[WirePiece]]]
    to_move: PlayerCode = Field(alias="toMove")
    phase: Literal["idle", "select", "anim"] = "idle"
    meta: WireMeta | None = None
    chess: WireChessAux | None = None
    forced_game_over: WireForcedGameOver | None = Field(None, alias="forcedGameOver")
    capture_chain: WireCaptureChain | None = Field(None, alias="captureChain")
    damasca_dead_play: WireDeadPlay | None = Field(None, alias="damascaDeadPlay")
    damasca_lone_king_vs_kings: WireLoneKing | None = Field(None, alias="damascaLoneKingVsKings")

    model_config = {"populate_by_name": True}


class WireHistory(BaseModel):
    states: list[WireGameState]
    notation: list[str] = Field(default_factory=list)
    current_index: int | None = Field(None, alias="currentIndex")

    model_config = {"populate_by_name": True}


class WireSnapshot(BaseModel):
    """Authoritative state plus history, versioned for sync."""

    state: WireGameState
    history: WireHistory
    state_version: int = Field(0, ge=0, alias="stateVersion")

    model_config = {"populate_by_name": True}


class WireSaveFileV2(BaseModel):
    """Legacy save: history wrapper without variant metadata."""

    version: Literal[2]
    current: WireGameState
    history: WireHistory | None = None

    model_config = {"populate_by_name": True}


class WireSaveFileV3(BaseModel):
    """Current save format with variant metadata."""

    save_version: Literal[3] = Field(3, alias="saveVersion")
    variant_id: str = Field(alias="variantId")
    ruleset_id: str = Field(alias="rulesetId")
    board_size: Literal[7, 8] = Field(alias="boardSize")
    current: WireGameState
    history: WireHistory | None = None

    model_config = {"populate_by_name": True}

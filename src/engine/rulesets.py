"""
Stack Games - Ruleset Configuration

Per-ruleset constants and the variant registry. A single RulesetConfig value
drives move generation, application and chain control; rule families differ
only in data, never in subclass.
"""

from dataclasses import dataclass, replace
from enum import Enum

from src.engine.base import (
    CHECKERS_RANKS,
    CHESS_RANKS,
    CaptureRemoval,
    GameMeta,
    GameState,
    Player,
    Rank,
    RulesetId,
)
from src.engine.errors import InvalidStateError
from src.engine.validators import validate_board_size


class CaptureTransfer(Enum):
    """What a stacking capture takes from the jumped stack."""
    TOP_PIECE = "top_piece"
    WHOLE_STACK = "whole_stack"


class OfficerTurnRule(Enum):
    """Direction constraint on officers continuing a capture chain."""
    ANY = "any"
    NO_REVERSE = "no_reverse"  # may continue straight or turn 90 degrees
    ZIGZAG = "zigzag"          # must change diagonal


class PromotionTiming(Enum):
    """When a soldier reaching the far row becomes an officer during a chain."""
    ON_LANDING = "on_landing"
    END_OF_CHAIN = "end_of_chain"


@dataclass(frozen=True)
class RulesetConfig:
    """
    Immutable rule constants for one rule family.

    Attributes:
        ruleset_id: Rule family
        board_size: Board edge length
        ranks: Ranks that exist under these rules
        all_squares: True when every square is playable (chess)
        stacking: Captures bury pieces under the mover instead of removing them
        capture_transfer: Which part of the jumped stack a stacking capture takes
        capture_removal: When removal captures take the jumped piece off the board
        mandatory_capture: Quiet moves are illegal while a capture exists
        max_capture: Only first steps of a maximal capture line are legal
        capture_chains: A capture may be followed by further captures in one turn
        flying_officers: Officers slide and capture at any distance
        soldiers_capture_backward: Soldiers may capture in all diagonal directions
        officer_turn_rule: Direction constraint for officers mid-chain
        promotion_timing: Promotion on landing or at the end of the chain
        stop_capture_on_promotion: A promotion ends the capture chain
        draw_by_threefold: Threefold repetition ends the game in a draw
        stalemate_is_draw: No legal move while not in check is a draw (chess)
        dead_play_rules: Damasca no-progress/officer-only adjudication applies
        officer_label: Display label for the officer rank
    """
    ruleset_id: RulesetId
    board_size: int
    ranks: frozenset[Rank] = CHECKERS_RANKS
    all_squares: bool = False
    stacking: bool = True
    capture_transfer: CaptureTransfer = CaptureTransfer.WHOLE_STACK
    capture_removal: CaptureRemoval = CaptureRemoval.IMMEDIATE
    mandatory_capture: bool = True
    max_capture: bool = False
    capture_chains: bool = True
    flying_officers: bool = False
    soldiers_capture_backward: bool = False
    officer_turn_rule: OfficerTurnRule = OfficerTurnRule.ANY
    promotion_timing: PromotionTiming = PromotionTiming.ON_LANDING
    stop_capture_on_promotion: bool = True
    draw_by_threefold: bool = False
    stalemate_is_draw: bool = False
    dead_play_rules: bool = False
    officer_label: str = "Officer"

    def __post_init__(self) -> None:
        """Validate configuration."""
        validate_board_size(self.board_size)
        if self.all_squares and self.ranks != CHESS_RANKS:
            raise ValueError("All-squares boards are only supported for chess ranks.")
        if self.ruleset_id == RulesetId.CHESS and self.capture_chains:
            raise ValueError("Chess captures cannot chain.")

    @property
    def is_chess(self) -> bool:
        return self.ruleset_id == RulesetId.CHESS

    def promotion_row(self, owner: Player) -> int:
        """Row on which owner's soldiers (or pawns) promote."""
        return 0 if owner == Player.LIGHT else self.board_size - 1

    def with_overrides(self, **overrides) -> "RulesetConfig":
        """Return a new config with the given fields replaced."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        if not changes:
            return self
        return replace(self, **changes)


@dataclass(frozen=True)
class VariantSpec:
    """
    A playable variant: a ruleset on a board with a starting army size.

    Attributes:
        variant_id: Stable identifier used in saves and on the wire
        display_name: Human-readable name
        ruleset: Rules applied to this variant
        pieces_per_side: Starting pieces per side
        default_save_name: Suggested save filename
    """
    variant_id: str
    display_name: str
    ruleset: RulesetConfig
    pieces_per_side: int
    default_save_name: str

    def meta(self) -> GameMeta:
        return GameMeta(
            variant_id=self.variant_id,
            ruleset_id=self.ruleset.ruleset_id,
            board_size=self.ruleset.board_size,
            capture_removal=self.ruleset.capture_removal,
        )


LASCA_7 = RulesetConfig(ruleset_id=RulesetId.LASCA, board_size=7)
LASCA_8 = replace(LASCA_7, board_size=8)

DAMA_STANDARD = RulesetConfig(
    ruleset_id=RulesetId.DAMA,
    board_size=8,
    stacking=False,
    capture_removal=CaptureRemoval.IMMEDIATE,
    max_capture=True,
    flying_officers=True,
    soldiers_capture_backward=True,
    officer_turn_rule=OfficerTurnRule.ZIGZAG,
    draw_by_threefold=True,
    officer_label="King",
)
DAMA_INTERNATIONAL = replace(DAMA_STANDARD, capture_removal=CaptureRemoval.END_OF_SEQUENCE)

DAMASCA = RulesetConfig(
    ruleset_id=RulesetId.DAMASCA,
    board_size=8,
    capture_transfer=CaptureTransfer.TOP_PIECE,
    max_capture=True,
    flying_officers=True,
    soldiers_capture_backward=True,
    officer_turn_rule=OfficerTurnRule.NO_REVERSE,
    promotion_timing=PromotionTiming.END_OF_CHAIN,
    stop_capture_on_promotion=False,
    draw_by_threefold=True,
    dead_play_rules=True,
)
DAMASCA_CLASSIC = replace(DAMASCA, ruleset_id=RulesetId.DAMASCA_CLASSIC, flying_officers=False)

CHESS = RulesetConfig(
    ruleset_id=RulesetId.CHESS,
    board_size=8,
    ranks=CHESS_RANKS,
    all_squares=True,
    stacking=False,
    mandatory_capture=False,
    capture_chains=False,
    stop_capture_on_promotion=False,
    draw_by_threefold=True,
    stalemate_is_draw=True,
)


VARIANTS: tuple[VariantSpec, ...] = (
    VariantSpec("lasca_7_classic", "Lasca Classic", LASCA_7, 11, "lasca_7_classic-save.json"),
    VariantSpec("lasca_8_dama_board", "Lasca 8x8", LASCA_8, 12, "lasca_8_dama_board-save.json"),
    VariantSpec(
        "dama_8_classic_standard", "Dama Classic", DAMA_STANDARD, 12,
        "dama_8_classic_standard-save.json",
    ),
    VariantSpec(
        "dama_8_classic_international", "Dama International", DAMA_INTERNATIONAL, 12,
        "dama_8_classic_international-save.json",
    ),
    VariantSpec("damasca_8", "Damasca International", DAMASCA, 12, "damasca_8-save.json"),
    VariantSpec(
        "damasca_8_classic", "Damasca Classic", DAMASCA_CLASSIC, 12,
        "damasca_8_classic-save.json",
    ),
    VariantSpec("chess_classic", "Classic Chess", CHESS, 16, "chess_classic-save.json"),
)

# Renamed or removed variant ids still accepted on load
VARIANT_ID_ALIASES: dict[str, str] = {
    "dama_8_classic": "dama_8_classic_standard",
}

DEFAULT_VARIANT_ID = "lasca_7_classic"

_BY_ID: dict[str, VariantSpec] = {v.variant_id: v for v in VARIANTS}


def canonical_variant_id(variant_id: str) -> str:
    return VARIANT_ID_ALIASES.get(variant_id, variant_id)


def is_variant_id(variant_id: str) -> bool:
    return canonical_variant_id(variant_id) in _BY_ID


def get_variant(variant_id: str) -> VariantSpec:
    """
    Look up a variant by id (aliases accepted).

    Raises:
        InvalidStateError: If the id is not recognized
    """
    found = _BY_ID.get(canonical_variant_id(variant_id))
    if found is None:
        raise InvalidStateError(f"Unknown variant id: {variant_id!r}")
    return found


def ruleset_for_meta(meta: GameMeta) -> RulesetConfig:
    """Rules for a game's meta. The meta's removal mode always wins."""
    ruleset = get_variant(meta.variant_id).ruleset
    if ruleset.capture_removal != meta.capture_removal:
        ruleset = replace(ruleset, capture_removal=meta.capture_removal)
    return ruleset


def ruleset_for(state: GameState) -> RulesetConfig:
    return ruleset_for_meta(state.meta)

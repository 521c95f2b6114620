"""
Stack Games - Save Files

Reads and writes saved games. Three layouts are accepted:

* v3: {"saveVersion": 3, "variantId", "rulesetId", "boardSize", "current", "history"?}
* v2: {"version": 2, "current", "history"} (default variant)
* v1: a bare state (its own meta, else the default variant)

Only v3 is written. Capture obligations and the last-move hint are derived
from the loaded position, never read from the file.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any

from pydantic_core import from_json

from src.engine.base import GameMeta, GameState, NodeId, RulesetId
from src.engine.chain import CaptureChainEngine
from src.engine.coords import a1_to_node, parse_node_id
from src.engine.errors import InvalidStateError
from src.engine.game_over import GameOverEvaluator
from src.engine.history import HistorySnapshot
from src.engine.rulesets import get_variant
from src.engine.validators import validate_history_cursor
from src.wire.models import WireGameState, WireHistory, WireMeta, WireSaveFileV2, WireSaveFileV3
from src.wire.serializer import (
    default_meta,
    deserialize_history,
    deserialize_meta,
    deserialize_state,
    parse_wire,
    serialize_history,
    serialize_state,
)

logger = logging.getLogger(__name__)

SAVE_VERSION = 3

_NOTATION_SEPARATOR = re.compile(r"\s*[→×]\s*")


@dataclass(frozen=True)
class LastMove:
    """Squares the previous turn moved between, for highlighting."""
    from_: NodeId
    to: NodeId


@dataclass(frozen=True)
class LoadedGame:
    """
    A game restored from a save.

    Attributes:
        state: Position to resume from
        history: History to restore (a single entry when the save had none)
        mandatory_capture: Whether the side to move must capture
        last_move: Highlight for the turn that led to state, if known
    """
    state: GameState
    history: HistorySnapshot
    mandatory_capture: bool
    last_move: LastMove | None = None


def _describe(meta: GameMeta) -> str:
    variant = get_variant(meta.variant_id)
    return f"{variant.display_name} ({meta.ruleset_id.value} rules, {meta.board_size}x{meta.board_size})"


def _dama_pair(a: GameMeta, b: GameMeta) -> bool:
    return a.ruleset_id == b.ruleset_id == RulesetId.DAMA and a.board_size == b.board_size


def _resolve_meta(found: GameMeta, expected: GameMeta | None) -> GameMeta:
    """
    Check a save's meta against the expected one.

    Dama Standard and Dama International saves load into each other; the
    expected meta then replaces the saved one.

    Raises:
        InvalidStateError: On any other mismatch
    """
    if expected is None or found == expected:
        return found
    if _dama_pair(found, expected):
        logger.info("Loading %s save as %s", found.variant_id, expected.variant_id)
        return expected
    raise InvalidStateError(
        f"Save variant mismatch. This file is for {_describe(found)}, but this game is {_describe(expected)}."
    )


def _detach_meta(wire_state: WireGameState, header: GameMeta) -> WireGameState:
    """
    Drop a saved state's own meta once it is known to agree with the save header.

    The state is then validated against the header's ruleset, never its own.

    Raises:
        InvalidStateError: If the state was saved for another variant
    """
    if wire_state.meta is not None:
        embedded = deserialize_meta(wire_state.meta)
        if embedded.variant_id != header.variant_id and not _dama_pair(embedded, header):
            logger.warning("Rejected save: state meta %s under header %s", embedded.variant_id, header.variant_id)
            raise InvalidStateError(
                f"Saved position is for {_describe(embedded)}, but the save is for {_describe(header)}."
            )
    return wire_state.model_copy(update={"meta": None})


def _detach_history(history: WireHistory, header: GameMeta) -> WireHistory:
    return history.model_copy(update={"states": [_detach_meta(s, header) for s in history.states]})


def _label_to_node(label: str, size: int) -> NodeId:
    try:
        parse_node_id(label)
    except ValueError:
        return a1_to_node(label, size)
    return label


def infer_last_move(previous: GameState, current: GameState, notation: str = "") -> LastMove | None:
    """
    Reconstruct the squares moved between by the turn from previous to current.

    The turn's notation gives the first and last square directly. Without it,
    the origin is a square the mover controlled before and no longer does and
    the destination is one the mover controls now but did not before.
    """
    labels = [part for part in _NOTATION_SEPARATOR.split(notation.strip()) if part]
    if len(labels) >= 2:
        size = current.meta.board_size
        try:
            return LastMove(_label_to_node(labels[0], size), _label_to_node(labels[-1], size))
        except ValueError:
            logger.debug("Unreadable turn notation %r", notation)

    mover = previous.to_move
    before = set(previous.controlled_nodes(mover))
    after = set(current.controlled_nodes(mover))
    origins = sorted(before - after)
    targets = sorted(after - before)
    if len(origins) != 1 or len(targets) != 1:
        return None
    return LastMove(origins[0], targets[0])


def _loaded(state: GameState, history: HistorySnapshot) -> LoadedGame:
    finished = GameOverEvaluator.evaluate(state) is not None
    mandatory = not finished and CaptureChainEngine.captures_available(state)
    last_move = None
    index = history.current_index
    if index > 0:
        last_move = infer_last_move(history.states[index - 1], state, history.notation[index])
    return LoadedGame(state=state, history=history, mandatory_capture=mandatory, last_move=last_move)


def _history_or_current(
    wire_history: WireHistory | None,
    current: GameState,
) -> tuple[GameState, HistorySnapshot]:
    """Restore history, falling back to the current state alone when it is stale."""
    single = HistorySnapshot(states=(current,), notation=("",), current_index=0)
    if wire_history is None or not wire_history.states:
        return current, single

    count = len(wire_history.states)
    index = count - 1 if wire_history.current_index is None else wire_history.current_index
    try:
        validate_history_cursor(index, count)
    except ValueError as e:
        logger.warning("Ignoring stale history: %s", e)
        return current, single
    if len(wire_history.notation) > count:
        logger.warning("Ignoring history with %d notation entries over %d states", len(wire_history.notation), count)
        return current, single

    snapshot = deserialize_history(wire_history, current.meta)
    return snapshot.states[snapshot.current_index], snapshot


def load_save(data: dict[str, Any], expected: GameMeta | str | None = None) -> LoadedGame:
    """
    Restore a game from parsed save data.

    Every stored position is validated against the ruleset the game resolves to.

    Args:
        data: Parsed JSON object (v1, v2 or v3)
        expected: Meta or variant id the caller is playing (None = accept any)

    Returns:
        LoadedGame

    Raises:
        InvalidStateError: If the data is malformed, internally inconsistent or
            for another variant
    """
    if isinstance(expected, str):
        expected = get_variant(expected).meta()
    if not isinstance(data, dict):
        raise InvalidStateError("Save data must be a JSON object.")

    if "saveVersion" in data or "save_version" in data:
        wire = parse_wire(WireSaveFileV3, data)
        header = deserialize_meta(parse_wire(WireMeta, {
            "variantId": wire.variant_id,
            "rulesetId": wire.ruleset_id,
            "boardSize": wire.board_size,
            "captureRemoval": wire.current.meta.capture_removal if wire.current.meta else None,
        }))
        meta = _resolve_meta(header, expected)
        current = deserialize_state(_detach_meta(wire.current, header), meta)
        state, history = _history_or_current(
            _detach_history(wire.history, header) if wire.history else None, current,
        )
        return _loaded(state, history)

    if "version" in data:
        wire = parse_wire(WireSaveFileV2, data)
        header = default_meta()
        meta = _resolve_meta(header, expected)
        current = deserialize_state(_detach_meta(wire.current, header), meta)
        state, history = _history_or_current(
            _detach_history(wire.history, header) if wire.history else None, current,
        )
        return _loaded(state, history)

    wire_state = parse_wire(WireGameState, data)
    found = deserialize_state(wire_state).meta
    meta = _resolve_meta(found, expected)
    state = deserialize_state(wire_state.model_copy(update={"meta": None}), meta)
    return _loaded(state, HistorySnapshot(states=(state,), notation=("",), current_index=0))


def dumps_save(state: GameState, history: HistorySnapshot | None = None, indent: int | None = 2) -> str:
    """
    Write a v3 save as JSON text.

    Args:
        state: Current state
        history: History to include (optional)
        indent: JSON indentation

    Returns:
        JSON text
    """
    meta = state.meta
    save = WireSaveFileV3(
        save_version=SAVE_VERSION,
        variant_id=meta.variant_id,
        ruleset_id=meta.ruleset_id.value,
        board_size=meta.board_size,
        current=serialize_state(state),
        history=serialize_history(history) if history is not None else None,
    )
    return save.model_dump_json(by_alias=True, exclude_none=True, indent=indent)


def loads_save(text: str | bytes, expected: GameMeta | str | None = None) -> LoadedGame:
    """
    Restore a game from JSON text.

    Raises:
        InvalidStateError: If the text is not JSON or not a valid save
    """
    try:
        data = from_json(text)
    except ValueError as e:
        raise InvalidStateError(f"Save file is not valid JSON: {e}") from e
    return load_save(data, expected)

"""
Stack Games - Game Session

Caller-owned orchestrator that ties the engine together for one game: chain
progress, history, repetition accounting and game-over evaluation. Used the
same way by an offline UI and by a server acting as the authority.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Sequence

from src.config.settings import Settings, get_settings
from src.engine.base import GameState, Move
from src.engine.chain import CaptureChainEngine, ChainState
from src.engine.dead_play import THREEFOLD_REASON, DeadPlayRules
from src.engine.errors import IllegalMoveError
from src.engine.game_over import GameOverEvaluator, GameResult
from src.engine.history import HistoryManager, HistorySnapshot
from src.engine.repetition import RepetitionTracker
from src.engine.rulesets import RulesetConfig, ruleset_for
from src.engine.setup import create_initial_state
from src.session.events import EventPayload, GameEvent
from src.wire.models import WireSnapshot
from src.wire.save_file import LoadedGame, dumps_save, load_save
from src.wire.serializer import serialize_snapshot

logger = logging.getLogger(__name__)

EventCallback = Callable[[EventPayload], None]


@dataclass(frozen=True)
class MoveOutcome:
    """
    Result of GameSession.play_move.

    Attributes:
        state: State after the move
        did_promote: Whether the move promoted a piece
        turn_ended: Whether the turn passed to the opponent
        notation: Notation of the finished turn (None mid-chain)
        result: Game result if the game is now over
    """
    state: GameState
    did_promote: bool
    turn_ended: bool
    notation: str | None
    result: GameResult | None


class GameSession:
    """
    One game in progress.

    Owned by a single caller; not thread-safe.
    """

    def __init__(
        self,
        initial_state: GameState,
        settings: Settings | None = None,
        on_event: EventCallback | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._on_event = on_event
        self._history = HistoryManager()
        self._repetition = RepetitionTracker()
        self._chain = ChainState.idle()
        self._state_version = 0
        self._reset([initial_state], [""], 0)

    @classmethod
    def new(
        cls,
        variant_id: str | None = None,
        settings: Settings | None = None,
        on_event: EventCallback | None = None,
    ) -> "GameSession":
        """
        Start a game from the initial position.

        Args:
            variant_id: Variant to play (default: settings.default_variant)
            settings: Settings to use (default: cached application settings)
            on_event: Callback receiving every EventPayload

        Returns:
            New GameSession
        """
        settings = settings or get_settings()
        state = create_initial_state(variant_id or settings.default_variant)
        logger.info("New %s game", state.meta.variant_id)
        return cls(state, settings, on_event)

    # === Properties ===

    @property
    def state(self) -> GameState:
        return self._state

    @property
    def chain(self) -> ChainState:
        return self._chain

    @property
    def ruleset(self) -> RulesetConfig:
        return self._ruleset

    @property
    def result(self) -> GameResult | None:
        return self._result

    @property
    def is_game_over(self) -> bool:
        return self._result is not None

    @property
    def history(self) -> HistorySnapshot:
        return self._history.export_snapshots()

    @property
    def state_version(self) -> int:
        return self._state_version

    @property
    def mandatory_capture(self) -> bool:
        """Whether the side to move is obliged to capture right now."""
        if self.is_game_over:
            return False
        if self._chain.is_active:
            return True
        return CaptureChainEngine.captures_available(self._state, self._ruleset)

    # === Play ===

    def legal_moves_for_turn(self) -> list[Move]:
        if self.is_game_over:
            return []
        return CaptureChainEngine.legal_moves(self._state, self._chain, self._ruleset)

    def play_move(self, move: Move) -> MoveOutcome:
        """
        Play one move (or one capture step).

        Args:
            move: Move from legal_moves_for_turn()

        Returns:
            MoveOutcome

        Raises:
            IllegalMoveError: If the game is over or the move is not legal
        """
        if self.is_game_over:
            raise IllegalMoveError("The game is over.")

        step = CaptureChainEngine.play(
            self._state, self._chain, move, self._ruleset, self._settings.coord_format,
        )
        self._state = step.state
        self._chain = step.chain
        self._state_version += 1
        self._emit(GameEvent.MOVE_APPLIED, move=move)
        if step.did_promote:
            self._emit(GameEvent.PROMOTED, node=move.to)

        if not step.turn_ended:
            self._emit(GameEvent.CAPTURE_CONTINUES, locked_from=step.chain.locked_from)
            return MoveOutcome(step.state, step.did_promote, False, None, None)

        self._history.push(step.state, step.notation or "")
        if self._repetition.record(step.state) >= 3 and self._ruleset.dead_play_rules:
            self._state = DeadPlayRules.adjudicate(step.state, THREEFOLD_REASON, "threefold repetition")
            self._history.replace_current(self._state)

        self._emit(GameEvent.TURN_ENDED, notation=step.notation)
        self._refresh_result()
        return MoveOutcome(self._state, step.did_promote, True, step.notation, self._result)

    # === Navigation ===

    def undo(self) -> GameState | None:
        """
        Step back one turn. Mid-chain, returns to the start of the current turn.

        Returns:
            The restored state, or None if there is nothing to undo
        """
        if self._chain.is_active:
            state = self._history.current
        else:
            state = self._history.undo()
        if state is None:
            return None
        return self._navigate(state, GameEvent.UNDO)

    def redo(self) -> GameState | None:
        state = self._history.redo()
        if state is None:
            return None
        return self._navigate(state, GameEvent.REDO)

    def jump_to_history(self, index: int) -> GameState | None:
        state = self._history.jump_to(index)
        if state is None:
            return None
        return self._navigate(state, GameEvent.JUMP, index=index)

    def _navigate(self, state: GameState, event: GameEvent, **data: Any) -> GameState:
        self._state = state
        self._chain = ChainState.idle()
        self._repetition.rebuild(self._history.export_snapshots())
        self._state_version += 1
        self._emit(event, current_index=self._history.current_index, **data)
        self._refresh_result()
        return state

    # === Load / export ===

    def load(
        self,
        states: Sequence[GameState],
        notation: Sequence[str] | None = None,
        current_index: int | None = None,
    ) -> GameState:
        """
        Replace the whole game.

        Raises:
            InvalidStateError: If the history is inconsistent
        """
        self._reset(states, notation, current_index)
        self._state_version += 1
        self._emit(GameEvent.LOADED, current_index=self._history.current_index)
        self._refresh_result(emit=True)
        return self._state

    def load_save(self, data: dict, expected: str | None = None) -> LoadedGame:
        """
        Replace the whole game from parsed save data.

        Raises:
            InvalidStateError: If the save is malformed or for another variant
        """
        loaded = load_save(data, expected)
        history = loaded.history
        self.load(history.states, history.notation, history.current_index)
        return loaded

    def save(self) -> str:
        """Current game as v3 save-file JSON."""
        return dumps_save(self._state, self._history.export_snapshots())

    def export_snapshot(self) -> WireSnapshot:
        return serialize_snapshot(self._state, self._history.export_snapshots(), self._state_version)

    # === Internals ===

    def _reset(
        self,
        states: Sequence[GameState],
        notation: Sequence[str] | None,
        current_index: int | None,
    ) -> None:
        self._history.replace_all(states, notation, current_index)
        self._state = self._history.current
        self._chain = ChainState.idle()
        self._ruleset = ruleset_for(self._state).with_overrides(
            draw_by_threefold=self._settings.draw_by_threefold,
            stop_capture_on_promotion=self._settings.stop_capture_on_promotion,
        )
        self._repetition.rebuild(self._history.export_snapshots())
        self._result = self._evaluate()

    def _evaluate(self) -> GameResult | None:
        result = GameOverEvaluator.evaluate(self._state, self._ruleset)
        if result is None and self._ruleset.draw_by_threefold and self._repetition.is_threefold(self._state):
            result = GameOverEvaluator.threefold_draw()
        return result

    def _refresh_result(self, emit: bool = True) -> None:
        self._result = self._evaluate()
        if self._result is None or not emit:
            return
        logger.info("Game over: %s", self._result.message)
        self._emit(
            GameEvent.DRAW if self._result.is_draw else GameEvent.GAME_OVER,
            reason_code=self._result.reason_code,
            message=self._result.message,
        )

    def _emit(self, event: GameEvent, **data: Any) -> None:
        if self._on_event is not None:
            self._on_event(EventPayload(event=event, state_version=self._state_version, data=data))

# session.py
# Owns the live game state and runs each turn as a single transaction.

import logging
import random
import time
from typing import Callable, Optional, Union

from pydantic import ValidationError

from .board import RandomSource, add_random_tile, clone_board, initialize_board
from .config import (
    GAME_STATE_KEY,
    INACTIVITY_TIMEOUT_MS,
    GameMode,
    GameSettings,
    get_game_mode_config,
    validate_board_size,
)
from .history import HistoryManager
from .moves import Direction, MoveResult, move_board
from .state import GameState
from .statistics import StatisticsTracker
from .status import GameStatus, can_move_in_direction, check_game_over, check_win, get_highest_tile
from .storage import (
    MemoryStorage,
    SafeStorage,
    StorageBackend,
    load_best_score,
    load_settings,
    save_best_score,
    save_settings,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def _wall_clock_ms() -> float:
    return time.time() * 1000


class SessionController:
    """
    One active game: the live GameState, its undo/redo history and the play timer.

    All collaborators are injected. ``storage`` is wrapped so that persistence
    failures are logged and otherwise ignored; ``rng`` returns floats in [0, 1);
    ``clock`` returns wall-clock milliseconds.
    """

    def __init__(self,
                 storage: Optional[StorageBackend] = None,
                 rng: Optional[RandomSource] = None,
                 clock: Optional[Clock] = None,
                 settings: Optional[GameSettings] = None,
                 statistics: Optional[StatisticsTracker] = None,
                 board_size: Optional[int] = None,
                 mode: Union[GameMode, str] = GameMode.CLASSIC):
        self.storage = SafeStorage(storage if storage is not None else MemoryStorage())
        self.rng = rng or random.random
        self.clock = clock or _wall_clock_ms
        self.settings = settings or load_settings(self.storage)
        if board_size is not None:
            if not validate_board_size(board_size):
                raise ValueError(f"Board size must be between 3 and 8, got {board_size}.")
            self.settings = self.settings.model_copy(update={"board_size": board_size})
        self.statistics = statistics
        self.history = HistoryManager(self.settings.history_size)
        self._best_score = load_best_score(self.storage)
        self._game_end_recorded = False

        now = self.clock()
        saved = self._load_game_state(self.settings.board_size)
        if saved is not None:
            self._state = saved.evolve(best_score=max(saved.best_score, self._best_score))
            self._best_score = self._state.best_score
            self._game_end_recorded = self._state.status != GameStatus.PLAYING
            self._reset_timer(now, elapsed=self._state.time_elapsed)
            logger.info("Resumed %dx%d %s game at score %d",
                        self._state.board_size, self._state.board_size, self._state.mode.value, self._state.score)
        else:
            self._state = self._create_initial_state(self.settings.board_size, GameMode(mode))
            self._reset_timer(now)
            self._count_new_game()
            logger.info("Started new %dx%d %s game", self._state.board_size, self._state.board_size, self._state.mode.value)
        self._persist()

    # --- Read access ---

    @property
    def state(self) -> GameState:
        return self._state

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    @property
    def is_game_won(self) -> bool:
        return self._state.status == GameStatus.WON

    @property
    def is_game_over(self) -> bool:
        return self._state.status == GameStatus.OVER

    @property
    def has_reached_win(self) -> bool:
        """Whether the board holds the mode's win tile, independent of status."""
        return check_win(self._state.board, get_game_mode_config(self._state.mode).win_condition)

    @property
    def highest_tile(self) -> int:
        return get_highest_tile(self._state.board)

    def can_move_in_direction(self, direction: Union[Direction, str]) -> bool:
        return can_move_in_direction(self._state.board, Direction(direction))

    # --- Turn transaction ---

    def make_move(self, direction: Union[Direction, str]) -> MoveResult:
        """
        Plays one turn: slide and merge, spawn a tile, score, re-check the
        terminal state and persist.
        Args:
            direction (Union[Direction, str]): The direction to move.
        Returns:
            MoveResult: The slide result before the new tile was spawned.
                ``moved`` is False when the turn was rejected.
        Raises:
            ValueError: If the direction is not one of up, down, left, right.
        """
        direction = Direction(direction)
        state = self._state
        if state.status != GameStatus.PLAYING:
            return MoveResult(clone_board(state.board), 0, False)

        result = move_board(state.board, direction)
        if not result.moved:
            return result

        now = self.clock()
        self._resume_timer(now)
        self.history.save_state(state)

        new_state = state.evolve(
            board=add_random_tile(result.new_board, self.rng),
            score=state.score + result.score_gained,
            best_score=self._best_score,
            move_count=state.move_count + 1,
            time_elapsed=self._elapsed(now),
        )
        new_state = self._evaluate_status(new_state)
        logger.debug("Move %s accepted: +%d points, score %d",
                     direction.value, result.score_gained, new_state.score)
        self._commit(new_state, record_statistics=True)
        return result

    def tick(self) -> GameState:
        """Re-samples the play timer, applies any time limit and persists."""
        if self._state.status == GameStatus.PLAYING:
            new_state = self._state.evolve(time_elapsed=self._elapsed(self.clock()))
            self._commit(self._evaluate_status(new_state), record_statistics=False)
        return self._state

    # --- History ---

    def undo(self) -> bool:
        """Replaces the live state with the previous snapshot. Returns False at the history bound."""
        snapshot = self.history.undo()
        if snapshot is None:
            return False
        self._apply_snapshot(snapshot)
        logger.debug("Undo to history index %d", self.history.current_index)
        return True

    def redo(self) -> bool:
        """Replaces the live state with the next snapshot. Returns False at the history bound."""
        snapshot = self.history.redo()
        if snapshot is None:
            return False
        self._apply_snapshot(snapshot)
        logger.debug("Redo to history index %d", self.history.current_index)
        return True

    def _apply_snapshot(self, snapshot: GameState) -> None:
        self._resume_timer(self.clock())
        self._commit(snapshot.evolve(best_score=self._best_score), record_statistics=False)

    # --- Session management ---

    def restart_game(self, mode: Optional[Union[GameMode, str]] = None) -> GameState:
        """Starts a fresh game, keeping the current mode unless one is given."""
        mode = GameMode(mode) if mode is not None else self._state.mode
        self._state = self._create_initial_state(self.settings.board_size, mode)
        self.history.clear_history()
        self._reset_timer(self.clock())
        self._game_end_recorded = False
        self._count_new_game()
        self._persist()
        logger.info("Restarted %dx%d %s game", self._state.board_size, self._state.board_size, mode.value)
        return self._state

    def set_game_mode(self, mode: Union[GameMode, str]) -> GameState:
        """Changes the ruleset of the running game without touching the board."""
        self._commit(self._state.evolve(mode=GameMode(mode)), record_statistics=False)
        return self._state

    def set_board_size(self, size: int) -> GameState:
        """
        Switches to an N x N board. This always starts a new game and clears history.
        Raises:
            ValueError: If size is outside 3..8.
        """
        if not validate_board_size(size):
            raise ValueError(f"Board size must be between 3 and 8, got {size}.")
        self.settings = self.settings.model_copy(update={"board_size": size})
        save_settings(self.storage, self.settings)
        return self.restart_game()

    # --- Internals ---

    def _create_initial_state(self, size: int, mode: GameMode) -> GameState:
        return GameState(
            board=initialize_board(size, self.rng),
            best_score=self._best_score,
            board_size=size,
            mode=mode,
        )

    def _evaluate_status(self, state: GameState) -> GameState:
        if state.status != GameStatus.PLAYING:
            return state
        config = get_game_mode_config(state.mode)

        if check_win(state.board, config.win_condition):
            if config.allow_game_over or self.settings.zen_marks_won:
                return state.evolve(status=GameStatus.WON)
        if not config.allow_game_over:
            return state
        if check_game_over(state.board):
            return state.evolve(status=GameStatus.OVER)
        if config.time_limit is not None and state.time_elapsed >= config.time_limit:
            return state.evolve(status=GameStatus.OVER)
        return state

    def _commit(self, state: GameState, record_statistics: bool) -> None:
        was_playing = self._state.status == GameStatus.PLAYING
        self._state = state

        if state.best_score > self._best_score:
            self._best_score = state.best_score
            save_best_score(self.storage, self._best_score)

        ended = was_playing and state.status != GameStatus.PLAYING
        if ended:
            logger.info("Game %s with score %d after %d moves",
                        state.status.value, state.score, state.move_count)

        if self.statistics is not None:
            if record_statistics:
                self.statistics.update_statistics(state)
            if ended and not self._game_end_recorded:
                self.statistics.update_statistics(state, is_game_end=True)
        if ended:
            self._game_end_recorded = True

        self._persist()

    def _count_new_game(self) -> None:
        if self.statistics is not None:
            self.statistics.increment_games_played()

    def _load_game_state(self, board_size: int) -> Optional[GameState]:
        raw = self.storage.load(GAME_STATE_KEY)
        if raw is None:
            return None
        try:
            saved = GameState.model_validate_json(raw)
        except ValidationError as e:
            logger.warning("Discarding invalid saved game: %s", e)
            return None
        if saved.board_size != board_size:
            logger.info("Discarding saved %dx%d game; %dx%d requested",
                        saved.board_size, saved.board_size, board_size, board_size)
            return None
        return saved

    def _persist(self) -> None:
        if self.settings.auto_save:
            self.storage.save(GAME_STATE_KEY, self._state.model_dump_json())

    # --- Play timer ---

    def _reset_timer(self, now: float, elapsed: int = 0) -> None:
        self._start_time = now - elapsed
        self._last_move_time = now
        self._paused_at = 0.0
        self._is_paused = False

    def _elapsed(self, now: float) -> int:
        """
        Play time in ms. A gap longer than INACTIVITY_TIMEOUT_MS since the
        last move freezes the timer at its value when the gap began.
        """
        if not self._is_paused and now - self._last_move_time > INACTIVITY_TIMEOUT_MS:
            self._is_paused = True
            self._paused_at = self._last_move_time
        if self._is_paused:
            return max(int(self._last_move_time - self._start_time), 0)
        return max(int(now - self._start_time), 0)

    def _resume_timer(self, now: float) -> None:
        self._elapsed(now)
        if self._is_paused:
            self._start_time += now - self._paused_at
            self._is_paused = False
        self._last_move_time = now

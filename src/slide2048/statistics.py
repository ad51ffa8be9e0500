# statistics.py
# Lifetime play statistics, persisted under their own storage key.

import logging

from pydantic import BaseModel, Field, ValidationError

from .config import STATISTICS_KEY
from .state import GameState
from .status import GameStatus
from .storage import StorageBackend

logger = logging.getLogger(__name__)


class GameStatistics(BaseModel):
    games_played: int = Field(default=0, ge=0)
    games_won: int = Field(default=0, ge=0)
    total_score: int = Field(default=0, ge=0)
    best_score: int = Field(default=0, ge=0)
    average_score: float = Field(default=0.0, ge=0)
    total_moves: int = Field(default=0, ge=0)
    total_time: int = Field(default=0, ge=0, description="Total play time in milliseconds.")
    win_rate: float = Field(default=0.0, ge=0, le=100, description="Percentage of games won.")


def _with_derived(stats: GameStatistics) -> GameStatistics:
    if stats.games_played == 0:
        return stats.model_copy(update={"average_score": 0.0, "win_rate": 0.0})
    return stats.model_copy(update={
        "average_score": stats.total_score / stats.games_played,
        "win_rate": min(stats.games_won / stats.games_played * 100, 100.0),
    })


class StatisticsTracker:
    """Loads statistics on construction and saves them after every change."""

    def __init__(self, storage: StorageBackend):
        self.storage = storage
        self.statistics = self._load()

    def _load(self) -> GameStatistics:
        raw = self.storage.load(STATISTICS_KEY)
        if raw is None:
            return GameStatistics()
        try:
            return GameStatistics.model_validate_json(raw)
        except ValidationError as e:
            logger.warning("Discarding invalid statistics: %s", e)
            return GameStatistics()

    def _save(self) -> None:
        self.storage.save(STATISTICS_KEY, self.statistics.model_dump_json())

    def increment_games_played(self) -> GameStatistics:
        stats = self.statistics.model_copy(update={"games_played": self.statistics.games_played + 1})
        self.statistics = _with_derived(stats)
        self._save()
        return self.statistics

    def update_statistics(self, state: GameState, is_game_end: bool = False) -> GameStatistics:
        """
        Folds a game state into the statistics.
        Args:
            state (GameState): The state to record.
            is_game_end (bool): When True, also add the game's score, moves, time and result to the totals.
        Returns:
            GameStatistics: The updated statistics.
        """
        prev = self.statistics
        updates = {"best_score": max(prev.best_score, state.score)}
        if is_game_end:
            updates.update(
                games_won=prev.games_won + (1 if state.status == GameStatus.WON else 0),
                total_score=prev.total_score + state.score,
                total_moves=prev.total_moves + state.move_count,
                total_time=prev.total_time + state.time_elapsed,
            )
        self.statistics = _with_derived(prev.model_copy(update=updates))
        self._save()
        return self.statistics

    def reset_statistics(self) -> GameStatistics:
        self.statistics = GameStatistics()
        self._save()
        return self.statistics

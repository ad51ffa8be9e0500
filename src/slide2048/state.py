# state.py
# The immutable game-state record owned by a session.

from typing import Any, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .board import get_board_size, is_valid_tile
from .config import DEFAULT_BOARD_SIZE, MAX_BOARD_SIZE, MIN_BOARD_SIZE, GameMode
from .status import GameStatus


class GameState(BaseModel):
    """
    Complete state of one game. Instances are frozen; every change goes through
    ``evolve`` so that the record is re-validated and the best score can only grow.
    """
    model_config = ConfigDict(frozen=True)

    board: Tuple[Tuple[int, ...], ...] = Field(
        ..., description="The N x N game board as rows of tile values; read-only."
    )
    score: int = Field(default=0, ge=0, description="Current score of the game.")
    best_score: int = Field(default=0, ge=0, description="Highest score ever reached, across restarts.")
    status: GameStatus = Field(default=GameStatus.PLAYING, description="playing, won or over.")
    board_size: int = Field(
        default=DEFAULT_BOARD_SIZE,
        ge=MIN_BOARD_SIZE,
        le=MAX_BOARD_SIZE,
        description="The dimension N of the N x N board.",
    )
    move_count: int = Field(default=0, ge=0)
    time_elapsed: int = Field(default=0, ge=0, description="Active play time in milliseconds.")
    mode: GameMode = GameMode.CLASSIC

    @model_validator(mode="before")
    @classmethod
    def _raise_best_score(cls, data: Any) -> Any:
        if isinstance(data, dict):
            score = data.get("score", 0) or 0
            best = data.get("best_score", 0) or 0
            if score > best:
                data = {**data, "best_score": score}
        return data

    @field_validator("board")
    @classmethod
    def _check_tiles(cls, board: Tuple[Tuple[int, ...], ...]) -> Tuple[Tuple[int, ...], ...]:
        get_board_size(board)
        for row in board:
            for value in row:
                if not is_valid_tile(value):
                    raise ValueError(f"Invalid tile value {value}: must be 0 or a power of two >= 2.")
        return board

    @model_validator(mode="after")
    def _check_board_size(self) -> "GameState":
        if len(self.board) != self.board_size:
            raise ValueError(
                f"Board is {len(self.board)}x{len(self.board)} but board_size is {self.board_size}."
            )
        return self

    def evolve(self, **changes: Any) -> "GameState":
        """Returns a new, validated state with the given fields replaced."""
        return GameState(**{**self.model_dump(), **changes})

    def snapshot(self) -> "GameState":
        """An independent deep copy suitable for the history log."""
        return self.model_copy(deep=True)

# config.py
# Game modes, board limits, storage keys and player settings.

from enum import Enum
from typing import Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# --- Tunables ---

MIN_BOARD_SIZE = 3
MAX_BOARD_SIZE = 8
DEFAULT_BOARD_SIZE = 4

DEFAULT_HISTORY_SIZE = 10
INACTIVITY_TIMEOUT_MS = 5 * 60 * 1000
TILE_TWO_PROBABILITY = 0.9

BEST_SCORE_KEY = "game2048-best-score"
GAME_STATE_KEY = "game2048-current-game"
STATISTICS_KEY = "game2048-statistics"
SETTINGS_KEY = "game2048-settings"


class GameMode(str, Enum):
    """Named ruleset variants."""
    CLASSIC = "classic"
    TIME_ATTACK = "timeAttack"
    ZEN = "zen"
    CHALLENGE = "challenge"


class Theme(str, Enum):
    DEFAULT = "default"
    DARK = "dark"
    NEON = "neon"
    MINIMAL = "minimal"


class ModeConfig(BaseModel):
    """Rules attached to a game mode."""
    model_config = ConfigDict(frozen=True)

    id: GameMode
    name: str
    description: str
    win_condition: Optional[int] = Field(default=None, gt=0, description="Tile value that wins, if any.")
    time_limit: Optional[int] = Field(default=None, gt=0, description="Play time limit in milliseconds, if any.")
    allow_game_over: bool = True


GAME_MODES: Dict[GameMode, ModeConfig] = {
    GameMode.CLASSIC: ModeConfig(
        id=GameMode.CLASSIC,
        name="Classic",
        description="Traditional 2048 gameplay",
        win_condition=2048,
    ),
    GameMode.TIME_ATTACK: ModeConfig(
        id=GameMode.TIME_ATTACK,
        name="Time Attack",
        description="2 minutes to get highest score",
        time_limit=120000,
    ),
    GameMode.ZEN: ModeConfig(
        id=GameMode.ZEN,
        name="Zen Mode",
        description="Relaxed play, no game over",
        win_condition=2048,
        allow_game_over=False,
    ),
    GameMode.CHALLENGE: ModeConfig(
        id=GameMode.CHALLENGE,
        name="Challenge",
        description="Reach 4096 to win",
        win_condition=4096,
    ),
}


def get_game_mode_config(mode: Union[GameMode, str]) -> Optional[ModeConfig]:
    """
    Looks up the rules for a mode.
    Args:
        mode (Union[GameMode, str]): The mode or its wire id (e.g. "timeAttack").
    Returns:
        Optional[ModeConfig]: The mode's configuration, or None for an unknown id.
    """
    try:
        return GAME_MODES[GameMode(mode)]
    except ValueError:
        return None


def validate_board_size(size: int) -> bool:
    return MIN_BOARD_SIZE <= size <= MAX_BOARD_SIZE


class GameSettings(BaseModel):
    """Player settings, persisted independently of the game state."""
    board_size: int = Field(
        default=DEFAULT_BOARD_SIZE,
        ge=MIN_BOARD_SIZE,
        le=MAX_BOARD_SIZE,
        description="Dimension N of the N x N board.",
    )
    theme: Theme = Theme.DEFAULT
    sound_enabled: bool = True
    auto_save: bool = Field(default=True, description="Persist the game state after every change.")
    zen_marks_won: bool = Field(
        default=True,
        description="Whether reaching the win tile in a mode without game over sets status to 'won'.",
    )
    history_size: int = Field(default=DEFAULT_HISTORY_SIZE, ge=1, description="Undo depth.")

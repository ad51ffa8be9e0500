"""
slide2048: rules engine and session controller for the 2048 sliding-tile game.
"""

from .board import (
    Position,
    add_random_tile,
    boards_equal,
    clone_board,
    create_empty_board,
    get_empty_positions,
    initialize_board,
)
from .config import GameMode, GameSettings, ModeConfig, get_game_mode_config
from .history import HistoryManager
from .moves import Direction, MoveResult, move_board
from .session import SessionController
from .state import GameState
from .statistics import GameStatistics, StatisticsTracker
from .status import GameStatus, can_move, can_move_in_direction, check_game_over, check_win, get_highest_tile
from .storage import JsonFileStorage, MemoryStorage, SafeStorage

__all__ = [
    'Position', 'add_random_tile', 'boards_equal', 'clone_board', 'create_empty_board',
    'get_empty_positions', 'initialize_board',
    'GameMode', 'GameSettings', 'ModeConfig', 'get_game_mode_config',
    'HistoryManager',
    'Direction', 'MoveResult', 'move_board',
    'SessionController',
    'GameState',
    'GameStatistics', 'StatisticsTracker',
    'GameStatus', 'can_move', 'can_move_in_direction', 'check_game_over', 'check_win', 'get_highest_tile',
    'JsonFileStorage', 'MemoryStorage', 'SafeStorage',
]

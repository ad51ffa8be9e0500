# status.py
# Win and game-over detection.

from enum import Enum
from typing import Optional

from .board import Board, get_board_size, get_empty_positions
from .moves import Direction, move_board


class GameStatus(str, Enum):
    """Represents the current progress state of the game."""
    PLAYING = "playing"
    WON = "won"
    OVER = "over"


def check_win(board: Board, win_tile: Optional[int]) -> bool:
    """
    Check if the game is won (a tile at or above win_tile exists).
    Args:
        board (Board): The game board.
        win_tile (Optional[int]): The mode's win threshold; None means the mode cannot be won.
    Returns:
        bool: True if the game is won, False otherwise.
    """
    if win_tile is None:
        return False
    return get_highest_tile(board) >= win_tile


def can_move(board: Board) -> bool:
    """
    Checks whether any move is possible: an empty cell exists or two
    orthogonally adjacent tiles hold the same value.
    """
    if get_empty_positions(board):
        return True

    n = get_board_size(board)
    for row in range(n):
        for col in range(n):
            value = board[row][col]
            if col < n - 1 and board[row][col + 1] == value:
                return True
            if row < n - 1 and board[row + 1][col] == value:
                return True
    return False


def check_game_over(board: Board) -> bool:
    return not can_move(board)


def can_move_in_direction(board: Board, direction: Direction) -> bool:
    """
    Check if a move in the given direction would change the board.
    Args:
        board (Board): The game board.
        direction (Direction): The direction to check.
    Returns:
        bool: True if at least one tile would slide or merge.
    """
    return move_board(board, direction).moved


def get_highest_tile(board: Board) -> int:
    """Maximum cell value, 0 for an all-empty board."""
    return max((value for row in board for value in row), default=0)

# board.py
# Grid representation and the pure helpers shared by every other module.

import random
from typing import Callable, List, NamedTuple, Optional

from .config import TILE_TWO_PROBABILITY

Board = List[List[int]]
RandomSource = Callable[[], float]


class Position(NamedTuple):
    """A (row, col) coordinate on the board."""
    row: int
    col: int


def get_board_size(board: Board) -> int:
    """
    Gets the size (N) of an N x N board.
    Args:
        board (Board): The game board.
    Returns:
        int: The dimension of the board.
    Raises:
        ValueError: If the board is not square or empty.
    """
    if not board or not all(len(row) == len(board) for row in board):
        raise ValueError("Board must be a non-empty square matrix.")
    return len(board)


def create_empty_board(size: int) -> Board:
    """
    Creates an N x N board filled with zeros.
    Args:
        size (int): The dimension of the board.
    Returns:
        Board: A new empty board.
    Raises:
        ValueError: If size is not a positive integer.
    """
    if not isinstance(size, int) or size <= 0:
        raise ValueError("Board size must be a positive integer.")
    return [[0] * size for _ in range(size)]


def get_empty_positions(board: Board) -> List[Position]:
    """
    Get coordinates of empty (0-value) cells in row-major order.
    Args:
        board (Board): The board to check.
    Returns:
        List[Position]: Positions of every empty cell.
    """
    return [
        Position(row, col)
        for row, cells in enumerate(board)
        for col, value in enumerate(cells)
        if value == 0
    ]


def clone_board(board: Board) -> Board:
    """Returns a deep copy of the board."""
    return [list(row) for row in board]


def boards_equal(first: Board, second: Board) -> bool:
    """
    Structural equality: same dimensions and the same value in every cell.
    """
    if len(first) != len(second):
        return False
    for row_a, row_b in zip(first, second):
        if len(row_a) != len(row_b):
            return False
        if any(a != b for a, b in zip(row_a, row_b)):
            return False
    return True


def add_random_tile(board: Board, rng: Optional[RandomSource] = None) -> Board:
    """
    Adds a new tile (90% chance of 2, 10% chance of 4) to an empty cell on a copy of the board.
    Args:
        board (Board): The current game board. Never mutated.
        rng (RandomSource): Uniform float source in [0, 1). Defaults to random.random.
    Returns:
        Board: A new board with the added tile, or an unchanged copy when the board is full.
    """
    rng = rng or random.random
    new_board = clone_board(board)
    empty_positions = get_empty_positions(board)
    if not empty_positions:
        return new_board

    index = min(int(rng() * len(empty_positions)), len(empty_positions) - 1)
    row, col = empty_positions[index]
    new_board[row][col] = 2 if rng() < TILE_TWO_PROBABILITY else 4
    return new_board


def initialize_board(size: int, rng: Optional[RandomSource] = None) -> Board:
    """
    Initializes a new game board with two random tiles.
    Args:
        size (int): The dimension of the N x N game board.
        rng (RandomSource): Uniform float source in [0, 1).
    Returns:
        Board: The starting board.
    """
    board = create_empty_board(size)
    board = add_random_tile(board, rng)
    board = add_random_tile(board, rng)
    return board


def is_valid_tile(value: int) -> bool:
    """True for 0 (empty) or a power of two that is at least 2."""
    return value == 0 or (value >= 2 and value & (value - 1) == 0)

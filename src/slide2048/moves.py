# moves.py
# Slide-and-merge logic. Every direction is reduced to a leftward slide.

from enum import Enum
from typing import List, NamedTuple, Tuple

from .board import Board, boards_equal, clone_board, get_board_size


class Direction(str, Enum):
    """Represents the possible move directions."""
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"


class MoveResult(NamedTuple):
    """Outcome of sliding a board in one direction."""
    new_board: Board
    score_gained: int
    moved: bool


# --- Line Manipulation ---

def _move_line_left(line: List[int]) -> Tuple[List[int], int]:
    """
    Compacts a line towards index 0 and merges equal neighbours in a single pass.
    A tile produced by a merge is never merged again in the same move,
    so [2, 2, 2, 0] becomes [4, 2, 0, 0].
    Args:
        line (List[int]): The line to process.
    Returns:
        Tuple[List[int], int]: The processed line (same length) and the score gained.
    """
    tiles = [value for value in line if value != 0]
    merged: List[int] = []
    score_gained = 0

    i = 0
    while i < len(tiles):
        if i + 1 < len(tiles) and tiles[i] == tiles[i + 1]:
            merged_value = tiles[i] * 2
            merged.append(merged_value)
            score_gained += merged_value
            i += 2  # skip the partner tile
        else:
            merged.append(tiles[i])
            i += 1

    merged += [0] * (len(line) - len(merged))
    return merged, score_gained


def _move_line_right(line: List[int]) -> Tuple[List[int], int]:
    processed, score_gained = _move_line_left(line[::-1])
    return processed[::-1], score_gained


# --- Board Transformations ---

def rotate_clockwise(board: Board) -> Board:
    """
    Rotates a board 90 degrees clockwise: (row, col) -> (col, N-1-row).
    Args:
        board (Board): The board to rotate.
    Returns:
        Board: A new rotated board.
    """
    n = get_board_size(board)
    rotated = [[0] * n for _ in range(n)]
    for row in range(n):
        for col in range(n):
            rotated[col][n - 1 - row] = board[row][col]
    return rotated


def rotate_counter_clockwise(board: Board) -> Board:
    """
    Rotates a board 90 degrees counter-clockwise: (row, col) -> (N-1-col, row).
    Args:
        board (Board): The board to rotate.
    Returns:
        Board: A new rotated board.
    """
    n = get_board_size(board)
    rotated = [[0] * n for _ in range(n)]
    for row in range(n):
        for col in range(n):
            rotated[n - 1 - col][row] = board[row][col]
    return rotated


def _apply_to_all_lines(board: Board, line_move) -> Tuple[Board, int]:
    total_score = 0
    processed_board = []
    for line in board:
        processed_line, score_from_line = line_move(line)
        processed_board.append(processed_line)
        total_score += score_from_line
    return processed_board, total_score


# --- Core Game Move Processing ---

def move_board(board: Board, direction: Direction) -> MoveResult:
    """
    Processes a move in the specified direction on a copy of the board.
    Args:
        board (Board): The current game board. Never mutated.
        direction (Direction): The direction to move.
    Returns:
        MoveResult:
            - The new board state after the move.
            - The score gained from this move (sum of merged tile values).
            - Whether the new board differs from the input in any cell.
    Raises:
        ValueError: If an invalid direction is specified or the board is not square.
    """
    get_board_size(board)
    working_board = clone_board(board)
    direction = Direction(direction)

    if direction == Direction.LEFT:
        working_board, score_gained = _apply_to_all_lines(working_board, _move_line_left)

    elif direction == Direction.RIGHT:
        working_board, score_gained = _apply_to_all_lines(working_board, _move_line_right)

    elif direction == Direction.UP:
        rotated = rotate_counter_clockwise(working_board)
        processed, score_gained = _apply_to_all_lines(rotated, _move_line_left)
        working_board = rotate_clockwise(processed)

    else:
        rotated = rotate_clockwise(working_board)
        processed, score_gained = _apply_to_all_lines(rotated, _move_line_left)
        working_board = rotate_counter_clockwise(processed)

    # Compare whole boards: a pure slide scores nothing but still counts as a move.
    moved = not boards_equal(board, working_board)
    return MoveResult(working_board, score_gained, moved)

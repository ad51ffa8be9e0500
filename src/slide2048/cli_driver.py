# cli_driver.py
# This file is intended to be run to play the 2048 game on the CLI

import logging
from typing import List

from .config import GameMode, get_game_mode_config
from .moves import Direction
from .session import SessionController
from .statistics import StatisticsTracker
from .state import GameState
from .status import GameStatus
from .storage import JsonFileStorage, SafeStorage

SAVE_DIRECTORY = "~/.slide2048"

DIRECTION_KEYS = {'W': Direction.UP, 'A': Direction.LEFT, 'S': Direction.DOWN, 'D': Direction.RIGHT}
MODE_CYCLE: List[GameMode] = list(GameMode)


def main():
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    storage = SafeStorage(JsonFileStorage(SAVE_DIRECTORY))
    session = SessionController(storage=storage, statistics=StatisticsTracker(storage))
    display_board_state(session)

    while True:
        command = input("Move with W/A/S/D, U undo, R redo, N new game, M mode, Q quit: ").strip().upper()

        if command == 'Q':
            print("Quitting game. Your progress is saved.")
            break
        elif command == 'U':
            if not session.undo():
                print("Nothing to undo.")
        elif command == 'R':
            if not session.redo():
                print("Nothing to redo.")
        elif command == 'N':
            session.restart_game()
        elif command == 'M':
            current = MODE_CYCLE.index(session.state.mode)
            next_mode = MODE_CYCLE[(current + 1) % len(MODE_CYCLE)]
            session.set_game_mode(next_mode)
        elif command in DIRECTION_KEYS:
            if session.state.status != GameStatus.PLAYING:
                print("The game has ended. Press N for a new game or U to undo.")
                continue
            result = session.make_move(DIRECTION_KEYS[command])
            if not result.moved:
                print("Move did not change the board. Try a different direction.")
                continue
        else:
            print("Invalid input. Use W, A, S, D, U, R, N, M or Q.")
            continue

        session.tick()
        display_board_state(session)

    stats = session.statistics.statistics
    print(f"Games played: {stats.games_played}  Won: {stats.games_won}  Best score: {stats.best_score}")


# --- Display Function ---
def display_board_state(session: SessionController):
    """Prints the board, score, mode and game status to the console."""
    state: GameState = session.state
    mode_name = get_game_mode_config(state.mode).name
    print(f"\nScore: {state.score}  Best: {state.best_score}  Moves: {state.move_count}  "
          f"Time: {state.time_elapsed // 1000}s  Mode: {mode_name}")
    status_message = {
        GameStatus.PLAYING: f"Status: {state.status.value}",
        GameStatus.WON: "YOU WON!",
        GameStatus.OVER: "GAME OVER!",
    }
    print(status_message[state.status])

    for row in state.board:
        print("\t".join(str(value) if value else "." for value in row))
    print("-" * (len(state.board) * 6))  # Adjust width based on board size


if __name__ == "__main__":
    main()

from slide2048.config import GAME_STATE_KEY
from slide2048.state import GameState
from slide2048.storage import MemoryStorage


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, now=0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms


def first_cell_rng():
    """Always picks the first empty cell and spawns a 2."""
    return 0.0


def storage_with_game(board, **fields):
    state = GameState(board=board, board_size=len(board), **fields)
    return MemoryStorage({GAME_STATE_KEY: state.model_dump_json()})


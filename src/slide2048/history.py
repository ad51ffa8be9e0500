# history.py
# Bounded linear undo/redo log of game-state snapshots.

from typing import List, Optional

from .config import DEFAULT_HISTORY_SIZE
from .state import GameState


class HistoryManager:
    """
    Keeps up to ``max_size`` snapshots and a cursor into them.
    Saving while the cursor is behind the newest entry discards the redo branch.
    """

    def __init__(self, max_size: int = DEFAULT_HISTORY_SIZE):
        if max_size <= 0:
            raise ValueError("History size must be a positive integer.")
        self.max_size = max_size
        self._states: List[GameState] = []
        self.current_index = -1

    def __len__(self):
        return len(self._states)

    def save_state(self, state: GameState) -> None:
        del self._states[self.current_index + 1:]
        self._states.append(state.snapshot())
        if len(self._states) > self.max_size:
            self._states.pop(0)
        self.current_index = len(self._states) - 1

    def undo(self) -> Optional[GameState]:
        """Steps back one entry. Returns None at the oldest entry."""
        if not self.can_undo:
            return None
        self.current_index -= 1
        return self._states[self.current_index].snapshot()

    def redo(self) -> Optional[GameState]:
        """Steps forward one entry. Returns None at the newest entry."""
        if not self.can_redo:
            return None
        self.current_index += 1
        return self._states[self.current_index].snapshot()

    @property
    def can_undo(self) -> bool:
        return self.current_index > 0

    @property
    def can_redo(self) -> bool:
        return self.current_index < len(self._states) - 1

    def clear_history(self) -> None:
        self._states = []
        self.current_index = -1

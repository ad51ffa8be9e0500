from slide2048.history import HistoryManager
from slide2048.state import GameState


def _state(score, board=None):
    board = board or [[0, 0, 0], [0, 2, 0], [0, 0, 0]]
    return GameState(board=board, board_size=3, score=score)


def test_empty_history():
    history = HistoryManager()
    assert len(history) == 0
    assert history.current_index == -1
    assert not history.can_undo
    assert not history.can_redo
    assert history.undo() is None
    assert history.redo() is None


def test_undo_and_redo_walk_the_log():
    history = HistoryManager()
    for score in (0, 4, 8):
        history.save_state(_state(score))

    assert history.current_index == 2
    assert history.undo().score == 4
    assert history.undo().score == 0
    assert history.undo() is None
    assert history.can_redo
    assert history.redo().score == 4
    assert history.redo().score == 8
    assert history.redo() is None


def test_save_after_undo_discards_redo_branch():
    history = HistoryManager()
    for score in (0, 4, 8):
        history.save_state(_state(score))
    history.undo()
    history.save_state(_state(100))

    assert len(history) == 3
    assert not history.can_redo
    assert history.undo().score == 4


def test_oldest_snapshot_is_evicted():
    history = HistoryManager(max_size=10)
    for score in range(11):
        history.save_state(_state(score * 2))

    assert len(history) == 10
    assert history.current_index == 9
    assert history.can_undo
    scores = []
    while history.can_undo:
        scores.append(history.undo().score)
    assert scores[-1] == 2  # score 0 was evicted
    assert history.current_index == 0
    assert history.undo() is None


def test_snapshots_are_not_aliased():
    history = HistoryManager()
    source = [[0, 0, 0], [0, 2, 0], [0, 0, 0]]
    history.save_state(_state(0, source))
    history.save_state(_state(4))
    source[1][1] = 1024

    restored = history.undo()
    assert restored.board[1][1] == 2
    assert restored is not history.redo()


def test_clear_history():
    history = HistoryManager()
    history.save_state(_state(0))
    history.save_state(_state(4))
    history.clear_history()
    assert len(history) == 0
    assert history.current_index == -1
    assert not history.can_undo

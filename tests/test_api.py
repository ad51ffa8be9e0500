import pytest
from fastapi.testclient import TestClient

from conftest import FakeClock, first_cell_rng, storage_with_game
from slide2048.api import _status_message, create_app, limiter
from slide2048.config import GameMode
from slide2048.moves import Direction
from slide2048.session import SessionController

START_BOARD = [[2, 2, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0]]


@pytest.fixture(autouse=True)
def reset_rate_limits():
    limiter.reset()
    yield


@pytest.fixture
def client():
    return TestClient(create_app())


@pytest.fixture
def seeded_client():
    return TestClient(create_app(storage_factory=lambda: storage_with_game(START_BOARD)))


def _new_game(client, **settings):
    response = client.post("/games", json=settings)
    assert response.status_code == 200
    return response.json()


def test_stateless_board_move(client):
    response = client.post("/board/move", json={
        "board": [[0, 2, 0, 4], [0, 0, 8, 0], [2, 0, 0, 2], [0, 0, 0, 0]],
        "direction": "left",
    })
    assert response.status_code == 200
    assert response.json() == {
        "new_board": [[2, 4, 0, 0], [8, 0, 0, 0], [4, 0, 0, 0], [0, 0, 0, 0]],
        "score_gained": 4,
        "moved": True,
    }


def test_stateless_move_rejects_non_square_board(client):
    response = client.post("/board/move", json={"board": [[2, 0], [0]], "direction": "up"})
    assert response.status_code == 422


@pytest.mark.parametrize("board", [
    [[2]],
    [[2, 0], [0, 0]],
    [[0] * 9 for _ in range(9)],
])
def test_stateless_move_rejects_out_of_range_size(client, board):
    response = client.post("/board/move", json={"board": board, "direction": "left"})
    assert response.status_code == 422


@pytest.mark.parametrize("bad_tile", [3, 1, -2, 6])
def test_stateless_move_rejects_invalid_tiles(client, bad_tile):
    board = [[2, 2, 0, 0], [0, bad_tile, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0]]
    response = client.post("/board/move", json={"board": board, "direction": "left"})
    assert response.status_code == 422


def test_stateless_move_rejects_unknown_direction(client):
    response = client.post("/board/move", json={"board": [[2, 0, 0], [0, 0, 0], [0, 0, 0]], "direction": "sideways"})
    assert response.status_code == 422


def test_create_game(client):
    data = _new_game(client, size=5, mode="zen")
    state = data["state"]
    assert state["board_size"] == 5
    assert len(state["board"]) == 5
    assert state["mode"] == "zen"
    assert state["status"] == "playing"
    assert sum(1 for row in state["board"] for cell in row if cell) == 2
    assert data["can_undo"] is False

    fetched = client.get(f"/games/{data['game_id']}").json()
    assert fetched["state"] == state


def test_create_game_rejects_bad_size(client):
    assert client.post("/games", json={"size": 9}).status_code == 422


def test_sessions_are_independent(client):
    first = _new_game(client)
    second = _new_game(client)
    assert first["game_id"] != second["game_id"]


def test_unknown_game_is_404(client):
    assert client.get("/games/nope").status_code == 404
    assert client.post("/games/nope/move", json={"direction": "up"}).status_code == 404


def test_move_undo_redo(seeded_client):
    game_id = _new_game(seeded_client)["game_id"]

    moved = seeded_client.post(f"/games/{game_id}/move", json={"direction": "left"}).json()
    assert moved["moved"] is True
    assert moved["score_gained"] == 4
    assert moved["state"]["score"] == 4
    assert moved["state"]["move_count"] == 1

    second = seeded_client.post(f"/games/{game_id}/move", json={"direction": "right"}).json()
    assert second["can_undo"] is True

    undone = seeded_client.post(f"/games/{game_id}/undo").json()
    assert undone["state"]["board"] == START_BOARD
    assert undone["can_redo"] is True

    redone = seeded_client.post(f"/games/{game_id}/redo").json()
    assert redone["state"]["score"] == 4
    assert redone["can_redo"] is False

    nothing = seeded_client.post(f"/games/{game_id}/redo").json()
    assert nothing["message"] == "Nothing to redo."


def test_ineffective_move_reports_message(seeded_client):
    game_id = _new_game(seeded_client)["game_id"]
    data = seeded_client.post(f"/games/{game_id}/move", json={"direction": "up"}).json()
    assert data["moved"] is False
    assert data["message"] == "Move was not effective; board state unchanged."


def test_mode_and_restart(seeded_client):
    game_id = _new_game(seeded_client)["game_id"]
    seeded_client.post(f"/games/{game_id}/move", json={"direction": "left"})

    data = seeded_client.put(f"/games/{game_id}/mode", json={"mode": "challenge"}).json()
    assert data["state"]["mode"] == "challenge"
    assert data["state"]["score"] == 4

    data = seeded_client.post(f"/games/{game_id}/restart", json={}).json()
    assert data["state"]["score"] == 0
    assert data["state"]["best_score"] == 4
    assert data["state"]["mode"] == "challenge"
    assert data["can_undo"] is False

    data = seeded_client.post(f"/games/{game_id}/restart", json={"mode": "timeAttack"}).json()
    assert data["state"]["mode"] == "timeAttack"


def test_tick(client):
    game_id = _new_game(client)["game_id"]
    data = client.post(f"/games/{game_id}/tick").json()
    assert data["state"]["status"] == "playing"
    assert data["state"]["time_elapsed"] >= 0


def test_delete_game(client):
    game_id = _new_game(client)["game_id"]
    response = client.delete(f"/games/{game_id}")
    assert response.status_code == 204
    assert client.get(f"/games/{game_id}").status_code == 404
    assert client.delete(f"/games/{game_id}").status_code == 404


def test_least_recently_used_session_is_evicted():
    client = TestClient(create_app(max_sessions=2))
    oldest = _new_game(client)["game_id"]
    touched = _new_game(client)["game_id"]
    assert client.get(f"/games/{oldest}").status_code == 200

    newest = _new_game(client)["game_id"]
    assert client.get(f"/games/{touched}").status_code == 404
    assert client.get(f"/games/{oldest}").status_code == 200
    assert client.get(f"/games/{newest}").status_code == 200


def test_time_attack_clock_reports_times_up():
    clock = FakeClock()
    session = SessionController(
        storage=storage_with_game(START_BOARD, mode=GameMode.TIME_ATTACK),
        rng=first_cell_rng,
        clock=clock,
    )
    clock.advance(120000)
    session.tick()
    assert session.is_game_over
    assert _status_message(session) == "Time's up! Game Over."


def test_locked_board_reports_no_moves():
    locked = [[2, 4, 8, 16], [32, 64, 128, 256], [512, 1024, 4, 8], [16, 32, 64, 0]]
    session = SessionController(storage=storage_with_game(locked), rng=first_cell_rng, clock=FakeClock())
    session.make_move(Direction.RIGHT)
    assert session.is_game_over
    assert _status_message(session) == "Game Over. No more valid moves."

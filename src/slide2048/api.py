import logging
import uuid
from collections import OrderedDict
from typing import Callable, List, Optional

from fastapi import APIRouter, FastAPI, HTTPException, Request, Response
from pydantic import BaseModel, Field, field_validator
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from .board import get_board_size, is_valid_tile
from .config import DEFAULT_BOARD_SIZE, MAX_BOARD_SIZE, MIN_BOARD_SIZE, GameMode, get_game_mode_config, validate_board_size
from .moves import Direction, move_board
from .session import SessionController
from .state import GameState
from .storage import MemoryStorage, StorageBackend

logger = logging.getLogger(__name__)

MAX_SESSIONS = 1000

# Initialize the rate limiter
limiter = Limiter(key_func=get_remote_address)
router = APIRouter()

# --- Pydantic Models for API requests and responses ---

class NewGameSettings(BaseModel):
    """Settings for creating a new game session."""
    size: int = Field(
        default=DEFAULT_BOARD_SIZE,
        ge=MIN_BOARD_SIZE,
        le=MAX_BOARD_SIZE,
        description="Size of the N x N game board (e.g., 4 for a 4x4 board)."
    )
    mode: GameMode = Field(default=GameMode.CLASSIC, description="Ruleset: classic, timeAttack, zen or challenge.")


class BoardMoveRequest(BaseModel):
    """A board and direction for the stateless move engine."""
    board: List[List[int]] = Field(..., description="The N x N board before the move.")
    direction: Direction = Field(..., description="Direction of the move (up, down, left, right).")

    @field_validator("board")
    @classmethod
    def _check_board(cls, board: List[List[int]]) -> List[List[int]]:
        size = get_board_size(board)
        if not validate_board_size(size):
            raise ValueError(f"Board size must be between {MIN_BOARD_SIZE} and {MAX_BOARD_SIZE}, got {size}.")
        for row in board:
            for value in row:
                if not is_valid_tile(value):
                    raise ValueError(f"Invalid tile value {value}: must be 0 or a power of two >= 2.")
        return board


class BoardMoveResponse(BaseModel):
    new_board: List[List[int]] = Field(..., description="The board after sliding and merging, without a new tile.")
    score_gained: int = Field(..., ge=0, description="Sum of the values of all merged tiles.")
    moved: bool = Field(..., description="True if any cell changed.")


class MoveRequestData(BaseModel):
    direction: Direction = Field(..., description="Direction of the move (up, down, left, right).")


class ModeRequestData(BaseModel):
    mode: GameMode


class RestartRequestData(BaseModel):
    mode: Optional[GameMode] = Field(default=None, description="Mode for the new game; defaults to the current one.")


class SessionResponse(BaseModel):
    """A session's live state plus the flags a client needs to render controls."""
    game_id: str
    state: GameState
    can_undo: bool
    can_redo: bool
    highest_tile: int
    message: Optional[str] = Field(
        default=None,
        description="An optional message, e.g., if a move was invalid, game ended, or other info."
    )


class MoveResponseData(SessionResponse):
    moved: bool = Field(
        ...,
        description="True if the move resulted in a change to the board state, False otherwise."
    )
    score_gained: int = Field(..., ge=0)


# --- Helpers ---

def _get_session(request: Request, game_id: str) -> SessionController:
    sessions = request.app.state.sessions
    session = sessions.get(game_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"No game with id {game_id!r}.")
    sessions.move_to_end(game_id)
    return session


def _register_session(request: Request, game_id: str, session: SessionController) -> None:
    """Adds a session, evicting the least recently used ones beyond the app's limit."""
    sessions = request.app.state.sessions
    sessions[game_id] = session
    while len(sessions) > request.app.state.max_sessions:
        evicted_id, _ = sessions.popitem(last=False)
        logger.info("Evicted idle session %s", evicted_id)


def _status_message(session: SessionController) -> Optional[str]:
    if session.is_game_won:
        return "Congratulations! You won!"
    if session.is_game_over:
        state = session.state
        time_limit = get_game_mode_config(state.mode).time_limit
        if time_limit is not None and state.time_elapsed >= time_limit:
            return "Time's up! Game Over."
        return "Game Over. No more valid moves."
    return None


def _session_response(game_id: str, session: SessionController, message: Optional[str] = None) -> SessionResponse:
    return SessionResponse(
        game_id=game_id,
        state=session.state,
        can_undo=session.can_undo,
        can_redo=session.can_redo,
        highest_tile=session.highest_tile,
        message=message or _status_message(session),
    )

# --- API Endpoints ---

@router.post("/board/move", response_model=BoardMoveResponse, summary="Slide a Board Without Spawning a Tile")
@limiter.limit("100/minute")
async def move_stateless_board(request: Request, request_data: BoardMoveRequest):
    """
    Applies the slide-and-merge rules to the given board. No session is
    involved and no random tile is added.
    """
    try:
        result = move_board(request_data.board, request_data.direction)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid board structure in request: {str(e)}")
    return BoardMoveResponse(new_board=result.new_board, score_gained=result.score_gained, moved=result.moved)


@router.post("/games", response_model=SessionResponse, summary="Start a New 2048 Game")
@limiter.limit("100/minute")
async def start_new_game(request: Request, settings: NewGameSettings):
    """
    Creates a new session with its own history and storage.

    - **size**: Dimension of the N x N board (3 to 8). Default is 4.
    - **mode**: classic, timeAttack, zen or challenge. Default is classic.
    """
    game_id = uuid.uuid4().hex
    session = SessionController(
        storage=request.app.state.storage_factory(),
        board_size=settings.size,
        mode=settings.mode,
    )
    _register_session(request, game_id, session)
    logger.info("Created session %s", game_id)
    return _session_response(game_id, session)


@router.get("/games/{game_id}", response_model=SessionResponse, summary="Get a Game's State")
@limiter.limit("100/minute")
async def get_game(request: Request, game_id: str):
    return _session_response(game_id, _get_session(request, game_id))


@router.delete("/games/{game_id}", status_code=204, summary="End a Game Session")
@limiter.limit("100/minute")
async def delete_game(request: Request, game_id: str):
    """Discards a session and its history."""
    _get_session(request, game_id)
    del request.app.state.sessions[game_id]
    logger.info("Deleted session %s", game_id)
    return Response(status_code=204)


@router.post("/games/{game_id}/move", response_model=MoveResponseData, summary="Make a Move in the Game")
@limiter.limit("100/minute")
async def make_move(request: Request, game_id: str, request_data: MoveRequestData):
    """
    Plays one turn: slide and merge, spawn a tile when the board changed,
    then re-check the game status. Moves are ignored once the game is won or over.
    """
    session = _get_session(request, game_id)
    result = session.make_move(request_data.direction)
    message = None if result.moved else "Move was not effective; board state unchanged."
    base = _session_response(game_id, session, message)
    return MoveResponseData(**base.model_dump(), moved=result.moved, score_gained=result.score_gained)


@router.post("/games/{game_id}/undo", response_model=SessionResponse, summary="Undo")
@limiter.limit("100/minute")
async def undo_move(request: Request, game_id: str):
    session = _get_session(request, game_id)
    message = None if session.undo() else "Nothing to undo."
    return _session_response(game_id, session, message)


@router.post("/games/{game_id}/redo", response_model=SessionResponse, summary="Redo")
@limiter.limit("100/minute")
async def redo_move(request: Request, game_id: str):
    session = _get_session(request, game_id)
    message = None if session.redo() else "Nothing to redo."
    return _session_response(game_id, session, message)


@router.post("/games/{game_id}/restart", response_model=SessionResponse, summary="Restart the Game")
@limiter.limit("100/minute")
async def restart_game(request: Request, game_id: str, request_data: RestartRequestData):
    session = _get_session(request, game_id)
    session.restart_game(request_data.mode)
    return _session_response(game_id, session)


@router.put("/games/{game_id}/mode", response_model=SessionResponse, summary="Change the Game Mode")
@limiter.limit("100/minute")
async def set_game_mode(request: Request, game_id: str, request_data: ModeRequestData):
    session = _get_session(request, game_id)
    session.set_game_mode(request_data.mode)
    return _session_response(game_id, session)


@router.post("/games/{game_id}/tick", response_model=SessionResponse, summary="Refresh the Play Timer")
@limiter.limit("100/minute")
async def tick_game(request: Request, game_id: str):
    session = _get_session(request, game_id)
    session.tick()
    return _session_response(game_id, session)


def create_app(storage_factory: Optional[Callable[[], StorageBackend]] = None,
               max_sessions: int = MAX_SESSIONS) -> FastAPI:
    """
    Builds the API. Each app keeps its own session registry of at most
    ``max_sessions`` games, dropping the least recently used first; each session
    gets a fresh backend from ``storage_factory`` (in-memory by default).
    """
    app = FastAPI(
        title="2048 Game API",
        description="Play 2048 through server-side sessions with undo/redo, "\
                    "or use the stateless move engine directly.",
        version="1.0.0"
    )
    app.state.limiter = limiter
    app.state.sessions = OrderedDict()
    app.state.max_sessions = max_sessions
    app.state.storage_factory = storage_factory or MemoryStorage
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.include_router(router)
    return app


app = create_app()

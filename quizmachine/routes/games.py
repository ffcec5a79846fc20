from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field
from typing import Optional, List
from time import perf_counter
from contextlib import contextmanager

from quizmachine.services.game_manager import manager, GameError, GameNotFound
from quizmachine.services.metrics import metrics

router = APIRouter(prefix="/games", tags=["games"])


@contextmanager
def _game_errors():
    """Translate game state errors into HTTP responses."""
    try:
        yield
    except GameNotFound:
        raise HTTPException(status_code=404, detail="Game not found")
    except GameError as e:
        raise HTTPException(status_code=400, detail=str(e))


# ── Request models ──────────────────────────────────────────────

class AnswerIn(BaseModel):
    selected_index: Optional[int] = Field(default=None, ge=0, le=3, description="0-based option index; omit to report a timeout.")


class ScoreIn(BaseModel):
    player_name: str = Field(min_length=1, max_length=64)


# ── Response models ─────────────────────────────────────────────

class StartGameOut(BaseModel):
    game_id: str
    time_limit_sec: int


class RestartGameOut(BaseModel):
    game_id: str
    streak: int


class QuestionOut(BaseModel):
    """One question delivered to the player (answer hidden)."""
    game_id: str
    category: str
    question: str
    options: List[str]
    streak: int
    time_limit_sec: int


class AnswerOut(BaseModel):
    correct: bool
    timed_out: bool
    correct_index: int
    correct_answer: str
    explanation: str
    streak: int
    game_over: bool


class ScoreOut(BaseModel):
    id: str
    player_name: str
    score: int


@router.post("", response_model=StartGameOut, summary="Start a game", description="Start a new streak game with an empty question history.")
def start_game():
    game = manager.start_game()
    return {"game_id": game.id, "time_limit_sec": manager.settings.time_limit_sec}


@router.post("/{game_id}/restart", response_model=RestartGameOut, summary="Restart a game", description="Reset the streak and the question history of an existing game.")
def restart_game(game_id: str):
    with _game_errors():
        game = manager.restart_game(game_id)
    return {"game_id": game.id, "streak": game.streak}


@router.get("/{game_id}/next_question", response_model=QuestionOut, summary="Get next question", description="Generate (or re-serve the pending) question. The correct answer is NOT included; it is revealed after answering.")
async def next_question(game_id: str):
    started = perf_counter()
    try:
        with _game_errors():
            return await manager.next_question(game_id)
    finally:
        metrics.observe_ms("next_question_latency_ms", (perf_counter() - started) * 1000.0)


@router.post("/{game_id}/answer", response_model=AnswerOut, summary="Answer the pending question", description="Grade the answer. A wrong answer or a timeout ends the game.")
def answer(game_id: str, data: AnswerIn):
    with _game_errors():
        return manager.submit_answer(game_id, data.selected_index)


@router.post("/{game_id}/score", response_model=ScoreOut, summary="Submit final score", description="Record the final streak of a finished game under a player name.")
def submit_score(game_id: str, data: ScoreIn):
    with _game_errors():
        row = manager.submit_score(game_id, data.player_name)
    return {"id": row.id, "player_name": row.player_name, "score": row.score}

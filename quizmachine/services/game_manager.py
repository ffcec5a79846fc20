from collections import OrderedDict
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Set
import asyncio
import logging

from quizmachine.db import get_session
from quizmachine.models import GameSession, Ranking
from quizmachine.services.quiz_orchestrator import QuizOrchestrator
from quizmachine.services.quiz_validator import Quiz
from quizmachine.services.ranking_service import save_score
from quizmachine.utils.env import QuizSettings, get_quiz_settings

logger = logging.getLogger("game_manager")

MAX_LIVE_ORCHESTRATORS = 1024


class GameError(ValueError):
    pass


class GameNotFound(GameError):
    pass


class GameStateError(GameError):
    pass


def _as_utc(ts: datetime) -> datetime:
    # sqlite hands datetimes back naive
    return ts.replace(tzinfo=timezone.utc) if ts.tzinfo is None else ts


class GameManager:
    """Streak game state machine: one question at a time, the first miss ends the run.

    Each game owns a QuizOrchestrator (and so its own duplicate history),
    kept in process memory for the most recently used games only.
    """

    def __init__(self, orchestrator_factory: Optional[Callable[[], QuizOrchestrator]] = None,
                 settings: Optional[QuizSettings] = None):
        self._settings = settings
        self._orchestrator_factory = orchestrator_factory or (lambda: QuizOrchestrator(settings=self.settings))
        self._orchestrators: "OrderedDict[str, QuizOrchestrator]" = OrderedDict()
        # one fetch at a time per game, so a question is generated and stored exactly once
        self._locks: Dict[str, asyncio.Lock] = {}
        self._finished: Set[str] = set()

    @property
    def settings(self) -> QuizSettings:
        # read on first use so values from .env (loaded at startup) apply
        if self._settings is None:
            self._settings = get_quiz_settings()
        return self._settings

    def _lock_for(self, game_id: str) -> asyncio.Lock:
        lock = self._locks.get(game_id)
        if lock is None:
            lock = self._locks[game_id] = asyncio.Lock()
        return lock

    def _evict_one(self, keep: str) -> bool:
        """Drop the least recently used orchestrator, finished games first.

        Games with a fetch in flight are never dropped. Returns False when
        nothing can be evicted right now.
        """
        idle = [gid for gid in self._orchestrators
                if gid != keep and not (gid in self._locks and self._locks[gid].locked())]
        if not idle:
            return False
        victim = next((gid for gid in idle if gid in self._finished), idle[0])
        if victim not in self._finished:
            logger.warning("evicting orchestrator of running game=%s; its duplicate history is lost", victim)
        self._orchestrators.pop(victim)
        self._locks.pop(victim, None)
        self._finished.discard(victim)
        return True

    def _orchestrator_for(self, game_id: str) -> QuizOrchestrator:
        orch = self._orchestrators.get(game_id)
        if orch is None:
            orch = self._orchestrator_factory()
            self._orchestrators[game_id] = orch
            while len(self._orchestrators) > MAX_LIVE_ORCHESTRATORS:
                if not self._evict_one(keep=game_id):
                    break
        else:
            self._orchestrators.move_to_end(game_id)
        return orch

    @staticmethod
    def _load(db, game_id: str) -> GameSession:
        game = db.get(GameSession, game_id)
        if not game:
            raise GameNotFound("game not found")
        return game

    def get_game(self, game_id: str) -> GameSession:
        with get_session() as db:
            game = self._load(db, game_id)
            db.expunge(game)
            return game

    def start_game(self) -> GameSession:
        with get_session() as db:
            game = GameSession()
            db.add(game)
            db.commit()
            db.refresh(game)
            db.expunge(game)
        self._orchestrator_for(game.id)
        logger.info("start_game: game=%s", game.id)
        return game

    def restart_game(self, game_id: str) -> GameSession:
        with get_session() as db:
            game = self._load(db, game_id)
            game.streak = 0
            game.started_at = datetime.now(timezone.utc)
            game.ended_at = None
            game.current_quiz = None
            game.question_served_at = None
            game.answered = True
            game.player_name = None
            game.score_submitted = False
            db.add(game)
            db.commit()
            db.refresh(game)
            db.expunge(game)
        self._finished.discard(game_id)
        self._orchestrator_for(game_id).reset_session()
        logger.info("restart_game: game=%s", game_id)
        return game

    def _question_payload(self, game: GameSession) -> Dict[str, Any]:
        quiz = Quiz.model_validate(game.current_quiz)
        # correct index stays server-side until the answer is in
        return {
            "game_id": game.id,
            "category": quiz.category,
            "question": quiz.question,
            "options": quiz.options,
            "streak": game.streak,
            "time_limit_sec": self.settings.time_limit_sec,
        }

    async def next_question(self, game_id: str) -> Dict[str, Any]:
        lock = self._lock_for(game_id)
        async with lock:
            with get_session() as db:
                game = db.get(GameSession, game_id)
                if not game:
                    self._locks.pop(game_id, None)
                    raise GameNotFound("game not found")
                if game.ended_at:
                    raise GameStateError("game is over")
                # a concurrent caller may have just stored one
                if not game.answered and game.current_quiz:
                    db.expunge(game)
                    return self._question_payload(game)

            quiz = await self._orchestrator_for(game_id).get_next_quiz()

            with get_session() as db:
                game = self._load(db, game_id)
                game.current_quiz = quiz.to_wire()
                game.question_served_at = datetime.now(timezone.utc)
                game.answered = False
                db.add(game)
                db.commit()
                db.refresh(game)
                db.expunge(game)
        return self._question_payload(game)

    def submit_answer(self, game_id: str, selected_index: Optional[int], now: Optional[datetime] = None) -> Dict[str, Any]:
        """Grade an answer. `selected_index=None` reports that the client timer ran out."""
        now = now or datetime.now(timezone.utc)
        with get_session() as db:
            game = self._load(db, game_id)
            if game.ended_at:
                raise GameStateError("game is over")
            if game.answered or not game.current_quiz:
                raise GameStateError("no question is waiting for an answer")
            if selected_index is not None and not 0 <= selected_index < 4:
                raise GameError("selected_index must be between 0 and 3")

            quiz = Quiz.model_validate(game.current_quiz)
            elapsed = (now - _as_utc(game.question_served_at or now)).total_seconds()
            timed_out = selected_index is None or elapsed > self.settings.time_limit_sec
            correct = not timed_out and selected_index == quiz.correct_index

            game.answered = True
            if correct:
                game.streak += 1
            else:
                game.ended_at = now
            db.add(game)
            db.commit()
            db.refresh(game)

            if game.ended_at:
                if game_id in self._orchestrators:
                    self._finished.add(game_id)
                logger.info("game over: game=%s streak=%d timed_out=%s", game_id, game.streak, timed_out)
            return {
                "correct": correct,
                "timed_out": timed_out,
                "correct_index": quiz.correct_index,
                "correct_answer": quiz.correct_option,
                "explanation": quiz.explanation,
                "streak": game.streak,
                "game_over": game.ended_at is not None,
            }

    def submit_score(self, game_id: str, player_name: str) -> Ranking:
        if not (player_name or "").strip():
            raise GameError("player name is required")
        with get_session() as db:
            game = self._load(db, game_id)
            if not game.ended_at:
                raise GameStateError("game is still running")
            if game.score_submitted:
                raise GameStateError("score already submitted for this game")
            row = save_score(player_name, game.streak)
            game.player_name = row.player_name
            game.score_submitted = True
            db.add(game)
            db.commit()
            return row


manager = GameManager()

from time import perf_counter
from typing import Optional
import logging
import random

from quizmachine.services.duplicate_tracker import SessionHistory
from quizmachine.services.fallback_bank import pick_fallback
from quizmachine.services.llm_adapter import LLMServiceError
from quizmachine.services.metrics import metrics
from quizmachine.services.quiz_generator import QuizGenerator
from quizmachine.services.quiz_normalizer import shuffle_options
from quizmachine.services.quiz_validator import Quiz, QuizShapeError, is_answerable
from quizmachine.services.topic_selector import select_topic
from quizmachine.utils.env import QuizSettings, get_quiz_settings

logger = logging.getLogger("quiz_orchestrator")

SOURCE_GENERATED = "generated"
SOURCE_DUPLICATE_ACCEPTED = "duplicate_accepted"
SOURCE_FALLBACK = "fallback"


class QuizOrchestrator:
    """Single entry point for acquiring the next question of a game session.

    `get_next_quiz` never raises for generation problems: it retries
    duplicates up to `max_retries` times, then accepts the duplicate, and
    falls back to the curated bank as soon as generation fails. Every
    returned quiz has been shuffled and recorded in `history`.

    Calls must be serialized by the caller; the history is not locked.
    """

    def __init__(self, generator: Optional[QuizGenerator] = None, history: Optional[SessionHistory] = None,
                 settings: Optional[QuizSettings] = None, rng: Optional[random.Random] = None):
        self.settings = settings or get_quiz_settings()
        self.history = history if history is not None else SessionHistory(self.settings.history_limit)
        self.generator = generator or QuizGenerator(settings=self.settings)
        self.rng = rng or random.Random()
        self.last_source: Optional[str] = None

    @property
    def max_retries(self) -> int:
        return self.settings.max_retries

    async def _generate_candidate(self) -> Optional[Quiz]:
        pick = select_topic(self.history.size(), seed_max=self.settings.seed_max, rng=self.rng)
        try:
            candidate = await self.generator.generate(pick.category, pick.topic, pick.seed, pick.history_size)
            if not is_answerable(candidate):
                raise QuizShapeError(f"correctIndex {candidate.correct_index} is out of range")
            return candidate
        except (LLMServiceError, QuizShapeError) as e:
            logger.warning("Quiz generation failed (category=%s topic=%s): %s", pick.category, pick.topic, e)
        except Exception:
            logger.warning("Quiz generation raised unexpectedly (category=%s topic=%s)",
                           pick.category, pick.topic, exc_info=True)
        metrics.incr("quiz_generation_error_total")
        return None

    async def get_next_quiz(self) -> Quiz:
        started = perf_counter()
        quiz: Optional[Quiz] = None
        source = SOURCE_FALLBACK
        attempts = 0

        for attempt in range(self.max_retries + 1):
            attempts += 1
            candidate = await self._generate_candidate()
            if candidate is None:
                break
            if not self.history.is_seen(candidate.question):
                quiz, source = candidate, SOURCE_GENERATED
                break
            if attempt == self.max_retries:
                logger.warning("Accepting duplicate question after %d attempts: %r", attempts, candidate.question)
                metrics.incr("quiz_duplicate_accepted_total")
                quiz, source = candidate, SOURCE_DUPLICATE_ACCEPTED
                break
            logger.info("Duplicate question on attempt %d, regenerating", attempts)
            metrics.incr("quiz_duplicate_retry_total")

        if quiz is None:
            quiz = pick_fallback(self.history, rng=self.rng)
            logger.warning("Serving fallback question: %r", quiz.question)
            metrics.incr("quiz_fallback_total")
        else:
            metrics.incr("quiz_generated_total")

        served = shuffle_options(quiz, rng=self.rng)
        self.history.record(served.question)
        self.last_source = source

        metrics.observe_ms("quiz_acquisition_latency_ms", (perf_counter() - started) * 1000.0)
        metrics.record_quiz_served(source, attempts, served.category, self.history.size())
        return served

    def reset_session(self) -> None:
        self.history.reset()
        self.last_source = None

from typing import Optional
import asyncio
import logging

from quizmachine.services.llm_adapter import LLMAdapter, get_llm_adapter
from quizmachine.services.metrics import metrics
from quizmachine.services.quiz_validator import Quiz, parse_quiz_text
from quizmachine.utils.env import QuizSettings, get_quiz_settings

logger = logging.getLogger("quiz_generator")

SYSTEM_PROMPT = (
    "You are a quiz generation AI. Reply with the requested JSON object only. "
    "Do not use Markdown, code fences, or any text outside the JSON."
)

DIFFICULTY_BAND = "general knowledge up to the end of junior high school (9th grade)"


def build_quiz_prompt(category: str, topic: str, seed: int, history_size: int) -> str:
    return f"""You are a junior high school teacher. Write exactly ONE multiple-choice quiz question with 4 options.

Conditions:
- Category: {category}
- Topic: {topic}
- Difficulty: {DIFFICULTY_BAND}
- Random seed: {seed} (use it to vary the question every time)
- Questions already asked this session: {history_size}

Important:
- Every question must be different from any question asked before; avoid the most common textbook examples.
- The 4 options must be distinct, with exactly one correct answer.
- Choose the position of the correct answer (correctIndex, 0-3) at random.

Reply with this JSON shape only, no explanation or decoration:
{{"category":"{category}","question":"question text","options":["option A","option B","option C","option D"],"correctIndex":0,"explanation":"why the answer is correct"}}"""


class QuizGenerator:
    """Asks the text-generation service for one candidate quiz.

    Raises LLMServiceError when the service fails and QuizShapeError when the
    reply is not a structurally valid quiz. The candidate is returned as
    parsed: no shuffling, no duplicate check, no index bounds check.
    """

    def __init__(self, adapter: Optional[LLMAdapter] = None, settings: Optional[QuizSettings] = None):
        self.adapter = adapter or get_llm_adapter()
        self.settings = settings or get_quiz_settings()

    async def generate(self, category: str, topic: str, seed: int, history_size: int) -> Quiz:
        prompt = build_quiz_prompt(category, topic, seed, history_size)
        out = await asyncio.to_thread(
            self.adapter.generate,
            prompt,
            max_tokens=self.settings.max_tokens,
            temperature=self.settings.temperature,
            system=SYSTEM_PROMPT,
        )
        metrics.record_llm_usage(out.get("usage") or {})
        text = out.get("text") or ""
        logger.debug("generate: category=%s topic=%s seed=%s chars=%d", category, topic, seed, len(text))
        return parse_quiz_text(text, default_category=category)

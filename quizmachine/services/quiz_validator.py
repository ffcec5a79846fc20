from typing import Any, Dict, List, Optional
import json
import re

from pydantic import BaseModel, ConfigDict, Field

OPTION_COUNT = 4

_CODE_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)


class QuizShapeError(Exception):
    pass


class Quiz(BaseModel):
    """One four-option question. Serialized with the `correctIndex` wire name."""

    model_config = ConfigDict(populate_by_name=True)

    category: str = ""
    question: str
    options: List[str]
    correct_index: int = Field(alias="correctIndex")
    explanation: str = ""

    @property
    def correct_option(self) -> str:
        return self.options[self.correct_index]

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


def strip_code_fence(text: str) -> str:
    text = (text or "").strip()
    if "```" not in text:
        return text
    m = _CODE_FENCE_RE.search(text)
    if m:
        return m.group(1).strip()
    # unbalanced fence, e.g. a reply truncated by max_tokens
    return re.sub(r"```(?:json)?", "", text, flags=re.IGNORECASE).strip()


def _coerce_index(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    return None


def validate_quiz_dict(raw: Any, default_category: str = "") -> Quiz:
    """Check the structural shape of a generated quiz and build a `Quiz`.

    Required:
      - question: non-empty str
      - options: list of exactly 4 entries (coerced to stripped strings)
      - correctIndex: integer (`correct_index` is accepted too)

    The index is deliberately not bounds-checked here; see `is_answerable`.
    Raises QuizShapeError on invalid input.
    """
    if not isinstance(raw, dict):
        raise QuizShapeError("quiz is not a JSON object")

    question = raw.get("question")
    if not isinstance(question, str) or not question.strip():
        raise QuizShapeError("missing or empty 'question'")

    options = raw.get("options")
    if not isinstance(options, list) or len(options) != OPTION_COUNT:
        raise QuizShapeError(f"'options' must be a list of exactly {OPTION_COUNT} entries")

    raw_index = raw["correctIndex"] if "correctIndex" in raw else raw.get("correct_index")
    correct_index = _coerce_index(raw_index)
    if correct_index is None:
        raise QuizShapeError("missing or non-integer 'correctIndex'")

    category = raw.get("category")
    explanation = raw.get("explanation")
    return Quiz(
        category=category.strip() if isinstance(category, str) and category.strip() else default_category,
        question=question.strip(),
        options=[str(o).strip() for o in options],
        correct_index=correct_index,
        explanation=str(explanation).strip() if explanation is not None else "",
    )


def parse_quiz_text(text: str, default_category: str = "") -> Quiz:
    body = strip_code_fence(text)
    if not body:
        raise QuizShapeError("empty response text")
    try:
        raw = json.loads(body)
    except json.JSONDecodeError as e:
        raise QuizShapeError(f"response is not valid JSON: {e}") from e
    return validate_quiz_dict(raw, default_category=default_category)


def is_answerable(quiz: Quiz) -> bool:
    return len(quiz.options) == OPTION_COUNT and 0 <= quiz.correct_index < OPTION_COUNT

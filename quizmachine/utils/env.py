import os
import re
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

_LOOSE_LINE_RE = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*)\s*[:=]\s*(?:\"([^\"]*)\"|'([^']*)'|([^#]*))")


def _load_loose_env_file(path: str) -> None:
    """Accept `KEY: value` lines that python-dotenv skips. Never overrides the environment."""
    if not os.path.exists(path):
        return
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            m = _LOOSE_LINE_RE.match(line)
            if not m:
                continue
            key = m.group(1)
            val = (m.group(2) or m.group(3) or m.group(4) or "").strip()
            os.environ.setdefault(key, val)


def ensure_env_loaded(env_path: Optional[str] = None) -> None:
    path = env_path or os.path.join(os.getcwd(), ".env")
    load_dotenv(path)
    _load_loose_env_file(path)


def env_int(name: str, default: int, min_value: Optional[int] = None, max_value: Optional[int] = None) -> int:
    raw = (os.getenv(name) or "").strip()
    try:
        value = int(raw) if raw else default
    except ValueError:
        value = default
    if min_value is not None:
        value = max(min_value, value)
    if max_value is not None:
        value = min(max_value, value)
    return value


def env_float(name: str, default: float, min_value: Optional[float] = None, max_value: Optional[float] = None) -> float:
    raw = (os.getenv(name) or "").strip()
    try:
        value = float(raw) if raw else default
    except ValueError:
        value = default
    if min_value is not None:
        value = max(min_value, value)
    if max_value is not None:
        value = min(max_value, value)
    return value


@dataclass(frozen=True)
class QuizSettings:
    max_retries: int = 3
    history_limit: int = 1000
    temperature: float = 1.0
    max_tokens: int = 500
    time_limit_sec: int = 15
    seed_max: int = 100000


def get_quiz_settings() -> QuizSettings:
    """Read quiz pipeline settings from the environment, falling back to defaults."""
    return QuizSettings(
        max_retries=env_int("QUIZ_MAX_RETRIES", 3, min_value=0),
        history_limit=env_int("QUIZ_HISTORY_LIMIT", 1000, min_value=1),
        temperature=env_float("QUIZ_TEMPERATURE", 1.0, min_value=1.0, max_value=1.2),
        max_tokens=env_int("QUIZ_MAX_TOKENS", 500, min_value=64),
        time_limit_sec=env_int("QUIZ_TIME_LIMIT_SEC", 15, min_value=1),
        seed_max=env_int("QUIZ_SEED_MAX", 100000, min_value=1),
    )

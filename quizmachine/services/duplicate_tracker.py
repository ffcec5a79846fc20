"""Session-scoped duplicate detection for served questions.

A fingerprint is a 32-bit signed polynomial hash (h = 31 * h + code point)
over the case-folded, whitespace-collapsed question text. It is only used
for membership tests; two different questions can collide, which at worst
means a fresh question is treated as a repeat and regenerated.
"""

from collections import deque
from typing import Deque
import re

DEFAULT_HISTORY_LIMIT = 1000

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_question(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", (text or "").casefold()).strip()


def fingerprint(text: str) -> int:
    h = 0
    for ch in normalize_question(text):
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    return h - 0x100000000 if h & 0x80000000 else h


class SessionHistory:
    """Bounded FIFO of fingerprints served in one game session."""

    def __init__(self, limit: int = DEFAULT_HISTORY_LIMIT):
        self.limit = limit
        self._fingerprints: Deque[int] = deque(maxlen=limit)

    def is_seen(self, question: str) -> bool:
        return fingerprint(question) in self._fingerprints

    def record(self, question: str) -> int:
        fp = fingerprint(question)
        # maxlen evicts from the left once the window is full
        self._fingerprints.append(fp)
        return fp

    def reset(self) -> None:
        self._fingerprints.clear()

    def size(self) -> int:
        return len(self._fingerprints)

    def __len__(self) -> int:
        return len(self._fingerprints)

    def fingerprints(self) -> list:
        return list(self._fingerprints)

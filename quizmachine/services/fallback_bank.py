from typing import Optional, Tuple
import random

from quizmachine.services.duplicate_tracker import SessionHistory
from quizmachine.services.quiz_validator import Quiz

FALLBACK_QUIZZES: Tuple[Quiz, ...] = (
    Quiz(
        category="Geography",
        question="What is the highest mountain in Japan?",
        options=["Mount Fuji", "Mount Kita", "Mount Okuhotaka", "Mount Yari"],
        correct_index=0,
        explanation="Mount Fuji stands 3,776 m tall, the highest peak in Japan.",
    ),
    Quiz(
        category="Science",
        question="What is the chemical formula of water?",
        options=["CO2", "H2O", "NaCl", "O2"],
        correct_index=1,
        explanation="Water is H2O: two hydrogen atoms bonded to one oxygen atom.",
    ),
    Quiz(
        category="History",
        question="Who founded the Kamakura shogunate?",
        options=["Minamoto no Yoritomo", "Taira no Kiyomori", "Ashikaga Takauji", "Tokugawa Ieyasu"],
        correct_index=0,
        explanation="Minamoto no Yoritomo established the Kamakura shogunate in 1185.",
    ),
    Quiz(
        category="Language",
        question="What does the proverb \"More haste, less speed\" mean?",
        options=["Always run when you are late", "A slower, surer route is often faster", "Never take a detour", "Speed is everything"],
        correct_index=1,
        explanation="When in a hurry, the safe and reliable way usually gets you there first.",
    ),
    Quiz(
        category="English",
        question="Which English phrase is used to express gratitude?",
        options=["Goodbye", "Hello", "Thank you", "Good morning"],
        correct_index=2,
        explanation="\"Thank you\" is the everyday English expression of gratitude.",
    ),
    Quiz(
        category="Music",
        question="Which composer wrote the \"Moonlight\" Sonata?",
        options=["Mozart", "Bach", "Chopin", "Beethoven"],
        correct_index=3,
        explanation="Beethoven composed Piano Sonata No. 14, nicknamed the \"Moonlight\" Sonata, in 1801.",
    ),
    Quiz(
        category="Civics",
        question="Which branch of government makes the laws in Japan?",
        options=["The Cabinet", "The National Diet", "The Supreme Court", "The Emperor"],
        correct_index=1,
        explanation="Under the separation of powers, the National Diet is the legislative branch.",
    ),
)


def pick_fallback(history: SessionHistory, rng: Optional[random.Random] = None) -> Quiz:
    """Pick a bank quiz not yet served this session, or any bank quiz if all were.

    Returns a copy; bank entries are never handed out for mutation.
    """
    rng = rng or random
    unseen = [q for q in FALLBACK_QUIZZES if not history.is_seen(q.question)]
    pool = unseen or FALLBACK_QUIZZES
    return rng.choice(pool).model_copy(deep=True)

import random

from quizmachine.services.duplicate_tracker import SessionHistory
from quizmachine.services.fallback_bank import FALLBACK_QUIZZES, pick_fallback
from quizmachine.services.quiz_validator import is_answerable
from quizmachine.services.topic_selector import TOPIC_TAXONOMY, select_topic


def test_fallback_bank_entries_are_valid_and_span_categories():
    assert len(FALLBACK_QUIZZES) >= 5
    assert len({q.category for q in FALLBACK_QUIZZES}) >= 3
    for quiz in FALLBACK_QUIZZES:
        assert is_answerable(quiz)
        assert len(set(quiz.options)) == 4
        assert quiz.question and quiz.explanation


def test_pick_fallback_prefers_unseen_questions():
    history = SessionHistory()
    unseen = FALLBACK_QUIZZES[-1]
    for quiz in FALLBACK_QUIZZES[:-1]:
        history.record(quiz.question)

    rng = random.Random(7)
    for _ in range(20):
        assert pick_fallback(history, rng=rng).question == unseen.question


def test_pick_fallback_repeats_when_everything_was_served():
    history = SessionHistory()
    for quiz in FALLBACK_QUIZZES:
        history.record(quiz.question)

    picked = pick_fallback(history, rng=random.Random(3))
    assert picked.question in {q.question for q in FALLBACK_QUIZZES}


def test_pick_fallback_returns_a_copy():
    picked = pick_fallback(SessionHistory(), rng=random.Random(0))
    original = next(q for q in FALLBACK_QUIZZES if q.question == picked.question)
    snapshot = list(original.options)
    picked.options.append("extra")
    assert original.options == snapshot


def test_select_topic_draws_from_taxonomy():
    rng = random.Random(42)
    categories = set()
    for _ in range(200):
        pick = select_topic(history_size=12, seed_max=100000, rng=rng)
        assert pick.topic in TOPIC_TAXONOMY[pick.category]
        assert 0 <= pick.seed <= 100000
        assert pick.history_size == 12
        categories.add(pick.category)
    assert len(categories) > 1

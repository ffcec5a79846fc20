from typing import Optional
import random

from quizmachine.services.quiz_validator import Quiz


def shuffle_options(quiz: Quiz, rng: Optional[random.Random] = None) -> Quiz:
    """Return a copy of `quiz` with its options uniformly permuted.

    The correct answer is tracked by text, so `correct_index` still points at
    the same option after the shuffle. If the correct text appears more than
    once, the first position holding it wins.
    """
    rng = rng or random
    correct_text = quiz.options[quiz.correct_index]
    options = list(quiz.options)
    rng.shuffle(options)
    return quiz.model_copy(update={"options": options, "correct_index": options.index(correct_text)})

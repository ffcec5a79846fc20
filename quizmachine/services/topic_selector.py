from types import MappingProxyType
from typing import Mapping, NamedTuple, Optional, Tuple
import random

TOPIC_TAXONOMY: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    "Language": ("Kanji reading and writing", "Idioms and proverbs", "Literary works and authors", "Honorific speech", "Classical literature basics"),
    "Mathematics": ("Equations", "Properties of shapes", "Probability and statistics", "Functions and graphs", "Mental arithmetic tricks"),
    "Science": ("Electricity and magnetism", "Plant structure", "Chemical reactions", "Earthquakes and volcanoes", "The human body", "Astronomy and space"),
    "Geography": ("Countries and capitals", "Prefectures of Japan", "Local products and industries", "Climate and terrain"),
    "History": ("The Edo period", "Warring States warlords", "The Meiji Restoration", "World history events", "Cultural history"),
    "Civics": ("The Constitution of Japan", "Separation of powers", "How the economy works", "International organizations"),
    "English": ("Basic vocabulary", "Grammar", "Everyday expressions", "English proverbs"),
    "Music": ("Famous composers", "Types of instruments", "Musical terms"),
    "General Knowledge": ("Japanese culture", "Sports", "Science and technology", "Current affairs"),
})


class TopicPick(NamedTuple):
    category: str
    topic: str
    seed: int
    history_size: int


def select_topic(history_size: int, seed_max: int = 100000, rng: Optional[random.Random] = None) -> TopicPick:
    """Pick a category, then a topic within it, both uniformly.

    `seed` and `history_size` carry no meaning beyond nudging the model
    toward a question it has not produced before.
    """
    rng = rng or random
    category = rng.choice(sorted(TOPIC_TAXONOMY))
    topic = rng.choice(TOPIC_TAXONOMY[category])
    return TopicPick(category=category, topic=topic, seed=rng.randint(0, seed_max), history_size=history_size)

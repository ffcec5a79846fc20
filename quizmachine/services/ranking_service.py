from typing import List
import time
import logging

from sqlmodel import select
from sqlalchemy import func
from sqlalchemy.exc import OperationalError

from quizmachine.db import get_session
from quizmachine.models import Ranking

logger = logging.getLogger("ranking_service")

MAX_PLAYER_NAME = 32


def save_score(player_name: str, score: int) -> Ranking:
    name = (player_name or "").strip()[:MAX_PLAYER_NAME]
    if not name:
        raise ValueError("player name is required")
    if score < 0:
        raise ValueError("score must be non-negative")

    attempts = 3
    backoff = 0.05
    for attempt in range(attempts):
        try:
            with get_session() as db:
                row = Ranking(player_name=name, score=int(score))
                db.add(row)
                db.commit()
                db.refresh(row)
                db.expunge(row)
                return row
        except OperationalError:
            # sqlite "database is locked" under concurrent writers
            if attempt == attempts - 1:
                raise
            logger.warning("save_score: database busy, retrying (attempt %d)", attempt + 1)
            time.sleep(backoff * (2 ** attempt))


def get_rankings(limit: int = 10) -> List[Ranking]:
    with get_session() as db:
        q = select(Ranking).order_by(Ranking.score.desc(), Ranking.created_at).limit(max(1, limit))
        rows = db.exec(q).all()
        for obj in rows:
            db.expunge(obj)
        return list(rows)


def get_top_score() -> int:
    with get_session() as db:
        top = db.exec(select(func.max(Ranking.score))).one()
        return int(top or 0)

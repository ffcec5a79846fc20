from fastapi import APIRouter, Query
from typing import List
from datetime import datetime
from pydantic import BaseModel

from quizmachine.services.ranking_service import get_rankings, get_top_score

router = APIRouter(prefix="/rankings", tags=["rankings"])


class RankingOut(BaseModel):
    rank: int
    player_name: str
    score: int
    created_at: datetime


class TopScoreOut(BaseModel):
    top_score: int


@router.get("", response_model=List[RankingOut], summary="Top rankings", description="Best streaks, highest first; ties keep the earlier entry ahead.")
def list_rankings(limit: int = Query(10, ge=1, le=100)):
    return [
        {"rank": i + 1, "player_name": r.player_name, "score": r.score, "created_at": r.created_at}
        for i, r in enumerate(get_rankings(limit))
    ]


@router.get("/top", response_model=TopScoreOut, summary="Best score", description="The single best streak recorded, 0 when the ranking is empty.")
def top_score():
    return {"top_score": get_top_score()}

from typing import Optional, Dict, Any
from sqlmodel import SQLModel, Field
from sqlalchemy import Column
from sqlalchemy import JSON as SA_JSON
from datetime import datetime, timezone
import uuid


def gen_uuid() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GameSession(SQLModel, table=True):
    """One streak run: starts at 0, ends on the first wrong answer or timeout."""
    id: str = Field(default_factory=gen_uuid, primary_key=True)
    streak: int = 0
    started_at: datetime = Field(default_factory=utcnow)
    ended_at: Optional[datetime] = None
    # full quiz including the correct index; never sent to the client before answering
    current_quiz: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(SA_JSON, nullable=True))
    question_served_at: Optional[datetime] = None
    answered: bool = True
    player_name: Optional[str] = None
    score_submitted: bool = False


class Ranking(SQLModel, table=True):
    id: str = Field(default_factory=gen_uuid, primary_key=True)
    player_name: str = Field(index=True)
    score: int = Field(index=True)
    created_at: datetime = Field(default_factory=utcnow)

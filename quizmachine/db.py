from sqlmodel import SQLModel, create_engine, Session
from contextlib import contextmanager
from typing import Any, Dict, Generator
import os
from sqlalchemy.pool import NullPool, StaticPool

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./quizmachine.db")


def _engine_options(url: str) -> Dict[str, Any]:
    if not url.startswith("sqlite"):
        return {"pool_size": 5, "max_overflow": 10, "pool_recycle": 3600, "pool_timeout": 30}
    options: Dict[str, Any] = {"connect_args": {"check_same_thread": False}}
    # an in-memory database lives only as long as its single connection
    if url in ("sqlite://", "sqlite:///:memory:"):
        options["poolclass"] = StaticPool
    else:
        options["poolclass"] = NullPool
    return options


engine = create_engine(DATABASE_URL, echo=False, **_engine_options(DATABASE_URL))


def create_db_and_tables():
    # table classes must be registered on the metadata before create_all
    import quizmachine.models  # noqa: F401

    SQLModel.metadata.create_all(engine)


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """Yield a DB session that is always properly closed."""
    session = Session(engine)
    try:
        yield session
    finally:
        session.close()

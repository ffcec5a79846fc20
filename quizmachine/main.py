from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from quizmachine.utils.env import ensure_env_loaded
from quizmachine.routes.games import router as games_router
from quizmachine.routes.rankings import router as rankings_router
from quizmachine.routes.internal import router as internal_router
from quizmachine.db import create_db_and_tables, engine
from quizmachine.services.metrics import metrics
from contextlib import asynccontextmanager
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
import os
import logging

logger = logging.getLogger("server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    ensure_env_loaded()
    create_db_and_tables()
    logger.info("quizmachine started (LLM_PROVIDER=%s)", os.getenv("LLM_PROVIDER", "mock"))
    yield


app = FastAPI(
    title="quizmachine",
    description="Endless general-knowledge quiz: AI-generated questions, a per-question timer, a correct-answer streak and a ranking. See `/docs` for OpenAPI UI.",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
allowed_origins = os.getenv("CORS_ORIGINS", "*").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in allowed_origins],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


app.include_router(games_router)
app.include_router(rankings_router)
app.include_router(internal_router)


@app.get("/health")
def health_check():
    checks: dict[str, object] = {"status": "ok"}
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        checks["db"] = "ok"
    except SQLAlchemyError as e:
        checks["db"] = f"error: {e}"
        checks["status"] = "degraded"
    checks["quizzes_served"] = sum(
        metrics.counter(name) for name in ("quiz_generated_total", "quiz_fallback_total")
    )
    return checks

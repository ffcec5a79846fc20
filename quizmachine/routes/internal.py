from fastapi import APIRouter, HTTPException, Header
from typing import Optional
import os

from quizmachine.services.metrics import metrics


router = APIRouter(prefix="/internal", tags=["internal"])


def _require_admin_if_configured(x_admin_token: Optional[str]) -> None:
    expected = os.getenv("ADMIN_TOKEN")
    if expected and x_admin_token != expected:
        raise HTTPException(status_code=401, detail="unauthorized")


@router.get("/metrics", summary="Quiz pipeline metrics", description="In-memory counters (generated, duplicate retries, fallbacks), latency summaries and recent served-quiz events.")
def get_metrics(x_admin_token: Optional[str] = Header(None)):
    _require_admin_if_configured(x_admin_token)
    return metrics.snapshot()


@router.post("/metrics/reset", summary="Reset quiz pipeline metrics", description="Clears in-memory counters and events (admin-protected when ADMIN_TOKEN is set).")
def reset_metrics(x_admin_token: Optional[str] = Header(None)):
    _require_admin_if_configured(x_admin_token)
    metrics.reset()
    return {"status": "ok"}

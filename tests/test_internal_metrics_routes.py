import os
from fastapi.testclient import TestClient

from quizmachine.main import app
from quizmachine.services.metrics import metrics


client = TestClient(app)


def test_internal_metrics_and_reset_roundtrip():
    metrics.reset()
    metrics.incr("quiz_fallback_total")
    metrics.observe_ms("quiz_acquisition_latency_ms", 12.5)
    metrics.observe_ms("quiz_acquisition_latency_ms", 7.5)
    metrics.record_event({"event": "quiz_served", "source": "fallback"})

    token = os.getenv("ADMIN_TOKEN")
    headers = {"X-Admin-Token": token} if token else {}

    r = client.get("/internal/metrics", headers=headers)
    assert r.status_code == 200
    data = r.json()
    assert data["counters"]["quiz_fallback_total"] == 1
    timer = data["timers"]["quiz_acquisition_latency_ms"]
    assert timer["count"] == 2
    assert timer["avg_ms"] == 10.0
    assert timer["min_ms"] == 7.5 and timer["max_ms"] == 12.5
    assert data["recent_events"][-1]["source"] == "fallback"

    r = client.post("/internal/metrics/reset", headers=headers)
    assert r.status_code == 200

    post = client.get("/internal/metrics", headers=headers).json()
    assert post["counters"] == {}
    assert post["timers"] == {}
    assert post["recent_events"] == []


def test_internal_metrics_require_admin_token_when_configured(monkeypatch):
    monkeypatch.setenv("ADMIN_TOKEN", "letmein")
    assert client.get("/internal/metrics").status_code == 401
    assert client.get("/internal/metrics", headers={"X-Admin-Token": "wrong"}).status_code == 401
    assert client.get("/internal/metrics", headers={"X-Admin-Token": "letmein"}).status_code == 200

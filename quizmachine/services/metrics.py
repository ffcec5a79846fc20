from collections import deque
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Deque, Dict


class InMemoryMetrics:
    """Process-local counters, latency summaries and the most recent pipeline events."""

    def __init__(self, max_events: int = 200):
        self._lock = Lock()
        self._counters: Dict[str, int] = {}
        self._timers: Dict[str, Dict[str, float]] = {}
        self._events: Deque[Dict[str, Any]] = deque(maxlen=max_events)

    def incr(self, name: str, value: int = 1) -> None:
        with self._lock:
            self._counters[name] = self._counters.get(name, 0) + int(value)

    def observe_ms(self, name: str, value_ms: float) -> None:
        val = float(value_ms)
        with self._lock:
            stat = self._timers.setdefault(name, {"count": 0, "sum_ms": 0.0, "min_ms": val, "max_ms": val})
            stat["count"] += 1
            stat["sum_ms"] += val
            stat["min_ms"] = min(stat["min_ms"], val)
            stat["max_ms"] = max(stat["max_ms"], val)

    def record_event(self, event: Dict[str, Any]) -> None:
        payload = dict(event)
        payload.setdefault("ts", datetime.now(timezone.utc).isoformat())
        with self._lock:
            self._events.append(payload)

    def record_quiz_served(self, source: str, attempts: int, category: str, history_size: int) -> None:
        """Count one served question under its source and keep it in the recent events."""
        self.incr("quiz_served_total")
        self.incr(f"quiz_served_{source}_total")
        self.record_event({"event": "quiz_served", "source": source, "attempts": int(attempts),
                           "category": category, "history_size": int(history_size)})

    def record_llm_usage(self, usage: Dict[str, Any]) -> None:
        self.incr("llm_requests_total")
        usage = usage or {}
        for key, name in (("prompt_tokens", "llm_prompt_tokens_total"),
                          ("completion_tokens", "llm_completion_tokens_total"),
                          ("total_tokens", "llm_tokens_total")):
            self.incr(name, int(usage.get(key) or 0))

    def counter(self, name: str) -> int:
        with self._lock:
            return self._counters.get(name, 0)

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            timers = {
                name: {
                    "count": int(stat["count"]),
                    "avg_ms": stat["sum_ms"] / stat["count"] if stat["count"] else 0.0,
                    "min_ms": stat["min_ms"],
                    "max_ms": stat["max_ms"],
                }
                for name, stat in self._timers.items()
            }
            return {
                "generated_at": datetime.now(timezone.utc).isoformat(),
                "counters": dict(self._counters),
                "timers": timers,
                "recent_events": list(self._events),
            }

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()
            self._timers.clear()
            self._events.clear()


metrics = InMemoryMetrics()

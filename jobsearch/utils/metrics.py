from __future__ import annotations

import json
import threading

from typing import Any, Dict


class Metrics:
    """
    Tiny in-process metrics sink: counters, gauges and timing histograms.

    Thread-safe. The aggregator records per-source counts and durations here;
    the UI collaborator can read `snapshot()` after a search.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._c: Dict[str, float] = {}
        self._g: Dict[str, float] = {}
        self._h: Dict[str, Dict[str, Any]] = {}

    def inc(self, name: str, value: float = 1.0) -> None:
        with self._lock:
            self._c[name] = self._c.get(name, 0.0) + value

    def set_gauge(self, name: str, value: float) -> None:
        with self._lock:
            self._g[name] = float(value)

    def observe(self, name: str, value: float) -> None:
        v = float(value)
        with self._lock:
            h = self._h.setdefault(name, {"count": 0, "sum": 0.0, "min": None, "max": None})
            h["count"] += 1
            h["sum"] += v
            h["min"] = v if h["min"] is None else min(h["min"], v)
            h["max"] = v if h["max"] is None else max(h["max"], v)

    def counter(self, name: str) -> float:
        with self._lock:
            return self._c.get(name, 0.0)

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            hist = {k: dict(v) for k, v in self._h.items()}
            for h in hist.values():
                if h.get("count", 0):
                    h["avg"] = h["sum"] / h["count"]
            return {
                "counters": dict(self._c),
                "gauges": dict(self._g),
                "histograms": hist,
            }

    def to_json(self) -> str:
        return json.dumps(self.snapshot(), separators=(",", ":"), ensure_ascii=False)

"""In-process counters for the relay, exposed as JSON and Prometheus text.

Latencies are folded into a running count and sum per key, so memory stays
constant no matter how long clients keep polling.
"""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any


@dataclass(slots=True)
class LatencyStats:
    count: int = 0
    total: float = 0.0
    maximum: float = 0.0

    def add(self, seconds: float) -> None:
        self.count += 1
        self.total += seconds
        self.maximum = max(self.maximum, seconds)

    def as_dict(self) -> dict[str, float]:
        return {
            "count": self.count,
            "sum": self.total,
            "avg": self.total / self.count if self.count else 0.0,
            "max": self.maximum,
        }


class MetricsCollector:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counts: dict[str, int] = {}
        self._latencies: dict[str, LatencyStats] = {}

    def record_count(self, name: str, value: int = 1) -> None:
        with self._lock:
            self._counts[name] = self._counts.get(name, 0) + value

    def record_latency(self, name: str, seconds: float) -> None:
        with self._lock:
            self._latencies.setdefault(name, LatencyStats()).add(seconds)

    def count(self, name: str) -> int:
        with self._lock:
            return self._counts.get(name, 0)

    def latency(self, name: str) -> dict[str, float]:
        with self._lock:
            return self._latencies.get(name, LatencyStats()).as_dict()

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return {
                "counts": dict(self._counts),
                "latencies": {key: stats.as_dict() for key, stats in self._latencies.items()},
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }


def _metric_name(prefix: str, name: str) -> str:
    sanitized = re.sub(r"[^a-zA-Z0-9_]+", "_", name).strip("_").lower() or "metric"
    return f"{prefix}_{sanitized}"


def render_prometheus(snapshot: dict[str, Any], *, prefix: str = "signal_relay") -> str:
    lines: list[str] = []

    for name, value in sorted(snapshot.get("counts", {}).items()):
        metric = f"{_metric_name(prefix, name)}_total"
        lines.extend([f"# TYPE {metric} counter", f"{metric} {int(value)}"])

    # latencies render as summaries without quantiles
    for name, stats in sorted(snapshot.get("latencies", {}).items()):
        metric = f"{_metric_name(prefix, name)}_seconds"
        lines.extend(
            [
                f"# TYPE {metric} summary",
                f"{metric}_sum {float(stats['sum']):.6f}",
                f"{metric}_count {int(stats['count'])}",
            ]
        )

    if not lines:
        lines.append("# no metrics recorded")
    return "\n".join(lines) + "\n"

# src/subdraft/api/metrics.py
from __future__ import annotations

import threading
from collections import Counter
from dataclasses import dataclass
from typing import Dict, Tuple

Labels = Dict[str, str]


@dataclass(frozen=True)
class MetricKey:
    name: str
    labels: Tuple[Tuple[str, str], ...] = ()

    @classmethod
    def of(cls, name: str, labels: Labels | None = None) -> "MetricKey":
        return cls(name=name, labels=tuple(sorted((labels or {}).items())))

    def render_prom(self, suffix: str = "") -> str:
        if not self.labels:
            return f"{self.name}{suffix}"
        inner = ",".join([f'{k}="{v}"' for k, v in self.labels])
        return f"{self.name}{suffix}{{{inner}}}"


class Metrics:
    """
    Process-local registry: integer counters plus sum/count summaries,
    rendered as a subset of the Prometheus text format. Scrape per process.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counters: Counter[MetricKey] = Counter()
        self._sums: Dict[MetricKey, float] = {}
        self._counts: Counter[MetricKey] = Counter()

    def inc(self, name: str, *, labels: Labels | None = None, value: int = 1) -> None:
        key = MetricKey.of(name, labels)
        with self._lock:
            self._counters[key] += int(value)

    def observe(self, name: str, value: float, *, labels: Labels | None = None) -> None:
        key = MetricKey.of(name, labels)
        with self._lock:
            self._sums[key] = self._sums.get(key, 0.0) + float(value)
            self._counts[key] += 1

    def get(self, name: str, *, labels: Labels | None = None) -> int:
        with self._lock:
            return self._counters.get(MetricKey.of(name, labels), 0)

    def to_prometheus_text(self) -> str:
        with self._lock:
            counters = dict(self._counters)
            sums = dict(self._sums)
            counts = dict(self._counts)

        order = lambda k: (k.name, k.labels)  # noqa: E731
        lines = [f"{k.render_prom()} {counters[k]}" for k in sorted(counters, key=order)]
        for k in sorted(sums, key=order):
            lines.append(f"{k.render_prom('_sum')} {sums[k]:.3f}")
            lines.append(f"{k.render_prom('_count')} {counts[k]}")
        return "\n".join(lines) + ("\n" if lines else "")


_registry = Metrics()


def metrics() -> Metrics:
    return _registry


def observe_http_request(method: str, route: str, status: int, dur_ms: float) -> None:
    labels = {"method": method, "route": route, "status": str(status)}
    metrics().inc("subdraft_http_requests_total", labels=labels)
    metrics().observe("subdraft_http_request_duration_ms", dur_ms, labels={"method": method, "route": route})


def inc_draft_saved() -> None:
    metrics().inc("subdraft_drafts_saved_total")


def inc_published() -> None:
    metrics().inc("subdraft_publishes_total")


def inc_srt_imported(target: str, segments: int, skipped: int) -> None:
    metrics().inc("subdraft_srt_imports_total", labels={"target": target})
    metrics().inc("subdraft_srt_segments_imported_total", value=segments)
    if skipped:
        metrics().inc("subdraft_srt_blocks_skipped_total", value=skipped)

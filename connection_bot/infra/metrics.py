# connection_bot/infra/metrics.py
"""
In-process metrics for the bot.

Counters and histograms are keyed by ``name{label=value,...}`` and live
as long as the process.  ``GET /metrics`` returns ``get_metrics()``
from the global collector.
"""
from __future__ import annotations
import time
from collections import Counter as _Tally
from collections import defaultdict
from threading import Lock
from dataclasses import dataclass, field
from connection_bot.infra.logging_config import get_logger

logger = get_logger(__name__)


def metric_key(name: str, labels: dict | None = None) -> str:
    """``requests`` + ``{"a": 1}`` -> ``requests{a=1}`` (labels sorted)."""
    if not labels:
        return name
    rendered = ",".join(f"{k}={labels[k]}" for k in sorted(labels))
    return f"{name}{{{rendered}}}"


@dataclass
class Histogram:
    """Raw samples of one measurement (e.g. geocoding latency)."""
    values: list[float] = field(default_factory=list)

    def observe(self, value: float) -> None:
        self.values.append(value)

    def get_stats(self) -> dict:
        count = len(self.values)
        if count == 0:
            return {"count": 0, "min": 0, "max": 0, "avg": 0, "p95": 0}

        ordered = sorted(self.values)
        return {
            "count": count,
            "min": ordered[0],
            "max": ordered[-1],
            "avg": sum(ordered) / count,
            "p95": ordered[min(int(count * 0.95), count - 1)],
        }


class MetricsCollector:
    """Thread-safe registry of counters and histograms."""

    def __init__(self):
        self._counters: _Tally[str] = _Tally()
        self._histograms: dict[str, Histogram] = defaultdict(Histogram)
        self._lock = Lock()

    def inc_counter(self, name: str, amount: int = 1, labels: dict | None = None) -> None:
        key = metric_key(name, labels)
        with self._lock:
            self._counters[key] += amount

    def observe_histogram(self, name: str, value: float, labels: dict | None = None) -> None:
        key = metric_key(name, labels)
        with self._lock:
            self._histograms[key].observe(value)

    def get_metrics(self) -> dict:
        with self._lock:
            return {
                "counters": dict(self._counters),
                "histograms": {key: h.get_stats() for key, h in self._histograms.items()},
            }

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()
            self._histograms.clear()
        logger.info("Metrics reset")


_metrics = MetricsCollector()


def get_metrics_collector() -> MetricsCollector:
    return _metrics


def inc_counter(name: str, amount: int = 1, **labels) -> None:
    _metrics.inc_counter(name, amount, labels or None)


def observe_histogram(name: str, value: float, **labels) -> None:
    _metrics.observe_histogram(name, value, labels or None)


class Timer:
    """``with Timer("geocode_seconds"):`` records the block's wall time."""

    def __init__(self, metric_name: str, **labels):
        self.metric_name = metric_name
        self.labels = labels
        self._started: float | None = None

    def __enter__(self):
        self._started = time.monotonic()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._started is not None:
            observe_histogram(self.metric_name, time.monotonic() - self._started, **self.labels)


class AppMetrics:
    """Named metric helpers used across the bot."""

    @staticmethod
    def event_received(provider: str, kind: str) -> None:
        inc_counter("inbound_events_total", provider=provider, kind=kind)

    @staticmethod
    def session_started() -> None:
        inc_counter("sessions_started_total")

    @staticmethod
    def report_emitted() -> None:
        inc_counter("reports_emitted_total")

    @staticmethod
    def validation_failed(key: str, outcome: str) -> None:
        inc_counter("validation_failures_total", key=key, outcome=outcome)

    @staticmethod
    def geocode_request(status: str) -> None:
        inc_counter("geocode_requests_total", status=status)

    @staticmethod
    def webhook_validation_failed(provider: str) -> None:
        inc_counter("webhook_validation_failures_total", provider=provider)

    @staticmethod
    def track_geocode_time() -> Timer:
        return Timer("geocode_seconds")

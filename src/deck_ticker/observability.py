"""Prometheus metrics and observability helpers for the ticker plugin."""
from __future__ import annotations

import time
from contextlib import contextmanager

from prometheus_client import Counter, Gauge, Histogram, start_http_server

from .config import get_settings

_ENABLED = get_settings().metrics_enabled

_REFRESH_OUTCOMES = Counter(
    "ticker_refresh_total",
    "Refresh attempts by outcome.",
    ["outcome"],
)
_MANUAL_DROPPED = Counter(
    "ticker_manual_refresh_dropped_total",
    "Key presses dropped by the manual refresh cooldown.",
)
_ACTIVE_INSTANCES = Gauge(
    "ticker_active_instances",
    "Number of ticker keys currently visible.",
)
_FETCH_LATENCY = Histogram(
    "ticker_fetch_latency_seconds",
    "Latency of 24h statistics requests.",
    buckets=(0.05, 0.1, 0.2, 0.3, 0.5, 0.75, 1.0, 1.5, 2.0, 3.0, 5.0, 10.0),
)


def set_enabled(enabled: bool) -> None:
    global _ENABLED
    _ENABLED = enabled


def record_refresh(outcome: str) -> None:
    if not _ENABLED:
        return
    _REFRESH_OUTCOMES.labels(outcome=outcome).inc()


def record_manual_dropped() -> None:
    if not _ENABLED:
        return
    _MANUAL_DROPPED.inc()


def set_active_instances(count: int) -> None:
    if not _ENABLED:
        return
    _ACTIVE_INSTANCES.set(count)


@contextmanager
def record_fetch_latency():
    if not _ENABLED:
        yield
        return
    start = time.perf_counter()
    try:
        yield
    finally:
        _FETCH_LATENCY.observe(max(time.perf_counter() - start, 0.0))


def start_metrics_server(port: int) -> None:
    """Expose the default registry over HTTP on ``port``."""
    start_http_server(port)

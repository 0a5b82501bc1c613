"""
Lightweight metrics collection for Matchday.
Wraps prometheus_client with async-safe patterns.
"""
from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import AsyncIterator

from prometheus_client import Counter, Gauge, Histogram, start_http_server

from shared.config import get_settings
from shared.utils.logging import get_logger

logger = get_logger(__name__)

# ── Counters ────────────────────────────────────────────────────────────
FEED_REQUESTS = Counter(
    "md_feed_requests_total",
    "Total feed HTTP requests",
    ["provider", "endpoint", "status"],
)
SYNC_RUNS = Counter(
    "md_sync_runs_total",
    "Total sync runs by result",
    ["result"],
)
SYNC_OUTCOMES = Counter(
    "md_sync_outcomes_total",
    "Per-item reconciliation outcomes",
    ["phase", "kind"],
)

# ── Gauges ──────────────────────────────────────────────────────────────
SCHEDULER_LEADER = Gauge(
    "md_scheduler_leader",
    "1 while this scheduler instance holds the sync leader lock",
)
LAST_SYNC_TIMESTAMP = Gauge(
    "md_last_sync_timestamp_seconds",
    "Unix time the last sync run finished",
    ["result"],
)

# ── Histograms ──────────────────────────────────────────────────────────
FEED_LATENCY = Histogram(
    "md_feed_latency_seconds",
    "Feed request latency in seconds",
    ["provider"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)
SYNC_PHASE_DURATION = Histogram(
    "md_sync_phase_seconds",
    "Duration of one sync phase",
    ["phase"],
    buckets=(0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
)


@asynccontextmanager
async def atrack_latency(histogram: Histogram, **labels: str) -> AsyncIterator[None]:
    """Async context manager to track operation latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        histogram.labels(**labels).observe(elapsed)


def start_metrics_server(port: int | None = None) -> None:
    """Start the Prometheus metrics HTTP server."""
    settings = get_settings()
    if not settings.metrics_enabled:
        return
    metrics_port = port or settings.metrics_port
    try:
        start_http_server(metrics_port)
        logger.info("metrics_server_started", port=metrics_port)
    except OSError as exc:
        logger.warning("metrics_server_failed", error=str(exc), port=metrics_port)

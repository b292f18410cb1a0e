"""
Lightweight metrics collection for the crawler.
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
SCRAPE_REQUESTS = Counter(
    "afpb_scrape_requests_total",
    "Total HTTP requests issued by the crawler",
    ["client", "status"],
)
GAMES_EXTRACTED = Counter(
    "afpb_games_extracted_total",
    "Games extracted from round pages",
    ["edition"],
)
EXTRACTION_FAILURES = Counter(
    "afpb_extraction_failures_total",
    "Game containers skipped because they could not be parsed",
)
RECONCILIATION_DECISIONS = Counter(
    "afpb_reconciliation_decisions_total",
    "Reconciliation outcomes per scraped game",
    ["outcome"],
)
SCORE_FORWARDS = Counter(
    "afpb_score_forwards_total",
    "Score reports sent to the reference API",
    ["result"],
)
CYCLE_ERRORS = Counter(
    "afpb_cycle_errors_total",
    "Crawler cycles that ended with an unhandled error",
)

# ── Histograms ──────────────────────────────────────────────────────────
REQUEST_LATENCY = Histogram(
    "afpb_request_latency_seconds",
    "HTTP request latency in seconds",
    ["client"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)
CYCLE_DURATION = Histogram(
    "afpb_cycle_duration_seconds",
    "Duration of a full scrape/reconcile cycle",
    buckets=(1, 2, 5, 10, 15, 30, 60, 120),
)

# ── Gauges ──────────────────────────────────────────────────────────────
LIVE_GAME_GROUPS = Gauge(
    "afpb_live_game_groups",
    "Game groups reported live by the reference API in the last cycle",
)
CACHE_SIZE = Gauge(
    "afpb_sent_cache_size",
    "Fingerprints held in the sent-results cache",
)


@asynccontextmanager
async def atrack_latency(histogram: Histogram, **labels: str) -> AsyncIterator[None]:
    """Async context manager to track operation latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        if labels:
            histogram.labels(**labels).observe(elapsed)
        else:
            histogram.observe(elapsed)


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

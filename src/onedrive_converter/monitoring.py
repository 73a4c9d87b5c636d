"""Prometheus metrics for conversions and remote calls."""

from __future__ import annotations

import logging

from prometheus_client import Counter, start_http_server

logger = logging.getLogger(__name__)

CONVERSIONS_COMPLETED = Counter(
    "onedrive_conversions_completed_total",
    "Total number of conversions that reached a terminal status",
    labelnames=("status",),
)
REMOTE_CALLS = Counter(
    "onedrive_remote_calls_total",
    "Total number of drive API calls by operation and outcome",
    labelnames=("operation", "outcome"),
)
UPLOAD_ATTEMPTS = Counter(
    "onedrive_upload_attempts_total",
    "Total number of upload attempts by strategy and outcome",
    labelnames=("strategy", "outcome"),
)

_metrics_started = False


def ensure_metrics_server(port: int) -> None:
    global _metrics_started
    if _metrics_started:
        return
    start_http_server(port)
    _metrics_started = True
    logger.info("Prometheus metrics server started", extra={"port": port})


def record_conversion_completed(status: str) -> None:
    CONVERSIONS_COMPLETED.labels(status=status).inc()


def record_remote_call(operation: str, outcome: str) -> None:
    REMOTE_CALLS.labels(operation=operation, outcome=outcome).inc()


def record_upload_attempt(strategy: str, outcome: str) -> None:
    UPLOAD_ATTEMPTS.labels(strategy=strategy, outcome=outcome).inc()

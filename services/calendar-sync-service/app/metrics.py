"""
Prometheus metrics for Calendar Sync Service.

Tracks sync runs, token refreshes, Google API latency and reminders.
"""

import time

from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# Request metrics
http_requests_total = Counter(
    "calendar_sync_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "calendar_sync_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# Sync metrics
sync_runs_total = Counter(
    "calendar_sync_runs_total",
    "Total calendar sync runs",
    ["outcome"],
)

events_processed_total = Counter(
    "calendar_sync_events_processed_total",
    "Google events processed during sync",
    ["result"],
)

token_refresh_total = Counter(
    "calendar_sync_token_refresh_total",
    "Google access token refresh attempts",
    ["status"],
)

google_api_duration_seconds = Histogram(
    "calendar_sync_google_api_duration_seconds",
    "Google API call duration in seconds",
    ["endpoint"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 15.0),
)

# Reminder metrics
reminders_total = Counter(
    "calendar_sync_reminders_total",
    "Event reminders processed",
    ["channel", "status"],
)


class GoogleApiTimer:
    """Context manager timing a single Google API call."""

    def __init__(self, endpoint: str):
        self.endpoint = endpoint
        self.start_time = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.start_time:
            duration = time.perf_counter() - self.start_time
            google_api_duration_seconds.labels(endpoint=self.endpoint).observe(duration)


def track_request_metrics(method: str, endpoint: str, status_code: int, duration: float):
    """Track HTTP request metrics."""
    http_requests_total.labels(method=method, endpoint=endpoint, status=status_code).inc()
    http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(duration)


def record_sync_run(outcome: str):
    """Track a finished sync run (success or the error class name)."""
    sync_runs_total.labels(outcome=outcome).inc()


def record_events_processed(saved: int, skipped: int, failed: int):
    """Track per-event results of a sync run."""
    events_processed_total.labels(result="saved").inc(saved)
    events_processed_total.labels(result="skipped").inc(skipped)
    events_processed_total.labels(result="failed").inc(failed)


def record_token_refresh(success: bool):
    """Track token refresh attempts."""
    status = "success" if success else "failure"
    token_refresh_total.labels(status=status).inc()


def record_reminder(channel: str, status: str):
    """Track reminder deliveries."""
    reminders_total.labels(channel=channel, status=status).inc()


async def metrics_endpoint():
    """
    Prometheus metrics endpoint.

    Returns:
        Response with Prometheus metrics in text format
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

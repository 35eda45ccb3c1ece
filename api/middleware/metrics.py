"""
Prometheus metrics middleware for the lead qualifier API.

Exposes /metrics endpoint with request counters, latency histograms,
and qualification business metrics.
"""

import logging
import time

from fastapi import Request, Response
from prometheus_client import (
    Counter, Histogram, Gauge,
    generate_latest, CONTENT_TYPE_LATEST,
)
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

# Request metrics
REQUEST_COUNT = Counter(
    "lead_qualifier_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)
REQUEST_LATENCY = Histogram(
    "lead_qualifier_http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)
ACTIVE_REQUESTS = Gauge(
    "lead_qualifier_http_active_requests",
    "Currently active HTTP requests",
)

# Business metrics
CLASSIFICATION_COUNT = Counter(
    "lead_qualifier_classification_total",
    "Verdicts returned per user turn",
    ["label"],
)
DEGRADED_COUNT = Counter(
    "lead_qualifier_degraded_verdicts_total",
    "Turns whose provider output could not be parsed",
)
PROVIDER_ERROR_COUNT = Counter(
    "lead_qualifier_provider_errors_total",
    "Reasoning provider call failures",
    ["kind"],
)
LLM_LATENCY = Histogram(
    "lead_qualifier_llm_duration_seconds",
    "Turn evaluation latency",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0],
)
SESSIONS_STARTED = Counter(
    "lead_qualifier_sessions_started_total",
    "Lead sessions opened",
)
SESSIONS_COMPLETED = Counter(
    "lead_qualifier_sessions_completed_total",
    "Lead sessions completed",
    ["label"],
)


def record_classification(label: str):
    """Record the verdict of one turn."""
    CLASSIFICATION_COUNT.labels(label=label).inc()


def record_degraded_verdict():
    DEGRADED_COUNT.inc()


def record_provider_error(kind: str):
    PROVIDER_ERROR_COUNT.labels(kind=kind).inc()


def record_llm_latency(seconds: float):
    """Record turn evaluation latency."""
    LLM_LATENCY.observe(seconds)


def record_session_started():
    SESSIONS_STARTED.inc()


def record_session_completed(label: str):
    SESSIONS_COMPLETED.labels(label=label).inc()


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware that records HTTP request metrics."""

    async def dispatch(self, request: Request, call_next):
        ACTIVE_REQUESTS.inc()
        start = time.time()

        try:
            response = await call_next(request)
        except Exception:
            ACTIVE_REQUESTS.dec()
            raise

        duration = time.time() - start
        route = request.scope.get("route")
        # Templated path keeps session ids out of label values
        endpoint = getattr(route, "path", request.url.path)

        REQUEST_COUNT.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=response.status_code,
        ).inc()
        REQUEST_LATENCY.labels(
            method=request.method,
            endpoint=endpoint,
        ).observe(duration)
        ACTIVE_REQUESTS.dec()

        return response


async def metrics_endpoint(request: Request) -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )

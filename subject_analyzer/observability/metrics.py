# ==== PROMETHEUS METRICS ==== #

"""
Prometheus metrics for the subject analyzer.

These are process-level exporter metrics scraped from ``/metrics``; the
in-process rolling view served by ``/api/performance`` lives in
``subject_analyzer.services.performance``.
"""

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse
from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
    REGISTRY,
    CONTENT_TYPE_LATEST
)


# ==== REQUEST METRICS ==== #

analysis_requests_total = Counter(
    "subject_analysis_requests_total",
    "Total subject analysis requests by outcome",
    ["outcome"]  # success, cache_hit, rate_limited, at_capacity, invalid, error
)

http_request_duration_seconds = Histogram(
    "subject_http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "route", "status_code"]
)


# ==== ADMISSION CONTROL METRICS ==== #

rate_limit_rejections_total = Counter(
    "subject_rate_limit_rejections_total",
    "Requests rejected by the per-client rate limiter"
)

rate_limit_tracked_clients = Gauge(
    "subject_rate_limit_tracked_clients",
    "Client windows currently held by the rate limiter"
)

gate_rejections_total = Counter(
    "subject_gate_rejections_total",
    "Upstream calls rejected because the admission gate was saturated"
)

gate_active_requests = Gauge(
    "subject_gate_active_requests",
    "Upstream calls currently admitted by the gate"
)

retry_attempts_total = Counter(
    "subject_retry_attempts_total",
    "Upstream retry attempts",
    ["operation", "attempt"]
)

retry_failures_total = Counter(
    "subject_retry_failures_total",
    "Upstream calls that failed after all attempts",
    ["operation", "error_type"]
)


# ==== CACHE METRICS ==== #

cache_hits_total = Counter(
    "subject_cache_hits_total",
    "Total response cache hits"
)

cache_misses_total = Counter(
    "subject_cache_misses_total",
    "Total response cache misses"
)

cache_evictions_total = Counter(
    "subject_cache_evictions_total",
    "Cache entries removed",
    ["reason"]  # expired, capacity
)

cache_size = Gauge(
    "subject_cache_size",
    "Entries currently held by the response cache"
)


# ==== AI METRICS ==== #

ai_requests_total = Counter(
    "subject_ai_requests_total",
    "Total AI requests made",
    ["model"]
)

ai_failures_total = Counter(
    "subject_ai_failures_total",
    "Total AI request failures",
    ["error_type"]
)

ai_tokens_total = Counter(
    "subject_ai_tokens_total",
    "Total AI tokens consumed",
    ["model", "type"]  # type: prompt, completion
)

ai_fallback_total = Counter(
    "subject_ai_fallback_total",
    "Responses served with deterministic fallback suggestions",
    ["reason"]  # parse_error, disabled
)


# ==== APPLICATION INFO ==== #

app_info = Info(
    "subject_analyzer_app",
    "Subject analyzer build and environment information"
)


def init_metrics(version: str, environment: str, service_name: str) -> None:
    """Publish static application info.

    Args:
        version: Package version
        environment: Deployment environment name
        service_name: Service name
    """
    app_info.info({
        "version": version,
        "environment": environment,
        "service_name": service_name
    })


# Metrics router for Prometheus scraping
metrics_router = APIRouter()


@metrics_router.get("/metrics", include_in_schema=False)
def get_metrics() -> PlainTextResponse:
    """Expose Prometheus metrics for scraping."""
    return PlainTextResponse(
        generate_latest(REGISTRY).decode("utf-8"),
        media_type=CONTENT_TYPE_LATEST
    )

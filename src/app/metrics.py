from __future__ import annotations

import time

from fastapi import Request
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.responses import Response

from src.app.settings import settings
from src.scan.normalize import normalize_terms

OTHER_TERM_LABEL = "other"

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)
SCANS_TOTAL = Counter(
    "pdf_scans_total",
    "Document scans by outcome",
    ["status"],
)
MATCHES_TOTAL = Counter(
    "pdf_scan_matches_total",
    "Match records produced by scans",
    ["term"],
)
SUMMARY_FAILURES_TOTAL = Counter(
    "pdf_summary_failures_total",
    "Match summaries replaced by the failure sentinel",
)


async def metrics_middleware(request: Request, call_next):
    if not settings.metrics_enabled:
        return await call_next(request)
    if request.url.path == "/metrics":
        return await call_next(request)
    start = time.monotonic()
    status = 500
    try:
        response = await call_next(request)
        status = response.status_code
        return response
    finally:
        duration = time.monotonic() - start
        path = _route_template(request)
        REQUEST_COUNT.labels(request.method, path, str(status)).inc()
        REQUEST_LATENCY.labels(request.method, path).observe(duration)


def _route_template(request: Request) -> str:
    """Label by route template so document IDs do not explode cardinality."""
    route = request.scope.get("route")
    template = getattr(route, "path", None)
    return template if isinstance(template, str) else request.url.path


def _term_label(term: str, tracked: set[str]) -> str:
    """Only configured default terms get their own series."""
    return term if term in tracked else OTHER_TERM_LABEL


def record_scan(status: str, terms: list[str] | None = None, failures: int = 0) -> None:
    """Count a finished scan, its matches per term and failed summaries."""
    if not settings.metrics_enabled:
        return
    SCANS_TOTAL.labels(status).inc()
    tracked = set(normalize_terms(settings.default_terms))
    for term in terms or []:
        MATCHES_TOTAL.labels(_term_label(term, tracked)).inc()
    if failures:
        SUMMARY_FAILURES_TOTAL.inc(failures)


def metrics_response() -> Response:
    if not settings.metrics_enabled:
        return Response(status_code=404)
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

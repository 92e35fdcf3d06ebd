"""
HTTP request metrics for Prometheus
"""
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.routing import Match

from rigidity.core.metrics import (http_errors_total,
                                   http_request_duration_seconds,
                                   http_requests_total)

UNMATCHED_ENDPOINT = "unmatched"


def endpoint_label(request: Request) -> str:
    """Route template serving the request, or a fixed label when none does.

    Label values stay bounded by the route table, so scans of random paths
    do not create new series.
    """
    for route in request.app.routes:
        match, _ = route.matches(request.scope)
        if match is Match.FULL:
            return getattr(route, "path", UNMATCHED_ENDPOINT)
    return UNMATCHED_ENDPOINT


class MetricsMiddleware(BaseHTTPMiddleware):
    """Counts requests, errors and latency per method, route and status"""

    async def dispatch(self, request: Request, call_next):
        if request.url.path == "/metrics":
            return await call_next(request)

        started = time.perf_counter()
        endpoint = endpoint_label(request)
        status_code = 500
        error_type = None
        try:
            response = await call_next(request)
            status_code = response.status_code
        except Exception as e:
            error_type = type(e).__name__
            raise
        finally:
            labels = {
                "method": request.method,
                "endpoint": endpoint,
                "status_code": str(status_code),
            }
            http_requests_total.labels(**labels).inc()
            http_request_duration_seconds.labels(**labels).observe(time.perf_counter() - started)
            if status_code >= 400:
                http_errors_total.labels(
                    **labels, error_type=error_type or f"http_{status_code}"
                ).inc()

        return response

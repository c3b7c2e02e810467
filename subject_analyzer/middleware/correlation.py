# ==== CORRELATION ID MIDDLEWARE ==== #

"""
Correlation ID middleware for request tracing.

Honours an inbound ``X-Correlation-Id`` or generates one, exposes it on
``request.state`` for error handlers and echoes it on the response, and
records request latency per route.
"""

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from subject_analyzer.observability.metrics import http_request_duration_seconds


CORRELATION_HEADER = "X-Correlation-Id"


class CorrelationMiddleware(BaseHTTPMiddleware):
    """Middleware to add correlation IDs to requests and responses."""
    
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        request.state.correlation_id = correlation_id
        
        start_time = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start_time
        
        response.headers[CORRELATION_HEADER] = correlation_id
        
        # Label by route template to keep cardinality bounded
        route = request.scope.get("route")
        http_request_duration_seconds.labels(
            method=request.method,
            route=getattr(route, "path", "unmatched"),
            status_code=str(response.status_code)
        ).observe(duration)
        
        return response

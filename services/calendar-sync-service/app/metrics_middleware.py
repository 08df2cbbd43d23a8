"""
Metrics middleware for FastAPI applications.

Automatically tracks HTTP request metrics for all endpoints.
"""

import time
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware


class PrometheusMiddleware(BaseHTTPMiddleware):
    """
    Middleware to track Prometheus metrics for all HTTP requests.

    Requests to excluded paths (the metrics endpoint itself) are not counted.
    """

    def __init__(self, app, track_func: Callable, excluded_paths: tuple = ("/metrics",)):
        """
        Initialize the middleware.

        Args:
            app: FastAPI application
            track_func: Function called with (method, endpoint, status_code, duration)
            excluded_paths: Paths that are not tracked
        """
        super().__init__(app)
        self.track_func = track_func
        self.excluded_paths = excluded_paths

    async def dispatch(self, request: Request, call_next):
        if request.url.path in self.excluded_paths:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start_time

        # Route template keeps label cardinality bounded
        route = request.scope.get("route")
        endpoint = getattr(route, "path", request.url.path)

        self.track_func(
            method=request.method,
            endpoint=endpoint,
            status_code=response.status_code,
            duration=duration,
        )

        return response

"""
Blog API — Access Log Middleware
=================================

What:  One access-log line per request on the `blog_api.access` logger.
How:   Times the downstream call, then logs method, route, status and
       duration. The request ID is not part of the message; it is added to
       every record by RequestIDLogFilter and rendered by the log format.

Routes are logged by their template (`/posts/{post_id}`) with the concrete
id kept in `extra`, so lines for different posts group together. Request
bodies are never logged, since post content is user data.

Example:
    2024-01-15T12:00:00 [WARNING] blog_api.access [1f0c2a9b]: PUT /posts/{post_id} 400 2.4ms
"""

import logging
import time
from typing import Iterable, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

logger = logging.getLogger("blog_api.access")


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


def route_template(request: Request) -> str:
    """The matched route's path template, or the raw path when nothing matched."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Access logging for the posts API.

    Paths in `quiet_paths` (the health check by default) are not logged.
    An exception escaping the app is logged as a 500 and re-raised for the
    server error handler.
    """

    def __init__(self, app: ASGIApp, quiet_paths: Optional[Iterable[str]] = None) -> None:
        super().__init__(app)
        self.quiet_paths = frozenset(quiet_paths if quiet_paths is not None else ("/health",))

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.quiet_paths:
            return await call_next(request)

        started = time.perf_counter()
        status = 500
        try:
            response = await call_next(request)
            status = response.status_code
            return response
        finally:
            self._log(request, status, (time.perf_counter() - started) * 1000)

    def _log(self, request: Request, status: int, duration_ms: float) -> None:
        route = route_template(request)
        logger.log(
            level_for_status(status),
            "%s %s %d %.1fms",
            request.method,
            route,
            status,
            duration_ms,
            extra={
                "route": route,
                "path_params": dict(request.path_params),
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": request.client.host if request.client else "unknown",
            },
        )

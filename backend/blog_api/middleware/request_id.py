"""
Blog API — Request ID Middleware
=================================

What:  Gives each request a correlation ID, returns it in the X-Request-ID
       header and stamps it on every log record emitted while the request
       is being handled.
How:   RequestIDMiddleware stores the ID in a ContextVar. RequestIDLogFilter,
       installed on the root handler by setup_logging(), copies the ContextVar
       onto each LogRecord as `request_id`, so the log format can use
       %(request_id)s for lines from services, handlers and the access log.
"""

import logging
import re
import uuid
from contextvars import ContextVar
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

# Shape a client-supplied ID must have before it is written into log lines
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._:-]{1,64}$")

# Placeholder for records logged outside any request (startup, shutdown)
NO_REQUEST_ID = "-"

request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


def resolve_request_id(header_value: Optional[str]) -> str:
    """Reuse the client's ID when it is short and log-safe, else make one."""
    if header_value and _VALID_REQUEST_ID.match(header_value):
        return header_value
    return new_request_id()


class RequestIDLogFilter(logging.Filter):
    """Adds `record.request_id` from the current request context."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or NO_REQUEST_ID
        return True


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Binds the request ID for the lifetime of the request.

    The ID is set before the route runs, so the service layer's warnings for
    a rejected post carry the same ID as the error body and response header.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request_id_var.set(request_id)
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

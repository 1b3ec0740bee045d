"""
esgate — Access Log Middleware
==============================

What:  Correlation ID plus one access-log line per gateway request.
How:   The middleware assigns the request ID before the route runs. The global
       exception handlers call `record_engine_failure()`, which leaves the
       failed engine call on `request.state`. The middleware reads it back when
       it writes the log line.

Log line:
    POST /update 500 12.3ms [1f0c2a9e] engine=update data engine_status=404
    GET /get 404 3.1ms [77ab01cd] miss id=99999999

Levels:
    get-by-id miss         → INFO (an expected answer, not a fault)
    engine failure (5xx)   → ERROR
    other 4xx              → WARNING
    success                → INFO
    /health                → only logged when the engine is unreachable

Request bodies are never logged; employee records carry salaries.
"""

import logging
import time
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from esgate.exceptions import DocumentNotFoundError, GatewayError

logger = logging.getLogger("esgate.access")

# Coroutine-local request ID, read by the exception handlers for error payloads
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def record_engine_failure(request: Request, exc: GatewayError) -> None:
    """Leave the failed engine call on the request for the access log line."""
    request.state.engine_action = getattr(exc, "action", None)
    request.state.engine_status = getattr(exc, "status", None)
    if isinstance(exc, DocumentNotFoundError):
        request.state.missed_id = exc.document_id


def describe_outcome(request: Request) -> str:
    """Suffix naming what the engine did wrong, or "" for a clean call."""
    state = request.state
    missed_id = getattr(state, "missed_id", None)
    if missed_id is not None:
        return f" miss id={missed_id}"
    action = getattr(state, "engine_action", None)
    if action is None:
        return ""
    status = getattr(state, "engine_status", None)
    if status is None:
        return f" engine={action}"
    return f" engine={action} engine_status={status}"


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Assigns X-Request-ID and logs each request with its engine outcome."""

    QUIET_PATHS = {"/health"}

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]
        request_id_var.set(rid)
        request.state.request_id = rid

        start_time = time.perf_counter()
        response = await call_next(request)
        response.headers["X-Request-ID"] = rid

        status = response.status_code
        path = request.url.path
        if path in self.QUIET_PATHS and status < 500:
            return response

        missed = getattr(request.state, "missed_id", None) is not None
        if missed:
            level = logging.INFO
        elif status >= 500:
            level = logging.ERROR
        elif status >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO

        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.log(
            level,
            "%s %s %d %.1fms [%s]%s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            describe_outcome(request),
            extra={
                "request_id": rid,
                "route": path,
                "status": status,
                "engine_action": getattr(request.state, "engine_action", None),
                "engine_status": getattr(request.state, "engine_status", None),
            },
        )
        return response

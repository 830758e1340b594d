"""
BookBrief Backend — Request Logging Middleware
================================================

What:  One access-log line per request: method, path, status, duration.
Why:   Uploads are slow (extraction + provider call), so per-request
       duration is the first thing to look at when users report latency.

Level by status:
    5xx → ERROR, 4xx → WARNING, everything else → INFO

Never logged: request bodies (book text, passwords) and the
Authorization header.

Typical durations:
    GET  /books              10-50ms
    POST /books/upload       local mode: <1s; with Gemini: 2-10s
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.middleware.request_id import request_id_var

logger = logging.getLogger("bookbrief.access")

# Probed every few seconds by orchestrators
QUIET_PATHS = frozenset({"/health"})


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        start = time.perf_counter()
        method = request.method
        client_ip = request.client.host if request.client else "unknown"

        try:
            response = await call_next(request)
        except Exception:
            # Handled by the app's catch-all; logged here so the line has a duration
            duration_ms = (time.perf_counter() - start) * 1000
            logger.error(
                "%s %s 500 %.1fms [%s] from %s (unhandled)",
                method, path, duration_ms, request_id_var.get(""), client_ip,
            )
            raise

        duration_ms = (time.perf_counter() - start) * 1000
        status = response.status_code
        if status >= 500:
            level = logging.ERROR
        elif status >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO

        logger.log(
            level,
            "%s %s %d %.1fms [%s] from %s",
            method,
            path,
            status,
            duration_ms,
            request_id_var.get(""),
            client_ip,
            extra={
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
            },
        )
        return response

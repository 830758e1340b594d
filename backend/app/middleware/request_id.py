"""
BookBrief Backend — Request ID Middleware
===========================================

What:  Tags every request with a short correlation id.
How:   Reuses a client-sent X-Request-ID when present, otherwise generates
       one; stores it in a ContextVar for loggers and exception handlers
       and echoes it in the response header.

The id is what clients quote from an error body's "request_id" field;
grepping the logs for it shows the whole ingestion of that upload.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local, so concurrent requests on one event loop don't mix ids
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

MAX_CLIENT_ID_LENGTH = 64


def _new_request_id() -> str:
    return uuid.uuid4().hex[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID", "").strip()
        if not rid or len(rid) > MAX_CLIENT_ID_LENGTH:
            rid = _new_request_id()

        request_id_var.set(rid)
        request.state.request_id = rid
        response = await call_next(request)

        response.headers["X-Request-ID"] = rid
        return response

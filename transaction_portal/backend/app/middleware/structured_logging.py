# backend/app/middleware/structured_logging.py
from __future__ import annotations

import logging
import time
import uuid
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

log = logging.getLogger("portal.request")

REQUEST_ID_HEADER = "X-Request-ID"


@dataclass
class RequestContext:
    """
    Who is calling, for the lifetime of one request.

    The middleware opens it with just the request id; get_principal fills in
    the caller once the identity is resolved. The object is shared (not
    copied) into the threadpool that runs sync handlers, so the caller it
    records is visible to every log line of the request, including the
    final http_request line.
    """

    request_id: str
    user_id: Optional[str] = None
    role: Optional[str] = None


_request_ctx: ContextVar[Optional[RequestContext]] = ContextVar("portal_request", default=None)


def current_request() -> Optional[RequestContext]:
    return _request_ctx.get()


def bind_principal(user_id: str, role: str) -> None:
    ctx = _request_ctx.get()
    if ctx is not None:
        ctx.user_id = user_id
        ctx.role = role


def open_request_context(request_id: str):
    """Returns (context, token); pass the token to close_request_context."""
    ctx = RequestContext(request_id=request_id)
    return ctx, _request_ctx.set(ctx)


def close_request_context(token) -> None:
    _request_ctx.reset(token)


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """
    Opens the request context, echoes X-Request-ID, and writes one
    http_request line per request with the caller bound by get_principal
    (anonymous requests log without user_id/role).
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        rid = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        ctx, token = open_request_context(rid)
        request.state.request_id = rid

        t0 = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers[REQUEST_ID_HEADER] = rid
            return response
        finally:
            log.info(
                "http_request",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": status_code,
                    "latency_ms": int((time.perf_counter() - t0) * 1000),
                    "user_id": ctx.user_id,
                    "role": ctx.role,
                },
            )
            close_request_context(token)

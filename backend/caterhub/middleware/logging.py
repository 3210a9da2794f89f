"""
CaterHub Backend — Request Logging Middleware
===============================================

What:  One access log line per HTTP request.
Why:   Method, path, status, duration and the acting account are enough to
       reconstruct what a caterer's browser did and how long it took.
How:   Times the downstream call, then logs on the "caterhub.access" logger.
       The account comes from `request.state.identity`, which get_identity
       sets once the bearer token has been verified; anonymous requests
       (signup, login, health, files) log "-".

Level by outcome:
    2xx/3xx → INFO, 4xx → WARNING, 5xx → ERROR

What we log vs what we DON'T log (privacy):
    ✅ Log: method, path, status, duration, client IP, request ID, user id
    ❌ Don't log: bodies (passwords at signup/login), Authorization headers
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from caterhub.middleware.request_id import request_id_var

logger = logging.getLogger("caterhub.access")

# Probed every few seconds by the container runtime
QUIET_PATHS = frozenset({"/health"})


def _level_for(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        identity = getattr(request.state, "identity", None)
        user_id = str(identity.user_id) if identity is not None else "-"
        client_ip = request.client.host if request.client else "unknown"
        rid = request_id_var.get("")

        logger.log(
            _level_for(response.status_code),
            "%s %s %d %.1fms [%s] user=%s from %s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            rid,
            user_id,
            client_ip,
            extra={
                "request_id": rid,
                "user_id": user_id,
                "status": response.status_code,
                "duration_ms": round(elapsed_ms, 2),
            },
        )
        return response

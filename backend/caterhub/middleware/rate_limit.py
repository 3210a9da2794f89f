"""
CaterHub Backend — Rate Limiting Middleware
=============================================

What:  Per-IP sliding window limit on the credential endpoints.
Why:   Signup and login run bcrypt and are the target of credential
       stuffing; catalog traffic from a logged-in caterer is not limited.
How:   Keeps the request timestamps of each client IP in memory, drops
       those older than the window, and answers 429 with Retry-After when
       the remaining count reaches the limit.

Algorithm: Sliding Window Counter
    1. Each IP gets a list of request timestamps
    2. On each request, remove timestamps older than the window
    3. If remaining count >= limit, reject with 429
    4. Otherwise, record the current timestamp and continue

Limitations:
    State is per process. With several uvicorn workers each worker keeps
    its own counters, so the effective limit is multiplied by the worker count.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from caterhub.exceptions import RateLimitExceededError
from caterhub.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

DEFAULT_LIMITED_PATHS = ("/auth/signup", "/auth/login")

CLEANUP_EVERY = 1000


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    In-memory sliding window rate limiter.

    Args:
        max_requests:   requests allowed per IP within `window_seconds`
        window_seconds: window length
        paths:          exact paths the limit applies to
    """

    def __init__(
        self,
        app,
        max_requests: int = 20,
        window_seconds: int = 60,
        paths: Optional[Iterable[str]] = None,
    ):
        super().__init__(app)
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.paths = frozenset(paths if paths is not None else DEFAULT_LIMITED_PATHS)
        self._requests: Dict[str, List[float]] = defaultdict(list)
        self._seen = 0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path not in self.paths or request.method == "OPTIONS":
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.time()
        window_start = now - self.window_seconds

        timestamps = [ts for ts in self._requests[client_ip] if ts > window_start]
        self._requests[client_ip] = timestamps

        if len(timestamps) >= self.max_requests:
            retry_after = int(timestamps[0] + self.window_seconds - now) + 1
            logger.warning(
                "Rate limit exceeded for IP %s on %s: %d requests in %ds window",
                client_ip,
                request.url.path,
                len(timestamps),
                self.window_seconds,
            )
            return self._reject(RateLimitExceededError(retry_after=retry_after))

        timestamps.append(now)

        self._seen += 1
        if self._seen % CLEANUP_EVERY == 0:
            self._cleanup_inactive_ips(window_start)

        return await call_next(request)

    @staticmethod
    def _reject(exc: RateLimitExceededError) -> JSONResponse:
        # Raised exceptions do not reach the app's handlers from middleware
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "success": False,
                "error": {
                    "code": exc.code,
                    "message": exc.message,
                    "details": exc.context,
                    "request_id": request_id_var.get("") or None,
                },
            },
            headers={"Retry-After": str(exc.retry_after)},
        )

    def _cleanup_inactive_ips(self, window_start: float) -> None:
        inactive_ips = [
            ip for ip, timestamps in self._requests.items()
            if not timestamps or timestamps[-1] < window_start
        ]
        for ip in inactive_ips:
            del self._requests[ip]

        if inactive_ips:
            logger.debug("Cleaned up %d inactive IP entries", len(inactive_ips))

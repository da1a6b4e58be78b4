"""
Blog Backend - Rate Limiting Middleware
=========================================

What:  Per-client sliding window limit on requests.
How:   Keeps a deque of request timestamps per client IP. Timestamps older
       than the window are dropped on each request; when the remaining count
       reaches the limit the request is answered with 429 and a Retry-After
       header, without a body (same convention as the other error responses).

The counters live in process memory, so each worker enforces its own limit.
"""

import logging
import time
from collections import defaultdict, deque
from typing import Callable, Deque, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.config import settings

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    In-memory sliding window rate limiter.

    Args:
        limit:  Max requests per window (defaults to settings.rate_limit_requests)
        window: Window length in seconds (defaults to settings.rate_limit_window)
        clock:  Time source, injectable for tests
    """

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}
    CLEANUP_EVERY = 1000

    def __init__(
        self,
        app,
        limit: Optional[int] = None,
        window: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(app)
        self.limit = limit or settings.rate_limit_requests
        self.window = window or settings.rate_limit_window
        self.clock = clock
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)
        self._seen = 0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = self.clock()
        hits = self._hits[client_ip]
        while hits and hits[0] <= now - self.window:
            hits.popleft()

        if len(hits) >= self.limit:
            retry_after = int(hits[0] + self.window - now) + 1
            logger.warning(
                "Rate limit exceeded for %s: %d requests in %ds",
                client_ip,
                len(hits),
                self.window,
            )
            return Response(status_code=429, headers={"Retry-After": str(retry_after)})

        hits.append(now)

        self._seen += 1
        if self._seen % self.CLEANUP_EVERY == 0:
            self.forget_idle_clients()

        return await call_next(request)

    def forget_idle_clients(self) -> int:
        """Drop clients with no request inside the window. Returns how many were dropped."""
        cutoff = self.clock() - self.window
        idle = [ip for ip, hits in self._hits.items() if not hits or hits[-1] <= cutoff]
        for ip in idle:
            del self._hits[ip]
        if idle:
            logger.debug("Dropped %d idle rate-limit entries", len(idle))
        return len(idle)

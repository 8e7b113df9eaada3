"""
Cloud Relay — Rate Limiting Middleware
========================================

What:  Per-IP fixed window rate limiter (default 100 requests / 15 minutes).
How:   The counting policy lives in FixedWindowRateLimiter, a plain object
       with an injectable clock; RateLimitMiddleware only maps its decision
       onto HTTP (429 + Retry-After).
When:  First in the middleware chain, before any handler or provider call.

Algorithm: Fixed Window Counter
    1. Each key (client IP) owns a window start time and a hit count
    2. If the window has elapsed, start a new one at the current time
    3. If count >= limit, reject; otherwise count the hit and allow

    Space: O(n) for n distinct keys; expired windows are pruned
    periodically.

Limitations:
    Counters are process-local. Several uvicorn workers each enforce
    their own limit.
"""

import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, Tuple

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests, please try again later."


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of one FixedWindowRateLimiter.hit() call."""

    allowed: bool
    limit: int
    remaining: int
    reset_after: float  # seconds until the current window ends

    @property
    def retry_after(self) -> int:
        """Whole seconds a rejected client should wait (at least 1)."""
        return max(1, math.ceil(self.reset_after))


class FixedWindowRateLimiter:
    """
    Counts hits per key inside fixed windows of `window_seconds`.

    Args:
        limit:           Maximum hits allowed per key per window
        window_seconds:  Window length
        clock:           Monotonic time source; tests pass a fake
        prune_every:     Prune expired keys every N hits

    Only touched from the event loop thread, so no locking.
    """

    def __init__(
        self,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        prune_every: int = 1000,
    ):
        if limit < 1:
            raise ValueError("limit must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._prune_every = prune_every
        self._hits_since_prune = 0
        # key → (window_start, count)
        self._windows: Dict[str, Tuple[float, int]] = {}

    def hit(self, key: str) -> RateLimitDecision:
        """Record one request for `key` and say whether it may proceed."""
        now = self._clock()

        self._hits_since_prune += 1
        if self._hits_since_prune >= self._prune_every:
            self._prune(now)

        window_start, count = self._windows.get(key, (now, 0))
        if now - window_start >= self.window_seconds:
            window_start, count = now, 0

        reset_after = window_start + self.window_seconds - now

        if count >= self.limit:
            self._windows[key] = (window_start, count)
            return RateLimitDecision(
                allowed=False, limit=self.limit, remaining=0, reset_after=reset_after
            )

        count += 1
        self._windows[key] = (window_start, count)
        return RateLimitDecision(
            allowed=True,
            limit=self.limit,
            remaining=self.limit - count,
            reset_after=reset_after,
        )

    def _prune(self, now: float) -> None:
        expired = [
            key
            for key, (window_start, _) in self._windows.items()
            if now - window_start >= self.window_seconds
        ]
        for key in expired:
            del self._windows[key]
        self._hits_since_prune = 0
        if expired:
            logger.debug("Pruned %d expired rate limit windows", len(expired))


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Applies a FixedWindowRateLimiter to every request, keyed by client IP.

    Excluded paths (health probe and API docs) are never counted.
    Limited responses carry X-RateLimit-Limit and X-RateLimit-Remaining;
    rejections add Retry-After.
    """

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    def __init__(self, app, limiter: FixedWindowRateLimiter, **kwargs):
        super().__init__(app, **kwargs)
        self.limiter = limiter

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        # Behind a reverse proxy this is the proxy's address unless uvicorn
        # runs with --proxy-headers.
        client_ip = request.client.host if request.client else "unknown"

        decision = self.limiter.hit(client_ip)
        headers = {
            "X-RateLimit-Limit": str(decision.limit),
            "X-RateLimit-Remaining": str(decision.remaining),
        }

        if not decision.allowed:
            logger.warning(
                "Rate limit exceeded for IP %s (%d requests per %ss)",
                client_ip,
                decision.limit,
                self.limiter.window_seconds,
            )
            headers["Retry-After"] = str(decision.retry_after)
            return JSONResponse(
                status_code=429,
                content={"error": RATE_LIMIT_MESSAGE},
                headers=headers,
            )

        response = await call_next(request)
        response.headers.update(headers)
        return response

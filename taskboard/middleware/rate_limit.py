"""
Taskboard API: Rate Limiting Middleware
========================================

What:  Per-IP sliding window limits.
How:   Each rule keeps, per client IP, the timestamps of requests inside its
       window. A request that would exceed any matching rule gets a 429 with
       a Retry-After header and is recorded by none of them. Runs inside
       RequestIDMiddleware so the 429 body carries the request id.

Rules:
    global   every path except health/docs   rate_limit_requests / rate_limit_window
    login    POST /auth/login                 login_rate_limit_requests / login_rate_limit_window

State is in-process memory: limits apply per worker process.
"""

import logging
import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from taskboard.config import settings
from taskboard.exceptions import RateLimitExceededError
from taskboard.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}


@dataclass
class SlidingWindow:
    """Timestamps of recent requests per client for one rule."""

    name: str
    limit: int
    window: int
    applies_to: Callable[[Request], bool]
    hits: Dict[str, List[float]] = field(default_factory=lambda: defaultdict(list))

    def blocked_for(self, client: str, now: float) -> Optional[int]:
        """Seconds to wait when the window is full, else None. Records nothing."""
        window_start = now - self.window
        recent = [ts for ts in self.hits[client] if ts > window_start]
        self.hits[client] = recent
        if len(recent) >= self.limit:
            return int(recent[0] + self.window - now) + 1
        return None

    def record(self, client: str, now: float) -> None:
        self.hits[client].append(now)

    def prune(self, now: float) -> None:
        """Forget clients with no hits inside the window."""
        window_start = now - self.window
        for client in [c for c, ts in self.hits.items() if not ts or ts[-1] <= window_start]:
            del self.hits[client]


def _is_login(request: Request) -> bool:
    return request.method == "POST" and request.url.path == "/auth/login"


def default_rules() -> List[SlidingWindow]:
    return [
        SlidingWindow(
            name="login",
            limit=settings.login_rate_limit_requests,
            window=settings.login_rate_limit_window,
            applies_to=_is_login,
        ),
        SlidingWindow(
            name="global",
            limit=settings.rate_limit_requests,
            window=settings.rate_limit_window,
            applies_to=lambda request: True,
        ),
    ]


class RateLimitMiddleware(BaseHTTPMiddleware):
    PRUNE_EVERY = 1000

    def __init__(self, app, rules: Optional[List[SlidingWindow]] = None, **kwargs):
        super().__init__(app, **kwargs)
        self.rules = rules if rules is not None else default_rules()
        self._seen = 0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in EXCLUDED_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.time()
        matching = [rule for rule in self.rules if rule.applies_to(request)]

        # a rejected request counts against no rule
        for rule in matching:
            retry_after = rule.blocked_for(client_ip, now)
            if retry_after is not None:
                logger.warning(
                    "Rate limit '%s' exceeded for IP %s (%d per %ds)",
                    rule.name,
                    client_ip,
                    rule.limit,
                    rule.window,
                )
                exc = RateLimitExceededError(retry_after, context={"rule": rule.name})
                return JSONResponse(
                    status_code=429,
                    content={
                        "error": "rate_limit_exceeded",
                        "message": exc.message,
                        "details": exc.context,
                        "request_id": request_id_var.get(""),
                    },
                    headers={"Retry-After": str(exc.retry_after)},
                )

        for rule in matching:
            rule.record(client_ip, now)

        self._seen += 1
        if self._seen % self.PRUNE_EVERY == 0:
            for rule in self.rules:
                rule.prune(now)

        return await call_next(request)

from __future__ import annotations

import logging
import threading
import time

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.types import ASGIApp, Receive, Scope, Send

from billbook.settings import settings

logger = logging.getLogger(__name__)


class SlidingWindowLimiter:
    """In-memory sliding-window counter per key (usually a client IP)."""

    def __init__(self, max_events: int, window_seconds: float) -> None:
        self.max_events = max_events
        self.window_seconds = window_seconds
        self._events: dict[str, list[float]] = {}
        self._lock = threading.Lock()
        self._last_sweep = time.monotonic()

    def _recent(self, key: str, now: float) -> list[float]:
        events = [t for t in self._events.get(key, []) if now - t < self.window_seconds]
        if events:
            self._events[key] = events
        else:
            self._events.pop(key, None)
        return events

    def _sweep(self, now: float) -> None:
        # Keys are otherwise pruned only when seen again; drop idle ones once per window.
        if now - self._last_sweep < self.window_seconds:
            return
        idle = [key for key, events in self._events.items() if not events or now - events[-1] >= self.window_seconds]
        for key in idle:
            del self._events[key]
        self._last_sweep = now
        if idle:
            logger.debug("Rate limiter: dropped %d idle keys", len(idle))

    def is_limited(self, key: str) -> bool:
        """Check if ``key`` is locked out, without recording anything."""
        if self.max_events <= 0:
            return False
        with self._lock:
            return len(self._recent(key, time.monotonic())) >= self.max_events

    def hit(self, key: str) -> None:
        with self._lock:
            now = time.monotonic()
            self._sweep(now)
            events = self._recent(key, now)
            events.append(now)
            self._events[key] = events

    def allow(self, key: str) -> bool:
        """Record an event for ``key`` unless it is already over the limit."""
        if self.max_events <= 0:
            return True
        with self._lock:
            now = time.monotonic()
            self._sweep(now)
            events = self._recent(key, now)
            if len(events) >= self.max_events:
                return False
            events.append(now)
            self._events[key] = events
            return True

    def clear(self, key: str) -> None:
        with self._lock:
            self._events.pop(key, None)

    def reset(self) -> None:
        with self._lock:
            self._events.clear()


api_limiter = SlidingWindowLimiter(settings.rate_limit_requests, settings.rate_limit_window_seconds)
login_limiter = SlidingWindowLimiter(settings.login_max_attempts, settings.login_lockout_seconds)


def client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware:
    """Pure ASGI middleware — throttles ``/api/*`` requests per client IP."""

    def __init__(self, app: ASGIApp, limiter: SlidingWindowLimiter = api_limiter, prefix: str = "/api/") -> None:
        self.app = app
        self.limiter = limiter
        self.prefix = prefix

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or not scope["path"].startswith(self.prefix):
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)
        ip = client_ip(request)
        if not self.limiter.allow(ip):
            logger.warning("Rate limit exceeded: %s %s from %s", request.method, request.url.path, ip)
            response = JSONResponse(
                {"success": False, "message": "Too many requests, please try again later."},
                status_code=429,
            )
            await response(scope, receive, send)
            return
        await self.app(scope, receive, send)

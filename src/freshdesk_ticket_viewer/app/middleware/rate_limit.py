from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from time import monotonic

from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Receive, Scope, Send

from freshdesk_ticket_viewer.config.settings import RateLimitSettings, Settings

# Every request under these prefixes costs one upstream call or more.
_API_PREFIXES = ("/tickets", "/attachments", "/search")
_METRICS_PATH = "/metrics"
_MAX_EVICTIONS_PER_CALL = 2000


@dataclass
class _Bucket:
    tokens: float
    updated_at: float

    def take(self, now: float, *, rps: float, burst: float) -> bool:
        if rps > 0:
            elapsed = max(0.0, now - self.updated_at)
            self.tokens = min(burst, self.tokens + elapsed * rps)
        self.updated_at = now
        if self.tokens < 1.0:
            return False
        self.tokens -= 1.0
        return True


class _TokenBucketLimiter:
    """Per-client token buckets held in memory; least recently used clients are evicted."""

    def __init__(
        self,
        *,
        rps: float,
        burst: int,
        max_entries: int = 10_000,
        now: Callable[[], float] = monotonic,
    ) -> None:
        self._rps = float(rps)
        self._burst = float(burst)
        self._max_entries = int(max_entries)
        self._now = now
        self._lock = asyncio.Lock()
        self._buckets: dict[str, _Bucket] = {}

    def _evict_stale(self) -> None:
        excess = len(self._buckets) - self._max_entries + 1
        if excess <= 0:
            return
        oldest = sorted(self._buckets, key=lambda k: self._buckets[k].updated_at)
        for key in oldest[: min(excess, _MAX_EVICTIONS_PER_CALL)]:
            del self._buckets[key]

    async def allow(self, key: str) -> bool:
        now = float(self._now())
        async with self._lock:
            bucket = self._buckets.get(key)
            if bucket is None:
                self._evict_stale()
                bucket = self._buckets[key] = _Bucket(tokens=self._burst, updated_at=now)
            return bucket.take(now, rps=self._rps, burst=self._burst)


def _client_key(scope: Scope) -> str:
    client = scope.get("client")
    if client and isinstance(client[0], str) and client[0]:
        return client[0]
    return "unknown"


_RATE_LIMITED_BODY = {"error": "Too Many Requests", "details": "rate_limited", "code": "rate_limited"}


class RateLimitMiddleware:
    def __init__(self, app: ASGIApp, *, settings: Settings | None) -> None:
        self.app = app
        config = (
            settings.hardening.rate_limit
            if settings is not None
            else RateLimitSettings(enabled=False)
        )
        self._include_metrics = config.include_metrics
        self._limiter = (
            _TokenBucketLimiter(rps=config.rps, burst=config.burst) if config.enabled else None
        )

    def _is_limited_path(self, path: str) -> bool:
        if path == _METRICS_PATH:
            return self._include_metrics
        return any(path == prefix or path.startswith(prefix + "/") for prefix in _API_PREFIXES)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if (
            scope["type"] == "http"
            and self._limiter is not None
            and self._is_limited_path(scope.get("path", ""))
            and not await self._limiter.allow(_client_key(scope))
        ):
            response = JSONResponse(status_code=429, content=_RATE_LIMITED_BODY)
            await response(scope, receive, send)
            return

        await self.app(scope, receive, send)

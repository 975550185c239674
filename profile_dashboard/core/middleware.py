from collections import deque
from collections.abc import Awaitable
from collections.abc import Callable
from threading import RLock
from time import monotonic

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response


class GitHubProxyRateLimitMiddleware(BaseHTTPMiddleware):
    """In-memory per-client rate limiter for routes that call GitHub."""

    def __init__(
        self,
        app,
        requests_per_window: int = 30,
        window_seconds: int = 60,
        path_prefix: str = "/users/",
    ) -> None:
        super().__init__(app)
        # Invalid config values (0 or negatives) fall back to 1.
        self.max_requests = max(1, requests_per_window)
        self.window_seconds = max(1, window_seconds)
        self.path_prefix = path_prefix
        # One queue of request timestamps per client key.
        self._ip_buckets: dict[str, deque[float]] = {}
        self._next_sweep = monotonic() + self.window_seconds
        self._lock = RLock()

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        # 1) Only routes that reach GitHub are limited.
        if request.method != "GET" or not request.url.path.startswith(
            self.path_prefix
        ):
            return await call_next(request)

        ip = self._client_ip(request)
        now = monotonic()
        cutoff = now - self.window_seconds

        with self._lock:
            # 2) Once per window, drop clients that have gone quiet.
            if now >= self._next_sweep:
                self._sweep(cutoff)
                self._next_sweep = now + self.window_seconds

            # 3) Evict this client's timestamps outside the window.
            bucket = self._ip_buckets.setdefault(ip, deque())
            self._evict(bucket, cutoff)

            # 4) Over the limit: answer 429 with Retry-After.
            if len(bucket) >= self.max_requests:
                retry_after = max(1, int(self.window_seconds - (now - bucket[0])))
                return JSONResponse(
                    status_code=429,
                    content={"detail": "Too Many Requests"},
                    headers={"Retry-After": str(retry_after)},
                )

            # 5) Count the request and pass it on.
            bucket.append(now)

        return await call_next(request)

    def _sweep(self, cutoff: float) -> None:
        for ip in list(self._ip_buckets):
            bucket = self._ip_buckets[ip]
            self._evict(bucket, cutoff)
            if not bucket:
                del self._ip_buckets[ip]

    @staticmethod
    def _evict(bucket: deque[float], cutoff: float) -> None:
        while bucket and bucket[0] <= cutoff:
            bucket.popleft()

    @staticmethod
    def _client_ip(request: Request) -> str:
        # Reverse proxies usually set X-Forwarded-For.
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip() or "unknown"

        if request.client and request.client.host:
            return request.client.host

        return "unknown"

"""
Fixed-window rate limiter for the inventory service.
"""

import math
import time
from typing import Any, Callable, Dict, Iterable, Optional, TYPE_CHECKING

from fastapi import Request

from shared.logging import get_logger
from shared.errors import StoreUnavailableError
from ..caching.keys import rate_limit_key

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector
    from ..store.redis_store import KeyValueStore


class FixedWindowRateLimiter:
    """Per-identity request counters bucketed by wall-clock window.

    Windows are fixed, not sliding: ``limit`` requests at the end of one
    window followed by ``limit`` more at the start of the next are all
    admitted. Callers size their limits with that 2x boundary burst in mind.

    The identity is an opaque string. Two callers reporting the same one
    (say, behind a shared proxy) share a counter.
    """

    def __init__(
        self,
        store: "KeyValueStore",
        *,
        clock: Callable[[], float] = time.time,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.store = store
        self.clock = clock
        self.metrics = metrics
        self.logger = get_logger("inventory.rate_limiter")

    def bucket(self, window_seconds: int) -> int:
        """Number of the fixed window containing the current time."""
        return self._bucket_at(self.clock(), window_seconds)

    @staticmethod
    def _bucket_at(now: float, window_seconds: int) -> int:
        return math.floor(now / window_seconds)

    def seconds_until_reset(self, window_seconds: int) -> int:
        now = self.clock()
        bucket_end = (self._bucket_at(now, window_seconds) + 1) * window_seconds
        return max(1, math.ceil(bucket_end - now))

    async def allow(self, identity: str, limit: int, window_seconds: int) -> bool:
        """Count one request for ``identity`` and report whether it is within ``limit``.

        Store errors propagate; the limiter does not pick fail-open or fail-closed.
        """
        key = rate_limit_key(identity, self.bucket(window_seconds))
        count = await self.store.increment(key)
        if count == 1:
            # First hit in this window created the counter
            await self.store.expire(key, window_seconds)

        allowed = count <= limit
        if self.metrics:
            self.metrics.increment_counter(
                "rate_limit_decisions_total",
                decision="allowed" if allowed else "rejected",
            )
        if not allowed:
            self.logger.warning("Rate limit exceeded", identity=identity, count=count, limit=limit)
        return allowed


class RateLimitMiddleware:
    """Applies the limiter to HTTP requests and owns the store-outage policy."""

    def __init__(
        self,
        rate_limiter: FixedWindowRateLimiter,
        *,
        limit: int,
        window_seconds: int,
        fail_open: bool = False,
        exempt_paths: Iterable[str] = (),
    ):
        self.rate_limiter = rate_limiter
        self.limit = limit
        self.window_seconds = window_seconds
        self.fail_open = fail_open
        self.exempt_paths = set(exempt_paths)
        self.logger = get_logger("inventory.rate_limit_middleware")

    async def check_request(self, request: Request) -> Dict[str, Any]:
        """Check rate limit for request."""
        identity = self._get_client_id(request)
        result: Dict[str, Any] = {
            "identity": identity,
            "limit": self.limit,
            "retry_after": self.rate_limiter.seconds_until_reset(self.window_seconds),
        }

        if request.url.path in self.exempt_paths:
            result["allowed"] = True
            result["exempt"] = True
            return result

        try:
            result["allowed"] = await self.rate_limiter.allow(identity, self.limit, self.window_seconds)
        except StoreUnavailableError as e:
            self.logger.error(
                "Rate limiter store unavailable",
                identity=identity,
                fail_open=self.fail_open,
                error=str(e),
            )
            result["allowed"] = self.fail_open
            result["error"] = e.code

        return result

    def _get_client_id(self, request: Request) -> str:
        """Extract client ID from request."""
        forwarded_for = request.headers.get('X-Forwarded-For')
        if isinstance(forwarded_for, str) and forwarded_for:
            return forwarded_for.split(',')[0].strip()

        real_ip = request.headers.get('X-Real-IP')
        if isinstance(real_ip, str) and real_ip:
            return real_ip

        return request.client.host if request.client else 'unknown'

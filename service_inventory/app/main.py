"""
Inventory service: HTTP shell around the cache-aside layer and rate limiter.
"""

import time
from typing import Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from shared.base_service import BaseService
from shared.config import ServiceConfig
from shared.errors import RateLimitError, StoreReadError, StoreUnavailableError
from shared.logging import request_id_var, set_identity
from shared.metrics import MetricsCollector

from .caching.coordinator import CacheAsideCoordinator
from .ratelimit.fixed_window import FixedWindowRateLimiter, RateLimitMiddleware
from .store.redis_store import RedisKeyValueStore


HEALTH_PROBE_KEY = "health:test:key"
HEALTH_PROBE_TTL = 5


class InventoryService(BaseService):
    """Inventory service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        store=None,
        metrics: Optional[MetricsCollector] = None,
    ):
        super().__init__("inventory", 8020, config=config, metrics=metrics)

        self.store = store or RedisKeyValueStore(
            self.config.redis_url,
            socket_timeout=self.config.redis_socket_timeout,
            socket_connect_timeout=self.config.redis_connect_timeout,
            health_check_interval=self.config.redis_health_check_interval,
        )
        self.cache = CacheAsideCoordinator(
            self.store,
            metrics=self.metrics,
            coalesce_misses=self.config.cache_coalesce_misses,
        )
        self.rate_limiter = FixedWindowRateLimiter(self.store, metrics=self.metrics)
        self.rate_limit = RateLimitMiddleware(
            self.rate_limiter,
            limit=self.config.rate_limit_requests,
            window_seconds=self.config.rate_limit_window_seconds,
            fail_open=self.config.rate_limit_fail_open,
            exempt_paths=self.config.rate_limit_exempt_paths,
        )

        self._setup_inventory_routes()

    async def startup(self):
        await self.store.start()
        self.logger.info(
            "Inventory service started",
            coalesce_misses=self.cache.coalesce_misses,
            rate_limit=self.rate_limit.limit,
            rate_limit_window_seconds=self.rate_limit.window_seconds,
        )

    async def shutdown(self):
        await self.store.stop()

    def _setup_service_middleware(self):
        """Reject requests over the per-identity budget before any cache access."""

        @self.app.middleware("http")
        async def enforce_rate_limit(request: Request, call_next):
            decision = await self.rate_limit.check_request(request)
            set_identity(decision["identity"])

            if not decision["allowed"] and "error" in decision:
                error = StoreUnavailableError("Rate limiter unavailable")
                return JSONResponse(
                    status_code=503,
                    content=error.to_response(request_id_var.get()).model_dump(),
                )

            if not decision["allowed"]:
                error = RateLimitError(details={
                    "limit": decision["limit"],
                    "retry_after": decision["retry_after"],
                })
                return JSONResponse(
                    status_code=429,
                    content=error.to_response(request_id_var.get()).model_dump(),
                    headers={"Retry-After": str(decision["retry_after"])},
                )

            return await call_next(request)

    def _setup_inventory_routes(self):
        """Set up inventory-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "inventory",
                "message": "Inventory - cache-aside access layer",
                "version": "1.0.0",
                "capabilities": ["cache_aside", "versioned_invalidation", "rate_limiting"]
            }

        @self.app.get("/cache/health")
        async def cache_health():
            """Round-trip a probe key through the store."""
            try:
                pong = await self.store.ping()
                value = {"ok": True, "t": int(time.time() * 1000)}
                await self.store.set(HEALTH_PROBE_KEY, value, HEALTH_PROBE_TTL)
                read_back = await self.store.get(HEALTH_PROBE_KEY)
            except (StoreUnavailableError, StoreReadError) as e:
                self.logger.error("Cache health check failed", error=str(e))
                return JSONResponse(status_code=500, content={"error": "Redis health failed"})

            return {
                "redis": "PONG" if pong is True else pong,
                "set_get_ok": bool(isinstance(read_back, dict) and read_back.get("ok")),
            }

    async def _check_dependencies(self) -> Dict[str, str]:
        healthy = await self.store.health_check()
        return {"redis": "ok" if healthy else "unavailable"}


def create_app():
    """Create inventory service application."""
    service = InventoryService()
    return service.app


if __name__ == "__main__":
    service = InventoryService()
    service.run()

"""
Key-value store contract and its Redis adapter.
"""

import json
from typing import Any, Optional, Protocol, runtime_checkable

import redis.asyncio as redis
from redis.exceptions import RedisError

from shared.logging import get_logger
from shared.errors import StoreReadError, StoreUnavailableError


@runtime_checkable
class KeyValueStore(Protocol):
    """Operations the cache layer needs from a remote key-value service.

    ``get`` returns ``None`` for a missing key and never raises for one.
    ``increment`` must be atomic across concurrent callers; the first call on
    an absent key returns 1.
    """

    async def get(self, key: str) -> Optional[Any]: ...

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None: ...

    async def increment(self, key: str) -> int: ...

    async def expire(self, key: str, ttl_seconds: int) -> None: ...


class RedisKeyValueStore:
    """Redis-backed key-value store with JSON-encoded values.

    One instance is constructed at process start, started, handed to every
    component that needs it and stopped at shutdown.
    """

    def __init__(
        self,
        redis_url: str,
        *,
        socket_timeout: float = 5.0,
        socket_connect_timeout: float = 5.0,
        health_check_interval: int = 30,
        client: Optional[redis.Redis] = None,
    ):
        self.redis_url = redis_url
        self.socket_timeout = socket_timeout
        self.socket_connect_timeout = socket_connect_timeout
        self.health_check_interval = health_check_interval
        self.logger = get_logger("inventory.store.redis")
        self.redis: Optional[redis.Redis] = client

    async def start(self):
        """Open the connection pool and verify the server answers."""
        if self.redis is None:
            self.redis = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=self.socket_connect_timeout,
                socket_timeout=self.socket_timeout,
                health_check_interval=self.health_check_interval,
            )

        try:
            await self.redis.ping()
        except RedisError as e:
            self.logger.error("Failed to start Redis store", error=str(e))
            raise StoreUnavailableError(f"Redis ping failed: {e}") from e

        self.logger.info("Redis store started")

    async def stop(self):
        """Close the connection pool."""
        if self.redis is not None:
            await self.redis.aclose()
            self.redis = None
            self.logger.info("Redis store stopped")

    def _client(self) -> redis.Redis:
        if self.redis is None:
            raise StoreUnavailableError("Redis store has not been started")
        return self.redis

    async def get(self, key: str) -> Optional[Any]:
        """Return the decoded value stored at ``key`` or ``None``."""
        try:
            raw = await self._client().get(key)
        except RedisError as e:
            self.logger.error("Store get failed", key=key, error=str(e))
            raise StoreUnavailableError(str(e), {"operation": "get", "key": key}) from e
        except UnicodeDecodeError as e:
            # decode_responses makes the client decode before JSON parsing
            self.logger.error("Store value is not valid UTF-8", key=key, error=str(e))
            raise StoreReadError(details={"key": key}) from e

        if raw is None:
            return None

        try:
            return json.loads(raw)
        except (TypeError, ValueError) as e:
            self.logger.error("Store value could not be decoded", key=key, error=str(e))
            raise StoreReadError(details={"key": key}) from e

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Store ``value`` at ``key`` with an expiry, replacing any prior value."""
        payload = json.dumps(value)
        try:
            await self._client().set(key, payload, ex=ttl_seconds)
        except RedisError as e:
            self.logger.error("Store set failed", key=key, error=str(e))
            raise StoreUnavailableError(str(e), {"operation": "set", "key": key}) from e

    async def increment(self, key: str) -> int:
        """Atomically increment the counter at ``key`` and return the new value."""
        try:
            return int(await self._client().incr(key))
        except RedisError as e:
            self.logger.error("Store increment failed", key=key, error=str(e))
            raise StoreUnavailableError(str(e), {"operation": "increment", "key": key}) from e

    async def expire(self, key: str, ttl_seconds: int) -> None:
        """Assign or refresh a TTL on ``key`` without touching its value."""
        try:
            await self._client().expire(key, ttl_seconds)
        except RedisError as e:
            self.logger.error("Store expire failed", key=key, error=str(e))
            raise StoreUnavailableError(str(e), {"operation": "expire", "key": key}) from e

    async def ping(self) -> Any:
        """Send PING and return the server's reply."""
        try:
            return await self._client().ping()
        except RedisError as e:
            raise StoreUnavailableError(str(e), {"operation": "ping"}) from e

    async def health_check(self) -> bool:
        """Check Redis health."""
        try:
            await self.ping()
            return True
        except StoreUnavailableError:
            return False

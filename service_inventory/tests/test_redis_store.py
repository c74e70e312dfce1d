"""
Unit tests for the Redis key-value store adapter.
"""

import json
import pytest
from unittest.mock import AsyncMock

from redis.exceptions import ConnectionError as RedisConnectionError, TimeoutError as RedisTimeoutError

from service_inventory.app.store.redis_store import KeyValueStore, RedisKeyValueStore
from shared.errors import StoreReadError, StoreUnavailableError
from shared.test_helpers import FakeClock, InMemoryKeyValueStore


class TestRedisKeyValueStore:
    """Test cases for RedisKeyValueStore."""

    @pytest.fixture
    def mock_redis(self):
        return AsyncMock()

    @pytest.fixture
    def store(self, mock_redis):
        return RedisKeyValueStore("redis://localhost:6379/0", client=mock_redis)

    def test_satisfies_contract(self, store):
        assert isinstance(store, KeyValueStore)

    @pytest.mark.asyncio
    async def test_start_pings(self, store, mock_redis):
        await store.start()
        mock_redis.ping.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_start_failure_raises(self, store, mock_redis):
        mock_redis.ping.side_effect = RedisConnectionError("refused")

        with pytest.raises(StoreUnavailableError):
            await store.start()

    @pytest.mark.asyncio
    async def test_stop_closes_client(self, store, mock_redis):
        await store.stop()

        mock_redis.aclose.assert_awaited_once()
        assert store.redis is None

    @pytest.mark.asyncio
    async def test_use_before_start_raises(self):
        store = RedisKeyValueStore("redis://localhost:6379/0")

        with pytest.raises(StoreUnavailableError):
            await store.get("orders:ord-1")

    @pytest.mark.asyncio
    async def test_get_decodes_json(self, store, mock_redis):
        mock_redis.get.return_value = json.dumps({"id": "ord-1", "total": 12.5})

        assert await store.get("orders:ord-1") == {"id": "ord-1", "total": 12.5}
        mock_redis.get.assert_awaited_once_with("orders:ord-1")

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, store, mock_redis):
        mock_redis.get.return_value = None
        assert await store.get("orders:missing") is None

    @pytest.mark.asyncio
    async def test_get_counter_decodes_integer(self, store, mock_redis):
        """Counters written by INCR come back as bare integers."""
        mock_redis.get.return_value = "7"
        assert await store.get("prefix:products:version") == 7

    @pytest.mark.asyncio
    async def test_get_undecodable_raises_read_error(self, store, mock_redis):
        mock_redis.get.return_value = "{not json"

        with pytest.raises(StoreReadError) as exc_info:
            await store.get("orders:ord-1")

        assert exc_info.value.details == {"key": "orders:ord-1"}

    @pytest.mark.asyncio
    async def test_get_non_utf8_payload_raises_read_error(self, store, mock_redis):
        """The client decodes responses, so invalid UTF-8 fails inside the GET call."""
        mock_redis.get.side_effect = UnicodeDecodeError("utf-8", b"\xff\xfe", 0, 1, "invalid start byte")

        with pytest.raises(StoreReadError) as exc_info:
            await store.get("orders:bad")

        assert exc_info.value.code == "STORE_READ_ERROR"
        assert exc_info.value.details == {"key": "orders:bad"}

    @pytest.mark.asyncio
    async def test_get_network_error_raises(self, store, mock_redis):
        mock_redis.get.side_effect = RedisTimeoutError("timed out")

        with pytest.raises(StoreUnavailableError) as exc_info:
            await store.get("orders:ord-1")

        assert exc_info.value.code == "STORE_UNAVAILABLE"
        assert exc_info.value.details["operation"] == "get"

    @pytest.mark.asyncio
    async def test_set_encodes_json_with_expiry(self, store, mock_redis):
        await store.set("products:TSV-1", {"sku": "TSV-1"}, 300)

        mock_redis.set.assert_awaited_once_with("products:TSV-1", '{"sku": "TSV-1"}', ex=300)

    @pytest.mark.asyncio
    async def test_increment(self, store, mock_redis):
        mock_redis.incr.return_value = 1

        assert await store.increment("ratelimit:ip1:1") == 1
        mock_redis.incr.assert_awaited_once_with("ratelimit:ip1:1")

    @pytest.mark.asyncio
    async def test_expire(self, store, mock_redis):
        await store.expire("ratelimit:ip1:1", 60)
        mock_redis.expire.assert_awaited_once_with("ratelimit:ip1:1", 60)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("operation,args", [
        ("set", ("k", 1, 5)),
        ("increment", ("k",)),
        ("expire", ("k", 5)),
    ])
    async def test_write_errors_raise(self, store, mock_redis, operation, args):
        mock_redis.set.side_effect = RedisConnectionError("reset")
        mock_redis.incr.side_effect = RedisConnectionError("reset")
        mock_redis.expire.side_effect = RedisConnectionError("reset")

        with pytest.raises(StoreUnavailableError):
            await getattr(store, operation)(*args)

    @pytest.mark.asyncio
    async def test_health_check(self, store, mock_redis):
        assert await store.health_check() is True

        mock_redis.ping.side_effect = RedisConnectionError("refused")
        assert await store.health_check() is False


class TestStoreContract:
    """Contract behaviour exercised against the in-memory double."""

    @pytest.mark.asyncio
    async def test_value_expires_after_ttl(self):
        clock = FakeClock()
        store = InMemoryKeyValueStore(clock=clock)

        await store.set("k", {"ok": True}, 2)
        assert await store.get("k") == {"ok": True}

        clock.advance(3)
        assert await store.get("k") is None

    @pytest.mark.asyncio
    async def test_first_increment_returns_one(self):
        store = InMemoryKeyValueStore(clock=FakeClock())

        assert await store.increment("c") == 1
        assert await store.increment("c") == 2

    @pytest.mark.asyncio
    async def test_expire_keeps_value(self):
        clock = FakeClock()
        store = InMemoryKeyValueStore(clock=clock)
        await store.increment("c")

        await store.expire("c", 10)

        assert await store.get("c") == 1
        assert store.ttl("c") == pytest.approx(10)

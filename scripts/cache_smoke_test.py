#!/usr/bin/env python3
"""
Smoke-test cache-aside reads against the configured Redis.

Calls ``get_or_set`` twice on the same key with a counting fetcher. The first
call should miss and populate, the second should hit without fetching.
"""

import argparse
import asyncio
import json
import os
import random
import sys
import time

from service_inventory.app.caching.coordinator import CacheAsideCoordinator
from service_inventory.app.store.redis_store import RedisKeyValueStore


async def run(redis_url: str, ttl: int) -> dict:
    """Execute the smoke test and return a summary."""
    store = RedisKeyValueStore(redis_url)
    await store.start()
    try:
        coordinator = CacheAsideCoordinator(store)
        fetcher_runs = 0

        async def fetcher():
            nonlocal fetcher_runs
            fetcher_runs += 1
            return {"value": random.random()}

        key = f"unit:test:key:{int(time.time() * 1000)}"
        first = await coordinator.get_or_set(key, fetcher, ttl)
        second = await coordinator.get_or_set(key, fetcher, ttl)

        return {
            "key": key,
            "equal": json.dumps(first, sort_keys=True) == json.dumps(second, sort_keys=True),
            "fetcher_runs": fetcher_runs,
        }
    finally:
        await store.stop()


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Smoke-test cache-aside reads against Redis.")
    parser.add_argument("--redis-url", default=os.getenv("INVENTORY_REDIS_URL", "redis://localhost:6379/0"), help="Redis connection URL")
    parser.add_argument("--ttl", type=int, default=60, help="TTL of the test key in seconds")
    return parser.parse_args()


def main() -> int:
    args = _parse_args()
    try:
        summary = asyncio.run(run(args.redis_url, args.ttl))
    except KeyboardInterrupt:
        return 130
    except Exception as exc:  # pragma: no cover - CLI surface
        print(f"[cache-smoke] failed: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(summary, indent=2))
    return 0 if summary["equal"] and summary["fetcher_runs"] == 1 else 2


if __name__ == "__main__":
    raise SystemExit(main())

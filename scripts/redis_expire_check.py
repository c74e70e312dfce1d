#!/usr/bin/env python3
"""
Check that the configured Redis honours key expiry.

Writes a probe key with a 2 second TTL, reads it back immediately, waits 3
seconds and reads it again. The second read should print ``None``.
"""

import argparse
import asyncio
import os
import sys
import time

from service_inventory.app.store.redis_store import RedisKeyValueStore


async def check(redis_url: str, ttl: int, wait: float) -> bool:
    """Run the expiry probe and report whether the key expired."""
    store = RedisKeyValueStore(redis_url)
    await store.start()
    try:
        key = f"test:expire:{int(time.time() * 1000)}"
        await store.set(key, {"ok": True}, ttl)
        first = await store.get(key)
        print("read immediately:", first)

        await asyncio.sleep(wait)
        second = await store.get(key)
        print(f"read after {wait:g}s (should be None):", second)
        return first is not None and second is None
    finally:
        await store.stop()


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Verify Redis key expiry against the configured store.")
    parser.add_argument("--redis-url", default=os.getenv("INVENTORY_REDIS_URL", "redis://localhost:6379/0"), help="Redis connection URL")
    parser.add_argument("--ttl", type=int, default=2, help="TTL of the probe key in seconds")
    parser.add_argument("--wait", type=float, default=3.0, help="Seconds to wait before the second read")
    return parser.parse_args()


def main() -> int:
    args = _parse_args()
    try:
        ok = asyncio.run(check(args.redis_url, args.ttl, args.wait))
    except KeyboardInterrupt:
        return 130
    except Exception as exc:  # pragma: no cover - CLI surface
        print(f"[expire-check] failed: {exc}", file=sys.stderr)
        return 1

    return 0 if ok else 2


if __name__ == "__main__":
    raise SystemExit(main())

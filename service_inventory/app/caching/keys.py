"""
Cache key naming for the inventory service.

Every persisted key the cache layer writes is built here. Monitoring tools
scan these prefixes, so the string formats are stable.

Free-text components are shortened with a 32-bit djb2-xor hash rendered in
base 36. Two different queries can collide; when they do the second one is
served the first one's cached page until its TTL runs out. That is accepted
in exchange for short keys and is not a reason to widen the hash.
"""

import json
from typing import Any, Mapping

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"

ORDERS_NAMESPACE = "orders"
PRODUCTS_NAMESPACE = "products"
STOCK_NAMESPACE = "stock"
SEARCH_NAMESPACE = "search"
RATE_LIMIT_NAMESPACE = "ratelimit"

# Increment on every product mutation to orphan cached listing pages
PRODUCTS_VERSION_KEY = "prefix:products:version"


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def hash_text(text: str) -> str:
    """Hash ``text`` with djb2-xor (seed 5381, multiplier 33) to base 36.

    The hash walks UTF-16 code units and folds to unsigned 32 bits after
    each step, so keys match those written by other clients of the store.
    """
    h = 5381
    encoded = text.encode("utf-16-le", "surrogatepass")
    for i in range(0, len(encoded), 2):
        code_unit = encoded[i] | (encoded[i + 1] << 8)
        h = ((h * 33) ^ code_unit) & 0xFFFFFFFF
    return _to_base36(h)


def filter_hash(filters: Mapping[str, Any]) -> str:
    """Hash a listing filter mapping independent of key order."""
    canonical = json.dumps(filters, sort_keys=True, separators=(",", ":"), default=str)
    return hash_text(canonical)


def entity_key(namespace: str, identifier: str) -> str:
    return f"{namespace}:{identifier}"


def order_key(order_id: str) -> str:
    return entity_key(ORDERS_NAMESPACE, order_id)


def product_key(sku: str) -> str:
    # Keyed by SKU so writers can derive it from domain data alone
    return entity_key(PRODUCTS_NAMESPACE, sku)


def stock_key(sku: str) -> str:
    return entity_key(STOCK_NAMESPACE, sku)


def search_key(query: str, page: int) -> str:
    return f"{SEARCH_NAMESPACE}:{hash_text(query)}:{page}"


def versioned_key(namespace: str, version: int, page: int, filter_digest: str) -> str:
    """Listing key that embeds the collection version read at request time."""
    return f"{namespace}:v{version}:{page}:{filter_digest}"


def versioned_products_key(version: int, page: int, filter_digest: str) -> str:
    return versioned_key(PRODUCTS_NAMESPACE, version, page, filter_digest)


def rate_limit_key(identity: str, bucket: int) -> str:
    return f"{RATE_LIMIT_NAMESPACE}:{identity}:{bucket}"


def namespace_of(key: str) -> str:
    """Return the leading namespace segment of a key, used as a metric label."""
    return key.split(":", 1)[0]

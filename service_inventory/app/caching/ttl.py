"""
Time-to-live table for cached inventory entities.

Entities that change often, or whose staleness is operationally risky like a
stock count, get short TTLs. Master data that rarely changes gets long ones.
"""

from enum import IntEnum


class TTL(IntEnum):
    """TTL in seconds per cached entity class."""

    ORDER = 60
    PRODUCT = 300
    STOCK = 10
    SEARCH = 180

    @classmethod
    def for_entity(cls, entity: str) -> int:
        """Look up a TTL by entity class name, e.g. ``"product"``."""
        try:
            return int(cls[entity.upper()])
        except KeyError:
            raise ValueError(f"No TTL configured for entity class {entity!r}") from None

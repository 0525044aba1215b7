"""
TTL cache for loaded graphs.

An explicit, injectable component: the loader receives one instead of
reaching for a module-level singleton, and tests pass a fake clock.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Generic, Hashable, Optional, TypeVar

from ..config import CACHE_TTL_SECONDS

logger = logging.getLogger(__name__)

V = TypeVar("V")

Clock = Callable[[], float]


@dataclass(frozen=True)
class CacheItem(Generic[V]):
    """
    A cached value.

    Attributes:
        value: The cached value.
        stored_at: Clock reading when the value was stored.
    """

    value: V
    stored_at: float


class TTLCache(Generic[V]):
    """
    Key/value cache whose entries expire `max_age` seconds after being set.

    Example:
        cache = TTLCache(max_age=300, clock=time.monotonic)
        cache.set("pkg-1", graph)
        cache.get("pkg-1")  # graph, until five minutes have passed
    """

    def __init__(self, max_age: float = CACHE_TTL_SECONDS, clock: Clock = time.monotonic):
        if max_age <= 0:
            raise ValueError("max_age must be positive")
        self.max_age = max_age
        self._clock = clock
        self._items: Dict[Hashable, CacheItem[V]] = {}

    def get(self, key: Hashable) -> Optional[V]:
        """Return the value for `key`, or None if missing or expired."""
        item = self._items.get(key)
        if item is None:
            return None
        if self._clock() - item.stored_at >= self.max_age:
            logger.debug(f"Cache entry expired: {key!r}")
            del self._items[key]
            return None
        return item.value

    def set(self, key: Hashable, value: V) -> None:
        self._items[key] = CacheItem(value=value, stored_at=self._clock())

    def clear(self) -> None:
        self._items.clear()

    def __contains__(self, key: Hashable) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._items)

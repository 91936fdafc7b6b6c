# src/api_client/cache/memory.py

import logging
import threading
import time
from typing import Callable, Dict, Optional, Tuple

from .base import CacheInterface, validate_key

logger = logging.getLogger(__name__)


class MemoryCache(CacheInterface):
    """
    In-process кэш с TTL.

    Thread-safe. При переполнении удаляет 10% самых старых записей.

    Args:
        max_size: Максимальное количество записей
        clock: Источник времени (для тестов)
    """

    def __init__(self, max_size: int = 1000, clock: Optional[Callable[[], float]] = None):
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        self.max_size = max_size
        self._clock = clock or time.monotonic
        # key -> (value, stored_at, expires_at)
        self._entries: Dict[str, Tuple[str, float, Optional[float]]] = {}
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0

    def _live_entry(self, key: str) -> Optional[Tuple[str, float, Optional[float]]]:
        """Должен вызываться внутри lock!"""
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at = entry[2]
        if expires_at is not None and self._clock() >= expires_at:
            del self._entries[key]
            return None
        return entry

    def _evict_if_needed(self):
        """Должен вызываться внутри lock!"""
        if len(self._entries) < self.max_size:
            return

        to_remove = max(1, len(self._entries) // 10)
        oldest = sorted(self._entries, key=lambda k: self._entries[k][1])
        for key in oldest[:to_remove]:
            del self._entries[key]

        logger.debug(f"Cache eviction: removed {to_remove} entries, size now {len(self._entries)}")

    def has(self, key: str) -> bool:
        validate_key(key)
        with self._lock:
            return self._live_entry(key) is not None

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        validate_key(key)
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                self._misses += 1
                return default
            self._hits += 1
            return entry[0]

    def set(self, key: str, value: str, ttl: Optional[int] = None) -> bool:
        validate_key(key)
        with self._lock:
            if ttl is not None and ttl <= 0:
                self._entries.pop(key, None)
                return True

            self._entries.pop(key, None)
            self._evict_if_needed()
            now = self._clock()
            expires_at = now + ttl if ttl is not None else None
            self._entries[key] = (value, now, expires_at)
        return True

    def delete(self, key: str) -> bool:
        validate_key(key)
        with self._lock:
            self._entries.pop(key, None)
        return True

    def clear(self) -> bool:
        with self._lock:
            self._entries.clear()
        logger.info("Cache cleared")
        return True

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    @property
    def hits(self) -> int:
        return self._hits

    @property
    def misses(self) -> int:
        return self._misses

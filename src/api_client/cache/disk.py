# src/api_client/cache/disk.py

from typing import Optional

from diskcache import Cache

from .base import CacheInterface, validate_key


class DiskCache(CacheInterface):
    """
    Персистентный кэш на диске (diskcache).

    Записи переживают перезапуск процесса; истекшие записи
    diskcache отбрасывает сам.

    Args:
        cache_dir: Директория кэша
        size_limit: Максимальный размер в байтах (по умолчанию 1 GB)

    Example:
        >>> cache = DiskCache(".api_cache")
        >>> client = ApiClient("https://api.test/", cache=cache)
        >>> client.get_cached("/items", "items", ttl=3600)
    """

    def __init__(self, cache_dir: str = ".api_cache", size_limit: Optional[int] = None):
        self.cache_dir = cache_dir
        self.size_limit = size_limit if size_limit is not None else 2**30
        self._cache = Cache(
            directory=cache_dir,
            size_limit=self.size_limit,
            eviction_policy="least-recently-used",
        )

    def has(self, key: str) -> bool:
        return validate_key(key) in self._cache

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self._cache.get(validate_key(key), default=default)

    def set(self, key: str, value: str, ttl: Optional[int] = None) -> bool:
        validate_key(key)
        if ttl is not None and ttl <= 0:
            self._cache.delete(key)
            return True
        return bool(self._cache.set(key, value, expire=ttl))

    def delete(self, key: str) -> bool:
        self._cache.delete(validate_key(key))
        return True

    def clear(self) -> bool:
        self._cache.clear()
        return True

    def close(self) -> None:
        self._cache.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

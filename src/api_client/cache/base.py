# src/api_client/cache/base.py
"""Cache capability used by ApiClient.get_cached()."""

from abc import ABC, abstractmethod
from typing import Any, Optional

from ..core.exceptions import InvalidCacheKeyError

# Символы, запрещенные в ключах
RESERVED_KEY_CHARACTERS = frozenset('{}()/\\@:')


def validate_key(key: Any) -> str:
    """
    Проверить ключ кэша.

    Raises:
        InvalidCacheKeyError: ключ не строка, пустой или содержит
                              зарезервированные символы
    """
    if not isinstance(key, str):
        raise InvalidCacheKeyError(key, "key must be a string")
    if not key:
        raise InvalidCacheKeyError(key, "key must not be empty")
    reserved = RESERVED_KEY_CHARACTERS.intersection(key)
    if reserved:
        raise InvalidCacheKeyError(key, f"reserved characters {''.join(sorted(reserved))!r}")
    return key


class CacheInterface(ABC):
    """
    Хранилище строк по ключу с TTL.

    ttl=None - без срока жизни; ttl <= 0 - значение сразу считается
    устаревшим и удаляется.
    """

    @abstractmethod
    def has(self, key: str) -> bool:
        pass

    @abstractmethod
    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        pass

    @abstractmethod
    def set(self, key: str, value: str, ttl: Optional[int] = None) -> bool:
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        pass

    @abstractmethod
    def clear(self) -> bool:
        pass

"""Cache backends for ApiClient.get_cached()."""

from .base import CacheInterface, validate_key
from .memory import MemoryCache
from .disk import DiskCache

__all__ = [
    "CacheInterface",
    "MemoryCache",
    "DiskCache",
    "validate_key",
]

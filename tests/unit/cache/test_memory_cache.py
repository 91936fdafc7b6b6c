"""
Tests for MemoryCache.
"""

import threading

import pytest

from conftest import FakeClock
from src.api_client.cache.base import validate_key
from src.api_client.cache.memory import MemoryCache
from src.api_client.core.exceptions import InvalidCacheKeyError


class TestMemoryCache:
    """Test MemoryCache basics."""

    def test_set_get(self, memory_cache):
        memory_cache.set("a", "1")
        assert memory_cache.has("a")
        assert memory_cache.get("a") == "1"

    def test_get_default(self, memory_cache):
        assert memory_cache.get("missing", "fallback") == "fallback"

    def test_ttl_expiry(self, memory_cache, clock):
        memory_cache.set("a", "1", ttl=10)
        clock.advance(9)
        assert memory_cache.get("a") == "1"
        clock.advance(1)
        assert memory_cache.get("a") is None
        assert memory_cache.size == 0

    def test_no_ttl_never_expires(self, memory_cache, clock):
        memory_cache.set("a", "1")
        clock.advance(10 ** 9)
        assert memory_cache.has("a")

    @pytest.mark.parametrize("ttl", [0, -5])
    def test_non_positive_ttl_deletes(self, memory_cache, ttl):
        memory_cache.set("a", "1")
        memory_cache.set("a", "2", ttl=ttl)
        assert not memory_cache.has("a")

    def test_delete_and_clear(self, memory_cache):
        memory_cache.set("a", "1")
        memory_cache.set("b", "2")
        memory_cache.delete("a")
        assert not memory_cache.has("a")
        memory_cache.clear()
        assert memory_cache.size == 0

    def test_hits_and_misses(self, memory_cache):
        memory_cache.set("a", "1")
        memory_cache.get("a")
        memory_cache.get("b")
        assert memory_cache.hits == 1
        assert memory_cache.misses == 1

    def test_eviction_removes_oldest(self):
        clock = FakeClock()
        cache = MemoryCache(max_size=10, clock=clock)
        for i in range(10):
            cache.set(f"k{i}", str(i))
            clock.advance(1)

        cache.set("new", "x")

        assert not cache.has("k0")
        assert cache.has("k1")
        assert cache.has("new")
        assert cache.size == 10

    def test_invalid_max_size(self):
        with pytest.raises(ValueError):
            MemoryCache(max_size=0)

    def test_thread_safety(self):
        cache = MemoryCache(max_size=1000)

        def worker(n):
            for i in range(100):
                cache.set(f"t{n}-{i}", str(i))
                cache.get(f"t{n}-{i}")

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert cache.size == 500


class TestValidateKey:
    """Test cache key validation."""

    @pytest.mark.parametrize("key", ["", "a/b", "a:b", "{a}", "(a)", "a@b", "a\\b", None, 1])
    def test_invalid(self, key):
        with pytest.raises(InvalidCacheKeyError):
            validate_key(key)

    @pytest.mark.parametrize("key", ["items", "item-1", "items_page.2"])
    def test_valid(self, key):
        assert validate_key(key) == key

    def test_cache_methods_validate(self, memory_cache):
        with pytest.raises(InvalidCacheKeyError):
            memory_cache.set("a:b", "1")

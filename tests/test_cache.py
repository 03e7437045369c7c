"""Test the LRU response cache"""

import pytest

from remotify.core.cache import ResponseCache


class TestResponseCache:
    """Test capacity and recency handling"""

    def test_insert_past_capacity_evicts_oldest(self):
        cache = ResponseCache(capacity=3)
        for key in ("a", "b", "c", "d"):
            cache.put(key, key.upper())

        assert len(cache) == 3
        assert not cache.contains("a")
        assert [k for k in cache] == ["b", "c", "d"]

    def test_get_bumps_recency(self):
        cache = ResponseCache(capacity=3)
        cache.put("a", 1)
        cache.put("b", 2)
        cache.put("c", 3)

        assert cache.get("a") == 1
        cache.put("d", 4)

        assert cache.contains("a")
        assert not cache.contains("b")

    def test_peek_and_contains_do_not_bump(self):
        cache = ResponseCache(capacity=2)
        cache.put("a", 1)
        cache.put("b", 2)

        assert cache.peek("a") == 1
        assert cache.contains("a")
        cache.put("c", 3)

        assert not cache.contains("a")
        assert cache.peek("b") == 2

    def test_replacing_existing_key_does_not_evict(self):
        cache = ResponseCache(capacity=2)
        cache.put("a", 1)
        cache.put("b", 2)
        cache.put("a", 10)

        assert len(cache) == 2
        assert cache.peek("a") == 10
        cache.put("c", 3)
        assert not cache.contains("b")

    def test_pop_and_missing_keys(self):
        cache = ResponseCache(capacity=2)
        cache.put("a", 1)

        assert cache.pop("a") == 1
        assert cache.pop("a") is None
        assert cache.get("missing") is None
        assert len(cache) == 0

    def test_default_capacity(self):
        cache = ResponseCache()
        for i in range(65):
            cache.put(str(i), i)
        assert len(cache) == 64
        assert not cache.contains("0")

    @pytest.mark.parametrize("capacity", [0, -1])
    def test_rejects_non_positive_capacity(self, capacity):
        with pytest.raises(ValueError):
            ResponseCache(capacity=capacity)

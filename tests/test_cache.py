import pytest

from arcade_filemaker.cache import TTLCache


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


class TestTTLCache:
    """Tests for TTLCache"""

    def test_get_before_and_after_expiry(self, clock):
        cache = TTLCache(clock=clock)
        cache.set("customers", {"count": 3}, ttl_seconds=10)

        clock.now += 9.9
        lookup = cache.get("customers")
        assert lookup.found is True
        assert lookup.value == {"count": 3}

        clock.now += 0.1
        assert cache.get("customers").found is False
        assert cache.stats() == {"size": 0, "keys": []}

    def test_set_replaces_value_and_ttl(self, clock):
        cache = TTLCache(clock=clock)
        cache.set("k", 1, ttl_seconds=1)
        clock.now += 0.5
        cache.set("k", 2, ttl_seconds=5)
        clock.now += 1

        assert cache.get("k").value == 2

    def test_missing_key(self, clock):
        assert TTLCache(clock=clock).get("nope").found is False

    def test_delete_clear_and_stats(self, clock):
        cache = TTLCache(clock=clock)
        cache.set("a", 1, ttl_seconds=60)
        cache.set("b", 2, ttl_seconds=60)

        assert cache.stats() == {"size": 2, "keys": ["a", "b"]}
        assert cache.delete("a") is True
        assert cache.delete("a") is False
        assert cache.clear() == 1
        assert cache.stats()["size"] == 0

    def test_rejects_non_positive_ttl(self, clock):
        with pytest.raises(ValueError):
            TTLCache(clock=clock).set("k", 1, ttl_seconds=0)

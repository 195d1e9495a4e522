import pytest

from app.services.cache import TTLCache


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


async def test_value_is_served_until_ttl_elapses():
    clock = FakeClock()
    cache = TTLCache(ttl_seconds=300, clock=clock)
    await cache.set("k", {"v": 1})

    clock.now += 299
    assert await cache.get("k") == {"v": 1}

    clock.now += 1
    assert await cache.get("k") is None
    assert len(cache) == 0


async def test_least_recently_used_entry_is_evicted():
    cache = TTLCache(ttl_seconds=60, max_entries=2, clock=FakeClock())
    await cache.set("a", 1)
    await cache.set("b", 2)
    assert await cache.get("a") == 1  # "b" is now oldest
    await cache.set("c", 3)

    assert await cache.get("b") is None
    assert await cache.get("a") == 1
    assert await cache.get("c") == 3
    assert cache.stats()["evictions"] == 1


async def test_get_or_set_calls_factory_once_per_ttl():
    clock = FakeClock()
    cache = TTLCache(ttl_seconds=10, clock=clock)
    calls = []

    async def factory():
        calls.append(1)
        return len(calls)

    assert await cache.get_or_set("k", factory) == (1, False)
    assert await cache.get_or_set("k", factory) == (1, True)
    clock.now += 10
    assert await cache.get_or_set("k", factory) == (2, False)
    assert len(calls) == 2


async def test_factory_failure_stores_nothing():
    cache = TTLCache(ttl_seconds=10, clock=FakeClock())

    async def failing():
        raise RuntimeError("upstream down")

    with pytest.raises(RuntimeError):
        await cache.get_or_set("k", failing)
    assert len(cache) == 0


async def test_none_result_is_not_cached():
    cache = TTLCache(ttl_seconds=10, clock=FakeClock())
    calls = []

    async def nothing():
        calls.append(1)
        return None

    assert await cache.get_or_set("k", nothing) == (None, False)
    assert await cache.get_or_set("k", nothing) == (None, False)
    assert len(calls) == 2
    assert cache.stats()["size"] == 0


def test_make_key_normalizes_parts():
    assert TTLCache.make_key(" Paris ", 5, "Address,Place", "US") == "paris:5:address,place:us"


def test_rejects_invalid_bounds():
    with pytest.raises(ValueError):
        TTLCache(ttl_seconds=0)
    with pytest.raises(ValueError):
        TTLCache(ttl_seconds=10, max_entries=0)

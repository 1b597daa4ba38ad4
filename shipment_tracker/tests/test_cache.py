"""
Token cache tests.
"""

import pytest

from shipment_tracker.app.services.cache import TTLCache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.mark.asyncio
async def test_entry_expires_after_ttl(clock):
    cache = TTLCache(clock=clock)
    await cache.set("token:maersk", "abc", ttl_seconds=60)

    clock.now += 59
    assert await cache.get("token:maersk") == "abc"

    clock.now += 1
    assert await cache.get("token:maersk") is None
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_non_positive_ttl_is_not_stored(clock):
    cache = TTLCache(clock=clock)
    await cache.set("token:gocomet", "abc", ttl_seconds=0)

    assert await cache.get("token:gocomet") is None


@pytest.mark.asyncio
async def test_delete_and_clear(clock):
    cache = TTLCache(clock=clock)
    await cache.set("a", 1)
    await cache.set("b", 2)

    await cache.delete("a")
    assert await cache.get("a") is None
    assert await cache.get("b") == 2

    await cache.clear()
    assert await cache.get("b") is None


@pytest.mark.asyncio
async def test_caches_are_independent():
    first, second = TTLCache(), TTLCache()
    await first.set("token", "one")

    assert await second.get("token") is None

import fakeredis
import pytest

from comandera.services.cache_service import OrderCacheService


async def test_set_json_applies_ttl(cache, redis_client):
    await cache.set_json("orders:5", {"id": 5})

    assert await cache.get_json("orders:5") == {"id": 5}
    ttl = await redis_client.ttl("orders:5")
    assert 0 < ttl <= 3600


async def test_invalidate_order_drops_order_and_listing(cache, redis_client):
    await cache.set_json(OrderCacheService.ALL_ORDERS_KEY, [{"id": 5}])
    await cache.set_json(OrderCacheService.order_key(5), {"id": 5})
    await cache.set_json(OrderCacheService.order_key(6), {"id": 6})

    await cache.invalidate_order(5)

    assert await redis_client.exists(OrderCacheService.ALL_ORDERS_KEY) == 0
    assert await redis_client.exists("orders:5") == 0
    assert await redis_client.exists("orders:6") == 1


async def test_fill_stores_value_when_nothing_was_invalidated(cache, redis_client):
    generation = await cache.generation()

    assert await cache.fill(OrderCacheService.ALL_ORDERS_KEY, [{"id": 5}], generation) is True
    assert await cache.get_json(OrderCacheService.ALL_ORDERS_KEY) == [{"id": 5}]
    assert 0 < await redis_client.ttl(OrderCacheService.ALL_ORDERS_KEY) <= 3600


async def test_fill_is_dropped_after_an_invalidation(cache, redis_client):
    generation = await cache.generation()
    await cache.invalidate_order(5)

    assert await cache.fill(OrderCacheService.ALL_ORDERS_KEY, [{"id": 5}], generation) is False
    assert await redis_client.exists(OrderCacheService.ALL_ORDERS_KEY) == 0
    assert await cache.generation() == generation + 1


async def test_corrupt_entry_is_treated_as_miss(cache, redis_client):
    await redis_client.set("orders:7", b"{not json")

    assert await cache.get_json("orders:7") is None
    assert await redis_client.exists("orders:7") == 0


async def test_outage_is_swallowed(redis_server):
    redis_server.connected = False
    client = fakeredis.FakeAsyncRedis(server=redis_server)
    cache = OrderCacheService(client)

    await cache.set_json("orders:1", {"id": 1})
    assert await cache.get_json("orders:1") is None
    await cache.invalidate_order(1)
    assert await cache.generation() is None
    assert await cache.fill("orders:1", {"id": 1}, 0) is False
    await cache.close()

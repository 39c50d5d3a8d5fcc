"""Tests for the time-based feed cache."""

import asyncio

import pytest

from app.core.exceptions import QueryError
from app.core.feed.cache import FeedCache
from app.core.feed.models import FeedConfig
from app.core.feed.service import generate_feed_xml
from factories import FakeShopifyClient, page_data, product_node


class CountingBuilder:
    def __init__(self, delay: float = 0.0):
        self.calls = 0
        self.delay = delay
        self.fail_with = None

    async def __call__(self) -> str:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_with:
            raise self.fail_with
        return f"<SHOP>{self.calls}</SHOP>"


@pytest.mark.asyncio
async def test_second_call_within_ttl_does_not_query_shopify(clock):
    client = FakeShopifyClient([page_data([product_node()])])
    config = FeedConfig(public_domain="shop.example.cz")
    cache = FeedCache(lambda: generate_feed_xml(client, config), ttl=900, clock=clock)

    first = await cache.get_feed()
    clock.advance(899)
    second = await cache.get_feed()

    assert first == second
    assert len(client.calls) == 1


@pytest.mark.asyncio
async def test_rebuild_after_expiry(clock):
    builder = CountingBuilder()
    cache = FeedCache(builder, ttl=900, clock=clock)

    assert await cache.get_feed() == "<SHOP>1</SHOP>"
    clock.advance(900)
    assert await cache.get_feed() == "<SHOP>2</SHOP>"
    assert builder.calls == 2
    assert cache.peek().expires_at == clock.now + 900


@pytest.mark.asyncio
async def test_concurrent_misses_share_one_build():
    builder = CountingBuilder(delay=0.01)
    cache = FeedCache(builder, ttl=900)

    results = await asyncio.gather(*(cache.get_feed() for _ in range(5)))

    assert builder.calls == 1
    assert set(results) == {"<SHOP>1</SHOP>"}


@pytest.mark.asyncio
async def test_failed_build_keeps_previous_entry(clock):
    builder = CountingBuilder()
    cache = FeedCache(builder, ttl=60, clock=clock)
    await cache.get_feed()
    previous = cache.peek()

    clock.advance(61)
    builder.fail_with = QueryError("Access denied")
    with pytest.raises(QueryError):
        await cache.get_feed()

    assert cache.peek() is previous
    # next request tries again rather than reusing the failure
    builder.fail_with = None
    assert await cache.get_feed() == "<SHOP>3</SHOP>"


@pytest.mark.asyncio
async def test_failed_first_build_leaves_cache_empty(clock):
    builder = CountingBuilder()
    builder.fail_with = QueryError("nope")
    cache = FeedCache(builder, clock=clock)

    with pytest.raises(QueryError):
        await cache.get_feed()
    assert cache.peek() is None
    assert cache.expires_in() is None


@pytest.mark.asyncio
async def test_invalidate_forces_rebuild(clock):
    builder = CountingBuilder()
    cache = FeedCache(builder, ttl=900, clock=clock)
    await cache.get_feed()

    cache.invalidate()
    await cache.get_feed()

    assert builder.calls == 2


@pytest.mark.asyncio
async def test_expires_in(clock):
    cache = FeedCache(CountingBuilder(), ttl=900, clock=clock)
    await cache.get_feed()
    clock.advance(100)
    assert cache.expires_in() == 800
    clock.advance(1000)
    assert cache.expires_in() == 0

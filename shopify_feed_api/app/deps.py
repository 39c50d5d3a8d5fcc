"""
Dependency injection for FastAPI.
"""

import functools
from typing import Optional

import httpx

from app.config import get_settings
from app.core.auth import AccessTokenProvider, exchange_client_credentials
from app.core.feed import FeedCache, generate_feed_xml
from app.core.shopify_client import ShopifyClient


_http_client: Optional[httpx.AsyncClient] = None
_shopify_client: Optional[ShopifyClient] = None
_feed_cache: Optional[FeedCache] = None


async def get_http_client() -> httpx.AsyncClient:
    """Shared outbound HTTP client (singleton)."""
    global _http_client
    if _http_client is None:
        settings = get_settings()
        _http_client = httpx.AsyncClient(
            timeout=settings.http_timeout_seconds,
            follow_redirects=True
        )
    return _http_client


async def get_shopify_client() -> ShopifyClient:
    """Shopify Admin GraphQL client (singleton) with its token provider."""
    global _shopify_client
    if _shopify_client is None:
        settings = get_settings()
        http = await get_http_client()
        exchange = functools.partial(
            exchange_client_credentials,
            http,
            settings.shop_myshopify_domain,
            settings.shopify_client_id,
            settings.shopify_client_secret
        )
        _shopify_client = ShopifyClient(
            shop_domain=settings.shop_myshopify_domain,
            token_provider=AccessTokenProvider(exchange),
            api_version=settings.shopify_api_version,
            http=http
        )
    return _shopify_client


async def get_feed_cache() -> FeedCache:
    """Process-wide feed cache (singleton)."""
    global _feed_cache
    if _feed_cache is None:
        settings = get_settings()
        client = await get_shopify_client()
        feed_config = settings.feed_config()

        async def build() -> str:
            return await generate_feed_xml(client, feed_config)

        _feed_cache = FeedCache(build, ttl=settings.feed_cache_ttl_seconds)
    return _feed_cache


async def close_clients():
    """Close outbound connections and drop singletons."""
    global _http_client, _shopify_client, _feed_cache
    if _http_client:
        await _http_client.aclose()
    _http_client = None
    _shopify_client = None
    _feed_cache = None

"""Shared pytest fixtures for the feed API tests."""

import pytest

from app.config import reset_settings
from factories import FakeClock, RecordingSleep


REQUIRED_ENV = {
    "SHOP_MYSHOPIFY_DOMAIN": "test-shop.myshopify.com",
    "SHOP_PUBLIC_DOMAIN": "shop.example.cz",
    "SHOPIFY_CLIENT_ID": "client-id",
    "SHOPIFY_CLIENT_SECRET": "client-secret",
}


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def shop_env(monkeypatch):
    """Required environment for Settings."""
    for key, value in REQUIRED_ENV.items():
        monkeypatch.setenv(key, value)
    reset_settings()
    yield REQUIRED_ENV
    reset_settings()

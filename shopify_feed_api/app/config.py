"""
Configuration management for the Shopify feed API.
"""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

from app.core.feed.models import FeedConfig


class Settings(BaseSettings):
    """Application settings, read from the environment and .env."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Required
    shop_myshopify_domain: str = Field(..., min_length=1)  # creedperfumesamples.myshopify.com
    shop_public_domain: str = Field(..., min_length=1)  # smelltoimpress.cz
    shopify_client_id: str = Field(..., min_length=1)
    shopify_client_secret: str = Field(..., min_length=1)

    port: int = 3000
    shopify_api_version: str = "2025-07"
    http_timeout_seconds: float = 30.0
    log_level: str = "INFO"

    # Zboží: 0 = immediately, 1 = next day, 3 = ~3 days
    delivery_date_default: int = Field(default=3, ge=0)
    feed_cache_ttl_seconds: float = Field(default=900.0, ge=0)

    feed_locale: str = "cs"
    feed_market_country: str = "CZ"
    feed_skip_unpriced: bool = True
    feed_prefer_priced_variant: bool = False
    feed_max_alternative_images: int = Field(default=10, ge=0)
    feed_description_limit: int = Field(default=320, ge=3)

    def feed_config(self) -> FeedConfig:
        return FeedConfig(
            public_domain=self.shop_public_domain,
            delivery_date=self.delivery_date_default,
            locale=self.feed_locale,
            market_country=self.feed_market_country,
            skip_unpriced=self.feed_skip_unpriced,
            prefer_priced_variant=self.feed_prefer_priced_variant,
            max_alternative_images=self.feed_max_alternative_images,
            description_limit=self.feed_description_limit,
        )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get application settings.

    Raises:
        pydantic.ValidationError: If a required variable is missing.
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Forget loaded settings (tests, reload)."""
    global _settings
    _settings = None

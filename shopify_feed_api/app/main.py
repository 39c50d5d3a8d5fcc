"""
FastAPI application entry point.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.responses import PlainTextResponse

from app.api.feeds import router as feeds_router
from app.config import get_settings
from app.core.feed import FeedCache
from app.core.security import sanitize_dict_for_logging
from app.deps import close_clients, get_feed_cache
from app.schemas.feed import HealthResponse


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown."""
    # Startup: missing required env vars raise here and stop the process
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper(), format=LOG_FORMAT)
    logger.info(f"Feed server for {settings.shop_myshopify_domain} -> https://{settings.shop_public_domain}")
    logger.debug(f"Settings: {sanitize_dict_for_logging(settings.model_dump())}")
    yield
    # Shutdown
    await close_clients()


app = FastAPI(
    title="Shopify Zboží Feed API",
    description="Serves a Zboží.cz XML feed built from the Shopify Admin GraphQL API",
    version="1.0.0",
    lifespan=lifespan
)

app.include_router(feeds_router)


@app.get("/", response_class=PlainTextResponse, tags=["root"])
async def root():
    """Root endpoint."""
    return "OK. Use /feed-cz.xml (Czech feed). Also available: /feed.xml"


@app.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check(cache: FeedCache = Depends(get_feed_cache)):
    """Health check endpoint; reports whether a feed is cached."""
    expires_in = cache.expires_in()
    return HealthResponse(ok=True, feed_cached=expires_in is not None, feed_expires_in=expires_in)


def run():
    """Run the server on the configured port."""
    import uvicorn
    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=settings.port,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    run()

"""
Feed generation service - fetch, then serialize.
"""

import logging
import time

from app.core.shopify_client import ShopifyClient
from .models import FeedConfig
from .fetcher import fetch_feed_items
from .xml_writer import write_feed_xml


logger = logging.getLogger(__name__)


async def generate_feed_xml(client: ShopifyClient, config: FeedConfig) -> str:
    """
    Build the complete feed document.

    Errors from the client propagate unchanged; nothing is returned
    unless every page was fetched.
    """
    started = time.monotonic()
    items = await fetch_feed_items(client, config)
    xml = write_feed_xml(items)
    logger.info(f"Generated feed: {len(items)} items, {len(xml)} chars in {time.monotonic() - started:.1f}s")
    return xml

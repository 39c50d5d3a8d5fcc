"""
Feed generation core module.
"""

from .models import FeedItem, FeedConfig, FeedParam
from .fetcher import fetch_feed_items
from .xml_writer import write_feed_xml
from .service import generate_feed_xml
from .cache import FeedCache

__all__ = [
    'FeedItem',
    'FeedConfig',
    'FeedParam',
    'fetch_feed_items',
    'write_feed_xml',
    'generate_feed_xml',
    'FeedCache'
]

"""
Time-based cache for the generated feed document.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional


logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 900.0

FeedBuilder = Callable[[], Awaitable[str]]


@dataclass(frozen=True)
class CacheEntry:
    document: str
    expires_at: float


class FeedCache:
    """
    Single-slot feed cache.

    Within the TTL the stored document is returned without touching Shopify.
    Concurrent misses share one in-flight build. A failed build leaves the
    previous entry as it was.
    """

    def __init__(
        self,
        builder: FeedBuilder,
        ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic
    ):
        self._builder = builder
        self.ttl = ttl
        self._clock = clock
        self._entry: Optional[CacheEntry] = None
        self._inflight: Optional[asyncio.Task] = None

    def peek(self) -> Optional[CacheEntry]:
        return self._entry

    def expires_in(self) -> Optional[float]:
        """Seconds until the cached document goes stale, or None if nothing is cached."""
        if self._entry is None:
            return None
        return max(self._entry.expires_at - self._clock(), 0.0)

    def _fresh(self) -> Optional[str]:
        entry = self._entry
        if entry is not None and self._clock() < entry.expires_at:
            return entry.document
        return None

    async def _build(self) -> str:
        try:
            document = await self._builder()
            self._entry = CacheEntry(document=document, expires_at=self._clock() + self.ttl)
            return document
        finally:
            self._inflight = None

    async def get_feed(self) -> str:
        document = self._fresh()
        if document is not None:
            logger.debug("Feed cache hit")
            return document

        if self._inflight is None:
            logger.info("Feed cache miss, building feed")
            self._inflight = asyncio.ensure_future(self._build())
        else:
            logger.debug("Feed build already in progress, waiting")

        # shield: one cancelled request must not cancel the build others await
        return await asyncio.shield(self._inflight)

    def invalidate(self) -> None:
        self._entry = None

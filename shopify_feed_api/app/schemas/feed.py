"""
Feed endpoint schemas.
"""

from pydantic import BaseModel
from typing import Optional


class FeedErrorResponse(BaseModel):
    """Body returned when the feed cannot be built."""
    error: str
    hint: str


class HealthResponse(BaseModel):
    """Health check response."""
    ok: bool = True
    feed_cached: bool = False
    feed_expires_in: Optional[float] = None  # seconds

"""
Errors raised while building the feed.

Every error here aborts the current build; the HTTP layer turns them into a 500.
"""

from typing import Any, List, Optional


class FeedError(Exception):
    """Base exception for feed generation errors."""
    pass


class AuthError(FeedError):
    """Client-credentials token exchange failed."""
    pass


class QueryError(FeedError):
    """Shopify Admin API returned application-level errors or a bad HTTP status."""

    def __init__(self, message: str, errors: Optional[List[Any]] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.errors = errors or []
        self.status_code = status_code


class ProtocolError(FeedError):
    """Response body could not be parsed into the expected structure."""
    pass


class RetryExhaustedError(FeedError):
    """Throttling did not clear within the attempt ceiling."""

    def __init__(self, message: str, attempts: int):
        super().__init__(message)
        self.attempts = attempts

"""
Shopify Admin access token: client-credentials exchange and caching.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Tuple

import httpx

from app.core.exceptions import AuthError
from app.core.security import sanitize_string_for_logging


logger = logging.getLogger(__name__)

# Tokens are renewed this many seconds before they expire
REFRESH_MARGIN_SECONDS = 60.0

# Returns (access_token, expires_in_seconds)
TokenExchange = Callable[[], Awaitable[Tuple[str, float]]]


@dataclass(frozen=True)
class AccessToken:
    value: str
    expires_at: float

    def is_fresh(self, now: float, margin: float = REFRESH_MARGIN_SECONDS) -> bool:
        return now < self.expires_at - margin


class TokenCache:
    """Single-slot token holder."""

    def __init__(self):
        self._token: Optional[AccessToken] = None

    def get(self) -> Optional[AccessToken]:
        return self._token

    def store(self, token: AccessToken) -> None:
        self._token = token

    def invalidate(self) -> None:
        self._token = None


async def exchange_client_credentials(
    http: httpx.AsyncClient,
    shop_domain: str,
    client_id: str,
    client_secret: str
) -> Tuple[str, float]:
    """
    Exchange app client credentials for an Admin API access token.

    Args:
        http: Shared HTTP client
        shop_domain: The shop's myshopify.com domain
        client_id: App client id
        client_secret: App client secret

    Returns:
        Tuple of (access_token, expires_in seconds)

    Raises:
        AuthError: If the exchange fails or the response has no token
    """
    url = f"https://{shop_domain}/admin/oauth/access_token"
    try:
        response = await http.post(
            url,
            data={
                "grant_type": "client_credentials",
                "client_id": client_id,
                "client_secret": client_secret,
            },
            headers={"Accept": "application/json"},
        )
    except httpx.HTTPError as e:
        raise AuthError(f"Token request failed: {e}") from e

    if not response.is_success:
        raise AuthError(
            f"Token HTTP {response.status_code}: {sanitize_string_for_logging(response.text[:200])}"
        )

    try:
        payload = response.json()
    except ValueError as e:
        raise AuthError(f"Token response is not JSON: {response.text[:200]}") from e

    if not isinstance(payload, dict) or not payload.get("access_token"):
        keys = sorted(payload) if isinstance(payload, dict) else type(payload).__name__
        raise AuthError(f"Token response missing access_token (got {keys})")

    try:
        expires_in = float(payload.get("expires_in") or 0)
    except (TypeError, ValueError):
        expires_in = 0.0

    return str(payload["access_token"]), expires_in


class AccessTokenProvider:
    """
    Hands out a valid access token, exchanging a new one when the cached
    token is within REFRESH_MARGIN_SECONDS of expiry.

    Concurrent callers that find the cache stale wait on one exchange.
    """

    def __init__(
        self,
        exchange: TokenExchange,
        cache: Optional[TokenCache] = None,
        clock: Callable[[], float] = time.monotonic,
        refresh_margin: float = REFRESH_MARGIN_SECONDS
    ):
        self._exchange = exchange
        self.cache = cache or TokenCache()
        self._clock = clock
        self._refresh_margin = refresh_margin
        self._lock = asyncio.Lock()

    def _cached(self) -> Optional[AccessToken]:
        token = self.cache.get()
        if token and token.is_fresh(self._clock(), self._refresh_margin):
            return token
        return None

    async def get_access_token(self) -> AccessToken:
        token = self._cached()
        if token:
            return token

        async with self._lock:
            # Another caller may have refreshed while we waited
            token = self._cached()
            if token:
                return token

            logger.info("Requesting new Shopify Admin access token")
            value, expires_in = await self._exchange()
            token = AccessToken(value=value, expires_at=self._clock() + expires_in)
            self.cache.store(token)
            logger.debug(f"Access token valid for {expires_in:.0f}s")
            return token

    def invalidate(self) -> None:
        self.cache.invalidate()

"""
Shopify Admin GraphQL client with throttle-aware retry logic.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx

from app.core.auth import AccessTokenProvider
from app.core.exceptions import FeedError, ProtocolError, QueryError, RetryExhaustedError


logger = logging.getLogger(__name__)

DEFAULT_API_VERSION = "2025-07"
MAX_ATTEMPTS = 8

# HTTP 429 Retry-After bounds (seconds)
RETRY_AFTER_MIN = 1.0
RETRY_AFTER_MAX = 30.0

# Exponential backoff when the API gives no restore rate
INITIAL_BACKOFF = 0.5
MAX_BACKOFF = 30.0

# Cost points to wait for after a THROTTLED error
THROTTLE_RESTORE_UNITS = 100.0
MIN_THROTTLE_WAIT = 2.0

# Pace the next call when the bucket drops below this
LOW_BUDGET_THRESHOLD = 50.0
LOW_BUDGET_PAUSE = 1.0


class RetryState(str, Enum):
    REQUESTING = "requesting"
    THROTTLED_HTTP = "throttled_http"
    THROTTLED_API = "throttled_api"
    NETWORK_BACKOFF = "network_backoff"
    LOW_BUDGET_PAUSE = "low_budget_pause"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class RetryDecision:
    """Outcome of one attempt: where the state machine goes next."""
    state: RetryState
    delay: float = 0.0
    data: Optional[Dict[str, Any]] = None
    error: Optional[FeedError] = None
    reason: str = ""


def backoff_delay(attempt: int) -> float:
    return min(MAX_BACKOFF, INITIAL_BACKOFF * (2 ** attempt))


def parse_retry_after(value: Optional[str]) -> float:
    """Retry-After in seconds, clamped; missing or unparsable means the minimum."""
    try:
        seconds = float(value) if value is not None else RETRY_AFTER_MIN
    except ValueError:
        seconds = RETRY_AFTER_MIN
    if seconds != seconds:  # NaN
        seconds = RETRY_AFTER_MIN
    return max(RETRY_AFTER_MIN, min(RETRY_AFTER_MAX, seconds))


def _error_list(errors: Any) -> List[Any]:
    if not errors:
        return []
    return errors if isinstance(errors, list) else [errors]


def _is_throttle_error(error: Any) -> bool:
    if not isinstance(error, dict):
        return False
    extensions = error.get("extensions") or {}
    if isinstance(extensions, dict) and extensions.get("code") == "THROTTLED":
        return True
    return error.get("message") == "Throttled"


def _throttle_status(payload: Dict[str, Any]) -> Dict[str, Any]:
    extensions = payload.get("extensions")
    if not isinstance(extensions, dict):
        return {}
    cost = extensions.get("cost")
    if not isinstance(cost, dict):
        return {}
    status = cost.get("throttleStatus")
    return status if isinstance(status, dict) else {}


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _throttled_decision(payload: Dict[str, Any], attempt: int) -> RetryDecision:
    restore_rate = _number(_throttle_status(payload).get("restoreRate"))
    if restore_rate and restore_rate > 0:
        delay = max(MIN_THROTTLE_WAIT, THROTTLE_RESTORE_UNITS / restore_rate)
        reason = f"THROTTLED, restoreRate={restore_rate:g}/s"
    else:
        delay = backoff_delay(attempt)
        reason = "THROTTLED, no restoreRate"
    return RetryDecision(RetryState.THROTTLED_API, delay=delay, reason=reason)


def classify_response(
    response: httpx.Response,
    attempt: int,
    low_budget_threshold: float = LOW_BUDGET_THRESHOLD
) -> RetryDecision:
    """
    Map one GraphQL HTTP response to the next retry state.

    Args:
        response: Response from the GraphQL endpoint
        attempt: Zero-based attempt number (drives exponential backoff)
        low_budget_threshold: Cost points below which a successful call is paced

    Returns:
        RetryDecision
    """
    status_code = response.status_code

    if status_code == 429:
        delay = parse_retry_after(response.headers.get("retry-after"))
        return RetryDecision(RetryState.THROTTLED_HTTP, delay=delay, reason="HTTP 429")

    try:
        payload = response.json()
    except ValueError:
        payload = None

    errors = _error_list(payload.get("errors")) if isinstance(payload, dict) else []

    if errors and any(_is_throttle_error(e) for e in errors):
        return _throttled_decision(payload, attempt)

    if errors:
        return RetryDecision(
            RetryState.FAILED,
            error=QueryError(f"Admin GraphQL errors: {errors}", errors=errors, status_code=status_code),
        )

    if not response.is_success:
        return RetryDecision(
            RetryState.FAILED,
            error=QueryError(
                f"Admin GraphQL HTTP {status_code}: {response.text[:200]}",
                status_code=status_code,
            ),
        )

    if not isinstance(payload, dict):
        return RetryDecision(
            RetryState.FAILED,
            error=ProtocolError(f"Admin GraphQL response is not a JSON object: {response.text[:200]!r}"),
        )

    data = payload.get("data")
    if not isinstance(data, dict):
        return RetryDecision(RetryState.FAILED, error=ProtocolError("Admin GraphQL response has no 'data' object"))

    available = _number(_throttle_status(payload).get("currentlyAvailable"))
    if available is not None and available < low_budget_threshold:
        return RetryDecision(
            RetryState.LOW_BUDGET_PAUSE,
            delay=LOW_BUDGET_PAUSE,
            data=data,
            reason=f"currentlyAvailable={available:g}",
        )

    return RetryDecision(RetryState.SUCCEEDED, data=data)


class ShopifyClient:
    """
    Async Shopify Admin GraphQL client.

    Handles 429s, THROTTLED errors and transport failures internally; callers
    get either the ``data`` object or a FeedError.
    """

    def __init__(
        self,
        shop_domain: str,
        token_provider: AccessTokenProvider,
        api_version: str = DEFAULT_API_VERSION,
        http: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
        max_attempts: int = MAX_ATTEMPTS,
        low_budget_threshold: float = LOW_BUDGET_THRESHOLD,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    ):
        """
        Initialize Shopify client.

        Args:
            shop_domain: The shop's myshopify.com domain
            token_provider: Supplies X-Shopify-Access-Token values
            api_version: Admin API version (e.g. 2025-07)
            http: Shared HTTP client; one is created (and owned) if omitted
            timeout: Request timeout in seconds for an owned client
            max_attempts: Attempt ceiling per query
            low_budget_threshold: Cost points below which calls are paced
            sleep: Delay function, replaceable in tests
        """
        self.shop_domain = shop_domain
        self.token_provider = token_provider
        self.graphql_url = f"https://{shop_domain}/admin/api/{api_version}/graphql.json"
        self.max_attempts = max_attempts
        self.low_budget_threshold = low_budget_threshold
        self._sleep = sleep
        self._owns_http = http is None
        self.http = http or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    async def _send(self, document: str, variables: Dict[str, Any]) -> httpx.Response:
        token = await self.token_provider.get_access_token()
        return await self.http.post(
            self.graphql_url,
            json={"query": document, "variables": variables},
            headers={
                "Content-Type": "application/json",
                "X-Shopify-Access-Token": token.value,
            },
        )

    async def query(self, document: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Run a GraphQL query.

        Args:
            document: GraphQL document
            variables: Query variables

        Returns:
            The response ``data`` object

        Raises:
            AuthError: Token exchange failed
            QueryError: API reported non-throttle errors or a non-2xx status
            ProtocolError: Response body is malformed
            RetryExhaustedError: Still throttled after max_attempts
        """
        variables = variables or {}
        last: Optional[RetryDecision] = None

        for attempt in range(self.max_attempts):
            try:
                response = await self._send(document, variables)
            except httpx.TransportError as e:
                decision = RetryDecision(
                    RetryState.NETWORK_BACKOFF,
                    delay=backoff_delay(attempt),
                    reason=f"{type(e).__name__}: {e}",
                )
            else:
                decision = classify_response(response, attempt, self.low_budget_threshold)

            if decision.state is RetryState.SUCCEEDED:
                return decision.data

            if decision.state is RetryState.LOW_BUDGET_PAUSE:
                logger.info(f"Low throttle budget ({decision.reason}), pausing {decision.delay:g}s")
                await self._sleep(decision.delay)
                return decision.data

            if decision.state is RetryState.FAILED:
                logger.error(f"Admin GraphQL query failed: {decision.error}")
                raise decision.error

            last = decision
            if attempt + 1 >= self.max_attempts:
                break
            logger.warning(
                f"Admin GraphQL {decision.state.value} ({decision.reason}), "
                f"retrying in {decision.delay:g}s (attempt {attempt + 1}/{self.max_attempts})"
            )
            await self._sleep(decision.delay)

        reason = f"{last.state.value} ({last.reason})" if last else "no attempts made"
        raise RetryExhaustedError(
            f"Admin GraphQL request failed after {self.max_attempts} attempts: {reason}",
            attempts=self.max_attempts,
        )

    async def close(self):
        if self._owns_http:
            await self.http.aclose()

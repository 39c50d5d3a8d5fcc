"""
Feed endpoints.
"""

import logging
from fastapi import APIRouter, Depends, status
from fastapi.responses import Response

from app.core.exceptions import FeedError
from app.core.feed import FeedCache
from app.deps import get_feed_cache
from app.schemas.feed import FeedErrorResponse

router = APIRouter(tags=["Feeds"])

logger = logging.getLogger(__name__)

XML_MEDIA_TYPE = "application/xml; charset=utf-8"

ERROR_HINT = (
    "Ensure Dev Dashboard app scopes include read_products and read_inventory, "
    "and the app is installed on this store. If CZK is blank, ensure Markets/pricing "
    "for CZ is configured for this store."
)


def _error_response(message: str) -> Response:
    body = FeedErrorResponse(error=message, hint=ERROR_HINT)
    return Response(
        content=body.model_dump_json(indent=2),
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        media_type="application/json"
    )


@router.get(
    "/feed-cz.xml",
    response_class=Response,
    responses={500: {"model": FeedErrorResponse}}
)
@router.get(
    "/feed.xml",
    response_class=Response,
    responses={500: {"model": FeedErrorResponse}}
)
async def get_feed(cache: FeedCache = Depends(get_feed_cache)):
    """
    Zboží.cz product feed.

    Served from cache within the TTL; otherwise rebuilt from Shopify.
    /feed.xml is the old name and serves the same document.
    """
    try:
        xml = await cache.get_feed()
    except FeedError as e:
        logger.error(f"Feed build failed: {e}")
        return _error_response(str(e))
    except Exception as e:
        logger.exception(f"Unexpected error building feed: {e}")
        return _error_response(str(e) or type(e).__name__)

    return Response(content=xml, media_type=XML_MEDIA_TYPE)

"""
Fetch products from Shopify and turn them into feed items.
"""

import logging
from collections import Counter
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlencode

from app.core.shopify_client import ShopifyClient
from .models import FeedConfig, FeedItem, FeedParam, ProductPage, RawProduct
from .normalize import clean_description, to_xml_safe_text
from .variants import (
    extract_size_attribute,
    select_variant,
    variant_barcode,
    variant_price,
    variant_sku,
)


logger = logging.getLogger(__name__)


PRODUCTS_QUERY = """
query ZboziAdminFeed(
  $first: Int!, $after: String, $variantsFirst: Int!, $imagesFirst: Int!,
  $locale: String!, $country: CountryCode!
) {
  products(first: $first, after: $after, query: "status:active") {
    pageInfo { hasNextPage endCursor }
    edges {
      node {
        id
        title
        vendor
        handle
        descriptionHtml
        featuredImage { url }
        images(first: $imagesFirst) { edges { node { url } } }
        translations(locale: $locale) { key value }
        variants(first: $variantsFirst) {
          edges {
            node {
              id
              sku
              barcode
              inventoryQuantity
              selectedOptions { name value }
              contextualPricing(context: { country: $country }) {
                price { amount currencyCode }
              }
            }
          }
        }
      }
    }
  }
}
"""


def build_page_variables(config: FeedConfig, after: Optional[str] = None) -> Dict[str, Any]:
    """Variables for one PRODUCTS_QUERY page."""
    return {
        'first': config.page_size,
        'after': after,
        'variantsFirst': config.variants_per_product,
        # primary + alternates, in case the featured image is not in the list
        'imagesFirst': config.max_alternative_images + 1,
        'locale': config.locale,
        'country': config.market_country,
    }


def legacy_id(gid: str) -> str:
    """``gid://shopify/ProductVariant/123`` -> ``123``."""
    return gid.rstrip('/').rsplit('/', 1)[-1] if gid else ''


def build_product_url(public_domain: str, handle: str, variant_id: Optional[str] = None) -> str:
    url = f"https://{public_domain}/products/{handle}"
    if variant_id:
        url += '?' + urlencode({'variant': variant_id})
    return url


def _alternative_images(product: RawProduct, primary: str, limit: int) -> List[str]:
    result: List[str] = []
    for url in product.images:
        if len(result) >= limit:
            break
        if url and url != primary and url not in result:
            result.append(url)
    return result


def build_feed_item(product: RawProduct, config: FeedConfig) -> Tuple[Optional[FeedItem], Optional[str]]:
    """
    Map one product to a feed item.

    Returns:
        (FeedItem, None) on success, or (None, skip_reason)
    """
    variant = select_variant(product.variants, require_price=config.prefer_priced_variant)
    if variant is None:
        return None, 'out_of_stock'

    img_url = product.featured_image or (product.images[0] if product.images else None)
    if not img_url:
        return None, 'no_image'

    price_vat = variant_price(variant)
    if price_vat is None and config.skip_unpriced:
        return None, 'no_price'

    sku = variant_sku(variant)
    item_id = sku if sku is not None else to_xml_safe_text(legacy_id(variant.id))
    if not item_id:
        return None, 'no_id'

    product_name = to_xml_safe_text(product.translation('title') or product.title)

    description_html = (
        product.translation('description_html')
        or product.translation('body_html')
        or product.description_html
    )
    description = clean_description(description_html, config.description_limit)

    variant_ref = legacy_id(variant.id) if config.link_variant else None
    url = build_product_url(config.public_domain, product.handle, variant_ref)

    params = []
    size = extract_size_attribute(variant.selected_options)
    if size:
        params.append(FeedParam(name=config.size_param_name, value=size))

    item = FeedItem(
        item_id=item_id,
        item_group_id=to_xml_safe_text(legacy_id(product.id)),
        product_name=product_name,
        description=description,
        url=url,
        img_url=to_xml_safe_text(img_url),
        alternative_images=_alternative_images(product, img_url, config.max_alternative_images),
        price_vat=price_vat,
        currency=variant.price.currency_code if variant.price else None,
        manufacturer=to_xml_safe_text(product.vendor),
        ean=variant_barcode(variant),
        product_no=sku if sku is not None else product_name,
        condition=config.condition,
        params=params,
        delivery_date=config.delivery_date,
    )
    return item, None


async def fetch_feed_items(client: ShopifyClient, config: FeedConfig) -> List[FeedItem]:
    """
    Fetch all active products and convert them to FeedItem objects.

    One item per product, built from its first in-stock variant. Products
    without stock, image, price or id are skipped. Any client error aborts
    the whole fetch; no partial list is returned.

    Args:
        client: ShopifyClient instance
        config: FeedConfig

    Returns:
        List of FeedItem objects in catalog order
    """
    feed_items: List[FeedItem] = []
    skipped: Counter = Counter()
    after: Optional[str] = None
    page_number = 0

    while True:
        page_number += 1
        data = await client.query(PRODUCTS_QUERY, build_page_variables(config, after))
        page = ProductPage.from_data(data)
        logger.debug(f"Fetched page {page_number}: {len(page.products)} products")

        for product in page.products:
            item, reason = build_feed_item(product, config)
            if item is None:
                skipped[reason] += 1
                logger.debug(f"Skipping product {product.id} ({product.handle}): {reason}")
                continue
            feed_items.append(item)

        if not page.has_next_page:
            break
        after = page.end_cursor

    logger.info(
        f"Feed built from {page_number} page(s): {len(feed_items)} items, "
        f"skipped {dict(skipped) or 'none'}"
    )
    return feed_items

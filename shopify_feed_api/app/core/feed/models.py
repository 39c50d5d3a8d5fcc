"""
Feed data models.

Raw* classes mirror the Shopify Admin GraphQL product shape; FeedItem is the
normalized record the XML writer consumes.
"""

from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any, Tuple

from app.core.exceptions import ProtocolError


@dataclass
class FeedConfig:
    """Feed generation configuration."""
    public_domain: str  # e.g. smelltoimpress.cz

    delivery_date: int = 3  # days; 0 = immediately
    page_size: int = 100
    variants_per_product: int = 50
    locale: str = 'cs'
    market_country: str = 'CZ'

    # Policy
    skip_unpriced: bool = True  # False = emit an empty PRICE_VAT
    prefer_priced_variant: bool = False
    link_variant: bool = True  # append ?variant=<id> to product URL

    # Schema-driven limits
    description_limit: int = 320
    max_alternative_images: int = 10
    size_param_name: str = 'velikost'
    condition: Optional[str] = 'new'


@dataclass(frozen=True)
class Money:
    amount: str
    currency_code: Optional[str] = None


@dataclass
class RawVariant:
    """One purchasable variant as returned by the products query."""
    id: str
    sku: Optional[str] = None
    barcode: Optional[str] = None
    inventory_quantity: Optional[int] = None
    selected_options: List[Tuple[str, str]] = field(default_factory=list)
    price: Optional[Money] = None

    @classmethod
    def from_node(cls, node: Dict[str, Any]) -> 'RawVariant':
        if not isinstance(node, dict) or not node.get('id'):
            raise ProtocolError(f"Variant node without id: {node!r}")

        quantity = node.get('inventoryQuantity')
        # bool is an int subclass; a JSON true is not a stock level
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            quantity = None

        options = []
        for opt in node.get('selectedOptions') or []:
            if isinstance(opt, dict) and opt.get('name') is not None:
                options.append((str(opt['name']), str(opt.get('value') or '')))

        price = None
        pricing = node.get('contextualPricing') or {}
        raw_price = pricing.get('price') if isinstance(pricing, dict) else None
        if isinstance(raw_price, dict) and raw_price.get('amount') is not None:
            price = Money(amount=str(raw_price['amount']), currency_code=raw_price.get('currencyCode'))

        return cls(
            id=str(node['id']),
            sku=node.get('sku'),
            barcode=node.get('barcode'),
            inventory_quantity=quantity,
            selected_options=options,
            price=price,
        )


@dataclass
class RawProduct:
    """One product node, variants included."""
    id: str
    title: str = ''
    vendor: Optional[str] = None
    handle: str = ''
    description_html: Optional[str] = None
    featured_image: Optional[str] = None
    images: List[str] = field(default_factory=list)
    translations: Dict[str, str] = field(default_factory=dict)
    variants: List[RawVariant] = field(default_factory=list)

    @classmethod
    def from_node(cls, node: Dict[str, Any]) -> 'RawProduct':
        if not isinstance(node, dict) or not node.get('id'):
            raise ProtocolError(f"Product node without id: {node!r}")

        featured = node.get('featuredImage') or {}
        featured_url = featured.get('url') if isinstance(featured, dict) else None

        images: List[str] = []
        for edge in _edges(node.get('images')):
            url = (edge.get('node') or {}).get('url')
            if url and url not in images:
                images.append(url)

        translations: Dict[str, str] = {}
        for t in node.get('translations') or []:
            if isinstance(t, dict) and t.get('key') and t['key'] not in translations:
                translations[t['key']] = t.get('value') or ''

        variants = [RawVariant.from_node(edge.get('node')) for edge in _edges(node.get('variants'))]

        return cls(
            id=str(node['id']),
            title=node.get('title') or '',
            vendor=node.get('vendor'),
            handle=node.get('handle') or '',
            description_html=node.get('descriptionHtml'),
            featured_image=featured_url or None,
            images=images,
            translations=translations,
            variants=variants,
        )

    def translation(self, key: str) -> Optional[str]:
        value = self.translations.get(key)
        return value if value else None


@dataclass
class ProductPage:
    products: List[RawProduct]
    end_cursor: Optional[str]
    has_next_page: bool

    @classmethod
    def from_data(cls, data: Dict[str, Any]) -> 'ProductPage':
        """Parse the ``data`` object of a products query."""
        conn = data.get('products') if isinstance(data, dict) else None
        if not isinstance(conn, dict):
            raise ProtocolError("Response data has no 'products' connection")

        page_info = conn.get('pageInfo')
        if not isinstance(page_info, dict):
            raise ProtocolError("Products connection has no 'pageInfo'")

        edges = conn.get('edges')
        if not isinstance(edges, list):
            raise ProtocolError("Products connection has no 'edges' list")

        has_next = bool(page_info.get('hasNextPage'))
        cursor = page_info.get('endCursor')
        if has_next and not cursor:
            raise ProtocolError("hasNextPage is true but endCursor is missing")

        return cls(
            products=[RawProduct.from_node(edge.get('node')) for edge in edges if isinstance(edge, dict)],
            end_cursor=cursor,
            has_next_page=has_next,
        )


def _edges(connection: Any) -> List[Dict[str, Any]]:
    if not isinstance(connection, dict):
        return []
    return [e for e in connection.get('edges') or [] if isinstance(e, dict)]


@dataclass
class FeedParam:
    name: str
    value: str


@dataclass
class FeedItem:
    """Normalized feed item data structure (one SHOPITEM)."""
    # Identifiers
    item_id: str  # SKU or numeric variant id
    item_group_id: Optional[str] = None  # numeric product id

    # Product information
    product_name: str = ''
    description: str = ''
    url: str = ''
    img_url: str = ''
    alternative_images: List[str] = field(default_factory=list)

    # Pricing; None only under the lenient price policy
    price_vat: Optional[str] = None
    currency: Optional[str] = None

    # Attributes
    manufacturer: Optional[str] = None
    ean: Optional[str] = None
    product_no: Optional[str] = None
    condition: Optional[str] = None
    params: List[FeedParam] = field(default_factory=list)
    delivery_date: int = 0

    def __post_init__(self):
        # '' means absent; '0' stays
        for name in ('item_group_id', 'manufacturer', 'ean', 'product_no', 'condition', 'currency'):
            if getattr(self, name) == '':
                setattr(self, name, None)

"""
Variant selection and per-variant attribute extraction.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, Optional, Sequence, Tuple

from .models import RawVariant
from .normalize import to_xml_safe_text


# Option names recognised as the size attribute, highest priority first
SIZE_OPTION_NAMES = ('size', 'velikost')

_CENTS = Decimal('0.01')


def format_price(amount: Optional[str]) -> Optional[str]:
    """Format an amount as a fixed 2-decimal string, or None if it is not a finite number."""
    if amount is None:
        return None
    try:
        value = Decimal(str(amount).strip())
        if not value.is_finite():
            return None
        # quantize raises when the result exceeds the context precision
        return str(value.quantize(_CENTS, rounding=ROUND_HALF_UP))
    except (InvalidOperation, ValueError):
        return None


def variant_price(variant: RawVariant) -> Optional[str]:
    if variant.price is None:
        return None
    return format_price(variant.price.amount)


def is_in_stock(variant: RawVariant) -> bool:
    return variant.inventory_quantity is not None and variant.inventory_quantity > 0


def select_variant(variants: Iterable[RawVariant], require_price: bool = False) -> Optional[RawVariant]:
    """
    Pick the representative variant of a product.

    Returns the first variant (in the given order) with inventory > 0,
    and, when ``require_price`` is set, a resolvable price. None means
    the product has nothing sellable and must be skipped.
    """
    for variant in variants:
        if not is_in_stock(variant):
            continue
        if require_price and variant_price(variant) is None:
            continue
        return variant
    return None


def extract_size_attribute(options: Sequence[Tuple[str, str]]) -> str:
    """Return the normalized value of the size option (``size`` before ``velikost``), or ''."""
    for wanted in SIZE_OPTION_NAMES:
        for name, value in options:
            if name.strip().lower() == wanted:
                return to_xml_safe_text(value)
    return ''


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    cleaned = to_xml_safe_text(str(value))
    return cleaned if cleaned != '' else None


def variant_sku(variant: RawVariant) -> Optional[str]:
    return _clean(variant.sku)


def variant_barcode(variant: RawVariant) -> Optional[str]:
    return _clean(variant.barcode)

"""
XML Writer for the Zboží.cz product feed.
"""

import xml.etree.ElementTree as ET
from xml.dom import minidom
from typing import List, Optional

from .models import FeedItem


# Zboží.cz offer feed namespace
ZBOZI_NS = 'http://www.zbozi.cz/ns/offer/1.0'


def _add(parent: ET.Element, tag: str, text: str) -> ET.Element:
    elem = ET.SubElement(parent, tag)
    elem.text = text
    return elem


def _add_optional(parent: ET.Element, tag: str, text: Optional[str]) -> None:
    # Absent optional fields produce no element at all, not an empty one
    if text is not None:
        _add(parent, tag, text)


def build_shop_item(root: ET.Element, item: FeedItem) -> ET.Element:
    """Append one SHOPITEM; element order is fixed by the feed schema."""
    shop_item = ET.SubElement(root, 'SHOPITEM')

    _add(shop_item, 'ITEM_ID', item.item_id)
    _add_optional(shop_item, 'ITEMGROUP_ID', item.item_group_id)
    _add(shop_item, 'PRODUCTNAME', item.product_name)
    _add(shop_item, 'URL', item.url)
    _add(shop_item, 'IMGURL', item.img_url)
    # Lenient price policy leaves price unset; PRICE_VAT is still required by Zboží
    _add(shop_item, 'PRICE_VAT', item.price_vat if item.price_vat is not None else '')
    _add_optional(shop_item, 'MANUFACTURER', item.manufacturer)
    _add_optional(shop_item, 'EAN', item.ean)
    _add_optional(shop_item, 'PRODUCTNO', item.product_no)
    _add_optional(shop_item, 'CONDITION', item.condition)
    _add(shop_item, 'DESCRIPTION', item.description)

    for alt in item.alternative_images:
        _add(shop_item, 'IMGURL_ALTERNATIVE', alt)

    for param in item.params:
        param_elem = ET.SubElement(shop_item, 'PARAM')
        _add(param_elem, 'PARAM_NAME', param.name)
        _add(param_elem, 'VAL', param.value)

    _add(shop_item, 'DELIVERY_DATE', str(item.delivery_date))
    return shop_item


def write_feed_xml(items: List[FeedItem]) -> str:
    """
    Generate Zboží.cz feed XML from feed items.

    Args:
        items: List of FeedItem objects, in output order

    Returns:
        Pretty-printed XML string with a UTF-8 declaration
    """
    root = ET.Element('SHOP', {'xmlns': ZBOZI_NS})
    for item in items:
        build_shop_item(root, item)

    xml_string = ET.tostring(root, encoding='unicode', method='xml')

    # Parse with minidom for pretty printing
    dom = minidom.parseString(xml_string)
    return dom.toprettyxml(indent='  ', encoding='UTF-8').decode('utf-8')
